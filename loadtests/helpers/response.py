"""Response error extraction for load test observability.

Parses Marketplace API error responses into human-readable messages.
Every error body has the shape:

    {"success": false, "message": "...", "kind": "...", "errors": {"field": ["msg"]}}

where ``kind`` is present on checkout failures and ``errors`` on validation failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    """
    try:
        body = response.json()
    except Exception:
        # Not JSON: return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:300]

    message = str(body.get("message", ""))
    if body.get("kind"):
        message = f"[{body['kind']}] {message}"

    errors = body.get("errors")
    if isinstance(errors, dict) and errors:
        fields = " | ".join(f"{field}: {', '.join(map(str, msgs))}" for field, msgs in errors.items())
        message = f"{message} ({fields})" if message else fields

    return message or str(body)[:300]


def error_kind(response: Response) -> str | None:
    """The checkout failure kind of an error response, if it has one."""
    try:
        return response.json().get("kind")
    except Exception:
        return None
