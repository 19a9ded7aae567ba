"""Logging configuration for the marketplace.

Standard library handlers (console plus rotating files) carry the output;
structlog builds the structured event dicts on top of them. ``PROTEAN_ENV``
picks the defaults: JSON lines in production, a Rich console everywhere else.
``LOG_LEVEL`` overrides the level.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

_LEVELS = {"production": "INFO", "test": "WARNING"}
_QUIET_LIBRARIES = ("urllib3", "stripe", "protean")


def _environment() -> str:
    return os.getenv("PROTEAN_ENV", "development").lower()


def _rotating_file(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _renderer(env: str):
    if env == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
    )


def configure_logging(level: str | None = None, log_dir: str = "logs", log_file_prefix: str = "marketplace") -> None:
    """Route stdlib logging to the console and ``<log_dir>/<prefix>{,_error}.log``, then set up structlog."""
    env = _environment()
    log_level = level or os.getenv("LOG_LEVEL") or _LEVELS.get(env, "DEBUG")

    log_path = Path(log_dir)
    log_path.mkdir(exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers = [
        console,
        _rotating_file(log_path / f"{log_file_prefix}.log", log_level),
        _rotating_file(log_path / f"{log_file_prefix}_error.log", logging.ERROR),
    ]
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            ),
            _renderer(env),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**kwargs: Any) -> None:
    """Bind context (method, path, user id) to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
