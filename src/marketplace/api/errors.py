"""Exception to HTTP response mapping.

Every error body has the shape ``{"success": false, "message": ...}``;
validation failures add ``errors``, keyed by field.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.shared.errors import CONFLICT_KINDS, GATEWAY_KINDS, CheckoutError
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_GATEWAY_MESSAGE = "Payment service is unavailable, please try again later"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def status_for(exc: CheckoutError) -> int:
    if exc.kind in GATEWAY_KINDS:
        return 500
    if exc.kind in CONFLICT_KINDS:
        return 409
    return 400


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "checkout_gateway_failure",
            path=request.url.path,
            kind=exc.kind.name,
            message=exc.message,
            context=exc.context,
        )
        return _error(status_code, GENERIC_GATEWAY_MESSAGE, kind=exc.kind.value)

    logger.info("checkout_rejected", path=request.url.path, kind=exc.kind.name, context=exc.context)
    return _error(status_code, exc.message, kind=exc.kind.value)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(422, "Validation failed", errors=exc.messages)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        # Drop the leading "body"/"path"/"query" segment
        location = [str(part) for part in error.get("loc", ())[1:]] or ["request"]
        errors.setdefault(".".join(location), []).append(error.get("msg", "Invalid value"))
    return _error(422, "Validation failed", errors=errors)


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _error(404, "Not found")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CheckoutError, checkout_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
