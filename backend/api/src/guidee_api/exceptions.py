"""FastAPI exception handlers producing the uniform error envelope.

Every failure leaves the API as ``{"success": false, "error", "code"}`` with
the catalogue's user-facing message and HTTP status:
- OrderError: its own status and user message
- Request validation errors: INVALID_REQUEST_DATA (400), not FastAPI's 422
- Starlette HTTP errors (unknown route, wrong method): their status
- Anything else: a generic 500 "system error"

Internal messages and exception text go to the logs only.

Usage:
    from guidee_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from guidee_shared.models import (
    ErrorEnvelope,
    OrderError,
    OrderErrorCode,
    describe_unknown_error,
)
from guidee_shared.utils.logging import get_logger

logger = get_logger(__name__)


def _envelope_response(status_code: int, envelope: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", exclude_none=True),
    )


def summarize_validation_errors(errors: list[Any]) -> str:
    """Flatten validation errors into ``loc: msg`` pairs for the logs."""
    parts = []
    for error in errors:
        loc = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{loc}: {error.get('msg', '')}")
    return "; ".join(parts)


async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
    """Convert an OrderError into its catalogue envelope."""
    logger.warning(
        "%s %s failed with %s: %s",
        request.method,
        request.url.path,
        exc.code.value,
        exc.message,
    )
    return _envelope_response(exc.status_code, exc.to_envelope())


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed or incomplete requests as INVALID_REQUEST_DATA."""
    error = OrderError(
        OrderErrorCode.INVALID_REQUEST_DATA,
        summarize_validation_errors(list(exc.errors())),
    )
    return await order_error_handler(request, error)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (404 route, 405 method) in the envelope."""
    return _envelope_response(
        exc.status_code,
        ErrorEnvelope(error=str(exc.detail), code=f"HTTP_{exc.status_code}"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic 500 envelope.

    The exception is logged with its traceback; the client only sees the
    generic system-error message.
    """
    details = describe_unknown_error(exc)
    logger.exception(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        details.message,
    )
    return _envelope_response(
        HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorEnvelope(error=details.user_message, code=details.code),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(OrderError, order_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
