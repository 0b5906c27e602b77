"""Request tracing via X-Correlation-ID.

The caller's correlation id is reused when it looks sane (printable, at most
128 characters); otherwise a fresh one is generated. The id is bound to the
logging context for the whole request, so order and notification log lines
can be tied back to it, and is echoed on the response.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from guidee_shared.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"
MAX_CORRELATION_ID_LENGTH = 128


def accepted_correlation_id(raw: str | None) -> str | None:
    """Return the incoming id if usable, else None (a new one gets generated)."""
    if not raw:
        return None
    raw = raw.strip()
    if not raw or len(raw) > MAX_CORRELATION_ID_LENGTH or not raw.isprintable():
        return None
    return raw


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation id to each request and its response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = set_correlation_id(
            accepted_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        )
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
