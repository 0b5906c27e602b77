"""Caller resolution for order endpoints.

The caller's token is read from the ``Authorization: Bearer`` header, falling
back to the ``auth-token`` cookie set by the web client. Missing, invalid and
expired tokens all fail with AUTH_REQUIRED (401).
"""

from fastapi import Depends, Request

from guidee_shared.config import Settings, get_settings
from guidee_shared.models import Caller, OrderError, OrderErrorCode
from guidee_shared.utils.tokens import decode_caller

AUTH_COOKIE_NAME = "auth-token"
BEARER_PREFIX = "bearer "


def extract_token(request: Request) -> str | None:
    """Get the raw token from the request, header first."""
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX) :].strip()
        if token:
            return token
    return request.cookies.get(AUTH_COOKIE_NAME)


def get_current_caller(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Caller:
    """FastAPI dependency resolving the authenticated caller.

    Raises:
        OrderError: AUTH_REQUIRED
    """
    caller = decode_caller(
        extract_token(request),
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    if caller is None:
        raise OrderError(OrderErrorCode.AUTH_REQUIRED)
    return caller
