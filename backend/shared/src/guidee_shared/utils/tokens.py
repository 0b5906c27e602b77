"""Bearer token helpers for resolving the calling user.

Tokens are HS256 JWTs carrying three claims:
- ``sub``: the user id
- ``role``: ``admin``, ``guide`` or ``user``
- ``exp``: expiry (seconds since epoch)

Missing, malformed, badly signed and expired tokens all resolve to ``None``;
callers treat that as unauthenticated.
"""

import datetime as dt
import logging

import jwt

from guidee_shared.models.auth import Caller

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = dt.timedelta(days=7)


def issue_token(
    user_id: str,
    role: str,
    secret: str,
    *,
    ttl: dt.timedelta = DEFAULT_TOKEN_TTL,
    algorithm: str = "HS256",
    now: dt.datetime | None = None,
) -> str:
    """Issue a signed token for a user.

    Args:
        user_id: User identifier stored in ``sub``
        role: Caller role
        secret: Signing secret
        ttl: Lifetime of the token. Negative values produce an expired token.
        algorithm: JWT signing algorithm
        now: Issue time, defaults to the current UTC time

    Returns:
        Encoded JWT string
    """
    issued_at = now or dt.datetime.now(dt.UTC)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + ttl).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_caller(
    token: str | None,
    secret: str,
    *,
    algorithm: str = "HS256",
) -> Caller | None:
    """Decode a bearer token into a Caller.

    Args:
        token: Raw token from the Authorization header or auth cookie
        secret: Signing secret
        algorithm: Expected signing algorithm

    Returns:
        The Caller, or None when the token is absent, invalid or expired
    """
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning("Failed to decode token: %s", type(e).__name__)
        return None

    return Caller(id=str(payload["sub"]), role=str(payload.get("role", "user")))
