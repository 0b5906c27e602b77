"""Environment-driven settings for the orders backend.

All values come from environment variables so the same build runs locally,
in tests and on Lambda. Settings are read once and cached; call
``get_settings.cache_clear()`` after changing the environment in tests.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


DEV_JWT_SECRET = "dev-secret-change-me"
# Only these environments may run on the built-in development secret
DEV_ENVIRONMENTS = frozenset({"dev", "test"})


def _jwt_secret(environment: str) -> str:
    secret = os.getenv("JWT_SECRET", "").strip()
    if secret:
        return secret
    if environment in DEV_ENVIRONMENTS:
        return DEV_JWT_SECRET
    raise RuntimeError(f"JWT_SECRET must be set when ENVIRONMENT={environment}")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    environment: str = "dev"
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    order_storage: str = "memory"  # memory | dynamodb
    dynamodb_table_prefix: str = "guidee-dev"
    notification_email_backend: str = "log"  # log | ses
    notification_sms_backend: str = "log"  # log | sns
    notification_sender_email: str = "no-reply@guidee.example"
    notification_max_attempts: int = 3
    service_timezone: str = "Asia/Taipei"
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )


@lru_cache
def get_settings() -> Settings:
    """Build settings from the current environment.

    Returns:
        Cached Settings instance.

    Raises:
        RuntimeError: JWT_SECRET is unset outside dev and test.
    """
    environment = os.getenv("ENVIRONMENT", "dev").lower()
    return Settings(
        environment=environment,
        jwt_secret=_jwt_secret(environment),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        order_storage=os.getenv("ORDER_STORAGE", "memory").lower(),
        # Allow override via DYNAMODB_TABLE_PREFIX for testing
        dynamodb_table_prefix=os.getenv(
            "DYNAMODB_TABLE_PREFIX", f"guidee-{environment}"
        ),
        notification_email_backend=os.getenv("NOTIFICATION_EMAIL_BACKEND", "log").lower(),
        notification_sms_backend=os.getenv("NOTIFICATION_SMS_BACKEND", "log").lower(),
        notification_sender_email=os.getenv(
            "NOTIFICATION_SENDER_EMAIL", "no-reply@guidee.example"
        ),
        notification_max_attempts=_env_int("NOTIFICATION_MAX_ATTEMPTS", 3),
        service_timezone=os.getenv("SERVICE_TIMEZONE", "Asia/Taipei"),
        cors_origins=_env_list(
            "CORS_ORIGINS", ["http://localhost:3000", "http://127.0.0.1:3000"]
        ),
    )
