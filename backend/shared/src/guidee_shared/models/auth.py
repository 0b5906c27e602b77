"""Authenticated caller identity."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import CallerRole


class Caller(BaseModel):
    """The user behind a request, decoded from the bearer token."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="User ID (token sub claim)")
    role: str = Field(default=CallerRole.USER.value, description="Caller role")

    @property
    def is_admin(self) -> bool:
        return self.role == CallerRole.ADMIN.value
