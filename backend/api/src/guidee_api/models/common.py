"""Shared API response models.

Every endpoint answers with the same envelope:
- success: ``{"success": true, "data": ..., "message": ...}``
- failure: ``{"success": false, "error": ..., "code": ..., "message": ...}``

The failure side is guidee_shared.models.ErrorEnvelope, built by the
exception handlers.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from guidee_shared.models import ErrorEnvelope

__all__ = ["ApiResponse", "ErrorEnvelope"]

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Successful response wrapper."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = Field(
        default=None,
        description="Human-readable outcome, shown to the user",
        examples=["Order created successfully"],
    )
