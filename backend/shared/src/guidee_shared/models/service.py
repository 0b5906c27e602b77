"""Bookable tour service offered by a guide."""

from typing import Optional

from pydantic import Field

from .base import CamelModel
from .order import Location


class TourService(CamelModel):
    """A guide's tour as listed in the service catalog."""

    id: str
    name: str
    image: str = ""
    base_price: int = Field(..., ge=0, description="Price per participant in TWD")
    duration_hours: float = Field(..., gt=0)
    guide_id: str
    guide_name: str
    guide_avatar: Optional[str] = None
    location: Location
    is_active: bool = True
