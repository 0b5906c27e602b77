"""API-specific response models.

Domain models (Order, requests, stats) live in guidee_shared.models and are
reused here; this package only adds the HTTP envelope.
"""

from guidee_api.models.common import ApiResponse

__all__ = ["ApiResponse"]
