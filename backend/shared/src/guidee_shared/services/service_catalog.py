"""Tour service catalog.

Holds the bookable services orders are created against. Loaded from the
bundled JSON file by default; tests load their own entries from dicts.
"""

import json
import logging
from pathlib import Path
from typing import Any

from guidee_shared.models import TourService

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "services.json"


class ServiceCatalog:
    """In-memory lookup of tour services by id."""

    def __init__(self, services: list[TourService] | None = None) -> None:
        self._services: dict[str, TourService] = {}
        for service in services or []:
            self._services[service.id] = service

    @classmethod
    def from_dicts(cls, data: list[dict[str, Any]]) -> "ServiceCatalog":
        return cls([TourService.model_validate(entry) for entry in data])

    @classmethod
    def from_json(cls, json_path: Path | str | None = None) -> "ServiceCatalog":
        """Load the catalog from a JSON file.

        Args:
            json_path: Path to JSON file. If None, uses the bundled catalog.

        Returns:
            The loaded catalog.

        Raises:
            FileNotFoundError: If JSON file doesn't exist.
            json.JSONDecodeError: If JSON is invalid.
        """
        path = Path(json_path) if json_path else DEFAULT_CATALOG_PATH

        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        catalog = cls.from_dicts(data.get("services", []))
        logger.info("Loaded %d services from %s", len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._services)

    def get(self, service_id: str) -> TourService | None:
        return self._services.get(service_id)

    def get_bookable(self, service_id: str) -> TourService | None:
        """Return the service only if it exists and is active."""
        service = self._services.get(service_id)
        if service is None or not service.is_active:
            return None
        return service
