from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import httpx
import structlog

from portal.core.config import settings
from portal.services.exceptions import GeocodeFailure

logger = structlog.get_logger()


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float


class Geocoder(ABC):
    @abstractmethod
    def geocode(self, address: str) -> Coordinates:
        """Resolve a free-text address; raise GeocodeFailure when it cannot."""


class GeoapifyGeocoder(Geocoder):
    """Address search against the Geoapify geocoding API."""

    def __init__(self, api_key: str, base_url: str, client: httpx.Client | None = None) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._client = client or httpx.Client()

    def _first_feature(self, data: Any) -> dict[str, Any]:
        features = data.get("features") if isinstance(data, dict) else None
        first = features[0] if isinstance(features, list) and features else None
        if not isinstance(first, dict):
            raise GeocodeFailure("no location found for the given address")
        return first.get("properties") or {}

    def geocode(self, address: str) -> Coordinates:
        if not address or not address.strip():
            raise GeocodeFailure("no address to geocode")

        try:
            response = self._client.get(
                self._base_url,
                params={"text": address, "apiKey": self._api_key},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("geocode_failed", address=address, error=str(exc))
            raise GeocodeFailure("geocoding request failed") from exc

        properties = self._first_feature(data)
        try:
            return Coordinates(lat=float(properties["lat"]), lon=float(properties["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodeFailure("geocoding response had no coordinates") from exc


@lru_cache(maxsize=1)
def get_geocoder() -> Geocoder:
    return GeoapifyGeocoder(settings.geoapify_api_key, settings.geoapify_base_url)
