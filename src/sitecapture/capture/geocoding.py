"""Reverse geocoding: coordinates -> LocationSnapshot. Failures fall back to sentinel fields."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable

import requests

from sitecapture.config import SessionConfig
from sitecapture.errors import EnrichmentFailure
from sitecapture.session.types import NOT_AVAILABLE, LocationSnapshot

logger = logging.getLogger(__name__)

# Address component type -> LocationSnapshot field
_COMPONENTS = {
    "locality": "city",
    "country": "country",
    "route": "street",
    "street_number": "house_number",
    "postal_code": "zipcode",
}

# Tried in order; first match wins
LANDMARK_TYPES = ("point_of_interest", "premise", "establishment")


def format_timestamp(moment: datetime | None = None) -> str:
    return (moment or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


class GeocodingClient:
    """HTTP client for a Google-Geocoding-style reverse lookup."""

    def __init__(self, url: str, api_key: str = "", timeout: float = 10.0) -> None:
        self._url = url
        self._api_key = api_key
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: SessionConfig) -> GeocodingClient:
        return cls(config.geocoding_url, config.geocoding_api_key, config.request_timeout)

    def reverse(self, latitude: float, longitude: float) -> list[dict[str, Any]]:
        """Return the ``results`` list for the coordinates. Raises EnrichmentFailure."""
        params = {"latlng": f"{latitude},{longitude}"}
        if self._api_key:
            params["key"] = self._api_key
        try:
            resp = requests.get(self._url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise EnrichmentFailure(f"geocoding request failed: {e}") from e
        if not resp.ok:
            raise EnrichmentFailure(f"geocoding HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise EnrichmentFailure("geocoding response is not JSON") from e
        status = data.get("status", "OK")
        results = data.get("results") or []
        if status != "OK" or not results:
            raise EnrichmentFailure(f"no geocoding match (status={status})")
        return results


def _components(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [c for r in results for c in (r.get("address_components") or [])]


def _first_of_type(components: list[dict[str, Any]], type_name: str) -> str | None:
    for comp in components:
        if type_name in (comp.get("types") or []):
            name = comp.get("long_name") or comp.get("short_name")
            if name:
                return name
    return None


def resolve_landmark(results: list[dict[str, Any]]) -> str:
    """Point of interest, else premise, else establishment, else NOT_AVAILABLE."""
    components = _components(results)
    for type_name in LANDMARK_TYPES:
        name = _first_of_type(components, type_name)
        if name:
            return name
    # Establishments are often tagged on the result itself rather than a component
    for type_name in LANDMARK_TYPES:
        for r in results:
            if type_name in (r.get("types") or []) and r.get("name"):
                return r["name"]
    return NOT_AVAILABLE


def snapshot_from_results(
    latitude: float, longitude: float, results: list[dict[str, Any]], timestamp: str
) -> LocationSnapshot:
    components = _components(results)
    fields = {
        attr: _first_of_type(components, type_name) or NOT_AVAILABLE
        for type_name, attr in _COMPONENTS.items()
    }
    return LocationSnapshot(
        latitude=latitude,
        longitude=longitude,
        landmark=resolve_landmark(results),
        timestamp=timestamp,
        **fields,
    )


class LocationEnricher:
    """Resolves coordinates once; never raises for lookup failures."""

    def __init__(self, client: GeocodingClient, clock: Callable[[], datetime] = datetime.now) -> None:
        self._client = client
        self._clock = clock

    def resolve(self, latitude: float, longitude: float) -> LocationSnapshot:
        timestamp = format_timestamp(self._clock())
        try:
            results = self._client.reverse(latitude, longitude)
        except EnrichmentFailure as e:
            logger.warning("Location enrichment failed, using sentinel address: %s", e)
            return LocationSnapshot.unavailable(latitude, longitude, timestamp)
        snapshot = snapshot_from_results(latitude, longitude, results, timestamp)
        logger.info("Location resolved: %s", snapshot.address_line() or NOT_AVAILABLE)
        return snapshot

    async def resolve_async(self, latitude: float, longitude: float) -> LocationSnapshot:
        return await asyncio.to_thread(self.resolve, latitude, longitude)
