"""Location resolution via the Google Maps Geocoding API.

Endpoint:
  - GET /maps/api/geocode/json?address=<name>&key=<key>
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from weather_exporter._transport import Transport
from weather_exporter.exceptions import ResolutionError, TransportError
from weather_exporter.models.location import Location

_logger = logging.getLogger(__name__)


class LocationResolver(Protocol):
    """Turns a free-form place name into a :class:`Location`."""

    async def resolve(self, name: str) -> Location:
        ...


def _parse_geocode_response(name: str, data: Any) -> Location:
    """Pick the first geocoder match.

    The display name is the long name of the first address component,
    which for a city query is the city itself.
    """
    if not isinstance(data, dict):
        raise ResolutionError(f"unexpected geocoder response for '{name}'", location=name)

    status = str(data.get("status") or "")
    results = data.get("results") or []
    if status == "ZERO_RESULTS" or (status == "OK" and not results):
        raise ResolutionError(f"no location found for '{name}'", location=name, status=status)
    if status != "OK":
        detail = data.get("error_message") or "no error message"
        raise ResolutionError(
            f"geocoder returned {status or '<no status>'} for '{name}': {detail}",
            location=name,
            status=status,
        )

    first = results[0]
    components = first.get("address_components") or []
    display = components[0].get("long_name") if components else None
    geometry = (first.get("geometry") or {}).get("location") or {}
    try:
        return Location(
            name=display or first.get("formatted_address") or name,
            latitude=geometry.get("lat"),
            longitude=geometry.get("lng"),
        )
    except ValidationError as exc:
        raise ResolutionError(f"geocoder returned invalid coordinates for '{name}': {exc}", location=name) from exc


class GoogleGeocoder:
    """:class:`LocationResolver` backed by the Google Maps Geocoding API."""

    def __init__(self, transport: Transport, *, api_key: str, url: str) -> None:
        self._transport = transport
        self._api_key = api_key
        self._url = url

    async def resolve(self, name: str) -> Location:
        params = {"address": name, "key": self._api_key}
        try:
            data = await self._transport.get_json(self._url, params=params, endpoint="geocode")
        except TransportError as exc:
            raise ResolutionError(f"GMaps search failed: {exc}", location=name) from exc

        location = _parse_geocode_response(name, data)
        _logger.debug(
            "Resolved '%s' to %s (%s, %s)",
            name,
            location.name,
            location.latitude_label,
            location.longitude_label,
        )
        return location
