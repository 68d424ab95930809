"""Current conditions from a Dark Sky compatible forecast API.

Endpoint:
  - GET /forecast/<key>/<lat>,<lng>?units=<units>&lang=<lang>&exclude=...
"""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import ValidationError

from weather_exporter._constants import FORECAST_EXCLUDE
from weather_exporter._transport import Transport
from weather_exporter.exceptions import FetchError, TransportError
from weather_exporter.models.forecast import ForecastReading, ForecastResponse, UnitSystem
from weather_exporter.models.location import Location

_logger = logging.getLogger(__name__)


class ForecastClient(Protocol):
    """Fetches the current reading for a resolved location."""

    async def fetch(self, location: Location, units: UnitSystem) -> ForecastReading:
        ...


class DarkSkyForecastClient:
    """:class:`ForecastClient` for the Dark Sky response format.

    The unit system of the returned reading is whatever the service
    reports in ``flags.units``; checking it against the requested one is
    left to the caller.
    """

    def __init__(self, transport: Transport, *, api_key: str, base_url: str, language: str = "en") -> None:
        self._transport = transport
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._language = language

    def _url(self, location: Location) -> str:
        return f"{self._base_url}/forecast/{self._api_key}/{location.latitude_label},{location.longitude_label}"

    async def fetch(self, location: Location, units: UnitSystem) -> ForecastReading:
        params = {
            "units": units.value,
            "lang": self._language,
            "exclude": FORECAST_EXCLUDE,
        }
        try:
            data = await self._transport.get_json(self._url(location), params=params, endpoint="forecast")
        except TransportError as exc:
            raise FetchError(
                f"forecast request failed: {exc}",
                location=location.name,
                status_code=exc.status_code,
            ) from exc

        if not isinstance(data, dict):
            raise FetchError("forecast response is not a JSON object", location=location.name)
        try:
            response = ForecastResponse.model_validate(data)
        except ValidationError as exc:
            raise FetchError(f"malformed forecast response: {exc}", location=location.name) from exc

        reading = ForecastReading.from_response(response)
        _logger.debug(
            "Forecast for %s: units=%s fields=%d",
            location.name,
            reading.units.value,
            len(reading.fields),
        )
        return reading
