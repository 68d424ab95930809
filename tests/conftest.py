from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

import pytest

from weather_exporter.exceptions import FetchError, ResolutionError
from weather_exporter.models.forecast import ForecastReading, UnitSystem, WeatherField
from weather_exporter.models.location import Location
from weather_exporter.state.store import ValueStore

DUBLIN = Location(name="Dublin", latitude=53.35, longitude=-6.26)
PARIS = Location(name="Paris", latitude=48.8566, longitude=2.3522)


def make_reading(units: UnitSystem = UnitSystem.SI, **fields: float) -> ForecastReading:
    return ForecastReading(
        observed_at=datetime(2026, 1, 1, tzinfo=UTC),
        units=units,
        latitude=0.0,
        longitude=0.0,
        fields={WeatherField(name): value for name, value in fields.items()},
    )


class FakeResolver:
    """Resolver double; unknown names behave like a geocoder miss."""

    def __init__(self, results: dict[str, Any] | None = None, *, delay: float = 0.0) -> None:
        self.results: dict[str, Any] = dict(results or {})
        self.delay = delay
        self.calls: list[str] = []

    async def resolve(self, name: str) -> Location:
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.get(name)
        if result is None:
            raise ResolutionError(f"no location found for '{name}'", location=name)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeForecast:
    """Forecast double keyed by resolved location name."""

    def __init__(self, results: dict[str, Any] | None = None, *, delay: float = 0.0) -> None:
        self.results: dict[str, Any] = dict(results or {})
        self.delay = delay
        self.calls: list[tuple[str, UnitSystem]] = []

    async def fetch(self, location: Location, units: UnitSystem) -> ForecastReading:
        self.calls.append((location.name, units))
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.get(location.name)
        if result is None:
            raise FetchError("forecast request failed: HTTP 500", location=location.name, status_code=500)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def store() -> ValueStore:
    return ValueStore(clock=lambda: datetime(2026, 1, 1, 12, 0, tzinfo=UTC))
