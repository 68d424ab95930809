"""Forecast reading models.

The forecast service speaks the Dark Sky response format: a ``currently``
datapoint with camelCase keys, and a ``flags`` block that echoes the unit
system the values are expressed in.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from weather_exporter.models._base import ApiModel, EpochTimestamp, safe_float


class UnitSystem(StrEnum):
    """Unit systems offered by the forecast service."""

    SI = "si"
    US = "us"
    CA = "ca"
    UK2 = "uk2"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> UnitSystem:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return cls.UNKNOWN


class WeatherField(StrEnum):
    """Closed set of numeric fields that can be exported as metrics."""

    TEMPERATURE = "temperature"
    APPARENT_TEMPERATURE = "apparent_temperature"
    WIND_SPEED = "wind_speed"
    CLOUD_COVER = "cloud_cover"
    HUMIDITY = "humidity"
    PRECIP_INTENSITY = "precip_intensity"
    PRECIP_PROBABILITY = "precip_probability"
    DEW_POINT = "dew_point"
    PRESSURE = "pressure"
    WIND_GUST = "wind_gust"
    WIND_BEARING = "wind_bearing"
    UV_INDEX = "uv_index"
    VISIBILITY = "visibility"
    OZONE = "ozone"


class CurrentConditions(ApiModel):
    """The ``currently`` datapoint of a forecast response."""

    time: EpochTimestamp = None
    summary: str | None = None
    temperature: float | None = None
    apparent_temperature: float | None = None
    wind_speed: float | None = None
    cloud_cover: float | None = None
    humidity: float | None = None
    precip_intensity: float | None = None
    precip_probability: float | None = None
    dew_point: float | None = None
    pressure: float | None = None
    wind_gust: float | None = None
    wind_bearing: float | None = None
    uv_index: float | None = None
    visibility: float | None = None
    ozone: float | None = None


class ForecastFlags(ApiModel):
    units: UnitSystem = UnitSystem.UNKNOWN


class ForecastResponse(ApiModel):
    """Top level forecast response (only the parts the exporter reads)."""

    latitude: float
    longitude: float
    timezone: str | None = None
    currently: CurrentConditions = Field(default_factory=CurrentConditions)
    flags: ForecastFlags = Field(default_factory=ForecastFlags)


class ForecastReading(BaseModel):
    """A snapshot of current conditions for one location.

    ``fields`` only holds values the service actually reported; a
    missing or non-numeric value is absent rather than ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    observed_at: datetime
    units: UnitSystem
    latitude: float
    longitude: float
    fields: dict[WeatherField, float] = Field(default_factory=dict)
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @classmethod
    def from_response(cls, response: ForecastResponse) -> ForecastReading:
        current = response.currently
        fields: dict[WeatherField, float] = {}
        for field in WeatherField:
            value = safe_float(getattr(current, field.value))
            if value is not None:
                fields[field] = value
        return cls(
            observed_at=current.time or datetime.now(UTC),
            units=response.flags.units,
            latitude=response.latitude,
            longitude=response.longitude,
            fields=fields,
            raw=response.raw,
        )
