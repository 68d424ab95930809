"""Data models for upstream responses and resolved locations."""

from weather_exporter.models._base import ApiModel, EpochTimestamp, parse_epoch, safe_float
from weather_exporter.models.forecast import (
    CurrentConditions,
    ForecastFlags,
    ForecastReading,
    ForecastResponse,
    UnitSystem,
    WeatherField,
)
from weather_exporter.models.location import Location, format_coordinate

__all__ = [
    "ApiModel",
    "CurrentConditions",
    "EpochTimestamp",
    "ForecastFlags",
    "ForecastReading",
    "ForecastResponse",
    "Location",
    "UnitSystem",
    "WeatherField",
    "format_coordinate",
    "parse_epoch",
    "safe_float",
]
