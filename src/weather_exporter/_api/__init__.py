"""Adapters for the upstream geocoding and forecast services."""

from weather_exporter._api.forecast import DarkSkyForecastClient, ForecastClient
from weather_exporter._api.geocoding import GoogleGeocoder, LocationResolver

__all__ = [
    "DarkSkyForecastClient",
    "ForecastClient",
    "GoogleGeocoder",
    "LocationResolver",
]
