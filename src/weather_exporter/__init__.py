"""weather_exporter - Prometheus exporter for current weather conditions."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("weather-exporter")
except PackageNotFoundError:
    __version__ = "0+local"
from weather_exporter._api import DarkSkyForecastClient, ForecastClient, GoogleGeocoder, LocationResolver
from weather_exporter.config import ExporterConfig
from weather_exporter.exceptions import (
    ConfigError,
    FetchError,
    MissingFieldError,
    RegistrationError,
    ResolutionError,
    TransportError,
    UnitMismatchError,
    UnsupportedFieldError,
    WeatherExporterError,
)
from weather_exporter.exporter import WeatherExporter
from weather_exporter.exposition import WeatherCollector, build_registry, create_app
from weather_exporter.extract import MetricSpec, extract_value, parse_metric_specs
from weather_exporter.models import ForecastReading, Location, UnitSystem, WeatherField
from weather_exporter.scheduler import CycleReport, RefreshScheduler
from weather_exporter.state import ValueEntry, ValueStore

__all__ = [
    "__version__",
    "ConfigError",
    "CycleReport",
    "DarkSkyForecastClient",
    "ExporterConfig",
    "FetchError",
    "ForecastClient",
    "ForecastReading",
    "GoogleGeocoder",
    "Location",
    "LocationResolver",
    "MetricSpec",
    "MissingFieldError",
    "RefreshScheduler",
    "RegistrationError",
    "ResolutionError",
    "TransportError",
    "UnitMismatchError",
    "UnitSystem",
    "UnsupportedFieldError",
    "ValueEntry",
    "ValueStore",
    "WeatherCollector",
    "WeatherExporter",
    "WeatherExporterError",
    "WeatherField",
    "build_registry",
    "create_app",
    "extract_value",
    "parse_metric_specs",
]
