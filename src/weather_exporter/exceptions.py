"""Custom exception hierarchy for weather_exporter."""

from __future__ import annotations


class WeatherExporterError(Exception):
    """Base exception for all weather_exporter errors."""


class ConfigError(WeatherExporterError):
    """Invalid or missing configuration (fatal at startup)."""


class RegistrationError(WeatherExporterError):
    """Metric collector could not be registered (fatal at startup)."""


class TransportError(WeatherExporterError):
    """HTTP-level failure (network, timeout, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ResolutionError(WeatherExporterError):
    """A location name could not be resolved to coordinates.

    Raised for geocoder failures as well as for queries that match
    nothing.  The scheduler skips the location for the current cycle.
    """

    def __init__(self, message: str, *, location: str = "", status: str = "") -> None:
        self.location = location
        self.status = status
        super().__init__(message)


class FetchError(WeatherExporterError):
    """The forecast service did not return a usable reading."""

    def __init__(self, message: str, *, location: str = "", status_code: int | None = None) -> None:
        self.location = location
        self.status_code = status_code
        super().__init__(message)


class UnitMismatchError(WeatherExporterError):
    """A reading came back in a unit system other than the requested one.

    The whole reading is discarded; no field of it is published.
    """

    def __init__(self, *, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"units are not {expected}: got {actual or '<missing>'}")


class UnsupportedFieldError(WeatherExporterError):
    """A configured metric name is not an extractable field."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"unsupported field '{field}'")


class MissingFieldError(UnsupportedFieldError):
    """A supported field was absent from a particular reading."""

    def __init__(self, field: str) -> None:
        super().__init__(field, f"field '{field}' not present in reading")
