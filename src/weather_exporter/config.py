"""Exporter configuration for weather_exporter."""

from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path
from typing import Any

from weather_exporter._constants import (
    DEFAULT_INTERVAL_S,
    DEFAULT_LISTEN,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PATH,
    DEFAULT_REQUEST_TIMEOUT_S,
    FORECAST_BASE_URL,
    GEOCODING_URL,
    parse_duration,
)
from weather_exporter.exceptions import ConfigError
from weather_exporter.models.forecast import UnitSystem


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_list(value: str) -> tuple[str, ...]:
    """Split a ``;``-separated env value (location names may contain commas)."""
    return tuple(item.strip() for item in value.split(";") if item.strip())


def parse_listen(listen: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address.

    An empty host (``":9102"``) binds every interface.
    """
    host, sep, port_text = listen.rpartition(":")
    if not sep:
        raise ConfigError(f"listen address must be host:port, got {listen!r}")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ConfigError(f"invalid port in listen address {listen!r}") from exc
    if not 0 <= port < 65536:
        raise ConfigError(f"port out of range in listen address {listen!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port


@dataclasses.dataclass(frozen=True)
class ExporterConfig:
    """Exporter configuration.

    Parameters
    ----------
    locations : tuple of str
        Free-form location names passed to the geocoder.
    metrics : tuple of str
        Forecast field names to export (e.g. ``"temperature"``).
    google_maps_api_key : str
        Key for the Google Maps Geocoding API.
    darksky_api_key : str
        Key for the Dark Sky compatible forecast API.
    units : str
        Unit system requested from, and required of, the forecast API.
    language : str
        Language code sent with forecast requests.
    interval : float
        Seconds between the starts of two refresh cycles.
    request_timeout : float
        Upper bound, in seconds, for each outbound request.
    max_concurrency : int
        Number of locations refreshed in parallel within a cycle.
    location_cache_ttl : float
        Seconds a resolved location is reused. ``0`` resolves every cycle.
    strict_metrics : bool
        Reject unknown metric names at startup instead of logging them.
    listen : str
        ``host:port`` the scrape endpoint binds to.
    path : str
        HTTP path of the scrape endpoint.
    """

    locations: tuple[str, ...] = ()
    metrics: tuple[str, ...] = ()
    google_maps_api_key: str = ""
    darksky_api_key: str = ""
    units: str = UnitSystem.SI.value
    language: str = "en"
    interval: float = DEFAULT_INTERVAL_S
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_S
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    location_cache_ttl: float = 0.0
    strict_metrics: bool = False
    listen: str = DEFAULT_LISTEN
    path: str = DEFAULT_PATH
    forecast_base_url: str = FORECAST_BASE_URL
    geocoding_url: str = GEOCODING_URL

    @property
    def unit_system(self) -> UnitSystem:
        return UnitSystem(self.units)

    def validate(self) -> ExporterConfig:
        """Check the startup invariants, raising :class:`ConfigError`.

        Returns ``self`` so calls can be chained.
        """
        if not self.locations:
            raise ConfigError("Must specify at least one location")
        if not self.metrics:
            raise ConfigError("Must specify at least one metric")
        if self.unit_system == UnitSystem.UNKNOWN:
            raise ConfigError(f"unsupported unit system {self.units!r}")
        if self.interval <= 0:
            raise ConfigError(f"interval must be positive, got {self.interval}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_concurrency < 1:
            raise ConfigError(f"max_concurrency must be at least 1, got {self.max_concurrency}")
        if self.location_cache_ttl < 0:
            raise ConfigError("location_cache_ttl must not be negative")
        if not self.path.startswith("/"):
            raise ConfigError(f"path must start with '/', got {self.path!r}")
        parse_listen(self.listen)
        return self

    @classmethod
    def from_file(cls, path: str | Path, /, **overrides: Any) -> ExporterConfig:
        """Load configuration from a JSON file.

        Values are layered: file, then ``WEATHER_*`` environment
        variables, then explicit keyword overrides.

        Raises
        ------
        ConfigError
            The file cannot be read or is not a JSON object, or a value
            has the wrong type.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"failed to read config file: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"failed to unmarshal JSON config: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError("config file must contain a JSON object")
        return cls.from_mapping(data, **overrides)

    @classmethod
    def from_mapping(cls, data: dict[str, Any], **overrides: Any) -> ExporterConfig:
        """Build a configuration from a decoded mapping plus env and overrides."""
        known = {f.name for f in dataclasses.fields(cls)}
        config_kwargs: dict[str, Any] = {k: v for k, v in data.items() if k in known}
        config_kwargs.update(_from_env(os.environ))
        config_kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls._coerce(config_kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> ExporterConfig:
        """Create configuration from ``WEATHER_*`` environment variables only."""
        return cls.from_mapping({}, **overrides)

    @classmethod
    def _coerce(cls, values: dict[str, Any]) -> ExporterConfig:
        kwargs = dict(values)
        try:
            for key in ("locations", "metrics"):
                if key in kwargs:
                    raw = kwargs[key]
                    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
                        raise ConfigError(f"'{key}' must be a list of strings")
                    kwargs[key] = tuple(str(item).strip() for item in raw if str(item).strip())
            for key in ("interval", "location_cache_ttl"):
                if key in kwargs:
                    value = kwargs[key]
                    if key == "location_cache_ttl" and value in (0, "0"):
                        kwargs[key] = 0.0
                    else:
                        kwargs[key] = parse_duration(value)
            if "request_timeout" in kwargs:
                kwargs["request_timeout"] = parse_duration(kwargs["request_timeout"])
            if "max_concurrency" in kwargs:
                kwargs["max_concurrency"] = int(kwargs["max_concurrency"])
            if "units" in kwargs:
                kwargs["units"] = str(kwargs["units"]).strip().lower()
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid configuration value: {exc}") from exc
        return cls(**kwargs)


_ENV_CONFIG_MAP = {
    "WEATHER_GOOGLE_MAPS_API_KEY": "google_maps_api_key",
    "WEATHER_DARKSKY_API_KEY": "darksky_api_key",
    "WEATHER_UNITS": "units",
    "WEATHER_LANGUAGE": "language",
    "WEATHER_INTERVAL": "interval",
    "WEATHER_REQUEST_TIMEOUT": "request_timeout",
    "WEATHER_MAX_CONCURRENCY": "max_concurrency",
    "WEATHER_LOCATION_CACHE_TTL": "location_cache_ttl",
    "WEATHER_LISTEN": "listen",
    "WEATHER_PATH": "path",
    "WEATHER_FORECAST_BASE_URL": "forecast_base_url",
}


def _from_env(env: Any) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_key, field_name in _ENV_CONFIG_MAP.items():
        val = env.get(env_key)
        if val is not None:
            values[field_name] = val

    locations = env.get("WEATHER_LOCATIONS")
    if locations is not None:
        values["locations"] = list(_env_list(locations))
    metrics = env.get("WEATHER_METRICS")
    if metrics is not None:
        values["metrics"] = list(_env_list(metrics))

    strict = env.get("WEATHER_STRICT_METRICS")
    if strict is not None:
        values["strict_metrics"] = _env_bool(strict, False)
    return values
