"""Metric extraction from forecast readings.

Configured metric names are matched against the closed
:class:`WeatherField` enumeration; each member has a fixed getter below.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from weather_exporter._constants import METRIC_PREFIX
from weather_exporter.exceptions import ConfigError, MissingFieldError, UnitMismatchError, UnsupportedFieldError
from weather_exporter.models.forecast import ForecastReading, UnitSystem, WeatherField

_logger = logging.getLogger(__name__)


def _getter(field: WeatherField) -> Callable[[ForecastReading], float]:
    def get(reading: ForecastReading) -> float:
        value = reading.fields.get(field)
        if value is None:
            raise MissingFieldError(field.value)
        return value

    return get


_EXTRACTORS: dict[WeatherField, Callable[[ForecastReading], float]] = {
    WeatherField.TEMPERATURE: _getter(WeatherField.TEMPERATURE),
    WeatherField.APPARENT_TEMPERATURE: _getter(WeatherField.APPARENT_TEMPERATURE),
    WeatherField.WIND_SPEED: _getter(WeatherField.WIND_SPEED),
    WeatherField.CLOUD_COVER: _getter(WeatherField.CLOUD_COVER),
    WeatherField.HUMIDITY: _getter(WeatherField.HUMIDITY),
    WeatherField.PRECIP_INTENSITY: _getter(WeatherField.PRECIP_INTENSITY),
    WeatherField.PRECIP_PROBABILITY: _getter(WeatherField.PRECIP_PROBABILITY),
    WeatherField.DEW_POINT: _getter(WeatherField.DEW_POINT),
    WeatherField.PRESSURE: _getter(WeatherField.PRESSURE),
    WeatherField.WIND_GUST: _getter(WeatherField.WIND_GUST),
    WeatherField.WIND_BEARING: _getter(WeatherField.WIND_BEARING),
    WeatherField.UV_INDEX: _getter(WeatherField.UV_INDEX),
    WeatherField.VISIBILITY: _getter(WeatherField.VISIBILITY),
    WeatherField.OZONE: _getter(WeatherField.OZONE),
}


def _lookup_field(name: str) -> WeatherField:
    try:
        return WeatherField(name)
    except ValueError:
        raise UnsupportedFieldError(name) from None


def extract_value(field_name: str, reading: ForecastReading) -> float:
    """Return the value of *field_name* in *reading*.

    Raises :class:`UnsupportedFieldError` for names outside the closed
    field set and :class:`MissingFieldError` when the reading lacks a
    supported field.  Never mutates its inputs.
    """
    return _EXTRACTORS[_lookup_field(field_name)](reading)


def validate_units(reading: ForecastReading, expected: UnitSystem) -> ForecastReading:
    """Return *reading* unchanged if it is in *expected* units."""
    if reading.units != expected:
        raise UnitMismatchError(expected=expected.value, actual=reading.units.value)
    return reading


@dataclass(frozen=True)
class MetricSpec:
    """A metric the operator asked to export.

    ``field`` is ``None`` when the name is not extractable; such specs
    are only produced in non-strict mode and fail on every cycle.
    """

    name: str
    field: WeatherField | None

    @property
    def supported(self) -> bool:
        return self.field is not None

    @property
    def metric_name(self) -> str:
        return f"{METRIC_PREFIX}{self.name}"

    @property
    def help(self) -> str:
        return f"Weather forecast - {self.name.replace('_', ' ')}"


def parse_metric_specs(names: Iterable[str], *, strict: bool = False) -> tuple[MetricSpec, ...]:
    """Validate configured metric names against :class:`WeatherField`.

    Unknown names raise :class:`ConfigError` when *strict*; otherwise
    they are logged and kept so each refresh reports them.
    """
    specs: list[MetricSpec] = []
    for name in names:
        try:
            field: WeatherField | None = _lookup_field(name)
        except UnsupportedFieldError as exc:
            if strict:
                raise ConfigError(f"{exc}; supported: {', '.join(f.value for f in WeatherField)}") from exc
            _logger.warning("Metric '%s' is not a supported field and will never be published", name)
            field = None
        specs.append(MetricSpec(name=name, field=field))
    return tuple(specs)
