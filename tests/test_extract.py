from __future__ import annotations

import logging

import pytest
from conftest import make_reading

from weather_exporter.exceptions import ConfigError, MissingFieldError, UnitMismatchError, UnsupportedFieldError
from weather_exporter.extract import extract_value, parse_metric_specs, validate_units
from weather_exporter.models.forecast import UnitSystem, WeatherField


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("temperature", 12.3),
        ("apparent_temperature", 10.9),
        ("wind_speed", 4.1),
        ("cloud_cover", 0.75),
        ("humidity", 0.82),
        ("precip_intensity", 0.2),
    ],
)
def test_extract_core_fields(name: str, expected: float) -> None:
    reading = make_reading(
        temperature=12.3,
        apparent_temperature=10.9,
        wind_speed=4.1,
        cloud_cover=0.75,
        humidity=0.82,
        precip_intensity=0.2,
    )

    assert extract_value(name, reading) == expected


def test_every_weather_field_is_extractable() -> None:
    reading = make_reading(**{field.value: float(i) for i, field in enumerate(WeatherField)})

    for i, field in enumerate(WeatherField):
        assert extract_value(field.value, reading) == float(i)


def test_unknown_field_raises_unsupported_without_touching_reading() -> None:
    reading = make_reading(temperature=12.3)

    with pytest.raises(UnsupportedFieldError) as exc_info:
        extract_value("bogus_field", reading)

    assert exc_info.value.field == "bogus_field"
    assert str(exc_info.value) == "unsupported field 'bogus_field'"
    assert reading.fields == {WeatherField.TEMPERATURE: 12.3}


def test_field_names_are_case_sensitive() -> None:
    with pytest.raises(UnsupportedFieldError):
        extract_value("Temperature", make_reading(temperature=1.0))


def test_missing_field_is_an_unsupported_field_error() -> None:
    with pytest.raises(MissingFieldError) as exc_info:
        extract_value("ozone", make_reading(temperature=1.0))

    assert isinstance(exc_info.value, UnsupportedFieldError)


def test_validate_units() -> None:
    reading = make_reading(UnitSystem.SI, temperature=1.0)
    assert validate_units(reading, UnitSystem.SI) is reading

    with pytest.raises(UnitMismatchError) as exc_info:
        validate_units(make_reading(UnitSystem.US), UnitSystem.SI)
    assert exc_info.value.expected == "si"
    assert exc_info.value.actual == "us"


def test_parse_metric_specs_keeps_unknown_names_when_not_strict(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        specs = parse_metric_specs(["temperature", "bogus_field"])

    assert [spec.supported for spec in specs] == [True, False]
    assert specs[0].field is WeatherField.TEMPERATURE
    assert "bogus_field" in caplog.text


def test_parse_metric_specs_strict_rejects_unknown_names() -> None:
    with pytest.raises(ConfigError, match="bogus_field"):
        parse_metric_specs(["temperature", "bogus_field"], strict=True)


def test_metric_spec_naming() -> None:
    (spec,) = parse_metric_specs(["apparent_temperature"])

    assert spec.metric_name == "weather_apparent_temperature"
    assert spec.help == "Weather forecast - apparent temperature"
