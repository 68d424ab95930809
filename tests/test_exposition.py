from __future__ import annotations

import pytest
from aiohttp.test_utils import TestClient, TestServer
from prometheus_client import generate_latest
from prometheus_client.parser import text_string_to_metric_families

from weather_exporter.exceptions import RegistrationError
from weather_exporter.exposition import build_registry, create_app
from weather_exporter.extract import parse_metric_specs
from weather_exporter.state.store import ValueStore

DUBLIN_LABELS = {"location": "Dublin", "latitude": "53.350000", "longitude": "-6.260000"}


def test_sample_labels_use_six_fractional_digits(store: ValueStore) -> None:
    registry = build_registry(store, parse_metric_specs(["temperature"]))
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)

    assert registry.get_sample_value("weather_temperature", DUBLIN_LABELS) == 12.3


def test_one_sample_per_entry(store: ValueStore) -> None:
    registry = build_registry(store, parse_metric_specs(["temperature", "humidity"]))
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)
    store.set("temperature", "Paris", 18.0, 48.8566, 2.3522)
    store.set("humidity", "Dublin", 0.8, 53.35, -6.26)

    families = {f.name: f for f in text_string_to_metric_families(generate_latest(registry).decode())}

    assert len(families["weather_temperature"].samples) == 2
    assert len(families["weather_humidity"].samples) == 1
    assert families["weather_temperature"].documentation == "Weather forecast - temperature"
    assert families["weather_temperature"].type == "gauge"
    paris = [s for s in families["weather_temperature"].samples if s.labels["location"] == "Paris"][0]
    assert paris.labels["latitude"] == "48.856600"
    assert paris.labels["longitude"] == "2.352200"


def test_empty_store_yields_zero_samples(store: ValueStore) -> None:
    registry = build_registry(store, parse_metric_specs(["temperature"]))

    families = list(text_string_to_metric_families(generate_latest(registry).decode()))

    assert [f.name for f in families] == ["weather_temperature"]
    assert families[0].samples == []


def test_duplicate_metric_is_a_registration_error(store: ValueStore) -> None:
    with pytest.raises(RegistrationError, match="duplicate"):
        build_registry(store, parse_metric_specs(["temperature", "temperature"]))


def test_invalid_metric_name_is_a_registration_error(store: ValueStore) -> None:
    with pytest.raises(RegistrationError, match="invalid metric name"):
        build_registry(store, parse_metric_specs(["wind speed"]))


def test_refresh_metric_names_are_reserved(store: ValueStore) -> None:
    with pytest.raises(RegistrationError, match="reserved"):
        build_registry(store, parse_metric_specs(["exporter_refresh_duration_seconds"]))


def test_registries_are_independent(store: ValueStore) -> None:
    specs = parse_metric_specs(["temperature"])

    first = build_registry(store, specs)
    second = build_registry(ValueStore(), specs)

    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)
    assert first.get_sample_value("weather_temperature", DUBLIN_LABELS) == 12.3
    assert second.get_sample_value("weather_temperature", DUBLIN_LABELS) is None


@pytest.mark.asyncio
async def test_metrics_endpoint_serves_store_contents(store: ValueStore) -> None:
    registry = build_registry(store, parse_metric_specs(["temperature"]))
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)

    async with TestClient(TestServer(create_app(registry, "/metrics"))) as client:
        resp = await client.get("/metrics")
        text = await resp.text()

    assert resp.status == 200
    assert resp.headers["Content-Type"].startswith("text/plain")
    (family,) = text_string_to_metric_families(text)
    (sample,) = family.samples
    assert sample.name == "weather_temperature"
    assert sample.labels == DUBLIN_LABELS
    assert sample.value == 12.3


@pytest.mark.asyncio
async def test_metrics_endpoint_succeeds_on_empty_store(store: ValueStore) -> None:
    registry = build_registry(store, parse_metric_specs(["temperature"]))

    async with TestClient(TestServer(create_app(registry, "/custom"))) as client:
        resp = await client.get("/custom")
        text = await resp.text()
        index = await client.get("/")
        index_text = await index.text()

    assert resp.status == 200
    assert "weather_temperature{" not in text
    assert index.status == 200
    assert 'href="/custom"' in index_text
