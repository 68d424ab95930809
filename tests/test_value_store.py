from __future__ import annotations

import threading
from datetime import UTC, datetime

from weather_exporter.state.store import ValueStore


def test_set_and_get(store: ValueStore) -> None:
    entry = store.set("temperature", "Dublin", 12.3, 53.35, -6.26)

    assert store.get("temperature", "Dublin") == entry
    assert entry.last_updated == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    assert store.get("temperature", "Paris") is None


def test_set_overwrites_without_accumulating(store: ValueStore) -> None:
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)
    store.set("temperature", "Dublin", 7.0, 53.35, -6.26)

    assert len(store) == 1
    assert store.get("temperature", "Dublin").value == 7.0  # type: ignore[union-attr]


def test_snapshot_is_point_in_time(store: ValueStore) -> None:
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)
    snapshot = store.snapshot()

    store.set("temperature", "Dublin", 1.0, 53.35, -6.26)
    store.set("humidity", "Dublin", 0.5, 53.35, -6.26)

    assert [(e.metric, e.value) for e in snapshot] == [("temperature", 12.3)]
    assert len(store.snapshot()) == 2


def test_snapshot_is_sorted_by_metric_then_location(store: ValueStore) -> None:
    store.set("temperature", "Paris", 18.0, 48.85, 2.35)
    store.set("humidity", "Dublin", 0.5, 53.35, -6.26)
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)

    keys = [(e.metric, e.location) for e in store.snapshot()]

    assert keys == [("humidity", "Dublin"), ("temperature", "Dublin"), ("temperature", "Paris")]


def test_empty_store_snapshot() -> None:
    assert ValueStore().snapshot() == ()


def test_update_applies_batch_and_keeps_untouched_entries(store: ValueStore) -> None:
    store.set("temperature", "Paris", 18.0, 48.85, 2.35)

    written = store.update(
        [
            store.new_entry("temperature", "Dublin", 12.3, 53.35, -6.26),
            store.new_entry("humidity", "Dublin", 0.8, 53.35, -6.26),
        ]
    )

    assert written == 2
    assert len(store) == 3
    assert store.update([]) == 0


def test_clear(store: ValueStore) -> None:
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)
    store.clear()

    assert len(store) == 0


def test_concurrent_readers_only_see_whole_batches() -> None:
    store = ValueStore()
    locations = [f"loc{i}" for i in range(50)]
    stop = threading.Event()
    torn: list[int] = []

    def reader() -> None:
        while not stop.is_set():
            values = {entry.value for entry in store.snapshot()}
            if len(values) > 1:
                torn.append(len(values))

    thread = threading.Thread(target=reader)
    thread.start()
    try:
        for cycle in range(200):
            store.update(store.new_entry("temperature", name, float(cycle), 0.0, 0.0) for name in locations)
    finally:
        stop.set()
        thread.join()

    assert torn == []


def test_same_name_at_different_coordinates_is_a_separate_entry(store: ValueStore) -> None:
    store.set("temperature", "Springfield", 3.0, 39.78, -89.65)
    store.set("temperature", "Springfield", 5.0, 42.10, -72.59)

    assert len(store) == 2
    assert store.get("temperature", "Springfield", 42.10, -72.59).value == 5.0  # type: ignore[union-attr]
    assert store.get("temperature", "Springfield").latitude == 39.78  # type: ignore[union-attr]


def test_coordinates_match_at_label_precision(store: ValueStore) -> None:
    store.set("temperature", "Dublin", 12.3, 53.35, -6.26)
    store.set("temperature", "Dublin", 7.0, 53.3500001, -6.2600001)

    assert len(store) == 1
    assert store.get("temperature", "Dublin").value == 7.0  # type: ignore[union-attr]
