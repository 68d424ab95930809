"""Latest-value store shared by the refresher and the scrape endpoint.

The refresher is the only writer.  Scrape handlers only ever see
immutable snapshots, so a reader never observes a half-applied cycle.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

from weather_exporter.models.location import format_coordinate


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EntryKey(NamedTuple):
    """Identity of an exported series: metric plus its label values."""

    metric: str
    location: str
    latitude: str
    longitude: str


class ValueEntry(BaseModel):
    """The most recent successful value for one labelled series."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    metric: str
    location: str
    value: float
    latitude: float
    longitude: float
    last_updated: datetime

    @property
    def key(self) -> EntryKey:
        return EntryKey(self.metric, self.location, format_coordinate(self.latitude), format_coordinate(self.longitude))


class ValueStore:
    """In-memory, last-write-wins map of :class:`ValueEntry`.

    Entries are keyed by metric, location name and formatted coordinates,
    so two places sharing a display name stay separate series.  Entries
    are only ever overwritten, never cleared by a failed refresh; a
    location that stops updating keeps its last value.  Writes swap in a
    new mapping under a lock, and :meth:`snapshot` hands out the current
    mapping's values as a tuple.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[EntryKey, ValueEntry] = {}

    def new_entry(self, metric: str, location: str, value: float, latitude: float, longitude: float) -> ValueEntry:
        """Build a timestamped entry without storing it (for batching)."""
        return ValueEntry(
            metric=metric,
            location=location,
            value=value,
            latitude=latitude,
            longitude=longitude,
            last_updated=self._clock(),
        )

    def set(self, metric: str, location: str, value: float, latitude: float, longitude: float) -> ValueEntry:
        """Overwrite the entry for this series."""
        entry = self.new_entry(metric, location, value, latitude, longitude)
        self.update((entry,))
        return entry

    def update(self, entries: Iterable[ValueEntry]) -> int:
        """Apply a batch of entries atomically; returns the batch size."""
        batch = list(entries)
        if not batch:
            return 0
        with self._lock:
            merged = dict(self._entries)
            for entry in batch:
                merged[entry.key] = entry
            self._entries = merged
        return len(batch)

    def get(
        self,
        metric: str,
        location: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> ValueEntry | None:
        """Look up one entry.

        Without coordinates, the first entry (in snapshot order) matching
        *metric* and *location* is returned.
        """
        with self._lock:
            entries = self._entries
        if latitude is not None and longitude is not None:
            return entries.get(EntryKey(metric, location, format_coordinate(latitude), format_coordinate(longitude)))
        matches = sorted(key for key in entries if key.metric == metric and key.location == location)
        return entries[matches[0]] if matches else None

    def snapshot(self) -> tuple[ValueEntry, ...]:
        """Point-in-time copy of every entry, ordered by metric then location."""
        with self._lock:
            entries = self._entries
        return tuple(entries[key] for key in sorted(entries))

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
