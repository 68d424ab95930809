"""Resolved-location cache placed in front of a geocoder."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from weather_exporter._api.geocoding import LocationResolver
from weather_exporter.models.location import Location

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CacheEntry:
    location: Location
    expires_at: float


class CachingResolver:
    """Reuse successful resolutions for *ttl* seconds.

    Failures are never cached, so a location that failed to resolve is
    retried on the next cycle.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        *,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._resolver = resolver
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    async def resolve(self, name: str) -> Location:
        now = self._clock()
        entry = self._entries.get(name)
        if entry is not None and now < entry.expires_at:
            return entry.location

        location = await self._resolver.resolve(name)
        self._entries[name] = _CacheEntry(location=location, expires_at=now + self._ttl)
        _logger.debug("Cached location '%s' for %.0fs", name, self._ttl)
        return location

    def invalidate(self, name: str | None = None) -> None:
        if name is None:
            self._entries.clear()
        else:
            self._entries.pop(name, None)

    def __len__(self) -> int:
        return len(self._entries)
