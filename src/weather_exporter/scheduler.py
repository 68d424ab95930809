"""Background refresh loop.

Every cycle walks all configured locations through
resolve -> fetch -> unit check -> extract, and commits whatever succeeded
to the :class:`ValueStore` in one batch.  A failure only ever costs the
location (or, during extraction, the single metric) it happened in.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from prometheus_client import CollectorRegistry, Counter, Gauge

from weather_exporter._api.forecast import ForecastClient
from weather_exporter._api.geocoding import LocationResolver
from weather_exporter._constants import SELF_METRIC_PREFIX
from weather_exporter.exceptions import FetchError, ResolutionError, UnitMismatchError, UnsupportedFieldError
from weather_exporter.extract import MetricSpec, extract_value, validate_units
from weather_exporter.models.forecast import ForecastReading, UnitSystem
from weather_exporter.models.location import Location
from weather_exporter.state.store import ValueEntry, ValueStore

_logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """Outcome of a single refresh cycle."""

    started_at: datetime
    duration: float = 0.0
    refreshed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped_metrics: list[tuple[str, str, str]] = field(default_factory=list)
    written: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped_metrics


class RefreshStats:
    """Self-observability metrics for the refresh loop."""

    STAGES: tuple[str, ...] = ("resolve", "fetch", "units", "extract", "unexpected")

    def __init__(self, registry: CollectorRegistry) -> None:
        self.errors = Counter(
            f"{SELF_METRIC_PREFIX}refresh_errors",
            "Refresh failures by pipeline stage",
            labelnames=["stage"],
            registry=registry,
        )
        self.last_refresh = Gauge(
            f"{SELF_METRIC_PREFIX}last_refresh_timestamp_seconds",
            "Unix time the last refresh cycle finished",
            registry=registry,
        )
        self.duration = Gauge(
            f"{SELF_METRIC_PREFIX}refresh_duration_seconds",
            "Duration of the last refresh cycle",
            registry=registry,
        )
        for stage in self.STAGES:
            self.errors.labels(stage=stage)

    def record_error(self, stage: str) -> None:
        self.errors.labels(stage=stage).inc()

    def record_cycle(self, report: CycleReport) -> None:
        self.duration.set(report.duration)
        self.last_refresh.set_to_current_time()


class RefreshScheduler:
    """Runs refresh cycles on a fixed period for the process lifetime.

    Usage::

        scheduler = RefreshScheduler(...)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        *,
        locations: Sequence[str],
        metrics: Sequence[MetricSpec],
        resolver: LocationResolver,
        forecast: ForecastClient,
        store: ValueStore,
        units: UnitSystem = UnitSystem.SI,
        interval: float = 3600.0,
        request_timeout: float = 10.0,
        max_concurrency: int = 4,
        stats: RefreshStats | None = None,
    ) -> None:
        self._locations = tuple(locations)
        self._metrics = tuple(metrics)
        self._resolver = resolver
        self._forecast = forecast
        self._store = store
        self._units = units
        self._interval = interval
        self._request_timeout = request_timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._cycle_lock = asyncio.Lock()
        self._stats = stats
        self._task: asyncio.Task[None] | None = None
        self.last_report: CycleReport | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Start the background loop; the first cycle runs immediately."""
        if self.running:
            raise RuntimeError("refresh scheduler already running")
        self._task = asyncio.create_task(self.run_forever(), name="weather-refresh")
        return self._task

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to unwind."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def run_forever(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self.run_cycle()
            except Exception:
                # run_cycle isolates per-location errors; this only catches bugs.
                _logger.exception("Refresh cycle crashed")
                self._record_error("unexpected")
            delay = max(0.0, self._interval - (loop.time() - started))
            _logger.info("Sleeping %.0fs...", delay)
            await asyncio.sleep(delay)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_cycle(self) -> CycleReport:
        """Refresh every location once and commit the results."""
        async with self._cycle_lock:
            report = CycleReport(started_at=datetime.now(UTC))
            started = time.monotonic()
            _logger.info("Fetching weather for %d location(s)...", len(self._locations))

            results = await asyncio.gather(
                *(self._refresh_location(name, report) for name in self._locations),
                return_exceptions=True,
            )
            staged: list[ValueEntry] = []
            for name, result in zip(self._locations, results, strict=True):
                if isinstance(result, BaseException):
                    if isinstance(result, asyncio.CancelledError):
                        raise result
                    _logger.error(
                        "Unexpected error refreshing '%s'",
                        name,
                        exc_info=(type(result), result, result.__traceback__),
                    )
                    self._record_error("unexpected")
                    report.failed[name] = f"unexpected error: {result}"
                    continue
                staged.extend(result)

            report.written = self._store.update(staged)
            report.duration = time.monotonic() - started
            if self._stats is not None:
                self._stats.record_cycle(report)
            self.last_report = report
            _logger.info(
                "Refresh done in %.2fs: %d location(s) ok, %d failed, %d value(s) written",
                report.duration,
                len(report.refreshed),
                len(report.failed),
                report.written,
            )
            return report

    async def _refresh_location(self, name: str, report: CycleReport) -> list[ValueEntry]:
        async with self._semaphore:
            _logger.debug("Getting weather for %s", name)
            try:
                location = await self._resolve(name)
                reading = validate_units(await self._fetch(location), self._units)
            except ResolutionError as exc:
                return self._fail(report, name, "resolve", exc)
            except FetchError as exc:
                return self._fail(report, name, "fetch", exc)
            except UnitMismatchError as exc:
                return self._fail(report, name, "units", exc)

        entries = self._extract(location, reading, report)
        report.refreshed.append(name)
        return entries

    async def _resolve(self, name: str) -> Location:
        try:
            async with asyncio.timeout(self._request_timeout):
                return await self._resolver.resolve(name)
        except TimeoutError as exc:
            raise ResolutionError(f"resolving '{name}' timed out", location=name) from exc

    async def _fetch(self, location: Location) -> ForecastReading:
        try:
            async with asyncio.timeout(self._request_timeout):
                return await self._forecast.fetch(location, self._units)
        except TimeoutError as exc:
            raise FetchError("forecast request timed out", location=location.name) from exc

    def _extract(self, location: Location, reading: ForecastReading, report: CycleReport) -> list[ValueEntry]:
        entries: list[ValueEntry] = []
        for spec in self._metrics:
            try:
                value = extract_value(spec.name, reading)
            except UnsupportedFieldError as exc:
                _logger.warning("Skipping '%s' for '%s': %s", spec.name, location.name, exc)
                self._record_error("extract")
                report.skipped_metrics.append((location.name, spec.name, str(exc)))
                continue
            entries.append(
                self._store.new_entry(spec.name, location.name, value, location.latitude, location.longitude)
            )
        return entries

    def _fail(self, report: CycleReport, name: str, stage: str, exc: Exception) -> list[ValueEntry]:
        _logger.warning("Failed to get weather for '%s': %s", name, exc)
        self._record_error(stage)
        report.failed[name] = str(exc)
        return []

    def _record_error(self, stage: str) -> None:
        if self._stats is not None:
            self._stats.record_error(stage)
