"""Wiring of store, registry, upstream adapters and refresh loop."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from aiohttp import web
from prometheus_client import CollectorRegistry

from weather_exporter._api.forecast import DarkSkyForecastClient, ForecastClient
from weather_exporter._api.geocoding import GoogleGeocoder, LocationResolver
from weather_exporter._cache import CachingResolver
from weather_exporter._transport import JsonTransport
from weather_exporter.config import ExporterConfig
from weather_exporter.exceptions import RegistrationError, WeatherExporterError
from weather_exporter.exposition import build_registry, create_app
from weather_exporter.extract import MetricSpec, parse_metric_specs
from weather_exporter.scheduler import RefreshScheduler, RefreshStats
from weather_exporter.state.store import ValueStore

_logger = logging.getLogger(__name__)


class WeatherExporter:
    """Owns every long-lived object of a running exporter.

    Usage::

        async with WeatherExporter(config) as exporter:
            exporter.start()
            app = exporter.create_app()

    Entering validates the configuration and registers the metrics, so
    any :class:`ConfigError` or :class:`RegistrationError` surfaces
    before a server is started.  Leaving stops the refresh loop, closes
    the HTTP session (unless it was passed in) and drops the stored
    values.
    """

    def __init__(
        self,
        config: ExporterConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        resolver: LocationResolver | None = None,
        forecast: ForecastClient | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._resolver = resolver
        self._forecast = forecast
        self._store: ValueStore | None = None
        self._registry: CollectorRegistry | None = None
        self._scheduler: RefreshScheduler | None = None
        self.specs: tuple[MetricSpec, ...] = ()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> WeatherExporter:
        config = self._config.validate()
        _logger.info("Locations (%d): %s", len(config.locations), ", ".join(config.locations))
        _logger.info("Metrics (%d): %s", len(config.metrics), ", ".join(config.metrics))

        self.specs = parse_metric_specs(config.metrics, strict=config.strict_metrics)
        self._store = ValueStore()
        self._registry = build_registry(self._store, self.specs)
        try:
            stats = RefreshStats(self._registry)
        except ValueError as exc:
            raise RegistrationError(f"Failed to register refresh metrics: {exc}") from exc

        if self._resolver is None or self._forecast is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = JsonTransport(
                self._http_session,
                timeout=config.request_timeout,
                secrets=(config.google_maps_api_key, config.darksky_api_key),
            )
            if self._resolver is None:
                self._resolver = GoogleGeocoder(
                    transport,
                    api_key=config.google_maps_api_key,
                    url=config.geocoding_url,
                )
            if self._forecast is None:
                self._forecast = DarkSkyForecastClient(
                    transport,
                    api_key=config.darksky_api_key,
                    base_url=config.forecast_base_url,
                    language=config.language,
                )

        resolver: LocationResolver = self._resolver
        if config.location_cache_ttl > 0:
            resolver = CachingResolver(resolver, ttl=config.location_cache_ttl)

        self._scheduler = RefreshScheduler(
            locations=config.locations,
            metrics=self.specs,
            resolver=resolver,
            forecast=self._forecast,
            store=self._store,
            units=config.unit_system,
            interval=config.interval,
            request_timeout=config.request_timeout,
            max_concurrency=config.max_concurrency,
            stats=stats,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._scheduler is not None:
            await self._scheduler.stop()
            self._scheduler = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._store is not None:
            self._store.clear()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _require(self, value: Any, what: str) -> Any:
        if value is None:
            raise WeatherExporterError(f"{what} not initialized. Use 'async with WeatherExporter(...) as exporter:'")
        return value

    @property
    def store(self) -> ValueStore:
        store: ValueStore = self._require(self._store, "Store")
        return store

    @property
    def registry(self) -> CollectorRegistry:
        registry: CollectorRegistry = self._require(self._registry, "Registry")
        return registry

    @property
    def scheduler(self) -> RefreshScheduler:
        scheduler: RefreshScheduler = self._require(self._scheduler, "Scheduler")
        return scheduler

    def start(self) -> None:
        """Start the refresh loop (first cycle runs immediately)."""
        self.scheduler.start()

    def create_app(self) -> web.Application:
        return create_app(self.registry, self._config.path)
