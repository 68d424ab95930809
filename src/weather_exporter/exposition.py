"""Prometheus exposition of the value store.

A scrape only reads :meth:`ValueStore.snapshot`; it never calls an
upstream service, so it answers immediately even before the first
refresh has completed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from html import escape

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from weather_exporter._constants import LABEL_NAMES, SELF_METRIC_PREFIX
from weather_exporter.exceptions import RegistrationError
from weather_exporter.extract import MetricSpec
from weather_exporter.models.location import format_coordinate
from weather_exporter.state.store import ValueStore

_logger = logging.getLogger(__name__)

REGISTRY_KEY = web.AppKey("registry", CollectorRegistry)

_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


class WeatherCollector(Collector):
    """Publishes one gauge family per configured metric.

    Samples carry ``location``, ``latitude`` and ``longitude`` labels.
    """

    def __init__(self, store: ValueStore, specs: Sequence[MetricSpec]) -> None:
        self._store = store
        self._specs = tuple(specs)

    def _families(self) -> dict[str, GaugeMetricFamily]:
        return {
            spec.name: GaugeMetricFamily(spec.metric_name, spec.help, labels=LABEL_NAMES) for spec in self._specs
        }

    def describe(self) -> Iterator[Metric]:
        yield from self._families().values()

    def collect(self) -> Iterator[Metric]:
        families = self._families()
        for entry in self._store.snapshot():
            family = families.get(entry.metric)
            if family is None:
                continue
            family.add_metric(
                [entry.location, format_coordinate(entry.latitude), format_coordinate(entry.longitude)],
                entry.value,
            )
        yield from families.values()


def build_registry(store: ValueStore, specs: Sequence[MetricSpec]) -> CollectorRegistry:
    """Create a dedicated registry holding the weather collector.

    Raises :class:`RegistrationError` for duplicate, invalid or reserved
    metric names.
    """
    seen: set[str] = set()
    for spec in specs:
        if not _METRIC_NAME_RE.match(spec.metric_name):
            raise RegistrationError(f"Failed to register weather {spec.name} gauge: invalid metric name")
        if spec.metric_name.startswith(SELF_METRIC_PREFIX):
            raise RegistrationError(
                f"Failed to register weather {spec.name} gauge: {SELF_METRIC_PREFIX} names are reserved"
            )
        if spec.metric_name in seen:
            raise RegistrationError(f"Failed to register weather {spec.name} gauge: duplicate metric")
        seen.add(spec.metric_name)

    registry = CollectorRegistry(auto_describe=True)
    try:
        registry.register(WeatherCollector(store, specs))
    except ValueError as exc:
        raise RegistrationError(f"Failed to register weather gauges: {exc}") from exc
    return registry


async def _handle_metrics(request: web.Request) -> web.Response:
    registry = request.app[REGISTRY_KEY]
    body = generate_latest(registry)
    response = web.Response(body=body)
    response.headers["Content-Type"] = CONTENT_TYPE_LATEST
    return response


def _landing_page(path: str) -> str:
    path = escape(path)
    return (
        "<html><head><title>Weather Exporter</title></head><body>"
        "<h1>Weather Exporter</h1>"
        f'<p><a href="{path}">Metrics</a></p>'
        "</body></html>"
    )


def create_app(registry: CollectorRegistry, path: str = "/metrics") -> web.Application:
    """Build the aiohttp application serving *registry* on *path*."""
    app = web.Application()
    app[REGISTRY_KEY] = registry
    app.router.add_get(path, _handle_metrics)
    if path != "/":
        page = _landing_page(path)

        async def _handle_index(_request: web.Request) -> web.Response:
            return web.Response(text=page, content_type="text/html")

        app.router.add_get("/", _handle_index)
    _logger.debug("Serving metrics on %s", path)
    return app
