"""Command line entry point.

Usage
-----
::

    weather-exporter -c config.json -l :9102 -p /metrics -i 1h

``config.json`` holds ``locations``, ``metrics``, ``google_maps_api_key``
and ``darksky_api_key``; ``WEATHER_*`` environment variables override
file values and flags override both.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Sequence

from aiohttp import web

from weather_exporter._constants import parse_duration
from weather_exporter.config import ExporterConfig, parse_listen
from weather_exporter.exceptions import ConfigError, RegistrationError
from weather_exporter.exporter import WeatherExporter

_logger = logging.getLogger(__name__)

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _duration_arg(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weather-exporter",
        description="Export current weather conditions as Prometheus metrics.",
    )
    parser.add_argument("-c", "--config", default="config.json", help="Configuration file (default: config.json)")
    parser.add_argument("-l", "--listen", default=None, help="Address to listen to (default: :9102)")
    parser.add_argument("-p", "--path", default=None, help="HTTP path where to expose metrics to (default: /metrics)")
    parser.add_argument(
        "-i",
        "--interval",
        type=_duration_arg,
        default=None,
        help="Interval between weather checks, e.g. 3600, 1h, 15m (default: 1h)",
    )
    parser.add_argument("--timeout", type=_duration_arg, default=None, help="Per-request timeout (default: 10s)")
    parser.add_argument("--concurrency", type=int, default=None, help="Locations refreshed in parallel (default: 4)")
    parser.add_argument(
        "--strict-metrics",
        action="store_true",
        default=None,
        help="Refuse to start when a configured metric is not a supported field",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def load_config(args: argparse.Namespace) -> ExporterConfig:
    return ExporterConfig.from_file(
        args.config,
        listen=args.listen,
        path=args.path,
        interval=args.interval,
        request_timeout=args.timeout,
        max_concurrency=args.concurrency,
        strict_metrics=args.strict_metrics,
    )


async def serve(config: ExporterConfig, *, stop: asyncio.Event | None = None) -> None:
    """Run the exporter until *stop* is set (or SIGINT/SIGTERM arrives)."""
    stop = stop or asyncio.Event()
    host, port = parse_listen(config.listen)

    async with WeatherExporter(config) as exporter:
        exporter.start()
        runner = web.AppRunner(exporter.create_app())
        await runner.setup()
        try:
            site = web.TCPSite(runner, host, port)
            await site.start()
            _logger.info("Starting server on %s", config.listen)

            loop = asyncio.get_running_loop()
            for sig in _SIGNALS:
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.add_signal_handler(sig, stop.set)

            await stop.wait()
            _logger.info("Shutting down")
        finally:
            for sig in _SIGNALS:
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    asyncio.get_running_loop().remove_signal_handler(sig)
            await runner.cleanup()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args)

    try:
        config = load_config(args)
        asyncio.run(serve(config))
    except ConfigError as exc:
        _logger.critical("Invalid configuration (%s): %s", args.config, exc)
        return 1
    except RegistrationError as exc:
        _logger.critical("%s", exc)
        return 1
    except OSError as exc:
        _logger.critical("Failed to start server: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
