"""HTTP transport for the upstream JSON APIs."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

import aiohttp

from weather_exporter._constants import USER_AGENT
from weather_exporter._redact import redact_for_log, redact_url
from weather_exporter.exceptions import TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the API adapters.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`JsonTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        endpoint: str = "",
    ) -> Any:
        ...


class JsonTransport:
    """GETs JSON documents over a shared aiohttp session.

    Every request is bounded by *timeout* seconds.  Network failures,
    timeouts, non-200 statuses and undecodable bodies all surface as
    :class:`TransportError`.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float,
        secrets: Iterable[str] = (),
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._secrets = tuple(s for s in secrets if s)

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        endpoint: str = "",
    ) -> Any:
        endpoint = endpoint or redact_url(url, self._secrets)
        headers = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("GET %s params=%s", redact_url(url, self._secrets), redact_for_log(dict(params or {})))

        try:
            async with self._http.get(url, params=params, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise TransportError(
                        f"HTTP {resp.status} from {endpoint}: {redact_url(text[:200], self._secrets)}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except TransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"Request to {endpoint} timed out",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(
                f"Request to {endpoint} failed: {redact_url(str(exc), self._secrets)}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc
