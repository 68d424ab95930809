"""Helpers for safe debug logging.

Both upstream services take their API key in the URL (query string or
path segment).  This module redacts those before URLs and query
parameters reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "key",
        "apikey",
        "api_key",
        "google_maps_api_key",
        "darksky_api_key",
        "token",
        "authorization",
    }
)

REDACTED = "<redacted>"


def redact_url(url: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each secret in *url*."""
    for secret in secrets:
        if secret:
            url = url.replace(secret, REDACTED)
    return url


def redact_for_log(params: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of query *params* with sensitive values masked."""
    return {key: REDACTED if key.lower() in _SENSITIVE_VALUE_KEYS else value for key, value in params.items()}
