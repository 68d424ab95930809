"""Internal constants shared across the package."""

GEOCODING_URL = "https://maps.googleapis.com/maps/api/geocode/json"
FORECAST_BASE_URL = "https://api.pirateweather.net"
USER_AGENT = "weather-exporter/1.0"

DEFAULT_LISTEN = ":9102"
DEFAULT_PATH = "/metrics"
DEFAULT_INTERVAL_S = 3600.0
DEFAULT_REQUEST_TIMEOUT_S = 10.0
DEFAULT_MAX_CONCURRENCY = 4

METRIC_PREFIX = "weather_"
SELF_METRIC_PREFIX = "weather_exporter_"
LABEL_NAMES: tuple[str, ...] = ("location", "latitude", "longitude")

# Forecast blocks we never read; skipping them keeps responses small.
FORECAST_EXCLUDE = "minutely,hourly,daily,alerts"

# ------------------------------------------------------------------
# Go-style durations ("1h", "30m", "1h30m", "90s")
# ------------------------------------------------------------------

_DURATION_UNITS: dict[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str | float | int) -> float:
    """Convert a duration to seconds.

    Accepts plain numbers (seconds) and Go-style strings such as
    ``"1h"``, ``"15m"`` or ``"1h30m"``.

    Raises :class:`ValueError` for malformed or non-positive durations.
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip().lower()
        try:
            seconds = float(text)
        except ValueError:
            seconds = _parse_duration_units(text)
    if seconds <= 0:
        raise ValueError(f"duration must be positive, got {value!r}")
    return seconds


def _parse_duration_units(text: str) -> float:
    total = 0.0
    number = ""
    i = 0
    if not text:
        raise ValueError("empty duration")
    while i < len(text):
        ch = text[i]
        if ch.isdigit() or ch == ".":
            number += ch
            i += 1
            continue
        unit = "ms" if text.startswith("ms", i) else ch
        if not number or unit not in _DURATION_UNITS:
            raise ValueError(f"invalid duration {text!r}")
        total += float(number) * _DURATION_UNITS[unit]
        number = ""
        i += len(unit)
    if number:
        raise ValueError(f"missing unit in duration {text!r}")
    return total
