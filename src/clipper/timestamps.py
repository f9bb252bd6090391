"""
Timestamp parsing and formatting.

Insights payloads encode times as clock strings ("0:01:02.48"), as decimal
seconds ("62.48"), or leave them out. Everything is normalized to float
seconds; unparsable input is treated as absent rather than an error.
"""

import math
import re

_CLOCK_RE = re.compile(
    r"^(?:(?P<days>\d+)\.)?(?P<h>\d+):(?P<m>\d{1,2})(?::(?P<s>\d{1,2})(?:\.(?P<frac>\d{1,7}))?)?$"
)


def _parse_clock(value: str) -> float | None:
    m = _CLOCK_RE.match(value)
    if not m:
        return None
    minutes = int(m.group("m"))
    seconds = int(m.group("s") or 0)
    if minutes >= 60 or seconds >= 60:
        return None
    total = int(m.group("days") or 0) * 86400 + int(m.group("h")) * 3600 + minutes * 60 + seconds
    frac = m.group("frac")
    if frac:
        total += int(frac) / (10 ** len(frac))
    return float(total)


def _parse_seconds(value: str) -> float | None:
    try:
        seconds = float(value)
    except ValueError:
        return None
    if not math.isfinite(seconds):
        return None
    return seconds


def parse_timestamp(value: str | None) -> float | None:
    """Parse a clock string or decimal seconds; return None when unusable."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    seconds = _parse_clock(text)
    if seconds is None:
        seconds = _parse_seconds(text)
    if seconds is None or seconds < 0:
        return None
    return seconds


def _split_ms(t: float) -> tuple[int, int, int, int]:
    total_ms = int(round(max(0.0, t) * 1000))
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return h, m, s, ms


def format_hms(t: float) -> str:
    """Format seconds as HH:MM:SS (hours are not wrapped at 24)."""
    h, m, s, _ms = _split_ms(t)
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_hms_ms(t: float) -> str:
    """Format seconds as HH:MM:SS.fff."""
    h, m, s, ms = _split_ms(t)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"
