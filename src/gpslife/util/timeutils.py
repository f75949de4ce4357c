# gpslife/util/timeutils.py
"""
Epoch-millisecond <-> datetime helpers.

All internal timestamps are integer milliseconds since the Unix epoch (UTC).
"""

from __future__ import annotations

import datetime as _dt
import time
from typing import Optional


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds (default tracker clock)."""
    return int(time.time() * 1000)


def dt_from_epoch_ms(epoch_ms: int) -> _dt.datetime:
    """Convert epoch milliseconds to a tz-aware UTC datetime."""
    return _dt.datetime.fromtimestamp(epoch_ms / 1000.0, tz=_dt.timezone.utc)


def epoch_ms_from_dt(dt: _dt.datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)
    return int(round(dt.timestamp() * 1000))


def iso_utc_from_ms(epoch_ms: int) -> str:
    """
    Format epoch milliseconds as ISO-8601 UTC with millisecond precision and Z,
    e.g. "2024-05-01T08:30:00.000Z".
    """
    dt = dt_from_epoch_ms(epoch_ms)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_utc(text: str) -> Optional[_dt.datetime]:
    """
    Parse an ISO-8601 timestamp as found in GPX <time> nodes or CSV exports.

    Expected examples:
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44+00:00"

    Returns None when the text is empty or unparseable.
    """
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError:
        return None

    # Naive times are assumed UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)

    return dt.astimezone(_dt.timezone.utc)


def utc_date_str(epoch_ms: int) -> str:
    """YYYY-MM-DD of the UTC day containing epoch_ms."""
    return dt_from_epoch_ms(epoch_ms).date().isoformat()
