# gpslife/formats/csv_io.py
"""CSV export of sessions and CSV import of samples."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from gpslife.models import PositionSample, Session
from gpslife.util.timeutils import epoch_ms_from_dt, iso_utc_from_ms, parse_iso_utc

logger = logging.getLogger(__name__)

FIELDNAMES = ["timestamp", "latitude", "longitude", "altitude", "accuracy", "speed", "heading"]


@dataclass(frozen=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


def _opt(value: Optional[float]) -> str:
    return "" if value is None else repr(value)


def _row(p: PositionSample) -> dict[str, str]:
    return {
        "timestamp": iso_utc_from_ms(p.timestamp),
        "latitude": repr(p.latitude),
        "longitude": repr(p.longitude),
        "altitude": _opt(p.altitude),
        "accuracy": repr(p.accuracy),
        "speed": _opt(p.speed),
        "heading": _opt(p.heading),
    }


def write_samples_csv(points: Iterable[PositionSample], f) -> None:
    w = csv.DictWriter(f, fieldnames=FIELDNAMES, lineterminator="\n")
    w.writeheader()
    for p in points:
        w.writerow(_row(p))


def session_to_csv(session: Session) -> str:
    buf = io.StringIO()
    write_samples_csv(session.points, buf)
    return buf.getvalue()


def write_session_csv(session: Session, out_path: str | Path) -> None:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8", newline="") as f:
        write_samples_csv(session.points, f)


def _parse_time(value: str) -> int:
    s = value.strip()
    if s.lstrip("-").isdigit():
        return int(s)
    dt = parse_iso_utc(s)
    if dt is None:
        raise ValueError(f"bad timestamp: {value!r}")
    return epoch_ms_from_dt(dt)


def _parse_opt(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


def _parse_row(row: dict[str, str]) -> PositionSample:
    return PositionSample(
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        accuracy=float(row.get("accuracy") or "0"),
        timestamp=_parse_time(row["timestamp"]),
        altitude=_parse_opt(row.get("altitude")),
        heading=_parse_opt(row.get("heading")),
        speed=_parse_opt(row.get("speed")),
    )


def load_samples_csv(csv_path: str | Path) -> tuple[list[PositionSample], CsvSummary]:
    """
    Load samples from a CSV in the export layout.

    `timestamp` may be ISO-8601 or integer epoch milliseconds. Rows that fail
    to parse are skipped and counted.

    Returns:
      (samples, summary)
    """
    p = Path(csv_path)
    rows_total = 0
    parsed: list[PositionSample] = []
    fieldnames: Sequence[str] = ()

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or ()
        for row in reader:
            rows_total += 1
            try:
                parsed.append(_parse_row(row))
            except (KeyError, ValueError, TypeError, AttributeError):
                continue

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("Skipped %s unparseable CSV row(s) in %s", summary.rows_skipped, p)
    return parsed, summary
