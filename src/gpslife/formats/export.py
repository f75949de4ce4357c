# gpslife/formats/export.py
"""
Format dispatch: session export and sample import by file type.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from gpslife.errors import UnsupportedFormatError
from gpslife.formats.csv_io import load_samples_csv, write_session_csv
from gpslife.formats.gpx import read_gpx_samples, session_to_gpx, write_gpx
from gpslife.formats.json_io import write_session_json
from gpslife.models import PositionSample, Session
from gpslife.util.paths import ensure_dir, slugify
from gpslife.util.timeutils import utc_date_str

EXPORT_FORMATS = ("gpx", "csv", "json")


def export_filename(session: Session, fmt: str, *, prefix: str = "gps_track") -> str:
    """gps_track_<YYYY-MM-DD>.<fmt>, dated by the session start (UTC)."""
    return f"{slugify(prefix)}_{utc_date_str(session.start_time)}.{fmt}"


def export_session(
    session: Session,
    fmt: str,
    out_dir: Path,
    *,
    prefix: str = "gps_track",
    track_name: Optional[str] = None,
) -> Path:
    """
    Write `session` to out_dir in the given format and return the file path.

    Raises:
      UnsupportedFormatError for formats other than gpx/csv/json.
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise UnsupportedFormatError(f"Unsupported export format: {fmt!r}")

    ensure_dir(out_dir)
    out_path = out_dir / export_filename(session, fmt, prefix=prefix)

    if fmt == "gpx":
        write_gpx(session_to_gpx(session, track_name=track_name), out_path)
    elif fmt == "csv":
        write_session_csv(session, out_path)
    else:
        write_session_json(session, out_path)

    return out_path


def load_samples(path: Path) -> list[PositionSample]:
    """Load samples from a .gpx or .csv file."""
    suffix = path.suffix.lower()
    if suffix == ".gpx":
        return read_gpx_samples(path)
    if suffix == ".csv":
        samples, _ = load_samples_csv(path)
        return samples
    raise UnsupportedFormatError(f"Unsupported sample file: {path}")
