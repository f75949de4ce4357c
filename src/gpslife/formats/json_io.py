# gpslife/formats/json_io.py
"""JSON export of sessions and JSON import of known places."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any

from gpslife.errors import FormatError
from gpslife.models import Place, Session


def session_to_dict(session: Session) -> dict[str, Any]:
    return {
        "id": session.id,
        "startTime": session.start_time,
        "endTime": session.end_time,
        "distance": session.distance,
        "duration": session.duration,
        "avgSpeed": session.average_speed_kmh,
        "pointCount": session.point_count,
        "points": [dataclasses.asdict(p) for p in session.points],
    }


def session_to_json(session: Session) -> str:
    return json.dumps(session_to_dict(session), indent=2)


def write_session_json(session: Session, out_path: str | Path) -> None:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(session_to_json(session) + "\n", encoding="utf-8")


_PLACE_FIELDS = {f.name for f in dataclasses.fields(Place)}


def place_from_dict(d: dict[str, Any]) -> Place:
    """
    Build a Place from a JSON object. Accepts `visitCount`/`isTemporary` as
    aliases of the snake_case fields.
    """
    data = dict(d)
    if "visitCount" in data:
        data["visit_count"] = data.pop("visitCount")
    if "isTemporary" in data:
        data["is_temporary"] = data.pop("isTemporary")
    data = {k: v for k, v in data.items() if k in _PLACE_FIELDS}
    try:
        data["id"] = str(data["id"])
        data["latitude"] = float(data["latitude"])
        data["longitude"] = float(data["longitude"])
        if "radius" in data:
            data["radius"] = float(data["radius"])
        return Place(**data)
    except (KeyError, TypeError, ValueError) as e:
        raise FormatError(f"Invalid place record: {d!r}") from e


def read_places_json(path: str | Path) -> list[Place]:
    """Read a JSON list of place objects."""
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise FormatError(f"Failed to parse places JSON: {p} ({e})") from e
    if not isinstance(doc, list):
        raise FormatError(f"Places JSON must be a list: {p}")
    return [place_from_dict(d) for d in doc]
