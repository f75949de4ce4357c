# gpslife/formats/gpx.py
"""
GPX helpers for GPSlife

This module is intentionally format-focused:
- GPX namespace handling
- building a GPX 1.1 document from a finalized Session
- safely reading and writing ElementTree
- reading track points back as PositionSamples

Output layout:
  <gpx version="1.1" creator="GPSlife">
    <trk>
      <name>...</name>
      <trkseg>
        <trkpt lat=".." lon="..">
          <ele>..</ele>          (only when altitude is known)
          <time>..Z</time>
        </trkpt>
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from gpslife.errors import InvalidGpxError
from gpslife.models import PositionSample, Session
from gpslife.util.timeutils import epoch_ms_from_dt, iso_utc_from_ms, parse_iso_utc, utc_date_str

# GPX 1.1 default namespace
GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}
CREATOR = "GPSlife"

ET.register_namespace("", GPX_NS["gpx"])


def qn(tag: str) -> str:
    """
    Build an ElementTree-qualified name for a GPX tag.

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    """
    return f"{{{GPX_NS['gpx']}}}{tag}"


def _indent(elem: ET.Element, level: int = 0, indent: str = "  ") -> None:
    """
    In-place pretty-printer for ElementTree output. Eliminates double blank-line
    issues by explicitly controlling .text/.tail.
    """
    i = "\n" + level * indent
    j = "\n" + (level -1) * indent if level > 0 else "\n"

    children = list(elem)
    if children:
        if elem.text is None or not elem.text.strip():
            elem.text = i + indent
        for child in children:
            _indent(child, level + 1, indent=indent)
        if children[-1].tail is None or not children[-1].tail.strip():
            children[-1].tail = i
    if elem.tail is None or not elem.tail.strip():
        elem.tail = j


def default_track_name(session: Session) -> str:
    return f"GPS Track {utc_date_str(session.start_time)}"


def session_to_gpx(session: Session, *, track_name: Optional[str] = None) -> ET.Element:
    """Build a GPX <gpx> root element holding one track for the session."""
    root = ET.Element(qn("gpx"), {"version": "1.1", "creator": CREATOR})
    trk = ET.SubElement(root, qn("trk"))
    ET.SubElement(trk, qn("name")).text = track_name or default_track_name(session)
    seg = ET.SubElement(trk, qn("trkseg"))

    for p in session.points:
        trkpt = ET.SubElement(seg, qn("trkpt"), {"lat": repr(p.latitude), "lon": repr(p.longitude)})
        if p.altitude is not None:
            ET.SubElement(trkpt, qn("ele")).text = repr(p.altitude)
        ET.SubElement(trkpt, qn("time")).text = iso_utc_from_ms(p.timestamp)

    return root


def gpx_to_string(root: ET.Element, *, pretty: bool = True) -> str:
    """Serialize a GPX tree to a UTF-8 XML string with declaration."""
    if pretty:
        _indent(root)
    buf = BytesIO()
    ET.ElementTree(root).write(buf, encoding="utf-8", xml_declaration=True)
    return buf.getvalue().decode("utf-8")


def write_gpx(root: ET.Element, out_path: Path, *, pretty: bool = True) -> None:
    """
    Write a GPX XML tree to disk.

    - pretty=True applies indentation for human readability
    - writes UTF-8 with XML declaration
    """
    if pretty:
        _indent(root)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tree = ET.ElementTree(root)
    tree.write(out_path, encoding="utf-8", xml_declaration=True)


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError, OSError
    """
    try:
        return ET.parse(path)
    except ET.ParseError as e:
        raise InvalidGpxError(f"Failed to parse GPX: {path} ({e})") from e


def extract_samples(tree: ET.ElementTree, *, accuracy: float = 0.0) -> list[PositionSample]:
    """
    Extract ordered track points from a GPX tree as samples.

    GPX carries no accuracy, so every sample gets `accuracy`. Points without
    a parseable <time> are skipped.
    """
    root = tree.getroot()
    pts: list[PositionSample] = []

    for trkpt in root.findall(".//gpx:trkpt", GPX_NS):
        try:
            lat = float(trkpt.get("lat", ""))
            lon = float(trkpt.get("lon", ""))
        except ValueError as e:
            raise InvalidGpxError(f"trkpt with bad lat/lon: {trkpt.attrib}") from e

        t = parse_iso_utc(trkpt.findtext("gpx:time", default="", namespaces=GPX_NS))
        if t is None:
            continue   # skip points without timestamps

        ele_text = (trkpt.findtext("gpx:ele", default="", namespaces=GPX_NS) or "").strip()
        ele = float(ele_text) if ele_text else None

        pts.append(
            PositionSample(
                latitude=lat,
                longitude=lon,
                accuracy=accuracy,
                timestamp=epoch_ms_from_dt(t),
                altitude=ele,
            )
        )

    return pts


def read_gpx_samples(path: Path, *, accuracy: float = 0.0) -> list[PositionSample]:
    return extract_samples(read_gpx(path), accuracy=accuracy)
