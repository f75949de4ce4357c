# gpslife/analyze/track.py
"""
Track and session statistics for GPSlife
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from gpslife.analyze.geo import sample_distance
from gpslife.models import PositionSample, Session
from gpslife.util.timeutils import utc_date_str


def compute_step_metrics(points: Sequence[PositionSample]):
    """Return per-segment dt (s), distance (m), speed (m/s)."""
    dts = []
    ds = []
    vs = []

    for p0, p1 in zip(points, points[1:]):
        dt_s = (p1.timestamp - p0.timestamp) / 1000.0
        if dt_s <= 0:
            continue

        d_m = sample_distance(p0, p1)
        v = d_m / dt_s

        dts.append(dt_s)
        ds.append(d_m)
        vs.append(v)

    return dts, ds, vs


def analyze_session(session: Session) -> dict:
    """Summarize a closed session, with speeds in km/h."""
    points = session.points

    if len(points) < 2:
        return {
            "points": len(points),
            "segments": 0,
            "distance_m": session.distance,
            "duration_s": session.duration,
            "avg_speed_kmh": session.average_speed_kmh,
            "max_speed_kmh": 0.0,
        }

    _, _, vs = compute_step_metrics(points)

    return {
        "points": len(points),
        "segments": len(vs),
        "distance_m": session.distance,
        "duration_s": session.duration,
        "avg_speed_kmh": session.average_speed_kmh,
        "max_speed_kmh": max(vs) * 3.6 if vs else 0.0,
    }


@dataclass(frozen=True)
class Statistics:
    """
    Totals across many sessions.

    Durations are kept in seconds and distances in meters; the *_hours and
    *_km properties exist for display only.
    """

    total_distance_m: float
    total_duration_s: float
    tracking_days: int
    top_speed_kmh: float
    total_sessions: int
    total_points: int

    @property
    def total_distance_km(self) -> float:
        return self.total_distance_m / 1000.0

    @property
    def total_duration_hours(self) -> float:
        return self.total_duration_s / 3600.0


def aggregate_statistics(sessions: Iterable[Session]) -> Statistics:
    """
    Aggregate closed sessions.

    Top speed comes from the device-reported `speed` of each point
    (m/s, converted to km/h); points without one count as 0.
    """
    total_distance = 0.0
    total_duration = 0.0
    top_speed = 0.0
    days: set[str] = set()
    count = 0
    points = 0

    for s in sessions:
        count += 1
        points += s.point_count
        total_distance += s.distance
        total_duration += s.duration
        days.add(utc_date_str(s.start_time))
        for p in s.points:
            if p.speed:
                top_speed = max(top_speed, p.speed * 3.6)

    return Statistics(
        total_distance_m=total_distance,
        total_duration_s=total_duration,
        tracking_days=len(days),
        top_speed_kmh=top_speed,
        total_sessions=count,
        total_points=points,
    )


def format_duration(milliseconds: float) -> str:
    """Human-readable duration: "1h 5m", "12m" or "42s"."""
    seconds = int(milliseconds // 1000)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"
