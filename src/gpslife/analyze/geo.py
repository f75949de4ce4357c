# gpslife/analyze/geo.py
"""
Geodesic distance for GPSlife

Every component measures distance through `distance()` so that clustering,
segmentation, visit detection and the live tracker agree on one formula:
haversine on a sphere of radius 6,371,000 m.
"""

from __future__ import annotations

from haversine import Unit, haversine

from gpslife.models import PositionSample

EARTH_RADIUS_M = 6_371_000.0


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in meters between two lat/lon points (degrees).

    NaN inputs give NaN; validation is the caller's job.
    """
    # Unit.RADIANS gives the central angle, so the sphere radius stays ours
    # rather than the library's mean-earth radius.
    angle = haversine((lat1, lon1), (lat2, lon2), unit=Unit.RADIANS, check=False)
    return angle * EARTH_RADIUS_M


def sample_distance(a: PositionSample, b: PositionSample) -> float:
    """Distance in meters between two samples."""
    return distance(a.latitude, a.longitude, b.latitude, b.longitude)


def is_within(
    lat: float,
    lon: float,
    center_lat: float,
    center_lon: float,
    radius_m: float,
) -> bool:
    """Check whether a point is inside or on the boundary of a circle."""
    return distance(center_lat, center_lon, lat, lon) <= radius_m
