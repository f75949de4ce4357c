# gpslife/analyze/places.py
"""
Place discovery and place-visit detection.

discover_places() turns long dwell clusters into places, reusing a known
place when one lies within the match radius of the cluster center.
detect_visits() then measures, per place, the window between the first and
last sample inside the place's radius.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from gpslife.analyze.geo import distance, is_within
from gpslife.models import Cluster, Place, PlaceVisitEvent, PositionSample

MIN_DWELL_MS = 10 * 60 * 1000
MATCH_RADIUS_M = 100.0
MIN_VISIT_DURATION_MS = 5 * 60 * 1000


def place_name_for(lat: float, lon: float) -> str:
    return f"Place at {lat:.4f}, {lon:.4f}"


def find_nearby_place(
    places: Iterable[Place],
    lat: float,
    lon: float,
    radius_m: float = MATCH_RADIUS_M,
) -> Place | None:
    """Return the first place within radius_m of (lat, lon), if any."""
    for place in places:
        if distance(place.latitude, place.longitude, lat, lon) <= radius_m:
            return place
    return None


def discover_places(
    clusters: Iterable[Cluster],
    known_places: Sequence[Place],
    *,
    min_dwell_ms: int = MIN_DWELL_MS,
    match_radius: float = MATCH_RADIUS_M,
) -> list[Place]:
    """
    Combine known places with places discovered from dwell clusters.

    Clusters dwelling longer than min_dwell_ms either map onto a nearby known
    place or become a temporary place named after their center coordinates.

    Returns:
      Known places first, then discovered ones; each place id appears once.
    """
    detected: list[Place] = []
    for cluster in clusters:
        if cluster.duration <= min_dwell_ms:
            continue
        lat, lon = cluster.center.latitude, cluster.center.longitude
        existing = find_nearby_place(known_places, lat, lon, match_radius)
        if existing is not None:
            detected.append(existing)
            continue
        detected.append(
            Place(
                id=f"temp_{cluster.start_time}",
                name=place_name_for(lat, lon),
                latitude=lat,
                longitude=lon,
                category="unknown",
                is_temporary=True,
            )
        )

    out: list[Place] = []
    seen: set[str] = set()
    for place in [*known_places, *detected]:
        if place.id in seen:
            continue
        seen.add(place.id)
        out.append(place)
    return out


def detect_visits(
    samples: Iterable[PositionSample],
    places: Iterable[Place],
    *,
    min_duration_ms: int = MIN_VISIT_DURATION_MS,
) -> list[PlaceVisitEvent]:
    """
    Emit one visit per place whose in-radius samples span more than
    min_duration_ms (strictly). Places may overlap; samples are not
    exclusive to one place.
    """
    pts = list(samples)
    visits: list[PlaceVisitEvent] = []

    for place in places:
        nearby = [
            s for s in pts
            if is_within(s.latitude, s.longitude, place.latitude, place.longitude, place.radius)
        ]
        if not nearby:
            continue

        nearby.sort(key=lambda s: s.timestamp)
        arrival = nearby[0].timestamp
        departure = nearby[-1].timestamp
        duration = departure - arrival
        if duration > min_duration_ms:
            visits.append(
                PlaceVisitEvent(
                    place=place,
                    arrival_time=arrival,
                    departure_time=departure,
                    duration=duration,
                    location_count=len(nearby),
                )
            )

    return visits
