# gpslife/analyze/timeline.py
"""
Daily timeline assembly for GPSlife

compute_timeline() is the batch entry point:

  samples --sort--> cluster_samples --> discover_places --+
        |                                                 +--> detect_visits --+
        +--------------> segment_movements -----------------------------------+--> assemble_events --> group_events

It is a pure function of its arguments: it copies and sorts the input, keeps
no state between calls and performs no I/O, so it may run on any worker
thread alongside live tracking.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from gpslife.analyze.clustering import (
    DISTANCE_THRESHOLD_M,
    TIME_THRESHOLD_MS,
    cluster_samples,
)
from gpslife.analyze.movement import (
    MIN_MOVEMENT_DURATION_MS,
    SPEED_THRESHOLD_KMH,
    segment_movements,
)
from gpslife.analyze.places import (
    MATCH_RADIUS_M,
    MIN_DWELL_MS,
    MIN_VISIT_DURATION_MS,
    detect_visits,
    discover_places,
)
from gpslife.errors import InvalidSampleError
from gpslife.models import (
    MovementEvent,
    Place,
    PlaceVisitEvent,
    PositionSample,
    TimelineEvent,
    TimelineGroup,
    validate_sample,
)

logger = logging.getLogger(__name__)

GROUP_GAP_MS = 2 * 60 * 60 * 1000


@dataclass(frozen=True)
class TimelineParams:
    """Thresholds controlling timeline segmentation."""

    cluster_distance_m: float = DISTANCE_THRESHOLD_M
    cluster_time_gap_ms: int = TIME_THRESHOLD_MS
    place_min_dwell_ms: int = MIN_DWELL_MS
    place_match_radius_m: float = MATCH_RADIUS_M
    movement_speed_threshold_kmh: float = SPEED_THRESHOLD_KMH
    movement_min_duration_ms: int = MIN_MOVEMENT_DURATION_MS
    visit_min_duration_ms: int = MIN_VISIT_DURATION_MS
    group_gap_ms: int = GROUP_GAP_MS


def assemble_events(
    movements: Iterable[MovementEvent],
    visits: Iterable[PlaceVisitEvent],
) -> list[TimelineEvent]:
    """Merge movements and visits into one list ordered by event timestamp."""
    events: list[TimelineEvent] = [*movements, *visits]
    # stable: at equal timestamps movements stay ahead of visits
    events.sort(key=lambda e: e.timestamp)
    return events


def group_events(
    events: Iterable[TimelineEvent],
    *,
    gap_ms: int = GROUP_GAP_MS,
) -> list[TimelineGroup]:
    """
    Bucket time-ordered events. A new bucket starts when an event begins more
    than gap_ms after the current bucket's end.
    """
    groups: list[TimelineGroup] = []
    current: Optional[TimelineGroup] = None

    for event in events:
        ts = event.timestamp
        if current is None or ts - current.end_time > gap_ms:
            current = TimelineGroup(start_time=ts, end_time=ts, events=[event])
            groups.append(current)
        else:
            current.events.append(event)
            current.end_time = max(current.end_time, ts)

    return groups


def _valid_samples(samples: Iterable[PositionSample]) -> list[PositionSample]:
    out: list[PositionSample] = []
    for s in samples:
        try:
            out.append(validate_sample(s))
        except InvalidSampleError as e:
            logger.debug("Dropping malformed sample at %s: %s", s.timestamp, e)
    return out


def compute_timeline(
    samples: Sequence[PositionSample],
    known_places: Sequence[Place] = (),
    params: Optional[TimelineParams] = None,
) -> list[TimelineGroup]:
    """
    Segment one day's samples into grouped movement and place-visit events.

    Args:
      samples: raw samples in any order (a sorted copy is used). Malformed
        samples are dropped before any stage sees them.
      known_places: authoritative places supplied by the caller.
      params: thresholds; defaults when None.
    """
    p = params or TimelineParams()
    pts = sorted(_valid_samples(samples), key=lambda s: s.timestamp)
    if not pts:
        return []

    clusters = cluster_samples(
        pts,
        distance_threshold=p.cluster_distance_m,
        time_threshold_ms=p.cluster_time_gap_ms,
    )
    places = discover_places(
        clusters,
        known_places,
        min_dwell_ms=p.place_min_dwell_ms,
        match_radius=p.place_match_radius_m,
    )
    movements = segment_movements(
        pts,
        speed_threshold_kmh=p.movement_speed_threshold_kmh,
        min_duration_ms=p.movement_min_duration_ms,
    )
    visits = detect_visits(pts, places, min_duration_ms=p.visit_min_duration_ms)

    return group_events(assemble_events(movements, visits), gap_ms=p.group_gap_ms)


@dataclass(frozen=True)
class DaySummary:
    """Totals shown above a day's timeline."""

    total_distance_m: float
    total_movement_ms: int
    places_visited: int
    movements_by_mode: dict[str, int] = field(default_factory=dict)


def summarize_day(groups: Iterable[TimelineGroup]) -> DaySummary:
    movements: list[MovementEvent] = []
    visits = 0
    for group in groups:
        for event in group.events:
            if isinstance(event, MovementEvent):
                movements.append(event)
            else:
                visits += 1

    modes = Counter(m.transport_mode.value for m in movements)
    return DaySummary(
        total_distance_m=sum(m.distance for m in movements),
        total_movement_ms=sum(m.duration for m in movements),
        places_visited=visits,
        movements_by_mode=dict(modes),
    )
