# gpslife/analyze/movement.py
"""
Movement episode detection.

Consecutive sample pairs moving faster than the speed threshold are merged
into one episode; the first pair at or below the threshold closes it.
Episodes shorter than the minimum duration are dropped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from gpslife.analyze.geo import sample_distance
from gpslife.models import MovementEvent, PositionSample, TransportMode

logger = logging.getLogger(__name__)

SPEED_THRESHOLD_KMH = 1.0
MIN_MOVEMENT_DURATION_MS = 60 * 1000


def transport_mode(speed_kmh: float) -> TransportMode:
    """
    Classify an average speed. Bands are closed on the low side:
    exactly 5.0 km/h is cycling, exactly 25.0 is driving, exactly 50.0 is
    fast transport.
    """
    if speed_kmh < 5:
        return TransportMode.WALKING
    if speed_kmh < 25:
        return TransportMode.CYCLING
    if speed_kmh < 50:
        return TransportMode.DRIVING
    return TransportMode.FAST_TRANSPORT


@dataclass
class _OpenMovement:
    start: PositionSample
    end: PositionSample
    distance: float

    @property
    def duration(self) -> int:
        return self.end.timestamp - self.start.timestamp

    @property
    def average_speed_kmh(self) -> float:
        seconds = self.duration / 1000.0
        return (self.distance / seconds) * 3.6 if seconds > 0 else 0.0

    def close(self) -> MovementEvent:
        avg = self.average_speed_kmh
        return MovementEvent(
            start_time=self.start.timestamp,
            end_time=self.end.timestamp,
            start_location=self.start,
            end_location=self.end,
            distance=self.distance,
            duration=self.duration,
            average_speed_kmh=avg,
            transport_mode=transport_mode(avg),
        )


def segment_movements(
    samples: Sequence[PositionSample],
    *,
    speed_threshold_kmh: float = SPEED_THRESHOLD_KMH,
    min_duration_ms: int = MIN_MOVEMENT_DURATION_MS,
) -> list[MovementEvent]:
    """
    Detect movement episodes in time-sorted samples.

    Pairs with zero or negative elapsed time carry no speed information:
    they neither extend nor close the open episode.
    """
    movements: list[MovementEvent] = []
    current: Optional[_OpenMovement] = None

    def flush() -> None:
        if current is not None and current.duration > min_duration_ms:
            movements.append(current.close())

    for prev, curr in zip(samples, samples[1:]):
        dt_s = (curr.timestamp - prev.timestamp) / 1000.0
        if dt_s <= 0:
            logger.debug("Skipping pair with non-positive dt at %s", curr.timestamp)
            continue

        d_m = sample_distance(prev, curr)
        speed_kmh = (d_m / dt_s) * 3.6
        if not math.isfinite(speed_kmh):
            continue

        if speed_kmh > speed_threshold_kmh:
            if current is None:
                current = _OpenMovement(start=prev, end=curr, distance=d_m)
            else:
                current.end = curr
                current.distance += d_m
        else:
            flush()
            current = None

    flush()
    return movements
