# gpslife/models.py
"""
Data model for GPSlife

Everything in here is a plain record: samples, finalized sessions, clusters,
places and the timeline events built from them. Behavior lives in the
tracking/ and analyze/ packages.

Units:
  - timestamps are integer milliseconds since the Unix epoch
  - distances are meters
  - Session.duration is seconds; event/cluster durations are milliseconds
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Optional, Union

from gpslife.errors import InvalidSampleError


@dataclass(frozen=True)
class PositionSample:
    """A single raw position reading."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: int
    altitude: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None


def validate_sample(sample: PositionSample) -> PositionSample:
    """
    Check that a sample is usable for distance computations.

    Raises:
      InvalidSampleError for non-finite or out-of-range coordinates,
      or a non-finite accuracy.
    """
    lat, lon = sample.latitude, sample.longitude
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidSampleError(f"non-finite coordinates: ({lat}, {lon})")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise InvalidSampleError(f"coordinates out of range: ({lat}, {lon})")
    if not math.isfinite(sample.accuracy):
        raise InvalidSampleError(f"non-finite accuracy: {sample.accuracy}")
    return sample


@dataclass(frozen=True)
class Session:
    """
    A closed tracking session.

    Produced by SessionTracker.stop(); immutable from then on so it can be
    handed to storage or export code as-is.
    """

    id: str
    start_time: int
    end_time: int
    points: tuple[PositionSample, ...]
    distance: float
    duration: float
    average_speed_kmh: float

    @property
    def point_count(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class Cluster:
    """A maximal run of samples close to each other in space and time."""

    center: PositionSample
    members: tuple[PositionSample, ...]
    start_time: int
    end_time: int

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class Place:
    """
    A named location with a geofence radius.

    Known places come from the caller (authoritative). Temporary places are
    synthesized from dwell clusters that match no known place.
    """

    id: str
    name: str
    latitude: float
    longitude: float
    category: str = "unknown"
    radius: float = 100.0
    visit_count: int = 0
    is_temporary: bool = False


class TransportMode(str, enum.Enum):
    WALKING = "walking"
    CYCLING = "cycling"
    DRIVING = "driving"
    FAST_TRANSPORT = "fast-transport"


@dataclass(frozen=True)
class MovementEvent:
    start_time: int
    end_time: int
    start_location: PositionSample
    end_location: PositionSample
    distance: float
    duration: int
    average_speed_kmh: float
    transport_mode: TransportMode
    kind: str = field(default="movement", init=False)

    @property
    def timestamp(self) -> int:
        return self.start_time


@dataclass(frozen=True)
class PlaceVisitEvent:
    place: Place
    arrival_time: int
    departure_time: int
    duration: int
    location_count: int
    kind: str = field(default="place-visit", init=False)

    @property
    def timestamp(self) -> int:
        return self.arrival_time


TimelineEvent = Union[MovementEvent, PlaceVisitEvent]


@dataclass
class TimelineGroup:
    """Presentation bucket of chronologically close events."""

    start_time: int
    end_time: int
    events: list[TimelineEvent] = field(default_factory=list)
