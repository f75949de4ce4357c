# gpslife/tracking/tracker.py
"""
Live session tracking for GPSlife

SessionTracker is a two-state machine (idle -> active -> idle) that owns the
one active session. Position updates are fed in one at a time through
accept_sample(); stop() hands back the finalized, immutable Session.

Nothing here raises for ordinary conditions. Every call reports what
happened through its return value:

  - start()          -> Transition.STARTED / Transition.NOT_APPLICABLE
  - stop()           -> Session, or None when no session is active
  - accept_sample()  -> SampleOutcome (accepted, noise, malformed, inactive)

Observers registered with add_listener() receive a TrackerEvent for each of
these, which replaces UI callbacks wired into the tracker. A listener that raises
is logged and skipped; the call it was notified from still completes.

All public methods hold one re-entrant lock, so a tracker may be shared
between a location-provider thread and a UI/polling thread.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from gpslife.analyze.geo import sample_distance
from gpslife.config import TrackerSettings
from gpslife.errors import InvalidSampleError, InvalidStateTransitionError
from gpslife.models import PositionSample, Session, validate_sample
from gpslife.util.timeutils import now_ms

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class Transition(str, enum.Enum):
    STARTED = "started"
    STOPPED = "stopped"
    NOT_APPLICABLE = "not-applicable"


class SampleOutcome(str, enum.Enum):
    ACCEPTED = "accepted"
    LOW_ACCURACY = "low-accuracy"     # noise: accuracy radius too large
    STATIONARY = "stationary"         # noise: moved less than minimum_distance
    MALFORMED = "malformed"           # invalid input
    INACTIVE = "inactive"             # not applicable: no active session

    @property
    def is_noise(self) -> bool:
        return self in (SampleOutcome.LOW_ACCURACY, SampleOutcome.STATIONARY)


@dataclass(frozen=True)
class TrackerEvent:
    """
    Notification delivered to listeners.

    kind is one of "start", "stop", "sample", "ignored".
    """

    kind: str
    transition: Optional[Transition] = None
    outcome: Optional[SampleOutcome] = None
    sample: Optional[PositionSample] = None
    session: Optional[Session] = None


Listener = Callable[[TrackerEvent], Any]


@dataclass
class _Accumulator:
    """Mutable state of the active session; never leaves the tracker."""

    start_time: int
    points: list[PositionSample] = field(default_factory=list)
    distance: float = 0.0

    def to_session(self, end_time: int) -> Session:
        duration = (end_time - self.start_time) / 1000.0
        avg = (self.distance / duration) * 3.6 if duration > 0 else 0.0
        return Session(
            id=str(self.start_time),
            start_time=self.start_time,
            end_time=end_time,
            points=tuple(self.points),
            distance=self.distance,
            duration=duration,
            average_speed_kmh=avg,
        )


class SessionTracker:
    """
    Accumulates one tracking session at a time.

    Args:
      settings: initial TrackerSettings (defaults when None).
      clock: returns "now" in epoch milliseconds; injected for tests and
        for replaying recorded tracks.
    """

    def __init__(
        self,
        settings: Optional[TrackerSettings] = None,
        *,
        clock: Clock = now_ms,
    ) -> None:
        self._settings = settings or TrackerSettings()
        self._clock = clock
        self._lock = threading.RLock()
        self._active: Optional[_Accumulator] = None
        self._last_position: Optional[PositionSample] = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event: TrackerEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Tracker listener failed on %s event", event.kind)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active is not None

    @property
    def last_position(self) -> Optional[PositionSample]:
        with self._lock:
            return self._last_position

    def require_active(self) -> None:
        """Raise InvalidStateTransitionError unless a session is active."""
        with self._lock:
            if self._active is None:
                raise InvalidStateTransitionError("No active tracking session")

    def snapshot(self) -> Optional[Session]:
        """
        In-progress view of the active session, with duration and average
        speed computed up to now. None when idle.
        """
        with self._lock:
            if self._active is None:
                return None
            return self._active.to_session(self._clock())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start(self) -> Transition:
        with self._lock:
            if self._active is not None:
                logger.warning("Tracking already active")
                self._emit(TrackerEvent(kind="ignored", transition=Transition.NOT_APPLICABLE))
                return Transition.NOT_APPLICABLE

            self._active = _Accumulator(start_time=self._clock())
            self._last_position = None
            logger.info("Tracking started at %s", self._active.start_time)
            self._emit(TrackerEvent(kind="start", transition=Transition.STARTED))
            return Transition.STARTED

    def stop(self) -> Optional[Session]:
        with self._lock:
            if self._active is None:
                logger.warning("Tracking not active")
                self._emit(TrackerEvent(kind="ignored", transition=Transition.NOT_APPLICABLE))
                return None

            session = self._active.to_session(self._clock())
            self._active = None
            self._last_position = None
            logger.info(
                "Tracking stopped: %d points, %.1f m, %.1f s",
                session.point_count, session.distance, session.duration,
            )
            self._emit(TrackerEvent(kind="stop", transition=Transition.STOPPED, session=session))
            return session

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------
    def accept_sample(self, sample: PositionSample) -> SampleOutcome:
        with self._lock:
            outcome = self._accept(sample)
            self._emit(TrackerEvent(kind="sample", outcome=outcome, sample=sample))
            return outcome

    def _accept(self, sample: PositionSample) -> SampleOutcome:
        if self._active is None:
            return SampleOutcome.INACTIVE

        try:
            validate_sample(sample)
        except InvalidSampleError as e:
            logger.warning("Malformed sample ignored: %s", e)
            return SampleOutcome.MALFORMED

        settings = self._settings
        if sample.accuracy > settings.max_accuracy:
            logger.debug("Low accuracy reading ignored: %s m", sample.accuracy)
            return SampleOutcome.LOW_ACCURACY

        d = 0.0
        prev = self._last_position
        if prev is not None:
            d = sample_distance(prev, sample)
            if settings.minimum_distance > 0 and d < settings.minimum_distance:
                logger.debug("Movement too small, ignored: %.2f m", d)
                return SampleOutcome.STATIONARY

        self._active.points.append(sample)
        if prev is not None:
            self._active.distance += d
        self._last_position = sample
        return SampleOutcome.ACCEPTED

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def current_settings(self) -> TrackerSettings:
        with self._lock:
            return self._settings

    def update_settings(self, **partial: Any) -> TrackerSettings:
        """
        Apply a partial settings update. Takes effect from the next sample;
        points already accepted are left as they are.

        Raises ConfigError for unknown keys or values that do not coerce.
        """
        with self._lock:
            self._settings = self._settings.merged(**partial)
            return self._settings
