import pytest

from gpslife.analyze.geo import sample_distance
from gpslife.config import TrackerSettings
from gpslife.errors import ConfigError, InvalidStateTransitionError
from gpslife.tracking.tracker import SampleOutcome, SessionTracker, Transition
from conftest import MINUTE, NYC, T0, north_of, sample


def test_start_twice_is_noop(clock):
    tracker = SessionTracker(clock=clock)
    assert tracker.start() == Transition.STARTED
    assert tracker.start() == Transition.NOT_APPLICABLE
    assert tracker.is_active


def test_stop_twice_returns_one_session(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    clock.advance(MINUTE)
    first = tracker.stop()
    second = tracker.stop()

    assert first is not None
    assert first.duration == 60.0
    assert first.start_time == T0
    assert first.end_time == T0 + MINUTE
    assert second is None
    assert not tracker.is_active


def test_stop_while_idle_returns_none(clock):
    assert SessionTracker(clock=clock).stop() is None


def test_sample_while_idle_is_inactive(clock):
    tracker = SessionTracker(clock=clock)
    assert tracker.accept_sample(sample()) == SampleOutcome.INACTIVE


def test_distance_is_sum_of_accepted_pairs(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()

    accepted = []
    lat = NYC[0]
    for i, step in enumerate([0.0, 30.0, 2.0, 45.0, 120.0]):
        lat = north_of(lat, step)
        s = sample(lat=lat, t=T0 + i * 10_000)
        if tracker.accept_sample(s) == SampleOutcome.ACCEPTED:
            accepted.append(s)

    clock.advance(50_000)
    session = tracker.stop()

    # The 2 m step is stationary noise
    assert len(accepted) == 4
    expected = sum(sample_distance(a, b) for a, b in zip(accepted, accepted[1:]))
    assert session.distance == pytest.approx(expected)
    assert session.points == tuple(accepted)
    assert session.average_speed_kmh == pytest.approx(session.distance / 50.0 * 3.6)


def test_low_accuracy_sample_is_dropped(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    tracker.accept_sample(sample())

    noisy = sample(lat=north_of(NYC[0], 500.0), accuracy=150.0)
    assert tracker.accept_sample(noisy) == SampleOutcome.LOW_ACCURACY

    session = tracker.stop()
    assert session.distance == 0.0
    assert session.point_count == 1


def test_accuracy_exactly_at_limit_is_kept(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    assert tracker.accept_sample(sample(accuracy=100.0)) == SampleOutcome.ACCEPTED


def test_stationary_sample_is_dropped(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    tracker.accept_sample(sample())
    outcome = tracker.accept_sample(sample(lat=north_of(NYC[0], 4.0), t=T0 + 1000))
    assert outcome == SampleOutcome.STATIONARY
    assert outcome.is_noise
    assert tracker.snapshot().point_count == 1


@pytest.mark.parametrize(
    "lat, lon",
    [(float("nan"), 0.0), (0.0, float("inf")), (91.0, 0.0), (0.0, -181.0)],
)
def test_malformed_sample_is_rejected(clock, lat, lon):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    outcome = tracker.accept_sample(sample(lat=lat, lon=lon))
    assert outcome == SampleOutcome.MALFORMED
    assert not outcome.is_noise
    assert tracker.last_position is None


def test_update_settings_applies_to_next_sample(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    tracker.accept_sample(sample())

    assert tracker.update_settings(minimum_distance=50.0).minimum_distance == 50.0
    assert tracker.accept_sample(sample(lat=north_of(NYC[0], 30.0))) == SampleOutcome.STATIONARY

    tracker.update_settings(minimum_distance=0)
    assert tracker.accept_sample(sample(lat=north_of(NYC[0], 1.0))) == SampleOutcome.ACCEPTED
    assert tracker.current_settings().minimum_distance == 0.0


def test_update_settings_rejects_unknown_key(clock):
    tracker = SessionTracker(clock=clock)
    with pytest.raises(ConfigError):
        tracker.update_settings(bogus=1)


def test_settings_are_injected():
    settings = TrackerSettings(minimum_distance=0.0, max_accuracy=20.0)
    tracker = SessionTracker(settings)
    assert tracker.current_settings() is settings


def test_zero_duration_session_has_zero_speed(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    tracker.accept_sample(sample())
    tracker.accept_sample(sample(lat=north_of(NYC[0], 100.0)))
    session = tracker.stop()
    assert session.duration == 0.0
    assert session.average_speed_kmh == 0.0


def test_restart_begins_fresh_session(clock):
    tracker = SessionTracker(clock=clock)
    tracker.start()
    tracker.accept_sample(sample())
    tracker.accept_sample(sample(lat=north_of(NYC[0], 100.0)))
    tracker.stop()

    clock.advance(MINUTE)
    tracker.start()
    tracker.accept_sample(sample(lat=north_of(NYC[0], 102.0)))
    session = tracker.stop()
    assert session.point_count == 1
    assert session.distance == 0.0
    assert session.id == str(T0 + MINUTE)


def test_listeners_receive_events(clock):
    tracker = SessionTracker(clock=clock)
    events = []
    tracker.add_listener(events.append)

    tracker.stop()
    tracker.start()
    tracker.accept_sample(sample(accuracy=500.0))
    tracker.stop()

    assert [e.kind for e in events] == ["ignored", "start", "sample", "stop"]
    assert events[2].outcome == SampleOutcome.LOW_ACCURACY
    assert events[3].session is not None

    tracker.remove_listener(events.append)
    tracker.start()
    assert len(events) == 4



def test_failing_listener_does_not_lose_session(clock, caplog):
    def broken(event):
        raise RuntimeError("display went away")

    tracker = SessionTracker(clock=clock)
    seen = []
    tracker.add_listener(broken)
    tracker.add_listener(seen.append)

    assert tracker.start() == Transition.STARTED
    assert tracker.accept_sample(sample()) == SampleOutcome.ACCEPTED
    clock.advance(MINUTE)
    assert tracker.accept_sample(sample(lat=north_of(NYC[0], 100.0), t=T0 + MINUTE)) == SampleOutcome.ACCEPTED
    session = tracker.stop()

    assert session is not None
    assert session.point_count == 2
    assert session.distance == pytest.approx(100.0, abs=1e-6)
    assert not tracker.is_active
    assert [e.kind for e in seen] == ["start", "sample", "sample", "stop"]
    assert "Tracker listener failed on stop event" in caplog.text


def test_require_active_raises_when_idle(clock):
    tracker = SessionTracker(clock=clock)
    with pytest.raises(InvalidStateTransitionError):
        tracker.require_active()
    tracker.start()
    tracker.require_active()
