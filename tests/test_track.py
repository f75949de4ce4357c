import pytest

from gpslife.analyze.track import (
    aggregate_statistics,
    analyze_session,
    compute_step_metrics,
    format_duration,
)
from gpslife.models import Session
from conftest import MINUTE, NYC, T0, north_of, sample

DAY = 24 * 60 * MINUTE


def _session(start, points, distance=0.0, duration=0.0):
    return Session(
        id=str(start),
        start_time=start,
        end_time=start + int(duration * 1000),
        points=tuple(points),
        distance=distance,
        duration=duration,
        average_speed_kmh=(distance / duration) * 3.6 if duration else 0.0,
    )


@pytest.mark.parametrize(
    "ms, expected",
    [
        (0, "0s"),
        (42_000, "42s"),
        (59_999, "59s"),
        (60_000, "1m"),
        (12 * MINUTE + 30_000, "12m"),
        (65 * MINUTE, "1h 5m"),
        (3 * 60 * MINUTE, "3h 0m"),
    ],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_compute_step_metrics_skips_non_positive_dt():
    pts = [
        sample(t=T0),
        sample(lat=north_of(NYC[0], 100.0), t=T0 + 100_000),
        sample(lat=north_of(NYC[0], 200.0), t=T0 + 100_000),
        sample(lat=north_of(NYC[0], 300.0), t=T0 + 150_000),
    ]
    dts, ds, vs = compute_step_metrics(pts)
    assert dts == [100.0, 50.0]
    assert ds == pytest.approx([100.0, 100.0], abs=1e-6)
    assert vs == pytest.approx([1.0, 2.0], abs=1e-6)


def test_analyze_session():
    pts = [
        sample(t=T0),
        sample(lat=north_of(NYC[0], 100.0), t=T0 + 100_000),
        sample(lat=north_of(NYC[0], 300.0), t=T0 + 200_000),
    ]
    stats = analyze_session(_session(T0, pts, distance=300.0, duration=200.0))
    assert stats["points"] == 3
    assert stats["segments"] == 2
    assert stats["distance_m"] == 300.0
    assert stats["avg_speed_kmh"] == pytest.approx(5.4)
    assert stats["max_speed_kmh"] == pytest.approx(7.2, abs=1e-6)


def test_analyze_session_single_point():
    stats = analyze_session(_session(T0, [sample()]))
    assert stats["segments"] == 0
    assert stats["max_speed_kmh"] == 0.0


def test_aggregate_statistics_units():
    sessions = [
        _session(T0, [sample(speed=2.0), sample(speed=None)], distance=1500.0, duration=1800.0),
        _session(T0 + 1000, [sample(speed=5.0)], distance=500.0, duration=1800.0),
        _session(T0 + DAY, [], distance=0.0, duration=3600.0),
    ]
    stats = aggregate_statistics(sessions)

    assert stats.total_sessions == 3
    assert stats.total_points == 3
    assert stats.total_distance_m == 2000.0
    assert stats.total_distance_km == 2.0
    assert stats.total_duration_s == 7200.0
    assert stats.total_duration_hours == 2.0
    assert stats.tracking_days == 2
    assert stats.top_speed_kmh == pytest.approx(18.0)


def test_aggregate_statistics_empty():
    stats = aggregate_statistics([])
    assert stats.total_sessions == 0
    assert stats.total_duration_hours == 0.0
