import math

import pytest

from gpslife.models import PositionSample

# Meters per degree of latitude on the 6,371,000 m sphere. Moving a point
# north by `m / M_PER_DEG_LAT` degrees moves it exactly `m` meters.
M_PER_DEG_LAT = 6_371_000.0 * math.pi / 180.0

T0 = 1_700_000_000_000
MINUTE = 60 * 1000

NYC = (40.7128, -74.0060)


def north_of(lat: float, meters: float) -> float:
    return lat + meters / M_PER_DEG_LAT


def sample(lat=NYC[0], lon=NYC[1], t=T0, accuracy=10.0, **kw) -> PositionSample:
    return PositionSample(latitude=lat, longitude=lon, accuracy=accuracy, timestamp=t, **kw)


class FakeClock:
    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_sample():
    return sample
