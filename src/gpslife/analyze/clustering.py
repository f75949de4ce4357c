# gpslife/analyze/clustering.py
"""
Spatio-temporal clustering of position samples.

A cluster is a maximal run of consecutive samples that stay within
`distance_threshold` meters of the cluster center AND arrive no later than
`time_threshold_ms` after the cluster's last member. Breaking either
threshold ends the cluster.

The center is the arithmetic mean of member latitudes and longitudes. It is
not a geodesic centroid, but at a 50 m radius the difference is negligible.
"""

from __future__ import annotations

from typing import Iterable, Optional

from gpslife.analyze.geo import distance
from gpslife.models import Cluster, PositionSample

DISTANCE_THRESHOLD_M = 50.0
TIME_THRESHOLD_MS = 10 * 60 * 1000


class _ClusterBuilder:
    """Running state of the open cluster; O(1) per added member."""

    def __init__(self, first: PositionSample) -> None:
        self.members: list[PositionSample] = [first]
        self.start_time = first.timestamp
        self.end_time = first.timestamp
        self._lat_sum = first.latitude
        self._lon_sum = first.longitude
        self.center_lat = first.latitude
        self.center_lon = first.longitude

    def add(self, s: PositionSample) -> None:
        self.members.append(s)
        self.end_time = s.timestamp
        self._lat_sum += s.latitude
        self._lon_sum += s.longitude
        n = len(self.members)
        self.center_lat = self._lat_sum / n
        self.center_lon = self._lon_sum / n

    def build(self) -> Cluster:
        center = PositionSample(
            latitude=self.center_lat,
            longitude=self.center_lon,
            accuracy=self.members[0].accuracy,
            timestamp=self.start_time,
        )
        return Cluster(
            center=center,
            members=tuple(self.members),
            start_time=self.start_time,
            end_time=self.end_time,
        )


def cluster_samples(
    samples: Iterable[PositionSample],
    *,
    distance_threshold: float = DISTANCE_THRESHOLD_M,
    time_threshold_ms: int = TIME_THRESHOLD_MS,
) -> list[Cluster]:
    """
    Group time-sorted samples into spatio-temporal clusters.

    Args:
      samples: samples sorted ascending by timestamp (not re-sorted here).
      distance_threshold: max distance (m) from the running center.
      time_threshold_ms: max gap (ms) since the cluster's last member.

    Returns:
      Clusters with at least two members, in scan order.
    """
    clusters: list[Cluster] = []
    current: Optional[_ClusterBuilder] = None

    for s in samples:
        if current is None:
            current = _ClusterBuilder(s)
            continue

        d = distance(current.center_lat, current.center_lon, s.latitude, s.longitude)
        gap = s.timestamp - current.end_time

        if d <= distance_threshold and gap <= time_threshold_ms:
            current.add(s)
        else:
            if len(current.members) >= 2:
                clusters.append(current.build())
            current = _ClusterBuilder(s)

    if current is not None and len(current.members) >= 2:
        clusters.append(current.build())

    return clusters
