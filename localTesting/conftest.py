import math
import os
import tempfile

# Session logs go to a scratch directory, set before any project module loads
os.environ.setdefault("PLANNER_LOG_DIR", tempfile.mkdtemp(prefix="planner_logs_"))

import pytest

from algorithm.base.models import Coordinate, Visit

MILES_PER_DEGREE_LAT = 3959.0 * math.pi / 180


def offset(origin, north_miles=0.0, east_miles=0.0):
    """Coordinate roughly north_miles north and east_miles east of origin"""
    lat = origin.latitude + north_miles / MILES_PER_DEGREE_LAT
    lng = origin.longitude + east_miles / (MILES_PER_DEGREE_LAT * math.cos(math.radians(origin.latitude)))
    return Coordinate(lat, lng)


class HighRng:
    """Random source that always returns the top of the requested range"""

    def uniform(self, low, high):
        return high


@pytest.fixture
def home():
    return Coordinate(40.0, -75.0)


@pytest.fixture
def make_visit():
    def _make(visit_id, coordinate, service_minutes=45.0, address=None):
        return Visit(id=visit_id, coordinate=coordinate, service_minutes=service_minutes, address=address)
    return _make


@pytest.fixture
def cluster_and_outlier(home, make_visit):
    """Four visits inside 0.02 mi of the home base plus one 5 mi north"""
    cluster = [
        make_visit("c1", offset(home, 0.0, 0.0)),
        make_visit("c2", offset(home, 0.01, 0.0)),
        make_visit("c3", offset(home, 0.0, 0.01)),
        make_visit("c4", offset(home, 0.01, 0.01)),
    ]
    far = make_visit("far", offset(home, 5.0, 0.0))
    return cluster + [far]


@pytest.fixture
def scattered_visits(home, make_visit):
    rng_points = [
        (0.3, 0.2), (1.1, -0.4), (2.5, 1.7), (-1.2, 2.2), (3.1, -2.6),
        (-2.8, -0.9), (0.7, 3.3), (-0.4, -3.1), (4.2, 0.5), (1.9, 2.8),
        (-3.5, 1.4), (2.2, -1.1), (-1.7, -2.4), (0.05, 0.06), (3.8, 3.9),
        (-4.1, -3.7), (1.4, 0.9), (-0.9, 1.6), (2.9, 2.1), (-2.2, 3.0),
    ]
    return [make_visit(f"v{i}", offset(home, north, east), 30 + (i % 4) * 15)
            for i, (north, east) in enumerate(rng_points)]


def assert_partition(buckets, visits):
    """Every visit appears in exactly one bucket"""
    planned = [v.id for b in buckets for v in b.visits]
    assert len(planned) == len(set(planned))
    assert set(planned) == {v.id for v in visits}
