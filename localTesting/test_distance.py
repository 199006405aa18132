import math

import numpy as np
import pytest

from algorithm.base.base import distance, haversine_distance, haversine_distance_matrix, EARTH_RADIUS_MILES
from algorithm.base.models import Coordinate


def test_one_degree_of_latitude_at_earth_radius():
    expected = EARTH_RADIUS_MILES * math.pi / 180
    assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)


@pytest.mark.parametrize("a, b", [
    (Coordinate(40.0, -75.0), Coordinate(40.1, -74.9)),
    (Coordinate(-33.9, 151.2), Coordinate(51.5, -0.1)),
    (Coordinate(0.0, 179.9), Coordinate(0.0, -179.9)),
])
def test_distance_is_symmetric_and_non_negative(a, b):
    assert distance(a, b) == pytest.approx(distance(b, a))
    assert distance(a, b) > 0


def test_distance_to_self_is_zero():
    a = Coordinate(40.7128, -74.0060)
    assert distance(a, a) == 0.0


def test_distance_across_antimeridian_is_short():
    assert distance(Coordinate(0.0, 179.9), Coordinate(0.0, -179.9)) < 15


def test_nan_propagates():
    assert math.isnan(distance(Coordinate(float("nan"), 0.0), Coordinate(1.0, 1.0)))


def test_distance_matrix_matches_scalar_distance():
    points = [Coordinate(40.0, -75.0), Coordinate(40.2, -74.8), Coordinate(39.9, -75.3)]
    centers = [Coordinate(40.05, -75.05), Coordinate(39.5, -74.5)]

    matrix = haversine_distance_matrix(
        [p.latitude for p in points], [p.longitude for p in points],
        [c.latitude for c in centers], [c.longitude for c in centers])

    assert matrix.shape == (3, 2)
    for i, p in enumerate(points):
        for j, c in enumerate(centers):
            assert matrix[i, j] == pytest.approx(distance(p, c), rel=1e-9)
    assert np.all(matrix >= 0)
