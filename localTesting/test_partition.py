import numpy as np
import pytest

from algorithm.base.models import DayBucket, Group
from algorithm.partition.partition import (
    assign_to_nearest, initialize_centroids, k_means_clustering,
    partition_groups, repair_empty_buckets
)
from conftest import HighRng, assert_partition, offset


def _singletons(visits):
    return [Group(id=f"group-{i}", members=(v,)) for i, v in enumerate(visits)]


@pytest.fixture
def two_clusters(home, make_visit):
    near = [make_visit(f"n{i}", offset(home, 0.2 * i, 0.1 * i)) for i in range(3)]
    # The last far visit sits on the north-east corner of the bounding box
    far = [make_visit(f"f{i}", offset(home, 7.6 + 0.2 * i, 7.6 + 0.2 * i)) for i in range(3)]
    return near, far


def test_first_centroid_is_home_base_and_rest_come_from_rng(home):
    points = [offset(home, 1, 1), offset(home, 3, 4)]
    centroids = initialize_centroids(points, 3, home, HighRng())

    assert centroids[0] == home
    assert centroids[1] == centroids[2] == points[1]


def test_single_centroid_ignores_home_base(home):
    points = [offset(home, 1, 1), offset(home, 3, 4)]
    centroids = initialize_centroids(points, 1, home, HighRng())

    assert centroids == [points[1]]


def test_assign_to_nearest_breaks_ties_to_lowest_index(home):
    same = offset(home, 2, 2)
    assert assign_to_nearest([home, same], [same, same]) == [0, 0]
    assert assign_to_nearest([home, same], [same, home]) == [1, 0]


def test_seeded_kmeans_splits_two_clusters(home, two_clusters):
    near, far = two_clusters
    groups = _singletons(near + far)

    members, centroids = k_means_clustering(groups, 2, home, HighRng())

    assert {v.id for g in members[0] for v in g.members} == {"n0", "n1", "n2"}
    assert {v.id for g in members[1] for v in g.members} == {"f0", "f1", "f2"}


def test_kmeans_without_home_base_recovers_from_shared_seed(two_clusters):
    near, far = two_clusters

    # Both centroids start on the same corner; the second pass separates them
    members, centroids = k_means_clustering(_singletons(near + far), 2, None, HighRng())

    assert {v.id for g in members[0] for v in g.members} == {"n0", "n1", "n2"}
    assert {v.id for g in members[1] for v in g.members} == {"f0", "f1", "f2"}


def test_partition_repairs_empty_bucket(home, make_visit):
    # Identical coordinates: every group ties onto bucket 0 and k-means converges
    visits = [make_visit(f"s{i}", offset(home, 1, 1)) for i in range(3)]

    buckets = partition_groups(_singletons(visits), 2, None, HighRng())

    assert len(buckets) == 2
    assert all(not b.is_empty() for b in buckets)
    assert [v.id for v in buckets[1].visits] == ["s2"]
    assert_partition(buckets, visits)


def test_fewer_groups_than_days_leaves_trailing_buckets_empty(home, make_visit):
    visits = [make_visit("a", offset(home, 1)), make_visit("b", offset(home, 2))]
    buckets = partition_groups(_singletons(visits), 3, home, HighRng())

    assert [len(b.visits) for b in buckets] == [1, 1, 0]
    assert buckets[2].centroid == home


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 42])
@pytest.mark.parametrize("num_days", [2, 3, 5])
def test_partition_is_complete_for_any_seed(scattered_visits, home, seed, num_days):
    groups = _singletons(scattered_visits)
    buckets = partition_groups(groups, num_days, home, np.random.default_rng(seed))

    assert len(buckets) == num_days
    assert all(not b.is_empty() for b in buckets)
    assert_partition(buckets, scattered_visits)


def test_partition_with_no_days_or_groups_is_empty(scattered_visits):
    assert partition_groups(_singletons(scattered_visits), 0) == []
    assert partition_groups([], 3) == []


def test_repair_empty_buckets_takes_from_largest_day(home, make_visit):
    visits = [make_visit(f"v{i}", offset(home, i)) for i in range(3)]
    buckets = [
        DayBucket(0, home, tuple(visits)),
        DayBucket(1, home, ()),
        DayBucket(2, home, ()),
    ]

    repaired = repair_empty_buckets(buckets)

    assert [[v.id for v in b.visits] for b in repaired] == [["v0"], ["v2"], ["v1"]]
    assert repaired[1].centroid == visits[2].coordinate
    # Input list is left untouched
    assert len(buckets[0].visits) == 3


def test_repair_cannot_split_a_single_visit(home, make_visit):
    buckets = [DayBucket(0, home, (make_visit("only", home),)), DayBucket(1, home, ())]

    repaired = repair_empty_buckets(buckets)

    assert [len(b.visits) for b in repaired] == [1, 0]
