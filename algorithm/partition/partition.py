"""
Geographic partitioning of groups into day buckets with a seeded k-means.

The random source is injectable: anything with a numpy-style
``uniform(low, high)`` works, which lets tests pin the initial centroids.
"""

import numpy as np

from logger import get_logger
from algorithm.base.base import (
    distance, haversine_distance_matrix, KMEANS_MAX_ITERATIONS, KMEANS_CONVERGENCE_MILES
)
from algorithm.base.models import Coordinate, DayBucket, mean_coordinate

logger = get_logger()


def get_bounds(coordinates):
    """Bounding box (min_lat, max_lat, min_lng, max_lng) of the coordinates"""
    lats = [c.latitude for c in coordinates]
    lngs = [c.longitude for c in coordinates]
    return min(lats), max(lats), min(lngs), max(lngs)


def initialize_centroids(coordinates, k, home_base=None, rng=None):
    """
    First centroid sits on the home base when there is one and k > 1; the
    rest are drawn uniformly from the bounding box of the coordinates.
    """
    if rng is None:
        rng = np.random.default_rng()

    min_lat, max_lat, min_lng, max_lng = get_bounds(coordinates)
    centroids = []

    if home_base is not None and k > 1:
        centroids.append(Coordinate(home_base.latitude, home_base.longitude))

    while len(centroids) < k:
        lat = float(rng.uniform(min_lat, max_lat))
        lng = float(rng.uniform(min_lng, max_lng))
        centroids.append(Coordinate(lat, lng))

    return centroids


def assign_to_nearest(coordinates, centroids):
    """Index of the nearest centroid for each coordinate, ties go to the lowest index"""
    distances = haversine_distance_matrix(
        [c.latitude for c in coordinates], [c.longitude for c in coordinates],
        [c.latitude for c in centroids], [c.longitude for c in centroids])
    return [int(i) for i in np.argmin(distances, axis=1)]


def k_means_clustering(groups, k, home_base=None, rng=None,
                       max_iterations=None, convergence_miles=None):
    """
    Cluster group centroids into k buckets.

    Returns (members, centroids): members[i] is the list of groups in
    bucket i. Empty buckets keep their previous centroid.
    """
    if max_iterations is None:
        max_iterations = KMEANS_MAX_ITERATIONS
    if convergence_miles is None:
        convergence_miles = KMEANS_CONVERGENCE_MILES

    points = [g.centroid for g in groups]
    centroids = initialize_centroids(points, k, home_base, rng)
    members = [[] for _ in range(k)]

    for iteration in range(max_iterations):
        assignment = assign_to_nearest(points, centroids)
        members = [[] for _ in range(k)]
        for group, bucket_index in zip(groups, assignment):
            members[bucket_index].append(group)

        new_centroids = []
        for i in range(k):
            if members[i]:
                new_centroids.append(mean_coordinate(g.centroid for g in members[i]))
            else:
                new_centroids.append(centroids[i])

        converged = all(
            distance(old, new) < convergence_miles
            for old, new in zip(centroids, new_centroids)
        )
        centroids = new_centroids

        if converged:
            logger.debug(f"K-means converged after {iteration + 1} iterations")
            break
    else:
        logger.debug(f"K-means stopped at the {max_iterations} iteration cap")

    return members, centroids


def repair_empty_group_buckets(members, centroids):
    """
    Give every empty bucket one group popped from the bucket holding the
    most groups. Only buckets with more than one group can donate.
    """
    members = [list(m) for m in members]
    centroids = list(centroids)

    for empty_index in range(len(members)):
        if members[empty_index]:
            continue
        donor_index = max(range(len(members)), key=lambda i: (len(members[i]), -i))
        if len(members[donor_index]) <= 1:
            break
        group = members[donor_index].pop()
        members[empty_index].append(group)
        centroids[empty_index] = group.centroid
        centroids[donor_index] = mean_coordinate(g.centroid for g in members[donor_index])
        logger.debug(f"Moved {group.id} from bucket {donor_index} into empty bucket {empty_index}")

    return members, centroids


def repair_empty_buckets(buckets):
    """
    Visit-level safety net: move one visit from the most populated bucket
    into each empty bucket while a donor with more than one visit exists.
    Returns a new list of buckets.
    """
    buckets = list(buckets)

    for empty_index in range(len(buckets)):
        if not buckets[empty_index].is_empty():
            continue
        donor_index = max(range(len(buckets)), key=lambda i: (len(buckets[i].visits), -i))
        donor = buckets[donor_index]
        if len(donor.visits) <= 1:
            break
        visit = donor.visits[-1]
        buckets[donor_index] = donor.without([visit.id])
        buckets[empty_index] = buckets[empty_index].with_visits([visit])
        logger.debug(f"Moved visit {visit.id} from day {donor_index} into empty day {empty_index}")

    return buckets


def expand_groups(members, centroids):
    """Day buckets holding the member visits of each bucket's groups"""
    buckets = []
    for i, (groups, centroid) in enumerate(zip(members, centroids)):
        visits = tuple(v for g in groups for v in g.members)
        buckets.append(DayBucket(index=i, centroid=centroid, visits=visits))
    return buckets


def partition_groups(groups, num_days, home_base=None, rng=None,
                     max_iterations=None, convergence_miles=None):
    """
    Partition groups into num_days day buckets.

    With no more groups than days each group gets its own bucket and the
    remaining buckets start empty; no clustering is performed.
    """
    groups = list(groups)
    if num_days <= 0 or not groups:
        return []

    if len(groups) <= num_days:
        members = [[g] for g in groups] + [[] for _ in range(num_days - len(groups))]
        centroids = [g.centroid for g in groups] + [
            home_base if home_base is not None else groups[0].centroid
            for _ in range(num_days - len(groups))
        ]
        logger.log_clustering_decision("one-bucket-per-group", len(groups), num_days,
                                       "no clustering needed", "partition.py")
        return expand_groups(members, centroids)

    members, centroids = k_means_clustering(
        groups, num_days, home_base, rng, max_iterations, convergence_miles)
    empty_before = sum(1 for m in members if not m)
    members, centroids = repair_empty_group_buckets(members, centroids)

    logger.log_clustering_decision(
        "seeded-kmeans", len(groups), num_days,
        {"empty_buckets_repaired": empty_before,
         "bucket_sizes": [sum(len(g.members) for g in m) for m in members]},
        "partition.py")

    return expand_groups(members, centroids)
