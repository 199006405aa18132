"""
Load balancing of day buckets by per-day cost (drive time + service time).

Balancing is greedy hill-climbing: each attempt takes the most expensive
and the cheapest day and asks an ordered list of move finders for a unit
to shift between them. The first finder that returns a move wins. The
default order tries whole proximity groups first and single visits second.

Buckets are never mutated; every applied move produces a new list.
"""

from typing import List, Optional, Sequence

from logger import get_logger
from algorithm.base.base import (
    distance, BALANCE_MAX_ATTEMPTS, BALANCE_TOLERANCE_RATIO, DRIVE_MINUTES_PER_MILE,
    HOUSE_GROUP_RADIUS_MILES
)
from algorithm.base.models import DayBucket, Move, mean_coordinate
from algorithm.grouping.grouping import group_by_radius
from algorithm.partition.partition import repair_empty_buckets
from ordering.sequencer import calculate_drive_minutes, calculate_service_minutes

logger = get_logger()


# ================== COST MODEL ==================

def calculate_bucket_cost(visits, home_base, minutes_per_mile=None):
    """Drive minutes of the sequenced route plus total service minutes"""
    if not visits:
        return 0.0
    return calculate_drive_minutes(visits, home_base, minutes_per_mile) + calculate_service_minutes(visits)


def calculate_bucket_costs(buckets, home_base, minutes_per_mile=None):
    return [calculate_bucket_cost(b.visits, home_base, minutes_per_mile) for b in buckets]


# ================== MOVES ==================

def apply_move(buckets: Sequence[DayBucket], move: Move) -> List[DayBucket]:
    """New bucket list with the move's visits shifted from source to target"""
    buckets = list(buckets)
    if move.source_index == move.target_index:
        return buckets

    source = buckets[move.source_index]
    moving_ids = set(move.visit_ids)
    moving = [v for v in source.visits if v.id in moving_ids]

    buckets[move.source_index] = source.without(moving_ids)
    buckets[move.target_index] = buckets[move.target_index].extended(moving)
    return buckets


def move_visits_between_days(buckets, visit_ids, from_index, to_index):
    """Move specific visits between two days; returns (buckets, move or None)"""
    buckets = list(buckets)
    if from_index == to_index:
        return buckets, None
    if not (0 <= from_index < len(buckets)) or not (0 <= to_index < len(buckets)):
        logger.warning(f"Move ignored, day index out of range: {from_index} -> {to_index}")
        return buckets, None

    present = buckets[from_index].visit_ids
    visit_ids = tuple(v for v in visit_ids if v in present)
    if not visit_ids:
        return buckets, None

    move = Move(visit_ids=visit_ids, source_index=from_index, target_index=to_index, kind="manual")
    return apply_move(buckets, move), move


class MoveFinder:
    """Strategy that proposes one move from a heavy day toward a light day"""

    kind = "visit"

    def find_move(self, buckets, costs, source_index, target_index, context) -> Optional[Move]:
        raise NotImplementedError

    def _qualifies(self, buckets, costs, source_index, target_index, visits, context):
        """
        A move qualifies when the source keeps at least one visit and the
        target ends up cheaper than the source day costs now.
        """
        source = buckets[source_index]
        if len(visits) >= len(source.visits):
            return False
        target_visits = buckets[target_index].visits + tuple(visits)
        target_cost = calculate_bucket_cost(target_visits, context.home_base, context.minutes_per_mile)
        return target_cost < costs[source_index]


class GroupMoveFinder(MoveFinder):
    """Move the first proximity group wholly resident in the heavy day"""

    kind = "group"

    def __init__(self, groups):
        self.groups = list(groups)

    def find_move(self, buckets, costs, source_index, target_index, context):
        source_ids = buckets[source_index].visit_ids
        by_id = {v.id: v for v in buckets[source_index].visits}

        for group in self.groups:
            if not all(vid in source_ids for vid in group.visit_ids):
                continue
            visits = [by_id[vid] for vid in group.visit_ids]
            if self._qualifies(buckets, costs, source_index, target_index, visits, context):
                return Move(visit_ids=group.visit_ids, source_index=source_index,
                            target_index=target_index, kind=self.kind)
        return None


class VisitMoveFinder(MoveFinder):
    """Move the first single visit of the heavy day that qualifies"""

    kind = "visit"

    def find_move(self, buckets, costs, source_index, target_index, context):
        for visit in buckets[source_index].visits:
            if self._qualifies(buckets, costs, source_index, target_index, [visit], context):
                return Move(visit_ids=(visit.id,), source_index=source_index,
                            target_index=target_index, kind=self.kind)
        return None


class BalanceContext:
    def __init__(self, home_base, minutes_per_mile):
        self.home_base = home_base
        self.minutes_per_mile = minutes_per_mile


# ================== LOAD BALANCER ==================

class LoadBalancer:
    def __init__(self, home_base, groups=(), move_finders=None, max_attempts=None,
                 tolerance_ratio=None, minutes_per_mile=None):
        self.home_base = home_base
        self.move_finders = list(move_finders) if move_finders is not None else [
            GroupMoveFinder(groups), VisitMoveFinder()]
        self.max_attempts = BALANCE_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.tolerance_ratio = BALANCE_TOLERANCE_RATIO if tolerance_ratio is None else tolerance_ratio
        self.minutes_per_mile = DRIVE_MINUTES_PER_MILE if minutes_per_mile is None else minutes_per_mile
        self.moves = []

    def find_move(self, buckets, costs, source_index, target_index):
        context = BalanceContext(self.home_base, self.minutes_per_mile)
        for finder in self.move_finders:
            move = finder.find_move(buckets, costs, source_index, target_index, context)
            if move is not None:
                return move
        return None

    def balance(self, buckets):
        """
        Shift units from the most to the least expensive day until the
        spread fits inside twice the tolerance, no finder has a move, or the
        attempt cap is hit. Without a home base the buckets are returned
        unchanged.
        """
        buckets = list(buckets)
        self.moves = []
        if self.home_base is None or len(buckets) < 2:
            return buckets

        costs = calculate_bucket_costs(buckets, self.home_base, self.minutes_per_mile)
        target_cost = sum(costs) / len(costs)
        tolerance = target_cost * self.tolerance_ratio

        logger.info(f"Target cost per day: {target_cost:.1f} minutes (tolerance ±{tolerance:.1f})")

        attempts = 0
        while attempts < self.max_attempts:
            attempts += 1

            max_index = max(range(len(costs)), key=lambda i: (costs[i], -i))
            min_index = min(range(len(costs)), key=lambda i: (costs[i], i))
            spread = costs[max_index] - costs[min_index]

            if spread <= 2 * tolerance:
                logger.info(f"Days balanced after {attempts - 1} moves (spread {spread:.1f} min)")
                break

            move = self.find_move(buckets, costs, max_index, min_index)
            if move is None:
                logger.info(f"No qualifying move left (spread {spread:.1f} min)")
                break

            buckets = apply_move(buckets, move)
            costs[move.source_index] = calculate_bucket_cost(
                buckets[move.source_index].visits, self.home_base, self.minutes_per_mile)
            costs[move.target_index] = calculate_bucket_cost(
                buckets[move.target_index].visits, self.home_base, self.minutes_per_mile)
            self.moves.append(move)

            logger.log_balance_move(attempts, move, costs[move.source_index],
                                    costs[move.target_index], "balance.py")
        else:
            logger.info(f"Stopped at the {self.max_attempts} attempt cap")

        return repair_empty_buckets(buckets)


# ================== MANUAL ADJUSTMENTS ==================

def calculate_day_centroid(bucket, home_base):
    """Centroid of a day's visits, the home base for an empty day"""
    if bucket.visits:
        return mean_coordinate(v.coordinate for v in bucket.visits)
    if home_base is not None:
        return home_base
    return bucket.centroid


def make_day_heavier(buckets, target_index, home_base, radius_miles=None):
    """
    Pull the house group nearest to the target day's centroid from another
    day. Source days must keep at least one visit.
    """
    buckets = list(buckets)
    if home_base is None or not (0 <= target_index < len(buckets)):
        return buckets, None
    if radius_miles is None:
        radius_miles = HOUSE_GROUP_RADIUS_MILES

    target_centroid = calculate_day_centroid(buckets[target_index], home_base)
    best_move = None
    best_distance = float('inf')

    for source_index, source in enumerate(buckets):
        if source_index == target_index or len(source.visits) <= 1:
            continue

        for group in group_by_radius(source.visits, radius_miles):
            if len(group.members) > len(source.visits) - 1:
                continue
            d = distance(group.centroid, target_centroid)
            if d < best_distance:
                best_distance = d
                best_move = Move(visit_ids=group.visit_ids, source_index=source_index,
                                 target_index=target_index, kind="heavier")

    if best_move is None:
        logger.info(f"No suitable visits to move into day {target_index}")
        return buckets, None

    logger.info(f"Day {target_index} made heavier with {len(best_move.visit_ids)} visit(s) "
                f"from day {best_move.source_index}")
    return apply_move(buckets, best_move), best_move


def make_day_lighter(buckets, source_index, home_base, radius_miles=None):
    """
    Push the source day's house group that sits nearest to another day's
    centroid into that day. The source day keeps at least one visit.
    """
    buckets = list(buckets)
    if home_base is None or not (0 <= source_index < len(buckets)):
        return buckets, None
    if radius_miles is None:
        radius_miles = HOUSE_GROUP_RADIUS_MILES

    source = buckets[source_index]
    if len(source.visits) <= 1:
        logger.info(f"Day {source_index} must have at least 2 visits to be made lighter")
        return buckets, None

    best_move = None
    best_distance = float('inf')

    for group in group_by_radius(source.visits, radius_miles):
        if len(group.members) >= len(source.visits):
            continue
        group_centroid = group.centroid

        for target_index, target in enumerate(buckets):
            if target_index == source_index:
                continue
            d = distance(group_centroid, calculate_day_centroid(target, home_base))
            if d < best_distance:
                best_distance = d
                best_move = Move(visit_ids=group.visit_ids, source_index=source_index,
                                 target_index=target_index, kind="lighter")

    if best_move is None:
        logger.info(f"No suitable visits to move out of day {source_index}")
        return buckets, None

    logger.info(f"Day {source_index} made lighter by {len(best_move.visit_ids)} visit(s) "
                f"into day {best_move.target_index}")
    return apply_move(buckets, best_move), best_move
