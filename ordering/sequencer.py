"""
Nearest-neighbor day sequencing starting and ending at the home base.
"""

from typing import List, Optional

from algorithm.base.base import distance, DRIVE_MINUTES_PER_MILE
from algorithm.base.models import Coordinate, Visit


def sequence_day(visits, home_base: Optional[Coordinate] = None) -> List[Visit]:
    """
    Order one day's visits by repeatedly walking to the nearest unvisited
    stop, starting from the home base. Exact ties go to the first candidate
    in input order. Without a home base the input order is returned.
    """
    remaining = list(visits)
    if home_base is None or not remaining:
        return remaining

    ordered = []
    current = home_base

    while remaining:
        nearest_index = 0
        nearest_distance = distance(current, remaining[0].coordinate)

        for i in range(1, len(remaining)):
            d = distance(current, remaining[i].coordinate)
            if d < nearest_distance:
                nearest_distance = d
                nearest_index = i

        nearest = remaining.pop(nearest_index)
        ordered.append(nearest)
        current = nearest.coordinate

    return ordered


def calculate_route_distance(ordered_visits, home_base: Optional[Coordinate]) -> float:
    """Miles from home base through the visits in order and back home"""
    if home_base is None or not ordered_visits:
        return 0.0

    total = 0.0
    current = home_base
    for visit in ordered_visits:
        total += distance(current, visit.coordinate)
        current = visit.coordinate
    total += distance(current, home_base)
    return total


def calculate_drive_minutes(visits, home_base: Optional[Coordinate],
                            minutes_per_mile: Optional[float] = None) -> float:
    """Drive time of the sequenced route for a set of visits"""
    if minutes_per_mile is None:
        minutes_per_mile = DRIVE_MINUTES_PER_MILE
    route = sequence_day(visits, home_base)
    return calculate_route_distance(route, home_base) * minutes_per_mile


def calculate_service_minutes(visits) -> float:
    return float(sum(v.service_minutes for v in visits))
