"""
Order Integration Module

Turns planned day buckets into ordered day plans: sequences every day with
the nearest-neighbor walk, numbers the stops and attaches route metrics.
"""

from typing import List, Dict, Any, Optional

from logger import get_logger
from algorithm.base.base import visit_to_dict, DRIVE_MINUTES_PER_MILE
from algorithm.base.models import Coordinate, mean_coordinate
from .sequencer import sequence_day, calculate_route_distance, calculate_service_minutes

logger = get_logger()

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']


def day_name(index: int) -> str:
    """Weekday name for a 0-based day index, "Day N" past Sunday"""
    if 0 <= index < len(DAY_NAMES):
        return DAY_NAMES[index]
    return f"Day {index + 1}"


class OrderIntegration:
    """Applies day sequencing to planned buckets and renders day plans"""

    def __init__(self, minutes_per_mile: Optional[float] = None):
        self.minutes_per_mile = DRIVE_MINUTES_PER_MILE if minutes_per_mile is None else minutes_per_mile

    def apply_day_ordering(self, buckets, home_base: Optional[Coordinate]) -> List[Dict[str, Any]]:
        """
        Sequence each bucket and build its day plan. Empty buckets are
        dropped from the result.
        """
        if not buckets:
            logger.info("No days to order")
            return []

        day_plans = []
        for bucket in buckets:
            if bucket.is_empty():
                logger.debug(f"Skipping empty day {bucket.index}")
                continue
            day_plans.append(self.order_day(bucket, home_base))

        logger.info(f"Ordered {len(day_plans)} days "
                    f"({'nearest neighbor' if home_base is not None else 'input order, no home base'})")
        return day_plans

    def order_day(self, bucket, home_base: Optional[Coordinate]) -> Dict[str, Any]:
        """Day plan for one bucket: sequenced visits with 1-based visit_order and route metrics"""
        ordered = sequence_day(bucket.visits, home_base)
        total_distance = calculate_route_distance(ordered, home_base)
        drive_minutes = total_distance * self.minutes_per_mile
        service_minutes = calculate_service_minutes(ordered)

        visits = []
        for visit_order, visit in enumerate(ordered, 1):
            visit_dict = visit_to_dict(visit)
            visit_dict["visit_order"] = visit_order
            visits.append(visit_dict)

        centroid = mean_coordinate(v.coordinate for v in ordered) or bucket.centroid

        return {
            "day": bucket.index + 1,
            "day_name": day_name(bucket.index),
            "centroid": centroid.as_dict() if centroid is not None else None,
            "total_distance_miles": round(total_distance, 2),
            "drive_minutes": round(drive_minutes, 1),
            "service_minutes": round(service_minutes, 1),
            "total_minutes": round(drive_minutes + service_minutes, 1),
            "ordering_source": "nearest_neighbor" if home_base is not None else "input_order",
            "visits": visits,
        }


_order_integration = None


def get_order_integration() -> OrderIntegration:
    global _order_integration
    if _order_integration is None:
        _order_integration = OrderIntegration()
    return _order_integration


def apply_route_ordering(buckets, home_base: Optional[Coordinate]) -> List[Dict[str, Any]]:
    """Convenience function to order all days of a plan"""
    return get_order_integration().apply_day_ordering(buckets, home_base)
