"""
Route Ordering Module

Nearest-neighbor sequencing of each planned day around the home base.
"""

from .sequencer import sequence_day, calculate_route_distance, calculate_drive_minutes, calculate_service_minutes
from .order_integration import OrderIntegration, get_order_integration, apply_route_ordering, day_name, DAY_NAMES

__all__ = [
    "sequence_day",
    "calculate_route_distance",
    "calculate_drive_minutes",
    "calculate_service_minutes",
    "OrderIntegration",
    "get_order_integration",
    "apply_route_ordering",
    "day_name",
    "DAY_NAMES"
]
