"""
Day Plan Response Standardization Package

This package provides standardized response formatting for the day planner.
"""

from .response_standards import (
    # Field constants
    STATUS, EXECUTION_TIME, DATA, UNPLANNED_VISITS, OPTIMIZATION_MODE, NUM_DAYS,
    HOME_BASE, SUMMARY,

    # Object field constants
    DAY, DAY_NAME, CENTROID, TOTAL_DISTANCE_MILES, DRIVE_MINUTES, SERVICE_MINUTES,
    TOTAL_MINUTES, ORDERING_SOURCE, VISITS, VISIT_ID, LATITUDE, LONGITUDE, NAME,
    ADDRESS, VISIT_ORDER, REASON,

    # Field orderings
    DAY_FIELD_ORDER, VISIT_FIELD_ORDER, UNPLANNED_VISIT_FIELD_ORDER,

    # Helper functions
    standardize_coordinates, create_standard_visit, create_unplanned_visit,
    create_standard_day, validate_required_fields, validate_day_structure
)

from .response_builder import (
    build_plan_summary,
    build_standard_response,
    create_error_response,
    validate_response_structure,
    log_response_metrics
)

__all__ = [
    # Field constants
    'STATUS', 'EXECUTION_TIME', 'DATA', 'UNPLANNED_VISITS', 'OPTIMIZATION_MODE',
    'NUM_DAYS', 'HOME_BASE', 'SUMMARY',

    # Object field constants
    'DAY', 'DAY_NAME', 'CENTROID', 'TOTAL_DISTANCE_MILES', 'DRIVE_MINUTES',
    'SERVICE_MINUTES', 'TOTAL_MINUTES', 'ORDERING_SOURCE', 'VISITS', 'VISIT_ID',
    'LATITUDE', 'LONGITUDE', 'NAME', 'ADDRESS', 'VISIT_ORDER', 'REASON',

    # Field orderings
    'DAY_FIELD_ORDER', 'VISIT_FIELD_ORDER', 'UNPLANNED_VISIT_FIELD_ORDER',

    # Helper functions
    'standardize_coordinates', 'create_standard_visit', 'create_unplanned_visit',
    'create_standard_day', 'validate_required_fields', 'validate_day_structure',

    # Response builder functions
    'build_plan_summary', 'build_standard_response', 'create_error_response',
    'validate_response_structure', 'log_response_metrics'
]
