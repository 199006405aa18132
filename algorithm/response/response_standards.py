"""
Response Standards - Field definitions and helper functions for day plan output
"""

# Core response field constants
STATUS = "status"
EXECUTION_TIME = "execution_time"
DATA = "data"
UNPLANNED_VISITS = "unplannedVisits"
OPTIMIZATION_MODE = "optimization_mode"
NUM_DAYS = "num_days"
HOME_BASE = "home_base"
SUMMARY = "summary"

# Day object field constants (ordered as required)
DAY = "day"
DAY_NAME = "day_name"
CENTROID = "centroid"
TOTAL_DISTANCE_MILES = "total_distance_miles"
DRIVE_MINUTES = "drive_minutes"
SERVICE_MINUTES = "service_minutes"
TOTAL_MINUTES = "total_minutes"
ORDERING_SOURCE = "ordering_source"
VISITS = "visits"

# Visit field constants
VISIT_ID = "id"
LATITUDE = "latitude"
LONGITUDE = "longitude"
NAME = "name"
ADDRESS = "address"
VISIT_ORDER = "visit_order"
REASON = "reason"

# Summary field constants
TOTAL_STOPS = "total_stops"
WORKING_DAYS = "working_days"
TOTAL_MILES = "total_miles"
COST_SPREAD_MINUTES = "cost_spread_minutes"

# Standard field order for day objects
DAY_FIELD_ORDER = [
    DAY,
    DAY_NAME,
    CENTROID,
    TOTAL_DISTANCE_MILES,
    DRIVE_MINUTES,
    SERVICE_MINUTES,
    TOTAL_MINUTES,
    ORDERING_SOURCE,
    VISITS
]

# Standard leading fields for visit objects; payload fields follow
VISIT_FIELD_ORDER = [
    VISIT_ID,
    LATITUDE,
    LONGITUDE,
    NAME,
    ADDRESS,
    SERVICE_MINUTES,
    VISIT_ORDER,
    DAY
]

UNPLANNED_VISIT_FIELD_ORDER = [
    VISIT_ID,
    LATITUDE,
    LONGITUDE,
    NAME,
    ADDRESS,
    REASON
]


def standardize_coordinates(obj):
    """
    Convert coordinate names to standard format (latitude/longitude)
    Handles lat/lng/lon and latitude/longitude variations
    """
    if not isinstance(obj, dict):
        return obj

    standardized = obj.copy()

    for short, full in (('lat', LATITUDE), ('lng', LONGITUDE), ('lon', LONGITUDE)):
        if short in standardized:
            value = standardized.pop(short)
            if full not in standardized:
                standardized[full] = value

    for field in (LATITUDE, LONGITUDE):
        if field in standardized and standardized[field] is not None:
            try:
                standardized[field] = float(standardized[field])
            except (TypeError, ValueError):
                pass

    return standardized


def create_standard_visit(visit_data):
    """
    Create a standardized visit object: known fields first in a fixed
    order, remaining payload fields after them
    """
    visit = standardize_coordinates(visit_data)
    standardized_visit = {}

    for field in VISIT_FIELD_ORDER:
        if field in visit:
            standardized_visit[field] = visit[field]
        elif field in (NAME, ADDRESS):
            standardized_visit[field] = None

    for field, value in visit.items():
        if field not in standardized_visit:
            standardized_visit[field] = value

    return standardized_visit


def create_unplanned_visit(visit_data, reason):
    """Standardized entry for a visit that was left out of the plan"""
    visit = standardize_coordinates(visit_data)
    unplanned = {}
    for field in UNPLANNED_VISIT_FIELD_ORDER:
        if field == REASON:
            unplanned[REASON] = reason
        else:
            unplanned[field] = visit.get(field)
    return unplanned


def create_standard_day(day_data):
    """
    Create a standardized day object with all required fields
    """
    standardized_day = {}

    for field in DAY_FIELD_ORDER:
        if field == VISITS:
            continue
        standardized_day[field] = day_data.get(field)

    visits = day_data.get(VISITS, [])
    if not isinstance(visits, list):
        visits = []

    standardized_day[VISITS] = [create_standard_visit(v) for v in visits]
    for visit in standardized_day[VISITS]:
        visit[DAY] = standardized_day[DAY]

    return standardized_day


def validate_required_fields(response_data):
    """
    Validate that all required fields are present in the response
    Returns a list of missing fields
    """
    if not isinstance(response_data, dict):
        return ["Response must be a dictionary"]

    required_fields = [
        STATUS,
        EXECUTION_TIME,
        DATA,
        UNPLANNED_VISITS,
        OPTIMIZATION_MODE,
        NUM_DAYS
    ]

    missing_fields = []
    for field in required_fields:
        if field not in response_data:
            missing_fields.append(field)

    if DATA in response_data:
        days = response_data[DATA]
        if not isinstance(days, list):
            missing_fields.append(f"{DATA} must be a list")
        else:
            for i, day in enumerate(days):
                day_errors = validate_day_structure(day)
                if day_errors:
                    missing_fields.extend([f"{DATA}[{i}].{error}" for error in day_errors])

    return missing_fields


def validate_day_structure(day_data):
    """
    Validate day object structure
    Returns a list of missing or invalid fields
    """
    if not isinstance(day_data, dict):
        return ["Day must be a dictionary"]

    missing_fields = []
    for field in (DAY, DAY_NAME, VISITS):
        if field not in day_data:
            missing_fields.append(field)

    for field in (TOTAL_DISTANCE_MILES, DRIVE_MINUTES, SERVICE_MINUTES, TOTAL_MINUTES):
        if field in day_data and not isinstance(day_data[field], (int, float)):
            missing_fields.append(f"{field} must be a number")

    if VISITS in day_data and not isinstance(day_data[VISITS], list):
        missing_fields.append(f"{VISITS} must be a list")

    return missing_fields
