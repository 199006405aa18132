"""
Response Validator - Validate day plan responses against the standardized format
"""

from algorithm.response.response_standards import (
    STATUS, DATA, UNPLANNED_VISITS, DAY, VISITS, VISIT_ID, VISIT_ORDER,
    LATITUDE, LONGITUDE, REASON, DAY_FIELD_ORDER,
    validate_required_fields
)
import logging

logger = logging.getLogger(__name__)


def validate_plan_response(response_data, expected_visit_ids=None, planner_name="day_planner"):
    """
    Validate that a plan response conforms to the standard format

    Args:
        response_data (dict): Response data to validate
        expected_visit_ids (iterable, optional): Ids of every input visit;
            when given, planned + unplanned ids must match them exactly
        planner_name (str): Name used in log messages

    Returns:
        tuple: (is_valid, validation_errors)
    """
    if not isinstance(response_data, dict):
        return False, ["Response must be a dictionary"]

    validation_errors = list(validate_required_fields(response_data))

    days = response_data.get(DATA, [])
    if isinstance(days, list):
        for i, day in enumerate(days):
            day_errors = validate_day_consistency(day)
            if day_errors:
                validation_errors.extend([f"data[{i}].{error}" for error in day_errors])

    unplanned = response_data.get(UNPLANNED_VISITS, [])
    if not isinstance(unplanned, list):
        validation_errors.append("unplannedVisits must be a list")
    else:
        for i, visit in enumerate(unplanned):
            if not isinstance(visit, dict):
                validation_errors.append(f"unplannedVisits[{i}] must be a dictionary")
            elif REASON not in visit:
                validation_errors.append(f"unplannedVisits[{i}].reason is required")

    if response_data.get(STATUS) == "true":
        validation_errors.extend(check_visit_accounting(response_data, expected_visit_ids))

    if validation_errors:
        logger.warning(f"Validation failed for {planner_name}: {validation_errors}")
    else:
        logger.info(f"Validation passed for {planner_name}")

    return len(validation_errors) == 0, validation_errors


def validate_visit_structure(visit_data):
    """
    Validate visit object structure

    Returns:
        list: List of validation errors
    """
    if not isinstance(visit_data, dict):
        return ["Visit must be a dictionary"]

    errors = []
    if VISIT_ID not in visit_data:
        errors.append("id is required")

    for field, low, high in ((LATITUDE, -90, 90), (LONGITUDE, -180, 180)):
        if field not in visit_data:
            errors.append(f"{field} is required")
            continue
        try:
            value = float(visit_data[field])
        except (ValueError, TypeError):
            errors.append(f"{field} must be a number")
            continue
        if not (low <= value <= high):
            errors.append(f"{field} must be between {low} and {high}")

    return errors


def validate_day_consistency(day_data):
    """
    Validate consistency within a day object: visits are well formed,
    visit_order runs 1..n without gaps and every visit carries its day.
    """
    if not isinstance(day_data, dict):
        return ["Day must be a dictionary"]

    errors = []
    visits = day_data.get(VISITS, [])
    if not isinstance(visits, list):
        return errors

    if not visits:
        errors.append("day has no visits")

    for i, visit in enumerate(visits):
        visit_errors = validate_visit_structure(visit)
        errors.extend([f"visits[{i}].{error}" for error in visit_errors])

    orders = [v.get(VISIT_ORDER) for v in visits if isinstance(v, dict)]
    if orders != list(range(1, len(visits) + 1)):
        errors.append(f"visit_order must run 1..{len(visits)}, got {orders}")

    day_number = day_data.get(DAY)
    for i, visit in enumerate(visits):
        if isinstance(visit, dict) and visit.get(DAY) != day_number:
            errors.append(f"visits[{i}].day does not match day {day_number}")

    return errors


def check_visit_accounting(response_data, expected_visit_ids=None):
    """
    Every planned visit id appears in exactly one day, and planned plus
    unplanned ids equal the input ids when those are known.
    """
    errors = []
    planned_ids = []
    for day in response_data.get(DATA, []):
        if isinstance(day, dict):
            planned_ids.extend(v.get(VISIT_ID) for v in day.get(VISITS, []) if isinstance(v, dict))

    unplanned_ids = [v.get(VISIT_ID) for v in response_data.get(UNPLANNED_VISITS, [])
                     if isinstance(v, dict)]

    seen = set()
    duplicates = set()
    for visit_id in planned_ids:
        if visit_id in seen:
            duplicates.add(visit_id)
        seen.add(visit_id)
    if duplicates:
        errors.append(f"Visits planned more than once: {sorted(map(str, duplicates))}")

    if expected_visit_ids is not None:
        expected = set(expected_visit_ids)
        accounted = set(planned_ids) | set(unplanned_ids)
        missing = expected - accounted
        extra = set(planned_ids) - expected
        if missing:
            errors.append(f"Visits missing from the plan: {sorted(map(str, missing))}")
        if extra:
            errors.append(f"Unknown visits in the plan: {sorted(map(str, extra))}")

    return errors


def validate_field_ordering(data_structure, expected_order=None, field_type="day"):
    """
    Validate that fields are in the expected order

    Returns:
        list: List of field ordering issues
    """
    if expected_order is None:
        expected_order = DAY_FIELD_ORDER

    if not isinstance(data_structure, dict):
        return [f"{field_type} must be a dictionary"]

    actual_fields = list(data_structure.keys())
    issues = []

    missing_fields = [field for field in expected_order if field not in actual_fields]
    if missing_fields:
        issues.append(f"Missing required fields: {missing_fields}")

    expected_fields_present = [field for field in expected_order if field in actual_fields]
    for i, field in enumerate(expected_fields_present):
        actual_index = actual_fields.index(field)
        if actual_index != i:
            issues.append(f"Field order warning: {field} is at position {actual_index}, expected {i}")

    return issues
