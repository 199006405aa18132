"""
Response Builder - Shared functions for building standardized day plan responses
"""

from .response_standards import (
    # Core fields
    STATUS, EXECUTION_TIME, DATA, UNPLANNED_VISITS, OPTIMIZATION_MODE, NUM_DAYS,
    HOME_BASE, SUMMARY,

    # Object creators
    create_standard_day,

    # Validation
    validate_required_fields,

    # Field constants
    VISITS, TOTAL_DISTANCE_MILES, TOTAL_MINUTES, TOTAL_STOPS, WORKING_DAYS,
    TOTAL_MILES, COST_SPREAD_MINUTES
)

import logging
import pandas as pd

logger = logging.getLogger(__name__)


def build_plan_summary(days):
    """Totals across day plans: stops, working days, miles and cost spread"""
    if not days:
        return {TOTAL_STOPS: 0, WORKING_DAYS: 0, TOTAL_MILES: 0.0, COST_SPREAD_MINUTES: 0.0}

    frame = pd.DataFrame({
        "stops": [len(day.get(VISITS, [])) for day in days],
        "miles": [float(day.get(TOTAL_DISTANCE_MILES) or 0.0) for day in days],
        "minutes": [float(day.get(TOTAL_MINUTES) or 0.0) for day in days],
    })

    return {
        TOTAL_STOPS: int(frame["stops"].sum()),
        WORKING_DAYS: int(len(frame)),
        TOTAL_MILES: round(float(frame["miles"].sum()), 2),
        COST_SPREAD_MINUTES: round(float(frame["minutes"].max() - frame["minutes"].min()), 1),
    }


def build_standard_response(
    status,
    execution_time,
    days,
    unplanned_visits,
    optimization_mode,
    num_days,
    home_base=None,
    metadata=None
):
    """
    Build a standardized response dictionary

    Args:
        status (str): "true" or "false"
        execution_time (float): Planning time in seconds
        days (list): Day plan dictionaries
        unplanned_visits (list): Standardized unplanned visit dictionaries
        optimization_mode (str): Optimization mode identifier
        num_days (int): Requested number of working days
        home_base (dict, optional): Home base coordinates
        metadata (dict, optional): Additional metadata

    Returns:
        dict: Standardized response dictionary
    """
    standardized_days = [create_standard_day(day) for day in days or []]

    response = {
        STATUS: status,
        EXECUTION_TIME: float(execution_time),
        DATA: standardized_days,
        UNPLANNED_VISITS: list(unplanned_visits or []),
        OPTIMIZATION_MODE: optimization_mode,
        NUM_DAYS: int(num_days),
        SUMMARY: build_plan_summary(standardized_days)
    }

    if home_base is not None:
        response[HOME_BASE] = home_base
    if metadata is not None:
        response['metadata'] = metadata

    missing_fields = validate_required_fields(response)
    if missing_fields:
        logger.warning(f"Response validation warnings: {missing_fields}")

    return response


def create_error_response(
    error_message,
    execution_time=0.0,
    optimization_mode="unknown",
    num_days=0,
    home_base=None
):
    """
    Create a standardized error response

    Args:
        error_message (str): Error description
        execution_time (float): Execution time before error
        optimization_mode (str): Optimization mode being used
        num_days (int): Requested number of working days
        home_base (dict, optional): Home base coordinates

    Returns:
        dict: Standardized error response
    """
    logger.error(f"Planning error: {error_message}")

    try:
        num_days = int(num_days)
    except (TypeError, ValueError):
        num_days = 0

    return build_standard_response(
        status="false",
        execution_time=execution_time,
        days=[],
        unplanned_visits=[],
        optimization_mode=optimization_mode,
        num_days=num_days,
        home_base=home_base,
        metadata={
            'error_type': 'planning_error',
            'error_message': error_message
        }
    )


def validate_response_structure(response_data):
    """
    Validate that a response conforms to the standard structure

    Returns:
        tuple: (is_valid, error_messages)
    """
    if not isinstance(response_data, dict):
        return False, ["Response must be a dictionary"]

    errors = validate_required_fields(response_data)

    if STATUS in response_data and response_data[STATUS] not in ["true", "false"]:
        errors.append("status must be 'true' or 'false'")

    if EXECUTION_TIME in response_data:
        try:
            float(response_data[EXECUTION_TIME])
        except (ValueError, TypeError):
            errors.append("execution_time must be a number")

    if NUM_DAYS in response_data:
        try:
            int(response_data[NUM_DAYS])
        except (ValueError, TypeError):
            errors.append("num_days must be an integer")

    return len(errors) == 0, errors


def log_response_metrics(response_data, mode_name):
    """
    Log metrics about the response for monitoring
    """
    if not isinstance(response_data, dict):
        return

    day_count = len(response_data.get(DATA, []))
    unplanned_count = len(response_data.get(UNPLANNED_VISITS, []))
    execution_time = response_data.get(EXECUTION_TIME, 0)
    status = response_data.get(STATUS, "unknown")
    planned_count = sum(len(day.get(VISITS, [])) for day in response_data.get(DATA, []))

    logger.info(f"Planner {mode_name} metrics:")
    logger.info(f"  Status: {status}")
    logger.info(f"  Execution time: {execution_time:.3f}s")
    logger.info(f"  Days: {day_count}")
    logger.info(f"  Unplanned visits: {unplanned_count}")

    total = planned_count + unplanned_count
    if total > 0:
        logger.info(f"  Planned rate: {planned_count / total * 100:.1f}%")
