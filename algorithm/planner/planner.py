"""
Multi-day planning pipeline.

plan_days is the pure core: grouping, partitioning and balancing over
in-memory visits. run_planning wraps it for request dictionaries with
input preparation, day sequencing, response building, validation,
logging and progress output.
"""

import time

import numpy as np

from logger import get_logger
from progress import get_progress_tracker
from algorithm.base.base import (
    distance, coordinate_from_dict, validate_input_data, prepare_visits
)
from algorithm.base.models import DayBucket
from algorithm.grouping.grouping import identify_proximity_groups
from algorithm.partition.partition import partition_groups, repair_empty_buckets
from algorithm.balance.balance import LoadBalancer
from algorithm.response.response_builder import (
    build_standard_response, create_error_response, log_response_metrics
)
from algorithm.response.response_standards import create_unplanned_visit
from algorithm.validate_response import validate_plan_response
from ordering.order_integration import get_order_integration
from ordering.sequencer import sequence_day

__all__ = ["plan_days", "run_planning", "distance", "sequence_day"]

OPTIMIZATION_MODE = "multi_day_balanced"


def plan_days(visits, num_days, home_base=None, grouping_policy=None, rng=None,
              move_finders=None, progress=None):
    """
    Assign visits to num_days day buckets.

    Returns buckets in stable index order with unordered visits. An empty
    list comes back for num_days <= 0 or no visits; with no more visits
    than days every visit gets a bucket of its own.
    """
    logger = get_logger()
    visits = list(visits)

    try:
        num_days = int(num_days)
    except (TypeError, ValueError):
        return []
    if num_days <= 0 or not visits:
        return []

    if len(visits) <= num_days:
        logger.log_clustering_decision("one-bucket-per-visit", len(visits), len(visits),
                                       "no clustering needed", "planner.py")
        return [DayBucket(index=i, centroid=v.coordinate, visits=(v,)) for i, v in enumerate(visits)]

    if progress:
        progress.start_stage("Proximity Grouping", "Merging adjacent stops...")
    groups = identify_proximity_groups(visits, grouping_policy)
    if progress:
        progress.complete_stage(f"{len(groups)} stops from {len(visits)} visits")
        progress.start_stage("Geographic Partitioning", f"Clustering stops into {num_days} days...")

    buckets = partition_groups(groups, num_days, home_base, rng)
    # Fewer groups than days leaves empty buckets only a visit move can fill
    buckets = repair_empty_buckets(buckets)
    if progress:
        progress.complete_stage(f"Day sizes: {[len(b.visits) for b in buckets]}")
        progress.start_stage("Load Balancing", "Equalizing drive plus service time...")

    balancer = LoadBalancer(home_base, groups, move_finders)
    buckets = balancer.balance(buckets)
    if progress:
        if home_base is None:
            progress.complete_stage("Skipped, no home base")
        else:
            progress.complete_stage(f"{len(balancer.moves)} balancing moves")

    logger.info(f"Planned {len(visits)} visits into {num_days} days "
                f"with {len(balancer.moves)} balancing moves")
    return buckets


def run_planning(request, rng=None):
    """
    Plan a request dictionary end to end and return a standardized response.

    Request keys: visits (list of dicts), num_days, optional home_base,
    grouping_policy and seed.
    """
    start_time = time.time()

    logger = get_logger()
    progress = get_progress_tracker()
    num_days = request.get('num_days', 0) if isinstance(request, dict) else 0

    try:
        # STAGE 1: Input validation & preparation
        errors = validate_input_data(request)
        if errors:
            return create_error_response(
                "; ".join(errors), time.time() - start_time, OPTIMIZATION_MODE, num_days)

        num_days = int(request['num_days'])
        records = request['visits']
        home_base = coordinate_from_dict(request.get('home_base'))
        home_base_dict = home_base.as_dict() if home_base is not None else None

        progress.start_planning(len(records), num_days)
        progress.start_stage("Input Validation", "Preparing visit records...")
        logger.step_start("Input Validation", "planner.py")

        visits, rejected = prepare_visits(records)
        unplanned = [create_unplanned_visit({**item['record'], 'id': item['id']}, item['reason'])
                     for item in rejected]
        input_ids = [v.id for v in visits] + [item['id'] for item in rejected]

        logger.log_input_summary(len(visits), num_days, home_base, "planner.py")
        progress.complete_stage(f"{len(visits)} visits ready, {len(rejected)} not plannable")
        logger.step_complete("Input Validation", "planner.py")

        if num_days <= 0 or not visits:
            logger.warning(f"Nothing to plan (visits={len(visits)}, num_days={num_days})")
            unplanned.extend(
                create_unplanned_visit({**v.payload, 'id': v.id}, "no working days") for v in visits)
            response = build_standard_response(
                "true", time.time() - start_time, [], unplanned,
                OPTIMIZATION_MODE, num_days, home_base_dict)
            progress.show_final_summary(response)
            return response

        if rng is None:
            rng = np.random.default_rng(request.get('seed'))

        # STAGE 2-4: Grouping, partitioning and balancing
        logger.step_start("Planning Days", "planner.py")
        buckets = plan_days(visits, num_days, home_base, request.get('grouping_policy'), rng,
                            progress=progress)
        logger.step_complete("Planning Days", "planner.py",
                             f"- {sum(1 for b in buckets if not b.is_empty())} working days")

        # STAGE 5: Day sequencing
        progress.start_stage("Day Sequencing", "Ordering stops within each day...")
        day_plans = get_order_integration().apply_day_ordering(buckets, home_base)
        logger.log_day_summary(day_plans, "planner.py")
        progress.complete_stage(f"{len(day_plans)} days sequenced")

        # STAGE 6: Final validation
        progress.start_stage("Final Validation", "Checking visit accounting...")
        response = build_standard_response(
            "true", time.time() - start_time, day_plans, unplanned,
            OPTIMIZATION_MODE, num_days, home_base_dict,
            metadata={"grouping_policy": request.get('grouping_policy') or "auto"})

        planned_count = sum(len(b.visits) for b in buckets)
        discrepancy = len(input_ids) - planned_count - len(unplanned)
        logger.log_accounting_check(len(input_ids), planned_count, unplanned, discrepancy, "planner.py")

        is_valid, validation_errors = validate_plan_response(response, input_ids)
        if is_valid:
            progress.complete_stage("Plan validated")
        else:
            logger.critical(f"Plan failed validation: {validation_errors}")
            progress.fail_stage("Plan failed validation")

        response['execution_time'] = time.time() - start_time
        log_response_metrics(response, OPTIMIZATION_MODE)
        progress.show_final_summary(response)
        return response

    except Exception as e:
        logger.error(f"Planning failed: {e}", exc_info=True)
        progress.fail_stage(str(e))
        progress.fail_planning(str(e))
        return create_error_response(
            str(e), time.time() - start_time, OPTIMIZATION_MODE, num_days)
