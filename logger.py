import logging
import os
from datetime import datetime
import glob


def _default_log_dir():
    return os.getenv("PLANNER_LOG_DIR", "logs")


def clear_logs(log_dir=None):
    """Clear all existing log files before starting a new session"""
    import sys
    log_dir = log_dir or _default_log_dir()
    # Handle Windows console encoding issues
    safe_print = lambda msg: print(msg.encode(sys.stdout.encoding or 'utf-8', errors='replace').decode(sys.stdout.encoding or 'utf-8'))

    if os.path.exists(log_dir):
        log_files = glob.glob(os.path.join(log_dir, "planning_*.log"))
        removed_count = 0
        for log_file in log_files:
            try:
                os.remove(log_file)
                removed_count += 1
            except OSError as e:
                safe_print(f"Warning: Could not remove {log_file}: {e}")

        if removed_count > 0:
            safe_print(f"[CLEARED] Removed {removed_count} old log files from {log_dir}/")
        else:
            safe_print(f"[INFO] No existing log files found in {log_dir}/")
    else:
        safe_print(f"[INFO] Log directory {log_dir}/ doesn't exist yet")


class DayPlanLogger:
    def __init__(self, log_dir=None):
        self.log_dir = log_dir or _default_log_dir()
        os.makedirs(self.log_dir, exist_ok=True)

        # Milliseconds keep back-to-back sessions unique
        self.session_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]

        self.logger = logging.getLogger('day_planning')
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()

        log_file = os.path.join(self.log_dir, f"planning_{self.session_timestamp}.log")
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8', delay=True)
        file_handler.setLevel(logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)8s | %(funcName)20s:%(lineno)4d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)

        self.log_file = log_file

        self.log_session_start()

    def log_session_start(self):
        self.logger.info("="*80)
        self.logger.info("DAY PLANNING SESSION STARTED")
        self.logger.info(f"Session ID: {self.session_timestamp}")
        self.logger.info("="*80)

    def info(self, message, file_context=None):
        """Info message with optional file context"""
        if file_context:
            self.logger.info(f"[{file_context}] {message}", stacklevel=2)
        else:
            self.logger.info(message, stacklevel=2)

    def warning(self, message, file_context=None):
        """Warning message with optional file context"""
        if file_context:
            self.logger.warning(f"[{file_context}] {message}", stacklevel=2)
        else:
            self.logger.warning(message, stacklevel=2)

    def error(self, message, file_context=None, exc_info=False):
        """Error message with optional file context"""
        if file_context:
            self.logger.error(f"[{file_context}] {message}", exc_info=exc_info, stacklevel=2)
        else:
            self.logger.error(message, exc_info=exc_info, stacklevel=2)

    def critical(self, message, file_context=None):
        if file_context:
            self.logger.critical(f"[{file_context}] {message}", stacklevel=2)
        else:
            self.logger.critical(message, stacklevel=2)

    def debug(self, message, file_context=None):
        if file_context:
            self.logger.debug(f"[{file_context}] {message}", stacklevel=2)
        else:
            self.logger.debug(message, stacklevel=2)

    def step_start(self, step_name, file_context):
        """Log the start of a major step"""
        self.logger.info("=" * 80)
        self.logger.info(f"🚀 STARTING: {step_name} | FILE: {file_context}")
        self.logger.info("=" * 80)

    def step_complete(self, step_name, file_context, details=""):
        """Log the completion of a major step"""
        self.logger.info(f"✅ COMPLETED: {step_name} | FILE: {file_context} {details}")
        self.logger.info("-" * 60)

    def log_input_summary(self, visit_count, num_days, home_base, file_context):
        self.info(f"INPUT - Visits: {visit_count}, Days: {num_days}", file_context)
        self.info(f"Home base: {home_base if home_base else 'not set'}", file_context)

    def log_grouping_decision(self, policy, visit_count, group_count, file_context):
        self.info(f"GROUPING - Policy: {policy}, Visits: {visit_count}, Groups: {group_count}", file_context)
        if group_count < visit_count:
            self.debug(f"Merged {visit_count - group_count} visits into shared stops", file_context)

    def log_clustering_decision(self, method, unit_count, bucket_count, details, file_context):
        self.info(f"CLUSTERING - Method: {method}, Units: {unit_count}, Buckets: {bucket_count}", file_context)
        self.debug(f"Clustering details: {details}", file_context)

    def log_balance_move(self, attempt, move, source_cost, target_cost, file_context):
        self.info(
            f"BALANCE MOVE #{attempt} - {move.kind} of {len(move.visit_ids)} visit(s) "
            f"day {move.source_index} ({source_cost:.1f} min) -> day {move.target_index} ({target_cost:.1f} min)",
            file_context)
        self.debug(f"Moved visits: {list(move.visit_ids)}", file_context)

    def log_day_summary(self, day_plans, file_context):
        self.info("="*60, file_context)
        self.info("DAY PLAN SUMMARY", file_context)
        for plan in day_plans:
            self.info(
                f"  {plan['day_name']}: {len(plan['visits'])} stops, "
                f"{plan['total_distance_miles']:.1f} mi, {plan['total_minutes']:.0f} min",
                file_context)
        self.info("="*60, file_context)

    def log_accounting_check(self, total_input, planned, unplanned, discrepancy, file_context):
        """Log the visit accounting check"""
        self.info("VISIT ACCOUNTING CHECK", file_context)
        self.info(f"Input visits: {total_input}", file_context)
        self.info(f"Planned: {planned}", file_context)

        if isinstance(unplanned, list):
            unplanned_count = len(unplanned)
        else:
            unplanned_count = unplanned
        self.info(f"Unplanned: {unplanned_count}", file_context)
        self.info(f"Total accounted: {planned + unplanned_count}", file_context)

        if discrepancy != 0:
            self.critical(f"WARNING: {discrepancy} visits unaccounted for!", file_context)
        else:
            self.info("✅ Visit accounting verified", file_context)


# Global logger instance
planning_logger = None


def get_logger():
    global planning_logger
    if planning_logger is None:
        planning_logger = DayPlanLogger()
    return planning_logger
