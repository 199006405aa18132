from datetime import datetime


class ProgressTracker:
    def __init__(self):
        self.start_time = None
        self.current_stage = ""
        self.stages = [
            "Input Validation",
            "Proximity Grouping",
            "Geographic Partitioning",
            "Load Balancing",
            "Day Sequencing",
            "Final Validation"
        ]
        self.current_stage_index = 0
        self.stage_details = {}
        self.planning_started = False

    def start_planning(self, visit_count, num_days):
        self.start_time = datetime.now()
        self.planning_started = True
        self.current_stage = ""
        self.current_stage_index = 0
        self.stage_details = {}
        print(f"\n🚀 Starting Multi-Day Planning")
        print(f"📋 Visits: {visit_count} | Working days: {num_days}")
        print(f"⏰ Started at: {self.start_time.strftime('%H:%M:%S')}")
        print("="*60)

    def start_stage(self, stage_name, details=""):
        if not self.planning_started:
            return

        self.current_stage = stage_name
        if stage_name in self.stages:
            self.current_stage_index = self.stages.index(stage_name) + 1

        progress = (self.current_stage_index / len(self.stages)) * 100
        bar_length = 30
        filled_length = int(bar_length * self.current_stage_index // len(self.stages))
        bar = '█' * filled_length + '░' * (bar_length - filled_length)

        print(f"\n📊 Stage {self.current_stage_index}/{len(self.stages)}: {stage_name}")
        print(f"[{bar}] {progress:.1f}%")
        if details:
            print(f"   {details}")

        self.stage_details[stage_name] = {
            'start_time': datetime.now(),
            'details': details
        }

    def update_stage_progress(self, message):
        if not self.planning_started:
            return

        elapsed = datetime.now() - self.stage_details.get(self.current_stage, {}).get('start_time', datetime.now())
        print(f"   ⏳ {message} (Elapsed: {elapsed.total_seconds():.1f}s)")

    def complete_stage(self, summary):
        if not self.planning_started:
            return

        if self.current_stage in self.stage_details:
            elapsed = datetime.now() - self.stage_details[self.current_stage]['start_time']
            print(f"   ✅ {summary} (Completed in {elapsed.total_seconds():.1f}s)")

    def fail_stage(self, reason: str):
        """Mark current stage as failed"""
        if self.current_stage:
            print(f"❌ Stage '{self.current_stage}' failed: {reason}")
        else:
            print(f"❌ Planning failed: {reason}")

    def show_final_summary(self, result):
        """Show final summary of the plan"""
        if not self.planning_started:
            return

        days = result.get("data", [])
        unplanned = result.get("unplannedVisits", [])
        total_planned = sum(len(day.get("visits", [])) for day in days)
        total_miles = sum(day.get("total_distance_miles", 0) for day in days)

        print(f"\n{'='*60}")
        print(f"🎯 PLANNING COMPLETED SUCCESSFULLY")
        print(f"{'='*60}")
        print(f"📅 Working Days: {len(days)}")
        print(f"📍 Stops Planned: {total_planned}")
        print(f"⚠️  Stops Unplanned: {len(unplanned)}")
        print(f"🚗 Total Miles: {total_miles:.1f}")
        print(f"⏰ Total Time: {result.get('execution_time', 0):.1f}s")
        print(f"{'='*60}")

        self.planning_started = False

    def fail_planning(self, error_message):
        """Handle planning failure"""
        if not self.planning_started:
            return

        print(f"\n{'='*60}")
        print(f"❌ PLANNING FAILED")
        print(f"{'='*60}")
        print(f"🚫 Error: {error_message}")
        if self.start_time:
            elapsed_time = datetime.now() - self.start_time
            print(f"⏰ Failed after: {elapsed_time.total_seconds():.1f}s")
        print(f"{'='*60}")

        self.planning_started = False


# Global progress tracker
progress_tracker = ProgressTracker()


def get_progress_tracker():
    return progress_tracker
