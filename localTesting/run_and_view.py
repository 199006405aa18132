import subprocess
import threading
import time
import sys
import argparse
import os
import json
import requests

# Add parent directory to Python path to import logger and other modules
sys.path.append('..')
from logger import clear_logs

SAMPLE_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "sample_visits.json")
PORT = 5000


def start_fastapi():
    """Start the FastAPI server"""
    print(f"🚀 Starting FastAPI on 0.0.0.0:{PORT}")
    # Change to parent directory to start FastAPI from root
    parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    subprocess.run(["uvicorn", "main:app", "--host", "0.0.0.0", "--port", str(PORT), "--log-level", "info"],
                   cwd=parent_dir)


def call_planning_api(request_body):
    """Call the FastAPI planning endpoint"""
    url = f"http://localhost:{PORT}/plan-days"

    try:
        print(f"📡 Calling planning API: {url}")
        print(f"⏳ Planning {len(request_body.get('visits', []))} visits over {request_body.get('num_days')} days...")

        response = requests.post(url, json=request_body, timeout=300)
        response.raise_for_status()

        result = response.json()
        print("✅ API response received successfully!")
        return result

    except requests.exceptions.ConnectionError:
        print(f"❌ Could not connect to FastAPI server. Make sure it's running on port {PORT}.")
        return None
    except requests.exceptions.Timeout:
        print("❌ API request timed out.")
        return None
    except requests.exceptions.RequestException as e:
        print(f"❌ API request failed: {e}")
        return None
    except json.JSONDecodeError as e:
        print(f"❌ Invalid JSON response: {e}")
        return None


def display_day_analytics(result):
    """Display per-day workload and route analytics in the terminal"""
    print("\n" + "📅" + "="*78 + "📅")
    print("📊 MULTI-DAY PLAN DASHBOARD")
    print("📅" + "="*78 + "📅")

    if result["status"] != "true":
        print("❌ Planning failed - no analytics available")
        return

    days = result["data"]
    unplanned = result.get("unplannedVisits", [])
    summary = result.get("summary", {})

    print(f"\n📈 PLAN OVERVIEW")
    print("─" * 50)
    print(f"   📅 Working Days: {summary.get('working_days', len(days))} of {result.get('num_days')} requested")
    print(f"   📍 Stops Planned: {summary.get('total_stops', 0)}")
    print(f"   ⚠️  Stops Unplanned: {len(unplanned)}")
    print(f"   🚗 Total Miles: {summary.get('total_miles', 0.0):.1f}")
    print(f"   ⚖️  Cost Spread: {summary.get('cost_spread_minutes', 0.0):.0f} min")

    if not days:
        print(f"\nℹ️  No days were planned")
        return

    average = sum(day["total_minutes"] for day in days) / len(days)

    print(f"\n🗓️  DAY BY DAY")
    print("─" * 50)
    for day in days:
        deviation = (day["total_minutes"] - average) / average if average > 0 else 0

        # Workload categorization relative to the average day
        if abs(deviation) <= 0.15:
            icon, label = "🟢", "BALANCED"
        elif abs(deviation) <= 0.30:
            icon, label = "🟡", "UNEVEN"
        else:
            icon, label = "🔴", "HEAVY" if deviation > 0 else "LIGHT"

        print(f"   {day['day_name']:9}: {icon} {label:9} | {len(day['visits']):2d} stops | "
              f"{day['total_distance_miles']:6.1f} mi | {day['drive_minutes']:5.0f} drive + "
              f"{day['service_minutes']:5.0f} service = {day['total_minutes']:5.0f} min")
        for visit in day["visits"]:
            print(f"      {visit['visit_order']:2d}. {visit.get('name') or visit['id']} - {visit.get('address') or ''}")

    if unplanned:
        print(f"\n⚠️  UNPLANNED VISITS")
        print("─" * 50)
        for i, visit in enumerate(unplanned[:5]):
            print(f"   {i+1}. Visit {visit['id']}: {visit.get('reason')}")
        if len(unplanned) > 5:
            print(f"   ... and {len(unplanned) - 5} more")

    print("\n" + "📅" + "="*78 + "📅\n")


def wait_for_server():
    """Wait for FastAPI server to be ready"""
    max_attempts = 30
    for attempt in range(max_attempts):
        try:
            response = requests.get(f"http://localhost:{PORT}/health", timeout=2)
            if response.status_code == 200:
                print("✅ FastAPI server is ready!")
                return True
        except requests.exceptions.RequestException:
            pass

        if attempt == 0:
            print("⏳ Waiting for FastAPI server to start...")
        time.sleep(1)

    print("❌ Server failed to start within timeout period")
    print(f"💡 Try manually running: uvicorn main:app --host 0.0.0.0 --port {PORT}")
    return False


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Multi-Day Plan Dashboard')
    parser.add_argument('--file', type=str, default=SAMPLE_FILE,
                        help='JSON request body to post to /plan-days')
    parser.add_argument('--days', type=int, default=None,
                        help='Override num_days from the request file')
    args = parser.parse_args()

    # Clear logs at the start
    clear_logs()

    with open(args.file) as f:
        body = json.load(f)
    if args.days is not None:
        body["num_days"] = args.days

    try:
        server_thread = threading.Thread(target=start_fastapi, daemon=True)
        server_thread.start()

        if not wait_for_server():
            sys.exit(1)

        result = call_planning_api(body)
        if not result:
            print("❌ Planning API call failed")
            sys.exit(1)

        display_day_analytics(result)

    except KeyboardInterrupt:
        print("\n🛑 Interrupted by user")
        sys.exit(0)
