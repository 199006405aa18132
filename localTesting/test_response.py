import copy

import pytest

from algorithm.response import (
    build_plan_summary, build_standard_response, create_error_response,
    create_standard_day, create_unplanned_visit, validate_response_structure
)
from algorithm.validate_response import validate_field_ordering, validate_plan_response


def _day(day_number, visit_ids, minutes=100.0, miles=10.0):
    return {
        "day": day_number,
        "day_name": "Monday",
        "centroid": {"latitude": 40.0, "longitude": -75.0},
        "total_distance_miles": miles,
        "drive_minutes": miles * 2,
        "service_minutes": minutes - miles * 2,
        "total_minutes": minutes,
        "ordering_source": "nearest_neighbor",
        "visits": [
            {"id": vid, "lat": 40.0 + i / 100, "lng": -75.0, "visit_order": i + 1}
            for i, vid in enumerate(visit_ids)
        ],
    }


@pytest.fixture
def response():
    return build_standard_response(
        "true", 0.5,
        [_day(1, ["a", "b"], 120.0, 12.0), _day(2, ["c"], 90.0, 6.5)],
        [create_unplanned_visit({"id": "z", "lat": 91, "lng": 0}, "invalid coordinates")],
        "multi_day_balanced", 2)


def test_standard_day_renames_coordinates_and_tags_day():
    day = create_standard_day(_day(3, ["a"]))

    visit = day["visits"][0]
    assert list(visit)[:3] == ["id", "latitude", "longitude"]
    assert "lat" not in visit
    assert visit["day"] == 3
    assert list(day) == ["day", "day_name", "centroid", "total_distance_miles", "drive_minutes",
                         "service_minutes", "total_minutes", "ordering_source", "visits"]


def test_summary_totals(response):
    assert response["summary"] == {
        "total_stops": 3,
        "working_days": 2,
        "total_miles": 18.5,
        "cost_spread_minutes": 30.0,
    }
    assert build_plan_summary([])["total_stops"] == 0


def test_valid_response_passes(response):
    assert validate_plan_response(response, ["a", "b", "c", "z"]) == (True, [])
    assert validate_response_structure(response) == (True, [])
    assert validate_field_ordering(response["data"][0]) == []


def test_missing_visit_is_reported(response):
    is_valid, errors = validate_plan_response(response, ["a", "b", "c", "z", "lost"])

    assert not is_valid
    assert any("lost" in e for e in errors)


def test_duplicate_visit_is_reported(response):
    broken = copy.deepcopy(response)
    broken["data"][1]["visits"].append(dict(broken["data"][0]["visits"][0], visit_order=2, day=2))

    is_valid, errors = validate_plan_response(broken)

    assert not is_valid
    assert any("more than once" in e for e in errors)


def test_visit_order_gap_is_reported(response):
    broken = copy.deepcopy(response)
    broken["data"][0]["visits"][1]["visit_order"] = 5

    is_valid, errors = validate_plan_response(broken)

    assert not is_valid
    assert any("visit_order" in e for e in errors)


def test_out_of_range_coordinates_are_reported(response):
    broken = copy.deepcopy(response)
    broken["data"][0]["visits"][0]["latitude"] = 120

    is_valid, errors = validate_plan_response(broken)

    assert not is_valid
    assert any("latitude must be between" in e for e in errors)


def test_error_response_shape():
    response = create_error_response("boom", 0.1, "multi_day_balanced", "3")

    assert response["status"] == "false"
    assert response["num_days"] == 3
    assert response["data"] == [] and response["unplannedVisits"] == []
    assert response["metadata"]["error_message"] == "boom"
    assert validate_response_structure(response) == (True, [])
    assert validate_plan_response(response) == (True, [])


def test_non_dict_response_is_invalid():
    assert validate_plan_response(["nope"]) == (False, ["Response must be a dictionary"])
