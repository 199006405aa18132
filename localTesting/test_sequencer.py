import pytest

from algorithm.base.models import DayBucket
from ordering.sequencer import calculate_route_distance, calculate_service_minutes, sequence_day
from ordering.order_integration import OrderIntegration, day_name
from conftest import offset


def test_nearest_neighbor_walk_from_home(home, make_visit):
    visits = [
        make_visit("three", offset(home, 3.0)),
        make_visit("one", offset(home, 1.0)),
        make_visit("two", offset(home, 2.0)),
    ]

    ordered = sequence_day(visits, home)

    assert [v.id for v in ordered] == ["one", "two", "three"]
    assert [v.id for v in visits] == ["three", "one", "two"]


def test_exact_tie_goes_to_first_candidate(home, make_visit):
    spot = offset(home, 1.0)
    visits = [make_visit("first", spot), make_visit("second", spot)]

    assert [v.id for v in sequence_day(visits, home)] == ["first", "second"]


def test_without_home_base_order_is_unchanged(scattered_visits):
    assert sequence_day(scattered_visits, None) == scattered_visits


def test_sequence_is_a_permutation(home, scattered_visits):
    ordered = sequence_day(scattered_visits, home)

    assert len(ordered) == len(scattered_visits)
    assert {v.id for v in ordered} == {v.id for v in scattered_visits}


def test_route_distance_includes_return_leg(home, make_visit):
    ordered = [make_visit("one", offset(home, 1.0)), make_visit("three", offset(home, 3.0))]

    assert calculate_route_distance(ordered, home) == pytest.approx(6.0, rel=1e-6)
    assert calculate_route_distance(ordered, None) == 0.0
    assert calculate_route_distance([], home) == 0.0


def test_service_minutes_sum(home, make_visit):
    assert calculate_service_minutes([make_visit("a", home, 30), make_visit("b", home, 45.5)]) == 75.5


@pytest.mark.parametrize("index, expected", [(0, "Monday"), (4, "Friday"), (6, "Sunday"), (7, "Day 8")])
def test_day_names(index, expected):
    assert day_name(index) == expected


def test_day_ordering_drops_empty_days_and_numbers_stops(home, make_visit):
    buckets = [
        DayBucket(0, home, (make_visit("far", offset(home, 2.0), 30), make_visit("near", offset(home, 1.0), 30))),
        DayBucket(1, home, ()),
        DayBucket(2, home, (make_visit("solo", offset(home, 0.5), 60),)),
    ]

    plans = OrderIntegration(minutes_per_mile=2.0).apply_day_ordering(buckets, home)

    assert [p["day"] for p in plans] == [1, 3]
    assert [p["day_name"] for p in plans] == ["Monday", "Wednesday"]

    monday = plans[0]
    assert [(v["id"], v["visit_order"]) for v in monday["visits"]] == [("near", 1), ("far", 2)]
    assert monday["total_distance_miles"] == pytest.approx(4.0, abs=0.01)
    assert monday["drive_minutes"] == pytest.approx(8.0, abs=0.1)
    assert monday["service_minutes"] == 60.0
    assert monday["total_minutes"] == pytest.approx(68.0, abs=0.1)
    assert monday["ordering_source"] == "nearest_neighbor"


def test_day_ordering_without_home_base_keeps_input_order(home, make_visit):
    bucket = DayBucket(0, home, (make_visit("far", offset(home, 2.0)), make_visit("near", offset(home, 1.0))))

    plan = OrderIntegration().order_day(bucket, None)

    assert [v["id"] for v in plan["visits"]] == ["far", "near"]
    assert plan["total_distance_miles"] == 0.0
    assert plan["ordering_source"] == "input_order"
