import numpy as np
import pytest

from algorithm.balance.balance import VisitMoveFinder
from algorithm.planner.planner import plan_days, run_planning
from conftest import HighRng, assert_partition, offset


def test_empty_visits_give_no_days(home):
    assert plan_days([], 3, home) == []


@pytest.mark.parametrize("num_days", [0, -2, "x"])
def test_invalid_day_count_gives_no_days(scattered_visits, home, num_days):
    assert plan_days(scattered_visits, num_days, home) == []


def test_fewer_visits_than_days_are_singletons(scattered_visits, home):
    visits = scattered_visits[:3]
    buckets = plan_days(visits, 5, home)

    assert len(buckets) == 3
    assert [[v.id for v in b.visits] for b in buckets] == [[v.id] for v in visits]


def test_cluster_and_outlier_without_home_base(cluster_and_outlier):
    buckets = plan_days(cluster_and_outlier, 2, None, "radius", HighRng())

    assert [sorted(v.id for v in b.visits) for b in buckets] == [["c1", "c2", "c3", "c4"], ["far"]]


def test_cluster_and_outlier_with_home_base_never_empties_a_day(cluster_and_outlier, home):
    buckets = plan_days(cluster_and_outlier, 2, home, "radius", np.random.default_rng(3))

    assert len(buckets) == 2
    assert all(not b.is_empty() for b in buckets)
    assert_partition(buckets, cluster_and_outlier)
    far_day = next(b for b in buckets if "far" in b.visit_ids)
    assert len(far_day.visits) <= 2


def test_more_days_than_groups_still_fills_every_day(cluster_and_outlier, home):
    # Two house groups, three days: the cluster group has to give up a visit
    buckets = plan_days(cluster_and_outlier, 3, home, "radius", HighRng())

    assert len(buckets) == 3
    assert all(not b.is_empty() for b in buckets)
    assert_partition(buckets, cluster_and_outlier)


@pytest.mark.parametrize("seed", [0, 5, 11])
@pytest.mark.parametrize("num_days", [1, 2, 4, 7])
def test_plan_is_complete_and_has_no_empty_day(scattered_visits, home, seed, num_days):
    buckets = plan_days(scattered_visits, num_days, home, rng=np.random.default_rng(seed))

    assert len(buckets) == num_days
    assert all(not b.is_empty() for b in buckets)
    assert_partition(buckets, scattered_visits)


def test_street_policy_keeps_neighbors_together(home, make_visit):
    visits = [
        make_visit("m1", offset(home, 1.0), address="10 Main St"),
        make_visit("m2", offset(home, 1.3), address="14 Main St"),
        make_visit("o1", offset(home, -2.0, 1.0), address="3 Oak Ave"),
        make_visit("o2", offset(home, -2.0, 1.4), address="7 Oak Ave"),
    ]

    buckets = plan_days(visits, 2, None, "street", HighRng())

    assert sorted(sorted(b.visit_ids) for b in buckets) == [["m1", "m2"], ["o1", "o2"]]


def test_move_finders_can_be_substituted(cluster_and_outlier, home):
    buckets = plan_days(cluster_and_outlier, 2, home, "radius", HighRng(),
                        move_finders=[VisitMoveFinder()])

    assert_partition(buckets, cluster_and_outlier)


def test_run_planning_end_to_end(home):
    request = {
        "num_days": 2,
        "home_base": home.as_dict(),
        "seed": 1,
        "visits": [
            {"id": "a", "lat": 40.01, "lng": -75.0, "name": "A"},
            {"id": "b", "lat": 40.02, "lng": -75.01},
            {"id": "c", "lat": 39.98, "lng": -74.97},
            {"id": "d", "lat": 39.97, "lng": -74.96, "price": "$100"},
            {"id": "e", "lat": "bad", "lng": -75.0},
            {"id": "f", "lat": 40.0, "lng": -75.0, "completed": True},
        ],
    }

    response = run_planning(request)

    assert response["status"] == "true"
    assert response["num_days"] == 2
    planned = [v["id"] for day in response["data"] for v in day["visits"]]
    assert sorted(planned) == ["a", "b", "c", "d"]
    assert {(v["id"], v["reason"]) for v in response["unplannedVisits"]} == {
        ("e", "invalid coordinates"), ("f", "completed")}
    assert response["summary"]["total_stops"] == 4
    assert response["summary"]["working_days"] == len(response["data"])
    assert response["home_base"] == home.as_dict()
    for day in response["data"]:
        assert [v["visit_order"] for v in day["visits"]] == list(range(1, len(day["visits"]) + 1))
        assert all(v["day"] == day["day"] for v in day["visits"])


def test_run_planning_with_no_days_returns_empty_plan():
    response = run_planning({"num_days": 0, "visits": [{"id": "a", "lat": 1, "lng": 1}]})

    assert response["status"] == "true"
    assert response["data"] == []
    assert [v["id"] for v in response["unplannedVisits"]] == ["a"]


def test_run_planning_reports_invalid_request():
    response = run_planning({"visits": "nope"})

    assert response["status"] == "false"
    assert response["data"] == []
    assert "visits must be a list" in response["metadata"]["error_message"]
