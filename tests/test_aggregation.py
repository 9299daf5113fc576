import pytest

from desk_treadmill.aggregation import aggregate, label_predicate, meters_to_miles, name_matches
from desk_treadmill.models import Activity


def test_aggregate_matches_trimmed_case_insensitive_names():
    activities = [
        Activity(id=1, name="Desk Treadmill", distance=1000),
        Activity(id=2, name="desk treadmill ", distance=500),
        Activity(id=3, name="Run", distance=5000),
    ]
    result = aggregate(activities)
    assert result.match_count == 2
    assert result.total_distance_meters == pytest.approx(1500)
    assert meters_to_miles(result.total_distance_meters) == pytest.approx(0.932, abs=1e-3)
    assert result.total_miles == pytest.approx(0.9320565)


def test_aggregate_empty_collection_is_zero():
    result = aggregate([])
    assert result.match_count == 0
    assert result.total_distance_meters == 0.0


def test_aggregate_does_not_mutate_activities():
    activities = [Activity(id=1, name="Desk Treadmill", distance=1609.34)]
    aggregate(activities)
    assert activities[0].distance == 1609.34


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Desk Treadmill", True),
        ("  DESK TREADMILL\t", True),
        ("Desk  Treadmill", False),
        ("Desk Treadmill Walk", False),
        ("", False),
        (None, False),
    ],
)
def test_name_matches_is_exact_after_trim(name, expected):
    assert name_matches(name) is expected


def test_custom_label_predicate():
    activities = [
        Activity(id=1, name="Lunch Walk", distance=2000),
        Activity(id=2, name="Desk Treadmill", distance=900),
    ]
    result = aggregate(activities, label_predicate("lunch walk"))
    assert result.match_count == 1
    assert result.total_distance_meters == 2000


def test_meters_to_miles_one_mile():
    assert meters_to_miles(1609.344) == pytest.approx(1.0, rel=1e-5)
