"""Distance aggregation helpers.

Pure transformation: given the fetched activities it counts those whose name
matches the target label and sums their distance. Unit conversion happens
only when a result is presented.
"""

from __future__ import annotations

from typing import Callable, Iterable

from .config import METERS_TO_MILES, TARGET_ACTIVITY_NAME
from .models import Activity, AggregateResult

Predicate = Callable[[Activity], bool]


def name_matches(name: str | None, label: str = TARGET_ACTIVITY_NAME) -> bool:
    """Case-insensitive, whitespace-trimmed exact comparison of ``name`` to ``label``."""

    if name is None:
        return False
    return name.strip().casefold() == label.strip().casefold()


def label_predicate(label: str = TARGET_ACTIVITY_NAME) -> Predicate:
    return lambda activity: name_matches(activity.name, label)


def aggregate(
    activities: Iterable[Activity], predicate: Predicate | None = None
) -> AggregateResult:
    match = predicate or label_predicate()
    count = 0
    total = 0.0
    for activity in activities:
        if match(activity):
            count += 1
            total += activity.distance
    return AggregateResult(match_count=count, total_distance_meters=total)


def meters_to_miles(meters: float) -> float:
    return meters * METERS_TO_MILES
