"""Tests for the single-page fetcher and its backoff policy."""

import pytest
import requests

from conftest import FakeResp, FakeSession, make_activity_json
from desk_treadmill.strava_client.pagination import PageFetcher, backoff, parse_activities

RATE_HEADERS = {"X-RateLimit-Usage": "10,100", "X-RateLimit-Limit": "100,1000"}


def _fetcher(session, sleeps):
    return PageFetcher(session, base_url="https://api.test/v3", sleep=sleeps.append)


@pytest.mark.parametrize(
    "attempt,expected", [(1, 1.0), (2, 2.0), (3, 4.0), (5, 16.0), (6, 30.0), (10, 30.0), (0, 1.0)]
)
def test_backoff_is_capped_exponential(attempt, expected):
    assert backoff(attempt) == expected


def test_fetch_page_success_builds_request_and_parses(sleeps):
    body = [make_activity_json(1, "Desk Treadmill", 1609.3), make_activity_json(2)]
    session = FakeSession(gets=[FakeResp(200, data=body, headers=RATE_HEADERS)])
    result = _fetcher(session, sleeps).fetch_page("TOKEN", 3)

    assert result.status == 200
    assert [a.id for a in result.activities] == [1, 2]
    assert result.activities[0].distance == pytest.approx(1609.3)
    assert result.rate_limit.short_window == (10, 100)
    assert str(result.rate_limit) == "usage=10,100 limit=100,1000"
    call = session.get_calls[0]
    assert call["url"] == "https://api.test/v3/athlete/activities"
    assert call["params"] == {"per_page": 200, "page": 3}
    assert call["headers"] == {"Authorization": "Bearer TOKEN"}
    assert sleeps == []


def test_fetch_page_retries_429_with_backoff(sleeps):
    session = FakeSession(
        gets=[FakeResp(429), FakeResp(429), FakeResp(200, data=[make_activity_json(7)])]
    )
    result = _fetcher(session, sleeps).fetch_page("T", 1)
    assert result.status == 200
    assert len(result.activities) == 1
    assert sleeps == [1.0, 2.0]
    assert [c["params"]["page"] for c in session.get_calls] == [1, 1, 1]


def test_fetch_page_429_exhausted_returns_last_status(sleeps):
    session = FakeSession(gets=[FakeResp(429)] * 3)
    result = _fetcher(session, sleeps).fetch_page("T", 2)
    assert result.status == 429
    assert result.activities == []
    assert sleeps == [1.0, 2.0, 4.0]


def test_fetch_page_transport_errors_exhausted_returns_status_zero(sleeps):
    session = FakeSession(
        gets=[
            requests.ConnectionError("refused"),
            requests.Timeout("slow"),
            requests.exceptions.ChunkedEncodingError("cut"),
        ]
    )
    result = _fetcher(session, sleeps).fetch_page("T", 1)
    assert result.status == 0
    assert result.activities == []
    assert len(session.get_calls) == 3
    assert sleeps == [1.0, 2.0, 4.0]


def test_fetch_page_transport_error_then_success(sleeps):
    session = FakeSession(
        gets=[requests.ConnectionError("reset"), FakeResp(200, data=[make_activity_json(1)])]
    )
    result = _fetcher(session, sleeps).fetch_page("T", 4)
    assert result.status == 200
    assert sleeps == [1.0]


def test_fetch_page_401_returns_immediately_without_retry(sleeps):
    session = FakeSession(
        gets=[FakeResp(401, data={"message": "Authorization Error"}, headers=RATE_HEADERS)]
    )
    result = _fetcher(session, sleeps).fetch_page("T", 1)
    assert result.status == 401
    assert result.activities == []
    assert result.rate_limit.usage == "10,100"
    assert len(session.get_calls) == 1
    assert sleeps == []


@pytest.mark.parametrize("status", [403, 404, 500, 502])
def test_fetch_page_other_status_is_returned_without_retry(status, sleeps):
    session = FakeSession(gets=[FakeResp(status, text="<html>down</html>")])
    result = _fetcher(session, sleeps).fetch_page("T", 1)
    assert result.status == status
    assert result.error == "<html>down</html>"
    assert len(session.get_calls) == 1
    assert sleeps == []


@pytest.mark.parametrize(
    "body",
    [
        '{"not": "a list"}',
        '[{"id": "x", "name": "Run", "distance": 1}]',
        '[{"id": 1, "name": "Run"}]',
        "not json at all",
    ],
)
def test_fetch_page_malformed_body_is_flagged(body, sleeps):
    session = FakeSession(gets=[FakeResp(200, text=body)])
    result = _fetcher(session, sleeps).fetch_page("T", 1)
    assert result.status == 200
    assert result.activities == []
    assert result.malformed is True


def test_parse_activities_ignores_extra_fields():
    activities = parse_activities(
        [{"id": 5, "name": "Walk", "distance": 42, "moving_time": 60, "type": "Walk"}]
    )
    assert activities[0].id == 5
    assert activities[0].distance == 42.0


def test_rate_limit_observer_logs_near_limit_without_sleeping(caplog, sleeps):
    headers = {"X-RateLimit-Usage": "98,400", "X-RateLimit-Limit": "100,1000"}
    session = FakeSession(gets=[FakeResp(200, data=[], headers=headers)])
    with caplog.at_level("INFO"):
        result = _fetcher(session, sleeps).fetch_page("T", 1)
    assert result.rate_limit.long_window == (400, 1000)
    assert "Approaching short-window rate limit (98/100)" in caplog.text
    assert sleeps == []
