"""Single-page fetcher for the Strava activities listing.

``PageFetcher.fetch_page`` performs one authenticated GET per attempt and
turns the outcome into a :class:`PageResult`. Transport failures and 429s are
retried with capped exponential backoff; every other status is returned to
the caller on first sight so the pagination driver can decide what to do.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

import requests

from ..config import (
    ACTIVITY_PAGE_SIZE,
    REQUEST_TIMEOUT,
    STRAVA_BACKOFF_MAX_SECONDS,
    STRAVA_BASE_URL,
    STRAVA_MAX_RETRIES,
)
from ..models import Activity, PageResult, RateLimitInfo
from ..utils import truncate
from .rate_limiter import RateLimitObserver
from .response_handling import extract_error

__all__ = ["PageFetcher", "backoff", "parse_activities"]

LOGGER = logging.getLogger(__name__)

Sleeper = Callable[[float], None]


def backoff(attempt: int, cap: float = STRAVA_BACKOFF_MAX_SECONDS) -> float:
    """Return the delay in seconds before retry ``attempt`` (1-indexed)."""

    attempt = max(attempt, 1)
    # Bound the exponent so large attempt numbers cannot overflow.
    return float(min(2 ** min(attempt - 1, 32), cap))


def parse_activities(payload: Any) -> List[Activity]:
    """Convert a decoded activities page into :class:`Activity` records.

    Raises:
        ValueError: If the payload is not a list of activity objects.
    """

    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON list, got {type(payload).__name__}")
    return [Activity.from_json(item) for item in payload]


class PageFetcher:
    def __init__(
        self,
        session: requests.Session,
        *,
        base_url: str = STRAVA_BASE_URL,
        per_page: int = ACTIVITY_PAGE_SIZE,
        max_attempts: int = STRAVA_MAX_RETRIES,
        timeout: float = REQUEST_TIMEOUT,
        sleep: Sleeper = time.sleep,
        observer: RateLimitObserver | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._session = session
        self._url = f"{base_url}/athlete/activities"
        self.per_page = per_page
        self._max_attempts = max_attempts
        self._timeout = timeout
        self._sleep = sleep
        self._log = logger or LOGGER
        self._observer = observer or RateLimitObserver(logger=self._log)

    def fetch_page(self, access_token: str, page: int) -> PageResult:
        """GET one page of activities with bounded retry/backoff."""

        params = {"per_page": self.per_page, "page": page}
        headers = {"Authorization": f"Bearer {access_token}"}
        last_status = 0
        last_rate = RateLimitInfo()
        last_error: Optional[str] = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                resp = self._session.get(
                    self._url, headers=headers, params=params, timeout=self._timeout
                )
            except requests.RequestException as exc:
                delay = backoff(attempt)
                last_error = f"{exc.__class__.__name__}: {exc}"
                self._log.warning(
                    "Activities request error page=%s attempt=%s/%s err=%s; backoff %.1fs",
                    page,
                    attempt,
                    self._max_attempts,
                    last_error,
                    delay,
                )
                self._sleep(delay)
                continue

            last_status = resp.status_code
            last_rate = self._observer.observe(resp.headers, resp.status_code)

            if resp.status_code == 200:
                try:
                    activities = parse_activities(resp.json())
                except ValueError as exc:
                    self._log.error(
                        "Malformed activities body page=%s: %s", page, exc
                    )
                    return PageResult(
                        page=page,
                        status=200,
                        rate_limit=last_rate,
                        error=f"{exc} | body={truncate(resp.text)}",
                    )
                return PageResult(
                    page=page, status=200, activities=activities, rate_limit=last_rate
                )

            last_error = extract_error(resp)

            if resp.status_code == 429:
                delay = backoff(attempt)
                self._log.warning(
                    "429 rate limited page=%s; retrying in %.1fs (attempt %s/%s)",
                    page,
                    delay,
                    attempt,
                    self._max_attempts,
                )
                self._sleep(delay)
                continue

            if resp.status_code == 401:
                self._log.warning(
                    "401 unauthorized page=%s WWW-Authenticate=%r body=%s",
                    page,
                    resp.headers.get("WWW-Authenticate", ""),
                    last_error,
                )
            else:
                self._log.error(
                    "Unexpected status=%s page=%s body=%s",
                    resp.status_code,
                    page,
                    last_error,
                )
            return PageResult(
                page=page,
                status=resp.status_code,
                rate_limit=last_rate,
                error=last_error,
            )

        self._log.error(
            "Giving up on page=%s after %s attempts (last status=%s)",
            page,
            self._max_attempts,
            last_status,
        )
        return PageResult(
            page=page, status=last_status, rate_limit=last_rate, error=last_error
        )
