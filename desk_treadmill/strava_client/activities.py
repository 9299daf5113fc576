"""Pagination driver for the athlete activities listing.

Walks pages strictly in order until a short page marks the end. Expired
tokens get exactly one re-authentication per rejection, rate limiting is
waited out indefinitely, anything else ends the run with an error.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Callable, List, Optional, Protocol

from ..config import ACTIVITY_PAGE_SIZE, RATE_LIMIT_PAUSE_SECONDS
from ..errors import (
    AuthError,
    DeskTreadmillError,
    ProtocolError,
    RateLimitError,
    StravaAPIError,
    TransportError,
)
from ..models import Activity, PageResult, TokenState

__all__ = ["ActivityPaginator", "FetchState"]

LOGGER = logging.getLogger(__name__)


class FetchState(enum.Enum):
    FETCHING = "fetching"
    REAUTHENTICATING = "reauthenticating"
    DONE = "done"
    FAILED = "failed"


class PageSource(Protocol):
    def fetch_page(self, access_token: str, page: int) -> PageResult: ...


class TokenSource(Protocol):
    @property
    def access_token(self) -> str: ...

    def refresh_access_token(self) -> TokenState: ...


class ActivityPaginator:
    def __init__(
        self,
        fetcher: PageSource,
        tokens: TokenSource,
        *,
        per_page: int = ACTIVITY_PAGE_SIZE,
        rate_limit_pause: float = RATE_LIMIT_PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._tokens = tokens
        self._per_page = per_page
        self._rate_limit_pause = rate_limit_pause
        self._sleep = sleep
        self._log = logger or LOGGER
        self.state = FetchState.FETCHING
        self.page = 1
        self.fetch_calls = 0
        self.error: Optional[DeskTreadmillError] = None

    def _fetch(self, page: int, label: str = "page") -> PageResult:
        self.fetch_calls += 1
        result = self._fetcher.fetch_page(self._tokens.access_token, page)
        self._log.info(
            "%s=%d status=%d activities=%d rateLimit=%r",
            label,
            page,
            result.status,
            len(result.activities),
            str(result.rate_limit),
        )
        return result

    def _fail(self, error: DeskTreadmillError) -> DeskTreadmillError:
        self.state = FetchState.FAILED
        self.error = error
        self._log.error("Activity fetch failed: %s", error)
        return error

    def _failure_for(self, result: PageResult, *, after_refresh: bool) -> StravaAPIError:
        context = dict(status=result.status, page=result.page, detail=result.error)
        if result.malformed:
            return ProtocolError("Malformed activities page", **context)
        if result.status == 0:
            return TransportError("No response after retries", **context)
        if result.status == 401:
            return AuthError("Access token rejected after refresh", **context)
        if result.status == 429 and after_refresh:
            return RateLimitError("Rate limited on retry after refresh", **context)
        return ProtocolError("Unexpected status fetching activities", **context)

    def _accept(self, result: PageResult, collected: List[Activity]) -> None:
        collected.extend(result.activities)
        self._log.info(
            "Page %d retrieved with %d activities", result.page, len(result.activities)
        )
        if len(result.activities) < self._per_page:
            self.state = FetchState.DONE
        else:
            self.page += 1
            self.state = FetchState.FETCHING

    def fetch_all(self) -> List[Activity]:
        """Fetch every page and return the concatenated activities.

        Raises:
            DeskTreadmillError: The error that moved the driver to ``FAILED``;
                errors from the refresh itself (``AuthError``, ``ConfigError``)
                propagate unchanged.
        """

        collected: List[Activity] = []
        self.state = FetchState.FETCHING
        self.page = 1
        while self.state is not FetchState.DONE:
            if self.state is FetchState.FETCHING:
                result = self._fetch(self.page)
                if result.status == 200 and not result.malformed:
                    self._accept(result, collected)
                elif result.status == 401:
                    self._log.info(
                        "401 unauthorized on page %d; attempting token refresh",
                        self.page,
                    )
                    self.state = FetchState.REAUTHENTICATING
                elif result.status == 429:
                    self._log.warning(
                        "429 rate limited on page %d; backing off %.0fs before retry",
                        self.page,
                        self._rate_limit_pause,
                    )
                    self._sleep(self._rate_limit_pause)
                else:
                    raise self._fail(self._failure_for(result, after_refresh=False))

            elif self.state is FetchState.REAUTHENTICATING:
                try:
                    self._tokens.refresh_access_token()
                except DeskTreadmillError as exc:
                    self._fail(exc)
                    raise
                result = self._fetch(self.page, label="retry page")
                if result.status == 200 and not result.malformed:
                    self._accept(result, collected)
                else:
                    raise self._fail(self._failure_for(result, after_refresh=True))

        self._log.info("Total activities fetched: %d", len(collected))
        return collected
