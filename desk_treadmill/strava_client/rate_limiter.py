"""Rate-limit observation for Strava responses.

Strava reports usage against a 15-minute and a daily window on every
response. The values are read and logged so an operator can see how close a
run came to the limit; nothing here delays a request.
"""

from __future__ import annotations

import logging
from typing import Mapping

from ..models import RateLimitInfo

__all__ = ["RateLimitObserver", "read_rate_limit"]

USAGE_HEADER = "X-RateLimit-Usage"
LIMIT_HEADER = "X-RateLimit-Limit"


def read_rate_limit(headers: Mapping[str, object] | None) -> RateLimitInfo:
    """Return the rate-limit snapshot carried by ``headers`` (empty if absent)."""

    if not headers:
        return RateLimitInfo()
    usage = headers.get(USAGE_HEADER)
    limit = headers.get(LIMIT_HEADER)
    return RateLimitInfo(
        usage=str(usage).strip() if usage else "",
        limit=str(limit).strip() if limit else "",
    )


class RateLimitObserver:
    """Read each snapshot and warn when the short window is nearly spent."""

    def __init__(
        self, near_limit_buffer: int = 3, logger: logging.Logger | None = None
    ) -> None:
        self._near_limit_buffer = near_limit_buffer
        self._log = logger or logging.getLogger(__name__)

    def observe(
        self, headers: Mapping[str, object] | None, status_code: int | None
    ) -> RateLimitInfo:
        info = read_rate_limit(headers)
        short_used, short_limit = info.short_window
        if status_code == 429:
            self._log.warning("Rate limit: 429 received (%s)", str(info) or "no headers")
        elif (
            short_used is not None
            and short_limit is not None
            and short_used >= max(short_limit - self._near_limit_buffer, 0)
        ):
            self._log.info(
                "Approaching short-window rate limit (%s/%s)", short_used, short_limit
            )
        return info
