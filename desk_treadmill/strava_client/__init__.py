"""Strava client components (session, page fetcher, pagination driver)."""

from .activities import ActivityPaginator, FetchState  # noqa: F401
from .pagination import PageFetcher, backoff  # noqa: F401
from .rate_limiter import RateLimitObserver, read_rate_limit  # noqa: F401
from .session import create_session  # noqa: F401
