"""HTTP session factory for Strava API calls."""

from __future__ import annotations

import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import HTTP_POOL_CONNECTIONS, HTTP_POOL_MAXSIZE

__all__ = ["create_session"]


def _build_retry() -> Retry:
    # Retry policy lives in PageFetcher; the adapter must surface every failure.
    return Retry(total=0, read=False, redirect=False, raise_on_status=False)


def create_session() -> Session:
    """Return a pooled session to be shared by every request in a run."""

    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=HTTP_POOL_CONNECTIONS,
        pool_maxsize=HTTP_POOL_MAXSIZE,
        max_retries=_build_retry(),
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update(
        {
            "Accept-Encoding": "gzip, deflate",
            "Accept": "application/json",
        }
    )
    return session
