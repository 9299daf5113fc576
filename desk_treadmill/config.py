"""Central configuration for the Desk Treadmill distance tool.

All values are constants imported by the rest of the package. Tunables can be
overridden through environment variables (optionally via a local `.env`).
Strava credentials are read separately by
:func:`desk_treadmill.credentials.load_credentials`.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Strava settings
# ---------------------------------------------------------------------------
STRAVA_BASE_URL = "https://www.strava.com/api/v3"
STRAVA_OAUTH_URL = "https://www.strava.com/oauth/token"
STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"

# Env file holding STRAVA_CLIENT_ID / SECRET / REFRESH_TOKEN / ACCESS_TOKEN.
CREDENTIALS_FILE = os.getenv("STRAVA_CREDENTIALS_FILE", "strava.env")

CLIENT_ID_KEY = "STRAVA_CLIENT_ID"
CLIENT_SECRET_KEY = "STRAVA_CLIENT_SECRET"
REFRESH_TOKEN_KEY = "STRAVA_REFRESH_TOKEN"
ACCESS_TOKEN_KEY = "STRAVA_ACCESS_TOKEN"


# ---------------------------------------------------------------------------
# Fetch behaviour
# ---------------------------------------------------------------------------
# Strava caps per_page at 200 for the activities listing.
ACTIVITY_PAGE_SIZE = 200

# Request timeout in seconds.
REQUEST_TIMEOUT = _env_float("STRAVA_REQUEST_TIMEOUT", 30.0)

# Attempts per page for network failures and 429s.
STRAVA_MAX_RETRIES = _env_int("STRAVA_MAX_RETRIES", 3)
# Caps the exponential backoff per attempt.
STRAVA_BACKOFF_MAX_SECONDS = _env_float("STRAVA_BACKOFF_MAX_SECONDS", 30.0)

# Pause applied by the pagination loop when a page stays rate limited.
RATE_LIMIT_PAUSE_SECONDS = _env_float("RATE_LIMIT_PAUSE_SECONDS", 60.0)

# HTTP session pool sizes. Requests are sequential so one connection suffices.
HTTP_POOL_CONNECTIONS = 1
HTTP_POOL_MAXSIZE = 2

# Characters of a response body kept in logs and error messages.
ERROR_BODY_MAX_CHARS = 300


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------
TARGET_ACTIVITY_NAME = os.getenv("TARGET_ACTIVITY_NAME", "Desk Treadmill")
METERS_TO_MILES = 0.000621371


# ---------------------------------------------------------------------------
# OAuth bootstrap helper
# ---------------------------------------------------------------------------
OAUTH_PORT = _env_int("STRAVA_OAUTH_PORT", 5000)
OAUTH_SCOPE = "read,activity:read_all"

