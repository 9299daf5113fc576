"""Desk Treadmill distance tool: totals Strava activities by name."""

from .main import main, run
from .models import Activity, AggregateResult, Credentials, TokenState
from .errors import (
    AuthError,
    ConfigError,
    DeskTreadmillError,
    ProtocolError,
    RateLimitError,
    StravaAPIError,
    TransportError,
)

__all__ = [
    "main",
    "run",
    "Activity",
    "AggregateResult",
    "Credentials",
    "TokenState",
    "AuthError",
    "ConfigError",
    "DeskTreadmillError",
    "ProtocolError",
    "RateLimitError",
    "StravaAPIError",
    "TransportError",
]
