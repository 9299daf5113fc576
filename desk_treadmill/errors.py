"""Central error types used across the application."""

from __future__ import annotations


class DeskTreadmillError(RuntimeError):
    """Base error for failures that abort a run."""


class ConfigError(DeskTreadmillError):
    """Raised when a required credential field is missing or blank."""


class StravaAPIError(DeskTreadmillError):
    """Base error for Strava API failures.

    Carries the HTTP status (0 when no response was received), the page being
    fetched when relevant, and a truncated response body or error detail.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        page: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.page = page
        self.detail = detail

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.page is not None:
            parts.append(f"page={self.page}")
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.detail:
            parts.append(f"detail={self.detail}")
        return " ".join(parts)


class TransportError(StravaAPIError):
    """Raised when no response could be obtained (connection, timeout, DNS)."""


class AuthError(StravaAPIError):
    """Raised when the token grant is rejected or a fresh token is refused."""


class RateLimitError(StravaAPIError):
    """Raised when a 429 arrives where no further retry is allowed."""


class ProtocolError(StravaAPIError):
    """Raised for unexpected HTTP statuses or malformed response bodies."""


__all__ = [
    "DeskTreadmillError",
    "ConfigError",
    "StravaAPIError",
    "TransportError",
    "AuthError",
    "RateLimitError",
    "ProtocolError",
]
