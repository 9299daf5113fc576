from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from .config import METERS_TO_MILES


@dataclass(frozen=True)
class Credentials:
    client_id: str
    client_secret: str
    refresh_token: str
    # Cached access token; may be stale or absent
    access_token: str = ""

    def missing_fields(self) -> List[str]:
        """Return names of required fields that are blank."""

        required = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
        }
        return [name for name, value in required.items() if not (value or "").strip()]


@dataclass(frozen=True)
class TokenState:
    access_token: str
    refresh_token: str
    # Advisory only; expiry is discovered when the API rejects the token
    expires_in: Optional[int] = None


@dataclass(frozen=True)
class Activity:
    id: int
    name: str
    distance: float  # metres

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Activity":
        """Build an activity from a Strava summary payload.

        Raises:
            ValueError: If ``data`` lacks an integer ``id``, a string ``name``
                or a numeric ``distance``.
        """

        if not isinstance(data, Mapping):
            raise ValueError(f"activity must be an object, got {type(data).__name__}")
        activity_id = data.get("id")
        name = data.get("name")
        distance = data.get("distance")
        if not isinstance(activity_id, int) or isinstance(activity_id, bool):
            raise ValueError(f"activity id must be an integer, got {activity_id!r}")
        if not isinstance(name, str):
            raise ValueError(f"activity {activity_id} name must be a string")
        if not isinstance(distance, (int, float)) or isinstance(distance, bool):
            raise ValueError(f"activity {activity_id} distance must be numeric")
        return cls(id=activity_id, name=name, distance=float(distance))


@dataclass(frozen=True)
class RateLimitInfo:
    """Raw ``X-RateLimit-Usage`` / ``X-RateLimit-Limit`` header values.

    Strava reports two comma separated windows: 15-minute and daily.
    """

    usage: str = ""
    limit: str = ""

    @staticmethod
    def _window(value: str, index: int) -> Optional[int]:
        parts = value.split(",") if value else []
        if len(parts) <= index:
            return None
        try:
            return int(parts[index].strip())
        except ValueError:
            return None

    @property
    def short_window(self) -> Tuple[Optional[int], Optional[int]]:
        return self._window(self.usage, 0), self._window(self.limit, 0)

    @property
    def long_window(self) -> Tuple[Optional[int], Optional[int]]:
        return self._window(self.usage, 1), self._window(self.limit, 1)

    def __str__(self) -> str:
        if not self.usage and not self.limit:
            return ""
        return f"usage={self.usage} limit={self.limit}"


@dataclass
class PageResult:
    page: int
    # 0 when no response was ever received
    status: int
    activities: List[Activity] = field(default_factory=list)
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)
    # Parse failure for a 200, or a truncated body for other statuses
    error: Optional[str] = None

    @property
    def malformed(self) -> bool:
        return self.status == 200 and self.error is not None


@dataclass(frozen=True)
class AggregateResult:
    match_count: int = 0
    total_distance_meters: float = 0.0

    @property
    def total_miles(self) -> float:
        return self.total_distance_meters * METERS_TO_MILES
