import argparse
import json
import logging
import sys
from typing import List, Optional, Sequence

from .aggregation import aggregate, label_predicate
from .auth import TokenManager
from .config import ACTIVITY_PAGE_SIZE, CREDENTIALS_FILE, TARGET_ACTIVITY_NAME
from .credentials import load_credentials
from .errors import ConfigError, DeskTreadmillError
from .models import AggregateResult, Credentials
from .strava_client import ActivityPaginator, PageFetcher, create_session

LOGGER = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Total the distance of Strava activities with a given name"
    )
    parser.add_argument(
        "--env-file",
        default=CREDENTIALS_FILE,
        help="Env file with STRAVA_CLIENT_ID/SECRET/REFRESH_TOKEN[/ACCESS_TOKEN]",
    )
    parser.add_argument(
        "--label",
        default=TARGET_ACTIVITY_NAME,
        help="Activity name to match (case-insensitive, trimmed)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Also print the summary as JSON on stdout",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _check_credentials(credentials: Credentials) -> None:
    missing: List[str] = credentials.missing_fields()
    if missing:
        raise ConfigError("Missing Strava credentials: " + ", ".join(sorted(missing)))


def _report(result: AggregateResult, label: str, as_json: bool) -> None:
    miles = result.total_miles
    LOGGER.info("%s Activities: %d", label, result.match_count)
    LOGGER.info("Total Distance: %.2f miles", miles)
    if as_json:
        summary = {
            "label": label,
            "match_count": result.match_count,
            "total_distance_meters": result.total_distance_meters,
            "total_distance_miles": round(miles, 4),
        }
        print(json.dumps(summary, sort_keys=True))


def _notify_rotation(tokens: TokenManager) -> None:
    if tokens.refresh_token_rotated:
        LOGGER.warning("NOTICE: Strava issued a new refresh token during auth.")
        LOGGER.warning(
            "Update STRAVA_REFRESH_TOKEN in your secrets to avoid future auth failures."
        )


def run(credentials: Credentials, label: str = TARGET_ACTIVITY_NAME) -> AggregateResult:
    """Authenticate, fetch every activity page and aggregate matching distance."""

    _check_credentials(credentials)
    with create_session() as session:
        tokens = TokenManager(credentials, session)
        try:
            tokens.ensure_access_token()
            tokens.verify_athlete()
            LOGGER.info(
                "Authenticated. Fetching activities (pages of %d)...",
                ACTIVITY_PAGE_SIZE,
            )
            paginator = ActivityPaginator(PageFetcher(session), tokens)
            activities = paginator.fetch_all()
        finally:
            _notify_rotation(tokens)
    return aggregate(activities, label_predicate(label))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.verbose)

    credentials = load_credentials(args.env_file)
    try:
        result = run(credentials, label=args.label)
    except DeskTreadmillError as exc:
        LOGGER.error("Run aborted: %s", exc)
        return 1

    _report(result, args.label, args.json)
    return 0


if __name__ == "__main__":  # pragma: no cover - module entry point
    sys.exit(main())
