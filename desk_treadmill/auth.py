"""OAuth / token refresh utilities for the Strava API.

Exchanges a refresh token for an access token, validates a cached access
token with a cheap probe, and tracks provider-side refresh-token rotation.
Tokens are only ever logged masked.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from .config import REQUEST_TIMEOUT, STRAVA_BASE_URL, STRAVA_OAUTH_URL
from .errors import AuthError, ConfigError, TransportError
from .models import Credentials, TokenState
from .strava_client.response_handling import extract_error
from .utils import mask_token

LOGGER = logging.getLogger(__name__)


def refresh_access_token(
    session: requests.Session,
    credentials: Credentials,
    *,
    refresh_token: Optional[str] = None,
    oauth_url: str = STRAVA_OAUTH_URL,
    timeout: float = REQUEST_TIMEOUT,
    logger: logging.Logger | None = None,
) -> TokenState:
    """Exchange a refresh token for a new access (and possibly new refresh) token.

    Args:
        session: Shared HTTP session.
        credentials: Client id/secret plus the configured refresh token.
        refresh_token: Overrides ``credentials.refresh_token`` (used once the
            provider has rotated it).

    Returns:
        The new :class:`TokenState`. When the response omits a refresh token
        the one sent is kept.

    Raises:
        ConfigError: If client id, client secret or refresh token is blank.
            No request is made.
        TransportError: If the token endpoint could not be reached.
        AuthError: If the grant is rejected or the response is unusable.
    """

    log = logger or LOGGER
    current_refresh = (refresh_token or credentials.refresh_token or "").strip()
    missing = Credentials(
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
        refresh_token=current_refresh,
    ).missing_fields()
    if missing:
        raise ConfigError(
            "Missing Strava credentials: " + ", ".join(sorted(missing))
        )

    payload = {
        "client_id": credentials.client_id,
        "client_secret": credentials.client_secret,
        "grant_type": "refresh_token",
        "refresh_token": current_refresh,
    }
    log.info("Refreshing Strava token refresh_token=%s", mask_token(current_refresh))
    log.debug({"client_id": credentials.client_id, "grant_type": "refresh_token"})

    try:
        resp = session.post(oauth_url, data=payload, timeout=timeout)
    except requests.RequestException as exc:
        log.error("Token request transport error: %s", exc)
        raise TransportError("Transport failure during token refresh") from exc

    status = resp.status_code
    if not 200 <= status < 300:
        detail = extract_error(resp)
        log.error("Token refresh failed status=%s detail=%s", status, detail)
        raise AuthError("Token refresh rejected", status=status, detail=detail)

    try:
        data = resp.json()
    except ValueError as exc:
        log.error("Invalid JSON in token response: %s", exc)
        raise AuthError("Invalid JSON in token response", status=status) from exc
    if not isinstance(data, dict):
        raise AuthError(
            f"Unexpected token response shape: {type(data).__name__}", status=status
        )

    access_token = data.get("access_token")
    if not access_token:
        log.error("No access_token in token response")
        raise AuthError("No access_token in token response", status=status)
    new_refresh = data.get("refresh_token") or current_refresh
    expires_in = data.get("expires_in")
    log.info(
        "Token refreshed; expires in ~%s seconds refresh_token_changed=%s",
        expires_in if expires_in is not None else "?",
        new_refresh != current_refresh,
    )
    return TokenState(
        access_token=access_token,
        refresh_token=new_refresh,
        expires_in=expires_in if isinstance(expires_in, int) else None,
    )


class TokenManager:
    """Owns the token state for one run.

    A refresh replaces the whole state: the previous access token is
    discarded and a rotated refresh token becomes authoritative for any later
    refresh in the same run.
    """

    def __init__(
        self,
        credentials: Credentials,
        session: requests.Session,
        *,
        base_url: str = STRAVA_BASE_URL,
        oauth_url: str = STRAVA_OAUTH_URL,
        timeout: float = REQUEST_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._credentials = credentials
        self._session = session
        self._base_url = base_url
        self._oauth_url = oauth_url
        self._timeout = timeout
        self._log = logger or LOGGER
        self._state: Optional[TokenState] = None
        self.refresh_count = 0

    @property
    def state(self) -> Optional[TokenState]:
        return self._state

    @property
    def access_token(self) -> str:
        return self._state.access_token if self._state else ""

    @property
    def refresh_token(self) -> str:
        if self._state and self._state.refresh_token:
            return self._state.refresh_token
        return self._credentials.refresh_token

    @property
    def refresh_token_rotated(self) -> bool:
        """True once the provider has issued a refresh token differing from the configured one."""

        return bool(
            self._state
            and self._state.refresh_token
            and self._state.refresh_token != self._credentials.refresh_token
        )

    def refresh_access_token(self) -> TokenState:
        self._state = refresh_access_token(
            self._session,
            self._credentials,
            refresh_token=self.refresh_token,
            oauth_url=self._oauth_url,
            timeout=self._timeout,
            logger=self._log,
        )
        self.refresh_count += 1
        return self._state

    def ensure_access_token(self) -> TokenState:
        """Return a usable token state, refreshing only when the cached token fails.

        A blank cached token goes straight to refresh. Otherwise a one-item
        activities request is made with it; a transport failure or a 401
        triggers a refresh, while any other status keeps the cached token.
        """

        cached = (self._credentials.access_token or "").strip()
        if not cached:
            self._log.info("No cached access token provided; refreshing")
            return self.refresh_access_token()

        try:
            resp = self._session.get(
                f"{self._base_url}/athlete/activities",
                headers={"Authorization": f"Bearer {cached}"},
                params={"per_page": 1, "page": 1},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._log.warning("Token probe failed (will refresh): %s", exc)
            return self.refresh_access_token()

        if resp.status_code == 401:
            self._log.info("Cached access token rejected; refreshing")
            return self.refresh_access_token()

        if resp.status_code != 200:
            self._log.warning(
                "Token probe returned status=%s; keeping cached access token",
                resp.status_code,
            )
        else:
            self._log.info("Cached access token %s accepted", mask_token(cached))
        self._state = TokenState(
            access_token=cached, refresh_token=self._credentials.refresh_token
        )
        return self._state

    def verify_athlete(self) -> bool:
        """Best-effort ``GET /athlete`` so logs show whether the token works at all."""

        try:
            resp = self._session.get(
                f"{self._base_url}/athlete",
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._log.warning("Token probe warning: /athlete request failed: %s", exc)
            return False
        if resp.status_code != 200:
            self._log.warning(
                "Token probe warning: /athlete status=%s body=%s",
                resp.status_code,
                extract_error(resp),
            )
            return False
        return True
