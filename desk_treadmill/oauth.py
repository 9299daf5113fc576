"""Local Strava OAuth helper to obtain the first refresh token.

Either opens the browser and captures the authorisation code with a local
callback server, or exchanges a code pasted with ``--code``. The resulting
refresh token goes into ``STRAVA_REFRESH_TOKEN`` in the credential file.
"""

from __future__ import annotations

import argparse
import logging
import secrets
import socket
import threading
import time
import urllib.parse
import webbrowser
from dataclasses import dataclass, field
from typing import Optional, Sequence

import requests
from flask import Flask, abort, request
from flask.typing import ResponseReturnValue
from werkzeug.serving import BaseWSGIServer, make_server

from .config import (
    CREDENTIALS_FILE,
    OAUTH_PORT,
    OAUTH_SCOPE,
    REQUEST_TIMEOUT,
    STRAVA_AUTHORIZE_URL,
    STRAVA_OAUTH_URL,
)
from .credentials import load_credentials
from .errors import AuthError, ConfigError, DeskTreadmillError, TransportError
from .models import Credentials, TokenState
from .strava_client.response_handling import extract_error
from .utils import mask_token

LOGGER = logging.getLogger(__name__)

REDIRECT_URI = f"http://localhost:{OAUTH_PORT}/callback"


@dataclass
class OAuthSession:
    """OAuth flow state shared between the callback route and the flow."""

    expected_state: str = field(default_factory=lambda: secrets.token_urlsafe(16))
    auth_code: Optional[str] = None
    granted_scope: Optional[str] = None
    auth_event: threading.Event = field(default_factory=threading.Event)
    server: Optional[BaseWSGIServer] = None

    def reset(self) -> None:
        self.expected_state = secrets.token_urlsafe(16)
        self.auth_code = None
        self.granted_scope = None
        self.auth_event.clear()
        self.server = None


_session = OAuthSession()

app = Flask(__name__)


@app.route("/callback")
def callback() -> ResponseReturnValue:
    state = request.args.get("state")
    if not state or state != _session.expected_state:
        LOGGER.error("Invalid OAuth state received; possible CSRF. Aborting.")
        abort(400, description="Invalid state")
    error = request.args.get("error")
    if error:
        LOGGER.error("Authorisation denied: %s", error)
        _session.auth_event.set()
        return "Authorisation was denied. You can close this window now."
    _session.auth_code = request.args.get("code")
    _session.granted_scope = request.args.get("scope")
    LOGGER.info("Authorisation code received via callback.")
    _session.auth_event.set()
    return "Authorisation received! You can close this window now."


def build_auth_url(client_id: str, state: str, redirect_uri: str = REDIRECT_URI) -> str:
    params = {
        "client_id": client_id,
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "scope": OAUTH_SCOPE,
        "approval_prompt": "force",
        "state": state,
    }
    return f"{STRAVA_AUTHORIZE_URL}?" + urllib.parse.urlencode(params)


def exchange_code_for_tokens(
    http: requests.Session,
    credentials: Credentials,
    code: str,
    *,
    oauth_url: str = STRAVA_OAUTH_URL,
    timeout: float = REQUEST_TIMEOUT,
) -> TokenState:
    """Trade an authorisation code for the initial access/refresh token pair."""

    missing = [
        name
        for name, value in (
            ("client_id", credentials.client_id),
            ("client_secret", credentials.client_secret),
            ("code", code),
        )
        if not (value or "").strip()
    ]
    if missing:
        raise ConfigError("Missing OAuth inputs: " + ", ".join(missing))

    LOGGER.info("Exchanging authorisation code for tokens...")
    try:
        resp = http.post(
            oauth_url,
            data={
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "code": code.strip(),
                "grant_type": "authorization_code",
            },
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise TransportError("Transport failure during code exchange") from exc

    if not 200 <= resp.status_code < 300:
        raise AuthError(
            "Authorisation code exchange rejected",
            status=resp.status_code,
            detail=extract_error(resp),
        )
    try:
        tokens = resp.json()
    except ValueError as exc:
        raise AuthError("Invalid JSON in token response", status=resp.status_code) from exc
    if not isinstance(tokens, dict) or not all(
        tokens.get(key) for key in ("access_token", "refresh_token")
    ):
        raise AuthError("Token response missing expected keys", status=resp.status_code)
    expires_in = tokens.get("expires_in")
    return TokenState(
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
        expires_in=expires_in if isinstance(expires_in, int) else None,
    )


def _log_tokens(tokens: TokenState, print_tokens: bool) -> None:
    if print_tokens:
        LOGGER.warning("Printing raw Strava tokens. Handle with care!")
        LOGGER.info("STRAVA_ACCESS_TOKEN=%s", tokens.access_token)
        LOGGER.info("STRAVA_REFRESH_TOKEN=%s", tokens.refresh_token)
    else:
        LOGGER.info(
            "Token exchange succeeded: access_token=%s refresh_token=%s expires_in=%s",
            mask_token(tokens.access_token),
            mask_token(tokens.refresh_token),
            tokens.expires_in,
        )


def wait_for_port(port: int, host: str = "localhost", timeout: int = 10) -> bool:
    """Return True once ``host:port`` accepts TCP connections or timeout elapses."""

    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1):
                return True
        except OSError:
            time.sleep(0.1)
    return False


def _run_flask() -> None:
    _session.server = make_server("localhost", OAUTH_PORT, app)
    _session.server.serve_forever()


def _shutdown_server(flask_thread: threading.Thread) -> None:
    if _session.server:
        _session.server.shutdown()
    flask_thread.join(timeout=5)


def capture_auth_code(client_id: str, wait_timeout: int = 60) -> str:
    """Open the browser and block until the callback delivers a code."""

    _session.reset()
    flask_thread = threading.Thread(target=_run_flask, daemon=True)
    flask_thread.start()
    try:
        LOGGER.info("Waiting for callback server to start on port %s...", OAUTH_PORT)
        if not wait_for_port(OAUTH_PORT):
            raise DeskTreadmillError(f"Callback server did not start on port {OAUTH_PORT}")
        LOGGER.info("Opening browser for authorisation...")
        webbrowser.open(build_auth_url(client_id, _session.expected_state))
        if not _session.auth_event.wait(timeout=wait_timeout):
            raise DeskTreadmillError("Timeout waiting for authorisation code")
        if not _session.auth_code:
            raise AuthError("Authorisation code was not received")
        if _session.granted_scope and "activity:read" not in _session.granted_scope:
            LOGGER.warning(
                "Granted scope %r lacks activity:read; activity listing will fail",
                _session.granted_scope,
            )
        return _session.auth_code
    finally:
        LOGGER.info("Shutting down local OAuth server.")
        _shutdown_server(flask_thread)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Strava OAuth bootstrap helper")
    parser.add_argument("--env-file", default=CREDENTIALS_FILE)
    parser.add_argument(
        "--code",
        help="Exchange an authorisation code obtained manually instead of opening a browser",
    )
    parser.add_argument(
        "--print-tokens",
        action="store_true",
        help="Print raw access/refresh tokens once exchanged (defaults to masked logging)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=60,
        help="Seconds to wait for browser authorisation before exiting",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point when executing ``python -m desk_treadmill.oauth``."""

    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO, format="[%(asctime)s] %(levelname)s: %(message)s"
        )
    args = _parse_args(argv)
    credentials = load_credentials(args.env_file)
    try:
        code = args.code or capture_auth_code(credentials.client_id, args.timeout)
        with requests.Session() as http:
            tokens = exchange_code_for_tokens(http, credentials, code)
    except DeskTreadmillError as exc:
        LOGGER.error("OAuth bootstrap failed: %s", exc)
        return 1
    _log_tokens(tokens, args.print_tokens)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI helper
    raise SystemExit(main())
