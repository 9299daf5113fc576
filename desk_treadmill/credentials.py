"""Credential store: reads Strava secrets from an env file."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import dotenv_values

from .config import (
    ACCESS_TOKEN_KEY,
    CLIENT_ID_KEY,
    CLIENT_SECRET_KEY,
    CREDENTIALS_FILE,
    REFRESH_TOKEN_KEY,
)
from .models import Credentials

LOGGER = logging.getLogger(__name__)


def load_credentials(env_file: str | os.PathLike[str] | None = None) -> Credentials:
    """Read Strava credentials from ``env_file`` with environment overrides.

    Values set in the process environment win over the file, so secrets can
    be injected by a scheduler without editing the file. A missing file is
    not an error; blank fields are reported later by the token manager.
    """

    path = Path(env_file or CREDENTIALS_FILE)
    if path.is_file():
        file_values = dotenv_values(path)
        LOGGER.debug("Loaded credential file %s", path)
    else:
        file_values = {}
        LOGGER.info("Credential file %s not found; using environment only", path)

    def _lookup(key: str) -> str:
        value = os.getenv(key)
        if value is None:
            value = file_values.get(key)
        return (value or "").strip()

    return Credentials(
        client_id=_lookup(CLIENT_ID_KEY),
        client_secret=_lookup(CLIENT_SECRET_KEY),
        refresh_token=_lookup(REFRESH_TOKEN_KEY),
        access_token=_lookup(ACCESS_TOKEN_KEY),
    )
