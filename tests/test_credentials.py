from desk_treadmill.credentials import load_credentials
from desk_treadmill.models import Credentials

KEYS = (
    "STRAVA_CLIENT_ID",
    "STRAVA_CLIENT_SECRET",
    "STRAVA_REFRESH_TOKEN",
    "STRAVA_ACCESS_TOKEN",
)


def _clear_env(monkeypatch):
    for key in KEYS:
        monkeypatch.delenv(key, raising=False)


def test_load_credentials_from_env_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    env_file = tmp_path / "strava.env"
    env_file.write_text(
        "STRAVA_CLIENT_ID=123\n"
        "STRAVA_CLIENT_SECRET=shh\n"
        "STRAVA_REFRESH_TOKEN= rt \n"
    )
    creds = load_credentials(env_file)
    assert creds == Credentials(
        client_id="123", client_secret="shh", refresh_token="rt", access_token=""
    )
    assert creds.missing_fields() == []


def test_environment_overrides_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    env_file = tmp_path / "strava.env"
    env_file.write_text("STRAVA_CLIENT_ID=file\nSTRAVA_ACCESS_TOKEN=old\n")
    monkeypatch.setenv("STRAVA_ACCESS_TOKEN", "fresh")
    creds = load_credentials(env_file)
    assert creds.client_id == "file"
    assert creds.access_token == "fresh"


def test_missing_file_reports_blank_fields(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    creds = load_credentials(tmp_path / "absent.env")
    assert creds.missing_fields() == ["client_id", "client_secret", "refresh_token"]
