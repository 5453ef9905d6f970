"""Tests for environment-driven settings."""

from zoneinfo import ZoneInfo

import pytest

from detailer.config import Settings, load_settings

_VARS = (
    "BUSINESS_TIMEZONE",
    "BUSINESS_START_HOUR",
    "BUSINESS_END_HOUR",
    "CLOSED_WEEKDAY",
    "DEBOUNCE_MS",
    "REQUEST_TIMEOUT_SECONDS",
    "CALENDAR_API_URL",
    "CONFLICT_ALERT_RECIPIENT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path):
    settings = load_settings(dotenv_path=str(tmp_path / "missing.env"))
    assert settings == Settings()
    assert settings.debounce_seconds == 0.5
    assert settings.tz == ZoneInfo("UTC")


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("BUSINESS_TIMEZONE", "America/Chicago")
    monkeypatch.setenv("CLOSED_WEEKDAY", "0")
    monkeypatch.setenv("DEBOUNCE_MS", "250")
    settings = load_settings(dotenv_path=str(tmp_path / "missing.env"))
    assert settings.tz == ZoneInfo("America/Chicago")
    assert settings.closed_weekday == 0
    assert settings.debounce_seconds == 0.25


def test_dotenv_file_is_read(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("BUSINESS_START_HOUR=8\nBUSINESS_END_HOUR=18\n")
    # set-then-delete so monkeypatch removes what load_dotenv writes
    monkeypatch.setenv("BUSINESS_START_HOUR", "8")
    monkeypatch.delenv("BUSINESS_START_HOUR")
    monkeypatch.setenv("BUSINESS_END_HOUR", "18")
    monkeypatch.delenv("BUSINESS_END_HOUR")

    settings = load_settings(dotenv_path=str(env_file))
    assert (settings.business_start_hour, settings.business_end_hour) == (8, 18)


@pytest.mark.parametrize(
    "name, value, match",
    [
        ("CLOSED_WEEKDAY", "7", "CLOSED_WEEKDAY"),
        ("BUSINESS_START_HOUR", "nine", "BUSINESS_START_HOUR"),
        ("BUSINESS_END_HOUR", "8", "BUSINESS_START_HOUR/BUSINESS_END_HOUR"),
        ("REQUEST_TIMEOUT_SECONDS", "0", "REQUEST_TIMEOUT_SECONDS"),
        ("BUSINESS_TIMEZONE", "Mars/Olympus", "BUSINESS_TIMEZONE"),
    ],
)
def test_invalid_values_raise(monkeypatch, tmp_path, name, value, match):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=match):
        load_settings(dotenv_path=str(tmp_path / "missing.env"))
