"""Runtime configuration loaded from environment variables (and ``.env``)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from None


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float for {name}: {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    business_timezone: str = "UTC"
    business_start_hour: int = 9
    business_end_hour: int = 17

    # datetime.weekday() numbering: Monday=0 ... Sunday=6
    closed_weekday: int = 6

    debounce_ms: int = 500
    request_timeout_seconds: float = 10.0

    calendar_api_url: str = "http://localhost:8000"
    conflict_alert_recipient: str = "bookings@example.com"
    log_level: str = "INFO"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.business_timezone)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def _validate(settings: Settings) -> None:
    try:
        ZoneInfo(settings.business_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"BUSINESS_TIMEZONE is not a known zone: {settings.business_timezone!r}"
        ) from None
    if not 0 <= settings.business_start_hour < settings.business_end_hour <= 24:
        raise ValueError(
            "BUSINESS_START_HOUR/BUSINESS_END_HOUR must satisfy 0 <= start < end <= 24, "
            f"got {settings.business_start_hour}..{settings.business_end_hour}"
        )
    if not 0 <= settings.closed_weekday <= 6:
        raise ValueError(f"CLOSED_WEEKDAY must be between 0 and 6, got {settings.closed_weekday}")
    if settings.debounce_ms < 0:
        raise ValueError(f"DEBOUNCE_MS must be >= 0, got {settings.debounce_ms}")
    if settings.request_timeout_seconds <= 0:
        raise ValueError(
            f"REQUEST_TIMEOUT_SECONDS must be > 0, got {settings.request_timeout_seconds}"
        )


def load_settings(dotenv_path: str | None = None) -> Settings:
    """Build and validate :class:`Settings` from the environment."""
    load_dotenv(dotenv_path=dotenv_path, override=False)

    settings = Settings(
        business_timezone=os.getenv("BUSINESS_TIMEZONE", "UTC"),
        business_start_hour=_int_env("BUSINESS_START_HOUR", "9"),
        business_end_hour=_int_env("BUSINESS_END_HOUR", "17"),
        closed_weekday=_int_env("CLOSED_WEEKDAY", "6"),
        debounce_ms=_int_env("DEBOUNCE_MS", "500"),
        request_timeout_seconds=_float_env("REQUEST_TIMEOUT_SECONDS", "10"),
        calendar_api_url=os.getenv("CALENDAR_API_URL", "http://localhost:8000"),
        conflict_alert_recipient=os.getenv(
            "CONFLICT_ALERT_RECIPIENT", "bookings@example.com"
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
    _validate(settings)
    return settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Logging configured at %s", settings.log_level.upper())
