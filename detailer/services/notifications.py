"""Service for turning conflict reports into alerts for the shop owner."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Protocol

from detailer.domain.models import ConflictAlert, ConflictReport

logger = logging.getLogger(__name__)


class AlertSink(Protocol):
    def send(self, alert: ConflictAlert) -> None: ...


class LogAlertSink:
    """Delivers alerts to the application log and keeps them for inspection."""

    def __init__(self) -> None:
        self.sent: list[ConflictAlert] = []

    def send(self, alert: ConflictAlert) -> None:
        logger.warning("%s (to %s)\n%s", alert.subject, alert.recipient, alert.body)
        self.sent.append(alert)


def _fmt(value: datetime, tz: tzinfo) -> str:
    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M %Z")


def render_conflict_alert(report: ConflictReport, recipient: str, tz: tzinfo) -> ConflictAlert:
    existing = report.existing_event
    request = report.new_request
    body = "\n".join(
        [
            "A booking conflict has occurred.",
            "",
            "Existing booking:",
            f"  Summary: {existing.summary}",
            f"  Start: {_fmt(existing.start, tz)}",
            f"  End: {_fmt(existing.end, tz)}",
            "",
            "New request:",
            f"  Summary: {request.service}",
            f"  Start: {_fmt(request.start, tz)}",
            f"  End: {_fmt(request.end, tz)}",
        ]
    )
    return ConflictAlert(recipient=recipient, subject="Booking Conflict Detected", body=body)
