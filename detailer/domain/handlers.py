"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging
from datetime import tzinfo

from detailer.domain.bus import EventBus
from detailer.domain.errors import NotifyError
from detailer.domain.events import BookingCreated, BookingRejected, ConflictReported
from detailer.domain.models import ActivityEntry, ActivityType
from detailer.repos.memory import ActivityRepository
from detailer.services.notifications import AlertSink, render_conflict_alert

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the activity log."""

    def __init__(
        self,
        bus: EventBus,
        activity_repo: ActivityRepository,
        alert_sink: AlertSink,
        alert_recipient: str,
        tz: tzinfo,
    ) -> None:
        self.bus = bus
        self.activity_repo = activity_repo
        self.alert_sink = alert_sink
        self.alert_recipient = alert_recipient
        self.tz = tz
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingRejected, self.on_booking_rejected)
        self.bus.subscribe(ConflictReported, self.on_conflict_reported)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        logger.info("Booking %s created for %s", event.event_id, event.service)
        self.activity_repo.add(
            ActivityEntry(
                event_id=event.event_id,
                type=ActivityType.BOOKING_CREATED,
                payload={"service": str(event.service)},
            )
        )

    def on_booking_rejected(self, event: BookingRejected) -> None:
        self.activity_repo.add(
            ActivityEntry(
                event_id=event.existing_event_id,
                type=ActivityType.BOOKING_REJECTED,
                payload={
                    "service": str(event.candidate.service),
                    "start": event.candidate.start.isoformat(),
                    "end": event.candidate.end.isoformat(),
                },
            )
        )

    def on_conflict_reported(self, event: ConflictReported) -> None:
        alert = render_conflict_alert(event.report, self.alert_recipient, self.tz)
        try:
            self.alert_sink.send(alert)
        except NotifyError:
            raise
        except Exception as exc:
            raise NotifyError(f"Failed to send conflict alert: {exc}") from exc

        self.activity_repo.add(
            ActivityEntry(
                event_id=event.report.existing_event.id,
                type=ActivityType.CONFLICT_NOTIFIED,
                payload={"recipient": alert.recipient, "subject": alert.subject},
            )
        )
