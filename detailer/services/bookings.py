"""Authoritative booking create path and calendar queries."""

from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo

from detailer.domain.bus import EventBus
from detailer.domain.errors import ConflictError
from detailer.domain.events import BookingCreated, BookingRejected
from detailer.domain.models import (
    BookingConfirmation,
    BusinessHours,
    BusyEvent,
    CandidateBooking,
    ServiceName,
    TimeInterval,
    get_service,
)
from detailer.repos.memory import CalendarRepository
from detailer.services.conflicts import find_conflict, find_conflicts
from detailer.services.slots import day_window, enumerate_free_slots

logger = logging.getLogger(__name__)


class BookingService:
    """Owns the shared calendar's read and create operations."""

    def __init__(
        self,
        calendar_repo: CalendarRepository,
        bus: EventBus,
        tz: tzinfo,
        business_hours: BusinessHours,
    ) -> None:
        self.calendar_repo = calendar_repo
        self.bus = bus
        self.tz = tz
        self.business_hours = business_hours

    def list_busy(self, start: datetime, end: datetime) -> list[BusyEvent]:
        """Return every event overlapping ``[start, end)``, ordered by start."""
        return find_conflicts(TimeInterval(start=start, end=end), self.calendar_repo.list_all())

    def free_slots(self, day: date, service: ServiceName | str) -> list[datetime]:
        start, end = day_window(day, self.tz)
        return enumerate_free_slots(
            day,
            get_service(service).duration_hours,
            self.business_hours,
            self.calendar_repo.list_between(start, end),
            self.tz,
        )

    def create_booking(self, candidate: CandidateBooking) -> BookingConfirmation:
        """Insert ``candidate`` unless it overlaps an existing event.

        The overlap check and the insert happen under the repository lock, so
        two concurrent requests for the same slot cannot both succeed.

        Raises:
            ConflictError: the slot is taken; carries the colliding event.
        """
        service = get_service(candidate.service)
        with self.calendar_repo.lock:
            existing = self.calendar_repo.list_between(candidate.start, candidate.end)
            conflict = find_conflict(candidate, existing)
            if conflict is None:
                event = BusyEvent(
                    start=candidate.start, end=candidate.end, summary=service.label
                )
                self.calendar_repo.add(event)

        if conflict is not None:
            logger.warning(
                "Rejected %s booking at %s: overlaps event %s",
                candidate.service,
                candidate.start.isoformat(),
                conflict.id,
            )
            self.bus.publish(BookingRejected(candidate=candidate, existing_event_id=conflict.id))
            raise ConflictError(conflict, candidate)

        self.bus.publish(BookingCreated(event_id=event.id, service=service.name))
        return BookingConfirmation.for_event(event, service, self.tz)
