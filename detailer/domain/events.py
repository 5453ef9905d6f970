"""Domain events emitted by the booking server."""

from __future__ import annotations

from pydantic import BaseModel

from detailer.domain.models import CandidateBooking, ConflictReport, ServiceName


class DomainEvent(BaseModel):
    """Base for everything published on the event bus."""


class BookingCreated(DomainEvent):
    """Fired when the create path inserts a new event into the calendar."""

    event_id: str
    service: ServiceName


class BookingRejected(DomainEvent):
    """Fired when the create path refuses a candidate because of an overlap."""

    candidate: CandidateBooking
    existing_event_id: str


class ConflictReported(DomainEvent):
    """Fired when a client asks for a lost race to be routed to a human."""

    report: ConflictReport
