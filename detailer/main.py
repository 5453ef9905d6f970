"""FastAPI application — entry point for the detailing booking service."""

from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import FastAPI, HTTPException

from detailer.config import configure_logging, load_settings
from detailer.domain.bus import EventBus
from detailer.domain.errors import ConflictError, NotifyError
from detailer.domain.events import ConflictReported
from detailer.domain.handlers import HandlerRegistry
from detailer.domain.models import (
    SERVICES,
    ActivityEntry,
    BookingConfirmation,
    BusinessHours,
    BusyEvent,
    CandidateBooking,
    ConflictDetail,
    ConflictReport,
    Service,
    ServiceName,
)
from detailer.repos.memory import ActivityRepository, CalendarRepository
from detailer.services.bookings import BookingService
from detailer.services.notifications import LogAlertSink

logger = logging.getLogger(__name__)

settings = load_settings()
configure_logging(settings)

app = FastAPI(title="Detailing Booking Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
calendar_repo = CalendarRepository()
activity_repo = ActivityRepository()
alert_sink = LogAlertSink()

handler_registry = HandlerRegistry(
    bus=event_bus,
    activity_repo=activity_repo,
    alert_sink=alert_sink,
    alert_recipient=settings.conflict_alert_recipient,
    tz=settings.tz,
)

booking_service = BookingService(
    calendar_repo=calendar_repo,
    bus=event_bus,
    tz=settings.tz,
    business_hours=BusinessHours(
        start_hour=settings.business_start_hour,
        end_hour=settings.business_end_hour,
    ),
)


def _localize(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=settings.tz)
    return value


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/services", response_model=list[Service])
def list_services() -> list[Service]:
    """Return the fixed service catalog."""
    return list(SERVICES.values())


@app.get("/events", response_model=list[BusyEvent])
def list_events(start: datetime, end: datetime) -> list[BusyEvent]:
    """Return booked events overlapping ``[start, end)``, ordered by start.

    Naive timestamps are read in the business timezone.
    """
    start, end = _localize(start), _localize(end)
    if end <= start:
        raise HTTPException(status_code=400, detail="end must be after start")
    return booking_service.list_busy(start, end)


@app.get("/slots", response_model=list[datetime])
def list_slots(day: date, service: ServiceName) -> list[datetime]:
    """Return the free start times for ``service`` on ``day``."""
    return booking_service.free_slots(day, service)


@app.post("/bookings", response_model=BookingConfirmation, status_code=201)
def create_booking(candidate: CandidateBooking) -> BookingConfirmation:
    """Re-check the candidate against the calendar and book it if still free."""
    try:
        return booking_service.create_booking(candidate)
    except ConflictError as exc:
        detail = ConflictDetail(message=str(exc), conflict=exc.report)
        raise HTTPException(status_code=409, detail=detail.model_dump(mode="json")) from exc


@app.post("/conflicts", status_code=200)
def report_conflict(report: ConflictReport) -> dict:
    """Route a lost booking race to the shop owner."""
    try:
        event_bus.publish(ConflictReported(report=report))
    except NotifyError:
        logger.exception("Failed to send conflict alert")
        raise HTTPException(status_code=502, detail="Failed to send conflict notification")
    return {"message": "Conflict notification sent"}


@app.get("/activity", response_model=list[ActivityEntry])
def list_activity() -> list[ActivityEntry]:
    """Return the booking activity log."""
    return activity_repo.list_all()
