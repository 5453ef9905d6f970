"""Collaborators the booking orchestrator talks to.

Two families are provided: HTTP adapters that call the booking server's API
with httpx, and in-process adapters that call the server components directly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

import httpx

from detailer.config import Settings
from detailer.domain.bus import EventBus
from detailer.domain.errors import CalendarError, ConflictError, NotifyError
from detailer.domain.events import ConflictReported
from detailer.domain.models import (
    BookingConfirmation,
    BusyEvent,
    CandidateBooking,
    ConflictDetail,
    ConflictReport,
)
from detailer.services.bookings import BookingService


class CalendarGateway(Protocol):
    async def fetch_busy_events(self, day_start: datetime, day_end: datetime) -> list[BusyEvent]:
        """Return events overlapping the window. Raises CalendarError."""
        ...

    async def create_booking(self, candidate: CandidateBooking) -> BookingConfirmation:
        """Authoritative create. Raises ConflictError or CalendarError."""
        ...


class ConflictNotifier(Protocol):
    async def notify_conflict(self, report: ConflictReport) -> None:
        """Deliver ``report`` to a human. Raises NotifyError."""
        ...


# ---------------------------------------------------------------------------
# HTTP adapters
# ---------------------------------------------------------------------------


class HttpCalendarGateway:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpCalendarGateway:
        return cls(
            httpx.AsyncClient(
                base_url=settings.calendar_api_url,
                timeout=settings.request_timeout_seconds,
            )
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_busy_events(self, day_start: datetime, day_end: datetime) -> list[BusyEvent]:
        params = {"start": day_start.isoformat(), "end": day_end.isoformat()}
        try:
            r = await self._client.get("/events", params=params)
            r.raise_for_status()
            return [BusyEvent.model_validate(item) for item in r.json()]
        except (httpx.HTTPError, ValueError) as exc:
            raise CalendarError("Failed to fetch calendar data from the server.") from exc

    async def create_booking(self, candidate: CandidateBooking) -> BookingConfirmation:
        try:
            r = await self._client.post("/bookings", json=candidate.model_dump(mode="json"))
        except httpx.HTTPError as exc:
            raise CalendarError("Failed to reach the booking server.") from exc

        try:
            if r.status_code == 409:
                detail = ConflictDetail.model_validate(r.json()["detail"])
                raise ConflictError(detail.conflict.existing_event, candidate, detail.message)
            if r.is_error:
                raise CalendarError(f"Failed to create booking: HTTP {r.status_code}")
            return BookingConfirmation.model_validate(r.json())
        except (KeyError, ValueError) as exc:
            raise CalendarError("Unexpected response from the booking server.") from exc


class HttpConflictNotifier:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpConflictNotifier:
        return cls(
            httpx.AsyncClient(
                base_url=settings.calendar_api_url,
                timeout=settings.request_timeout_seconds,
            )
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def notify_conflict(self, report: ConflictReport) -> None:
        try:
            r = await self._client.post("/conflicts", json=report.model_dump(mode="json"))
            r.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotifyError(f"Conflict notification failed: {exc}") from exc


# ---------------------------------------------------------------------------
# In-process adapters
# ---------------------------------------------------------------------------


class LocalCalendarGateway:
    """Calls a :class:`BookingService` in the same process."""

    def __init__(self, booking_service: BookingService) -> None:
        self._service = booking_service

    async def fetch_busy_events(self, day_start: datetime, day_end: datetime) -> list[BusyEvent]:
        return self._service.list_busy(day_start, day_end)

    async def create_booking(self, candidate: CandidateBooking) -> BookingConfirmation:
        return self._service.create_booking(candidate)


class LocalConflictNotifier:
    """Publishes reports on the server's event bus."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus

    async def notify_conflict(self, report: ConflictReport) -> None:
        if not self._bus.publish(ConflictReported(report=report)):
            raise NotifyError("No conflict alert handler is registered")
