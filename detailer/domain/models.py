"""Domain models for the detailing booking system."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import StrEnum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


class ServiceName(StrEnum):
    INTERIOR = "Interior"
    BEDLINER = "Bedliner"
    BODY = "Body"


class BookingState(StrEnum):
    IDLE = "idle"
    FORM_INCOMPLETE = "form_incomplete"
    CHECKING = "checking"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    CHECK_FAILED = "check_failed"
    BLOCKED = "blocked"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    SUBMIT_CONFLICT = "submit_conflict"
    SUBMIT_FAILED = "submit_failed"


class VerdictKind(StrEnum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    BLOCKED = "blocked"
    ERROR = "error"


class Tone(StrEnum):
    NEUTRAL = "neutral"
    SUCCESS = "success"
    ERROR = "error"


class ActivityType(StrEnum):
    BOOKING_CREATED = "booking_created"
    BOOKING_REJECTED = "booking_rejected"
    CONFLICT_NOTIFIED = "conflict_notified"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Service catalog
# ---------------------------------------------------------------------------


class Service(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: ServiceName
    duration_hours: int = Field(gt=0)

    @property
    def label(self) -> str:
        return self.name.value


SERVICES: dict[ServiceName, Service] = {
    ServiceName.INTERIOR: Service(name=ServiceName.INTERIOR, duration_hours=4),
    ServiceName.BEDLINER: Service(name=ServiceName.BEDLINER, duration_hours=8),
    ServiceName.BODY: Service(name=ServiceName.BODY, duration_hours=8),
}


def get_service(name: ServiceName | str) -> Service:
    return SERVICES[ServiceName(name)]


# ---------------------------------------------------------------------------
# Intervals and bookings
# ---------------------------------------------------------------------------


class TimeInterval(BaseModel):
    """Half-open ``[start, end)`` span."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _end_after_start(self) -> TimeInterval:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class BusyEvent(TimeInterval):
    """An existing booking on the shared calendar."""

    id: str = Field(default_factory=_new_id)
    summary: str = ""


class CandidateBooking(BaseModel):
    """A proposed booking; ``end`` is always derived from the service duration."""

    model_config = ConfigDict(frozen=True)

    service: ServiceName
    start: datetime

    @field_validator("start")
    @classmethod
    def _start_is_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("start must be timezone-aware")
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def end(self) -> datetime:
        return self.start + timedelta(hours=get_service(self.service).duration_hours)

    @classmethod
    def from_selection(
        cls, service: ServiceName | str, day: date, start_time: time, tz: tzinfo
    ) -> CandidateBooking:
        start = datetime.combine(day, start_time.replace(tzinfo=None)).replace(tzinfo=tz)
        return cls(service=ServiceName(service), start=start)


class ConflictReport(BaseModel):
    existing_event: BusyEvent
    new_request: CandidateBooking


class ActivityEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    event_id: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    type: ActivityType
    payload: dict = Field(default_factory=dict)


class ConflictAlert(BaseModel):
    """Human-readable message describing a lost booking race."""

    recipient: str
    subject: str
    body: str


class BusinessHours(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=1, le=24)

    @model_validator(mode="after")
    def _end_after_start(self) -> BusinessHours:
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be after start_hour")
        return self

    @property
    def span_hours(self) -> int:
        return self.end_hour - self.start_hour


class BookingConfirmation(BaseModel):
    event: BusyEvent
    service_label: str
    formatted_date: str
    formatted_time: str

    @classmethod
    def for_event(cls, event: BusyEvent, service: Service, tz: tzinfo) -> BookingConfirmation:
        local_start = event.start.astimezone(tz)
        return cls(
            event=event,
            service_label=service.label,
            formatted_date=format_booking_date(local_start.date()),
            formatted_time=format_booking_time(local_start.time()),
        )


def format_booking_date(day: date) -> str:
    """``Monday, June 10, 2024``"""
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def format_booking_time(at: time) -> str:
    """``9:00 AM``"""
    hour = at.hour % 12 or 12
    suffix = "AM" if at.hour < 12 else "PM"
    return f"{hour}:{at.minute:02d} {suffix}"


# ---------------------------------------------------------------------------
# Client-side state
# ---------------------------------------------------------------------------


class BookingForm(BaseModel):
    service: ServiceName | None = None
    day: date | None = None
    start_time: time | None = None

    @property
    def is_complete(self) -> bool:
        return (
            self.service is not None
            and self.day is not None
            and self.start_time is not None
        )

    def clear(self) -> None:
        self.service = None
        self.day = None
        self.start_time = None


class Verdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: VerdictKind
    reason: str | None = None

    def __str__(self) -> str:
        if self.reason:
            return f"{self.kind}:{self.reason}"
        return str(self.kind)

    @classmethod
    def available(cls) -> Verdict:
        return cls(kind=VerdictKind.AVAILABLE)

    @classmethod
    def unavailable(cls) -> Verdict:
        return cls(kind=VerdictKind.UNAVAILABLE)

    @classmethod
    def blocked(cls, reason: str) -> Verdict:
        return cls(kind=VerdictKind.BLOCKED, reason=reason)

    @classmethod
    def error(cls, kind: str) -> Verdict:
        return cls(kind=VerdictKind.ERROR, reason=kind)


class BookingSnapshot(BaseModel):
    """Everything a presenter needs to render the booking form."""

    state: BookingState
    verdict: Verdict | None = None
    message: str = ""
    tone: Tone = Tone.NEUTRAL
    submit_enabled: bool = True
    confirmation: BookingConfirmation | None = None
    free_slots: list[datetime] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class ConflictDetail(BaseModel):
    message: str
    conflict: ConflictReport
