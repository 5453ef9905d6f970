"""Error taxonomy for booking checks, submissions and their collaborators."""

from __future__ import annotations

from detailer.domain.models import BusyEvent, CandidateBooking, ConflictReport


class BookingError(Exception):
    """Base class for every error raised by the booking core."""


# ---------------------------------------------------------------------------
# Orchestrator-level outcomes
# ---------------------------------------------------------------------------


class FormValidationError(BookingError):
    """The form is missing a service, date or time."""


class PolicyBlock(BookingError):
    """The selected date cannot be booked online (closed day, same day)."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class AvailabilityCheckError(BookingError):
    """The advisory availability query failed."""


class SubmitConflict(BookingError):
    """The authoritative create path found a colliding booking."""

    def __init__(self, report: ConflictReport, message: str = "Time slot is already booked.") -> None:
        super().__init__(message)
        self.report = report


class SubmitError(BookingError):
    """Submission failed for a reason other than a conflict."""


# ---------------------------------------------------------------------------
# Collaborator errors
# ---------------------------------------------------------------------------


class CalendarError(BookingError):
    """The calendar backend could not be reached or returned an error."""


class ConflictError(CalendarError):
    """Raised by the create path when the candidate overlaps an existing event."""

    def __init__(
        self,
        existing_event: BusyEvent,
        candidate: CandidateBooking,
        message: str = "Time slot is already booked.",
    ) -> None:
        super().__init__(message)
        self.existing_event = existing_event
        self.candidate = candidate

    @property
    def report(self) -> ConflictReport:
        return ConflictReport(existing_event=self.existing_event, new_request=self.candidate)


class NotifyError(BookingError):
    """A conflict notification could not be delivered."""
