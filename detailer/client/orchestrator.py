"""Booking orchestrator: one booking attempt as an explicit state machine.

The orchestrator owns the customer's current selections and drives them
through an advisory availability check (debounced, superseded by newer
requests) and an authoritative submission. Rendering is left to a presenter
callback that receives a :class:`BookingSnapshot` after every transition.

Usage:
    view = ModalPresenter()  # defaults to StatusTextPresenter
    orchestrator = BookingOrchestrator(gateway, notifier, tz=tz, presenter=view)
    task = orchestrator.select(service="Interior", day="2024-06-10", start_time="09:00")
    await task
    if orchestrator.snapshot.submit_enabled:
        await orchestrator.submit()
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import Any, Callable

from detailer.client.gateways import CalendarGateway, ConflictNotifier
from detailer.client.presenters import StatusTextPresenter
from detailer.config import Settings
from detailer.domain.errors import (
    AvailabilityCheckError,
    CalendarError,
    ConflictError,
    PolicyBlock,
    SubmitConflict,
    SubmitError,
)
from detailer.domain.models import (
    BookingConfirmation,
    BookingForm,
    BookingSnapshot,
    BookingState,
    BusinessHours,
    BusyEvent,
    CandidateBooking,
    ConflictReport,
    ServiceName,
    Tone,
    Verdict,
    get_service,
)
from detailer.services.conflicts import find_conflict
from detailer.services.policy import BookingPolicy
from detailer.services.slots import day_window, enumerate_free_slots

logger = logging.getLogger(__name__)

Presenter = Callable[[BookingSnapshot], None]

CHECKING_MESSAGE = "Checking availability..."
AVAILABLE_MESSAGE = "This time slot is available!"
UNAVAILABLE_MESSAGE = "This time slot is already booked. Please choose another time or date."
CHECK_FAILED_MESSAGE = "Could not verify availability. Please try again."
LOADING_SLOTS_MESSAGE = "Loading available times..."
NO_SLOTS_MESSAGE = "No times are available on this date. Please choose another date."
SLOTS_FAILED_MESSAGE = "Could not load available times. Please try again."
INCOMPLETE_MESSAGE = "Please ensure all fields are selected."
SUBMITTING_MESSAGE = "Submitting your booking..."
CONFIRMED_MESSAGE = "Booking request successful! We will contact you shortly to confirm."
SUBMIT_FAILED_MESSAGE = "A network error occurred. Please try again later."

_FORM_FIELDS = frozenset(BookingForm.model_fields)


class BookingOrchestrator:
    def __init__(
        self,
        calendar: CalendarGateway,
        notifier: ConflictNotifier,
        *,
        tz: tzinfo,
        policy: BookingPolicy | None = None,
        business_hours: BusinessHours | None = None,
        presenter: Presenter | None = None,
        debounce_seconds: float = 0.5,
        timeout_seconds: float = 10.0,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._calendar = calendar
        self._notifier = notifier
        self._tz = tz
        self._policy = policy or BookingPolicy()
        self._business_hours = business_hours or BusinessHours(start_hour=9, end_hour=17)
        self._presenter = presenter if presenter is not None else StatusTextPresenter()
        self._debounce_seconds = debounce_seconds
        self._timeout_seconds = timeout_seconds
        self._today = today or (lambda: datetime.now(self._tz).date())

        self.form = BookingForm()
        self._snapshot = BookingSnapshot(state=BookingState.IDLE)
        self._token = 0
        self._pending: asyncio.Task | None = None
        self._submitting = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        calendar: CalendarGateway,
        notifier: ConflictNotifier,
        presenter: Presenter | None = None,
    ) -> BookingOrchestrator:
        return cls(
            calendar,
            notifier,
            tz=settings.tz,
            policy=BookingPolicy(closed_weekday=settings.closed_weekday),
            business_hours=BusinessHours(
                start_hour=settings.business_start_hour,
                end_hour=settings.business_end_hour,
            ),
            presenter=presenter,
            debounce_seconds=settings.debounce_seconds,
            timeout_seconds=settings.request_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> BookingSnapshot:
        return self._snapshot

    @property
    def state(self) -> BookingState:
        return self._snapshot.state

    @property
    def presenter(self) -> Presenter:
        return self._presenter

    def _transition(
        self,
        state: BookingState,
        *,
        submit_enabled: bool,
        verdict: Verdict | None = None,
        message: str = "",
        tone: Tone = Tone.NEUTRAL,
        confirmation: BookingConfirmation | None = None,
        free_slots: list[datetime] | None = None,
    ) -> None:
        if free_slots is None:
            free_slots = self._snapshot.free_slots
        self._snapshot = BookingSnapshot(
            state=state,
            verdict=verdict,
            message=message,
            tone=tone,
            submit_enabled=submit_enabled,
            confirmation=confirmation,
            free_slots=free_slots,
        )
        logger.debug("Booking state -> %s (verdict=%s)", state, verdict)
        self._presenter(self._snapshot)

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    def _is_stale(self, token: int) -> bool:
        if token != self._token:
            logger.debug("Discarding stale response (token %d, latest %d)", token, self._token)
            return True
        return False

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def _candidate(self) -> CandidateBooking:
        return CandidateBooking.from_selection(
            self.form.service, self.form.day, self.form.start_time, self._tz
        )

    def _check_policy(self, day: date) -> Verdict | None:
        """Move to BLOCKED and return its verdict if ``day`` is not bookable."""
        try:
            self._policy.check(day, self._today())
        except PolicyBlock as block:
            verdict = Verdict.blocked(block.reason)
            self._transition(
                BookingState.BLOCKED,
                verdict=verdict,
                message=str(block),
                tone=Tone.ERROR,
                submit_enabled=False,
                free_slots=[],
            )
            return verdict
        return None

    # ------------------------------------------------------------------
    # Selection and advisory checks
    # ------------------------------------------------------------------

    def select(self, **changes: Any) -> asyncio.Task | None:
        """Update the form with ``service``, ``day`` and/or ``start_time``.

        Once all three are set a debounced availability check is scheduled on
        the running event loop and its task returned. Any earlier pending or
        in-flight check is superseded. While a submission is in flight only
        the form is updated; the check runs once the submission settles.
        """
        unknown = set(changes) - _FORM_FIELDS
        if unknown:
            raise TypeError(f"Unknown form field(s): {', '.join(sorted(unknown))}")

        previous_day = self.form.day
        self.form = BookingForm.model_validate({**self.form.model_dump(), **changes})
        self._next_token()
        self._cancel_pending()

        if self._submitting:
            logger.debug("Selection changed during submission; check deferred")
            return None

        free_slots = [] if self.form.day != previous_day else None
        if not self.form.is_complete:
            self._transition(
                BookingState.FORM_INCOMPLETE, submit_enabled=True, free_slots=free_slots
            )
            return None
        if free_slots is not None:
            self._snapshot = self._snapshot.model_copy(update={"free_slots": []})
        return self.request_check()

    @property
    def pending_check(self) -> asyncio.Task | None:
        """The scheduled availability check, if one has not finished yet."""
        if self._pending is not None and not self._pending.done():
            return self._pending
        return None

    def request_check(self) -> asyncio.Task:
        """Schedule a check after the quiet period, replacing any pending one."""
        self._cancel_pending()
        self._pending = asyncio.get_running_loop().create_task(self._debounced_check())
        return self._pending

    async def _debounced_check(self) -> Verdict | None:
        await asyncio.sleep(self._debounce_seconds)
        return await self.check_availability()

    async def check_availability(self) -> Verdict | None:
        """Run the advisory check for the current selections immediately.

        Returns the verdict applied, or None when the form is incomplete or the
        response was superseded by a newer request. Does nothing while a
        submission is in flight.
        """
        if self._submitting:
            logger.debug("Availability check skipped during submission")
            return None

        token = self._next_token()
        if not self.form.is_complete:
            self._transition(BookingState.FORM_INCOMPLETE, submit_enabled=True)
            return None

        blocked = self._check_policy(self.form.day)
        if blocked is not None:
            return blocked

        candidate = self._candidate()
        self._transition(BookingState.CHECKING, message=CHECKING_MESSAGE, submit_enabled=False)
        try:
            busy = await self._fetch_busy(self.form.day)
        except AvailabilityCheckError as exc:
            if self._is_stale(token):
                return None
            logger.warning("Availability check failed: %s", exc)
            verdict = Verdict.error("check_failed")
            # The server re-checks on submit, so a failed advisory check
            # must not block the customer.
            self._transition(
                BookingState.CHECK_FAILED,
                verdict=verdict,
                message=CHECK_FAILED_MESSAGE,
                tone=Tone.ERROR,
                submit_enabled=True,
            )
            return verdict

        if self._is_stale(token):
            return None

        conflict = find_conflict(candidate, busy)
        if conflict is not None:
            logger.info(
                "%s at %s overlaps existing event %s",
                candidate.service,
                candidate.start.isoformat(),
                conflict.id,
            )
            verdict = Verdict.unavailable()
            self._transition(
                BookingState.UNAVAILABLE,
                verdict=verdict,
                message=UNAVAILABLE_MESSAGE,
                tone=Tone.ERROR,
                submit_enabled=False,
            )
        else:
            verdict = Verdict.available()
            self._transition(
                BookingState.AVAILABLE,
                verdict=verdict,
                message=AVAILABLE_MESSAGE,
                tone=Tone.SUCCESS,
                submit_enabled=True,
            )
        return verdict

    async def load_free_slots(
        self, day: date | None = None, service: ServiceName | str | None = None
    ) -> list[datetime]:
        """Slot-enumeration mode: list the free start times for a day."""
        if self._submitting:
            logger.debug("Slot listing skipped during submission")
            return []

        day = day or self.form.day
        service = service or self.form.service
        if day is None or service is None:
            self._transition(BookingState.FORM_INCOMPLETE, submit_enabled=True, free_slots=[])
            return []

        if self._check_policy(day) is not None:
            return []

        token = self._next_token()
        self._transition(
            BookingState.CHECKING,
            message=LOADING_SLOTS_MESSAGE,
            submit_enabled=False,
            free_slots=[],
        )
        try:
            busy = await self._fetch_busy(day)
        except AvailabilityCheckError as exc:
            if self._is_stale(token):
                return []
            logger.warning("Loading free slots failed: %s", exc)
            self._transition(
                BookingState.CHECK_FAILED,
                verdict=Verdict.error("check_failed"),
                message=SLOTS_FAILED_MESSAGE,
                tone=Tone.ERROR,
                submit_enabled=True,
            )
            return []

        if self._is_stale(token):
            return []

        slots = enumerate_free_slots(
            day, get_service(service).duration_hours, self._business_hours, busy, self._tz
        )
        if slots:
            self._transition(
                BookingState.AVAILABLE,
                verdict=Verdict.available(),
                message=f"{len(slots)} start time(s) available.",
                tone=Tone.SUCCESS,
                submit_enabled=True,
                free_slots=slots,
            )
        else:
            self._transition(
                BookingState.UNAVAILABLE,
                verdict=Verdict.unavailable(),
                message=NO_SLOTS_MESSAGE,
                tone=Tone.ERROR,
                submit_enabled=False,
                free_slots=[],
            )
        return slots

    async def _fetch_busy(self, day: date) -> list[BusyEvent]:
        start, end = day_window(day, self._tz)
        try:
            return await asyncio.wait_for(
                self._calendar.fetch_busy_events(start, end), self._timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise AvailabilityCheckError(
                f"Calendar did not answer within {self._timeout_seconds}s"
            ) from exc
        except CalendarError as exc:
            raise AvailabilityCheckError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self) -> BookingState:
        """Send the current selections to the authoritative create path."""
        if self._submitting or not self._snapshot.submit_enabled:
            logger.debug("Submit ignored in state %s", self.state)
            return self.state

        self._next_token()
        self._cancel_pending()

        if not self.form.is_complete:
            self._transition(
                BookingState.FORM_INCOMPLETE,
                message=INCOMPLETE_MESSAGE,
                tone=Tone.ERROR,
                submit_enabled=True,
            )
            return self.state

        if self._check_policy(self.form.day) is not None:
            return self.state

        candidate = self._candidate()
        submitted = self.form.model_copy()
        self._submitting = True
        self._transition(BookingState.SUBMITTING, message=SUBMITTING_MESSAGE, submit_enabled=False)
        try:
            confirmation = await self._create(candidate)
        except SubmitConflict as exc:
            logger.warning(
                "Submission lost to existing event %s", exc.report.existing_event.id
            )
            # Stays disabled until a different slot is selected and checked.
            self._transition(
                BookingState.SUBMIT_CONFLICT,
                verdict=Verdict.unavailable(),
                message=f"Error: {exc}",
                tone=Tone.ERROR,
                submit_enabled=False,
            )
            await self._notify(exc.report)
        except SubmitError as exc:
            logger.warning("Submission failed: %s", exc)
            self._transition(
                BookingState.SUBMIT_FAILED,
                verdict=Verdict.error("submit_failed"),
                message=SUBMIT_FAILED_MESSAGE,
                tone=Tone.ERROR,
                submit_enabled=True,
            )
        else:
            logger.info("Booked %s for %s", confirmation.event.id, candidate.start.isoformat())
            if self.form == submitted:
                self.form.clear()
            self._transition(
                BookingState.CONFIRMED,
                message=CONFIRMED_MESSAGE,
                tone=Tone.SUCCESS,
                submit_enabled=False,
                confirmation=confirmation,
                free_slots=[],
            )
        finally:
            self._submitting = False

        if self.form != submitted and self.form.is_complete:
            self.request_check()
        return self.state

    async def _create(self, candidate: CandidateBooking) -> BookingConfirmation:
        try:
            return await asyncio.wait_for(
                self._calendar.create_booking(candidate), self._timeout_seconds
            )
        except ConflictError as exc:
            raise SubmitConflict(exc.report, str(exc)) from exc
        except asyncio.TimeoutError as exc:
            raise SubmitError(
                f"Booking server did not answer within {self._timeout_seconds}s"
            ) from exc
        except CalendarError as exc:
            raise SubmitError(str(exc)) from exc

    async def _notify(self, report: ConflictReport) -> None:
        try:
            await asyncio.wait_for(
                self._notifier.notify_conflict(report), self._timeout_seconds
            )
        except Exception:
            # Best-effort: a notifier failure never reaches the customer.
            logger.exception("Failed to send conflict notification")
