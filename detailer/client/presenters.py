"""Presenters turning orchestrator snapshots into what the booking page shows."""

from __future__ import annotations

from detailer.domain.models import (
    BookingConfirmation,
    BookingSnapshot,
    BookingState,
    Tone,
    format_booking_time,
)

_CSS_CLASSES = {
    Tone.NEUTRAL: "message",
    Tone.SUCCESS: "message success",
    Tone.ERROR: "message error",
}


def render_confirmation(confirmation: BookingConfirmation) -> str:
    return (
        f"Your {confirmation.service_label} appointment is requested for "
        f"{confirmation.formatted_date} at {confirmation.formatted_time}."
    )


class StatusTextPresenter:
    """Keeps a single status line, its style class and the submit button state."""

    def __init__(self) -> None:
        self.text = ""
        self.css_class = _CSS_CLASSES[Tone.NEUTRAL]
        self.submit_disabled = False
        self.history: list[BookingState] = []

    def __call__(self, snapshot: BookingSnapshot) -> None:
        self.text = snapshot.message
        self.css_class = _CSS_CLASSES[snapshot.tone]
        self.submit_disabled = not snapshot.submit_enabled
        self.history.append(snapshot.state)


class ModalPresenter(StatusTextPresenter):
    """Status line plus a modal for outcomes and a list of bookable times."""

    def __init__(self) -> None:
        super().__init__()
        self.modal: str | None = None
        self.slot_options: list[str] = []

    def __call__(self, snapshot: BookingSnapshot) -> None:
        super().__call__(snapshot)
        self.slot_options = [format_booking_time(s.time()) for s in snapshot.free_slots]
        if snapshot.state == BookingState.CONFIRMED and snapshot.confirmation is not None:
            self.modal = render_confirmation(snapshot.confirmation)
        elif snapshot.state in (BookingState.SUBMIT_CONFLICT, BookingState.BLOCKED):
            self.modal = snapshot.message

    def dismiss(self) -> None:
        self.modal = None
