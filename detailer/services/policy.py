"""Business rules applied to a selected date before any calendar lookup."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from detailer.domain.errors import PolicyBlock

CLOSED_DAY = "closed_day"
SAME_DAY = "same_day"
PAST_DATE = "past_date"


@dataclass(frozen=True)
class BookingPolicy:
    # datetime.weekday() numbering: Monday=0 ... Sunday=6
    closed_weekday: int = 6

    def check(self, day: date, today: date) -> None:
        """Raise :class:`PolicyBlock` if ``day`` cannot be booked online."""
        if day.weekday() == self.closed_weekday:
            weekday_name = calendar.day_name[self.closed_weekday]
            raise PolicyBlock(
                CLOSED_DAY,
                f"We are closed on {weekday_name}s. "
                "Please contact us directly to arrange a booking.",
            )
        if day < today:
            raise PolicyBlock(PAST_DATE, "Please choose a date in the future.")
        if day == today:
            raise PolicyBlock(
                SAME_DAY,
                "Same-day bookings can't be made online. "
                "Please call us to check today's availability.",
            )
