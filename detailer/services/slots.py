"""Free-slot enumeration over a single business day."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, tzinfo

from detailer.domain.models import BusinessHours, TimeInterval
from detailer.services.conflicts import Span, find_conflict


def day_window(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return local midnight of ``day`` and of the following day."""
    start = datetime.combine(day, time.min).replace(tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min).replace(tzinfo=tz)
    return start, end


def enumerate_free_slots(
    day: date,
    duration_hours: int,
    business_hours: BusinessHours,
    busy: Iterable[Span],
    tz: tzinfo,
) -> list[datetime]:
    """Return the on-the-hour start times on ``day`` whose interval is free.

    Every hour ``h`` from ``business_hours.start_hour`` up to and including
    ``business_hours.end_hour - duration_hours`` is tried as ``[h:00, h+duration:00)``.
    The result is ascending and empty when the service does not fit in the day.
    """
    if duration_hours <= 0:
        raise ValueError("duration_hours must be positive")
    if duration_hours > business_hours.span_hours:
        return []

    busy = list(busy)
    day_start, _ = day_window(day, tz)
    slots: list[datetime] = []
    for hour in range(business_hours.start_hour, business_hours.end_hour - duration_hours + 1):
        start = day_start + timedelta(hours=hour)
        candidate = TimeInterval(start=start, end=start + timedelta(hours=duration_hours))
        if find_conflict(candidate, busy) is None:
            slots.append(start)
    return slots
