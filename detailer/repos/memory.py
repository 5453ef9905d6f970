"""In-memory repositories for calendar events and booking activity."""

from __future__ import annotations

import threading
from datetime import datetime

from detailer.domain.models import ActivityEntry, ActivityType, BusyEvent


class CalendarRepository:
    """Dict-backed store for BusyEvent instances, keyed by id.

    ``lock`` guards read-then-write sequences; callers that list events and
    then insert based on what they saw must hold it for the whole sequence.
    """

    def __init__(self) -> None:
        self._store: dict[str, BusyEvent] = {}
        self.lock = threading.RLock()

    def add(self, event: BusyEvent) -> None:
        with self.lock:
            self._store[event.id] = event

    def list_all(self) -> list[BusyEvent]:
        with self.lock:
            return sorted(self._store.values(), key=lambda e: e.start)

    def list_between(self, start: datetime, end: datetime) -> list[BusyEvent]:
        """Return events overlapping ``[start, end)``, ordered by start time."""
        with self.lock:
            return sorted(
                (e for e in self._store.values() if e.start < end and e.end > start),
                key=lambda e: e.start,
            )


class ActivityRepository:
    """List-backed store for ActivityEntry instances."""

    def __init__(self) -> None:
        self._entries: list[ActivityEntry] = []

    def add(self, entry: ActivityEntry) -> None:
        self._entries.append(entry)

    def list_all(self) -> list[ActivityEntry]:
        return sorted(self._entries, key=lambda e: e.timestamp)

    def list_for_event(self, event_id: str) -> list[ActivityEntry]:
        return sorted(
            [e for e in self._entries if e.event_id == event_id],
            key=lambda e: e.timestamp,
        )

    def list_by_type(self, type_: ActivityType) -> list[ActivityEntry]:
        return [e for e in self.list_all() if e.type == type_]
