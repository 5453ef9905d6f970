"""Service for detecting scheduling conflicts between intervals."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol, TypeVar


class Span(Protocol):
    @property
    def start(self) -> datetime: ...

    @property
    def end(self) -> datetime: ...


S = TypeVar("S", bound=Span)


def overlaps(a: Span, b: Span) -> bool:
    """Return True when the half-open intervals ``a`` and ``b`` intersect.

    Overlap rule: a.start < b.end AND a.end > b.start.
    Exact boundary touches (end == start) are NOT considered conflicts.
    """
    return a.start < b.end and a.end > b.start


def find_conflict(candidate: Span, busy: Iterable[S]) -> S | None:
    """Return the first busy interval, in the given order, overlapping ``candidate``."""
    for item in busy:
        if overlaps(candidate, item):
            return item
    return None


def find_conflicts(candidate: Span, busy: Iterable[S]) -> list[S]:
    """Return every busy interval overlapping ``candidate``, in input order."""
    return [item for item in busy if overlaps(candidate, item)]
