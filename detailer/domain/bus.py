"""Simple synchronous in-process event bus."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, TypeVar

from detailer.domain.events import DomainEvent

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=DomainEvent)


class EventBus:
    """Publish/subscribe bus for booking domain events.

    Handlers are called synchronously in registration order. A handler that
    raises stops delivery and the exception propagates to the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[DomainEvent], list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        if not issubclass(event_type, DomainEvent):
            raise TypeError(f"{event_type.__name__} is not a domain event")
        self._subscribers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> int:
        """Deliver ``event`` and return how many handlers received it."""
        handlers = list(self._subscribers.get(type(event), ()))
        logger.debug("Publishing %s to %d handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(event)
        return len(handlers)
