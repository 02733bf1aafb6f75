"""
Message Bus

Side effects of a reservation (in-app notifications, realtime pushes,
emails, availability bands) hang off domain events instead of living in
the service that changed the row. Handlers run once the surrounding
database transaction has committed, so a rolled back booking never
notifies anyone.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Iterable

from django.db import transaction  # type: ignore

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class MessageBus:
    """In-process event dispatcher, one event to many handlers."""

    def __init__(self):
        self._handlers: dict[type[DomainEvent], list[Handler]] = defaultdict(list)

    def register_event_handler(self, event_type: type[DomainEvent], handler: Handler) -> None:
        # AppConfig.ready can run more than once under the test runner
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def publish_events(self, events: Iterable[DomainEvent]) -> None:
        """Call every handler of every event now.

        A failing handler is logged and skipped; the reservation it reacts
        to is already stored.
        """
        for event in events:
            name = type(event).__name__
            handlers = self._handlers.get(type(event), [])
            if not handlers:
                logger.warning(f"Event {name} has no handlers")
                continue
            logger.info(f"Dispatching {name} for aggregate {event.aggregate_id}")
            logger.debug(f"{name} payload: {event.to_dict()}")
            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(f"Handler {handler.__name__} failed on {name}: {e}", exc_info=True)

    def publish_on_commit(self, *events: DomainEvent) -> None:
        """Queue events until the current transaction commits."""
        transaction.on_commit(lambda: self.publish_events(events))


message_bus = MessageBus()
