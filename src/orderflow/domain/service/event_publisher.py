"""Best-effort delivery of domain events.

Events are published only after the state change they describe has been
saved.  A failing emitter is logged and otherwise ignored: it must never
undo or fail a committed operation.
"""

from __future__ import annotations

import logging

from orderflow.domain.events import DomainEvent
from orderflow.domain.ports.event_emitter import EventEmitter

logger = logging.getLogger(__name__)


class EventPublisher:

    def __init__(self, emitter: EventEmitter) -> None:
        self._emitter = emitter

    def publish(self, *events: DomainEvent) -> None:
        for event in events:
            try:
                self._emitter.emit(event.name, event.payload())
            except Exception:
                logger.exception("Failed to emit %s event %r", event.name, event.payload())
