"""Port for publishing domain events to external consumers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class EventEmitter(ABC):

    @abstractmethod
    def emit(self, event_name: str, payload: dict) -> None:
        """Deliver one event. Callers treat this as fire-and-forget."""
