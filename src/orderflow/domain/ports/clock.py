"""Port for the current time, injected so engines stay deterministic."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Return the current timezone-aware UTC time."""
