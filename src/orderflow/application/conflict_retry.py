"""Reload-and-retry for optimistic-lock conflicts.

Only for operations that reload the order and re-validate on every
attempt; payment capture must never go through here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from orderflow.domain.exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_conflict(operation: Callable[[], T], attempts: int = 2) -> T:
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConcurrentModificationError:
            if attempt == attempts:
                raise
            logger.info("Order changed concurrently, reloading (attempt %d/%d)", attempt, attempts)
    raise AssertionError("unreachable")
