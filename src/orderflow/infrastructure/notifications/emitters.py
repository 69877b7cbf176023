"""EventEmitter implementations.

- LoggingEventEmitter: one structured log line per event.
- JsonlAuditEmitter: append-only JSON-lines audit file.
- FanOutEmitter: delivers to several emitters; one failing emitter does
  not keep the others from receiving the event.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from orderflow.domain.ports.event_emitter import EventEmitter

logger = logging.getLogger(__name__)


class LoggingEventEmitter(EventEmitter):

    def __init__(self, logger_name: str = "orderflow.events") -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(self, event_name: str, payload: dict) -> None:
        self._logger.info("%s %s", event_name, json.dumps(payload, sort_keys=True, default=str))


class JsonlAuditEmitter(EventEmitter):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event_name: str, payload: dict) -> None:
        record = {
            "event": event_name,
            "recorded_at": datetime.now(timezone.utc).isoformat(),
            "payload": payload,
        }
        line = json.dumps(record, sort_keys=True, default=str)
        with self._lock:
            with self._file_path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")


class FanOutEmitter(EventEmitter):

    def __init__(self, emitters: list[EventEmitter]) -> None:
        self._emitters = list(emitters)

    def emit(self, event_name: str, payload: dict) -> None:
        for emitter in self._emitters:
            try:
                emitter.emit(event_name, payload)
            except Exception:
                logger.exception(
                    "%s failed to deliver %s", type(emitter).__name__, event_name
                )
