"""
Run log: the ordered, user-visible record of a workflow run.

Entries are appended by the engine, fanned out to subscribers (the SSE
stream listens here) and mirrored to the Python logger.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

LogLevel = Literal["info", "success", "warning", "error"]

_PY_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class RunLogEntry(BaseModel):
    timestamp: str = Field(default_factory=_timestamp)
    level: LogLevel = "info"
    message: str

    def __str__(self) -> str:
        try:
            clock = datetime.fromisoformat(self.timestamp).strftime("%H:%M:%S")
        except ValueError:
            clock = self.timestamp
        return f"[{clock}] {self.message}"


Subscriber = Callable[[RunLogEntry], None]


class RunLog:
    def __init__(self) -> None:
        self._entries: list[RunLogEntry] = []
        self._subscribers: list[Subscriber] = []

    def append(self, message: str, level: LogLevel = "info") -> RunLogEntry:
        entry = RunLogEntry(level=level, message=message)
        self._entries.append(entry)
        logger.log(_PY_LEVELS[level], "%s", message)

        for callback in list(self._subscribers):
            try:
                callback(entry)
            except Exception:
                logger.exception("Run log subscriber failed")
        return entry

    def info(self, message: str) -> RunLogEntry:
        return self.append(message, "info")

    def success(self, message: str) -> RunLogEntry:
        return self.append(message, "success")

    def warning(self, message: str) -> RunLogEntry:
        return self.append(message, "warning")

    def error(self, message: str) -> RunLogEntry:
        return self.append(message, "error")

    def clear(self) -> None:
        self._entries.clear()

    def entries(self) -> list[RunLogEntry]:
        return list(self._entries)

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._entries)
