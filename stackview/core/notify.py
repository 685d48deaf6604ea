from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    message: str
    level: str
    posted_at: float
    expires_at: float


class NotificationCenter:
    """Holds the latest user-facing message until it times out.

    A newer message replaces the current one. Expiry is evaluated against
    ``clock`` so the window can poll it from a timer.
    """

    def __init__(self, timeout_s: float = 3.0, clock: Callable[[], float] = time.monotonic):
        self.timeout_s = max(0.0, float(timeout_s))
        self._clock = clock
        self._current: Optional[Notification] = None
        self._listeners: List[Callable[[Optional[Notification]], None]] = []

    def add_listener(self, callback: Callable[[Optional[Notification]], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[Optional[Notification]], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def show(self, message: str, level: str = "info") -> Notification:
        now = float(self._clock())
        note = Notification(message=str(message), level=str(level or "info"), posted_at=now, expires_at=now + self.timeout_s)
        self._current = note
        log_fn = LOGGER.warning if note.level == "error" else LOGGER.info
        log_fn("notify: %s", note.message)
        self._emit(note)
        return note

    def error(self, message: str) -> Notification:
        return self.show(message, level="error")

    def current(self) -> Optional[Notification]:
        self.expire()
        return self._current

    def message(self) -> str:
        note = self.current()
        return note.message if note is not None else ""

    def expire(self) -> bool:
        if self._current is None:
            return False
        if float(self._clock()) < self._current.expires_at:
            return False
        self._current = None
        self._emit(None)
        return True

    def _emit(self, note: Optional[Notification]) -> None:
        for cb in list(self._listeners):
            cb(note)
