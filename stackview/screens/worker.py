from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

LOGGER = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]


@dataclass
class WorkerResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class BackgroundWorker:
    """Run blocking work (archive reads, image decoding) off the owning thread.

    ``dispatch`` marshals the completion callback back to the owner, e.g.
    ``lambda fn: QTimer.singleShot(0, fn)`` in the window.

    Usage:
      worker = BackgroundWorker(dispatch)
      worker.run(task_fn, on_done)
    """

    def __init__(self, dispatch: Optional[Dispatch] = None):
        self._dispatch = dispatch or _call_now
        self._busy = False
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return bool(self._busy)

    def run(self, fn: Callable[[], Any], on_done: Callable[[WorkerResult], None]) -> bool:
        with self._lock:
            if self._busy:
                self._dispatch(lambda: on_done(WorkerResult(ok=False, error="Operation already in progress.")))
                return False
            self._busy = True

        def _thread():
            try:
                res = WorkerResult(ok=True, value=fn())
            except Exception as e:
                LOGGER.exception("Background task failed")
                res = WorkerResult(ok=False, error=str(e))

            def _finish():
                with self._lock:
                    self._busy = False
                on_done(res)

            self._dispatch(_finish)

        self._thread = threading.Thread(target=_thread, daemon=True)
        self._thread.start()
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
