from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from stackview.core.audit import audit_span
from stackview.engine.errors import ArchiveError, MalformedInputError
from stackview.labeling import LabelingSession

from .archive import ArchiveResult, ArchiveSource, Screen, read_screen_archive
from .io import dumps_payload, parse_payload
from .screenshot import PLACEHOLDER, Screenshot, decode_screenshot
from .storage import MemoryScreenStore, ScreenStore, screen_key
from .worker import BackgroundWorker, WorkerResult

LOGGER = logging.getLogger(__name__)


class ScreenSession:
    """Navigates the screens of an archive and feeds them to a LabelingSession.

    Each screen's element list is persisted under ``screen_<n>``; a saved
    record wins over the archive's bundled JSON. Edits made through the
    labeling session are saved back to the current screen.
    """

    def __init__(
        self,
        labeling: LabelingSession,
        store: Optional[ScreenStore] = None,
        decoder: Optional[BackgroundWorker] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.labeling = labeling
        self.store = store if store is not None else MemoryScreenStore()
        self.decoder = decoder
        self.logger = logger or LOGGER
        self.screens: List[Screen] = []
        self.index = -1
        self.screenshot: Screenshot = PLACEHOLDER
        self.last_warnings: List[str] = []
        self._loading = False
        self._closed = False
        self._shot_token = 0
        self._screen_listeners: List[Callable[["ScreenSession"], None]] = []
        self.labeling.store.add_listener(self._on_elements_changed)

    # ---------------- listeners ----------------
    def add_screen_listener(self, callback: Callable[["ScreenSession"], None]) -> None:
        if callback not in self._screen_listeners:
            self._screen_listeners.append(callback)

    def remove_screen_listener(self, callback: Callable[["ScreenSession"], None]) -> None:
        if callback in self._screen_listeners:
            self._screen_listeners.remove(callback)

    def _notify_screen(self) -> None:
        for cb in list(self._screen_listeners):
            cb(self)

    # ---------------- state ----------------
    @property
    def current(self) -> Optional[Screen]:
        if 0 <= self.index < len(self.screens):
            return self.screens[self.index]
        return None

    @property
    def has_screens(self) -> bool:
        return bool(self.screens)

    def position_label(self) -> str:
        if not self.screens:
            return ""
        return f"{self.index + 1} / {len(self.screens)}"

    # ---------------- archive ----------------
    def set_screens(self, screens: Sequence[Screen]) -> bool:
        self.screens = list(screens)
        self.index = -1
        if not self.screens:
            self._decode_current()
            self._notify_screen()
            return False
        return self.load_screen(0)

    def apply_archive(self, result: ArchiveResult) -> bool:
        self.last_warnings = list(result.warnings)
        for warning in result.warnings:
            self.logger.warning("Archive: %s", warning)
        self.labeling.notifications.show(f"Successfully loaded {len(result.screens)} screens")
        return self.set_screens(result.screens)

    def load_archive(self, source: ArchiveSource) -> bool:
        try:
            with audit_span("archive_load", logger=self.logger):
                result = read_screen_archive(source)
        except ArchiveError as e:
            self.logger.error("Archive rejected: %s", e.details or e)
            self.labeling.notifications.error(str(e))
            return False
        return self.apply_archive(result)

    def load_archive_async(self, source: ArchiveSource, worker: BackgroundWorker) -> bool:
        def _done(res: WorkerResult) -> None:
            if res.ok:
                self.apply_archive(res.value)
            else:
                self.labeling.notifications.error(res.error or "Failed to process ZIP file")

        def _task() -> ArchiveResult:
            return read_screen_archive(source)

        return worker.run(_task, _done)

    # ---------------- navigation ----------------
    def load_screen(self, index: int) -> bool:
        if not (0 <= int(index) < len(self.screens)):
            return False
        self.index = int(index)
        screen = self.screens[self.index]
        self._decode_current()

        self._loading = True
        try:
            saved = self.store.load(screen.number)
            text = saved.json if saved is not None else screen.json_text
            payload = parse_payload(text)
            name = payload.screen_id or screen.screen_name or screen_key(screen.number)
            self.labeling.load_elements(payload.elements, screen_name=name, keep_selection=False)
            if saved is None:
                self.store.save(screen.number, screen.json_text)
        except MalformedInputError as e:
            self.logger.error("Screen %d unreadable: %s", screen.number, e)
            self.labeling.notifications.error("Failed to load screen data")
            return False
        finally:
            self._loading = False
            self._notify_screen()
        return True

    def next_screen(self) -> bool:
        if self.index + 1 >= len(self.screens):
            return False
        return self.load_screen(self.index + 1)

    def previous_screen(self) -> bool:
        if self.index <= 0:
            return False
        return self.load_screen(self.index - 1)

    # ---------------- screenshot ----------------
    def _decode_current(self) -> None:
        """Show the placeholder, then the decoded screenshot of the current screen.

        Without a decoder the image is decoded inline. With one, a decode that
        finishes after the user moved on restarts for the screen now shown.
        """
        self._shot_token += 1
        self.screenshot = PLACEHOLDER
        screen = self.current
        if screen is None:
            return
        if self.decoder is None:
            self.screenshot = decode_screenshot(screen.screenshot)
            return
        if self.decoder.is_busy:
            return
        token = self._shot_token
        data = screen.screenshot
        self.decoder.run(lambda: decode_screenshot(data), lambda res: self._on_decoded(token, res))

    def _on_decoded(self, token: int, res: WorkerResult) -> None:
        if self._closed:
            return
        if token != self._shot_token:
            self._decode_current()
            return
        self.screenshot = res.value if res.ok else Screenshot(ok=False, error=res.error or "Decode failed")
        self._notify_screen()

    # ---------------- persistence ----------------
    def save_current(self) -> bool:
        screen = self.current
        if screen is None:
            return False
        text = dumps_payload(self.labeling.store.elements, self.labeling.screen_name)
        return self.store.save(screen.number, text) is not None

    def _on_elements_changed(self, _event: str, _payload: dict) -> None:
        if self._loading:
            return
        self.save_current()

    def close(self) -> None:
        self._closed = True
        self.labeling.store.remove_listener(self._on_elements_changed)
