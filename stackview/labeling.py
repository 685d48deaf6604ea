from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from stackview.core.config import DEFAULT_SETTINGS, ViewerSettings
from stackview.core.notify import NotificationCenter
from stackview.engine.camera import Camera, CameraController, apply_framing
from stackview.engine.edit_session import CommitResult, EditSession
from stackview.engine.element import NaturalKey
from stackview.engine.element_store import ElementStore
from stackview.engine.errors import MalformedInputError
from stackview.engine.keys import KeyBindings
from stackview.engine.pick_engine import ClickResult, HoverChange, PickEngine
from stackview.engine.scene_builder import SceneBuild, SceneBuilder
from stackview.engine.volume import VolumeArena
from stackview.screens.io import export_payload, parse_payload
from stackview.screens.io import save_export as write_export

LOGGER = logging.getLogger(__name__)


class LabelingSession:
    """Interactive owner of one element collection.

    Collection mutations and scene rebuilds run back to back on the calling
    thread. Operations that touch several components run inside ``_batch``
    so the scene is rebuilt once, after the draft and selection settled.
    """

    def __init__(
        self,
        settings: ViewerSettings = DEFAULT_SETTINGS,
        store: Optional[ElementStore] = None,
        notifications: Optional[NotificationCenter] = None,
        key_bindings: Optional[KeyBindings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.logger = logger or LOGGER
        self.store = store or ElementStore()
        self.notifications = notifications or NotificationCenter(timeout_s=settings.notify_timeout_s)
        self.keys = key_bindings or KeyBindings()
        self.screen_name = ""
        self.auto_frame = True

        self.arena = VolumeArena()
        self.builder = SceneBuilder(self.arena, settings=settings)
        self.camera = Camera(fov_deg=settings.fov_deg)
        self.controller = CameraController(self.camera)
        self.picker = PickEngine(self.camera, self.controller, hover_opacity=settings.hover_opacity)
        self.editor = EditSession(self.store, logger=self.logger)

        self.arena.add_listener(self.picker.on_arena_swap)
        self.store.add_listener(self._on_store_changed)
        self._batch_depth = 0
        self._dirty_scene = False
        self._framed_revision = -1
        self._refresh_listeners: List[Callable[[SceneBuild, bool], None]] = []
        self._delete_sub = self.keys.subscribe(settings.delete_key, self._on_delete_key)
        self._closed = False
        self.refresh()

    # ---------------- scene ----------------
    @contextmanager
    def _batch(self) -> Iterator[None]:
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty_scene:
                self.refresh()

    def _on_store_changed(self, _event: str, _payload: dict) -> None:
        if self._batch_depth > 0:
            self._dirty_scene = True
            return
        self.refresh()

    def add_refresh_listener(self, callback: Callable[[SceneBuild, bool], None]) -> None:
        if callback not in self._refresh_listeners:
            self._refresh_listeners.append(callback)

    def remove_refresh_listener(self, callback: Callable[[SceneBuild, bool], None]) -> None:
        if callback in self._refresh_listeners:
            self._refresh_listeners.remove(callback)

    def refresh(self) -> Optional[SceneBuild]:
        """Rebuild the scene; the camera is re-framed only when the collection changed."""
        self._dirty_scene = False
        build = self.builder.rebuild(self.store.elements, highlighted=self.selected_key)
        if build is None:
            return None
        framed = False
        if self.auto_frame and build.framing is not None and self.store.revision != self._framed_revision:
            apply_framing(self.camera, build.framing)
            self._framed_revision = self.store.revision
            framed = True
        for cb in list(self._refresh_listeners):
            cb(build, framed)
        return build

    @property
    def element_count(self) -> int:
        return self.builder.element_count

    def counts(self) -> Dict[str, int]:
        out = self.store.counts()
        out["rendered"] = self.element_count
        return out

    # ---------------- selection ----------------
    @property
    def selected(self) -> Optional[Dict[str, Any]]:
        return self.editor.element

    @property
    def selected_key(self) -> Optional[NaturalKey]:
        return self.editor.key

    def select(self, element: Optional[Mapping[str, Any]]) -> None:
        if element is None:
            self.editor.close()
        else:
            self.editor.open(element)
        self.refresh()

    # ---------------- pointer ----------------
    def pointer_move(self, x: float, y: float, width: float, height: float) -> None:
        self.picker.set_pointer_px(x, y, width, height)

    def frame(self) -> Optional[HoverChange]:
        return self.picker.update_hover()

    def click(self) -> Optional[ClickResult]:
        result = self.picker.click()
        if result is None:
            return None
        self.select(result.element)
        return result

    # ---------------- draft ----------------
    def edit_draft(self, text: str) -> None:
        self.editor.edit(text)

    def edit_information(self, text: str) -> None:
        self.editor.edit_information(text)

    def commit_draft(self) -> CommitResult:
        with self._batch():
            result = self.editor.commit()
            if result.ok:
                self._dirty_scene = True
        if result.ok:
            self.notifications.show(result.message)
        else:
            self.notifications.error(result.message)
        return result

    # ---------------- collection ----------------
    def delete_selected(self) -> bool:
        key = self.selected_key
        if key is None:
            return False
        with self._batch():
            removed = self.store.remove(key)
            self.editor.close()
            self._dirty_scene = True
        if removed:
            self.logger.info("Deleted %d element(s)", removed)
        else:
            self.notifications.error("Could not delete element. JSON may be malformed.")
        return bool(removed)

    def _on_delete_key(self, _key: str) -> bool:
        if self.selected_key is None:
            return False
        self.delete_selected()
        return True

    def on_key(self, key: str) -> bool:
        return self.keys.dispatch(key)

    def load_elements(
        self,
        elements: Sequence[Any],
        screen_name: Optional[str] = None,
        keep_selection: bool = True,
    ) -> None:
        with self._batch():
            if screen_name is not None:
                self.screen_name = str(screen_name)
            self.store.set_all(elements)
            key = self.selected_key
            if key is not None and not (keep_selection and self.store.contains(key)):
                self.editor.close()

    def set_elements_json(self, text: str) -> bool:
        try:
            payload = parse_payload(text)
        except MalformedInputError as e:
            self.logger.info("Element list rejected: %s", e)
            self.notifications.error("Invalid JSON format!")
            return False
        self.load_elements(payload.elements, screen_name=payload.screen_id)
        return True

    def export(self) -> Dict[str, Any]:
        return export_payload(self.store.elements, self.screen_name)

    def save_export(self, directory: str) -> Optional[str]:
        try:
            path = write_export(directory, self.store.elements, self.screen_name)
        except OSError as e:
            self.logger.error("Export failed: %s", e)
            self.notifications.error(f"Export failed: {e}")
            return None
        self.logger.info("Exported %s", path)
        self.notifications.show("JSON exported successfully!")
        return path

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._delete_sub.unsubscribe()
        self.store.remove_listener(self._on_store_changed)
        self.arena.remove_listener(self.picker.on_arena_swap)
        self.editor.close()
        self.builder.dispose()
        self.picker.set_volumes(self.arena.current)
