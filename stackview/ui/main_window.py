from __future__ import annotations

from typing import Dict, List, Optional
import logging

import numpy as np
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QImage, QKeySequence, QPixmap, QShortcut
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from stackview.core.config import DEFAULT_SETTINGS, ViewerSettings
from stackview.core.notify import Notification
from stackview.engine.pick_engine import Tooltip
from stackview.labeling import LabelingSession
from stackview.screens.screenshot import Screenshot
from stackview.screens.session import ScreenSession
from stackview.screens.storage import JsonDirectoryScreenStore
from stackview.screens.worker import BackgroundWorker

from .viewport_pyvista import ViewportPyVista

LOGGER = logging.getLogger(__name__)

STATUS_STYLE = {
    "info": "QLabel{background:#0f3d2e; color:#d1fae5; border-radius:5px; padding:4px 8px;}",
    "error": "QLabel{background:#4c1d1d; color:#fee2e2; border-radius:5px; padding:4px 8px;}",
}


def counts_text(c: Dict[str, int]) -> str:
    return f"Total elements: {c['rendered']} | {c['total']} in list | {c['clickable']} clickable | {c['labeled']} labeled"


def pixmap_from_screenshot(shot: Screenshot) -> Optional[QPixmap]:
    if not shot.ok or shot.pixels is None:
        return None
    arr = np.ascontiguousarray(shot.pixels)
    h, w = int(arr.shape[0]), int(arr.shape[1])
    img = QImage(arr.data, w, h, 4 * w, QImage.Format_RGBA8888).copy()
    return QPixmap.fromImage(img)


class MainWindow(QMainWindow):
    def __init__(self, settings: ViewerSettings = DEFAULT_SETTINGS, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.setWindowTitle("StackView - UI Element Viewer")
        self.labeling = LabelingSession(settings=settings)
        self.worker = BackgroundWorker(lambda fn: QTimer.singleShot(0, fn))
        self.screens = ScreenSession(
            self.labeling,
            store=JsonDirectoryScreenStore(settings.storage_dir()),
            decoder=BackgroundWorker(lambda fn: QTimer.singleShot(0, fn)),
        )
        self._syncing_json = False
        self._shortcuts: List[QShortcut] = []
        self._build_ui()
        self._connect()
        self._register_shortcuts()
        self._sync_from_store()
        self._sync_selection()
        self._sync_screen(self.screens)

    # ---------------- layout ----------------
    def _build_ui(self):
        central = QWidget(self)
        root = QVBoxLayout(central)
        root.setContentsMargins(6, 6, 6, 6)
        root.setSpacing(6)

        head = QHBoxLayout()
        self.btn_load_zip = QPushButton("Load ZIP")
        self.btn_prev = QPushButton("< Prev")
        self.btn_next = QPushButton("Next >")
        self.screen_pos = QLabel("")
        self.screen_name = QLineEdit()
        self.screen_name.setPlaceholderText("Screen name")
        self.btn_export = QPushButton("Export JSON")
        self.btn_fit = QPushButton("Fit")
        for w in (self.btn_load_zip, self.btn_prev, self.screen_pos, self.btn_next):
            head.addWidget(w)
        head.addWidget(QLabel("Screen"))
        head.addWidget(self.screen_name, 1)
        head.addWidget(self.btn_fit)
        head.addWidget(self.btn_export)
        root.addLayout(head)

        self.main_split = QSplitter(Qt.Horizontal, self)
        self.main_split.setHandleWidth(8)

        left = QWidget(self)
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(0, 0, 0, 0)
        left_layout.addWidget(QLabel("Elements JSON"))
        self.json_edit = QPlainTextEdit(self)
        self.json_edit.setPlaceholderText("Paste the element array or a {screenId, elements} object")
        left_layout.addWidget(self.json_edit, 1)
        self.btn_apply_json = QPushButton("Visualize")
        left_layout.addWidget(self.btn_apply_json)
        self.counts_label = QLabel("")
        left_layout.addWidget(self.counts_label)
        self.screenshot_label = QLabel("No screenshot")
        self.screenshot_label.setAlignment(Qt.AlignCenter)
        self.screenshot_label.setMinimumHeight(220)
        left_layout.addWidget(self.screenshot_label, 1)

        self.viewport = ViewportPyVista(self.labeling, self)

        right = QWidget(self)
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)
        self.tooltip_label = QLabel("")
        self.tooltip_label.setStyleSheet("QLabel{color:#dbe9fa; font-family:monospace;}")
        right_layout.addWidget(self.tooltip_label)
        right_layout.addWidget(QLabel("Selected element"))
        self.draft_edit = QTextEdit(self)
        self.draft_edit.setAcceptRichText(False)
        right_layout.addWidget(self.draft_edit, 1)
        right_layout.addWidget(QLabel("Information"))
        self.info_edit = QLineEdit(self)
        right_layout.addWidget(self.info_edit)
        row = QHBoxLayout()
        self.btn_save = QPushButton("Save Changes")
        self.btn_delete = QPushButton("Delete")
        self.btn_delete.setToolTip(f"Use {self.settings.delete_key.upper()} to delete the element (shortcut)")
        self.btn_close = QPushButton("Close")
        row.addWidget(self.btn_save)
        row.addWidget(self.btn_delete)
        row.addWidget(self.btn_close)
        right_layout.addLayout(row)

        self.main_split.addWidget(left)
        self.main_split.addWidget(self.viewport)
        self.main_split.addWidget(right)
        self.main_split.setStretchFactor(0, 2)
        self.main_split.setStretchFactor(1, 6)
        self.main_split.setStretchFactor(2, 2)
        root.addWidget(self.main_split, 1)

        self.status_label = QLabel("")
        self.status_label.setVisible(False)
        root.addWidget(self.status_label)
        self.setCentralWidget(central)

        self._status_timer = QTimer(self)
        self._status_timer.setInterval(250)
        self._status_timer.timeout.connect(self.labeling.notifications.expire)
        self._status_timer.start()

    def _connect(self):
        self.btn_load_zip.clicked.connect(self.action_load_zip)
        self.btn_prev.clicked.connect(self.screens.previous_screen)
        self.btn_next.clicked.connect(self.screens.next_screen)
        self.btn_export.clicked.connect(self.action_export)
        self.btn_fit.clicked.connect(self.viewport.fit_all)
        self.btn_apply_json.clicked.connect(self.action_apply_json)
        self.btn_save.clicked.connect(self.action_save_draft)
        self.btn_delete.clicked.connect(self.action_delete)
        self.btn_close.clicked.connect(self.action_close_draft)
        self.draft_edit.textChanged.connect(self._on_draft_changed)
        self.info_edit.textChanged.connect(self._on_info_changed)
        self.screen_name.textEdited.connect(self._on_screen_name_edited)
        self.viewport.hoverInfo.connect(self._on_hover_info)
        self.viewport.elementClicked.connect(lambda _el: self._sync_selection())
        self.viewport.statusMessage.connect(self.labeling.notifications.error)
        self.labeling.notifications.add_listener(self._on_notification)
        self.labeling.store.add_listener(lambda _ev, _data: self._sync_from_store())
        self.screens.add_screen_listener(self._sync_screen)

    def _register_shortcuts(self):
        def _bind(seq: str, slot):
            sc = QShortcut(QKeySequence(seq), self)
            sc.setContext(Qt.WindowShortcut)
            sc.activated.connect(slot)
            self._shortcuts.append(sc)

        key = self.settings.delete_key
        _bind(key.upper(), lambda k=key: self._shortcut_key(k))

    def _shortcut_allowed(self) -> bool:
        fw = QApplication.focusWidget()
        if fw is None:
            return True
        if isinstance(fw, (QLineEdit, QTextEdit, QPlainTextEdit)):
            return False
        return True

    def _shortcut_key(self, key: str):
        if self._shortcut_allowed():
            self.labeling.on_key(key)
            self._sync_selection()

    # ---------------- sync ----------------
    def _sync_from_store(self):
        self._syncing_json = True
        try:
            self.json_edit.setPlainText(self.labeling.store.to_json())
        finally:
            self._syncing_json = False
        self.counts_label.setText(counts_text(self.labeling.counts()))
        if self.screen_name.text() != self.labeling.screen_name:
            self.screen_name.setText(self.labeling.screen_name)
        self._sync_selection()

    def _sync_selection(self):
        editor = self.labeling.editor
        has = editor.is_open
        for w in (self.draft_edit, self.info_edit, self.btn_save, self.btn_delete, self.btn_close):
            w.setEnabled(has)
        self._syncing_json = True
        try:
            if self.draft_edit.toPlainText() != editor.draft_text:
                self.draft_edit.setPlainText(editor.draft_text)
            if self.info_edit.text() != editor.information:
                self.info_edit.setText(editor.information)
        finally:
            self._syncing_json = False
        self.btn_save.setText("Save Changes *" if editor.dirty else "Save Changes")

    def _sync_screen(self, session: ScreenSession):
        has = session.has_screens
        self.btn_prev.setEnabled(has and session.index > 0)
        self.btn_next.setEnabled(has and session.index + 1 < len(session.screens))
        self.screen_pos.setText(session.position_label())
        pix = pixmap_from_screenshot(session.screenshot)
        if pix is None:
            self.screenshot_label.setPixmap(QPixmap())
            self.screenshot_label.setText("No screenshot" if not has else "Screenshot unavailable")
        else:
            self.screenshot_label.setPixmap(
                pix.scaled(self.screenshot_label.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
            )
        self._sync_selection()

    # ---------------- slots ----------------
    def _on_draft_changed(self):
        if not self._syncing_json:
            self.labeling.edit_draft(self.draft_edit.toPlainText())
            self.btn_save.setText("Save Changes *" if self.labeling.editor.dirty else "Save Changes")

    def _on_info_changed(self, text: str):
        if not self._syncing_json:
            self.labeling.edit_information(text)
            self.btn_save.setText("Save Changes *" if self.labeling.editor.dirty else "Save Changes")

    def _on_screen_name_edited(self, text: str):
        self.labeling.screen_name = str(text)

    def _on_hover_info(self, tooltip: Optional[Tooltip]):
        self.tooltip_label.setText("\n".join(tooltip.lines()) if tooltip is not None else "")

    def _on_notification(self, note: Optional[Notification]):
        if note is None:
            self.status_label.setVisible(False)
            self.status_label.setText("")
            return
        self.status_label.setStyleSheet(STATUS_STYLE.get(note.level, STATUS_STYLE["info"]))
        self.status_label.setText(note.message)
        self.status_label.setVisible(True)

    def action_apply_json(self):
        self.labeling.set_elements_json(self.json_edit.toPlainText())

    def action_save_draft(self):
        self.labeling.commit_draft()
        self._sync_selection()

    def action_delete(self):
        self.labeling.delete_selected()
        self._sync_selection()

    def action_close_draft(self):
        self.labeling.select(None)
        self._sync_selection()

    def action_load_zip(self):
        path, _ = QFileDialog.getOpenFileName(self, "Load screens", "", "ZIP (*.zip)")
        if not path:
            return
        self.screens.load_archive_async(path, self.worker)

    def action_export(self):
        out_dir = QFileDialog.getExistingDirectory(self, "Export JSON")
        if not out_dir:
            return
        self.labeling.save_export(out_dir)

    def closeEvent(self, event):
        self._status_timer.stop()
        self.worker.join(1.0)
        self.screens.decoder.join(1.0)
        self.screens.close()
        self.labeling.close()
        self.viewport.close()
        super().closeEvent(event)


def launch_main_window(settings: Optional[ViewerSettings] = None):
    app = QApplication.instance()
    owns = False
    if app is None:
        app = QApplication([])
        owns = True
    win = MainWindow(settings or DEFAULT_SETTINGS)
    win.resize(1600, 980)
    win.show()
    if owns:
        app.exec()
    return win


if __name__ == "__main__":
    launch_main_window()
