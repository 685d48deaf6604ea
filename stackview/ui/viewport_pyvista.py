from __future__ import annotations

from typing import Optional, Tuple
import logging
import time

import numpy as np
from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QWidget, QVBoxLayout, QLabel

from stackview.engine.camera import apply_framing
from stackview.engine.pick_engine import HoverChange
from stackview.labeling import LabelingSession

from .volume_renderer import VolumeRenderer

LOGGER = logging.getLogger(__name__)


class ViewportPyVista(QWidget):
    """3D view of a LabelingSession.

    VTK owns camera navigation; its camera is mirrored into the session
    camera before every pick so hit tests see exactly what is on screen.
    """

    hoverInfo = Signal(object)  # Tooltip or None
    elementClicked = Signal(object)  # element dict or None
    statusMessage = Signal(str)

    def __init__(self, labeling: LabelingSession, parent=None):
        super().__init__(parent)
        self.labeling = labeling
        self.plotter = None
        self.renderer: Optional[VolumeRenderer] = None
        self._render_in_progress = False
        self._render_failures = 0
        self._render_disabled = False
        self._left_press_pos: Optional[Tuple[int, int]] = None
        self._left_drag_threshold_px = 5
        self._suspend_hover_until = 0.0
        self._pointer_pos: Optional[Tuple[int, int]] = None
        self._build_ui()

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(2)
        self.mouse_hint = QLabel("Mouse: LMB select | drag orbit | Shift+drag pan | Wheel zoom", self)
        self.mouse_hint.setStyleSheet(
            "QLabel{background:rgba(20,28,36,210); color:#dbe9fa; border:1px solid rgba(210,230,250,40); border-radius:5px; padding:4px 8px; font-size:11px;}"
        )
        layout.addWidget(self.mouse_hint, 0)
        try:
            import pyvista as pv
            from pyvistaqt import QtInteractor

            self.plotter = QtInteractor(self)
            layout.addWidget(self.plotter.interactor)
            self.plotter.set_background("#1f2430")
            self.plotter.add_axes(line_width=2)
            self.renderer = VolumeRenderer(self.plotter, pv, request_render=self._safe_render)
            iren = self.plotter.interactor
            iren.AddObserver("LeftButtonPressEvent", self._on_left_press_vtk, 1.0)
            iren.AddObserver("LeftButtonReleaseEvent", self._on_left_release_vtk, 1.0)
            iren.AddObserver("MouseMoveEvent", self._on_mouse_move_vtk, 1.0)
            iren.AddObserver("StartInteractionEvent", self._on_start_interaction_vtk, 1.0)
            iren.AddObserver("EndInteractionEvent", self._on_end_interaction_vtk, 1.0)
        except Exception as e:
            LOGGER.exception("3D viewport unavailable")
            lbl = QLabel(f"3D viewport unavailable.\nInstall: pyside6 pyvista pyvistaqt vtk\n\nDetail: {e}", self)
            lbl.setAlignment(Qt.AlignCenter)
            layout.addWidget(lbl)
            return
        self.renderer.attach(self.labeling.arena)
        self.labeling.picker.add_hover_listener(self._on_hover_change)
        self.labeling.add_refresh_listener(self._on_scene_refresh)
        self.push_camera()

    def is_available(self) -> bool:
        return self.plotter is not None

    def _safe_render(self):
        if not self.is_available():
            return
        if self._render_disabled or self._render_in_progress:
            return
        self._render_in_progress = True
        try:
            self.plotter.render()
            self._render_failures = 0
        except Exception:
            LOGGER.exception("Render failed")
            self._render_failures += 1
            if self._render_failures >= 3:
                self._render_disabled = True
                self.statusMessage.emit("Viewport rendering disabled after repeated OpenGL/render failures.")
        finally:
            self._render_in_progress = False

    # ---------------- camera mirroring ----------------
    def _window_size(self) -> Tuple[int, int]:
        w, h = self.plotter.window_size
        return int(w), int(h)

    def pull_camera(self) -> None:
        """Copy the VTK camera into the session camera."""
        if not self.is_available():
            return
        vcam = self.plotter.renderer.GetActiveCamera()
        cam = self.labeling.camera
        cam.position = np.asarray(vcam.GetPosition(), dtype=float)
        cam.target = np.asarray(vcam.GetFocalPoint(), dtype=float)
        cam.up = np.asarray(vcam.GetViewUp(), dtype=float)
        cam.fov_deg = float(vcam.GetViewAngle())
        cam.set_aspect(*self._window_size())

    def push_camera(self) -> None:
        """Copy the session camera (e.g. after framing) into VTK."""
        if not self.is_available():
            return
        vcam = self.plotter.renderer.GetActiveCamera()
        cam = self.labeling.camera
        vcam.SetPosition(*[float(x) for x in cam.position])
        vcam.SetFocalPoint(*[float(x) for x in cam.target])
        vcam.SetViewUp(*[float(x) for x in cam.up])
        vcam.SetViewAngle(float(cam.fov_deg))
        self.plotter.renderer.ResetCameraClippingRange()
        self._safe_render()

    def fit_all(self) -> None:
        build = self.labeling.builder.last_build
        if build is None or build.framing is None:
            return
        self.labeling.camera.up = np.array([0.0, 1.0, 0.0])
        apply_framing(self.labeling.camera, build.framing)
        self.push_camera()

    # ---------------- VTK events ----------------
    def _event_pos(self) -> Optional[Tuple[int, int]]:
        try:
            x, y = self.plotter.interactor.GetEventPosition()
        except (AttributeError, TypeError):
            return None
        return int(x), int(y)

    def _set_pointer(self, pos: Tuple[int, int]) -> None:
        self._pointer_pos = pos
        w, h = self._window_size()
        # VTK reports y from the bottom edge.
        self.labeling.pointer_move(pos[0], h - pos[1], w, h)

    def _on_start_interaction_vtk(self, _obj, _ev):
        self.labeling.controller.begin_drag("orbit")

    def _on_end_interaction_vtk(self, _obj, _ev):
        self.labeling.controller.end_drag()
        self._suspend_hover_until = time.perf_counter() + 0.04
        self.pull_camera()
        pos = self._event_pos()
        if pos is not None:
            self._set_pointer(pos)
        self._refresh_hover()

    def _on_left_press_vtk(self, _obj, _ev):
        self._left_press_pos = self._event_pos()

    def _on_left_release_vtk(self, _obj, _ev):
        press = self._left_press_pos
        self._left_press_pos = None
        pos = self._event_pos()
        if press is None or pos is None:
            return
        if abs(pos[0] - press[0]) + abs(pos[1] - press[1]) > self._left_drag_threshold_px:
            return
        # The release can arrive before EndInteraction on a plain click.
        self.labeling.controller.end_drag()
        self.pull_camera()
        self._set_pointer(pos)
        result = self.labeling.click()
        if result is not None:
            self.elementClicked.emit(result.element)

    def _on_mouse_move_vtk(self, _obj, _ev):
        if self.labeling.controller.dragging:
            return
        if time.perf_counter() < self._suspend_hover_until:
            return
        pos = self._event_pos()
        if pos is None:
            return
        self.pull_camera()
        self._set_pointer(pos)
        self.labeling.frame()

    def _refresh_hover(self) -> None:
        """Re-pick under the last pointer position after the view or the scene changed."""
        if self._pointer_pos is None or self.labeling.controller.dragging:
            return
        self.labeling.frame()

    def _on_hover_change(self, change: HoverChange) -> None:
        if self.renderer is not None:
            self.renderer.on_hover(change)
        self.hoverInfo.emit(change.tooltip)

    def _on_scene_refresh(self, _build, framed: bool) -> None:
        if framed:
            self.push_camera()
        else:
            self._safe_render()
        self._refresh_hover()

    def closeEvent(self, event):
        self.labeling.picker.remove_hover_listener(self._on_hover_change)
        self.labeling.remove_refresh_listener(self._on_scene_refresh)
        if self.renderer is not None:
            self.renderer.detach()
        if self.plotter is not None:
            self.plotter.close()
        super().closeEvent(event)
