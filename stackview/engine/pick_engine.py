from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from stackview.core.perf import DEFAULT_TRACER, PerfTracer

from .camera import Camera, CameraController
from .element import RESOURCE_ID, TEXT
from .geometry_ops import ray_box_distances
from .volume import EMPTY_SET, Volume, VolumeSet

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PickHit:
    volume: Volume
    distance: float
    point: Tuple[float, float, float]

    @property
    def element(self) -> Dict[str, Any]:
        return self.volume.element


@dataclass(frozen=True)
class Tooltip:
    text: Any
    resource_id: Any

    @staticmethod
    def of(element: Dict[str, Any]) -> "Tooltip":
        return Tooltip(text=element.get(TEXT), resource_id=element.get(RESOURCE_ID))

    def lines(self) -> List[str]:
        return [f"Text: {self.text or 'N/A'}", f"ID: {self.resource_id or 'N/A'}"]


@dataclass(frozen=True)
class Outline:
    center: Tuple[float, float, float]
    size: Tuple[float, float, float]
    segments: np.ndarray


@dataclass(frozen=True)
class HoverChange:
    previous: Optional[Volume]
    current: Optional[Volume]
    outline: Optional[Outline]
    tooltip: Optional[Tooltip]


@dataclass(frozen=True)
class ClickResult:
    element: Optional[Dict[str, Any]]
    hit: Optional[PickHit]

    @property
    def cleared(self) -> bool:
        return self.element is None


class PickEngine:
    """Pointer-to-element resolution against the live volume set.

    Hover runs every frame through ``update_hover``; clicks go through
    ``click``. Both are ignored while the camera controller is dragging.
    """

    def __init__(
        self,
        camera: Camera,
        controller: Optional[CameraController] = None,
        hover_opacity: float = 1.0,
        tracer: Optional[PerfTracer] = None,
    ):
        self.camera = camera
        self.controller = controller
        self.hover_opacity = float(hover_opacity)
        self.tracer = tracer or DEFAULT_TRACER
        self.pointer: Tuple[float, float] = (0.0, 0.0)
        self._volumes: VolumeSet = EMPTY_SET
        self._mins = np.zeros((0, 3), dtype=float)
        self._maxs = np.zeros((0, 3), dtype=float)
        self.hovered: Optional[Volume] = None
        self.outline: Optional[Outline] = None
        self.tooltip: Optional[Tooltip] = None
        self._hover_listeners: List[Callable[[HoverChange], None]] = []

    # ---------------- state ----------------
    @property
    def volumes(self) -> VolumeSet:
        return self._volumes

    @property
    def dragging(self) -> bool:
        return bool(self.controller is not None and self.controller.dragging)

    def add_hover_listener(self, callback: Callable[[HoverChange], None]) -> None:
        if callback not in self._hover_listeners:
            self._hover_listeners.append(callback)

    def remove_hover_listener(self, callback: Callable[[HoverChange], None]) -> None:
        if callback in self._hover_listeners:
            self._hover_listeners.remove(callback)

    def set_volumes(self, volumes: VolumeSet) -> None:
        """Swap the hit-test set in one step; a stale hover is dropped."""
        mins = np.array([v.mins for v in volumes.volumes], dtype=float).reshape(-1, 3)
        maxs = np.array([v.maxs for v in volumes.volumes], dtype=float).reshape(-1, 3)
        self._volumes, self._mins, self._maxs = volumes, mins, maxs
        if self.hovered is not None and self.hovered.generation != volumes.generation:
            self._set_hovered(None)

    def on_arena_swap(self, _old: VolumeSet, new: VolumeSet) -> None:
        self.set_volumes(new)

    def set_pointer_ndc(self, x: float, y: float) -> None:
        self.pointer = (float(x), float(y))

    def set_pointer_px(self, x: float, y: float, width: float, height: float) -> None:
        if float(width) <= 0 or float(height) <= 0:
            return
        self.pointer = (float(x) / float(width) * 2.0 - 1.0, -(float(y) / float(height)) * 2.0 + 1.0)

    # ---------------- hit testing ----------------
    def hit_test(self, ndc: Optional[Tuple[float, float]] = None) -> Optional[PickHit]:
        if len(self._volumes) == 0:
            return None
        x, y = ndc if ndc is not None else self.pointer
        origin, direction = self.camera.ray_from_ndc(x, y)
        dist = ray_box_distances(origin, direction, self._mins, self._maxs)
        idx = int(np.argmin(dist))
        if not np.isfinite(dist[idx]):
            return None
        # Coplanar faces: the later (smaller) box is drawn in front.
        ties = np.flatnonzero(np.isclose(dist, dist[idx], rtol=0.0, atol=1e-9))
        idx = int(ties[-1])
        point = origin + direction * float(dist[idx])
        return PickHit(
            volume=self._volumes.volumes[idx],
            distance=float(dist[idx]),
            point=(float(point[0]), float(point[1]), float(point[2])),
        )

    def update_hover(self) -> Optional[HoverChange]:
        if self.dragging:
            return None
        with self.tracer.span("HOVER_PICK") as detail:
            detail["volumes"] = len(self._volumes)
            hit = self.hit_test()
        current = hit.volume if hit is not None else None
        if current is self.hovered:
            return None
        return self._set_hovered(current)

    def click(self) -> Optional[ClickResult]:
        if self.dragging:
            return None
        hit = self.hit_test()
        if hit is None:
            LOGGER.debug("Click missed every volume")
            return ClickResult(element=None, hit=None)
        return ClickResult(element=hit.element, hit=hit)

    def _set_hovered(self, volume: Optional[Volume]) -> HoverChange:
        previous = self.hovered
        if previous is not None:
            previous.opacity = previous.resting_opacity
        self.outline = None
        self.tooltip = None
        self.hovered = volume
        if volume is not None:
            volume.opacity = self.hover_opacity
            self.outline = Outline(
                center=tuple(float(x) for x in volume.center),
                size=tuple(float(x) for x in np.abs(volume.size)),
                segments=volume.outline_segments(),
            )
            self.tooltip = Tooltip.of(volume.element)
        change = HoverChange(previous=previous, current=volume, outline=self.outline, tooltip=self.tooltip)
        for cb in list(self._hover_listeners):
            cb(change)
        return change
