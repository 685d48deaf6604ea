from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

import numpy as np

from stackview.engine.geometry_ops import MeshData
from stackview.engine.pick_engine import HoverChange, Outline
from stackview.engine.volume import Volume, VolumeArena, VolumeSet

LOGGER = logging.getLogger(__name__)


def mesh_to_polydata(pv, mesh: MeshData):
    faces = np.asarray(mesh.faces, dtype=int)
    verts = np.asarray(mesh.vertices, dtype=float)
    if faces.size == 0 or verts.size == 0:
        return None
    ff = np.empty((faces.shape[0], 4), dtype=np.int64)
    ff[:, 0] = 3
    ff[:, 1:] = faces.astype(np.int64)
    return pv.PolyData(verts, ff.reshape(-1))


def segments_to_polydata(pv, segments: np.ndarray):
    seg = np.asarray(segments, dtype=float).reshape(-1, 2, 3)
    if seg.size == 0:
        return None
    points = seg.reshape(-1, 3)
    n = seg.shape[0]
    lines = np.empty((n, 3), dtype=np.int64)
    lines[:, 0] = 2
    lines[:, 1] = np.arange(0, 2 * n, 2)
    lines[:, 2] = np.arange(1, 2 * n, 2)
    return pv.PolyData(points, lines=lines.reshape(-1))


class VolumeRenderer:
    """Mirrors the arena's live generation as plotter actors.

    Actors are created when a generation is installed and removed by the
    arena disposer before the outgoing volumes are released.
    """

    def __init__(
        self,
        plotter,
        pv_module=None,
        *,
        outline_color: str = "#ffffff",
        outline_width: float = 2.0,
        request_render: Optional[Callable[[], None]] = None,
    ):
        if pv_module is None:
            import pyvista as pv_module
        self.plotter = plotter
        self._pv = pv_module
        self.outline_color = str(outline_color)
        self.outline_width = float(outline_width)
        self._request_render = request_render
        self._actor_by_id: Dict[str, object] = {}
        self._outline_actor = None
        self._arena: Optional[VolumeArena] = None

    @property
    def actor_count(self) -> int:
        return len(self._actor_by_id)

    @property
    def has_outline(self) -> bool:
        return self._outline_actor is not None

    def attach(self, arena: VolumeArena) -> None:
        self.detach()
        self._arena = arena
        arena.add_disposer(self.release)
        arena.add_listener(self._on_swap)
        self.show(arena.current)
        self._render()

    def detach(self) -> None:
        if self._arena is None:
            return
        self._arena.remove_disposer(self.release)
        self._arena.remove_listener(self._on_swap)
        self.release(self._arena.current)
        self.clear_outline()
        self._arena = None

    def release(self, old: VolumeSet) -> None:
        for vol in old.volumes:
            for actor in list(vol.handles):
                self._remove(actor)
            vol.handles = []
            self._actor_by_id.pop(vol.id, None)

    def show(self, volumes: VolumeSet) -> None:
        for vol in volumes.volumes:
            if vol.mesh is None or vol.id in self._actor_by_id:
                continue
            poly = mesh_to_polydata(self._pv, vol.mesh)
            if poly is None:
                continue
            actor = self.plotter.add_mesh(
                poly,
                name=f"volume_{vol.id}",
                color=vol.color,
                opacity=float(vol.opacity),
                show_edges=False,
                pickable=False,
                reset_camera=False,
            )
            vol.handles.append(actor)
            self._actor_by_id[vol.id] = actor

    def _on_swap(self, _old: VolumeSet, new: VolumeSet) -> None:
        self.clear_outline()
        self.show(new)
        self._render()

    def sync_opacity(self, volume: Volume) -> None:
        if volume.disposed:
            return
        for actor in volume.handles:
            actor.GetProperty().SetOpacity(float(volume.opacity))

    def on_hover(self, change: HoverChange) -> None:
        for vol in (change.previous, change.current):
            if vol is not None:
                self.sync_opacity(vol)
        self.clear_outline()
        if change.outline is not None:
            self.draw_outline(change.outline)
        self._render()

    def draw_outline(self, outline: Outline) -> None:
        poly = segments_to_polydata(self._pv, outline.segments)
        if poly is None:
            return
        self._outline_actor = self.plotter.add_mesh(
            poly,
            name="hover_outline",
            color=self.outline_color,
            line_width=self.outline_width,
            opacity=1.0,
            pickable=False,
            lighting=False,
            reset_camera=False,
        )

    def clear_outline(self) -> None:
        if self._outline_actor is not None:
            self._remove(self._outline_actor)
            self._outline_actor = None

    def _remove(self, actor) -> None:
        try:
            self.plotter.remove_actor(actor, render=False)
        except (AttributeError, KeyError, ValueError) as e:
            LOGGER.debug("Actor already gone: %s", e)

    def _render(self) -> None:
        if self._request_render is not None:
            self._request_render()

