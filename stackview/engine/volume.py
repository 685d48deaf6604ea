from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .bounds import Bounds
from .element import NaturalKey
from .geometry_ops import MeshData, box_edge_segments, create_box

LOGGER = logging.getLogger(__name__)


@dataclass
class Volume:
    """One element rendered as a box.

    ``element`` is the very dict held by the store when the scene was built;
    pick results hand it back untouched.
    """

    id: str
    element: Dict[str, Any]
    key: NaturalKey
    bounds: Bounds
    depth_index: int
    center: np.ndarray
    size: np.ndarray
    color: str
    style: str
    generation: int
    resting_opacity: float = 0.75
    opacity: float = 0.75
    mesh: Optional[MeshData] = None
    handles: List[Any] = field(default_factory=list)
    disposed: bool = False

    @staticmethod
    def create(
        *,
        generation: int,
        depth_index: int,
        element: Dict[str, Any],
        bounds: Bounds,
        center: Sequence[float],
        size: Sequence[float],
        color: str,
        style: str,
        opacity: float,
    ) -> "Volume":
        c = np.asarray(center, dtype=float).reshape(3)
        s = np.asarray(size, dtype=float).reshape(3)
        return Volume(
            id=f"{int(generation)}:{int(depth_index)}",
            element=element,
            key=NaturalKey.of(element),
            bounds=bounds,
            depth_index=int(depth_index),
            center=c,
            size=s,
            color=str(color),
            style=str(style),
            generation=int(generation),
            resting_opacity=float(opacity),
            opacity=float(opacity),
            mesh=create_box(s[0], s[1], s[2], center=c),
        )

    @property
    def mins(self) -> np.ndarray:
        return self.center - np.abs(self.size) * 0.5

    @property
    def maxs(self) -> np.ndarray:
        return self.center + np.abs(self.size) * 0.5

    def outline_segments(self) -> np.ndarray:
        return box_edge_segments(self.center, self.size)

    def dispose(self) -> None:
        self.mesh = None
        self.handles = []
        self.disposed = True


@dataclass(frozen=True)
class VolumeSet:
    generation: int
    volumes: Tuple[Volume, ...] = ()

    def __len__(self) -> int:
        return len(self.volumes)

    def __iter__(self):
        return iter(self.volumes)

    def extents(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        if not self.volumes:
            return None
        mins = np.min(np.vstack([v.mins for v in self.volumes]), axis=0)
        maxs = np.max(np.vstack([v.maxs for v in self.volumes]), axis=0)
        return mins, maxs

    def by_key(self, key: NaturalKey) -> Optional[Volume]:
        for vol in self.volumes:
            if vol.key == key:
                return vol
        return None


EMPTY_SET = VolumeSet(generation=0)

Disposer = Callable[[VolumeSet], None]
Listener = Callable[[VolumeSet, VolumeSet], None]


class VolumeArena:
    """Owns the live volume set and hands it over one generation at a time.

    ``swap`` installs a complete new set, then runs every disposer on the
    outgoing set before releasing its volumes. Consumers never observe a
    partially built generation.
    """

    def __init__(self):
        self._current: VolumeSet = EMPTY_SET
        self._generation = 0
        self._disposers: List[Disposer] = []
        self._listeners: List[Listener] = []

    @property
    def current(self) -> VolumeSet:
        return self._current

    def next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def add_disposer(self, callback: Disposer) -> None:
        if callback not in self._disposers:
            self._disposers.append(callback)

    def remove_disposer(self, callback: Disposer) -> None:
        if callback in self._disposers:
            self._disposers.remove(callback)

    def add_listener(self, callback: Listener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def swap(self, new_set: VolumeSet) -> VolumeSet:
        old = self._current
        self._current = new_set
        self._release(old)
        for cb in list(self._listeners):
            cb(old, new_set)
        return old

    def clear(self) -> None:
        self.swap(VolumeSet(generation=self.next_generation()))

    def _release(self, old: VolumeSet) -> None:
        for cb in list(self._disposers):
            cb(old)
        for vol in old.volumes:
            vol.dispose()
        if old.volumes:
            LOGGER.debug("Released generation %d (%d volumes)", old.generation, len(old.volumes))
