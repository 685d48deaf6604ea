from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np


@dataclass
class MeshData:
    vertices: np.ndarray
    faces: np.ndarray

    def clone(self) -> "MeshData":
        return MeshData(
            vertices=np.array(self.vertices, dtype=float, copy=True),
            faces=np.array(self.faces, dtype=int, copy=True),
        )


BOX_FACES = np.array(
    [
        [0, 1, 2],
        [0, 2, 3],
        [4, 6, 5],
        [4, 7, 6],
        [0, 4, 5],
        [0, 5, 1],
        [1, 5, 6],
        [1, 6, 2],
        [2, 6, 7],
        [2, 7, 3],
        [3, 7, 4],
        [3, 4, 0],
    ],
    dtype=int,
)

BOX_EDGES = np.array(
    [
        [0, 1], [1, 2], [2, 3], [3, 0],
        [4, 5], [5, 6], [6, 7], [7, 4],
        [0, 4], [1, 5], [2, 6], [3, 7],
    ],
    dtype=int,
)


def box_corners(center: Sequence[float], size: Sequence[float]) -> np.ndarray:
    cx, cy, cz = [float(x) for x in center]
    w, h, d = [abs(float(x)) * 0.5 for x in size]
    return np.array(
        [
            [cx - w, cy - h, cz - d],
            [cx + w, cy - h, cz - d],
            [cx + w, cy + h, cz - d],
            [cx - w, cy + h, cz - d],
            [cx - w, cy - h, cz + d],
            [cx + w, cy - h, cz + d],
            [cx + w, cy + h, cz + d],
            [cx - w, cy + h, cz + d],
        ],
        dtype=float,
    )


def create_box(width: float, height: float, depth: float, center=(0.0, 0.0, 0.0)) -> MeshData:
    """Axis-aligned triangulated box; negative extents are mirrored to positive."""
    return MeshData(vertices=box_corners(center, (width, height, depth)), faces=BOX_FACES.copy())


def box_edge_segments(center: Sequence[float], size: Sequence[float]) -> np.ndarray:
    """(12, 2, 3) array of edge endpoints, used for outline decorations."""
    corners = box_corners(center, size)
    return corners[BOX_EDGES]


def bbox(points: np.ndarray) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    v = np.asarray(points, dtype=float).reshape(-1, 3)
    if v.size == 0:
        return None
    return np.min(v, axis=0), np.max(v, axis=0)


def ray_box_distances(origin: Sequence[float], direction: Sequence[float], mins: np.ndarray, maxs: np.ndarray) -> np.ndarray:
    """Slab test of one ray against N axis-aligned boxes.

    Returns an (N,) array with the distance along ``direction`` to the first
    intersection (0 when the origin is inside a box) or ``inf`` on a miss.
    """
    lo = np.asarray(mins, dtype=float).reshape(-1, 3)
    hi = np.asarray(maxs, dtype=float).reshape(-1, 3)
    if lo.shape[0] == 0:
        return np.zeros(0, dtype=float)
    o = np.asarray(origin, dtype=float).reshape(3)
    d = np.asarray(direction, dtype=float).reshape(3)

    parallel = np.abs(d) <= 1e-15
    safe_d = np.where(parallel, 1.0, d)
    t1 = (lo - o) / safe_d
    t2 = (hi - o) / safe_d
    t_lo = np.minimum(t1, t2)
    t_hi = np.maximum(t1, t2)

    # Axes parallel to the ray: either the origin lies within the slab
    # (no constraint) or the box is missed entirely.
    inside = (o >= lo) & (o <= hi)
    t_lo = np.where(parallel, np.where(inside, -np.inf, np.inf), t_lo)
    t_hi = np.where(parallel, np.where(inside, np.inf, -np.inf), t_hi)

    near = np.max(t_lo, axis=1)
    far = np.min(t_hi, axis=1)
    hit = (far >= near) & (far >= 0.0)
    dist = np.where(near >= 0.0, near, 0.0)
    return np.where(hit, dist, np.inf)
