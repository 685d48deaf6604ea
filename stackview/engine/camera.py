from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np


def _unit(v: np.ndarray, fallback: Sequence[float]) -> np.ndarray:
    n = float(np.linalg.norm(v))
    if n <= 1e-12:
        return np.asarray(fallback, dtype=float)
    return v / n


@dataclass
class Camera:
    """Perspective camera looking from ``position`` at ``target``."""

    fov_deg: float = 75.0
    aspect: float = 1.0
    near: float = 0.1
    far: float = 5000.0
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1500.0]))
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))

    def basis(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        forward = _unit(np.asarray(self.target, dtype=float) - np.asarray(self.position, dtype=float), (0.0, 0.0, -1.0))
        right = _unit(np.cross(forward, np.asarray(self.up, dtype=float)), (1.0, 0.0, 0.0))
        true_up = np.cross(right, forward)
        return forward, right, true_up

    def ray_from_ndc(self, x: float, y: float) -> Tuple[np.ndarray, np.ndarray]:
        """Ray through normalized device coordinates (-1..1, y up)."""
        forward, right, true_up = self.basis()
        tan_half = math.tan(math.radians(float(self.fov_deg)) / 2.0)
        direction = forward + float(x) * tan_half * float(self.aspect) * right + float(y) * tan_half * true_up
        return np.asarray(self.position, dtype=float).copy(), _unit(direction, forward)

    def distance(self) -> float:
        return float(np.linalg.norm(np.asarray(self.position, dtype=float) - np.asarray(self.target, dtype=float)))

    def set_aspect(self, width: float, height: float) -> None:
        if float(height) > 0 and float(width) > 0:
            self.aspect = float(width) / float(height)


@dataclass(frozen=True)
class CameraFraming:
    center: Tuple[float, float, float]
    distance: float

    @property
    def position(self) -> Tuple[float, float, float]:
        return (self.center[0], self.center[1], self.center[2] + self.distance)


def frame_extents(mins: Sequence[float], maxs: Sequence[float], fov_deg: float, margin: float = 1.2) -> CameraFraming:
    lo = np.asarray(mins, dtype=float).reshape(3)
    hi = np.asarray(maxs, dtype=float).reshape(3)
    center = (lo + hi) * 0.5
    max_dim = float(np.max(hi - lo))
    dist = abs(max_dim / 2.0 / math.tan(math.radians(float(fov_deg)) / 2.0)) * float(margin)
    return CameraFraming(center=(float(center[0]), float(center[1]), float(center[2])), distance=float(dist))


def apply_framing(camera: Camera, framing: CameraFraming) -> None:
    camera.target = np.asarray(framing.center, dtype=float)
    camera.position = np.asarray(framing.position, dtype=float)
    # Keep the whole stack inside the clipping range after a refit.
    camera.far = max(float(camera.far), float(framing.distance) * 4.0)


class CameraController:
    """Orbit, pan and zoom around the camera target.

    ``dragging`` is true between ``begin_drag`` and ``end_drag``; picking is
    suspended while it is set.
    """

    def __init__(self, camera: Camera, rotate_speed: float = 0.005, min_distance: float = 1.0):
        self.camera = camera
        self.rotate_speed = float(rotate_speed)
        self.min_distance = float(min_distance)
        self.dragging = False
        self._mode: Optional[str] = None

    def begin_drag(self, mode: str = "orbit") -> None:
        self.dragging = True
        self._mode = str(mode or "orbit")

    def end_drag(self) -> None:
        self.dragging = False
        self._mode = None

    def drag(self, dx_px: float, dy_px: float) -> None:
        if not self.dragging:
            return
        if self._mode == "pan":
            self.pan(dx_px, dy_px)
        else:
            self.orbit(dx_px * self.rotate_speed, dy_px * self.rotate_speed)

    def orbit(self, d_azimuth: float, d_elevation: float) -> None:
        cam = self.camera
        offset = np.asarray(cam.position, dtype=float) - np.asarray(cam.target, dtype=float)
        radius = float(np.linalg.norm(offset))
        if radius <= 1e-12:
            return
        azimuth = math.atan2(offset[0], offset[2]) - float(d_azimuth)
        elevation = math.asin(max(-1.0, min(1.0, offset[1] / radius))) + float(d_elevation)
        limit = math.pi / 2.0 - 1e-3
        elevation = max(-limit, min(limit, elevation))
        new_offset = np.array(
            [
                radius * math.cos(elevation) * math.sin(azimuth),
                radius * math.sin(elevation),
                radius * math.cos(elevation) * math.cos(azimuth),
            ],
            dtype=float,
        )
        cam.position = np.asarray(cam.target, dtype=float) + new_offset

    def pan(self, dx_px: float, dy_px: float, viewport_height_px: float = 800.0) -> None:
        cam = self.camera
        _, right, true_up = cam.basis()
        world_per_px = 2.0 * cam.distance() * math.tan(math.radians(cam.fov_deg) / 2.0) / max(1.0, float(viewport_height_px))
        delta = (-float(dx_px) * right + float(dy_px) * true_up) * world_per_px
        cam.position = np.asarray(cam.position, dtype=float) + delta
        cam.target = np.asarray(cam.target, dtype=float) + delta

    def zoom(self, factor: float) -> None:
        cam = self.camera
        if float(factor) <= 0:
            return
        offset = np.asarray(cam.position, dtype=float) - np.asarray(cam.target, dtype=float)
        dist = float(np.linalg.norm(offset))
        if dist <= 1e-12:
            return
        new_dist = max(self.min_distance, dist / float(factor))
        cam.position = np.asarray(cam.target, dtype=float) + offset / dist * new_dist
