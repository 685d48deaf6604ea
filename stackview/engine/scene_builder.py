from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from stackview.core.config import DEFAULT_SETTINGS, ViewerSettings
from stackview.core.perf import DEFAULT_TRACER, PerfTracer

from .bounds import Bounds, parse_bounds
from .camera import CameraFraming, frame_extents
from .element import BOUNDS, NaturalKey, is_clickable, is_labeled
from .volume import Volume, VolumeArena, VolumeSet

LOGGER = logging.getLogger(__name__)

STYLE_COLORS: Dict[str, str] = {
    "highlighted": "#ef4444",
    "labeled": "#8b5cf6",
    "clickable": "#10b981",
    "default": "#f59e0b",
}


def classify(element: Mapping[str, Any], highlighted: Optional[NaturalKey] = None) -> str:
    if highlighted is not None and highlighted.matches(element):
        return "highlighted"
    if is_labeled(element):
        return "labeled"
    if is_clickable(element):
        return "clickable"
    return "default"


def order_by_area(elements: Sequence[Any]) -> List[Tuple[Dict[str, Any], Bounds]]:
    """Elements with parseable bounds, largest area first.

    ``sorted`` is stable, so equal areas keep collection order.
    """
    rows: List[Tuple[Dict[str, Any], Bounds]] = []
    for element in elements:
        if not isinstance(element, dict):
            continue
        b = parse_bounds(element.get(BOUNDS))
        if b is None:
            continue
        rows.append((element, b))
    return sorted(rows, key=lambda row: row[1].area, reverse=True)


@dataclass(frozen=True)
class SceneBuild:
    volumes: VolumeSet
    element_count: int
    framing: Optional[CameraFraming]


class SceneBuilder:
    """Turns the element collection into depth-ordered volumes.

    Every ``rebuild`` produces a new generation in the arena. A rebuild
    requested from inside a running one (e.g. by an arena listener) is kept
    as the single pending request and runs once the current build is done.
    """

    def __init__(
        self,
        arena: Optional[VolumeArena] = None,
        settings: ViewerSettings = DEFAULT_SETTINGS,
        tracer: Optional[PerfTracer] = None,
    ):
        self.arena = arena or VolumeArena()
        self.settings = settings
        self.tracer = tracer or DEFAULT_TRACER
        self.last_build: Optional[SceneBuild] = None
        self._building = False
        self._pending: Optional[Tuple[List[Any], Optional[NaturalKey]]] = None

    def build(self, elements: Sequence[Any], highlighted: Optional[NaturalKey] = None, generation: int = 0) -> SceneBuild:
        cfg = self.settings
        volumes: List[Volume] = []
        for index, (element, b) in enumerate(order_by_area(elements)):
            style = classify(element, highlighted)
            width = float(b.width)
            height = float(b.height)
            volumes.append(
                Volume.create(
                    generation=generation,
                    depth_index=index,
                    element=element,
                    bounds=b,
                    center=(
                        b.left + width / 2.0 - cfg.screen_width / 2.0,
                        -(b.top + height / 2.0 - cfg.screen_height / 2.0),
                        index * float(cfg.depth_step),
                    ),
                    size=(width, height, float(cfg.box_depth)),
                    color=STYLE_COLORS[style],
                    style=style,
                    opacity=float(cfg.resting_opacity),
                )
            )
        vset = VolumeSet(generation=generation, volumes=tuple(volumes))
        framing = None
        ext = vset.extents()
        if ext is not None:
            framing = frame_extents(ext[0], ext[1], cfg.fov_deg)
        return SceneBuild(volumes=vset, element_count=len(volumes), framing=framing)

    def rebuild(self, elements: Sequence[Any], highlighted: Optional[NaturalKey] = None) -> Optional[SceneBuild]:
        if self._building:
            self._pending = (list(elements), highlighted)
            return None
        self._building = True
        try:
            with self.tracer.span("SCENE_REBUILD") as detail:
                result = self.build(elements, highlighted, generation=self.arena.next_generation())
                detail["volumes"] = result.element_count
                self.arena.swap(result.volumes)
            self.last_build = result
            LOGGER.debug("Scene generation %d: %d volumes", result.volumes.generation, result.element_count)
        except Exception:
            # Drop whatever the failed pass queued.
            self._pending = None
            raise
        finally:
            self._building = False
        pending = self._pending
        self._pending = None
        if pending is not None:
            return self.rebuild(*pending)
        return result

    def dispose(self) -> None:
        self.arena.clear()
        self.last_build = None

    @property
    def element_count(self) -> int:
        return self.last_build.element_count if self.last_build is not None else 0
