from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

BOUNDS_PATTERN = re.compile(r"\[(-?\d+),(-?\d+)\]\[(-?\d+),(-?\d+)\]", re.ASCII)


@dataclass(frozen=True)
class Bounds:
    """Screen-space rectangle, origin top-left, y grows downward.

    Inverted rectangles are kept as-is, so width, height and area may be
    zero or negative.
    """

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.left + self.width / 2.0, self.top + self.height / 2.0)


def parse_bounds(text: object) -> Optional[Bounds]:
    """Parse ``[left,top][right,bottom]``; anything else yields None."""
    if not isinstance(text, str) or not text:
        return None
    match = BOUNDS_PATTERN.search(text)
    if match is None:
        return None
    left, top, right, bottom = (int(g) for g in match.groups())
    return Bounds(left=left, top=top, right=right, bottom=bottom)


def format_bounds(bounds: Bounds) -> str:
    return f"[{bounds.left},{bounds.top}][{bounds.right},{bounds.bottom}]"
