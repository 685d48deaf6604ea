from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Screenshot:
    ok: bool
    pixels: Optional[np.ndarray] = None
    error: str = ""

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels is not None else 0

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels is not None else 0


PLACEHOLDER = Screenshot(ok=False, error="No screenshot")


def decode_screenshot(data: Optional[bytes]) -> Screenshot:
    """Decode PNG bytes to an RGBA array; failures give a placeholder."""
    if not data:
        return PLACEHOLDER
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgba = img.convert("RGBA")
            return Screenshot(ok=True, pixels=np.asarray(rgba, dtype=np.uint8))
    except (UnidentifiedImageError, OSError, ValueError) as e:
        LOGGER.warning("Screenshot decode failed: %s", e)
        return Screenshot(ok=False, error=str(e))
