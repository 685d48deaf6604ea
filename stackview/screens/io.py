from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from stackview.engine.errors import MalformedInputError

DEFAULT_SCREEN_ID = "unnamed_screen"
DEFAULT_EXPORT_STEM = "ui-elements"


@dataclass(frozen=True)
class ImportedPayload:
    elements: List[Any]
    screen_id: Optional[str] = None


def parse_payload(text: str) -> ImportedPayload:
    """Accept a bare element array or a ``{screenId, elements}`` object."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Invalid JSON format: {e}") from e
    return coerce_payload(data)


def coerce_payload(data: Any) -> ImportedPayload:
    if isinstance(data, list):
        return ImportedPayload(elements=list(data))
    if isinstance(data, dict) and data.get("screenId") and isinstance(data.get("elements"), list):
        return ImportedPayload(elements=list(data["elements"]), screen_id=str(data["screenId"]))
    raise MalformedInputError(
        "Expected an array of elements or a {screenId, elements} object.",
        details={"type": type(data).__name__},
    )


def export_payload(elements: Sequence[Any], screen_name: str = "") -> Dict[str, Any]:
    return {
        "screenId": str(screen_name or DEFAULT_SCREEN_ID),
        "elements": list(elements),
    }


def export_filename(screen_name: str = "") -> str:
    return f"{screen_name or DEFAULT_EXPORT_STEM}.json"


def dumps_payload(elements: Sequence[Any], screen_name: str = "") -> str:
    return json.dumps(export_payload(elements, screen_name), ensure_ascii=False, indent=2)


def save_export(directory: str, elements: Sequence[Any], screen_name: str = "") -> str:
    out_dir = os.path.abspath(str(directory or "."))
    os.makedirs(out_dir, exist_ok=True)
    out = os.path.join(out_dir, export_filename(screen_name))
    with open(out, "w", encoding="utf-8", newline="\n") as f:
        f.write(dumps_payload(elements, screen_name))
    return out


def load_payload_file(path: str) -> ImportedPayload:
    src = os.path.abspath(str(path or ""))
    if not src or not os.path.isfile(src):
        raise FileNotFoundError(src)
    with open(src, "r", encoding="utf-8") as f:
        return parse_payload(f.read())
