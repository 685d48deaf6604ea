from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

LOGGER = logging.getLogger(__name__)


def screen_key(number: int) -> str:
    return f"screen_{int(number)}"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ScreenRecord:
    json: str
    timestamp: int

    def to_dict(self) -> dict:
        return {"json": str(self.json), "timestamp": int(self.timestamp)}

    @staticmethod
    def from_dict(data: dict) -> Optional["ScreenRecord"]:
        if not isinstance(data, dict) or not isinstance(data.get("json"), str):
            return None
        try:
            ts = int(data.get("timestamp", 0))
        except (TypeError, ValueError):
            ts = 0
        return ScreenRecord(json=data["json"], timestamp=ts)


class ScreenStore(Protocol):
    def load(self, number: int) -> Optional[ScreenRecord]:
        ...

    def save(self, number: int, json_text: str) -> Optional[ScreenRecord]:
        ...


class MemoryScreenStore:
    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._clock = clock
        self._rows: Dict[str, dict] = {}

    def load(self, number: int) -> Optional[ScreenRecord]:
        return ScreenRecord.from_dict(self._rows.get(screen_key(number), {}))

    def save(self, number: int, json_text: str) -> Optional[ScreenRecord]:
        record = ScreenRecord(json=str(json_text), timestamp=int(self._clock()))
        self._rows[screen_key(number)] = record.to_dict()
        return record

    def keys(self):
        return sorted(self._rows)


class JsonDirectoryScreenStore:
    """One ``screen_<n>.json`` file per screen under ``root``.

    Read and write failures are logged and reported as a missing record.
    """

    def __init__(self, root: str | os.PathLike, clock: Callable[[], int] = _now_ms):
        self.root = Path(root)
        self._clock = clock

    def _path(self, number: int) -> Path:
        return self.root / f"{screen_key(number)}.json"

    def load(self, number: int) -> Optional[ScreenRecord]:
        path = self._path(number)
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            LOGGER.error("Failed to load %s: %s", path, e)
            return None
        return ScreenRecord.from_dict(data)

    def save(self, number: int, json_text: str) -> Optional[ScreenRecord]:
        record = ScreenRecord(json=str(json_text), timestamp=int(self._clock()))
        path = self._path(number)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8", newline="\n") as f:
                json.dump(record.to_dict(), f, ensure_ascii=False)
            os.replace(tmp, path)
        except OSError as e:
            LOGGER.error("Failed to save %s: %s", path, e)
            return None
        return record
