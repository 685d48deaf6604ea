from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = str(os.getenv(name, "")).strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _env_float(name: str, default: float, minimum: float | None = None, positive: bool = False) -> float:
    raw = str(os.getenv(name, "")).strip()
    try:
        value = float(raw) if raw else float(default)
    except ValueError:
        value = float(default)
    if (minimum is not None and value < minimum) or (positive and value <= 0.0):
        value = float(default)
    return value


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    return int(_env_float(name, float(default), None if minimum is None else float(minimum)))


@dataclass(frozen=True)
class ViewerSettings:
    screen_width: int = 1080
    screen_height: int = 2400
    box_depth: float = 20.0
    depth_step: float = 10.0
    fov_deg: float = 75.0
    resting_opacity: float = 0.75
    hover_opacity: float = 1.0
    notify_timeout_s: float = 3.0
    delete_key: str = "q"
    data_dir: str = ""
    log_stdout: bool = False

    def root_dir(self) -> Path:
        return Path(self.data_dir or os.path.join(os.path.expanduser("~"), ".stackview"))

    def storage_dir(self) -> Path:
        return self.root_dir() / "screens"

    def log_dir(self) -> Path:
        return self.root_dir() / "logs"


def load_settings() -> ViewerSettings:
    delete_key = str(os.getenv("STACKVIEW_DELETE_KEY", "q") or "q").strip().lower()
    return ViewerSettings(
        screen_width=_env_int("STACKVIEW_SCREEN_WIDTH", 1080, minimum=1),
        screen_height=_env_int("STACKVIEW_SCREEN_HEIGHT", 2400, minimum=1),
        box_depth=_env_float("STACKVIEW_BOX_DEPTH", 20.0, minimum=0.0),
        depth_step=_env_float("STACKVIEW_DEPTH_STEP", 10.0, positive=True),
        fov_deg=_env_float("STACKVIEW_FOV_DEG", 75.0, minimum=1.0),
        notify_timeout_s=_env_float("STACKVIEW_NOTIFY_TIMEOUT_S", 3.0, minimum=0.0),
        delete_key=delete_key[:1] or "q",
        data_dir=str(os.getenv("STACKVIEW_DATA_DIR", "") or "").strip(),
        log_stdout=_env_bool("STACKVIEW_LOG_STDOUT", False),
    )


DEFAULT_SETTINGS = ViewerSettings()
