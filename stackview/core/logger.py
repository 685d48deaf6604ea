from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from stackview.core.config import ViewerSettings, _env_bool, load_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


@dataclass(frozen=True)
class LoggerConfig:
    name: str = "stackview"
    level: int = logging.INFO
    max_bytes: int = 2_000_000
    backup_count: int = 5
    console: bool = False
    log_file: Optional[str] = None

    @classmethod
    def for_settings(cls, settings: ViewerSettings, name: str = "stackview") -> "LoggerConfig":
        return cls(name=name, console=settings.log_stdout, log_file=str(settings.log_dir() / f"{name}.log"))


def _log_path(config: LoggerConfig) -> str:
    if config.log_file:
        return os.path.abspath(config.log_file)
    name = config.name.replace(".", "_")
    return os.path.abspath(str(load_settings().log_dir() / f"{name}.log"))


def _formatted(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def build_logger(config: LoggerConfig) -> logging.Logger:
    """Attach a rotating log file, and stdout when asked, to ``config.name``.

    Handlers are matched by target, so repeated calls keep one of each.
    """
    logger = logging.getLogger(config.name)
    logger.setLevel(int(config.level))

    path = _log_path(config)
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    target = os.path.normcase(path)
    files = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    if not any(os.path.normcase(h.baseFilename) == target for h in files):
        logger.addHandler(
            _formatted(
                RotatingFileHandler(
                    path,
                    maxBytes=int(config.max_bytes),
                    backupCount=int(config.backup_count),
                    encoding="utf-8",
                )
            )
        )

    if config.console or _env_bool("STACKVIEW_LOG_STDOUT", False):
        if not any(type(h) is logging.StreamHandler for h in logger.handlers):
            logger.addHandler(_formatted(logging.StreamHandler(stream=sys.stdout)))

    logger.propagate = False
    return logger
