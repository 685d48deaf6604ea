"""StackView desktop entry point.

Environment:
  STACKVIEW_DATA_DIR     logs and saved screens (default ~/.stackview)
  STACKVIEW_LOG_STDOUT   1 to mirror the log on stdout
  STACKVIEW_AUDIT        1 to write structured audit lines
"""

from __future__ import annotations

import logging
import sys

from stackview.core.config import load_settings
from stackview.core.logger import LoggerConfig, build_logger


def main() -> int:
    settings = load_settings()
    logger = build_logger(LoggerConfig.for_settings(settings))
    logger.info("Starting StackView (screen %dx%d)", settings.screen_width, settings.screen_height)
    try:
        from stackview.ui.main_window import launch_main_window
    except ImportError as e:
        logger.error("Desktop stack unavailable: %s", e)
        print(f"StackView needs PySide6, pyvista and pyvistaqt: {e}", file=sys.stderr)
        return 1
    launch_main_window(settings)
    logging.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
