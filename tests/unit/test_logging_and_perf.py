from __future__ import annotations

import logging
import time

from stackview.core.config import ViewerSettings
from stackview.core.logger import LoggerConfig, build_logger
from stackview.core.perf import PerfTracer


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


def test_build_logger_idempotent_with_same_file(tmp_path):
    log_file = tmp_path / "app.log"
    cfg = LoggerConfig(name="stackview.test.logger", log_file=str(log_file), level=logging.INFO)
    a = build_logger(cfg)
    b = build_logger(cfg)
    assert a is b
    files = [h for h in a.handlers if getattr(h, "baseFilename", "").lower().endswith("app.log")]
    assert len(files) == 1


def test_build_logger_console_handler_added_once(tmp_path, monkeypatch):
    monkeypatch.setenv("STACKVIEW_LOG_STDOUT", "1")
    cfg = LoggerConfig(name="stackview.test.console", log_file=str(tmp_path / "c.log"))
    log = build_logger(cfg)
    build_logger(cfg)
    streams = [h for h in log.handlers if type(h) is logging.StreamHandler]
    assert len(streams) == 1


def test_default_log_file_under_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("STACKVIEW_DATA_DIR", str(tmp_path))
    log = build_logger(LoggerConfig(name="stackview.test.default"))
    assert any(str(tmp_path) in getattr(h, "baseFilename", "") for h in log.handlers)
    assert (tmp_path / "logs").is_dir()


def test_perf_tracer_logs_only_when_slow():
    logger = logging.getLogger("stackview.test.perf")
    logger.setLevel(logging.INFO)
    logger.handlers = []
    logger.propagate = False
    sink = _ListHandler()
    logger.addHandler(sink)

    tracer = PerfTracer(logger=logger, threshold_s=0.001)
    tracer.record("FAST_EVENT", 0.0005)
    with tracer.span("SLOW_EVENT") as detail:
        detail["volumes"] = 3
        time.sleep(0.003)

    text = "\n".join(sink.messages)
    assert "FAST_EVENT" not in text
    assert "SLOW_EVENT" in text
    assert "volumes=3" in text
    assert tracer.stats["FAST_EVENT"].count == 1
    assert tracer.stats["FAST_EVENT"].slow == 0
    assert tracer.stats["SLOW_EVENT"].slow == 1
    assert tracer.stats["SLOW_EVENT"].worst_ms >= 3.0


def test_logger_config_for_settings(tmp_path):
    settings = ViewerSettings(data_dir=str(tmp_path), log_stdout=True)
    cfg = LoggerConfig.for_settings(settings, name="stackview.test.settings")
    assert cfg.console is True
    log = build_logger(cfg)
    assert (tmp_path / "logs" / "stackview.test.settings.log").is_file()
    assert any(type(h) is logging.StreamHandler for h in log.handlers)
