from __future__ import annotations

import json
import logging
import os
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


def audit_enabled() -> bool:
    raw = str(os.environ.get("STACKVIEW_AUDIT", "")).strip().lower()
    return raw in {"1", "true", "yes", "on"}


def _jsonable(value):
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def emit_audit(event: str, *, logger: Optional[logging.Logger] = None, **fields) -> None:
    """Write one structured audit line; no-op unless STACKVIEW_AUDIT=1."""
    if not audit_enabled():
        return
    log = logger or logging.getLogger("stackview.audit")
    payload: Dict[str, object] = {"event": str(event or "unknown"), "ts": time.time()}
    for k, v in fields.items():
        payload[str(k)] = _jsonable(v)
    log.info("AUDIT %s", json.dumps(payload, ensure_ascii=False, sort_keys=True))


@contextmanager
def audit_span(event: str, *, logger: Optional[logging.Logger] = None, **fields) -> Iterator[None]:
    """Timed audit span reporting status and elapsed_ms on exit."""
    if not audit_enabled():
        yield
        return

    t0 = time.perf_counter()
    status = "ok"
    error_text = ""
    try:
        yield
    except Exception as exc:
        status = "error"
        error_text = f"{type(exc).__name__}: {exc}"
        raise
    finally:
        emit_audit(
            event,
            logger=logger,
            status=status,
            elapsed_ms=round((time.perf_counter() - t0) * 1000.0, 3),
            error=error_text,
            **fields,
        )
