"""
Internal diagnostics for contained errors.

relaylog never lets its own failures reach the caller. When
``core.internal_logging_enabled`` is set, those failures are reported here
as one JSON object per line on stderr. The setting is read once and cached;
tests reset ``_internal_logging_enabled`` to force a re-read.
"""

from __future__ import annotations

import json
import sys
import threading
import time
from typing import Any, TextIO

_internal_logging_enabled: bool | None = None
_lock = threading.Lock()


def _is_enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(
                Settings().core.internal_logging_enabled
            )
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def set_enabled(enabled: bool) -> None:
    """Override the cached setting (used by Logger construction)."""
    global _internal_logging_enabled
    _internal_logging_enabled = bool(enabled)


def warn(
    component: str,
    message: str,
    *,
    stream: TextIO | None = None,
    **fields: Any,
) -> None:
    """Write a diagnostic record if diagnostics are enabled. Never raises."""
    try:
        if not _is_enabled():
            return
        record: dict[str, Any] = {
            "ts": round(time.time(), 3),
            "level": "WARN",
            "component": component,
            "message": message,
        }
        record.update(fields)
        line = json.dumps(record, default=str)
        out = stream or sys.stderr
        with _lock:
            out.write(line + "\n")
            out.flush()
    except Exception:
        return None
