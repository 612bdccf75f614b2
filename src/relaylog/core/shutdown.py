"""Drain remote batches on normal interpreter exit.

Loggers with remote delivery register themselves here. On exit the atexit
hook asks each one to drain within its ``remote.shutdown_timeout_seconds``.
Fatal logging unregisters before terminating, so a logger is never drained
twice.

The hook is best-effort: it will not block past the timeout and never
raises.
"""

from __future__ import annotations

import atexit
import weakref
from typing import TYPE_CHECKING, Any

from . import diagnostics

if TYPE_CHECKING:
    from .logger import Logger


_shutdown_in_progress: bool = False
_registered_loggers: weakref.WeakSet[Any] = weakref.WeakSet()


def register_logger(logger: Logger) -> None:
    """Register a logger for drain on exit. Uses a WeakSet."""
    _registered_loggers.add(logger)


def unregister_logger(logger: Logger) -> None:
    try:
        _registered_loggers.discard(logger)
    except Exception:  # pragma: no cover - defensive
        pass


def registered_loggers() -> list[Logger]:
    try:
        return list(_registered_loggers)
    except Exception:  # pragma: no cover - rare GC race
        return []


def _drain_single_logger(logger: Logger) -> None:
    try:
        if not logger.settings.core.atexit_drain_enabled:
            return
        result = logger.close()
        if not result.drained:
            diagnostics.warn(
                "shutdown",
                "exit drain timed out",
                remote=logger.remote_url,
            )
    except Exception as exc:
        diagnostics.warn("shutdown", "exit drain failed", error=str(exc))


def _atexit_handler() -> None:
    global _shutdown_in_progress

    if _shutdown_in_progress:
        return
    _shutdown_in_progress = True
    for logger in registered_loggers():
        _drain_single_logger(logger)


atexit.register(_atexit_handler)
