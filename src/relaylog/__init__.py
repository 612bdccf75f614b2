"""
Public entrypoints for relaylog.

The module-level functions act on a process-wide default ``Logger`` that is
built lazily from ``Settings()`` (environment) on first use. Applications
that prefer explicit wiring construct a ``Logger`` and pass it around, or
install it as the default with ``set_logger``.

Example:
    import relaylog

    relaylog.setup_remote_server("https://logs.example.com/ingest")
    relaylog.info("worker %d ready", 3)
    relaylog.error("lost connection to %s", "db-1")  # local + remote batch
    relaylog.fatal("cannot continue")  # drains the batch, exits non-zero
"""

from __future__ import annotations

import threading
from typing import Any

from pydantic import ValidationError

from ._version import __version__
from .core import diagnostics
from .core.batcher import DrainResult, RemoteState
from .core.errors import DeliveryError, RelaylogError, RemoteAlreadyConfiguredError
from .core.levels import Severity, should_emit
from .core.logger import Logger
from .core.settings import Settings

__all__ = [
    "DeliveryError",
    "DrainResult",
    "Logger",
    "RelaylogError",
    "RemoteAlreadyConfiguredError",
    "RemoteState",
    "Settings",
    "Severity",
    "VERSION",
    "__version__",
    "debug",
    "enable_debug",
    "error",
    "fatal",
    "flush",
    "get_logger",
    "info",
    "push",
    "reset_logger",
    "set_logger",
    "setup_remote_server",
    "should_emit",
    "warn",
]

VERSION = __version__

_default_logger: Logger | None = None
_default_lock = threading.Lock()


def get_logger() -> Logger:
    """Return the process-wide logger, building it from the environment once."""
    global _default_logger
    logger = _default_logger
    if logger is not None:
        return logger
    with _default_lock:
        if _default_logger is None:
            _default_logger = _build_default_logger()
        return _default_logger


def _build_default_logger() -> Logger:
    """Build the default logger from the environment.

    Invalid settings fall back to defaults and an invalid remote URL leaves
    remote delivery disabled, so logging calls never raise. Each problem is
    reported through diagnostics and as a local WARN line.
    """
    problems: list[ValidationError] = []
    try:
        settings = Settings()
    except ValidationError as exc:
        problems.append(exc)
        settings = Settings.model_construct()
    try:
        logger = Logger(settings)
    except ValidationError as exc:
        problems.append(exc)
        logger = Logger(settings.model_copy(update={"remote_server": None}))
    for exc in problems:
        diagnostics.warn(
            "logger",
            "invalid environment configuration",
            errors=exc.error_count(),
            error=str(exc),
        )
        logger.warn(
            "Ignoring invalid environment configuration: %s", _describe(exc)
        )
    return logger


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err["loc"]) or "value"
        parts.append(f"{where}: {err['msg']}")
    return "; ".join(parts)


def set_logger(logger: Logger) -> None:
    """Install ``logger`` as the process-wide default."""
    global _default_logger
    with _default_lock:
        _default_logger = logger


def reset_logger(timeout: float | None = None) -> None:
    """Drain and drop the default logger (for tests and embedding)."""
    global _default_logger
    with _default_lock:
        logger, _default_logger = _default_logger, None
    if logger is not None:
        logger.close(timeout)


def enable_debug() -> None:
    get_logger().enable_debug()


def setup_remote_server(url: str | None) -> None:
    get_logger().setup_remote_server(url)


def debug(template: str, *args: Any) -> None:
    get_logger().debug(template, *args)


def info(template: str, *args: Any) -> None:
    get_logger().info(template, *args)


def warn(template: str, *args: Any) -> None:
    get_logger().warn(template, *args)


def error(template: str, *args: Any) -> None:
    get_logger().error(template, *args)


def fatal(template: str, *args: Any) -> None:
    get_logger().fatal(template, *args)


def push(line: str) -> None:
    get_logger().push(line)


def flush(timeout: float | None = None) -> bool:
    return get_logger().flush(timeout)
