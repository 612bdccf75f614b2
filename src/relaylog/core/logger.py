"""
Leveled logger with an optional remote side channel.

``Logger`` is the explicit context object behind the module-level API. It
composes the threshold filter, the formatter and the local sink for every
level, and hands ERROR and FATAL lines to a ``RemoteBatcher`` once a remote
endpoint has been configured.
"""

from __future__ import annotations

import os
import sys
import threading
import time
from typing import Any, Callable, NoReturn

from ..metrics.metrics import MetricsCollector
from ..plugins.sinks import BaseSink, RemoteTransport
from ..plugins.sinks.console import ConsoleSink
from ..plugins.sinks.http_transport import HttpTransport, HttpTransportConfig
from . import diagnostics, shutdown
from .batcher import DrainResult, RemoteBatcher, RemoteState
from .errors import RemoteAlreadyConfiguredError
from .formatter import Now, render_line
from .levels import DEBUG_THRESHOLD, DEFAULT_THRESHOLD, Severity, should_emit
from .settings import Settings
from .worker import Clock

ExitFunc = Callable[[int], Any]
TransportFactory = Callable[[str], RemoteTransport]


def terminate(code: int) -> NoReturn:
    """Exit the process with ``code``.

    On the main thread this raises ``SystemExit`` so ``finally`` blocks and
    atexit hooks run. From any other thread ``SystemExit`` would only end
    that thread, so the console streams are flushed and the process exits
    immediately.
    """
    if threading.current_thread() is threading.main_thread():
        sys.exit(code)
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except Exception:
            continue
    os._exit(code)


class Logger:
    """Process-wide leveled logger.

    Example:
        >>> logger = Logger()
        >>> logger.info("listening on %s:%d", "0.0.0.0", 8080)
        >>> logger.setup_remote_server("https://logs.example.com/ingest")
        >>> logger.error("payment %s failed", "p-42")  # also batched remotely
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        sink: BaseSink | None = None,
        transport_factory: TransportFactory | None = None,
        metrics: MetricsCollector | None = None,
        exit_func: ExitFunc | None = None,
        clock: Clock | None = None,
        now: Now | None = None,
    ) -> None:
        cfg = settings or Settings()
        self._settings = cfg
        self._sink: BaseSink = sink or ConsoleSink()
        self._transport_factory = transport_factory or self._http_transport
        self._metrics = metrics or MetricsCollector(enabled=cfg.core.enable_metrics)
        self._exit = exit_func or terminate
        self._clock = clock or time.monotonic
        self._now = now
        self._threshold = DEFAULT_THRESHOLD
        self._setup_lock = threading.Lock()
        self._remote_url: str | None = None
        self._batcher: RemoteBatcher | None = None

        if cfg.core.internal_logging_enabled:
            diagnostics.set_enabled(True)
        if cfg.core.debug:
            self.enable_debug()
        if cfg.remote_server:
            self.setup_remote_server(cfg.remote_server)

    # Configuration ----------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def threshold(self) -> Severity:
        return self._threshold

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def remote_url(self) -> str | None:
        return self._remote_url

    @property
    def remote_state(self) -> RemoteState:
        batcher = self._batcher
        if batcher is None:
            return RemoteState.DISABLED
        return batcher.state

    def enable_debug(self) -> None:
        """Switch the threshold to DEBUG and announce it at INFO.

        The announcement is filtered by the threshold in effect before the
        switch. Calling this again once in debug mode does nothing.
        """
        with self._setup_lock:
            previous = self._threshold
            if previous is DEBUG_THRESHOLD:
                return
            self._threshold = DEBUG_THRESHOLD
        if should_emit(previous, Severity.INFO):
            self._write(Severity.INFO, "Debug mode enabled", ())

    def setup_remote_server(self, url: str | None) -> None:
        """Enable batched delivery of ERROR and FATAL lines to ``url``.

        A blank or missing URL leaves remote delivery disabled.

        Raises:
            RemoteAlreadyConfiguredError: Remote delivery is already enabled.
            pydantic.ValidationError: ``url`` is not an http(s) URL.
        """
        url = (url or "").strip()
        if not url:
            return
        with self._setup_lock:
            if self._batcher is not None:
                raise RemoteAlreadyConfiguredError(
                    f"remote server already set to {self._remote_url!r}"
                )
            transport = self._transport_factory(url)
            remote = self._settings.remote
            batcher = RemoteBatcher(
                transport,
                queue_capacity=remote.queue_capacity,
                flush_interval_seconds=remote.flush_interval_seconds,
                on_delivery_error=self._report_delivery_error,
                metrics=self._metrics,
                clock=self._clock,
            )
            self._remote_url = url
            self._batcher = batcher
        self.info("Enable pushing error/fatal logs to remote server %r", url)
        batcher.start()
        shutdown.register_logger(self)

    def _http_transport(self, url: str) -> RemoteTransport:
        remote = self._settings.remote
        return HttpTransport(
            HttpTransportConfig(
                endpoint=url,
                timeout_seconds=remote.request_timeout_seconds,
                headers=remote.headers,
            )
        )

    def _report_delivery_error(self, exc: BaseException) -> None:
        # Local only: a WARN line is never pushed, so no feedback loop
        self.warn("Cannot push logs to remote server: %s", exc)

    # Emission ---------------------------------------------------------

    def _write(self, level: Severity, template: str, args: tuple[Any, ...]) -> str:
        line = render_line(level, template, args, now=self._now)
        self._sink.write(level, line)
        return line

    def _log(self, level: Severity, template: str, args: tuple[Any, ...]) -> str | None:
        if not should_emit(self._threshold, level):
            return None
        return self._write(level, template, args)

    def debug(self, template: str, *args: Any) -> None:
        self._log(Severity.DEBUG, template, args)

    def info(self, template: str, *args: Any) -> None:
        self._log(Severity.INFO, template, args)

    def warn(self, template: str, *args: Any) -> None:
        self._log(Severity.WARN, template, args)

    def error(self, template: str, *args: Any) -> None:
        """Log at ERROR and queue the line for remote delivery."""
        line = self._log(Severity.ERROR, template, args)
        if line is not None:
            self.push(line)

    def fatal(self, template: str, *args: Any) -> None:
        """Log at FATAL, drain the remote batch, then exit non-zero.

        With remote delivery enabled the line is queued, shutdown is
        signalled and the call waits for the worker's final flush (bounded by
        ``remote.shutdown_timeout_seconds``) before exiting.
        """
        line = self._log(Severity.FATAL, template, args)
        batcher = self._batcher
        if line is not None and batcher is not None:
            batcher.push(line)
            result = batcher.shutdown(self._settings.remote.shutdown_timeout_seconds)
            if not result.drained:
                diagnostics.warn(
                    "logger",
                    "fatal drain timed out",
                    timeout_seconds=self._settings.remote.shutdown_timeout_seconds,
                )
            shutdown.unregister_logger(self)
        self._exit(self._settings.core.fatal_exit_code)

    def push(self, line: str) -> None:
        """Queue an already formatted line for remote delivery.

        No-op when remote delivery is disabled or shutting down. May block
        while the remote queue is full.
        """
        batcher = self._batcher
        if batcher is None:
            return
        batcher.push(line)

    # Lifecycle --------------------------------------------------------

    def flush(self, timeout: float | None = None) -> bool:
        """Deliver the current remote batch now and wait for the attempt."""
        batcher = self._batcher
        if batcher is None:
            return True
        if timeout is None:
            timeout = self._settings.remote.shutdown_timeout_seconds
        return batcher.flush_now(timeout)

    def close(self, timeout: float | None = None) -> DrainResult:
        """Drain and stop remote delivery without exiting the process."""
        batcher = self._batcher
        if batcher is None:
            return DrainResult(drained=True, flushed_lines=0, elapsed_seconds=0.0)
        if timeout is None:
            timeout = self._settings.remote.shutdown_timeout_seconds
        result = batcher.shutdown(timeout)
        shutdown.unregister_logger(self)
        return result
