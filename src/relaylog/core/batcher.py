"""
Thread-backed facade over ``RemoteWorker``.

``RemoteBatcher`` owns the bounded queue shared with callers and a daemon
thread running the worker on its own asyncio event loop. Callers on any
thread use ``push`` (blocking while the queue is full), ``flush_now`` and
``shutdown``; only the worker thread touches the pending set.
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass
from enum import Enum
from queue import Full, Queue

from ..metrics.metrics import MetricsCollector
from ..plugins.sinks import RemoteTransport
from . import diagnostics
from .worker import Clock, DeliveryErrorHandler, RemoteWorker

# How often a caller blocked on a full queue re-checks for shutdown
_PUT_POLL_SECONDS = 0.1


class RemoteState(str, Enum):
    DISABLED = "disabled"  # No endpoint configured; no batcher exists
    RUNNING = "running"
    DRAINING = "draining"  # Shutdown signalled, final flush in progress
    STOPPED = "stopped"


@dataclass(frozen=True)
class DrainResult:
    """Outcome of a shutdown request."""

    drained: bool
    flushed_lines: int
    elapsed_seconds: float


class RemoteBatcher:
    """Bounded queue plus single background worker for remote delivery."""

    def __init__(
        self,
        transport: RemoteTransport,
        *,
        queue_capacity: int = 20,
        flush_interval_seconds: float = 5.0,
        on_delivery_error: DeliveryErrorHandler | None = None,
        metrics: MetricsCollector | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        if queue_capacity <= 0:
            raise ValueError("queue_capacity must be > 0")
        if flush_interval_seconds <= 0:
            raise ValueError("flush_interval_seconds must be > 0")
        self._transport = transport
        self._queue: Queue[str] = Queue(maxsize=queue_capacity)
        self._worker = RemoteWorker(
            queue=self._queue,
            transport=transport,
            flush_interval_seconds=flush_interval_seconds,
            on_delivery_error=on_delivery_error,
            metrics=metrics,
            clock=clock,
        )
        self._state = RemoteState.RUNNING
        self._state_lock = threading.Lock()
        self._closing = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> RemoteState:
        return self._state

    @property
    def queue_capacity(self) -> int:
        return self._queue.maxsize

    @property
    def queued(self) -> int:
        """Lines waiting on the queue (not yet seen by the worker)."""
        return self._queue.qsize()

    @property
    def worker(self) -> RemoteWorker:
        return self._worker

    def start(self) -> None:
        """Start the worker thread. Subsequent calls are no-ops."""
        with self._state_lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._thread_main,
                name="relaylog-remote-worker",
                daemon=True,
            )
            self._thread.start()

    def _thread_main(self) -> None:
        try:
            asyncio.run(self._main())
        except Exception as exc:  # pragma: no cover - defensive catch
            diagnostics.warn(
                "batcher",
                "worker thread error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
        finally:
            with self._state_lock:
                self._state = RemoteState.STOPPED
            self._closing.set()

    async def _main(self) -> None:
        try:
            await self._transport.start()
        except Exception as exc:
            # send() gets another chance to fail and be reported per batch
            diagnostics.warn(
                "batcher",
                "transport start failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
        try:
            await self._worker.run()
        finally:
            try:
                await self._transport.stop()
            except Exception as exc:
                diagnostics.warn(
                    "batcher",
                    "transport stop failed",
                    error_type=type(exc).__name__,
                    error=str(exc),
                )

    def push(self, line: str) -> bool:
        """Hand a line to the worker.

        Blocks while the queue is full. Returns False without queueing once
        shutdown has begun.
        """
        while not self._closing.is_set():
            try:
                self._queue.put(line, timeout=_PUT_POLL_SECONDS)
            except Full:
                continue
            self._worker.notify()
            return True
        return False

    def flush_now(self, timeout: float | None = None) -> bool:
        """Flush the current batch and wait for the delivery attempt."""
        if self._thread is None or self._closing.is_set():
            return False
        return self._worker.request_flush(timeout)

    def shutdown(self, timeout: float | None = None) -> DrainResult:
        """Signal shutdown and wait for the worker's final flush.

        Idempotent: concurrent and repeated callers wait on the same drained
        signal. ``drained`` is False when ``timeout`` expired first.
        """
        started_at = time.monotonic()
        with self._state_lock:
            if self._state is RemoteState.RUNNING:
                self._state = RemoteState.DRAINING
            self._closing.set()
        # Lines queued before start() must still get their final flush
        self.start()
        self._worker.request_stop()
        drained = self._worker.wait_drained(timeout)
        return DrainResult(
            drained=drained,
            flushed_lines=self._worker.flushed_lines,
            elapsed_seconds=time.monotonic() - started_at,
        )

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
