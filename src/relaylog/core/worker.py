"""
Remote batch worker.

A single ``RemoteWorker`` owns the pending set of distinct lines. Callers
never touch that set: they put lines on a bounded thread-safe queue and call
``notify()``. The worker wakes on a notification, on the flush timer, on a
flush request or on a stop request, and is the only code that mutates the
pending set.

Loop priorities, checked on every wake:

1. stop requested: drain the queue, flush once, signal drained, return
2. flush requested: drain the queue, flush, signal flush done
3. drain whatever is on the queue into the pending set
4. timer due: flush and schedule the next tick
5. otherwise wait for a notification or the next tick
"""

from __future__ import annotations

import asyncio
import threading
import time
from queue import Empty, Queue
from typing import Callable

from ..metrics.metrics import MetricsCollector
from ..plugins.sinks import RemoteTransport
from . import diagnostics

Clock = Callable[[], float]
DeliveryErrorHandler = Callable[[BaseException], None]

BATCH_SEPARATOR = "\n"


class RemoteWorker:
    """Background worker that deduplicates and delivers remote batches."""

    def __init__(
        self,
        *,
        queue: Queue[str],
        transport: RemoteTransport,
        flush_interval_seconds: float,
        on_delivery_error: DeliveryErrorHandler | None = None,
        metrics: MetricsCollector | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._queue = queue
        self._transport = transport
        self._flush_interval = flush_interval_seconds
        self._on_delivery_error = on_delivery_error
        self._metrics = metrics
        self._clock = clock
        # Insertion-ordered set of distinct lines; owned by the worker loop
        self._pending: dict[str, None] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wake = asyncio.Event()
        self._stop_requested = threading.Event()
        self._drained = threading.Event()
        self._flush_lock = threading.Lock()
        self._flush_requested = threading.Event()
        self._flush_done = threading.Event()
        self._flushed_lines = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def flushed_lines(self) -> int:
        """Distinct lines handed to the transport so far (delivered or not)."""
        return self._flushed_lines

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    @property
    def drained(self) -> bool:
        return self._drained.is_set()

    # Thread-safe control surface -------------------------------------

    def notify(self) -> None:
        """Wake the worker. Safe to call from any thread."""
        loop = self._loop
        if loop is None:
            self._wake.set()
            return
        try:
            loop.call_soon_threadsafe(self._wake.set)
        except RuntimeError:
            # Loop already closed; the worker is gone
            return

    def request_stop(self) -> None:
        self._stop_requested.set()
        self.notify()

    def wait_drained(self, timeout: float | None = None) -> bool:
        return self._drained.wait(timeout)

    def request_flush(self, timeout: float | None = None) -> bool:
        """Ask the worker to flush now and wait for it to finish.

        Returns False if the worker did not complete the flush in time or has
        already stopped.
        """
        if self._drained.is_set():
            return False
        with self._flush_lock:
            self._flush_done.clear()
            self._flush_requested.set()
            self.notify()
            deadline = None if timeout is None else time.monotonic() + timeout
            while not self._flush_done.wait(0.05):
                if self._drained.is_set():
                    # The final flush on stop covers this request
                    return True
                if deadline is not None and time.monotonic() >= deadline:
                    return False
            return True

    # Worker loop ------------------------------------------------------

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        next_flush = self._clock() + self._flush_interval
        try:
            while True:
                if self._stop_requested.is_set():
                    await self._record_received(self._drain_queue())
                    await self.flush()
                    return

                if self._flush_requested.is_set():
                    self._flush_requested.clear()
                    await self._record_received(self._drain_queue())
                    await self.flush()
                    self._flush_done.set()
                    continue

                await self._record_received(self._drain_queue())

                now = self._clock()
                if now >= next_flush:
                    await self.flush()
                    next_flush = now + self._flush_interval
                    continue

                try:
                    await asyncio.wait_for(
                        self._wake.wait(), timeout=next_flush - now
                    )
                    self._wake.clear()
                except asyncio.TimeoutError:
                    pass  # Timer tick; loop to check the deadline
        except asyncio.CancelledError:
            return
        except Exception as exc:  # pragma: no cover - defensive catch
            diagnostics.warn(
                "worker",
                "remote worker error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
        finally:
            self._drained.set()
            self._flush_done.set()

    def _drain_queue(self) -> list[bool]:
        """Move every queued line into the pending set without blocking.

        Returns one duplicate flag per line taken off the queue.
        """
        seen: list[bool] = []
        while True:
            try:
                line = self._queue.get_nowait()
            except Empty:
                break
            duplicate = line in self._pending
            self._pending[line] = None
            seen.append(duplicate)
        return seen

    async def _record_received(self, seen: list[bool]) -> None:
        if self._metrics is None:
            return
        for duplicate in seen:
            await self._metrics.record_line_received(duplicate=duplicate)

    async def flush(self) -> bool:
        """Deliver the pending set as one payload.

        The set is cleared before the attempt, so a failed delivery drops the
        batch. Returns True when there was nothing to send or the transport
        accepted the payload.
        """
        if not self._pending:
            return True
        lines = list(self._pending)
        self._pending.clear()
        self._flushed_lines += len(lines)
        payload = BATCH_SEPARATOR.join(lines)
        try:
            await self._transport.send(payload)
        except Exception as exc:
            if self._metrics is not None:
                await self._metrics.record_delivery_failure()
            self._report_delivery_error(exc)
            return False
        if self._metrics is not None:
            await self._metrics.record_batch_delivered(lines=len(lines))
        return True

    def _report_delivery_error(self, exc: BaseException) -> None:
        if self._on_delivery_error is None:
            diagnostics.warn(
                "worker",
                "remote delivery failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return
        try:
            self._on_delivery_error(exc)
        except Exception:
            diagnostics.warn("worker", "delivery error handler failed")
