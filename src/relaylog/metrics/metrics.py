"""
Metrics for the remote delivery pipeline.

Counters are always tracked in memory so tests can assert on them; when
enabled they are also exported through an isolated Prometheus registry.
Only the remote worker records, so the async lock is only ever awaited on
the worker's event loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from prometheus_client import CollectorRegistry, Counter


@dataclass
class PipelineMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    lines_received: int = 0
    duplicates_collapsed: int = 0
    batches_delivered: int = 0
    lines_delivered: int = 0
    delivery_failures: int = 0


class MetricsCollector:
    """Logger-scoped metrics collector.

    Disabled collectors keep the in-memory counters and skip exporting.
    """

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = PipelineMetrics()

        self._c_received: Any | None = None
        self._c_duplicates: Any | None = None
        self._c_batches: Any | None = None
        self._c_lines: Any | None = None
        self._c_failures: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry avoids duplicate registration across loggers
            self._registry = CollectorRegistry()
            self._c_received = Counter(
                "relaylog_remote_lines_received_total",
                "Lines taken off the remote queue by the worker",
                registry=self._registry,
            )
            self._c_duplicates = Counter(
                "relaylog_remote_duplicates_collapsed_total",
                "Lines dropped because an identical line was already pending",
                registry=self._registry,
            )
            self._c_batches = Counter(
                "relaylog_remote_batches_delivered_total",
                "Batches accepted by the remote endpoint",
                registry=self._registry,
            )
            self._c_lines = Counter(
                "relaylog_remote_lines_delivered_total",
                "Distinct lines accepted by the remote endpoint",
                registry=self._registry,
            )
            self._c_failures = Counter(
                "relaylog_remote_delivery_failures_total",
                "Batches dropped after a failed delivery",
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    async def record_line_received(self, *, duplicate: bool) -> None:
        async with self._lock:
            self._state.lines_received += 1
            if duplicate:
                self._state.duplicates_collapsed += 1
        if not self._enabled:
            return
        if self._c_received is not None:
            self._c_received.inc()
        if duplicate and self._c_duplicates is not None:
            self._c_duplicates.inc()

    async def record_batch_delivered(self, *, lines: int) -> None:
        async with self._lock:
            self._state.batches_delivered += 1
            self._state.lines_delivered += lines
        if not self._enabled:
            return
        if self._c_batches is not None:
            self._c_batches.inc()
        if self._c_lines is not None:
            self._c_lines.inc(lines)

    async def record_delivery_failure(self) -> None:
        async with self._lock:
            self._state.delivery_failures += 1
        if not self._enabled:
            return
        if self._c_failures is not None:
            self._c_failures.inc()

    async def snapshot(self) -> PipelineMetrics:
        async with self._lock:
            return PipelineMetrics(
                lines_received=self._state.lines_received,
                duplicates_collapsed=self._state.duplicates_collapsed,
                batches_delivered=self._state.batches_delivered,
                lines_delivered=self._state.lines_delivered,
                delivery_failures=self._state.delivery_failures,
            )
