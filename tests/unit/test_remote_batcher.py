from __future__ import annotations

import threading

import pytest

from relaylog.core.batcher import RemoteBatcher, RemoteState
from relaylog.testing import RecordingTransport

pytestmark = pytest.mark.critical


def _batcher(
    transport: RecordingTransport, *, capacity: int = 20, interval: float = 60.0
) -> RemoteBatcher:
    return RemoteBatcher(
        transport, queue_capacity=capacity, flush_interval_seconds=interval
    )


def test_rejects_invalid_sizes() -> None:
    with pytest.raises(ValueError, match="queue_capacity"):
        RemoteBatcher(RecordingTransport(), queue_capacity=0)
    with pytest.raises(ValueError, match="flush_interval_seconds"):
        RemoteBatcher(RecordingTransport(), flush_interval_seconds=0)


def test_push_blocks_when_queue_full_until_worker_consumes() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport, capacity=3)
    for i in range(3):
        assert batcher.push(f"line-{i}") is True
    done = threading.Event()

    def _overflow() -> None:
        batcher.push("overflow")
        done.set()

    threading.Thread(target=_overflow, daemon=True).start()

    assert not done.wait(0.3)
    assert batcher.queued == 3

    batcher.start()
    assert done.wait(2.0)
    result = batcher.shutdown(timeout=2.0)

    assert result.drained is True
    assert sorted(transport.lines) == ["line-0", "line-1", "line-2", "overflow"]


def test_blocked_push_gives_up_after_shutdown() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport, capacity=1)
    assert batcher.push("first")
    outcome: list[bool] = []

    def _blocked() -> None:
        outcome.append(batcher.push("second"))

    t = threading.Thread(target=_blocked, daemon=True)
    t.start()
    t.join(0.2)
    assert t.is_alive()

    batcher.shutdown(timeout=2.0)
    t.join(2.0)

    assert not t.is_alive()
    assert "first" in transport.lines


def test_flush_now_delivers_deduplicated_batch() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport)
    batcher.start()

    for line in ["a", "a", "b"]:
        batcher.push(line)
    assert batcher.flush_now(timeout=2.0) is True

    assert transport.payloads == ["a\nb"]
    batcher.shutdown(timeout=2.0)
    assert transport.payloads == ["a\nb"]


def test_flush_now_before_start_returns_false() -> None:
    batcher = _batcher(RecordingTransport())

    assert batcher.flush_now(timeout=0.1) is False


def test_shutdown_before_start_still_flushes_queued_lines() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport)
    batcher.push("queued early")

    result = batcher.shutdown(timeout=2.0)

    assert result.drained is True
    assert result.flushed_lines == 1
    assert transport.payloads == ["queued early"]


def test_shutdown_is_idempotent_and_push_becomes_noop() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport)
    batcher.start()
    batcher.push("x")

    first = batcher.shutdown(timeout=2.0)
    second = batcher.shutdown(timeout=2.0)

    assert first.drained and second.drained
    assert batcher.push("late") is False
    assert transport.payloads == ["x"]


def test_state_transitions_and_transport_lifecycle() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport)
    assert batcher.state is RemoteState.RUNNING

    batcher.start()
    batcher.shutdown(timeout=2.0)
    batcher.join(2.0)

    assert batcher.state is RemoteState.STOPPED
    assert transport.started is True
    assert transport.stopped is True


def test_concurrent_shutdown_callers_share_drain() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport)
    batcher.start()
    batcher.push("fatal line")
    results: list[bool] = []

    def _shutdown() -> None:
        results.append(batcher.shutdown(timeout=2.0).drained)

    threads = [threading.Thread(target=_shutdown) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(3.0)

    assert results == [True, True, True]
    assert transport.payloads == ["fatal line"]


def test_many_producers_single_delivery_per_distinct_line() -> None:
    transport = RecordingTransport()
    batcher = _batcher(transport, capacity=4)
    batcher.start()

    def _produce(n: int) -> None:
        for i in range(50):
            batcher.push(f"line-{i % 10}")

    threads = [threading.Thread(target=_produce, args=(n,)) for n in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5.0)
    batcher.shutdown(timeout=2.0)

    assert sorted(transport.lines) == sorted(f"line-{i}" for i in range(10))
