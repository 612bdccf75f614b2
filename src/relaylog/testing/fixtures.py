"""Pytest fixtures for relaylog tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from ..core.logger import Logger
from ..core.settings import Settings
from .mocks import ExitRecorder, FakeClock, RecordingTransport, StreamPair


@pytest.fixture
def streams() -> StreamPair:
    return StreamPair()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    return ExitRecorder()


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def make_logger(
    streams: StreamPair,
    exit_recorder: ExitRecorder,
) -> Generator[Callable[..., Logger], None, None]:
    """Factory building loggers wired to fakes; closes them after the test.

    Keyword arguments override ``Settings`` fields; ``transport`` installs a
    transport returned for any URL and ``clock`` replaces the monotonic clock.
    """
    created: list[Logger] = []

    def _make(
        *,
        transport: RecordingTransport | None = None,
        clock: Callable[[], float] | None = None,
        **settings: Any,
    ) -> Logger:
        logger = Logger(
            Settings(**settings),
            sink=streams.sink(),
            transport_factory=(lambda url: transport) if transport else None,
            exit_func=exit_recorder,
            clock=clock,
        )
        created.append(logger)
        return logger

    yield _make
    for logger in created:
        logger.close(timeout=2.0)
