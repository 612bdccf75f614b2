"""
Testing utilities for relaylog.

Fakes for the collaborators a ``Logger`` is wired with: a scripted remote
transport, a manual clock, an exit recorder and in-memory console streams.
Pytest fixtures live in ``relaylog.testing.fixtures`` and are enabled with
``pytest_plugins = ("relaylog.testing.fixtures",)``.

Example:
    from relaylog import Logger
    from relaylog.testing import ExitRecorder, RecordingTransport, StreamPair

    transport = RecordingTransport()
    logger = Logger(
        sink=StreamPair().sink(),
        transport_factory=lambda url: transport,
        exit_func=ExitRecorder(),
    )
"""

from .mocks import ExitRecorder, FakeClock, RecordingTransport, StreamPair

__all__ = [
    "ExitRecorder",
    "FakeClock",
    "RecordingTransport",
    "StreamPair",
]
