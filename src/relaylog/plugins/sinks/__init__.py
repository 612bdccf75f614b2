from __future__ import annotations

from typing import Protocol, runtime_checkable

from ...core.levels import Severity


@runtime_checkable
class BaseSink(Protocol):
    """Local sink interface.

    Sinks receive every line that passes the threshold, synchronously and in
    the calling thread. Implementations must contain their own errors; a
    failed write is never surfaced to the caller.
    """

    def write(self, level: Severity, line: str) -> None:  # noqa: D401
        """Write one unterminated log line."""
        ...


@runtime_checkable
class RemoteTransport(Protocol):
    """Delivers one batch payload to the remote endpoint.

    ``send`` raises ``DeliveryError`` on failure. ``start`` and ``stop`` run
    on the remote worker's event loop.
    """

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def send(self, payload: str) -> None: ...


__all__ = ["BaseSink", "RemoteTransport"]
