"""Error types raised by relaylog.

Only setup-time misuse and the remote transport raise; the severity
functions never propagate these to callers.
"""

from __future__ import annotations


class RelaylogError(Exception):
    """Base class for relaylog errors."""


class DeliveryError(RelaylogError):
    """A batch could not be delivered to the remote endpoint."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body


class RemoteAlreadyConfiguredError(RelaylogError, RuntimeError):
    """Remote delivery was already enabled for this logger."""
