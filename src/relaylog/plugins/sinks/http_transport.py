"""
HTTP delivery for remote batches using ``httpx.AsyncClient``.

One batch is one ``POST`` with a ``text/plain`` body. Any transport error or
a status of 400 and above is raised as ``DeliveryError``; the caller decides
what to do with the batch. There is no retry.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...core import diagnostics
from ...core.errors import DeliveryError

__all__ = ["HttpTransport", "HttpTransportConfig"]

_BODY_SNIPPET_CHARS = 256


class HttpTransportConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    endpoint: str
    timeout_seconds: float = Field(default=5.0, gt=0.0)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("endpoint")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        value = value.strip()
        parts = urlsplit(value)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ValueError(f"endpoint must be an http(s) URL, got {value!r}")
        return value

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: Mapping[str, str] | None) -> dict[str, str]:
        if value is None:
            return {}
        return dict(value)


class HttpTransport:
    """POSTs newline-joined log lines to the configured endpoint."""

    name = "http"

    def __init__(
        self,
        config: HttpTransportConfig | dict[str, Any],
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not isinstance(config, HttpTransportConfig):
            config = HttpTransportConfig(**config)
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    async def start(self) -> None:
        if self._client is not None:
            return
        headers = {"Content-Type": "text/plain; charset=utf-8"}
        headers.update(self._config.headers)
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout_seconds,
            headers=headers,
            transport=self._transport,
        )

    async def stop(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.aclose()
        except Exception as exc:
            diagnostics.warn(
                "http-transport",
                "client close failed",
                endpoint=self._config.endpoint,
                error=str(exc),
            )

    async def send(self, payload: str) -> None:
        if self._client is None:
            await self.start()
        assert self._client is not None
        try:
            resp = await self._client.post(
                self._config.endpoint, content=payload.encode("utf-8")
            )
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
            raise DeliveryError(
                f"{type(exc).__name__}: {reason}",
                endpoint=self._config.endpoint,
            ) from exc
        if resp.status_code >= 400:
            snippet = None
            try:
                snippet = resp.text[:_BODY_SNIPPET_CHARS]
            except Exception:
                snippet = None
            raise DeliveryError(
                f"remote server answered HTTP {resp.status_code}",
                endpoint=self._config.endpoint,
                status_code=resp.status_code,
                body=snippet,
            )
