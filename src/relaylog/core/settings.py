"""
Configuration models for relaylog using Pydantic v2 Settings.

Values come from keyword arguments or from ``RELAYLOG_*`` environment
variables, with ``__`` separating nested groups (for example
``RELAYLOG_REMOTE__FLUSH_INTERVAL_SECONDS=2``). The remote endpoint is also
read from the legacy ``LOGGER_REMOTE_SERVER`` variable.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)


class CoreSettings(BaseModel):
    """Logger-wide behaviour."""

    debug: bool = Field(
        default=False,
        description="Start with the DEBUG threshold instead of INFO",
    )
    fatal_exit_code: int = Field(
        default=1,
        ge=1,
        description="Process exit status used after a fatal log call",
    )
    internal_logging_enabled: bool = Field(
        default=False,
        description="Emit JSON diagnostics to stderr for contained internal errors",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Export Prometheus counters for the remote pipeline",
    )
    atexit_drain_enabled: bool = Field(
        default=True,
        description="Flush the pending remote batch on normal interpreter exit",
    )


class RemoteSettings(BaseModel):
    """Remote batch delivery tuning."""

    queue_capacity: int = Field(
        default=20,
        ge=1,
        description="Lines that may wait for the worker before push() blocks",
    )
    flush_interval_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Period of the batch flush timer",
    )
    request_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Timeout for a single delivery request",
    )
    shutdown_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Maximum wait for the final flush on fatal or exit",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra HTTP headers sent with each batch",
    )


class Settings(BaseSettings):
    """Top-level configuration model."""

    remote_server: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "RELAYLOG_REMOTE_SERVER",
            "LOGGER_REMOTE_SERVER",
        ),
        description="Endpoint receiving error/fatal batches; unset disables remote delivery",
    )
    core: CoreSettings = Field(default_factory=CoreSettings)
    remote: RemoteSettings = Field(default_factory=RemoteSettings)

    model_config = SettingsConfigDict(
        env_prefix="RELAYLOG_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("remote_server", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = str(value).strip()
        return value or None
