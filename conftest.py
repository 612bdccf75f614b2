"""
Root pytest configuration.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

# Register relaylog testing fixtures for all tests
pytest_plugins = ("relaylog.testing.fixtures",)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests exercising several components together",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take >1 second",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics_cache() -> Generator[None, None, None]:
    """Reset the diagnostics module cache before each test.

    Diagnostics cache ``internal_logging_enabled`` on first access; resetting
    keeps tests from inheriting each other's setting.
    """
    import relaylog.core.diagnostics as diag

    diag._internal_logging_enabled = None
    yield
    diag._internal_logging_enabled = None


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep ambient remote configuration out of tests and drop the default logger."""
    import relaylog

    monkeypatch.delenv("LOGGER_REMOTE_SERVER", raising=False)
    monkeypatch.delenv("RELAYLOG_REMOTE_SERVER", raising=False)
    relaylog.reset_logger(timeout=2.0)
    yield
    relaylog.reset_logger(timeout=2.0)
