"""Severity levels and the process-wide threshold filter.

Levels are ordered by verbosity: FATAL is the smallest value and DEBUG the
largest. A call at level ``L`` is processed when the configured threshold is
at least ``L``:

    >>> should_emit(Severity.INFO, Severity.ERROR)
    True
    >>> should_emit(Severity.INFO, Severity.DEBUG)
    False
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class Severity(IntEnum):
    FATAL = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4

    @property
    def label(self) -> str:
        """Name rendered in the ``[LEVEL]`` part of a log line."""
        return self.name


DEFAULT_THRESHOLD: Final[Severity] = Severity.INFO
DEBUG_THRESHOLD: Final[Severity] = Severity.DEBUG

# Levels written to stderr; the rest go to stdout
STDERR_LEVELS: Final[frozenset[Severity]] = frozenset(
    {Severity.WARN, Severity.ERROR, Severity.FATAL}
)


def should_emit(threshold: Severity, level: Severity) -> bool:
    """Return True when a call at ``level`` passes ``threshold``."""
    return int(threshold) >= int(level)

