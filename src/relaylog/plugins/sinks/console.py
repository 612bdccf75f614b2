from __future__ import annotations

import sys
import threading
from typing import TextIO

from ...core import diagnostics
from ...core.formatter import LINE_TERMINATOR
from ...core.levels import STDERR_LEVELS, Severity


class ConsoleSink:
    """Writes log lines to stdout (DEBUG, INFO) or stderr (WARN and above).

    - Line plus terminator is written under a lock so concurrent callers
      never interleave within a line
    - Streams default to the live ``sys.stdout``/``sys.stderr`` at write time
    - Never raises upstream; errors are contained
    """

    name = "console"

    def __init__(
        self,
        *,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._lock = threading.Lock()

    def stream_for(self, level: Severity) -> TextIO:
        if level in STDERR_LEVELS:
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout

    def write(self, level: Severity, line: str) -> None:
        try:
            stream = self.stream_for(level)
            with self._lock:
                stream.write(line + LINE_TERMINATOR)
                stream.flush()
        except Exception as exc:
            diagnostics.warn(
                "console-sink",
                "write failed",
                level=level.label,
                error=str(exc),
            )
