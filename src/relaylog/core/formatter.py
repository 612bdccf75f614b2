"""
Line formatting for console output and remote batches.

A log line is ``[<timestamp>] [<LEVEL>] <message>`` where the timestamp is
local time at second precision without a timezone. Interpolation uses the
``%`` operator the same way the stdlib ``logging`` module does: the template
is only interpolated when arguments are given, and a bad template never
raises out of a logging call.
"""

from __future__ import annotations

from datetime import datetime
from collections.abc import Mapping
from typing import Any, Callable

from .levels import Severity

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
LINE_TERMINATOR = "\n"

Now = Callable[[], datetime]


def interpolate(template: str, args: tuple[Any, ...]) -> str:
    """Render ``template % args``, degrading to inline error text on failure."""
    if not args:
        return template
    values: Any = args
    # logging-style named placeholders: info("%(user)s", {"user": "x"})
    if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
        values = args[0]
    try:
        return template % values
    except Exception as exc:  # noqa: BLE001
        rendered = ", ".join(_safe_repr(a) for a in args)
        return f"{template} %!(BADFORMAT {type(exc).__name__}: {exc}; args=[{rendered}])"


def _safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception:  # noqa: BLE001
        return f"<unrepresentable {type(value).__name__}>"


def render_line(
    level: Severity,
    template: str,
    args: tuple[Any, ...] = (),
    *,
    now: Now | None = None,
) -> str:
    """Build a log line without the trailing terminator.

    This is the unit handed to the remote batcher and the key used for
    deduplication.
    """
    stamp = (now or datetime.now)().strftime(TIMESTAMP_FORMAT)
    return f"[{stamp}] [{level.label}] {interpolate(template, args)}"


def format_message(
    level: Severity,
    template: str,
    args: tuple[Any, ...] = (),
    *,
    now: Now | None = None,
) -> str:
    """Build a terminated log line ready for a console stream."""
    return render_line(level, template, args, now=now) + LINE_TERMINATOR
