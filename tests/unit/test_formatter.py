from __future__ import annotations

import re
from datetime import datetime

import pytest

from relaylog.core.formatter import (
    format_message,
    interpolate,
    render_line,
)
from relaylog.core.levels import Severity

_PREFIX = re.compile(r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\] ")


def _fixed() -> datetime:
    return datetime(2024, 3, 9, 14, 5, 7, 999_000)


def test_format_message_interpolates_and_terminates() -> None:
    out = format_message(Severity.INFO, "x=%d", (5,))

    assert out.endswith("[INFO] x=5\n")
    assert _PREFIX.match(out)


def test_render_line_has_no_terminator() -> None:
    line = render_line(Severity.ERROR, "disk %s full", ("/var",), now=_fixed)

    assert line == "[2024-03-09T14:05:07] [ERROR] disk /var full"


def test_timestamp_is_second_precision_without_timezone() -> None:
    line = render_line(Severity.WARN, "slow", now=_fixed)

    assert line.startswith("[2024-03-09T14:05:07] [WARN] ")
    assert "+" not in line.split("]")[0]


def test_template_without_args_is_written_verbatim() -> None:
    # Same rule as stdlib logging: no args means no interpolation, so a
    # dangling placeholder is printed as-is rather than flagged.
    assert interpolate("100% done", ()) == "100% done"
    assert interpolate("x=%d", ()) == "x=%d"


def test_missing_argument_renders_inline() -> None:
    out = format_message(Severity.INFO, "a=%d b=%d", (1,))

    assert out.endswith("\n")
    assert "a=%d b=%d" in out
    assert "BADFORMAT" in out
    assert "args=[1]" in out


def test_extra_argument_renders_inline() -> None:
    text = interpolate("only %s", ("one", "two"))

    assert text.startswith("only %s %!(BADFORMAT TypeError")
    assert "'one', 'two'" in text


def test_wrong_argument_type_renders_inline() -> None:
    text = interpolate("count=%d", ("many",))

    assert "BADFORMAT" in text
    assert "'many'" in text


def test_mapping_argument_supports_named_placeholders() -> None:
    assert interpolate("user=%(user)s", ({"user": "ada"},)) == "user=ada"


def test_unrepresentable_argument_does_not_raise() -> None:
    class Weird:
        def __repr__(self) -> str:
            raise RuntimeError("no repr")

    text = interpolate("%d %d", (Weird(),))

    assert "<unrepresentable Weird>" in text


@pytest.mark.parametrize("level", list(Severity))
def test_every_level_renders_its_label(level: Severity) -> None:
    assert f"] [{level.label}] msg" in render_line(level, "msg", now=_fixed)
