"""Single-line checkbox toggling.

Flips exactly one checkbox token on one line (``[ ]`` → ``[x]``,
``[x]``/``[X]`` → ``[ ]``) and applies it as one line replacement. Every
other character on the line is kept verbatim.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from checktree.buffer import EditRejected, TextBuffer
from checktree.parse import Line, is_fence, match_checkbox

log = logging.getLogger(__name__)


class ToggleOutcome(enum.Enum):
    TOGGLED = "toggled"
    NO_CHECKBOX = "no_checkbox"
    OUT_OF_RANGE = "out_of_range"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ToggleResult:
    """What happened to a toggle request."""

    outcome: ToggleOutcome
    line: int
    before: str | None = None
    after: str | None = None
    checked: bool | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ToggleOutcome.TOGGLED

    def __bool__(self) -> bool:
        return self.ok


def toggle_text(text: str) -> str | None:
    """Return *text* with its checkbox flipped, or None if it has no checkbox.

    *text* is a single line without its terminator.
    """
    m = match_checkbox(text)
    if not m:
        return None
    start, end = m.span(2)
    mark = " " if m.group(2) in "xX" else "x"
    return text[:start] + mark + text[end:]


def is_checked(text: str) -> bool | None:
    """Checked state of a checkbox line, or None if it is not one."""
    m = match_checkbox(text)
    if not m:
        return None
    return m.group(2) in "xX"


def _in_fence(lines: list[Line], line_index: int) -> bool:
    """True if *line_index* is a fence line or lies inside a fenced block."""
    in_fence = False
    for line in lines[:line_index]:
        if is_fence(line.text):
            in_fence = not in_fence
    return in_fence or is_fence(lines[line_index].text)


def toggle_line(buffer: TextBuffer, line_index: int) -> ToggleResult:
    """Toggle the checkbox on *line_index* of *buffer*.

    Returns a :class:`ToggleResult`; never raises for expected failures.
    A rejected edit is logged and reported, not retried. Checkbox
    lookalikes inside fenced code blocks are not checkboxes and report
    ``NO_CHECKBOX``.
    """
    try:
        lines = buffer.lines()
    except OSError as exc:
        log.warning("Cannot read buffer for toggle at line %d: %s", line_index, exc)
        return ToggleResult(ToggleOutcome.REJECTED, line_index, error=str(exc))

    if line_index < 0 or line_index >= len(lines):
        log.debug("Toggle line %d out of range (%d lines)", line_index, len(lines))
        return ToggleResult(ToggleOutcome.OUT_OF_RANGE, line_index)
    before = lines[line_index].text

    after = toggle_text(before)
    if after is not None and _in_fence(lines, line_index):
        log.debug("Line %d is inside a fenced block, not toggled", line_index)
        after = None
    if after is None:
        log.debug("No checkbox on line %d: %r", line_index, before)
        return ToggleResult(ToggleOutcome.NO_CHECKBOX, line_index, before=before)

    try:
        buffer.replace_line(line_index, after)
    except EditRejected as exc:
        log.warning("Toggle at line %d rejected: %s", line_index, exc)
        return ToggleResult(
            ToggleOutcome.REJECTED, line_index, before=before, error=str(exc),
        )

    return ToggleResult(
        ToggleOutcome.TOGGLED,
        line_index,
        before=before,
        after=after,
        checked=is_checked(after),
    )
