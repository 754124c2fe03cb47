"""Line model and line classification for markdown checklists.

Foundation module used by the scanner, the toggle engine and the preview
renderer. Every line of a document is classified as a header, a checkbox
or plain text. Lines inside fenced code blocks are always plain, so diagram
syntax such as ``A[Node]`` or a quoted ``- [ ] example`` never registers as
a checkbox.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

log = logging.getLogger(__name__)


# Opening/closing fence: three or more backticks, optional language tag
FENCE_RE = re.compile(r'^\s*`{3,}(.*)$')

# Applied to the stripped line: "## Heading text"
HEADER_RE = re.compile(r'^(#{1,6})\s+(.+)$')

# "- [ ] task", "  * [x] task", "3. [X] task". Exactly one character
# between the brackets; "[]", "[ x]", "[x ]" and "[xx]" do not match.
CHECKBOX_RE = re.compile(r'^(\s*)(?:[-*+]|\d+\.)\s+\[( |x|X)\]\s*(.*)$')

_LINE_RE = re.compile(r'([^\r\n]*)(\r\n|\n|\r(?!\n)|$)')


class LineKind(enum.Enum):
    HEADER = "header"
    CHECKBOX = "checkbox"
    PLAIN = "plain"


@dataclass(frozen=True)
class Line:
    """One line of a buffer. ``text`` never includes the terminator."""

    index: int
    text: str
    ending: str = ""


@dataclass(frozen=True)
class ClassifiedLine:
    """A line tagged with its checklist role and extracted fields."""

    line_index: int
    kind: LineKind
    header_level: int | None = None
    checked: bool | None = None
    content: str | None = None
    indent: int | None = None

    @property
    def is_header(self) -> bool:
        return self.kind is LineKind.HEADER

    @property
    def is_checkbox(self) -> bool:
        return self.kind is LineKind.CHECKBOX


def split_lines(text: str) -> list[Line]:
    """Split *text* into :class:`Line` records, keeping each terminator.

    Accepts LF and CRLF (and a lone CR). A trailing terminator does not
    produce an extra empty line, matching how editors count lines.
    """
    lines: list[Line] = []
    if not text:
        return lines
    pos = 0
    end = len(text)
    while pos < end:
        m = _LINE_RE.match(text, pos)
        body, ending = m.group(1), m.group(2)
        lines.append(Line(len(lines), body, ending))
        pos = m.end()
    return lines


def join_lines(lines: list[Line]) -> str:
    """Inverse of :func:`split_lines`."""
    return "".join(line.text + line.ending for line in lines)


def is_fence(text: str) -> bool:
    """Check if a line opens or closes a fenced code block."""
    return bool(FENCE_RE.match(text))


def match_checkbox(text: str) -> re.Match[str] | None:
    """Match a single line (without terminator) against the checkbox pattern."""
    return CHECKBOX_RE.match(text)


def classify_line(index: int, text: str) -> ClassifiedLine:
    """Classify one line, ignoring fence state.

    Callers that process whole documents should use :func:`classify_lines`
    so fenced regions are suppressed.
    """
    m = HEADER_RE.match(text.strip())
    if m:
        return ClassifiedLine(
            line_index=index,
            kind=LineKind.HEADER,
            header_level=len(m.group(1)),
            content=m.group(2),
        )

    m = CHECKBOX_RE.match(text)
    if m:
        return ClassifiedLine(
            line_index=index,
            kind=LineKind.CHECKBOX,
            checked=m.group(2) in "xX",
            content=m.group(3),
            indent=len(m.group(1)),
        )

    if "[" in text and "]" in text and text.strip():
        log.debug("Line %d has brackets but no checkbox: %r", index + 1, text.strip())
    return ClassifiedLine(line_index=index, kind=LineKind.PLAIN)


def classify_lines(text: str) -> list[ClassifiedLine]:
    """Classify every line of *text* in a single pass.

    Returns one :class:`ClassifiedLine` per line, in document order. Never
    raises: anything unrecognised is ``PLAIN``.
    """
    result: list[ClassifiedLine] = []
    in_fence = False

    for line in split_lines(text):
        if is_fence(line.text):
            in_fence = not in_fence
            log.debug(
                "%s fenced block at line %d",
                "Entering" if in_fence else "Exiting", line.index + 1,
            )
            result.append(ClassifiedLine(line_index=line.index, kind=LineKind.PLAIN))
            continue

        if in_fence:
            result.append(ClassifiedLine(line_index=line.index, kind=LineKind.PLAIN))
            continue

        result.append(classify_line(line.index, line.text))

    return result
