"""Line-addressable text buffers: the write path for checkbox toggles.

A buffer is the canonical copy of one document. Edits are single-line
replacements that keep the replaced line's terminator (LF or CRLF), so a
toggle applied from any view mutates the document itself rather than
whichever editor happens to be focused.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from checktree.parse import Line, join_lines, split_lines

log = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class EditRejected(Exception):
    """Raised when a buffer refuses a line replacement (closed, vanished, stale)."""


class TextBuffer(ABC):
    """Base class for line-addressable documents."""

    @abstractmethod
    def text(self) -> str:
        """Return the full document text, terminators included."""

    @abstractmethod
    def replace_line(self, index: int, new_text: str) -> None:
        """Replace line *index* with *new_text* as one atomic edit.

        *new_text* must not contain a terminator; the existing one is kept.
        Raises :class:`EditRejected` if the edit cannot be applied.
        """

    def lines(self) -> list[Line]:
        return split_lines(self.text())

    def line_count(self) -> int:
        return len(self.lines())

    def line_at(self, index: int) -> str:
        """Return line *index* without its terminator. Raises IndexError."""
        lines = self.lines()
        if index < 0 or index >= len(lines):
            raise IndexError(index)
        return lines[index].text


def _replace(lines: list[Line], index: int, new_text: str) -> str:
    if index < 0 or index >= len(lines):
        raise EditRejected(f"line {index} out of range (0..{len(lines) - 1})")
    if "\n" in new_text or "\r" in new_text:
        raise EditRejected("replacement text must be a single line")
    old = lines[index]
    lines[index] = Line(old.index, new_text, old.ending)
    return join_lines(lines)


class MemoryBuffer(TextBuffer):
    """In-memory buffer that reports every change to *on_change*.

    Parameters
    ----------
    text:
        Initial document text.
    on_change:
        Called with the full new text after each applied edit.
    """

    def __init__(self, text: str = "", on_change: ChangeCallback | None = None) -> None:
        self._text = text
        self._on_change = on_change
        self._closed = False

    def text(self) -> str:
        return self._text

    def set_on_change(self, callback: ChangeCallback | None) -> None:
        self._on_change = callback

    def set_text(self, text: str) -> None:
        """Replace the whole document, as an external edit would."""
        if self._closed:
            raise EditRejected("buffer is closed")
        self._text = text
        self._notify()

    def replace_line(self, index: int, new_text: str) -> None:
        if self._closed:
            raise EditRejected("buffer is closed")
        self._text = _replace(split_lines(self._text), index, new_text)
        self._notify()

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._text)


class FileBuffer(TextBuffer):
    """Buffer backed by a file on disk.

    The file is re-read for every operation, so the disk copy is always the
    canonical document. Files are read and written with ``newline=""`` to
    keep CRLF terminators intact.
    """

    def __init__(self, path: Path, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self._encoding = encoding

    def text(self) -> str:
        with open(self.path, encoding=self._encoding, newline="") as f:
            return f.read()

    def replace_line(self, index: int, new_text: str) -> None:
        try:
            current = self.text()
        except OSError as exc:
            raise EditRejected(f"cannot read {self.path}: {exc}") from exc

        updated = _replace(split_lines(current), index, new_text)
        try:
            with open(self.path, "w", encoding=self._encoding, newline="") as f:
                f.write(updated)
        except OSError as exc:
            raise EditRejected(f"cannot write {self.path}: {exc}") from exc
        log.debug("Wrote line %d of %s", index, self.path)
