"""Checkbox/header scanner.

Turns classified lines into unattached :class:`~checktree.tree.Node`
candidates with a resolved nesting key, ready for
:func:`checktree.tree.build_forest`.
"""

from __future__ import annotations

from dataclasses import dataclass

from checktree.parse import ClassifiedLine, classify_lines
from checktree.tree import CHECKBOX_BASE_LEVEL, Node


@dataclass(frozen=True)
class CheckboxState:
    """Checked state of one checkbox line."""

    line: int
    checked: bool

    def to_dict(self) -> dict:
        return {"line": self.line, "checked": self.checked}


@dataclass(frozen=True)
class ToggleAction:
    """A per-line toggle affordance shown next to a checkbox."""

    line: int
    checked: bool

    @property
    def title(self) -> str:
        return "Uncheck" if self.checked else "Check"


def nesting_key(classified: ClassifiedLine) -> int:
    """Return the nesting key for a header or checkbox line.

    Headers use their level (1-6). Checkboxes use ``6 + indent // 2`` so
    they always sort below every header. Tabs count as one character.
    """
    if classified.is_header:
        return classified.header_level  # type: ignore[return-value]
    return CHECKBOX_BASE_LEVEL + (classified.indent or 0) // 2


def scan_nodes(text: str) -> list[Node]:
    """Scan *text* for headers and checkboxes in document order."""
    nodes: list[Node] = []
    for classified in classify_lines(text):
        if classified.is_header:
            nodes.append(Node(
                label=classified.content or "",
                line=classified.line_index,
                checked=False,
                level=nesting_key(classified),
                is_header=True,
            ))
        elif classified.is_checkbox:
            nodes.append(Node(
                label=classified.content or "",
                line=classified.line_index,
                checked=bool(classified.checked),
                level=nesting_key(classified),
            ))
    return nodes


def checkbox_states(text: str) -> list[CheckboxState]:
    """Return the state of every real checkbox line (fenced lines excluded)."""
    return [
        CheckboxState(c.line_index, bool(c.checked))
        for c in classify_lines(text)
        if c.is_checkbox
    ]


def toggle_actions(text: str) -> list[ToggleAction]:
    """One toggle action per checkbox line, titled for the state it flips to."""
    return [ToggleAction(s.line, s.checked) for s in checkbox_states(text)]
