"""Checklist hierarchy: nodes, forest building, flattening and completion.

Headers nest by level (1-6); checkboxes use a synthetic level of
``6 + indent // 2`` so every checkbox sorts below every header when
looking for an ancestor. Headers and checkboxes share one stack of open
ancestors, which lets a checkbox parent a more-indented checkbox while
headers stay ancestors of everything beneath them.

Parent links are indices into the owning :class:`Forest`'s node arena, not
object references; children are owned by their parent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

# Synthetic level of an unindented checkbox
CHECKBOX_BASE_LEVEL = 6


@dataclass(eq=False)
class Node:
    """A header or checkbox in the checklist hierarchy."""

    label: str
    line: int
    checked: bool
    level: int
    is_header: bool = False
    children: list[Node] = field(default_factory=list)
    parent: int | None = None
    index: int = -1

    @property
    def is_checkbox(self) -> bool:
        return not self.is_header

    @property
    def marker(self) -> str:
        if self.is_header:
            return "#" * self.level
        return "✓" if self.checked else "○"

    @property
    def tooltip(self) -> str:
        return f"Line {self.line + 1}: {self.label}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "line": self.line,
            "checked": self.checked,
            "level": self.level,
            "header": self.is_header,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class Forest:
    """Ordered top-level nodes plus the arena every node lives in."""

    roots: list[Node] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)

    def add(self, node: Node, parent: Node | None = None) -> Node:
        """Register *node* in the arena and attach it under *parent* (or the roots)."""
        node.index = len(self.nodes)
        self.nodes.append(node)
        if parent is None:
            node.parent = None
            self.roots.append(node)
        else:
            node.parent = parent.index
            parent.children.append(node)
        return node

    def parent_of(self, node: Node) -> Node | None:
        if node.parent is None:
            return None
        return self.nodes[node.parent]

    def ancestors(self, node: Node) -> Iterator[Node]:
        """Yield ancestors nearest first."""
        parent = self.parent_of(node)
        while parent is not None:
            yield parent
            parent = self.parent_of(parent)

    def walk(self) -> Iterator[Node]:
        """Depth-first traversal in document order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_line(self, line: int) -> Node | None:
        for node in self.nodes:
            if node.line == line:
                return node
        return None

    def to_dict(self) -> list[dict[str, Any]]:
        return [root.to_dict() for root in self.roots]

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass(frozen=True)
class Completion:
    """Checked/total counts over the checkboxes of a forest."""

    completed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        # Round half up
        return (self.completed * 200 + self.total) // (self.total * 2)

    def to_dict(self) -> dict[str, int]:
        return {"completed": self.completed, "total": self.total}


def build_forest(candidates: list[Node]) -> Forest:
    """Build a forest from scanned candidates in document order.

    The candidates are attached in place. A checkbox before any header,
    or one whose indentation matches no open ancestor, becomes a root.
    """
    forest = Forest()
    stack: list[Node] = []

    for node in candidates:
        # Entries as deep or deeper than this node are shadowed by it from here on
        while stack and stack[-1].level >= node.level:
            stack.pop()
        forest.add(node, stack[-1] if stack else None)
        stack.append(node)

    return forest


def flatten_headers(forest: Forest) -> Forest:
    """Return a copy of *forest* without headers.

    Each header's children are spliced into its parent's child list (or the
    roots) where the header stood. The input forest is left untouched.
    """
    flat = Forest()

    def visit(node: Node, parent: Node | None) -> None:
        if node.is_header:
            for child in node.children:
                visit(child, parent)
            return
        copy = Node(node.label, node.line, node.checked, node.level)
        flat.add(copy, parent)
        for child in node.children:
            visit(child, copy)

    for root in forest.roots:
        visit(root, None)
    return flat


def completion(forest: Forest) -> Completion:
    """Count checked and total checkboxes. Headers are never counted."""
    completed = 0
    total = 0

    def count(nodes: list[Node]) -> None:
        nonlocal completed, total
        for node in nodes:
            if node.is_checkbox:
                total += 1
                if node.checked:
                    completed += 1
            count(node.children)

    count(forest.roots)
    return Completion(completed, total)


def build_tree(text: str, show_headers: bool = True) -> Forest:
    """Scan *text* and build its forest, optionally without headers."""
    from checktree.scan import scan_nodes

    forest = build_forest(scan_nodes(text))
    if not show_headers:
        forest = flatten_headers(forest)
    return forest
