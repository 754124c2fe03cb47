"""Events emitted to views, and the origin tags attached to buffer changes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from checktree.scan import CheckboxState
from checktree.tree import Completion, Forest


# ------------------------------------------------------------------
# Change origins
# ------------------------------------------------------------------


@dataclass(frozen=True)
class LocalToggle:
    """A change produced by a toggle this coordinator applied itself."""

    expected_line: int
    expected_prior_state: bool


@dataclass(frozen=True)
class ExternalEdit:
    """Any change not attributable to a tracked toggle."""


ChangeOrigin = Union[LocalToggle, ExternalEdit]


# ------------------------------------------------------------------
# View events
# ------------------------------------------------------------------


@dataclass(frozen=True)
class SyncEvent:
    doc_id: str

    kind: ClassVar[str] = "event"

    def payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "doc_id": self.doc_id, **self.payload()}


@dataclass(frozen=True)
class FullRerender(SyncEvent):
    """Freshly rendered preview content; views replace what they show."""

    content: str = ""
    line_map: dict[int, str] | None = None

    kind: ClassVar[str] = "full_rerender"

    def payload(self) -> dict[str, Any]:
        return {"content": self.content, "line_map": dict(self.line_map or {})}


@dataclass(frozen=True)
class TargetedStateSync(SyncEvent):
    """Checked state of every checkbox line; no re-render needed."""

    states: tuple[CheckboxState, ...] = ()

    kind: ClassVar[str] = "targeted_state_sync"

    def payload(self) -> dict[str, Any]:
        return {"states": [s.to_dict() for s in self.states]}


@dataclass(frozen=True)
class ProgressUpdate(SyncEvent):
    completed: int = 0
    total: int = 0

    kind: ClassVar[str] = "progress"

    @property
    def percent(self) -> int:
        return Completion(self.completed, self.total).percent

    @property
    def label(self) -> str:
        return f"{self.completed}/{self.total} tasks ({self.percent}%)"

    def payload(self) -> dict[str, Any]:
        return {
            "completed": self.completed,
            "total": self.total,
            "percent": self.percent,
            "label": self.label,
        }


@dataclass(frozen=True)
class ScrollEcho(SyncEvent):
    line: int = 0

    kind: ClassVar[str] = "scroll"

    def payload(self) -> dict[str, Any]:
        return {"line": self.line}


@dataclass(frozen=True)
class RevealLine(SyncEvent):
    """Ask the editor surface to select and reveal a source line."""

    line: int = 0

    kind: ClassVar[str] = "reveal"

    def payload(self) -> dict[str, Any]:
        return {"line": self.line}


@dataclass(frozen=True)
class TreeRebuilt(SyncEvent):
    forest: Forest | None = None

    kind: ClassVar[str] = "tree_rebuilt"

    def payload(self) -> dict[str, Any]:
        return {"forest": self.forest.to_dict() if self.forest else []}
