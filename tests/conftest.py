"""Shared fixtures: a manual-clock scheduler and an event recorder."""

from __future__ import annotations

from typing import Callable

import pytest

from checktree.sync.events import SyncEvent
from checktree.sync.scheduler import Scheduler


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Deterministic scheduler: time only moves when a test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.now = timer.when
            timer.fired = True
            timer.callback()
        self.now = target


class Recorder:
    """Collects events delivered to a view."""

    def __init__(self) -> None:
        self.events: list[SyncEvent] = []

    def __call__(self, event: SyncEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind for e in self.events]

    def of(self, kind: str) -> list[SyncEvent]:
        return [e for e in self.events if e.kind == kind]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


SAMPLE_DOC = """\
# Project

Some intro text with [brackets] that are not tasks.

## Backend
- [ ] API
  - [x] Routes
  - [ ] Auth
- [X] Database

## Frontend
1. [ ] Layout
2. [x] Styles

```mermaid
graph TD
  A[Node] --> B[Other]
- [ ] not a task
```
"""


@pytest.fixture()
def sample_doc() -> str:
    return SAMPLE_DOC
