"""Cancellable timers for the debounce lanes.

The coordinator never sleeps or spawns threads; it asks a scheduler for a
callback after a delay and cancels the handle when a newer event supersedes
it. :class:`AsyncioScheduler` runs everything on one asyncio event loop.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Base class for timer sources used by the sync coordinator."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        """Run *callback* once after *delay* seconds unless cancelled."""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop.

    Parameters
    ----------
    loop:
        Event loop to schedule on. Defaults to the running loop, looked up
        on first use.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def call_soon_threadsafe(self, callback: Callable[..., Any], *args: Any) -> None:
        """Hand a callback from another thread (e.g. watchdog) to the loop."""
        self.loop.call_soon_threadsafe(callback, *args)
