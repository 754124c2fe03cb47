"""Synchronization coordinator: buffer ↔ preview ↔ tree.

Per open document the coordinator runs a small state machine::

    idle → pending → applying → idle

Every buffer change cancels the pending timer and schedules a new one, so a
burst of edits collapses into one update built from the latest snapshot.
Changes produced by the coordinator's own toggles take a short lane and
only resend checkbox states; anything else takes a longer lane and
re-renders the preview. Scroll echoes have their own lane and never share a
timer with content updates.

All state lives in :class:`SyncState` objects owned by the coordinator and
touched only from scheduler callbacks on one thread.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from checktree.buffer import TextBuffer
from checktree.config import DEFAULTS, sync_timings
from checktree.parse import split_lines
from checktree.render import RenderedPreview, render_preview
from checktree.scan import checkbox_states
from checktree.sync.events import (
    ChangeOrigin,
    ExternalEdit,
    FullRerender,
    LocalToggle,
    ProgressUpdate,
    RevealLine,
    ScrollEcho,
    SyncEvent,
    TargetedStateSync,
    TreeRebuilt,
)
from checktree.sync.scheduler import Cancellable, Scheduler
from checktree.toggle import ToggleOutcome, ToggleResult, is_checked, toggle_line
from checktree.tree import Forest, build_tree, completion

log = logging.getLogger(__name__)

Listener = Callable[[SyncEvent], None]
Renderer = Callable[[str], RenderedPreview]


class SyncPhase(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    APPLYING = "applying"


@dataclass(eq=False)
class SyncState:
    """Everything the coordinator tracks for one open document."""

    doc_id: str
    last_known_text: str = ""
    show_headers: bool = True
    buffer: TextBuffer | None = None
    pending_toggle: LocalToggle | None = None
    needs_full_render: bool = False
    pending_debounce: Cancellable | None = None
    pending_scroll: Cancellable | None = None
    phase: SyncPhase = SyncPhase.IDLE
    views: list[Listener] = field(default_factory=list)
    disposed: bool = False


def classify_change(state: SyncState, text: str) -> ChangeOrigin:
    """Decide whether *text* is the result of the pending local toggle.

    It is only when exactly the expected line changed and that line's
    checkbox now has the opposite of its expected prior state.
    """
    toggle = state.pending_toggle
    if toggle is None:
        return ExternalEdit()

    old = split_lines(state.last_known_text)
    new = split_lines(text)
    if len(old) != len(new):
        return ExternalEdit()

    changed = [
        i for i, (a, b) in enumerate(zip(old, new))
        if a.text != b.text or a.ending != b.ending
    ]
    if changed != [toggle.expected_line]:
        return ExternalEdit()

    now = is_checked(new[toggle.expected_line].text)
    if now is None or now == toggle.expected_prior_state:
        return ExternalEdit()
    return toggle


class SyncCoordinator:
    """Keeps every view of a document consistent with its buffer.

    Parameters
    ----------
    scheduler:
        Timer source for the debounce lanes.
    config:
        Checktree config dict (``sync`` timings, ``tree.show_headers``).
    renderer:
        Produces preview content for full re-renders.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: dict[str, Any] | None = None,
        renderer: Renderer = render_preview,
    ) -> None:
        self._scheduler = scheduler
        self._config = config or DEFAULTS
        self._timings = sync_timings(self._config)
        self._renderer = renderer
        self._states: dict[str, SyncState] = {}

    # ------------------------------------------------------------------
    # View lifecycle
    # ------------------------------------------------------------------

    def attach_view(
        self,
        doc_id: str,
        listener: Listener,
        buffer: TextBuffer | None = None,
        text: str | None = None,
    ) -> SyncState:
        """Register a view for *doc_id*, creating its state on first attach.

        The new view immediately receives a full snapshot (rendered
        content, progress, tree). Other views are not notified.
        """
        state = self._states.get(doc_id)
        if state is None:
            state = SyncState(
                doc_id=doc_id,
                show_headers=self._config.get("tree", {}).get("show_headers", True),
            )
            self._states[doc_id] = state
            log.info("Tracking %s", doc_id)

        if buffer is not None:
            state.buffer = buffer
        if text is None and buffer is not None:
            text = buffer.text()
        if text is not None:
            state.last_known_text = text

        state.views.append(listener)
        for event in self._snapshot(state, full=True):
            self._deliver(listener, event)
        return state

    def detach_view(self, doc_id: str, listener: Listener) -> None:
        """Unregister a view; the last one out discards the document's state."""
        state = self._states.get(doc_id)
        if state is None:
            return
        try:
            state.views.remove(listener)
        except ValueError:
            log.debug("Listener not attached to %s", doc_id)
        if not state.views:
            self._dispose(state)

    def close_document(self, doc_id: str) -> None:
        """Drop *doc_id* and all its views, cancelling pending timers."""
        state = self._states.get(doc_id)
        if state is not None:
            state.views.clear()
            self._dispose(state)

    def state(self, doc_id: str) -> SyncState | None:
        return self._states.get(doc_id)

    def documents(self) -> list[str]:
        return list(self._states)

    # ------------------------------------------------------------------
    # Content lane
    # ------------------------------------------------------------------

    def buffer_changed(
        self,
        doc_id: str,
        text: str,
        origin: ChangeOrigin | None = None,
    ) -> None:
        """Record a new snapshot of *doc_id* and (re)schedule its update."""
        state = self._states.get(doc_id)
        if state is None:
            log.debug("Change for untracked document %s ignored", doc_id)
            return

        if origin is None:
            if text == state.last_known_text:
                log.debug("Change for %s has identical text, ignored", doc_id)
                return
            origin = classify_change(state, text)

        state.last_known_text = text
        if isinstance(origin, ExternalEdit):
            state.needs_full_render = True

        delay = self._timings["edit"] if state.needs_full_render else self._timings["toggle"]
        log.debug(
            "%s change on %s, debounce %.3fs",
            "Local toggle" if isinstance(origin, LocalToggle) else "External",
            doc_id, delay,
        )
        self._schedule(state, delay)

    def refresh(self, doc_id: str) -> None:
        """Push a full snapshot to every view of *doc_id* now."""
        state = self._states.get(doc_id)
        if state is None:
            return
        if state.buffer is not None:
            state.last_known_text = state.buffer.text()
        self._broadcast(state, self._snapshot(state, full=True))

    def _schedule(self, state: SyncState, delay: float) -> None:
        if state.pending_debounce is not None:
            state.pending_debounce.cancel()
        state.phase = SyncPhase.PENDING
        state.pending_debounce = self._scheduler.call_later(
            delay, lambda: self._fire(state),
        )

    def _fire(self, state: SyncState) -> None:
        if state.disposed or self._states.get(state.doc_id) is not state:
            log.debug("Debounce fired for closed document %s, ignored", state.doc_id)
            return

        state.pending_debounce = None
        state.phase = SyncPhase.APPLYING
        full = state.needs_full_render
        # Reset before emitting so changes made by listeners start a fresh cycle
        state.needs_full_render = False
        state.pending_toggle = None
        try:
            self._broadcast(state, self._snapshot(state, full=full))
        except Exception:
            log.exception("Sync failed for %s", state.doc_id)
        finally:
            if state.pending_debounce is None:
                state.phase = SyncPhase.IDLE
            else:
                state.phase = SyncPhase.PENDING

    def _snapshot(self, state: SyncState, *, full: bool) -> list[SyncEvent]:
        text = state.last_known_text
        forest = self._forest(state, text)
        stats = completion(forest)
        events: list[SyncEvent] = []
        if full:
            rendered = self._renderer(text)
            events.append(FullRerender(state.doc_id, rendered.content, dict(rendered.line_map)))
        else:
            events.append(TargetedStateSync(state.doc_id, tuple(checkbox_states(text))))
        events.append(ProgressUpdate(state.doc_id, stats.completed, stats.total))
        events.append(TreeRebuilt(state.doc_id, forest))
        return events

    def _forest(self, state: SyncState, text: str) -> Forest:
        return build_tree(text, show_headers=state.show_headers)

    # ------------------------------------------------------------------
    # Toggle path
    # ------------------------------------------------------------------

    def request_toggle(self, doc_id: str, line: int) -> ToggleResult:
        """Toggle the checkbox on *line* of *doc_id*'s buffer.

        The buffer's change notification (``buffer_changed``) then drives
        the short, targeted update.
        """
        state = self._states.get(doc_id)
        if state is None or state.buffer is None:
            log.warning("Toggle for %s ignored: no buffer attached", doc_id)
            return ToggleResult(ToggleOutcome.REJECTED, line, error="document not attached")

        previous = state.pending_toggle
        try:
            prior = is_checked(state.buffer.line_at(line))
        except (IndexError, OSError):
            prior = None
        if prior is not None:
            state.pending_toggle = LocalToggle(line, prior)

        result = toggle_line(state.buffer, line)
        if not result.ok and not state.disposed:
            state.pending_toggle = previous
        return result

    # ------------------------------------------------------------------
    # Scroll lane and navigation
    # ------------------------------------------------------------------

    def scroll(self, doc_id: str, line: int) -> None:
        """Echo an editor scroll position to the views, debounced on its own lane."""
        state = self._states.get(doc_id)
        if state is None:
            return
        if state.pending_scroll is not None:
            state.pending_scroll.cancel()
        state.pending_scroll = self._scheduler.call_later(
            self._timings["scroll"], lambda: self._fire_scroll(state, line),
        )

    def _fire_scroll(self, state: SyncState, line: int) -> None:
        if state.disposed or self._states.get(state.doc_id) is not state:
            log.debug("Scroll fired for closed document %s, ignored", state.doc_id)
            return
        state.pending_scroll = None
        self._broadcast(state, [ScrollEcho(state.doc_id, line)])

    def navigate(self, doc_id: str, line: int) -> bool:
        """Ask the views to reveal *line*. Returns False if it does not exist."""
        state = self._states.get(doc_id)
        if state is None:
            return False
        if line < 0 or line >= len(split_lines(state.last_known_text)):
            log.debug("Navigate to line %d of %s out of range", line, doc_id)
            return False
        self._broadcast(state, [RevealLine(doc_id, line)])
        return True

    def set_show_headers(self, doc_id: str, show: bool) -> None:
        """Switch header display for the tree and rebuild it now."""
        state = self._states.get(doc_id)
        if state is None:
            return
        state.show_headers = show
        forest = self._forest(state, state.last_known_text)
        self._broadcast(state, [TreeRebuilt(doc_id, forest)])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _broadcast(self, state: SyncState, events: list[SyncEvent]) -> None:
        for event in events:
            for listener in list(state.views):
                self._deliver(listener, event)

    def _deliver(self, listener: Listener, event: SyncEvent) -> None:
        try:
            listener(event)
        except Exception:
            log.exception("View failed to handle %s for %s", event.kind, event.doc_id)

    def _dispose(self, state: SyncState) -> None:
        if state.pending_debounce is not None:
            state.pending_debounce.cancel()
            state.pending_debounce = None
        if state.pending_scroll is not None:
            state.pending_scroll.cancel()
            state.pending_scroll = None
        state.disposed = True
        state.phase = SyncPhase.IDLE
        self._states.pop(state.doc_id, None)
        log.info("Stopped tracking %s", state.doc_id)
