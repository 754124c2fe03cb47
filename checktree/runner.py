"""Foreground watch loop: file watcher → coordinator → printed events.

Entry point: :func:`watch_document` runs until cancelled (Ctrl-C) or until
the optional *stop* event is set.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Callable

from checktree.buffer import FileBuffer
from checktree.sync import SyncCoordinator
from checktree.sync.events import SyncEvent
from checktree.sync.scheduler import AsyncioScheduler
from checktree.watcher import FileWatcher

log = logging.getLogger(__name__)


def event_line(event: SyncEvent) -> str:
    """Serialize an event as one JSON line."""
    return json.dumps(event.to_dict(), ensure_ascii=False)


async def watch_document(
    path: Path,
    config: dict[str, Any],
    echo: Callable[[str], Any],
    stop: asyncio.Event | None = None,
) -> None:
    """Keep *path* synchronized and print every event through *echo*.

    Parameters
    ----------
    path:
        Markdown document to watch.
    config:
        Checktree config dict.
    echo:
        Receives one JSON line per emitted event.
    stop:
        Set it to end the loop; runs forever when omitted.
    """
    loop = asyncio.get_running_loop()
    scheduler = AsyncioScheduler(loop)
    coordinator = SyncCoordinator(scheduler, config)
    buffer = FileBuffer(path)
    doc_id = str(path)

    def on_event(event: SyncEvent) -> None:
        echo(event_line(event))

    def on_file_changed(changed: Path) -> None:
        try:
            text = buffer.text()
        except OSError as exc:
            log.warning("Cannot read %s: %s", changed, exc)
            return
        coordinator.buffer_changed(doc_id, text)

    coordinator.attach_view(doc_id, on_event, buffer=buffer)

    # Observer thread → event loop
    watcher = FileWatcher(
        path, lambda changed: scheduler.call_soon_threadsafe(on_file_changed, changed),
    )
    watcher.start()
    log.info("Sync started for %s", path)

    try:
        if stop is None:
            stop = asyncio.Event()
        await stop.wait()
    finally:
        watcher.stop()
        coordinator.close_document(doc_id)
        log.info("Sync stopped for %s", path)
