"""Filesystem watcher that feeds document changes to the coordinator.

``watchdog`` delivers events on its observer thread. The callback given to
:class:`FileWatcher` runs on that thread, so callers that own a
:class:`~checktree.sync.SyncCoordinator` should hop back onto their event
loop (see :meth:`checktree.sync.scheduler.AsyncioScheduler.call_soon_threadsafe`).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger(__name__)

# Called with the absolute path of the changed document
PathCallback = Callable[[Path], None]


class _DocEventHandler(FileSystemEventHandler):
    """Watchdog handler that calls back on create/modify/move-into of one file."""

    def __init__(self, path: Path, callback: PathCallback) -> None:
        super().__init__()
        self._path = Path(path).resolve()
        self._callback = callback

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save via rename-over land here
        if not event.is_directory:
            self._handle(getattr(event, "dest_path", "") or event.src_path)

    def _handle(self, abs_path: str | bytes) -> None:
        path = Path(os.fsdecode(abs_path)).resolve()
        if path != self._path:
            return
        log.debug("Change detected: %s", path)
        self._callback(path)


class FileWatcher:
    """Watchdog-based watcher for a single markdown document.

    Parameters
    ----------
    path:
        The document to watch. Its parent directory is observed.
    callback:
        Called (on the observer thread) whenever the document changes.
    """

    def __init__(self, path: Path, callback: PathCallback) -> None:
        self._path = Path(path).resolve()
        self._callback = callback
        self._observer: Observer | None = None

    @property
    def path(self) -> Path:
        return self._path

    def start(self) -> None:
        """Start the filesystem observer."""
        directory = self._path.parent
        if not directory.exists():
            log.warning("Directory not found, not watching: %s", directory)
            return

        handler = _DocEventHandler(self._path, self._callback)
        self._observer = Observer()
        self._observer.schedule(handler, str(directory), recursive=False)
        self._observer.daemon = True
        self._observer.start()
        log.info("Watching: %s", self._path)

    def stop(self) -> None:
        """Stop the filesystem observer."""
        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def running(self) -> bool:
        return self._observer is not None
