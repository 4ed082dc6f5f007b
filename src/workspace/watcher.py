"""Filesystem change watching with debounced batch delivery.

This module provides the ChangeWatcher class which subscribes to recursive
filesystem events through watchdog, drops events for excluded paths, and
coalesces bursts of events into one batch per debounce window.

State machine:
    STOPPED -> INITIALIZING   start() called, subscription being set up
    INITIALIZING -> READY     initial scan finished, events now count
    READY -> STOPPED          stop() called, timer cancelled, observer released

Only events observed in READY are eligible for debouncing. Every qualifying
event cancels and re-arms the debounce timer (last event wins). Only one
batch callback runs at a time; events arriving while a batch is being
processed accumulate into the next window.
"""

import logging
import os
import threading
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatcherError
from .models import ChangeBatch, ChangeKind, FileChange, WatcherState
from .path_matcher import Matcher, normalize_path

logger = logging.getLogger(__name__)

# Default debounce window in seconds
DEFAULT_DEBOUNCE_SECONDS = 0.5

# watchdog event types mapped to change kinds; others are ignored
_EVENT_KINDS = {
    "created": ChangeKind.ADDED,
    "modified": ChangeKind.CHANGED,
    "deleted": ChangeKind.REMOVED,
}


class Debouncer:
    """Owns one cancellable timer that fires ``callback`` after a quiet period.

    Example:
        >>> debouncer = Debouncer(0.5, flush)
        >>> debouncer.trigger()   # arms the timer
        >>> debouncer.trigger()   # cancels and re-arms it
        >>> debouncer.cancel()
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self._callback = callback
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        """Cancel any pending timer and start a new window."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Cancel the pending timer, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._lock:
            if self._timer is not threading.current_thread():
                # Superseded by a newer trigger between expiry and lock
                return
            self._timer = None
        self._callback()


class _EventHandler(FileSystemEventHandler):
    """Forwards watchdog events to the owning ChangeWatcher."""

    def __init__(self, watcher: "ChangeWatcher"):
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type == "moved":
            self._watcher.handle_event(ChangeKind.REMOVED, event.src_path, event.is_directory)
            self._watcher.handle_event(ChangeKind.ADDED, event.dest_path, event.is_directory)
            return

        kind = _EVENT_KINDS.get(event.event_type)
        if kind is None:
            return
        if kind == ChangeKind.CHANGED and event.is_directory:
            # Directory mtime bumps accompany every child change
            return
        self._watcher.handle_event(kind, event.src_path, event.is_directory)


class ChangeWatcher:
    """Watches a workspace and delivers debounced change batches.

    Example:
        >>> def on_batch(batch):
        ...     for change in batch.changes:
        ...         mirror.mirror_one(change.path)
        >>> with ChangeWatcher(".", matcher, on_batch) as watcher:
        ...     wait_for_interrupt()
    """

    def __init__(
        self,
        workspace_root: str,
        matcher: Matcher,
        on_batch: Callable[[ChangeBatch], None],
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """Initialize the watcher.

        Args:
            workspace_root: Directory to watch recursively
            matcher: Compiled exclusion rules (paths relative to workspace_root)
            on_batch: Called once per debounce window with the coalesced batch
            debounce_seconds: Length of the quiet period before a batch fires
            observer_factory: Creates the watchdog observer
        """
        self.workspace_root = os.path.abspath(workspace_root)
        self.matcher = matcher
        self.on_batch = on_batch
        self.state = WatcherState.STOPPED

        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self._pending: List[FileChange] = []
        self._pending_lock = threading.Lock()
        self._sync_lock = threading.Lock()
        self._debouncer = Debouncer(debounce_seconds, self._flush)

    def start(self) -> None:
        """Subscribe to filesystem events and move to READY.

        Raises:
            WatcherError: If the workspace cannot be watched
        """
        if self.state != WatcherState.STOPPED:
            logger.debug("Watcher already started")
            return

        logger.info("Setting up file watcher for workspace changes...")
        self.state = WatcherState.INITIALIZING
        try:
            observer = self._observer_factory()
            observer.schedule(_EventHandler(self), self.workspace_root, recursive=True)
            observer.start()
        except (OSError, RuntimeError) as e:
            self.state = WatcherState.STOPPED
            raise WatcherError(self.workspace_root, str(e))

        self._observer = observer
        self.mark_ready()

    def mark_ready(self) -> None:
        """Finish initialization; subsequent events are debounced."""
        if self.state == WatcherState.INITIALIZING:
            self.state = WatcherState.READY
            logger.info("File watcher ready - monitoring for changes...")

    def stop(self) -> None:
        """Cancel the pending timer and release the filesystem subscription."""
        if self.state == WatcherState.STOPPED:
            return
        self.state = WatcherState.STOPPED
        self._debouncer.cancel()
        with self._pending_lock:
            self._pending.clear()

        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            observer.join()
        logger.info("File watcher stopped")

    def __enter__(self) -> "ChangeWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _relative(self, path) -> Optional[str]:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        if not os.path.isabs(path):
            path = os.path.join(self.workspace_root, path)
        try:
            rel = os.path.relpath(os.path.abspath(path), self.workspace_root)
        except ValueError:
            return None
        if rel == os.curdir or rel.startswith(os.pardir):
            return None
        return normalize_path(rel)

    def handle_event(self, kind: ChangeKind, path, is_directory: bool = False) -> bool:
        """Consider one filesystem event.

        Args:
            kind: Kind of change
            path: Absolute path, or path relative to the workspace root
            is_directory: Whether the event concerns a directory

        Returns:
            True if the event was queued for the next batch
        """
        if self.state != WatcherState.READY:
            logger.debug(f"Ignoring {kind.value} event for {path} while {self.state.value}")
            return False

        rel = self._relative(path)
        if rel is None:
            return False
        if self.matcher.excludes(rel, is_dir=is_directory):
            return False

        logger.info(f"{kind.value}: {rel}")
        with self._pending_lock:
            self._pending.append(FileChange(kind=kind, path=rel, is_directory=is_directory))
        self._debouncer.trigger()
        return True

    def _flush(self) -> None:
        """Deliver the pending events as one batch.

        Runs on the debounce timer thread. The sync lock keeps batches
        strictly sequential; a failing batch is logged and the watcher keeps
        running for the next event.
        """
        with self._sync_lock:
            with self._pending_lock:
                pending = self._pending
                self._pending = []
            if not pending or self.state != WatcherState.READY:
                return

            batch = ChangeBatch.from_changes(pending)
            logger.debug(f"Delivering batch of {len(batch)} change(s)")
            try:
                self.on_batch(batch)
            except Exception as e:
                logger.error(f"Error syncing changes: {e}")
                logger.debug("Batch failure details", exc_info=True)
