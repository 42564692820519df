"""Rebuild-on-change loop driven by watchdog file system notifications."""

from __future__ import annotations

import os
import queue
import signal
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from glue_gun.errors import GlueGunError, ToolExitNonzero
from glue_gun.logging import get_logger

from .watch_set import WatchSet

logger = get_logger(__name__)

CHANGE_KINDS = frozenset({"created", "modified", "deleted", "moved"})
"""watchdog event types that count as a change."""

STOP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)
"""Signals that end a watch session."""


@dataclass(frozen=True)
class ChangeEvent:
    """A change of a file or directory."""

    kind: str
    path: Path


@dataclass(frozen=True)
class StopRequest:
    """Request to end the watch session, usually from a signal handler."""

    signum: Optional[int] = None


WatchEvent = Union[ChangeEvent, StopRequest]


class QueueingEventHandler(FileSystemEventHandler):
    """Forwards watchdog change events into a queue.

    Runs on the observer thread and only enqueues; all decisions are made by the loop.
    """

    def __init__(self, events: "queue.SimpleQueue[WatchEvent]") -> None:
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in CHANGE_KINDS:
            return
        if event.is_directory and event.event_type == "modified":
            return
        paths = [event.src_path]
        dest_path = getattr(event, "dest_path", None)
        if dest_path:
            paths.append(dest_path)
        for path in paths:
            self._events.put(ChangeEvent(event.event_type, Path(os.fsdecode(path))))


class WatchEngine:
    """Runs ``on_change`` once per batch of relevant file changes until stopped.

    Only one rebuild runs at a time. Changes that happen while ``on_change`` runs stay queued
    and form the next batch. A stop request in a batch ends the loop without running the
    rebuild that batch would otherwise have triggered.

    Parameters
    ----------
    watch_set : WatchSet
        Paths whose changes trigger a rebuild.
    on_change : Callable[[], Any]
        The rebuild. :class:`GlueGunError` and :class:`OSError` raised by it are logged and the
        loop continues.
    poll_interval : float
        Seconds to wait for the first event of a batch before checking again.
    debounce : float
        Seconds of quiet after an event that close a batch.
    observer : optional
        A watchdog observer. Defaults to a new :class:`watchdog.observers.Observer`.
    """

    def __init__(
        self,
        watch_set: WatchSet,
        on_change: Callable[[], Any],
        poll_interval: float = 0.5,
        debounce: float = 0.2,
        observer: Optional[Any] = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if debounce < 0:
            raise ValueError("debounce must be >= 0")
        self._watch_set = watch_set
        self._on_change = on_change
        self._poll_interval = poll_interval
        self._debounce = debounce
        self._observer = observer if observer is not None else Observer()
        self._events: "queue.SimpleQueue[WatchEvent]" = queue.SimpleQueue()
        self._handler = QueueingEventHandler(self._events)
        self.rebuilds = 0

    @property
    def handler(self) -> QueueingEventHandler:
        return self._handler

    def request_stop(self, signum: Optional[int] = None) -> None:
        """End the session. Safe to call from signal handlers and other threads."""
        self._events.put(StopRequest(signum))

    def next_batch(self) -> List[WatchEvent]:
        """Wait up to one poll interval for an event, then collect until the debounce expires.

        Returns an empty list if nothing arrived within the poll interval.
        """
        try:
            batch: List[WatchEvent] = [self._events.get(timeout=self._poll_interval)]
        except queue.Empty:
            return []
        while True:
            try:
                if self._debounce > 0:
                    batch.append(self._events.get(timeout=self._debounce))
                else:
                    batch.append(self._events.get_nowait())
            except queue.Empty:
                return batch

    def handle_batch(self, batch: List[WatchEvent]) -> bool:
        """Process one batch. Returns False when the session should end."""
        for event in batch:
            if isinstance(event, StopRequest):
                logger.info("Received stop request (signal %s), exiting", event.signum)
                return False

        changed = [
            e for e in batch if isinstance(e, ChangeEvent) and self._watch_set.matches(e.path)
        ]
        if not changed:
            return True

        for event in changed:
            logger.info("event: %s %s", event.kind, event.path)
        self._rebuild()
        return True

    def _rebuild(self) -> None:
        self.rebuilds += 1
        try:
            self._on_change()
        except (GlueGunError, OSError) as e:
            logger.error("Rebuild failed: %s", e)
            if isinstance(e, ToolExitNonzero) and e.stderr:
                logger.error("%s", e.stderr.rstrip())
            return
        logger.info("Rebuild finished, waiting for changes")

    def _install_signal_handlers(self) -> Dict[int, Any]:
        if threading.current_thread() is not threading.main_thread():
            return {}
        previous = {}
        for signum in STOP_SIGNALS:
            previous[signum] = signal.signal(signum, lambda s, _frame: self.request_stop(s))
        return previous

    def _schedule(self) -> None:
        for path, recursive in self._watch_set.watch_points():
            logger.debug("Watching %s (recursive=%s)", path, recursive)
            self._observer.schedule(self._handler, str(path), recursive=recursive)

    def run(self) -> int:
        """Watch until a stop request arrives. Returns the process exit code (0)."""
        previous_handlers = self._install_signal_handlers()
        self._schedule()
        self._observer.start()
        logger.info("Watching for changes, press Ctrl-C to stop")
        try:
            while True:
                batch = self.next_batch()
                if batch and not self.handle_batch(batch):
                    return 0
        finally:
            self._observer.stop()
            self._observer.join()
            for signum, handler in previous_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
