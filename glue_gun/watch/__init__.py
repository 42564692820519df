"""Incremental rebuilds on source changes."""

from .engine import ChangeEvent, QueueingEventHandler, StopRequest, WatchEngine
from .watch_set import INPUT_DIRS, INPUT_FILES, WatchSet, compute_watch_set

__all__ = [
    "ChangeEvent",
    "INPUT_DIRS",
    "INPUT_FILES",
    "QueueingEventHandler",
    "StopRequest",
    "WatchEngine",
    "WatchSet",
    "compute_watch_set",
]
