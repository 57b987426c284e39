"""Debounced autosave for an open document."""

import copy
import logging
import threading
import time
from typing import Any, Callable

from .core.model import Block
from .core.ports import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

Snapshot = dict[str, Any]

DEFAULT_DELAY_MS = 3000
DEFAULT_INDICATOR_MS = 500


def make_snapshot(title: str, blocks: list[Block], next_block_id: int | None = None) -> Snapshot:
    snapshot: Snapshot = {"title": title, "content": [b.to_dict() for b in blocks]}
    if next_block_id is not None:
        # a consumed sequential id is an unsaved change even if its block is gone
        snapshot["nextBlockId"] = next_block_id
    return snapshot


class ThreadingScheduler(Scheduler):
    """Timers backed by daemon `threading.Timer` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class AutosaveCoordinator:
    """
    Trailing debounce over document snapshots.

    Every snapshot that differs from the last saved one restarts the quiet
    period; only the final snapshot of a burst is handed to `save`. At most
    one timer is pending at any time.
    """

    def __init__(
        self,
        save: Callable[[Snapshot], None],
        initial: Snapshot | None = None,
        delay_ms: int = DEFAULT_DELAY_MS,
        indicator_ms: int = DEFAULT_INDICATOR_MS,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.save = save
        self.delay_ms = delay_ms
        self.indicator_ms = indicator_ms
        self.scheduler = scheduler or ThreadingScheduler()
        self.clock = clock

        self.last_saved_snapshot: Snapshot | None = copy.deepcopy(initial)
        self._pending: TimerHandle | None = None
        self._pending_snapshot: Snapshot | None = None
        self._generation = 0
        self._saving_until = 0.0
        self._closed = False
        self._lock = threading.RLock()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def is_saving(self) -> bool:
        """Cosmetic "Saving..." window that follows each save."""
        return self.clock() < self._saving_until

    def observe(self, snapshot: Snapshot) -> None:
        """Feed the latest (title, blocks) snapshot."""
        with self._lock:
            if self._closed:
                return
            if snapshot == self.last_saved_snapshot:
                # burst ended on the saved state
                self._cancel_pending()
                return
            self._cancel_pending()
            self._generation += 1
            generation = self._generation
            self._pending_snapshot = copy.deepcopy(snapshot)
            self._pending = self.scheduler.call_later(
                self.delay_ms / 1000.0, lambda: self._fire(generation)
            )

    def flush(self) -> bool:
        """Save a pending snapshot immediately. Returns True if one was saved."""
        with self._lock:
            if self._pending is None:
                return False
            generation = self._generation
        self._fire(generation)
        return True

    def close(self) -> None:
        """Cancel any pending save; nothing fires after this."""
        with self._lock:
            self._closed = True
            self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = None
        self._pending_snapshot = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            # a cancelled timer can still be mid-flight on its thread
            if self._closed or generation != self._generation or self._pending_snapshot is None:
                return
            snapshot = self._pending_snapshot
            self._pending = None
            self._pending_snapshot = None
            self._saving_until = self.clock() + self.indicator_ms / 1000.0
            # optimistic: the snapshot counts as saved once the save is issued
            self.last_saved_snapshot = copy.deepcopy(snapshot)
        logger.debug("autosave firing (generation %d)", generation)
        self.save(snapshot)
