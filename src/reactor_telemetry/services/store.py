"""In-memory latest/history holder for reactor snapshots."""
from __future__ import annotations

from collections import deque

import aiorwlock
import structlog

from reactor_telemetry.domain.dto import ReactorSnapshot

logger = structlog.get_logger(__name__)


class SnapshotStore:
    """Holds the most recent snapshot and the history of all published ones.

    ``latest`` and ``history`` are only changed together under the writer
    lock, so a reader never sees a new ``latest`` with a history that does
    not end in it. History is unbounded unless ``max_entries`` is given, in
    which case only the newest ``max_entries`` snapshots are kept.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self._lock = aiorwlock.RWLock()
        self._latest = ReactorSnapshot()
        self._history: deque[ReactorSnapshot] = deque(maxlen=max_entries or None)
        self.max_entries = max_entries or None

    async def publish(self, snapshot: ReactorSnapshot) -> None:
        async with self._lock.writer_lock:
            self._latest = snapshot
            self._history.append(snapshot)
            size = len(self._history)
        logger.debug("snapshot published", label=snapshot.computer_label, history_size=size)

    async def read_latest(self) -> ReactorSnapshot:
        async with self._lock.reader_lock:
            return self._latest

    async def read_history(self) -> list[ReactorSnapshot]:
        async with self._lock.reader_lock:
            return list(self._history)

    async def read_state(self) -> tuple[ReactorSnapshot, list[ReactorSnapshot]]:
        """Latest and history taken under one reader lock."""
        async with self._lock.reader_lock:
            return self._latest, list(self._history)

    async def size(self) -> int:
        async with self._lock.reader_lock:
            return len(self._history)


SNAPSHOT_STORE_KEY = "snapshot_store"


def get_snapshot_store(app) -> SnapshotStore:
    return app[SNAPSHOT_STORE_KEY]
