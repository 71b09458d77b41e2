"""Per-room mutual exclusion with bounded waits."""

import threading
import time
from contextlib import contextmanager
from typing import Iterable, Iterator

from structlog import get_logger

from hotel_ledger.errors import BusyError

logger = get_logger(__name__)


class RoomLocks:
    """Registry of one lock per room.

    Locks for different rooms never contend. Several rooms are always taken
    in sorted id order so two multi-room callers cannot deadlock.
    """

    def __init__(self, timeout_seconds: float):
        """Initialize the registry.

        Args:
            timeout_seconds: Default bounded wait for each hold() call
        """
        self.timeout_seconds = timeout_seconds
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, room_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[room_id] = lock
            return lock

    @contextmanager
    def hold(
        self,
        room_ids: Iterable[str],
        timeout: float | None = None,
    ) -> Iterator[None]:
        """Hold the locks of ``room_ids`` for the duration of the block.

        Args:
            room_ids: Rooms to lock
            timeout: Total wait budget in seconds; defaults to the registry timeout

        Raises:
            BusyError: If every lock could not be taken within the budget
        """
        budget = self.timeout_seconds if timeout is None else timeout
        deadline = time.monotonic() + budget
        held: list[threading.Lock] = []

        try:
            for room_id in sorted(set(room_ids)):
                lock = self._lock_for(room_id)
                remaining = max(deadline - time.monotonic(), 0)
                if not lock.acquire(timeout=remaining):
                    logger.warning(
                        "Room lock wait timed out",
                        room_id=room_id,
                        timeout_seconds=budget,
                    )
                    raise BusyError(
                        f"Room {room_id} is busy; retry the request"
                    )
                held.append(lock)
            yield
        finally:
            for lock in reversed(held):
                lock.release()

    def discard(self, room_id: str) -> None:
        """Forget the lock of a removed room."""
        with self._guard:
            self._locks.pop(room_id, None)
