"""Per-kind integer identifier allocation, seeded from persisted records."""

import threading
from collections.abc import Iterable


class IdAllocator:
    """
    Hands out strictly increasing integer ids within one process.

    Seeded with ``max(existing) + 1`` (or 1 when nothing is persisted). Ids are
    never reissued, even after the record holding them is deleted. Not safe
    across processes sharing one storage directory.
    """

    def __init__(self, next_id: int = 1) -> None:
        if next_id < 1:
            raise ValueError("next_id must be a positive integer")
        self._next = next_id
        self._lock = threading.Lock()

    @classmethod
    def from_existing(cls, ids: Iterable[int]) -> "IdAllocator":
        """Build an allocator that continues after the highest existing id."""
        return cls(max(ids, default=0) + 1)

    @property
    def next_id(self) -> int:
        """The id the next allocate() call will return."""
        return self._next

    def allocate(self) -> int:
        """Return the current counter value and advance it."""
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def observe(self, existing_id: int) -> None:
        """Advance past an id found on disk after startup (e.g. on a rescan)."""
        with self._lock:
            if existing_id >= self._next:
                self._next = existing_id + 1
