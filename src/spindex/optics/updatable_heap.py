"""Binary min-heap with decrease-key by object id."""

from __future__ import annotations

import math
from typing import Optional, Union

from .cluster_order import ClusterOrderEntry


class UpdatableHeap:
    """Priority queue of ClusterOrderEntry objects keyed by object id.

    The heap holds at most one entry per object id. Adding an entry for an
    id already queued replaces the queued entry only when the new one sorts
    strictly earlier.

    Not thread-safe; a heap belongs to a single ordering run.
    """

    def __init__(self):
        self._queue: list[ClusterOrderEntry] = []
        self._slots: dict[int, int] = {}

    def add(self, entry: ClusterOrderEntry) -> bool:
        """Queue ``entry`` or lower the key of the queued entry with its id.

        Passing the queued entry itself after changing it with
        ``ClusterOrderEntry.update`` restores its position in the heap.

        Returns:
            True if the heap changed
        """
        pos = self._slots.get(entry.object_id)
        if pos is None:
            self._queue.append(entry)
            self._slots[entry.object_id] = len(self._queue) - 1
            self._sift_up(len(self._queue) - 1)
            return True
        if self._queue[pos] is entry:
            self._restore(pos)
            return True
        if entry < self._queue[pos]:
            self._queue[pos] = entry
            self._sift_up(pos)
            return True
        return False

    def decrease_key(
        self, object_id: int, reachability: float, predecessor_id: Optional[int]
    ) -> bool:
        """Lower the reachability of the queued entry for ``object_id``.

        Returns:
            True if the entry was updated, False if it is absent or the new
            reachability is not smaller

        Raises:
            InvalidReachabilityError: If ``reachability`` is NaN
        """
        pos = self._slots.get(object_id)
        if pos is None:
            return False
        entry = self._queue[pos]
        value = float(reachability)
        if not math.isnan(value) and value >= entry.reachability:
            return False
        entry.update(value, predecessor_id)
        self._sift_up(pos)
        return True

    def poll(self) -> ClusterOrderEntry:
        """Remove and return the first entry.

        Raises:
            IndexError: If the heap is empty
        """
        if not self._queue:
            raise IndexError("poll from an empty heap")
        top = self._queue[0]
        last = self._queue.pop()
        del self._slots[top.object_id]
        if self._queue:
            self._queue[0] = last
            self._slots[last.object_id] = 0
            self._sift_down(0)
        return top

    def peek(self) -> ClusterOrderEntry:
        """Return the first entry without removing it.

        Raises:
            IndexError: If the heap is empty
        """
        if not self._queue:
            raise IndexError("peek at an empty heap")
        return self._queue[0]

    def get(self, object_id: int) -> Optional[ClusterOrderEntry]:
        """Queued entry for ``object_id``, or None."""
        pos = self._slots.get(object_id)
        return None if pos is None else self._queue[pos]

    def clear(self) -> None:
        self._queue.clear()
        self._slots.clear()

    def __contains__(self, item: Union[int, ClusterOrderEntry]) -> bool:
        if isinstance(item, ClusterOrderEntry):
            item = item.object_id
        return item in self._slots

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __repr__(self) -> str:
        return f"UpdatableHeap(size={len(self._queue)})"

    def _sift_up(self, pos: int) -> None:
        queue = self._queue
        entry = queue[pos]
        while pos > 0:
            parent = (pos - 1) >> 1
            if not entry < queue[parent]:
                break
            queue[pos] = queue[parent]
            self._slots[queue[pos].object_id] = pos
            pos = parent
        queue[pos] = entry
        self._slots[entry.object_id] = pos

    def _sift_down(self, pos: int) -> None:
        queue = self._queue
        size = len(queue)
        entry = queue[pos]
        while True:
            child = 2 * pos + 1
            if child >= size:
                break
            right = child + 1
            if right < size and queue[right] < queue[child]:
                child = right
            if not queue[child] < entry:
                break
            queue[pos] = queue[child]
            self._slots[queue[pos].object_id] = pos
            pos = child
        queue[pos] = entry
        self._slots[entry.object_id] = pos

    def _restore(self, pos: int) -> None:
        """Move the entry at ``pos`` to its place after an in-place change."""
        entry = self._queue[pos]
        self._sift_up(pos)
        if self._queue[pos] is entry:
            self._sift_down(pos)
