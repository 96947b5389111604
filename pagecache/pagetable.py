"""A grow-only two-level radix table mapping page ids to values."""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple

FANFACTOR = 18
FANOUT = 1 << FANFACTOR
FAN_MASK = FANOUT - 1
MAX_PID = 1 << (FANFACTOR * 2)


def split_fanout(i: int) -> Tuple[int, int]:
    """Split a page id into its first- and second-level table indices."""
    if i < 0 or i > MAX_PID:
        raise ValueError(
            f"trying to access key of {i}, which is outside 0 ..= 2 ^ {FANFACTOR * 2}"
        )
    return i >> FANFACTOR, i & FAN_MASK


class CompareAndSwapError(Exception):
    """A compare-and-swap saw a different value than expected."""

    def __init__(self, current: Any) -> None:
        super().__init__(f"compare and swap failed; current value is {current!r}")
        self.current = current


class PageTable:
    """Maps page ids to values, assuming a dense keyspace.

    Compare-and-swap compares by identity, the way a pointer swap would:
    ``old`` must be the very object currently stored, or None for an
    empty slot.
    """

    def __init__(self) -> None:
        self._head: Dict[int, Dict[int, Any]] = {}
        self._lock = threading.Lock()

    def _slot(self, pid: int) -> Tuple[Dict[int, Any], int]:
        l1k, l2k = split_fanout(pid)
        child = self._head.get(l1k)
        if child is None:
            child = self._head.setdefault(l1k, {})
        return child, l2k

    def swap(self, pid: int, new: Any) -> Any:
        """Store ``new`` for ``pid`` and return the previous value, or None."""
        with self._lock:
            child, idx = self._slot(pid)
            old = child.get(idx)
            if new is None:
                child.pop(idx, None)
            else:
                child[idx] = new
            return old

    def cas(self, pid: int, old: Any, new: Any) -> Any:
        """Replace ``old`` with ``new`` if ``old`` is still stored; return ``new``.

        Raises CompareAndSwapError carrying the current value otherwise.
        """
        with self._lock:
            child, idx = self._slot(pid)
            current = child.get(idx)
            if current is not old:
                raise CompareAndSwapError(current)
            if new is None:
                child.pop(idx, None)
            else:
                child[idx] = new
            return new

    def get(self, pid: int) -> Optional[Any]:
        """Return the value stored for ``pid``, or None."""
        with self._lock:
            child, idx = self._slot(pid)
            return child.get(idx)

    def delete(self, pid: int) -> Optional[Any]:
        """Remove the value for ``pid``, returning it if one was set."""
        return self.swap(pid, None)