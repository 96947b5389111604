"""Tracking of the highest contiguous log sequence number made stable.

Io buffers may reach stable storage out of order. Each completed write
is recorded as an interval of lsns, and the stable lsn only advances
across intervals that join up with it without a gap.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

from .errors import PagecacheError

logger = logging.getLogger(__name__)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero, as lsn arithmetic expects."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


class StableIntervals:
    """The stable lsn, the intervals written above it, and related watermarks.

    ``stable`` starts one below the first lsn that has not been written,
    so it is -1 before the first byte of the log reaches disk.
    """

    def __init__(self, stable: int, io_buf_size: int) -> None:
        if io_buf_size <= 0:
            raise ValueError("io_buf_size must be positive")
        self._io_buf_size = io_buf_size
        self._stable = stable
        self._max_reserved = stable
        self._max_header_stable = stable
        self._intervals: List[Tuple[int, int]] = []
        self._lock = threading.Lock()
        self._updated = threading.Condition(self._lock)
        self._watermark_lock = threading.Lock()

    @property
    def stable(self) -> int:
        """The highest contiguous lsn written to stable storage."""
        with self._lock:
            return self._stable

    @property
    def pending(self) -> List[Tuple[int, int]]:
        """Written intervals not yet joined to the stable lsn, lowest first."""
        with self._lock:
            return sorted(self._intervals)

    @property
    def max_reserved(self) -> int:
        """The highest lsn reserved so far."""
        with self._watermark_lock:
            return self._max_reserved

    @property
    def max_header_stable(self) -> int:
        """The highest stable lsn recorded in a segment header that was written."""
        with self._watermark_lock:
            return self._max_header_stable

    def mark_interval(self, whence: int, length: int) -> List[int]:
        """Record that ``length`` bytes starting at lsn ``whence`` are on disk.

        Returns the base lsns of segments that the stable lsn moved past,
        in ascending order; those segments can be deactivated.
        Raises ValueError for an empty interval and PagecacheError for one
        that starts at or below the current stable lsn.
        """
        logger.debug("mark_interval(%s, %s)", whence, length)
        if length <= 0:
            raise ValueError(f"mark_interval called with an empty length at {whence}")

        with self._updated:
            lsn_before = self._stable
            if whence <= lsn_before:
                raise PagecacheError(
                    f"somehow, we marked offset {lsn_before} stable while "
                    f"interval {whence}-{whence + length - 1} had not yet been applied!"
                )

            self._intervals.append((whence, whence + length - 1))
            # reverse sort so the lowest interval sits at the end
            self._intervals.sort(reverse=True)

            len_before = len(self._intervals)
            updated = False
            while self._intervals:
                low, high = self._intervals[-1]
                if self._stable + 1 != low:
                    break
                self._stable = high
                self._intervals.pop()
                updated = True
                logger.debug("new highest interval: %s - %s", low, high)

            merged = len_before - len(self._intervals)
            if merged > 100:
                logger.debug("large merge of %s intervals", merged)

            if updated:
                self._updated.notify_all()

            lsn_after = self._stable

        segment_before = _trunc_div(lsn_before, self._io_buf_size)
        segment_after = _trunc_div(lsn_after, self._io_buf_size)
        return [
            segment * self._io_buf_size
            for segment in range(segment_before, segment_after)
        ]

    def wait_until_stable(self, lsn: int, timeout: Optional[float] = None) -> bool:
        """Block until the stable lsn reaches ``lsn``.

        Returns True once it has, or False if ``timeout`` seconds pass first.
        """
        with self._updated:
            return self._updated.wait_for(lambda: self._stable >= lsn, timeout)

    def bump_max_reserved(self, lsn: int) -> int:
        """Raise the highest reserved lsn to at least ``lsn``; return its value."""
        with self._watermark_lock:
            if lsn > self._max_reserved:
                self._max_reserved = lsn
            return self._max_reserved

    def bump_max_header_stable(self, lsn: int) -> int:
        """Raise the highest header-stable lsn to at least ``lsn``; return its value."""
        with self._watermark_lock:
            if lsn > self._max_header_stable:
                self._max_header_stable = lsn
            return self._max_header_stable