"""Pointers to data stored in the log file or in the blob directory."""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Optional, Tuple


@total_ordering
@dataclass(frozen=True)
class DiskPtr:
    """A location in the single-file log, optionally backed by an off-log blob.

    Inline pointers sort before blob pointers; within a kind, pointers sort
    by log offset and then by blob pointer.
    """

    lid: int
    blob_ptr: Optional[int] = None

    def is_inline(self) -> bool:
        """True if the value is stored inside the log file."""
        return self.blob_ptr is None

    def is_blob(self) -> bool:
        """True if the value is stored off-log in the blob directory."""
        return self.blob_ptr is not None

    def blob(self) -> Tuple[int, int]:
        """Return ``(lid, blob_ptr)``; only valid for blob pointers."""
        if self.blob_ptr is None:
            raise ValueError("blob called on an inline disk pointer")
        return self.lid, self.blob_ptr

    def _sort_key(self) -> Tuple[int, int, int]:
        if self.blob_ptr is None:
            return (0, self.lid, 0)
        return (1, self.lid, self.blob_ptr)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DiskPtr):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        if self.blob_ptr is None:
            return f"Inline({self.lid})"
        return f"Blob({self.lid}, {self.blob_ptr})"


def new_inline(lid: int) -> DiskPtr:
    """Create a pointer to a value stored in the log."""
    return DiskPtr(lid)


def new_blob(lid: int, ptr: int) -> DiskPtr:
    """Create a pointer to a value stored as an external blob."""
    return DiskPtr(lid, ptr)