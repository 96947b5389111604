"""Exceptions raised by the page cache."""

from __future__ import annotations

from typing import Any


class PagecacheError(Exception):
    """Base class for every error the page cache raises."""


class UnsupportedError(PagecacheError):
    """A configuration or on-disk state that the system refuses to work with."""


class CorruptionError(PagecacheError):
    """Data read back from storage failed an integrity check."""

    def __init__(self, at: Any) -> None:
        super().__init__(f"read corrupted data at {at}")
        self.at = at