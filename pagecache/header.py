"""Bit layout of the io buffer header word, and log offset checks.

A header is an unsigned 64-bit word:

* bits 0..23  -- bytes reserved so far in the buffer (the offset)
* bits 24..30 -- number of writers currently copying into the buffer
* bit 31      -- set once the buffer is sealed against new reservations
* bits 32..63 -- a salt, bumped each time the buffer is reused
"""

from __future__ import annotations

from .constants import MSG_HEADER_LEN, SEG_HEADER_LEN

# The most writers a single io buffer has room for in its header.
MAX_WRITERS = 127

_U64_MASK = (1 << 64) - 1
_SEALED_BIT = 1 << 31
_WRITER_UNIT = 1 << 24
_OFFSET_MASK = (1 << 24) - 1
_SALT_MASK = 0xFFFF_FFFF_0000_0000


def is_sealed(header: int) -> bool:
    """True if the buffer no longer accepts reservations."""
    return header & _SEALED_BIT == _SEALED_BIT


def mk_sealed(header: int) -> int:
    """Return the header with its sealed bit set."""
    return (header | _SEALED_BIT) & _U64_MASK


def n_writers(header: int) -> int:
    """Number of writers currently active in the buffer."""
    return (header >> 24) & MAX_WRITERS


def incr_writers(header: int) -> int:
    """Return the header with one more writer.

    Raises ValueError if the writer count is already at MAX_WRITERS.
    """
    if n_writers(header) == MAX_WRITERS:
        raise ValueError(f"io buffer already has the maximum of {MAX_WRITERS} writers")
    return (header + _WRITER_UNIT) & _U64_MASK


def decr_writers(header: int) -> int:
    """Return the header with one writer fewer.

    Raises ValueError if there are no writers to remove.
    """
    if n_writers(header) == 0:
        raise ValueError("io buffer has no writers to remove")
    return header - _WRITER_UNIT


def offset(header: int) -> int:
    """Bytes reserved so far in the buffer."""
    return header & _OFFSET_MASK


def bump_offset(header: int, by: int) -> int:
    """Return the header with its offset advanced by ``by`` bytes.

    Raises ValueError if ``by`` does not fit in the 24-bit offset field.
    """
    if by < 0 or by >> 24 != 0:
        raise ValueError(f"cannot bump offset by {by}; it must fit in 24 bits")
    return (header + by) & _U64_MASK


def bump_salt(header: int) -> int:
    """Return a fresh header: salt incremented, every other field cleared."""
    return (header + (1 << 32)) & _SALT_MASK


def salt(header: int) -> int:
    """The header with everything but its salt cleared."""
    return header & _SALT_MASK


def valid_entry_offset(lid: int, segment_len: int) -> bool:
    """True if a message header can start at ``lid`` within its segment."""
    seg_start = lid // segment_len * segment_len
    max_lid = seg_start + segment_len - MSG_HEADER_LEN
    min_lid = seg_start + SEG_HEADER_LEN
    return min_lid <= lid <= max_lid