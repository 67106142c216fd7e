"""Bit operations on byte-array bitmaps, most significant bit first."""

from __future__ import annotations

BITMAP_WIDTH = 8
BITMAP_HIGHEST_BIT = 0x80


def _mask(pos: int) -> int:
    return BITMAP_HIGHEST_BIT >> (pos % BITMAP_WIDTH)


def set_bit(bm: bytearray, pos: int) -> None:
    """Set bit pos to 1."""
    bm[pos // BITMAP_WIDTH] |= _mask(pos)


def reset_bit(bm: bytearray, pos: int) -> None:
    """Set bit pos to 0."""
    bm[pos // BITMAP_WIDTH] &= ~_mask(pos) & 0xFF


def is_set(bm: bytes, pos: int) -> bool:
    """Whether bit pos is 1."""
    return bool(bm[pos // BITMAP_WIDTH] & _mask(pos))


def next_bit(bit: bool, bm: bytes, max_n: int, curr: int) -> int:
    """First position in (curr, max_n) whose bit equals bit, or max_n if none."""
    return next((i for i in range(curr + 1, max_n) if is_set(bm, i) == bit), max_n)


def first_bit(bit: bool, bm: bytes, max_n: int) -> int:
    """First position in [0, max_n) whose bit equals bit, or max_n if none."""
    return next_bit(bit, bm, max_n, -1)