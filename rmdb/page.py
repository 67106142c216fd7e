"""Page identifiers and in-memory page frames."""

from __future__ import annotations

import struct
from dataclasses import dataclass

PAGE_SIZE = 4096
INVALID_PAGE_ID = -1

_LSN_FORMAT = struct.Struct("<i")


@dataclass(frozen=True, order=True)
class PageId:
    """Identifies a page by the descriptor of its open file and its number."""

    fd: int
    page_no: int = INVALID_PAGE_ID

    def as_int(self) -> int:
        """Pack the identifier into a single integer (fd in the high bits)."""
        return (self.fd << 16) | self.page_no

    def __str__(self) -> str:
        return f"{{fd: {self.fd} page_no: {self.page_no}}}"


class Page:
    """A page-sized frame of bytes together with its buffer-pool bookkeeping."""

    OFFSET_PAGE_START = 0
    OFFSET_LSN = 0
    OFFSET_PAGE_HDR = 4

    def __init__(self) -> None:
        self.id = PageId(fd=-1)
        self.data = bytearray(PAGE_SIZE)
        self.is_dirty = False
        self.pin_count = 0

    @property
    def page_lsn(self) -> int:
        """The log sequence number stored at the start of the page."""
        return _LSN_FORMAT.unpack_from(self.data, self.OFFSET_LSN)[0]

    @page_lsn.setter
    def page_lsn(self, lsn: int) -> None:
        _LSN_FORMAT.pack_into(self.data, self.OFFSET_LSN, lsn)

    def reset_memory(self) -> None:
        """Zero the page contents in place."""
        self.data[:] = bytes(len(self.data))

    def __repr__(self) -> str:
        return f"Page(id={self.id}, dirty={self.is_dirty}, pins={self.pin_count})"