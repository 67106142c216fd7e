"""Record identifiers, record file headers and records."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

RM_NO_PAGE = -1
RM_FILE_HDR_PAGE = 0
RM_FIRST_RECORD_PAGE = 1
RM_MAX_RECORD_SIZE = 512

_INT = struct.Struct("<i")


@dataclass(frozen=True, order=True)
class Rid:
    """Location of a record: its page and slot."""

    page_no: int
    slot_no: int


@dataclass
class RmFileHdr:
    """Metadata of a record file, stored in its first page."""

    record_size: int
    num_pages: int
    num_records_per_page: int
    first_free_page_no: int
    bitmap_size: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<5i")
    SIZE: ClassVar[int] = FORMAT.size

    def to_bytes(self) -> bytes:
        return self.FORMAT.pack(
            self.record_size,
            self.num_pages,
            self.num_records_per_page,
            self.first_free_page_no,
            self.bitmap_size,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "RmFileHdr":
        return cls(*cls.FORMAT.unpack_from(data))


@dataclass
class RmPageHdr:
    """Metadata at the start of each record page."""

    next_free_page_no: int = RM_NO_PAGE
    num_records: int = 0

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<2i")
    SIZE: ClassVar[int] = FORMAT.size

    def to_bytes(self) -> bytes:
        return self.FORMAT.pack(self.next_free_page_no, self.num_records)

    @classmethod
    def from_bytes(cls, data: bytes) -> "RmPageHdr":
        return cls(*cls.FORMAT.unpack_from(data))


@dataclass
class RmRecord:
    """The bytes of one table record."""

    data: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        self.data = bytearray(self.data)

    @property
    def size(self) -> int:
        return len(self.data)

    def serialize(self) -> bytes:
        """The record as its size followed by its bytes."""
        return _INT.pack(self.size) + bytes(self.data)

    @classmethod
    def deserialize(cls, data: bytes) -> "RmRecord":
        """Read a record written by serialize from the start of data."""
        if len(data) < _INT.size:
            raise ValueError("record data too short for its size field")
        (size,) = _INT.unpack_from(data)
        end = _INT.size + size
        if size < 0 or len(data) < end:
            raise ValueError("record data shorter than its declared size")
        return cls(bytearray(data[_INT.size:end]))