"""Write-ahead log records, their on-disk layout, and the log buffer."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Optional

from rmdb.page import PAGE_SIZE
from rmdb.record_defs import Rid, RmRecord

INVALID_LSN = -1
INVALID_TXN_ID = -1
LOG_BUFFER_SIZE = 1024 * PAGE_SIZE
FLUSH_TIMEOUT = 3.0  # seconds

# Header layout: log type, lsn, total length, transaction id, previous lsn.
_HEADER = struct.Struct("<iiIii")
OFFSET_LOG_TYPE = 0
OFFSET_LSN = 4
OFFSET_LOG_TOT_LEN = 8
OFFSET_LOG_TID = 12
OFFSET_PREV_LSN = 16
OFFSET_LOG_DATA = _HEADER.size
LOG_HEADER_SIZE = OFFSET_LOG_DATA

_RID = struct.Struct("<ii")
_NAME_LEN = struct.Struct("<Q")


class LogType(IntEnum):
    """Kind of operation a log record describes."""

    UPDATE = 0
    INSERT = 1
    DELETE = 2
    BEGIN = 3
    COMMIT = 4
    ABORT = 5


_RECORD_CLASSES: dict[LogType, type[LogRecord]] = {}


@dataclass
class LogRecord:
    """A log record: the common header fields and an optional body."""

    log_type: LogType
    txn_id: int = INVALID_TXN_ID
    lsn: int = INVALID_LSN
    prev_lsn: int = INVALID_LSN

    RECORD_TYPE: ClassVar[Optional[LogType]] = None

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        if cls.RECORD_TYPE is not None:
            _RECORD_CLASSES[cls.RECORD_TYPE] = cls

    def _body(self) -> bytes:
        return b""

    @classmethod
    def _from_body(cls, log_type: LogType, body: bytes) -> LogRecord:
        return cls(log_type)

    @property
    def log_tot_len(self) -> int:
        """Length of the whole serialized record in bytes."""
        return LOG_HEADER_SIZE + len(self._body())

    def serialize(self) -> bytes:
        """The record in its on-disk form: header followed by body."""
        body = self._body()
        header = _HEADER.pack(
            int(self.log_type),
            self.lsn,
            LOG_HEADER_SIZE + len(body),
            self.txn_id,
            self.prev_lsn,
        )
        return header + body

    @classmethod
    def deserialize(cls, data: bytes) -> LogRecord:
        """Read one record from the start of data.

        Called on LogRecord, the record class is chosen by the stored log type.
        """
        if len(data) < LOG_HEADER_SIZE:
            raise ValueError("log data shorter than a log header")
        raw_type, lsn, tot_len, txn_id, prev_lsn = _HEADER.unpack_from(data)
        log_type = LogType(raw_type)
        if tot_len < LOG_HEADER_SIZE or len(data) < tot_len:
            raise ValueError(f"invalid log record length: {tot_len}")
        if cls is LogRecord:
            target: type[LogRecord] = _RECORD_CLASSES.get(log_type, LogRecord)
        elif cls.RECORD_TYPE is not log_type:
            raise ValueError(f"expected a {cls.RECORD_TYPE} record, found {log_type.name}")
        else:
            target = cls
        record = target._from_body(log_type, bytes(data[LOG_HEADER_SIZE:tot_len]))
        record.lsn = lsn
        record.txn_id = txn_id
        record.prev_lsn = prev_lsn
        return record

    def format(self) -> str:
        """Human-readable description of the record, for debugging."""
        return "\n".join(
            [
                "Print Log Record:",
                f"log_type_: {self.log_type.name}",
                f"lsn: {self.lsn}",
                f"log_tot_len: {self.log_tot_len}",
                f"log_tid: {self.txn_id}",
                f"prev_lsn: {self.prev_lsn}",
            ]
        )


@dataclass
class BeginLogRecord(LogRecord):
    """Marks the start of a transaction."""

    RECORD_TYPE: ClassVar[Optional[LogType]] = LogType.BEGIN
    log_type: LogType = field(default=LogType.BEGIN, init=False)

    @classmethod
    def _from_body(cls, log_type: LogType, body: bytes) -> LogRecord:
        return cls()


@dataclass
class InsertLogRecord(LogRecord):
    """Records the insertion of a record into a table."""

    RECORD_TYPE: ClassVar[Optional[LogType]] = LogType.INSERT
    log_type: LogType = field(default=LogType.INSERT, init=False)
    insert_value: RmRecord = field(default_factory=RmRecord)
    rid: Rid = Rid(-1, -1)
    table_name: str = ""

    def _body(self) -> bytes:
        name = self.table_name.encode("utf-8")
        return (
            self.insert_value.serialize()
            + _RID.pack(self.rid.page_no, self.rid.slot_no)
            + _NAME_LEN.pack(len(name))
            + name
        )

    @classmethod
    def _from_body(cls, log_type: LogType, body: bytes) -> LogRecord:
        value = RmRecord.deserialize(body)
        offset = 4 + value.size
        if len(body) < offset + _RID.size + _NAME_LEN.size:
            raise ValueError("insert log record truncated")
        page_no, slot_no = _RID.unpack_from(body, offset)
        offset += _RID.size
        (name_len,) = _NAME_LEN.unpack_from(body, offset)
        offset += _NAME_LEN.size
        if len(body) < offset + name_len:
            raise ValueError("insert log record table name truncated")
        name = body[offset:offset + name_len].decode("utf-8")
        return cls(insert_value=value, rid=Rid(page_no, slot_no), table_name=name)

    def format(self) -> str:
        text = bytes(self.insert_value.data).split(b"\0", 1)[0].decode("utf-8", errors="replace")
        return "\n".join(
            [
                "insert record",
                super().format(),
                f"insert_value: {text}",
                f"insert rid: {self.rid.page_no}, {self.rid.slot_no}",
                f"table name: {self.table_name}",
            ]
        )


class LogBuffer:
    """A single in-memory buffer that log records are appended to."""

    def __init__(self, size: int = LOG_BUFFER_SIZE) -> None:
        self.size = size
        self.buffer = bytearray(size + 1)
        self.offset = 0

    def is_full(self, append_size: int) -> bool:
        """Whether appending append_size bytes would overflow the buffer."""
        return self.offset + append_size > self.size

    def append(self, data: bytes) -> int:
        """Copy data into the buffer and return the offset it was written at."""
        if self.is_full(len(data)):
            raise BufferError(f"log buffer cannot hold {len(data)} more bytes")
        start = self.offset
        self.buffer[start:start + len(data)] = data
        self.offset += len(data)
        return start

    @property
    def contents(self) -> bytes:
        """The bytes written so far."""
        return bytes(self.buffer[:self.offset])