import pytest

from rmdb.log_records import (
    LOG_HEADER_SIZE,
    OFFSET_LOG_DATA,
    OFFSET_LOG_TID,
    OFFSET_LOG_TOT_LEN,
    OFFSET_LOG_TYPE,
    OFFSET_LSN,
    OFFSET_PREV_LSN,
    BeginLogRecord,
    InsertLogRecord,
    LogBuffer,
    LogRecord,
    LogType,
)
from rmdb.record_defs import Rid, RmRecord


def _int_at(data, offset):
    return int.from_bytes(data[offset:offset + 4], "little", signed=True)


def test_log_type_order_matches_source():
    assert [t.name for t in LogType] == ["UPDATE", "INSERT", "DELETE", "BEGIN", "COMMIT", "ABORT"]
    assert LogType(0) is LogType.UPDATE
    begin = BeginLogRecord(1).serialize()
    insert = InsertLogRecord(txn_id=1, insert_value=RmRecord(bytearray(b"x")), rid=Rid(1, 0), table_name="t").serialize()
    assert _int_at(begin, OFFSET_LOG_TYPE) == 3
    assert _int_at(insert, OFFSET_LOG_TYPE) == 1


def test_header_offsets_are_contiguous():
    assert OFFSET_LOG_TYPE == 0
    assert OFFSET_LSN < OFFSET_LOG_TOT_LEN < OFFSET_LOG_TID < OFFSET_PREV_LSN < OFFSET_LOG_DATA
    assert LOG_HEADER_SIZE == OFFSET_LOG_DATA
    record = BeginLogRecord(5)
    record.lsn = 8
    record.prev_lsn = 2
    data = record.serialize()
    assert len(data) == OFFSET_LOG_DATA
    assert _int_at(data, OFFSET_LSN) == 8
    assert _int_at(data, OFFSET_LOG_TID) == 5
    assert _int_at(data, OFFSET_PREV_LSN) == 2


def test_begin_record_header_fields():
    record = BeginLogRecord(7)
    record.lsn = 11
    record.prev_lsn = 4
    data = record.serialize()
    assert len(data) == LOG_HEADER_SIZE
    assert record.log_tot_len == LOG_HEADER_SIZE
    assert _int_at(data, OFFSET_LOG_TYPE) == int(LogType.BEGIN)
    assert _int_at(data, OFFSET_LSN) == 11
    assert _int_at(data, OFFSET_LOG_TOT_LEN) == LOG_HEADER_SIZE
    assert _int_at(data, OFFSET_LOG_TID) == 7
    assert _int_at(data, OFFSET_PREV_LSN) == 4


def test_begin_record_round_trip_dispatches_on_type():
    record = BeginLogRecord(3)
    record.lsn = 9
    restored = LogRecord.deserialize(record.serialize())
    assert isinstance(restored, BeginLogRecord)
    assert restored == record


def test_insert_record_round_trip():
    record = InsertLogRecord(
        txn_id=2, insert_value=RmRecord(bytearray(b"abc")), rid=Rid(1, 5), table_name="tb"
    )
    record.lsn = 6
    record.prev_lsn = 5
    data = record.serialize()
    assert record.log_tot_len == len(data)
    assert _int_at(data, OFFSET_LOG_TOT_LEN) == len(data)
    restored = LogRecord.deserialize(data)
    assert isinstance(restored, InsertLogRecord)
    assert restored == record
    assert restored.insert_value.data == bytearray(b"abc")
    assert restored.rid == Rid(1, 5)


def test_insert_record_length():
    record = InsertLogRecord(insert_value=RmRecord(bytearray(b"abc")), rid=Rid(1, 0), table_name="tb")
    assert record.log_tot_len == 45


def test_deserialize_ignores_trailing_bytes():
    first = BeginLogRecord(1)
    second = InsertLogRecord(txn_id=1, insert_value=RmRecord(bytearray(b"x")), rid=Rid(1, 0), table_name="t")
    stream = first.serialize() + second.serialize()
    assert LogRecord.deserialize(stream) == first
    assert LogRecord.deserialize(stream[first.log_tot_len:]) == second


def test_deserialize_truncated_raises():
    data = InsertLogRecord(insert_value=RmRecord(bytearray(b"abc")), table_name="tb").serialize()
    with pytest.raises(ValueError):
        LogRecord.deserialize(data[:-1])
    with pytest.raises(ValueError):
        LogRecord.deserialize(data[:LOG_HEADER_SIZE - 1])


def test_deserialize_wrong_subclass_raises():
    data = BeginLogRecord(1).serialize()
    with pytest.raises(ValueError):
        InsertLogRecord.deserialize(data)


def test_deserialize_unknown_type_raises():
    data = bytearray(BeginLogRecord(1).serialize())
    data[0:4] = (99).to_bytes(4, "little")
    with pytest.raises(ValueError):
        LogRecord.deserialize(bytes(data))


def test_format_mentions_fields():
    record = InsertLogRecord(txn_id=4, insert_value=RmRecord(bytearray(b"pi\0\0")), rid=Rid(2, 3), table_name="tb")
    text = record.format()
    assert text.startswith("insert record")
    assert "log_type_: INSERT" in text
    assert "log_tid: 4" in text
    assert "insert_value: pi" in text
    assert "insert rid: 2, 3" in text
    assert "table name: tb" in text


def test_log_buffer_append_and_full():
    buffer = LogBuffer(size=8)
    assert not buffer.is_full(8)
    assert buffer.is_full(9)
    assert buffer.append(b"abc") == 0
    assert buffer.append(b"de") == 3
    assert buffer.contents == b"abcde"
    assert buffer.is_full(4)
    with pytest.raises(BufferError):
        buffer.append(b"wxyz")
    assert buffer.offset == 5