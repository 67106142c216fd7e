import pytest

from rmdb.record_defs import RM_NO_PAGE, Rid, RmFileHdr, RmPageHdr, RmRecord


def test_file_header_round_trip():
    hdr = RmFileHdr(
        record_size=16,
        num_pages=3,
        num_records_per_page=200,
        first_free_page_no=RM_NO_PAGE,
        bitmap_size=25,
    )
    raw = hdr.to_bytes()
    assert len(raw) == RmFileHdr.SIZE
    assert RmFileHdr.from_bytes(raw) == hdr


def test_file_header_reads_prefix_of_page():
    hdr = RmFileHdr(8, 1, 10, 2, 2)
    page = hdr.to_bytes() + bytes(100)
    assert RmFileHdr.from_bytes(page) == hdr


def test_page_header_defaults_and_round_trip():
    hdr = RmPageHdr()
    assert hdr.next_free_page_no == RM_NO_PAGE
    assert hdr.num_records == 0
    other = RmPageHdr(next_free_page_no=4, num_records=9)
    assert RmPageHdr.from_bytes(other.to_bytes()) == other
    assert len(other.to_bytes()) == RmPageHdr.SIZE


def test_rid_equality_and_ordering():
    assert Rid(1, 2) == Rid(1, 2)
    assert Rid(1, 5) < Rid(2, 0)
    assert len({Rid(1, 2), Rid(1, 2), Rid(1, 3)}) == 2


def test_record_round_trip():
    record = RmRecord(b"pi\x00\x01")
    raw = record.serialize()
    assert len(raw) == 4 + record.size
    back = RmRecord.deserialize(raw)
    assert back == record
    assert back.size == 4


def test_record_deserialize_ignores_trailing_bytes():
    record = RmRecord(b"xyz")
    back = RmRecord.deserialize(record.serialize() + b"tail")
    assert back.data == bytearray(b"xyz")


def test_record_data_is_mutable_copy():
    source = b"abc"
    record = RmRecord(source)
    record.data[0] = ord("z")
    assert record.data == bytearray(b"zbc")
    assert source == b"abc"


@pytest.mark.parametrize("raw", [b"", b"\x01\x00", RmRecord(b"abcd").serialize()[:-1]])
def test_record_deserialize_rejects_truncated(raw):
    with pytest.raises(ValueError):
        RmRecord.deserialize(raw)