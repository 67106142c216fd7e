"""Record files: fixed-size records stored in slotted pages."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from rmdb import bitmap
from rmdb.buffer_pool import BufferPoolManager
from rmdb.disk_manager import DatabaseError, DiskManager, FileNotOpenError, InternalError
from rmdb.page import Page, PageId
from rmdb.record_defs import RM_FILE_HDR_PAGE, RM_NO_PAGE, Rid, RmFileHdr, RmPageHdr, RmRecord

_PAGE_HDR_OFFSET = Page.OFFSET_PAGE_HDR
_BITMAP_OFFSET = Page.OFFSET_PAGE_HDR + RmPageHdr.SIZE


class RecordNotFoundError(DatabaseError):
    """No record is stored at the requested location."""

    def __init__(self, page_no: int, slot_no: int) -> None:
        super().__init__(f"Record not found: ({page_no}, {slot_no})")
        self.page_no = page_no
        self.slot_no = slot_no


class PageNotExistError(DatabaseError):
    """The requested page does not exist in the table file."""

    def __init__(self, table_name: str, page_no: int) -> None:
        super().__init__(f"Page {page_no} does not exist in table {table_name!r}")
        self.table_name = table_name
        self.page_no = page_no


class RmPageHandle:
    """View of a record page: page header, slot bitmap and record slots."""

    def __init__(self, file_hdr: RmFileHdr, page: Page) -> None:
        self.file_hdr = file_hdr
        self.page = page

    @property
    def page_no(self) -> int:
        return self.page.id.page_no

    def _read_header(self) -> RmPageHdr:
        return RmPageHdr(*RmPageHdr.FORMAT.unpack_from(self.page.data, _PAGE_HDR_OFFSET))

    def _write_header(self, header: RmPageHdr) -> None:
        self.page.data[_PAGE_HDR_OFFSET:_BITMAP_OFFSET] = header.to_bytes()

    @property
    def next_free_page_no(self) -> int:
        return self._read_header().next_free_page_no

    @next_free_page_no.setter
    def next_free_page_no(self, value: int) -> None:
        header = self._read_header()
        header.next_free_page_no = value
        self._write_header(header)

    @property
    def num_records(self) -> int:
        return self._read_header().num_records

    @num_records.setter
    def num_records(self, value: int) -> None:
        header = self._read_header()
        header.num_records = value
        self._write_header(header)

    @property
    def bitmap(self) -> memoryview:
        """Writable view of the page's slot bitmap."""
        end = _BITMAP_OFFSET + self.file_hdr.bitmap_size
        return memoryview(self.page.data)[_BITMAP_OFFSET:end]

    def _slot_offset(self, slot_no: int) -> int:
        return _BITMAP_OFFSET + self.file_hdr.bitmap_size + slot_no * self.file_hdr.record_size

    def slot(self, slot_no: int) -> bytes:
        """The bytes stored in a slot."""
        start = self._slot_offset(slot_no)
        return bytes(self.page.data[start:start + self.file_hdr.record_size])

    def write_slot(self, slot_no: int, data: bytes) -> None:
        """Copy one record's worth of data into a slot."""
        size = self.file_hdr.record_size
        if len(data) < size:
            raise ValueError(f"record needs {size} bytes, got {len(data)}")
        start = self._slot_offset(slot_no)
        self.page.data[start:start + size] = bytes(data[:size])


class RmFileHandle:
    """An open table data file and the records in its pages."""

    def __init__(
        self, disk_manager: DiskManager, buffer_pool_manager: BufferPoolManager, fd: int
    ) -> None:
        self.disk_manager = disk_manager
        self.buffer_pool_manager = buffer_pool_manager
        self.fd = fd
        raw = disk_manager.read_page(fd, RM_FILE_HDR_PAGE, RmFileHdr.SIZE)
        self.file_hdr = RmFileHdr.from_bytes(raw)
        disk_manager.set_fd2pageno(fd, self.file_hdr.num_pages)

    def _table_name(self) -> str:
        try:
            return self.disk_manager.get_file_name(self.fd)
        except FileNotOpenError:
            return ""

    def _check_buf(self, buf: bytes) -> bytes:
        size = self.file_hdr.record_size
        if len(buf) < size:
            raise ValueError(f"record needs {size} bytes, got {len(buf)}")
        return bytes(buf[:size])

    def _unpin(self, handle: RmPageHandle, dirty: bool) -> None:
        self.buffer_pool_manager.unpin_page(handle.page.id, dirty or handle.page.is_dirty)

    @contextmanager
    def _pinned(self, page_no: int, dirty: bool = False) -> Iterator[RmPageHandle]:
        handle = self.fetch_page_handle(page_no)
        try:
            yield handle
        finally:
            self._unpin(handle, dirty)

    def is_record(self, rid: Rid) -> bool:
        """Whether a record is stored at rid."""
        with self._pinned(rid.page_no) as handle:
            return bitmap.is_set(handle.bitmap, rid.slot_no)

    def get_record(self, rid: Rid) -> RmRecord:
        """The record stored at rid."""
        with self._pinned(rid.page_no) as handle:
            if not bitmap.is_set(handle.bitmap, rid.slot_no):
                raise RecordNotFoundError(rid.page_no, rid.slot_no)
            return RmRecord(bytearray(handle.slot(rid.slot_no)))

    def insert_record(self, buf: bytes) -> Rid:
        """Store a record in the first free slot and return where it went."""
        data = self._check_buf(buf)
        handle = self._create_page_handle()
        try:
            per_page = self.file_hdr.num_records_per_page
            free_slot = bitmap.first_bit(False, handle.bitmap, per_page)
            handle.write_slot(free_slot, data)
            bitmap.set_bit(handle.bitmap, free_slot)
            handle.num_records += 1
            if handle.num_records == per_page:
                self.file_hdr.first_free_page_no = handle.next_free_page_no
            return Rid(handle.page_no, free_slot)
        finally:
            self._unpin(handle, True)

    def insert_record_at(self, rid: Rid, buf: bytes) -> None:
        """Store a record at a given location, creating pages up to it if needed."""
        data = self._check_buf(buf)
        while rid.page_no >= self.file_hdr.num_pages:
            self._unpin(self.create_new_page_handle(), True)
        with self._pinned(rid.page_no, dirty=True) as handle:
            if not bitmap.is_set(handle.bitmap, rid.slot_no):
                bitmap.set_bit(handle.bitmap, rid.slot_no)
                handle.num_records += 1
                if handle.num_records == self.file_hdr.num_records_per_page:
                    self.file_hdr.first_free_page_no = handle.next_free_page_no
            handle.write_slot(rid.slot_no, data)

    def delete_record(self, rid: Rid) -> None:
        """Remove the record at rid."""
        with self._pinned(rid.page_no, dirty=True) as handle:
            if not bitmap.is_set(handle.bitmap, rid.slot_no):
                raise PageNotExistError(self._table_name(), rid.page_no)
            bitmap.reset_bit(handle.bitmap, rid.slot_no)
            if handle.num_records == self.file_hdr.num_records_per_page:
                self._release_page_handle(handle)
            handle.num_records -= 1

    def update_record(self, rid: Rid, buf: bytes) -> None:
        """Overwrite the record at rid."""
        data = self._check_buf(buf)
        with self._pinned(rid.page_no, dirty=True) as handle:
            if not bitmap.is_set(handle.bitmap, rid.slot_no):
                raise RecordNotFoundError(rid.page_no, rid.slot_no)
            handle.write_slot(rid.slot_no, data)

    def fetch_page_handle(self, page_no: int) -> RmPageHandle:
        """Pinned handle of an existing page; the caller unpins it."""
        if not 0 <= page_no < self.file_hdr.num_pages:
            raise PageNotExistError(self._table_name(), page_no)
        page = self.buffer_pool_manager.fetch_page(PageId(self.fd, page_no))
        if page is None:
            raise InternalError("buffer pool has no free frame")
        return RmPageHandle(self.file_hdr, page)

    def create_new_page_handle(self) -> RmPageHandle:
        """Append an empty page to the file; returned pinned, the caller unpins it."""
        page = self.buffer_pool_manager.new_page(self.fd)
        if page is None:
            raise InternalError("buffer pool has no free frame")
        handle = RmPageHandle(self.file_hdr, page)
        handle.num_records = 0
        handle.next_free_page_no = self.file_hdr.first_free_page_no
        self.file_hdr.num_pages += 1
        self.file_hdr.first_free_page_no = page.id.page_no
        return handle

    def _create_page_handle(self) -> RmPageHandle:
        if self.file_hdr.first_free_page_no != RM_NO_PAGE:
            return self.fetch_page_handle(self.file_hdr.first_free_page_no)
        return self.create_new_page_handle()

    def _release_page_handle(self, handle: RmPageHandle) -> None:
        handle.next_free_page_no = self.file_hdr.first_free_page_no
        self.file_hdr.first_free_page_no = handle.page_no