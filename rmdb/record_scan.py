"""Sequential scan over the records of a table file."""

from __future__ import annotations

from typing import Iterator

from rmdb import bitmap
from rmdb.record_defs import RM_FIRST_RECORD_PAGE, RM_NO_PAGE, Rid
from rmdb.record_file import RmFileHandle


class RmScan:
    """Walks the occupied slots of a record file in page and slot order."""

    def __init__(self, file_handle: RmFileHandle) -> None:
        self.file_handle = file_handle
        self._rid = Rid(RM_FIRST_RECORD_PAGE, -1)
        self.next()

    def next(self) -> None:
        """Move to the next occupied slot, or to the end."""
        fh = self.file_handle
        per_page = fh.file_hdr.num_records_per_page
        page_no, slot_no = self._rid.page_no, self._rid.slot_no
        while 0 <= page_no < fh.file_hdr.num_pages:
            handle = fh.fetch_page_handle(page_no)
            try:
                slot_no = bitmap.next_bit(True, handle.bitmap, per_page, slot_no)
            finally:
                fh.buffer_pool_manager.unpin_page(handle.page.id, handle.page.is_dirty)
            if slot_no < per_page:
                self._rid = Rid(page_no, slot_no)
                return
            page_no, slot_no = page_no + 1, -1
        self._rid = Rid(RM_NO_PAGE, -1)

    def is_end(self) -> bool:
        """Whether the scan has passed the last record."""
        return self._rid.page_no == RM_NO_PAGE

    def rid(self) -> Rid:
        """Location of the current record."""
        return self._rid

    def __iter__(self) -> Iterator[Rid]:
        while not self.is_end():
            yield self._rid
            self.next()