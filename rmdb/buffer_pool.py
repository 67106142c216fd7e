"""Buffer pool that caches file pages in a fixed number of frames."""

from __future__ import annotations

import threading
from collections import deque
from typing import Optional

from rmdb.disk_manager import DiskManager
from rmdb.page import INVALID_PAGE_ID, PAGE_SIZE, Page, PageId
from rmdb.replacer import LRUReplacer, Replacer


class BufferPoolManager:
    """Keeps pages in memory frames, pinning, evicting and writing them back."""

    def __init__(
        self,
        pool_size: int,
        disk_manager: DiskManager,
        replacer: Optional[Replacer] = None,
    ) -> None:
        self.pool_size = pool_size
        self.disk_manager = disk_manager
        self.pages = [Page() for _ in range(pool_size)]
        self.replacer = replacer if replacer is not None else LRUReplacer(pool_size)
        self._page_table: dict[PageId, int] = {}
        self._free_list: deque[int] = deque(range(pool_size))
        self._lock = threading.Lock()

    @staticmethod
    def mark_dirty(page: Page) -> None:
        """Mark a page as modified."""
        page.is_dirty = True

    def _find_victim_frame(self) -> Optional[int]:
        if self._free_list:
            return self._free_list.popleft()
        return self.replacer.victim()

    def _update_page(self, page: Page, new_page_id: PageId, frame_id: int) -> None:
        if page.is_dirty:
            self.disk_manager.write_page(page.id.fd, page.id.page_no, page.data)
            page.is_dirty = False
        page.reset_memory()
        if self._page_table.get(page.id) == frame_id:
            del self._page_table[page.id]
        page.id = new_page_id
        if new_page_id.page_no != INVALID_PAGE_ID:
            self._page_table[new_page_id] = frame_id
            page.data[:] = self.disk_manager.read_page(
                new_page_id.fd, new_page_id.page_no, PAGE_SIZE
            )

    def fetch_page(self, page_id: PageId) -> Optional[Page]:
        """Return the pinned page, reading it from disk if needed; None if no frame is free."""
        with self._lock:
            frame_id = self._page_table.get(page_id)
            if frame_id is not None:
                page = self.pages[frame_id]
                self.replacer.pin(frame_id)
                page.pin_count += 1
                return page
            frame_id = self._find_victim_frame()
            if frame_id is None:
                return None
            page = self.pages[frame_id]
            self._update_page(page, page_id, frame_id)
            self.replacer.pin(frame_id)
            page.pin_count = 1
            return page

    def unpin_page(self, page_id: PageId, is_dirty: bool) -> bool:
        """Drop one pin from a cached page; False if it is absent or not pinned."""
        with self._lock:
            frame_id = self._page_table.get(page_id)
            if frame_id is None:
                return False
            page = self.pages[frame_id]
            if page.pin_count == 0:
                return False
            page.pin_count -= 1
            if page.pin_count == 0:
                self.replacer.unpin(frame_id)
            page.is_dirty = is_dirty
            return True

    def flush_page(self, page_id: PageId) -> bool:
        """Write a cached page to disk whether or not it is dirty."""
        with self._lock:
            frame_id = self._page_table.get(page_id)
            if frame_id is None:
                return False
            page = self.pages[frame_id]
            self.disk_manager.write_page(page.id.fd, page.id.page_no, page.data)
            page.is_dirty = False
            return True

    def new_page(self, fd: int) -> Optional[Page]:
        """Allocate a new page in the file and return it pinned; None if no frame is free."""
        with self._lock:
            frame_id = self._find_victim_frame()
            if frame_id is None:
                return None
            page_id = PageId(fd, self.disk_manager.allocate_page(fd))
            page = self.pages[frame_id]
            self._update_page(page, page_id, frame_id)
            self.replacer.pin(frame_id)
            page.pin_count = 1
            return page

    def delete_page(self, page_id: PageId) -> bool:
        """Drop a page from the pool; False only if it is cached and still pinned."""
        with self._lock:
            frame_id = self._page_table.get(page_id)
            if frame_id is None:
                return True
            page = self.pages[frame_id]
            if page.pin_count != 0:
                return False
            self.disk_manager.deallocate_page(page.id.page_no)
            self._update_page(page, PageId(page_id.fd, INVALID_PAGE_ID), frame_id)
            self.replacer.pin(frame_id)
            self._free_list.append(frame_id)
            return True

    def flush_all_pages(self, fd: int) -> None:
        """Write every cached page of the file to disk."""
        with self._lock:
            for page in self.pages:
                if page.id.fd == fd and page.id.page_no != INVALID_PAGE_ID:
                    self.disk_manager.write_page(page.id.fd, page.id.page_no, page.data)
                    page.is_dirty = False