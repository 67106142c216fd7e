"""File and page I/O on disk."""

from __future__ import annotations

import os
import shutil
import threading
from typing import Optional

from rmdb.page import PAGE_SIZE

LOG_FILE_NAME = "db.log"


class DatabaseError(Exception):
    """Base class for storage errors."""


class InternalError(DatabaseError):
    """An operation failed in a way the storage layer does not expect."""


class FileAlreadyExistsError(DatabaseError):
    """A file that should be created already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File already exists: {path}")
        self.path = path


class FileMissingError(DatabaseError):
    """A file that should exist does not."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class FileNotOpenError(DatabaseError):
    """A descriptor does not belong to a file opened by the disk manager."""

    def __init__(self, fd: int) -> None:
        super().__init__(f"File not opened: fd {fd}")
        self.fd = fd


class DiskManager:
    """Creates, opens and removes files and reads and writes their pages."""

    MAX_FD = 8192

    def __init__(self, log_file_name: str = LOG_FILE_NAME) -> None:
        self.log_file_name = log_file_name
        self.log_fd = -1
        self._path2fd: dict[str, int] = {}
        self._fd2path: dict[int, str] = {}
        self._fd2pageno: dict[int, int] = {}
        self._page_lock = threading.Lock()

    # Pages

    def write_page(self, fd: int, page_no: int, data: bytes) -> None:
        """Write data at the start of the given page and sync it to disk."""
        os.lseek(fd, page_no * PAGE_SIZE, os.SEEK_SET)
        written = os.write(fd, bytes(data))
        if written != len(data):
            raise InternalError("DiskManager.write_page error")
        os.fsync(fd)

    def read_page(self, fd: int, page_no: int, num_bytes: int) -> bytes:
        """Read num_bytes from the start of a page; a page past the end reads as zeros."""
        os.lseek(fd, page_no * PAGE_SIZE, os.SEEK_SET)
        chunk = os.read(fd, num_bytes)
        if len(chunk) == num_bytes:
            return chunk
        if not chunk:
            return bytes(num_bytes)
        raise InternalError("DiskManager.read_page error")

    def allocate_page(self, fd: int) -> int:
        """Hand out the next page number of a file."""
        if not 0 <= fd < self.MAX_FD:
            raise ValueError(f"file descriptor out of range: {fd}")
        with self._page_lock:
            page_no = self._fd2pageno.get(fd, 0)
            self._fd2pageno[fd] = page_no + 1
            return page_no

    def deallocate_page(self, page_no: int) -> None:
        """Release a page number; page numbers are never reused."""

    def set_fd2pageno(self, fd: int, start_page_no: int) -> None:
        """Make the file allocate page numbers from start_page_no onward."""
        with self._page_lock:
            self._fd2pageno[fd] = start_page_no

    def get_fd2pageno(self, fd: int) -> int:
        """Number of pages allocated so far in the file."""
        with self._page_lock:
            return self._fd2pageno.get(fd, 0)

    # Directories

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def create_dir(self, path: str) -> None:
        os.mkdir(path)

    def destroy_dir(self, path: str) -> None:
        shutil.rmtree(path)

    # Files

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def create_file(self, path: str) -> None:
        """Create an empty file; it must not exist yet."""
        if self.is_file(path):
            raise FileAlreadyExistsError(path)
        fd = os.open(path, os.O_CREAT | os.O_WRONLY, 0o644)
        os.close(fd)

    def destroy_file(self, path: str) -> None:
        """Remove a file that is not open."""
        if path in self._path2fd:
            raise InternalError("DiskManager.destroy_file: file is open")
        try:
            os.unlink(path)
        except FileNotFoundError:
            raise FileMissingError(path) from None

    def open_file(self, path: str) -> int:
        """Open a file for reading and writing and return its descriptor."""
        if path in self._path2fd:
            raise InternalError("DiskManager.open_file: file has been opened")
        try:
            fd = os.open(path, os.O_RDWR | getattr(os, "O_BINARY", 0))
        except FileNotFoundError:
            raise FileMissingError(path) from None
        self._path2fd[path] = fd
        self._fd2path[fd] = path
        return fd

    def close_file(self, fd: int) -> None:
        """Close a file opened by this manager."""
        path = self._fd2path.get(fd)
        if path is None:
            raise FileNotOpenError(fd)
        os.close(fd)
        del self._path2fd[path]
        del self._fd2path[fd]

    def get_file_size(self, path: str) -> int:
        """Size of the file in bytes, or -1 if it cannot be examined."""
        try:
            return os.stat(path).st_size
        except OSError:
            return -1

    def get_file_name(self, fd: int) -> str:
        try:
            return self._fd2path[fd]
        except KeyError:
            raise FileNotOpenError(fd) from None

    def get_file_fd(self, path: str) -> int:
        """Descriptor of the file, opening it if needed."""
        fd = self._path2fd.get(path)
        if fd is None:
            return self.open_file(path)
        return fd

    # Log

    def _ensure_log_open(self) -> None:
        if self.log_fd == -1:
            self.log_fd = self.open_file(self.log_file_name)

    def read_log(self, size: int, offset: int) -> Optional[bytes]:
        """Read up to size bytes of the log from offset; None if offset is past the end."""
        self._ensure_log_open()
        file_size = self.get_file_size(self.log_file_name)
        if offset > file_size:
            return None
        size = min(size, file_size - offset)
        if size == 0:
            return b""
        os.lseek(self.log_fd, offset, os.SEEK_SET)
        chunk = os.read(self.log_fd, size)
        if len(chunk) != size:
            raise InternalError("DiskManager.read_log error")
        return chunk

    def write_log(self, data: bytes) -> None:
        """Append data to the end of the log file."""
        self._ensure_log_open()
        os.lseek(self.log_fd, 0, os.SEEK_END)
        if os.write(self.log_fd, bytes(data)) != len(data):
            raise InternalError("DiskManager.write_log error")