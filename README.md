# rmdb

The storage layers of a small relational database, in plain Python with no
dependencies outside the standard library.

## What it contains

- `rmdb.page` – `PageId` (a frozen, ordered dataclass of file descriptor and
  page number, with `as_int()`) and `Page`, a 4096-byte frame with `data`,
  `is_dirty`, `pin_count`, a `page_lsn` property and `reset_memory()`.
- `rmdb.replacer` – the abstract `Replacer` and `LRUReplacer`: `unpin()`
  makes a frame evictable, `pin()` withdraws it, `victim()` removes and
  returns the frame unpinned longest ago (or `None`), and `len()` counts
  the evictable frames.
- `rmdb.disk_manager` – `DiskManager`, which creates, opens, closes and
  removes files and directories, reads and writes pages, hands out page
  numbers per file (`allocate_page`, `set_fd2pageno`, `get_fd2pageno`) and
  appends to and reads from a log file (`write_log`, `read_log`; the file
  is `db.log` unless another name is given). Its errors derive from
  `DatabaseError`: `InternalError`, `FileAlreadyExistsError`,
  `FileMissingError` and `FileNotOpenError`.
- `rmdb.buffer_pool` – `BufferPoolManager`, which caches pages in a fixed
  number of frames: `fetch_page`, `new_page`, `unpin_page`, `flush_page`,
  `delete_page`, `flush_all_pages` and `mark_dirty`. `fetch_page` and
  `new_page` return `None` when every frame is pinned.
- `rmdb.bitmap` – slot bitmaps, most significant bit first: `set_bit`,
  `reset_bit`, `is_set`, `next_bit` and `first_bit`.
- `rmdb.record_defs` – `Rid`, the file header `RmFileHdr` and page header
  `RmPageHdr` (each with `to_bytes` / `from_bytes`), and `RmRecord` with
  `serialize` / `deserialize`.
- `rmdb.record_manager` – `RmManager` creates, opens, closes and removes
  table files of fixed-size records (1 to 512 bytes; other sizes raise
  `InvalidRecordSizeError`).
- `rmdb.record_file` – `RmFileHandle`, an open table file:
  `insert_record`, `insert_record_at`, `get_record`, `update_record`,
  `delete_record` and `is_record`, raising `RecordNotFoundError` or
  `PageNotExistError` for missing records and pages. `RmPageHandle` is its
  view of one page.
- `rmdb.record_scan` – `RmScan`, which walks the stored records in page and
  slot order, either with `next()` / `is_end()` / `rid()` or by iteration.
- `rmdb.log_records` – `LogType`, `LogRecord`, `BeginLogRecord` and
  `InsertLogRecord` with their binary layout (`serialize`, `deserialize`,
  `format`); `LogRecord.deserialize` picks the record class from the
  stored type. `LogBuffer` is an append-only byte buffer with `is_full`,
  `append` and `contents`.
- `rmdb.sql_ast` – dataclasses for SQL syntax-tree nodes (`CreateTable`,
  `InsertStmt`, `SelectStmt`, `BinaryExpr`, `Col`, literals, transaction
  statements and more) and the enums `SvType`, `SvCompOp`, `OrderByDir`
  and `JoinType`.
- `rmdb.ast_printer` – `format_tree()` renders a syntax tree as indented
  text and `print_tree()` writes that text to a stream (standard output by
  default).

## Installing

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from rmdb.disk_manager import DiskManager
from rmdb.buffer_pool import BufferPoolManager
from rmdb.record_manager import RmManager
from rmdb.record_scan import RmScan

disk = DiskManager()
pool = BufferPoolManager(64, disk)
records = RmManager(disk, pool)

records.create_file("people.tbl", 8)
table = records.open_file("people.tbl")

rid = table.insert_record(b"alice\0\0\0")
print(table.get_record(rid).data)

for rid in RmScan(table):
    print(rid)

records.close_file(table)
```

Printing a syntax tree:

```python
from rmdb.sql_ast import DropTable
from rmdb.ast_printer import format_tree

print(format_tree(DropTable("tb")), end="")
# DROP_TABLE
#   tb
```

## What it does not do

This is a set of storage building blocks, not a running database. There is
no SQL parser (syntax trees are built by hand), no query planning or
execution, no indexes, no catalogue of tables, no transactions or locking,
no log manager that assigns sequence numbers or flushes the log buffer, no
crash recovery, and no server or command-line program.