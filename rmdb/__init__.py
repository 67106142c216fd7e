"""Storage engine core: pages, LRU replacement, disk and buffer-pool management, record files, log records and SQL syntax trees."""

__version__ = "0.1.0"