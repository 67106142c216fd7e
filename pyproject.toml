[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rmdb"
version = "0.1.0"
description = "Storage engine core for a small relational database: disk and buffer-pool management, LRU replacement, record files, log records and SQL syntax trees."
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "storage", "buffer pool", "lru", "record manager", "write-ahead log", "sql", "syntax tree"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rmdb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
