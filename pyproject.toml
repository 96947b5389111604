[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pagecache"
version = "0.1.0"
description = "Building blocks of a log-structured page cache: settings, an exclusively locked data file, LRU, page table, fragment stack and IO buffer bookkeeping"
requires-python = ">=3.10"
keywords = ["pagecache", "log-structured", "storage", "lru", "database"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "portalocker",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pagecache"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
