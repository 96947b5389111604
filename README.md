# pagecache

Building blocks for a log-structured, crash-safe page cache. The package
provides the settings, the locked data file, the caches and tables, and the
bookkeeping that tracks which parts of the log are already on disk.

## Modules

- `pagecache.settings`: `ConfigBuilder` is a frozen dataclass of options. It
  has `replace(**kwargs)` and `validate()`, and it gives the paths
  `blob_path(lsn)`, `db_path()` and `config_path()`. The module also holds
  `SegmentMode` and the settings codec (`ConfigBuilder.to_bytes`,
  `decode_settings`). `read_config` and `write_config` handle the settings
  file, which ends in a CRC32. `verify_config_changes_ok` refuses a restart
  that changes `use_compression` or `io_buf_size`, or that drops a merge
  operator used before. If no settings are stored yet, it writes them.
- `pagecache.config`: `open_config(builder)` validates the settings. For
  `temporary` settings left at the default path, it picks a fresh scratch
  directory. It then creates the `blobs` directory, checks the settings
  against those stored on disk, and opens the `db` file under an exclusive
  non-blocking lock. When `async_io` is set it also starts a thread pool. It
  returns a `Config`, which exposes the settings fields as attributes and
  provides `file`, `thread_pool`, `check_global_error` / `set_global_error`
  / `reset_global_error`, `snapshot_prefix`, `get_snapshot_files` and
  `truncate_corrupt`. A `Config` is a context manager. `clone()` gives
  another handle to the same resources. When the last handle is closed, the
  pool shuts down, the file is closed, and temporary storage is removed.
- `pagecache.diskptr`: `DiskPtr`, a pointer to inline log data or to an
  off-log blob, with `new_inline` and `new_blob`.
- `pagecache.header`: bit operations on the 64-bit IO buffer header:
  `is_sealed`, `mk_sealed`, `n_writers`, `incr_writers`, `decr_writers`,
  `offset`, `bump_offset`, `salt` and `bump_salt`. It also has
  `valid_entry_offset`.
- `pagecache.intervals`: `StableIntervals` keeps track of the highest
  contiguous stable log sequence number while buffers reach disk out of
  order. It provides `mark_interval`, `wait_until_stable`,
  `bump_max_reserved` and `bump_max_header_stable`.
- `pagecache.lru`, `pagecache.dll`: a sharded LRU (`Lru`) built on a doubly
  linked list (`Dll`).
- `pagecache.pagetable`: `PageTable`, a two-level table keyed by page id. Its
  `cas` compares by identity and raises `CompareAndSwapError` on a mismatch.
- `pagecache.stack`: `Stack` of page fragments with `push`, `pop`, `cap`,
  `cap_node` and `cas`, which raise `StackCasError` on a mismatch. The module
  also has `node_from_frag_vec` and `iter_from`.
- `pagecache.vecset`: `VecSet`, a small sorted set.
- `pagecache.constants`: on-disk format constants such as `MSG_HEADER_LEN`
  and `SEG_HEADER_LEN`.

## Installation

```
pip install .
```

## Examples

```python
from pagecache.settings import ConfigBuilder
from pagecache.config import open_config

builder = ConfigBuilder().replace(path="/tmp/example.db", temporary=True, async_io=False)
with open_config(builder) as config:
    print(config.io_buf_size, config.db_path())
# temporary storage is removed once the last handle is closed
```

```python
from pagecache.lru import Lru

lru = Lru(cache_capacity=1024, cache_bits=0)
lru.accessed(pid=1, size=600)   # []
lru.accessed(pid=2, size=600)   # [1]: page 1 should be paged out
```

```python
from pagecache.intervals import StableIntervals

intervals = StableIntervals(stable=-1, io_buf_size=100)
intervals.mark_interval(100, 50)   # [] -- a gap remains below lsn 100
intervals.mark_interval(0, 100)    # [0] -- segment 0 is now fully stable
intervals.stable                   # 149
```

## What it does not do

This package contains building blocks only. It has no key-value tree and no
code that writes or reads log messages or segments. It has no blob file
storage, no snapshots and no recovery after a restart. It also has no
command-line program. `Config` opens and locks the data file, but nothing in
the package writes records into it.

## Errors

Every error the package defines is a subclass of
`pagecache.errors.PagecacheError`. Settings that cannot be accepted raise
`UnsupportedError`, and `CorruptionError` is provided for data that fails an
integrity check. A data file that is already locked raises `OSError`.

## Running the tests

```
pip install ".[test]"
pytest
```