"""A finalized, shareable configuration holding the open log file."""

from __future__ import annotations

import itertools
import logging
import os
import shutil
import sys
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, List, Optional

import portalocker

from .errors import UnsupportedError
from .settings import DEFAULT_PATH, ConfigBuilder, verify_config_changes_ok

logger = logging.getLogger(__name__)

_SALT_COUNTER = itertools.count()


def _temporary_path() -> Path:
    salt = (os.getpid() << 32) + next(_SALT_COUNTER)
    shm = Path("/dev/shm")
    if sys.platform.startswith("linux") and shm.is_dir():
        base = shm
    else:
        base = Path(tempfile.gettempdir())
    return base / f"pagecache.tmp.{salt}"


def _open_file(builder: ConfigBuilder) -> BinaryIO:
    path = builder.db_path()
    blob_dir = path.parent / "blobs"

    if blob_dir.is_file():
        raise UnsupportedError(
            f"provided parent directory is a file, not a directory: {blob_dir}"
        )
    blob_dir.mkdir(parents=True, exist_ok=True)

    verify_config_changes_ok(builder)

    flags = os.O_RDWR | os.O_CREAT | getattr(os, "O_BINARY", 0)
    fd = os.open(path, flags, 0o644)
    file = os.fdopen(fd, "r+b", buffering=0)
    try:
        portalocker.lock(file, portalocker.LOCK_EX | portalocker.LOCK_NB)
    except portalocker.exceptions.LockException as e:
        file.close()
        raise OSError("could not acquire exclusive file lock") from e
    return file


@dataclass(eq=False)
class _Shared:
    builder: ConfigBuilder
    file: BinaryIO
    thread_pool: Optional[ThreadPoolExecutor]
    handles: int = 1
    global_error: Optional[BaseException] = None
    lock: threading.Lock = field(default_factory=threading.Lock)


class Config:
    """Finalized settings plus the resources opened for them.

    Settings fields are readable directly on the Config. Handles made with
    ``clone`` share the same file and thread pool; the resources are
    released, and temporary storage removed, when the last handle closes.
    """

    def __init__(self, shared: _Shared) -> None:
        self._shared = shared
        self._closed = False

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._shared.builder, name)

    @property
    def builder(self) -> ConfigBuilder:
        """The settings this Config was opened with."""
        return self._shared.builder

    @property
    def file(self) -> BinaryIO:
        """The exclusively locked log file."""
        return self._shared.file

    @property
    def thread_pool(self) -> Optional[ThreadPoolExecutor]:
        """Pool for background IO, or None when IO is synchronous."""
        return self._shared.thread_pool

    @property
    def closed(self) -> bool:
        return self._closed

    def check_global_error(self) -> None:
        """Raise the error recorded by an asynchronous IO operation, if any."""
        error = self._shared.global_error
        if error is not None:
            raise error

    def set_global_error(self, error: BaseException) -> None:
        """Record an error unless one is already recorded."""
        with self._shared.lock:
            if self._shared.global_error is None:
                self._shared.global_error = error

    def reset_global_error(self) -> None:
        """Forget any recorded error."""
        with self._shared.lock:
            self._shared.global_error = None

    def snapshot_prefix(self) -> Path:
        """Directory prefix under which snapshot files live."""
        snapshot_path = self._shared.builder.snapshot_path
        return snapshot_path if snapshot_path is not None else self._shared.builder.path

    def get_snapshot_files(self) -> List[Path]:
        """Absolute paths of the snapshot files, excluding ones being written."""
        prefix = self.snapshot_prefix() / "snap."
        abs_prefix = prefix if prefix.is_absolute() else Path.cwd() / prefix
        prefix_str = str(abs_prefix)

        snap_dir = abs_prefix.parent
        snap_dir.mkdir(parents=True, exist_ok=True)

        found = []
        for entry in snap_dir.iterdir():
            entry_str = str(entry)
            if entry_str.startswith(prefix_str) and not entry_str.endswith(".in___motion"):
                found.append(entry)
        return sorted(found)

    def truncate_corrupt(self, new_len: int) -> None:
        """Truncate the log file, for corruption testing."""
        self._shared.file.truncate(new_len)

    def clone(self) -> "Config":
        """Return another handle sharing this Config's resources."""
        if self._closed:
            raise ValueError("cannot clone a closed Config")
        with self._shared.lock:
            self._shared.handles += 1
        return Config(self._shared)

    def close(self) -> None:
        """Release this handle; the last one releases the shared resources."""
        if self._closed:
            return
        self._closed = True
        shared = self._shared
        with shared.lock:
            shared.handles -= 1
            last = shared.handles == 0
        if not last:
            return

        if shared.thread_pool is not None:
            logger.debug("dropping threadpool and waiting for it to drain")
            shared.thread_pool.shutdown(wait=True)
            logger.debug("threadpool drained")

        shared.file.close()

        if shared.builder.temporary:
            logger.debug("removing temporary storage file %s", shared.builder.path)
            shutil.rmtree(shared.builder.path, ignore_errors=True)

    def __enter__(self) -> "Config":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Config(path={str(self._shared.builder.path)!r}, closed={self._closed})"


def open_config(builder: ConfigBuilder) -> Config:
    """Validate settings, prepare the storage directory and open the log file.

    Raises UnsupportedError for invalid or conflicting settings and OSError
    when the log file cannot be opened or locked.
    """
    builder.validate()

    if builder.temporary and builder.path == Path(DEFAULT_PATH):
        builder = builder.replace(path=_temporary_path())

    file = _open_file(builder)

    thread_pool = None
    if builder.async_io:
        thread_pool = ThreadPoolExecutor(
            max_workers=builder.async_io_threads or None,
            thread_name_prefix=f"sled_io_{builder.path}",
        )

    return Config(_Shared(builder, file, thread_pool))