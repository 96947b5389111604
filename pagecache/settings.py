"""Builder for page cache settings and their persisted copy on disk."""

from __future__ import annotations

import dataclasses
import enum
import json
import logging
import math
import os
import struct
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from .errors import UnsupportedError

logger = logging.getLogger(__name__)

DEFAULT_PATH = "default.sled"

# Whether this build can compress data; compression is not available.
COMPRESSION_ENABLED = False

MergeOperator = Callable[[bytes, Optional[bytes], bytes], Optional[bytes]]

_CRC = struct.Struct("<I")


class SegmentMode(enum.Enum):
    """How file segments are selected for reuse."""

    GC = "gc"
    LINEAR = "linear"


@dataclass(frozen=True)
class _UnresolvedMergeOperator:
    """Stands in for a merge operator that was recorded on disk by name."""

    name: str

    def __call__(self, key: bytes, old_value: Optional[bytes], merged: bytes) -> Optional[bytes]:
        raise UnsupportedError(
            f"merge operator {self.name!r} was loaded from disk and cannot be called"
        )


def _merge_operator_name(mo: Any) -> str:
    if isinstance(mo, _UnresolvedMergeOperator):
        return mo.name
    module = getattr(mo, "__module__", None) or type(mo).__module__
    qualname = getattr(mo, "__qualname__", None) or type(mo).__qualname__
    return f"{module}.{qualname}"


def _supported(cond: bool, msg: str) -> None:
    if not cond:
        raise UnsupportedError(msg)


@dataclass(frozen=True)
class ConfigBuilder:
    """Top-level settings of the system; change fields with ``replace``."""

    blink_node_split_size: int = 4096
    blink_node_merge_ratio: int = 4
    cache_bits: int = 8  # 256 shards
    cache_capacity: int = 1024 * 1024 * 1024
    flush_every_ms: Optional[int] = 500
    io_bufs: int = 3
    io_buf_size: int = 2 << 22
    page_consolidation_threshold: int = 10
    path: Path = Path(DEFAULT_PATH)
    read_only: bool = False
    segment_cleanup_threshold: float = 0.40
    segment_cleanup_skew: int = 10
    segment_mode: SegmentMode = SegmentMode.GC
    snapshot_after_ops: int = 1_000_000
    snapshot_path: Optional[Path] = None
    temporary: bool = False
    use_compression: bool = False
    compression_factor: int = 5
    merge_operator: Optional[MergeOperator] = field(default=None, compare=False)
    print_profile_on_drop: bool = False
    idgen_persist_interval: int = 1_000_000
    async_io: bool = True
    async_io_threads: int = 3

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        if self.snapshot_path is not None:
            object.__setattr__(self, "snapshot_path", Path(self.snapshot_path))

    def replace(self, **kwargs: Any) -> "ConfigBuilder":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **kwargs)

    def validate(self) -> None:
        """Raise UnsupportedError if any option is outside its advised range."""
        _supported(self.io_bufs <= 32, "too many configured io_bufs. please make <= 32")
        _supported(
            self.io_buf_size >= 100,
            "io_buf_size should be hundreds of kb at minimum, and we won't start if below 100",
        )
        _supported(self.io_buf_size <= 1 << 24, "io_buf_size should be <= 16mb")
        _supported(
            self.page_consolidation_threshold >= 1,
            "must consolidate pages after a non-zero number of updates",
        )
        _supported(
            self.page_consolidation_threshold < 1 << 20,
            "must consolidate pages after fewer than 1 million updates",
        )
        _supported(
            self.cache_bits <= 20,
            "# LRU shards = 2^cache_bits. set cache_bits to 20 or less.",
        )
        threshold = self.segment_cleanup_threshold
        _supported(
            not math.isnan(threshold) and threshold >= 0.01,
            "segment_cleanup_threshold must be >= 1%",
        )
        _supported(
            self.segment_cleanup_skew < 99,
            "segment_cleanup_skew cannot be greater than 99%",
        )
        if self.use_compression:
            _supported(COMPRESSION_ENABLED, "the compression feature must be enabled")
        _supported(self.compression_factor >= 1, "compression_factor must be >= 1")
        _supported(self.compression_factor <= 22, "compression_factor must be <= 22")
        _supported(self.idgen_persist_interval > 0, "idgen_persist_interval must be above 0")

    def blob_path(self, lsn: int) -> Path:
        """Location of the blob written at ``lsn``."""
        return self.path / "blobs" / str(lsn)

    def db_path(self) -> Path:
        """Location of the log file."""
        return self.path / "db"

    def config_path(self) -> Path:
        """Location of the persisted settings."""
        return self.path / "conf"

    def to_bytes(self) -> bytes:
        """Serialize the settings, without a checksum."""
        record: Dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, SegmentMode):
                value = value.value
            elif f.name == "merge_operator" and value is not None:
                value = _merge_operator_name(value)
            record[f.name] = value
        return json.dumps(record, sort_keys=True).encode("utf-8")


def decode_settings(data: bytes) -> ConfigBuilder:
    """Rebuild settings from ``ConfigBuilder.to_bytes`` output."""
    try:
        record = json.loads(bytes(data).decode("utf-8"))
        if not isinstance(record, dict):
            raise ValueError("settings record is not a mapping")
        kwargs: Dict[str, Any] = {}
        for f in dataclasses.fields(ConfigBuilder):
            value = record[f.name]
            if f.name == "segment_mode":
                value = SegmentMode(value)
            elif f.name == "merge_operator" and value is not None:
                value = _UnresolvedMergeOperator(str(value))
            kwargs[f.name] = value
        return ConfigBuilder(**kwargs)
    except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
        raise UnsupportedError(f"could not decode settings: {e}") from e


def read_config(builder: ConfigBuilder) -> Optional[ConfigBuilder]:
    """Load the settings persisted for ``builder.path``, or None if absent or unreadable."""
    path = builder.config_path()
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        return None
    with f:
        if os.fstat(f.fileno()).st_size <= 8:
            logger.warning("empty/corrupt configuration file found")
            return None
        buf = f.read()

    body, crc_bytes = buf[:-4], buf[-4:]
    (crc_expected,) = _CRC.unpack(crc_bytes)
    if crc_expected != zlib.crc32(body):
        logger.warning(
            "crc for settings file %s failed! can't verify that config is safe", path
        )
    try:
        return decode_settings(body)
    except UnsupportedError:
        return None


def write_config(builder: ConfigBuilder) -> None:
    """Persist the settings followed by their CRC32."""
    data = builder.to_bytes()
    with open(builder.config_path(), "wb") as f:
        f.write(data)
        f.write(_CRC.pack(zlib.crc32(data)))
        f.flush()
        os.fsync(f.fileno())


def verify_config_changes_ok(builder: ConfigBuilder) -> None:
    """Refuse settings that conflict with those persisted; persist them if none are."""
    old = read_config(builder)
    if old is None:
        write_config(builder)
        return

    if old.merge_operator is not None:
        _supported(
            builder.merge_operator is not None,
            "this system was previously opened with a merge operator. must "
            "supply one FOREVER after choosing to do so once",
        )
    _supported(
        builder.use_compression == old.use_compression,
        "cannot change compression values across restarts. old value of "
        f"use_compression loaded from disk: {old.use_compression}, "
        f"currently set value: {builder.use_compression}.",
    )
    _supported(
        builder.io_buf_size == old.io_buf_size,
        "cannot change the io buffer size across restarts. please change it "
        f"back to {old.io_buf_size}",
    )


SettingsPath = Union[str, "os.PathLike[str]"]