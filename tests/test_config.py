import pytest

from pagecache.config import Config, open_config
from pagecache.errors import PagecacheError, UnsupportedError
from pagecache.settings import ConfigBuilder


@pytest.fixture
def builder(tmp_path):
    return ConfigBuilder(path=tmp_path / "store", async_io=False, io_buf_size=1000)


def test_open_creates_layout(builder):
    with open_config(builder) as config:
        assert (builder.path / "blobs").is_dir()
        assert builder.db_path().is_file()
        assert builder.config_path().is_file()
        assert config.builder == builder


def test_settings_fields_are_forwarded(builder):
    with open_config(builder) as config:
        assert config.io_buf_size == builder.io_buf_size
        assert config.path == builder.path
        assert config.blob_path(7) == builder.path / "blobs" / "7"
        assert config.thread_pool is None


def test_invalid_settings_rejected(builder):
    with pytest.raises(UnsupportedError):
        open_config(builder.replace(io_bufs=33))
    assert not builder.path.exists()


def test_parent_blobs_is_a_file(builder):
    builder.path.mkdir(parents=True)
    (builder.path / "blobs").write_bytes(b"x")
    with pytest.raises(UnsupportedError):
        open_config(builder)


def test_exclusive_lock(builder):
    first = open_config(builder)
    with pytest.raises(OSError):
        open_config(builder)
    first.close()
    second = open_config(builder)
    assert second.closed is False
    second.close()
    assert second.closed is True


def test_changed_io_buf_size_rejected(builder):
    open_config(builder).close()
    with pytest.raises(UnsupportedError):
        open_config(builder.replace(io_buf_size=2000))


def test_temporary_default_path_removed(tmp_path):
    config = open_config(ConfigBuilder(temporary=True, async_io=False))
    other = open_config(ConfigBuilder(temporary=True, async_io=False))
    path = config.path
    assert path.name.startswith("pagecache.tmp.")
    assert other.path != path
    assert path.exists()
    config.close()
    other.close()
    assert not path.exists()
    assert not other.path.exists()


def test_clone_keeps_resources_until_last_close(builder):
    config = open_config(builder.replace(temporary=True))
    twin = config.clone()
    config.close()
    assert builder.path.exists()
    assert twin.file.closed is False
    twin.close()
    assert twin.file.closed is True
    assert not builder.path.exists()


def test_clone_of_closed_rejected(builder):
    config = open_config(builder)
    config.close()
    with pytest.raises(ValueError):
        config.clone()


def test_global_error_first_wins(builder):
    with open_config(builder) as config:
        config.check_global_error()
        first = PagecacheError("first")
        config.set_global_error(first)
        config.set_global_error(PagecacheError("second"))
        with pytest.raises(PagecacheError) as info:
            config.check_global_error()
        assert info.value is first
        twin = config.clone()
        with pytest.raises(PagecacheError):
            twin.check_global_error()
        config.reset_global_error()
        twin.check_global_error()
        assert twin._shared.global_error is None
        twin.close()


def test_snapshot_prefix(builder, tmp_path):
    with open_config(builder) as config:
        assert config.snapshot_prefix() == builder.path
    snaps = tmp_path / "snaps"
    with open_config(builder.replace(snapshot_path=snaps)) as config:
        assert config.snapshot_prefix() == snaps


def test_get_snapshot_files(builder, tmp_path):
    snaps = tmp_path / "snaps"
    with open_config(builder.replace(snapshot_path=snaps)) as config:
        assert config.get_snapshot_files() == []
        assert snaps.is_dir()
        for name in ("snap.1", "snap.2", "snap.3.in___motion", "other"):
            (snaps / name).write_bytes(b"")
        assert config.get_snapshot_files() == [snaps / "snap.1", snaps / "snap.2"]


def test_truncate_corrupt(builder):
    with open_config(builder) as config:
        config.file.write(b"abcdef")
        config.truncate_corrupt(2)
        assert builder.db_path().read_bytes() == b"ab"


def test_async_pool_shut_down_on_close(builder):
    config = open_config(builder.replace(async_io=True, async_io_threads=2))
    pool = config.thread_pool
    assert pool.submit(lambda: 5).result() == 5
    config.close()
    with pytest.raises(RuntimeError):
        pool.submit(lambda: 5)


def test_close_is_idempotent(builder):
    config = open_config(builder)
    twin = config.clone()
    config.close()
    config.close()
    assert twin.file.closed is False
    twin.close()
    assert isinstance(twin, Config) and twin.file.closed is True