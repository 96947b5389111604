import threading

import pytest

from pagecache.errors import PagecacheError
from pagecache.intervals import StableIntervals


def test_contiguous_interval_advances_stable():
    iv = StableIntervals(-1, 100)
    iv.mark_interval(0, 10)
    assert iv.stable == 9
    assert iv.pending == []


def test_out_of_order_intervals_wait_for_gap():
    iv = StableIntervals(-1, 100)
    iv.mark_interval(10, 5)
    assert iv.stable == -1
    assert iv.pending == [(10, 14)]
    iv.mark_interval(0, 10)
    assert iv.stable == 14
    assert iv.pending == []


def test_many_out_of_order_intervals_merge():
    iv = StableIntervals(-1, 1000)
    for start in (40, 30, 20, 10):
        iv.mark_interval(start, 10)
    assert iv.stable == -1
    assert len(iv.pending) == 4
    iv.mark_interval(0, 10)
    assert iv.stable == 49


def test_empty_interval_rejected():
    iv = StableIntervals(-1, 100)
    with pytest.raises(ValueError):
        iv.mark_interval(0, 0)


def test_interval_below_stable_rejected():
    iv = StableIntervals(-1, 100)
    iv.mark_interval(0, 10)
    with pytest.raises(PagecacheError):
        iv.mark_interval(5, 3)
    assert iv.stable == 9
    assert iv.pending == []


def test_first_segment_not_deactivated_before_crossing():
    iv = StableIntervals(-1, 100)
    assert iv.mark_interval(0, 100) == []
    assert iv.stable == 99


def test_segments_crossed_are_returned():
    iv = StableIntervals(-1, 100)
    iv.mark_interval(0, 100)
    assert iv.mark_interval(100, 50) == [0]
    crossed = iv.mark_interval(150, 200)
    assert crossed == [100, 200]
    assert all(lsn % 100 == 0 for lsn in crossed)


def test_no_segments_while_gap_remains():
    iv = StableIntervals(-1, 100)
    assert iv.mark_interval(200, 100) == []
    assert iv.stable == -1


def test_wait_until_stable_times_out():
    iv = StableIntervals(-1, 100)
    assert iv.wait_until_stable(5, timeout=0.01) is False


def test_wait_until_stable_already_reached():
    iv = StableIntervals(-1, 100)
    iv.mark_interval(0, 10)
    assert iv.wait_until_stable(9, timeout=0) is True


def test_wait_until_stable_woken_by_other_thread():
    iv = StableIntervals(-1, 100)
    results = []

    def waiter():
        results.append(iv.wait_until_stable(20, timeout=5))

    t = threading.Thread(target=waiter)
    t.start()
    iv.mark_interval(0, 10)
    iv.mark_interval(10, 11)
    t.join()
    assert results == [True]
    assert iv.stable == 20


def test_bump_max_reserved_is_monotonic():
    iv = StableIntervals(-1, 100)
    assert iv.max_reserved == -1
    assert iv.bump_max_reserved(50) == 50
    assert iv.bump_max_reserved(20) == 50
    assert iv.max_reserved == 50


def test_bump_max_header_stable_is_monotonic():
    iv = StableIntervals(7, 100)
    assert iv.max_header_stable == 7
    assert iv.bump_max_header_stable(3) == 7
    assert iv.bump_max_header_stable(30) == 30
    assert iv.max_header_stable == 30


def test_invalid_io_buf_size():
    with pytest.raises(ValueError):
        StableIntervals(-1, 0)