import mmap
import threading

import numpy as np
import pytest

from gsmcal.circular_buffer import CircularBuffer


def _page_buffer(overwrite=False):
    return CircularBuffer(mmap.PAGESIZE, np.uint8, overwrite)


def test_zero_length_rejected():
    with pytest.raises(ValueError):
        CircularBuffer(0, np.complex64)


def test_zero_item_size_rejected():
    with pytest.raises(ValueError):
        CircularBuffer(16, np.dtype("V0"))


def test_capacity_rounded_to_pages():
    buf = CircularBuffer(10, np.complex64)
    assert buf.buf_len >= 10
    assert (buf.buf_len * np.dtype(np.complex64).itemsize) % mmap.PAGESIZE == 0


def test_exact_page_capacity_kept():
    buf = _page_buffer()
    assert buf.buf_len == mmap.PAGESIZE
    assert buf.space_available() == buf.buf_len
    assert buf.data_available() == 0


def test_write_read_round_trip():
    buf = CircularBuffer(100, np.complex64)
    items = (np.arange(50) + 1j * np.arange(50)).astype(np.complex64)
    assert buf.write(items) == 50
    assert buf.data_available() == 50
    out = buf.read(50)
    np.testing.assert_array_equal(out, items)
    assert buf.data_available() == 0
    assert buf.space_available() == buf.buf_len


def test_read_limited_to_available():
    buf = CircularBuffer(100, np.float32)
    buf.write(np.arange(5, dtype=np.float32))
    out = buf.read(1000)
    assert len(out) == 5


def test_write_without_overwrite_truncates():
    buf = _page_buffer()
    cap = buf.buf_len
    data = np.arange(cap + 7) % 256
    assert buf.write(data) == cap
    assert buf.space_available() == 0
    assert buf.write([1, 2, 3]) == 0
    np.testing.assert_array_equal(buf.peek(), data[:cap].astype(np.uint8))


def test_overwrite_keeps_newest_items():
    buf = _page_buffer(overwrite=True)
    cap = buf.buf_len
    data = (np.arange(cap + 5) % 256).astype(np.uint8)
    assert buf.write(data) == cap
    np.testing.assert_array_equal(buf.peek(), data[5:])


def test_overwrite_drops_oldest_when_full():
    buf = _page_buffer(overwrite=True)
    cap = buf.buf_len
    first = (np.arange(cap) % 200).astype(np.uint8)
    extra = np.full(5, 250, dtype=np.uint8)
    buf.write(first)
    assert buf.write(extra) == 5
    assert buf.data_available() == cap
    np.testing.assert_array_equal(buf.peek(), np.concatenate([first[5:], extra]))


def test_peek_is_contiguous_across_wrap():
    buf = _page_buffer()
    cap = buf.buf_len
    head = (np.arange(cap - 10) % 256).astype(np.uint8)
    buf.write(head)
    buf.read(cap - 20)
    tail = (np.arange(30) + 100).astype(np.uint8)
    assert buf.write(tail) == 30
    view = buf.peek()
    np.testing.assert_array_equal(view, np.concatenate([head[-10:], tail]))
    np.testing.assert_array_equal(buf.read(40), view)


def test_peek_does_not_consume():
    buf = CircularBuffer(64, np.float32)
    buf.write(np.ones(8, dtype=np.float32))
    first = buf.peek().copy()
    second = buf.peek()
    np.testing.assert_array_equal(first, second)
    assert buf.data_available() == 8


def test_purge_drops_items():
    buf = CircularBuffer(64, np.int16)
    buf.write(np.arange(10, dtype=np.int16))
    assert buf.purge(4) == 4
    np.testing.assert_array_equal(buf.peek(), np.arange(4, 10, dtype=np.int16))
    assert buf.purge(100) == 6
    assert buf.data_available() == 0


def test_poke_and_wrote():
    buf = CircularBuffer(64, np.complex64)
    space = buf.poke()
    assert len(space) == buf.buf_len
    values = np.array([1 + 2j, 3 - 4j, -5j], dtype=np.complex64)
    space[:3] = values
    buf.wrote(3)
    assert buf.data_available() == 3
    np.testing.assert_array_equal(buf.read(3), values)


def test_poke_and_wrote_across_wrap():
    buf = _page_buffer()
    cap = buf.buf_len
    buf.write((np.arange(cap - 4) % 256).astype(np.uint8))
    buf.purge(cap - 6)
    space = buf.poke()
    assert len(space) == buf.space_available()
    values = (np.arange(10) + 50).astype(np.uint8)
    space[:10] = values
    buf.wrote(10)
    np.testing.assert_array_equal(buf.peek()[-10:], values)
    buf.purge(2)
    np.testing.assert_array_equal(buf.read(10), values)


def test_flush_empties():
    buf = CircularBuffer(32, np.float32)
    buf.write(np.arange(10, dtype=np.float32))
    buf.flush()
    assert buf.data_available() == 0
    assert len(buf.peek()) == 0
    assert buf.space_available() == buf.buf_len


def test_context_manager_holds_lock():
    buf = CircularBuffer(32, np.float32)
    acquired = []

    def other():
        acquired.append(buf._lock.acquire(blocking=False))

    with buf as held:
        assert held is buf
        assert buf.write([1.0, 2.0]) == 2
        thread = threading.Thread(target=other)
        thread.start()
        thread.join()
    assert acquired == [False]
    np.testing.assert_array_equal(buf.read(2), np.array([1.0, 2.0], dtype=np.float32))