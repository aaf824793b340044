"""A thread-safe ring buffer of fixed-size items that always reads contiguously."""

from __future__ import annotations

import mmap
import threading
from typing import Any

import numpy as np


class CircularBuffer:
    """Ring buffer of numpy items whose readable and writable regions are contiguous.

    The storage is held twice, back to back, so that :meth:`peek` and
    :meth:`poke` can hand out one contiguous view even when the data wraps
    past the end of the ring.  The capacity is rounded up so that it fills
    whole memory pages; the resulting item count is ``buf_len``.

    Using the buffer as a context manager holds its lock; the lock is
    re-entrant, so the buffer's own methods may be called inside the block.
    """

    def __init__(self, buf_len: int, dtype: Any = np.uint8, overwrite: bool = False):
        if not buf_len:
            raise ValueError("circular_buffer: buffer len is 0")
        self.dtype = np.dtype(dtype)
        item_size = self.dtype.itemsize
        if not item_size:
            raise ValueError("circular_buffer: item size is 0")

        size = item_size * buf_len
        pagesize = mmap.PAGESIZE
        if size % pagesize:
            size = (size + pagesize) & ~(pagesize - 1)
        self.buf_len = size // item_size

        self.overwrite = bool(overwrite)
        self._storage = np.zeros(2 * self.buf_len, dtype=self.dtype)
        self._r = 0
        self._w = 0
        self._read = 0
        self._written = 0
        self._lock = threading.RLock()

    def _store(self, start: int, values: np.ndarray) -> None:
        """Write ``values`` at ring position ``start`` into both mirrored halves."""
        if not len(values):
            return
        idx = (start + np.arange(len(values))) % self.buf_len
        self._storage[idx] = values
        self._storage[idx + self.buf_len] = values

    def _reset(self) -> None:
        self._r = self._w = 0
        self._read = self._written = 0

    def _consume(self, count: int) -> int:
        n = min(count, self._written - self._read)
        self._read += n
        if self._read == self._written:
            self._reset()
        else:
            self._r = (self._r + n) % self.buf_len
        return n

    def data_available(self) -> int:
        """Return the number of items ready to be read."""
        with self._lock:
            return self._written - self._read

    def space_available(self) -> int:
        """Return the number of items that can be written without loss."""
        with self._lock:
            return self.buf_len - (self._written - self._read)

    def read(self, count: int) -> np.ndarray:
        """Remove and return up to ``count`` items."""
        with self._lock:
            n = min(count, self._written - self._read)
            out = self._storage[self._r:self._r + n].copy()
            self._consume(n)
            return out

    def peek(self) -> np.ndarray:
        """Return a contiguous view of all readable items without consuming them.

        The view shares memory with the buffer; do not read while using it.
        """
        with self._lock:
            n = self._written - self._read
            return self._storage[self._r:self._r + n]

    def poke(self) -> np.ndarray:
        """Return a writable contiguous view of the free space.

        After filling part of it, call :meth:`wrote` with the number of items.
        """
        with self._lock:
            n = self.buf_len - (self._written - self._read)
            return self._storage[self._w:self._w + n]

    def wrote(self, count: int) -> None:
        """Commit ``count`` items written through the view from :meth:`poke`."""
        with self._lock:
            values = self._storage[self._w:self._w + count].copy()
            self._store(self._w, values)
            self._written += count
            self._w = (self._w + count) % self.buf_len

    def purge(self, count: int) -> int:
        """Discard up to ``count`` readable items; return how many were dropped."""
        with self._lock:
            return self._consume(count)

    def write(self, items: Any) -> int:
        """Append ``items``; return how many were stored.

        Without overwrite, only as many items as fit are stored.  With
        overwrite, the newest items are kept and the oldest are dropped.
        """
        values = np.asarray(items, dtype=self.dtype).reshape(-1)
        with self._lock:
            if self.overwrite:
                if len(values) > self.buf_len:
                    values = values[len(values) - self.buf_len:]
                n = len(values)
            else:
                n = min(len(values), self.buf_len - (self._written - self._read))
                values = values[:n]
            self._store(self._w, values)
            self._written += n
            self._w = (self._w + n) % self.buf_len
            if self._written > self.buf_len + self._read:
                self._read = self._written - self.buf_len
                self._r = self._w
            return n

    def flush(self) -> None:
        """Discard everything in the buffer."""
        with self._lock:
            self._reset()

    def __enter__(self) -> CircularBuffer:
        self._lock.acquire()
        return self

    def __exit__(self, *args: Any) -> None:
        self._lock.release()