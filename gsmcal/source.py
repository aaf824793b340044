"""Sources of complex baseband samples from 8-bit interleaved I/Q streams."""

from __future__ import annotations

import contextlib
import os
import sys
import threading
from typing import Any, BinaryIO, Protocol

import numpy as np

from .circular_buffer import CircularBuffer

USB_PACKET_SIZE = 2 * 16384
"""Bytes requested from the reader per transfer."""

FLUSH_SIZE = 512
"""Samples discarded per flush step."""

FLUSH_COUNT = 10
"""Default number of flush steps."""

CB_LEN = 16 * 16384
"""Capacity of the sample buffer, in complex samples."""

DEFAULT_SAMPLE_RATE = 270833.002142
"""Sample rate of the stream in samples per second."""


class _ByteReader(Protocol):
    def read(self, size: int) -> bytes: ...


def iq_bytes_to_complex(data: bytes | bytearray | memoryview) -> np.ndarray:
    """Convert unsigned 8-bit interleaved I/Q bytes to complex64 samples.

    Each byte is centred on 127 and scaled by 256. A trailing odd byte is
    ignored.
    """
    raw = np.frombuffer(bytes(data), dtype=np.uint8)
    count = len(raw) // 2
    pairs = raw[: 2 * count].astype(np.float32)
    scaled = (pairs - 127.0) * 256.0
    out = np.empty(count, dtype=np.complex64)
    out.real = scaled[0::2]
    out.imag = scaled[1::2]
    return out


class FileReader:
    """Read raw 8-bit I/Q bytes from a recording on disk."""

    def __init__(self, path: str | os.PathLike[str]):
        self.path = os.fspath(path)
        self._file: BinaryIO = open(self.path, "rb")

    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes; an empty result means end of file."""
        return self._file.read(size)

    def close(self) -> None:
        """Close the underlying file."""
        self._file.close()

    def __enter__(self) -> FileReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class SampleSource:
    """Buffered, tunable source of complex samples read from a byte reader.

    ``reader`` is any object with a ``read(size)`` method returning bytes of
    interleaved unsigned 8-bit I/Q data.
    """

    def __init__(self, reader: _ByteReader, sample_rate: float = DEFAULT_SAMPLE_RATE):
        self.reader = reader
        self.sample_rate = float(sample_rate)
        self.center_freq = 0.0
        self.freq_corr = 0
        self.gain: float | None = None
        self.dithering = True
        self.running = False
        self.buffer = CircularBuffer(CB_LEN, np.complex64, False)
        self._lock = threading.Lock()

    def tune(self, freq: float) -> bool:
        """Set the centre frequency, truncated to whole hertz."""
        with self._lock:
            if freq != self.center_freq:
                self.center_freq = float(int(freq))
        return True

    def set_freq_correction(self, ppm: int) -> int:
        """Record the frequency correction in parts per million."""
        self.freq_corr = int(ppm)
        return 0

    def set_gain(self, gain: float) -> bool:
        """Record a manual gain setting."""
        print(f"Setting gain: {gain / 10:.1f} dB", file=sys.stderr)
        self.gain = float(gain)
        return True

    def set_dithering(self, enable: bool) -> bool:
        """Enable or disable dithering."""
        self.dithering = bool(enable)
        return True

    def start(self) -> None:
        """Mark the source as streaming."""
        with self._lock:
            self.running = True

    def stop(self) -> None:
        """Mark the source as stopped."""
        with self._lock:
            self.running = False

    def fill(self, num_samples: int) -> int:
        """Read until at least ``num_samples`` are buffered or the buffer is full.

        Returns the number of overruns (0 or 1). Raises EOFError when the
        reader runs dry.
        """
        buf = self.buffer
        while buf.data_available() < num_samples and buf.space_available() > 0:
            with self._lock:
                data = self.reader.read(USB_PACKET_SIZE)
            if not data:
                raise EOFError("sample stream exhausted")
            samples = iq_bytes_to_complex(data)
            view = buf.poke()
            n = min(len(samples), len(view))
            view[:n] = samples[:n]
            buf.wrote(n)

        if buf.space_available() == 0:
            print("warning: local overrun", file=sys.stderr)
            return 1
        return 0

    def read(self, num_samples: int) -> np.ndarray:
        """Fill as needed, then remove and return up to ``num_samples`` samples."""
        self.fill(num_samples)
        return self.buffer.read(num_samples)

    def flush(self, flush_count: int = FLUSH_COUNT) -> None:
        """Discard buffered samples and a further run of fresh ones."""
        self.buffer.flush()
        with contextlib.suppress(EOFError):
            self.fill(flush_count * FLUSH_SIZE)
        self.buffer.flush()