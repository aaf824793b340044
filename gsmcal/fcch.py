"""Frequency-correction burst (FCCH) detection with an adaptive filter.

A least-mean-squares predictor tracks the incoming samples. While the signal
is a pure tone the prediction error drops; a long enough run of low error is
then checked with an FFT. The run counts as a burst when the spectral peak
stands far enough above the mean.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

from .circular_buffer import CircularBuffer

GSM_RATE = 1625000.0 / 6.0
"""GSM symbol rate in symbols per second."""

FFT_SIZE = 1024
"""Length of the FFT used to locate the tone."""

_INTERP_FILTER_LEN = 21
_MIN_PM = 50  # peak-to-mean ratio needed to accept a tone
_X_BUF_LEN = 8192
_E_BUF_LEN = 1015808


def _ratio(num: float, den: float) -> float:
    """Divide like IEEE floats do, without raising on a zero denominator."""
    if den != 0:
        return num / den
    if num == 0 or math.isnan(num):
        return math.nan
    return math.copysign(math.inf, num)


def sinc(x: float) -> float:
    """Return sin(x)/x, or 1.0 for ``x`` within 0.0001 of zero."""
    if x <= -0.0001 or 0.0001 <= x:
        return math.sin(x) / x
    return 1.0


def _sinc_array(x: np.ndarray) -> np.ndarray:
    out = np.ones_like(x, dtype=np.float64)
    mask = np.abs(x) >= 0.0001
    out[mask] = np.sin(x[mask]) / x[mask]
    return out


def interpolate_point(s: Any, s_i: float) -> complex:
    """Return the band-limited value of ``s`` at fractional index ``s_i``.

    Uses a truncated sinc kernel of 21 taps centred on ``s_i``.
    """
    s = np.asarray(s)
    half = (_INTERP_FILTER_LEN - 1) // 2
    base = math.floor(s_i)
    start = max(int(base - half), 0)
    end = min(int(base + half + 1), len(s) - 1)
    if end < start:
        return 0j
    idx = np.arange(start, end + 1)
    weights = _sinc_array(math.pi * (idx - s_i))
    return complex(np.sum(s[idx] * weights))


def peak_detect(s: Any) -> tuple[float, complex, float]:
    """Locate the strongest point of ``s`` to a fraction of a sample.

    Returns ``(index, peak, avg_power)``: the fractional index of the peak,
    its interpolated value, and the mean power of the other samples.
    """
    s = np.asarray(s)
    n = len(s)
    if n < 2:
        raise ValueError("peak_detect needs at least two samples")

    powers = np.abs(s.astype(np.complex128)) ** 2
    sum_power = float(powers.sum())
    max_i = float(np.argmax(powers))

    early_i = max_i - 1.0 if max_i >= 1 else 0.0
    late_i = max_i + 1.0 if max_i + 1 < n else float(n - 1)

    incr = 0.5
    while incr > 1.0 / 1024.0:
        early_p = abs(interpolate_point(s, early_i)) ** 2
        late_p = abs(interpolate_point(s, late_i)) ** 2
        if early_p < late_p:
            early_i += incr
        elif early_p > late_p:
            early_i -= incr
        else:
            break
        incr /= 2.0
        late_i = early_i + 2.0

    max_i = early_i + 1.0
    peak = interpolate_point(s, max_i)
    avg_power = (sum_power - abs(peak) ** 2) / (n - 1)
    return max_i, peak, avg_power


class FcchDetector:
    """Detect FCCH bursts and measure their frequency.

    ``D`` is the prediction delay of the adaptive filter, ``p`` the weight of
    the newest error in its running power average and ``G`` the initial
    adaptation gain.
    """

    def __init__(
        self,
        sample_rate: float,
        D: int = 8,
        p: float = 1.0 / 32.0,
        G: float = 1.0 / 12.5,
        debug: bool = False,
    ):
        self.sample_rate = float(sample_rate)
        self.D = int(D)
        self.p = float(p)
        self.G = float(G)
        self.debug = bool(debug)
        self.error_power = 0.0

        self.fcch_burst_len = int(148.0 * (self.sample_rate / GSM_RATE))
        self.filter_delay = 8
        self._w_len = 2 * self.filter_delay + 1
        self._w = np.zeros(self._w_len, dtype=np.complex128)

        self._x_cb = CircularBuffer(_X_BUF_LEN, np.complex64, False)
        self._e_cb = CircularBuffer(_E_BUF_LEN, np.float32, False)

    def get_delay(self) -> int:
        """Return the delay of the error signal behind the input, in samples."""
        return self._w_len - 1 + self.D

    def filter_len(self) -> int:
        """Return the number of taps of the adaptive filter."""
        return self._w_len

    def update(self, samples: Any) -> int:
        """Queue ``samples`` for the adaptive filter; return how many were taken."""
        return self._x_cb.write(samples)

    def next_norm_error(self) -> float | None:
        """Advance the filter by one sample and return the normalised error.

        Returns None while fewer than ``get_delay() + 1`` samples are queued.
        """
        n = self._w_len - 1
        x = self._x_cb.peek()
        if n + self.D >= len(x):
            return None

        window = x[: self._w_len].astype(np.complex128)
        energy = float(np.vdot(window, window).real)
        if energy > 0 and self.G >= 2.0 / energy:
            self.G = 1.0 / energy

        reversed_window = window[::-1]
        y = np.vdot(self._w, reversed_window)
        e = complex(x[n + self.D]) - complex(y)

        self._w += self.G * e.conjugate() * reversed_window

        energy /= self._w_len
        self.error_power = (1.0 - self.p) * self.error_power + self.p * (abs(e) ** 2)

        self._x_cb.purge(1)
        return _ratio(self.error_power, energy)

    def freq_detect(self, samples: Any) -> tuple[float, float]:
        """Return the frequency of the strongest tone and its peak-to-mean ratio.

        At most ``FFT_SIZE`` samples are used; fewer are zero-padded.
        """
        s = np.asarray(samples, dtype=np.complex64).reshape(-1)[:FFT_SIZE]
        buf = np.zeros(FFT_SIZE, dtype=np.complex128)
        buf[: len(s)] = s
        spectrum = np.fft.fft(buf).astype(np.complex64)

        max_i, peak, avg_power = peak_detect(spectrum)
        pm = _ratio(abs(peak) ** 2, avg_power)
        return max_i * (self.sample_rate / FFT_SIZE), pm

    def _errors(self, samples: np.ndarray) -> tuple[list[float], int]:
        errors: list[float] = []
        pos = 0
        while pos < len(samples):
            space = self._x_cb.space_available()
            pos += self._x_cb.write(samples[pos:pos + space])
            while (error := self.next_norm_error()) is not None:
                errors.append(error)
        return errors, pos

    def scan(self, samples: Any) -> tuple[float | None, int]:
        """Search ``samples`` for a frequency-correction burst.

        Returns ``(offset, consumed)``: the tone frequency in Hz, or None when
        no burst was found, and the number of samples consumed.
        """
        sps = self.sample_rate / GSM_RATE
        min_fb_len = int(100 * sps)
        s = np.asarray(samples, dtype=np.complex64).reshape(-1)

        errors, consumed = self._errors(s)
        total = float(sum(errors))
        self._e_cb.write(np.asarray(errors, dtype=np.float32))

        a = self._e_cb.peek()
        e_count = len(a)
        pm = 0.0
        offset = 0.0
        if e_count:
            limit = 0.7 * (total / e_count)
            if self.debug:
                print(f"debug: error limit: {limit:.1f}")

            low = False
            count = 0
            for i, err in enumerate(a.tolist()):
                l_count = 0
                if err > limit:
                    if low:
                        l_count = count
                        low = False
                        count = 0
                elif not low:
                    low = True
                    count = 0
                count += 1

                pm = 0.0
                if l_count >= min_fb_len:
                    y_offset = i - l_count
                    y_len = min(l_count, self.fcch_burst_len)
                    offset, pm = self.freq_detect(s[y_offset:y_offset + y_len])
                    if self.debug:
                        print(f"debug: {l_count / sps:.0f}\t{pm:f}\t{offset:f}")
                    if pm > _MIN_PM:
                        break

        self._e_cb.flush()
        self._x_cb.flush()

        if not pm > _MIN_PM:
            return None, consumed

        if self.debug:
            print("debug: fcch_detector finished -----------------------------")
        return offset, consumed