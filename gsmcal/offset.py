"""Clock offset measurement against the FCCH bursts of a nearby base station."""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .fcch import GSM_RATE, FcchDetector
from .util import format_freq, mean_stddev

AVG_COUNT = 100
"""Number of burst offsets collected before the statistics are built."""

AVG_THRESHOLD = AVG_COUNT // 10
"""Number of extreme offsets dropped from each end before averaging."""

OFFSET_MAX = 40e3
"""Offsets at or beyond this magnitude in Hz are rejected as bogus."""

_FCCH_TONE = GSM_RATE / 4


def _capture_len(sample_rate: float) -> int:
    """Samples in 12 frames and one burst: always enough to hold an FCCH burst."""
    sps = sample_rate / GSM_RATE
    return math.ceil((12 * 8 * 156.25 + 156.25) * sps)


def _round_half_away(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


@dataclass(frozen=True)
class OffsetResult:
    """Statistics of the measured clock offsets."""

    avg_offset: float
    min_offset: float
    max_offset: float
    stddev: float
    overruns: int
    not_found: int
    total_ppm: float


def summarize_offsets(
    offsets: Iterable[float],
    overruns: int = 0,
    not_found: int = 0,
    freq_corr: int = 0,
    center_freq: float = 0.0,
    hz_adjust: int = 0,
) -> OffsetResult:
    """Build the trimmed statistics of a set of offsets in Hz.

    The lowest and highest tenth of the offsets are dropped before the mean,
    standard deviation and range are taken.
    """
    data = sorted(float(v) for v in offsets)
    if not data:
        raise ValueError("summarize_offsets requires at least one offset")
    trim = len(data) // 10
    kept = data[trim:len(data) - trim]
    avg_offset, stddev = mean_stddev(kept)
    if center_freq:
        total_ppm = freq_corr - ((avg_offset + hz_adjust) / center_freq) * 1e6
    else:
        total_ppm = math.nan
    return OffsetResult(
        avg_offset=avg_offset,
        min_offset=data[trim],
        max_offset=data[len(data) - trim - 1],
        stddev=stddev,
        overruns=overruns,
        not_found=not_found,
        total_ppm=total_ppm,
    )


def _fill_contiguous(source: Any, count: int) -> int:
    """Fill the source until ``count`` samples arrive without an overrun."""
    total = 0
    while True:
        overruns = source.fill(count)
        if not overruns:
            return total
        total += overruns
        source.flush()


def offset_detect(
    source: Any,
    hz_adjust: int = 0,
    tuner_error: float = 0.0,
    verbosity: int = 0,
) -> OffsetResult:
    """Measure the offset of ``source``'s clock from a tuned GSM carrier.

    Collects ``AVG_COUNT`` burst offsets and returns their statistics.
    Errors raised by the source while reading propagate.
    """
    detector = FcchDetector(source.sample_rate)
    s_len = _capture_len(source.sample_rate)
    buffer = source.buffer

    source.start()
    source.flush()

    offsets: list[float] = []
    overruns = 0
    not_found = 0
    while len(offsets) < AVG_COUNT:
        overruns += _fill_contiguous(source, s_len)

        tone, consumed = detector.scan(buffer.peek())
        if tone is not None:
            offset = tone - _FCCH_TONE - tuner_error
            if abs(offset) < OFFSET_MAX:
                offsets.append(offset)
                if verbosity > 0:
                    print(f"\toffset {len(offsets):3d}: {offset:.2f}", file=sys.stderr)
        else:
            not_found += 1

        buffer.purge(consumed)

    source.stop()

    return summarize_offsets(
        offsets,
        overruns=overruns,
        not_found=not_found,
        freq_corr=source.freq_corr,
        center_freq=source.center_freq,
        hz_adjust=hz_adjust,
    )


def format_report(result: OffsetResult) -> str:
    """Render the offset statistics as a text report."""
    lo = _round_half_away(result.min_offset)
    hi = _round_half_away(result.max_offset)
    spread = _round_half_away(result.max_offset - result.min_offset)
    lines = [
        "average\t\t[min, max]\t(range, stddev)",
        f"{format_freq(result.avg_offset)}\t\t[{lo}, {hi}]\t({spread}, {result.stddev:f})",
        f"overruns: {result.overruns}",
        f"not found: {result.not_found}",
        f"average absolute error: {result.total_ppm:.3f} ppm",
    ]
    return "\n".join(lines) + "\n"