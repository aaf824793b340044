"""Scan a GSM band for channels that carry a base station's beacon (C0)."""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import numpy as np

from .arfcn import Band, arfcn_to_freq, band_name, channels, first_chan, next_chan
from .fcch import GSM_RATE, FcchDetector
from .util import format_freq, mean_stddev

ERROR_DETECT_OFFSET_MAX = 40e3
"""Offsets at or beyond this magnitude in Hz are not counted as detections."""

NOTFOUND_MAX = 10
"""Failed scans of one channel before moving to the next."""

_FCCH_TONE = GSM_RATE / 4


@dataclass(frozen=True)
class ChannelHit:
    """A channel on which an FCCH burst was found."""

    chan: int
    freq: float
    offset: float
    power: float


def _capture_len(sample_rate: float) -> int:
    sps = sample_rate / GSM_RATE
    return math.ceil((12 * 8 * 156.25 + 156.25) * sps)


def _fill_clean(source: Any, count: int) -> None:
    while True:
        source.flush()
        if not source.fill(count):
            return


def _tune(source: Any, freq: float) -> None:
    if not source.tune(freq):
        raise RuntimeError(f"failed to tune to {freq:.0f} Hz")


def power_threshold(powers: Iterable[float]) -> float:
    """Return the mean of the quietest 60% of channel powers.

    The noisiest channels are left out so that heavy traffic in part of a
    band does not lift the threshold.
    """
    data = sorted(float(p) for p in powers)
    count = len(data) - 4 * len(data) // 10
    return mean_stddev(data[:count])[0]


def c0_detect(source: Any, band: int, verbosity: int = 0) -> list[ChannelHit]:
    """Find the channels of ``band`` on which a base station transmits.

    Channels whose power is above :func:`power_threshold` are searched for
    FCCH bursts. Errors raised by the source while reading propagate.
    """
    if band == Band.NOT_DEFINED:
        raise ValueError("c0_detect: band not defined")
    band = Band(band)

    detector = FcchDetector(source.sample_rate)
    frames_len = _capture_len(source.sample_rate)
    buffer = source.buffer

    if verbosity > 2:
        print("calculate power in each channel:", file=sys.stderr)
    source.start()
    source.flush()

    power: dict[int, float] = {}
    for chan in channels(band):
        freq, _ = arfcn_to_freq(chan, band)
        _tune(source, freq)
        _fill_clean(source, frames_len)
        block = buffer.peek()[:frames_len].astype(np.complex128)
        power[chan] = math.sqrt(float(np.vdot(block, block).real))
        if verbosity > 2:
            print(
                f"\tchan {chan} ({freq / 1e6:.1f}MHz):\tpower: {power[chan]:f}",
                file=sys.stderr,
            )

    threshold = power_threshold(power.values())
    if verbosity > 0:
        print(f"channel detect threshold: {threshold:f}", file=sys.stderr)

    progress = sys.stdout.isatty()
    hits: list[ChannelHit] = []
    not_found = 0
    chan: int | None = first_chan(band)
    while chan is not None:
        if power[chan] <= threshold:
            chan = next_chan(chan, band)
            continue
        if progress:
            print(f"...chan {chan}\r", end="", flush=True)

        freq, _ = arfcn_to_freq(chan, band)
        _tune(source, freq)
        _fill_clean(source, frames_len)

        tone, _ = detector.scan(buffer.peek())
        effective = tone - _FCCH_TONE if tone is not None else None
        if effective is not None and abs(effective) < ERROR_DETECT_OFFSET_MAX:
            hits.append(ChannelHit(chan, freq, effective, power[chan]))
            not_found = 0
            chan = next_chan(chan, band)
        else:
            not_found += 1
            if not_found >= NOTFOUND_MAX:
                not_found = 0
                chan = next_chan(chan, band)

    return hits


def format_hits(band: int, hits: list[ChannelHit]) -> str:
    """Render scan results, with a warning when they look unreliable."""
    lines = [f"{band_name(band)}:"]
    for hit in hits:
        lines.append(
            f"    chan: {hit.chan:4d} ({hit.freq / 1e6:.1f}MHz "
            f"{format_freq(hit.offset)})    power: {hit.power:10.2f}"
        )

    if len(hits) == 1:
        lines += [
            "",
            "Only one channel was found. This is unlikely and may indicate you "
            "need to provide a rough estimate of the initial PPM. It can be "
            "provided with the '-e' option. Try tuning against a local FM radio "
            "or other known frequency first.",
        ]
    elif len(hits) > 1:
        offsets = [hit.offset for hit in hits]
        if max(offsets) - min(offsets) > 1000:
            lines += [
                "",
                "Difference of offsets between channels is >1kHz. This likely "
                "means that the correct PPM is too far away and you need to "
                "provide a rough estimate using the '-e' option. Try tuning "
                "against a local FM radio or other known frequency first.",
            ]
    return "\n".join(lines) + "\n"