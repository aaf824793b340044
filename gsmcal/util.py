"""Formatting and statistics helpers."""

from __future__ import annotations

import math
from collections.abc import Iterable


def format_freq(f: float) -> str:
    """Format a signed frequency in Hz with a sign prefix and a scaled unit."""
    if f >= 0:
        sign = "+ "
    else:
        sign = "- "
        f = -f

    magnitude = abs(f)
    if magnitude >= 1e9:
        body = f"{f / 1e9:.3f}GHz"
    elif magnitude >= 1e6:
        body = f"{f / 1e6:.1f}MHz"
    elif magnitude >= 1e3:
        body = f"{f / 1e3:.3f}kHz"
    elif magnitude >= 1e2:
        body = f"{f:.0f}Hz"
    elif magnitude >= 1e1:
        body = f" {f:.0f}Hz"
    else:
        body = f"  {f:.0f}Hz"
    return sign + body


def mean_stddev(values: Iterable[float]) -> tuple[float, float]:
    """Return the mean and population standard deviation of ``values``."""
    data = [float(v) for v in values]
    if not data:
        raise ValueError("mean_stddev requires at least one value")
    mean = sum(data) / len(data)
    variance = sum((v - mean) * (v - mean) for v in data) / len(data)
    return mean, math.sqrt(variance)