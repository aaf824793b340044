"""GSM absolute radio-frequency channel numbers (ARFCN) and band indicators."""

from __future__ import annotations

import enum
from collections.abc import Iterator


class Band(enum.IntEnum):
    """GSM band indicator."""

    NOT_DEFINED = 0
    GSM_850 = 1
    GSM_R_900 = 2
    GSM_900 = 3
    GSM_E_900 = 4
    DCS_1800 = 5
    PCS_1900 = 6


_UNKNOWN_BAND = "unknown band indicator"

_BAND_NAMES = {
    Band.GSM_850: "GSM-850",
    Band.GSM_R_900: "GSM-R-900",
    Band.GSM_900: "GSM-900",
    Band.GSM_E_900: "E-GSM-900",
    Band.DCS_1800: "DCS-1800",
    Band.PCS_1900: "PCS-1900",
}

_BAND_ALIASES = {
    **dict.fromkeys(("GSM850", "GSM-850", "850"), Band.GSM_850),
    **dict.fromkeys(("GSM-R", "R-GSM"), Band.GSM_R_900),
    **dict.fromkeys(("GSM900", "GSM-900", "900"), Band.GSM_900),
    **dict.fromkeys(
        ("EGSM", "E-GSM", "EGSM900", "E-GSM900", "E-GSM-900"), Band.GSM_E_900
    ),
    **dict.fromkeys(("DCS", "DCS1800", "DCS-1800", "1800"), Band.DCS_1800),
    **dict.fromkeys(("PCS", "PCS1900", "PCS-1900", "1900"), Band.PCS_1900),
}

# Contiguous channel segments of each band, in scan order.
_SEGMENTS: dict[Band, tuple[tuple[int, int], ...]] = {
    Band.GSM_850: ((128, 251),),
    Band.GSM_R_900: ((955, 974),),
    Band.GSM_900: ((1, 124),),
    Band.GSM_E_900: ((0, 124), (975, 1023)),
    Band.DCS_1800: ((512, 885),),
    Band.PCS_1900: ((512, 810),),
}


def band_name(bi: int | None) -> str:
    """Return the display name of a band indicator."""
    return _BAND_NAMES.get(bi, _UNKNOWN_BAND)


def parse_band(s: str) -> Band:
    """Parse a band name such as ``"GSM900"`` or ``"DCS"``."""
    try:
        return _BAND_ALIASES[s]
    except KeyError:
        raise ValueError(f"bad band indicator: {s!r}") from None


def arfcn_to_freq(n: int, bi: int | None = None) -> tuple[float, Band]:
    """Return the downlink frequency of channel ``n`` and the band it lies in.

    ``bi`` is needed to tell DCS-1800 from PCS-1900 channels; for channels
    1-124 an E-GSM-900 hint is kept, any other hint becomes GSM-900.
    """
    if 128 <= n <= 251:
        return 824.2e6 + 0.2e6 * (n - 128) + 45.0e6, Band.GSM_850

    if 1 <= n <= 124:
        band = Band.GSM_E_900 if bi == Band.GSM_E_900 else Band.GSM_900
        return 890.0e6 + 0.2e6 * n + 45.0e6, band

    if n == 0:
        return 935e6, Band.GSM_E_900

    if 955 <= n <= 1023:
        band = Band.GSM_E_900 if n >= 975 else Band.GSM_R_900
        return 890.0e6 + 0.2e6 * (n - 1024) + 45.0e6, band

    if 512 <= n <= 810:
        if bi is None:
            raise ValueError(f"ambiguous arfcn: {n}")
        if bi == Band.DCS_1800:
            return 1710.2e6 + 0.2e6 * (n - 512) + 95.0e6, Band.DCS_1800
        if bi == Band.PCS_1900:
            return 1850.2e6 + 0.2e6 * (n - 512) + 80.0e6, Band.PCS_1900
        raise ValueError(
            f"bad (arfcn, band indicator) pair: ({n}, {band_name(bi)})"
        )

    if 811 <= n <= 885:
        return 1710.2e6 + 0.2e6 * (n - 512) + 95.0e6, Band.DCS_1800

    raise ValueError(f"bad arfcn: {n}")


def freq_to_arfcn(freq: float) -> tuple[int, Band]:
    """Return the channel number and band of a downlink frequency in Hz."""
    if 869.2e6 <= freq <= 893.8e6:
        return int((freq - 869.2e6) / 0.2e6) + 128, Band.GSM_850

    if 921.2e6 <= freq <= 925.0e6:
        return int((freq - 935e6) / 0.2e6) + 1024, Band.GSM_R_900

    if 935.2e6 <= freq <= 959.8e6:
        return int((freq - 935e6) / 0.2e6), Band.GSM_900

    if freq == 935.0e6:
        return 0, Band.GSM_E_900

    if 925.2e6 <= freq <= 934.8e6:
        return int((freq - 935e6) / 0.2e6) + 1024, Band.GSM_E_900

    if 1805.2e6 <= freq <= 1879.8e6:
        return int((freq - 1805.2e6) / 0.2e6) + 512, Band.DCS_1800

    if 1930.2e6 <= freq <= 1989.8e6:
        return int((freq - 1930.2e6) / 0.2e6) + 512, Band.PCS_1900

    raise ValueError(f"bad frequency: {freq:f}")


def _segments(bi: int) -> tuple[tuple[int, int], ...]:
    try:
        return _SEGMENTS[bi]
    except KeyError:
        raise ValueError(f"bad band indicator: {bi!r}") from None


def first_chan(bi: int) -> int:
    """Return the first channel of a band."""
    return _segments(bi)[0][0]


def _advance(chan: int, bi: int, wrap: bool) -> int | None:
    segments = _segments(bi)
    for index, (lo, hi) in enumerate(segments):
        if lo <= chan < hi:
            return chan + 1
        if chan == hi:
            if index + 1 < len(segments):
                return segments[index + 1][0]
            return segments[0][0] if wrap else None
    return None


def next_chan(chan: int, bi: int) -> int | None:
    """Return the channel after ``chan`` in band ``bi``, or None at the end."""
    return _advance(chan, bi, wrap=False)


def next_chan_loop(chan: int, bi: int) -> int | None:
    """Like :func:`next_chan`, but wrap from the last channel to the first.

    Returns None when ``chan`` is not a channel of the band.
    """
    return _advance(chan, bi, wrap=True)


def channels(bi: int) -> Iterator[int]:
    """Yield every channel of a band in scan order."""
    chan: int | None = first_chan(bi)
    while chan is not None:
        yield chan
        chan = next_chan(chan, bi)