"""Command-line front end: clock offset measurement and base station scan."""

from __future__ import annotations

import argparse
import contextlib
import re
import sys
from collections.abc import Sequence
from typing import Any, NoReturn

from .arfcn import Band, arfcn_to_freq, band_name, freq_to_arfcn, parse_band
from .c0_detect import c0_detect, format_hits
from .offset import format_report, offset_detect
from .source import FileReader, SampleSource

_PROG = "gsmcal"
_VERSION = "0.4.1"
_USAGE_EXIT = -1

_FPGA_MASTER_CLOCK_FREQ = 52000000
_DECIMATION = 192

_MIN_FREQ = 869e6
_MAX_FREQ = 2e9

_LEADING_INT = re.compile(r"\s*[+-]?(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")


def _usage() -> NoReturn:
    """Print the usage text and leave with the usage status."""
    lines = [
        f"{_PROG} v{_VERSION}",
        "Usage:",
        "\tGSM Base Station Scan:",
        f"\t\t{_PROG} <-s band indicator> [options]",
        "",
        "\tClock Offset Calculation:",
        f"\t\t{_PROG} <-f frequency | -c channel> [options]",
        "",
        "Where options are:",
        "\t-s\tband to scan (GSM850, GSM-R, GSM900, EGSM, DCS, PCS)",
        "\t-f\tfrequency of nearby GSM base station",
        "\t-c\tchannel of nearby GSM base station",
        "\t-b\tband indicator (GSM850, GSM-R, GSM900, EGSM, DCS, PCS)",
        "\t-i\tfile of 8-bit interleaved I/Q samples ('-' for standard input)",
        "\t-g\tgain in dB",
        "\t-d\tdevice index",
        "\t-e\tinitial frequency error in ppm",
        "\t-N\tdisable dithering (default: dithering enabled)",
        "\t-E\tmanual frequency offset in hz",
        "\t-v\tverbose",
        "\t-D\tenable debug messages",
        "\t-h\thelp",
    ]
    print("\n".join(lines))
    raise SystemExit(_USAGE_EXIT)


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"error: {message}", file=sys.stderr)
        _usage()


class _ScanAction(argparse.Action):
    """Select the band to scan and switch to scanning mode."""

    def __call__(self, parser: Any, namespace: Any, values: Any, option_string: Any = None) -> None:
        namespace.band = values
        namespace.bts_scan = True


def _band(s: str) -> Band:
    try:
        return parse_band(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"bad band indicator: ``{s}''") from None


def _integer(s: str) -> int:
    return int(s, 0)


def _side(s: str) -> int:
    match = _LEADING_INT.match(s)
    if match:
        return int(match.group(0).strip(), 0)
    first = s[:1].lower()
    if first == "a":
        return 0
    if first == "b":
        return 1
    raise argparse.ArgumentTypeError(f"bad side: ``{s}''")


def _antenna(s: str) -> int:
    if s == "RX2":
        return 1
    if s == "TX/RX":
        return 0
    match = _LEADING_INT.match(s)
    if match:
        return int(match.group(0).strip(), 0)
    raise argparse.ArgumentTypeError(f"bad antenna: ``{s}''")


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog=_PROG, add_help=False)
    parser.add_argument("-f", dest="freq", type=float, default=-1.0)
    parser.add_argument("-c", dest="chan", type=_integer, default=-1)
    parser.add_argument("-s", dest="band", type=_band, action=_ScanAction)
    parser.add_argument("-b", dest="band", type=_band)
    parser.add_argument("-R", dest="subdev", type=_side)
    parser.add_argument("-A", dest="antenna", type=_antenna, default=1)
    parser.add_argument("-g", dest="gain", type=float, default=0.0)
    parser.add_argument("-e", dest="ppm_error", type=_integer, default=0)
    parser.add_argument("-N", dest="dithering", action="store_false")
    parser.add_argument("-E", dest="hz_adjust", type=_integer, default=0)
    parser.add_argument("-d", dest="subdev", type=_integer)
    parser.add_argument("-i", dest="input", default="-")
    parser.add_argument("-v", dest="verbosity", action="count", default=0)
    parser.add_argument("-D", dest="debug", action="store_true")
    parser.add_argument("-h", "-?", dest="help", action="store_true")
    parser.set_defaults(band=Band.NOT_DEFINED, bts_scan=False, subdev=0)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse and check the command line.

    The result carries the resolved frequency, channel and band. Bad input
    prints the usage text and raises SystemExit.
    """
    ns = _build_parser().parse_args(list(sys.argv[1:] if argv is None else argv))
    if ns.help:
        _usage()

    ns.gain *= 10

    if ns.bts_scan:
        if ns.band == Band.NOT_DEFINED:
            print("error: scaning requires band", file=sys.stderr)
            _usage()
        return ns

    if ns.freq < 0.0:
        if ns.chan < 0:
            print("error: must enter channel or frequency", file=sys.stderr)
            _usage()
        try:
            ns.freq, ns.band = arfcn_to_freq(ns.chan, ns.band)
        except ValueError as exc:
            print(f"error: {exc}", file=sys.stderr)
            _usage()
        if ns.freq < _MIN_FREQ:
            _usage()

    if ns.freq < _MIN_FREQ or _MAX_FREQ < ns.freq:
        print(f"error: bad frequency: {ns.freq:f}", file=sys.stderr)
        _usage()

    try:
        ns.chan, ns.band = freq_to_arfcn(ns.freq)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        ns.chan = -1
    return ns


def _open_input(path: str) -> Any:
    if path == "-":
        return contextlib.nullcontext(sys.stdin.buffer)
    return FileReader(path)


def _run(opts: argparse.Namespace, source: SampleSource) -> int:
    if not source.set_dithering(opts.dithering):
        print("error: set_dithering", file=sys.stderr)

    if opts.gain != 0 and not source.set_gain(opts.gain):
        print("error: set_gain", file=sys.stderr)
        return -1

    if opts.ppm_error != 0 and source.set_freq_correction(opts.ppm_error) < 0:
        print("error: set_freq_correction", file=sys.stderr)
        return -1

    if not opts.bts_scan:
        if not source.tune(opts.freq + opts.hz_adjust):
            print("error: tune", file=sys.stderr)
            return -1
        tuner_error = source.center_freq - opts.freq
        print(f"{_PROG}: Calculating clock frequency offset.", file=sys.stderr)
        print(
            f"Using {band_name(opts.band)} channel {opts.chan} "
            f"({opts.freq / 1e6:.1f}MHz)",
            file=sys.stderr,
        )
        print(
            f"Tuned to {source.center_freq / 1e6:.6f}MHz "
            f"(reported tuner error: {tuner_error:.0f}Hz)",
            file=sys.stderr,
        )
        result = offset_detect(source, opts.hz_adjust, tuner_error, opts.verbosity)
        print(format_report(result), end="")
        return 0

    print(
        f"{_PROG}: Scanning for {band_name(opts.band)} base stations.",
        file=sys.stderr,
    )
    hits = c0_detect(source, opts.band, opts.verbosity)
    print(format_hits(opts.band, hits), end="")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the scan or the offset measurement; return the exit status."""
    opts = parse_args(argv)

    if opts.debug:
        print(f"debug: FPGA Master Clock Freq:\t{_FPGA_MASTER_CLOCK_FREQ}")
        print(f"debug: decimation            :\t{_DECIMATION}")
        print(f"debug: RX Subdev Spec        :\t{'B' if opts.subdev else 'A'}")
        print(f"debug: Antenna               :\t{'RX2' if opts.antenna else 'TX/RX'}")
        print(f"debug: Gain                  :\t{opts.gain:f}")

    try:
        reader_ctx = _open_input(opts.input)
    except OSError as exc:
        print(f"error: cannot open input: {exc}", file=sys.stderr)
        return -1

    with reader_ctx as reader:
        source = SampleSource(reader)
        try:
            return _run(opts, source)
        except EOFError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return -1


if __name__ == "__main__":
    sys.exit(main())