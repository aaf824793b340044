# gsmcal

`gsmcal` works on GSM downlink signals held as complex baseband samples. It
does two jobs:

1. **Clock offset calculation** – collects one hundred measurements of the
   frequency correction bursts (FCCH) of one GSM carrier, drops the lowest
   and highest tenth, and reports the average offset, its range and standard
   deviation, and the resulting error of the receiver clock in parts per
   million.
2. **Base station scan** – measures the power on every channel of a GSM band,
   then searches the channels above a noise threshold for FCCH bursts and
   lists each channel where one is found, with its frequency, offset and
   power.

Samples are read as interleaved unsigned 8-bit I/Q bytes (each byte centred
on 127), at a sample rate of about 270.833 kHz.

## What it does not do

`gsmcal` does not control a radio receiver. It reads bytes from a file or
from standard input. Tuning, gain, dithering and frequency correction
settings are only recorded on the sample source: the tuned frequency is
used in the arithmetic of the report, but nothing changes the stream being
read. The stream must therefore already carry the carrier you name, captured
at the sample rate above. A band scan "tunes" to every channel of the band in
turn, but since the input cannot be retuned, all channels are measured from
the same stream. The options `-d`, `-R` and `-A` are accepted and shown with
`-D`, but select nothing.

## Installation

```
pip install gsmcal
```

The only runtime dependency is NumPy.

## Command line

```
gsmcal -h
```

prints the list of options:

| Option | Meaning |
| ------ | ------- |
| `-s BAND` | scan a band for base stations |
| `-f FREQ` | frequency of a nearby base station, in Hz |
| `-c CHAN` | channel (ARFCN) of a nearby base station |
| `-b BAND` | band indicator, needed where a channel number is ambiguous |
| `-i FILE` | file of 8-bit interleaved I/Q samples; `-` (the default) reads standard input |
| `-g GAIN` | gain in dB |
| `-e PPM` | initial frequency error in ppm, included in the reported error |
| `-E HZ` | manual frequency offset in Hz |
| `-N` | disable dithering |
| `-v` | more verbose output (repeatable) |
| `-D` | debug messages |
| `-h` | help |

Band names accepted by `-s` and `-b`:

| Band | Accepted spellings |
| ---- | ------------------ |
| GSM-850 | `GSM850`, `GSM-850`, `850` |
| GSM-R-900 | `GSM-R`, `R-GSM` |
| GSM-900 | `GSM900`, `GSM-900`, `900` |
| E-GSM-900 | `EGSM`, `E-GSM`, `EGSM900`, `E-GSM900`, `E-GSM-900` |
| DCS-1800 | `DCS`, `DCS1800`, `DCS-1800`, `1800` |
| PCS-1900 | `PCS`, `PCS1900`, `PCS-1900`, `1900` |

Channels 512–810 are shared by DCS-1800 and PCS-1900, so give `-b` with them.
Frequencies must lie between 869 MHz and 2 GHz.

Measure the clock offset from a recording of channel 37 (942.4 MHz):

```
gsmcal -c 37 -i capture.iq
```

or from a stream piped in on standard input:

```
gsmcal -f 942.4e6 < capture.iq
```

Scan a band:

```
gsmcal -s GSM900 -i capture.iq
```

The command exits with status 0 on success. Bad options print the usage text
and exit with a non-zero status, as does running out of samples before the
measurement is complete.

If a scan finds only one channel, or the offsets of the channels found differ
by more than 1 kHz, the report adds a warning that the receiver is probably
too far off and that a rough estimate should be given with `-e`.

## Library use

Channel and frequency arithmetic lives in `gsmcal.arfcn`:

```python
from gsmcal.arfcn import Band, arfcn_to_freq, freq_to_arfcn, parse_band, band_name, channels

band = parse_band("EGSM")
print(band_name(band))                  # E-GSM-900
print(arfcn_to_freq(37, Band.GSM_900))  # (942400000.0, <Band.GSM_900: 3>)
print(freq_to_arfcn(942.4e6))           # (37, <Band.GSM_900: 3>)
for chan in channels(Band.GSM_850):     # 128 .. 251
    ...
```

Invalid channels, frequencies and band names raise `ValueError`.
`first_chan`, `next_chan` and `next_chan_loop` step through a band's channels
one at a time.

`gsmcal.util.format_freq` renders an offset the way reports show it
(`format_freq(-1234.5)` gives `"- 1.234kHz"`), and `gsmcal.util.mean_stddev`
returns the mean and population standard deviation of a list of values.

`gsmcal.circular_buffer.CircularBuffer` is a fixed-size, thread-safe FIFO of
NumPy items whose readable region (`peek`) and free region (`poke`) are
always contiguous arrays. Used as a context manager, it holds its lock.

`gsmcal.source` reads samples:

- `iq_bytes_to_complex` converts raw I/Q bytes to `complex64` samples;
- `FileReader` reads bytes from a recording and closes it as a context
  manager;
- `SampleSource` wraps any object with a `read(size)` method, buffers
  converted samples in a `CircularBuffer` (`fill`, `read`, `flush`), and
  raises `EOFError` when the reader runs dry.

`gsmcal.fcch.FcchDetector` finds frequency correction bursts in a block of
complex samples with an adaptive filter; `scan` returns the tone's frequency
in Hz (or `None`) and the number of samples consumed.

`gsmcal.offset.offset_detect` returns an `OffsetResult`, which
`gsmcal.offset.format_report` renders; `gsmcal.offset.summarize_offsets`
builds the same statistics from offsets you already have.
`gsmcal.c0_detect.c0_detect` returns a list of `ChannelHit`, which
`gsmcal.c0_detect.format_hits` renders.

## Running the tests

```
pip install "gsmcal[test]"
pytest
```