import io

import numpy as np
import pytest

from gsmcal.source import (
    CB_LEN,
    DEFAULT_SAMPLE_RATE,
    FLUSH_COUNT,
    FLUSH_SIZE,
    USB_PACKET_SIZE,
    FileReader,
    SampleSource,
    iq_bytes_to_complex,
)


def _pattern(n_bytes):
    return bytes((i * 7 + 3) % 256 for i in range(n_bytes))


def test_iq_centre_is_zero():
    out = iq_bytes_to_complex(bytes([127, 127]))
    assert out.dtype == np.complex64
    assert out.tolist() == [0j]


def test_iq_drops_trailing_odd_byte():
    out = iq_bytes_to_complex(bytes([127, 127, 127]))
    assert len(out) == 1


def test_iq_scaling_is_linear():
    out = iq_bytes_to_complex(bytes([128, 126]))
    assert out[0].real == 256.0
    assert out[0].imag == -256.0


def test_iq_interleaving():
    out = iq_bytes_to_complex(bytes([128, 127, 127, 128]))
    assert out[0].imag == 0.0
    assert out[1].real == 0.0
    assert out[0].real == out[1].imag


def test_file_reader_reads_bytes(tmp_path):
    path = tmp_path / "capture.iq"
    data = _pattern(100)
    path.write_bytes(data)
    with FileReader(path) as reader:
        assert reader.read(40) == data[:40]
        assert reader.read(1000) == data[40:]
        assert reader.read(10) == b""


def test_file_reader_closed_after_context(tmp_path):
    path = tmp_path / "capture.iq"
    path.write_bytes(b"\x7f\x7f")
    with FileReader(path) as reader:
        pass
    with pytest.raises(ValueError):
        reader.read(2)


def test_default_sample_rate():
    src = SampleSource(io.BytesIO(b""))
    assert src.sample_rate == DEFAULT_SAMPLE_RATE


def test_fill_buffers_enough_samples():
    src = SampleSource(io.BytesIO(_pattern(4 * USB_PACKET_SIZE)))
    overruns = src.fill(1000)
    assert overruns == 0
    assert src.buffer.data_available() >= 1000


def test_read_returns_stream_prefix():
    data = _pattern(2 * USB_PACKET_SIZE)
    src = SampleSource(io.BytesIO(data))
    got = src.read(500)
    expected = iq_bytes_to_complex(data[:1000])
    assert np.array_equal(got, expected)


def test_read_from_file_reader(tmp_path):
    path = tmp_path / "capture.iq"
    data = _pattern(USB_PACKET_SIZE)
    path.write_bytes(data)
    with FileReader(path) as reader:
        src = SampleSource(reader)
        got = src.read(10)
    assert np.array_equal(got, iq_bytes_to_complex(data[:20]))


def test_fill_raises_at_end_of_stream():
    src = SampleSource(io.BytesIO(_pattern(100)))
    with pytest.raises(EOFError):
        src.fill(1000)


def test_fill_reports_overrun_when_full():
    src = SampleSource(io.BytesIO(bytes(2 * CB_LEN + 4 * USB_PACKET_SIZE)))
    overruns = src.fill(CB_LEN + 10)
    assert overruns == 1
    assert src.buffer.space_available() == 0
    assert src.buffer.data_available() == src.buffer.buf_len


def test_flush_discards_and_skips_samples():
    data = _pattern(4 * USB_PACKET_SIZE)
    stream = io.BytesIO(data)
    src = SampleSource(stream)
    src.flush()
    assert src.buffer.data_available() == 0
    consumed = stream.tell()
    assert consumed >= 2 * FLUSH_COUNT * FLUSH_SIZE
    got = src.read(8)
    assert np.array_equal(got, iq_bytes_to_complex(data[consumed:consumed + 16]))


def test_flush_tolerates_end_of_stream():
    src = SampleSource(io.BytesIO(_pattern(64)))
    src.flush()
    assert src.buffer.data_available() == 0


def test_tune_truncates_to_whole_hertz():
    src = SampleSource(io.BytesIO(b""))
    assert src.tune(935.2e6 + 0.75) is True
    assert src.center_freq == float(int(935.2e6 + 0.75))
    assert src.center_freq.is_integer()


def test_set_freq_correction_records_ppm():
    src = SampleSource(io.BytesIO(b""))
    assert src.set_freq_correction(-12) == 0
    assert src.freq_corr == -12


def test_set_gain_and_dithering():
    src = SampleSource(io.BytesIO(b""))
    assert src.set_gain(420.0) is True
    assert src.gain == 420.0
    assert src.set_dithering(False) is True
    assert src.dithering is False


def test_start_and_stop():
    src = SampleSource(io.BytesIO(b""))
    src.start()
    assert src.running is True
    src.stop()
    assert src.running is False