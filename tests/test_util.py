import pytest

from gsmcal.util import format_freq, mean_stddev


def test_format_zero():
    assert format_freq(0) == "+   0Hz"


def test_format_negative_khz():
    assert format_freq(-1500.0) == "- 1.500kHz"


@pytest.mark.parametrize(
    "f, unit",
    [
        (2.5e9, "GHz"),
        (1e9, "GHz"),
        (935e6, "MHz"),
        (1e6, "MHz"),
        (40e3, "kHz"),
        (1e3, "kHz"),
        (500.0, "Hz"),
        (42.0, "Hz"),
        (3.0, "Hz"),
    ],
)
def test_format_units(f, unit):
    text = format_freq(f)
    assert text.startswith("+ ")
    assert text.endswith(unit)
    assert not text[:-len(unit)].endswith(("G", "M", "k")) or unit != "Hz"


@pytest.mark.parametrize("f", [3.0, 42.0, 500.0, 1500.0, 935e6, 2.5e9])
def test_format_sign_symmetry(f):
    pos = format_freq(f)
    neg = format_freq(-f)
    assert pos.startswith("+ ")
    assert neg.startswith("- ")
    assert pos[2:] == neg[2:]


def test_format_small_values_are_padded():
    assert format_freq(42.0).startswith("+  ")
    assert not format_freq(42.0).startswith("+   ")
    assert format_freq(500.0)[2] != " "
    assert format_freq(7.0).startswith("+   ")


def test_format_ghz_precision():
    text = format_freq(1e9)
    assert text == "+ 1.000GHz"


def test_mean_stddev_worked_example():
    mean, stddev = mean_stddev([2, 4, 4, 4, 5, 5, 7, 9])
    assert mean == pytest.approx(5.0)
    assert stddev == pytest.approx(2.0)


def test_mean_stddev_constant():
    mean, stddev = mean_stddev([3.5] * 10)
    assert mean == pytest.approx(3.5)
    assert stddev == pytest.approx(0.0)


def test_mean_stddev_single_value():
    assert mean_stddev([-12.25]) == (-12.25, 0.0)


def test_mean_stddev_shift_invariance():
    data = [1.0, -3.0, 8.5, 2.25, 0.0]
    mean, stddev = mean_stddev(data)
    shifted_mean, shifted_stddev = mean_stddev(v + 1000.0 for v in data)
    assert shifted_mean == pytest.approx(mean + 1000.0)
    assert shifted_stddev == pytest.approx(stddev)


def test_mean_stddev_scaling():
    data = [1.0, 2.0, 6.0, 11.0]
    mean, stddev = mean_stddev(data)
    scaled_mean, scaled_stddev = mean_stddev(-3.0 * v for v in data)
    assert scaled_mean == pytest.approx(-3.0 * mean)
    assert scaled_stddev == pytest.approx(3.0 * stddev)


def test_mean_stddev_empty():
    with pytest.raises(ValueError):
        mean_stddev([])