import math

import pytest
from hypothesis import given, strategies as st

from src.esd_lib import DataPoint, FifthDegreePolynomial, Waveform

finite = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
samples = st.lists(st.tuples(finite, finite), min_size=1, max_size=50)


# 1. Property Tests


@given(samples)
def test_maximum_and_minimum_are_members(points):
    """The extremes are real samples and nothing beats them."""
    waveform = Waveform(points)

    peak = waveform.maximum()
    trough = waveform.minimum()

    assert peak in waveform.data_points
    assert trough in waveform.data_points
    assert all(dp.amplitude <= peak.amplitude for dp in waveform)
    assert all(dp.amplitude >= trough.amplitude for dp in waveform)


@given(samples)
def test_scale_by_minus_one_twice_is_identity(points):
    waveform = Waveform(points)
    restored = waveform.scale_vertically(-1.0).scale_vertically(-1.0)

    assert len(restored) == len(waveform)
    for a, b in zip(restored, waveform):
        assert a.time == b.time
        assert math.isclose(a.amplitude, b.amplitude, abs_tol=1e-12)


# 2. Unit Tests


def test_none_is_rejected():
    with pytest.raises(ValueError):
        Waveform(None)  # type: ignore[arg-type]


def test_empty_waveform_sentinels():
    empty = Waveform([])

    assert not empty
    assert empty.maximum() == DataPoint(0.0, 0.0)
    assert empty.minimum() == DataPoint(0.0, 0.0)
    assert empty.average() == 0.0
    assert empty.sampling_interval() == 0.0
    assert empty.sampling_frequency() == 0.0


def test_first_extreme_wins_on_ties():
    waveform = Waveform([(0, 1), (1, 5), (2, 5), (3, -2), (4, -2)])

    assert waveform.maximum() == DataPoint(1.0, 5.0)
    assert waveform.minimum() == DataPoint(3.0, -2.0)


def test_gate_accepts_boundaries_in_either_order():
    waveform = Waveform([(t, t * 2) for t in range(10)])

    assert waveform.gate(2, 5) == waveform.gate(5, 2)
    assert [dp.time for dp in waveform.gate(2, 5)] == [2, 3, 4, 5]


def test_trim_is_inclusive():
    waveform = Waveform([(t, 0) for t in range(5)])

    assert [dp.time for dp in waveform.trim_start(2)] == [2, 3, 4]
    assert [dp.time for dp in waveform.trim_end(2)] == [0, 1, 2]


def test_transformations_do_not_mutate():
    waveform = Waveform([(0, 1), (1, 2)])
    waveform.scale_vertically(3.0)
    waveform.trim_start(1)

    assert waveform.data_points == (DataPoint(0, 1), DataPoint(1, 2))


def test_sampling_interval_skips_repeated_times():
    """Repeated leading timestamps are averaged over the index offset."""
    waveform = Waveform([(0.0, 0), (0.0, 0), (1e-9, 0), (2e-9, 0)])

    assert waveform.sampling_interval() == pytest.approx(0.5e-9)
    assert waveform.sampling_frequency() == 2_000_000_000.0


def test_sampling_frequency_is_rounded():
    waveform = Waveform.from_arrays([0.0, 0.1e-9, 0.2e-9], [0, 0, 0])

    assert waveform.sampling_frequency() == 10_000_000_000.0


def test_average_and_arrays():
    waveform = Waveform.from_arrays([0, 1, 2], [1.0, 2.0, 6.0])

    assert waveform.average() == pytest.approx(3.0)
    assert list(waveform.times) == [0.0, 1.0, 2.0]
    assert list(waveform.amplitudes) == [1.0, 2.0, 6.0]


def test_polynomial_evaluation_and_validation():
    poly = FifthDegreePolynomial(a0=1.0, a1=2.0, a2=3.0)

    assert poly.evaluate(2.0) == pytest.approx(1 + 4 + 12)

    with pytest.raises(ValueError, match="A3"):
        FifthDegreePolynomial(a3=float("nan"))
    with pytest.raises(ValueError):
        FifthDegreePolynomial(a0=float("inf"))
