import pytest

from src.esd_lib import CDMJS002Evaluator, Waveform, evaluate_cdm


# 1. Hand-Built Waveforms


def test_triangle_measurements(triangle):
    """A coarse triangle has closed-form crossings for every measurement."""
    result = evaluate_cdm(triangle, 250.0)

    assert result.peak_current.value == 10.0
    assert result.rise_time.value == pytest.approx(0.8)
    assert result.rise_time.points[0].time == pytest.approx(0.1)
    assert result.rise_time.points[1].time == pytest.approx(0.9)
    assert result.full_width_half_max.value == pytest.approx(1.0)
    # Never goes below zero: clamped and passing
    assert result.undershoot.value == 0.0
    assert result.undershoot.is_passing is True


def test_negative_polarity_inverts_amplitudes_not_times(triangle):
    positive = evaluate_cdm(triangle, 250.0)
    negative = evaluate_cdm(triangle.scale_vertically(-1.0), -250.0)

    assert negative.peak_current.value == -positive.peak_current.value
    assert negative.peak_current.points[0].time == positive.peak_current.points[0].time
    assert negative.peak_current.allowed_minimum == -4.8
    assert negative.peak_current.allowed_maximum == -7.3
    assert negative.rise_time.value == pytest.approx(positive.rise_time.value)
    assert negative.full_width_half_max.value == pytest.approx(positive.full_width_half_max.value)


def test_undershoot_limit_follows_polarity():
    """-2 A of undershoot on a 10 A pulse is inside the -50 % limit."""
    waveform = Waveform([(0, 0), (1, 10), (2, 0), (2.5, -2), (3, 0)])

    result = evaluate_cdm(waveform, 250.0)
    assert result.undershoot.value == -2.0
    assert result.undershoot.allowed_maximum == -5.0
    assert result.undershoot.is_passing is True

    result = evaluate_cdm(waveform.scale_vertically(-1.0), -250.0)
    assert result.undershoot.value == 2.0
    assert result.undershoot.allowed_maximum == 5.0
    assert result.undershoot.is_passing is True


def test_excessive_undershoot_fails():
    waveform = Waveform([(0, 0), (1, 10), (2, 0), (2.5, -6), (3, 0)])

    result = evaluate_cdm(waveform, 250.0)

    assert result.undershoot.value == -6.0
    assert result.undershoot.is_passing is False
    assert result.is_passing is False


def test_missing_falling_edge_leaves_fwhm_and_undershoot_unset():
    waveform = Waveform([(0, 0), (1, 5), (2, 10)])

    result = evaluate_cdm(waveform, 250.0)

    assert result.full_width_half_max.value is None
    assert result.full_width_half_max.is_passing is None
    assert result.undershoot.value is None
    assert result.is_passing is False
    # Other measurements still complete
    assert result.peak_current.is_measured
    assert result.rise_time.is_measured


# 2. Synthetic Captures


def test_large_target_capture_passes(cdm_capture):
    result = evaluate_cdm(cdm_capture, 250.0, is_large_target=True, is_high_bandwidth=True)

    assert result.peak_current.value == pytest.approx(6.0, rel=1e-3)
    assert result.rise_time.value == pytest.approx(238e-12, rel=0.05)
    assert result.full_width_half_max.value == pytest.approx(650e-12, rel=0.05)
    assert -1.0 < result.undershoot.value < -0.8
    assert result.undershoot.allowed_maximum == pytest.approx(-3.0, rel=1e-3)
    assert all(m.is_passing for m in result.measurements())
    assert result.is_passing


def test_small_target_limits_apply(cdm_capture):
    """The same 6 A pulse is too big and too wide for a small module at 250 V."""
    result = evaluate_cdm(cdm_capture, 250.0, is_large_target=False, is_high_bandwidth=True)

    assert result.rise_time.allowed_maximum == 250e-12
    assert result.peak_current.is_passing is False
    assert result.full_width_half_max.is_passing is False
    assert result.is_passing is False


def test_evaluator_exposes_resolved_tolerance(cdm_capture):
    evaluator = CDMJS002Evaluator(cdm_capture, 375.0, True, False)

    assert evaluator.tolerance.peak_current_min == pytest.approx((4.2 + 9.1) / 2)
    assert evaluator.rise_time_max == 450e-12
    assert evaluator.fwhm_band == (500e-12, 1000e-12)
    assert evaluator.result.is_large_target is True
    assert evaluator.result.is_high_bandwidth is False


# 3. Validation


@pytest.mark.parametrize("voltage", [0.0, float("nan"), float("inf"), 100_001.0, -100_001.0])
def test_invalid_voltage_is_rejected(triangle, voltage):
    with pytest.raises(ValueError):
        evaluate_cdm(triangle, voltage)


def test_empty_waveform_is_rejected():
    with pytest.raises(ValueError):
        evaluate_cdm(Waveform([]), 250.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"fwhm_percent": 0.0},
        {"fwhm_percent": 1.0},
        {"undershoot_fwhm_multiplier": 0.0},
        {"rise_time_start_percent": 0.9, "rise_time_end_percent": 0.1},
        {"rise_time_end_percent": 1.5},
    ],
)
def test_invalid_parameters_are_rejected(triangle, kwargs):
    with pytest.raises(ValueError):
        CDMJS002Evaluator(triangle, 250.0, True, True, **kwargs)
