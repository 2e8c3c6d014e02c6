import numpy as np
import pytest

from src.esd_lib import (
    HBM0OhmJS001Evaluator,
    HBM0OhmOptions,
    HBM500OhmJS001Evaluator,
    NoiseCompensation,
    Waveform,
    evaluate_hbm_0ohm,
    evaluate_hbm_500ohm,
)
from src.esd_lib.hbm import locate_peak
from src.esd_lib.presets import hbm_double_exponential


# 1. HBM 0 Ohm


def test_ideal_capture_passes(hbm_capture):
    result = evaluate_hbm_0ohm(hbm_capture, 500.0)

    assert result.peak_current.value == pytest.approx(0.335, rel=0.02)
    assert result.peak_current.allowed_minimum == 0.30
    assert result.peak_current.allowed_maximum == 0.37
    assert 3e-9 < result.rise_time.value < 5e-9
    assert result.decay_time.value == pytest.approx(152e-9, rel=0.04)
    assert result.ringing.value < 0.05
    assert result.ringing.allowed_maximum == 0.15
    assert result.noise_floor == (0.0, 0.0)
    assert result.is_passing


def test_ips_comes_from_fit_line_at_peak_time(hbm_capture):
    evaluator = HBM0OhmJS001Evaluator(hbm_capture, 500.0)
    result = evaluator.result

    peak_time = evaluator.peak_point.time
    assert result.peak_current.points[0].time == peak_time
    assert result.peak_current.value == pytest.approx(result.ips_polynomial.evaluate(peak_time))
    assert evaluator.fit_window[0].time == peak_time
    assert evaluator.fit_window[-1].time <= peak_time + 40e-9


def test_decay_anchors_on_peak_and_one_over_e(hbm_capture):
    result = evaluate_hbm_0ohm(hbm_capture, 500.0)
    start, end = result.decay_time.points

    assert start == result.peak_current.points[0]
    assert end.amplitude == pytest.approx(result.peak_current.value / np.e)
    assert end.time - start.time == pytest.approx(result.decay_time.value)


def test_negative_polarity_mirrors_positive(hbm_capture):
    positive = evaluate_hbm_0ohm(hbm_capture, 500.0)
    negative = evaluate_hbm_0ohm(hbm_capture.scale_vertically(-1.0), -500.0)

    assert negative.peak_current.value == pytest.approx(-positive.peak_current.value)
    assert negative.peak_current.allowed_minimum == -0.30
    assert negative.rise_time.value == pytest.approx(positive.rise_time.value)
    assert negative.decay_time.value == pytest.approx(positive.decay_time.value)
    assert negative.ringing.value == pytest.approx(positive.ringing.value)
    assert negative.is_passing


def test_ringing_fails_on_oscillating_capture(hbm_capture, hbm_ringing_capture):
    clean = evaluate_hbm_0ohm(hbm_capture, 500.0)
    ringing = evaluate_hbm_0ohm(hbm_ringing_capture, 2000.0)

    assert ringing.ringing.value > 0.15
    assert ringing.ringing.value > clean.ringing.value
    assert ringing.ringing.is_passing is False
    assert ringing.is_passing is False

    positive_ring, negative_ring = ringing.ringing.points
    assert positive_ring.amplitude > 0
    assert negative_ring.amplitude > 0


def test_truncated_capture_extends_fitted_decay():
    """A capture ending before 30 % of Ips still yields a decay time."""
    waveform = hbm_double_exponential(0.335, 2e-9, 150e-9, stop=120e-9)

    result = evaluate_hbm_0ohm(waveform, 500.0)

    assert result.decay_time.value == pytest.approx(152e-9, rel=0.05)
    assert result.decay_time.points[1].time > waveform[-1].time


def test_capture_without_trailing_edge_leaves_decay_unset():
    waveform = Waveform.from_arrays(np.arange(0, 100) * 1e-9, np.linspace(0.0, 0.33, 100))

    result = evaluate_hbm_0ohm(waveform, 500.0)

    assert result.decay_time.value is None
    assert result.decay_time.is_passing is None
    assert result.peak_current.is_measured
    assert result.is_passing is False


def test_single_sample_window_uses_raw_peak():
    waveform = Waveform([(0.0, 0.0), (1e-9, 0.33), (100e-9, 0.0)])

    result = evaluate_hbm_0ohm(waveform, 500.0)

    assert result.peak_current.value == 0.33
    assert result.ringing.value == 0.0


# 2. Options


def test_double_peak_detection_selects_later_lobe():
    # Spike to 1.0, dip to 0.2, then a broad 0.8 lobe
    amplitudes = [0.0, 1.0, 0.2, 0.5, 0.8, 0.7, 0.6, 0.0]
    waveform = Waveform.from_arrays(range(len(amplitudes)), amplitudes)

    assert locate_peak(waveform).time == 1
    assert locate_peak(waveform, detect_double_peak=True).time == 4


def test_double_peak_detection_ignores_shallow_dips():
    amplitudes = [0.0, 1.0, 0.6, 0.9, 0.7, 0.0]
    waveform = Waveform.from_arrays(range(len(amplitudes)), amplitudes)

    assert locate_peak(waveform, detect_double_peak=True).time == 1


def test_double_peak_needs_rise_above_hysteresis():
    """Recovering to just above the cutoff is not a second lobe."""
    amplitudes = [0.0, 1.0, 0.3, 0.51, 0.3, 0.0]
    waveform = Waveform.from_arrays(range(len(amplitudes)), amplitudes)

    assert locate_peak(waveform, detect_double_peak=True).time == 1


def test_double_peak_detection_is_inert_on_single_lobe(hbm_capture):
    plain = evaluate_hbm_0ohm(hbm_capture, 500.0)
    explicit = evaluate_hbm_0ohm(hbm_capture, 500.0, HBM0OhmOptions(detect_double_peak=True))

    assert explicit.peak_current.value == pytest.approx(plain.peak_current.value)


def test_pre_trigger_noise_compensation_reduces_ringing():
    rng = np.random.default_rng(7)
    clean = hbm_double_exponential(0.335, 2e-9, 150e-9)
    noise = rng.normal(0.0, 0.004, len(clean))
    noisy = Waveform.from_arrays(clean.times, clean.amplitudes + noise)

    uncompensated = evaluate_hbm_0ohm(noisy, 500.0)
    options = HBM0OhmOptions(
        noise_compensation=NoiseCompensation.PRE_TRIGGER, noise_cutoff_time=-1e-9
    )
    compensated = evaluate_hbm_0ohm(noisy, 500.0, options)

    positive_noise, negative_noise = compensated.noise_floor
    assert positive_noise > 0
    assert negative_noise < 0
    assert compensated.ringing.value < uncompensated.ringing.value


def test_digital_filter_noise_compensation(hbm_capture):
    options = HBM0OhmOptions(noise_compensation=NoiseCompensation.DIGITAL_FILTER)

    result = evaluate_hbm_0ohm(hbm_capture, 500.0, options)

    positive_noise, negative_noise = result.noise_floor
    assert positive_noise >= 0
    assert negative_noise <= 0
    assert result.ringing.is_measured


def test_pre_trigger_without_samples_has_zero_floor(hbm_capture):
    options = HBM0OhmOptions(
        noise_compensation=NoiseCompensation.PRE_TRIGGER, noise_cutoff_time=-1.0
    )

    result = evaluate_hbm_0ohm(hbm_capture, 500.0, options)

    assert result.noise_floor == (0.0, 0.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"fit_window": 0.0},
        {"double_peak_cutoff_percent": 1.0},
        {"double_peak_increase_percent": 0.0},
        {"decay_extension_ceiling": -1e-6},
        {"noise_compensation": NoiseCompensation.PRE_TRIGGER},
        {"noise_compensation": NoiseCompensation.PRE_TRIGGER, "noise_cutoff_time": float("nan")},
    ],
)
def test_invalid_options_are_rejected(kwargs):
    with pytest.raises(ValueError):
        HBM0OhmOptions(**kwargs)


# 3. HBM 500 Ohm


def test_500ohm_negative_capture_passes(hbm500_capture):
    result = evaluate_hbm_500ohm(hbm500_capture, -4000.0)

    assert result.peak_current.value == pytest.approx(-1.8, rel=1e-3)
    assert result.peak_current.allowed_minimum == -1.5
    assert result.peak_current.allowed_maximum == -2.2
    assert result.rise_time.value == pytest.approx(12.4e-9, rel=0.05)
    assert result.rise_time.allowed_minimum == 5e-9
    assert result.rise_time.allowed_maximum == 25e-9
    assert [m.name for m in result.measurements()] == ["Peak Current", "Rise Time"]
    assert result.is_passing


def test_500ohm_uses_raw_maximum_not_fit():
    waveform = Waveform([(0.0, 0.0), (10e-9, 1.0), (11e-9, 2.0), (12e-9, 1.0), (100e-9, 0.0)])

    evaluator = HBM500OhmJS001Evaluator(waveform, 4000.0)

    assert evaluator.result.peak_current.value == 2.0
    assert evaluator.result.peak_current.points[0].time == 11e-9


def test_500ohm_rise_time_out_of_band_fails():
    waveform = Waveform([(0.0, 0.0), (1e-9, 1.8), (200e-9, 0.0)])

    result = evaluate_hbm_500ohm(waveform, 4000.0)

    assert result.rise_time.value == pytest.approx(0.8e-9)
    assert result.rise_time.is_passing is False
    assert result.peak_current.is_passing is True
    assert result.is_passing is False


def test_repeated_timestamp_on_rising_edge_is_measured():
    """A scope that repeats a timestamp mid-edge still yields every measurement."""
    waveform = Waveform(
        [(0.0, 0.0), (1e-9, 0.0), (1e-9, 0.5), (2e-9, 1.0), (3e-9, 1.8), (50e-9, 1.0), (200e-9, 0.0)]
    )

    result = evaluate_hbm_500ohm(waveform, 4000.0)

    assert result.peak_current.value == 1.8
    assert result.rise_time.points[0].time == 1e-9
    assert result.rise_time.value == pytest.approx(1.775e-9)
