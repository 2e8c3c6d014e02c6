import numpy as np
import pytest

import src.esd_lib.constants as C
from src.esd_lib import Waveform, filter_waveform, select_filter_coefficients


def test_coefficient_selection_picks_first_entry_at_or_above():
    frequencies = sorted(f for f, _ in C.BESSEL_COEFFICIENT_SETS)

    lowest = select_filter_coefficients(frequencies[0] / 2)
    exact = select_filter_coefficients(frequencies[1])
    between = select_filter_coefficients((frequencies[1] + frequencies[2]) / 2)

    assert lowest.delay == dict(C.BESSEL_COEFFICIENT_SETS)[frequencies[0]][4]
    assert exact.a == dict(C.BESSEL_COEFFICIENT_SETS)[frequencies[1]][0]
    assert between.a == dict(C.BESSEL_COEFFICIENT_SETS)[frequencies[2]][0]


def test_coefficient_selection_clamps_to_highest():
    highest_frequency, highest = max(C.BESSEL_COEFFICIENT_SETS)

    assert select_filter_coefficients(highest_frequency * 10).a == highest[0]


def test_short_waveform_is_returned_unfiltered():
    waveform = Waveform([(0, 1.0), (1e-9, 2.0), (2e-9, 3.0)])

    assert filter_waveform(waveform) is waveform


def test_filter_preserves_length_and_shifts_time():
    times = np.arange(0, 200) * 0.2e-9  # 5 GS/s
    waveform = Waveform.from_arrays(times, np.sin(times * 1e9))

    filtered = filter_waveform(waveform)
    coefficients = select_filter_coefficients(waveform.sampling_frequency())

    assert len(filtered) == len(waveform)
    assert filtered[0].time == pytest.approx(-coefficients.delay * 0.2e-9)


def test_flat_signal_passes_through_unchanged():
    """Padding with the starting level means a DC input has no start-up transient."""
    times = np.arange(0, 100) * 0.1e-9
    waveform = Waveform.from_arrays(times, np.full(100, 0.25))

    filtered = filter_waveform(waveform)
    assert np.allclose(filtered.amplitudes, 0.25, rtol=1e-6)


def test_output_matches_direct_recursion():
    """Bessel recursion written out sample by sample, seeded with the opening average."""
    rng = np.random.default_rng(11)
    times = np.arange(0, 300) * 0.2e-9  # 5 GS/s
    x = np.sin(times * 2e8) + rng.normal(0.0, 0.1, len(times))
    waveform = Waveform.from_arrays(times, x)
    k = select_filter_coefficients(waveform.sampling_frequency())

    seed = x[:3].mean()
    xs = [seed] * 3 + list(x)
    ys = [seed] * 3
    for n in range(3, len(xs)):
        ys.append(
            k.a * xs[n - 3]
            + 3 * k.a * xs[n - 2]
            + 3 * k.a * xs[n - 1]
            + k.a * xs[n]
            + k.b * ys[n - 3]
            + k.c * ys[n - 2]
            + k.d * ys[n - 1]
        )

    filtered = filter_waveform(waveform)

    assert np.allclose(filtered.amplitudes, ys[3:], rtol=1e-9, atol=1e-12)
