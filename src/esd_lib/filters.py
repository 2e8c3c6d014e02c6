"""
Fixed-coefficient Bessel low-pass filter.

Used only to estimate the noise riding on an HBM capture. The recursion is

    y[n] = A*x[n-3] + 3A*x[n-2] + 3A*x[n-1] + A*x[n]
         + B*y[n-3] + C*y[n-2] + D*y[n-1]

with (A, B, C, D, delay) picked from a table keyed by sampling frequency.
"""

import logging
from typing import NamedTuple

from scipy import signal

import src.esd_lib.constants as C
from src.esd_lib.waveform import Waveform

logger = logging.getLogger(__name__)


class FilterCoefficients(NamedTuple):
    a: float
    b: float
    c: float
    d: float
    delay: int


# Ascending by max sampling frequency
COEFFICIENT_TABLE: tuple[tuple[int, FilterCoefficients], ...] = tuple(
    (frequency, FilterCoefficients(*coefficients))
    for frequency, coefficients in sorted(C.BESSEL_COEFFICIENT_SETS)
)


def select_filter_coefficients(sampling_frequency: float) -> FilterCoefficients:
    """
    Picks the coefficient set for a sampling frequency.

    Returns the first table entry whose frequency is >= `sampling_frequency`,
    or the highest-frequency entry if the sampling frequency exceeds them all.
    """
    for max_frequency, coefficients in COEFFICIENT_TABLE:
        if sampling_frequency <= max_frequency:
            return coefficients
    return COEFFICIENT_TABLE[-1][1]


def filter_waveform(waveform: Waveform) -> Waveform:
    """
    Runs the Bessel low-pass filter over a waveform.

    The recursion is seeded with three padding samples (input and output)
    equal to the average of the first three real samples, so that it starts
    inside the pre-pulse noise. Output times are shifted back by the filter's
    group delay.

    Args:
        waveform: The waveform to filter.

    Returns:
        The filtered waveform, with the same number of samples as the input.
        Waveforms with 3 or fewer samples, or with no usable sampling
        frequency, are returned unfiltered.
    """
    padding = C.FILTER_PADDING_COUNT
    if len(waveform) <= padding:
        return waveform

    sampling_frequency = waveform.sampling_frequency()
    if sampling_frequency <= 0:
        logger.warning("Cannot filter a waveform without a sampling frequency")
        return waveform

    coefficients = select_filter_coefficients(sampling_frequency)
    a1 = coefficients.a
    a3 = coefficients.a * 3.0

    # y[n] - D*y[n-1] - C*y[n-2] - B*y[n-3] = A*x[n] + 3A*x[n-1] + 3A*x[n-2] + A*x[n-3]
    numerator = [a1, a3, a3, a1]
    denominator = [1.0, -coefficients.d, -coefficients.c, -coefficients.b]

    amplitudes = waveform.amplitudes
    padding_value = float(amplitudes[:padding].mean())
    history = [padding_value] * padding
    initial_state = signal.lfiltic(numerator, denominator, y=history, x=history)

    filtered, _ = signal.lfilter(numerator, denominator, amplitudes, zi=initial_state)

    shift = -coefficients.delay / sampling_frequency
    return Waveform.from_arrays(waveform.times + shift, filtered)
