"""
Least-squares curve fitting over waveform segments.

Two fits are provided:
1. A straight line (returned as a FifthDegreePolynomial with only a0/a1 set).
2. An exponential y = exp(a) * exp(b * t), linearised through ln(y).
"""

import logging
from collections.abc import Iterable

import numpy as np

from src.esd_lib.types import FifthDegreePolynomial
from src.esd_lib.waveform import Waveform

logger = logging.getLogger(__name__)


def _linear_regression(x: np.ndarray, y: np.ndarray) -> tuple[float, float] | None:
    """
    Closed-form normal equations for y = intercept + slope * x.

    Returns (intercept, slope), or None if the system is degenerate.
    """
    n = float(len(x))
    sx = float(np.sum(x))
    sy = float(np.sum(y))
    sxx = float(np.sum(x * x))
    sxy = float(np.sum(x * y))

    denominator = (n * sxx) - (sx * sx)
    if n < 2 or denominator == 0:
        return None

    slope = ((n * sxy) - (sx * sy)) / denominator
    intercept = ((sy * sxx) - (sx * sxy)) / denominator
    return intercept, slope


def least_squares_fit(waveform: Waveform) -> FifthDegreePolynomial:
    """
    Fits a straight line through the waveform's samples.

    Args:
        waveform: The segment to fit.

    Returns:
        The fitted line as a polynomial (a0 = intercept, a1 = slope). The zero
        polynomial is returned for an empty, single-point, or zero-duration
        segment.
    """
    if len(waveform) < 2:
        return FifthDegreePolynomial()

    solution = _linear_regression(waveform.times, waveform.amplitudes)
    if solution is None:
        logger.warning("Least-squares fit over a zero-duration segment; using zero line")
        return FifthDegreePolynomial()

    intercept, slope = solution
    return FifthDegreePolynomial(a0=intercept, a1=slope)


def exponential_fit(waveform: Waveform) -> tuple[float, float]:
    """
    Fits y = exp(a) * exp(b * t) by linear regression on (t, ln y).

    Args:
        waveform: The segment to fit. Every amplitude must be > 0.

    Returns:
        The constants (a, b).

    Raises:
        ValueError: If the segment has fewer than 2 samples, contains a
            non-positive amplitude, or spans zero time.
    """
    if len(waveform) < 2:
        raise ValueError("Exponential fit requires at least 2 data points")

    amplitudes = waveform.amplitudes
    if np.any(amplitudes <= 0):
        raise ValueError("Exponential fit requires strictly positive amplitudes")

    solution = _linear_regression(waveform.times, np.log(amplitudes))
    if solution is None:
        raise ValueError("Exponential fit requires samples at distinct times")

    return solution


def exponential_fit_waveform(a: float, b: float, times: Iterable[float]) -> Waveform:
    """Evaluates exp(a) * exp(b * t) at each time to build a synthetic waveform."""
    t = np.asarray(list(times), dtype=float)
    y = np.exp(a) * np.exp(b * t)
    return Waveform.from_arrays(t, y)
