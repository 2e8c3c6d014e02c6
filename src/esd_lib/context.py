"""
Shared evaluation context and measurements common to every standard.

`SignedWaveform` bundles the captured waveform, the signed test voltage, and
the absolute-value view all measurements are made on. Evaluators compose it
rather than inherit from it.
"""

import logging
import math

import src.esd_lib.constants as C
from src.esd_lib.crossing import find_threshold_crossing
from src.esd_lib.types import DataPoint, Measurement
from src.esd_lib.utils import (
    between_inclusive,
    invert_if_negative,
    invert_point_if_negative,
    validate_percent,
)
from src.esd_lib.waveform import Waveform

logger = logging.getLogger(__name__)


def validate_test_voltage(signed_voltage: float) -> None:
    """
    Checks a test voltage against the instrument range.

    Raises:
        ValueError: If the voltage is non-finite, zero, or beyond +/-100 kV.
    """
    if not math.isfinite(signed_voltage):
        raise ValueError("Test voltage cannot be infinity or NaN")
    if signed_voltage == 0:
        raise ValueError("Test voltage cannot be 0")
    if abs(signed_voltage) > C.MAX_ABS_TEST_VOLTAGE:
        raise ValueError(
            f"Test voltage must be within +/-{C.MAX_ABS_TEST_VOLTAGE:g} V, got {signed_voltage}"
        )


class SignedWaveform:
    """
    A captured waveform together with its test polarity.

    Attributes:
        waveform: The waveform as captured (signed).
        signed_voltage: The test voltage, whose sign sets the polarity.
        is_positive_polarity: True for a positive test voltage.
        absolute: The waveform flipped so the discharge pulse is positive-going.
    """

    def __init__(self, waveform: Waveform, signed_voltage: float):
        validate_test_voltage(signed_voltage)
        if not waveform:
            raise ValueError("Waveform must have at least 1 data point")

        self.waveform = waveform
        self.signed_voltage = signed_voltage
        self.is_positive_polarity = signed_voltage > 0
        self.absolute = waveform if self.is_positive_polarity else waveform.scale_vertically(-1.0)

    def signed(self, value: float) -> float:
        """Converts an absolute-domain amplitude back to the signed domain."""
        return invert_if_negative(value, self.is_positive_polarity)

    def signed_point(self, point: DataPoint) -> DataPoint:
        """Converts an absolute-domain point back to the signed domain (time untouched)."""
        return invert_point_if_negative(point, self.is_positive_polarity)

    def signed_band(self, minimum: float, maximum: float) -> tuple[float, float]:
        """Applies polarity to an amplitude band."""
        return self.signed(minimum), self.signed(maximum)


def measure_peak_current(
    context: SignedWaveform, allowed_minimum: float, allowed_maximum: float
) -> Measurement:
    """
    Peak current as the largest sample of the absolute waveform.

    Args:
        context: The evaluation context.
        allowed_minimum: Unsigned lower band edge.
        allowed_maximum: Unsigned upper band edge.

    Returns:
        The signed peak current measurement.
    """
    peak_point = context.signed_point(context.absolute.maximum())
    signed_min, signed_max = context.signed_band(allowed_minimum, allowed_maximum)
    return Measurement(
        name="Peak Current",
        unit="A",
        value=peak_point.amplitude,
        points=(peak_point,),
        allowed_minimum=signed_min,
        allowed_maximum=signed_max,
        is_passing=between_inclusive(signed_min, signed_max, peak_point.amplitude),
    )


def measure_rise_time(
    context: SignedWaveform,
    peak_current_abs: float,
    allowed_minimum: float | None,
    allowed_maximum: float,
    start_percent: float = C.RISE_TIME_START_PERCENT,
    end_percent: float = C.RISE_TIME_END_PERCENT,
) -> Measurement:
    """
    Rise time between two percentages of the peak current.

    The end point is the first crossing of `end_percent` * Ip on the absolute
    waveform. The start point is the last crossing of `start_percent` * Ip
    among the samples up to that end point.

    Args:
        context: The evaluation context.
        peak_current_abs: Absolute peak current the thresholds are based on.
        allowed_minimum: Lower bound, or None for a max-only limit.
        allowed_maximum: Upper bound.
        start_percent: Lower threshold, in [0, 1).
        end_percent: Upper threshold, in (0, 1].

    Returns:
        The rise time measurement (unset if either threshold is never crossed).

    Raises:
        ValueError: If the percentages are out of range or out of order.
    """
    validate_percent("Rise time start percent", start_percent, allow_zero=True)
    validate_percent("Rise time end percent", end_percent, allow_one=True)
    if start_percent >= end_percent:
        raise ValueError("Rise time start percent must be less than the end percent")

    unset = Measurement(
        name="Rise Time",
        unit="s",
        allowed_minimum=allowed_minimum,
        allowed_maximum=allowed_maximum,
    )

    end_abs = find_threshold_crossing(context.absolute, peak_current_abs * end_percent, True)
    if end_abs is None:
        logger.warning(f"Rise time: {end_percent:.0%} of peak never reached")
        return unset

    # Samples before the end point, closed by the end point itself
    leading_edge = Waveform(
        [dp for dp in context.absolute if dp.time < end_abs.time] + [end_abs]
    )
    start_abs = find_threshold_crossing(leading_edge, peak_current_abs * start_percent, False)
    if start_abs is None:
        logger.warning(f"Rise time: no {start_percent:.0%} crossing before the {end_percent:.0%} point")
        return unset

    start_point = context.signed_point(start_abs)
    end_point = context.signed_point(end_abs)
    value = end_point.time - start_point.time

    if allowed_minimum is None:
        is_passing = value <= allowed_maximum
    else:
        is_passing = between_inclusive(allowed_minimum, allowed_maximum, value)

    return Measurement(
        name="Rise Time",
        unit="s",
        value=value,
        points=(start_point, end_point),
        allowed_minimum=allowed_minimum,
        allowed_maximum=allowed_maximum,
        is_passing=is_passing,
    )
