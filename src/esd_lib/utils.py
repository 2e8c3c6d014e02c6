"""
Utility functions for range arithmetic and polarity handling.

This module handles the low-level numeric helpers, including:
- Mapping a value from one range onto another (linear interpolation).
- Inclusive band checks that accept bounds in either order.
- Polarity inversion for values and data points.
- Validation of percentage and multiplier parameters.
"""

import math

from src.esd_lib.types import DataPoint


def center_of_range(value1: float, value2: float) -> float:
    """Midpoint of two values (the nominal of a min/max band)."""
    return ((value2 - value1) / 2.0) + value1


def equivalent_value_in_new_range(
    value: float,
    orig_range_max: float,
    orig_range_min: float,
    new_range_max: float,
    new_range_min: float,
) -> float:
    """
    Maps `value` from one range onto another by linear interpolation.

    The "max"/"min" naming only identifies the two ends; the ends may be given
    in either order as long as both ranges use the same pairing.

    Args:
        value: The value in the original range.
        orig_range_max: End of the original range paired with `new_range_max`.
        orig_range_min: End of the original range paired with `new_range_min`.
        new_range_max: End of the new range.
        new_range_min: Other end of the new range.

    Returns:
        The equivalent value in the new range.

    Raises:
        ValueError: If either range has zero width.
    """
    orig_range = orig_range_max - orig_range_min
    if orig_range == 0:
        raise ValueError("Original range cannot be 0")

    new_range = new_range_max - new_range_min
    if new_range == 0:
        raise ValueError("New range cannot be 0")

    return ((value - orig_range_min) * new_range / orig_range) + new_range_min


def percent_within_range(value: float, range_max: float, range_min: float) -> float:
    """Position of `value` between `range_min` (0.0) and `range_max` (1.0)."""
    return equivalent_value_in_new_range(value, range_max, range_min, 1.0, 0.0)


def lerp(fraction: float, start: float, end: float) -> float:
    """Linear interpolation: `start` at 0.0, `end` at 1.0. Safe for start == end."""
    return start + (end - start) * fraction


def between_inclusive(boundary1: float, boundary2: float, value: float) -> bool:
    """True if `value` lies in the closed band between the boundaries (in either order)."""
    lower, upper = sorted((boundary1, boundary2))
    return lower <= value <= upper


def invert_if_negative(value: float, is_positive_polarity: bool) -> float:
    """Negates `value` for negative polarity."""
    return value if is_positive_polarity else value * -1.0


def invert_point_if_negative(point: DataPoint, is_positive_polarity: bool) -> DataPoint:
    """Negates the amplitude (never the time) of `point` for negative polarity."""
    if is_positive_polarity:
        return point
    return DataPoint(point.time, point.amplitude * -1.0)


def validate_percent(
    name: str, value: float, allow_zero: bool = False, allow_one: bool = False
) -> None:
    """
    Checks a fractional percentage parameter.

    Valid values lie in (0, 1); the flags open either end of the interval.

    Raises:
        ValueError: If the value is non-finite or out of range.
    """
    low_ok = value >= 0.0 if allow_zero else value > 0.0
    high_ok = value <= 1.0 if allow_one else value < 1.0
    if not math.isfinite(value) or not (low_ok and high_ok):
        low = "[0" if allow_zero else "(0"
        high = "1]" if allow_one else "1)"
        raise ValueError(f"{name} must be within {low}, {high}, got {value}")


def validate_positive(name: str, value: float) -> None:
    """
    Checks a strictly positive multiplier or duration.

    Raises:
        ValueError: If the value is non-finite or <= 0.
    """
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be greater than 0, got {value}")


def format_si(value: float | None, unit: str, digits: int = 4) -> str:
    """
    Formats a value with an SI prefix for display (e.g. 3.1e-10 s -> '310 ps').

    Args:
        value: The value to format. None renders as "n/a".
        unit: The base unit ("A", "s", "V").
        digits: Significant digits.

    Returns:
        A display string.
    """
    if value is None:
        return "n/a"
    if unit == "ratio":
        return f"{value * 100:.2f} %"
    if value == 0:
        return f"0 {unit}"

    prefixes = [(1e-12, "p"), (1e-9, "n"), (1e-6, "u"), (1e-3, "m"), (1.0, "")]
    magnitude = abs(value)
    scale, prefix = prefixes[0]
    for candidate_scale, candidate_prefix in prefixes:
        if magnitude >= candidate_scale:
            scale, prefix = candidate_scale, candidate_prefix
    return f"{value / scale:.{digits}g} {prefix}{unit}"
