"""
Type definitions and shared data structures for the ESD library.

This module contains the value types passed between the numeric primitives
and the evaluators, and the immutable result records each evaluator emits.
"""

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from src.esd_lib.waveform import Waveform


class DataPoint(NamedTuple):
    """A single (time, amplitude) sample. Equality is by value."""

    time: float
    amplitude: float


@dataclass(frozen=True)
class FifthDegreePolynomial:
    """
    Polynomial of degree <= 5: a0 + a1*x + a2*x^2 + ... + a5*x^5.

    Raises:
        ValueError: If any coefficient is infinite or NaN.
    """

    a0: float = 0.0
    a1: float = 0.0
    a2: float = 0.0
    a3: float = 0.0
    a4: float = 0.0
    a5: float = 0.0

    def __post_init__(self) -> None:
        for name, value in zip(("a0", "a1", "a2", "a3", "a4", "a5"), self.coefficients):
            if not math.isfinite(value):
                raise ValueError(f"{name.upper()} cannot be infinity or NaN")

    @property
    def coefficients(self) -> tuple[float, ...]:
        return (self.a0, self.a1, self.a2, self.a3, self.a4, self.a5)

    def evaluate(self, x: float) -> float:
        """Evaluates the polynomial at x (Horner's scheme)."""
        total = 0.0
        for coefficient in reversed(self.coefficients):
            total = total * x + coefficient
        return total


@dataclass(frozen=True)
class Measurement:
    """
    One measured characteristic and its verdict.

    Attributes:
        name: Display name (e.g. "Rise Time").
        unit: Display unit of `value` ("A", "s" or "ratio").
        value: Signed measured value. None if the measurement could not be made.
        points: Anchoring points on the (signed) waveform, in measurement order.
        allowed_minimum: Lower bound of the passing band (None if unbounded).
        allowed_maximum: Upper bound of the passing band (None if unbounded).
        is_passing: Verdict. None when `value` is None.
    """

    name: str
    unit: str
    value: float | None = None
    points: tuple[DataPoint, ...] = ()
    allowed_minimum: float | None = None
    allowed_maximum: float | None = None
    is_passing: bool | None = None

    @property
    def is_measured(self) -> bool:
        return self.value is not None


def _all_passing(measurements: tuple[Measurement, ...]) -> bool:
    return all(m.is_passing is True for m in measurements)


@dataclass(frozen=True)
class CDMResult:
    """Outcome of a JS-002 charged-device-model evaluation."""

    waveform: "Waveform" = field(repr=False)
    signed_voltage: float
    is_large_target: bool
    is_high_bandwidth: bool
    peak_current: Measurement
    rise_time: Measurement
    full_width_half_max: Measurement
    undershoot: Measurement
    undershoot_allowed_max_percent: float

    def measurements(self) -> tuple[Measurement, ...]:
        return (
            self.peak_current,
            self.rise_time,
            self.full_width_half_max,
            self.undershoot,
        )

    @property
    def is_passing(self) -> bool:
        return _all_passing(self.measurements())


@dataclass(frozen=True)
class HBM0OhmResult:
    """
    Outcome of a JS-001 human-body-model evaluation into a 0 Ohm (shorted) load.

    Attributes:
        ips_polynomial: The least-squares line (absolute-value domain) fitted
            from the peak across the fit window. Ips is this line evaluated at
            the peak time; ringing is measured against it.
        noise_floor: (positive, negative) noise amounts removed from the ring
            peaks. (0.0, 0.0) when noise compensation is disabled.
    """

    waveform: "Waveform" = field(repr=False)
    signed_voltage: float
    peak_current: Measurement
    rise_time: Measurement
    decay_time: Measurement
    ringing: Measurement
    ips_polynomial: FifthDegreePolynomial
    noise_floor: tuple[float, float] = (0.0, 0.0)

    def measurements(self) -> tuple[Measurement, ...]:
        return (self.peak_current, self.rise_time, self.decay_time, self.ringing)

    @property
    def is_passing(self) -> bool:
        return _all_passing(self.measurements())


@dataclass(frozen=True)
class HBM500OhmResult:
    """Outcome of a JS-001 human-body-model evaluation into a 500 Ohm load."""

    waveform: "Waveform" = field(repr=False)
    signed_voltage: float
    peak_current: Measurement
    rise_time: Measurement

    def measurements(self) -> tuple[Measurement, ...]:
        return (self.peak_current, self.rise_time)

    @property
    def is_passing(self) -> bool:
        return _all_passing(self.measurements())


EvaluationResult = CDMResult | HBM0OhmResult | HBM500OhmResult
