"""
Human-body-model evaluation (ANSI/ESDA/JEDEC JS-001).

Two load configurations are supported:
- 0 Ohm (shorted): Ips from a least-squares line across the 40 ns after the
  peak, rise time, decay time from an exponential fit of the trailing edge,
  and ringing relative to the least-squares line.
- 500 Ohm: peak current and rise time only.

Double-peak detection and noise compensation for the 0 Ohm evaluation are
explicit options (HBM0OhmOptions); with the defaults both are disabled.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

import src.esd_lib.constants as C
from src.esd_lib.context import SignedWaveform, measure_peak_current, measure_rise_time
from src.esd_lib.crossing import find_threshold_crossing
from src.esd_lib.filters import filter_waveform
from src.esd_lib.fitting import exponential_fit, exponential_fit_waveform, least_squares_fit
from src.esd_lib.tolerances import HBM_0OHM_TABLE, HBM_500OHM_TABLE
from src.esd_lib.types import (
    DataPoint,
    FifthDegreePolynomial,
    HBM0OhmResult,
    HBM500OhmResult,
    Measurement,
)
from src.esd_lib.utils import between_inclusive, validate_percent, validate_positive
from src.esd_lib.waveform import Waveform

logger = logging.getLogger(__name__)


class NoiseCompensation(Enum):
    """How the noise floor is estimated before measuring ringing."""

    NONE = "none"
    # Extremes of the capture before a cutoff time (the zero line before trigger)
    PRE_TRIGGER = "pre_trigger"
    # Extremes of (raw - Bessel filtered) inside the fit window
    DIGITAL_FILTER = "digital_filter"


@dataclass(frozen=True)
class HBM0OhmOptions:
    """
    Tunables for the 0 Ohm evaluation.

    Attributes:
        fit_window: Length of the least-squares window after the peak (s).
        detect_double_peak: Re-select a later peak when the pulse dips below
            `double_peak_cutoff_percent` of the maximum and climbs back more
            than `double_peak_increase_percent` above that cutoff.
        double_peak_cutoff_percent: Dip level, as a fraction of the maximum.
        double_peak_increase_percent: Required rise above the cutoff, as a
            fraction of the cutoff level.
        noise_compensation: Noise floor strategy for the ringing measurement.
        noise_cutoff_time: End of the pre-trigger window (PRE_TRIGGER only).
        decay_extension_ceiling: How far past the peak the fitted decay curve
            may be extended when the capture ends too early (s).
        rise_time_start_percent: Lower rise-time threshold.
        rise_time_end_percent: Upper rise-time threshold.
    """

    fit_window: float = C.HBM_0OHM_FIT_WINDOW
    detect_double_peak: bool = False
    double_peak_cutoff_percent: float = C.HBM_DOUBLE_PEAK_CUTOFF_PERCENT
    double_peak_increase_percent: float = C.HBM_DOUBLE_PEAK_INCREASE_PERCENT
    noise_compensation: NoiseCompensation = NoiseCompensation.NONE
    noise_cutoff_time: float | None = None
    decay_extension_ceiling: float = C.HBM_DECAY_EXTENSION_CEILING
    rise_time_start_percent: float = C.RISE_TIME_START_PERCENT
    rise_time_end_percent: float = C.RISE_TIME_END_PERCENT

    def __post_init__(self) -> None:
        validate_positive("Fit window", self.fit_window)
        validate_positive("Decay extension ceiling", self.decay_extension_ceiling)
        validate_percent("Double peak cutoff percent", self.double_peak_cutoff_percent)
        validate_percent("Double peak increase percent", self.double_peak_increase_percent)
        if self.noise_compensation is NoiseCompensation.PRE_TRIGGER:
            if self.noise_cutoff_time is None or not math.isfinite(self.noise_cutoff_time):
                raise ValueError("Pre-trigger noise compensation requires a finite cutoff time")


def locate_peak(
    waveform: Waveform,
    detect_double_peak: bool = False,
    cutoff_percent: float = C.HBM_DOUBLE_PEAK_CUTOFF_PERCENT,
    increase_percent: float = C.HBM_DOUBLE_PEAK_INCREASE_PERCENT,
) -> DataPoint:
    """
    Finds the peak sample of a positive-going pulse.

    Without double-peak detection this is the first maximum. With it, the
    pulse is split into lobes: a lobe ends when the amplitude drops below the
    cutoff, and a new lobe starts only when it climbs back above
    cutoff * (1 + increase_percent). The maximum of the latest lobe wins.

    Args:
        waveform: The absolute-value waveform.
        detect_double_peak: Enables lobe detection.
        cutoff_percent: Dip level as a fraction of the maximum.
        increase_percent: Hysteresis above the cutoff for a new lobe.

    Returns:
        The selected peak sample.
    """
    peak = waveform.maximum()
    if not detect_double_peak or peak.amplitude <= 0:
        return peak

    cutoff = peak.amplitude * cutoff_percent
    resume_level = cutoff * (1.0 + increase_percent)

    lobe_peaks: list[DataPoint] = []
    in_lobe = False
    for dp in waveform:
        if in_lobe:
            if dp.amplitude < cutoff:
                in_lobe = False
            elif dp.amplitude > lobe_peaks[-1].amplitude:
                lobe_peaks[-1] = dp
        else:
            threshold = resume_level if lobe_peaks else cutoff
            if dp.amplitude >= threshold:
                in_lobe = True
                lobe_peaks.append(dp)

    if len(lobe_peaks) > 1:
        logger.info(
            f"Double peak detected: using {lobe_peaks[-1].amplitude:.4g} A at "
            f"{lobe_peaks[-1].time:.4g} s instead of {peak.amplitude:.4g} A"
        )
    return lobe_peaks[-1]


def max_ring_points(
    window: Waveform, trend: FifthDegreePolynomial
) -> tuple[DataPoint, float, DataPoint, float]:
    """
    Largest positive and negative deviations of `window` from `trend`.

    Returns:
        (positive point, positive deviation, negative point, negative deviation).
        Deviations are 0.0, and points the first sample, when none exist.
    """
    positive_point = negative_point = window[0]
    positive_ring = negative_ring = 0.0
    for dp in window:
        difference = dp.amplitude - trend.evaluate(dp.time)
        if difference > positive_ring:
            positive_point, positive_ring = dp, difference
        elif difference < negative_ring:
            negative_point, negative_ring = dp, difference
    return positive_point, positive_ring, negative_point, negative_ring


class HBM0OhmJS001Evaluator:
    """
    Runs the JS-001 0 Ohm measurement sequence once, at construction.

    Attributes:
        context: Polarity-normalised view of the input.
        options: The evaluation options.
        peak_point: Absolute-domain sample chosen as the peak.
        fit_window: Absolute waveform gated to [peak, peak + fit_window].
        ips_polynomial: Least-squares line over `fit_window`.
        result: The frozen HBM0OhmResult.
    """

    def __init__(
        self,
        waveform: Waveform,
        signed_voltage: float,
        options: HBM0OhmOptions | None = None,
    ):
        self.options = options or HBM0OhmOptions()
        self.context = SignedWaveform(waveform, signed_voltage)
        self.tolerance = HBM_0OHM_TABLE.lookup(signed_voltage)

        self.peak_point = locate_peak(
            self.context.absolute,
            self.options.detect_double_peak,
            self.options.double_peak_cutoff_percent,
            self.options.double_peak_increase_percent,
        )
        self.fit_window = self.context.absolute.gate(
            self.peak_point.time, self.peak_point.time + self.options.fit_window
        )
        if len(self.fit_window) < 2:
            logger.warning("Ips fit window holds fewer than 2 samples; using the raw peak")
            self.ips_polynomial = FifthDegreePolynomial(a0=self.peak_point.amplitude)
        else:
            self.ips_polynomial = least_squares_fit(self.fit_window)

        peak_current = self._peak_current()
        ips_abs = abs(peak_current.value or 0.0)

        rise_min, rise_max = C.HBM_0OHM_RISE_TIME
        rise_time = measure_rise_time(
            self.context,
            ips_abs,
            allowed_minimum=rise_min,
            allowed_maximum=rise_max,
            start_percent=self.options.rise_time_start_percent,
            end_percent=self.options.rise_time_end_percent,
        )
        decay_time = self._decay_time(peak_current.points[0], ips_abs)
        noise_floor = self._noise_floor()
        ringing = self._ringing(ips_abs, noise_floor)

        self.result = HBM0OhmResult(
            waveform=waveform,
            signed_voltage=signed_voltage,
            peak_current=peak_current,
            rise_time=rise_time,
            decay_time=decay_time,
            ringing=ringing,
            ips_polynomial=self.ips_polynomial,
            noise_floor=noise_floor,
        )

    def _peak_current(self) -> Measurement:
        # Evaluating the fitted line at the peak smooths single-sample spikes
        ips_abs = self.ips_polynomial.evaluate(self.peak_point.time)
        value = self.context.signed(ips_abs)
        signed_min, signed_max = self.context.signed_band(
            self.tolerance.peak_current_min, self.tolerance.peak_current_max
        )
        return Measurement(
            name="Peak Current",
            unit="A",
            value=value,
            points=(DataPoint(self.peak_point.time, value),),
            allowed_minimum=signed_min,
            allowed_maximum=signed_max,
            is_passing=between_inclusive(signed_min, signed_max, value),
        )

    def _decay_time(self, peak_point: DataPoint, ips_abs: float) -> Measurement:
        decay_min, decay_max = C.HBM_0OHM_DECAY_TIME
        unset = Measurement(
            name="Decay Time", unit="s", allowed_minimum=decay_min, allowed_maximum=decay_max
        )

        trailing = self.context.absolute.trim_start(peak_point.time)
        fit_start = find_threshold_crossing(trailing, C.HBM_DECAY_FIT_START_PERCENT * ips_abs, True)
        if fit_start is None:
            logger.warning("Decay time: the trailing edge never falls to 50% of Ips")
            return unset

        fit_end = find_threshold_crossing(trailing, C.HBM_DECAY_FIT_END_PERCENT * ips_abs, True)
        if fit_end is None:
            logger.warning("Decay time: capture ends before 30% of Ips; fitting to the end")
            fit_end_time = trailing[-1].time
        else:
            fit_end_time = fit_end.time

        decaying_region = self.context.absolute.gate(fit_start.time, fit_end_time)
        try:
            a, b = exponential_fit(decaying_region)
        except ValueError as e:
            logger.warning(f"Decay time: exponential fit failed ({e})")
            return unset

        threshold = ips_abs / math.e
        times = decaying_region.times
        fitted = exponential_fit_waveform(a, b, times)
        end_abs = find_threshold_crossing(fitted, threshold, True)

        if end_abs is None and b < 0:
            end_abs = self._extended_decay_crossing(a, b, times, peak_point.time, threshold)

        if end_abs is None:
            logger.warning("Decay time: fitted curve never reaches Ips/e")
            return unset

        end_point = self.context.signed_point(end_abs)
        value = end_point.time - peak_point.time
        return Measurement(
            name="Decay Time",
            unit="s",
            value=value,
            points=(peak_point, end_point),
            allowed_minimum=decay_min,
            allowed_maximum=decay_max,
            is_passing=between_inclusive(decay_min, decay_max, value),
        )

    def _extended_decay_crossing(
        self, a: float, b: float, times: np.ndarray, peak_time: float, threshold: float
    ) -> DataPoint | None:
        """Extends the fitted curve past the capture on the capture's time grid."""
        step = self.context.absolute.sampling_interval()
        ceiling = peak_time + self.options.decay_extension_ceiling
        if step <= 0 or times[-1] >= ceiling:
            return None

        extension = np.arange(times[-1] + step, ceiling + step, step)
        logger.info(f"Decay time: extending the fitted curve by {len(extension)} samples")
        fitted = exponential_fit_waveform(a, b, np.concatenate((times, extension)))
        return find_threshold_crossing(fitted, threshold, True)

    def _noise_floor(self) -> tuple[float, float]:
        strategy = self.options.noise_compensation

        if strategy is NoiseCompensation.PRE_TRIGGER:
            pre_trigger = self.context.absolute.trim_end(self.options.noise_cutoff_time)  # type: ignore[arg-type]
            if not pre_trigger:
                logger.warning("Noise compensation: no samples before the cutoff time")
                return 0.0, 0.0
            return pre_trigger.maximum().amplitude, pre_trigger.minimum().amplitude

        if strategy is NoiseCompensation.DIGITAL_FILTER:
            if not self.fit_window:
                return 0.0, 0.0
            filtered = filter_waveform(self.context.absolute)
            smooth = np.interp(self.fit_window.times, filtered.times, filtered.amplitudes)
            divergence = self.fit_window.amplitudes - smooth
            return max(float(divergence.max()), 0.0), min(float(divergence.min()), 0.0)

        return 0.0, 0.0

    def _ringing(self, ips_abs: float, noise_floor: tuple[float, float]) -> Measurement:
        unset = Measurement(name="Ringing", unit="ratio", allowed_maximum=C.HBM_0OHM_RING_MAX)
        if not self.fit_window or ips_abs <= 0:
            logger.warning("Ringing: no fit window or zero Ips")
            return unset

        positive_point, positive_ring, negative_point, negative_ring = max_ring_points(
            self.fit_window, self.ips_polynomial
        )
        positive_noise, negative_noise = noise_floor
        positive_ring = max(positive_ring - positive_noise, 0.0)
        negative_ring = min(negative_ring - negative_noise, 0.0)

        value = (abs(positive_ring) + abs(negative_ring)) / ips_abs
        return Measurement(
            name="Ringing",
            unit="ratio",
            value=value,
            points=(
                self.context.signed_point(positive_point),
                self.context.signed_point(negative_point),
            ),
            allowed_maximum=C.HBM_0OHM_RING_MAX,
            is_passing=value <= C.HBM_0OHM_RING_MAX,
        )


class HBM500OhmJS001Evaluator:
    """Runs the JS-001 500 Ohm measurement sequence (peak current, rise time)."""

    def __init__(self, waveform: Waveform, signed_voltage: float):
        self.context = SignedWaveform(waveform, signed_voltage)
        self.tolerance = HBM_500OHM_TABLE.lookup(signed_voltage)

        peak_current = measure_peak_current(
            self.context, self.tolerance.peak_current_min, self.tolerance.peak_current_max
        )
        rise_min, rise_max = C.HBM_500OHM_RISE_TIME
        rise_time = measure_rise_time(
            self.context,
            abs(peak_current.points[0].amplitude),
            allowed_minimum=rise_min,
            allowed_maximum=rise_max,
        )

        self.result = HBM500OhmResult(
            waveform=waveform,
            signed_voltage=signed_voltage,
            peak_current=peak_current,
            rise_time=rise_time,
        )


def evaluate_hbm_0ohm(
    waveform: Waveform, signed_voltage: float, options: HBM0OhmOptions | None = None
) -> HBM0OhmResult:
    """Evaluates an HBM capture into a shorted load against JS-001."""
    return HBM0OhmJS001Evaluator(waveform, signed_voltage, options).result


def evaluate_hbm_500ohm(waveform: Waveform, signed_voltage: float) -> HBM500OhmResult:
    """Evaluates an HBM capture into a 500 Ohm load against JS-001."""
    return HBM500OhmJS001Evaluator(waveform, signed_voltage).result
