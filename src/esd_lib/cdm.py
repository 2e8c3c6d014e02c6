"""
Charged-device-model evaluation (ANSI/ESDA/JEDEC JS-002).

The evaluator measures, in order:
1. Peak current (largest sample), against the interpolated Ip band.
2. Rise time (10% -> 90% of Ip), against a max-only limit.
3. Full width at half maximum, against a min/max band.
4. Undershoot (lowest sample within 2.5 x FWHM after the peak), against a
   limit expressed as a negative fraction of Ip.
"""

import logging

import src.esd_lib.constants as C
from src.esd_lib.context import SignedWaveform, measure_peak_current, measure_rise_time
from src.esd_lib.crossing import find_threshold_crossing
from src.esd_lib.tolerances import CDM_JS002_TABLE
from src.esd_lib.types import CDMResult, DataPoint, Measurement
from src.esd_lib.utils import between_inclusive, validate_percent, validate_positive
from src.esd_lib.waveform import Waveform

logger = logging.getLogger(__name__)


class CDMJS002Evaluator:
    """
    Runs the JS-002 measurement sequence once, at construction.

    Attributes:
        context: Polarity-normalised view of the input.
        tolerance: The (possibly interpolated) table row for this test.
        result: The frozen CDMResult.
    """

    def __init__(
        self,
        waveform: Waveform,
        signed_voltage: float,
        is_large_target: bool,
        is_high_bandwidth: bool,
        rise_time_start_percent: float = C.RISE_TIME_START_PERCENT,
        rise_time_end_percent: float = C.RISE_TIME_END_PERCENT,
        fwhm_percent: float = C.CDM_FULL_WIDTH_HALF_MAX_PERCENT,
        undershoot_fwhm_multiplier: float = C.CDM_UNDERSHOOT_FWHM_MULTIPLIER,
    ):
        validate_percent("Full width half max percent", fwhm_percent)
        validate_positive("Undershoot FWHM multiplier", undershoot_fwhm_multiplier)

        self.context = SignedWaveform(waveform, signed_voltage)
        self.tolerance = CDM_JS002_TABLE.lookup(
            signed_voltage,
            is_large_target=is_large_target,
            is_high_bandwidth=is_high_bandwidth,
        )
        self.rise_time_max: float = self.tolerance.rise_time_max or 0.0
        self.fwhm_band: tuple[float, float] = (
            self.tolerance.fwhm_min or 0.0,
            self.tolerance.fwhm_max or 0.0,
        )
        self.undershoot_max_percent: float = self.tolerance.undershoot_max_percent or 0.0

        peak_current = measure_peak_current(
            self.context, self.tolerance.peak_current_min, self.tolerance.peak_current_max
        )
        peak_point = peak_current.points[0]

        rise_time = measure_rise_time(
            self.context,
            abs(peak_point.amplitude),
            allowed_minimum=None,
            allowed_maximum=self.rise_time_max,
            start_percent=rise_time_start_percent,
            end_percent=rise_time_end_percent,
        )
        fwhm = self._full_width_half_max(peak_point, fwhm_percent)
        undershoot = self._undershoot(peak_point, fwhm, undershoot_fwhm_multiplier)

        self.result = CDMResult(
            waveform=waveform,
            signed_voltage=signed_voltage,
            is_large_target=is_large_target,
            is_high_bandwidth=is_high_bandwidth,
            peak_current=peak_current,
            rise_time=rise_time,
            full_width_half_max=fwhm,
            undershoot=undershoot,
            undershoot_allowed_max_percent=self.undershoot_max_percent,
        )

    def _full_width_half_max(self, peak_point: DataPoint, percent: float) -> Measurement:
        fwhm_min, fwhm_max = self.fwhm_band
        threshold = abs(peak_point.amplitude) * percent

        rising_abs = find_threshold_crossing(self.context.absolute, threshold, True)
        falling_abs = find_threshold_crossing(
            self.context.absolute.trim_start(peak_point.time), threshold, True
        )
        if rising_abs is None or falling_abs is None:
            logger.warning(f"FWHM: {percent:.0%} of peak not crossed on both edges")
            return Measurement(
                name="Full Width Half Max",
                unit="s",
                allowed_minimum=fwhm_min,
                allowed_maximum=fwhm_max,
            )

        start_point = self.context.signed_point(rising_abs)
        end_point = self.context.signed_point(falling_abs)
        value = end_point.time - start_point.time

        return Measurement(
            name="Full Width Half Max",
            unit="s",
            value=value,
            points=(start_point, end_point),
            allowed_minimum=fwhm_min,
            allowed_maximum=fwhm_max,
            is_passing=between_inclusive(fwhm_min, fwhm_max, value),
        )

    def _undershoot(
        self, peak_point: DataPoint, fwhm: Measurement, fwhm_multiplier: float
    ) -> Measurement:
        # Limit is a negative fraction of the signed Ip
        allowed_value = peak_point.amplitude * self.undershoot_max_percent

        if fwhm.value is None:
            logger.warning("Undershoot: no FWHM, so the search window is undefined")
            return Measurement(name="Undershoot", unit="A", allowed_maximum=allowed_value)

        window_end = peak_point.time + fwhm.value * fwhm_multiplier
        window = self.context.absolute.trim_start(peak_point.time).trim_end(window_end)
        undershoot_abs = window.minimum()

        # A positive minimum means the pulse never crossed zero
        if undershoot_abs.amplitude > 0:
            value = 0.0
        else:
            value = self.context.signed(undershoot_abs.amplitude)

        if self.context.is_positive_polarity:
            is_passing = value >= allowed_value
        else:
            is_passing = value <= allowed_value

        return Measurement(
            name="Undershoot",
            unit="A",
            value=value,
            points=(self.context.signed_point(undershoot_abs),),
            allowed_maximum=allowed_value,
            is_passing=is_passing,
        )


def evaluate_cdm(
    waveform: Waveform,
    signed_voltage: float,
    is_large_target: bool = True,
    is_high_bandwidth: bool = True,
) -> CDMResult:
    """Evaluates a CDM capture against JS-002 and returns the result."""
    return CDMJS002Evaluator(waveform, signed_voltage, is_large_target, is_high_bandwidth).result
