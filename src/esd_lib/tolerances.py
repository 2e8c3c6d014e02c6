"""
Tolerance tables for the supported standards.

Each standard publishes allowed bands at discrete test voltages. Only the
peak-current band scales with voltage; timing and shape limits are fixed per
configuration. Lookups at untabulated voltages interpolate the peak-current
band between the neighbouring rows, or scale the nearest row proportionally
when the voltage is outside the table.
"""

import logging
from dataclasses import dataclass, replace

import src.esd_lib.constants as C
from src.esd_lib.utils import center_of_range, lerp, percent_within_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToleranceEntry:
    """
    One row of a published table.

    Attributes:
        test_voltage: Test condition (absolute volts).
        peak_current_min: Lower peak-current bound (A).
        peak_current_max: Upper peak-current bound (A).
        is_large_target: CDM configuration key (None for HBM).
        is_high_bandwidth: CDM configuration key (None for HBM).
        rise_time_max: CDM rise-time limit (s).
        fwhm_min: CDM full-width-at-half-max lower bound (s).
        fwhm_max: CDM full-width-at-half-max upper bound (s).
        undershoot_max_percent: CDM undershoot limit as a (negative) fraction of Ip.
    """

    test_voltage: float
    peak_current_min: float
    peak_current_max: float
    is_large_target: bool | None = None
    is_high_bandwidth: bool | None = None
    rise_time_max: float | None = None
    fwhm_min: float | None = None
    fwhm_max: float | None = None
    undershoot_max_percent: float | None = None

    @property
    def peak_current_nominal(self) -> float:
        return center_of_range(self.peak_current_min, self.peak_current_max)

    @property
    def fwhm_nominal(self) -> float | None:
        if self.fwhm_min is None or self.fwhm_max is None:
            return None
        return center_of_range(self.fwhm_min, self.fwhm_max)

    def scaled(self, voltage: float, multiplier: float) -> "ToleranceEntry":
        """Copy at `voltage` with the peak-current band multiplied by `multiplier`."""
        return replace(
            self,
            test_voltage=voltage,
            peak_current_min=self.peak_current_min * multiplier,
            peak_current_max=self.peak_current_max * multiplier,
        )


class ToleranceTable:
    """An ordered collection of ToleranceEntry rows for one standard."""

    def __init__(self, name: str, entries: list[ToleranceEntry]):
        self.name = name
        self.entries: tuple[ToleranceEntry, ...] = tuple(
            sorted(entries, key=lambda e: e.test_voltage)
        )

    def __len__(self) -> int:
        return len(self.entries)

    def matching(self, **configuration: bool) -> list[ToleranceEntry]:
        """Rows whose configuration keys equal the given values."""
        return [
            entry
            for entry in self.entries
            if all(getattr(entry, key) == value for key, value in configuration.items())
        ]

    def lookup(self, signed_voltage: float, **configuration: bool) -> ToleranceEntry:
        """
        Resolves the tolerance row for a test voltage.

        Polarity is ignored; callers reapply it.

        Args:
            signed_voltage: The test voltage (sign ignored).
            **configuration: Configuration keys, e.g. is_large_target=True.

        Returns:
            The exact row, an interpolated row, or an extrapolated row.

        Raises:
            LookupError: If no row matches the configuration.
        """
        voltage = abs(signed_voltage)
        candidates = self.matching(**configuration)

        for entry in candidates:
            if entry.test_voltage == voltage:
                return entry

        below = [e for e in candidates if e.test_voltage < voltage]
        above = [e for e in candidates if e.test_voltage > voltage]
        lower = max(below, key=lambda e: e.test_voltage) if below else None
        upper = min(above, key=lambda e: e.test_voltage) if above else None

        if lower is not None and upper is not None:
            position = percent_within_range(voltage, upper.test_voltage, lower.test_voltage)
            logger.debug(
                f"{self.name}: interpolating {voltage} V between "
                f"{lower.test_voltage} V and {upper.test_voltage} V"
            )
            # Only Ip scales with voltage; everything else comes from the lower row
            return replace(
                lower,
                test_voltage=voltage,
                peak_current_min=lerp(position, lower.peak_current_min, upper.peak_current_min),
                peak_current_max=lerp(position, lower.peak_current_max, upper.peak_current_max),
            )

        if lower is not None:
            logger.debug(f"{self.name}: {voltage} V above table, scaling {lower.test_voltage} V row")
            return lower.scaled(voltage, voltage / lower.test_voltage)

        if upper is not None:
            logger.debug(f"{self.name}: {voltage} V below table, scaling {upper.test_voltage} V row")
            return upper.scaled(voltage, voltage / upper.test_voltage)

        raise LookupError(
            f"Finding {self.name} table entries for {voltage} V with {configuration} failed."
        )


def _build_cdm_table() -> ToleranceTable:
    entries = []
    for is_large, is_high_bw, rise_max, (fwhm_min, fwhm_max), undershoot in C.CDM_CONFIGURATIONS:
        for voltage, (ip_min, ip_max) in C.CDM_PEAK_CURRENTS[(is_large, is_high_bw)]:
            entries.append(
                ToleranceEntry(
                    test_voltage=voltage,
                    peak_current_min=ip_min,
                    peak_current_max=ip_max,
                    is_large_target=is_large,
                    is_high_bandwidth=is_high_bw,
                    rise_time_max=rise_max,
                    fwhm_min=fwhm_min,
                    fwhm_max=fwhm_max,
                    undershoot_max_percent=undershoot,
                )
            )
    return ToleranceTable("CDM JS-002", entries)


def _build_peak_current_table(name: str, rows: list[tuple[int, tuple[float, float]]]) -> ToleranceTable:
    return ToleranceTable(
        name,
        [ToleranceEntry(voltage, ip_min, ip_max) for voltage, (ip_min, ip_max) in rows],
    )


CDM_JS002_TABLE = _build_cdm_table()
HBM_0OHM_TABLE = _build_peak_current_table("HBM JS-001 0 Ohm", C.HBM_0OHM_PEAK_CURRENTS)
HBM_500OHM_TABLE = _build_peak_current_table("HBM JS-001 500 Ohm", C.HBM_500OHM_PEAK_CURRENTS)
