"""
Standard dispatch and result flattening.

This is the seam the presentation layers (Streamlit app, CLI, exporters) use:
they pick a standard by its short name and receive flat rows instead of
walking the result records themselves.
"""

import logging
from typing import Any

import src.esd_lib.constants as C
from src.esd_lib.cdm import evaluate_cdm
from src.esd_lib.hbm import HBM0OhmOptions, evaluate_hbm_0ohm, evaluate_hbm_500ohm
from src.esd_lib.types import EvaluationResult, Measurement
from src.esd_lib.utils import format_si
from src.esd_lib.waveform import Waveform

logger = logging.getLogger(__name__)


def evaluate_waveform(
    standard: str,
    waveform: Waveform,
    signed_voltage: float,
    is_large_target: bool = True,
    is_high_bandwidth: bool = True,
    hbm_options: HBM0OhmOptions | None = None,
) -> EvaluationResult:
    """
    Evaluates a waveform against the named standard.

    Args:
        standard: One of the keys of STANDARD_NAMES ("cdm", "hbm0", "hbm500").
        waveform: The captured waveform.
        signed_voltage: The test voltage; its sign sets the polarity.
        is_large_target: CDM only.
        is_high_bandwidth: CDM only.
        hbm_options: HBM 0 Ohm only.

    Returns:
        The evaluator's result record.

    Raises:
        ValueError: For an unknown standard or invalid inputs.
    """
    logger.info(f"Evaluating {len(waveform)} samples against {standard} at {signed_voltage} V")

    if standard == "cdm":
        return evaluate_cdm(waveform, signed_voltage, is_large_target, is_high_bandwidth)
    if standard == "hbm0":
        return evaluate_hbm_0ohm(waveform, signed_voltage, hbm_options)
    if standard == "hbm500":
        return evaluate_hbm_500ohm(waveform, signed_voltage)

    raise ValueError(f"Unknown standard '{standard}', expected one of {sorted(C.STANDARD_NAMES)}")


def verdict(measurement: Measurement) -> str:
    if measurement.is_passing is None:
        return "NOT MEASURED"
    return "PASS" if measurement.is_passing else "FAIL"


def result_rows(result: EvaluationResult) -> list[dict[str, Any]]:
    """
    Flattens a result into one display row per measurement.

    Keys: Measurement, Value, Minimum, Maximum, Result, plus the raw numbers
    (Raw Value, Raw Minimum, Raw Maximum, Unit) for machine-readable exports.
    """
    rows = []
    for m in result.measurements():
        rows.append(
            {
                "Measurement": m.name,
                "Value": format_si(m.value, m.unit),
                "Minimum": format_si(m.allowed_minimum, m.unit),
                "Maximum": format_si(m.allowed_maximum, m.unit),
                "Result": verdict(m),
                "Unit": m.unit,
                "Raw Value": m.value,
                "Raw Minimum": m.allowed_minimum,
                "Raw Maximum": m.allowed_maximum,
            }
        )
    return rows
