"""
ESD Waveform Verifier Library (Package Entry Point).

Exposes the waveform model, the numeric primitives (threshold crossing, curve
fitting, digital filtering), the tolerance tables and the CDM / HBM
evaluators.
"""

from .cdm import CDMJS002Evaluator, evaluate_cdm
from .context import SignedWaveform, validate_test_voltage
from .crossing import find_threshold_crossing
from .filters import FilterCoefficients, filter_waveform, select_filter_coefficients
from .fitting import exponential_fit, exponential_fit_waveform, least_squares_fit
from .hbm import (
    HBM0OhmJS001Evaluator,
    HBM0OhmOptions,
    HBM500OhmJS001Evaluator,
    NoiseCompensation,
    evaluate_hbm_0ohm,
    evaluate_hbm_500ohm,
)
from .loader import parse_waveform_file, parse_waveform_text, process_input_data
from .standards import evaluate_waveform, result_rows, verdict
from .presets import WAVEFORM_PRESETS, WaveformPreset, get_preset_metadata
from .tolerances import (
    CDM_JS002_TABLE,
    HBM_0OHM_TABLE,
    HBM_500OHM_TABLE,
    ToleranceEntry,
    ToleranceTable,
)
from .types import (
    CDMResult,
    DataPoint,
    EvaluationResult,
    FifthDegreePolynomial,
    HBM0OhmResult,
    HBM500OhmResult,
    Measurement,
)
from .utils import format_si
from .waveform import Waveform

__all__ = [
    # types
    "DataPoint",
    "FifthDegreePolynomial",
    "Measurement",
    "CDMResult",
    "HBM0OhmResult",
    "HBM500OhmResult",
    "EvaluationResult",
    # waveform
    "Waveform",
    # numeric primitives
    "find_threshold_crossing",
    "least_squares_fit",
    "exponential_fit",
    "exponential_fit_waveform",
    "FilterCoefficients",
    "select_filter_coefficients",
    "filter_waveform",
    # tolerances
    "ToleranceEntry",
    "ToleranceTable",
    "CDM_JS002_TABLE",
    "HBM_0OHM_TABLE",
    "HBM_500OHM_TABLE",
    # evaluators
    "SignedWaveform",
    "validate_test_voltage",
    "CDMJS002Evaluator",
    "evaluate_cdm",
    "HBM0OhmOptions",
    "NoiseCompensation",
    "HBM0OhmJS001Evaluator",
    "HBM500OhmJS001Evaluator",
    "evaluate_hbm_0ohm",
    "evaluate_hbm_500ohm",
    # loader
    "parse_waveform_text",
    "parse_waveform_file",
    "process_input_data",
    # standards
    "evaluate_waveform",
    "result_rows",
    "verdict",
    # presets
    "WAVEFORM_PRESETS",
    "WaveformPreset",
    "get_preset_metadata",
    # utils
    "format_si",
]
