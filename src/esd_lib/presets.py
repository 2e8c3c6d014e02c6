"""
src/esd_lib/presets.py
Synthetic reference captures and the logic for querying them.

The generators produce analytic pulse shapes whose characteristics are known
in closed form, so a preset evaluated against its standard has predictable
results. Keys follow "[Standard] Name".
"""

import re
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np

from src.esd_lib.waveform import Waveform


def hbm_double_exponential(
    peak_current: float,
    rise_constant: float,
    decay_constant: float,
    start: float = -20e-9,
    stop: float = 400e-9,
    step: float = 0.2e-9,
    onset: float = 0.0,
    ring_fraction: float = 0.0,
    ring_period: float = 10e-9,
    ring_decay: float = 30e-9,
) -> Waveform:
    """
    Ideal HBM pulse: k * (exp(-t/decay) - exp(-t/rise)) after `onset`, 0 before.

    `k` is chosen so the curve peaks at `peak_current`. A damped sinusoid of
    relative amplitude `ring_fraction` can be added after the onset.
    """
    times = np.arange(start, stop + step / 2, step)
    elapsed = np.clip(times - onset, 0.0, None)

    peak_time = (
        rise_constant * decay_constant / (decay_constant - rise_constant)
    ) * np.log(decay_constant / rise_constant)
    shape_at_peak = np.exp(-peak_time / decay_constant) - np.exp(-peak_time / rise_constant)
    scale = peak_current / shape_at_peak

    amplitudes = scale * (np.exp(-elapsed / decay_constant) - np.exp(-elapsed / rise_constant))
    if ring_fraction:
        ring = np.sin(2 * np.pi * elapsed / ring_period) * np.exp(-elapsed / ring_decay)
        amplitudes = amplitudes + ring_fraction * peak_current * ring

    return Waveform.from_arrays(times, amplitudes)


def cdm_pulse(
    peak_current: float,
    rise_width: float = 200e-12,
    fall_width: float = 580e-12,
    undershoot_fraction: float = 0.2,
    undershoot_delay: float = 1e-9,
    undershoot_width: float = 300e-12,
    start: float = -1e-9,
    stop: float = 4e-9,
    step: float = 10e-12,
    peak_time: float = 0.0,
) -> Waveform:
    """
    CDM-like pulse: an asymmetric Gaussian main lobe plus a Gaussian undershoot.

    Half-max width is sqrt(ln 2) * (rise_width + fall_width); 10-90 % rise
    time is about 1.19 * rise_width.
    """
    times = np.arange(start, stop + step / 2, step)
    offset = times - peak_time
    width = np.where(offset < 0, rise_width, fall_width)
    main_lobe = np.exp(-((offset / width) ** 2))
    undershoot = np.exp(-(((offset - undershoot_delay) / undershoot_width) ** 2))
    amplitudes = peak_current * (main_lobe - undershoot_fraction * undershoot)
    return Waveform.from_arrays(times, amplitudes)


@dataclass(frozen=True)
class WaveformPreset:
    """A named synthetic capture and the test conditions it represents."""

    standard: str
    signed_voltage: float
    description: str
    factory: Callable[[], Waveform]
    is_large_target: bool = True
    is_high_bandwidth: bool = True

    def build(self) -> Waveform:
        return self.factory()


WAVEFORM_PRESETS: dict[str, WaveformPreset] = {
    "[CDM] Large target, high bandwidth, +250 V": WaveformPreset(
        standard="cdm",
        signed_voltage=250.0,
        description="6 A pulse, ~240 ps rise, ~650 ps FWHM, 20 % undershoot",
        factory=lambda: cdm_pulse(6.0),
    ),
    "[CDM] Large target, high bandwidth, -500 V": WaveformPreset(
        standard="cdm",
        signed_voltage=-500.0,
        description="Negative 12 A pulse with the same shape as the +250 V preset",
        factory=lambda: cdm_pulse(-12.0),
    ),
    "[HBM0] Shorted load, +500 V": WaveformPreset(
        standard="hbm0",
        signed_voltage=500.0,
        description="0.335 A double exponential, 2 ns / 150 ns constants",
        factory=lambda: hbm_double_exponential(0.335, 2e-9, 150e-9),
    ),
    "[HBM0] Shorted load with ringing, +2000 V": WaveformPreset(
        standard="hbm0",
        signed_voltage=2000.0,
        description="1.33 A double exponential with 25 % damped ringing",
        factory=lambda: hbm_double_exponential(1.33, 2e-9, 150e-9, ring_fraction=0.25),
    ),
    "[HBM500] 500 Ohm load, -4000 V": WaveformPreset(
        standard="hbm500",
        signed_voltage=-4000.0,
        description="Negative 1.8 A double exponential, 8 ns / 150 ns constants",
        factory=lambda: hbm_double_exponential(-1.8, 8e-9, 150e-9),
    ),
}


def preset_to_text(key: str) -> str:
    """Renders a preset as the two-column CSV an oscilloscope would export."""
    waveform = WAVEFORM_PRESETS[key].build()
    lines = ["Time,Ampl"]
    lines.extend(f"{dp.time!r},{dp.amplitude!r}" for dp in waveform)
    return "\n".join(lines)


def get_preset_metadata() -> tuple[list[str], dict[str, list[str]], list[dict[str, Any]]]:
    """
    Parses WAVEFORM_PRESETS keys into a queryable structure.

    Returns:
        standards (list): Unique standard tags (e.g. 'CDM', 'HBM0')
        names (dict): Map of Standard -> List of preset names
        lookup (list): List of dicts {'full_key', 'standard', 'name'}
    """
    lookup = []
    standards = set()
    names = defaultdict(list)

    pattern = re.compile(r"^\[(.*?)\] (.*)$")

    for key in WAVEFORM_PRESETS:
        match = pattern.match(key)
        if match:
            standard, name = match.group(1), match.group(2)
            standards.add(standard)
            names[standard].append(name)
            lookup.append({"full_key": key, "standard": standard, "name": name})

    return sorted(standards), dict(names), lookup
