import pytest

from src.esd_lib import WAVEFORM_PRESETS, Waveform


@pytest.fixture
def triangle() -> Waveform:
    """A 10 A triangle pulse peaking at t=1: 50% crossings at 0.5 and 1.5."""
    return Waveform([(0.0, 0.0), (1.0, 10.0), (2.0, 0.0)])


@pytest.fixture(scope="session")
def cdm_capture() -> Waveform:
    """Synthetic +250 V large-target CDM capture (6 A peak)."""
    return WAVEFORM_PRESETS["[CDM] Large target, high bandwidth, +250 V"].build()


@pytest.fixture(scope="session")
def hbm_capture() -> Waveform:
    """Synthetic +500 V HBM capture into a shorted load (0.335 A peak)."""
    return WAVEFORM_PRESETS["[HBM0] Shorted load, +500 V"].build()


@pytest.fixture(scope="session")
def hbm_ringing_capture() -> Waveform:
    """Synthetic +2000 V HBM capture with heavy ringing."""
    return WAVEFORM_PRESETS["[HBM0] Shorted load with ringing, +2000 V"].build()


@pytest.fixture(scope="session")
def hbm500_capture() -> Waveform:
    """Synthetic -4000 V HBM capture into 500 Ohm (-1.8 A peak)."""
    return WAVEFORM_PRESETS["[HBM500] 500 Ohm load, -4000 V"].build()
