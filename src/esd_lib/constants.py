"""
Published numbers for the supported ESD test standards.

This module holds the raw data the evaluators are built on:
- ANSI/ESDA/JEDEC JS-002 (CDM) peak current, rise time, FWHM and undershoot rows.
- ANSI/ESDA/JEDEC JS-001 (HBM) peak current rows for the 0 Ohm and 500 Ohm loads.
- The fixed timing/ringing bounds for HBM.
- The Bessel low-pass filter coefficient sets keyed by sampling frequency.

All times are in seconds, currents in amperes, voltages in volts.
"""

# --- Input Validation ---

# The largest test voltage magnitude the evaluators will accept
MAX_ABS_TEST_VOLTAGE = 100_000.0

# --- Shared Measurement Defaults ---

RISE_TIME_START_PERCENT = 0.1
RISE_TIME_END_PERCENT = 0.9

# --- CDM (JS-002) ---

CDM_FULL_WIDTH_HALF_MAX_PERCENT = 0.5

# Undershoot is searched from the peak until this many FWHM durations later
CDM_UNDERSHOOT_FWHM_MULTIPLIER = 2.5

# Structure: (is_large_target, is_high_bandwidth, rise_time_max, (fwhm_min, fwhm_max), undershoot_max_percent)
CDM_CONFIGURATIONS = [
    (True, True, 350e-12, (450e-12, 900e-12), -0.5),
    (True, False, 450e-12, (500e-12, 1000e-12), -0.5),
    (False, True, 250e-12, (250e-12, 600e-12), -0.7),
    (False, False, 350e-12, (325e-12, 725e-12), -0.7),
]

# Structure: (is_large_target, is_high_bandwidth) -> [(test_condition, (ip_min, ip_max)), ...]
CDM_PEAK_CURRENTS = {
    (True, True): [
        (125, (2.3, 3.8)),
        (250, (4.8, 7.3)),
        (500, (10.3, 13.9)),
        (750, (15.5, 20.9)),
        (1000, (20.6, 27.9)),
    ],
    (True, False): [
        (125, (1.9, 3.2)),
        (250, (4.2, 6.3)),
        (500, (9.1, 12.3)),
        (750, (13.7, 18.5)),
        (1000, (18.3, 24.7)),
    ],
    (False, True): [
        (125, (1.4, 2.3)),
        (250, (2.9, 4.3)),
        (500, (6.1, 8.3)),
        (750, (9.2, 12.4)),
        (1000, (12.2, 16.5)),
    ],
    (False, False): [
        (125, (1.0, 1.6)),
        (250, (2.1, 3.1)),
        (500, (4.4, 5.9)),
        (750, (6.6, 8.9)),
        (1000, (8.8, 11.9)),
    ],
}

# --- HBM (JS-001), 0 Ohm (shorted) load ---

HBM_0OHM_PEAK_CURRENTS = [
    (125, (0.075, 0.092)),
    (250, (0.15, 0.18)),
    (500, (0.30, 0.37)),
    (1000, (0.60, 0.73)),
    (2000, (1.20, 1.47)),
    (4000, (2.40, 2.93)),
    (8000, (4.80, 5.87)),
]

HBM_0OHM_RISE_TIME = (2e-9, 10e-9)
HBM_0OHM_DECAY_TIME = (130e-9, 170e-9)
HBM_0OHM_RING_MAX = 0.15

# Ips is taken from a least-squares line over [peak, peak + window]
HBM_0OHM_FIT_WINDOW = 40e-9

# Exponential fit of the decaying edge runs between these fractions of Ips
HBM_DECAY_FIT_START_PERCENT = 0.5
HBM_DECAY_FIT_END_PERCENT = 0.3

# The fitted decay curve is never extended further than this past the peak
HBM_DECAY_EXTENSION_CEILING = 1e-6

HBM_DOUBLE_PEAK_CUTOFF_PERCENT = 0.5
HBM_DOUBLE_PEAK_INCREASE_PERCENT = 0.05

# --- HBM (JS-001), 500 Ohm load ---

HBM_500OHM_PEAK_CURRENTS = [
    (1000, (0.375, 0.55)),
    (2000, (0.75, 1.1)),
    (4000, (1.5, 2.2)),
    (8000, (3.0, 4.4)),
]

HBM_500OHM_RISE_TIME = (5e-9, 25e-9)

# --- Bessel Digital Filter ---

# Padding samples used to start the recursion inside pre-pulse noise
FILTER_PADDING_COUNT = 3

# Structure: (max_sampling_frequency, (A, B, C, D, group_delay_samples))
# Sorted by ascending sampling frequency.
BESSEL_COEFFICIENT_SETS = [
    (1_000_000_000, (0.149411432880668000, 0.003204035200000000, -0.159857410700000000, -0.038638087600000000, 1)),
    (1_250_000_000, (0.095744725535330900, 0.027325420000000000, -0.214565101600000000, 0.421281877600000000, 2)),
    (2_000_000_000, (0.034965550951425800, 0.113363861500000000, -0.610857942900000000, 1.217769673900000000, 3)),
    (2_500_000_000, (0.020896405559358200, 0.176568401600000000, -0.865172933400000000, 1.521433287300000000, 3)),
    (4_000_000_000, (0.006577303289247610, 0.340298878700000000, -1.415272524200000000, 2.022355219100000000, 6)),
    (5_000_000_000, (0.003688644050680860, 0.422675065100000000, -1.655051835400000000, 2.202867617900000000, 7)),
    (10_000_000_000, (0.000558936637177688, 0.650676563900000000, -2.241198996000000000, 2.586050939000000000, 13)),
    (20_000_000_000, (0.000077342942965062, 0.806732068400000000, -2.596490021300000000, 2.789139209300000000, 27)),
]

# --- Display ---

STANDARD_NAMES = {
    "cdm": "CDM JS-002",
    "hbm0": "HBM JS-001 (0 Ohm)",
    "hbm500": "HBM JS-001 (500 Ohm)",
}
