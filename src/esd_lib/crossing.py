"""
Threshold-crossing search.

Locates the earliest (forward scan) or latest (backward scan) point at which
a waveform reaches a given amplitude, interpolating linearly between the
two samples that straddle the threshold.
"""

import math

from src.esd_lib.types import DataPoint
from src.esd_lib.utils import equivalent_value_in_new_range
from src.esd_lib.waveform import Waveform


def _crossing_indexes(
    waveform: Waveform, threshold: float, find_first: bool
) -> tuple[int, ...]:
    """
    Finds the sample index (exact match) or index pair (straddling crossing).

    Returns an empty tuple if the threshold is never reached.
    """
    count = len(waveform)
    indexes = range(count) if find_first else range(count - 1, -1, -1)

    prev_index: int | None = None
    prev_above: bool | None = None
    for i in indexes:
        amplitude = waveform[i].amplitude
        if amplitude == threshold:
            return (i,)

        above = amplitude > threshold
        if prev_above is not None and prev_above != above:
            return (prev_index, i)  # type: ignore[return-value]

        prev_index = i
        prev_above = above

    return ()


def find_threshold_crossing(
    waveform: Waveform, threshold: float, find_first: bool = True
) -> DataPoint | None:
    """
    Locates where `waveform` crosses `threshold`.

    Walks the samples forward (`find_first=True`, earliest crossing) or
    backward (latest crossing). A sample exactly at the threshold is returned
    as-is; otherwise the first pair of consecutive samples on opposite sides
    of the threshold is interpolated linearly.

    Args:
        waveform: The waveform to search. Must contain at least one sample.
        threshold: The amplitude to find. Must be finite.
        find_first: Scan direction.

    Returns:
        The crossing point, or None if the threshold is never crossed.

    Raises:
        ValueError: On an empty waveform or a non-finite threshold.
    """
    if not waveform:
        raise ValueError("Waveform must have at least 1 data point")

    if not math.isfinite(threshold):
        raise ValueError("Threshold cannot be infinity or NaN")

    indexes = _crossing_indexes(waveform, threshold, find_first)

    if len(indexes) == 1:
        return waveform[indexes[0]]

    if len(indexes) == 2:
        dp1 = waveform[indexes[0]]
        dp2 = waveform[indexes[1]]
        # Repeated timestamp: the step happens at that instant
        if dp1.time == dp2.time:
            return DataPoint(dp1.time, threshold)
        crossing_time = equivalent_value_in_new_range(
            threshold, dp1.amplitude, dp2.amplitude, dp1.time, dp2.time
        )
        return DataPoint(crossing_time, threshold)

    return None
