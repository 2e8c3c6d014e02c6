"""
The sampled waveform data model.

A Waveform is an ordered, immutable sequence of (time, amplitude) samples.
Every transformation (scaling, gating, trimming) returns a new Waveform;
derived quantities (sampling interval, extremes, average) are recomputed on
demand.
"""

from collections.abc import Iterable, Iterator

import numpy as np

from src.esd_lib.types import DataPoint


class Waveform:
    """
    Immutable ordered sequence of DataPoints.

    Time is expected to be ascending, but only the time-threshold trimming
    helpers rely on it.
    """

    __slots__ = ("_points",)

    def __init__(self, data_points: Iterable[DataPoint | tuple[float, float]]):
        if data_points is None:
            raise ValueError("Data points cannot be None")
        self._points: tuple[DataPoint, ...] = tuple(
            DataPoint(float(t), float(y)) for t, y in data_points
        )

    @classmethod
    def from_arrays(cls, times: Iterable[float], amplitudes: Iterable[float]) -> "Waveform":
        """Builds a waveform from parallel time and amplitude sequences."""
        return cls(zip(times, amplitudes))

    # --- Sequence Protocol ---

    @property
    def data_points(self) -> tuple[DataPoint, ...]:
        return self._points

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> DataPoint:
        return self._points[index]

    def __bool__(self) -> bool:
        return bool(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Waveform):
            return NotImplemented
        return self._points == other._points

    def __hash__(self) -> int:
        return hash(self._points)

    def __repr__(self) -> str:
        return f"Waveform({len(self._points)} points)"

    @property
    def times(self) -> np.ndarray:
        return np.fromiter((dp.time for dp in self._points), dtype=float, count=len(self._points))

    @property
    def amplitudes(self) -> np.ndarray:
        return np.fromiter(
            (dp.amplitude for dp in self._points), dtype=float, count=len(self._points)
        )

    # --- Transformations ---

    def scale_vertically(self, factor: float) -> "Waveform":
        """Multiplies every amplitude by `factor`."""
        return Waveform(DataPoint(dp.time, dp.amplitude * factor) for dp in self._points)

    def gate(self, boundary1: float, boundary2: float) -> "Waveform":
        """Keeps samples whose time lies in the closed interval between the two boundaries."""
        lower = min(boundary1, boundary2)
        upper = max(boundary1, boundary2)
        return Waveform(dp for dp in self._points if lower <= dp.time <= upper)

    def trim_start(self, boundary: float) -> "Waveform":
        """Keeps samples at or after `boundary`."""
        return Waveform(dp for dp in self._points if dp.time >= boundary)

    def trim_end(self, boundary: float) -> "Waveform":
        """Keeps samples at or before `boundary`."""
        return Waveform(dp for dp in self._points if dp.time <= boundary)

    # --- Derived Quantities ---

    def maximum(self) -> DataPoint:
        """
        First sample attaining the largest amplitude.

        Returns DataPoint(0, 0) for an empty waveform; callers must treat that
        as a sentinel, not a measurement.
        """
        if not self._points:
            return DataPoint(0.0, 0.0)

        best = self._points[0]
        for dp in self._points:
            if dp.amplitude > best.amplitude:
                best = dp
        return best

    def minimum(self) -> DataPoint:
        """First sample attaining the smallest amplitude. DataPoint(0, 0) if empty."""
        if not self._points:
            return DataPoint(0.0, 0.0)

        best = self._points[0]
        for dp in self._points:
            if dp.amplitude < best.amplitude:
                best = dp
        return best

    def average(self) -> float:
        """Mean amplitude, or 0.0 for an empty waveform."""
        if not self._points:
            return 0.0
        return float(np.mean(self.amplitudes))

    def sampling_interval(self) -> float:
        """
        Time between samples.

        Measured from the first sample to the first later sample with a
        different time, divided by the index offset between them. Returns 0.0
        for fewer than 2 samples or when every sample shares the same time.
        """
        if len(self._points) < 2:
            return 0.0

        first_time = self._points[0].time
        for offset, dp in enumerate(self._points[1:], start=1):
            if dp.time != first_time:
                return (dp.time - first_time) / offset
        return 0.0

    def sampling_frequency(self) -> float:
        """Reciprocal of the sampling interval, rounded to the nearest hertz (0.0 if unknown)."""
        interval = self.sampling_interval()
        if interval <= 0.0:
            return 0.0
        return float(round(1.0 / interval))
