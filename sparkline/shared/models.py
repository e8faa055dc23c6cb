from __future__ import annotations

from dataclasses import dataclass

import numpy as np

MIN_CAPACITY = 10
MAX_CAPACITY = 1000
DEFAULT_CAPACITY = 50


def clamp_capacity(capacity: int) -> int:
    """Clamp a window capacity to [MIN_CAPACITY, MAX_CAPACITY]."""
    return max(MIN_CAPACITY, min(MAX_CAPACITY, int(capacity)))


def _freeze_array(array, *, dtype=np.float32) -> np.ndarray:
    """Return a read-only, C-contiguous 1D copy of `array`."""
    arr = np.array(array, dtype=dtype, copy=True, order="C")
    if arr.ndim != 1:
        raise ValueError(f"array must be 1D, got {arr.ndim}D")
    arr.setflags(write=False)
    return arr


# ----------------------------
# Statistics
# ----------------------------

@dataclass(frozen=True)
class StatisticsBundle:
    """Descriptive statistics computed from one snapshot of the window.

    Attributes:
        count: Number of samples the bundle was computed from
        min / max: Smallest and largest sample
        mean: Arithmetic mean
        median: 50th percentile (linear interpolation)
        lower_quartile / upper_quartile: 25th and 75th percentiles
        iqr: upper_quartile - lower_quartile
        range: max - min (not clamped)
        mode: Most frequent value, ties broken towards the smallest value
        standard_deviation: Population standard deviation (divisor n)
        coefficient_of_variation: standard_deviation / mean, 0 near zero mean
    """

    count: int
    min: float
    max: float
    mean: float
    median: float
    lower_quartile: float
    upper_quartile: float
    iqr: float
    range: float
    mode: float
    standard_deviation: float
    coefficient_of_variation: float

    def __post_init__(self) -> None:
        if self.count <= 0:
            raise ValueError("count must be positive")


# ----------------------------
# Screen-space geometry
# ----------------------------

@dataclass(frozen=True)
class ChartArea:
    """Target drawing rectangle in pixel space (y grows downward)."""

    left: float
    top: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("width and height must be non-negative")

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class MappedPoint:
    """A sample mapped into a ChartArea."""

    x: float
    y: float


__all__ = [
    "DEFAULT_CAPACITY",
    "MAX_CAPACITY",
    "MIN_CAPACITY",
    "ChartArea",
    "MappedPoint",
    "StatisticsBundle",
    "clamp_capacity",
]
