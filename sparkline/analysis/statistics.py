"""Descriptive statistics over a snapshot of sparkline samples.

`compute_statistics` is a pure function of its input: it never touches a
SampleBuffer, so it can run on any thread while the buffer is being mutated.

The percentile definition matches linear interpolation between closest
ranks: position = (n - 1) * p / 100, interpolating between the floor index
and the next sample (clamped at the end of the array).
"""
from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from sparkline.shared.models import StatisticsBundle

EPSILON = 1e-6


def percentile(sorted_samples: np.ndarray, p: float) -> float:
    data = np.asarray(sorted_samples, dtype=np.float64)
    n = data.size
    if n == 0:
        raise ValueError("sorted_samples must not be empty")
    pos = (n - 1) * (p / 100.0)
    index = int(math.floor(pos))
    fraction = pos - index
    if index + 1 < n:
        return float(data[index] + fraction * (data[index + 1] - data[index]))
    return float(data[index])


def mode(samples: Sequence[float]) -> float:
    """Most frequent value; ties go to the smallest value."""
    data = np.asarray(samples, dtype=np.float64)
    if data.size == 0:
        raise ValueError("samples must not be empty")
    # np.unique returns values in ascending order, and argmax picks the first
    # maximum, which is therefore the smallest of the tied values.
    values, counts = np.unique(data, return_counts=True)
    return float(values[int(np.argmax(counts))])


def compute_statistics(samples: Sequence[float]) -> Optional[StatisticsBundle]:
    """Return the statistics bundle for `samples`, or None when empty."""
    data = np.asarray(samples, dtype=np.float64)
    if data.ndim != 1:
        data = data.ravel()
    if data.size == 0:
        return None

    # Non-finite samples (replace-all does not filter NaN) propagate as
    # NaN/inf results rather than warnings or exceptions.
    with np.errstate(invalid="ignore", over="ignore", divide="ignore"):
        ordered = np.sort(data)
        minimum = float(ordered[0])
        maximum = float(ordered[-1])
        mean = float(np.mean(data))
        median = percentile(ordered, 50)
        lower = percentile(ordered, 25)
        upper = percentile(ordered, 75)
        std = float(np.sqrt(np.mean((data - mean) ** 2)))
        cv = std / mean if abs(mean) > EPSILON else 0.0
        value_range = maximum - minimum
        iqr = upper - lower

    return StatisticsBundle(
        count=int(data.size),
        min=minimum,
        max=maximum,
        mean=mean,
        median=median,
        lower_quartile=lower,
        upper_quartile=upper,
        iqr=iqr,
        range=value_range,
        mode=mode(data),
        standard_deviation=std,
        coefficient_of_variation=float(cv),
    )


__all__ = ["EPSILON", "compute_statistics", "mode", "percentile"]
