"""Value-to-pixel mapping for sparkline rendering and hit-testing.

All functions are pure: identical inputs give identical outputs, so the same
mapping serves both painting and pointer hit-testing. Pixel space grows
downward, so larger values map to smaller vertical offsets.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from sparkline.shared.models import ChartArea, MappedPoint

EPSILON = 1e-6


def _clamp_range(value_range: float) -> float:
    if not math.isfinite(value_range) or abs(value_range) < EPSILON:
        return 1.0
    return float(value_range)


def data_metrics(samples: Sequence[float]) -> Tuple[float, float, float]:
    """Return (min, max, range) of `samples`, with range clamped to 1 for flat data."""
    arr = np.asarray(samples, dtype=np.float32)
    if arr.size == 0:
        raise ValueError("samples must not be empty")
    minimum = float(np.min(arr))
    maximum = float(np.max(arr))
    with np.errstate(invalid="ignore", over="ignore"):
        value_range = maximum - minimum
    return minimum, maximum, _clamp_range(value_range)


def map_point(
    index: int,
    value: float,
    count: int,
    minimum: float,
    value_range: float,
    area: ChartArea,
) -> MappedPoint:
    value_range = _clamp_range(value_range)
    fraction = index / float(count - 1) if count > 1 else 0.0
    x = area.left + area.width * fraction
    y = area.top + value_offset(value, minimum, value_range, area)
    return MappedPoint(float(x), float(y))


def value_offset(value: float, minimum: float, value_range: float, area: ChartArea) -> float:
    """Vertical offset of `value` from the top of `area`."""
    value_range = _clamp_range(value_range)
    return float(area.height - ((value - minimum) / value_range) * area.height)


def map_points(samples: Sequence[float], area: ChartArea) -> np.ndarray:
    """
    Map a whole window into `area`.

    Returns an (n, 2) float64 array of (x, y) pixel positions, row i matching
    `map_point(i, samples[i], n, min, range, area)`.
    """
    arr = np.asarray(samples, dtype=np.float32)
    count = arr.size
    if count == 0:
        return np.zeros((0, 2), dtype=np.float64)

    minimum, _maximum, value_range = data_metrics(arr)
    values = arr.astype(np.float64)
    if count > 1:
        fractions = np.arange(count, dtype=np.float64) / float(count - 1)
    else:
        fractions = np.zeros(1, dtype=np.float64)

    out = np.empty((count, 2), dtype=np.float64)
    out[:, 0] = area.left + area.width * fractions
    with np.errstate(invalid="ignore", over="ignore"):
        out[:, 1] = area.top + (area.height - ((values - minimum) / value_range) * area.height)
    return out


def nearest_point(points: np.ndarray, x: float, y: float, radius: float) -> Optional[int]:
    """
    Index of the mapped point closest to (x, y) and strictly within `radius`.

    Ties resolve to the lowest index. Returns None when nothing is in range.
    """
    if radius <= 0:
        raise ValueError("radius must be positive")
    pts = np.asarray(points, dtype=np.float64)
    if pts.size == 0:
        return None
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError("points must be an (n, 2) array")

    distances = np.hypot(pts[:, 0] - x, pts[:, 1] - y)
    distances = np.where(np.isfinite(distances), distances, np.inf)
    idx = int(np.argmin(distances))
    if distances[idx] < radius:
        return idx
    return None


__all__ = [
    "EPSILON",
    "data_metrics",
    "map_point",
    "map_points",
    "nearest_point",
    "value_offset",
]
