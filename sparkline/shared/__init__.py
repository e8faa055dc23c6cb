"""
Data models shared by the sparkline data path, statistics and the GUI.
"""

from .models import (
    DEFAULT_CAPACITY,
    MAX_CAPACITY,
    MIN_CAPACITY,
    ChartArea,
    MappedPoint,
    StatisticsBundle,
    clamp_capacity,
)

__all__ = [
    "DEFAULT_CAPACITY",
    "MAX_CAPACITY",
    "MIN_CAPACITY",
    "ChartArea",
    "MappedPoint",
    "StatisticsBundle",
    "clamp_capacity",
]
