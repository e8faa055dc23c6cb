"""Core sparkline data path: sample buffer, threshold detection and mapping."""

from .controller import SparklineController
from .detection import ThresholdMonitor, ThresholdState
from .mapping import data_metrics, map_point, map_points, nearest_point, value_offset
from .sample_buffer import SampleBuffer

__all__ = [
    "SampleBuffer",
    "SparklineController",
    "ThresholdMonitor",
    "ThresholdState",
    "data_metrics",
    "map_point",
    "map_points",
    "nearest_point",
    "value_offset",
]
