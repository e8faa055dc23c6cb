from .formatting import format_statistics
from .settings import SparklineSettings, SparklineSettingsStore
from .statistics import compute_statistics, mode, percentile

__all__ = [
    "SparklineSettings",
    "SparklineSettingsStore",
    "compute_statistics",
    "format_statistics",
    "mode",
    "percentile",
]
