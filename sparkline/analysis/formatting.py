from __future__ import annotations

from typing import List, Optional

from sparkline.shared.models import StatisticsBundle
from .settings import SparklineSettings

SEPARATOR = "  |  "


def format_statistics(stats: Optional[StatisticsBundle], settings: SparklineSettings) -> str:
    """Build the status strip text for the statistics enabled in `settings`."""
    if stats is None:
        return ""

    fields = (
        (settings.show_min, "Min", stats.min),
        (settings.show_max, "Max", stats.max),
        (settings.show_average, "Avg", stats.mean),
        (settings.show_median, "Med", stats.median),
        (settings.show_range, "Range", stats.range),
        (settings.show_std_dev, "StdDev", stats.standard_deviation),
        (settings.show_lower_quartile, "Q1", stats.lower_quartile),
        (settings.show_upper_quartile, "Q3", stats.upper_quartile),
        (settings.show_iqr, "IQR", stats.iqr),
        (settings.show_mode, "Mode", stats.mode),
        (settings.show_coefficient_of_variation, "CV", stats.coefficient_of_variation),
    )
    parts: List[str] = [f"{label}: {value:.2f}" for enabled, label, value in fields if enabled]
    return SEPARATOR.join(parts)


__all__ = ["SEPARATOR", "format_statistics"]
