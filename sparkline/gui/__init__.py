"""Qt user interface modules."""

from .main_window import MainWindow
from .sparkline_widget import SparklineWidget

__all__ = ["MainWindow", "SparklineWidget"]
