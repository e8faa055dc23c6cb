from __future__ import annotations

import logging
import random
from typing import List, Optional

from PySide6 import QtCore, QtWidgets

from sparkline.analysis.settings import SparklineSettings, SparklineSettingsStore
from sparkline.core.controller import SparklineController
from .sparkline_widget import SparklineWidget

GROUP_SIZE = 4


class MainWindow(QtWidgets.QMainWindow):
    """Demo window: several sparklines fed by timers with random samples."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = logging.getLogger(__name__)
        self._rng = random.Random()
        self.setWindowTitle("Sparkline Monitor")
        self.resize(720, 480)
        self.statusBar()

        self.primary = self._make_sparkline(
            SparklineSettings(threshold=90.0, show_threshold=True, show_statistics=True)
        )
        self.secondary = self._make_sparkline(
            SparklineSettings(capacity=100, smooth_lines=True, show_points=False)
        )
        self.group: List[SparklineWidget] = [
            self._make_sparkline(SparklineSettings(capacity=20, show_grid=False)) for _ in range(GROUP_SIZE)
        ]

        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(central)
        layout.addWidget(self.primary, stretch=3)
        layout.addWidget(self.secondary, stretch=2)

        group_box = QtWidgets.QGroupBox("Group", central)
        group_layout = QtWidgets.QHBoxLayout(group_box)
        for widget in self.group:
            group_layout.addWidget(widget)
        layout.addWidget(group_box, stretch=1)
        self.setCentralWidget(central)

        self._timers = [
            self._start_timer(900, lambda: self._feed(self.primary)),
            self._start_timer(600, lambda: self._feed(self.secondary)),
            self._start_timer(50, self._feed_group),
        ]

    def _make_sparkline(self, settings: SparklineSettings) -> SparklineWidget:
        controller = SparklineController(SparklineSettingsStore(settings))
        widget = SparklineWidget(controller)
        widget.thresholdReached.connect(self._on_threshold_reached)
        return widget

    def _start_timer(self, interval_ms: int, slot) -> QtCore.QTimer:
        timer = QtCore.QTimer(self)
        timer.setInterval(interval_ms)
        timer.timeout.connect(slot)
        timer.start()
        return timer

    def _feed(self, widget: SparklineWidget) -> None:
        widget.add_data_point_async(float(self._rng.randrange(10, 100)))

    def _feed_group(self) -> None:
        for widget in self.group:
            self._feed(widget)

    def _on_threshold_reached(self, threshold: float) -> None:
        self._logger.info("Threshold %.2f reached", threshold)
        self.statusBar().showMessage(f"Threshold {threshold:.2f} reached", 3000)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        for timer in self._timers:
            timer.stop()
        for widget in (self.primary, self.secondary, *self.group):
            widget.shutdown()
            widget.controller.close()
        super().closeEvent(event)
