"""SparklineWidget - Qt rendering surface for a SparklineController.

Paints the grid, threshold line, curve, point markers and the statistics
status strip from controller outputs, and handles pointer hover with the same
mapping used for painting.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Optional, Sequence

import numpy as np
from PySide6 import QtCore, QtGui, QtWidgets

from sparkline.analysis.settings import SparklineSettings
from sparkline.core.controller import SparklineController
from sparkline.core.mapping import map_points
from sparkline.shared.models import ChartArea

logger = logging.getLogger(__name__)

POINT_SIZE = 6.0
HIGHLIGHT_SIZE = 8.0
HOVER_RADIUS = 5.0
STATUS_PADDING = 4
STATUS_BACKGROUND = QtGui.QColor(245, 245, 245)
CURVE_TENSION = 0.5


class SparklineWidget(QtWidgets.QWidget):
    """Compact line chart over a bounded, thread-safe sample window."""

    # Emitted once per threshold excursion with the configured threshold
    thresholdReached = QtCore.Signal(float)

    # Internal: marshals repaints requested from worker threads
    _dataUpdated = QtCore.Signal()

    def __init__(
        self,
        controller: Optional[SparklineController] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._owns_controller = controller is None
        self._controller = controller if controller is not None else SparklineController()
        self._hovered: Optional[QtCore.QPointF] = None
        self._status_height = 0

        self.setMouseTracking(True)
        self.setMinimumSize(60, 20)

        self._dataUpdated.connect(self.update)
        self._unsubscribe_threshold = self._controller.subscribe_threshold(self._on_threshold_entered)
        self._unsubscribe_settings = self._controller.settings_store.subscribe(
            self._on_settings_changed, replay=False
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def controller(self) -> SparklineController:
        return self._controller

    @property
    def hovered_point(self) -> Optional[QtCore.QPointF]:
        return self._hovered

    def update_data(self, values: Sequence[float]) -> bool:
        changed = self._controller.update_data(values)
        self.update()
        return changed

    def add_data_point(self, value: float) -> bool:
        changed = self._controller.add_data_point(value)
        self.update()
        return changed

    def add_data_points(self, values: Sequence[float]) -> int:
        added = self._controller.add_data_points(values)
        self.update()
        return added

    def update_data_async(self, values: Sequence[float]) -> Future:
        return self._repaint_when_done(self._controller.update_data_async(values))

    def add_data_point_async(self, value: float) -> Future:
        return self._repaint_when_done(self._controller.add_data_point_async(value))

    def add_data_points_async(self, values: Sequence[float]) -> Future:
        return self._repaint_when_done(self._controller.add_data_points_async(values))

    def chart_area(self) -> ChartArea:
        """Drawing area above the statistics strip, as laid out by the last paint."""
        return ChartArea(0.0, 0.0, float(self.width()), float(max(0, self.height() - self._status_height)))

    def shutdown(self) -> None:
        self._unsubscribe_threshold()
        self._unsubscribe_settings()
        if self._owns_controller:
            self._controller.close()
        logger.debug("SparklineWidget shut down")

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------

    def _repaint_when_done(self, future: Future) -> Future:
        future.add_done_callback(lambda _f: self._dataUpdated.emit())
        return future

    def _on_threshold_entered(self, threshold: float) -> None:
        # May run on a worker thread; Qt queues delivery to receivers.
        self.thresholdReached.emit(threshold)

    def _on_settings_changed(self, _settings: SparklineSettings) -> None:
        self._dataUpdated.emit()

    # -------------------------------------------------------------------------
    # Painting
    # -------------------------------------------------------------------------

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # type: ignore[override]
        settings = self._controller.settings
        painter = QtGui.QPainter(self)
        try:
            painter.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing)
            painter.fillRect(self.rect(), QtGui.QColor(settings.background_color))

            status_text = ""
            self._status_height = 0
            if settings.show_statistics:
                status_text = self._controller.statistics_text()
                if status_text:
                    bounds = QtGui.QFontMetrics(self.font()).boundingRect(
                        QtCore.QRect(0, 0, self.width(), 0),
                        QtCore.Qt.TextFlag.TextWordWrap,
                        status_text,
                    )
                    self._status_height = bounds.height() + STATUS_PADDING

            area = self.chart_area()
            samples = self._controller.snapshot()

            if settings.show_grid:
                self._draw_grid(painter, area, settings)
            self._draw_threshold(painter, area, settings)
            self._draw_sparkline(painter, area, samples, settings)
            if status_text:
                self._draw_status_area(painter, status_text)
        finally:
            painter.end()

    def _draw_grid(self, painter: QtGui.QPainter, area: ChartArea, settings: SparklineSettings) -> None:
        painter.setPen(QtGui.QPen(QtGui.QColor(settings.grid_color), 1))
        step_x = area.width / settings.grid_lines_vertical
        step_y = area.height / settings.grid_lines_horizontal
        for i in range(1, settings.grid_lines_vertical):
            x = area.left + i * step_x
            painter.drawLine(QtCore.QPointF(x, area.top), QtCore.QPointF(x, area.bottom))
        for i in range(1, settings.grid_lines_horizontal):
            y = area.top + i * step_y
            painter.drawLine(QtCore.QPointF(area.left, y), QtCore.QPointF(area.right, y))

    def _draw_threshold(self, painter: QtGui.QPainter, area: ChartArea, settings: SparklineSettings) -> None:
        if not settings.show_threshold:
            return
        y = self._controller.threshold_offset(area)
        if y is None or not np.isfinite(y):
            return
        pen = QtGui.QPen(QtGui.QColor(settings.threshold_color), 2)
        pen.setStyle(QtCore.Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.drawLine(QtCore.QPointF(area.left, y), QtCore.QPointF(area.right, y))

    def _draw_sparkline(
        self,
        painter: QtGui.QPainter,
        area: ChartArea,
        samples: np.ndarray,
        settings: SparklineSettings,
    ) -> None:
        if samples.size < 2:
            return
        points = map_points(samples, area)
        points = points[np.all(np.isfinite(points), axis=1)]
        if points.shape[0] < 2:
            return
        qpoints = [QtCore.QPointF(float(x), float(y)) for x, y in points]

        painter.setPen(QtGui.QPen(QtGui.QColor(settings.line_color), 2))
        painter.setBrush(QtCore.Qt.BrushStyle.NoBrush)
        if settings.smooth_lines:
            painter.drawPath(_cardinal_path(qpoints, CURVE_TENSION))
        else:
            painter.drawPolyline(QtGui.QPolygonF(qpoints))

        if settings.show_points:
            radius = self._scaled(POINT_SIZE) / 2.0
            painter.setPen(QtCore.Qt.PenStyle.NoPen)
            painter.setBrush(QtGui.QBrush(QtGui.QColor(settings.point_color)))
            for p in qpoints:
                painter.drawEllipse(p, radius, radius)

        if self._hovered is not None:
            radius = self._scaled(HIGHLIGHT_SIZE) / 2.0
            painter.setPen(QtGui.QPen(QtGui.QColor(0, 0, 0), 2))
            painter.setBrush(QtCore.Qt.BrushStyle.NoBrush)
            painter.drawEllipse(self._hovered, radius, radius)

    def _draw_status_area(self, painter: QtGui.QPainter, text: str) -> None:
        rect = QtCore.QRectF(0, self.height() - self._status_height, self.width(), self._status_height)
        painter.fillRect(rect, STATUS_BACKGROUND)
        painter.setPen(QtGui.QPen(QtGui.QColor(0, 0, 0)))
        option = QtGui.QTextOption(QtCore.Qt.AlignmentFlag.AlignCenter)
        option.setWrapMode(QtGui.QTextOption.WrapMode.WordWrap)
        painter.drawText(rect, text, option)

    def _scaled(self, value: float) -> float:
        return value * (self.logicalDpiX() / 96.0)

    # -------------------------------------------------------------------------
    # Pointer handling
    # -------------------------------------------------------------------------

    def mouseMoveEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        self.handle_hover(event.position(), event.globalPosition().toPoint())
        super().mouseMoveEvent(event)

    def handle_hover(self, pos: QtCore.QPointF, global_pos: Optional[QtCore.QPoint] = None) -> None:
        """Highlight the sample under `pos` and show its value as a tooltip."""
        settings = self._controller.settings
        area = self.chart_area()
        if settings.show_statistics and pos.y() > area.bottom:
            return
        if not settings.show_tooltips:
            return

        hit = self._controller.hit_test(pos.x(), pos.y(), area, self._scaled(HOVER_RADIUS))
        if hit is not None:
            _index, value, point = hit
            self._hovered = QtCore.QPointF(point.x, point.y)
            if global_pos is not None:
                QtWidgets.QToolTip.showText(global_pos, f"Value: {value:.2f}", self)
        else:
            self._hovered = None
            QtWidgets.QToolTip.hideText()
        self.update()

    def leaveEvent(self, event: QtCore.QEvent) -> None:  # type: ignore[override]
        self._hovered = None
        QtWidgets.QToolTip.hideText()
        self.update()
        super().leaveEvent(event)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # type: ignore[override]
        self.shutdown()
        super().closeEvent(event)


def _cardinal_path(points: Sequence[QtCore.QPointF], tension: float) -> QtGui.QPainterPath:
    """Cardinal spline through `points`, expressed as cubic Bezier segments."""
    path = QtGui.QPainterPath(points[0])
    n = len(points)
    k = tension / 3.0
    for i in range(n - 1):
        p0 = points[i - 1] if i > 0 else points[i]
        p1 = points[i]
        p2 = points[i + 1]
        p3 = points[i + 2] if i + 2 < n else p2
        c1 = p1 + (p2 - p0) * k
        c2 = p2 - (p3 - p1) * k
        path.cubicTo(c1, c2, p2)
    return path


__all__ = ["SparklineWidget"]
