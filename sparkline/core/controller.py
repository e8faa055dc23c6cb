from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from sparkline.analysis.formatting import format_statistics
from sparkline.analysis.settings import SparklineSettings, SparklineSettingsStore
from sparkline.analysis.statistics import compute_statistics
from sparkline.shared.models import ChartArea, MappedPoint, StatisticsBundle
from .mapping import data_metrics, map_point, map_points, nearest_point, value_offset
from .sample_buffer import SampleBuffer, ThresholdCallback

logger = logging.getLogger(__name__)


class SparklineController:
    """
    Facade between the control layer and the sparkline data path.

    Owns the SampleBuffer, keeps it in sync with a SparklineSettingsStore and
    exposes statistics and coordinate mapping over buffer snapshots. The
    `*_async` variants run the corresponding update on a single background
    worker, so updates submitted from one thread apply in submission order.
    """

    def __init__(
        self,
        settings_store: Optional[SparklineSettingsStore] = None,
        *,
        buffer: Optional[SampleBuffer] = None,
    ) -> None:
        if settings_store is None:
            # A supplied buffer keeps its own configuration.
            seed = SparklineSettings() if buffer is None else SparklineSettings(
                capacity=buffer.capacity, threshold=buffer.threshold
            )
            settings_store = SparklineSettingsStore(seed)
        self._settings_store = settings_store
        initial = self._settings_store.get()
        self._buffer = buffer if buffer is not None else SampleBuffer(initial.capacity, initial.threshold)
        self._apply_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._closed = False
        self._unsubscribe_settings = self._settings_store.subscribe(self._apply_settings)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def buffer(self) -> SampleBuffer:
        return self._buffer

    @property
    def settings_store(self) -> SparklineSettingsStore:
        return self._settings_store

    @property
    def settings(self) -> SparklineSettings:
        return self._settings_store.get()

    def set_capacity(self, capacity: int) -> int:
        return self._settings_store.update(capacity=capacity).capacity

    def set_threshold(self, value: Optional[float]) -> None:
        self._settings_store.update(threshold=value)

    def _apply_settings(self, _settings: SparklineSettings) -> None:
        # Deliveries can arrive out of order across threads; always apply the
        # store's current settings so the buffer converges on them.
        with self._apply_lock:
            settings = self._settings_store.get()
            self._buffer.set_capacity(settings.capacity)
            self._buffer.set_threshold(settings.threshold)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update_data(self, values: Optional[Sequence[float]]) -> bool:
        return self._buffer.replace(values)

    def add_data_point(self, value: float) -> bool:
        return self._buffer.append(value)

    def add_data_points(self, values: Optional[Sequence[float]]) -> int:
        return self._buffer.extend(values)

    def clear(self) -> None:
        self._buffer.clear()

    def update_data_async(self, values: Optional[Sequence[float]]) -> Future:
        return self._submit(self.update_data, values)

    def add_data_point_async(self, value: float) -> Future:
        return self._submit(self.add_data_point, value)

    def add_data_points_async(self, values: Optional[Sequence[float]]) -> Future:
        return self._submit(self.add_data_points, values)

    def _submit(self, fn: Callable, *args) -> Future:
        with self._executor_lock:
            if self._closed:
                raise RuntimeError("SparklineController is closed")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sparkline-update")
            return self._executor.submit(fn, *args)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def snapshot(self) -> np.ndarray:
        return self._buffer.snapshot()

    def compute_statistics(self) -> Optional[StatisticsBundle]:
        return compute_statistics(self._buffer.snapshot())

    def statistics_text(self) -> str:
        return format_statistics(self.compute_statistics(), self.settings)

    def map_points(self, area: ChartArea) -> np.ndarray:
        return map_points(self._buffer.snapshot(), area)

    def map_point(self, index: int, value: float, area: ChartArea) -> Optional[MappedPoint]:
        """Map one value against the current window's count and range."""
        samples = self._buffer.snapshot()
        if samples.size == 0:
            return None
        minimum, _maximum, value_range = data_metrics(samples)
        return map_point(index, value, samples.size, minimum, value_range, area)

    def threshold_offset(self, area: ChartArea) -> Optional[float]:
        """Vertical position of the threshold line, or None when it should not be drawn."""
        threshold = self._buffer.threshold
        samples = self._buffer.snapshot()
        if np.isnan(threshold) or samples.size < 2:
            return None
        minimum, _maximum, value_range = data_metrics(samples)
        return area.top + value_offset(threshold, minimum, value_range, area)

    def hit_test(
        self, x: float, y: float, area: ChartArea, radius: float = 5.0
    ) -> Optional[Tuple[int, float, MappedPoint]]:
        """Return (index, value, position) of the sample drawn nearest to (x, y) within `radius`."""
        samples = self._buffer.snapshot()
        if samples.size < 2:
            return None
        points = map_points(samples, area)
        idx = nearest_point(points, x, y, radius)
        if idx is None:
            return None
        return idx, float(samples[idx]), MappedPoint(float(points[idx, 0]), float(points[idx, 1]))

    # ------------------------------------------------------------------
    # Notifications / lifecycle
    # ------------------------------------------------------------------

    def subscribe_threshold(self, callback: ThresholdCallback) -> Callable[[], None]:
        return self._buffer.subscribe(callback)

    def close(self) -> None:
        with self._executor_lock:
            if self._closed:
                return
            self._closed = True
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=True)
        self._unsubscribe_settings()
        logger.debug("SparklineController closed")

    def __enter__(self) -> "SparklineController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["SparklineController"]
