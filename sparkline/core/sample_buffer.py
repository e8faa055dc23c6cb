from __future__ import annotations

import logging
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Optional, Sequence

import numpy as np

from sparkline.shared.models import DEFAULT_CAPACITY, _freeze_array, clamp_capacity
from .detection.threshold import ThresholdMonitor, ThresholdState

logger = logging.getLogger(__name__)

ThresholdCallback = Callable[[float], None]


def _as_samples(values: Optional[Sequence[float]]) -> Optional[np.ndarray]:
    if values is None:
        return None
    arr = np.asarray(values, dtype=np.float32)
    if arr.ndim == 0:
        return arr.reshape(1)
    if arr.ndim != 1:
        raise ValueError(f"samples must be a 1D sequence, got {arr.ndim}D")
    return arr


class SampleBuffer:
    """
    Thread-safe sliding window of float32 samples with FIFO eviction.

    Every mutation runs under a single lock together with the trim to capacity
    and the threshold re-evaluation, so readers and the ThresholdMonitor never
    observe a half-applied update. Threshold subscribers are notified after the
    lock is released and only receive the threshold value.

    Invalid input (None, too-short replacements, NaN appends) is dropped
    without raising.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, threshold: Optional[float] = None) -> None:
        self._capacity = clamp_capacity(capacity)
        self._samples: Deque[float] = deque(maxlen=self._capacity)
        self._monitor = ThresholdMonitor(threshold)
        self._lock = Lock()
        self._subscribers: Dict[int, ThresholdCallback] = {}
        self._next_token = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def threshold(self) -> float:
        with self._lock:
            return self._monitor.threshold

    @property
    def state(self) -> ThresholdState:
        with self._lock:
            return self._monitor.state

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def replace(self, values: Optional[Sequence[float]]) -> bool:
        """
        Replace the window with `values`, keeping the trailing `capacity` samples.

        Sequences with fewer than two samples are ignored. NaN values are kept.
        """
        arr = _as_samples(values)
        if arr is None or arr.size < 2:
            logger.debug("Ignoring replace with fewer than 2 samples")
            return False

        with self._lock:
            self._samples.clear()
            self._samples.extend(arr[-self._capacity:].tolist())
            entered = self._evaluate_locked()
        self._notify(entered)
        return True

    def append(self, value: float) -> bool:
        """Append one sample, evicting the oldest when full. NaN is dropped."""
        sample = np.float32(value)
        if np.isnan(sample):
            logger.debug("Dropping NaN sample")
            return False

        with self._lock:
            self._samples.append(float(sample))
            entered = self._evaluate_locked()
        self._notify(entered)
        return True

    def extend(self, values: Optional[Sequence[float]]) -> int:
        """
        Append many samples in order, dropping NaN values, then trim once.

        Returns the number of samples appended.
        """
        arr = _as_samples(values)
        if arr is None or arr.size == 0:
            return 0

        valid = arr[~np.isnan(arr)]
        dropped = arr.size - valid.size
        if dropped:
            logger.debug("Dropping %d NaN sample(s)", dropped)
        if valid.size == 0:
            return 0

        with self._lock:
            # Only the trailing `capacity` values can survive the trim.
            self._samples.extend(valid[-self._capacity:].tolist())
            entered = self._evaluate_locked()
        self._notify(entered)
        return int(valid.size)

    def set_capacity(self, capacity: int) -> int:
        """Clamp `capacity` to [10, 1000] and evict the oldest samples on decrease."""
        new_capacity = clamp_capacity(capacity)
        with self._lock:
            if new_capacity == self._capacity:
                return new_capacity
            self._capacity = new_capacity
            self._samples = deque(self._samples, maxlen=new_capacity)
            entered = self._evaluate_locked()
        self._notify(entered)
        return new_capacity

    def set_threshold(self, value: Optional[float]) -> None:
        """Set the threshold (None or NaN disables it). A changed value re-arms the monitor."""
        with self._lock:
            self._monitor.set_threshold(value)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()
            entered = self._evaluate_locked()
        self._notify(entered)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def snapshot(self) -> np.ndarray:
        """Return a read-only float32 copy of the window in chronological order."""
        with self._lock:
            values = list(self._samples)
        return _freeze_array(values)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, callback: ThresholdCallback) -> Callable[[], None]:
        """Register `callback(threshold)` for threshold-entered events. Returns an unsubscribe function."""
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def _evaluate_locked(self) -> Optional[float]:
        if not self._monitor.enabled:
            return None
        window = np.fromiter(self._samples, dtype=np.float32, count=len(self._samples))
        return self._monitor.evaluate(window)

    def _notify(self, threshold: Optional[float]) -> None:
        if threshold is None:
            return
        with self._lock:
            callbacks = list(self._subscribers.values())
        logger.debug("Threshold %s entered; notifying %d subscriber(s)", threshold, len(callbacks))
        for callback in callbacks:
            try:
                callback(threshold)
            except Exception as exc:
                logger.debug("Threshold subscriber callback failed: %s", exc)
                continue


__all__ = ["SampleBuffer", "ThresholdCallback"]
