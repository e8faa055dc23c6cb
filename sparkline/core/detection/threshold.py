from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


class ThresholdState(Enum):
    ARMED = "armed"
    FIRED = "fired"


def _normalize_threshold(value: Optional[float]) -> float:
    if value is None:
        return math.nan
    # Samples are stored as float32; compare against the same representation.
    return float(np.float32(value))


class ThresholdMonitor:
    """
    Edge-triggered detector over a window of samples.

    The monitor fires once when the window first contains a sample at or above
    the threshold and stays quiet until a later evaluation finds no such
    sample, which silently re-arms it. A NaN (or None) threshold disables
    evaluation entirely.

    The monitor holds no lock; SampleBuffer calls it from inside its own
    critical section.
    """

    def __init__(self, threshold: Optional[float] = None) -> None:
        self._threshold = _normalize_threshold(threshold)
        self._state = ThresholdState.ARMED

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def state(self) -> ThresholdState:
        return self._state

    @property
    def fired(self) -> bool:
        return self._state is ThresholdState.FIRED

    @property
    def enabled(self) -> bool:
        return not math.isnan(self._threshold)

    def set_threshold(self, value: Optional[float]) -> bool:
        """Store a new threshold, re-arming when it differs. Returns True on change."""
        new_value = _normalize_threshold(value)
        if new_value == self._threshold or (math.isnan(new_value) and math.isnan(self._threshold)):
            return False
        self._threshold = new_value
        self._state = ThresholdState.ARMED
        logger.debug("Threshold set to %s; monitor re-armed", new_value)
        return True

    def evaluate(self, samples: np.ndarray) -> Optional[float]:
        """
        Re-evaluate the window.

        Returns the configured threshold when this evaluation moves the monitor
        from ARMED to FIRED, otherwise None.
        """
        if not self.enabled:
            return None

        arr = np.asarray(samples, dtype=np.float32)
        exceeded = bool(arr.size) and bool(np.any(arr >= np.float32(self._threshold)))

        if exceeded and self._state is ThresholdState.ARMED:
            self._state = ThresholdState.FIRED
            return self._threshold
        if not exceeded:
            self._state = ThresholdState.ARMED
        return None


__all__ = ["ThresholdMonitor", "ThresholdState"]
