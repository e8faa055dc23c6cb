from __future__ import annotations

import itertools
import logging
import math
import threading
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

from sparkline.shared.models import DEFAULT_CAPACITY, clamp_capacity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SparklineSettings:
    # Data
    capacity: int = DEFAULT_CAPACITY
    threshold: float = math.nan

    # Appearance
    show_grid: bool = True
    show_points: bool = True
    show_tooltips: bool = True
    show_threshold: bool = False
    smooth_lines: bool = False
    grid_lines_vertical: int = 10
    grid_lines_horizontal: int = 5
    line_color: str = "#0000ff"
    grid_color: str = "#d3d3d3"
    point_color: str = "#ff0000"
    threshold_color: str = "#ff0000"
    background_color: str = "#ffffff"

    # Statistics status strip
    show_statistics: bool = False
    show_min: bool = True
    show_max: bool = True
    show_average: bool = True
    show_median: bool = True
    show_range: bool = True
    show_std_dev: bool = True
    show_lower_quartile: bool = True
    show_upper_quartile: bool = True
    show_iqr: bool = True
    show_mode: bool = True
    show_coefficient_of_variation: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "capacity", clamp_capacity(self.capacity))
        threshold = math.nan if self.threshold is None else float(self.threshold)
        object.__setattr__(self, "threshold", threshold)
        object.__setattr__(self, "grid_lines_vertical", max(1, int(self.grid_lines_vertical)))
        object.__setattr__(self, "grid_lines_horizontal", max(1, int(self.grid_lines_horizontal)))


SettingsListener = Callable[[SparklineSettings], None]


class SparklineSettingsStore:
    """
    Shared, thread-safe holder of the current SparklineSettings.

    Updates are stored immediately and then broadcast. Broadcasts are
    serialized, and each listener is called with the settings current at
    that moment rather than the value that triggered the broadcast, so a
    listener never ends on a stale configuration when updates race. A
    listener may update the store from its own callback; the nested
    broadcast runs before the outer one resumes.
    """

    def __init__(self, initial: Optional[SparklineSettings] = None) -> None:
        self._current = initial if initial is not None else SparklineSettings()
        self._state_lock = threading.Lock()
        self._delivery_lock = threading.RLock()
        self._listeners: Dict[int, SettingsListener] = {}
        self._tokens = itertools.count()

    def get(self) -> SparklineSettings:
        with self._state_lock:
            return self._current

    def update(self, **changes) -> SparklineSettings:
        """Apply `changes` (SparklineSettings field names) and notify listeners."""
        with self._state_lock:
            updated = replace(self._current, **changes)
            self._current = updated
        self._broadcast()
        return updated

    def subscribe(self, listener: SettingsListener, *, replay: bool = True) -> Callable[[], None]:
        """Register `listener`; with `replay`, call it once with the current settings."""
        token = next(self._tokens)
        with self._delivery_lock:
            with self._state_lock:
                self._listeners[token] = listener
                current = self._current
            if replay:
                listener(current)

        def unsubscribe() -> None:
            with self._state_lock:
                self._listeners.pop(token, None)

        return unsubscribe

    def _broadcast(self) -> None:
        with self._delivery_lock:
            with self._state_lock:
                listeners = list(self._listeners.values())
            for listener in listeners:
                try:
                    listener(self.get())
                except Exception:
                    logger.debug("Settings listener %r failed", listener, exc_info=True)


__all__ = ["SettingsListener", "SparklineSettings", "SparklineSettingsStore"]
