from .threshold import ThresholdMonitor, ThresholdState

__all__ = [
    "ThresholdMonitor",
    "ThresholdState",
]
