"""Bounded, thread-safe sparkline time series with statistics and screen mapping."""

__version__ = "0.1.0"
