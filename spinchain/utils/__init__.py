"""Utility functions and helpers."""

from .constants import PHYSICAL_CONSTANTS, DEFAULT_PARAMETERS
from .io import TimeSeriesSink, HDF5TimeSeriesSink, ArrayTimeSeriesSink, load_time_series

__all__ = [
    "PHYSICAL_CONSTANTS",
    "DEFAULT_PARAMETERS",
    "TimeSeriesSink",
    "HDF5TimeSeriesSink",
    "ArrayTimeSeriesSink",
    "load_time_series"
]
