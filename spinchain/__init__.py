"""
SpinChain: Landau-Lifshitz-Gilbert dynamics of single moments and 1D chains.

Explicit RK4 integration with a data-parallel, stage-synchronized
evaluation of the effective field and LLG right-hand side.
"""

__version__ = "0.1.0"

from . import core
from . import dynamics
from . import analysis
from . import utils

from .core import SimulationParameters, SimulationState, tilted_chain, random_chain
from .dynamics import (
    ParallelStageEvaluator, RK4Integrator, SimulationDriver, ProgressReporter, simulate
)
from .utils.io import TimeSeriesSink, HDF5TimeSeriesSink, ArrayTimeSeriesSink, load_time_series

__all__ = [
    "SimulationParameters",
    "SimulationState",
    "tilted_chain",
    "random_chain",
    "ParallelStageEvaluator",
    "RK4Integrator",
    "SimulationDriver",
    "ProgressReporter",
    "simulate",
    "TimeSeriesSink",
    "HDF5TimeSeriesSink",
    "ArrayTimeSeriesSink",
    "load_time_series",
    "core",
    "dynamics",
    "analysis",
    "utils"
]
