"""Spin dynamics simulation modules."""

from .stage_evaluator import ParallelStageEvaluator
from .integrators import Integrator, RK4Integrator
from .driver import SimulationDriver, ProgressReporter, simulate

__all__ = [
    "ParallelStageEvaluator", "Integrator", "RK4Integrator",
    "SimulationDriver", "ProgressReporter", "simulate"
]
