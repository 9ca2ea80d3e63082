"""
Numerical integrators for solving the LLG equation.
"""

import numpy as np
from abc import ABC, abstractmethod

from ..core.fast_ops import rk4_combine, normalize_chain, MIN_NORM
from .stage_evaluator import ParallelStageEvaluator


class Integrator(ABC):
    """Abstract base class for LLG integrators."""

    def __init__(self, stage_evaluator: ParallelStageEvaluator):
        """Initialize integrator with the evaluator of dm/dt."""
        self.stage_evaluator = stage_evaluator

    @abstractmethod
    def step(self, chain: np.ndarray, dt: float) -> np.ndarray:
        """
        Perform one integration step.

        Args:
            chain: Current (n_sites, 3) configuration
            dt: Time step

        Returns:
            Updated configuration
        """
        pass

    @staticmethod
    def _normalize_spins(chain: np.ndarray) -> np.ndarray:
        """Normalize moments to unit length, rejecting degenerate ones."""
        normalized, norms = normalize_chain(chain)
        degenerate = np.nonzero(~np.isfinite(norms) | (norms <= MIN_NORM))[0]
        if degenerate.size > 0:
            raise FloatingPointError(
                f"Cannot normalize moments at sites {degenerate.tolist()[:10]}: "
                f"norms {norms[degenerate][:10].tolist()}"
            )
        return normalized


class RK4Integrator(Integrator):
    """
    Fourth-order Runge-Kutta integrator for LLG equation.

    Each stage evaluates the full chain before the next stage starts, since
    the exchange term couples neighbours. Moments are renormalized once,
    after the final combination; the trial chains of stages 2-4 are not.
    """

    def step(self, chain: np.ndarray, dt: float) -> np.ndarray:
        """Perform RK4 integration step."""
        evaluate = self.stage_evaluator.evaluate

        k1 = evaluate(chain)
        k2 = evaluate(chain + 0.5 * dt * k1)
        k3 = evaluate(chain + 0.5 * dt * k2)
        k4 = evaluate(chain + dt * k3)

        chain_new = rk4_combine(chain, k1, k2, k3, k4, dt)

        return self._normalize_spins(chain_new)
