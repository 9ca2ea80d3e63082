"""Core data model and Numba kernels."""

from .parameters import SimulationParameters
from .chain import SimulationState, tilted_chain, random_chain, as_chain

__all__ = ["SimulationParameters", "SimulationState", "tilted_chain", "random_chain", "as_chain"]
