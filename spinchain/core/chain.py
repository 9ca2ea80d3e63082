"""
Chain configurations and state containers.
"""

import numpy as np
from typing import NamedTuple, Optional

from .fast_ops import normalize_chain


class SimulationState(NamedTuple):
    """Snapshot of a run: step index, physical time and the chain."""
    step: int
    time: float
    chain: np.ndarray


def tilted_chain(n_sites: int, tilt: float, azimuth: float = 0.0) -> np.ndarray:
    """
    Uniform chain tilted away from the z-axis.

    Args:
        n_sites: Number of sites
        tilt: Polar angle from +z in degrees
        azimuth: Azimuthal angle from +x in degrees

    Returns:
        (n_sites, 3) array of identical unit vectors
    """
    if n_sites < 1:
        raise ValueError(f"Chain needs at least one site, got {n_sites}")

    theta = np.radians(tilt)
    phi = np.radians(azimuth)
    moment = np.array([
        np.sin(theta) * np.cos(phi),
        np.sin(theta) * np.sin(phi),
        np.cos(theta)
    ])
    return np.ascontiguousarray(np.tile(moment, (n_sites, 1)))


def random_chain(n_sites: int, seed: Optional[int] = None) -> np.ndarray:
    """
    Generate random unit vectors uniformly distributed on sphere.

    Args:
        n_sites: Number of sites
        seed: Optional random seed

    Returns:
        Array of shape (n_sites, 3) with unit vectors
    """
    if n_sites < 1:
        raise ValueError(f"Chain needs at least one site, got {n_sites}")

    rng = np.random.default_rng(seed)

    # Use Muller method for uniform distribution on sphere
    phi = rng.uniform(0, 2*np.pi, n_sites)
    cos_theta = rng.uniform(-1, 1, n_sites)
    sin_theta = np.sqrt(1 - cos_theta**2)

    x = sin_theta * np.cos(phi)
    y = sin_theta * np.sin(phi)
    z = cos_theta

    return np.column_stack((x, y, z))


def as_chain(moments, tolerance: float = 1e-6) -> np.ndarray:
    """
    Validate and normalize an initial configuration.

    Accepts a single (3,) moment or an (n_sites, 3) array. Moments must
    already be close to unit length; they are renormalized exactly.

    Args:
        moments: Initial moments
        tolerance: Allowed deviation of |m| from 1

    Returns:
        C-contiguous (n_sites, 3) float64 array of unit vectors
    """
    chain = np.array(moments, dtype=np.float64)
    if chain.ndim == 1:
        chain = chain.reshape(1, -1)

    if chain.ndim != 2 or chain.shape[1] != 3 or chain.shape[0] < 1:
        raise ValueError(f"Chain must have shape (n_sites, 3), got {chain.shape}")

    if not np.all(np.isfinite(chain)):
        bad = np.unique(np.nonzero(~np.isfinite(chain))[0])
        raise ValueError(f"Chain contains non-finite moments at sites {bad.tolist()}")

    norms = np.linalg.norm(chain, axis=1)
    off_unit = np.nonzero(np.abs(norms - 1.0) > tolerance)[0]
    if off_unit.size > 0:
        raise ValueError(f"Moments must be unit vectors; sites {off_unit.tolist()[:10]} "
                         f"have norms {norms[off_unit][:10].tolist()}")

    normalized, _ = normalize_chain(np.ascontiguousarray(chain))
    return normalized
