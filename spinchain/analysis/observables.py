"""
Scalar and vector observables of chains and trajectories.
"""

import numpy as np
from typing import Dict, Any
from scipy.optimize import curve_fit

from ..core.fast_ops import calculate_magnetization


def mean_magnetization(chain: np.ndarray) -> np.ndarray:
    """
    Average moment of a chain, or of every frame of a trajectory.

    Args:
        chain: (n_sites, 3) chain or (n_frames, n_sites, 3) trajectory

    Returns:
        (3,) or (n_frames, 3) mean moments
    """
    chain = np.asarray(chain, dtype=np.float64)
    if chain.ndim == 2:
        return calculate_magnetization(np.ascontiguousarray(chain))
    return chain.mean(axis=1)


def transverse_magnitude(moments: np.ndarray) -> np.ndarray:
    """sqrt(mx² + my²) along the last axis."""
    moments = np.asarray(moments)
    return np.sqrt(moments[..., 0]**2 + moments[..., 1]**2)


def max_norm_deviation(moments: np.ndarray) -> float:
    """Largest | |m| - 1 | over all moments."""
    moments = np.asarray(moments)
    return float(np.max(np.abs(np.linalg.norm(moments, axis=-1) - 1.0)))


def _field_frame(field_axis: np.ndarray):
    """Orthonormal frame (e1, e2, h) with h along the field."""
    h = np.asarray(field_axis, dtype=np.float64)
    h = h / np.linalg.norm(h)
    trial = np.array([1.0, 0.0, 0.0]) if abs(h[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    e1 = trial - np.dot(trial, h) * h
    e1 /= np.linalg.norm(e1)
    e2 = np.cross(h, e1)
    return e1, e2, h


def precession_angles(trajectory: np.ndarray, field_axis=(0.0, 0.0, 1.0)):
    """
    Polar and unwrapped azimuthal angles of a single-moment trajectory.

    Angles are measured relative to the field direction.

    Args:
        trajectory: (n_frames, 3) moments
        field_axis: Field direction

    Returns:
        Tuple of (theta, phi) arrays in radians
    """
    trajectory = np.asarray(trajectory, dtype=np.float64)
    e1, e2, h = _field_frame(field_axis)

    parallel = trajectory @ h
    perpendicular = np.linalg.norm(trajectory - np.outer(parallel, h), axis=1)
    theta = np.arctan2(perpendicular, parallel)
    phi = np.unwrap(np.arctan2(trajectory @ e2, trajectory @ e1))
    return theta, phi


def azimuthal_angle(trajectory: np.ndarray, field_axis=(0.0, 0.0, 1.0)) -> np.ndarray:
    """Unwrapped azimuthal angle around the field axis."""
    return precession_angles(trajectory, field_axis)[1]


def fit_precession(
    times: np.ndarray,
    trajectory: np.ndarray,
    external_field=(0.0, 0.0, 1.0)
) -> Dict[str, Any]:
    """
    Fit precession frequency and relaxation rate of a single moment.

    For a moment in a static field H the LLG solution satisfies

        φ(t) = φ₀ + ω t,                  ω = γ H / (1 + α²)
        ln tan(θ/2) = ln tan(θ₀/2) - λ t,  λ = α ω

    from which the effective γ and α are recovered.

    Args:
        times: (n_frames,) times in seconds
        trajectory: (n_frames, 3) moments
        external_field: Field vector in Tesla

    Returns:
        Dictionary with frequency, relaxation_rate, alpha and gamma
    """
    times = np.asarray(times, dtype=np.float64)
    trajectory = np.asarray(trajectory, dtype=np.float64)
    if trajectory.ndim == 3:
        if trajectory.shape[1] != 1:
            raise ValueError(f"Precession fit needs a single moment, "
                             f"got {trajectory.shape[1]} sites")
        trajectory = trajectory[:, 0]
    if len(times) != len(trajectory):
        raise ValueError(f"Got {len(times)} times for {len(trajectory)} frames")
    if len(times) < 3:
        raise ValueError("Not enough frames for a precession fit")

    field_magnitude = np.linalg.norm(external_field)
    if field_magnitude == 0:
        raise ValueError("Precession fit needs a non-zero field")

    theta, phi = precession_angles(trajectory, external_field)

    def linear(t, offset, slope):
        return offset + slope * t

    # Rescale time for a well-conditioned fit
    t_scale = times[-1] - times[0]
    if t_scale <= 0:
        raise ValueError("Times must be increasing")
    tau = (times - times[0]) / t_scale

    (_, phi_slope), _ = curve_fit(linear, tau, phi)
    frequency = phi_slope / t_scale

    mask = (theta > 1e-8) & (theta < np.pi - 1e-8)
    if np.count_nonzero(mask) < 3:
        raise ValueError("Moment is aligned with the field; cannot fit relaxation")
    log_tan = np.log(np.tan(theta[mask] / 2))
    (_, log_slope), _ = curve_fit(linear, tau[mask], log_tan)
    relaxation_rate = -log_slope / t_scale

    alpha = relaxation_rate / frequency
    gamma = frequency * (1 + alpha**2) / field_magnitude

    return {
        'frequency': frequency,
        'relaxation_rate': relaxation_rate,
        'alpha': alpha,
        'gamma': gamma
    }
