"""Analysis and visualization tools."""

from .observables import (
    mean_magnetization, transverse_magnitude, max_norm_deviation,
    precession_angles, azimuthal_angle, fit_precession
)
from .visualization import plot_trajectory, plot_chain_profile

__all__ = [
    "mean_magnetization", "transverse_magnitude", "max_norm_deviation",
    "precession_angles", "azimuthal_angle", "fit_precession",
    "plot_trajectory", "plot_chain_profile"
]
