"""
Plotting tools for chain trajectories.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, Tuple

from .observables import mean_magnetization


def plot_trajectory(
    times: np.ndarray,
    trajectory: np.ndarray,
    title: str = "Magnetization dynamics",
    figsize: Tuple[int, int] = (8, 5),
    dpi: int = 150,
    save_path: Optional[str] = None
):
    """
    Plot mx, my, mz against time.

    For a chain the site-averaged components are plotted.

    Args:
        times: (n_frames,) times in seconds
        trajectory: (n_frames, 3) or (n_frames, n_sites, 3) moments
        title: Plot title
        figsize: Figure size
        dpi: Figure DPI
        save_path: Path to save figure

    Returns:
        The matplotlib Figure
    """
    trajectory = np.asarray(trajectory)
    if trajectory.ndim == 3:
        components = mean_magnetization(trajectory)
        labels = [r"$\langle m_x \rangle$", r"$\langle m_y \rangle$", r"$\langle m_z \rangle$"]
    else:
        components = trajectory
        labels = [r"$m_x$", r"$m_y$", r"$m_z$"]

    times_ns = np.asarray(times) * 1e9

    fig, ax = plt.subplots(figsize=figsize, dpi=dpi)
    for c in range(3):
        ax.plot(times_ns, components[:, c], label=labels[c])

    ax.set_xlabel("Time (ns)")
    ax.set_ylabel("Magnetization")
    ax.set_ylim(-1.05, 1.05)
    ax.set_title(title)
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=dpi, bbox_inches='tight')

    return fig


def plot_chain_profile(
    chain: np.ndarray,
    lattice_spacing: float = 1.0,
    title: str = "Chain profile",
    save_path: Optional[str] = None
):
    """
    Plot moment components along the chain at one instant.

    Args:
        chain: (n_sites, 3) moments
        lattice_spacing: Site spacing in meters (x-axis in nm)
        title: Plot title
        save_path: Path to save figure

    Returns:
        The matplotlib Figure
    """
    chain = np.asarray(chain)
    positions = np.arange(chain.shape[0]) * lattice_spacing * 1e9

    fig, ax = plt.subplots(figsize=(8, 4))
    for c, label in enumerate(("$m_x$", "$m_y$", "$m_z$")):
        ax.plot(positions, chain[:, c], marker='.', label=label)

    ax.set_xlabel("Position (nm)")
    ax.set_ylabel("Magnetization")
    ax.set_title(title)
    ax.legend()
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, bbox_inches='tight')

    return fig
