"""Tests for observables, precession fitting and plotting."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from spinchain.analysis import (
    mean_magnetization, transverse_magnitude, max_norm_deviation, azimuthal_angle,
    fit_precession, plot_trajectory, plot_chain_profile
)
from spinchain.core.chain import tilted_chain, random_chain
from spinchain.core.parameters import SimulationParameters
from spinchain.dynamics.driver import simulate
from spinchain.utils.io import ArrayTimeSeriesSink


def single_trajectory(alpha, field=(0.0, 0.0, 1.0), n_steps=400, dt=1e-7):
    parameters = SimulationParameters.single_spin(alpha=alpha, external_field=field,
                                                  dt=dt, n_steps=n_steps)
    sink = ArrayTimeSeriesSink()
    simulate(parameters, tilted_chain(1, 45.0), sink=sink)
    return np.arange(n_steps + 1) * dt, sink.trajectory


def test_mean_magnetization_chain_and_trajectory():
    chain = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    np.testing.assert_allclose(mean_magnetization(chain), [0.5, 0.5, 0.0])

    trajectory = np.stack([chain, chain[::-1]])
    assert mean_magnetization(trajectory).shape == (2, 3)


def test_transverse_and_norm_deviation():
    chain = tilted_chain(3, 30.0)
    np.testing.assert_allclose(transverse_magnitude(chain), 0.5)
    assert max_norm_deviation(chain) < 1e-15
    assert max_norm_deviation(2 * chain) == pytest.approx(1.0)


@pytest.mark.parametrize("alpha", [0.05, 0.2])
def test_fit_recovers_gamma_and_alpha(alpha):
    times, trajectory = single_trajectory(alpha)

    fit = fit_precession(times, trajectory)

    assert fit['gamma'] == pytest.approx(2.211e5, rel=1e-4)
    assert fit['alpha'] == pytest.approx(alpha, rel=1e-4)
    assert fit['frequency'] == pytest.approx(2.211e5 / (1 + alpha**2), rel=1e-4)


def test_fit_with_tilted_field():
    field = (0.0, 0.6, 0.8)
    times, trajectory = single_trajectory(0.1, field=field)

    fit = fit_precession(times, trajectory, external_field=field)

    assert fit['gamma'] == pytest.approx(2.211e5, rel=1e-4)
    assert fit['alpha'] == pytest.approx(0.1, rel=1e-4)


def test_fit_rejects_chain_and_short_input():
    with pytest.raises(ValueError, match="single moment"):
        fit_precession(np.arange(5.0), np.zeros((5, 2, 3)))
    with pytest.raises(ValueError, match="Not enough"):
        fit_precession(np.arange(2.0), np.zeros((2, 3)))
    with pytest.raises(ValueError, match="non-zero field"):
        fit_precession(np.arange(4.0), tilted_chain(4, 30.0), external_field=(0, 0, 0))


def test_azimuthal_angle_is_unwrapped():
    phi = np.linspace(0, 6 * np.pi, 200)
    trajectory = np.column_stack([np.cos(phi), np.sin(phi), np.zeros_like(phi)])
    np.testing.assert_allclose(azimuthal_angle(trajectory), phi, atol=1e-12)


def test_plot_trajectory(tmp_path):
    times, trajectory = single_trajectory(0.1, n_steps=50)

    fig = plot_trajectory(times, trajectory, save_path=tmp_path / "single.png")

    assert (tmp_path / "single.png").exists()
    assert len(fig.axes[0].lines) == 3


def test_plot_chain(tmp_path):
    chain = random_chain(20, seed=0)
    trajectory = np.stack([chain, chain])

    fig = plot_trajectory([0.0, 1e-12], trajectory)
    assert len(fig.axes[0].lines) == 3

    fig = plot_chain_profile(chain, lattice_spacing=1e-9, save_path=tmp_path / "profile.png")
    assert (tmp_path / "profile.png").exists()
