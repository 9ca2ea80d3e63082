"""Tests for simulation parameters and constants."""

import dataclasses

import numpy as np
import pytest

from spinchain.core.parameters import SimulationParameters
from spinchain.utils.constants import (
    PHYSICAL_CONSTANTS, DEFAULT_PARAMETERS, exchange_length
)


def test_defaults():
    p = SimulationParameters()
    assert p.gamma == 2.211e5
    assert p.alpha == 0.1
    assert p.external_field == (0.0, 0.0, 1.0)
    assert p.exchange is True
    assert p.total_time == pytest.approx(DEFAULT_PARAMETERS['n_steps'] * 1e-12)


def test_exchange_coefficient():
    p = SimulationParameters(exchange_stiffness=1.3e-11, mu0_ms=1.0, lattice_spacing=2e-9)
    assert p.exchange_coefficient == pytest.approx(2 * 1.3e-11 / (1.0 * 4e-18))


def test_single_spin_has_no_exchange():
    p = SimulationParameters.single_spin(alpha=0.0)
    assert p.exchange is False
    assert p.exchange_coefficient == 0.0
    assert p.alpha == 0.0


def test_parameters_are_immutable():
    p = SimulationParameters()
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.alpha = 0.5
    h_ext = p.h_ext
    h_ext[0] = 1.0
    assert p.external_field == (0.0, 0.0, 1.0)


def test_replace_returns_new_value():
    p = SimulationParameters()
    q = p.replace(dt=2e-12)
    assert q.dt == 2e-12
    assert p.dt == 1e-12
    assert q != p


def test_dict_round_trip():
    p = SimulationParameters(alpha=0.02, external_field=(0.1, 0.0, 0.5), n_steps=7,
                             exchange=False)
    data = p.to_dict()
    assert data['external_field'] == [0.1, 0.0, 0.5]
    assert SimulationParameters.from_dict({**data, 'unrelated': 1}) == p


def test_h_ext_array():
    p = SimulationParameters(external_field=[0, 1, 2])
    np.testing.assert_array_equal(p.h_ext, [0.0, 1.0, 2.0])
    assert p.h_ext.dtype == np.float64


@pytest.mark.parametrize("kwargs, message", [
    ({'dt': 0.0}, "Time step"),
    ({'dt': -1e-12}, "Time step"),
    ({'alpha': -0.1}, "Damping"),
    ({'mu0_ms': 0.0}, "mu0_ms"),
    ({'lattice_spacing': -1e-9}, "spacing"),
    ({'n_steps': -1}, "Step count"),
    ({'n_steps': 2.5}, "Step count"),
    ({'external_field': (0.0, 1.0)}, "3 components"),
    ({'gamma': np.nan}, "finite"),
    ({'external_field': (0.0, np.inf, 1.0)}, "finite"),
])
def test_invalid_parameters(kwargs, message):
    with pytest.raises(ValueError, match=message):
        SimulationParameters(**kwargs)


def test_exchange_length():
    l_ex = exchange_length(1.3e-11, PHYSICAL_CONSTANTS['mu_0'] * 8.0e5)
    assert l_ex == pytest.approx(5.69e-9, rel=1e-2)
