"""
Immutable simulation parameters shared by every component.
"""

from dataclasses import dataclass, asdict, replace as _replace
from typing import Tuple, Dict, Any

import numpy as np

from ..utils.constants import DEFAULT_PARAMETERS


@dataclass(frozen=True)
class SimulationParameters:
    """
    Constants of one LLG run.

    Passed explicitly into every component so several parameter sets can
    be integrated side by side in the same process.

    Attributes:
        gamma: Gyromagnetic ratio γ
        alpha: Gilbert damping α (dimensionless)
        exchange_stiffness: Exchange stiffness A_ex in J/m
        mu0_ms: μ₀Mₛ in Tesla
        lattice_spacing: Site spacing D in meters
        external_field: External field (Hx, Hy, Hz) in Tesla
        dt: Time step in seconds
        n_steps: Number of RK4 steps in the run
        exchange: Whether sites are exchange-coupled (False for a single moment)
    """

    gamma: float = DEFAULT_PARAMETERS['gamma']
    alpha: float = DEFAULT_PARAMETERS['alpha']
    exchange_stiffness: float = DEFAULT_PARAMETERS['exchange_stiffness']
    mu0_ms: float = DEFAULT_PARAMETERS['mu0_ms']
    lattice_spacing: float = DEFAULT_PARAMETERS['lattice_spacing']
    external_field: Tuple[float, float, float] = DEFAULT_PARAMETERS['external_field']
    dt: float = DEFAULT_PARAMETERS['dt']
    n_steps: int = DEFAULT_PARAMETERS['n_steps']
    exchange: bool = True

    def __post_init__(self):
        external_field = tuple(float(h) for h in self.external_field)
        if len(external_field) != 3:
            raise ValueError(f"External field must have 3 components, "
                             f"got {len(external_field)}")
        object.__setattr__(self, 'external_field', external_field)

        for name in ('gamma', 'alpha', 'exchange_stiffness', 'mu0_ms',
                     'lattice_spacing', 'dt'):
            value = getattr(self, name)
            if not np.isfinite(value):
                raise ValueError(f"Parameter '{name}' must be finite, got {value}")
        if not all(np.isfinite(external_field)):
            raise ValueError(f"External field must be finite, got {external_field}")

        if self.dt <= 0:
            raise ValueError(f"Time step must be positive, got {self.dt}")
        if self.alpha < 0:
            raise ValueError(f"Damping must be non-negative, got {self.alpha}")
        if self.mu0_ms <= 0:
            raise ValueError(f"mu0_ms must be positive, got {self.mu0_ms}")
        if self.lattice_spacing <= 0:
            raise ValueError(f"Lattice spacing must be positive, got {self.lattice_spacing}")
        if int(self.n_steps) != self.n_steps or self.n_steps < 0:
            raise ValueError(f"Step count must be a non-negative integer, got {self.n_steps}")
        object.__setattr__(self, 'n_steps', int(self.n_steps))

    @property
    def h_ext(self) -> np.ndarray:
        """External field as a new (3,) array."""
        return np.array(self.external_field, dtype=np.float64)

    @property
    def exchange_coefficient(self) -> float:
        """Exchange prefactor 2 A_ex / (μ₀Mₛ D²) in Tesla, 0 when uncoupled."""
        if not self.exchange:
            return 0.0
        return 2.0 * self.exchange_stiffness / (self.mu0_ms * self.lattice_spacing**2)

    @property
    def total_time(self) -> float:
        return self.n_steps * self.dt

    @classmethod
    def single_spin(cls, **kwargs) -> 'SimulationParameters':
        """Parameters for an isolated moment (no exchange)."""
        kwargs.setdefault('exchange', False)
        return cls(**kwargs)

    def replace(self, **changes) -> 'SimulationParameters':
        """Return a copy with the given fields changed."""
        return _replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['external_field'] = list(self.external_field)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulationParameters':
        """Build parameters from ``to_dict`` output, ignoring unknown keys."""
        known = set(cls.__dataclass_fields__)
        kwargs = {key: value for key, value in data.items() if key in known}
        if 'external_field' in kwargs:
            kwargs['external_field'] = tuple(float(h) for h in kwargs['external_field'])
        if 'exchange' in kwargs:
            kwargs['exchange'] = bool(kwargs['exchange'])
        if 'n_steps' in kwargs:
            kwargs['n_steps'] = int(kwargs['n_steps'])
        return cls(**kwargs)
