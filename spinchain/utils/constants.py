"""Physical constants and default material parameters."""

import numpy as np

# Physical constants
PHYSICAL_CONSTANTS = {
    # Vacuum permeability
    'mu_0': 4*np.pi*1e-7,  # H/m

    # Gyromagnetic ratio for electron
    'gamma_e': 1.76085963e11,  # rad/(s·T)

    # Gyromagnetic ratio times mu_0, as used in micromagnetics
    'gamma_0': 2.211e5,  # m/(A·s)
}

# Defaults for a permalloy-like chain driven by a 1 T field along +z
DEFAULT_PARAMETERS = {
    'gamma': PHYSICAL_CONSTANTS['gamma_0'],
    'alpha': 0.1,  # dimensionless damping
    'exchange_stiffness': 1.3e-11,  # J/m
    'mu0_ms': PHYSICAL_CONSTANTS['mu_0'] * 8.0e5,  # T (Ms = 800 kA/m)
    'lattice_spacing': 1e-9,  # m
    'external_field': (0.0, 0.0, 1.0),  # T
    'dt': 1e-12,  # s
    'n_steps': 10_000,
}


def exchange_length(exchange_stiffness: float, mu0_ms: float) -> float:
    """
    Exchange length sqrt(2 A_ex mu_0 / (mu_0 Ms)^2) in meters.

    Args:
        exchange_stiffness: A_ex in J/m
        mu0_ms: mu_0 Ms in Tesla

    Returns:
        Exchange length in meters
    """
    return np.sqrt(2 * exchange_stiffness * PHYSICAL_CONSTANTS['mu_0'] / mu0_ms**2)
