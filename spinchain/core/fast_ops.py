"""
High-performance Numba kernels for the LLG chain integrator.

Kernels operate on (n_sites, 3) float64 arrays. The per-site maps are
compiled with ``parallel=True`` and iterate with ``prange``; every site
writes only its own output row, so no reductions or locks are involved.
``fastmath`` is left off so results do not depend on the thread count.
"""

import numpy as np
from numba import njit, prange
import numba

from .vector_math import add3, sub3, scale3, cross3, norm3, normalize3

# Moments with a norm at or below this are treated as degenerate
MIN_NORM = 1e-12


@njit
def exchange_field_site(chain, i, exchange_coefficient):
    """
    Discretized exchange field at one site.

    Computes ``c * (m[i+1] - 2 m[i] + m[i-1])`` with free boundaries:
    a neighbour outside the chain is replaced by ``m[i]`` itself.

    Args:
        chain: (n_sites, 3) moment snapshot
        i: Site index
        exchange_coefficient: 2 A_ex / (mu0 Ms D^2) in Tesla

    Returns:
        (3,) exchange field in Tesla
    """
    n_sites = chain.shape[0]
    m = chain[i]
    if i > 0:
        left = chain[i - 1]
    else:
        left = m
    if i < n_sites - 1:
        right = chain[i + 1]
    else:
        right = m

    laplacian = add3(sub3(right, scale3(m, 2.0)), left)
    return scale3(laplacian, exchange_coefficient)


@njit
def effective_field_site(chain, i, h_ext, exchange_coefficient, use_exchange):
    """
    Effective field at one site: external field plus exchange.

    Args:
        chain: (n_sites, 3) moment snapshot
        i: Site index
        h_ext: (3,) external field in Tesla
        exchange_coefficient: Exchange prefactor in Tesla
        use_exchange: False for an isolated moment (pure precession)

    Returns:
        (3,) effective field
    """
    if not use_exchange:
        return h_ext.copy()
    return add3(h_ext, exchange_field_site(chain, i, exchange_coefficient))


@njit
def llg_rhs_site(m, h_eff, gamma, alpha):
    """
    Right-hand side of the LLG equation for one moment.

    dm/dt = -γ/(1+α²) · (m × H + α m × (m × H))

    The moment is not renormalized here.
    """
    mxh = cross3(m, h_eff)
    mxmxh = cross3(m, mxh)
    prefactor = -gamma / (1.0 + alpha * alpha)
    return scale3(add3(mxh, scale3(mxmxh, alpha)), prefactor)


@njit(parallel=True)
def exchange_field(chain, exchange_coefficient):
    """Exchange field at every site of the chain."""
    n_sites = chain.shape[0]
    fields = np.zeros((n_sites, 3))

    for i in prange(n_sites):
        field = exchange_field_site(chain, i, exchange_coefficient)
        fields[i, 0] = field[0]
        fields[i, 1] = field[1]
        fields[i, 2] = field[2]

    return fields


@njit(parallel=True)
def stage_rhs(chain, h_ext, exchange_coefficient, use_exchange, gamma, alpha):
    """
    LLG right-hand side for the whole chain.

    Args:
        chain: (n_sites, 3) moment snapshot
        h_ext: (3,) external field
        exchange_coefficient: Exchange prefactor in Tesla
        use_exchange: Whether to include the exchange term
        gamma: Gyromagnetic ratio
        alpha: Gilbert damping parameter

    Returns:
        (n_sites, 3) array of time derivatives in site order
    """
    n_sites = chain.shape[0]
    derivatives = np.zeros((n_sites, 3))

    for i in prange(n_sites):
        h_eff = effective_field_site(chain, i, h_ext, exchange_coefficient, use_exchange)
        rhs = llg_rhs_site(chain[i], h_eff, gamma, alpha)
        derivatives[i, 0] = rhs[0]
        derivatives[i, 1] = rhs[1]
        derivatives[i, 2] = rhs[2]

    return derivatives


@njit(nogil=True)
def stage_rhs_block(chain, start, stop, h_ext, exchange_coefficient,
                    use_exchange, gamma, alpha, derivatives):
    """
    Serial version of ``stage_rhs`` over sites [start, stop).

    Writes into ``derivatives`` in place. Releases the GIL so blocks can be
    evaluated concurrently from a thread pool.
    """
    for i in range(start, stop):
        h_eff = effective_field_site(chain, i, h_ext, exchange_coefficient, use_exchange)
        rhs = llg_rhs_site(chain[i], h_eff, gamma, alpha)
        derivatives[i, 0] = rhs[0]
        derivatives[i, 1] = rhs[1]
        derivatives[i, 2] = rhs[2]


@njit(parallel=True)
def rk4_combine(chain, k1, k2, k3, k4, dt):
    """
    Classical RK4 combination, without normalization.

    Returns chain + dt/6 (k1 + 2 k2 + 2 k3 + k4).
    """
    n_sites = chain.shape[0]
    combined = np.zeros((n_sites, 3))
    weight = dt / 6.0

    for i in prange(n_sites):
        for c in range(3):
            combined[i, c] = chain[i, c] + weight * (
                k1[i, c] + 2.0 * k2[i, c] + 2.0 * k3[i, c] + k4[i, c]
            )

    return combined


@njit(parallel=True)
def normalize_chain(chain):
    """
    Normalize every moment to unit length.

    Degenerate rows (norm <= MIN_NORM or non-finite) are copied unchanged;
    callers inspect the returned norms and reject them.

    Returns:
        Tuple of (normalized chain, (n_sites,) norms before normalization)
    """
    n_sites = chain.shape[0]
    normalized = np.zeros_like(chain)
    norms = np.zeros(n_sites)

    for i in prange(n_sites):
        magnitude = norm3(chain[i])
        norms[i] = magnitude
        if magnitude > MIN_NORM and np.isfinite(magnitude):
            unit = normalize3(chain[i])
            normalized[i, 0] = unit[0]
            normalized[i, 1] = unit[1]
            normalized[i, 2] = unit[2]
        else:
            normalized[i, 0] = chain[i, 0]
            normalized[i, 1] = chain[i, 1]
            normalized[i, 2] = chain[i, 2]

    return normalized, norms


@njit(parallel=True)
def calculate_magnetization(chain):
    """
    Mean moment of the chain.

    Args:
        chain: (n_sites, 3) spin configuration

    Returns:
        (3,) average moment
    """
    n_sites = chain.shape[0]

    # Use reduction for parallel sum
    total_x = 0.0
    total_y = 0.0
    total_z = 0.0

    for i in prange(n_sites):
        total_x += chain[i, 0]
        total_y += chain[i, 1]
        total_z += chain[i, 2]

    return np.array([total_x / n_sites, total_y / n_sites, total_z / n_sites])


def max_threads() -> int:
    """Upper bound on the number of Numba worker threads."""
    return numba.config.NUMBA_NUM_THREADS
