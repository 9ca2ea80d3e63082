"""
Minimal 3-vector algebra compiled with Numba.

All functions take and return (3,) float64 arrays and are safe to call
from inside other njit kernels, including prange loops.
"""

import numpy as np
from numba import njit


@njit
def add3(a, b):
    """Return a + b."""
    result = np.empty(3)
    result[0] = a[0] + b[0]
    result[1] = a[1] + b[1]
    result[2] = a[2] + b[2]
    return result


@njit
def sub3(a, b):
    """Return a - b."""
    result = np.empty(3)
    result[0] = a[0] - b[0]
    result[1] = a[1] - b[1]
    result[2] = a[2] - b[2]
    return result


@njit
def scale3(a, s):
    """Return s * a."""
    result = np.empty(3)
    result[0] = s * a[0]
    result[1] = s * a[1]
    result[2] = s * a[2]
    return result


@njit
def dot3(a, b):
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


@njit
def cross3(a, b):
    """
    Cross product a × b.

    Args:
        a: (3,) vector
        b: (3,) vector

    Returns:
        (3,) vector a × b
    """
    result = np.empty(3)
    result[0] = a[1] * b[2] - a[2] * b[1]
    result[1] = a[2] * b[0] - a[0] * b[2]
    result[2] = a[0] * b[1] - a[1] * b[0]
    return result


@njit
def norm3(a):
    return np.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


@njit
def normalize3(a):
    """
    Unit vector along a.

    The norm must be non-zero; callers check degenerate moments before
    normalizing (see ``fast_ops.normalize_chain``).
    """
    return scale3(a, 1.0 / norm3(a))
