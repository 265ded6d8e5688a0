"""Closed-form solution of semi-infinite diffusion from a constant source.

c(x, t) = chi * (1 - erf(x / sqrt(4 D t)))
"""

import math

import numpy as np
from numba import njit
from scipy.special import erf

from .errors import ZeroElapsedTime


def analytical_value(x, t: float, D: float, chi: float):
    """Concentration at distance ``x`` from a source held at ``chi``.

    Parameters
    ----------
    x : float or np.ndarray
        Distance from the source (>= 0).
    t : float
        Elapsed time. Must be strictly positive.
    D : float
        Diffusivity.
    chi : float
        Source concentration.

    Returns
    -------
    float or np.ndarray
        Concentration, same shape as ``x``.
    """
    if not t > 0.0:
        raise ZeroElapsedTime(f"analytical solution undefined at t={t}")
    c = chi * (1.0 - erf(np.asarray(x, dtype=np.float64) / math.sqrt(4.0 * D * t)))
    return float(c) if np.ndim(c) == 0 else c


@njit(cache=True)
def _analytical_value_numba(x, t, D, chi):
    """Scalar JIT twin of analytical_value. Caller guarantees t > 0."""
    return chi * (1.0 - math.erf(x / math.sqrt(4.0 * D * t)))


def source_distances(shape, nm: int, dx: float, dy: float):
    """Shortest distances from every cell to the left and right line sources.

    The left source covers the upper half of the left edge (rows ``j < ny//2``),
    the right source covers the lower half of the right edge (rows ``j >= ny//2``).
    Cells beside a source measure straight across; the others measure to the
    source's end point.

    Returns
    -------
    (np.ndarray, np.ndarray)
        Left and right distance fields of ``shape``.
    """
    ny, nx = shape
    jc = ny // 2
    j = np.arange(ny, dtype=np.float64)[:, None]
    i = np.arange(nx, dtype=np.float64)[None, :]

    xl = dx * (i - nm)
    xr = dx * ((nx - 1 - nm) - i)

    left = np.where(j < jc, np.abs(xl), np.sqrt(xl**2 + (dy * (j - jc)) ** 2))
    right = np.where(j >= jc, np.abs(xr), np.sqrt(xr**2 + (dy * (jc - j)) ** 2))
    return left, right


def analytical_solution(shape, nm: int, dx: float, dy: float, t: float, D: float, bc) -> np.ndarray:
    """Superposition of the two line-source solutions over a full field."""
    left, right = source_distances(shape, nm, dx, dy)
    return analytical_value(left, t, D, bc[1][0]) + analytical_value(right, t, D, bc[1][1])
