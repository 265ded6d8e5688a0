"""Discrete Laplacian stencil masks.

Each builder fills a ``(2*nm+1, 2*nm+1)`` coefficient grid for grid spacing
``dx`` (along columns / x) and ``dy`` (along rows / y). The returned mask is
read-only.
"""

import math

import numpy as np


def _five_point(dx: float, dy: float) -> np.ndarray:
    M = np.zeros((3, 3), dtype=np.float64)
    M[0, 1] = 1.0 / (dy * dy)  # up
    M[1, 0] = 1.0 / (dx * dx)  # left
    M[1, 1] = -2.0 * (dx * dx + dy * dy) / (dx * dx * dy * dy)
    M[1, 2] = 1.0 / (dx * dx)  # right
    M[2, 1] = 1.0 / (dy * dy)  # down
    return M


def _nine_point(dx: float, dy: float) -> np.ndarray:
    """Compact 9-point Laplacian, exact on quadratics for any cell aspect.

    ``dxx + dyy + (dx^2 + dy^2)/12 * dxx dyy``; reduces to the classic
    ``(1, 4, 1; 4, -20, 4; 1, 4, 1) / 6h^2`` for square cells.
    """
    M = np.zeros((3, 3), dtype=np.float64)
    cross = (dx * dx + dy * dy) / (12.0 * dx * dx * dy * dy)
    M[0, 0] = M[0, 2] = M[2, 0] = M[2, 2] = cross
    M[0, 1] = M[2, 1] = 1.0 / (dy * dy) - 2.0 * cross
    M[1, 0] = M[1, 2] = 1.0 / (dx * dx) - 2.0 * cross
    M[1, 1] = -2.0 / (dx * dx) - 2.0 / (dy * dy) + 4.0 * cross
    return M


def _nine_point_cross(dx: float, dy: float) -> np.ndarray:
    """Fourth-order cross: (-1, 16, -30, 16, -1) / 12h^2 along each axis."""
    M = np.zeros((5, 5), dtype=np.float64)
    weights = np.array([-1.0, 16.0, -30.0, 16.0, -1.0]) / 12.0
    M[2, :] += weights / (dx * dx)
    M[:, 2] += weights / (dy * dy)
    return M


# name -> (builder, radius)
STENCILS = {
    "five_point": (_five_point, 1),
    "nine_point": (_nine_point, 1),
    "nine_point_cross": (_nine_point_cross, 2),
}

# Numeric stencil codes used in legacy parameter files
STENCIL_CODES = {
    53: "five_point",
    93: "nine_point",
}


def resolve_stencil(stencil) -> str:
    """Map a stencil name or numeric code to a key of ``STENCILS``."""
    if isinstance(stencil, (int, np.integer)):
        if int(stencil) not in STENCIL_CODES:
            raise ValueError(f"Unknown stencil code: {stencil}")
        return STENCIL_CODES[int(stencil)]
    if stencil not in STENCILS:
        raise ValueError(
            f"Unknown stencil '{stencil}'. Choose from {sorted(STENCILS)}"
        )
    return stencil


def stencil_radius(stencil="five_point") -> int:
    """Halo width ``nm`` required by a stencil."""
    return STENCILS[resolve_stencil(stencil)][1]


def set_mask(dx: float, dy: float, stencil="five_point"):
    """Build the Laplacian mask for grid spacing ``dx``, ``dy``.

    Parameters
    ----------
    dx, dy : float
        Positive, finite grid spacing. Non-square cells are allowed.
    stencil : str or int
        Stencil name (see ``STENCILS``) or numeric code (53, 93).

    Returns
    -------
    mask : np.ndarray
        Read-only ``(2*nm+1, 2*nm+1)`` coefficient grid.
    nm : int
        Stencil radius actually used.
    """
    for name, value in (("dx", dx), ("dy", dy)):
        if not (value > 0.0 and math.isfinite(value)):
            raise ValueError(f"{name} must be positive and finite, got {value}")

    builder, nm = STENCILS[resolve_stencil(stencil)]
    M = builder(float(dx), float(dy))
    M.flags.writeable = False
    return M, nm
