"""Problem setup: boundary descriptor, field allocation, initial and boundary conditions.

Fields are ``(ny, nx)`` float64 arrays whose outer ring of width ``nm`` is the
ghost-cell halo. Two constant sources drive the problem: the upper half of the
left edge at ``bc[1][0]`` and the lower half of the right edge at ``bc[1][1]``.
Everything else starts at ``bc[0][0]``.
"""

import numpy as np


def set_boundaries(clo: float = 0.0, chi: float = 1.0, chi_right: float = None) -> np.ndarray:
    """Boundary descriptor ``bc``.

    ``bc[0]`` holds the background value, ``bc[1]`` the left and right source
    concentrations. ``chi_right`` defaults to ``chi``.
    """
    if chi_right is None:
        chi_right = chi
    return np.array([[clo, clo], [chi, chi_right]], dtype=np.float64)


def create_field(nx: int, ny: int, value: float = 0.0) -> np.ndarray:
    """Allocate a contiguous ``(ny, nx)`` field filled with ``value``."""
    return np.full((ny, nx), value, dtype=np.float64)


def _apply_sources(conc: np.ndarray, nm: int, bc) -> None:
    ny, nx = conc.shape
    conc[: ny // 2, : nm + 1] = bc[1][0]  # left value
    conc[ny // 2 :, nx - 1 - nm :] = bc[1][1]  # right value


def apply_initial_conditions(conc: np.ndarray, nm: int, bc) -> None:
    """Fill with the background value, then place the two sources."""
    conc[...] = bc[0][0]
    _apply_sources(conc, nm, bc)


def apply_boundary_conditions(conc: np.ndarray, nm: int, bc) -> None:
    """Refresh the halo in place.

    No-flux edges copy the outermost interior row/column into the halo, then
    the fixed source cells (halo plus first interior column) are reset.
    """
    ny, nx = conc.shape
    conc[:, :nm] = conc[:, nm : nm + 1]  # left
    conc[:, nx - nm :] = conc[:, nx - nm - 1 : nx - nm]  # right
    conc[:nm, :] = conc[nm : nm + 1, :]  # top
    conc[ny - nm :, :] = conc[ny - nm - 1 : ny - nm, :]  # bottom
    _apply_sources(conc, nm, bc)


def setup_diffusion_problem(nx: int, ny: int, nm: int, bc):
    """Allocate and initialise the three working buffers.

    Returns
    -------
    conc_old, conc_new, conc_lap : np.ndarray
        Current field (initial condition applied), next field (copy of the
        current one so its halo is valid) and Laplacian scratch buffer.
    """
    conc_old = create_field(nx, ny)
    apply_initial_conditions(conc_old, nm, bc)
    conc_new = conc_old.copy()
    conc_lap = create_field(nx, ny)
    return conc_old, conc_new, conc_lap
