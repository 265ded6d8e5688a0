"""Typed precondition errors for the diffusion kernels and driver.

All errors derive from ``ValueError`` so callers that only care about
"bad input" can catch that.
"""


class DiffusionError(Exception):
    """Base class for diffusion benchmark errors."""


class InvalidTimeStep(DiffusionError, ValueError):
    """Time step is non-positive, non-finite or violates the explicit stability bound."""


class ZeroElapsedTime(DiffusionError, ValueError):
    """Analytical solution requested at t <= 0 (erf argument diverges)."""


class HaloTooNarrow(DiffusionError, ValueError):
    """Stencil reaches further than the ghost-cell halo allows."""


def check_time_step(dt: float, D: float, dx: float, dy: float) -> float:
    """Validate an explicit Euler time step against ``dt <= h^2 / (4 D)``.

    Parameters
    ----------
    dt : float
        Time step.
    D : float
        Diffusivity. ``D == 0`` imposes no bound.
    dx, dy : float
        Grid spacing.

    Returns
    -------
    float
        The stability bound ``h^2 / (4 D)`` (``inf`` when ``D == 0``).
    """
    if not (dt > 0.0) or dt == float("inf"):
        raise InvalidTimeStep(f"time step must be positive and finite, got dt={dt}")
    h = min(dx, dy)
    bound = float("inf") if D == 0.0 else h * h / (4.0 * D)
    if dt > bound:
        raise InvalidTimeStep(
            f"dt={dt:.6g} exceeds explicit stability bound h^2/(4D)={bound:.6g}"
        )
    return bound


def check_halo(shape, mask_radius: int, nm: int) -> None:
    """Raise HaloTooNarrow if a stencil of ``mask_radius`` cannot run on ``shape``."""
    if nm < 1:
        raise HaloTooNarrow(f"halo width must be >= 1, got nm={nm}")
    if mask_radius > nm:
        raise HaloTooNarrow(
            f"mask radius {mask_radius} exceeds halo width nm={nm}"
        )
    ny, nx = shape
    if ny < 2 * nm + 1 or nx < 2 * nm + 1:
        raise HaloTooNarrow(
            f"field {ny}x{nx} has no interior for halo width nm={nm}"
        )
