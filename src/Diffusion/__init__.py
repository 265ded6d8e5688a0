"""Semi-infinite diffusion accelerator benchmark.

Explicit finite-difference solution of the 2D diffusion equation with two
constant line sources, timed per phase (Laplacian convolution, Euler update,
comparison against the analytical erf solution) across kernel back ends.

Kernels
-------
- NumPyKernel: vectorised whole-array reference
- NumbaKernel: tiled ``prange`` loops, configurable thread count

Solvers
-------
- ExplicitDiffusionSolver: forward-Euler benchmark driver
"""

from pathlib import Path

from .analytical import analytical_solution, analytical_value, source_distances
from .datastructures import GlobalMetrics, GlobalParams, LocalMetrics
from .errors import (
    DiffusionError,
    HaloTooNarrow,
    InvalidTimeStep,
    ZeroElapsedTime,
    check_time_step,
)
from .kernels import NumbaKernel, NumPyKernel, make_tiles
from .mask import STENCILS, set_mask
from .postprocessing import PostProcessor
from .problems import (
    apply_boundary_conditions,
    apply_initial_conditions,
    create_field,
    set_boundaries,
    setup_diffusion_problem,
)
from .solvers import ExplicitDiffusionSolver

__all__ = [
    # Data structures
    "GlobalParams",
    "GlobalMetrics",
    "LocalMetrics",
    # Errors
    "DiffusionError",
    "InvalidTimeStep",
    "ZeroElapsedTime",
    "HaloTooNarrow",
    "check_time_step",
    # Discretization
    "STENCILS",
    "set_mask",
    "make_tiles",
    "NumPyKernel",
    "NumbaKernel",
    "analytical_value",
    "analytical_solution",
    "source_distances",
    # Problem setup
    "set_boundaries",
    "create_field",
    "apply_initial_conditions",
    "apply_boundary_conditions",
    "setup_diffusion_problem",
    # Solvers
    "ExplicitDiffusionSolver",
    # Analysis
    "PostProcessor",
    # Utilities
    "get_project_root",
]


def get_project_root() -> Path:
    """Get project root directory.

    Returns
    -------
    Path
        Project root directory (contains pyproject.toml).
    """
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent

    # Fallback: assume standard src layout
    return Path(__file__).resolve().parent.parent.parent
