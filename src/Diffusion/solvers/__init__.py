"""Diffusion solvers.

- BaseSolver: kernel selection, metrics containers, timing hooks
- ExplicitDiffusionSolver: forward-Euler benchmark driver
"""

from .base import BaseSolver
from .explicit import ExplicitDiffusionSolver

__all__ = [
    "BaseSolver",
    "ExplicitDiffusionSolver",
]
