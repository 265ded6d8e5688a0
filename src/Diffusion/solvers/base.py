"""Base class for solvers."""

import time
from abc import ABC, abstractmethod

from ..datastructures import GlobalMetrics, GlobalParams, LocalMetrics
from ..kernels import NumbaKernel, NumPyKernel


class BaseSolver(ABC):
    """Abstract base for diffusion benchmark solvers.

    Owns the run configuration, the kernel and the metrics containers.
    Subclasses implement ``solve``.
    """

    def __init__(self, params: GlobalParams):
        self.params = params

        # Metrics containers (match datastructures.py naming)
        self.metrics = GlobalMetrics()
        self.timeseries = LocalMetrics()

        self._init_kernel()

    def _init_kernel(self):
        """Select the kernel back end."""
        cls = NumbaKernel if self.params.use_numba else NumPyKernel
        self.kernel = cls(
            tile_size=self.params.tile_size,
            specified_numba_threads=self.params.specified_numba_threads,
        )

    @abstractmethod
    def solve(self) -> GlobalMetrics:
        """Execute the solver. Returns results."""
        pass

    def warmup(self, warmup_size: int = 10):
        """Warmup kernel (trigger Numba JIT if used)."""
        self.kernel.warmup(warmup_size=warmup_size)

    def _get_time(self) -> float:
        """Get current time."""
        return time.perf_counter()

    def _reset(self):
        """Reset timers and timeseries."""
        self.metrics = GlobalMetrics()
        self.timeseries.clear()

    def _compute_metrics(self, wall_time: float, iterations: int):
        """Compute performance metrics."""
        self.metrics.wall_time = wall_time
        self.metrics.iterations = iterations
        self.metrics.observed_numba_threads = self.kernel.observed_numba_threads

        if iterations > 0 and wall_time > 0:
            self.metrics.mlups = self.params.n_interior * iterations / (wall_time * 1e6)
