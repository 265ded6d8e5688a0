"""Diffusion kernels: Laplacian convolution, explicit Euler step, residual.

Simple kernel implementations - timing is handled by the solver.

Both kernels share one interface::

    kernel.convolve(A, C, M, nm)
    elapsed = kernel.step(A, B, C, D, dt, nm, elapsed)
    rss = kernel.residual(A, dx, dy, elapsed, D, bc, nm)

``nm`` is the halo width; interior cells are ``[nm, n-nm)`` along each axis.
The Numba kernel splits the interior into square tiles and runs them with
``prange``. Every tile writes a disjoint block, so no locking is needed and
results do not depend on the tile size.
"""

import numpy as np
import numba
from numba import njit, prange

from .analytical import _analytical_value_numba, analytical_solution
from .errors import ZeroElapsedTime, check_halo

DEFAULT_TILE_SIZE = 16


def make_tiles(ny: int, nx: int, nm: int, tile_size: int = DEFAULT_TILE_SIZE) -> np.ndarray:
    """Partition the interior of an ``ny x nx`` field into rectangular tiles.

    Parameters
    ----------
    ny, nx : int
        Field shape including the halo.
    nm : int
        Halo width.
    tile_size : int
        Tile edge in cells (>= 1). Edge tiles may be smaller.

    Returns
    -------
    np.ndarray
        ``(n_tiles, 4)`` int64 array of half-open bounds ``[j0, j1, i0, i1]``.
        Tiles cover every interior cell exactly once.
    """
    if tile_size < 1:
        raise ValueError(f"tile_size must be >= 1, got {tile_size}")

    j_starts = np.arange(nm, ny - nm, tile_size)
    i_starts = np.arange(nm, nx - nm, tile_size)

    tiles = np.empty((len(j_starts) * len(i_starts), 4), dtype=np.int64)
    t = 0
    for j0 in j_starts:
        for i0 in i_starts:
            tiles[t] = (j0, min(j0 + tile_size, ny - nm), i0, min(i0 + tile_size, nx - nm))
            t += 1
    return tiles


def _check_buffers(*arrays):
    shape = arrays[0].shape
    for arr in arrays[1:]:
        if arr.shape != shape:
            raise ValueError(f"field shapes differ: {shape} vs {arr.shape}")
    for i, a in enumerate(arrays):
        for b in arrays[i + 1 :]:
            if np.may_share_memory(a, b):
                raise ValueError("input and output fields must not overlap in memory")


# ============================================================================
# Numba tile loops
# ============================================================================


@njit(parallel=True, cache=True)
def _convolution_numba(A, C, M, tiles):
    """Apply mask M to A over each tile, writing into C."""
    r = (M.shape[0] - 1) // 2
    for t in prange(tiles.shape[0]):
        j0, j1, i0, i1 = tiles[t, 0], tiles[t, 1], tiles[t, 2], tiles[t, 3]
        for j in range(j0, j1):
            for i in range(i0, i1):
                value = 0.0
                for mj in range(-r, r + 1):
                    for mi in range(-r, r + 1):
                        value += M[mj + r, mi + r] * A[j + mj, i + mi]
                C[j, i] = value


@njit(parallel=True, cache=True)
def _step_in_time_numba(A, B, C, D, dt, tiles):
    """Explicit Euler update B = A + dt*D*C over each tile."""
    for t in prange(tiles.shape[0]):
        j0, j1, i0, i1 = tiles[t, 0], tiles[t, 1], tiles[t, 2], tiles[t, 3]
        for j in range(j0, j1):
            for i in range(i0, i1):
                B[j, i] = A[j, i] + dt * D * C[j, i]


@njit(parallel=True, cache=True)
def _residual_numba(A, dx, dy, elapsed, D, chi_left, chi_right, nm, tiles, partials):
    """Per-tile sums of squared deviation from the two-source solution."""
    ny, nx = A.shape
    jc = ny // 2
    for t in prange(tiles.shape[0]):
        j0, j1, i0, i1 = tiles[t, 0], tiles[t, 1], tiles[t, 2], tiles[t, 3]
        acc = 0.0
        for j in range(j0, j1):
            for i in range(i0, i1):
                cn = A[j, i]

                # shortest distance to left-wall source
                if j < jc:
                    x = dx * (i - nm)
                else:
                    x = np.sqrt((dx * (i - nm)) ** 2 + (dy * (j - jc)) ** 2)
                cal = _analytical_value_numba(x, elapsed, D, chi_left)

                # shortest distance to right-wall source
                if j >= jc:
                    x = dx * (nx - 1 - nm - i)
                else:
                    x = np.sqrt((dx * (nx - 1 - nm - i)) ** 2 + (dy * (jc - j)) ** 2)
                car = _analytical_value_numba(x, elapsed, D, chi_right)

                diff = cal + car - cn
                acc += diff * diff
        partials[t] = acc


# ============================================================================
# Kernels
# ============================================================================


class NumPyKernel:
    """NumPy-based diffusion kernel (whole-array slicing, single thread).

    Takes the same constructor arguments as ``NumbaKernel``; tiling and
    threads have no meaning here and are ignored.
    """

    def __init__(self, tile_size: int = DEFAULT_TILE_SIZE, specified_numba_threads: int = 1):
        self.observed_numba_threads = None  # Not applicable for NumPy

    def convolve(self, A: np.ndarray, C: np.ndarray, M: np.ndarray, nm: int):
        """Laplacian of A on interior cells, written into C."""
        _check_buffers(A, C)
        r = (M.shape[0] - 1) // 2
        check_halo(A.shape, r, nm)
        ny, nx = A.shape

        value = np.zeros((ny - 2 * nm, nx - 2 * nm), dtype=A.dtype)
        for mj in range(-r, r + 1):
            for mi in range(-r, r + 1):
                w = M[mj + r, mi + r]
                if w != 0.0:
                    value += w * A[nm + mj : ny - nm + mj, nm + mi : nx - nm + mi]
        C[nm:-nm, nm:-nm] = value

    def step(self, A, B, C, D: float, dt: float, nm: int, elapsed: float = 0.0) -> float:
        """One explicit Euler step into B. Returns ``elapsed + dt``."""
        _check_buffers(A, B, C)
        check_halo(A.shape, 0, nm)
        B[nm:-nm, nm:-nm] = A[nm:-nm, nm:-nm] + dt * D * C[nm:-nm, nm:-nm]
        return elapsed + dt

    def residual(self, A, dx: float, dy: float, elapsed: float, D: float, bc, nm: int) -> float:
        """Mean squared error against the superposed analytical solution."""
        check_halo(A.shape, 0, nm)
        ca = analytical_solution(A.shape, nm, dx, dy, elapsed, D, bc)
        diff = ca[nm:-nm, nm:-nm] - A[nm:-nm, nm:-nm]
        return float(np.sum(diff * diff) / diff.size)

    def warmup(self, warmup_size: int = 10):
        """No-op for NumPy kernel."""
        pass


class NumbaKernel:
    """Numba JIT-compiled diffusion kernel with tiled ``prange`` loops."""

    def __init__(self, tile_size: int = DEFAULT_TILE_SIZE, specified_numba_threads: int = 1):
        if tile_size < 1:
            raise ValueError(f"tile_size must be >= 1, got {tile_size}")
        self.tile_size = tile_size
        self._tiles = {}

        # Set requested threads (may be clamped by NUMBA_NUM_THREADS env var)
        if specified_numba_threads is not None:
            numba.set_num_threads(min(specified_numba_threads, numba.config.NUMBA_NUM_THREADS))

        # Record what Numba actually reports
        self.observed_numba_threads = numba.get_num_threads()

    def tiles(self, shape, nm: int) -> np.ndarray:
        """Tile list for a field shape, cached per (shape, nm)."""
        key = (shape, nm)
        if key not in self._tiles:
            self._tiles[key] = make_tiles(shape[0], shape[1], nm, self.tile_size)
        return self._tiles[key]

    def convolve(self, A: np.ndarray, C: np.ndarray, M: np.ndarray, nm: int):
        """Laplacian of A on interior cells, written into C."""
        _check_buffers(A, C)
        check_halo(A.shape, (M.shape[0] - 1) // 2, nm)
        _convolution_numba(A, C, np.ascontiguousarray(M), self.tiles(A.shape, nm))

    def step(self, A, B, C, D: float, dt: float, nm: int, elapsed: float = 0.0) -> float:
        """One explicit Euler step into B. Returns ``elapsed + dt``."""
        _check_buffers(A, B, C)
        check_halo(A.shape, 0, nm)
        _step_in_time_numba(A, B, C, float(D), float(dt), self.tiles(A.shape, nm))
        return elapsed + dt

    def residual(self, A, dx: float, dy: float, elapsed: float, D: float, bc, nm: int) -> float:
        """Mean squared error against the superposed analytical solution.

        Tiles accumulate privately into ``partials``; the join is a pairwise
        ``np.sum`` after the parallel loop completes.
        """
        if not elapsed > 0.0:
            raise ZeroElapsedTime(f"residual undefined at elapsed={elapsed}")
        check_halo(A.shape, 0, nm)
        tiles = self.tiles(A.shape, nm)
        partials = np.zeros(tiles.shape[0], dtype=np.float64)
        _residual_numba(
            A, float(dx), float(dy), float(elapsed), float(D),
            float(bc[1][0]), float(bc[1][1]), nm, tiles, partials,
        )
        ny, nx = A.shape
        return float(np.sum(partials) / ((nx - 2 * nm) * (ny - 2 * nm)))

    def warmup(self, warmup_size: int = 10):
        """Trigger JIT compilation with a small problem."""
        from .mask import set_mask

        M, nm = set_mask(1.0, 1.0)
        A = np.random.rand(warmup_size, warmup_size)
        B = np.zeros_like(A)
        C = np.zeros_like(A)
        bc = np.array([[0.0, 0.0], [1.0, 1.0]])
        elapsed = 0.0
        for _ in range(2):
            self.convolve(A, C, M, nm)
            elapsed = self.step(A, B, C, 0.1, 0.1, nm, elapsed)
            A, B = B, A
        self.residual(A, 1.0, 1.0, elapsed, 0.1, bc, nm)
