"""Tests for diffusion kernels: convolution, Euler step, residual."""

import numpy as np
import pytest
from Diffusion import (
    HaloTooNarrow,
    NumbaKernel,
    NumPyKernel,
    ZeroElapsedTime,
    analytical_solution,
    make_tiles,
    set_boundaries,
    set_mask,
    setup_diffusion_problem,
)

KERNELS = [NumPyKernel, NumbaKernel]


@pytest.fixture(scope="module", autouse=True)
def warm_numba():
    """Compile the Numba kernels once for the module."""
    NumbaKernel().warmup()


def random_field(ny, nx, seed=0):
    return np.random.default_rng(seed).random((ny, nx))


class TestTiles:
    """Tests for interior tiling."""

    @pytest.mark.parametrize("tile_size", [1, 3, 8, 16, 100])
    def test_tiles_cover_interior_once(self, tile_size):
        ny, nx, nm = 23, 17, 1
        tiles = make_tiles(ny, nx, nm, tile_size)
        count = np.zeros((ny, nx), dtype=int)
        for j0, j1, i0, i1 in tiles:
            count[j0:j1, i0:i1] += 1

        assert np.all(count[nm:-nm, nm:-nm] == 1)
        assert count.sum() == (ny - 2 * nm) * (nx - 2 * nm)

    def test_tile_edge_bounded(self):
        tiles = make_tiles(40, 40, 1, 16)
        assert np.all(tiles[:, 1] - tiles[:, 0] <= 16)
        assert np.all(tiles[:, 3] - tiles[:, 2] <= 16)
        assert tiles.dtype == np.int64

    def test_invalid_tile_size(self):
        with pytest.raises(ValueError):
            make_tiles(10, 10, 1, 0)
        with pytest.raises(ValueError):
            NumbaKernel(tile_size=0)


class TestConvolution:
    """Tests for the Laplacian convolution."""

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_constant_field_gives_zero(self, kernel_cls):
        """Laplacian of a constant is exactly zero on every interior cell."""
        M, nm = set_mask(0.5, 0.5)
        A = np.full((20, 24), 0.75)
        C = np.full_like(A, np.nan)

        kernel_cls(tile_size=8).convolve(A, C, M, nm)

        assert np.all(C[nm:-nm, nm:-nm] == 0.0)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    @pytest.mark.parametrize("stencil", ["nine_point", "nine_point_cross"])
    def test_constant_field_wide_stencils(self, kernel_cls, stencil):
        """Wider stencils vanish on a constant up to rounding."""
        M, nm = set_mask(0.5, 0.5, stencil)
        A = np.full((20, 24), 0.75)
        C = np.full_like(A, np.nan)

        kernel_cls(tile_size=8).convolve(A, C, M, nm)

        assert np.allclose(C[nm:-nm, nm:-nm], 0.0, atol=1e-12)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_halo_not_written(self, kernel_cls):
        M, nm = set_mask(0.5, 0.25)
        A = random_field(12, 14)
        C = np.full_like(A, -7.0)

        kernel_cls().convolve(A, C, M, nm)

        assert np.all(C[0, :] == -7.0) and np.all(C[-1, :] == -7.0)
        assert np.all(C[:, 0] == -7.0) and np.all(C[:, -1] == -7.0)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_quadratic_field(self, kernel_cls):
        """Five-point stencil is exact for x^2 + y^2 (Laplacian 4)."""
        dx, dy = 0.5, 0.25
        M, nm = set_mask(dx, dy)
        y, x = np.meshgrid(dy * np.arange(15), dx * np.arange(18), indexing="ij")
        A = x**2 + y**2
        C = np.zeros_like(A)

        kernel_cls().convolve(A, C, M, nm)

        assert np.allclose(C[1:-1, 1:-1], 4.0, rtol=1e-10)

    @pytest.mark.parametrize("stencil", ["five_point", "nine_point", "nine_point_cross"])
    def test_kernels_produce_identical_results(self, stencil):
        """NumPy and Numba convolutions agree."""
        M, nm = set_mask(0.5, 0.5, stencil)
        A = random_field(31, 29)
        C_numpy = np.zeros_like(A)
        C_numba = np.zeros_like(A)

        NumPyKernel().convolve(A, C_numpy, M, nm)
        NumbaKernel(tile_size=16).convolve(A, C_numba, M, nm)

        assert np.allclose(C_numpy, C_numba, rtol=1e-12, atol=1e-12)

    @pytest.mark.parametrize("tile_size", [1, 8, 64])
    def test_independent_of_tile_size(self, tile_size):
        M, nm = set_mask(0.5, 0.5)
        A = random_field(33, 35)
        C_ref = np.zeros_like(A)
        C = np.zeros_like(A)

        NumbaKernel(tile_size=16).convolve(A, C_ref, M, nm)
        NumbaKernel(tile_size=tile_size).convolve(A, C, M, nm)

        assert np.array_equal(C, C_ref)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_halo_too_narrow(self, kernel_cls):
        """A radius-2 mask cannot run on a width-1 halo."""
        M, _ = set_mask(0.5, 0.5, "nine_point_cross")
        A = random_field(10, 10)
        with pytest.raises(HaloTooNarrow):
            kernel_cls().convolve(A, np.zeros_like(A), M, 1)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_field_without_interior(self, kernel_cls):
        M, nm = set_mask(0.5, 0.5)
        A = np.zeros((2, 10))
        with pytest.raises(HaloTooNarrow):
            kernel_cls().convolve(A, np.zeros_like(A), M, nm)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_aliased_output_rejected(self, kernel_cls):
        M, nm = set_mask(0.5, 0.5)
        A = random_field(8, 8)
        with pytest.raises(ValueError):
            kernel_cls().convolve(A, A, M, nm)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_view_of_input_rejected(self, kernel_cls):
        """An output that is a view of the input shares its memory."""
        M, nm = set_mask(0.5, 0.5)
        A = random_field(8, 8)
        with pytest.raises(ValueError):
            kernel_cls().convolve(A, A[:], M, nm)
        with pytest.raises(ValueError):
            kernel_cls().convolve(A, A.view(), M, nm)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_step_overlapping_buffers_rejected(self, kernel_cls):
        A = random_field(8, 8)
        C = random_field(8, 8, seed=1)
        with pytest.raises(ValueError):
            kernel_cls().step(A, A[:], C, 0.1, 0.5, 1)
        with pytest.raises(ValueError):
            kernel_cls().step(A, C, C[:], 0.1, 0.5, 1)


class TestStep:
    """Tests for the explicit Euler update."""

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    @pytest.mark.parametrize("dt", [1e-6, 0.5, 1e6])
    def test_zero_diffusivity_is_identity(self, kernel_cls, dt):
        """With D = 0 the next field equals the current one exactly."""
        A = random_field(20, 20, seed=1)
        B = np.zeros_like(A)
        C = random_field(20, 20, seed=2)

        kernel_cls().step(A, B, C, 0.0, dt, 1)

        assert np.array_equal(B[1:-1, 1:-1], A[1:-1, 1:-1])

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_update_formula(self, kernel_cls):
        A = random_field(12, 10, seed=3)
        B = np.zeros_like(A)
        C = random_field(12, 10, seed=4)
        D, dt = 0.00625, 1.0

        kernel_cls().step(A, B, C, D, dt, 1)

        assert np.allclose(B[1:-1, 1:-1], A[1:-1, 1:-1] + dt * D * C[1:-1, 1:-1])
        assert np.all(B[0, :] == 0.0)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_elapsed_advanced(self, kernel_cls):
        A = random_field(8, 8)
        B, C = np.zeros_like(A), np.zeros_like(A)
        kernel = kernel_cls()

        elapsed = kernel.step(A, B, C, 0.1, 0.25, 1)
        elapsed = kernel.step(B, A, C, 0.1, 0.25, 1, elapsed)

        assert elapsed == pytest.approx(0.5)


class TestResidual:
    """Tests for the residual sum of squares against the analytical solution."""

    params = dict(dx=0.5, dy=0.5, elapsed=40.0, D=0.00625)

    def test_invariant_to_tile_size(self):
        """Parallel reduction result does not depend on tiling."""
        A = random_field(66, 70, seed=5)
        bc = set_boundaries()
        results = [
            NumbaKernel(tile_size=t).residual(A, bc=bc, nm=1, **self.params)
            for t in (1, 8, 16, max(A.shape))
        ]

        for rss in results[1:]:
            assert abs(rss - results[0]) / results[0] < 1e-10

    def test_kernels_agree(self):
        A = random_field(40, 36, seed=6)
        bc = set_boundaries(chi=1.0, chi_right=0.5)

        rss_numpy = NumPyKernel().residual(A, bc=bc, nm=1, **self.params)
        rss_numba = NumbaKernel().residual(A, bc=bc, nm=1, **self.params)

        assert rss_numba == pytest.approx(rss_numpy, rel=1e-9)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_zero_for_analytical_field(self, kernel_cls):
        """Residual vanishes when the field is the analytical solution."""
        bc = set_boundaries()
        p = self.params
        A = analytical_solution((30, 30), 1, p["dx"], p["dy"], p["elapsed"], p["D"], bc)

        assert kernel_cls().residual(A, bc=bc, nm=1, **p) == pytest.approx(0.0, abs=1e-20)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_normalised_by_interior_count(self, kernel_cls):
        """A uniform offset of 0.1 from the analytical field gives 0.01."""
        bc = set_boundaries()
        p = self.params
        A = analytical_solution((30, 22), 1, p["dx"], p["dy"], p["elapsed"], p["D"], bc) + 0.1

        assert kernel_cls().residual(A, bc=bc, nm=1, **p) == pytest.approx(0.01, rel=1e-9)

    @pytest.mark.parametrize("kernel_cls", KERNELS)
    def test_zero_elapsed_raises(self, kernel_cls):
        A = random_field(10, 10)
        with pytest.raises(ZeroElapsedTime):
            kernel_cls().residual(A, 0.5, 0.5, 0.0, 0.1, set_boundaries(), 1)


class TestWarmup:
    """Tests for JIT warmup and thread bookkeeping."""

    def test_numba_threads_observed(self):
        kernel = NumbaKernel(specified_numba_threads=1)
        assert kernel.observed_numba_threads == 1

    def test_numpy_has_no_threads(self):
        assert NumPyKernel().observed_numba_threads is None

    def test_warmup_runs_on_problem_buffers(self):
        M, nm = set_mask(0.5, 0.5)
        A, B, C = setup_diffusion_problem(16, 16, nm, set_boundaries())
        kernel = NumbaKernel()
        kernel.warmup()
        kernel.convolve(A, C, M, nm)
        assert np.isfinite(C).all()
