"""Tests for the analytical erf solution."""

import numpy as np
import pytest
from Diffusion import ZeroElapsedTime, analytical_solution, analytical_value, source_distances


class TestAnalyticalValue:
    """Tests for the single-source oracle."""

    def test_value_at_source(self):
        """erf(0) = 0, so the source value is recovered."""
        assert analytical_value(0.0, 1.0, 1.0, 1.0) == 1.0

    def test_value_far_away(self):
        """Concentration vanishes far from the source."""
        assert analytical_value(1e3, 1.0, 1.0, 1.0) == pytest.approx(0.0, abs=1e-300)

    def test_scales_with_chi(self):
        assert analytical_value(0.3, 2.0, 0.5, 4.0) == pytest.approx(4.0 * analytical_value(0.3, 2.0, 0.5, 1.0))

    def test_monotonic_decreasing(self):
        x = np.linspace(0.0, 4.0, 81)
        c = analytical_value(x, 3.0, 0.2, 1.0)
        assert c.shape == x.shape
        assert np.all(np.diff(c) < 0)

    def test_known_value(self):
        """x = sqrt(4Dt) gives 1 - erf(1)."""
        assert analytical_value(2.0, 1.0, 1.0, 1.0) == pytest.approx(0.157299207050285)

    @pytest.mark.parametrize("t", [0.0, -1.0])
    def test_non_positive_time_raises(self, t):
        with pytest.raises(ZeroElapsedTime):
            analytical_value(0.5, t, 1.0, 1.0)

    def test_zero_elapsed_is_value_error(self):
        """Typed errors are also ValueErrors."""
        with pytest.raises(ValueError):
            analytical_value(0.5, 0.0, 1.0, 1.0)


class TestSourceDistances:
    """Tests for the distance-to-source fields."""

    def test_straight_distance_beside_source(self):
        ny, nx, nm, dx, dy = 10, 12, 1, 0.5, 0.25
        left, right = source_distances((ny, nx), nm, dx, dy)

        # upper half: straight across to the left wall
        assert left[2, 1] == 0.0
        assert left[2, 5] == pytest.approx(dx * 4)
        # lower half: straight across to the right wall
        assert right[7, nx - 2] == 0.0
        assert right[7, nx - 5] == pytest.approx(dx * 3)

    def test_euclidean_distance_past_source_end(self):
        ny, nx, nm, dx, dy = 10, 12, 1, 0.5, 0.25
        left, right = source_distances((ny, nx), nm, dx, dy)

        assert left[8, 4] == pytest.approx(np.hypot(dx * 3, dy * 3))
        assert right[1, nx - 4] == pytest.approx(np.hypot(dx * 2, dy * 4))

    def test_superposition(self):
        bc = np.array([[0.0, 0.0], [1.0, 0.5]])
        shape, nm, dx, dy, t, D = (16, 16), 1, 0.5, 0.5, 10.0, 0.01
        ca = analytical_solution(shape, nm, dx, dy, t, D, bc)
        left, right = source_distances(shape, nm, dx, dy)

        assert np.allclose(ca, analytical_value(left, t, D, 1.0) + analytical_value(right, t, D, 0.5))
