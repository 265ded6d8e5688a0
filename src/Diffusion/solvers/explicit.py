"""Explicit finite-difference diffusion solver (benchmark driver loop)."""

import logging
from pathlib import Path

import numpy as np

from .base import BaseSolver
from ..datastructures import GlobalMetrics, GlobalParams
from ..mask import set_mask
from ..output import print_progress, write_csv, write_png, write_runlog
from ..problems import apply_boundary_conditions, set_boundaries, setup_diffusion_problem

log = logging.getLogger(__name__)


class ExplicitDiffusionSolver(BaseSolver):
    """Forward-Euler solver for the two-source semi-infinite diffusion problem.

    Each step applies the boundary conditions, convolves the current field
    with the Laplacian mask, updates the next field and swaps the two.
    Every ``checks`` steps a PNG snapshot is written; every
    ``check_interval`` steps the field is compared to the analytical
    solution and a run-log row is recorded.

    Parameters
    ----------
    params : GlobalParams
        Validated run configuration.
    write_output : bool
        Write PNG/CSV files to ``params.output_dir`` (default: True).
    """

    def __init__(self, params: GlobalParams, write_output: bool = True):
        super().__init__(params)
        self.write_output = write_output
        self.output_dir = Path(params.output_dir)

        self.mask, self.nm = set_mask(params.dx, params.dy, params.stencil)
        self.bc = set_boundaries(params.clo, params.chi)
        self._init_arrays()

    def _init_arrays(self):
        """Allocate field buffers and apply the initial condition."""
        p = self.params
        self.conc_old, self.conc_new, self.conc_lap = setup_diffusion_problem(
            p.nx, p.ny, self.nm, self.bc
        )
        self.elapsed = 0.0

    @property
    def u(self) -> np.ndarray:
        """Current field (valid after solve: the last completed step)."""
        return self.conc_old

    def solve(self) -> GlobalMetrics:
        """Run ``params.steps`` explicit steps."""
        p = self.params
        self._reset()
        self._init_arrays()
        m = self.metrics
        rss = 0.0

        t_start = self._get_time()

        if self.write_output and p.write_images:
            t0 = self._get_time()
            write_png(self.conc_old, self.nm, 0, self.output_dir)
            m.io_time += self._get_time() - t0
        self.timeseries.append(0, self.elapsed, rss, m, self._get_time() - t_start)

        for step in range(1, p.steps + 1):
            print_progress(step - 1, p.steps)

            self._take_step()

            if self.write_output and p.write_images and step % p.checks == 0:
                t0 = self._get_time()
                write_png(self.conc_new, self.nm, step, self.output_dir)
                m.io_time += self._get_time() - t0

            if step % p.check_interval == 0 or step == p.steps:
                t0 = self._get_time()
                rss = self.kernel.residual(
                    self.conc_new, p.dx, p.dy, self.elapsed, p.D, self.bc, self.nm
                )
                m.soln_time += self._get_time() - t0
                self.timeseries.append(step, self.elapsed, rss, m, self._get_time() - t_start)

            self.conc_old, self.conc_new = self.conc_new, self.conc_old

        print_progress(p.steps, p.steps)
        wall_time = self._get_time() - t_start

        m.elapsed = self.elapsed
        m.final_rss = rss
        self._compute_metrics(wall_time, p.steps)

        if self.write_output:
            t0 = self._get_time()
            write_csv(self.conc_old, self.nm, p.dx, p.dy, p.steps, self.output_dir)
            write_runlog(self.timeseries, self.output_dir)
            m.io_time += self._get_time() - t0

        log.info(
            f"Done: {m.iterations} steps, t={m.elapsed:g}, rss={m.final_rss:.3e}, "
            f"wall={m.wall_time:.3f}s" + (f", {m.mlups:.1f} Mlup/s" if m.mlups else "")
        )
        return m

    def _take_step(self):
        """Convolution then Euler update, timed separately."""
        p = self.params
        m = self.metrics

        apply_boundary_conditions(self.conc_old, self.nm, self.bc)

        t0 = self._get_time()
        self.kernel.convolve(self.conc_old, self.conc_lap, self.mask, self.nm)
        m.conv_time += self._get_time() - t0

        t0 = self._get_time()
        self.elapsed = self.kernel.step(
            self.conc_old, self.conc_new, self.conc_lap, p.D, p.dt, self.nm, self.elapsed
        )
        apply_boundary_conditions(self.conc_new, self.nm, self.bc)
        m.step_time += self._get_time() - t0
