"""Data structures for solver configuration and results.

Architecture: Params (input/config) vs Metrics (output/results)

                 Params                        Metrics
                 ──────                        ───────
Global           GlobalParams                  GlobalMetrics
(per run)        nx, ny, dx, dy, D,            wall_time, mlups,
                 lin_stab, steps, kernel...    phase totals, final_rss...

Local                                          LocalMetrics
(per check)                                    run-log rows: iter, sim_time,
                                               wrss, phase timers, run_time
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from .errors import InvalidTimeStep, check_time_step
from .mask import resolve_stencil, stencil_radius


# ============================================================================
# Global
# ============================================================================


@dataclass
class GlobalParams:
    """Run configuration - validated on construction, logged to MLflow as params.

    ``dt`` follows from the linear stability factor:
    ``dt = lin_stab * h^2 / (4 D)`` with ``h = min(dx, dy)``.
    """

    # Mesh
    nx: int = 512
    ny: int = 512
    dx: float = 0.5
    dy: float = 0.5

    # Physics / numerics
    D: float = 0.00625
    lin_stab: float = 0.1
    stencil: str = "five_point"

    # Schedule
    steps: int = 100000
    checks: int = 10000  # image cadence
    check_interval: int = 100  # residual cadence

    # Boundary values
    clo: float = 0.0
    chi: float = 1.0

    # Kernel
    use_numba: bool = False
    specified_numba_threads: int = 1
    tile_size: int = 16

    # Output
    output_dir: str = "."
    write_images: bool = True

    # Experiment tracking
    experiment_name: str = "diffusion"

    # Derived (not from config)
    nm: int = field(init=False)
    h: float = field(init=False)
    dt: float = field(init=False)
    environment: str = field(init=False)

    def __post_init__(self):
        """Validate inputs and compute derived values."""
        for name in ("dx", "dy", "D"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0.0):
                raise ValueError(f"{name} must be positive and finite, got {value}")
        for name in ("steps", "checks", "check_interval", "tile_size"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        if not 0.0 < self.lin_stab < 1.0:
            raise InvalidTimeStep(f"lin_stab must lie in (0, 1), got {self.lin_stab}")

        self.stencil = resolve_stencil(self.stencil)
        self.nm = stencil_radius(self.stencil)
        if self.nx < 2 * self.nm + 1 or self.ny < 2 * self.nm + 1:
            raise ValueError(
                f"grid {self.ny}x{self.nx} too small for stencil '{self.stencil}'"
            )

        self.h = min(self.dx, self.dy)
        self.dt = self.lin_stab * self.h * self.h / (4.0 * self.D)
        check_time_step(self.dt, self.D, self.dx, self.dy)

        self.environment = (
            "hpc"
            if os.environ.get("LSB_JOBID") or os.environ.get("SLURM_JOB_ID")
            else "local"
        )

    @property
    def n_interior(self) -> int:
        return (self.nx - 2 * self.nm) * (self.ny - 2 * self.nm)

    @classmethod
    def from_config(cls, cfg) -> "GlobalParams":
        """Build from a Hydra/OmegaConf config, ignoring unrelated keys."""
        names = {f.name for f in fields(cls) if f.init}
        return cls(**{k: cfg[k] for k in cfg if k in names})

    @classmethod
    def from_file(cls, path: Union[str, Path], **overrides) -> "GlobalParams":
        """Read a whitespace-separated ``key value`` parameter file.

        Recognised keys: ``nx ny nm code dx dy D linStab steps checks``.
        Lines starting with ``#`` are comments. ``nm`` is implied by the
        stencil ``code`` and is only checked for consistency.
        """
        aliases = {"linStab": "lin_stab", "code": "stencil"}
        ints = {"nx", "ny", "nm", "steps", "checks", "stencil"}
        raw = {}
        for line in Path(path).read_text().splitlines():
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            key, value = line.split(None, 1)
            key = aliases.get(key, key)
            raw[key] = int(value) if key in ints else float(value)

        nm = raw.pop("nm", None)
        params = cls(**{**raw, **overrides})
        if nm is not None and nm not in (params.nm, 2 * params.nm + 1):
            raise ValueError(
                f"nm={nm} in {path} does not match stencil '{params.stencil}'"
            )
        return params

    def to_mlflow(self) -> dict:
        """Convert to MLflow-compatible params dict (bools as int, exclude derived)."""
        exclude = {"h", "output_dir"}
        return {
            k: (int(v) if isinstance(v, bool) else v)
            for k, v in self.__dict__.items()
            if k not in exclude
        }


@dataclass
class GlobalMetrics:
    """Aggregated results - logged to MLflow as metrics."""

    iterations: int = 0
    elapsed: float = 0.0  # simulated time
    final_rss: Optional[float] = None
    wall_time: Optional[float] = None

    # Timing breakdown (sum across all steps)
    conv_time: float = 0.0
    step_time: float = 0.0
    io_time: float = 0.0
    soln_time: float = 0.0

    # Performance metrics
    mlups: Optional[float] = None  # Million Lattice Updates per Second

    # Numba runtime info (what was actually available)
    observed_numba_threads: Optional[int] = None

    def to_mlflow(self) -> dict:
        """Convert to MLflow-compatible dict (no None, bools as int)."""
        return {
            k: (int(v) if isinstance(v, bool) else v)
            for k, v in self.__dict__.items()
            if v is not None
        }


# ============================================================================
# Local (per check)
# ============================================================================

RUNLOG_COLUMNS = [
    "iter",
    "sim_time",
    "wrss",
    "conv_time",
    "step_time",
    "IO_time",
    "soln_time",
    "run_time",
]


@dataclass
class LocalMetrics:
    """Run-log time series, one entry per residual check.

    Timer columns are cumulative, as in the benchmark's ``runlog.csv``.
    """

    iter: List[int] = field(default_factory=list)
    sim_time: List[float] = field(default_factory=list)
    wrss: List[float] = field(default_factory=list)
    conv_time: List[float] = field(default_factory=list)
    step_time: List[float] = field(default_factory=list)
    IO_time: List[float] = field(default_factory=list)
    soln_time: List[float] = field(default_factory=list)
    run_time: List[float] = field(default_factory=list)

    def append(self, step: int, sim_time: float, wrss: float, metrics: GlobalMetrics, run_time: float):
        """Record one run-log row from the running phase totals."""
        self.iter.append(step)
        self.sim_time.append(sim_time)
        self.wrss.append(wrss)
        self.conv_time.append(metrics.conv_time)
        self.step_time.append(metrics.step_time)
        self.IO_time.append(metrics.io_time)
        self.soln_time.append(metrics.soln_time)
        self.run_time.append(run_time)

    def clear(self):
        """Clear all timeseries data."""
        for f in fields(self):
            getattr(self, f.name).clear()

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({name: getattr(self, name) for name in RUNLOG_COLUMNS})
