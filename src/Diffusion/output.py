"""File output for the diffusion benchmark: PNG snapshots, CSV fields, run log, progress."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import matplotlib.image as mpimg
import numpy as np
import pandas as pd

from .datastructures import LocalMetrics

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _interior(conc: np.ndarray, nm: int) -> np.ndarray:
    return conc[nm:-nm, nm:-nm]


def write_png(conc: np.ndarray, nm: int, step: int, output_dir: PathLike = ".") -> Path:
    """Write the interior field as a grey-scale image ``diffusion.{step:07d}.png``.

    Intensity is scaled to the data range of the snapshot.
    """
    path = Path(output_dir) / f"diffusion.{step:07d}.png"
    path.parent.mkdir(parents=True, exist_ok=True)

    data = _interior(conc, nm)
    lo, hi = float(data.min()), float(data.max())
    if hi <= lo:
        hi = lo + 1.0
    mpimg.imsave(path, data, cmap="gray", vmin=lo, vmax=hi, origin="upper")
    return path


def write_csv(conc: np.ndarray, nm: int, dx: float, dy: float, step: int, output_dir: PathLike = ".") -> Path:
    """Write interior values as ``x,y,c`` rows to ``diffusion.{step:07d}.csv``."""
    path = Path(output_dir) / f"diffusion.{step:07d}.csv"
    path.parent.mkdir(parents=True, exist_ok=True)

    data = _interior(conc, nm)
    ny, nx = data.shape
    y, x = np.meshgrid(dy * np.arange(ny), dx * np.arange(nx), indexing="ij")
    df = pd.DataFrame({"x": x.ravel(), "y": y.ravel(), "c": data.ravel()})
    df.to_csv(path, index=False)
    return path


def write_runlog(timeseries: LocalMetrics, output_dir: PathLike = ".", filename: str = "runlog.csv") -> Path:
    """Write the run log (one row per residual check)."""
    path = Path(output_dir) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    timeseries.to_dataframe().to_csv(path, index=False)
    return path


def progress_bar(step: int, steps: int, width: int = 20) -> Optional[str]:
    """Progress bar text when ``step`` crosses a ``1/width`` boundary, else None.

    >>> progress_bar(0, 100)
    '[--------------------]   0%'
    """
    tick = max(steps // width, 1)
    if step % tick != 0 and step != steps:
        return None
    filled = min(width, (step * width) // steps)
    pct = (100 * step) // steps
    return "[" + "*" * filled + "-" * (width - filled) + f"] {pct:3d}%"


def print_progress(step: int, steps: int) -> None:
    """Log the progress bar at 5 % increments."""
    bar = progress_bar(step, steps)
    if bar is not None:
        log.info(f"{bar} step {step}/{steps}")
