"""Post-processing and analysis of benchmark run logs.

This module provides the PostProcessor class for loading, aggregating, and
plotting ``runlog.csv`` files written by the diffusion solver.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from .datastructures import RUNLOG_COLUMNS

PHASE_COLUMNS = ["conv_time", "step_time", "soln_time", "IO_time"]


class PostProcessor:
    """Post-process and compare run logs.

    Parameters
    ----------
    paths : str, Path, or list of str/Path
        Path(s) to ``runlog.csv`` files. A directory is resolved to the
        ``runlog.csv`` inside it.
    labels : list of str, optional
        One label per run (defaults to the parent directory name).

    Examples
    --------
    >>> pp = PostProcessor(["out/numpy", "out/numba"], labels=["NumPy", "Numba"])
    >>> pp.summary()
    >>> pp.plot_residual_history()
    """

    def __init__(
        self,
        paths: Union[str, Path, List[Union[str, Path]]],
        labels: List[str] = None,
    ):
        if not isinstance(paths, list):
            paths = [paths]
        self.paths = [self._resolve(Path(p)) for p in paths]
        self.labels = labels or [p.parent.name for p in self.paths]
        if len(self.labels) != len(self.paths):
            raise ValueError("need one label per run log")

        self.runs = [self._load_runlog(p) for p in self.paths]

    @staticmethod
    def _resolve(path: Path) -> Path:
        return path / "runlog.csv" if path.is_dir() else path

    @staticmethod
    def _load_runlog(path: Path) -> pd.DataFrame:
        df = pd.read_csv(path)
        missing = set(RUNLOG_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"{path} is not a run log, missing columns {sorted(missing)}")
        return df

    def get_residual_history(self, run_index: int = 0) -> pd.Series:
        """Residual indexed by step, excluding the step-0 row."""
        df = self.runs[run_index]
        df = df[df["iter"] > 0]
        return df.set_index("iter")["wrss"]

    def phase_totals(self, run_index: int = 0) -> Dict[str, float]:
        """Final cumulative time per phase and its fraction of the run time.

        Returns
        -------
        dict
            ``{phase: seconds}`` plus ``{phase}_fraction`` and ``run_time``.
        """
        last = self.runs[run_index].iloc[-1]
        totals = {phase: float(last[phase]) for phase in PHASE_COLUMNS}
        run_time = float(last["run_time"])
        totals["run_time"] = run_time
        for phase in PHASE_COLUMNS:
            totals[f"{phase}_fraction"] = totals[phase] / run_time if run_time > 0 else 0.0
        return totals

    def summary(self) -> pd.DataFrame:
        """One row per run: label, steps, simulated time, final residual, phase totals."""
        rows = []
        for idx, (label, df) in enumerate(zip(self.labels, self.runs)):
            last = df.iloc[-1]
            rows.append(
                {
                    "label": label,
                    "steps": int(last["iter"]),
                    "sim_time": float(last["sim_time"]),
                    "final_wrss": float(last["wrss"]),
                    **self.phase_totals(idx),
                }
            )
        return pd.DataFrame(rows)

    def to_dataframe(self) -> pd.DataFrame:
        """All runs stacked in long format with a ``label`` column."""
        return pd.concat(
            [df.assign(label=label) for label, df in zip(self.labels, self.runs)],
            ignore_index=True,
        )

    def plot_residual_history(self, ax=None):
        """Residual vs step for every run on a log scale."""
        import matplotlib.pyplot as plt
        import seaborn as sns
        from utils.plotting import palettes

        if ax is None:
            _, ax = plt.subplots()
        df = self.to_dataframe()
        df = df[df["iter"] > 0]
        order = list(dict.fromkeys(self.labels))
        sns.lineplot(
            data=df, x="iter", y="wrss", hue="label", hue_order=order,
            palette=palettes.get_categorical(len(order)), ax=ax,
        )
        ax.set_yscale("log")
        ax.set_xlabel("Step")
        ax.set_ylabel("Mean squared residual")
        return ax

    def plot_phase_breakdown(self, ax=None):
        """Stacked bar of per-phase wall time for each run."""
        import matplotlib.pyplot as plt
        from utils.plotting import palettes

        if ax is None:
            _, ax = plt.subplots()
        summary = self.summary().set_index("label")[PHASE_COLUMNS]
        summary.plot.bar(stacked=True, color=[palettes.PHASES[c] for c in PHASE_COLUMNS], ax=ax)
        ax.set_ylabel("Wall time [s]")
        ax.set_xlabel("")
        return ax
