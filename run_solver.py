"""
Benchmark Runner - runs the explicit diffusion solver from a Hydra config.

Usage:
    python run_solver.py
    python run_solver.py nx=256 ny=256 steps=20000 use_numba=true specified_numba_threads=4
    python run_solver.py params_file=params.txt mlflow=off
    python run_solver.py +experiment=kernels --multirun
"""

import logging
import sys
from pathlib import Path

import hydra
from hydra.utils import to_absolute_path
from omegaconf import DictConfig

from Diffusion import DiffusionError, ExplicitDiffusionSolver, GlobalParams

log = logging.getLogger(__name__)


def _create_params(cfg: DictConfig) -> GlobalParams:
    """Build run parameters from config, or from a legacy parameter file."""
    params_file = cfg.get("params_file")
    if params_file:
        overrides = {
            k: cfg[k]
            for k in ("use_numba", "specified_numba_threads", "tile_size", "output_dir",
                      "write_images", "experiment_name", "check_interval")
        }
        return GlobalParams.from_file(to_absolute_path(params_file), **overrides)
    return GlobalParams.from_config(cfg)


def _run_name(params: GlobalParams) -> str:
    kernel = f"numba{params.specified_numba_threads}T" if params.use_numba else "numpy"
    return f"{kernel}_{params.ny}x{params.nx}_tile{params.tile_size}"


def _log_results(cfg: DictConfig, solver: ExplicitDiffusionSolver):
    """Log solver params, metrics, run log and outputs to MLflow."""
    from utils.mlflow.io import (
        log_artifact_file,
        log_metrics_dict,
        log_parameters,
        log_timeseries_metrics,
        start_mlflow_run_context,
    )

    params = solver.params
    with start_mlflow_run_context(
        experiment_name=params.experiment_name,
        parent_run_name=f"{params.ny}x{params.nx}",
        child_run_name=_run_name(params),
        project_prefix=cfg.mlflow.get("project_prefix", ""),
    ):
        log_parameters(params.to_mlflow())
        log_metrics_dict(solver.metrics.to_mlflow())
        log_timeseries_metrics(solver.timeseries.to_dataframe())

        output_dir = Path(params.output_dir)
        log_artifact_file(output_dir / "runlog.csv")
        log_artifact_file(output_dir / f"diffusion.{params.steps:07d}.csv", artifact_path="fields")
        for png in sorted(output_dir.glob("diffusion.*.png")):
            log_artifact_file(png, artifact_path="images")


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Entry point - validate, warm up, solve, track."""
    from utils.mlflow.io import setup_mlflow_tracking

    try:
        params = _create_params(cfg)
    except (DiffusionError, ValueError) as e:
        log.error(f"Invalid configuration: {e}")
        sys.exit(1)

    kernel = f"numba ({params.specified_numba_threads} threads)" if params.use_numba else "numpy"
    log.info(
        f"{kernel}, grid={params.ny}x{params.nx}, stencil={params.stencil}, "
        f"dt={params.dt:g}, steps={params.steps}"
    )

    tracking = setup_mlflow_tracking(mode=cfg.mlflow.mode)

    solver = ExplicitDiffusionSolver(params)
    solver.warmup()
    solver.solve()

    if tracking:
        _log_results(cfg, solver)


if __name__ == "__main__":
    main()
