"""MLflow I/O utilities for experiment tracking and fetching runs.

This module provides helpers for:
- Setting up MLflow tracking (local or Databricks).
- Orchestrating MLflow runs (context manager for parent/nested runs).
- Logging parameters, metrics, run-log time series and artifacts.
- Retrieving experiment data from MLflow.
"""

import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path

import mlflow
import pandas as pd

log = logging.getLogger(__name__)

PROJECT_PREFIX = "/Shared/DiffusionBenchmark"


def setup_mlflow_tracking(mode: str = "local") -> bool:
    """
    Configures MLflow tracking.

    Parameters
    ----------
    mode : str
        "databricks", "local" or "off".

    Returns
    -------
    bool
        True if tracking is enabled.
    """
    if mode == "off":
        log.info("MLflow tracking disabled.")
        return False
    if mode == "databricks":
        try:
            mlflow.login(backend="databricks", interactive=False)
            mlflow.set_tracking_uri("databricks")
            log.info("Connected to Databricks MLflow tracking.")
        except Exception as e:
            raise RuntimeError(
                "MLflow Databricks setup failed. Ensure credentials are configured."
            ) from e
    elif mode == "local":
        mlruns_uri = (Path.cwd() / "mlruns").as_uri()
        mlflow.set_tracking_uri(mlruns_uri)
        log.info(f"Using local file-based MLflow tracking backend: {mlruns_uri}")
    else:
        log.warning(
            f"Unknown MLflow mode '{mode}'. Using existing URI: {mlflow.get_tracking_uri()}"
        )
    return True


def get_mlflow_client() -> mlflow.tracking.MlflowClient:
    """Get an MLflow tracking client."""
    return mlflow.tracking.MlflowClient()


def _full_experiment_name(experiment_name: str, project_prefix: str) -> str:
    if mlflow.get_tracking_uri() == "databricks" and not experiment_name.startswith("/"):
        return f"{project_prefix}/{experiment_name}"
    return experiment_name


@contextmanager
def start_mlflow_run_context(
    experiment_name: str,
    parent_run_name: str,
    child_run_name: str,
    project_prefix: str = PROJECT_PREFIX,
):
    """
    Context manager to start a child run nested under a (reused) parent run.

    Runs for the same grid share a parent so kernels can be compared side by side.
    """
    experiment_name = _full_experiment_name(experiment_name, project_prefix)
    exp = mlflow.set_experiment(experiment_name)
    log.info(f"Using MLflow experiment: {experiment_name}")

    client = get_mlflow_client()
    parent_runs = client.search_runs(
        experiment_ids=[exp.experiment_id],
        filter_string=f"tags.mlflow.runName = '{parent_run_name}' AND tags.is_parent = 'true'",
        max_results=1,
    )
    parent_run_id = parent_runs[0].info.run_id if parent_runs else None

    with mlflow.start_run(
        run_id=parent_run_id, run_name=parent_run_name, tags={"is_parent": "true"}
    ):
        with mlflow.start_run(run_name=child_run_name, nested=True) as child_mlflow_run:
            # Tag run with environment (HPC vs local) for easy filtering
            env = (
                "hpc"
                if os.environ.get("LSB_JOBID") or os.environ.get("SLURM_JOB_ID")
                else "local"
            )
            mlflow.set_tag("environment", env)
            log.info(
                f"Started MLflow run '{child_mlflow_run.info.run_name}' "
                f"({child_mlflow_run.info.run_id}) [{env}]"
            )
            yield child_mlflow_run


def log_parameters(params: dict):
    """Log a dictionary of parameters to the active MLflow run."""
    mlflow.log_params(params)


def log_metrics_dict(metrics: dict):
    """Log a dictionary of metrics to the active MLflow run, filtering out None values."""
    filtered_metrics = {k: v for k, v in metrics.items() if v is not None}
    mlflow.log_metrics(filtered_metrics)


def log_timeseries_metrics(runlog: pd.DataFrame, step_column: str = "iter"):
    """Log run-log columns as step-based metrics (step = simulation step)."""
    if not mlflow.active_run() or runlog.empty:
        return
    client = get_mlflow_client()
    run_id = mlflow.active_run().info.run_id
    timestamp = int(time.time() * 1000)

    metrics_to_log = [
        mlflow.entities.Metric(name, float(value), timestamp, int(step))
        for name in runlog.columns
        if name != step_column
        for step, value in zip(runlog[step_column], runlog[name])
    ]
    for i in range(0, len(metrics_to_log), 1000):
        chunk = metrics_to_log[i : i + 1000]
        client.log_batch(run_id=run_id, metrics=chunk, synchronous=True)
    log.info(f"Logged {len(metrics_to_log)} time-series metrics.")


def log_artifact_file(filepath: Path, artifact_path: str = None):
    """Log a file as an artifact to the active MLflow run."""
    filepath = Path(filepath)
    if filepath.exists():
        mlflow.log_artifact(str(filepath), artifact_path=artifact_path)
        log.info(f"Logged artifact: {filepath.name}")
    else:
        log.warning(f"Artifact file not found at {filepath}")


def load_runs(
    experiment: str,
    exclude_parent_runs: bool = True,
    project_prefix: str = PROJECT_PREFIX,
) -> pd.DataFrame:
    """Load runs from all MLflow experiments matching the name.

    Parameters
    ----------
    experiment : str
        Experiment name (will be prefixed for Databricks)
    exclude_parent_runs : bool
        Exclude parent runs (keep only child/nested runs)
    project_prefix : str
        Databricks workspace prefix for experiment names
    """
    full_experiment_name = _full_experiment_name(experiment, project_prefix)

    # Find ALL experiments matching this name (there can be duplicates)
    client = get_mlflow_client()
    all_experiments = client.search_experiments(
        filter_string=f"name = '{full_experiment_name}'"
    )
    if not all_experiments:
        return pd.DataFrame()

    df = mlflow.search_runs(
        experiment_ids=[exp.experiment_id for exp in all_experiments],
        order_by=["start_time DESC"],
    )

    # Filter out parent runs in pandas (MLflow filter doesn't handle None well)
    if exclude_parent_runs and "tags.is_parent" in df.columns:
        df = df[df["tags.is_parent"] != "true"]

    return df
