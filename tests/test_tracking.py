"""Tests for MLflow tracking helpers against a local file store."""

import mlflow
import pandas as pd
import pytest
from utils.mlflow.io import (
    load_runs,
    log_artifact_file,
    log_metrics_dict,
    log_parameters,
    log_timeseries_metrics,
    setup_mlflow_tracking,
    start_mlflow_run_context,
)


@pytest.fixture
def local_tracking(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert setup_mlflow_tracking(mode="local")
    yield tmp_path
    while mlflow.active_run():
        mlflow.end_run()


def test_off_mode_disables_tracking():
    assert setup_mlflow_tracking(mode="off") is False


def test_local_mode_uses_cwd(local_tracking):
    assert mlflow.get_tracking_uri() == (local_tracking / "mlruns").as_uri()


def test_run_roundtrip(local_tracking):
    runlog = pd.DataFrame({"iter": [100, 200], "wrss": [2e-4, 1e-4], "conv_time": [0.1, 0.2]})
    artifact = local_tracking / "runlog.csv"
    runlog.to_csv(artifact, index=False)

    with start_mlflow_run_context("unit", parent_run_name="64x64", child_run_name="numpy_64x64") as run:
        log_parameters({"nx": 64, "use_numba": 0})
        log_metrics_dict({"final_rss": 1e-4, "mlups": None})
        log_timeseries_metrics(runlog)
        log_artifact_file(artifact)
        run_id = run.info.run_id

    client = mlflow.tracking.MlflowClient()
    history = client.get_metric_history(run_id, "wrss")
    assert sorted(m.step for m in history) == [100, 200]

    df = load_runs("unit")
    assert df["run_id"].tolist() == [run_id]
    assert df["params.nx"].iloc[0] == "64"
    assert "metrics.mlups" not in df.columns


def test_parent_run_reused(local_tracking):
    for name in ("numpy", "numba"):
        with start_mlflow_run_context("unit", parent_run_name="64x64", child_run_name=name):
            pass

    df = load_runs("unit", exclude_parent_runs=False)
    assert (df["tags.is_parent"] == "true").sum() == 1
    assert len(df) == 3


def test_load_runs_unknown_experiment(local_tracking):
    assert load_runs("does-not-exist").empty
