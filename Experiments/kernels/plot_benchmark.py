"""
Visualization of Kernel Benchmarks
==================================

Plot MLup/s against grid size and the per-phase split from
``compute_benchmark.py``, plus residual histories from any run logs given on
the command line.

Usage:
    uv run python Experiments/kernels/plot_benchmark.py [runlog.csv | run_dir ...]
"""
import sys

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from Diffusion import PostProcessor, get_project_root
from utils import plotting  # Apply scientific style

repo_root = get_project_root()
fig_dir = repo_root / "figures" / "kernels"
fig_dir.mkdir(parents=True, exist_ok=True)

# %%
# Plot 1: Throughput vs grid size
# -------------------------------

data_path = repo_root / "data" / "kernels" / "kernel_benchmark.parquet"
if data_path.exists():
    df = pd.read_parquet(data_path)
    df["config"] = df.apply(
        lambda row: "NumPy" if row["kernel"] == "numpy"
        else f"Numba ({row['num_threads']}T, tile {row['tile_size']})",
        axis=1,
    )

    fig, ax = plt.subplots()
    sns.lineplot(data=df, x="n", y="mlups", hue="config", marker="o", ax=ax)
    ax.set_xlabel("Grid edge n")
    ax.set_ylabel("Mlup/s")
    ax.set_title("Convolution + step throughput")
    fig.savefig(fig_dir / "01_throughput.pdf")
    print(f"Saved: {fig_dir / '01_throughput.pdf'}")

    # %%
    # Plot 2: Phase split on the largest grid
    # ---------------------------------------

    largest = df[df["n"] == df["n"].max()].set_index("config")
    fig, ax = plt.subplots()
    largest[["conv_time", "step_time", "soln_time"]].plot.bar(
        stacked=True, color=[plotting.palettes.PHASES[c] for c in ["conv_time", "step_time", "soln_time"]], ax=ax
    )
    ax.set_ylabel("Wall time [s]")
    ax.set_xlabel("")
    fig.savefig(fig_dir / "02_phase_split.pdf")
    print(f"Saved: {fig_dir / '02_phase_split.pdf'}")
else:
    print(f"No benchmark data at {data_path}. Run compute_benchmark.py first.")

# %%
# Plot 3: Residual histories from run logs
# ----------------------------------------

if len(sys.argv) > 1:
    pp = PostProcessor(sys.argv[1:])
    print(pp.summary().to_string(index=False))
    ax = pp.plot_residual_history()
    ax.figure.savefig(fig_dir / "03_residual_history.pdf")
    print(f"Saved: {fig_dir / '03_residual_history.pdf'}")
