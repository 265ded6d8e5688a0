"""
Kernel Phase Benchmark
======================

Time the three core phases (convolution, Euler step, residual) of the NumPy
and Numba kernels directly, without file output, across grid sizes, thread
counts and tile edges.

Usage:
    uv run python Experiments/kernels/compute_benchmark.py
"""
import time
from pathlib import Path

import numpy as np
import pandas as pd

from Diffusion import NumbaKernel, NumPyKernel, set_boundaries, set_mask, setup_diffusion_problem
from Diffusion.problems import apply_boundary_conditions

# %%
# Test Configuration
# ------------------

grid_sizes = [128, 256, 512]
thread_counts = [1, 2, 4, 8]
tile_sizes = [8, 16, 32]
n_steps = 200
dx = dy = 0.5
D = 0.00625
dt = 0.1 * dx * dx / (4.0 * D)

data_dir = Path(__file__).resolve().parent.parent.parent / "data" / "kernels"
data_dir.mkdir(parents=True, exist_ok=True)


def time_kernel(kernel, n):
    """Run n_steps and return accumulated seconds per phase."""
    M, nm = set_mask(dx, dy)
    bc = set_boundaries()
    A, B, C = setup_diffusion_problem(n, n, nm, bc)
    elapsed = 0.0
    conv = step = soln = 0.0

    for _ in range(n_steps):
        apply_boundary_conditions(A, nm, bc)
        t0 = time.perf_counter()
        kernel.convolve(A, C, M, nm)
        conv += time.perf_counter() - t0

        t0 = time.perf_counter()
        elapsed = kernel.step(A, B, C, D, dt, nm, elapsed)
        step += time.perf_counter() - t0
        A, B = B, A

    t0 = time.perf_counter()
    rss = kernel.residual(A, dx, dy, elapsed, D, bc, nm)
    soln = time.perf_counter() - t0
    return conv, step, soln, rss


records = []

# %%
# NumPy Baseline
# --------------

for n in grid_sizes:
    print(f"\nTesting n={n}, kernel=numpy")
    conv, step, soln, rss = time_kernel(NumPyKernel(), n)
    records.append({
        "n": n, "kernel": "numpy", "num_threads": 0, "tile_size": 0,
        "conv_time": conv, "step_time": step, "soln_time": soln, "wrss": rss,
        "mlups": (n - 2) ** 2 * n_steps / ((conv + step) * 1e6),
    })
    print(f"  conv={conv:.4f}s step={step:.4f}s soln={soln:.4f}s")

# %%
# Numba Thread / Tile Scaling
# ---------------------------

for num_threads in thread_counts:
    for tile_size in tile_sizes:
        kernel = NumbaKernel(tile_size=tile_size, specified_numba_threads=num_threads)
        kernel.warmup()
        for n in grid_sizes:
            print(f"\nTesting n={n}, kernel=numba, threads={kernel.observed_numba_threads}, tile={tile_size}")
            conv, step, soln, rss = time_kernel(kernel, n)
            records.append({
                "n": n, "kernel": "numba", "num_threads": kernel.observed_numba_threads,
                "tile_size": tile_size,
                "conv_time": conv, "step_time": step, "soln_time": soln, "wrss": rss,
                "mlups": (n - 2) ** 2 * n_steps / ((conv + step) * 1e6),
            })
            print(f"  conv={conv:.4f}s step={step:.4f}s soln={soln:.4f}s")

# %%
# Save Results
# ------------

df = pd.DataFrame(records)
output_path = data_dir / "kernel_benchmark.parquet"
df.to_parquet(output_path, index=False)
print(f"Saved to: {output_path}")
