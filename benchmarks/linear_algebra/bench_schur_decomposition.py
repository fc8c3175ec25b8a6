"""Benchmarks for the real Schur decomposition.

This module times torchschur's Hessenberg reduction, Francis QR iteration and
symmetric tridiagonal eigensolver against the LAPACK routines exposed by
scipy, and reports the number of QR sweeps needed as the order grows.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import numpy as np
import scipy.linalg
import torch

# torchschur imports
from torchschur.linear_algebra.decomposition import (
    SchurDecomposition,
    hessenberg,
    schur_decomposition,
    symmetric_eigenvalue,
)


def benchmark(
    func: Callable,
    *args: Any,
    warmup: int = 1,
    iterations: int = 5,
    **kwargs: Any,
) -> dict[str, float]:
    """Run a simple benchmark on a function.

    Parameters
    ----------
    func : callable
        Function to benchmark.
    *args : Any
        Positional arguments to pass to func.
    warmup : int, optional
        Number of warmup iterations. Default is 1.
    iterations : int, optional
        Number of timed iterations. Default is 5.
    **kwargs : Any
        Keyword arguments to pass to func.

    Returns
    -------
    dict
        Dictionary with timing statistics:
        - 'mean': Mean time in seconds
        - 'std': Standard deviation in seconds
        - 'min': Minimum time in seconds
        - 'max': Maximum time in seconds
    """
    # Warmup
    for _ in range(warmup):
        func(*args, **kwargs)

    # Timed runs
    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        func(*args, **kwargs)
        times.append(time.perf_counter() - start)

    return {
        "mean": np.mean(times),
        "std": np.std(times),
        "min": np.min(times),
        "max": np.max(times),
    }


def format_time(seconds: float) -> str:
    """Format time in appropriate units."""
    if seconds < 1e-6:
        return f"{seconds * 1e9:.3f}ns"
    elif seconds < 1e-3:
        return f"{seconds * 1e6:.3f}us"
    elif seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    else:
        return f"{seconds:.3f}s"


def print_comparison(
    name: str,
    times: dict[str, dict[str, float]],
) -> None:
    """Print benchmark comparison results for multiple methods."""
    print(f"\n{name}")
    print("-" * len(name))

    fastest_name = min(times.keys(), key=lambda k: times[k]["mean"])
    fastest_time = times[fastest_name]["mean"]

    for method_name, ts_time in times.items():
        slowdown = ts_time["mean"] / fastest_time
        if slowdown > 1.01:
            suffix = f" ({slowdown:.2f}x slower)"
        else:
            suffix = " (fastest)"
        print(
            f"  {method_name}: {format_time(ts_time['mean'])} +/- {format_time(ts_time['std'])}{suffix}"
        )


class BenchSchurDecomposition:
    """Benchmarks for the Schur decomposition and its building blocks."""

    def __init__(self, warmup: int = 1, iterations: int = 5, seed: int = 42):
        self.warmup = warmup
        self.iterations = iterations
        self.seed = seed

    def _bench(
        self, func: Callable, *args: Any, **kwargs: Any
    ) -> dict[str, float]:
        return benchmark(
            func,
            *args,
            warmup=self.warmup,
            iterations=self.iterations,
            **kwargs,
        )

    def _random(self, n: int, symmetric: bool = False) -> torch.Tensor:
        generator = torch.Generator().manual_seed(self.seed)
        a = torch.randn(n, n, dtype=torch.float64, generator=generator)
        if symmetric:
            a = a + a.T
        return a

    def bench_hessenberg(self, n: int = 32) -> None:
        """Compare the Householder Hessenberg reduction with LAPACK's."""
        a = self._random(n)

        times = {
            "torchschur": self._bench(hessenberg, a),
            "scipy": self._bench(scipy.linalg.hessenberg, a.numpy(), calc_q=True),
        }

        print_comparison(f"Hessenberg (n={n})", times)

    def bench_schur(self, n: int = 32) -> None:
        """Compare the Francis QR iteration with LAPACK's."""
        a = self._random(n)

        times = {
            "torchschur": self._bench(schur_decomposition, a),
            "scipy": self._bench(scipy.linalg.schur, a.numpy(), output="real"),
        }

        print_comparison(f"Real Schur (n={n})", times)

    def bench_symmetric(self, n: int = 32) -> None:
        """Compare the tridiagonal QR path with torch.linalg.eigh."""
        a = self._random(n, symmetric=True)

        times = {
            "torchschur": self._bench(symmetric_eigenvalue, a),
            "torch.linalg.eigh": self._bench(torch.linalg.eigh, a),
        }

        print_comparison(f"Symmetric eigenvalue (n={n})", times)

    def report_sweeps(self, n: int) -> None:
        """Print the sweep count and deflation pattern for one matrix."""
        a = self._random(n)
        T = torch.empty_like(a)
        U = torch.empty_like(a)

        statistics = SchurDecomposition(torch.finfo(a.dtype).eps).run(a, T, U)

        pairs = statistics.deflations.count(2)
        print(
            f"  n={n}: {statistics.sweeps} sweeps "
            f"({statistics.sweeps / n:.2f} per row), "
            f"{len(statistics.deflations)} deflations, {pairs} complex pairs"
        )

    def run_all(self) -> None:
        """Run all benchmarks."""
        print("=" * 60)
        print("SCHUR DECOMPOSITION BENCHMARKS")
        print("=" * 60)

        self.bench_hessenberg()
        self.bench_schur()
        self.bench_symmetric()

    def run_scaling(self) -> None:
        """Run scaling benchmarks with growing order."""
        print("=" * 60)
        print("SCALING BENCHMARKS")
        print("=" * 60)

        print("\n--- Order Scaling (Schur) ---")
        for n in [8, 16, 32, 64]:
            self.bench_schur(n=n)

        print("\n--- Sweeps per Order ---")
        for n in [8, 16, 32, 64, 128]:
            self.report_sweeps(n)


if __name__ == "__main__":
    bench = BenchSchurDecomposition(warmup=1, iterations=5)
    bench.run_all()
    print("\n")
    bench.run_scaling()
