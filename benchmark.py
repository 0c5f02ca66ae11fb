#!/usr/bin/env python3
"""Performance benchmark comparing direct and FFT power spectrum calculations."""

import json
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List

import matplotlib.pyplot as plt
import numpy as np
import torch

from stochastic_resonance import compute_power_spectrum


@dataclass
class BenchmarkResult:
    """Container for benchmark results."""

    method: str
    window_size: int
    n_iterations: int
    wall_time: float
    time_per_iteration: float
    max_abs_deviation: float


class SpectrumBenchmark:
    """Timing and agreement benchmark for the two spectral transforms."""

    def __init__(self, device: str = "cpu", dtype: torch.dtype = torch.float64):
        self.device = device
        self.dtype = dtype
        self.results: List[BenchmarkResult] = []

    def _benchmark_method(
        self,
        samples: np.ndarray,
        method: str,
        reference: np.ndarray,
        n_iterations: int = 50,
        warmup: int = 5,
        n_runs: int = 5,
    ) -> BenchmarkResult:
        """Benchmark a single method with multiple runs for statistical accuracy."""
        kwargs = dict(
            method=method,
            window=len(samples),
            max_entries=None,
            device=self.device,
            dtype=self.dtype,
        )

        # Warmup
        for _ in range(warmup):
            spectrum = compute_power_spectrum(samples, **kwargs)

        times = []
        for _ in range(n_runs):
            start = time.perf_counter()
            for _ in range(n_iterations):
                spectrum = compute_power_spectrum(samples, **kwargs)
            times.append(time.perf_counter() - start)

        # Use median time for robustness
        wall_time = float(np.median(times))
        deviation = float(np.max(np.abs(spectrum.log10_power - reference))) if len(reference) else 0.0

        return BenchmarkResult(
            method=method,
            window_size=len(samples),
            n_iterations=n_iterations,
            wall_time=wall_time,
            time_per_iteration=wall_time / n_iterations,
            max_abs_deviation=deviation,
        )

    def _generate_samples(self, n: int) -> np.ndarray:
        """Noisy two-state signal resembling a switching trajectory."""
        rng = np.random.default_rng(42)  # Reproducible results
        t = np.arange(n)
        return np.sign(np.sin(2 * np.pi * t / 64)) + 0.3 * rng.standard_normal(n)

    def run_benchmarks(self, max_window: int = 2048) -> None:
        """Run benchmarks across window sizes."""
        print("🔧 Running Spectrum Benchmarks")
        print("=" * 50)

        window_sizes = []
        size = 64
        while size <= max_window:
            window_sizes.append(size)
            size *= 2
        print(f"Testing window sizes: {window_sizes}")
        print()

        for n in window_sizes:
            print(f"Testing N={n:,}...")
            samples = self._generate_samples(n)
            reference = compute_power_spectrum(
                samples, method="direct", window=n, max_entries=None
            ).log10_power

            n_iterations = max(5, 200_000 // (n * 8))
            result_direct = self._benchmark_method(samples, "direct", reference, n_iterations)
            result_fft = self._benchmark_method(samples, "fft", reference, n_iterations)
            self.results.extend([result_direct, result_fft])

            speedup = result_direct.wall_time / result_fft.wall_time
            print(f"  Direct: {result_direct.time_per_iteration * 1e3:8.3f} ms")
            print(f"  FFT:    {result_fft.time_per_iteration * 1e3:8.3f} ms")
            print(f"  Speedup:    {speedup:8.1f}x  (max |dlog10 P| = {result_fft.max_abs_deviation:.2e})")
            print()

    def create_plots(self, output_dir: str = "artifacts/benchmark_plots") -> None:
        """Create timing plot."""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        direct = [r for r in self.results if r.method == "direct"]
        fft = [r for r in self.results if r.method == "fft"]

        fig, ax = plt.subplots(1, 1, figsize=(10, 6))
        ax.loglog(
            [r.window_size for r in direct],
            [r.time_per_iteration * 1e3 for r in direct],
            "o-",
            label="Direct",
            color="#FF6B6B",
            linewidth=2,
            markersize=6,
        )
        ax.loglog(
            [r.window_size for r in fft],
            [r.time_per_iteration * 1e3 for r in fft],
            "s-",
            label="FFT",
            color="#4ECDC4",
            linewidth=2,
            markersize=6,
        )
        ax.set_xlabel("Window size N")
        ax.set_ylabel("Time per spectrum (ms)")
        ax.set_title("Spectrum Cost vs Window Size")
        ax.legend()
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        plt.savefig(output_path / "spectrum_timing.png", dpi=300, bbox_inches="tight")
        plt.close()

        print(f"📊 Plots saved to {output_path}")

    def save_results(self, filename: str = "artifacts/benchmark_results.json"):
        """Save benchmark results to JSON."""
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        data = [asdict(result) for result in self.results]
        with open(filename, "w") as f:
            json.dump(data, f, indent=2)
        print(f"💾 Results saved to {filename}")

    def print_summary(self):
        """Print performance summary."""
        print("📈 Performance Summary")
        print("=" * 50)

        direct = [r for r in self.results if r.method == "direct"]
        fft = [r for r in self.results if r.method == "fft"]

        print(f"{'N':<8} {'Direct (ms)':<12} {'FFT (ms)':<12} {'Speedup':<8}")
        print("-" * 50)
        for d, f in zip(direct, fft):
            print(
                f"{d.window_size:<8,} {d.time_per_iteration * 1e3:<12.3f} "
                f"{f.time_per_iteration * 1e3:<12.3f} {d.wall_time / f.wall_time:<8.1f}x"
            )

        if fft:
            print("-" * 50)
            print(f"Largest deviation from direct: {max(r.max_abs_deviation for r in fft):.2e}")


def main():
    """Run spectrum benchmark suite."""
    print("🚀 Power Spectrum Performance Benchmark")
    print("=" * 60)
    print(f"PyTorch version: {torch.__version__}")
    print()

    benchmark = SpectrumBenchmark()
    benchmark.run_benchmarks(max_window=2048)
    benchmark.create_plots()
    benchmark.save_results()
    benchmark.print_summary()


if __name__ == "__main__":
    main()
