"""Immutable containers for simulation output."""

from dataclasses import asdict, dataclass

import numpy as np

from .config import SimulationParams


@dataclass(frozen=True)
class Trajectory:
    """Downsampled trajectory: time in microseconds and position in units of x_0."""

    time_us: np.ndarray
    position_ratio: np.ndarray

    def __len__(self) -> int:
        return len(self.position_ratio)

    def samples(self) -> list[tuple[float, float]]:
        """Return ``(time_us, position_ratio)`` pairs."""
        return list(zip(self.time_us.tolist(), self.position_ratio.tolist()))


@dataclass(frozen=True)
class Histogram:
    """Probability density of x / x_0 over fixed equal-width bins."""

    centers: np.ndarray
    density: np.ndarray
    counts: np.ndarray
    bin_width: float
    n_samples: int

    @property
    def n_binned(self) -> int:
        return int(self.counts.sum())

    def entries(self) -> list[tuple[float, float]]:
        """Return ``(center, density)`` pairs."""
        return list(zip(self.centers.tolist(), self.density.tolist()))


@dataclass(frozen=True)
class PowerSpectrum:
    """Log10 power per frequency index of the analysis window."""

    frequencies: np.ndarray
    log10_power: np.ndarray
    window_size: int
    physical_frequencies_Hz: np.ndarray | None = None

    def __len__(self) -> int:
        return len(self.log10_power)

    def entries(self) -> list[tuple[float, float]]:
        """Return ``(frequency, log10_power)`` pairs."""
        return list(zip(self.frequencies.tolist(), self.log10_power.tolist()))


@dataclass(frozen=True)
class Metrics:
    mean: float
    std_dev: float
    switch_count: int
    switch_rate_Hz: float
    barrier_ratio: float
    snr_dB: float
    kramers_rate_Hz: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SimulationResult:
    """Everything a presentation layer needs from one run."""

    params: SimulationParams
    trajectory: Trajectory
    histogram: Histogram
    spectrum: PowerSpectrum
    metrics: Metrics
    n_steps: int
    stride: int
    n_samples: int
    wall_time_s: float

    def summary(self) -> str:
        m = self.metrics
        return (
            f"T={self.params.temperature_K:g} K, F={self.params.coupling_force_N:g} N: "
            f"mean={m.mean:.3e}, std={m.std_dev:.3f}, switches={m.switch_count}, "
            f"rate={m.switch_rate_Hz:.2f} Hz (Kramers {m.kramers_rate_Hz:.2f} Hz), "
            f"barrier={m.barrier_ratio:.2f} k_BT, SNR={m.snr_dB:.2f} dB"
        )
