"""Trajectory statistics: moments, histogram density and escape rates."""

import math
from dataclasses import dataclass

import numpy as np

from .constants import HISTOGRAM_BINS, HISTOGRAM_RANGE
from .data import as_readonly_array
from .errors import EmptySampleSetError, InvalidParameterError
from .potential import DoubleWellPotential
from .results import Histogram


@dataclass(frozen=True)
class TrajectoryStatistics:
    mean: float
    std_dev: float
    histogram: Histogram


def _as_samples(samples) -> np.ndarray:
    values = np.asarray(samples, dtype=np.float64).reshape(-1)
    if values.size == 0:
        raise EmptySampleSetError("At least one trajectory sample is required")
    return values


def compute_histogram(
    samples,
    bins: int = HISTOGRAM_BINS,
    value_range: tuple[float, float] = HISTOGRAM_RANGE,
) -> Histogram:
    """Bin samples into equal-width bins and normalize to a density.

    Bin index is floor((value - lo) / width); samples landing outside
    [0, bins) are dropped, not clamped. Density is count / n_samples / width,
    so it integrates to the fraction of samples that were binned.
    """
    values = _as_samples(samples)
    lo, hi = value_range
    if bins <= 0:
        raise InvalidParameterError(f"bins must be positive, got {bins}")
    if lo >= hi:
        raise InvalidParameterError(f"Invalid value_range: {value_range}")

    bin_width = (hi - lo) / bins
    indices = np.floor((values - lo) / bin_width)
    in_range = (indices >= 0) & (indices < bins)
    counts = np.bincount(indices[in_range].astype(np.int64), minlength=bins)

    centers = lo + (np.arange(bins) + 0.5) * bin_width
    density = counts / values.size / bin_width

    return Histogram(
        centers=as_readonly_array(centers),
        density=as_readonly_array(density),
        counts=as_readonly_array(counts, dtype=np.int64),
        bin_width=bin_width,
        n_samples=int(values.size),
    )


def calculate_trajectory_statistics(samples) -> TrajectoryStatistics:
    """Mean, population standard deviation and density histogram of x / x_0."""
    values = _as_samples(samples)
    mean = float(values.mean())
    std_dev = float(math.sqrt(np.mean((values - mean) ** 2)))
    return TrajectoryStatistics(
        mean=mean,
        std_dev=std_dev,
        histogram=compute_histogram(values),
    )


def kramers_rate(potential: DoubleWellPotential) -> float:
    """Kramers escape rate [Hz] out of one well of the unforced potential.

    r_K = sqrt(U''(x_min) |U''(x_barrier)|) / (2 pi gamma) exp(-Delta U / k_B T)
    """
    x0 = potential.constants.length_scale
    well = potential.curvature(potential.get_minima()[1] * x0)
    barrier = abs(potential.curvature(potential.get_barrier() * x0))
    prefactor = math.sqrt(well * barrier) / (2.0 * math.pi * potential.constants.friction)
    return prefactor * math.exp(-potential.barrier_height / potential.k_B_T)


def switch_rate(switch_count: int, total_time: float) -> float:
    """Observed switching rate [Hz]."""
    if total_time <= 0:
        raise InvalidParameterError(f"total_time must be positive, got {total_time}")
    return switch_count / float(total_time)
