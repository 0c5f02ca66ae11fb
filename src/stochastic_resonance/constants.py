"""Physical constants and fixed analysis parameters for the double-well system."""

from dataclasses import dataclass

import torch


@dataclass(frozen=True)
class PhysicalConstants:
    """Process-wide physical constants of the driven double-well model."""

    boltzmann: float = 1.380649e-23  # J/K
    length_scale: float = 1.0e-9  # x_0 [m]
    friction: float = 1.0e-7  # gamma
    barrier_factor: float = 6.0  # Delta U in units of k_B T
    quadratic_factor: float = 24.0  # a = 24 k_B T / x_0^2
    coupling_frequency: float = 100.0  # Hz
    phi_baseline: float = 0.25
    phi_amplitude: float = 0.05
    switch_threshold: float = 0.1  # hysteresis, fraction of x_0


DEFAULT_CONSTANTS = PhysicalConstants()

# Downsampling and output caps
TARGET_SAMPLES = 5000
TRAJECTORY_OUTPUT_CAP = 2000
PROGRESS_CHECKPOINTS = 20

# Histogram of x / x_0
HISTOGRAM_BINS = 50
HISTOGRAM_RANGE = (-2.0, 2.0)

# Power spectrum
SPECTRUM_WINDOW = 1024
SPECTRUM_OUTPUT_CAP = 100
FREQUENCY_STEP = 10.0
LOG_POWER_FLOOR = 1e-10

# Default tensor configuration
DEFAULT_DEVICE = "cpu"
DEFAULT_DTYPE = torch.float64
