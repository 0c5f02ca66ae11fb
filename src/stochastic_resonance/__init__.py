"""Stochastic resonance in an overdamped, periodically driven double-well potential."""

from .analysis import calculate_trajectory_statistics, compute_histogram, kramers_rate
from .config import (
    SimulationParams,
    compute_step_count,
    create_experiment_config,
    generate_sweep_values,
    params_from_config,
    validate_params,
)
from .constants import DEFAULT_CONSTANTS, PhysicalConstants
from .errors import (
    EmptySampleSetError,
    InvalidParameterError,
    NumericInstabilityError,
    SimulationCancelledError,
    SimulationError,
)
from .io import (
    batch_save_summaries,
    create_artifact_directory,
    get_artifact_directories,
    load_artifact_summaries,
    load_simulation_summary,
    save_simulation_summary,
)
from .noise import RandomSource, ReplayNoiseSource
from .potential import DoubleWellPotential
from .results import Histogram, Metrics, PowerSpectrum, SimulationResult, Trajectory
from .runner import SimulationRunner, run_parameter_sweep, run_simulation
from .simulation import IntegrationResult, LangevinIntegrator
from .spectrum import calculate_snr, compute_power_spectrum
from .visualization import StochasticResonanceVisualizer

__version__ = "0.1.0"
__all__ = [
    "SimulationParams",
    "PhysicalConstants",
    "DEFAULT_CONSTANTS",
    "DoubleWellPotential",
    "RandomSource",
    "ReplayNoiseSource",
    "LangevinIntegrator",
    "IntegrationResult",
    "SimulationRunner",
    "SimulationResult",
    "Trajectory",
    "Histogram",
    "PowerSpectrum",
    "Metrics",
    "StochasticResonanceVisualizer",
    "run_simulation",
    "run_parameter_sweep",
    "calculate_trajectory_statistics",
    "compute_histogram",
    "kramers_rate",
    "compute_power_spectrum",
    "calculate_snr",
    "compute_step_count",
    "create_experiment_config",
    "generate_sweep_values",
    "params_from_config",
    "validate_params",
    "save_simulation_summary",
    "load_simulation_summary",
    "batch_save_summaries",
    "create_artifact_directory",
    "get_artifact_directories",
    "load_artifact_summaries",
    "SimulationError",
    "InvalidParameterError",
    "NumericInstabilityError",
    "EmptySampleSetError",
    "SimulationCancelledError",
]
