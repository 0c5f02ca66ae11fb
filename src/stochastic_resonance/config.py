"""Simulation parameters, validation and experiment configuration."""

import math
import numbers
from dataclasses import asdict, dataclass, replace

import numpy as np

from .errors import InvalidParameterError

COUPLING_MODES = ("oscillating", "frozen")
SPECTRUM_METHODS = ("direct", "fft")
SWEEPABLE_PARAMETERS = ("temperature_K", "coupling_force_N")


@dataclass(frozen=True)
class SimulationParams:
    """Immutable input of a single stochastic-resonance run.

    ``magnetic_field_T`` is carried for reporting only and does not enter the
    force law. ``coupling_mode`` selects whether the periodic coupling signal
    follows simulation time (``"oscillating"``) or stays at its ``t = 0``
    value for the whole run (``"frozen"``).
    """

    temperature_K: float = 310.0
    magnetic_field_T: float = 50e-6
    coupling_force_N: float = 2.0e-12
    time_step_s: float = 1e-10
    total_time_s: float = 1e-5
    coupling_mode: str = "oscillating"
    seed: int | None = None

    @property
    def n_steps(self) -> int:
        return compute_step_count(self.total_time_s, self.time_step_s)

    def validate(self) -> "SimulationParams":
        validate_params(self)
        return self

    def with_updates(self, **changes) -> "SimulationParams":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return asdict(self)


def _validate_positive_integer(value: int, name: str) -> None:
    """Validate that a value is a positive integer."""
    if not isinstance(value, numbers.Integral) or isinstance(value, bool) or value <= 0:
        raise InvalidParameterError(f"{name} must be a positive integer, got {value}")


def _validate_finite(value: float, name: str) -> None:
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")


def compute_step_count(total_time_s: float, time_step_s: float) -> int:
    """Number of integration steps, ``floor(total_time_s / time_step_s)``.

    Ratios within 1e-9 relative tolerance of an integer snap to it, so that
    decimal inputs such as ``1e-8 / 1e-10`` give exactly 100 steps.
    """
    ratio = total_time_s / time_step_s
    nearest = round(ratio)
    if nearest > 0 and math.isclose(ratio, nearest, rel_tol=1e-9):
        return int(nearest)
    return int(math.floor(ratio))


def validate_params(params: SimulationParams) -> None:
    """Raise InvalidParameterError if ``params`` cannot describe a run."""
    for name in (
        "temperature_K",
        "magnetic_field_T",
        "coupling_force_N",
        "time_step_s",
        "total_time_s",
    ):
        _validate_finite(getattr(params, name), name)

    if params.temperature_K <= 0:
        raise InvalidParameterError(
            f"temperature_K must be positive, got {params.temperature_K}"
        )
    if params.magnetic_field_T < 0:
        raise InvalidParameterError(
            f"magnetic_field_T must be non-negative, got {params.magnetic_field_T}"
        )
    if params.coupling_force_N < 0:
        raise InvalidParameterError(
            f"coupling_force_N must be non-negative, got {params.coupling_force_N}"
        )
    if params.time_step_s <= 0:
        raise InvalidParameterError(
            f"time_step_s must be positive, got {params.time_step_s}"
        )
    if params.total_time_s <= 0:
        raise InvalidParameterError(
            f"total_time_s must be positive, got {params.total_time_s}"
        )
    if params.coupling_mode not in COUPLING_MODES:
        raise InvalidParameterError(
            f"Unknown coupling_mode: {params.coupling_mode}. "
            f"Available modes: {list(COUPLING_MODES)}"
        )
    if params.seed is not None and (
        not isinstance(params.seed, numbers.Integral) or isinstance(params.seed, bool)
    ):
        raise InvalidParameterError(f"seed must be an integer, got {params.seed!r}")

    n_steps = compute_step_count(params.total_time_s, params.time_step_s)
    if n_steps <= 0:
        raise InvalidParameterError(
            f"total_time_s / time_step_s must give at least one step, "
            f"got {params.total_time_s} / {params.time_step_s}"
        )


def generate_sweep_values(
    start: float,
    stop: float,
    n_values: int,
    scale: str = "linear",
) -> list[float]:
    """Generate sweep points using 'linear' or 'log' spacing."""
    _validate_positive_integer(n_values, "n_values")

    if scale == "linear":
        values = np.linspace(start, stop, n_values)
    elif scale == "log":
        if start <= 0 or stop <= 0:
            raise InvalidParameterError(
                f"log sweeps need positive bounds, got ({start}, {stop})"
            )
        values = np.geomspace(start, stop, n_values)
    else:
        raise InvalidParameterError(f"Unknown scale: {scale}")

    return [float(v) for v in values]


def create_experiment_config(
    temperature: float = 310.0,
    magnetic_field: float = 50e-6,
    coupling_force: float = 2.0e-12,
    time_step: float = 1e-10,
    total_time: float = 1e-5,
    coupling_mode: str = "oscillating",
    seed: int | None = 42,
    spectrum_method: str = "direct",
    show_progress: bool = True,
    save_data: bool = True,
    save_plots: bool = False,
) -> dict[str, dict]:
    """Create a standardized configuration dictionary for simulation experiments."""
    params = SimulationParams(
        temperature_K=temperature,
        magnetic_field_T=magnetic_field,
        coupling_force_N=coupling_force,
        time_step_s=time_step,
        total_time_s=total_time,
        coupling_mode=coupling_mode,
        seed=seed,
    )
    validate_params(params)

    if spectrum_method not in SPECTRUM_METHODS:
        raise InvalidParameterError(
            f"Unknown spectrum_method: {spectrum_method}. "
            f"Available methods: {list(SPECTRUM_METHODS)}"
        )

    return {
        "simulation": params.to_dict(),
        "analysis": {
            "spectrum_method": spectrum_method,
            "show_progress": show_progress,
        },
        "output": {
            "save_data": save_data,
            "save_plots": save_plots,
        },
    }


def params_from_config(config: dict) -> SimulationParams:
    """Rebuild SimulationParams from the ``simulation`` section of a config."""
    return SimulationParams(**config["simulation"])
