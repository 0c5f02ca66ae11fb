"""Orchestration of integration, reduction and spectral analysis into one result."""

import threading
import time
from typing import Callable, Iterable

from .analysis import calculate_trajectory_statistics, kramers_rate, switch_rate
from .config import SPECTRUM_METHODS, SWEEPABLE_PARAMETERS, SimulationParams, validate_params
from .constants import DEFAULT_CONSTANTS, SPECTRUM_OUTPUT_CAP, TRAJECTORY_OUTPUT_CAP, PhysicalConstants
from .errors import InvalidParameterError
from .noise import NoiseSource, RandomSource
from .potential import DoubleWellPotential
from .results import Metrics, SimulationResult, Trajectory
from .simulation import LangevinIntegrator, ProgressCallback
from .spectrum import calculate_snr, compute_power_spectrum

NoiseFactory = Callable[[SimulationParams], NoiseSource]


def default_noise_factory(params: SimulationParams) -> NoiseSource:
    """A fresh RandomSource per run, seeded from the params when given."""
    return RandomSource(seed=params.seed)


class SimulationRunner:
    """
    Runs one stochastic-resonance simulation per call.

    Every run builds its own potential and noise source, so a runner holds no
    state that leaks between runs and separate runs can execute concurrently.
    """

    def __init__(
        self,
        constants: PhysicalConstants = DEFAULT_CONSTANTS,
        noise_factory: NoiseFactory = default_noise_factory,
        spectrum_method: str = "direct",
        show_progress: bool = True,
        progress_callback: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ):
        if spectrum_method not in SPECTRUM_METHODS:
            raise InvalidParameterError(
                f"Unknown spectrum method: {spectrum_method}. "
                f"Available methods: {list(SPECTRUM_METHODS)}"
            )
        self.constants = constants
        self.noise_factory = noise_factory
        self.spectrum_method = spectrum_method
        self.show_progress = show_progress
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event

    def run(self, params: SimulationParams) -> SimulationResult:
        """Simulate ``params`` and assemble the capped result."""
        validate_params(params)
        n_steps = params.n_steps
        start = time.perf_counter()

        potential = DoubleWellPotential.from_params(params, constants=self.constants)
        integrator = LangevinIntegrator(
            potential=potential,
            noise=self.noise_factory(params),
            time_step=params.time_step_s,
            constants=self.constants,
            progress_callback=self.progress_callback,
            cancel_event=self.cancel_event,
            show_progress=self.show_progress,
        )
        raw = integrator.integrate(n_steps)

        stats = calculate_trajectory_statistics(raw.position_ratio)
        spectrum = compute_power_spectrum(
            raw.position_ratio,
            method=self.spectrum_method,
            sample_interval_s=raw.stride * params.time_step_s,
            max_entries=SPECTRUM_OUTPUT_CAP,
        )

        metrics = Metrics(
            mean=stats.mean,
            std_dev=stats.std_dev,
            switch_count=raw.switch_count,
            switch_rate_Hz=switch_rate(raw.switch_count, params.total_time_s),
            barrier_ratio=potential.barrier_ratio,
            snr_dB=calculate_snr(spectrum),
            kramers_rate_Hz=kramers_rate(potential),
        )

        # Output caps apply only here; statistics above used every sample
        trajectory = Trajectory(
            time_us=raw.time_us[:TRAJECTORY_OUTPUT_CAP],
            position_ratio=raw.position_ratio[:TRAJECTORY_OUTPUT_CAP],
        )

        return SimulationResult(
            params=params,
            trajectory=trajectory,
            histogram=stats.histogram,
            spectrum=spectrum,
            metrics=metrics,
            n_steps=raw.n_steps,
            stride=raw.stride,
            n_samples=raw.n_samples,
            wall_time_s=time.perf_counter() - start,
        )


def run_simulation(params: SimulationParams, **runner_kwargs) -> SimulationResult:
    """Run a single simulation with a default-configured runner."""
    return SimulationRunner(**runner_kwargs).run(params)


def run_parameter_sweep(
    base_params: SimulationParams,
    parameter: str,
    values: Iterable[float],
    runner: SimulationRunner | None = None,
) -> list[SimulationResult]:
    """Run one independent trajectory per value of ``parameter``.

    When ``base_params.seed`` is set, run ``i`` uses ``seed + i``.
    """
    if parameter not in SWEEPABLE_PARAMETERS:
        raise InvalidParameterError(
            f"Cannot sweep {parameter}. Sweepable parameters: {list(SWEEPABLE_PARAMETERS)}"
        )
    values = list(values)
    if not values:
        raise InvalidParameterError("Sweep needs at least one value")

    runner = runner or SimulationRunner()

    # Validate every point before spending time on any run
    sweep_params = []
    for i, value in enumerate(values):
        seed = None if base_params.seed is None else base_params.seed + i
        params = base_params.with_updates(**{parameter: float(value), "seed": seed})
        validate_params(params)
        sweep_params.append(params)

    results = []
    for i, params in enumerate(sweep_params):
        if runner.show_progress:
            print(f"\n--- Sweep point {i + 1}/{len(sweep_params)}: {parameter}={values[i]:g} ---")
        results.append(runner.run(params))

    return results
