"""Overdamped Langevin dynamics in the driven double-well potential."""

import math
import threading
from dataclasses import dataclass
from typing import Callable

import numpy as np
from tqdm import tqdm

from .config import _validate_positive_integer
from .constants import (
    DEFAULT_CONSTANTS,
    PROGRESS_CHECKPOINTS,
    TARGET_SAMPLES,
    PhysicalConstants,
)
from .data import as_readonly_array
from .errors import NumericInstabilityError, SimulationCancelledError
from .noise import NoiseSource
from .potential import DoubleWellPotential

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class IntegrationResult:
    """Raw output of one integration: downsampled samples and switch count."""

    n_steps: int
    stride: int
    time_us: np.ndarray
    position_ratio: np.ndarray
    switch_count: int

    @property
    def n_samples(self) -> int:
        return len(self.position_ratio)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def downsample_stride(n_steps: int, target_samples: int = TARGET_SAMPLES) -> int:
    """Keep every ``stride``-th step so roughly ``target_samples`` remain."""
    return max(1, n_steps // target_samples)


class LangevinIntegrator:
    """
    Euler-Maruyama integrator for the overdamped Langevin equation.

    Implements: gamma dx = F(x, t) dt + sqrt(2 gamma k_B T) dW
    The particle starts in the left well at x = -x_0. Well switches are
    counted on the raw trajectory with a hysteresis of |x| > 0.1 x_0.
    """

    def __init__(
        self,
        potential: DoubleWellPotential,
        noise: NoiseSource,
        time_step: float,
        constants: PhysicalConstants = DEFAULT_CONSTANTS,
        progress_callback: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        show_progress: bool = True,
    ):
        self.potential = potential
        self.noise = noise
        self.dt = float(time_step)
        self.constants = constants
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self.show_progress = show_progress

        # Pre-compute constants for efficiency
        self._drift_scale = self.dt / constants.friction
        self._noise_scale = math.sqrt(
            2.0 * potential.k_B_T * self.dt / constants.friction
        )
        self._x0 = constants.length_scale
        self._switch_threshold = constants.switch_threshold * constants.length_scale

    @property
    def noise_scale(self) -> float:
        """Standard deviation of the thermal displacement per step [m]."""
        return self._noise_scale

    def _checkpoint(self, step: int, n_steps: int) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SimulationCancelledError(step, n_steps)
        if self.progress_callback is not None:
            self.progress_callback(step / n_steps)

    def integrate(self, n_steps: int) -> IntegrationResult:
        """Advance the trajectory ``n_steps`` times and collect samples."""
        _validate_positive_integer(n_steps, "n_steps")

        stride = downsample_stride(n_steps)
        checkpoint_every = max(1, n_steps // PROGRESS_CHECKPOINTS)

        x = -self._x0
        last_sign = _sign(x)
        switch_count = 0
        times: list[float] = []
        positions: list[float] = []

        if self.show_progress:
            print(f"Starting simulation for {n_steps:,} steps (keeping every {stride})")

        for step in tqdm(
            range(n_steps),
            desc="Simulation Progress",
            unit="steps",
            disable=not self.show_progress,
        ):
            if step % checkpoint_every == 0:
                self._checkpoint(step, n_steps)

            t = step * self.dt
            r = self.noise.sample()
            force = self.potential.deterministic_force(x, t)
            if not math.isfinite(force):
                raise NumericInstabilityError(step, "force", force)

            x = x + self._drift_scale * force + self._noise_scale * r
            if not math.isfinite(x):
                raise NumericInstabilityError(step, "position", x)

            sign = _sign(x)
            if sign != last_sign and abs(x) > self._switch_threshold:
                switch_count += 1
                last_sign = sign

            if step % stride == 0:
                times.append(t * 1e6)
                positions.append(x / self._x0)

        if self.progress_callback is not None:
            self.progress_callback(1.0)

        return IntegrationResult(
            n_steps=n_steps,
            stride=stride,
            time_us=as_readonly_array(times),
            position_ratio=as_readonly_array(positions),
            switch_count=switch_count,
        )
