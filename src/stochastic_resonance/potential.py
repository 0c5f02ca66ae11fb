"""Driven double-well potential: quartic landscape plus periodic coupling force."""

import math

import torch
import torch.nn as nn
from torch import Tensor

from .constants import DEFAULT_CONSTANTS, DEFAULT_DEVICE, DEFAULT_DTYPE, PhysicalConstants
from .data import convert_to_tensor


@torch.jit.script
def _calculate_potential(x: Tensor, a: Tensor, b: Tensor) -> Tensor:
    """JIT-scripted function to compute the static double-well energy."""
    x2 = x * x
    return -0.5 * a * x2 + 0.25 * b * x2 * x2


@torch.jit.script
def _calculate_force(
    x: Tensor,
    t: Tensor,
    a: Tensor,
    b: Tensor,
    coupling_amplitude: Tensor,
    phi_baseline: Tensor,
    phi_amplitude: Tensor,
    angular_frequency: Tensor,
) -> Tensor:
    """JIT-scripted function to compute the total deterministic force."""
    phi_s = phi_baseline + phi_amplitude * torch.sin(angular_frequency * t)
    coupling = coupling_amplitude * (phi_s - phi_baseline)
    return a * x - b * x * x * x + coupling


class DoubleWellPotential(nn.Module):
    """
    Symmetric double well U(x) = -a x^2 / 2 + b x^4 / 4 driven by a weak
    periodic coupling force.

    F(x, t) = a x - b x^3 + F_c (Phi_S(t) - Phi_baseline)
    Phi_S(t) = Phi_baseline + Phi_amplitude sin(2 pi f t)

    With a = 24 k_B T / x_0^2 and b = a / x_0^2 the minima sit at +-x_0 and the
    barrier height is 6 k_B T. In ``"frozen"`` coupling mode Phi_S is always
    evaluated at t = 0.
    """

    def __init__(
        self,
        temperature: float,
        coupling_force: float = 0.0,
        coupling_mode: str = "oscillating",
        constants: PhysicalConstants = DEFAULT_CONSTANTS,
        device: str | torch.device = DEFAULT_DEVICE,
        dtype: torch.dtype = DEFAULT_DTYPE,
    ):
        super().__init__()

        self.constants = constants
        temperature = float(temperature)
        coupling_force = float(coupling_force)
        self.temperature = temperature
        self.coupling_mode = coupling_mode
        self.device = device
        self.dtype = dtype

        # Scalar copies for the integrator's per-step loop
        self.k_B_T = constants.boltzmann * temperature
        self.barrier_height = constants.barrier_factor * self.k_B_T
        x0_sq = constants.length_scale * constants.length_scale
        self._a = constants.quadratic_factor * self.k_B_T / x0_sq
        self._b = self._a / x0_sq
        self._coupling_amplitude = coupling_force
        self._omega = 2.0 * math.pi * constants.coupling_frequency

        def _buffer(value: float) -> Tensor:
            return torch.tensor(value, device=device, dtype=dtype)

        self.register_buffer("a", _buffer(self._a))
        self.register_buffer("b", _buffer(self._b))
        self.register_buffer("coupling_amplitude", _buffer(coupling_force))
        self.register_buffer("phi_baseline", _buffer(constants.phi_baseline))
        self.register_buffer("phi_amplitude", _buffer(constants.phi_amplitude))
        self.register_buffer("angular_frequency", _buffer(self._omega))

    @classmethod
    def from_params(cls, params, constants: PhysicalConstants = DEFAULT_CONSTANTS, **kwargs):
        """Build the potential described by a SimulationParams value."""
        return cls(
            temperature=params.temperature_K,
            coupling_force=params.coupling_force_N,
            coupling_mode=params.coupling_mode,
            constants=constants,
            **kwargs,
        )

    @property
    def ndims(self) -> int:
        return 1

    @property
    def barrier_ratio(self) -> float:
        """Barrier height in units of k_B T."""
        return self.barrier_height / self.k_B_T

    def _evaluation_time(self, t: float) -> float:
        return 0.0 if self.coupling_mode == "frozen" else t

    def coupling_signal(self, t: float) -> float:
        """Phi_S at simulation time ``t``."""
        c = self.constants
        return c.phi_baseline + c.phi_amplitude * math.sin(
            self._omega * self._evaluation_time(t)
        )

    def coupling_force(self, t: float) -> float:
        return self._coupling_amplitude * (
            self.coupling_signal(t) - self.constants.phi_baseline
        )

    def deterministic_force(self, x: float, t: float) -> float:
        """Total deterministic force at position ``x`` [m] and time ``t`` [s]."""
        return self._a * x - self._b * x * x * x + self.coupling_force(t)

    def forward(self, x: Tensor) -> Tensor:
        """Compute potential energy [J] at positions ``x`` [m]."""
        x = convert_to_tensor(x, device=self.device, dtype=self.dtype)
        return _calculate_potential(x, self.a, self.b)

    def force(self, x: Tensor, t: Tensor | float = 0.0) -> Tensor:
        """Compute deterministic forces [N] at positions ``x`` and times ``t``."""
        x = convert_to_tensor(x, device=self.device, dtype=self.dtype)
        t = convert_to_tensor(t, device=self.device, dtype=self.dtype)
        if self.coupling_mode == "frozen":
            t = torch.zeros_like(t)
        return _calculate_force(
            x,
            t,
            self.a,
            self.b,
            self.coupling_amplitude,
            self.phi_baseline,
            self.phi_amplitude,
            self.angular_frequency,
        )

    def reduced_energy(self, x_ratio: Tensor) -> Tensor:
        """Energy in units of k_B T at positions given in units of x_0."""
        x = convert_to_tensor(x_ratio, device=self.device, dtype=self.dtype)
        return self.forward(x * self.constants.length_scale) / self.k_B_T

    def boltzmann_density(self, x_ratio: Tensor) -> Tensor:
        """Equilibrium density of the unforced well on a grid of x / x_0.

        Normalized with the trapezoidal rule over the supplied grid.
        """
        x = convert_to_tensor(x_ratio, device=self.device, dtype=self.dtype)
        energy = self.reduced_energy(x)
        weights = torch.exp(-(energy - energy.min()))
        return weights / torch.trapezoid(weights, x)

    def curvature(self, x: float) -> float:
        """Second derivative U''(x) [N/m]."""
        return -self._a + 3.0 * self._b * x * x

    def get_minima(self) -> list[float]:
        """Return the well positions in units of x_0."""
        x_min = math.sqrt(self._a / self._b) / self.constants.length_scale
        return [-x_min, x_min]

    def get_barrier(self) -> float:
        """Return the barrier top position in units of x_0."""
        return 0.0

    def get_parameters(self) -> dict:
        """Return the potential coefficients."""
        return {
            "a": self._a,
            "b": self._b,
            "k_B_T": self.k_B_T,
            "barrier_height": self.barrier_height,
            "coupling_amplitude": self._coupling_amplitude,
            "coupling_frequency": self.constants.coupling_frequency,
            "coupling_mode": self.coupling_mode,
        }
