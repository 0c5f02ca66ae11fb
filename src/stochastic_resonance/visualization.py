"""Visualization tools for the driven double well and stochastic-resonance results."""

import matplotlib.pyplot as plt
import numpy as np
import torch
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from .constants import HISTOGRAM_RANGE
from .potential import DoubleWellPotential
from .results import Histogram, Metrics, PowerSpectrum, SimulationResult

# Default plotting constants
DEFAULT_FIGURE_SIZE = (12, 4)
DEFAULT_X_RANGE = (-2.0, 2.0)
DEFAULT_RESOLUTION = 400
DEFAULT_COLORS = {
    "trajectory": "#a855f7",
    "density": "#ec4899",
    "spectrum": "#06b6d4",
    "theory": "black",
}

SWEEP_LABELS = {
    "temperature_K": "Temperature (K)",
    "coupling_force_N": "Coupling force (N)",
}


class StochasticResonanceVisualizer:
    """Figures for the double-well landscape, single runs and parameter sweeps."""

    def __init__(self, potential: DoubleWellPotential | None = None):
        """Initialize the visualizer."""
        self.potential = potential

    @classmethod
    def from_result(cls, result: SimulationResult) -> "StochasticResonanceVisualizer":
        return cls(DoubleWellPotential.from_params(result.params))

    def plot_potential_landscape(
        self,
        x_range: tuple[float, float] = DEFAULT_X_RANGE,
        resolution: int = DEFAULT_RESOLUTION,
        ax: Axes | None = None,
        show_tilt: bool = True,
    ) -> tuple[Figure, Axes]:
        """Plot U(x) / k_B T, optionally tilted by the extreme coupling forces."""
        if self.potential is None:
            raise ValueError("A potential is required to plot the landscape")
        if resolution <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        if x_range[0] >= x_range[1]:
            raise ValueError(f"Invalid x_range: {x_range}")

        x = np.linspace(x_range[0], x_range[1], resolution)
        with torch.no_grad():
            energy = self.potential.reduced_energy(x).cpu().numpy()

        fig, ax = self._setup_figure_and_axes(ax, (8, 5))
        ax.plot(x, energy, color="black", linewidth=2, label="Static")

        params = self.potential.get_parameters()
        amplitude = params["coupling_amplitude"] * self.potential.constants.phi_amplitude
        if show_tilt and amplitude > 0:
            # A constant force F tilts the landscape by -F x
            x0 = self.potential.constants.length_scale
            tilt = amplitude * x * x0 / self.potential.k_B_T
            ax.plot(x, energy - tilt, "--", color="#FF6B6B", label="Max tilt (+)")
            ax.plot(x, energy + tilt, "--", color="#4ECDC4", label="Max tilt (-)")

        self._add_critical_points(ax)

        ax.set_xlabel(r"$x / x_0$", fontsize=12)
        ax.set_ylabel(r"$U / k_B T$", fontsize=12)
        ax.set_title("Double-Well Potential", fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3)
        ax.legend(loc="upper center", fontsize=10)
        return fig, ax

    def plot_trajectory(
        self, result: SimulationResult, ax: Axes | None = None
    ) -> tuple[Figure, Axes]:
        """Plot position vs time with the well and switching-threshold levels."""
        trajectory = result.trajectory
        if len(trajectory) == 0:
            raise ValueError("Trajectory is empty")

        fig, ax = self._setup_figure_and_axes(ax, DEFAULT_FIGURE_SIZE)
        ax.plot(
            trajectory.time_us,
            trajectory.position_ratio,
            color=DEFAULT_COLORS["trajectory"],
            linewidth=1.0,
        )
        for level in (-1.0, 1.0):
            ax.axhline(level, color="gray", linestyle="--", linewidth=0.8)
        ax.axhspan(-0.1, 0.1, color="gray", alpha=0.15, label="Switch threshold")

        ax.set_xlabel(r"Time ($\mu$s)", fontsize=12)
        ax.set_ylabel(r"$x / x_0$", fontsize=12)
        ax.set_title(
            f"Trajectory ({result.metrics.switch_count} switches)",
            fontsize=13,
            fontweight="bold",
        )
        ax.grid(True, alpha=0.3)
        ax.legend(loc="upper right", fontsize=9)
        return fig, ax

    def plot_probability_density(
        self,
        histogram: Histogram,
        ax: Axes | None = None,
        show_boltzmann: bool = True,
    ) -> tuple[Figure, Axes]:
        """Plot the histogram density, with the equilibrium density if available."""
        fig, ax = self._setup_figure_and_axes(ax, (6, 4))
        ax.bar(
            histogram.centers,
            histogram.density,
            width=histogram.bin_width,
            alpha=0.7,
            color=DEFAULT_COLORS["density"],
            edgecolor="black",
            label="Simulation",
        )

        if show_boltzmann and self.potential is not None:
            x = np.linspace(HISTOGRAM_RANGE[0], HISTOGRAM_RANGE[1], DEFAULT_RESOLUTION)
            with torch.no_grad():
                density = self.potential.boltzmann_density(x).cpu().numpy()
            ax.plot(x, density, color=DEFAULT_COLORS["theory"], linewidth=2, label="Boltzmann")

        ax.set_xlabel(r"$x / x_0$")
        ax.set_ylabel("Density")
        ax.set_title("Probability Density")
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=9)
        return fig, ax

    def plot_power_spectrum(
        self,
        spectrum: PowerSpectrum,
        ax: Axes | None = None,
        physical_axis: bool = False,
    ) -> tuple[Figure, Axes]:
        """Plot log10 power against frequency."""
        if len(spectrum) == 0:
            raise ValueError("Spectrum is empty - trajectory too short for a spectrum")

        if physical_axis and spectrum.physical_frequencies_Hz is not None:
            frequencies = spectrum.physical_frequencies_Hz
            xlabel = "Frequency (Hz)"
        else:
            frequencies = spectrum.frequencies
            xlabel = "Frequency (a.u.)"

        fig, ax = self._setup_figure_and_axes(ax, (6, 4))
        ax.plot(frequencies, spectrum.log10_power, color=DEFAULT_COLORS["spectrum"], linewidth=2)
        ax.set_xlabel(xlabel)
        ax.set_ylabel(r"$\log_{10} P$")
        ax.set_title(f"Power Spectrum (N={spectrum.window_size})")
        ax.grid(True, alpha=0.3)
        return fig, ax

    def plot_summary(self, result: SimulationResult) -> tuple[Figure, np.ndarray]:
        """Trajectory on top, density and spectrum below, metrics in the title."""
        fig = plt.figure(figsize=(12, 8))
        gs = fig.add_gridspec(2, 2, height_ratios=[1, 1])
        ax_traj = fig.add_subplot(gs[0, :])
        ax_density = fig.add_subplot(gs[1, 0])
        ax_spectrum = fig.add_subplot(gs[1, 1])

        self.plot_trajectory(result, ax=ax_traj)
        self.plot_probability_density(result.histogram, ax=ax_density)
        if len(result.spectrum) > 0:
            self.plot_power_spectrum(result.spectrum, ax=ax_spectrum)

        m = result.metrics
        fig.suptitle(
            f"mean={m.mean:.3e}  std={m.std_dev:.3f}  rate={m.switch_rate_Hz:.2f} Hz  "
            f"barrier={m.barrier_ratio:.2f} $k_BT$  SNR={m.snr_dB:.2f} dB",
            fontsize=12,
        )
        plt.tight_layout()
        return fig, np.array([ax_traj, ax_density, ax_spectrum])

    def plot_sweep(
        self,
        values: list[float],
        metrics: list[Metrics],
        parameter: str = "temperature_K",
    ) -> tuple[Figure, np.ndarray]:
        """Plot SNR and switching rate against the swept parameter."""
        if len(values) != len(metrics):
            raise ValueError(
                f"Got {len(values)} sweep values but {len(metrics)} metric records"
            )
        if not values:
            raise ValueError("Nothing to plot - sweep is empty")

        order = np.argsort(values)
        x = np.asarray(values, dtype=float)[order]
        snr = np.array([metrics[i].snr_dB for i in order])
        rate = np.array([metrics[i].switch_rate_Hz for i in order])
        kramers = np.array([metrics[i].kramers_rate_Hz for i in order])

        fig, axes = plt.subplots(1, 2, figsize=DEFAULT_FIGURE_SIZE)
        xlabel = SWEEP_LABELS.get(parameter, parameter)

        axes[0].plot(x, snr, "o-", color=DEFAULT_COLORS["spectrum"], linewidth=2)
        axes[0].set_xlabel(xlabel)
        axes[0].set_ylabel("SNR (dB)")
        axes[0].set_title("Signal-to-Noise Ratio")
        axes[0].grid(True, alpha=0.3)

        axes[1].plot(x, rate, "o-", color=DEFAULT_COLORS["density"], linewidth=2, label="Observed")
        axes[1].plot(x, kramers, "s--", color=DEFAULT_COLORS["theory"], label="Kramers")
        axes[1].set_xlabel(xlabel)
        axes[1].set_ylabel("Switching rate (Hz)")
        axes[1].set_title("Switching Rate")
        axes[1].grid(True, alpha=0.3)
        axes[1].legend(fontsize=9)

        plt.tight_layout()
        return fig, axes

    # Helper methods
    def _setup_figure_and_axes(
        self, ax: Axes | None, figsize: tuple[float, float]
    ) -> tuple[Figure, Axes]:
        """Set up figure and axes with consistent formatting."""
        if ax is None:
            fig, ax = plt.subplots(figsize=figsize)
        else:
            fig = ax.figure
        return fig, ax

    def _add_critical_points(self, ax: Axes) -> None:
        """Mark the two wells and the barrier top."""
        minima = self.potential.get_minima()
        barrier = self.potential.get_barrier()
        with torch.no_grad():
            well_energy = self.potential.reduced_energy(np.array(minima)).cpu().numpy()
            barrier_energy = float(self.potential.reduced_energy(barrier))

        ax.plot(
            minima,
            well_energy,
            "o",
            color="black",
            markersize=9,
            markerfacecolor="white",
            markeredgewidth=2,
            label="Minima",
            zorder=10,
        )
        ax.plot(
            barrier,
            barrier_energy,
            "X",
            color="black",
            markersize=11,
            markerfacecolor="white",
            markeredgewidth=2,
            label="Barrier",
            zorder=10,
        )
