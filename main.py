#!/usr/bin/env python3
"""
Stochastic resonance simulation of a periodically driven double well.

Runs single simulations or parameter sweeps, archives run summaries and
regenerates plots from archived artifacts.
"""

import argparse
from pathlib import Path

import matplotlib.pyplot as plt

from stochastic_resonance import (
    DoubleWellPotential,
    SimulationError,
    SimulationRunner,
    StochasticResonanceVisualizer,
    batch_save_summaries,
    create_artifact_directory,
    create_experiment_config,
    get_artifact_directories,
    load_artifact_summaries,
    params_from_config,
    run_parameter_sweep,
    save_simulation_summary,
)
from stochastic_resonance.io import summary_histogram, summary_metrics, summary_params, summary_spectrum


def run_single_simulation(config: dict):
    """Run a single simulation with the given configuration."""
    params = params_from_config(config)
    print(f"Parameters: {params}")

    runner = SimulationRunner(
        spectrum_method=config["analysis"]["spectrum_method"],
        show_progress=config["analysis"]["show_progress"],
    )
    result = runner.run(params)
    print(result.summary())
    print(f"Completed {result.n_steps:,} steps in {result.wall_time_s:.2f} s")
    return result


def archive_single_result(result, config: dict, base_dir: str | Path = "artifacts") -> Path:
    """Create an artifact directory for a run, writing its summary if requested."""
    artifact_dir = create_artifact_directory(base_dir)
    if config["output"]["save_data"]:
        save_simulation_summary(result, output_dir=artifact_dir)
    return artifact_dir


def run_sweep(config: dict, parameter: str, values: list[float]) -> tuple[list, Path]:
    """Run one simulation per sweep value and archive every summary.

    Returns:
        Tuple of (all_results, sweep_artifact_directory)
    """
    print(f"Sweeping {parameter} over {len(values)} values...")

    runner = SimulationRunner(
        spectrum_method=config["analysis"]["spectrum_method"],
        show_progress=config["analysis"]["show_progress"],
    )
    results = run_parameter_sweep(params_from_config(config), parameter, values, runner=runner)

    sweep_artifact_dir = create_artifact_directory()
    print(f"Saving sweep results to: {sweep_artifact_dir}")
    if config["output"]["save_data"]:
        batch_save_summaries(results, output_dir=sweep_artifact_dir)

    print(f"\n{'value':>12}  {'switches':>8}  {'rate (Hz)':>10}  {'SNR (dB)':>8}")
    for value, result in zip(values, results):
        m = result.metrics
        print(f"{value:12.4g}  {m.switch_count:8d}  {m.switch_rate_Hz:10.2f}  {m.snr_dB:8.2f}")

    return results, sweep_artifact_dir


def _save_plot(fig, output_dir: Path, filename: str, dpi: int = 300):
    """Save a matplotlib figure with consistent settings."""
    fig.savefig(output_dir / filename, dpi=dpi, bbox_inches="tight")
    plt.close(fig)


def create_visualizations(result, output_dir: str | Path = "plots"):
    """Create and save all visualizations for a single run."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    visualizer = StochasticResonanceVisualizer.from_result(result)

    print("Creating potential landscape plot...")
    fig, ax = visualizer.plot_potential_landscape()
    _save_plot(fig, output_path, "potential_landscape.png")

    print("Creating trajectory plot...")
    try:
        fig, ax = visualizer.plot_trajectory(result)
        _save_plot(fig, output_path, "trajectory.png")
    except ValueError as e:
        print(f"Skipping trajectory plot: {e}")

    print("Creating probability density plot...")
    fig, ax = visualizer.plot_probability_density(result.histogram)
    _save_plot(fig, output_path, "probability_density.png")

    try:
        fig, ax = visualizer.plot_power_spectrum(result.spectrum)
        _save_plot(fig, output_path, "power_spectrum.png")
    except ValueError as e:
        print(f"Skipping power spectrum: {e}")

    fig, axes = visualizer.plot_summary(result)
    _save_plot(fig, output_path, "summary.png")

    print(f"All plots saved to {output_path}")


def create_sweep_visualizations(values: list[float], metrics: list, parameter: str, output_dir: str | Path):
    """Create and save the sweep overview plot."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    fig, axes = StochasticResonanceVisualizer().plot_sweep(values, metrics, parameter)
    _save_plot(fig, output_path, f"sweep_{parameter}.png")
    print(f"Sweep plot saved to {output_path}")


def demo_potential_features(config: dict):
    """Demonstrate the features of the driven double-well potential."""
    print("=== Double-Well Potential Demo ===")

    params = params_from_config(config)
    potential = DoubleWellPotential.from_params(params)

    print(f"Well positions (x/x0): {potential.get_minima()}")
    print(f"Barrier position (x/x0): {potential.get_barrier()}")
    print(f"Barrier height: {potential.barrier_ratio:.2f} k_B T")
    print(f"Coefficients: {potential.get_parameters()}")

    x0 = potential.constants.length_scale
    for x in (-x0, 0.0, x0):
        print(f"Force at x={x / x0:+.1f} x0, t=0: {potential.deterministic_force(x, 0.0):.3e} N")
    print(f"Peak coupling force: {potential.coupling_force(1.0 / (4 * potential.constants.coupling_frequency)):.3e} N")


def run_plotting_mode(artifact_dir: str | Path):
    """Load summaries from an artifact directory and regenerate plots."""
    artifact_path = Path(artifact_dir)

    if not artifact_path.exists() or not artifact_path.is_dir():
        print(f"Error: Artifact directory does not exist: {artifact_path}")
        return

    print(f"Loading data from artifact directory: {artifact_path}")
    summaries = load_artifact_summaries(artifact_path)
    if not summaries:
        print(f"Error: No simulation summaries found in {artifact_path}")
        return

    for i, data in enumerate(summaries):
        visualizer = StochasticResonanceVisualizer(DoubleWellPotential.from_params(summary_params(data)))
        fig, ax = visualizer.plot_probability_density(summary_histogram(data))
        _save_plot(fig, artifact_path, f"{i:03d}_probability_density.png")
        try:
            fig, ax = visualizer.plot_power_spectrum(summary_spectrum(data))
            _save_plot(fig, artifact_path, f"{i:03d}_power_spectrum.png")
        except ValueError as e:
            print(f"Skipping power spectrum {i}: {e}")

    if len(summaries) > 1:
        params = [summary_params(d) for d in summaries]
        parameter = "coupling_force_N" if len({p.temperature_K for p in params}) == 1 else "temperature_K"
        values = [getattr(p, parameter) for p in params]
        create_sweep_visualizations(values, [summary_metrics(d) for d in summaries], parameter, artifact_path)

    print(f"Plots saved to: {artifact_path}")


def list_artifacts():
    """List all available artifact directories."""
    artifacts = get_artifact_directories()
    if not artifacts:
        print("No artifact directories found.")
        return

    print("Available artifact directories:")
    for i, artifact_dir in enumerate(artifacts, 1):
        print(f"  {i:2d}. {artifact_dir.name} ({artifact_dir})")


def main():
    """Main function with command-line interface."""
    parser = argparse.ArgumentParser(description="Stochastic resonance in a driven double well")
    parser.add_argument(
        "--mode",
        choices=["demo", "single", "sweep", "plot", "list"],
        default="demo",
        help="Mode: demo (show potential info), single (one simulation), sweep (one run per parameter value), plot (regenerate plots from artifact), list (show available artifacts)",
    )
    parser.add_argument("--artifact-dir", type=str, help="Artifact directory for plot mode")
    parser.add_argument("--temperature", type=float, default=310.0, help="Temperature (K)")
    parser.add_argument("--magnetic-field", type=float, default=50e-6, help="Magnetic field (T), informational only")
    parser.add_argument("--coupling-force", type=float, default=2.0e-12, help="Periodic coupling force amplitude (N)")
    parser.add_argument("--time-step", type=float, default=1e-10, help="Integration time step (s)")
    parser.add_argument("--total-time", type=float, default=1e-5, help="Total simulated time (s)")
    parser.add_argument(
        "--coupling-mode",
        choices=["oscillating", "frozen"],
        default="oscillating",
        help="Evaluate the coupling signal at the current time (oscillating) or at t=0 (frozen)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument(
        "--spectrum-method",
        choices=["direct", "fft"],
        default="direct",
        help="Direct O(N^2) transform or torch FFT",
    )
    parser.add_argument(
        "--sweep-parameter",
        choices=["temperature_K", "coupling_force_N"],
        default="temperature_K",
        help="Parameter to vary in sweep mode",
    )
    parser.add_argument(
        "--sweep-values",
        type=float,
        nargs="+",
        default=[250.0, 280.0, 310.0, 340.0, 370.0],
        help="Values of the sweep parameter",
    )
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    parser.add_argument("--no-save-data", action="store_true", help="Do not write HDF5 summaries")
    parser.add_argument("--save-plots", action="store_true", help="Save visualization plots")

    args = parser.parse_args()

    if args.mode == "list":
        list_artifacts()
        return

    if args.mode == "plot":
        if not args.artifact_dir:
            print("Error: --artifact-dir required for plot mode")
            return
        run_plotting_mode(args.artifact_dir)
        return

    try:
        config = create_experiment_config(
            temperature=args.temperature,
            magnetic_field=args.magnetic_field,
            coupling_force=args.coupling_force,
            time_step=args.time_step,
            total_time=args.total_time,
            coupling_mode=args.coupling_mode,
            seed=args.seed,
            spectrum_method=args.spectrum_method,
            show_progress=not args.no_progress,
            save_data=not args.no_save_data,
            save_plots=args.save_plots,
        )
    except SimulationError as e:
        print(f"Error: {e}")
        return

    if args.mode == "demo":
        demo_potential_features(config)

    elif args.mode == "single":
        try:
            result = run_single_simulation(config)
        except SimulationError as e:
            print(f"Simulation failed: {e}")
            return

        artifact_dir = archive_single_result(result, config)

        if args.save_plots:
            create_visualizations(result, output_dir=artifact_dir)

        print(f"Results saved to artifact directory: {artifact_dir}")

    elif args.mode == "sweep":
        try:
            results, sweep_artifact_dir = run_sweep(config, args.sweep_parameter, args.sweep_values)
        except SimulationError as e:
            print(f"Sweep failed: {e}")
            return

        print(f"\nCompleted {len(results)} simulations")
        if args.save_plots:
            create_sweep_visualizations(
                args.sweep_values,
                [r.metrics for r in results],
                args.sweep_parameter,
                sweep_artifact_dir,
            )


if __name__ == "__main__":
    main()
