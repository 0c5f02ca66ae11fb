#!/usr/bin/env python3
"""
Simple example script demonstrating the stochastic resonance package.

This script shows the basic usage pattern for running a simulation
and creating visualizations programmatically.
"""

from stochastic_resonance import (
    SimulationParams,
    SimulationRunner,
    StochasticResonanceVisualizer,
    save_simulation_summary,
)


def main():
    """Run a simple example simulation."""
    print("=== Stochastic Resonance Example ===")

    # 1. Describe the run
    params = SimulationParams(
        temperature_K=310.0,       # Thermal energy scale
        magnetic_field_T=50e-6,    # Informational only
        coupling_force_N=2.0e-12,  # Periodic forcing amplitude
        time_step_s=1e-10,
        total_time_s=2e-6,
        seed=7,
    )
    print(f"Running {params.n_steps:,} integration steps...")

    # 2. Run it
    runner = SimulationRunner(spectrum_method="fft")
    result = runner.run(params)
    print(result.summary())

    # 3. Save the summary (histogram, spectrum, metrics; no trajectory)
    save_path = save_simulation_summary(result, create_artifact_dir=True)
    print(f"Summary saved to: {save_path}")

    # 4. Create visualizations
    print("Creating visualizations...")
    visualizer = StochasticResonanceVisualizer.from_result(result)

    fig, ax = visualizer.plot_potential_landscape()
    fig.savefig(save_path.parent / "potential_landscape.png", dpi=300, bbox_inches="tight")

    fig, axes = visualizer.plot_summary(result)
    fig.savefig(save_path.parent / "summary.png", dpi=300, bbox_inches="tight")

    print(f"Plots saved to: {save_path.parent}")
    print("\nExample completed successfully!")


if __name__ == "__main__":
    main()
