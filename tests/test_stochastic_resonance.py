"""Tests for the stochastic resonance simulation core."""

import dataclasses
import math
import sys
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np
import pytest
import torch

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stochastic_resonance import (
    DEFAULT_CONSTANTS,
    DoubleWellPotential,
    EmptySampleSetError,
    InvalidParameterError,
    LangevinIntegrator,
    NumericInstabilityError,
    RandomSource,
    ReplayNoiseSource,
    SimulationCancelledError,
    SimulationParams,
    SimulationRunner,
    calculate_snr,
    calculate_trajectory_statistics,
    compute_histogram,
    compute_power_spectrum,
    compute_step_count,
    create_experiment_config,
    generate_sweep_values,
    kramers_rate,
    params_from_config,
    run_parameter_sweep,
    run_simulation,
)
from stochastic_resonance.simulation import downsample_stride

X0 = DEFAULT_CONSTANTS.length_scale


class FlatPotential:
    """Zero-force stand-in so tests control the position through the noise alone."""

    def __init__(self, temperature: float = 300.0, force: float = 0.0):
        self.k_B_T = DEFAULT_CONSTANTS.boltzmann * temperature
        self._force = force

    def deterministic_force(self, x: float, t: float) -> float:
        return self._force


def short_params(**overrides) -> SimulationParams:
    """100-step run: dt = 1e-10 s, total = 1e-8 s."""
    values = dict(time_step_s=1e-10, total_time_s=1e-8, seed=1)
    values.update(overrides)
    return SimulationParams(**values)


def quiet_runner(**kwargs) -> SimulationRunner:
    return SimulationRunner(show_progress=False, **kwargs)


class TestConfig:
    """Test parameter handling and validation."""

    def test_step_count(self):
        assert compute_step_count(1e-8, 1e-10) == 100
        assert compute_step_count(1e-5, 1e-10) == 100_000
        assert compute_step_count(2.5e-10, 1e-10) == 2
        assert compute_step_count(1e-11, 1e-10) == 0

    def test_params_step_count(self):
        assert short_params().n_steps == 100

    def test_default_params_are_valid(self):
        params = SimulationParams()
        assert params.validate() is params
        assert params.coupling_mode == "oscillating"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"temperature_K": 0.0},
            {"temperature_K": -5.0},
            {"time_step_s": 0.0},
            {"total_time_s": 0.0},
            {"total_time_s": -1e-8},
            {"total_time_s": 1e-11},
            {"coupling_force_N": -1e-12},
            {"magnetic_field_T": -1e-6},
            {"temperature_K": float("nan")},
            {"coupling_force_N": float("inf")},
            {"coupling_mode": "sawtooth"},
        ],
    )
    def test_invalid_params(self, overrides):
        with pytest.raises(InvalidParameterError):
            short_params(**overrides).validate()

    def test_invalid_parameter_is_value_error(self):
        with pytest.raises(ValueError):
            short_params(temperature_K=-1.0).validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"temperature_K": np.float32(310.0)},
            {"temperature_K": np.float64(310.0)},
            {"temperature_K": np.int64(310)},
            {"coupling_force_N": np.float32(2e-12)},
            {"magnetic_field_T": np.float64(50e-6)},
            {"total_time_s": np.float64(1e-8)},
            {"seed": np.int64(3)},
            {"seed": np.int32(3)},
        ],
    )
    def test_numpy_scalars_are_valid(self, overrides):
        params = short_params(**overrides)
        assert params.validate() is params
        assert params.n_steps == 100

    @pytest.mark.parametrize("overrides", [{"temperature_K": True}, {"seed": 1.5}, {"seed": True}])
    def test_non_numeric_types_rejected(self, overrides):
        with pytest.raises(InvalidParameterError):
            short_params(**overrides).validate()

    def test_numpy_scalar_params_run(self):
        params = short_params(
            temperature_K=np.float32(310.0),
            coupling_force_N=np.float32(2e-12),
            seed=np.int64(3),
        )
        result = quiet_runner().run(params)

        assert result.n_steps == 100
        assert result.metrics.barrier_ratio == pytest.approx(6.0)
        assert type(result.metrics.switch_rate_Hz) is float
        assert result.trajectory.position_ratio.dtype == np.float64

    def test_experiment_config_round_trip(self):
        config = create_experiment_config(temperature=300.0, total_time=1e-8, seed=3)
        params = params_from_config(config)
        assert params.temperature_K == 300.0
        assert params.n_steps == 100
        assert params.seed == 3
        assert config["analysis"]["spectrum_method"] == "direct"

    def test_experiment_config_rejects_unknown_spectrum_method(self):
        with pytest.raises(InvalidParameterError):
            create_experiment_config(spectrum_method="welch")

    def test_sweep_values(self):
        assert generate_sweep_values(1.0, 3.0, 3) == pytest.approx([1.0, 2.0, 3.0])
        assert generate_sweep_values(1.0, 100.0, 3, scale="log") == pytest.approx(
            [1.0, 10.0, 100.0]
        )
        with pytest.raises(InvalidParameterError):
            generate_sweep_values(0.0, 10.0, 3, scale="log")
        with pytest.raises(InvalidParameterError):
            generate_sweep_values(1.0, 2.0, 0)


class TestRandomSource:
    """Test the Box-Muller noise source."""

    def test_seeded_sources_agree(self):
        a = RandomSource(seed=123)
        b = RandomSource(seed=123)
        assert [a.sample() for _ in range(10)] == [b.sample() for _ in range(10)]

    def test_standard_normal_moments(self):
        source = RandomSource(seed=0)
        values = np.array([source.sample() for _ in range(20_000)])
        assert np.all(np.isfinite(values))
        assert abs(values.mean()) < 0.05
        assert abs(values.std() - 1.0) < 0.05

    def test_cache_pair_returns_sine_partner(self):
        cached = RandomSource(seed=5, cache_pair=True)
        fresh = RandomSource(seed=5)

        first, partner, third = cached.sample(), cached.sample(), cached.sample()
        assert first == fresh.sample()
        assert third == fresh.sample()
        assert partner != first

    def test_replay_source(self):
        source = ReplayNoiseSource([0.5, -1.0])
        assert len(source) == 2
        assert source.sample() == 0.5
        assert source.sample() == -1.0
        assert source.position == 2
        with pytest.raises(EmptySampleSetError):
            source.sample()


class TestDoubleWellPotential:
    """Test the driven double-well force field."""

    def test_minima_and_barrier(self):
        potential = DoubleWellPotential(temperature=310.0)
        assert potential.ndims == 1
        assert potential.get_minima() == pytest.approx([-1.0, 1.0])
        assert potential.get_barrier() == 0.0

    @pytest.mark.parametrize("temperature", [1.0, 77.0, 310.0, 5000.0])
    def test_barrier_ratio(self, temperature):
        potential = DoubleWellPotential(temperature=temperature)
        assert potential.barrier_ratio == pytest.approx(6.0)

    def test_force_vanishes_at_minima(self):
        potential = DoubleWellPotential(temperature=310.0, coupling_force=0.0)
        for x in (-X0, 0.0, X0):
            assert potential.deterministic_force(x, 1e-3) == pytest.approx(0.0, abs=1e-20)

    def test_restoring_force(self):
        potential = DoubleWellPotential(temperature=310.0)
        # Beyond the right well the force pushes back towards it
        assert potential.deterministic_force(1.5 * X0, 0.0) < 0
        assert potential.deterministic_force(0.5 * X0, 0.0) > 0

    def test_frozen_coupling_is_zero(self):
        potential = DoubleWellPotential(
            temperature=310.0, coupling_force=2e-12, coupling_mode="frozen"
        )
        for t in (0.0, 1e-3, 2.5e-3, 7.7e-3):
            assert potential.coupling_force(t) == 0.0
            assert potential.coupling_signal(t) == 0.25

    def test_oscillating_coupling(self):
        potential = DoubleWellPotential(temperature=310.0, coupling_force=2e-12)
        quarter_period = 1.0 / (4 * 100.0)
        assert potential.coupling_force(0.0) == 0.0
        assert potential.coupling_force(quarter_period) == pytest.approx(2e-12 * 0.05)
        assert potential.coupling_force(3 * quarter_period) == pytest.approx(-2e-12 * 0.05)

    def test_tensor_force_matches_scalar(self):
        potential = DoubleWellPotential(temperature=310.0, coupling_force=2e-12)
        x = torch.linspace(-2 * X0, 2 * X0, 11, dtype=torch.float64)
        t = torch.full_like(x, 1.7e-3)
        forces = potential.force(x, t)

        assert forces.shape == (11,)
        for xi, fi in zip(x.tolist(), forces.tolist()):
            assert fi == pytest.approx(potential.deterministic_force(xi, 1.7e-3), rel=1e-9, abs=1e-24)

    def test_reduced_energy(self):
        potential = DoubleWellPotential(temperature=310.0)
        energy = potential.reduced_energy(np.array([-1.0, 0.0, 1.0]))
        assert energy.tolist() == pytest.approx([-6.0, 0.0, -6.0])

    def test_boltzmann_density_normalized(self):
        potential = DoubleWellPotential(temperature=310.0)
        x = torch.linspace(-2.0, 2.0, 801, dtype=torch.float64)
        density = potential.boltzmann_density(x)
        assert torch.trapezoid(density, x).item() == pytest.approx(1.0)
        assert torch.allclose(density, density.flip(0))
        assert density.argmax().item() in (200, 600)


class TestLangevinIntegrator:
    """Test the Euler-Maruyama integrator."""

    def _integrator(self, potential=None, noise=None, **kwargs) -> LangevinIntegrator:
        return LangevinIntegrator(
            potential=potential or FlatPotential(),
            noise=noise or ReplayNoiseSource([]),
            time_step=1e-10,
            show_progress=False,
            **kwargs,
        )

    def test_stride(self):
        assert downsample_stride(100) == 1
        assert downsample_stride(4999) == 1
        assert downsample_stride(12_000) == 2
        assert downsample_stride(100_000) == 20

    def test_step_count_scaling(self):
        integrator = self._integrator(noise=ReplayNoiseSource([0.0] * 100))
        result = integrator.integrate(100)

        assert result.n_steps == 100
        assert result.stride == 1
        assert result.n_samples == 100
        assert result.time_us[1] == pytest.approx(1e-10 * 1e6)

    def test_downsampling(self):
        integrator = self._integrator(noise=ReplayNoiseSource([0.0] * 12_000))
        result = integrator.integrate(12_000)

        assert result.stride == 2
        assert result.n_samples == 6000
        assert result.n_samples <= result.n_steps
        assert result.time_us[0] == 0.0
        assert result.time_us[1] == pytest.approx(2 * 1e-10 * 1e6)

    def test_rests_in_left_well_without_noise(self):
        potential = DoubleWellPotential(temperature=310.0, coupling_mode="frozen")
        integrator = self._integrator(potential=potential, noise=ReplayNoiseSource([0.0] * 200))
        result = integrator.integrate(200)

        assert np.allclose(result.position_ratio, -1.0, atol=1e-9)
        assert result.switch_count == 0

    def test_hysteresis_suppresses_small_crossings(self):
        integrator = self._integrator()
        c = X0 / integrator.noise_scale
        # Jump from -x0 to the barrier top, then rattle between +-0.05 x0
        values = [c] + [0.05 * c] + [(-0.1 * c if i % 2 == 0 else 0.1 * c) for i in range(48)]
        integrator.noise = ReplayNoiseSource(values)

        result = integrator.integrate(len(values))
        assert result.switch_count == 0
        assert np.all(np.abs(result.position_ratio[1:]) <= 0.1)

    def test_counts_crossings_beyond_threshold(self):
        integrator = self._integrator()
        c = X0 / integrator.noise_scale
        integrator.noise = ReplayNoiseSource([1.5 * c, -1.0 * c, -1.0 * c, 0.05 * c])

        result = integrator.integrate(4)
        assert result.position_ratio.tolist() == pytest.approx([0.5, -0.5, -1.5, -1.45])
        assert result.switch_count == 2

    def test_non_finite_position_fails_fast(self):
        integrator = self._integrator(noise=ReplayNoiseSource([0.0, float("nan"), 0.0]))
        with pytest.raises(NumericInstabilityError) as excinfo:
            integrator.integrate(3)
        assert excinfo.value.step == 1
        assert excinfo.value.quantity == "position"

    def test_non_finite_force_fails_fast(self):
        integrator = self._integrator(
            potential=FlatPotential(force=float("inf")), noise=ReplayNoiseSource([0.0])
        )
        with pytest.raises(NumericInstabilityError) as excinfo:
            integrator.integrate(1)
        assert excinfo.value.quantity == "force"

    def test_progress_callback(self):
        fractions = []
        integrator = self._integrator(
            noise=ReplayNoiseSource([0.0] * 100), progress_callback=fractions.append
        )
        integrator.integrate(100)

        assert fractions[0] == 0.0
        assert fractions[-1] == 1.0
        assert len(fractions) == 21
        assert fractions == sorted(fractions)

    def test_cancellation(self):
        event = threading.Event()
        event.set()
        integrator = self._integrator(noise=ReplayNoiseSource([0.0] * 10), cancel_event=event)
        with pytest.raises(SimulationCancelledError):
            integrator.integrate(10)

    def test_rejects_non_positive_steps(self):
        with pytest.raises(InvalidParameterError):
            self._integrator().integrate(0)


class TestStatistics:
    """Test moments and histogram density."""

    def test_population_moments(self):
        stats = calculate_trajectory_statistics([1.0, 2.0, 3.0, 4.0])
        assert stats.mean == pytest.approx(2.5)
        assert stats.std_dev == pytest.approx(math.sqrt(1.25))

    def test_histogram_layout(self):
        histogram = compute_histogram([0.01])
        assert len(histogram.centers) == 50
        assert histogram.bin_width == pytest.approx(0.08)
        assert histogram.centers[0] == pytest.approx(-1.96)
        assert histogram.centers[-1] == pytest.approx(1.96)
        assert histogram.counts[25] == 1

    def test_histogram_normalization(self):
        rng = np.random.default_rng(0)
        samples = rng.uniform(-1.99, 1.99, size=5000)
        histogram = compute_histogram(samples)

        assert histogram.n_binned == 5000
        assert np.sum(histogram.density * histogram.bin_width) == pytest.approx(1.0)

    def test_out_of_range_samples_dropped(self):
        histogram = compute_histogram([-3.0, -2.0, 0.5, 2.0, 2.5])

        assert histogram.n_samples == 5
        assert histogram.n_binned == 2
        assert histogram.counts[0] == 1
        assert histogram.counts[-1] == 0
        assert np.sum(histogram.density * histogram.bin_width) == pytest.approx(2 / 5)

    def test_empty_samples(self):
        with pytest.raises(EmptySampleSetError):
            calculate_trajectory_statistics([])
        with pytest.raises(EmptySampleSetError):
            compute_histogram(np.array([]))

    def test_kramers_rate(self):
        potential = DoubleWellPotential(temperature=310.0)
        a = potential.get_parameters()["a"]
        expected = math.sqrt(2.0) * a / (2 * math.pi * DEFAULT_CONSTANTS.friction) * math.exp(-6.0)
        assert kramers_rate(potential) == pytest.approx(expected)


class TestPowerSpectrum:
    """Test the discrete power spectrum and SNR."""

    def test_constant_signal_only_has_dc_power(self):
        spectrum = compute_power_spectrum(np.full(256, 0.5))

        assert len(spectrum) == 100
        assert spectrum.log10_power[0] == pytest.approx(math.log10(0.25 + 1e-10))
        assert spectrum.log10_power[1:] == pytest.approx(np.full(99, -10.0), abs=1e-6)

    def test_sinusoid_peak(self):
        n = 64
        samples = np.cos(2 * np.pi * 8 * np.arange(n) / n)
        spectrum = compute_power_spectrum(samples)

        assert len(spectrum) == 32
        assert int(np.argmax(spectrum.log10_power)) == 8
        assert spectrum.log10_power[8] == pytest.approx(math.log10(0.25 + 1e-10))
        assert spectrum.frequencies[8] == 80.0

    def test_window_and_truncation(self):
        rng = np.random.default_rng(1)
        long = compute_power_spectrum(rng.standard_normal(3000))
        assert long.window_size == 1024
        assert len(long) == 100

        short = compute_power_spectrum(rng.standard_normal(150))
        assert short.window_size == 150
        assert len(short) == 75

        full = compute_power_spectrum(rng.standard_normal(3000), max_entries=None)
        assert len(full) == 512

    def test_fft_matches_direct(self):
        samples = np.random.default_rng(2).standard_normal(1024)
        direct = compute_power_spectrum(samples, method="direct", max_entries=None)
        fft = compute_power_spectrum(samples, method="fft", max_entries=None)
        np.testing.assert_allclose(fft.log10_power, direct.log10_power, atol=1e-8)

    def test_physical_frequency_axis(self):
        spectrum = compute_power_spectrum(np.zeros(200), sample_interval_s=1e-9)
        assert spectrum.physical_frequencies_Hz[1] == pytest.approx(1.0 / (200 * 1e-9))

    def test_snr(self):
        spectrum = compute_power_spectrum(np.full(64, 1.0))
        expected = spectrum.log10_power.max() - spectrum.log10_power.mean()
        assert calculate_snr(spectrum) == pytest.approx(expected)

    def test_single_sample_has_empty_spectrum(self):
        spectrum = compute_power_spectrum([0.3])
        assert len(spectrum) == 0
        assert calculate_snr(spectrum) == 0.0

    def test_read_only_samples(self):
        samples = np.cos(np.arange(64.0))
        samples.setflags(write=False)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            spectrum = compute_power_spectrum(samples)
        assert len(spectrum) == 32

    def test_invalid_input(self):
        with pytest.raises(EmptySampleSetError):
            compute_power_spectrum([])
        with pytest.raises(InvalidParameterError):
            compute_power_spectrum([1.0, 2.0], method="welch")


class TestSimulationRunner:
    """Test the end-to-end run."""

    def test_short_run(self):
        result = quiet_runner().run(short_params())

        assert result.n_steps == 100
        assert result.stride == 1
        assert result.n_samples == 100
        assert len(result.trajectory) == 100
        assert len(result.histogram.centers) == 50
        assert len(result.spectrum) == 50
        assert np.all(np.isfinite(result.trajectory.position_ratio))
        assert result.metrics.switch_count >= 0
        assert result.metrics.switch_rate_Hz == pytest.approx(result.metrics.switch_count / 1e-8)

        assert result.trajectory.samples()[1] == pytest.approx((1e-4, result.trajectory.position_ratio[1]))
        assert len(result.histogram.entries()) == 50
        assert result.spectrum.entries()[2][0] == 20.0

    def test_replayed_noise_is_deterministic(self):
        source = RandomSource(seed=11)
        noise = [source.sample() for _ in range(100)]
        runner = quiet_runner(noise_factory=lambda params: ReplayNoiseSource(noise))

        first = runner.run(short_params(seed=None))
        second = runner.run(short_params(seed=None))

        assert np.array_equal(first.trajectory.position_ratio, second.trajectory.position_ratio)
        assert np.array_equal(first.trajectory.time_us, second.trajectory.time_us)
        assert np.array_equal(first.histogram.density, second.histogram.density)
        assert np.array_equal(first.spectrum.log10_power, second.spectrum.log10_power)
        assert first.metrics == second.metrics

    def test_seeded_runs_are_reproducible(self):
        first = quiet_runner().run(short_params(seed=99))
        second = quiet_runner().run(short_params(seed=99))
        assert first.metrics == second.metrics
        assert np.array_equal(first.trajectory.position_ratio, second.trajectory.position_ratio)

    @pytest.mark.parametrize("temperature", [10.0, 310.0, 1000.0])
    def test_barrier_ratio_invariant(self, temperature):
        result = quiet_runner().run(short_params(temperature_K=temperature, coupling_force_N=5e-12))
        assert result.metrics.barrier_ratio == pytest.approx(6.0)

    def test_validation_happens_before_any_work(self):
        calls = []

        def factory(params):
            calls.append(params)
            return RandomSource(seed=0)

        with pytest.raises(InvalidParameterError):
            quiet_runner(noise_factory=factory).run(short_params(total_time_s=0.0))
        assert calls == []

    def test_output_caps(self):
        result = quiet_runner(spectrum_method="fft").run(
            short_params(total_time_s=1e-6)
        )

        assert result.n_steps == 10_000
        assert result.stride == 2
        assert result.n_samples == 5000
        assert len(result.trajectory) == 2000
        assert result.histogram.n_samples == 5000
        assert result.spectrum.window_size == 1024
        assert len(result.spectrum) == 100

    def test_result_is_immutable(self):
        result = quiet_runner().run(short_params())
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.metrics = None
        with pytest.raises(ValueError):
            result.trajectory.position_ratio[0] = 0.0

    def test_run_simulation_shortcut(self):
        result = run_simulation(short_params(), show_progress=False)
        assert result.params == short_params()
        assert "switches" in result.summary()

    def test_unknown_spectrum_method(self):
        with pytest.raises(InvalidParameterError):
            SimulationRunner(spectrum_method="welch")

    def test_quiet_runner_prints_nothing(self, capsys):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            quiet_runner().run(short_params())
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_progress_runner_reports_start(self, capsys):
        SimulationRunner(show_progress=True).run(short_params())
        assert "Starting simulation for 100 steps" in capsys.readouterr().out

    def test_concurrent_runs_match_sequential(self):
        params = [short_params(seed=s) for s in (1, 2, 3)]
        sequential = [quiet_runner().run(p).metrics for p in params]
        with ThreadPoolExecutor(max_workers=3) as pool:
            concurrent = list(pool.map(lambda p: quiet_runner().run(p).metrics, params))
        assert concurrent == sequential


class TestParameterSweep:
    """Test independent runs over a parameter."""

    def test_temperature_sweep(self):
        results = run_parameter_sweep(
            short_params(seed=10), "temperature_K", [200.0, 300.0, 400.0], runner=quiet_runner()
        )

        assert [r.params.temperature_K for r in results] == [200.0, 300.0, 400.0]
        assert [r.params.seed for r in results] == [10, 11, 12]
        assert all(r.metrics.barrier_ratio == pytest.approx(6.0) for r in results)

    def test_quiet_sweep_prints_nothing(self, capsys):
        run_parameter_sweep(short_params(), "coupling_force_N", [0.0, 1e-12], runner=quiet_runner())
        assert capsys.readouterr().out == ""

    def test_rejects_unknown_parameter(self):
        with pytest.raises(InvalidParameterError):
            run_parameter_sweep(short_params(), "time_step_s", [1e-10])

    def test_validates_all_points_first(self):
        calls = []

        def factory(params):
            calls.append(params)
            return RandomSource(seed=0)

        with pytest.raises(InvalidParameterError):
            run_parameter_sweep(
                short_params(),
                "temperature_K",
                [300.0, -1.0],
                runner=quiet_runner(noise_factory=factory),
            )
        assert calls == []


def test_integration():
    """Integration test of the full pipeline on a longer run."""
    params = SimulationParams(
        temperature_K=310.0,
        coupling_force_N=2e-12,
        time_step_s=1e-10,
        total_time_s=2e-6,
        seed=2024,
    )
    result = quiet_runner().run(params)

    assert result.n_steps == 20_000
    assert result.n_samples == 5000
    assert result.metrics.std_dev > 0
    assert np.sum(result.histogram.density * result.histogram.bin_width) <= 1.0 + 1e-12
    assert np.all(result.spectrum.log10_power >= -10.0 - 1e-9)
    assert result.metrics.kramers_rate_Hz > 0


if __name__ == "__main__":
    pytest.main([__file__])
