"""HDF5 archiving of simulation summaries.

Only derived quantities are written: histogram, spectrum, metrics, params and
run metadata. Trajectories are never persisted.
"""

import time
from datetime import datetime
from pathlib import Path

import h5py
import numpy as np

from .config import SimulationParams
from .data import as_readonly_array
from .results import Histogram, Metrics, PowerSpectrum, SimulationResult

FORMAT_VERSION = "1.0"


def _ensure_directory_exists(path: Path) -> None:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)


def _decode(value):
    if isinstance(value, bytes):
        return value.decode()
    if isinstance(value, np.generic):
        return value.item()
    return value


def _save_hdf5_file(result: SimulationResult, filepath: Path) -> None:
    """Save a simulation summary to an HDF5 file."""
    with h5py.File(filepath, "w") as f:
        histogram = f.create_group("histogram")
        histogram.create_dataset("centers", data=result.histogram.centers)
        histogram.create_dataset("density", data=result.histogram.density)
        histogram.create_dataset("counts", data=result.histogram.counts)
        histogram.attrs["bin_width"] = result.histogram.bin_width
        histogram.attrs["n_samples"] = result.histogram.n_samples

        spectrum = f.create_group("spectrum")
        spectrum.create_dataset("frequencies", data=result.spectrum.frequencies)
        spectrum.create_dataset("log10_power", data=result.spectrum.log10_power)
        if result.spectrum.physical_frequencies_Hz is not None:
            spectrum.create_dataset(
                "physical_frequencies_Hz", data=result.spectrum.physical_frequencies_Hz
            )
        spectrum.attrs["window_size"] = result.spectrum.window_size

        metrics = f.create_group("metrics")
        for key, value in result.metrics.to_dict().items():
            metrics.attrs[key] = value

        # h5py attributes cannot hold None, so unset fields are simply omitted
        params = f.create_group("params")
        for key, value in result.params.to_dict().items():
            if value is not None:
                params.attrs[key] = value

        metadata = f.create_group("metadata")
        metadata.attrs["n_steps"] = result.n_steps
        metadata.attrs["stride"] = result.stride
        metadata.attrs["n_samples"] = result.n_samples
        metadata.attrs["wall_time_s"] = result.wall_time_s
        metadata.attrs["timestamp"] = time.time()
        metadata.attrs["format_version"] = FORMAT_VERSION


def _load_hdf5_file(filepath: Path) -> dict:
    """Load a simulation summary from an HDF5 file."""
    data = {}
    with h5py.File(filepath, "r") as f:
        histogram = f["histogram"]
        data["histogram"] = {name: histogram[name][:] for name in histogram.keys()}
        data["histogram"].update({k: _decode(v) for k, v in histogram.attrs.items()})

        spectrum = f["spectrum"]
        data["spectrum"] = {name: spectrum[name][:] for name in spectrum.keys()}
        data["spectrum"].update({k: _decode(v) for k, v in spectrum.attrs.items()})

        data["metrics"] = {k: _decode(v) for k, v in f["metrics"].attrs.items()}
        data["params"] = {k: _decode(v) for k, v in f["params"].attrs.items()}
        data["params"].setdefault("seed", None)
        data["metadata"] = {k: _decode(v) for k, v in f["metadata"].attrs.items()}

    return data


def generate_timestamp_filename(base_name: str, extension: str = "h5") -> str:
    """Generate a timestamped filename for unique file identification."""
    timestamp = int(time.time())
    return f"{base_name}_{timestamp}.{extension}"


def create_artifact_directory(base_dir: str | Path = "artifacts") -> Path:
    """Create a timestamped artifact directory for storing summaries and plots."""
    base_path = Path(base_dir)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    artifact_path = base_path / timestamp
    _ensure_directory_exists(artifact_path)
    return artifact_path


def get_artifact_directories(base_dir: str | Path = "artifacts") -> list[Path]:
    """Get list of all artifact directories sorted by creation time."""
    base_path = Path(base_dir)
    if not base_path.exists():
        return []

    artifact_dirs = [d for d in base_path.iterdir() if d.is_dir()]
    return sorted(artifact_dirs, key=lambda x: x.name)


def save_simulation_summary(
    result: SimulationResult,
    output_dir: str | Path | None = None,
    filename: str | None = None,
    create_artifact_dir: bool = False,
) -> Path:
    """Save a simulation summary to an HDF5 file with automatic directory creation.

    Args:
        result: Result of a single run
        output_dir: Output directory path. If None and create_artifact_dir is True,
                   creates a new timestamped artifact directory
        filename: Output filename. If None, generates timestamped name
        create_artifact_dir: If True, creates a new timestamped artifact directory

    Returns:
        Path to saved file
    """
    if create_artifact_dir:
        output_path = create_artifact_directory()
    elif output_dir is None:
        output_path = Path("simulation_data")
    else:
        output_path = Path(output_dir)

    _ensure_directory_exists(output_path)

    if filename is None:
        filename = generate_timestamp_filename("summary")

    if not filename.endswith(".h5"):
        filename += ".h5"

    filepath = output_path / filename
    _save_hdf5_file(result, filepath)

    print(f"Simulation summary saved to: {filepath}")
    return filepath


def load_simulation_summary(filepath: str | Path) -> dict:
    """Load a simulation summary from an HDF5 file."""
    return _load_hdf5_file(Path(filepath))


def load_artifact_summaries(artifact_dir: str | Path) -> list[dict]:
    """Load every summary in an artifact directory, in filename order."""
    artifact_path = Path(artifact_dir)
    if not artifact_path.exists() or not artifact_path.is_dir():
        raise ValueError(f"Artifact directory does not exist: {artifact_path}")

    return [load_simulation_summary(p) for p in sorted(artifact_path.glob("*.h5"))]


def batch_save_summaries(
    results: list[SimulationResult],
    output_dir: str | Path = "simulation_data",
    base_filename: str = "summary",
) -> list[Path]:
    """Save multiple run summaries with indexed filenames."""
    output_path = Path(output_dir)
    _ensure_directory_exists(output_path)

    saved_paths = []

    for i, result in enumerate(results):
        filepath = output_path / f"{base_filename}_{i:03d}.h5"
        _save_hdf5_file(result, filepath)
        saved_paths.append(filepath)

    print(f"Saved {len(results)} summary files to {output_path}")
    return saved_paths


def summary_histogram(data: dict) -> Histogram:
    """Rebuild the Histogram stored in a loaded summary."""
    h = data["histogram"]
    return Histogram(
        centers=as_readonly_array(h["centers"]),
        density=as_readonly_array(h["density"]),
        counts=as_readonly_array(h["counts"], dtype=np.int64),
        bin_width=float(h["bin_width"]),
        n_samples=int(h["n_samples"]),
    )


def summary_spectrum(data: dict) -> PowerSpectrum:
    """Rebuild the PowerSpectrum stored in a loaded summary."""
    s = data["spectrum"]
    physical = s.get("physical_frequencies_Hz")
    return PowerSpectrum(
        frequencies=as_readonly_array(s["frequencies"]),
        log10_power=as_readonly_array(s["log10_power"]),
        window_size=int(s["window_size"]),
        physical_frequencies_Hz=None if physical is None else as_readonly_array(physical),
    )


def summary_metrics(data: dict) -> Metrics:
    return Metrics(**data["metrics"])


def summary_params(data: dict) -> SimulationParams:
    return SimulationParams(**data["params"])
