"""Discrete power spectrum of a trajectory and the derived SNR metric."""

import math

import numpy as np
import torch
from torch import Tensor

from .config import SPECTRUM_METHODS
from .constants import (
    DEFAULT_DEVICE,
    DEFAULT_DTYPE,
    FREQUENCY_STEP,
    LOG_POWER_FLOOR,
    SPECTRUM_OUTPUT_CAP,
    SPECTRUM_WINDOW,
)
from .data import as_readonly_array, convert_to_tensor
from .errors import EmptySampleSetError, InvalidParameterError
from .results import PowerSpectrum


def _direct_transform(data: Tensor, n_freqs: int) -> tuple[Tensor, Tensor]:
    """O(N^2) DFT: real = sum x cos(2 pi k n / N), imag = -sum x sin(...)."""
    n = data.shape[0]
    k = torch.arange(n_freqs, device=data.device, dtype=torch.int64)
    idx = torch.arange(n, device=data.device, dtype=torch.int64)
    # Reduce k*n modulo N before scaling to keep the phase accurate
    phase = torch.remainder(torch.outer(k, idx), n).to(data.dtype)
    angle = (2.0 * math.pi / n) * phase
    real = torch.cos(angle) @ data
    imag = -(torch.sin(angle) @ data)
    return real, imag


def _fft_transform(data: Tensor, n_freqs: int) -> tuple[Tensor, Tensor]:
    coefficients = torch.fft.fft(data)[:n_freqs]
    return coefficients.real, coefficients.imag


def compute_power_spectrum(
    samples,
    method: str = "direct",
    sample_interval_s: float | None = None,
    window: int = SPECTRUM_WINDOW,
    max_entries: int | None = SPECTRUM_OUTPUT_CAP,
    device: str | torch.device = DEFAULT_DEVICE,
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> PowerSpectrum:
    """Compute log10 power of the first ``window`` samples.

    Frequency indices run over k = 0 .. N // 2 - 1 with
    power = (real^2 + imag^2) / N^2 and log10(power + 1e-10). The frequency
    axis is k * 10 in arbitrary units; when ``sample_interval_s`` is given the
    physical axis k / (N * sample_interval_s) is reported alongside.
    """
    if method not in SPECTRUM_METHODS:
        raise InvalidParameterError(
            f"Unknown spectrum method: {method}. Available methods: {list(SPECTRUM_METHODS)}"
        )
    if window <= 0:
        raise InvalidParameterError(f"window must be positive, got {window}")

    values = np.asarray(samples, dtype=np.float64).reshape(-1)
    if values.size == 0:
        raise EmptySampleSetError("Power spectrum needs at least one sample")

    n = min(window, values.size)
    n_freqs = n // 2
    if max_entries is not None:
        n_freqs = min(n_freqs, max_entries)

    data = convert_to_tensor(values[:n], device=device, dtype=dtype)
    transform = _direct_transform if method == "direct" else _fft_transform
    with torch.no_grad():
        real, imag = transform(data, n_freqs)
        power = (real * real + imag * imag) / (n * n)
        log10_power = torch.log10(power + LOG_POWER_FLOOR)

    k = np.arange(n_freqs, dtype=np.float64)
    physical = None
    if sample_interval_s is not None:
        if sample_interval_s <= 0:
            raise InvalidParameterError(
                f"sample_interval_s must be positive, got {sample_interval_s}"
            )
        physical = as_readonly_array(k / (n * sample_interval_s))

    return PowerSpectrum(
        frequencies=as_readonly_array(k * FREQUENCY_STEP),
        log10_power=as_readonly_array(log10_power.detach().cpu().numpy()),
        window_size=n,
        physical_frequencies_Hz=physical,
    )


def calculate_snr(spectrum: PowerSpectrum) -> float:
    """Peak minus mean log10 power; 0 for an empty spectrum."""
    if len(spectrum) == 0:
        return 0.0
    log_power = spectrum.log10_power
    return float(log_power.max() - log_power.mean())
