"""Array and tensor conversion utilities."""

import numpy as np
import torch

from .constants import DEFAULT_DEVICE, DEFAULT_DTYPE


def convert_to_tensor(
    data: np.ndarray | torch.Tensor | float | list,
    device: str | torch.device = DEFAULT_DEVICE,
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> torch.Tensor:
    """Convert numpy array, scalar or tensor to specified device and dtype."""
    if isinstance(data, torch.Tensor):
        return data.to(device=device, dtype=dtype)
    if isinstance(data, np.ndarray):
        # torch.from_numpy shares memory and warns on read-only arrays
        if not data.flags.writeable:
            data = data.copy()
        return torch.from_numpy(data).to(device=device, dtype=dtype)
    return torch.as_tensor(data, device=device, dtype=dtype)


def as_readonly_array(values, dtype=np.float64) -> np.ndarray:
    """Copy ``values`` into a numpy array that cannot be modified in place."""
    array = np.array(values, dtype=dtype)
    array.setflags(write=False)
    return array
