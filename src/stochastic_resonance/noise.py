"""Standard-normal noise sources for the Langevin integrator."""

import math
from typing import Iterable, Protocol

import torch

from .constants import DEFAULT_DEVICE, DEFAULT_DTYPE
from .errors import EmptySampleSetError


class NoiseSource(Protocol):
    """Anything that yields independent standard-normal variates."""

    def sample(self) -> float: ...


class RandomSource:
    """
    Box-Muller standard-normal generator backed by a torch Generator.

    Each call draws two fresh uniforms in (0, 1) and returns
    sqrt(-2 ln u) * cos(2 pi v). The paired sine variate is discarded unless
    ``cache_pair`` is set, in which case it is returned by the next call.
    """

    def __init__(
        self,
        seed: int | None = None,
        cache_pair: bool = False,
        device: str | torch.device = DEFAULT_DEVICE,
        dtype: torch.dtype = DEFAULT_DTYPE,
    ):
        self.device = device
        self.dtype = dtype
        self.cache_pair = cache_pair
        self._generator = torch.Generator(device=device)
        if seed is None:
            self._generator.seed()
        else:
            self._generator.manual_seed(int(seed))
        self._cached: float | None = None

    @property
    def initial_seed(self) -> int:
        return self._generator.initial_seed()

    def _open_uniform(self) -> float:
        """Uniform variate in (0, 1); zero is redrawn to keep log(u) finite."""
        u = 0.0
        while u == 0.0:
            u = torch.rand(
                1, generator=self._generator, device=self.device, dtype=self.dtype
            ).item()
        return u

    def sample(self) -> float:
        if self._cached is not None:
            value, self._cached = self._cached, None
            return value

        u = self._open_uniform()
        v = self._open_uniform()
        radius = math.sqrt(-2.0 * math.log(u))
        angle = 2.0 * math.pi * v

        if self.cache_pair:
            self._cached = radius * math.sin(angle)
        return radius * math.cos(angle)


class ReplayNoiseSource:
    """Replays a predetermined noise sequence, e.g. to reproduce a run exactly."""

    def __init__(self, values: Iterable[float]):
        self._values = [float(v) for v in values]
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    def __len__(self) -> int:
        return len(self._values)

    def sample(self) -> float:
        if self._position >= len(self._values):
            raise EmptySampleSetError(
                f"Replay noise exhausted after {len(self._values)} samples"
            )
        value = self._values[self._position]
        self._position += 1
        return value
