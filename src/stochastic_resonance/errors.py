"""Exceptions raised by the simulation core."""


class SimulationError(Exception):
    """Base class for all simulation failures."""


class InvalidParameterError(SimulationError, ValueError):
    """Simulation parameters are out of range or inconsistent."""


class NumericInstabilityError(SimulationError, ArithmeticError):
    """Position or force became non-finite during integration."""

    def __init__(self, step: int, quantity: str, value: float):
        self.step = step
        self.quantity = quantity
        self.value = value
        super().__init__(f"{quantity} became non-finite ({value}) at step {step}")


class EmptySampleSetError(SimulationError, ValueError):
    """An analysis step received no samples to work on."""


class SimulationCancelledError(SimulationError):
    """The run was cancelled cooperatively before completion."""

    def __init__(self, step: int, n_steps: int):
        self.step = step
        self.n_steps = n_steps
        super().__init__(f"Simulation cancelled at step {step} of {n_steps}")
