"""Base interface for integrators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..system import SimulationState

RecomputeForces = Callable[[], None]


class Integrator(ABC):
    """
    Abstract base class for time integration algorithms.

    Integrators update ``state`` in place. They read the forces already
    accumulated in ``state.forces`` and may call ``recompute_forces`` to
    refill the accumulator at the current positions.

    Attributes:
        name: Identifier used in configuration.
    """

    name: str = ""

    @abstractmethod
    def step(
        self, state: SimulationState, dt: float, recompute_forces: RecomputeForces
    ) -> None:
        """
        Advance the system by one time step.

        Args:
            state: Mutable simulation state.
            dt: Timestep.
            recompute_forces: Zeroes and refills ``state.forces`` at the
                current positions.
        """
        ...


class ThermostatModifier(ABC):
    """
    Abstract base class for thermostat modifiers.

    Thermostats are applied to velocities after integration to control
    temperature.
    """

    @abstractmethod
    def apply(self, state: SimulationState) -> None:
        """Modify ``state.velocities`` in place."""
        ...

    @property
    @abstractmethod
    def target_temperature(self) -> float:
        """Return target temperature."""
        ...
