"""Thermostat implementations as composable modifiers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ..analysis.diagnostics import instantaneous_temperature
from .base import ThermostatModifier

if TYPE_CHECKING:
    from ..system import SimulationState


class VelocityRescaleThermostat(ThermostatModifier):
    """
    Simple velocity rescaling thermostat.

    Rescales all velocities to achieve exactly the target temperature.
    This gives the correct average kinetic energy but incorrect
    velocity distribution.

    Attributes:
        kB: Boltzmann constant in simulation units.
    """

    def __init__(self, temperature: float, kB: float) -> None:
        """
        Initialize velocity rescaling thermostat.

        Args:
            temperature: Target temperature.
            kB: Boltzmann constant used to convert kinetic energy.
        """
        self._temperature = temperature
        self.kB = kB

    @property
    def target_temperature(self) -> float:
        return self._temperature

    @target_temperature.setter
    def target_temperature(self, value: float) -> None:
        self._temperature = value

    def apply(self, state: SimulationState) -> None:
        """Rescale velocities in place by ``sqrt(T_target / T)``."""
        current_temp = instantaneous_temperature(state, self.kB)
        if not current_temp > 0 or not np.isfinite(current_temp):
            # Can't rescale from zero temperature
            return

        state.velocities *= np.sqrt(self._temperature / current_temp)
