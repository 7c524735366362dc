"""Newtonian gravity with Plummer softening."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .softened import SoftenedInverseSquare

if TYPE_CHECKING:
    from ...system import SimulationState


class Gravity(SoftenedInverseSquare):
    """
    Softened Newtonian gravity.

    V(r) = -G * m_i * m_j / sqrt(r^2 + eps^2)

    Unset (zero) masses count as unit mass.

    Attributes:
        G: Gravitational constant in simulation units.
        softening: Plummer softening length.
    """

    name = "gravity"

    def __init__(self, G: float, softening: float = 0.0) -> None:
        """
        Initialize gravity.

        Args:
            G: Gravitational constant (must be > 0 for attraction).
            softening: Plummer softening length; 0 gives exact Newtonian form.
        """
        super().__init__(-G, softening)
        self.G = G

    def pair_property(self, state: SimulationState) -> NDArray[np.floating]:
        return state.inertial_masses
