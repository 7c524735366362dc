"""Coulomb electrostatic force implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .softened import SoftenedInverseSquare

if TYPE_CHECKING:
    from ...system import SimulationState


class Coulomb(SoftenedInverseSquare):
    """
    Direct Coulomb interaction with optional softening.

    V(r) = K * q_i * q_j / sqrt(r^2 + eps^2)

    Like charges repel, opposite charges attract. For periodic systems use
    :class:`EwaldCoulomb` instead.

    Attributes:
        K: Coulomb constant in simulation units.
        softening: Plummer softening length.
    """

    name = "coulomb"

    def __init__(self, K: float, softening: float = 0.0) -> None:
        """
        Initialize Coulomb force.

        Args:
            K: Coulomb constant.
            softening: Plummer softening length.
        """
        super().__init__(K, softening)
        self.K = K

    def pair_property(self, state: SimulationState) -> NDArray[np.floating]:
        return state.charges
