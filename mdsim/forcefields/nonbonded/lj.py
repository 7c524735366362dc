"""Lennard-Jones force implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..base import ForceContext, ForceField, accumulate_pair_forces

if TYPE_CHECKING:
    from ...system import SimulationState


class LennardJones(ForceField):
    """
    Lennard-Jones 12-6 potential with a single parameter set.

    V(r) = 4 * epsilon * [(sigma/r)^12 - (sigma/r)^6]

    Pairs beyond the context cutoff are ignored; no softening is applied.

    Attributes:
        epsilon: Well depth.
        sigma: Zero-crossing distance.
    """

    name = "lennard_jones"

    def __init__(self, epsilon: float, sigma: float) -> None:
        """
        Initialize Lennard-Jones force.

        Args:
            epsilon: Well depth.
            sigma: Size parameter.
        """
        self.epsilon = epsilon
        self.sigma = sigma

    def _powers(
        self, r2: NDArray[np.floating]
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        sr2 = self.sigma * self.sigma / r2
        sr6 = sr2 * sr2 * sr2
        return sr6, sr6 * sr6

    def apply(self, state: SimulationState, ctx: ForceContext) -> None:
        """Accumulate Lennard-Jones forces."""
        batch = ctx.pairs(state).select_nonzero()
        if len(batch) == 0:
            return

        sr6, sr12 = self._powers(batch.r2)
        # F = -dV/dr * r_hat, already divided by r^2 so it scales dr directly
        coeff = 24.0 * self.epsilon * (2.0 * sr12 - sr6) / batch.r2
        accumulate_pair_forces(state.forces, batch.i, batch.j, coeff, batch.dr)

    def potential(self, state: SimulationState, ctx: ForceContext) -> float:
        """Return the Lennard-Jones energy summed over pairs in range."""
        batch = ctx.pairs(state).select_nonzero()
        if len(batch) == 0:
            return 0.0

        sr6, sr12 = self._powers(batch.r2)
        return float(np.sum(4.0 * self.epsilon * (sr12 - sr6)))
