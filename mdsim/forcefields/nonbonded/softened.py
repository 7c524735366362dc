"""Plummer-softened inverse-square interactions."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..base import ForceContext, ForceField, accumulate_pair_forces

if TYPE_CHECKING:
    from ...system import SimulationState


class SoftenedInverseSquare(ForceField):
    """
    Pairwise ``1/r^2`` force between per-particle properties.

    V(r) = p * a_i * a_j / sqrt(r^2 + eps^2)

    F_i = p * a_i * a_j * (r_i - r_j) / (r^2 + eps^2)^{3/2}

    A negative prefactor ``p`` makes the interaction attractive. A softening
    of zero restores the exact inverse-square law.

    Attributes:
        prefactor: Signed coupling constant.
        softening: Plummer softening length (>= 0).
    """

    def __init__(self, prefactor: float, softening: float = 0.0) -> None:
        self.prefactor = prefactor
        self.softening = softening

    @abstractmethod
    def pair_property(self, state: SimulationState) -> NDArray[np.floating]:
        """Return the per-particle property the interaction couples to."""
        ...

    def _eps2(self) -> float:
        return self.softening * self.softening if self.softening > 0 else 0.0

    def apply(self, state: SimulationState, ctx: ForceContext) -> None:
        """Accumulate softened inverse-square forces."""
        batch = ctx.pairs(state).select_nonzero()
        if len(batch) == 0:
            return

        prop = self.pair_property(state)
        s2 = batch.r2 + self._eps2()
        coeff = self.prefactor * prop[batch.i] * prop[batch.j] / (s2 * np.sqrt(s2))
        accumulate_pair_forces(state.forces, batch.i, batch.j, coeff, batch.dr)

    def potential(self, state: SimulationState, ctx: ForceContext) -> float:
        """Return the softened pair potential summed over pairs in range."""
        batch = ctx.pairs(state).select_nonzero()
        if len(batch) == 0:
            return 0.0

        prop = self.pair_property(state)
        s2 = batch.r2 + self._eps2()
        return float(
            np.sum(self.prefactor * prop[batch.i] * prop[batch.j] / np.sqrt(s2))
        )
