"""Base interface for force fields."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..neighborlists import NaiveStrategy, NeighborStrategy

if TYPE_CHECKING:
    from ..neighborlists import PairBatch
    from ..system import HalfBox, SimulationState


@dataclass
class ForceContext:
    """
    Per-evaluation context shared by all force fields.

    The neighbor strategy is the single hook through which force fields
    enumerate pairs, so strategies can be swapped without touching any
    force code.

    Attributes:
        cutoff: Maximum pair interaction distance.
        neighbors: Active pair-enumeration strategy.
        pbc: Periodic box, or None for open boundaries.
    """

    cutoff: float
    neighbors: NeighborStrategy = field(default_factory=NaiveStrategy)
    pbc: HalfBox | None = None

    def pairs(self, state: SimulationState) -> PairBatch:
        """Enumerate pairs within the cutoff using the active strategy."""
        return self.neighbors.find_pairs(state, self.cutoff, self.pbc)


class ForceField(ABC):
    """
    Abstract base class for one physical interaction rule.

    Implementations only ADD into ``state.forces``; clearing the accumulator
    is the caller's job.

    Attributes:
        name: Short identifier used for per-force decomposition.
    """

    name: str = ""

    @abstractmethod
    def apply(self, state: SimulationState, ctx: ForceContext) -> None:
        """
        Accumulate this interaction's forces into ``state.forces``.

        Args:
            state: Current simulation state.
            ctx: Force evaluation context.
        """
        ...

    def potential(self, state: SimulationState, ctx: ForceContext) -> float:
        """
        Return the potential energy of this interaction.

        Fields without an energy expression contribute zero.
        """
        return 0.0


def accumulate_pair_forces(
    forces: NDArray[np.floating],
    i: NDArray[np.integer],
    j: NDArray[np.integer],
    coeff: NDArray[np.floating],
    dr: NDArray[np.floating],
) -> None:
    """
    Add ``coeff * dr`` to particle i and subtract it from particle j.

    Args:
        forces: Force accumulator, shape (N, 3).
        i: First particle indices, shape (M,).
        j: Second particle indices, shape (M,).
        coeff: Scalar coefficient per pair, shape (M,).
        dr: Displacements ``r_i - r_j``, shape (M, 3).
    """
    f = coeff[:, np.newaxis] * dr
    # Newton's third law
    np.add.at(forces, i, f)
    np.add.at(forces, j, -f)
