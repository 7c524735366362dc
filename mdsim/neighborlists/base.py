"""Base interface for pair-iteration strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..system import HalfBox, SimulationState

PairHandler = Callable[[int, int, float, float, float, float], None]


@dataclass
class PairBatch:
    """
    Unordered particle pairs within the cutoff.

    Every entry satisfies ``i < j``. ``dr`` is the displacement ``r_i - r_j``
    (minimum image when periodic) and ``r2`` its squared length.

    Attributes:
        i: First particle indices, shape (M,).
        j: Second particle indices, shape (M,).
        dr: Displacements, shape (M, 3).
        r2: Squared distances, shape (M,).
    """

    i: NDArray[np.integer]
    j: NDArray[np.integer]
    dr: NDArray[np.floating]
    r2: NDArray[np.floating]

    def __len__(self) -> int:
        return len(self.i)

    @classmethod
    def empty(cls) -> PairBatch:
        return cls(
            i=np.empty(0, dtype=np.int64),
            j=np.empty(0, dtype=np.int64),
            dr=np.empty((0, 3), dtype=np.float64),
            r2=np.empty(0, dtype=np.float64),
        )

    def select(self, mask: NDArray[np.bool_]) -> PairBatch:
        """Return the subset of pairs where ``mask`` is true."""
        return PairBatch(self.i[mask], self.j[mask], self.dr[mask], self.r2[mask])

    def select_nonzero(self) -> PairBatch:
        """Drop coincident pairs (``r2 == 0``), which carry no direction."""
        return self.select(self.r2 > 0.0)


class NeighborStrategy(ABC):
    """
    Abstract base class for pair enumeration.

    A strategy enumerates each unordered pair ``i < j`` whose (minimum-image)
    separation is within the cutoff exactly once. Force fields reach the
    active strategy only through :class:`~mdsim.forcefields.ForceContext`, so
    strategies can be swapped without touching force code.

    Attributes:
        name: Strategy identifier used in configuration.
        rebuild_every_step: Whether the engine should call :meth:`rebuild`
            before each step.
    """

    name: str = ""
    rebuild_every_step: bool = False

    def rebuild(
        self, state: SimulationState, cutoff: float, pbc: HalfBox | None = None
    ) -> None:
        """
        Rebuild internal structures for the current positions.

        Args:
            state: Current simulation state.
            cutoff: Interaction cutoff.
            pbc: Periodic box, or None for open boundaries.
        """

    @abstractmethod
    def find_pairs(
        self, state: SimulationState, cutoff: float, pbc: HalfBox | None = None
    ) -> PairBatch:
        """
        Enumerate all pairs within ``cutoff``.

        Args:
            state: Current simulation state.
            cutoff: Interaction cutoff (inclusive).
            pbc: Periodic box, or None for open boundaries.

        Returns:
            Batch of pairs with ``i < j``.
        """
        ...

    def for_each_pair(
        self,
        state: SimulationState,
        cutoff: float,
        handler: PairHandler,
        pbc: HalfBox | None = None,
    ) -> None:
        """
        Call ``handler(i, j, dx, dy, dz, r2)`` once per pair within ``cutoff``.

        Args:
            state: Current simulation state.
            cutoff: Interaction cutoff (inclusive).
            handler: Callback receiving each pair.
            pbc: Periodic box, or None for open boundaries.
        """
        batch = self.find_pairs(state, cutoff, pbc)
        for k in range(len(batch)):
            dx, dy, dz = batch.dr[k]
            handler(
                int(batch.i[k]),
                int(batch.j[k]),
                float(dx),
                float(dy),
                float(dz),
                float(batch.r2[k]),
            )
