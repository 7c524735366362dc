"""All-pairs O(N^2) enumeration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ..system.pbc import minimum_image
from .base import NeighborStrategy, PairBatch

if TYPE_CHECKING:
    from ..system import HalfBox, SimulationState


class NaiveStrategy(NeighborStrategy):
    """
    Brute-force pair enumeration over every ``i < j``.

    Serves as the correctness oracle for :class:`CellListStrategy` and as the
    fallback for small systems. Holds no internal structures.
    """

    name = "naive"
    rebuild_every_step = False

    def find_pairs(
        self, state: SimulationState, cutoff: float, pbc: HalfBox | None = None
    ) -> PairBatch:
        """Enumerate all pairs within ``cutoff`` by checking every pair."""
        n = state.n
        if n < 2:
            return PairBatch.empty()

        i_indices, j_indices = np.triu_indices(n, k=1)
        dr = state.positions[i_indices] - state.positions[j_indices]
        if pbc is not None:
            dr = minimum_image(dr, pbc)
        r2 = np.einsum("ij,ij->i", dr, dr)

        mask = r2 <= cutoff * cutoff
        return PairBatch(i_indices[mask], j_indices[mask], dr[mask], r2[mask])
