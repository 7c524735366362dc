"""Pair enumeration strategies."""

from .base import NeighborStrategy, PairBatch, PairHandler
from .cell import CellListData, CellListStrategy
from .naive import NaiveStrategy

STRATEGIES = {
    NaiveStrategy.name: NaiveStrategy,
    CellListStrategy.name: CellListStrategy,
}

__all__ = [
    "NeighborStrategy",
    "PairBatch",
    "PairHandler",
    "NaiveStrategy",
    "CellListStrategy",
    "CellListData",
    "STRATEGIES",
]
