"""Nonbonded interaction terms."""

from .coulomb import Coulomb
from .ewald import EwaldCoulomb, EwaldGravity, EwaldSum, make_k_vectors
from .gravity import Gravity
from .lj import LennardJones
from .softened import SoftenedInverseSquare

__all__ = [
    "Gravity",
    "Coulomb",
    "LennardJones",
    "EwaldSum",
    "EwaldGravity",
    "EwaldCoulomb",
    "SoftenedInverseSquare",
    "make_k_vectors",
]
