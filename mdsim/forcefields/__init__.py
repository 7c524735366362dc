"""Force field implementations."""

from .base import ForceContext, ForceField, accumulate_pair_forces
from .nonbonded import (
    Coulomb,
    EwaldCoulomb,
    EwaldGravity,
    EwaldSum,
    Gravity,
    LennardJones,
    SoftenedInverseSquare,
    make_k_vectors,
)

__all__ = [
    "ForceField",
    "ForceContext",
    "accumulate_pair_forces",
    "Gravity",
    "Coulomb",
    "LennardJones",
    "EwaldSum",
    "EwaldGravity",
    "EwaldCoulomb",
    "SoftenedInverseSquare",
    "make_k_vectors",
]
