"""System state, periodic boundaries and seeding."""

from .pbc import (
    HalfBox,
    WrapCrossing,
    WrapRecord,
    WrapSurface,
    format_wrap_records,
    minimum_image,
    minimum_image_displacement,
    wrap_into_box,
    wrap_positions,
    wrap_positions_with_tracking,
)
from .seeding import (
    circular_orbit_velocity,
    compute_softening_length,
    generate_masses_charges,
    generate_positions,
)
from .state import SimulationParams, SimulationState, create_state, zero_forces

__all__ = [
    "HalfBox",
    "SimulationParams",
    "SimulationState",
    "create_state",
    "zero_forces",
    "wrap_into_box",
    "wrap_positions",
    "minimum_image",
    "minimum_image_displacement",
    "wrap_positions_with_tracking",
    "format_wrap_records",
    "WrapRecord",
    "WrapSurface",
    "WrapCrossing",
    "compute_softening_length",
    "generate_masses_charges",
    "generate_positions",
    "circular_orbit_velocity",
]
