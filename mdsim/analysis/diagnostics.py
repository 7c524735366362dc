"""Energy, temperature and extrema snapshot of a simulation state."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from ..forcefields import ForceContext, ForceField
    from ..system import SimulationState


@dataclass(frozen=True)
class Diagnostics:
    """
    Physical metrics derived from the current state.

    Attributes:
        time: Simulation time.
        kinetic: Kinetic energy ``sum 0.5 * m * |v|^2``.
        potential: Sum of the active force fields' potentials.
        total: ``kinetic + potential``.
        temperature: Equipartition temperature with 3N - 3 degrees of freedom.
        max_speed: Largest particle speed.
        max_force_mag: Largest force magnitude.
    """

    time: float
    kinetic: float
    potential: float
    total: float
    temperature: float
    max_speed: float
    max_force_mag: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def kinetic_energy(state: SimulationState) -> float:
    """Return ``sum 0.5 * m_i * |v_i|^2`` with zero masses counted as 1."""
    speed2 = np.einsum("ij,ij->i", state.velocities, state.velocities)
    return float(0.5 * np.sum(state.inertial_masses * speed2))


def temperature_from_kinetic(kinetic: float, n: int, kB: float) -> float:
    """
    Convert kinetic energy to temperature via ``KE = (3N - 3)/2 kB T``.

    Three degrees of freedom are removed for center-of-mass motion, so the
    estimate needs at least two particles; 0.0 is returned otherwise.
    """
    dof = 3 * n - 3
    if dof <= 0:
        return 0.0
    return 2.0 * kinetic / (kB * dof)


def instantaneous_temperature(state: SimulationState, kB: float) -> float:
    """Return the instantaneous temperature of ``state``."""
    return temperature_from_kinetic(kinetic_energy(state), state.n, kB)


def compute_diagnostics(
    state: SimulationState,
    forces: Sequence[ForceField],
    ctx: ForceContext,
    kB: float,
) -> Diagnostics:
    """
    Produce a :class:`Diagnostics` snapshot.

    Does not mutate ``state``. The potential energy is recomputed by each
    force field independently of the force accumulation pass.

    Args:
        state: Current simulation state.
        forces: Active force fields.
        ctx: Force context (cutoff, neighbor strategy, periodic box).
        kB: Boltzmann constant in simulation units.

    Returns:
        Diagnostics for the current state.
    """
    kinetic = kinetic_energy(state)
    if state.n > 0:
        speeds = np.linalg.norm(state.velocities, axis=1)
        force_mags = np.linalg.norm(state.forces, axis=1)
        max_speed = float(np.max(speeds))
        max_force = float(np.max(force_mags))
    else:
        max_speed = 0.0
        max_force = 0.0

    potential = 0.0
    for field in forces:
        potential += field.potential(state, ctx)

    return Diagnostics(
        time=state.time,
        kinetic=kinetic,
        potential=potential,
        total=kinetic + potential,
        temperature=temperature_from_kinetic(kinetic, state.n, kB),
        max_speed=max_speed,
        max_force_mag=max_force,
    )
