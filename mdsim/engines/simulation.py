"""Single-step composition of state, force fields and integrator."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..forcefields import ForceContext
from ..system.state import zero_forces

if TYPE_CHECKING:
    from ..forcefields import ForceField
    from ..integrators import Integrator
    from ..neighborlists import NeighborStrategy
    from ..system import HalfBox, SimulationState


@dataclass(frozen=True)
class SimulationConfig:
    """Scalar parameters needed to step: timestep and cutoff."""

    dt: float
    cutoff: float


class Simulation:
    """
    State, force fields and an integrator stepped together.

    Has no knowledge of scheduling, events or persistence. Every force
    evaluation also records each field's contribution so the per-field
    arrays always sum to ``state.forces``.

    Example:
        sim = Simulation(state, VelocityVerletIntegrator(), [LennardJones(1, 1)],
                         SimulationConfig(dt=0.002, cutoff=2.5))
        sim.step()
    """

    def __init__(
        self,
        state: SimulationState,
        integrator: Integrator,
        forces: Sequence[ForceField],
        config: SimulationConfig,
        neighbors: NeighborStrategy | None = None,
        pbc: HalfBox | None = None,
    ) -> None:
        """
        Initialize simulation.

        Args:
            state: Mutable simulation state.
            integrator: Time integrator.
            forces: Force fields, applied in order.
            config: Timestep and cutoff.
            neighbors: Pair strategy (naive when omitted).
            pbc: Periodic box, or None for open boundaries.
        """
        self.state = state
        self.integrator = integrator
        self._forces = list(forces)
        self.config = config
        self.ctx = ForceContext(cutoff=config.cutoff, pbc=pbc)
        if neighbors is not None:
            self.ctx.neighbors = neighbors
        self._per_force: list[NDArray[np.floating]] = []
        self._ensure_buffers()

    @property
    def forces(self) -> list[ForceField]:
        """Active force fields (treat as read-only)."""
        return self._forces

    def add_force(self, force: ForceField) -> None:
        """Register a force field; it takes effect on the next step."""
        self._forces.append(force)

    def _ensure_buffers(self) -> None:
        shape = self.state.forces.shape
        if len(self._per_force) != len(self._forces) or any(
            arr.shape != shape for arr in self._per_force
        ):
            self._per_force = [np.zeros(shape) for _ in self._forces]

    def compute_forces(self) -> None:
        """Zero the accumulator and apply every force field, recording deltas."""
        self._ensure_buffers()
        zero_forces(self.state)
        forces = self.state.forces
        for field, out in zip(self._forces, self._per_force):
            base = forces.copy()
            field.apply(self.state, self.ctx)
            np.subtract(forces, base, out=out)

    def step(self) -> None:
        """Advance by one timestep."""
        self.compute_forces()
        self.integrator.step(self.state, self.config.dt, self.compute_forces)

    def get_per_force_contributions(self) -> dict[str, NDArray[np.floating]]:
        """
        Return each force field's share of the last force evaluation.

        Fields that share a name are summed into one entry, so the values
        always add up to the net force.

        Returns:
            Mapping of field name to an (N, 3) array.
        """
        self._ensure_buffers()
        out: dict[str, NDArray[np.floating]] = {}
        for field, arr in zip(self._forces, self._per_force):
            if field.name in out:
                out[field.name] += arr
            else:
                out[field.name] = arr.copy()
        return out
