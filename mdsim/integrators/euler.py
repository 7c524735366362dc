"""Explicit Euler integrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .base import Integrator, RecomputeForces

if TYPE_CHECKING:
    from ..system import SimulationState


class EulerIntegrator(Integrator):
    """
    Explicit Euler integrator with a single force evaluation per step.

    Algorithm:
        v(t + dt) = v(t) + dt * F(t) / m
        r(t + dt) = r(t) + dt * v(t + dt)

    Poor energy conservation; kept for comparison with Velocity Verlet.
    """

    name = "euler"

    def step(
        self, state: SimulationState, dt: float, recompute_forces: RecomputeForces
    ) -> None:
        """Advance velocities then positions using the current forces."""
        inv_mass = 1.0 / state.inertial_masses[:, np.newaxis]
        state.velocities += state.forces * inv_mass * dt
        state.positions += state.velocities * dt
        state.time += dt
