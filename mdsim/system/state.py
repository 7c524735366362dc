"""Particle state representation (structure of arrays)."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from .pbc import HalfBox


@dataclass(frozen=True)
class SimulationParams:
    """
    Allocation parameters for a :class:`SimulationState`.

    Only values that influence buffer sizing live here; the rest of the
    engine configuration stays out of the state.

    Attributes:
        particle_count: Number of particles to allocate.
        box: Half-box extents.
        dt: Integration timestep.
        cutoff: Pair interaction cutoff.
    """

    particle_count: int
    box: HalfBox
    dt: float
    cutoff: float


@dataclass
class SimulationState:
    """
    Mutable per-particle arrays for all particles.

    Vector quantities are C-contiguous (N, 3) float64 arrays, i.e. three
    contiguous components per particle. ``forces`` is an accumulator that is
    zeroed and refilled every step; positions and velocities persist.

    Attributes:
        positions: Particle positions, shape (N, 3).
        velocities: Particle velocities, shape (N, 3).
        forces: Force accumulator, shape (N, 3).
        masses: Particle masses, shape (N,).
        charges: Particle charges, shape (N,).
        escaped: Escape flags (0/1), shape (N,).
        time: Accumulated simulation time.
    """

    positions: NDArray[np.floating]
    velocities: NDArray[np.floating]
    forces: NDArray[np.floating]
    masses: NDArray[np.floating]
    charges: NDArray[np.floating]
    escaped: NDArray[np.uint8] = field(default=None)  # type: ignore[assignment]
    time: float = 0.0

    def __post_init__(self) -> None:
        """Validate and convert arrays."""
        self.masses = np.ascontiguousarray(self.masses, dtype=np.float64)
        n = len(self.masses)
        self.charges = np.ascontiguousarray(self.charges, dtype=np.float64)
        if self.escaped is None:
            self.escaped = np.zeros(n, dtype=np.uint8)
        self.escaped = np.ascontiguousarray(self.escaped, dtype=np.uint8)

        for name in ("positions", "velocities", "forces"):
            arr = np.ascontiguousarray(getattr(self, name), dtype=np.float64)
            if arr.shape != (n, 3):
                raise ValueError(
                    f"{name} shape {arr.shape} incompatible with {n} particles"
                )
            setattr(self, name, arr)
        for name in ("charges", "escaped"):
            if getattr(self, name).shape != (n,):
                raise ValueError(
                    f"{name} shape {getattr(self, name).shape} incompatible "
                    f"with {n} particles"
                )

    @property
    def n(self) -> int:
        """Return the particle count."""
        return len(self.masses)

    @property
    def inertial_masses(self) -> NDArray[np.floating]:
        """Masses with unset (zero) entries treated as unit mass."""
        return np.where(self.masses == 0.0, 1.0, self.masses)

    def copy(self) -> SimulationState:
        """Create a deep copy of this state."""
        return SimulationState(
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            forces=self.forces.copy(),
            masses=self.masses.copy(),
            charges=self.charges.copy(),
            escaped=self.escaped.copy(),
            time=self.time,
        )

    def resized(self, n: int) -> SimulationState:
        """
        Allocate a new state for ``n`` particles, copying the overlapping prefix.

        Rows beyond the old particle count are zero.
        """
        new = _allocate(n)
        k = min(self.n, n)
        new.positions[:k] = self.positions[:k]
        new.velocities[:k] = self.velocities[:k]
        new.forces[:k] = self.forces[:k]
        new.masses[:k] = self.masses[:k]
        new.charges[:k] = self.charges[:k]
        new.escaped[:k] = self.escaped[:k]
        new.time = self.time
        return new


def _allocate(n: int) -> SimulationState:
    return SimulationState(
        positions=np.zeros((n, 3), dtype=np.float64),
        velocities=np.zeros((n, 3), dtype=np.float64),
        forces=np.zeros((n, 3), dtype=np.float64),
        masses=np.zeros(n, dtype=np.float64),
        charges=np.zeros(n, dtype=np.float64),
        escaped=np.zeros(n, dtype=np.uint8),
    )


def create_state(
    params: SimulationParams, seed: SimulationState | None = None
) -> SimulationState:
    """
    Allocate a fresh :class:`SimulationState`.

    Buffers of ``seed`` are reused when they already have the right size;
    anything missing or mis-sized is freshly zero-allocated.

    Args:
        params: Allocation parameters.
        seed: Optional existing state whose buffers and time are borrowed.

    Returns:
        State sized for ``params.particle_count`` particles.
    """
    n = params.particle_count
    if n < 0:
        raise ValueError(f"particle_count must be >= 0, got {n}")
    state = _allocate(n)
    if seed is None:
        return state

    for name in ("positions", "velocities", "forces", "masses", "charges", "escaped"):
        existing = getattr(seed, name)
        if existing.shape == getattr(state, name).shape:
            setattr(state, name, existing)
    state.time = seed.time
    return state


def zero_forces(state: SimulationState) -> None:
    """Reset the force accumulator before a new round of force evaluation."""
    state.forces.fill(0.0)
