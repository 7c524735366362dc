"""Helpers for generating initial particle properties."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .pbc import HalfBox


def compute_softening_length(
    particle_count: int, box: HalfBox, factor: float = 0.15
) -> float:
    """
    Plummer softening length from the mean inter-particle spacing.

    ``factor * cbrt(volume / N)``; 0.15 is used for gravity, 0.1 for Coulomb.

    Args:
        particle_count: Number of particles (values below 1 count as 1).
        box: Half-box extents.
        factor: Fraction of the mean spacing.

    Returns:
        Softening length in simulation units.
    """
    n = max(1, particle_count)
    return float(factor * np.cbrt(box.volume / n))


def generate_masses_charges(
    n: int,
    mass_lower: float,
    mass_upper: float,
    charge_options: Sequence[float],
    sun_mass: float | None = None,
    make_sun: bool = False,
    rng: np.random.Generator | None = None,
) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
    """
    Draw uniform masses and discrete uniform charges.

    Args:
        n: Number of particles.
        mass_lower: Lower bound for masses.
        mass_upper: Upper bound for masses.
        charge_options: Allowed charge values; empty means all charges are 0.
        sun_mass: Mass for particle 0 when ``make_sun`` is set.
        make_sun: Treat particle 0 as a massive central body.
        rng: Random generator (defaults to a fresh ``default_rng()``).

    Returns:
        Tuple of (masses, charges), each of shape (n,).
    """
    rng = rng if rng is not None else np.random.default_rng()
    span = max(0.0, mass_upper - mass_lower)
    masses = mass_lower + rng.random(n) * span
    if len(charge_options) > 0:
        charges = np.asarray(charge_options, dtype=np.float64)[
            rng.integers(0, len(charge_options), size=n)
        ]
    else:
        charges = np.zeros(n, dtype=np.float64)
    if make_sun and n > 0 and sun_mass is not None:
        masses[0] = sun_mass
    return masses, charges


def generate_positions(
    n: int,
    bounds: HalfBox,
    make_sun: bool = False,
    rng: np.random.Generator | None = None,
) -> NDArray[np.floating]:
    """
    Uniform random positions inside the half box.

    With ``make_sun`` the first particle sits at the origin.

    Returns:
        Positions, shape (n, 3).
    """
    rng = rng if rng is not None else np.random.default_rng()
    positions = (rng.random((n, 3)) * 2.0 - 1.0) * bounds.half
    if make_sun and n > 0:
        positions[0] = 0.0
    return positions


def circular_orbit_velocity(
    position: ArrayLike, central_mass: float, G: float
) -> NDArray[np.floating]:
    """
    Tangential velocity for a circular orbit around a mass at the origin.

    The direction is chosen in the XY plane (perpendicular to the position)
    and defaults to +x when the particle sits on the z axis. Returns zeros for
    radii below 1e-8.
    """
    r_vec = np.asarray(position, dtype=np.float64)
    r = float(np.linalg.norm(r_vec))
    if not np.isfinite(r) or r < 1e-8:
        return np.zeros(3)
    r_xy = float(np.hypot(r_vec[0], r_vec[1]))
    v_mag = np.sqrt(G * central_mass / r)
    if r_xy < 1e-10:
        tangent = np.array([1.0, 0.0, 0.0])
    else:
        tangent = np.array([-r_vec[1] / r_xy, r_vec[0] / r_xy, 0.0])
    return tangent * v_mag
