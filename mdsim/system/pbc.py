"""Periodic boundary helpers: wrapping and minimum-image displacements.

Box extents are expressed as half-lengths, so the valid coordinate range along
each axis is ``[-half, half]`` and the periodic span is ``2 * half``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray

AXES = ("x", "y", "z")


@dataclass(frozen=True)
class HalfBox:
    """
    Orthorhombic simulation box centered on the origin.

    Attributes:
        x: Half-length along x.
        y: Half-length along y.
        z: Half-length along z.
    """

    x: float
    y: float
    z: float

    @classmethod
    def cubic(cls, half: float) -> HalfBox:
        """Create a cubic box with the given half-length."""
        return cls(half, half, half)

    @classmethod
    def from_mapping(cls, box: dict[str, float]) -> HalfBox:
        """Create a box from a ``{"x", "y", "z"}`` mapping."""
        return cls(float(box["x"]), float(box["y"]), float(box["z"]))

    @property
    def half(self) -> NDArray[np.floating]:
        """Return half-lengths as a (3,) array."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def lengths(self) -> NDArray[np.floating]:
        """Return full box edge lengths ``2 * half``."""
        return 2.0 * self.half

    @property
    def volume(self) -> float:
        """Return box volume."""
        return float(np.prod(self.lengths))

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


def wrap_into_box(v: float, half: float) -> float:
    """
    Wrap a scalar coordinate into ``[-half, half]``.

    Shifts repeatedly by ``2 * half`` so arbitrarily large excursions are
    handled, e.g. ``wrap_into_box(25, 5) == 5``.
    """
    span = 2.0 * half
    while v < -half:
        v += span
    while v > half:
        v -= span
    return v


def minimum_image_displacement(d: float, half: float) -> float:
    """
    Apply a single minimum-image correction to a displacement component.

    Assumes ``|d|`` is at most a small multiple of the box, which holds for
    separations between particles that are kept wrapped.
    """
    span = 2.0 * half
    if d > half:
        return d - span
    if d < -half:
        return d + span
    return d


def minimum_image(dr: ArrayLike, box: HalfBox) -> NDArray[np.floating]:
    """
    Vectorized :func:`minimum_image_displacement` over displacement vectors.

    Args:
        dr: Displacements, shape (..., 3).
        box: Periodic box.

    Returns:
        Corrected displacements with the same shape.
    """
    dr = np.asarray(dr, dtype=np.float64)
    half = box.half
    span = 2.0 * half
    dr = np.where(dr > half, dr - span, dr)
    return np.where(dr < -half, dr + span, dr)


def wrap_positions(positions: ArrayLike, box: HalfBox) -> NDArray[np.floating]:
    """
    Vectorized :func:`wrap_into_box` over an (N, 3) position array.

    Uses the smallest number of whole-span shifts that brings each coordinate
    back inside ``[-half, half]``, matching the scalar loop.

    Returns:
        New array of wrapped positions.
    """
    positions = np.asarray(positions, dtype=np.float64)
    half = box.half
    span = 2.0 * half
    wrapped = np.where(
        positions > half,
        positions - np.ceil((positions - half) / span) * span,
        positions,
    )
    wrapped = np.where(
        wrapped < -half,
        wrapped + np.ceil((-half - wrapped) / span) * span,
        wrapped,
    )
    # Rounding in the shift count can leave a coordinate an ulp outside.
    return np.clip(wrapped, -half, half)


@dataclass(frozen=True)
class WrapSurface:
    """Boundary plane crossed: ``sign`` is +1 for the +half plane, -1 for -half."""

    axis: str
    sign: int


@dataclass(frozen=True)
class WrapCrossing:
    """Exit point on the crossed plane and entry point on the opposite plane."""

    axis: str
    sign: int
    exit: tuple[float, float, float]
    entry: tuple[float, float, float]


@dataclass
class WrapRecord:
    """
    Boundary crossing of one particle during a wrap pass.

    Attributes:
        i: Particle index.
        dx: Displacement applied along x by wrapping.
        dy: Displacement applied along y.
        dz: Displacement applied along z.
        surfaces: Planes the particle left through.
        crossings: Exit/entry coordinates per crossed axis.
        raw: Position before wrapping.
    """

    i: int
    dx: float
    dy: float
    dz: float
    surfaces: list[WrapSurface] = field(default_factory=list)
    crossings: list[WrapCrossing] = field(default_factory=list)
    raw: tuple[float, float, float] = (0.0, 0.0, 0.0)


def wrap_positions_with_tracking(
    positions: NDArray[np.floating], box: HalfBox
) -> list[WrapRecord]:
    """
    Wrap all positions into the box in place and report boundary crossings.

    One O(N) pass over the array. Records are produced only for particles
    whose coordinates actually changed.

    Args:
        positions: Mutable position array, shape (N, 3).
        box: Periodic box.

    Returns:
        One :class:`WrapRecord` per particle that crossed a boundary.
    """
    raw = positions.copy()
    wrapped = wrap_positions(raw, box)
    positions[...] = wrapped

    displacement = wrapped - raw
    moved = np.nonzero(np.any(displacement != 0.0, axis=1))[0]

    half = box.half
    records = []
    for i in moved:
        raw_pos = raw[i]
        new_pos = wrapped[i]
        record = WrapRecord(
            i=int(i),
            dx=float(displacement[i, 0]),
            dy=float(displacement[i, 1]),
            dz=float(displacement[i, 2]),
            raw=tuple(float(c) for c in raw_pos),
        )
        for axis in range(3):
            disp = displacement[i, axis]
            if disp == 0.0:
                continue
            # Shifted toward -axis means the particle left through the +half plane.
            sign = 1 if disp < 0 else -1
            exit_point = raw_pos.copy()
            exit_point[axis] = sign * half[axis]
            entry_point = new_pos.copy()
            entry_point[axis] = -sign * half[axis]
            record.surfaces.append(WrapSurface(AXES[axis], sign))
            record.crossings.append(
                WrapCrossing(
                    axis=AXES[axis],
                    sign=sign,
                    exit=tuple(float(c) for c in exit_point),
                    entry=tuple(float(c) for c in entry_point),
                )
            )
        records.append(record)

    return records


def _format_number(v: float) -> str:
    if abs(v) < 1e-6:
        return "0"
    if float(v).is_integer():
        return str(int(v))
    return f"{v:.3f}"


def format_wrap_records(records: list[WrapRecord]) -> list[str]:
    """Render one human-readable line per wrap record."""
    lines = []
    for rec in records:
        exits = [f"{'+' if s.sign > 0 else '-'}{s.axis}" for s in rec.surfaces]
        entries = [f"{'-' if s.sign > 0 else '+'}{s.axis}" for s in rec.surfaces]
        disp = (
            f"({_format_number(rec.dx)}, {_format_number(rec.dy)}, "
            f"{_format_number(rec.dz)})"
        )
        if len(rec.surfaces) == 1:
            lines.append(
                f"particle {rec.i} exited via the {exits[0]} plane; "
                f"wrapped to the {entries[0]} plane by moving {disp}."
            )
        else:
            lines.append(
                f"particle {rec.i} exited via planes {', '.join(exits)}; "
                f"wrapped to opposite planes {', '.join(entries)} by moving {disp}."
            )
    return lines
