"""Ewald summation for periodic 1/r interactions (Coulomb and gravity)."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy.special import erfc

from ..base import ForceContext, ForceField, accumulate_pair_forces
from .coulomb import Coulomb
from .gravity import Gravity
from .softened import SoftenedInverseSquare

if TYPE_CHECKING:
    from ...system import HalfBox, SimulationState

DEFAULT_K_MAX = 5
ALPHA_CUTOFF_PRODUCT = 3.2


def make_k_vectors(box: HalfBox, k_max: int) -> NDArray[np.floating]:
    """
    Reciprocal lattice vectors ``2*pi*n/L`` for an orthorhombic box.

    Integer triples ``n`` range over ``[-k_max, k_max]^3`` with the origin
    excluded and ``|n|^2 <= k_max^2``.

    Args:
        box: Periodic half box (L = 2 * half per axis).
        k_max: Shell bound on the integer triples.

    Returns:
        k-vectors, shape (M, 3).
    """
    span = np.arange(-k_max, k_max + 1)
    n = np.stack(np.meshgrid(span, span, span, indexing="ij"), axis=-1).reshape(-1, 3)
    n2 = np.sum(n * n, axis=1)
    n = n[(n2 > 0) & (n2 <= k_max * k_max)]
    return 2.0 * np.pi * n / box.lengths


class EwaldSum(ForceField):
    """
    Ewald split of a periodic ``1/r`` interaction.

    1/r = erfc(alpha*r)/r + erf(alpha*r)/r

    The first term is summed in real space over pairs within the cutoff, the
    second in reciprocal space over k-vectors using structure factors
    ``S(k) = sum_i a_i exp(i k.r_i)``. The potential also subtracts the
    self-interaction ``p * alpha/sqrt(pi) * sum_i a_i^2``. No surface or
    net-charge correction is applied.

    Without periodic boundaries the field falls back to the plain softened
    kernel.

    Attributes:
        prefactor: Signed coupling constant.
        alpha: Splitting parameter; None selects ``3.2 / cutoff``.
        k_max: Reciprocal shell bound.
        softening: Softening used only by the non-periodic fallback.
    """

    def __init__(
        self,
        prefactor: float,
        alpha: float | None = None,
        k_max: int | None = None,
        softening: float = 0.0,
    ) -> None:
        self.prefactor = prefactor
        self.alpha = alpha
        self.k_max = k_max if k_max is not None else DEFAULT_K_MAX
        self.softening = softening
        self._k_cache: tuple[tuple, NDArray[np.floating]] | None = None

    @abstractmethod
    def pair_property(self, state: SimulationState) -> NDArray[np.floating]:
        """Return the per-particle property the interaction couples to."""
        ...

    @property
    @abstractmethod
    def fallback(self) -> SoftenedInverseSquare:
        """Non-periodic kernel."""
        ...

    def _alpha(self, ctx: ForceContext) -> float:
        if self.alpha is not None:
            return self.alpha
        return ALPHA_CUTOFF_PRODUCT / ctx.cutoff

    def _k_vectors(self, box: HalfBox) -> NDArray[np.floating]:
        key = (box.as_tuple(), self.k_max)
        if self._k_cache is None or self._k_cache[0] != key:
            self._k_cache = (key, make_k_vectors(box, self.k_max))
        return self._k_cache[1]

    def _structure_factors(
        self, state: SimulationState, k_vectors: NDArray[np.floating]
    ) -> tuple[NDArray, NDArray, NDArray, NDArray]:
        prop = self.pair_property(state)
        # k . r for all atoms and k: shape (N, M)
        phase = state.positions @ k_vectors.T
        cos_kr = np.cos(phase)
        sin_kr = np.sin(phase)
        return prop @ cos_kr, prop @ sin_kr, cos_kr, sin_kr

    def _real_space_forces(
        self, state: SimulationState, ctx: ForceContext, alpha: float
    ) -> None:
        batch = ctx.pairs(state).select_nonzero()
        if len(batch) == 0:
            return

        prop = self.pair_property(state)
        r = np.sqrt(batch.r2)
        coeff = (
            self.prefactor
            * prop[batch.i]
            * prop[batch.j]
            * (
                erfc(alpha * r) / (batch.r2 * r)
                + 2.0 * alpha / np.sqrt(np.pi) * np.exp(-alpha * alpha * batch.r2) / batch.r2
            )
        )
        accumulate_pair_forces(state.forces, batch.i, batch.j, coeff, batch.dr)

    def _reciprocal_forces(
        self, state: SimulationState, box: HalfBox, alpha: float
    ) -> None:
        k_vectors = self._k_vectors(box)
        if len(k_vectors) == 0 or state.n == 0:
            return

        k_sq = np.sum(k_vectors * k_vectors, axis=1)
        damping = np.exp(-k_sq / (4.0 * alpha * alpha)) / k_sq
        s_re, s_im, cos_kr, sin_kr = self._structure_factors(state, k_vectors)

        prop = self.pair_property(state)
        # -d|S|^2/dr_i = 2 a_i (Re S sin(k.r_i) - Im S cos(k.r_i)) k
        weights = prop[:, np.newaxis] * (s_re * sin_kr - s_im * cos_kr) * damping
        scale = 4.0 * np.pi * self.prefactor / box.volume
        state.forces += scale * (weights @ k_vectors)

    def apply(self, state: SimulationState, ctx: ForceContext) -> None:
        """Accumulate real-space and reciprocal-space Ewald forces."""
        if ctx.pbc is None:
            self.fallback.apply(state, ctx)
            return

        alpha = self._alpha(ctx)
        self._real_space_forces(state, ctx, alpha)
        self._reciprocal_forces(state, ctx.pbc, alpha)

    def real_space_energy(
        self, state: SimulationState, ctx: ForceContext, alpha: float
    ) -> float:
        batch = ctx.pairs(state).select_nonzero()
        if len(batch) == 0:
            return 0.0
        prop = self.pair_property(state)
        r = np.sqrt(batch.r2)
        return float(
            np.sum(self.prefactor * prop[batch.i] * prop[batch.j] * erfc(alpha * r) / r)
        )

    def reciprocal_energy(
        self, state: SimulationState, box: HalfBox, alpha: float
    ) -> float:
        k_vectors = self._k_vectors(box)
        if len(k_vectors) == 0 or state.n == 0:
            return 0.0
        k_sq = np.sum(k_vectors * k_vectors, axis=1)
        damping = np.exp(-k_sq / (4.0 * alpha * alpha)) / k_sq
        s_re, s_im, _, _ = self._structure_factors(state, k_vectors)
        return float(
            2.0 * np.pi * self.prefactor / box.volume * np.sum(damping * (s_re**2 + s_im**2))
        )

    def self_energy(self, state: SimulationState, alpha: float) -> float:
        prop = self.pair_property(state)
        return float(-self.prefactor * alpha / np.sqrt(np.pi) * np.sum(prop * prop))

    def potential(self, state: SimulationState, ctx: ForceContext) -> float:
        """Return real + reciprocal + self energy (fallback energy without PBC)."""
        if ctx.pbc is None:
            return self.fallback.potential(state, ctx)

        alpha = self._alpha(ctx)
        return (
            self.real_space_energy(state, ctx, alpha)
            + self.reciprocal_energy(state, ctx.pbc, alpha)
            + self.self_energy(state, alpha)
        )


class EwaldCoulomb(EwaldSum):
    """Periodic Coulomb interaction via Ewald summation."""

    name = "coulomb"

    def __init__(
        self,
        K: float,
        alpha: float | None = None,
        k_max: int | None = None,
        softening: float = 0.0,
    ) -> None:
        super().__init__(K, alpha=alpha, k_max=k_max, softening=softening)
        self.K = K
        self._fallback = Coulomb(K, softening)

    @property
    def fallback(self) -> SoftenedInverseSquare:
        return self._fallback

    def pair_property(self, state: SimulationState) -> NDArray[np.floating]:
        return state.charges


class EwaldGravity(EwaldSum):
    """Periodic gravity via Ewald summation (attractive, prefactor ``-G``)."""

    name = "gravity"

    def __init__(
        self,
        G: float,
        alpha: float | None = None,
        k_max: int | None = None,
        softening: float = 0.0,
    ) -> None:
        super().__init__(-G, alpha=alpha, k_max=k_max, softening=softening)
        self.G = G
        self._fallback = Gravity(G, softening)

    @property
    def fallback(self) -> SoftenedInverseSquare:
        return self._fallback

    def pair_property(self, state: SimulationState) -> NDArray[np.floating]:
        return state.inertial_masses
