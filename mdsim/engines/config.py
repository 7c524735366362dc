"""Engine configuration tree, camelCase serialization and validation."""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any

from ..errors import ConfigValidationError
from ..system.pbc import HalfBox

INTEGRATOR_NAMES = ("velocityVerlet", "euler")
STRATEGY_NAMES = ("naive", "cell")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


@dataclass
class BoxExtents:
    """Half-box extents; coordinates range over ``[-x, x]`` and so on."""

    x: float = 5.0
    y: float = 5.0
    z: float = 5.0

    def to_half_box(self) -> HalfBox:
        return HalfBox(float(self.x), float(self.y), float(self.z))


@dataclass
class WorldConfig:
    particle_count: int = 20
    box: BoxExtents = field(default_factory=BoxExtents)


@dataclass
class RuntimeConfig:
    """
    Stepping parameters.

    Attributes:
        dt: Integration timestep.
        cutoff: Pair interaction cutoff.
        integrator: ``"velocityVerlet"`` or ``"euler"``.
        pbc: Periodic boundaries (enables Ewald long-range forces).
        ewald_alpha: Ewald splitting parameter; None means ``3.2 / cutoff``.
        ewald_k_max: Reciprocal shell bound; None means 5.
        thermostat: Rescale velocities toward ``target_temperature``.
        target_temperature: Thermostat target.
        softening: Plummer softening override for non-periodic gravity and
            Coulomb; None derives it from the mean particle spacing.
        diagnostics_every: Compute diagnostics every this many steps.
    """

    dt: float = 0.01
    cutoff: float = 10.0
    integrator: str = "velocityVerlet"
    pbc: bool = False
    ewald_alpha: float | None = None
    ewald_k_max: int | None = None
    thermostat: bool = False
    target_temperature: float | None = None
    softening: float | None = None
    diagnostics_every: int = 1


@dataclass
class ForcesConfig:
    lennard_jones: bool = True
    gravity: bool = True
    coulomb: bool = True


@dataclass
class PhysicalConstants:
    """
    Interaction constants in simulation units.

    Attributes:
        epsilon: Lennard-Jones well depth.
        sigma: Lennard-Jones zero-crossing distance.
        G: Gravitational constant.
        K: Coulomb constant.
        kB: Boltzmann constant.
    """

    epsilon: float = 1.0
    sigma: float = 0.02
    G: float = 0.08
    K: float = 0.1
    kB: float = 6.02


@dataclass
class NeighborConfig:
    strategy: str = "cell"


@dataclass
class EngineConfig:
    """
    Full engine configuration.

    Serialized form uses camelCase keys grouped by section, e.g.
    ``{"world": {"particleCount": 20, "box": {...}}, "runtime": {...}}``.
    """

    world: WorldConfig = field(default_factory=WorldConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    forces: ForcesConfig = field(default_factory=ForcesConfig)
    constants: PhysicalConstants = field(default_factory=PhysicalConstants)
    neighbor: NeighborConfig = field(default_factory=NeighborConfig)

    @classmethod
    def default(cls) -> EngineConfig:
        """Return the stock configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EngineConfig:
        """
        Build a config from its camelCase mapping.

        Missing sections and keys take their defaults; unknown ones raise
        :class:`ConfigValidationError`. The result is not validated.
        """
        return _merge(cls(), data)

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping form."""
        return _to_dict(self)

    def copy(self) -> EngineConfig:
        return copy.deepcopy(self)

    def merged(self, patch: Mapping[str, Any]) -> EngineConfig:
        """Return a copy with ``patch`` merged section by section."""
        return _merge(self.copy(), patch)


def _to_dict(obj: Any) -> Any:
    if is_dataclass(obj):
        return {_camel(f.name): _to_dict(getattr(obj, f.name)) for f in fields(obj)}
    return obj


def _merge(target: Any, patch: Mapping[str, Any], path: str = "") -> Any:
    if not isinstance(patch, Mapping):
        raise ConfigValidationError(f"Expected a mapping for '{path or 'config'}'")
    by_key = {_camel(f.name): f.name for f in fields(target)}
    for key, value in patch.items():
        if key not in by_key:
            raise ConfigValidationError(f"Unknown config key '{path}{key}'")
        attr = by_key[key]
        current = getattr(target, attr)
        if is_dataclass(current):
            _merge(current, value, f"{path}{key}.")
        else:
            setattr(target, attr, value)
    return target


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _check_positive(name: str, v: Any) -> None:
    if not _is_number(v) or not math.isfinite(v) or v <= 0:
        raise ConfigValidationError(f"Invalid numeric config '{name}': {v!r}")


def validate_engine_config(cfg: EngineConfig) -> None:
    """
    Validate ``cfg`` and raise on the first problem.

    Values are never coerced.

    Raises:
        ConfigValidationError: If any field is missing, non-finite, out of
            range or an unknown selection.
    """
    runtime = cfg.runtime
    constants = cfg.constants
    required = [
        ("dt", runtime.dt),
        ("cutoff", runtime.cutoff),
        ("epsilon", constants.epsilon),
        ("sigma", constants.sigma),
        ("G", constants.G),
        ("K", constants.K),
        ("kB", constants.kB),
        ("box.x", cfg.world.box.x),
        ("box.y", cfg.world.box.y),
        ("box.z", cfg.world.box.z),
    ]
    for name, value in required:
        _check_positive(name, value)

    optional = [
        ("ewaldAlpha", runtime.ewald_alpha),
        ("ewaldKMax", runtime.ewald_k_max),
        ("targetTemperature", runtime.target_temperature),
    ]
    for name, value in optional:
        if value is not None:
            _check_positive(name, value)
    if runtime.ewald_k_max is not None and not isinstance(runtime.ewald_k_max, int):
        raise ConfigValidationError(
            f"ewaldKMax must be an integer, got {runtime.ewald_k_max!r}"
        )

    if runtime.softening is not None:
        s = runtime.softening
        if not _is_number(s) or not math.isfinite(s) or s < 0:
            raise ConfigValidationError(f"Invalid numeric config 'softening': {s!r}")

    every = runtime.diagnostics_every
    if not isinstance(every, int) or isinstance(every, bool) or every < 1:
        raise ConfigValidationError(f"diagnosticsEvery must be an integer >= 1, got {every!r}")

    count = cfg.world.particle_count
    if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
        raise ConfigValidationError(f"particleCount must be an integer > 0, got {count!r}")

    if runtime.integrator not in INTEGRATOR_NAMES:
        raise ConfigValidationError(f"Unsupported integrator {runtime.integrator!r}")
    if cfg.neighbor.strategy not in STRATEGY_NAMES:
        raise ConfigValidationError(
            f"Unsupported neighbor strategy {cfg.neighbor.strategy!r}"
        )

    for name in ("pbc", "thermostat"):
        if not isinstance(getattr(runtime, name), bool):
            raise ConfigValidationError(f"runtime.{name} must be a boolean")
    if runtime.thermostat and runtime.target_temperature is None:
        raise ConfigValidationError("runtime.thermostat requires targetTemperature")
    for f in fields(cfg.forces):
        if not isinstance(getattr(cfg.forces, f.name), bool):
            raise ConfigValidationError(f"forces.{_camel(f.name)} must be a boolean")
