"""Diagnostics and stability analysis."""

from .diagnostics import (
    Diagnostics,
    compute_diagnostics,
    instantaneous_temperature,
    kinetic_energy,
    temperature_from_kinetic,
)
from .stability import (
    StabilityConfig,
    StabilityLevel,
    StabilityMonitor,
    StabilityResult,
    StabilityThresholds,
)

__all__ = [
    "Diagnostics",
    "compute_diagnostics",
    "kinetic_energy",
    "temperature_from_kinetic",
    "instantaneous_temperature",
    "StabilityMonitor",
    "StabilityLevel",
    "StabilityResult",
    "StabilityThresholds",
    "StabilityConfig",
]
