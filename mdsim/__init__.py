"""N-body / molecular dynamics simulation core."""

from .analysis import Diagnostics, StabilityLevel, StabilityMonitor, compute_diagnostics
from .engines import EngineConfig, Simulation, SimulationConfig, SimulationEngine
from .errors import ConfigValidationError, StepFailure, UnsupportedSnapshotVersion
from .forcefields import (
    Coulomb,
    EwaldCoulomb,
    EwaldGravity,
    ForceContext,
    ForceField,
    Gravity,
    LennardJones,
)
from .integrators import EulerIntegrator, VelocityVerletIntegrator
from .io import hydrate, load_snapshot, save_snapshot, snapshot
from .neighborlists import CellListStrategy, NaiveStrategy
from .system import HalfBox, SimulationParams, SimulationState, create_state

__version__ = "0.1.0"

__all__ = [
    "SimulationEngine",
    "Simulation",
    "SimulationConfig",
    "EngineConfig",
    "SimulationState",
    "SimulationParams",
    "HalfBox",
    "create_state",
    "ForceField",
    "ForceContext",
    "Gravity",
    "Coulomb",
    "LennardJones",
    "EwaldGravity",
    "EwaldCoulomb",
    "NaiveStrategy",
    "CellListStrategy",
    "EulerIntegrator",
    "VelocityVerletIntegrator",
    "Diagnostics",
    "compute_diagnostics",
    "StabilityMonitor",
    "StabilityLevel",
    "snapshot",
    "hydrate",
    "save_snapshot",
    "load_snapshot",
    "ConfigValidationError",
    "UnsupportedSnapshotVersion",
    "StepFailure",
]
