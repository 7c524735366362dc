"""Simulation and engine orchestration."""

from .config import (
    BoxExtents,
    EngineConfig,
    ForcesConfig,
    NeighborConfig,
    PhysicalConstants,
    RuntimeConfig,
    WorldConfig,
    validate_engine_config,
)
from .engine import SimulationEngine
from .events import (
    EVENT_NAMES,
    DiagnosticsRecorder,
    EventEmitter,
    Frame,
    TrajectoryRecorder,
)
from .simulation import Simulation, SimulationConfig

__all__ = [
    "SimulationEngine",
    "Simulation",
    "SimulationConfig",
    "EngineConfig",
    "WorldConfig",
    "BoxExtents",
    "RuntimeConfig",
    "ForcesConfig",
    "PhysicalConstants",
    "NeighborConfig",
    "validate_engine_config",
    "EventEmitter",
    "EVENT_NAMES",
    "Frame",
    "DiagnosticsRecorder",
    "TrajectoryRecorder",
]
