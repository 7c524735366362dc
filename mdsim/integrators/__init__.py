"""Integrator implementations."""

from .base import Integrator, RecomputeForces, ThermostatModifier
from .euler import EulerIntegrator
from .thermostats import VelocityRescaleThermostat
from .velocity_verlet import VelocityVerletIntegrator

INTEGRATORS = {
    VelocityVerletIntegrator.name: VelocityVerletIntegrator,
    EulerIntegrator.name: EulerIntegrator,
}

__all__ = [
    # Base classes
    "Integrator",
    "ThermostatModifier",
    "RecomputeForces",
    # Integrators
    "EulerIntegrator",
    "VelocityVerletIntegrator",
    "INTEGRATORS",
    # Thermostats
    "VelocityRescaleThermostat",
]
