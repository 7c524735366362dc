"""Multi-tier numerical stability detection."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from .diagnostics import Diagnostics


class StabilityLevel(str, Enum):
    """Severity of a detected instability."""

    STABLE = "stable"
    WARNING = "warning"
    SEVERE = "severe"
    CRITICAL = "critical"


@dataclass(frozen=True)
class StabilityThresholds:
    """
    Detection thresholds.

    Attributes:
        max_speed: Speed above which a frame counts as severe.
        max_force: Force magnitude above which a frame counts as severe.
        energy_drift: Relative per-step total energy change for a warning.
        temperature_ratio: Multiple of the target temperature for a warning.
        severe_frames: Consecutive severe frames before reporting.
        warning_frames: Consecutive warning frames before reporting.
    """

    max_speed: float = 500.0
    max_force: float = 5000.0
    energy_drift: float = 0.05
    temperature_ratio: float = 5.0
    severe_frames: int = 3
    warning_frames: int = 20


@dataclass(frozen=True)
class StabilityConfig:
    """Runtime settings the monitor needs to interpret diagnostics."""

    thermostat_enabled: bool = False
    target_temperature: float | None = None
    dt: float = 0.0


@dataclass
class StabilityResult:
    """
    A reported instability.

    Attributes:
        level: Severity tier.
        message: Short description.
        diagnostics: Diagnostics of the frame that triggered the report.
        suggestions: Advisory remedies.
    """

    level: StabilityLevel
    message: str
    diagnostics: Diagnostics
    suggestions: list[str] = field(default_factory=list)


class StabilityMonitor:
    """
    Stateful detector over a stream of diagnostics.

    Tiers:
        - CRITICAL: NaN or infinite temperature, speed, force or energy on a
          single frame.
        - SEVERE: speed or force above threshold for several consecutive
          frames.
        - WARNING: per-step energy drift (thermostat off) or temperature far
          above target (thermostat on) for many consecutive frames.

    Each counter resets on the first frame that does not qualify. The monitor
    only observes; it never modifies the simulation.

    Example:
        monitor = StabilityMonitor()
        result = monitor.check(diag, StabilityConfig(dt=0.01))
        if result is not None:
            print(result.level, result.message)
    """

    def __init__(self, thresholds: StabilityThresholds | None = None) -> None:
        self.thresholds = thresholds if thresholds is not None else StabilityThresholds()
        self.reset()

    def reset(self) -> None:
        """Clear counters and energy tracking."""
        self._severe_frames = 0
        self._warning_frames = 0
        self._last_energy: float | None = None
        self._level = StabilityLevel.STABLE

    @property
    def level(self) -> StabilityLevel:
        """Level of the most recent check."""
        return self._level

    @property
    def severe_frames(self) -> int:
        return self._severe_frames

    @property
    def warning_frames(self) -> int:
        return self._warning_frames

    def check(
        self, diagnostics: Diagnostics, config: StabilityConfig
    ) -> StabilityResult | None:
        """
        Evaluate one frame.

        Args:
            diagnostics: Fresh diagnostics.
            config: Thermostat and timestep settings.

        Returns:
            A :class:`StabilityResult` when a tier fires, otherwise None.
        """
        critical = self._check_critical(diagnostics, config)
        if critical is not None:
            self._level = critical.level
            return critical

        result = None
        if self._is_severe(diagnostics):
            self._severe_frames += 1
            if self._severe_frames >= self.thresholds.severe_frames:
                result = self._severe_result(diagnostics, config)
        else:
            self._severe_frames = 0

        warning = self._check_warning(diagnostics, config)
        if warning is not None:
            self._warning_frames += 1
            if result is None and self._warning_frames >= self.thresholds.warning_frames:
                result = warning
        else:
            self._warning_frames = 0

        self._last_energy = diagnostics.total
        self._level = result.level if result is not None else StabilityLevel.STABLE
        return result

    def _check_critical(
        self, diagnostics: Diagnostics, config: StabilityConfig
    ) -> StabilityResult | None:
        values = (
            diagnostics.temperature,
            diagnostics.max_speed,
            diagnostics.max_force_mag,
            diagnostics.total,
        )
        if all(math.isfinite(v) for v in values):
            return None
        return StabilityResult(
            level=StabilityLevel.CRITICAL,
            message="Simulation crashed (NaN/Infinity detected)",
            diagnostics=diagnostics,
            suggestions=[
                "Restart from a saved snapshot or different initial conditions",
                "Reduce particle count significantly",
                "Increase sigma (softer Lennard-Jones core)",
                "Decrease force constants (epsilon, K, G)",
                f"Reduce timestep dt (current: {config.dt})",
            ],
        )

    def _is_severe(self, diagnostics: Diagnostics) -> bool:
        return (
            diagnostics.max_speed > self.thresholds.max_speed
            or diagnostics.max_force_mag > self.thresholds.max_force
        )

    def _severe_result(
        self, diagnostics: Diagnostics, config: StabilityConfig
    ) -> StabilityResult:
        speed = diagnostics.max_speed > self.thresholds.max_speed
        force = diagnostics.max_force_mag > self.thresholds.max_force
        if speed and force:
            detail = "particles moving too fast and forces too large"
        elif speed:
            detail = "particles moving unrealistically fast"
        else:
            detail = "forces extremely large (close particle encounters)"
        return StabilityResult(
            level=StabilityLevel.SEVERE,
            message=f"Extreme values detected: {detail}",
            diagnostics=diagnostics,
            suggestions=[
                f"Reduce timestep dt significantly (current: {config.dt}, "
                f"try: {config.dt * 0.5:.4f})",
                "Use fewer particles",
                "Increase box size to lower particle density",
                "Weaken force constants (epsilon, K, G)",
            ],
        )

    def _check_warning(
        self, diagnostics: Diagnostics, config: StabilityConfig
    ) -> StabilityResult | None:
        if not config.thermostat_enabled:
            if self._last_energy is None:
                return None
            drift = abs(diagnostics.total - self._last_energy)
            rel = drift / abs(self._last_energy or 1.0)
            if rel <= self.thresholds.energy_drift:
                return None
            return StabilityResult(
                level=StabilityLevel.WARNING,
                message=f"Energy drift detected: {rel * 100:.1f}% per step",
                diagnostics=diagnostics,
                suggestions=[
                    f"Reduce timestep dt (current: {config.dt})",
                    "Check if force constants are too strong",
                    "Use the Velocity Verlet integrator instead of Euler",
                    "Consider enabling the thermostat",
                ],
            )

        target = config.target_temperature
        if not target:
            return None
        ratio = diagnostics.temperature / target
        if ratio <= self.thresholds.temperature_ratio:
            return None
        return StabilityResult(
            level=StabilityLevel.WARNING,
            message=f"Temperature {ratio:.1f}x target (thermostat unable to cool)",
            diagnostics=diagnostics,
            suggestions=[
                "Reduce force constants (epsilon, K, G)",
                f"Lower target temperature (current: {target})",
                f"Reduce timestep dt (current: {config.dt})",
            ],
        )
