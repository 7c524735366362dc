"""Simulation engine: configuration, run loop, events and resizing."""

from __future__ import annotations

import asyncio
import logging
import operator
import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..analysis import (
    Diagnostics,
    StabilityConfig,
    StabilityMonitor,
    StabilityThresholds,
    compute_diagnostics,
)
from ..errors import ConfigValidationError, StepFailure
from ..forcefields import (
    Coulomb,
    EwaldCoulomb,
    EwaldGravity,
    ForceField,
    Gravity,
    LennardJones,
)
from ..integrators import INTEGRATORS, VelocityRescaleThermostat
from ..neighborlists import CellListStrategy, NaiveStrategy, NeighborStrategy
from ..system import (
    SimulationParams,
    compute_softening_length,
    create_state,
    format_wrap_records,
    wrap_positions_with_tracking,
)
from .config import EngineConfig, validate_engine_config
from .events import EventEmitter, Frame
from .simulation import Simulation, SimulationConfig

if TYPE_CHECKING:
    from ..system import HalfBox, SimulationState

logger = logging.getLogger(__name__)

GRAVITY_SOFTENING_FACTOR = 0.15
COULOMB_SOFTENING_FACTOR = 0.1
WRAP_DETAIL_LIMIT = 5


class SimulationEngine:
    """
    Orchestrates a :class:`Simulation` from an :class:`EngineConfig`.

    Responsibilities:
    - Own the authoritative configuration and apply validated patches
    - Build force fields, integrator and neighbor strategy from it
    - Step the simulation, wrap periodic positions and apply the thermostat
    - Emit frame, diagnostics, wrap, instability and error events
    - Reallocate state when the particle count changes

    ``step()`` never raises: failures pause the engine and are emitted on the
    ``error`` channel as :class:`StepFailure`.

    Example usage:
        engine = SimulationEngine(EngineConfig.default())
        engine.seed(positions=positions, masses=masses)
        engine.on("diagnostics", lambda d: print(d.total))
        engine.run(1000)

    Attributes:
        config: Current configuration (use :meth:`get_config` for a copy).
        state: Current simulation state.
        simulation: Underlying single-step simulation.
        neighbors: Active pair strategy.
        monitor: Stability monitor fed with each diagnostics sample.
    """

    def __init__(
        self,
        config: EngineConfig,
        thresholds: StabilityThresholds | None = None,
    ) -> None:
        """
        Initialize engine.

        Args:
            config: Engine configuration; validated before anything is built.
            thresholds: Stability monitor limits (library defaults when omitted).

        Raises:
            ConfigValidationError: If ``config`` is invalid.
        """
        validate_engine_config(config)
        self.config = config.copy()
        self.state = create_state(self._params(self.config))
        self.neighbors = self._build_strategy(self.config)
        self.simulation = self._build_simulation(self.config, self.state, self.neighbors)
        self.monitor = StabilityMonitor(thresholds)

        self._emitter = EventEmitter()
        self._step_count = 0
        self._running = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._interval = 0.0

        # Tracking
        self._total_steps = 0
        self._wall_time = 0.0

    @staticmethod
    def _params(config: EngineConfig) -> SimulationParams:
        return SimulationParams(
            particle_count=config.world.particle_count,
            box=config.world.box.to_half_box(),
            dt=config.runtime.dt,
            cutoff=config.runtime.cutoff,
        )

    @staticmethod
    def _build_strategy(config: EngineConfig) -> NeighborStrategy:
        if config.neighbor.strategy == NaiveStrategy.name:
            return NaiveStrategy()
        return CellListStrategy(box=config.world.box.to_half_box())

    @staticmethod
    def _pbc(config: EngineConfig) -> HalfBox | None:
        return config.world.box.to_half_box() if config.runtime.pbc else None

    @staticmethod
    def build_forces(config: EngineConfig) -> list[ForceField]:
        """
        Create the enabled force fields for ``config``.

        Periodic runs use Ewald sums for gravity and Coulomb; open runs use the
        softened kernels with softening from :func:`compute_softening_length`
        unless ``runtime.softening`` overrides it.
        """
        runtime = config.runtime
        constants = config.constants
        box = config.world.box.to_half_box()
        n = config.world.particle_count

        if runtime.softening is not None:
            gravity_softening = coulomb_softening = runtime.softening
        else:
            gravity_softening = compute_softening_length(n, box, GRAVITY_SOFTENING_FACTOR)
            coulomb_softening = compute_softening_length(n, box, COULOMB_SOFTENING_FACTOR)

        forces: list[ForceField] = []
        if config.forces.lennard_jones:
            forces.append(LennardJones(constants.epsilon, constants.sigma))
        if config.forces.gravity:
            if runtime.pbc:
                forces.append(
                    EwaldGravity(
                        constants.G,
                        alpha=runtime.ewald_alpha,
                        k_max=runtime.ewald_k_max,
                        softening=gravity_softening,
                    )
                )
            else:
                forces.append(Gravity(constants.G, softening=gravity_softening))
        if config.forces.coulomb:
            if runtime.pbc:
                forces.append(
                    EwaldCoulomb(
                        constants.K,
                        alpha=runtime.ewald_alpha,
                        k_max=runtime.ewald_k_max,
                        softening=coulomb_softening,
                    )
                )
            else:
                forces.append(Coulomb(constants.K, softening=coulomb_softening))
        return forces

    def _build_simulation(
        self,
        config: EngineConfig,
        state: SimulationState,
        neighbors: NeighborStrategy,
    ) -> Simulation:
        integrator = INTEGRATORS[config.runtime.integrator]()
        return Simulation(
            state,
            integrator,
            self.build_forces(config),
            SimulationConfig(dt=config.runtime.dt, cutoff=config.runtime.cutoff),
            neighbors=neighbors,
            pbc=self._pbc(config),
        )

    # ------------------------------------------------------------------
    # Events

    def on(self, event: str, listener: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribe to an engine event.

        Events: ``frame``, ``diagnostics``, ``config``, ``error``,
        ``state_reallocated``, ``wrap``, ``instability``.

        Returns:
            Unsubscribe callable.

        Raises:
            ValueError: For an unknown event name.
        """
        return self._emitter.on(event, listener)

    # ------------------------------------------------------------------
    # Accessors

    @property
    def step_count(self) -> int:
        """Number of successful steps taken."""
        return self._step_count

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def performance(self) -> dict[str, float]:
        """Return performance statistics of :meth:`run`."""
        if self._wall_time == 0:
            return {"steps_per_second": 0.0, "wall_time": 0.0, "total_steps": self._total_steps}

        return {
            "steps_per_second": self._total_steps / self._wall_time,
            "wall_time": self._wall_time,
            "total_steps": self._total_steps,
        }

    def get_state(self) -> SimulationState:
        """Return the live state (read-only usage)."""
        return self.state

    def get_config(self) -> EngineConfig:
        """Return a deep copy of the current configuration."""
        return self.config.copy()

    def get_forces(self) -> list[ForceField]:
        """Return the active force fields."""
        return self.simulation.forces

    def get_per_force_contributions(self) -> dict[str, NDArray[np.floating]]:
        """Per-field force decomposition of the last evaluation."""
        return self.simulation.get_per_force_contributions()

    def set_time(self, t: float) -> None:
        """Set simulation time (used when hydrating)."""
        self.state.time = float(t)

    def seed(
        self,
        positions: ArrayLike | None = None,
        velocities: ArrayLike | None = None,
        masses: ArrayLike | None = None,
        charges: ArrayLike | None = None,
    ) -> None:
        """
        Copy external data into the existing state buffers.

        Inputs are flattened; excess elements are ignored and missing ones left
        unchanged. Omitted arguments leave their buffer untouched.
        """
        for name, source in (
            ("positions", positions),
            ("velocities", velocities),
            ("masses", masses),
            ("charges", charges),
        ):
            if source is None:
                continue
            flat_src = np.asarray(source, dtype=np.float64).reshape(-1)
            target = getattr(self.state, name).reshape(-1)
            k = min(len(flat_src), len(target))
            target[:k] = flat_src[:k]

    # ------------------------------------------------------------------
    # Stepping

    def diagnostics(self) -> Diagnostics:
        """Compute diagnostics for the current state."""
        return compute_diagnostics(
            self.state,
            self.simulation.forces,
            self.simulation.ctx,
            self.config.constants.kB,
        )

    def _stability_config(self) -> StabilityConfig:
        runtime = self.config.runtime
        return StabilityConfig(
            thermostat_enabled=runtime.thermostat,
            target_temperature=runtime.target_temperature,
            dt=runtime.dt,
        )

    def _wrap(self, box: HalfBox) -> None:
        records = wrap_positions_with_tracking(self.state.positions, box)
        if not records:
            return
        if logger.isEnabledFor(logging.DEBUG):
            if len(records) <= WRAP_DETAIL_LIMIT:
                for line in format_wrap_records(records):
                    logger.debug("PBC wrap: %s", line)
            else:
                logger.debug("PBC wrap: %d particles crossed boundaries", len(records))
        self._emitter.emit("wrap", records)

    def _thermostat(self) -> None:
        runtime = self.config.runtime
        if not runtime.thermostat:
            return
        VelocityRescaleThermostat(
            runtime.target_temperature, self.config.constants.kB
        ).apply(self.state)

    def step(self) -> bool:
        """
        Perform a single simulation step.

        Pipeline:
        1. Rebuild the neighbor strategy when it asks for it
        2. Advance the simulation
        3. Wrap positions into the box (periodic runs)
        4. Apply the thermostat
        5. Emit ``frame``
        6. Every ``diagnostics_every`` steps, emit ``diagnostics`` and run
           the stability monitor

        Returns:
            True if the step completed, False if it failed (the engine is
            then paused and the failure emitted on ``error``).
        """
        try:
            pbc = self._pbc(self.config)
            if self.neighbors.rebuild_every_step:
                self.neighbors.rebuild(self.state, self.config.runtime.cutoff, pbc)
            self.simulation.step()
            if pbc is not None:
                self._wrap(pbc)
            self._thermostat()

            self._step_count += 1
            self._emitter.emit(
                "frame", Frame(time=self.state.time, state=self.state, step=self._step_count)
            )

            if self._step_count % self.config.runtime.diagnostics_every == 0:
                diag = self.diagnostics()
                self._emitter.emit("diagnostics", diag)
                result = self.monitor.check(diag, self._stability_config())
                if result is not None:
                    logger.warning(
                        "Stability %s at step %d: %s",
                        result.level.value,
                        self._step_count,
                        result.message,
                    )
                    self._emitter.emit("instability", result)
        except Exception as exc:
            self.pause()
            logger.exception("Step %d failed; engine paused", self._step_count + 1)
            self._emitter.emit("error", StepFailure(self._step_count + 1, exc))
            return False
        return True

    def run(
        self,
        n_steps: int,
        callback: Callable[[SimulationEngine], bool] | None = None,
    ) -> SimulationState:
        """
        Step synchronously.

        Args:
            n_steps: Maximum number of steps.
            callback: Optional callback called each step.
                     Return True to stop early.

        Returns:
            Final simulation state.
        """
        if self._running:
            raise RuntimeError("Engine is already running")
        self._running = True

        start_time = time.perf_counter()

        try:
            for _ in range(n_steps):
                if not self._running:
                    break

                if not self.step():
                    break
                self._total_steps += 1

                if callback is not None and callback(self):
                    break
        finally:
            self._wall_time += time.perf_counter() - start_time
            self._running = False

        return self.state

    def start(self, interval: float | None = None) -> None:
        """
        Begin continuous stepping on the running asyncio event loop.

        Each step is scheduled only after the previous one returned. Calling
        while already running is a no-op.

        Args:
            interval: Delay in seconds between steps (0 when omitted).

        Raises:
            RuntimeError: If no event loop is running.
        """
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        self._interval = interval if interval is not None else 0.0
        self._running = True
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if not self._running:
            return
        self.step()
        # A listener may already have restarted the loop
        if self._running and self._handle is None:
            self._schedule()

    def pause(self) -> None:
        """Stop continuous stepping. Safe to call repeatedly."""
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    # ------------------------------------------------------------------
    # Reconfiguration

    def update_config(self, patch: Mapping[str, Any]) -> None:
        """
        Merge a camelCase patch into the configuration and rebuild.

        The merged configuration is validated first; nothing changes when it
        is invalid. The state is resized when ``world.particleCount`` changes
        and the strategy is recreated when its type or the box changes. All new
        objects are built before any is assigned.

        Raises:
            ConfigValidationError: If the patch or merged result is invalid.
        """
        new_config = self.config.merged(patch)
        validate_engine_config(new_config)

        resized = new_config.world.particle_count != self.state.n
        state = self.state.resized(new_config.world.particle_count) if resized else self.state

        neighbors = self.neighbors
        box_changed = new_config.world.box != self.config.world.box
        if new_config.neighbor.strategy != neighbors.name or (
            box_changed and isinstance(neighbors, CellListStrategy)
        ):
            neighbors = self._build_strategy(new_config)

        simulation = self._build_simulation(new_config, state, neighbors)

        self.config = new_config
        self.state = state
        self.neighbors = neighbors
        self.simulation = simulation
        self.monitor.reset()

        logger.debug("Config updated: %s", dict(patch))
        if resized:
            logger.debug("State reallocated for %d particles", state.n)
            self._emitter.emit("state_reallocated", state)
        self._emitter.emit("config", self.get_config())

    def resize_particle_count(self, n: int) -> None:
        """
        Reallocate state for ``n`` particles, keeping the overlapping prefix.

        Raises:
            ConfigValidationError: If ``n`` is not a positive integer.
        """
        try:
            n = operator.index(n)
        except TypeError:
            raise ConfigValidationError(
                f"particleCount must be an integer > 0, got {n!r}"
            ) from None
        if n == self.state.n:
            return

        new_config = self.config.copy()
        new_config.world.particle_count = n
        validate_engine_config(new_config)
        state = self.state.resized(n)
        simulation = self._build_simulation(new_config, state, self.neighbors)

        self.config = new_config
        self.state = state
        self.simulation = simulation
        self.monitor.reset()

        logger.debug("State reallocated for %d particles", n)
        self._emitter.emit("state_reallocated", state)
