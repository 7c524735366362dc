"""Exception types raised or emitted by the simulation core."""

from __future__ import annotations


class ConfigValidationError(ValueError):
    """Raised when an engine configuration (or a patch to one) is malformed."""


class UnsupportedSnapshotVersion(ValueError):
    """Raised when hydrating a snapshot whose schema version is not understood."""

    def __init__(self, version: object) -> None:
        super().__init__(f"Unsupported snapshot version {version!r}")
        self.version = version


class StepFailure(RuntimeError):
    """
    Wraps an exception raised while advancing the simulation.

    Never raised out of the engine's step loop; it is delivered on the
    ``error`` event channel after the engine has paused itself.

    Attributes:
        step: Engine step counter at the time of the failure.
    """

    def __init__(self, step: int, cause: BaseException) -> None:
        super().__init__(f"Simulation step {step} failed: {cause}")
        self.step = step
        self.__cause__ = cause
