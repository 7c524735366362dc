"""Engine event channels and listeners."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from ..analysis import Diagnostics
    from ..system import SimulationState

EVENT_NAMES = (
    "frame",
    "diagnostics",
    "config",
    "error",
    "state_reallocated",
    "wrap",
    "instability",
)

Listener = Callable[[Any], None]


@dataclass(frozen=True)
class Frame:
    """Payload of the ``frame`` event."""

    time: float
    state: SimulationState
    step: int


class EventEmitter:
    """
    Named listener lists for a fixed set of channels.

    Example:
        emitter = EventEmitter()
        off = emitter.on("frame", lambda frame: print(frame.step))
        emitter.emit("frame", frame)
        off()
    """

    def __init__(self, names: tuple[str, ...] = EVENT_NAMES) -> None:
        self._listeners: dict[str, list[Listener]] = {name: [] for name in names}

    def _channel(self, event: str) -> list[Listener]:
        try:
            return self._listeners[event]
        except KeyError:
            raise ValueError(f"Unknown event '{event}'") from None

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """
        Subscribe ``listener`` to ``event``.

        Returns:
            Callable that removes the subscription (safe to call twice).
        """
        channel = self._channel(event)
        channel.append(listener)

        def unsubscribe() -> None:
            if listener in channel:
                channel.remove(listener)

        return unsubscribe

    def emit(self, event: str, payload: Any) -> None:
        """Call every listener of ``event`` in subscription order."""
        for listener in list(self._channel(event)):
            listener(payload)

    def listener_count(self, event: str) -> int:
        return len(self._channel(event))


class DiagnosticsRecorder:
    """
    Listener that accumulates ``diagnostics`` payloads.

    Attach with ``engine.on("diagnostics", recorder)``.
    """

    def __init__(self) -> None:
        self._records: list[Diagnostics] = []

    def __call__(self, diagnostics: Diagnostics) -> None:
        self._records.append(diagnostics)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[Diagnostics]:
        return list(self._records)

    @property
    def times(self) -> np.ndarray:
        return np.array([d.time for d in self._records])

    @property
    def total_energy(self) -> np.ndarray:
        return np.array([d.total for d in self._records])

    @property
    def temperature(self) -> np.ndarray:
        return np.array([d.temperature for d in self._records])

    def relative_drift(self) -> float:
        """Return ``|E_last - E_first| / |E_first|`` (0 with fewer than 2 records)."""
        if len(self._records) < 2:
            return 0.0
        e0 = self._records[0].total
        e1 = self._records[-1].total
        return abs(e1 - e0) / abs(e0 or 1.0)

    def clear(self) -> None:
        self._records.clear()


class TrajectoryRecorder:
    """
    Listener that stores position snapshots from ``frame`` events.

    Args:
        frequency: Keep every ``frequency``-th frame.
    """

    def __init__(self, frequency: int = 1) -> None:
        self._frequency = frequency
        self._positions: list[np.ndarray] = []
        self._times: list[float] = []

    def __call__(self, frame: Frame) -> None:
        if frame.step % self._frequency != 0:
            return
        self._positions.append(frame.state.positions.copy())
        self._times.append(frame.time)

    @property
    def n_frames(self) -> int:
        return len(self._positions)

    @property
    def positions(self) -> np.ndarray:
        """Return positions, shape (n_frames, N, 3)."""
        return np.array(self._positions)

    @property
    def times(self) -> np.ndarray:
        return np.array(self._times)

    def clear(self) -> None:
        self._positions.clear()
        self._times.clear()
