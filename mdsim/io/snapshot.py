"""Versioned JSON snapshots of engine state."""

from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

from ..engines import EngineConfig, SimulationEngine
from ..errors import UnsupportedSnapshotVersion

if TYPE_CHECKING:
    from collections.abc import Mapping

# Snapshot format version for compatibility checking
SNAPSHOT_VERSION = 1


def snapshot(engine: SimulationEngine) -> dict[str, Any]:
    """
    Capture the engine's domain state as a JSON-serializable mapping.

    Vector arrays are flattened to ``[x0, y0, z0, x1, ...]``.

    Returns:
        ``{version, config, time, positions, velocities, masses, charges,
        escaped}``.
    """
    state = engine.get_state()
    return {
        "version": SNAPSHOT_VERSION,
        "config": engine.get_config().to_dict(),
        "time": float(state.time),
        "positions": state.positions.reshape(-1).tolist(),
        "velocities": state.velocities.reshape(-1).tolist(),
        "masses": state.masses.tolist(),
        "charges": state.charges.tolist(),
        "escaped": [int(v) for v in state.escaped],
    }


def _check_version(snap: Mapping[str, Any]) -> None:
    version = snap.get("version")
    if version != SNAPSHOT_VERSION or isinstance(version, bool):
        raise UnsupportedSnapshotVersion(version)


def hydrate(snap: Mapping[str, Any]) -> SimulationEngine:
    """
    Build a new engine from a snapshot.

    Args:
        snap: Mapping produced by :func:`snapshot`.

    Returns:
        Engine with the snapshot's config, arrays and time.

    Raises:
        UnsupportedSnapshotVersion: If ``version`` is not 1.
        ConfigValidationError: If the embedded config is invalid.
    """
    _check_version(snap)
    engine = SimulationEngine(EngineConfig.from_dict(snap["config"]))
    engine.seed(
        positions=snap.get("positions"),
        velocities=snap.get("velocities"),
        masses=snap.get("masses"),
        charges=snap.get("charges"),
    )
    state = engine.get_state()
    escaped = snap.get("escaped")
    if escaped is not None and len(escaped) == state.n:
        state.escaped[:] = np.asarray(escaped, dtype=np.uint8)
    engine.set_time(snap.get("time", 0.0))
    return engine


def save_snapshot(engine: SimulationEngine, path: str | Path) -> Path:
    """
    Write a snapshot of ``engine`` to ``path`` as JSON.

    Paths ending in ``.gz`` are gzip-compressed.

    Returns:
        Path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = json.dumps(snapshot(engine)).encode("utf-8")
    if path.suffix == ".gz":
        with gzip.open(path, "wb") as f:
            f.write(data)
    else:
        path.write_bytes(data)
    return path


def load_snapshot(path: str | Path) -> SimulationEngine:
    """
    Read a snapshot file written by :func:`save_snapshot` and hydrate it.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        UnsupportedSnapshotVersion: If the stored version is not 1.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")
    if path.suffix == ".gz":
        with gzip.open(path, "rb") as f:
            raw = f.read()
    else:
        raw = path.read_bytes()
    return hydrate(json.loads(raw.decode("utf-8")))
