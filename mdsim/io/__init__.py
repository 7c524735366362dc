"""Snapshot persistence."""

from .snapshot import (
    SNAPSHOT_VERSION,
    hydrate,
    load_snapshot,
    save_snapshot,
    snapshot,
)

__all__ = [
    "SNAPSHOT_VERSION",
    "snapshot",
    "hydrate",
    "save_snapshot",
    "load_snapshot",
]
