#!/usr/bin/env python
"""
Quick start example - configure an engine, listen to events and save a snapshot.

This script demonstrates how to:
1. Build an engine from a camelCase configuration patch
2. Seed random masses, charges and positions
3. Record diagnostics and react to instabilities
4. Save and restore a snapshot

Usage:
    python examples/quickstart.py
"""

import logging

import numpy as np

from mdsim.engines import DiagnosticsRecorder, EngineConfig, SimulationEngine
from mdsim.io import load_snapshot, save_snapshot
from mdsim.system import generate_masses_charges, generate_positions


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("mdsim Quick Start")
    print("=" * 60)

    config = EngineConfig.default().merged(
        {
            "world": {"particleCount": 50},
            "runtime": {"dt": 0.005, "cutoff": 3.0},
            "constants": {"sigma": 0.2},
        }
    )
    engine = SimulationEngine(config)

    rng = np.random.default_rng(42)
    box = config.world.box.to_half_box()
    masses, charges = generate_masses_charges(50, 1.0, 3.0, [-1.0, 1.0], rng=rng)
    engine.seed(
        positions=generate_positions(50, box, rng=rng),
        masses=masses,
        charges=charges,
    )

    recorder = DiagnosticsRecorder()
    engine.on("diagnostics", recorder)
    engine.on("instability", lambda r: print(f"   [{r.level.value}] {r.message}"))
    engine.on("error", lambda err: print(f"   Engine stopped: {err}"))

    print("\n1. Open boundaries, 500 steps:")
    print("-" * 40)
    engine.run(500)
    print(f"   Final time:        {engine.get_state().time:.3f}")
    print(f"   Final temperature: {recorder.temperature[-1]:.4f}")
    print(f"   Energy drift:      {recorder.relative_drift():.2%}")
    print(f"   Steps/second:      {engine.performance['steps_per_second']:.0f}")

    print("\n2. Switch to periodic boundaries with a thermostat:")
    print("-" * 40)
    engine.update_config(
        {"runtime": {"pbc": True, "thermostat": True, "targetTemperature": 0.05}}
    )
    wraps = []
    engine.on("wrap", wraps.append)
    recorder.clear()
    engine.run(500)
    print(f"   Force fields:      {[f.name for f in engine.get_forces()]}")
    print(f"   Wrap events:       {len(wraps)}")
    print(f"   Mean temperature:  {np.mean(recorder.temperature):.4f}")

    print("\n3. Snapshot round trip:")
    print("-" * 40)
    path = save_snapshot(engine, "quickstart_snapshot.json.gz")
    restored = load_snapshot(path)
    same = np.array_equal(restored.get_state().positions, engine.get_state().positions)
    print(f"   Saved to {path}; positions restored: {same}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
