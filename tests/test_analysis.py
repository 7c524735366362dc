"""Tests for diagnostics and stability monitoring."""

import math

import numpy as np
import pytest

from mdsim.analysis import (
    Diagnostics,
    StabilityConfig,
    StabilityLevel,
    StabilityMonitor,
    StabilityThresholds,
    compute_diagnostics,
    kinetic_energy,
    temperature_from_kinetic,
)
from mdsim.forcefields import ForceContext, Gravity
from mdsim.system import SimulationState


def diag(total=1.0, temperature=1.0, max_speed=1.0, max_force=1.0, time=0.0):
    """Build a Diagnostics record with only the fields under test set."""
    return Diagnostics(
        time=time,
        kinetic=0.0,
        potential=total,
        total=total,
        temperature=temperature,
        max_speed=max_speed,
        max_force_mag=max_force,
    )


@pytest.fixture
def monitor():
    """Monitor with default thresholds."""
    return StabilityMonitor()


@pytest.fixture
def open_config():
    """No thermostat."""
    return StabilityConfig(thermostat_enabled=False, dt=0.01)


class TestDiagnostics:
    """Test kinetic energy, temperature and extrema."""

    def test_two_particles(self):
        """Test KE and temperature for two moving particles."""
        state = SimulationState(
            positions=np.zeros((2, 3)),
            velocities=np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 1.0]]),
            forces=np.array([[3.0, 4.0, 0.0], [0.0, 0.0, 0.0]]),
            masses=np.array([1.0, 1.0]),
            charges=np.zeros(2),
        )
        d = compute_diagnostics(state, [], ForceContext(cutoff=1.0), kB=1.0)

        assert np.isclose(d.kinetic, 1.5)
        # 3N - 3 = 3 degrees of freedom
        assert np.isclose(d.temperature, 1.0)
        assert np.isclose(d.max_speed, np.sqrt(2.0))
        assert np.isclose(d.max_force_mag, 5.0)
        assert d.potential == 0.0
        assert np.isclose(d.total, 1.5)

    def test_potential_from_forces(self):
        """Test the potential is summed from the active force fields."""
        state = SimulationState(
            positions=np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]]),
            velocities=np.zeros((2, 3)),
            forces=np.zeros((2, 3)),
            masses=np.array([1.0, 1.0]),
            charges=np.zeros(2),
        )
        d = compute_diagnostics(state, [Gravity(G=1.0)], ForceContext(cutoff=5.0), kB=1.0)

        assert np.isclose(d.potential, -0.5)
        assert np.isclose(d.total, -0.5)

    def test_single_particle_temperature(self):
        """Test a lone particle has zero temperature."""
        assert temperature_from_kinetic(10.0, 1, kB=1.0) == 0.0
        assert temperature_from_kinetic(10.0, 0, kB=1.0) == 0.0

    def test_zero_mass_kinetic(self):
        """Test unset masses count as unit mass."""
        state = SimulationState(
            positions=np.zeros((1, 3)),
            velocities=np.array([[2.0, 0.0, 0.0]]),
            forces=np.zeros((1, 3)),
            masses=np.zeros(1),
            charges=np.zeros(1),
        )
        assert np.isclose(kinetic_energy(state), 2.0)

    def test_empty_state(self):
        """Test diagnostics of a system with no particles."""
        state = SimulationState(
            positions=np.zeros((0, 3)),
            velocities=np.zeros((0, 3)),
            forces=np.zeros((0, 3)),
            masses=np.zeros(0),
            charges=np.zeros(0),
        )
        d = compute_diagnostics(state, [], ForceContext(cutoff=1.0), kB=1.0)
        assert d.max_speed == 0.0
        assert d.temperature == 0.0

    def test_to_dict(self):
        """Test dictionary export."""
        data = diag(total=2.0).to_dict()
        assert data["total"] == 2.0
        assert set(data) == {
            "time",
            "kinetic",
            "potential",
            "total",
            "temperature",
            "max_speed",
            "max_force_mag",
        }


class TestCriticalTier:
    """Test NaN / infinity detection."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"total": math.nan},
            {"temperature": math.inf},
            {"max_speed": math.nan},
            {"max_force": -math.inf},
        ],
    )
    def test_non_finite_is_critical(self, monitor, open_config, kwargs):
        """Test a single non-finite value triggers immediately."""
        result = monitor.check(diag(**kwargs), open_config)

        assert result.level == StabilityLevel.CRITICAL
        assert result.message == "Simulation crashed (NaN/Infinity detected)"
        assert result.suggestions
        assert monitor.level == StabilityLevel.CRITICAL


class TestSevereTier:
    """Test the consecutive-frame extreme value tier."""

    def test_fires_on_third_frame(self, monitor, open_config):
        """Test severe reports only after three consecutive frames."""
        fast = diag(max_speed=1000.0)

        assert monitor.check(fast, open_config) is None
        assert monitor.check(fast, open_config) is None
        result = monitor.check(fast, open_config)

        assert result.level == StabilityLevel.SEVERE
        assert result.message.startswith("Extreme values detected")
        assert "fast" in result.message

    def test_force_message(self, monitor, open_config):
        """Test the large-force variant of the message."""
        for _ in range(3):
            result = monitor.check(diag(max_force=1e6), open_config)
        assert "forces" in result.message

    def test_counter_resets(self, monitor, open_config):
        """Test a calm frame resets the severe counter."""
        fast = diag(max_speed=1000.0)
        monitor.check(fast, open_config)
        monitor.check(fast, open_config)
        monitor.check(diag(), open_config)

        assert monitor.severe_frames == 0
        assert monitor.check(fast, open_config) is None
        assert monitor.check(fast, open_config) is None
        assert monitor.check(fast, open_config).level == StabilityLevel.SEVERE

    def test_custom_thresholds(self, open_config):
        """Test thresholds are configurable."""
        monitor = StabilityMonitor(StabilityThresholds(max_speed=10.0, severe_frames=1))
        assert monitor.check(diag(max_speed=11.0), open_config).level == StabilityLevel.SEVERE


class TestWarningTier:
    """Test energy drift and temperature warnings."""

    def test_energy_drift(self, monitor, open_config):
        """Test a 10% per-step drift warns on the twentieth drifting frame."""
        results = [monitor.check(diag(total=1.1**k), open_config) for k in range(21)]

        assert all(r is None for r in results[:20])
        assert results[20].level == StabilityLevel.WARNING
        assert results[20].message == "Energy drift detected: 10.0% per step"

    def test_small_drift_is_stable(self, monitor, open_config):
        """Test drift below threshold never warns."""
        for k in range(40):
            assert monitor.check(diag(total=1.01**k), open_config) is None
        assert monitor.level == StabilityLevel.STABLE

    def test_drift_counter_resets(self, monitor, open_config):
        """Test a steady frame resets the warning counter."""
        for k in range(10):
            monitor.check(diag(total=1.1**k), open_config)
        assert monitor.warning_frames == 9

        monitor.check(diag(total=1.1**9), open_config)
        assert monitor.warning_frames == 0

    def test_temperature_with_thermostat(self, monitor):
        """Test hot frames warn after twenty frames when the thermostat is on."""
        config = StabilityConfig(thermostat_enabled=True, target_temperature=1.0, dt=0.01)
        results = [monitor.check(diag(temperature=6.0), config) for _ in range(20)]

        assert all(r is None for r in results[:19])
        assert results[19].level == StabilityLevel.WARNING
        assert results[19].message == "Temperature 6.0x target (thermostat unable to cool)"

    def test_thermostat_ignores_drift(self, monitor):
        """Test energy drift is not checked while the thermostat runs."""
        config = StabilityConfig(thermostat_enabled=True, target_temperature=1.0)
        for k in range(30):
            assert monitor.check(diag(total=2.0**k), config) is None

    def test_severe_takes_precedence(self, monitor, open_config):
        """Test a warning is not reported on a frame that reports severe."""
        for k in range(25):
            result = monitor.check(diag(total=1.1**k, max_speed=1000.0), open_config)
        assert result.level == StabilityLevel.SEVERE
        assert monitor.warning_frames == 24


class TestReset:
    """Test monitor reset."""

    def test_reset_clears_state(self, monitor, open_config):
        """Test counters and energy history are cleared."""
        monitor.check(diag(max_speed=1000.0), open_config)
        monitor.check(diag(total=5.0, max_speed=1000.0), open_config)

        monitor.reset()

        assert monitor.severe_frames == 0
        assert monitor.warning_frames == 0
        assert monitor.level == StabilityLevel.STABLE
        # No previous energy, so the first frame after reset cannot drift
        assert monitor.check(diag(total=100.0), open_config) is None
        assert monitor.warning_frames == 0
