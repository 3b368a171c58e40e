"""Tests for the actuator driver."""

import logging
import math

import numpy as np
import pytest

from flight_assist.actuators import ActuatorDriver
from flight_assist.controllers import ZERO_RATE, RateCommand
from flight_assist.host.simulated import SimulatedGyro
from flight_assist.utils import vector_math as vm


@pytest.fixture
def mixed_gyros():
    """Three gyros: aligned, yawed 90 degrees, and rolled upside down."""
    return [
        SimulatedGyro(),
        SimulatedGyro(orientation=vm.rotation_matrix(vm.LOCAL_UP, math.pi / 2)),
        SimulatedGyro(orientation=vm.rotation_matrix(vm.LOCAL_BACKWARD, math.pi)),
    ]


class TestConstruction:
    """Tests for handle validation and limits."""

    def test_empty_handles_rejected(self):
        with pytest.raises(ValueError):
            ActuatorDriver([])

    def test_starts_disabled_with_zero_command(self):
        driver = ActuatorDriver([SimulatedGyro()])
        assert not driver.enabled
        assert driver.last_command == ZERO_RATE
        assert len(driver) == 1

    def test_max_rate_is_smallest_limit(self):
        driver = ActuatorDriver([SimulatedGyro(max_rate=30.0), SimulatedGyro(max_rate=12.0)])
        assert driver.max_rate == 12.0


class TestFrameRotation:
    """Tests for per-gyro frame conversion."""

    def test_aligned_gyro_receives_command_unchanged(self):
        gyro = SimulatedGyro()
        driver = ActuatorDriver([gyro])
        command = RateCommand(pitch=1.0, yaw=-2.0, roll=0.5)
        driver.apply(command)
        assert gyro.rates == pytest.approx({"pitch": 1.0, "yaw": -2.0, "roll": 0.5})

    def test_every_gyro_reproduces_ship_rate(self, mixed_gyros):
        driver = ActuatorDriver(mixed_gyros)
        command = RateCommand(pitch=3.0, yaw=-1.5, roll=2.0)
        driver.apply(command)
        expected = command.to_angular_velocity()
        for gyro in mixed_gyros:
            assert np.allclose(gyro.grid_rate(), expected)

    def test_round_trip_through_actuator_frames(self, mixed_gyros):
        driver = ActuatorDriver(mixed_gyros)
        command = RateCommand(pitch=-4.0, yaw=0.25, roll=7.0)
        local = driver.to_actuator_frames(command)
        for ship_rate in driver.to_ship_frame(local):
            assert np.allclose(ship_rate, command.to_angular_velocity())

    def test_yawed_gyro_swaps_pitch_and_roll(self):
        gyro = SimulatedGyro(orientation=vm.rotation_matrix(vm.LOCAL_UP, math.pi / 2))
        driver = ActuatorDriver([gyro])
        (local,) = driver.to_actuator_frames(RateCommand(pitch=5.0))
        assert local.pitch == pytest.approx(0.0, abs=1e-12)
        assert abs(local.roll) == pytest.approx(5.0)


class TestOverride:
    """Tests for enabling and releasing gyro override."""

    def test_enable_sets_override_and_zeroes_rates(self, mixed_gyros):
        driver = ActuatorDriver(mixed_gyros)
        driver.apply(RateCommand(pitch=3.0))
        driver.set_enabled(True)
        for gyro in mixed_gyros:
            assert gyro.override
            assert gyro.rates == {"pitch": 0.0, "yaw": 0.0, "roll": 0.0}
        assert driver.last_command == ZERO_RATE

    def test_disable_releases_override(self, mixed_gyros):
        driver = ActuatorDriver(mixed_gyros)
        driver.set_enabled(True)
        driver.apply(RateCommand(yaw=2.0))
        driver.set_enabled(False)
        assert not driver.enabled
        assert not any(gyro.override for gyro in mixed_gyros)
        assert all(rate == 0.0 for gyro in mixed_gyros for rate in gyro.rates.values())

    def test_state_change_is_logged(self, caplog):
        driver = ActuatorDriver([SimulatedGyro()])
        with caplog.at_level(logging.INFO, logger="flight_assist.actuators"):
            driver.set_enabled(True)
            driver.set_enabled(True)
        assert sum("Gyro override enabled" in r.message for r in caplog.records) == 1


class TestNonFiniteGuard:
    """Tests for the non-finite command guard."""

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_replaced_with_zero(self, bad, caplog):
        gyro = SimulatedGyro()
        driver = ActuatorDriver([gyro])
        with caplog.at_level(logging.WARNING, logger="flight_assist.actuators"):
            driver.apply(RateCommand(pitch=1.0, yaw=bad))
        assert gyro.rates == {"pitch": 0.0, "yaw": 0.0, "roll": 0.0}
        assert driver.last_command == ZERO_RATE
        assert any("Non-finite" in r.message for r in caplog.records)

    def test_writes_are_clipped_by_gyro(self):
        gyro = SimulatedGyro(max_rate=10.0)
        ActuatorDriver([gyro]).apply(RateCommand(pitch=25.0))
        assert gyro.rates["pitch"] == 10.0
