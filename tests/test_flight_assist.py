"""Tests for the FlightAssist tick loop and command routing."""

import logging
import math

import numpy as np
import pytest

from flight_assist.assist import FlightAssist
from flight_assist.controllers import ZERO_RATE
from flight_assist.errors import MissingCollaboratorError
from flight_assist.host.config import BlockParams, FlightAssistConfig, GyroParams
from flight_assist.host.simulated import SimulatedHost, SimulatedShip
from flight_assist.modes import ModeName
from flight_assist.utils import vector_math as vm

GRAVITY = (0.0, -vm.STANDARD_GRAVITY, 0.0)


def make_assist(config=None, with_display=True, **ship_kwargs):
    """Build a FlightAssist wired to a fresh simulated ship."""
    config = config or FlightAssistConfig()
    ship = SimulatedShip(config, **ship_kwargs)
    host = SimulatedHost(ship, config, with_display=with_display)
    return FlightAssist.from_host(host, config), host


def advance(assist, host, ticks):
    """Run ``ticks`` passive ticks, stepping the ship after each one."""
    result = None
    for _ in range(ticks):
        result = assist.run()
        host.step()
    return result


class TestFromHost:
    """Tests for collaborator resolution."""

    def test_resolves_collaborators(self):
        assist, host = make_assist()
        assert assist.sensor is host.sensor
        assert assist.driver.handles == host.ship.gyros
        assert assist.pager.sink is host.display

    def test_missing_sensor_raises(self, caplog):
        host = SimulatedHost(SimulatedShip())
        config = FlightAssistConfig(blocks=BlockParams(remote_control_name="Other Remote"))
        with caplog.at_level(logging.ERROR, logger="flight_assist.assist"):
            with pytest.raises(MissingCollaboratorError) as exc_info:
                FlightAssist.from_host(host, config)
        assert exc_info.value.block_type == "remote control"
        assert "Other Remote" in str(exc_info.value)
        assert "Other Remote" in caplog.text

    def test_too_few_gyros_raises(self):
        config = FlightAssistConfig(gyros=GyroParams(count=3))
        host = SimulatedHost(SimulatedShip(config), config, gyro_count=1)
        with pytest.raises(MissingCollaboratorError, match="only 1 found"):
            FlightAssist.from_host(host, config)

    def test_missing_display_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="flight_assist.assist"):
            assist, _ = make_assist(with_display=False)
        assert assist.pager.sink is None
        assert "status display disabled" in caplog.text

    def test_empty_panel_name_skips_display(self, caplog):
        config = FlightAssistConfig(blocks=BlockParams(text_panel_name=""))
        with caplog.at_level(logging.WARNING, logger="flight_assist.assist"):
            assist, _ = make_assist(config)
        assert assist.pager.sink is None
        assert caplog.text == ""


class TestTick:
    """Tests for one passive tick."""

    def test_disabled_leaves_gyros_alone(self):
        assist, host = make_assist(gravity=GRAVITY)
        result = advance(assist, host, 3)
        assert result.mode == ModeName.DISABLED
        assert not result.gyros_enabled
        assert all(gyro.writes == 0 for gyro in host.ship.gyros)

    def test_hover_at_rest_commands_zero(self):
        assist, host = make_assist(gravity=GRAVITY, main_thrust=True)
        advance(assist, host, 2)
        assert assist.run("hover toggle") is None
        result = advance(assist, host, 1)
        assert result.mode == ModeName.HOVER
        assert result.gyros_enabled
        assert result.output.target.pitch == 0.0
        assert result.output.target.roll == 0.0
        assert result.command == ZERO_RATE

    def test_cruise_at_set_point_holds_attitude(self):
        assist, host = make_assist(gravity=GRAVITY, main_thrust=True, velocity=(0.0, 0.0, -10.0))
        advance(assist, host, 2)
        assist.run("hover cruise 10")
        assist.run("hover toggle")
        result = advance(assist, host, 1)
        assert result.mode == ModeName.CRUISE
        min_rate = assist.config.gyros.min_rate
        assert abs(result.command.pitch) <= min_rate + 1e-12
        assert abs(result.command.roll) <= min_rate + 1e-12

    def test_forward_drift_pitches_nose_up(self):
        assist, host = make_assist(gravity=GRAVITY, main_thrust=True, velocity=(0.0, 0.0, -8.0))
        advance(assist, host, 2)
        assist.run("hover toggle")
        result = advance(assist, host, 1)
        assert result.command.pitch > 0.0

    def test_gravity_loss_disables_mode_and_releases_gyros(self):
        assist, host = make_assist(gravity=GRAVITY, main_thrust=True)
        advance(assist, host, 2)
        assist.run("hover toggle")
        advance(assist, host, 1)

        host.ship.gravity = None
        result = advance(assist, host, 1)

        assert result.state.gravity_transitioned
        assert result.mode == ModeName.DISABLED
        assert not result.gyros_enabled
        assert not any(gyro.override for gyro in host.ship.gyros)

    def test_non_finite_guard_applies(self, monkeypatch):
        assist, host = make_assist(gravity=GRAVITY, main_thrust=True, velocity=(0.0, 0.0, -8.0))
        advance(assist, host, 2)
        assist.run("hover toggle")
        monkeypatch.setattr(
            assist.control_law, "compute", lambda target, state, actuator_max: np.full(3, math.nan)
        )
        result = advance(assist, host, 1)
        assert not result.requested.is_finite()
        assert result.command == ZERO_RATE


class TestBrake:
    """End-to-end retrograde braking."""

    def test_brake_stops_ship(self):
        assist, host = make_assist(velocity=(0.0, 0.0, -50.0), dampeners=True)
        advance(assist, host, 2)

        assert assist.handle_command("vector brake")
        assert not host.ship.dampeners
        assert assist.driver.enabled

        engaged_at = None
        for tick in range(3000):
            result = advance(assist, host, 1)
            if engaged_at is None and result.dampeners_engaged:
                engaged_at = tick
            if result.mode == ModeName.DISABLED:
                break

        assert engaged_at is not None
        assert result.mode == ModeName.DISABLED
        assert host.ship.speed < assist.config.brake.speed_threshold
        assert not assist.driver.enabled
        # thrust axis ends up pointing against the original heading
        forward = host.ship.rotation @ vm.LOCAL_FORWARD
        assert forward[2] > 0.99

    def test_brake_at_low_speed_restores_dampeners(self):
        assist, host = make_assist(velocity=(0.0, 0.0, -0.2), dampeners=True)
        advance(assist, host, 2)

        assist.handle_command("vector brake")
        assert not host.ship.dampeners

        result = advance(assist, host, 1)

        assert result.mode == ModeName.DISABLED
        assert result.dampeners_engaged
        assert host.ship.dampeners

    def test_brake_ignored_in_gravity(self):
        assist, host = make_assist(gravity=GRAVITY, velocity=(0.0, 0.0, -10.0))
        advance(assist, host, 2)
        assert not assist.handle_command("vector brake")
        assert assist.modes.active == ModeName.DISABLED


class TestCommands:
    """Tests for command routing."""

    def test_run_with_command_does_not_tick(self):
        assist, host = make_assist(gravity=GRAVITY)
        advance(assist, host, 2)
        assert assist.run("display next") is None
        assert assist.state.tick == 2

    def test_blank_command_ticks(self):
        assist, _ = make_assist(gravity=GRAVITY)
        assert assist.run("   ") is not None
        assert assist.state.tick == 1

    def test_commands_are_case_insensitive(self):
        assist, host = make_assist(gravity=GRAVITY)
        advance(assist, host, 2)
        assert assist.handle_command("HOVER Toggle")
        assert assist.modes.active == ModeName.HOVER

    def test_command_before_first_tick_ignored(self):
        assist, _ = make_assist(gravity=GRAVITY)
        assert not assist.handle_command("hover toggle")
        assert assist.modes.active == ModeName.DISABLED

    def test_unknown_module_warns(self, caplog):
        assist, _ = make_assist()
        with caplog.at_level(logging.WARNING, logger="flight_assist.assist"):
            assert not assist.handle_command("warp engage")
        assert "Unrecognized command module 'warp'" in caplog.text

    def test_unknown_motion_command_warns(self, caplog):
        assist, _ = make_assist()
        with caplog.at_level(logging.WARNING, logger="flight_assist.assist"):
            assert not assist.handle_command("motion spin")
        assert "Unrecognized motion command" in caplog.text

    def test_togglegyros_locks_override(self):
        assist, host = make_assist(gravity=GRAVITY)
        advance(assist, host, 1)

        assist.handle_command("motion togglegyros")
        assert assist.gyro_lock
        result = advance(assist, host, 1)
        assert result.gyros_enabled
        assert result.command == ZERO_RATE
        assert all(gyro.override for gyro in host.ship.gyros)

        assist.handle_command("motion togglegyros")
        assert not assist.gyro_lock
        assert not assist.driver.enabled

    def test_gravity_loss_releases_gyro_lock(self):
        assist, host = make_assist(gravity=GRAVITY)
        advance(assist, host, 2)
        assist.handle_command("motion togglegyros")
        advance(assist, host, 1)
        assert assist.driver.enabled

        host.ship.gravity = None
        result = advance(assist, host, 1)

        assert result.state.gravity_transitioned
        assert not assist.gyro_lock
        assert not assist.driver.enabled
        assert not any(gyro.override for gyro in host.ship.gyros)

    def test_gyro_lock_survives_gravity_acquired(self):
        assist, host = make_assist()
        advance(assist, host, 2)
        assist.handle_command("motion togglegyros")

        host.ship.gravity = GRAVITY
        result = advance(assist, host, 1)

        assert result.state.gravity_transitioned
        assert assist.gyro_lock
        assert assist.driver.enabled

    def test_releasing_gyro_lock_disables_mode(self):
        assist, host = make_assist(gravity=GRAVITY)
        advance(assist, host, 2)
        assist.handle_command("motion togglegyros")
        assist.handle_command("hover toggle")
        assert assist.modes.active == ModeName.HOVER

        assist.handle_command("motion togglegyros")
        assert assist.modes.active == ModeName.DISABLED
        assert not assist.driver.enabled

    def test_display_pages_and_redraw(self):
        assist, host = make_assist(gravity=GRAVITY)
        advance(assist, host, 5)
        assert host.display.text.startswith("Flight Assist - Module [motion]")

        assert assist.handle_command("display next")
        advance(assist, host, 5)
        assert host.display.text.startswith("Flight Assist - Module [hover]")
        assert "Hover State: DISABLED" in host.display.text


class TestMultipleGyros:
    """Tests for gyros mounted in different orientations."""

    def test_every_gyro_turns_ship_the_same_way(self):
        config = FlightAssistConfig(gyros=GyroParams(count=3))
        ship = SimulatedShip(config, gravity=GRAVITY, main_thrust=True, velocity=(3.0, 0.0, -6.0))
        ship.add_gyro()
        ship.add_gyro(orientation=vm.rotation_matrix(vm.LOCAL_UP, math.pi / 2))
        ship.add_gyro(orientation=vm.rotation_matrix(vm.LOCAL_RIGHT, math.pi))
        host = SimulatedHost(ship, config)
        assist = FlightAssist.from_host(host, config)

        advance(assist, host, 2)
        assist.run("hover toggle")
        result = advance(assist, host, 1)

        expected = result.command.to_angular_velocity()
        assert np.linalg.norm(expected) > 0.0
        for gyro in ship.gyros:
            assert np.allclose(gyro.grid_rate(), expected)

    def test_sensor_build_orientation_respected(self):
        build = vm.rotation_matrix(vm.LOCAL_UP, math.pi / 2)
        config = FlightAssistConfig()
        ship = SimulatedShip(config, gravity=GRAVITY, main_thrust=True, velocity=(0.0, 0.0, -8.0))
        host = SimulatedHost(ship, config, build_orientation=build)
        assist = FlightAssist.from_host(host, config)

        advance(assist, host, 2)
        assist.run("hover toggle")
        for _ in range(60):
            advance(assist, host, 1)

        # the grid's nose lifts even though the sensor is mounted sideways
        assert (ship.rotation @ vm.LOCAL_FORWARD)[1] > 0.0
