"""Tests for motion estimation."""

import math

import numpy as np
import pytest

from flight_assist.estimation import MotionEstimator, OrientationFrame, gravity_from_sample
from flight_assist.host.config import (
    BrakeParams,
    FlightAssistConfig,
    HoverParams,
    SimulationParams,
    ThrustOrientation,
)
from flight_assist.host.simulated import SimulatedSensor, SimulatedShip
from flight_assist.utils import vector_math as vm

GRAVITY = np.array([0.0, -9.81, 0.0])


def two_tick_state(velocity, world_matrix=None, gravity=GRAVITY, config=None):
    """Run two updates so the second one sees a position delta of velocity * dt."""
    config = config or FlightAssistConfig()
    world_matrix = np.eye(3) if world_matrix is None else world_matrix
    estimator = MotionEstimator(config)
    dt = 1.0 / config.simulation.tick_rate_hz
    estimator.update(np.zeros(3), world_matrix, gravity)
    return estimator.update(np.asarray(velocity, dtype=float) * dt, world_matrix, gravity)


class TestVelocity:
    """Tests for speed and heading estimation."""

    def test_first_tick_has_no_heading(self):
        estimator = MotionEstimator()
        state = estimator.update(np.array([5.0, 0.0, 0.0]), np.eye(3), GRAVITY)

        assert state.heading is None
        assert state.speed == 0.0
        assert state.gravity_transitioned is False
        assert state.tick == 1

    def test_zero_delta_components_are_exactly_zero(self):
        estimator = MotionEstimator()
        position = np.array([1.0, 2.0, 3.0])
        for gravity in (GRAVITY, GRAVITY, None, None):
            state = estimator.update(position, np.eye(3), gravity)
            for components in (state.world_speed, state.local_speed):
                assert components.forward == 0.0
                assert components.right == 0.0
                assert components.up == 0.0
            assert state.heading is None
            assert not math.isnan(state.attitude.pitch)

    def test_speed_uses_tick_rate(self):
        state = two_tick_state([0.0, 0.0, -10.0])
        assert state.speed == pytest.approx(10.0)
        assert np.allclose(state.heading, vm.LOCAL_FORWARD)

    def test_speed_with_custom_tick_rate(self):
        config = FlightAssistConfig(simulation=SimulationParams(tick_rate_hz=30.0))
        estimator = MotionEstimator(config)
        estimator.update(np.zeros(3), np.eye(3), GRAVITY)
        state = estimator.update(np.array([0.0, 0.0, -10.0 / 60.0]), np.eye(3), GRAVITY)
        assert state.speed == pytest.approx(5.0)

    def test_reset_forgets_previous_position(self):
        estimator = MotionEstimator()
        estimator.update(np.zeros(3), np.eye(3), GRAVITY)
        estimator.reset()
        state = estimator.update(np.array([10.0, 0.0, 0.0]), np.eye(3), GRAVITY)
        assert state.heading is None
        assert state.tick == 1

    def test_sample_reads_sensor(self):
        ship = SimulatedShip(position=(1.0, 2.0, 3.0), gravity=GRAVITY)
        state = MotionEstimator().sample(SimulatedSensor(ship))
        assert np.allclose(state.position, [1.0, 2.0, 3.0])
        assert state.in_gravity


class TestGravity:
    """Tests for gravity presence and transitions."""

    def test_transition_flag_true_for_one_tick(self):
        estimator = MotionEstimator()
        samples = [GRAVITY, GRAVITY, None, None]
        flags = [
            estimator.update(np.zeros(3), np.eye(3), sample).gravity_transitioned
            for sample in samples
        ]
        assert flags == [False, False, True, False]

    def test_transition_on_gravity_acquired(self):
        estimator = MotionEstimator()
        flags = [
            estimator.update(np.zeros(3), np.eye(3), sample).gravity_transitioned
            for sample in (None, GRAVITY, GRAVITY)
        ]
        assert flags == [False, True, False]

    def test_nan_sample_means_no_gravity(self):
        up, strength = gravity_from_sample(np.array([np.nan, np.nan, np.nan]))
        assert up is None
        assert strength == 0.0

    def test_zero_sample_means_no_gravity(self):
        up, _ = gravity_from_sample(np.zeros(3))
        assert up is None

    def test_gravity_up_and_strength(self):
        up, strength = gravity_from_sample(np.array([0.0, -4.905, 0.0]))
        assert np.allclose(up, [0.0, 1.0, 0.0])
        assert strength == pytest.approx(0.5)


class TestAttitude:
    """Tests for pitch/roll in both regimes."""

    def test_level_at_rest(self):
        state = two_tick_state([0.0, 0.0, 0.0])
        assert state.attitude.pitch == pytest.approx(0.0)
        assert state.attitude.roll == pytest.approx(0.0)
        assert not state.upside_down

    def test_nose_up_is_positive_pitch(self):
        rotation = vm.rotation_matrix(vm.LOCAL_RIGHT, math.radians(30))
        state = two_tick_state([0.0, 0.0, 0.0], world_matrix=rotation)
        assert state.attitude.pitch == pytest.approx(30.0)
        assert state.attitude.roll == pytest.approx(0.0, abs=1e-9)

    def test_right_side_up_is_positive_roll(self):
        rotation = vm.rotation_matrix(vm.LOCAL_BACKWARD, math.radians(20))
        state = two_tick_state([0.0, 0.0, 0.0], world_matrix=rotation)
        assert state.attitude.roll == pytest.approx(20.0)

    def test_upside_down(self):
        rotation = vm.rotation_matrix(vm.LOCAL_BACKWARD, math.pi)
        state = two_tick_state([0.0, 0.0, 0.0], world_matrix=rotation)
        assert state.upside_down

    def test_weightless_attitude_against_heading(self):
        state = two_tick_state([0.0, 0.0, -20.0], gravity=None)
        assert state.attitude.pitch == pytest.approx(0.0, abs=1e-6)
        assert state.attitude.roll == pytest.approx(90.0)

    def test_weightless_moving_backward_pitch_180(self):
        state = two_tick_state([0.0, 0.0, 20.0], gravity=None)
        assert state.attitude.pitch == pytest.approx(180.0, abs=1e-6)

    def test_weightless_at_rest_defaults_to_zero(self):
        state = two_tick_state([0.0, 0.0, 0.0], gravity=None)
        assert state.attitude.pitch == 0.0
        assert state.attitude.roll == 0.0


class TestSpeedDecomposition:
    """Tests for world-frame and local-frame speed components."""

    def test_forward_motion_in_gravity(self):
        state = two_tick_state([0.0, 0.0, -10.0])
        assert state.world_speed.forward == pytest.approx(10.0)
        assert state.world_speed.right == pytest.approx(0.0, abs=1e-9)
        assert state.local_speed.forward == pytest.approx(10.0)

    def test_lateral_motion_in_gravity(self):
        state = two_tick_state([3.0, 0.0, 0.0])
        assert state.world_speed.right == pytest.approx(3.0)
        assert state.world_speed.forward == pytest.approx(0.0, abs=1e-9)

    def test_world_forward_ignores_pitch(self):
        rotation = vm.rotation_matrix(vm.LOCAL_RIGHT, math.radians(30))
        state = two_tick_state([0.0, 0.0, -10.0], world_matrix=rotation)
        assert state.world_speed.forward == pytest.approx(10.0)
        assert state.local_speed.forward == pytest.approx(10.0 * math.cos(math.radians(30)))

    def test_world_components_zero_without_gravity(self):
        state = two_tick_state([4.0, 0.0, -10.0], gravity=None)
        assert state.world_speed.forward == 0.0
        assert state.world_speed.right == 0.0
        assert state.local_speed.forward == pytest.approx(10.0)
        assert state.local_speed.right == pytest.approx(4.0)


class TestThrustFrames:
    """Tests for main-thrust axis remapping."""

    def test_default_frames_are_raw(self):
        frame = OrientationFrame.from_world_matrix(np.eye(3))
        gravity_frame = frame.thrust_frame(ThrustOrientation.BOTTOM, in_gravity=True)
        space_frame = frame.thrust_frame(ThrustOrientation.REAR, in_gravity=False)
        assert np.allclose(gravity_frame.up, vm.LOCAL_UP)
        assert np.allclose(space_frame.forward, vm.LOCAL_FORWARD)

    def test_rear_gravity_thrust_uses_forward_as_up(self):
        config = FlightAssistConfig(
            hover=HoverParams(gravity_main_thrust=ThrustOrientation.REAR)
        )
        state = two_tick_state([0.0, 0.0, 0.0], config=config)
        assert np.allclose(state.gravity_frame.up, vm.LOCAL_FORWARD)
        assert np.allclose(state.gravity_frame.forward, -vm.LOCAL_UP)
        assert np.allclose(state.gravity_frame.local_up, vm.LOCAL_FORWARD)

    def test_bottom_space_thrust_uses_up_as_forward(self):
        config = FlightAssistConfig(
            brake=BrakeParams(space_main_thrust=ThrustOrientation.BOTTOM)
        )
        state = two_tick_state([0.0, 10.0, 0.0], gravity=None, config=config)
        assert np.allclose(state.space_frame.forward, vm.LOCAL_UP)
        assert state.local_speed.forward == pytest.approx(10.0)
