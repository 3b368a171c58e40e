"""
Motion Estimation

Turns raw per-tick sensor samples (position, world matrix, natural gravity)
into a MotionState snapshot:

- Velocity from the position delta over one tick period
- Unit heading (undefined on the first tick and at rest)
- Gravity direction, strength and the one-tick transition flag
- Orientation axes straight from the world matrix (no smoothing)
- Speed components in the gravity world frame and the ship-local frame
- Attitude angles relative to gravity, or to the heading when weightless

Thrust Frames:
    Ships may carry their main thrust on the bottom or the rear. The
    estimator remaps the raw axes so that, in gravity, the frame's ``up`` is
    the gravity thrust axis and, in space, the frame's ``forward`` is the
    space thrust axis:

    - gravity "bottom": (forward, right, up)
    - gravity "rear":   (-up, right, forward)
    - space "rear":     (forward, right, up)
    - space "bottom":   (up, right, -forward)

All derived quantities are finite. Zero-length deltas, absent gravity and
out-of-domain arccos arguments fall back to defined values.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from .host.config import FlightAssistConfig, ThrustOrientation
from .host.interfaces import SensorHandle
from .utils import vector_math as vm

logger = logging.getLogger(__name__)

RAD_TO_DEG = 180.0 / math.pi


@dataclass(frozen=True)
class ThrustFrame:
    """Remapped axes in world coordinates plus the same axes in the sensor frame."""

    forward: np.ndarray
    right: np.ndarray
    up: np.ndarray
    local_forward: np.ndarray
    local_right: np.ndarray
    local_up: np.ndarray


@dataclass(frozen=True)
class OrientationFrame:
    """
    Orthonormal axes of the sensor block for one tick.

    Attributes:
        forward, right, up: World-space unit axes.
        world_matrix: Local-to-world rotation (columns: right, up, backward).
        ship_build_orientation: Sensor-to-grid rotation, fixed at startup.
    """

    forward: np.ndarray
    right: np.ndarray
    up: np.ndarray
    world_matrix: np.ndarray
    ship_build_orientation: np.ndarray

    @classmethod
    def from_world_matrix(
        cls, world_matrix, ship_build_orientation=None
    ) -> "OrientationFrame":
        matrix = vm.as_matrix(world_matrix)
        build = (
            vm.IDENTITY.copy()
            if ship_build_orientation is None
            else vm.as_matrix(ship_build_orientation)
        )
        return cls(
            forward=matrix @ vm.LOCAL_FORWARD,
            right=matrix @ vm.LOCAL_RIGHT,
            up=matrix @ vm.LOCAL_UP,
            world_matrix=matrix,
            ship_build_orientation=build,
        )

    def to_local(self, vec: np.ndarray) -> np.ndarray:
        """Rotate a world vector into the sensor frame."""
        return vm.transform_transpose(vec, self.world_matrix)

    def to_ship(self, local_vec: np.ndarray) -> np.ndarray:
        """Rotate a sensor-frame vector into the ship grid (build) frame."""
        return vm.transform(local_vec, self.ship_build_orientation)

    def thrust_frame(
        self, orientation: ThrustOrientation, in_gravity: bool
    ) -> ThrustFrame:
        """Remap the axes for the given main thrust side and regime."""
        local_forward, local_up = vm.LOCAL_FORWARD, vm.LOCAL_UP
        if in_gravity and orientation == ThrustOrientation.REAR:
            local_forward, local_up = -vm.LOCAL_UP, vm.LOCAL_FORWARD
        elif not in_gravity and orientation == ThrustOrientation.BOTTOM:
            local_forward, local_up = vm.LOCAL_UP, vm.LOCAL_BACKWARD
        return ThrustFrame(
            forward=self.world_matrix @ local_forward,
            right=self.right,
            up=self.world_matrix @ local_up,
            local_forward=local_forward,
            local_right=vm.LOCAL_RIGHT,
            local_up=local_up,
        )


@dataclass(frozen=True)
class SpeedComponents:
    """Signed speed along forward/right/up in m/s."""

    forward: float = 0.0
    right: float = 0.0
    up: float = 0.0


@dataclass(frozen=True)
class AttitudeAngles:
    """
    Pitch and roll in degrees.

    In gravity: elevation of the thrust frame's forward/right axes above
    the horizon (level = 0, nose up and right side up are positive).
    Weightless: angle between the heading and the forward/right axes,
    in [0, 180].
    """

    pitch: float = 0.0
    roll: float = 0.0


@dataclass(frozen=True)
class MotionState:
    """
    Snapshot produced by MotionEstimator.update for a single tick.

    ``heading`` is None on the first tick after (re)initialization and
    whenever the position did not change; every speed component is then 0.
    ``gravity`` is the unit "up" vector opposite natural gravity, or None
    when weightless.
    """

    tick: int
    position: np.ndarray
    previous_position: np.ndarray | None
    heading: np.ndarray | None
    distance: float
    speed: float
    gravity: np.ndarray | None
    gravity_strength: float
    in_gravity: bool
    gravity_transitioned: bool
    frame: OrientationFrame
    gravity_frame: ThrustFrame
    space_frame: ThrustFrame
    world_speed: SpeedComponents
    local_speed: SpeedComponents
    attitude: AttitudeAngles

    @property
    def moving(self) -> bool:
        return self.heading is not None

    @property
    def upside_down(self) -> bool:
        """True if the sensor's up axis points below the horizon."""
        return self.in_gravity and vm.dot(self.frame.up, self.gravity) < 0.0


def gravity_from_sample(sample) -> tuple[np.ndarray | None, float]:
    """
    Convert a natural gravity sample into (unit up vector, strength in g).

    None, NaN and zero-length samples all mean "no gravity".
    """
    if sample is None:
        return None, 0.0
    vec = vm.as_vector(sample)
    if not vm.is_finite_vector(vec):
        return None, 0.0
    magnitude = vm.length(vec)
    if magnitude <= vm.ZERO_MAGNITUDE_THRESHOLD:
        return None, 0.0
    return -vec / magnitude, magnitude / vm.STANDARD_GRAVITY


def _acos_degrees(value: float, fallback: float) -> float:
    try:
        return math.acos(value) * RAD_TO_DEG
    except ValueError:
        return fallback


class MotionEstimator:
    """
    Per-tick velocity, gravity and attitude estimator.

    Holds only the previous position and previous gravity presence between
    ticks. Everything else is re-derived from the latest sample.

    Attributes:
        config: Flight assist configuration.
        ship_build_orientation: Sensor-to-grid rotation captured at startup.
        dt_ms: Tick period in milliseconds.
    """

    def __init__(self, config: FlightAssistConfig | None = None, ship_build_orientation=None):
        self.config = config or FlightAssistConfig()
        self.ship_build_orientation = (
            vm.IDENTITY.copy()
            if ship_build_orientation is None
            else vm.as_matrix(ship_build_orientation)
        )
        self.dt_ms = self.config.simulation.dt_ms
        self._previous_position: np.ndarray | None = None
        self._previous_in_gravity: bool | None = None
        self._tick = 0
        self.state: MotionState | None = None

    def reset(self) -> None:
        """Forget carried state; the next update behaves like a first tick."""
        self._previous_position = None
        self._previous_in_gravity = None
        self._tick = 0
        self.state = None

    def sample(self, sensor: SensorHandle) -> MotionState:
        """Read the sensor handle and update."""
        return self.update(
            sensor.get_position(),
            sensor.get_world_orientation(),
            sensor.get_gravity_vector(),
        )

    def update(self, position, world_matrix, gravity_sample) -> MotionState:
        """
        Refresh the motion state from one tick of samples.

        Args:
            position: Sensor world position (3-vector, meters).
            world_matrix: Sensor local-to-world rotation (3x3).
            gravity_sample: Natural gravity vector, or None/NaN when absent.

        Returns:
            The new MotionState (also stored on ``self.state``).
        """
        position = vm.as_vector(position).copy()
        previous = self._previous_position

        distance = 0.0
        heading = None
        if previous is not None:
            delta = position - previous
            distance = vm.length(delta) if vm.is_finite_vector(delta) else 0.0
            if distance > vm.ZERO_MAGNITUDE_THRESHOLD:
                heading = delta / distance
            else:
                distance = 0.0
        speed = distance / self.dt_ms * 1000.0

        gravity, strength = gravity_from_sample(gravity_sample)
        in_gravity = gravity is not None
        transitioned = (
            self._previous_in_gravity is not None
            and in_gravity != self._previous_in_gravity
        )
        if transitioned:
            logger.info(
                "Gravity %s", "acquired" if in_gravity else "lost"
            )

        frame = OrientationFrame.from_world_matrix(
            world_matrix, self.ship_build_orientation
        )
        gravity_frame = frame.thrust_frame(
            self.config.hover.gravity_main_thrust, in_gravity=True
        )
        space_frame = frame.thrust_frame(
            self.config.brake.space_main_thrust, in_gravity=False
        )

        world_speed, local_speed = self._speed_components(
            heading, speed, gravity, gravity_frame, space_frame
        )
        attitude = self._attitude(
            heading, gravity, gravity_frame, space_frame, local_speed
        )

        self._previous_position = position
        self._previous_in_gravity = in_gravity
        self._tick += 1

        self.state = MotionState(
            tick=self._tick,
            position=position,
            previous_position=previous,
            heading=heading,
            distance=distance,
            speed=speed,
            gravity=gravity,
            gravity_strength=strength,
            in_gravity=in_gravity,
            gravity_transitioned=transitioned,
            frame=frame,
            gravity_frame=gravity_frame,
            space_frame=space_frame,
            world_speed=world_speed,
            local_speed=local_speed,
            attitude=attitude,
        )
        return self.state

    @staticmethod
    def _speed_components(
        heading, speed, gravity, gravity_frame: ThrustFrame, space_frame: ThrustFrame
    ) -> tuple[SpeedComponents, SpeedComponents]:
        if heading is None:
            return SpeedComponents(), SpeedComponents()

        # World-frame components are only meaningful against a gravity reference
        if gravity is not None:
            level_forward = vm.normalize(vm.cross(gravity, gravity_frame.right))
            level_right = vm.normalize(vm.cross(gravity_frame.forward, gravity))
            world = SpeedComponents(
                forward=vm.dot(heading, level_forward) * speed,
                right=vm.dot(heading, level_right) * speed,
                up=vm.dot(heading, gravity) * speed,
            )
        else:
            world = SpeedComponents()

        local = SpeedComponents(
            forward=vm.dot(heading, space_frame.forward) * speed,
            right=vm.dot(heading, space_frame.right) * speed,
            up=vm.dot(heading, space_frame.up) * speed,
        )
        return world, local

    @staticmethod
    def _attitude(
        heading,
        gravity,
        gravity_frame: ThrustFrame,
        space_frame: ThrustFrame,
        local_speed: SpeedComponents,
    ) -> AttitudeAngles:
        if gravity is not None:
            return AttitudeAngles(
                pitch=vm.safe_asin(vm.dot(gravity_frame.forward, gravity)) * RAD_TO_DEG,
                roll=vm.safe_asin(vm.dot(gravity_frame.right, gravity)) * RAD_TO_DEG,
            )

        if heading is None:
            return AttitudeAngles()

        pitch_fallback = 0.0 if local_speed.forward > 0 else 180.0
        return AttitudeAngles(
            pitch=_acos_degrees(vm.dot(heading, space_frame.forward), pitch_fallback),
            roll=vm.safe_acos(vm.dot(heading, space_frame.right)) * RAD_TO_DEG,
        )
