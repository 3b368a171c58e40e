"""
Base Control Law Module

Shared types for the orientation control laws.

Rate Schema:
    Control laws return an angular-rate vector ``w`` in the sensor's local
    frame (right-hand rotation vector, gyro-native units). RateCommand
    carries the same intent in actuator-native axis names:

    - pitch = w.x  (nose up)
    - yaw   = -w.y (nose right)
    - roll  = -w.z (right side down)

Control Targets:
    A flight mode produces exactly one target per tick:
    - DirectionTarget: point a local reference axis along a world direction
    - AttitudeTarget: reach a pitch/roll pair (degrees) relative to gravity
    - None: no target, gyros hold with zero rate
"""

import math
from dataclasses import dataclass

import numpy as np

from ..estimation import MotionState
from ..host.config import FlightAssistConfig
from ..host.interfaces import AXES as RATE_AXES
from ..utils import vector_math as vm


@dataclass(frozen=True)
class RateCommand:
    """Pitch/yaw/roll rates in actuator-native units and signs."""

    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0

    @classmethod
    def from_angular_velocity(cls, vec) -> "RateCommand":
        vec = np.asarray(vec, dtype=np.float64)
        return cls(pitch=float(vec[0]), yaw=float(-vec[1]), roll=float(-vec[2]))

    def to_angular_velocity(self) -> np.ndarray:
        return np.array([self.pitch, -self.yaw, -self.roll])

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.pitch, self.yaw, self.roll))

    def magnitude(self) -> float:
        return math.sqrt(self.pitch**2 + self.yaw**2 + self.roll**2)

    def as_dict(self) -> dict:
        return {"pitch": self.pitch, "yaw": self.yaw, "roll": self.roll}


ZERO_RATE = RateCommand()


@dataclass(frozen=True)
class DirectionTarget:
    """
    Align a sensor-local reference axis with a world direction.

    Attributes:
        reference_axis: Unit axis in the sensor frame (e.g. the thrust axis).
        direction: Unit direction in world coordinates.
    """

    reference_axis: np.ndarray
    direction: np.ndarray


@dataclass(frozen=True)
class AttitudeTarget:
    """Desired gravity-relative pitch and roll in degrees."""

    pitch: float
    roll: float


ControlTarget = DirectionTarget | AttitudeTarget | None


def clamp_min_rate(value: float, floor: float) -> float:
    """
    Push non-zero rates below ``floor`` out to ``sign(value) * floor``.

    Gyro inputs smaller than the floor do not move the ship, so a small
    correction is raised to the smallest effective rate. Exactly zero stays
    zero and non-finite input becomes zero.
    """
    if not math.isfinite(value) or value == 0.0:
        return 0.0
    if abs(value) < floor:
        return math.copysign(floor, value)
    return value


def attitude_to_direction(target: AttitudeTarget, state: MotionState) -> np.ndarray | None:
    """
    Convert a pitch/roll target into the world direction of the gravity thrust axis.

    Pitching the nose up tilts the thrust axis backward, raising the right
    side tilts it to the left. Returns None without gravity.
    """
    if state.gravity is None:
        return None
    gravity = state.gravity
    level_forward = vm.normalize(vm.cross(gravity, state.gravity_frame.right))
    level_right = vm.normalize(vm.cross(state.gravity_frame.forward, gravity))
    if not level_forward.any() or not level_right.any():
        return gravity.copy()

    sin_pitch = math.sin(math.radians(target.pitch))
    sin_roll = math.sin(math.radians(target.roll))
    vertical = math.sqrt(max(0.0, 1.0 - sin_pitch**2 - sin_roll**2))
    return vm.normalize(
        -sin_pitch * level_forward - sin_roll * level_right + vertical * gravity
    )


class BaseControlLaw:
    """
    Abstract base class for orientation control laws.

    Subclasses implement ``compute`` to turn a ControlTarget into a
    sensor-local angular-rate vector.

    Attributes:
        name (str): Law identifier for logging.
        config (FlightAssistConfig): Controller configuration.
        min_rate (float): Smallest effective gyro rate.
        velocity_scale (float): Fraction of the proportional rate applied.
    """

    def __init__(self, name: str = "base", config: FlightAssistConfig | None = None):
        self.name = name
        self.config = config or FlightAssistConfig()
        self.min_rate = self.config.gyros.min_rate
        self.velocity_scale = self.config.gyros.velocity_scale

    def compute(
        self, target: ControlTarget, state: MotionState, actuator_max: float
    ) -> np.ndarray:
        """
        Compute the sensor-local angular-rate vector for ``target``.

        Raises:
            NotImplementedError: Must be implemented by subclasses.
        """
        raise NotImplementedError("Subclasses must implement compute")

    def command(
        self, target: ControlTarget, state: MotionState, actuator_max: float
    ) -> RateCommand:
        """Compute the rate for ``target`` in the ship grid frame."""
        local = self.compute(target, state, actuator_max)
        return RateCommand.from_angular_velocity(state.frame.to_ship(local))
