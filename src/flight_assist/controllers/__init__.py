"""
Orientation Controllers Package

Control laws that turn a flight mode's ControlTarget into a gyro rate.

Control Laws:
- axis_angle: proportional tracking about cross(reference, target) (default)
- angle_difference: independent per-axis proportional control on angle error

Rate Schema:
    Laws return a sensor-local angular-rate vector. ``BaseControlLaw.command``
    rotates it into the ship grid frame and returns a RateCommand with
    actuator-native signs (pitch = w.x, yaw = -w.y, roll = -w.z).
"""

from ..host.config import ControlLaw, FlightAssistConfig
from .angle_difference import AngleDifferenceController
from .axis_angle import OrientationController, axis_angle
from .base import (
    RATE_AXES,
    ZERO_RATE,
    AttitudeTarget,
    BaseControlLaw,
    ControlTarget,
    DirectionTarget,
    RateCommand,
    attitude_to_direction,
    clamp_min_rate,
)

__all__ = [
    "BaseControlLaw",
    "OrientationController",
    "AngleDifferenceController",
    "RateCommand",
    "ZERO_RATE",
    "RATE_AXES",
    "ControlTarget",
    "DirectionTarget",
    "AttitudeTarget",
    "attitude_to_direction",
    "axis_angle",
    "clamp_min_rate",
    "create_control_law",
    "VALID_CONTROL_LAWS",
]

VALID_CONTROL_LAWS = tuple(law.value for law in ControlLaw)


def create_control_law(config: FlightAssistConfig | None = None) -> BaseControlLaw:
    """
    Build the control law selected by ``config.gyros.control_law``.

    Args:
        config: Flight assist configuration (defaults if None).

    Returns:
        A BaseControlLaw instance.
    """
    config = config or FlightAssistConfig()
    if config.gyros.control_law == ControlLaw.ANGLE_DIFFERENCE:
        return AngleDifferenceController(config)
    return OrientationController(config)
