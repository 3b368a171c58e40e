"""
Axis-Angle Orientation Control

Tracks a target direction by rotating about ``cross(reference, target)``
at a rate proportional to the angle between the two vectors:

    angle = atan2(|axis|, sqrt(max(0, 1 - |axis|^2)))   (pi if dot < 0)
    rate  = max(min_rate, actuator_max * angle / pi * velocity_scale)

The half-angle-safe atan2 form stays accurate near 0 and 180 degrees. A
target behind the reference (negative dot product) is driven at the full
pi error so the ship commits to the turn instead of stalling. When the
vectors are exactly antiparallel any perpendicular axis is used.
"""

import math

import numpy as np

from ..estimation import MotionState
from ..host.config import FlightAssistConfig
from ..utils import vector_math as vm
from .base import (
    AttitudeTarget,
    BaseControlLaw,
    ControlTarget,
    DirectionTarget,
    attitude_to_direction,
)


def axis_angle(reference: np.ndarray, target: np.ndarray) -> tuple[np.ndarray, float]:
    """
    Return the unit rotation axis and angle (radians, in [0, pi]) from
    ``reference`` to ``target``. Both inputs must be unit vectors.
    """
    axis = vm.cross(reference, target)
    sin_angle = min(1.0, vm.length(axis))
    angle = math.atan2(sin_angle, math.sqrt(max(0.0, 1.0 - sin_angle * sin_angle)))
    facing_away = vm.dot(reference, target) < 0.0
    if facing_away:
        angle = math.pi

    if sin_angle <= vm.ZERO_MAGNITUDE_THRESHOLD:
        if not facing_away:
            return np.zeros(3), 0.0
        return vm.any_perpendicular(reference), math.pi
    return axis / vm.length(axis), angle


class OrientationController(BaseControlLaw):
    """
    Proportional axis-angle orientation controller.

    Stateless: identical inputs always yield identical rates.
    """

    def __init__(self, config: FlightAssistConfig | None = None):
        super().__init__(name="axis_angle", config=config)

    def compute_rate(
        self, reference: np.ndarray, target: np.ndarray, actuator_max: float
    ) -> np.ndarray:
        """
        Angular-rate vector turning ``reference`` toward ``target``.

        Args:
            reference: Unit reference axis in the sensor frame.
            target: Unit target direction in the sensor frame.
            actuator_max: Largest rate the gyros accept.

        Returns:
            Rate vector in the sensor frame; zero when already aligned.
        """
        reference = vm.normalize(reference)
        target = vm.normalize(target)
        if not reference.any() or not target.any():
            return np.zeros(3)

        axis, angle = axis_angle(reference, target)
        if angle == 0.0:
            return np.zeros(3)

        rate = actuator_max * (angle / math.pi) * self.velocity_scale
        rate = min(actuator_max, max(self.min_rate, rate))
        return axis * rate

    def compute(
        self, target: ControlTarget, state: MotionState, actuator_max: float
    ) -> np.ndarray:
        if target is None:
            return np.zeros(3)

        if isinstance(target, AttitudeTarget):
            direction = attitude_to_direction(target, state)
            if direction is None:
                return np.zeros(3)
            target = DirectionTarget(
                reference_axis=state.gravity_frame.local_up, direction=direction
            )

        return self.compute_rate(
            target.reference_axis, state.frame.to_local(target.direction), actuator_max
        )
