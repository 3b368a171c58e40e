"""
Angle-Difference Orientation Control

The earlier control law: every axis gets an independent proportional rate

    rate_i = actuator_max * error_i / 90

where ``error_i`` is the angle error in degrees about that axis. Attitude
targets use the pitch/roll differences directly; direction targets use the
components of the axis-angle rotation vector. Each axis is pushed out of
the gyro dead-zone with ``clamp_min_rate`` and clipped to
``[-actuator_max, actuator_max]``. When a direction target lies behind the
reference axis, the rate vector is scaled so its largest component runs at
``actuator_max``.
"""

import math

import numpy as np

from ..estimation import MotionState
from ..host.config import FlightAssistConfig
from ..utils import vector_math as vm
from .axis_angle import axis_angle
from .base import (
    AttitudeTarget,
    BaseControlLaw,
    ControlTarget,
    clamp_min_rate,
)

# Angle error (degrees) that maps to the full actuator rate
REFERENCE_RANGE_DEG = 90.0


class AngleDifferenceController(BaseControlLaw):
    """Per-axis proportional control on angle differences."""

    def __init__(self, config: FlightAssistConfig | None = None):
        super().__init__(name="angle_difference", config=config)

    def _axis_rate(self, error_deg: float, actuator_max: float) -> float:
        rate = actuator_max * error_deg / REFERENCE_RANGE_DEG * self.velocity_scale
        rate = float(np.clip(rate, -actuator_max, actuator_max))
        return clamp_min_rate(rate, self.min_rate)

    def compute(
        self, target: ControlTarget, state: MotionState, actuator_max: float
    ) -> np.ndarray:
        if target is None:
            return np.zeros(3)

        if isinstance(target, AttitudeTarget):
            if not state.in_gravity:
                return np.zeros(3)
            pitch_rate = self._axis_rate(target.pitch - state.attitude.pitch, actuator_max)
            roll_rate = self._axis_rate(target.roll - state.attitude.roll, actuator_max)
            # Roll turns about the thrust frame's backward axis
            return (
                pitch_rate * state.gravity_frame.local_right
                - roll_rate * state.gravity_frame.local_forward
            )

        reference = vm.normalize(target.reference_axis)
        direction = vm.normalize(state.frame.to_local(target.direction))
        if not reference.any() or not direction.any():
            return np.zeros(3)

        axis, angle = axis_angle(reference, direction)
        error = axis * math.degrees(angle)
        rates = np.array([self._axis_rate(e, actuator_max) for e in error])

        if vm.dot(reference, direction) < 0.0:
            peak = float(np.max(np.abs(rates)))
            if peak > 0.0:
                rates = rates * (actuator_max / peak)
        return rates
