"""
Actuator Driver

Distributes one ship-frame rate command to every gyro. Gyros may be mounted
in any orientation, so the command is rotated into each gyro's local frame
(transpose of its local orientation) before the per-axis rates are written.

The driver is the only component that writes to actuator handles.
"""

import logging

import numpy as np

from .controllers.base import RATE_AXES, ZERO_RATE, RateCommand
from .host.interfaces import ActuatorHandle
from .utils import vector_math as vm

logger = logging.getLogger(__name__)


class ActuatorDriver:
    """
    Writes rate commands and override state to a fixed set of gyros.

    Attributes:
        handles: Gyro handles, fixed at construction.
        enabled: Whether gyro override is currently engaged.
        last_command: Ship-frame command most recently applied.
    """

    def __init__(self, handles: list[ActuatorHandle]):
        if not handles:
            raise ValueError("ActuatorDriver requires at least one actuator handle")
        self.handles = list(handles)
        self._orientations = [
            vm.as_matrix(handle.get_local_orientation()) for handle in self.handles
        ]
        self.enabled = False
        self.last_command = ZERO_RATE

    def __len__(self) -> int:
        return len(self.handles)

    @property
    def max_rate(self) -> float:
        """Smallest per-axis maximum across all gyros."""
        return min(
            float(handle.get_max_rate(axis))
            for handle in self.handles
            for axis in RATE_AXES
        )

    def set_enabled(self, enabled: bool) -> None:
        """
        Engage or release gyro override on every gyro.

        All three axis rates are zeroed first so a stale spin does not
        resume on the next enable.
        """
        for handle in self.handles:
            for axis in RATE_AXES:
                handle.set_axis_rate(axis, 0.0)
            handle.set_override_enabled(enabled)
        self.last_command = ZERO_RATE
        if enabled != self.enabled:
            logger.info("Gyro override %s", "enabled" if enabled else "disabled")
        self.enabled = enabled

    def to_actuator_frames(self, command: RateCommand) -> list[RateCommand]:
        """Rotate a ship-frame command into each gyro's local frame."""
        rate = command.to_angular_velocity()
        return [
            RateCommand.from_angular_velocity(vm.transform_transpose(rate, orientation))
            for orientation in self._orientations
        ]

    def to_ship_frame(self, local_commands: list[RateCommand]) -> list[np.ndarray]:
        """Rotate per-gyro commands back into ship-frame rate vectors."""
        return [
            vm.transform(local.to_angular_velocity(), orientation)
            for local, orientation in zip(local_commands, self._orientations)
        ]

    def apply(self, command: RateCommand) -> list[RateCommand]:
        """
        Write ``command`` to every gyro.

        Non-finite commands are replaced by zero rates.

        Returns:
            The per-gyro commands that were written.
        """
        if not command.is_finite():
            logger.warning("Non-finite rate command %s replaced with zero", command)
            command = ZERO_RATE

        local_commands = self.to_actuator_frames(command)
        for handle, local in zip(self.handles, local_commands):
            handle.set_axis_rate("pitch", local.pitch)
            handle.set_axis_rate("yaw", local.yaw)
            handle.set_axis_rate("roll", local.roll)
        self.last_command = command
        return local_commands
