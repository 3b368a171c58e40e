"""
Host Collaborator Interfaces

The flight assist core never talks to the game directly. It consumes these
handles, which the host (or the simulator in ``host.simulated``) provides:

- SensorHandle: position, world orientation, natural gravity, dampeners
- ActuatorHandle: one gyro with per-axis rate override
- DisplaySink: optional text panel
- Host: block lookup by name/type

Axis Names:
    Gyro rates are addressed by the actuator-native axis names "pitch",
    "yaw" and "roll" (see ``controllers.base.RateCommand``).
"""

import numpy as np

AXES = ("pitch", "yaw", "roll")


class SensorHandle:
    """
    Reference block (remote control) used for all motion sensing.

    All methods must be implemented by the host.
    """

    def get_position(self) -> np.ndarray:
        """Return the block's world position in meters."""
        raise NotImplementedError("SensorHandle.get_position() must be implemented")

    def get_world_orientation(self) -> np.ndarray:
        """Return the local-to-world rotation (columns: right, up, backward)."""
        raise NotImplementedError(
            "SensorHandle.get_world_orientation() must be implemented"
        )

    def get_build_orientation(self) -> np.ndarray:
        """Return the block's fixed rotation relative to the ship grid."""
        raise NotImplementedError(
            "SensorHandle.get_build_orientation() must be implemented"
        )

    def get_gravity_vector(self) -> np.ndarray | None:
        """
        Return the natural gravity vector in world coordinates.

        Returns None (or a NaN/zero vector, which callers treat the same way)
        when no natural gravity is present.
        """
        raise NotImplementedError(
            "SensorHandle.get_gravity_vector() must be implemented"
        )

    def get_dampeners_engaged(self) -> bool:
        raise NotImplementedError(
            "SensorHandle.get_dampeners_engaged() must be implemented"
        )

    def toggle_dampeners(self) -> None:
        raise NotImplementedError("SensorHandle.toggle_dampeners() must be implemented")


class ActuatorHandle:
    """A single gyro with programmatic rate override."""

    def set_axis_rate(self, axis: str, rate: float) -> None:
        """Set the override rate for ``axis`` ("pitch", "yaw" or "roll")."""
        raise NotImplementedError("ActuatorHandle.set_axis_rate() must be implemented")

    def set_override_enabled(self, enabled: bool) -> None:
        raise NotImplementedError(
            "ActuatorHandle.set_override_enabled() must be implemented"
        )

    def get_max_rate(self, axis: str) -> float:
        raise NotImplementedError("ActuatorHandle.get_max_rate() must be implemented")

    def get_local_orientation(self) -> np.ndarray:
        """Return the gyro's fixed rotation relative to the ship grid."""
        raise NotImplementedError(
            "ActuatorHandle.get_local_orientation() must be implemented"
        )


class DisplaySink:
    """Text output surface."""

    def write_text(self, text: str, append: bool = False) -> None:
        raise NotImplementedError("DisplaySink.write_text() must be implemented")


class Host:
    """Block lookup provided by the scripting environment."""

    def get_sensor(self, name: str) -> SensorHandle | None:
        """Return the named remote control block, or None if absent."""
        raise NotImplementedError("Host.get_sensor() must be implemented")

    def get_actuator_handles(self, count: int) -> list[ActuatorHandle]:
        """Return up to ``count`` gyros on the ship, in a stable order."""
        raise NotImplementedError("Host.get_actuator_handles() must be implemented")

    def get_display(self, name: str) -> DisplaySink | None:
        """Return the named text panel, or None if absent."""
        return None
