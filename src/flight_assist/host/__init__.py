"""
Host Package

Everything on the host side of the controller boundary:

- interfaces: handle contracts the core consumes (sensor, gyros, text panel)
- config: immutable configuration dataclasses
- simulated: a rigid-body ship implementing the interfaces for tests and
  the simulation CLI

Frame Conventions:
    Local axes are x = right, y = up, z = backward (forward = -z). World
    matrices are local-to-world rotations with columns (right, up, backward).
    Gravity samples point down; the estimator stores the unit "up" vector.
"""

from .config import (
    BlockParams,
    BrakeParams,
    ControlLaw,
    DisplayParams,
    FlightAssistConfig,
    GyroParams,
    HoverParams,
    LoggingParams,
    SimulationParams,
    ThrustOrientation,
)
from .interfaces import AXES, ActuatorHandle, DisplaySink, Host, SensorHandle
from .simulated import (
    SimulatedDisplay,
    SimulatedGyro,
    SimulatedHost,
    SimulatedSensor,
    SimulatedShip,
)

__all__ = [
    # Interfaces
    "AXES",
    "ActuatorHandle",
    "SensorHandle",
    "DisplaySink",
    "Host",
    # Configuration
    "FlightAssistConfig",
    "BlockParams",
    "GyroParams",
    "HoverParams",
    "BrakeParams",
    "DisplayParams",
    "SimulationParams",
    "LoggingParams",
    "ThrustOrientation",
    "ControlLaw",
    # Simulation
    "SimulatedShip",
    "SimulatedGyro",
    "SimulatedSensor",
    "SimulatedDisplay",
    "SimulatedHost",
]
