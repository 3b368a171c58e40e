"""
Flight Assist

Per-tick flight stabilization for a ship driven by gyro overrides:
estimate motion from position/orientation/gravity samples, pick a target
orientation from the active flight mode, and drive every gyro toward it.

Subpackages:
- controllers: orientation control laws (axis-angle, angle-difference)
- host: host interfaces, configuration and a simulated ship
- utils: vector math, config loading, telemetry, plotting and metrics

Modules:
- estimation: MotionEstimator and MotionState
- modes: flight mode policies and state machine
- actuators: ActuatorDriver
- display: status formatting and paging
- assist: FlightAssist tick loop and command routing
- simulate: scenario runner CLI
"""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("flight-assist")
except importlib.metadata.PackageNotFoundError:
    # Not installed, e.g. running from a source checkout
    __version__ = "0.0.0-dev"

from flight_assist.actuators import ActuatorDriver
from flight_assist.assist import FlightAssist, TickResult
from flight_assist.controllers import (
    AngleDifferenceController,
    AttitudeTarget,
    BaseControlLaw,
    DirectionTarget,
    OrientationController,
    RateCommand,
    create_control_law,
)
from flight_assist.display import DisplayPager, StatusFormatter
from flight_assist.errors import ConfigError, FlightAssistError, MissingCollaboratorError
from flight_assist.estimation import MotionEstimator, MotionState
from flight_assist.host import FlightAssistConfig
from flight_assist.modes import FlightModes, ModeName
from flight_assist.utils import (
    Plotter,
    ScenarioMetrics,
    TelemetryLogger,
    compute_scenario_metrics,
    get_default_config,
    load_config,
)

__all__ = [
    "FlightAssist",
    "TickResult",
    "FlightAssistConfig",
    "MotionEstimator",
    "MotionState",
    "FlightModes",
    "ModeName",
    "ActuatorDriver",
    "StatusFormatter",
    "DisplayPager",
    # Control laws
    "BaseControlLaw",
    "OrientationController",
    "AngleDifferenceController",
    "RateCommand",
    "DirectionTarget",
    "AttitudeTarget",
    "create_control_law",
    # Errors
    "FlightAssistError",
    "MissingCollaboratorError",
    "ConfigError",
    # Utilities
    "load_config",
    "get_default_config",
    "TelemetryLogger",
    "Plotter",
    "ScenarioMetrics",
    "compute_scenario_metrics",
]
