"""
Flight Assist Configuration Module

Defines block names, gyro tuning, hover/brake set-points, display layout and
tick timing for the flight assist controller. All sections are immutable;
build a new configuration (``from_dict`` or ``dataclasses.replace``) to
change a value.
"""

from dataclasses import dataclass, field
from enum import Enum

from ..errors import ConfigError


class ThrustOrientation(str, Enum):
    """Side of the ship carrying the main thrusters."""

    BOTTOM = "bottom"
    REAR = "rear"


class ControlLaw(str, Enum):
    """Orientation control law used to turn targets into gyro rates."""

    AXIS_ANGLE = "axis_angle"
    ANGLE_DIFFERENCE = "angle_difference"


def _enum_value(enum_cls, value, key: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(
            f"Invalid {key}: '{value}' (expected one of: {choices})"
        ) from None


def _bool_value(value, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigError(f"Invalid {key}: '{value}' (expected true or false)")


@dataclass(frozen=True)
class BlockParams:
    """Names of the host blocks the controller binds to."""

    remote_control_name: str = "FA Remote"
    text_panel_name: str = "FA Screen"  # optional, empty disables the screen


@dataclass(frozen=True)
class GyroParams:
    """Gyro count and control-law tuning."""

    count: int = 1
    min_rate: float = 0.015  # rates below this are inert in the gyro model
    velocity_scale: float = 1.0  # [0, 1], lower trades response for overshoot
    control_law: ControlLaw = ControlLaw.AXIS_ANGLE

    def __post_init__(self):
        if self.count < 1:
            raise ConfigError(f"gyros.count must be >= 1, got {self.count}")
        if self.min_rate < 0.0:
            raise ConfigError(f"gyros.min_rate must be >= 0, got {self.min_rate}")
        if not 0.0 <= self.velocity_scale <= 1.0:
            raise ConfigError(
                f"gyros.velocity_scale must be in [0, 1], got {self.velocity_scale}"
            )


@dataclass(frozen=True)
class HoverParams:
    """Hover assist set-points used while in gravity."""

    responsiveness: float = 16.0  # larger = more gradual angle drop
    max_pitch: float = 45.0  # degrees
    max_roll: float = 45.0  # degrees
    always_enabled_in_gravity: bool = False
    gravity_main_thrust: ThrustOrientation = ThrustOrientation.BOTTOM

    def __post_init__(self):
        if self.responsiveness <= 0.0:
            raise ConfigError(
                f"hover.responsiveness must be > 0, got {self.responsiveness}"
            )
        for name in ("max_pitch", "max_roll"):
            value = getattr(self, name)
            if not 0.0 <= value <= 90.0:
                raise ConfigError(f"hover.{name} must be in [0, 90], got {value}")


@dataclass(frozen=True)
class BrakeParams:
    """Retrograde braking thresholds used while weightless."""

    speed_threshold: float = 0.3  # m/s, braking ends below this
    angle_tolerance: float = 0.03  # rad, dampeners engage inside this
    space_main_thrust: ThrustOrientation = ThrustOrientation.REAR


@dataclass(frozen=True)
class DisplayParams:
    """Text panel layout."""

    redraw_interval: int = 5  # ticks between screen redraws
    height: int = 13
    width: int = 27

    def __post_init__(self):
        if self.redraw_interval < 1:
            raise ConfigError(
                f"display.redraw_interval must be >= 1, got {self.redraw_interval}"
            )
        if self.height < 3 or self.width < 3:
            raise ConfigError("display.height and display.width must be >= 3")


@dataclass(frozen=True)
class SimulationParams:
    """Tick timing."""

    tick_rate_hz: float = 60.0

    def __post_init__(self):
        if self.tick_rate_hz <= 0.0:
            raise ConfigError(
                f"simulation.tick_rate_hz must be > 0, got {self.tick_rate_hz}"
            )

    @property
    def dt_ms(self) -> float:
        """Tick period in milliseconds."""
        return 1000.0 / self.tick_rate_hz


@dataclass(frozen=True)
class LoggingParams:
    """Telemetry logging configuration."""

    enabled: bool = True
    log_interval: int = 10  # ticks between log entries
    output_dir: str = "reports"


@dataclass(frozen=True)
class FlightAssistConfig:
    """Complete flight assist configuration."""

    blocks: BlockParams = field(default_factory=BlockParams)
    gyros: GyroParams = field(default_factory=GyroParams)
    hover: HoverParams = field(default_factory=HoverParams)
    brake: BrakeParams = field(default_factory=BrakeParams)
    display: DisplayParams = field(default_factory=DisplayParams)
    simulation: SimulationParams = field(default_factory=SimulationParams)
    logging: LoggingParams = field(default_factory=LoggingParams)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "FlightAssistConfig":
        """
        Create FlightAssistConfig from a dictionary (e.g., from load_config).

        Args:
            config_dict: Configuration dictionary. Missing keys use defaults.

        Returns:
            FlightAssistConfig instance.

        Raises:
            ConfigError: If a value is out of range or not a valid choice.
        """
        blocks_dict = config_dict.get("blocks") or {}
        gyro_dict = config_dict.get("gyros") or {}
        hover_dict = config_dict.get("hover") or {}
        brake_dict = config_dict.get("brake") or {}
        display_dict = config_dict.get("display") or {}
        sim_dict = config_dict.get("simulation") or {}
        logging_dict = config_dict.get("logging") or {}

        try:
            return cls(
                blocks=BlockParams(
                    remote_control_name=str(
                        blocks_dict.get("remote_control_name", "FA Remote")
                    ),
                    text_panel_name=str(blocks_dict.get("text_panel_name", "FA Screen") or ""),
                ),
                gyros=GyroParams(
                    count=int(gyro_dict.get("count", 1)),
                    min_rate=float(gyro_dict.get("min_rate", 0.015)),
                    velocity_scale=float(gyro_dict.get("velocity_scale", 1.0)),
                    control_law=_enum_value(
                        ControlLaw,
                        gyro_dict.get("control_law", ControlLaw.AXIS_ANGLE),
                        "gyros.control_law",
                    ),
                ),
                hover=HoverParams(
                    responsiveness=float(hover_dict.get("responsiveness", 16.0)),
                    max_pitch=float(hover_dict.get("max_pitch", 45.0)),
                    max_roll=float(hover_dict.get("max_roll", 45.0)),
                    always_enabled_in_gravity=_bool_value(
                        hover_dict.get("always_enabled_in_gravity", False),
                        "hover.always_enabled_in_gravity",
                    ),
                    gravity_main_thrust=_enum_value(
                        ThrustOrientation,
                        hover_dict.get("gravity_main_thrust", ThrustOrientation.BOTTOM),
                        "hover.gravity_main_thrust",
                    ),
                ),
                brake=BrakeParams(
                    speed_threshold=float(brake_dict.get("speed_threshold", 0.3)),
                    angle_tolerance=float(brake_dict.get("angle_tolerance", 0.03)),
                    space_main_thrust=_enum_value(
                        ThrustOrientation,
                        brake_dict.get("space_main_thrust", ThrustOrientation.REAR),
                        "brake.space_main_thrust",
                    ),
                ),
                display=DisplayParams(
                    redraw_interval=int(display_dict.get("redraw_interval", 5)),
                    height=int(display_dict.get("height", 13)),
                    width=int(display_dict.get("width", 27)),
                ),
                simulation=SimulationParams(
                    tick_rate_hz=float(sim_dict.get("tick_rate_hz", 60.0)),
                ),
                logging=LoggingParams(
                    enabled=_bool_value(logging_dict.get("enabled", True), "logging.enabled"),
                    log_interval=int(logging_dict.get("log_interval", 10)),
                    output_dir=str(logging_dict.get("output_dir", "reports")),
                ),
            )
        except (TypeError, ValueError) as e:
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(f"Invalid configuration value: {e}") from e

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            "blocks": {
                "remote_control_name": self.blocks.remote_control_name,
                "text_panel_name": self.blocks.text_panel_name,
            },
            "gyros": {
                "count": self.gyros.count,
                "min_rate": self.gyros.min_rate,
                "velocity_scale": self.gyros.velocity_scale,
                "control_law": self.gyros.control_law.value,
            },
            "hover": {
                "responsiveness": self.hover.responsiveness,
                "max_pitch": self.hover.max_pitch,
                "max_roll": self.hover.max_roll,
                "always_enabled_in_gravity": self.hover.always_enabled_in_gravity,
                "gravity_main_thrust": self.hover.gravity_main_thrust.value,
            },
            "brake": {
                "speed_threshold": self.brake.speed_threshold,
                "angle_tolerance": self.brake.angle_tolerance,
                "space_main_thrust": self.brake.space_main_thrust.value,
            },
            "display": {
                "redraw_interval": self.display.redraw_interval,
                "height": self.display.height,
                "width": self.display.width,
            },
            "simulation": {
                "tick_rate_hz": self.simulation.tick_rate_hz,
            },
            "logging": {
                "enabled": self.logging.enabled,
                "log_interval": self.logging.log_interval,
                "output_dir": self.logging.output_dir,
            },
        }
