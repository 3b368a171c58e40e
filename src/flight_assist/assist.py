"""
Flight Assist Controller

Wires the pipeline together and exposes the host entry point. Each passive
tick runs, in order:

1. MotionEstimator: sample the sensor into a fresh MotionState
2. FlightModes: automatic transitions, then the active mode's ControlTarget
3. Control law: ControlTarget -> ship-frame RateCommand
4. ActuatorDriver: write the command to every gyro
5. DisplayPager: redraw the text panel when due

Commands ("<module> <subcommand> [args...]", case-insensitive) are handled
between ticks and act on the latest MotionState without running a tick:

    motion togglegyros      manual gyro override lock
    hover toggle|<mode>     hover assist (gravity only)
    hover cruise <speed>    cruise set speed
    vector brake|prograde   vector assist (weightless only)
    display next|previous   status page selection
"""

import logging
from dataclasses import dataclass

from .actuators import ActuatorDriver
from .controllers import ZERO_RATE, RateCommand, create_control_law
from .display import DisplayPager, StatusFormatter
from .errors import MissingCollaboratorError
from .estimation import MotionEstimator, MotionState
from .host.config import FlightAssistConfig
from .host.interfaces import ActuatorHandle, DisplaySink, Host, SensorHandle
from .modes import FlightModes, ModeName, ModeOutput, ModeTransition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickResult:
    """Everything one passive tick produced, for telemetry and tests."""

    state: MotionState
    mode: ModeName
    output: ModeOutput
    requested: RateCommand
    command: RateCommand
    gyros_enabled: bool
    dampeners_engaged: bool


class FlightAssist:
    """
    Per-tick flight stabilization controller.

    Collaborators are injected at construction; nothing is looked up
    through globals.

    Attributes:
        config: Immutable configuration.
        estimator: Motion estimator (sole writer of MotionState).
        modes: Flight mode state machine.
        control_law: Orientation control law.
        driver: Actuator driver (sole writer of gyro handles).
        pager: Status display pager.
        gyro_lock: Manual override lock from "motion togglegyros".
    """

    def __init__(
        self,
        config: FlightAssistConfig,
        sensor: SensorHandle,
        actuators: list[ActuatorHandle],
        display: DisplaySink | None = None,
    ):
        self.config = config
        self.sensor = sensor
        self.estimator = MotionEstimator(config, sensor.get_build_orientation())
        self.modes = FlightModes(config)
        self.control_law = create_control_law(config)
        self.driver = ActuatorDriver(actuators)
        self.pager = DisplayPager(
            display,
            StatusFormatter(config.display),
            redraw_interval=config.display.redraw_interval,
        )
        self.gyro_lock = False

    @classmethod
    def from_host(cls, host: Host, config: FlightAssistConfig | None = None) -> "FlightAssist":
        """
        Resolve collaborators from the host and build the controller.

        Raises:
            MissingCollaboratorError: If the sensor is missing or fewer gyros
                exist than configured.
        """
        config = config or FlightAssistConfig()

        sensor = host.get_sensor(config.blocks.remote_control_name)
        if sensor is None:
            error = MissingCollaboratorError("remote control", config.blocks.remote_control_name)
            logger.error("%s", error)
            raise error

        count = config.gyros.count
        handles = list(host.get_actuator_handles(count))
        if len(handles) < count:
            error = MissingCollaboratorError(
                "gyroscope",
                f"{count} gyros",
                detail=f"only {len(handles)} found",
            )
            logger.error("%s", error)
            raise error

        display = None
        if config.blocks.text_panel_name:
            display = host.get_display(config.blocks.text_panel_name)
            if display is None:
                logger.warning(
                    "Text panel '%s' not found, status display disabled",
                    config.blocks.text_panel_name,
                )

        return cls(config, sensor, handles[:count], display)

    @property
    def state(self) -> MotionState | None:
        """Latest MotionState, or None before the first tick."""
        return self.estimator.state

    def run(self, command: str = "") -> TickResult | None:
        """
        Host entry point.

        An empty command runs one passive tick; anything else is routed to
        a command handler and no tick is run.
        """
        if command and command.strip():
            self.handle_command(command)
            return None
        return self.tick()

    def tick(self) -> TickResult:
        state = self.estimator.sample(self.sensor)
        if state.gravity_transitioned and not state.in_gravity and self.gyro_lock:
            self.gyro_lock = False
            logger.info("Gyro lock off (gravity lost)")
        output = self.modes.tick(state)
        if output.dampeners is not None:
            self._set_dampeners(output.dampeners)
        self._sync_override()

        command = ZERO_RATE
        if self.modes.enabled and output.target is not None:
            command = self.control_law.command(output.target, state, self.driver.max_rate)
        if self.driver.enabled:
            self.driver.apply(command)
            logger.debug("Tick %d rate command %s", state.tick, command)

        self.pager.tick(state, self.modes)

        return TickResult(
            state=state,
            mode=self.modes.active,
            output=output,
            requested=command,
            command=self.driver.last_command,
            gyros_enabled=self.driver.enabled,
            dampeners_engaged=bool(self.sensor.get_dampeners_engaged()),
        )

    def handle_command(self, command: str) -> bool:
        """
        Route a text command.

        Returns:
            True if the command changed anything.
        """
        words = command.strip().lower().split()
        if not words:
            return False
        module, args = words[0], words[1:]

        if module == "motion":
            if args[:1] == ["togglegyros"]:
                self._toggle_gyro_lock()
                return True
            logger.warning("Unrecognized motion command '%s'", " ".join(args))
            return False

        if module in ("hover", "vector"):
            transition = self.modes.handle_command(module, args, self.state)
            if transition is None:
                return False
            if transition.dampeners is not None:
                self._set_dampeners(transition.dampeners)
            self._sync_override()
            return True

        if module == "display":
            return self.pager.handle_command(args)

        logger.warning("Unrecognized command module '%s'", module)
        return False

    def _toggle_gyro_lock(self) -> None:
        self.gyro_lock = not self.gyro_lock
        logger.info("Gyro lock %s", "on" if self.gyro_lock else "off")
        if not self.gyro_lock and self.modes.enabled:
            self.modes.apply(ModeTransition(ModeName.DISABLED, reason="gyros released"), self.state)
        self._sync_override()

    def _sync_override(self) -> None:
        wanted = self.modes.enabled or self.gyro_lock
        if wanted != self.driver.enabled:
            self.driver.set_enabled(wanted)

    def _set_dampeners(self, engaged: bool) -> None:
        if bool(self.sensor.get_dampeners_engaged()) != engaged:
            self.sensor.toggle_dampeners()
            logger.info("Dampeners %s", "engaged" if engaged else "disengaged")
