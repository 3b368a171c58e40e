"""
Flight Modes

Mode policies that turn the current MotionState into a ControlTarget, and
the state machine that selects exactly one of them per tick.

Modes:
    Gravity only (hover assist):
    - hover:     lean against forward and lateral drift
    - glide:     hold the nose level, lean against lateral drift only
    - freeglide: hold level, no drift correction
    - pitch:     lean against forward drift, keep the current roll
    - roll:      lean against lateral drift, keep the current pitch
    - cruise:    like hover, but hold a forward set speed
    Weightless only (vector assist):
    - brake:     point the space thrust axis retrograde, engage dampeners
                 once on target, finish below the speed threshold
    - prograde:  point the space thrust axis along the heading

Lean Curve:
    angle = atan(v / responsiveness) / (pi / 2) * max_angle

    A soft saturation: the commanded lean grows with speed but never
    exceeds ``max_angle``. Larger responsiveness gives a gentler curve.

Transitions come from commands (``FlightModes.handle_command``) and from
two automatic rules checked every tick: a mode whose regime no longer
matches the gravity state drops to disabled, and brake drops to disabled
once the speed falls below the threshold.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from .controllers.base import AttitudeTarget, ControlTarget, DirectionTarget
from .estimation import MotionState
from .host.config import FlightAssistConfig
from .utils import vector_math as vm

logger = logging.getLogger(__name__)

HALF_PI = math.pi / 2


class ModeName(str, Enum):
    DISABLED = "disabled"
    HOVER = "hover"
    GLIDE = "glide"
    FREE_GLIDE = "freeglide"
    PITCH_ONLY = "pitch"
    ROLL_ONLY = "roll"
    CRUISE = "cruise"
    BRAKE = "brake"
    PROGRADE = "prograde"


GRAVITY_MODES = frozenset(
    {
        ModeName.HOVER,
        ModeName.GLIDE,
        ModeName.FREE_GLIDE,
        ModeName.PITCH_ONLY,
        ModeName.ROLL_ONLY,
        ModeName.CRUISE,
    }
)
SPACE_MODES = frozenset({ModeName.BRAKE, ModeName.PROGRADE})


@dataclass(frozen=True)
class ModeTransition:
    """
    Requested change of the active mode.

    Attributes:
        target: Mode to switch to.
        reason: Short description for logs.
        select_only: Change the selected hover policy without engaging it.
        dampeners: Desired dampener state, or None to leave them alone.
    """

    target: ModeName
    reason: str
    select_only: bool = False
    dampeners: bool | None = None


@dataclass(frozen=True)
class ModeOutput:
    """What the active mode produced for one tick."""

    target: ControlTarget = None
    transition: ModeTransition | None = None
    dampeners: bool | None = None


def lean_angle(speed: float, responsiveness: float, max_angle: float) -> float:
    """Soft-saturated lean angle in degrees for a drift ``speed``."""
    return math.atan(speed / responsiveness) / HALF_PI * max_angle


class Mode:
    """
    Base class for flight mode policies.

    Attributes:
        name: The ModeName this policy implements.
        requires_gravity: True for gravity-only, False for weightless-only,
            None if the mode works in both regimes.
    """

    name = ModeName.DISABLED
    requires_gravity: bool | None = None

    def __init__(self, config: FlightAssistConfig):
        self.config = config

    def compatible(self, state: MotionState) -> bool:
        if self.requires_gravity is None:
            return True
        return state.in_gravity == self.requires_gravity

    def enter(self, state: MotionState | None) -> None:
        """Called when the mode becomes active."""

    def handle_command(
        self, args: list[str], state: MotionState | None
    ) -> ModeTransition | None:
        """Handle a command addressed to this mode; default selects it."""
        return ModeTransition(self.name, reason="command")

    def tick(self, state: MotionState) -> ModeOutput:
        return ModeOutput()


class DisabledMode(Mode):
    name = ModeName.DISABLED


class LevelingMode(Mode):
    """Gravity mode that leans the ship against drift (stationary hover)."""

    name = ModeName.HOVER
    requires_gravity = True

    def __init__(self, config: FlightAssistConfig):
        super().__init__(config)
        self.responsiveness = config.hover.responsiveness
        self.max_pitch = config.hover.max_pitch
        self.max_roll = config.hover.max_roll

    def handle_command(self, args, state):
        return ModeTransition(self.name, reason="command", select_only=True)

    def pitch_for(self, speed: float) -> float:
        return lean_angle(speed, self.responsiveness, self.max_pitch)

    def roll_for(self, speed: float) -> float:
        return lean_angle(speed, self.responsiveness, self.max_roll)

    def desired_attitude(self, state: MotionState) -> tuple[float, float]:
        return (
            self.pitch_for(state.world_speed.forward),
            self.roll_for(state.world_speed.right),
        )

    def tick(self, state: MotionState) -> ModeOutput:
        pitch, roll = self.desired_attitude(state)
        return ModeOutput(target=AttitudeTarget(pitch=pitch, roll=roll))


class GlideMode(LevelingMode):
    name = ModeName.GLIDE

    def desired_attitude(self, state):
        return 0.0, self.roll_for(state.world_speed.right)


class FreeGlideMode(LevelingMode):
    name = ModeName.FREE_GLIDE

    def desired_attitude(self, state):
        return 0.0, 0.0


class PitchOnlyMode(LevelingMode):
    name = ModeName.PITCH_ONLY

    def desired_attitude(self, state):
        return self.pitch_for(state.world_speed.forward), state.attitude.roll


class RollOnlyMode(LevelingMode):
    name = ModeName.ROLL_ONLY

    def desired_attitude(self, state):
        return state.attitude.pitch, self.roll_for(state.world_speed.right)


class CruiseMode(LevelingMode):
    """Hover that holds a forward set speed instead of zero."""

    name = ModeName.CRUISE

    def __init__(self, config: FlightAssistConfig):
        super().__init__(config)
        self.set_speed = 0.0

    def handle_command(self, args, state):
        if args:
            try:
                speed = float(args[0])
            except ValueError:
                logger.warning("Ignoring cruise command with invalid speed '%s'", args[0])
                return None
            if not math.isfinite(speed):
                logger.warning("Ignoring cruise command with invalid speed '%s'", args[0])
                return None
            self.set_speed = speed
        else:
            self.set_speed = 0.0
        logger.info("Cruise speed set to %.1f m/s", self.set_speed)
        return ModeTransition(self.name, reason="command", select_only=True)

    def desired_attitude(self, state):
        return (
            self.pitch_for(state.world_speed.forward - self.set_speed),
            self.roll_for(state.world_speed.right),
        )


class BrakeMode(Mode):
    """
    Retrograde braking while weightless.

    Turns the space thrust axis against the heading. Dampeners are engaged
    once the axis is within ``angle_tolerance`` of retrograde, and the mode
    finishes on the first tick with speed below ``speed_threshold``.
    """

    name = ModeName.BRAKE
    requires_gravity = False

    def __init__(self, config: FlightAssistConfig):
        super().__init__(config)
        self.speed_threshold = config.brake.speed_threshold
        self.angle_tolerance = config.brake.angle_tolerance
        self.start_speed = 0.0

    def enter(self, state):
        self.start_speed = state.speed if state is not None else 0.0
        logger.info("Braking from %.2f m/s", self.start_speed)

    def handle_command(self, args, state):
        # Dampeners off while turning so they do not fight the rotation
        return ModeTransition(self.name, reason="command", dampeners=False)

    def progress(self, state: MotionState) -> float:
        """Fraction of the starting speed shed so far, in [0, 1]."""
        if self.start_speed <= 0.0:
            return 1.0
        return min(1.0, max(0.0, 1.0 - state.speed / self.start_speed))

    def tick(self, state: MotionState) -> ModeOutput:
        if state.speed < self.speed_threshold:
            return ModeOutput(
                transition=ModeTransition(ModeName.DISABLED, reason="brake complete"),
                dampeners=True,
            )
        if state.heading is None:
            return ModeOutput()

        retrograde = -state.heading
        thrust_axis = state.space_frame.forward
        on_target = (
            vm.safe_acos(vm.dot(thrust_axis, retrograde)) < self.angle_tolerance
        )
        return ModeOutput(
            target=DirectionTarget(
                reference_axis=state.space_frame.local_forward, direction=retrograde
            ),
            dampeners=True if on_target else None,
        )


class ProgradeMode(Mode):
    """Point the space thrust axis along the direction of travel."""

    name = ModeName.PROGRADE
    requires_gravity = False

    def tick(self, state: MotionState) -> ModeOutput:
        if state.heading is None:
            return ModeOutput()
        return ModeOutput(
            target=DirectionTarget(
                reference_axis=state.space_frame.local_forward, direction=state.heading
            )
        )


MODE_TYPES = (
    DisabledMode,
    LevelingMode,
    GlideMode,
    FreeGlideMode,
    PitchOnlyMode,
    RollOnlyMode,
    CruiseMode,
    BrakeMode,
    ProgradeMode,
)


class FlightModes:
    """
    Flight mode state machine.

    Owns one instance of every mode, the active mode, and the selected
    hover policy (which "hover toggle" engages). Set-points such as the
    cruise speed live on their mode objects and persist across ticks.

    Attributes:
        active: ModeName of the mode run each tick.
        selected_policy: Hover-family mode engaged by "hover toggle".
    """

    def __init__(self, config: FlightAssistConfig | None = None):
        self.config = config or FlightAssistConfig()
        self.modes: dict[ModeName, Mode] = {
            mode_type.name: mode_type(self.config) for mode_type in MODE_TYPES
        }
        self.active = ModeName.DISABLED
        self.selected_policy = ModeName.HOVER
        self.always_enabled_in_gravity = self.config.hover.always_enabled_in_gravity

    @property
    def mode(self) -> Mode:
        return self.modes[self.active]

    @property
    def enabled(self) -> bool:
        return self.active != ModeName.DISABLED

    @property
    def braking(self) -> bool:
        return self.active == ModeName.BRAKE

    @property
    def cruise_speed(self) -> float:
        return self.modes[ModeName.CRUISE].set_speed

    def brake_progress(self, state: MotionState) -> float | None:
        """Share of the braking start speed shed so far, or None if not braking."""
        if not self.braking:
            return None
        return self.modes[ModeName.BRAKE].progress(state)

    def apply(self, transition: ModeTransition, state: MotionState | None) -> None:
        """Apply a transition to the state machine."""
        target = transition.target
        if transition.select_only:
            self.selected_policy = target
            logger.info("Hover mode set to %s", target.value.upper())
            if self.active in GRAVITY_MODES and self.active != target:
                self._activate(target, transition.reason, state)
            return
        self._activate(target, transition.reason, state)

    def _activate(self, target: ModeName, reason: str, state: MotionState | None) -> None:
        previous = self.active
        self.active = target
        self.modes[target].enter(state)
        if previous != target:
            logger.info(
                "Flight mode %s -> %s (%s)", previous.value, target.value, reason
            )

    def tick(self, state: MotionState) -> ModeOutput:
        """
        Run the automatic transitions and the active mode for one tick.

        Returns:
            The active mode's output. Any transition in it has already been
            applied; the target is still returned for this tick.
        """
        if self.enabled and not self.mode.compatible(state):
            reason = "gravity lost" if not state.in_gravity else "gravity acquired"
            self._activate(ModeName.DISABLED, reason, state)

        if (
            self.always_enabled_in_gravity
            and state.in_gravity
            and not self.enabled
        ):
            self._activate(self.selected_policy, "always enabled in gravity", state)

        output = self.mode.tick(state)
        if output.transition is not None:
            self.apply(output.transition, state)
        return output

    def handle_command(
        self, module: str, args: list[str], state: MotionState | None
    ) -> ModeTransition | None:
        """
        Route a "hover ..." or "vector ..." command.

        Args:
            module: "hover" or "vector".
            args: Remaining command words, lower-cased.
            state: Latest MotionState, or None before the first tick.

        Returns:
            The transition that was applied, or None if nothing changed.
        """
        if not args:
            logger.warning("Ignoring '%s' command without a subcommand", module)
            return None
        if state is None:
            logger.warning("Ignoring '%s %s' before the first tick", module, args[0])
            return None

        if module == "hover":
            transition = self._hover_command(args, state)
        elif module == "vector":
            transition = self._vector_command(args, state)
        else:
            logger.warning("Unknown flight mode module '%s'", module)
            return None

        if transition is not None:
            self.apply(transition, state)
        return transition

    def _hover_command(self, args: list[str], state: MotionState) -> ModeTransition | None:
        if not state.in_gravity:
            logger.info("Hover command '%s' ignored while weightless", args[0])
            return None

        command = args[0]
        if command == "toggle":
            if self.active in GRAVITY_MODES:
                return ModeTransition(ModeName.DISABLED, reason="toggle")
            return ModeTransition(self.selected_policy, reason="toggle")

        try:
            name = ModeName(command)
        except ValueError:
            name = None
        if name not in GRAVITY_MODES:
            logger.warning("Unrecognized hover command '%s'", command)
            return None
        return self.modes[name].handle_command(args[1:], state)

    def _vector_command(self, args: list[str], state: MotionState) -> ModeTransition | None:
        if state.in_gravity:
            logger.info("Vector command '%s' ignored in gravity", args[0])
            return None

        command = args[0]
        try:
            name = ModeName(command)
        except ValueError:
            name = None
        if name not in SPACE_MODES:
            logger.warning("Unrecognized vector command '%s'", command)
            return None
        if self.active == name:
            return ModeTransition(ModeName.DISABLED, reason=f"{name.value} cancelled")
        return self.modes[name].handle_command(args[1:], state)
