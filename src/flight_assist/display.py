"""
Status Display

Text rendering of the controller state for an optional text panel:

- StatusFormatter: pure formatting of MotionState and mode state, including
  the artificial horizon grid and the braking progress bar
- DisplayPager: pages between the motion, hover and vector views and
  redraws the panel every ``redraw_interval`` ticks

Horizon Grid:
    A ``height`` x ``width`` block of single-character cells, each row
    framed as ``"       |" + cells + "|"``.

    - '.' sky / background, '=' ground below the horizon line
    - '<', ' ', '>' fixed center reference
    - '!' velocity marker on the top row (gravity), column from the lateral
      heading component
    - '+' / '~' heading marker (weightless), '~' when moving backward

    In gravity the horizon row follows pitch and its slope follows roll.
    Weightless, the marker shows where the heading points relative to the
    ship's nose.
"""

import logging
import math

from .estimation import MotionState
from .host.config import DisplayParams
from .host.interfaces import DisplaySink
from .modes import GRAVITY_MODES, FlightModes, ModeName
from .utils import vector_math as vm

logger = logging.getLogger(__name__)

MARGIN = "       "
PAGES = ("motion", "hover", "vector")
RULE = "-" * 40


def format_fixed(value: float, digits: int) -> str:
    """Zero-padded integer rendering with a leading minus for negatives."""
    if not math.isfinite(value):
        return "-" * digits
    rounded = int(round(abs(value)))
    sign = "-" if value < 0 and rounded != 0 else ""
    return f"{sign}{rounded:0{digits}d}"


class StatusFormatter:
    """
    Renders status pages from already-computed state. Has no side effects.

    Attributes:
        height: Horizon grid rows.
        width: Horizon grid columns.
    """

    def __init__(self, params: DisplayParams | None = None):
        params = params or DisplayParams()
        self.height = params.height
        self.width = params.width

    def marker_position(self, state: MotionState) -> tuple[int, int]:
        """Return (row, column) of the pitch row / heading marker."""
        y_center = self.height // 2
        x_center = self.width // 2

        if state.in_gravity:
            row = self.height - math.floor((state.attitude.pitch + 90.0) / 180.0 * self.height) - 1
            lateral = vm.dot(state.frame.right, state.heading) if state.moving else 0.0
            column = math.floor(lateral * x_center) + x_center
            if state.local_speed.forward < 0:
                column = self.width - column
            return row, column

        if state.speed <= 0.0:
            return y_center, x_center
        row = -math.floor(state.local_speed.up / state.speed * y_center) + y_center
        column = math.floor(state.local_speed.right / state.speed * x_center) + x_center
        return row, column

    def _horizon_row(self, x: int, pitch_row: int, roll: float, upside_down: bool) -> float:
        if abs(roll) < 0.01:
            return pitch_row
        half_width = self.width // 2
        row = math.floor(self.height * 2 * roll / 90.0) * (x - half_width) / half_width + pitch_row
        if upside_down:
            row = self.height - row
        return row

    def horizon(self, state: MotionState, brake_progress: float | None = None) -> str:
        """
        Render the artificial horizon grid.

        Args:
            state: Current motion state.
            brake_progress: Fraction of speed shed since braking started, or
                None to omit the progress bar.
        """
        y_center = self.height // 2
        x_center = self.width // 2
        row, column = self.marker_position(state)
        in_gravity = state.in_gravity
        upside_down = state.upside_down
        roll = state.attitude.roll

        lines = []
        for y in range(self.height):
            cells = []
            for x in range(self.width):
                horizon_row = self._horizon_row(x, row, roll, upside_down) if in_gravity else row
                if in_gravity and x == column and y == 0:
                    cells.append("!")
                elif not in_gravity and x == column and y == row:
                    cells.append("~" if state.local_speed.forward < 0 else "+")
                elif x == x_center and y == y_center:
                    cells.append(" ")
                elif x == x_center - 1 and y == y_center:
                    cells.append("<")
                elif x == x_center + 1 and y == y_center:
                    cells.append(">")
                elif in_gravity and not upside_down and y > horizon_row:
                    cells.append("=")
                elif in_gravity and upside_down and y < horizon_row:
                    cells.append("=")
                else:
                    cells.append(".")
            lines.append(f"{MARGIN}|{''.join(cells)}|")

        if brake_progress is not None:
            lines.extend(self.progress_bar(brake_progress))
        return "\n".join(lines)

    def progress_bar(self, progress: float) -> list[str]:
        """Braking progress: '=' for the share of speed shed, '~' for the rest."""
        progress = min(1.0, max(0.0, progress))
        filled = min(self.width, math.ceil(self.width * progress))
        label = f"  Braking In Progress {progress * 100:3.0f}%"
        return [
            f"{MARGIN}|{'=' * filled}{'~' * (self.width - filled)}|",
            f"{MARGIN}|{label.ljust(self.width)}|",
        ]

    def motion_page(self, state: MotionState) -> str:
        local = state.local_speed
        return (
            f"----- Velocity {RULE}"
            f"\nTotal: {format_fixed(state.speed, 3)} m/s"
            f"\n  F/B: {format_fixed(local.forward, 3)}"
            f"\n  R/L: {format_fixed(local.right, 3)}"
            f"\n  U/D: {format_fixed(local.up, 3)}"
            f"\n\n----- Orientation {RULE}"
            f"\nPitch: {format_fixed(state.attitude.pitch, 2)}°"
            f" | Tilt: {format_fixed(state.attitude.roll, 2)}°"
        )

    def hover_page(self, state: MotionState, modes: FlightModes) -> str:
        hover_enabled = modes.active in GRAVITY_MODES
        output = (
            f"----- Status {RULE}"
            f"\nHover State: {'ENABLED' if hover_enabled else 'DISABLED'}"
            f"\nHover Mode: {modes.selected_policy.value.upper()}"
        )
        if modes.selected_policy == ModeName.CRUISE:
            output += f"\nCruise Speed: {format_fixed(modes.cruise_speed, 3)} m/s"
        if state.in_gravity:
            world = state.world_speed
            output += (
                f"\n\n----- Velocity {RULE}"
                f"\nTotal: {format_fixed(state.speed, 3)} m/s"
                f"\n  F/B: {format_fixed(world.forward, 3)}"
                f"\n  R/L: {format_fixed(world.right, 3)}"
                f"\n  U/D: {format_fixed(world.up, 3)}"
                f"\n\n----- Orientation {RULE}"
                f"\nPitch: {format_fixed(state.attitude.pitch, 2)}°"
                f" | Roll: {format_fixed(state.attitude.roll, 2)}°"
                f"\nGravity: {state.gravity_strength:.2f} g"
            )
        return output

    def vector_page(self, state: MotionState, modes: FlightModes) -> str:
        return self.horizon(state, modes.brake_progress(state))

    def render(self, page: str, state: MotionState, modes: FlightModes) -> str:
        if page == "motion":
            return self.motion_page(state)
        if page == "hover":
            return self.hover_page(state, modes)
        if page == "vector":
            return self.vector_page(state, modes)
        raise ValueError(f"Unknown display page: '{page}'")


class DisplayPager:
    """
    Periodically writes the selected page to the text panel.

    A missing panel turns every call into a no-op.
    """

    def __init__(
        self,
        sink: DisplaySink | None,
        formatter: StatusFormatter | None = None,
        redraw_interval: int = 5,
    ):
        self.sink = sink
        self.formatter = formatter or StatusFormatter()
        self.redraw_interval = redraw_interval
        self.page_index = 0
        self._ticks = 0

    @property
    def page(self) -> str:
        return PAGES[self.page_index]

    def handle_command(self, args: list[str]) -> bool:
        """Handle "next"/"previous"; returns True if the page changed."""
        command = args[0] if args else ""
        if command == "next":
            self.page_index = (self.page_index + 1) % len(PAGES)
        elif command == "previous":
            self.page_index = (self.page_index - 1) % len(PAGES)
        else:
            logger.warning("Unrecognized display command '%s'", command)
            return False
        return True

    def tick(self, state: MotionState, modes: FlightModes) -> str | None:
        """
        Advance the redraw counter and redraw when due.

        Returns:
            The text written, or None if nothing was drawn.
        """
        if self.sink is None:
            return None

        self._ticks += 1
        if self._ticks % self.redraw_interval != 0:
            return None

        body = self.formatter.render(self.page, state, modes)
        self.sink.write_text(f"Flight Assist - Module [{self.page}]")
        self.sink.write_text("\n" + body, append=True)
        return body
