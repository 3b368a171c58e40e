"""
Simulated Host

A minimal rigid-body ship implementing the host interfaces, used by the
tests and the ``flight-assist-sim`` CLI.

Ship Model:
    Position:   world meters
    Velocity:   world m/s
    Rotation:   grid local-to-world matrix, columns (right, up, backward)
    Gravity:    world acceleration vector (m/s^2, pointing down) or None

Per tick (dt = 1 / tick_rate_hz seconds):
    - Gyros with override enabled set the angular velocity: the mean of
      their grid-frame rates, converted from RPM to rad/s. With no override
      the ship does not rotate.
    - Main thrust (optional) pushes along the gravity thrust axis with the
      magnitude that cancels the vertical component of gravity, so leaning
      produces horizontal acceleration ``g * tan(lean)``.
    - Engaged dampeners decelerate the velocity at a fixed rate.
    - Semi-implicit Euler integration.
"""

import logging
import math

import numpy as np

from ..utils import vector_math as vm
from .config import FlightAssistConfig, ThrustOrientation
from .interfaces import ActuatorHandle, DisplaySink, Host, SensorHandle

logger = logging.getLogger(__name__)

RPM_TO_RAD_S = 2.0 * math.pi / 60.0

# Lean beyond which main thrust stops compensating (avoids unbounded thrust)
MAX_COMPENSATED_LEAN = math.radians(80.0)


class SimulatedGyro(ActuatorHandle):
    """
    Gyro block with override and per-axis rates in RPM.

    Attributes:
        orientation: Gyro local-to-grid rotation.
        max_rate: Per-axis rate limit (RPM).
        rates: Last written rate per axis, clipped to ``max_rate``.
        override: Whether override is enabled.
    """

    def __init__(self, orientation=None, max_rate: float = 30.0):
        self.orientation = vm.IDENTITY.copy() if orientation is None else vm.as_matrix(orientation)
        self.max_rate = max_rate
        self.rates = {"pitch": 0.0, "yaw": 0.0, "roll": 0.0}
        self.override = False
        self.writes = 0

    def set_axis_rate(self, axis: str, rate: float) -> None:
        if axis not in self.rates:
            raise ValueError(f"Unknown gyro axis '{axis}'")
        self.rates[axis] = float(np.clip(rate, -self.max_rate, self.max_rate))
        self.writes += 1

    def set_override_enabled(self, enabled: bool) -> None:
        self.override = bool(enabled)

    def get_max_rate(self, axis: str) -> float:
        return self.max_rate

    def get_local_orientation(self) -> np.ndarray:
        return self.orientation.copy()

    def grid_rate(self) -> np.ndarray:
        """Commanded angular velocity in the grid frame (RPM)."""
        local = np.array(
            [self.rates["pitch"], -self.rates["yaw"], -self.rates["roll"]]
        )
        return vm.transform(local, self.orientation)


class SimulatedShip:
    """
    Rigid-body ship state and integrator.

    Attributes:
        position: World position (m).
        velocity: World velocity (m/s).
        rotation: Grid local-to-world rotation.
        gravity: World gravity acceleration, or None when weightless.
        dampeners: Whether inertial dampeners are engaged.
        main_thrust: Whether the gravity thrust axis holds altitude.
        gyros: Attached gyros.
    """

    def __init__(
        self,
        config: FlightAssistConfig | None = None,
        position=None,
        velocity=None,
        rotation=None,
        gravity=None,
        dampeners: bool = False,
        main_thrust: bool = False,
        dampener_decel: float = 5.0,
    ):
        self.config = config or FlightAssistConfig()
        self.position = np.zeros(3) if position is None else vm.as_vector(position).copy()
        self.velocity = np.zeros(3) if velocity is None else vm.as_vector(velocity).copy()
        self.rotation = vm.IDENTITY.copy() if rotation is None else vm.as_matrix(rotation).copy()
        self.gravity = None if gravity is None else vm.as_vector(gravity).copy()
        self.dampeners = dampeners
        self.main_thrust = main_thrust
        self.dampener_decel = dampener_decel
        self.gyros: list[SimulatedGyro] = []
        self.angular_velocity = np.zeros(3)
        self.time = 0.0
        self.step_count = 0

    @property
    def dt(self) -> float:
        return 1.0 / self.config.simulation.tick_rate_hz

    @property
    def speed(self) -> float:
        return vm.length(self.velocity)

    def add_gyro(self, orientation=None, max_rate: float = 30.0) -> SimulatedGyro:
        gyro = SimulatedGyro(orientation, max_rate)
        self.gyros.append(gyro)
        return gyro

    def thrust_axis(self) -> np.ndarray:
        """World direction of the gravity main thrust."""
        if self.config.hover.gravity_main_thrust == ThrustOrientation.REAR:
            local = vm.LOCAL_FORWARD
        else:
            local = vm.LOCAL_UP
        return vm.transform(local, self.rotation)

    def step(self) -> None:
        """Advance the ship by one tick."""
        dt = self.dt

        active = [gyro for gyro in self.gyros if gyro.override]
        if active:
            grid_rate = np.mean([gyro.grid_rate() for gyro in active], axis=0)
            self.angular_velocity = vm.transform(grid_rate * RPM_TO_RAD_S, self.rotation)
        else:
            self.angular_velocity = np.zeros(3)

        rate = vm.length(self.angular_velocity)
        if rate > vm.ZERO_MAGNITUDE_THRESHOLD:
            turn = vm.rotation_matrix(self.angular_velocity / rate, rate * dt)
            self.rotation = vm.orthonormalize(turn @ self.rotation)

        acceleration = np.zeros(3)
        if self.gravity is not None:
            acceleration += self.gravity
            if self.main_thrust:
                acceleration += self._hover_thrust()

        self.velocity = self.velocity + acceleration * dt
        if self.dampeners:
            speed = self.speed
            if speed > 0.0:
                shed = min(speed, self.dampener_decel * dt)
                self.velocity = self.velocity * ((speed - shed) / speed)

        self.position = self.position + self.velocity * dt
        self.time += dt
        self.step_count += 1

    def _hover_thrust(self) -> np.ndarray:
        g = vm.length(self.gravity)
        up = -self.gravity / g
        axis = self.thrust_axis()
        cos_lean = vm.dot(axis, up)
        if cos_lean < math.cos(MAX_COMPENSATED_LEAN):
            return axis * g
        return axis * (g / cos_lean)


class SimulatedSensor(SensorHandle):
    """Remote control block rigidly mounted on a SimulatedShip."""

    def __init__(self, ship: SimulatedShip, build_orientation=None):
        self.ship = ship
        self.build_orientation = (
            vm.IDENTITY.copy() if build_orientation is None else vm.as_matrix(build_orientation)
        )

    def get_position(self) -> np.ndarray:
        return self.ship.position.copy()

    def get_world_orientation(self) -> np.ndarray:
        return self.ship.rotation @ self.build_orientation

    def get_build_orientation(self) -> np.ndarray:
        return self.build_orientation.copy()

    def get_gravity_vector(self) -> np.ndarray | None:
        if self.ship.gravity is None:
            return None
        return self.ship.gravity.copy()

    def get_dampeners_engaged(self) -> bool:
        return self.ship.dampeners

    def toggle_dampeners(self) -> None:
        self.ship.dampeners = not self.ship.dampeners


class SimulatedDisplay(DisplaySink):
    """Text panel that keeps its current text and every completed frame."""

    def __init__(self):
        self.text = ""
        self.frames: list[str] = []

    def write_text(self, text: str, append: bool = False) -> None:
        if append:
            self.text += text
            self.frames[-1] = self.text
        else:
            self.text = text
            self.frames.append(self.text)


class SimulatedHost(Host):
    """
    Block inventory of a simulated ship.

    Args:
        ship: The simulated ship.
        config: Provides the configured block names.
        gyro_count: Gyros to attach if the ship has none yet.
        with_display: Attach a SimulatedDisplay under the configured name.
    """

    def __init__(
        self,
        ship: SimulatedShip,
        config: FlightAssistConfig | None = None,
        gyro_count: int | None = None,
        with_display: bool = True,
        build_orientation=None,
    ):
        self.ship = ship
        self.config = config or ship.config
        if not ship.gyros:
            for _ in range(gyro_count or self.config.gyros.count):
                ship.add_gyro()
        self.sensor = SimulatedSensor(ship, build_orientation)
        self.display = SimulatedDisplay() if with_display else None

    def get_sensor(self, name: str) -> SensorHandle | None:
        if name == self.config.blocks.remote_control_name:
            return self.sensor
        return None

    def get_actuator_handles(self, count: int) -> list[ActuatorHandle]:
        return list(self.ship.gyros[:count])

    def get_display(self, name: str) -> DisplaySink | None:
        if self.display is not None and name == self.config.blocks.text_panel_name:
            return self.display
        return None

    def step(self) -> None:
        self.ship.step()
