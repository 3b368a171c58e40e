"""
Flight Assist Utilities Package

Shared utilities for the flight assist project:
- Configuration loading (YAML/JSON with environment variable overrides)
- Telemetry logging of simulated runs
- Plotting of speed, attitude and gyro rates
- Vector math helpers (``vector_math``)
- Scenario metrics (``metrics``)

Design Philosophy:
- Utilities are stateless where possible
- Configuration supports both file-based and environment variable sources
- Telemetry captures enough data for post-hoc analysis of a run
"""

import datetime
import json
import logging
import os
from pathlib import Path

import numpy as np
import yaml
from dotenv import load_dotenv

from .metrics import ScenarioMetrics, compute_scenario_metrics, format_metrics_report

__all__ = [
    "load_config",
    "get_default_config",
    "TelemetryLogger",
    "Plotter",
    # Metrics
    "ScenarioMetrics",
    "compute_scenario_metrics",
    "format_metrics_report",
]

logger = logging.getLogger(__name__)

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    "FLIGHT_ASSIST_GYRO_COUNT": ("gyros", "count", int),
    "FLIGHT_ASSIST_VELOCITY_SCALE": ("gyros", "velocity_scale", float),
    "FLIGHT_ASSIST_RESPONSIVENESS": ("hover", "responsiveness", float),
    "FLIGHT_ASSIST_MAX_PITCH": ("hover", "max_pitch", float),
    "FLIGHT_ASSIST_MAX_ROLL": ("hover", "max_roll", float),
    "FLIGHT_ASSIST_GRAVITY_MAIN_THRUST": ("hover", "gravity_main_thrust", str),
    "FLIGHT_ASSIST_SPACE_MAIN_THRUST": ("brake", "space_main_thrust", str),
    "FLIGHT_ASSIST_REDRAW_INTERVAL": ("display", "redraw_interval", int),
    "FLIGHT_ASSIST_TICK_RATE_HZ": ("simulation", "tick_rate_hz", float),
}


def get_default_config() -> dict:
    """
    Get default configuration values.

    Mirrors the defaults of ``FlightAssistConfig``; used as the base layer
    when loading configuration files.

    Returns:
        Dictionary with default configuration values.
    """
    return {
        "blocks": {
            "remote_control_name": "FA Remote",
            "text_panel_name": "FA Screen",
        },
        "gyros": {
            "count": 1,
            "min_rate": 0.015,
            "velocity_scale": 1.0,
            "control_law": "axis_angle",
        },
        "hover": {
            "responsiveness": 16.0,
            "max_pitch": 45.0,  # degrees
            "max_roll": 45.0,  # degrees
            "always_enabled_in_gravity": False,
            "gravity_main_thrust": "bottom",
        },
        "brake": {
            "speed_threshold": 0.3,  # m/s
            "angle_tolerance": 0.03,  # radians
            "space_main_thrust": "rear",
        },
        "display": {
            "redraw_interval": 5,  # ticks
            "height": 13,
            "width": 27,
        },
        "simulation": {
            "tick_rate_hz": 60.0,
        },
        "logging": {
            "enabled": True,
            "log_interval": 10,  # ticks between telemetry entries
            "output_dir": "reports",
        },
    }


def load_config(
    config_path: str | Path | None = None,
    load_env: bool = True,
) -> dict:
    """
    Load configuration from file with environment variable overrides.

    Configuration loading follows this priority (highest to lowest):
    1. Environment variables (from .env file or system)
    2. Config file (YAML or JSON)
    3. Default values

    Environment variables (see ``ENV_OVERRIDES``):
    - FLIGHT_ASSIST_GYRO_COUNT -> config["gyros"]["count"]
    - FLIGHT_ASSIST_VELOCITY_SCALE -> config["gyros"]["velocity_scale"]
    - FLIGHT_ASSIST_RESPONSIVENESS -> config["hover"]["responsiveness"]
    - FLIGHT_ASSIST_MAX_PITCH -> config["hover"]["max_pitch"]
    - FLIGHT_ASSIST_MAX_ROLL -> config["hover"]["max_roll"]
    - FLIGHT_ASSIST_GRAVITY_MAIN_THRUST -> config["hover"]["gravity_main_thrust"]
    - FLIGHT_ASSIST_SPACE_MAIN_THRUST -> config["brake"]["space_main_thrust"]
    - FLIGHT_ASSIST_REDRAW_INTERVAL -> config["display"]["redraw_interval"]
    - FLIGHT_ASSIST_TICK_RATE_HZ -> config["simulation"]["tick_rate_hz"]

    Args:
        config_path: Path to YAML or JSON configuration file.
                    If None, only defaults and env vars are used.
        load_env: Whether to load .env file and apply env var overrides.

    Returns:
        Merged configuration dictionary (pass to FlightAssistConfig.from_dict).

    Raises:
        FileNotFoundError: If config_path is specified but file doesn't exist.
        PermissionError: If config file cannot be read.
        ValueError: If config file format is unsupported or malformed.
    """
    config = get_default_config()

    if config_path is not None:
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if not config_path.is_file():
            raise ValueError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path) as f:
                if config_path.suffix in (".yaml", ".yml"):
                    file_config = yaml.safe_load(f)
                elif config_path.suffix == ".json":
                    file_config = json.load(f)
                else:
                    raise ValueError(f"Unsupported config format: {config_path.suffix}")
        except PermissionError as e:
            raise PermissionError(
                f"Cannot read configuration file: {config_path}"
            ) from e
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Malformed configuration file: {config_path}") from e

        if file_config:
            if not isinstance(file_config, dict):
                raise ValueError(f"Malformed configuration file: {config_path}")
            config = _deep_merge(config, file_config)

    if load_env:
        load_dotenv()
        config = _apply_env_overrides(config)

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary (values take precedence).

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _json_serializer(obj):
    """
    Custom JSON serializer for objects not serializable by default json.dump.

    Handles:
    - numpy arrays -> lists
    - numpy scalars -> Python numbers
    - datetime objects -> ISO format strings
    - Path objects -> strings

    Raises:
        TypeError: If object type is not supported.
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError("Object is not JSON serializable")


def _apply_env_overrides(config: dict) -> dict:
    """
    Apply environment variable overrides to configuration.

    Invalid values are logged and leave the previous value in place.
    """
    for env_var, (section, key, type_fn) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is None:
            continue
        try:
            config.setdefault(section, {})[key] = type_fn(value)
        except ValueError:
            logger.warning(
                "Invalid value for %s: '%s', using default", env_var, value
            )
    return config


class TelemetryLogger:
    """
    Telemetry logging for simulated runs.

    Records one entry every ``log_interval`` ticks for post-run analysis.

    Attributes:
        output_dir (Path): Directory for log files.
        run_name (str): Name of the current run.
        log_interval (int): Ticks between log entries.
    """

    def __init__(
        self,
        output_dir: str | Path = "reports",
        run_name: str | None = None,
        log_interval: int = 10,
    ):
        self.output_dir = Path(output_dir)
        self.run_name = run_name or f"run_{id(self)}"
        self.log_interval = max(1, int(log_interval))
        self.data = []
        self._tick_count = 0

    def log(self, record: dict) -> None:
        """
        Log a single tick's telemetry record.

        Args:
            record: Flat dictionary of tick values (see simulate.tick_record).
        """
        self._tick_count += 1
        if self._tick_count % self.log_interval == 0:
            self.data.append(dict(record))

    def save(self) -> Path:
        """
        Save logged data to file.

        Returns:
            Path to saved log file.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        log_path = self.output_dir / f"{self.run_name}.json"
        with open(log_path, "w") as f:
            json.dump(self.data, f, indent=2, default=_json_serializer)
        return log_path

    def reset(self) -> None:
        """Reset logger state for a new run."""
        self.data = []
        self._tick_count = 0


class Plotter:
    """
    Plotting utility for simulated runs.

    Each plot takes a list of telemetry records and returns ``(fig, ax)``.

    Attributes:
        figsize (tuple): Default figure size.
        style (str): Matplotlib style to use.
    """

    def __init__(self, figsize: tuple[int, int] = (10, 6), style: str = "default"):
        self.figsize = figsize
        self.style = style

    @staticmethod
    def _series(records: list[dict], key: str) -> np.ndarray:
        return np.array([r.get(key, np.nan) for r in records], dtype=float)

    def _save(self, fig, save_path: str | Path | None) -> None:
        if save_path:
            fig.savefig(save_path)

    def plot_speed(self, records: list[dict], save_path: str | Path | None = None):
        """Plot total, world forward and world lateral speed over time."""
        import matplotlib.pyplot as plt

        times = self._series(records, "time")
        with plt.style.context(self.style):
            fig, ax = plt.subplots(figsize=self.figsize)
            ax.plot(times, self._series(records, "speed"), label="total")
            ax.plot(times, self._series(records, "world_forward"), label="world forward")
            ax.plot(times, self._series(records, "world_right"), label="world right")
            ax.set_xlabel("Time (s)")
            ax.set_ylabel("Speed (m/s)")
            ax.set_title("Speed Over Time")
            ax.legend()
            ax.grid(True)

        self._save(fig, save_path)
        return fig, ax

    def plot_attitude(self, records: list[dict], save_path: str | Path | None = None):
        """Plot pitch and roll over time."""
        import matplotlib.pyplot as plt

        times = self._series(records, "time")
        with plt.style.context(self.style):
            fig, ax = plt.subplots(figsize=self.figsize)
            ax.plot(times, self._series(records, "pitch"), label="pitch")
            ax.plot(times, self._series(records, "roll"), label="roll")
            ax.set_xlabel("Time (s)")
            ax.set_ylabel("Angle (deg)")
            ax.set_title("Attitude Over Time")
            ax.legend()
            ax.grid(True)

        self._save(fig, save_path)
        return fig, ax

    def plot_rates(self, records: list[dict], save_path: str | Path | None = None):
        """Plot commanded gyro rates (ship frame) over time."""
        import matplotlib.pyplot as plt

        times = self._series(records, "time")
        with plt.style.context(self.style):
            fig, ax = plt.subplots(figsize=self.figsize)
            for axis in ("pitch", "yaw", "roll"):
                ax.plot(times, self._series(records, f"rate_{axis}"), label=axis)
            ax.set_xlabel("Time (s)")
            ax.set_ylabel("Rate (RPM)")
            ax.set_title("Gyro Rate Commands")
            ax.legend()
            ax.grid(True)

        self._save(fig, save_path)
        return fig, ax
