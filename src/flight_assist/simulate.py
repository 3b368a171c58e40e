#!/usr/bin/env python3
"""
Simulation Script for the Flight Assist Controller

Runs scripted scenarios against the simulated host:
- Build a SimulatedShip and wire FlightAssist through the host interfaces
- Issue the scenario's commands after a short warm-up
- Record telemetry every tick and compute ScenarioMetrics
- Save a JSON report, a text report and optional plots

Scenarios:
    hover     drifting in gravity, "hover toggle" must null the drift
    cruise    at rest in gravity, "hover cruise 10" must reach 10 m/s
    brake     weightless at 50 m/s, "vector brake" must stop the ship
    prograde  weightless, sliding sideways, "vector prograde" must turn
              the thrust axis onto the heading

Usage:
    flight-assist-sim --scenario brake
    python -m flight_assist.simulate --scenario hover --config configs/hover.yaml
"""

import argparse
import json
import logging
import math
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for server/headless

import matplotlib.pyplot as plt

from flight_assist.assist import FlightAssist, TickResult
from flight_assist.host.config import FlightAssistConfig
from flight_assist.host.simulated import SimulatedHost, SimulatedShip
from flight_assist.modes import ModeName
from flight_assist.utils import (
    Plotter,
    TelemetryLogger,
    compute_scenario_metrics,
    format_metrics_report,
    load_config,
)
from flight_assist.utils import vector_math as vm
from flight_assist.utils.metrics import ScenarioMetrics

logger = logging.getLogger(__name__)

WARMUP_TICKS = 2
GRAVITY = (0.0, -vm.STANDARD_GRAVITY, 0.0)
CRUISE_SPEED = 10.0  # m/s


@dataclass
class Scenario:
    """
    A scripted run.

    Attributes:
        name: Scenario name.
        description: One-line description.
        build_ship: Creates the initial SimulatedShip from a config.
        commands: Commands issued after the warm-up ticks.
        max_ticks: Tick budget.
        error: Scenario error of one tick (used for settling).
        tolerance: Settle tolerance on ``error``.
        done: Optional early-stop predicate.
        succeeded: Success predicate over (assist, ship, settle_tick).
    """

    name: str
    description: str
    build_ship: Callable[[FlightAssistConfig], SimulatedShip]
    commands: list[str] = field(default_factory=list)
    max_ticks: int = 3600
    error: Callable[[TickResult, FlightAssistConfig], float] = lambda result, config: 0.0
    tolerance: float = 0.5
    done: Callable[[TickResult], bool] | None = None
    succeeded: Callable[[FlightAssist, SimulatedShip, int | None], bool] = (
        lambda assist, ship, settle_tick: settle_tick is not None
    )


def _horizontal_drift(result: TickResult, config: FlightAssistConfig) -> float:
    world = result.state.world_speed
    return math.hypot(world.forward, world.right)


def _cruise_error(result: TickResult, config: FlightAssistConfig) -> float:
    return result.state.world_speed.forward - CRUISE_SPEED


def _speed(result: TickResult, config: FlightAssistConfig) -> float:
    return result.state.speed


def _prograde_error(result: TickResult, config: FlightAssistConfig) -> float:
    state = result.state
    if state.heading is None:
        return math.pi
    return vm.safe_acos(vm.dot(state.space_frame.forward, state.heading))


SCENARIOS = {
    "hover": Scenario(
        name="hover",
        description="Null a 5 m/s forward, 2 m/s lateral drift in gravity",
        build_ship=lambda config: SimulatedShip(
            config, velocity=(2.0, 0.0, -5.0), gravity=GRAVITY, main_thrust=True
        ),
        commands=["hover toggle"],
        max_ticks=3600,
        error=_horizontal_drift,
        tolerance=0.5,
        succeeded=lambda assist, ship, settle_tick: (
            settle_tick is not None and assist.modes.active == ModeName.HOVER
        ),
    ),
    "cruise": Scenario(
        name="cruise",
        description="Accelerate from rest to a 10 m/s cruise in gravity",
        build_ship=lambda config: SimulatedShip(config, gravity=GRAVITY, main_thrust=True),
        commands=[f"hover cruise {CRUISE_SPEED:g}", "hover toggle"],
        max_ticks=3600,
        error=_cruise_error,
        tolerance=1.0,
        succeeded=lambda assist, ship, settle_tick: (
            settle_tick is not None and assist.modes.active == ModeName.CRUISE
        ),
    ),
    "brake": Scenario(
        name="brake",
        description="Turn retrograde and stop from 50 m/s while weightless",
        build_ship=lambda config: SimulatedShip(config, velocity=(0.0, 0.0, -50.0)),
        commands=["vector brake"],
        max_ticks=3000,
        error=_speed,
        tolerance=0.3,
        done=lambda result: result.mode == ModeName.DISABLED,
        succeeded=lambda assist, ship, settle_tick: (
            not assist.modes.enabled
            and ship.speed < assist.config.brake.speed_threshold
        ),
    ),
    "prograde": Scenario(
        name="prograde",
        description="Turn the thrust axis onto a sideways heading while weightless",
        build_ship=lambda config: SimulatedShip(config, velocity=(20.0, 0.0, 0.0)),
        commands=["vector prograde"],
        max_ticks=1200,
        error=_prograde_error,
        tolerance=0.05,
    ),
}


def tick_record(result: TickResult, time: float, error: float | None = None) -> dict:
    """Flatten a TickResult into a telemetry record."""
    state = result.state
    requested = result.requested
    finite = requested.is_finite()
    return {
        "tick": state.tick,
        "time": time,
        "speed": state.speed,
        "mode": result.mode.value,
        "in_gravity": state.in_gravity,
        "pitch": state.attitude.pitch,
        "roll": state.attitude.roll,
        "world_forward": state.world_speed.forward,
        "world_right": state.world_speed.right,
        "local_forward": state.local_speed.forward,
        "rate_pitch": result.command.pitch,
        "rate_yaw": result.command.yaw,
        "rate_roll": result.command.roll,
        "rate_magnitude": requested.magnitude() if finite else math.nan,
        "finite": finite,
        "gyros_enabled": result.gyros_enabled,
        "dampeners": result.dampeners_engaged,
        "error": error,
    }


def run_scenario(
    scenario: Scenario,
    config: FlightAssistConfig | None = None,
    max_ticks: int | None = None,
    telemetry: TelemetryLogger | None = None,
) -> tuple[ScenarioMetrics, list[dict], FlightAssist, SimulatedHost]:
    """
    Run one scenario to completion.

    Args:
        scenario: Scenario to run.
        config: Flight assist configuration (defaults if None).
        max_ticks: Override of the scenario's tick budget.
        telemetry: Optional logger receiving every record.

    Returns:
        Tuple of (metrics, records, assist, host).
    """
    config = config or FlightAssistConfig()
    ship = scenario.build_ship(config)
    host = SimulatedHost(ship, config)
    assist = FlightAssist.from_host(host, config)
    budget = scenario.max_ticks if max_ticks is None else max_ticks

    logger.info("Running scenario '%s': %s", scenario.name, scenario.description)

    records = []

    def step() -> TickResult:
        result = assist.run()
        record = tick_record(result, ship.time, scenario.error(result, config))
        records.append(record)
        if telemetry is not None:
            telemetry.log(record)
        host.step()
        return result

    for _ in range(WARMUP_TICKS):
        step()
    for command in scenario.commands:
        logger.info("Command: %s", command)
        assist.run(command)

    for _ in range(budget):
        result = step()
        if scenario.done is not None and scenario.done(result):
            logger.info("Scenario '%s' finished at tick %d", scenario.name, result.state.tick)
            break

    metrics = compute_scenario_metrics(records, scenario.name, scenario.tolerance)
    metrics.success = bool(scenario.succeeded(assist, ship, metrics.settle_tick))
    return metrics, records, assist, host


def save_report(
    metrics: ScenarioMetrics,
    records: list[dict],
    output_dir: str | Path,
    config: FlightAssistConfig,
    plots: bool = True,
) -> dict[str, Path]:
    """
    Save the scenario report and optional plots.

    Returns:
        Dictionary of saved file paths.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_name = f"sim_{metrics.scenario}_{timestamp}"

    saved_files = {}

    metrics_path = output_dir / "metrics.json"
    with open(metrics_path, "w") as f:
        json.dump(
            {"metrics": metrics.to_dict(), "config": config.to_dict()}, f, indent=2
        )
    saved_files["metrics"] = metrics_path
    logger.info("Saved metrics: %s", metrics_path)

    report_path = output_dir / f"{run_name}_report.txt"
    with open(report_path, "w") as f:
        f.write(format_metrics_report(metrics))
    saved_files["report"] = report_path
    logger.info("Saved report: %s", report_path)

    if plots and records:
        plots_dir = output_dir / "plots"
        plots_dir.mkdir(exist_ok=True)
        plotter = Plotter()
        for kind, plot in (
            ("speed", plotter.plot_speed),
            ("attitude", plotter.plot_attitude),
            ("rates", plotter.plot_rates),
        ):
            path = plots_dir / f"{run_name}_{kind}.png"
            fig, _ = plot(records, save_path=path)
            plt.close(fig)
            saved_files[f"plot_{kind}"] = path
        logger.info("Saved plots: %s", plots_dir)

    return saved_files


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run flight assist scenarios against the simulated host"
    )
    parser.add_argument(
        "--scenario",
        type=str,
        default="hover",
        choices=sorted(SCENARIOS),
        help="Scenario to run",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML or JSON configuration file",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        help="Override the scenario's tick budget",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        help="Output directory for reports and plots (default: config logging.output_dir)",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip generating plots",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = FlightAssistConfig.from_dict(load_config(args.config))
    except (FileNotFoundError, PermissionError, ValueError) as e:
        logger.error("Failed to load configuration: %s", e)
        return 1

    output_dir = Path(args.output_dir or config.logging.output_dir)
    telemetry = None
    if config.logging.enabled:
        telemetry = TelemetryLogger(
            output_dir=output_dir,
            run_name=f"telemetry_{args.scenario}",
            log_interval=config.logging.log_interval,
        )

    metrics, records, _, _ = run_scenario(
        SCENARIOS[args.scenario], config, max_ticks=args.max_ticks, telemetry=telemetry
    )

    print("\n" + format_metrics_report(metrics))

    save_report(metrics, records, output_dir, config, plots=not args.no_plots)
    if telemetry is not None:
        path = telemetry.save()
        logger.info("Saved telemetry: %s", path)

    if metrics.success:
        logger.info("SUCCESS: scenario '%s' met its goal", metrics.scenario)
        return 0
    logger.warning(
        "FAILED: scenario '%s' did not meet its goal (final speed %.2f m/s, mode %s)",
        metrics.scenario,
        metrics.final_speed,
        metrics.final_mode,
    )
    return 1


if __name__ == "__main__":
    sys.exit(main())
