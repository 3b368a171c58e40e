"""
Scenario Metrics for Flight Assist Runs

Computes summary metrics from per-tick telemetry records of a simulated
run:
- Ticks run and simulated duration
- Final speed and final flight mode
- Peak and mean commanded gyro rate
- Count of non-finite rate commands produced by the control law
- Settle tick: first tick after which the scenario error stays in tolerance

Design Philosophy:
- Stateless functions over lists of plain dict records
- The scenario decides what "error" means; records carry it as ``error``
"""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class ScenarioMetrics:
    """
    Computed metrics for a single scenario run.

    Attributes:
        scenario: Scenario name.
        ticks_run: Number of passive ticks.
        duration: Simulated time in seconds.
        final_speed: Speed on the last tick (m/s).
        final_mode: Active flight mode on the last tick.
        max_rate: Largest commanded rate magnitude (RPM).
        mean_rate: Mean commanded rate magnitude (RPM).
        non_finite_commands: Ticks where the control law produced NaN/Inf.
        settle_tick: First tick from which ``error`` stays within
            tolerance, or None if it never settles.
        success: Whether the scenario's success condition held.
    """

    scenario: str = ""
    ticks_run: int = 0
    duration: float = 0.0
    final_speed: float = 0.0
    final_mode: str = "disabled"
    max_rate: float = 0.0
    mean_rate: float = 0.0
    non_finite_commands: int = 0
    settle_tick: int | None = None
    success: bool = False

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        return {
            "scenario": self.scenario,
            "ticks_run": self.ticks_run,
            "duration": self.duration,
            "final_speed": self.final_speed,
            "final_mode": self.final_mode,
            "max_rate": self.max_rate,
            "mean_rate": self.mean_rate,
            "non_finite_commands": self.non_finite_commands,
            "settle_tick": self.settle_tick,
            "success": self.success,
        }


def find_settle_tick(errors: np.ndarray, ticks: np.ndarray, tolerance: float) -> int | None:
    """
    Find the first tick after which every error stays within tolerance.

    Args:
        errors: Error per record (NaN counts as out of tolerance).
        ticks: Tick number per record.
        tolerance: Allowed absolute error.

    Returns:
        Tick number, or None if the last record is out of tolerance.
    """
    if len(errors) == 0:
        return None
    outside = ~(np.abs(errors) <= tolerance)
    if outside[-1]:
        return None
    if not outside.any():
        return int(ticks[0])
    last_outside = int(np.flatnonzero(outside)[-1])
    return int(ticks[last_outside + 1])


def compute_scenario_metrics(
    records: list[dict],
    scenario: str = "",
    tolerance: float = 0.5,
    success: bool = False,
) -> ScenarioMetrics:
    """
    Compute all metrics for a single run.

    Args:
        records: Per-tick dictionaries with keys ``tick``, ``time``,
            ``speed``, ``mode``, ``rate_magnitude``, ``finite`` and
            optionally ``error``.
        scenario: Scenario name.
        tolerance: Settle tolerance applied to ``error``.
        success: Outcome decided by the scenario.

    Returns:
        ScenarioMetrics with computed values.
    """
    if not records:
        return ScenarioMetrics(scenario=scenario, success=False)

    ticks = np.array([r["tick"] for r in records], dtype=int)
    rates = np.array([r.get("rate_magnitude", 0.0) for r in records], dtype=float)
    finite = np.array([bool(r.get("finite", True)) for r in records])
    errors = np.array([r.get("error", np.nan) for r in records], dtype=float)

    finite_rates = rates[np.isfinite(rates)]
    last = records[-1]

    return ScenarioMetrics(
        scenario=scenario,
        ticks_run=len(records),
        duration=float(last.get("time", 0.0)),
        final_speed=float(last.get("speed", 0.0)),
        final_mode=str(last.get("mode", "disabled")),
        max_rate=float(np.max(finite_rates)) if len(finite_rates) else 0.0,
        mean_rate=float(np.mean(finite_rates)) if len(finite_rates) else 0.0,
        non_finite_commands=int(np.sum(~finite)),
        settle_tick=find_settle_tick(errors, ticks, tolerance),
        success=success,
    )


def format_metrics_report(metrics: ScenarioMetrics) -> str:
    """
    Format scenario metrics as a human-readable report.

    Args:
        metrics: ScenarioMetrics to format.

    Returns:
        Multi-line report string.
    """
    settle = "never" if metrics.settle_tick is None else f"tick {metrics.settle_tick}"
    lines = [
        "=" * 60,
        f"FLIGHT ASSIST SCENARIO: {metrics.scenario or 'unnamed'}",
        "=" * 60,
        "",
        f"Ticks Run: {metrics.ticks_run} ({metrics.duration:.2f} s)",
        f"Final Speed: {metrics.final_speed:.3f} m/s",
        f"Final Mode: {metrics.final_mode}",
        f"Max Rate Command: {metrics.max_rate:.3f} RPM",
        f"Mean Rate Command: {metrics.mean_rate:.3f} RPM",
        f"Non-finite Commands: {metrics.non_finite_commands}",
        f"Settled: {settle}",
        "",
        f"Result: {'PASS' if metrics.success else 'FAIL'}",
        "=" * 60,
    ]
    return "\n".join(lines)
