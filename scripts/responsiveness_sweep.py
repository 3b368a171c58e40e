#!/usr/bin/env python3
"""
Hover Responsiveness Sweep CLI Script

Grid search over hover ``responsiveness`` and gyro ``velocity_scale``
against one simulated scenario. Each combination is scored by its settle
tick (earlier is better); runs that never settle score the tick budget.

Usage Examples:
    # Default grid on the hover scenario
    python scripts/responsiveness_sweep.py

    # Custom grid on the cruise scenario
    python scripts/responsiveness_sweep.py --scenario cruise \\
        --responsiveness 8,16,32 --velocity-scale 0.5,0.75,1.0

    # Start from a config file
    python scripts/responsiveness_sweep.py --config configs/hover.yaml
"""

import argparse
import dataclasses
import itertools
import json
import logging
import sys
from pathlib import Path

# Add src to path for local development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from flight_assist.host.config import FlightAssistConfig
from flight_assist.simulate import SCENARIOS, run_scenario
from flight_assist.utils import load_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def parse_float_list(value: str) -> list[float]:
    """Parse comma-separated float list like '8,16,32'."""
    try:
        values = [float(part.strip()) for part in value.split(",") if part.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid list format: {value}. {e}")
    if not values:
        raise argparse.ArgumentTypeError("Expected at least one value")
    return values


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Sweep hover responsiveness and gyro velocity scale",
    )
    parser.add_argument(
        "--scenario",
        type=str,
        default="hover",
        choices=["hover", "cruise"],
        help="Scenario used to score each combination",
    )
    parser.add_argument(
        "--responsiveness",
        type=parse_float_list,
        default=[4.0, 8.0, 16.0, 32.0],
        help="Comma-separated responsiveness values",
    )
    parser.add_argument(
        "--velocity-scale",
        type=parse_float_list,
        default=[0.5, 0.75, 1.0],
        help="Comma-separated velocity scale values in [0, 1]",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=2400,
        help="Tick budget per run",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Base configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="reports/sweep",
        help="Output directory for sweep results",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser.parse_args()


def sweep(
    base: FlightAssistConfig,
    scenario_name: str,
    responsiveness_values: list[float],
    velocity_scales: list[float],
    max_ticks: int,
) -> list[dict]:
    """
    Run every combination and return result rows sorted best first.
    """
    scenario = SCENARIOS[scenario_name]
    results = []
    for responsiveness, velocity_scale in itertools.product(
        responsiveness_values, velocity_scales
    ):
        config = dataclasses.replace(
            base,
            hover=dataclasses.replace(base.hover, responsiveness=responsiveness),
            gyros=dataclasses.replace(base.gyros, velocity_scale=velocity_scale),
        )
        metrics, _, _, _ = run_scenario(scenario, config, max_ticks=max_ticks)
        score = metrics.settle_tick if metrics.settle_tick is not None else max_ticks
        logger.info(
            "responsiveness=%.2f velocity_scale=%.2f -> settle=%s max_rate=%.2f",
            responsiveness,
            velocity_scale,
            metrics.settle_tick,
            metrics.max_rate,
        )
        results.append(
            {
                "responsiveness": responsiveness,
                "velocity_scale": velocity_scale,
                "score": score,
                "metrics": metrics.to_dict(),
            }
        )
    results.sort(key=lambda row: row["score"])
    return results


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.quiet:
        logging.getLogger().setLevel(logging.WARNING)

    try:
        base = FlightAssistConfig.from_dict(load_config(args.config))
    except (FileNotFoundError, ValueError) as e:
        logger.error("Failed to load config: %s", e)
        return 1

    try:
        results = sweep(
            base,
            args.scenario,
            args.responsiveness,
            args.velocity_scale,
            args.max_ticks,
        )
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    results_path = output_dir / f"sweep_{args.scenario}.json"
    with open(results_path, "w") as f:
        json.dump(results, f, indent=2)

    best = results[0]
    if not args.quiet:
        print("\n" + "=" * 60)
        print("RESPONSIVENESS SWEEP COMPLETE")
        print("=" * 60)
        print(f"Scenario: {args.scenario}")
        print(f"Combinations: {len(results)}")
        print(f"\nBest responsiveness: {best['responsiveness']:.2f}")
        print(f"Best velocity scale: {best['velocity_scale']:.2f}")
        print(f"Settle tick: {best['metrics']['settle_tick']}")
        print(f"\nResults saved to: {results_path}")
        print("=" * 60)

    return 0 if best["metrics"]["settle_tick"] is not None else 1


if __name__ == "__main__":
    sys.exit(main())
