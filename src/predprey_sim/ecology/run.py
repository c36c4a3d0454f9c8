#!/usr/bin/env python3
"""
Headless driver for the predator/prey/grass engine.

Owns the tick loop: initialize once, then feed every step's population back
into the next step. Keeps a bounded event log and per-tick population history.

Run:
  python -m predprey_sim.ecology.run --steps 500 --seed 1
"""
from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, NamedTuple, Optional
import argparse
import json
import logging
import random

import numpy as np

from predprey_sim.ecology.config import SimulationSettings, build_settings, derive_realistic_settings
from predprey_sim.ecology.initializer import initialize_population
from predprey_sim.ecology.population import Population
from predprey_sim.ecology.snapshot import make_snapshot
from predprey_sim.ecology.stats import SimulationStats, compute_stats
from predprey_sim.ecology.stepper import step


logger = logging.getLogger(__name__)

# Edit these for quick runs without CLI arguments.
RUN_SETTINGS = {
    "steps": 500,
    "log_every": 10,
    "seed": 1,
    "realistic": True,
    "max_log_size": 100,
}

# Optional settings overrides (leave empty to use SimulationSettings defaults).
SETTINGS_OVERRIDES: Dict[str, object] = {
    # "grid_size": 40,
    # "initial_prey": 30,
}

HISTORY_KEYS = ("tick", "prey", "predators", "grass_coverage", "births", "deaths", "predator_kills")


class RunResult(NamedTuple):
    population: Population
    history: Dict[str, List[float]]
    log: List[str]
    stats: SimulationStats


def _count_events(events: List[str]) -> Dict[str, int]:
    births = sum(1 for event in events if event.startswith("New ") and " born at " in event)
    deaths = sum(1 for event in events if " died at " in event)
    return {"births": births, "deaths": deaths}


def run_simulation(
    steps: int = 200,
    seed: Optional[int] = 1,
    settings: Optional[SimulationSettings] = None,
    log_every: int = 10,
    max_log_size: int = 100,
    population: Optional[Population] = None,
    stats: Optional[SimulationStats] = None,
) -> RunResult:
    """
    Run `steps` ticks. Pass `population` (and `stats`) to continue from a
    restored snapshot instead of a fresh initialization.
    """
    cfg = settings or SimulationSettings()
    rng = random.Random(seed)
    if population is None:
        population = initialize_population(cfg, rng)
    stats = compute_stats(population, cfg, stats)
    history: Dict[str, List[float]] = {key: [] for key in HISTORY_KEYS}
    log: Deque[str] = deque(maxlen=max_log_size)
    extinct = False

    for tick in range(1, steps + 1):
        population, events = step(population, cfg, rng)
        stats = compute_stats(population, cfg, stats)
        log.extend(events)
        counts = _count_events(events)

        history["tick"].append(tick)
        history["prey"].append(stats.prey)
        history["predators"].append(stats.predators)
        history["grass_coverage"].append(stats.grass_coverage)
        history["births"].append(counts["births"])
        history["deaths"].append(counts["deaths"])
        history["predator_kills"].append(stats.predator_kills)

        if log_every > 0 and (tick % log_every == 0 or tick == steps):
            print(
                f"t={tick:04d} prey={stats.prey:3d} pred={stats.predators:3d} "
                f"grass={stats.grass_coverage:3d}% births={counts['births']:2d} deaths={counts['deaths']:2d}"
            )
        if not extinct and stats.prey == 0 and stats.predators == 0:
            extinct = True
            logger.info("All animals extinct at tick %d", tick)
    return RunResult(population, history, list(log), stats)


def summarize_history(history: Dict[str, List[float]]) -> Dict[str, Dict[str, float]]:
    summary: Dict[str, Dict[str, float]] = {}
    for key in ("prey", "predators", "grass_coverage"):
        values = np.asarray(history.get(key, []), dtype=np.float64)
        if values.size == 0:
            summary[key] = {"mean": 0.0, "min": 0.0, "max": 0.0, "final": 0.0}
            continue
        summary[key] = {
            "mean": float(values.mean()),
            "min": float(values.min()),
            "max": float(values.max()),
            "final": float(values[-1]),
        }
    return summary


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the predator/prey/grass tick engine headless.")
    parser.add_argument("--steps", type=int, default=RUN_SETTINGS["steps"])
    parser.add_argument("--seed", type=int, default=RUN_SETTINGS["seed"])
    parser.add_argument("--config", type=str, default=None, help="JSON file with SimulationSettings fields")
    parser.add_argument(
        "--realistic",
        action=argparse.BooleanOptionalAction,
        default=RUN_SETTINGS["realistic"],
        help="Apply the tuned realistic ecology constants before initializing",
    )
    parser.add_argument("--log-every", type=int, default=RUN_SETTINGS["log_every"])
    parser.add_argument("--max-log-size", type=int, default=RUN_SETTINGS["max_log_size"])
    parser.add_argument("--snapshot-out", type=str, default=None, help="Write the final snapshot record as JSON")
    parser.add_argument("--log-level", type=str, default="WARNING")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    cfg = build_settings(SETTINGS_OVERRIDES, path=args.config)
    if args.realistic:
        cfg = derive_realistic_settings(cfg)

    result = run_simulation(
        steps=args.steps,
        seed=args.seed,
        settings=cfg,
        log_every=args.log_every,
        max_log_size=args.max_log_size,
    )
    for key, values in summarize_history(result.history).items():
        print(f"{key:>15}: mean={values['mean']:.1f} min={values['min']:.0f} max={values['max']:.0f}")
    print(f"predator kills: {result.stats.predator_kills}")

    if args.snapshot_out:
        record = make_snapshot(result.population, cfg, result.stats)
        with open(Path(args.snapshot_out), "w", encoding="utf-8") as f:
            json.dump(record, f)
        logger.info("Snapshot written to %s", args.snapshot_out)


if __name__ == "__main__":
    main()
