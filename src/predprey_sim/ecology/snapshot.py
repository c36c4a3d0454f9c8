"""
Snapshot records: {entities, settings, stats, timestamp}.

Only plain values (dict, list, str, int, float, bool, None) go into a record,
so it can be handed to json or any key/value store unchanged. Where the record
ends up is the caller's business.
"""
from __future__ import annotations

from typing import Dict, NamedTuple, Optional
import logging
import time

from predprey_sim.ecology.config import SimulationSettings, settings_from_dict, settings_to_dict
from predprey_sim.ecology.population import Population
from predprey_sim.ecology.stats import SimulationStats


logger = logging.getLogger(__name__)

STATS_KEYS = ("prey", "predators", "grass_coverage", "predator_kills")


class SnapshotError(ValueError):
    """Raised when a record does not describe a simulation state."""


class Snapshot(NamedTuple):
    population: Population
    settings: SimulationSettings
    stats: SimulationStats
    timestamp: float


def make_snapshot(
    population: Population,
    settings: SimulationSettings,
    stats: SimulationStats,
    timestamp: Optional[float] = None,
) -> Dict[str, object]:
    return {
        "entities": population.to_records(),
        "generations": population.generation_table(),
        "settings": settings_to_dict(settings),
        "stats": stats.to_dict(),
        "timestamp": time.time() if timestamp is None else timestamp,
    }


def validate_snapshot(record: object) -> None:
    if not isinstance(record, dict):
        raise SnapshotError("Snapshot must be a mapping")
    if not isinstance(record.get("entities"), list):
        raise SnapshotError("Snapshot 'entities' must be a list")
    if not isinstance(record.get("timestamp"), (int, float)) or isinstance(record.get("timestamp"), bool):
        raise SnapshotError("Snapshot 'timestamp' must be a number")
    if not isinstance(record.get("settings"), dict):
        raise SnapshotError("Snapshot 'settings' must be a mapping")
    stats = record.get("stats")
    if not isinstance(stats, dict):
        raise SnapshotError("Snapshot 'stats' must be a mapping")
    for key in STATS_KEYS:
        if not isinstance(stats.get(key), (int, float)):
            raise SnapshotError(f"Snapshot stats.{key} must be a number")


def restore_snapshot(record: Dict[str, object]) -> Snapshot:
    validate_snapshot(record)
    try:
        population = Population.from_records(record["entities"], record.get("generations"))
    except (TypeError, ValueError, KeyError) as exc:
        raise SnapshotError(f"Invalid entity records: {exc}") from exc
    settings = settings_from_dict(record["settings"])
    stats = SimulationStats(**{key: int(record["stats"][key]) for key in STATS_KEYS})
    logger.debug("Restored snapshot with %d entities", len(population))
    return Snapshot(population, settings, stats, float(record["timestamp"]))
