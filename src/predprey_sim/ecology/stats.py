from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional
import math

from predprey_sim.ecology.config import SimulationSettings
from predprey_sim.ecology.entities import GRASS, PREDATOR, PREY
from predprey_sim.ecology.population import Population


@dataclass(frozen=True)
class SimulationStats:
    prey: int = 0
    predators: int = 0
    grass_coverage: int = 0  # percent of cells holding active grass
    predator_kills: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def compute_stats(
    population: Population,
    settings: SimulationSettings,
    previous: Optional[SimulationStats] = None,
) -> SimulationStats:
    """
    Counts for the current generation. Kills accumulate the drop in prey count
    since `previous`, so births in the same tick can hide kills.
    """
    prey = population.count(PREY)
    predators = population.count(PREDATOR)
    active_grass = sum(1 for grass in population.of_kind(GRASS) if grass.energy > 0)
    kills = 0
    if previous is not None:
        kills = previous.predator_kills + max(previous.prey - prey, 0)
    return SimulationStats(
        prey=prey,
        predators=predators,
        grass_coverage=math.floor(active_grass / settings.cell_count * 100 + 0.5),
        predator_kills=kills,
    )
