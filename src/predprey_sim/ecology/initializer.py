from __future__ import annotations

from typing import Optional, Set, Tuple
import random

from predprey_sim.ecology.config import PlacementError, SimulationSettings
from predprey_sim.ecology.entities import (
    PREDATOR_RULES,
    PREY_NUTRITION,
    PREY_RULES,
    Grass,
    Predator,
    Prey,
)
from predprey_sim.ecology.population import Population


Vec2 = Tuple[int, int]


def random_nutrition(rng: random.Random) -> int:
    return rng.randint(1, 3)


def random_free_cell(occupied: Set[Vec2], grid_size: int, rng: random.Random) -> Vec2:
    """Rejection-sample a uniformly random cell that is not in `occupied`."""
    if len(occupied) >= grid_size * grid_size:
        raise PlacementError(f"No free cell left on the {grid_size}x{grid_size} grid")
    while True:
        pos = (rng.randrange(grid_size), rng.randrange(grid_size))
        if pos not in occupied:
            return pos


def initialize_population(
    settings: SimulationSettings, rng: Optional[random.Random] = None
) -> Population:
    """
    Build the starting population: grass, then prey, then predators, each on
    its own cell.

    Raises:
        PlacementError: the requested population does not fit on the grid.
    """
    rng = rng or random.Random()

    population = Population()
    occupied: Set[Vec2] = set()

    def place() -> Vec2:
        pos = random_free_cell(occupied, settings.grid_size, rng)
        occupied.add(pos)
        return pos

    for _ in range(settings.initial_grass):
        x, y = place()
        population.spawn(Grass(x, y, energy=1.0, age=0, nutrition=random_nutrition(rng)))
    for _ in range(settings.initial_prey):
        x, y = place()
        population.spawn(Prey(x, y, energy=PREY_RULES.initial_energy, nutrition=PREY_NUTRITION))
    for _ in range(settings.initial_predators):
        x, y = place()
        population.spawn(Predator(x, y, energy=PREDATOR_RULES.initial_energy))
    return population.seal()
