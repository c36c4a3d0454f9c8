"""
One tick of the ecosystem.

    census -> grass regeneration -> shuffled animal phase -> ambient grass spawn

`step` never touches the population it is given: every entity is copied into
a working set first and the results are written into a forked Population.
"""
from __future__ import annotations

from copy import copy
from typing import List, NamedTuple, Optional, Tuple
import logging
import math
import random

from predprey_sim.ecology.behaviour import Sighting, TickContext, death_cause, transition
from predprey_sim.ecology.config import PlacementError, SimulationSettings
from predprey_sim.ecology.entities import GRASS, KILLED, PREDATOR, PREY, Animal, Grass, is_animal
from predprey_sim.ecology.initializer import random_free_cell, random_nutrition
from predprey_sim.ecology.population import Population


logger = logging.getLogger(__name__)


class StepResult(NamedTuple):
    population: Population
    events: List[str]


class Census(NamedTuple):
    prey: int
    predators: int
    active_grass: int
    max_prey: int
    max_predators: int


def take_census(population: Population, settings: SimulationSettings) -> Census:
    prey = population.count(PREY)
    predators = population.count(PREDATOR)
    active_grass = sum(1 for g in population.of_kind(GRASS) if g.energy > 0)
    factor = settings.carrying_capacity_factor
    return Census(
        prey=prey,
        predators=predators,
        active_grass=active_grass,
        max_prey=math.floor(factor * active_grass),
        max_predators=math.floor(factor * prey),
    )


def _regrow_grass(grass: Grass, settings: SimulationSettings, rng: random.Random) -> bool:
    if grass.energy != 0:
        return False
    grass.age += 1
    if grass.age < settings.grass_regeneration_time:
        return False
    grass.energy = 1.0
    grass.age = 0
    grass.nutrition = random_nutrition(rng)
    return True


def _spawn_ambient_grass(
    nxt: Population, settings: SimulationSettings, rng: random.Random
) -> Optional[Grass]:
    try:
        x, y = random_free_cell(nxt.occupied_cells(), settings.grid_size, rng)
    except PlacementError:
        logger.debug("Grid is full; skipping ambient grass spawn")
        return None
    grass = Grass(x, y, energy=1.0, age=0, nutrition=random_nutrition(rng))
    nxt.spawn(grass)
    return grass


def step(
    population: Population,
    settings: SimulationSettings,
    rng: Optional[random.Random] = None,
) -> StepResult:
    """
    Advance the population by one tick.

    Returns the next generation and the tick's events in the order they
    happened.
    """
    rng = rng or random.Random()
    census = take_census(population, settings)
    events: List[str] = []

    working = [copy(entity) for entity in population]
    sightings = [Sighting(entity, entity.x, entity.y) for entity in working]
    nxt = population.fork()

    # Grass phase: grass is only ever toggled, never removed.
    for entity in working:
        if entity.kind != GRASS:
            continue
        if _regrow_grass(entity, settings, rng):
            events.append(f"Grass regrew at ({entity.x}, {entity.y})")
        nxt.keep(entity)

    # Animal phase
    ctx = TickContext(
        settings=settings,
        rng=rng,
        sightings=sightings,
        prey_count=census.prey,
        predator_count=census.predators,
        max_prey=census.max_prey,
        max_predators=census.max_predators,
    )
    animals = [entity for entity in working if is_animal(entity)]
    rng.shuffle(animals)
    results: List[Tuple[Animal, bool]] = []
    for animal in animals:
        if animal.energy <= 0:
            # taken by a predator earlier in this tick
            continue
        outcome = transition(animal, ctx)
        if animal.kind == PREDATOR and animal.is_eating:
            events.append(f"prey was eaten at ({animal.x}, {animal.y})")
        if outcome is None:
            cause = death_cause(animal, settings) or "starvation"
            events.append(f"{animal.kind} died at ({animal.x}, {animal.y}) from {cause}")
            # dead animals are no longer valid targets this tick
            animal.energy = KILLED
        elif isinstance(outcome, tuple):
            parent, child = outcome
            results.append((parent, False))
            results.append((child, True))
            events.append(f"New {parent.kind} born at ({parent.x}, {parent.y})")
        else:
            results.append((outcome, False))
            if outcome.is_eating:
                events.append(f"{outcome.kind} ate at ({outcome.x}, {outcome.y})")

    for animal, newborn in results:
        if animal.energy == KILLED:
            continue
        if newborn:
            nxt.spawn(animal)
        else:
            nxt.keep(animal)

    # Ambient grass spawn
    if rng.random() < settings.grass_regrowth_rate:
        grass = _spawn_ambient_grass(nxt, settings, rng)
        if grass is not None:
            events.append(f"New grass grew at ({grass.x}, {grass.y})")

    return StepResult(nxt.seal(), events)
