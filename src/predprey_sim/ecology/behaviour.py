"""
Per-animal transition for one tick: age, sense, flee/forage/hunt, pay energy,
die or reproduce.

Neighbour searches are brute-force scans over the tick's sightings, i.e. the
positions every entity had when the tick started. Feeding effects (a grazed
grass patch, a killed prey) are written straight onto the tick's working
entities, so animals processed later in the same tick see them.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union
import math
import random

from predprey_sim.ecology.config import SimulationSettings
from predprey_sim.ecology.entities import (
    FLIGHT_COST_FACTOR,
    GRASS,
    GRAZE_HUNGER_RELIEF,
    KILL_HUNGER_RELIEF,
    KILLED,
    MAX_HUNGER,
    PREDATOR,
    PREY,
    PREY_NUTRITION,
    RANDOM_WALK_PROB,
    REPRO_MAX_HUNGER,
    RULES,
    URGENT_HUNGER,
    Animal,
    Entity,
)


Vec2 = Tuple[int, int]

# (dx, dy) per random-walk direction
CARDINAL_STEPS: Tuple[Vec2, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


class Sighting(NamedTuple):
    """An entity together with the cell it occupied at the start of the tick."""

    entity: Entity
    x: int
    y: int


@dataclass
class TickContext:
    settings: SimulationSettings
    rng: random.Random
    sightings: Sequence[Sighting]
    prey_count: int
    predator_count: int
    max_prey: int
    max_predators: int


Outcome = Union[None, Animal, Tuple[Animal, Animal]]


def wrap(value: int, size: int) -> int:
    return value % size


def _sign(x: float) -> int:
    if x > 0:
        return 1
    if x < 0:
        return -1
    return 0


def manhattan(ax: int, ay: int, bx: int, by: int) -> int:
    return abs(ax - bx) + abs(ay - by)


def move_by(animal: Animal, dx: int, dy: int, grid_size: int) -> None:
    animal.x = wrap(animal.x + dx, grid_size)
    animal.y = wrap(animal.y + dy, grid_size)


def sight_window(kind: str, settings: SimulationSettings) -> int:
    if settings.use_sight_range_settings:
        return settings.prey_sight_range if kind == PREY else settings.predator_sight_range
    return RULES[kind].sight_window


def neighbours(animal: Animal, sightings: Sequence[Sighting], window: int) -> List[Sighting]:
    """Every other entity inside the +/-window box around the animal."""
    ax, ay = animal.x, animal.y
    found = []
    for sighting in sightings:
        if sighting.entity is animal:
            continue
        if abs(sighting.x - ax) <= window and abs(sighting.y - ay) <= window:
            found.append(sighting)
    return found


def nearest(animal: Animal, candidates: Sequence[Sighting]) -> Optional[Sighting]:
    """Closest candidate by Manhattan distance; the first one wins ties."""
    best = None
    best_dist = None
    for candidate in candidates:
        dist = manhattan(candidate.x, candidate.y, animal.x, animal.y)
        if best_dist is None or dist < best_dist:
            best = candidate
            best_dist = dist
    return best


def random_walk(animal: Animal, grid_size: int, rng: random.Random) -> None:
    if rng.random() < RANDOM_WALK_PROB:
        dx, dy = CARDINAL_STEPS[rng.randrange(len(CARDINAL_STEPS))]
        move_by(animal, dx, dy, grid_size)


def clamp_hunger(hunger: float) -> float:
    if math.isnan(hunger):
        return MAX_HUNGER
    return max(0.0, min(MAX_HUNGER, hunger))


def max_age(kind: str, settings: SimulationSettings) -> int:
    return settings.prey_max_age if kind == PREY else settings.predator_max_age


def death_cause(animal: Animal, settings: SimulationSettings) -> Optional[str]:
    if animal.age > max_age(animal.kind, settings):
        return "age"
    if not math.isfinite(animal.energy) or animal.energy <= 0:
        return "starvation"
    if animal.hunger >= MAX_HUNGER:
        return "hunger"
    return None


def _prey_turn(prey: Animal, seen: List[Sighting], ctx: TickContext) -> None:
    settings = ctx.settings
    grid_size = settings.grid_size
    predators = [s for s in seen if s.entity.kind == PREDATOR]
    if predators:
        threat = nearest(prey, predators)
        move_by(prey, _sign(prey.x - threat.x), _sign(prey.y - threat.y), grid_size)
        prey.energy -= settings.prey_energy_loss * FLIGHT_COST_FACTOR
        return

    patches = [s for s in seen if s.entity.kind == GRASS and s.entity.energy > 0]
    if patches:
        patch = nearest(prey, patches)
        if (prey.x, prey.y) == (patch.x, patch.y):
            grass = patch.entity
            nutrition = grass.nutrition or 1
            prey.is_eating = True
            prey.energy += settings.prey_energy_gain * nutrition
            prey.food_eaten += 1
            prey.hunger = clamp_hunger(prey.hunger - GRAZE_HUNGER_RELIEF * nutrition)
            grass.energy = 0.0
            grass.age = 0
            grass.nutrition = 0
        else:
            move_by(prey, _sign(patch.x - prey.x), _sign(patch.y - prey.y), grid_size)
    else:
        random_walk(prey, grid_size, ctx.rng)
    prey.energy -= settings.prey_energy_loss


def _predator_turn(predator: Animal, seen: List[Sighting], ctx: TickContext) -> None:
    settings = ctx.settings
    grid_size = settings.grid_size
    quarry = [s for s in seen if s.entity.kind == PREY and s.entity.energy > 0]
    if quarry:
        target = nearest(predator, quarry)
        stride = 2 if predator.hunger > URGENT_HUNGER else 1
        move_by(
            predator,
            _sign(target.x - predator.x) * stride,
            _sign(target.y - predator.y) * stride,
            grid_size,
        )
        if (predator.x, predator.y) == (target.x, target.y):
            prey = target.entity
            nutrition = getattr(prey, "nutrition", None) or PREY_NUTRITION
            predator.is_eating = True
            predator.energy += settings.predator_energy_gain * nutrition
            predator.food_eaten += 1
            predator.hunger = clamp_hunger(predator.hunger - KILL_HUNGER_RELIEF)
            prey.energy = KILLED
    else:
        random_walk(predator, grid_size, ctx.rng)
    predator.energy -= settings.predator_energy_loss


def population_pressure(live: int, cap: int, offset: float) -> float:
    """Soft carrying-capacity factor in [0, 1]; 0 when there is no capacity."""
    if cap <= 0:
        return 0.0
    return max(0.0, min(1.0, offset - live / cap))


def can_reproduce(animal: Animal, settings: SimulationSettings) -> bool:
    rules = RULES[animal.kind]
    maturity = settings.prey_maturity_age if animal.kind == PREY else settings.predator_maturity_age
    rested = not animal.last_reproduced or animal.age - animal.last_reproduced >= rules.repro_delay
    return (
        animal.energy >= rules.repro_energy_threshold
        and animal.age >= maturity
        and rested
        and animal.hunger < REPRO_MAX_HUNGER
    )


def reproduction_probability(animal: Animal, ctx: TickContext) -> float:
    rules = RULES[animal.kind]
    settings = ctx.settings
    if animal.kind == PREY:
        rate = settings.prey_reproduction_rate
        pressure = population_pressure(ctx.prey_count, ctx.max_prey, rules.pressure_offset)
    else:
        rate = settings.predator_reproduction_rate
        pressure = population_pressure(ctx.predator_count, ctx.max_predators, rules.pressure_offset)
    fed = min(animal.food_eaten / 1, 1)
    bonus = rules.eating_repro_bonus if animal.is_eating else 1.0
    return rate * rules.repro_rate_multiplier * pressure * fed * bonus


def reproduce(parent: Animal) -> Animal:
    """Halve the parent's energy and return its offspring (without an id)."""
    child = replace(
        parent,
        id=None,
        energy=parent.energy * 0.5,
        age=0,
        hunger=0.0,
        food_eaten=0,
        last_reproduced=0,
        is_eating=False,
    )
    parent.energy *= 0.5
    parent.last_reproduced = parent.age
    parent.food_eaten = 0
    return child


def transition(animal: Animal, ctx: TickContext) -> Outcome:
    """
    Advance one prey or predator by a tick.

    Returns None when the animal died (see `death_cause`), the animal itself,
    or a (parent, offspring) pair when it reproduced.
    """
    settings = ctx.settings
    animal.is_eating = False
    animal.age += 1
    if animal.age > max_age(animal.kind, settings):
        return None

    rules = RULES[animal.kind]
    seen = neighbours(animal, ctx.sightings, sight_window(animal.kind, settings))
    animal.hunger = clamp_hunger(animal.hunger + rules.hunger_per_tick)

    if animal.kind == PREY:
        _prey_turn(animal, seen, ctx)
    else:
        _predator_turn(animal, seen, ctx)

    if death_cause(animal, settings) is not None:
        return None

    if can_reproduce(animal, settings):
        if ctx.rng.random() < reproduction_probability(animal, ctx):
            return animal, reproduce(animal)
    return animal
