"""
Entity kinds of the ecosystem: grass patches, prey and predators.

Each kind is its own dataclass carrying only the fields that mean something for
it. `Entity` is the tagged union of the three, discriminated by `kind`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, NamedTuple, Optional, Union


GRASS = "grass"
PREY = "prey"
PREDATOR = "predator"
KINDS = (GRASS, PREY, PREDATOR)

MAX_HUNGER = 100.0
KILLED = -1.0  # energy sentinel for a prey taken by a predator this tick


class EntityId(NamedTuple):
    """Generational index into a Population arena."""

    index: int
    generation: int

    def __str__(self) -> str:
        return f"{self.index}.{self.generation}"

    @classmethod
    def parse(cls, text: str) -> "EntityId":
        index, _, generation = str(text).partition(".")
        return cls(int(index), int(generation))


@dataclass
class Grass:
    x: int
    y: int
    energy: float = 1.0
    age: int = 0
    nutrition: int = 1
    id: Optional[EntityId] = None
    kind: str = field(default=GRASS, init=False)

    @property
    def is_active(self) -> bool:
        return self.energy > 0


@dataclass
class Prey:
    x: int
    y: int
    energy: float
    age: int = 0
    hunger: float = 0.0
    food_eaten: int = 0
    last_reproduced: Optional[int] = 0
    is_eating: bool = False
    nutrition: float = 5.0
    id: Optional[EntityId] = None
    kind: str = field(default=PREY, init=False)


@dataclass
class Predator:
    x: int
    y: int
    energy: float
    age: int = 0
    hunger: float = 0.0
    food_eaten: int = 0
    last_reproduced: Optional[int] = 0
    is_eating: bool = False
    id: Optional[EntityId] = None
    kind: str = field(default=PREDATOR, init=False)


Animal = Union[Prey, Predator]
Entity = Union[Grass, Prey, Predator]


@dataclass(frozen=True)
class KindRules:
    """Fixed behaviour constants of an animal kind."""

    sight_window: int
    hunger_per_tick: float
    initial_energy: float
    repro_energy_threshold: float
    repro_delay: int
    repro_rate_multiplier: float
    pressure_offset: float
    eating_repro_bonus: float = 1.0


PREY_RULES = KindRules(
    sight_window=2,
    hunger_per_tick=0.1,
    initial_energy=20.0,
    repro_energy_threshold=15.0,
    repro_delay=10,
    repro_rate_multiplier=3.0,
    pressure_offset=2.0,
)

PREDATOR_RULES = KindRules(
    sight_window=4,
    hunger_per_tick=0.05,
    initial_energy=30.0,
    repro_energy_threshold=20.0,
    repro_delay=15,
    repro_rate_multiplier=6.0,
    pressure_offset=3.0,
    eating_repro_bonus=2.0,
)

RULES: Dict[str, KindRules] = {PREY: PREY_RULES, PREDATOR: PREDATOR_RULES}

PREY_NUTRITION = 5.0
FLIGHT_COST_FACTOR = 1.5
GRAZE_HUNGER_RELIEF = 30.0
KILL_HUNGER_RELIEF = 60.0
URGENT_HUNGER = 50.0
REPRO_MAX_HUNGER = 50.0
RANDOM_WALK_PROB = 0.3


_CLASSES = {GRASS: Grass, PREY: Prey, PREDATOR: Predator}


def is_animal(entity: Entity) -> bool:
    return entity.kind != GRASS


def entity_to_record(entity: Entity) -> Dict[str, object]:
    """Plain-value dict for an entity; ids become strings."""
    record: Dict[str, object] = {"kind": entity.kind}
    for name, value in vars(entity).items():
        if name == "kind":
            continue
        if name == "id":
            value = None if value is None else str(value)
        record[name] = value
    return record


def entity_from_record(record: Dict[str, object]) -> Entity:
    data = dict(record)
    kind = data.pop("kind", None)
    if kind not in _CLASSES:
        raise ValueError(f"Unknown entity kind: {kind!r}")
    raw_id = data.pop("id", None)
    entity = _CLASSES[kind](**data)
    if raw_id is not None:
        entity.id = EntityId.parse(raw_id)
    return entity
