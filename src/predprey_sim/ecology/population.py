"""
Population arena with generational indices.

A Population is one generation of entities. Stepping never edits it: the
stepper calls `fork()` to get the next generation's buffer, writes survivors
with `keep()` and newborns with `spawn()`, then `seal()`s it. Slots of entities
that were not kept are released at seal time and their generation is bumped,
so an EntityId is never handed out twice.
"""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from predprey_sim.ecology.entities import Entity, EntityId, entity_from_record, entity_to_record


class Population:
    def __init__(self) -> None:
        self._slots: List[Optional[Entity]] = []
        self._generations: List[int] = []
        self._free: List[int] = []
        self._order: List[int] = []
        self._reserved: set[int] = set()
        self._sealed = False

    # ------------------------------------------------------------------
    # read side
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Entity]:
        for index in self._order:
            yield self._slots[index]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, entity_id: EntityId) -> bool:
        return self.get(entity_id) is not None

    @property
    def entities(self) -> List[Entity]:
        return list(self)

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def get(self, entity_id: EntityId) -> Optional[Entity]:
        index, generation = entity_id
        if index < 0 or index >= len(self._slots):
            return None
        if self._generations[index] != generation:
            return None
        return self._slots[index]

    def of_kind(self, kind: str) -> List[Entity]:
        return [entity for entity in self if entity.kind == kind]

    def count(self, kind: str) -> int:
        return sum(1 for entity in self if entity.kind == kind)

    def occupied_cells(self) -> set[tuple[int, int]]:
        return {(entity.x, entity.y) for entity in self}

    # ------------------------------------------------------------------
    # write side
    # ------------------------------------------------------------------
    def _check_writable(self) -> None:
        if self._sealed:
            raise RuntimeError("Population is sealed; fork() it to build the next generation")

    def spawn(self, entity: Entity) -> EntityId:
        """Store a new entity in a free slot and stamp its id."""
        self._check_writable()
        if self._free:
            index = self._free.pop()
        else:
            index = len(self._slots)
            self._slots.append(None)
            self._generations.append(0)
        entity.id = EntityId(index, self._generations[index])
        self._slots[index] = entity
        self._order.append(index)
        return entity.id

    def keep(self, entity: Entity) -> EntityId:
        """Carry an entity of the previous generation into this one."""
        self._check_writable()
        index = entity.id.index
        if index not in self._reserved or self._generations[index] != entity.id.generation:
            raise KeyError(f"Entity {entity.id} is not part of the forked generation")
        self._reserved.discard(index)
        self._slots[index] = entity
        self._order.append(index)
        return entity.id

    def seal(self) -> "Population":
        self._check_writable()
        for index in sorted(self._reserved):
            self._slots[index] = None
            self._generations[index] += 1
            self._free.append(index)
        # lowest free slot is popped first
        self._free.sort(reverse=True)
        self._reserved = set()
        self._sealed = True
        return self

    def fork(self) -> "Population":
        """Empty buffer for the next generation, reserving every live slot."""
        nxt = Population()
        nxt._slots = [None] * len(self._slots)
        nxt._generations = list(self._generations)
        nxt._free = list(self._free)
        nxt._reserved = set(self._order)
        return nxt

    # ------------------------------------------------------------------
    # construction and records
    # ------------------------------------------------------------------
    @classmethod
    def from_entities(cls, entities: Iterable[Entity]) -> "Population":
        """Build a sealed population, assigning fresh ids to every entity."""
        population = cls()
        for entity in entities:
            population.spawn(entity)
        return population.seal()

    def to_records(self) -> List[Dict[str, object]]:
        return [entity_to_record(entity) for entity in self]

    def generation_table(self) -> List[int]:
        return list(self._generations)

    @classmethod
    def from_records(
        cls,
        records: Sequence[Dict[str, object]],
        generations: Optional[Sequence[int]] = None,
    ) -> "Population":
        """Rebuild a sealed population, keeping the recorded ids.

        Without a generation table, free slots start one generation past the
        highest recorded one so restored ids cannot collide with old ones.
        """
        entities = [entity_from_record(record) for record in records]
        if any(entity.id is None for entity in entities):
            if any(entity.id is not None for entity in entities):
                raise ValueError("Records must either all carry ids or none")
            return cls.from_entities(entities)

        size = max((entity.id.index + 1 for entity in entities), default=0)
        if generations is not None:
            size = max(size, len(generations))
            table = list(generations) + [0] * (size - len(generations))
        else:
            floor = max((entity.id.generation + 1 for entity in entities), default=0)
            table = [floor] * size

        population = cls()
        population._slots = [None] * size
        population._generations = table
        for entity in entities:
            index = entity.id.index
            if population._slots[index] is not None:
                raise ValueError(f"Duplicate entity id {entity.id}")
            population._generations[index] = entity.id.generation
            population._slots[index] = entity
            population._order.append(index)
        population._free = [i for i in range(size) if population._slots[i] is None]
        population._free.reverse()
        population._sealed = True
        return population
