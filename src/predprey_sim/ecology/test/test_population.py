import json

import pytest

from predprey_sim.ecology.entities import EntityId, Grass, Predator, Prey
from predprey_sim.ecology.population import Population


def _make_population():
    return Population.from_entities(
        [Grass(0, 0, nutrition=2), Prey(1, 1, energy=20.0), Predator(2, 2, energy=30.0)]
    )


def test_from_entities_stamps_unique_ids_in_order():
    population = _make_population()
    ids = [entity.id for entity in population]
    assert ids == [EntityId(0, 0), EntityId(1, 0), EntityId(2, 0)]
    assert population.sealed
    assert [e.kind for e in population] == ["grass", "prey", "predator"]


def test_sealed_population_rejects_writes():
    population = _make_population()
    with pytest.raises(RuntimeError):
        population.spawn(Grass(3, 3))


def test_fork_releases_entities_that_are_not_kept():
    population = _make_population()
    grass, prey, predator = population.entities

    nxt = population.fork()
    nxt.keep(grass)
    nxt.keep(predator)
    nxt.seal()

    assert len(nxt) == 2
    assert prey.id not in nxt
    assert nxt.get(predator.id) is predator
    # the parent generation is untouched
    assert len(population) == 3
    assert population.get(prey.id) is prey


def test_released_slot_gets_a_new_generation():
    population = _make_population()
    grass, prey, predator = population.entities

    nxt = population.fork()
    nxt.keep(grass)
    nxt.keep(predator)
    nxt.seal()

    third = nxt.fork()
    for entity in nxt:
        third.keep(entity)
    newborn = Prey(1, 1, energy=10.0)
    new_id = third.spawn(newborn)
    third.seal()

    assert new_id.index == prey.id.index
    assert new_id.generation == prey.id.generation + 1
    assert new_id != prey.id
    assert third.get(prey.id) is None


def test_newborn_cannot_take_a_slot_reserved_for_a_survivor():
    population = _make_population()
    nxt = population.fork()
    child_id = nxt.spawn(Prey(5, 5, energy=1.0))
    assert child_id.index == 3
    for entity in population:
        nxt.keep(entity)
    nxt.seal()
    assert len(nxt) == 4


def test_keep_rejects_entities_from_another_generation():
    population = _make_population()
    nxt = population.fork()
    stranger = Prey(0, 0, energy=1.0)
    stranger.id = EntityId(1, 7)
    with pytest.raises(KeyError):
        nxt.keep(stranger)


def test_records_round_trip_through_json():
    population = _make_population()
    nxt = population.fork()
    nxt.keep(population.entities[0])
    nxt.seal()

    records = json.loads(json.dumps(nxt.to_records()))
    restored = Population.from_records(records, nxt.generation_table())

    assert restored.to_records() == nxt.to_records()
    assert restored.generation_table() == nxt.generation_table()
    # the freed slots keep their bumped generations
    fresh = restored.fork()
    for entity in restored:
        fresh.keep(entity)
    new_id = fresh.spawn(Grass(4, 4))
    assert new_id.generation == 1


def test_records_without_ids_get_fresh_ones():
    records = [{"kind": "prey", "x": 1, "y": 2, "energy": 5.0}]
    restored = Population.from_records(records)
    assert [e.id for e in restored] == [EntityId(0, 0)]


def test_duplicate_ids_are_rejected():
    records = [
        {"kind": "grass", "x": 1, "y": 2, "id": "0.0"},
        {"kind": "grass", "x": 3, "y": 4, "id": "0.0"},
    ]
    with pytest.raises(ValueError):
        Population.from_records(records)
