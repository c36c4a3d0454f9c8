import random

import pytest

from predprey_sim.ecology.config import PlacementError, SimulationSettings
from predprey_sim.ecology.entities import GRASS, PREDATOR, PREY
from predprey_sim.ecology.initializer import initialize_population, random_free_cell


def _make_settings(**overrides):
    cfg = {"grid_size": 20, "initial_grass": 60, "initial_prey": 15, "initial_predators": 5}
    cfg.update(overrides)
    return SimulationSettings(**cfg)


def test_initial_counts_and_unique_cells():
    settings = _make_settings()
    population = initialize_population(settings, random.Random(42))

    assert population.count(GRASS) == 60
    assert population.count(PREY) == 15
    assert population.count(PREDATOR) == 5
    cells = [(e.x, e.y) for e in population]
    assert len(set(cells)) == len(cells)
    assert all(0 <= x < 20 and 0 <= y < 20 for x, y in cells)


def test_initial_entity_fields():
    population = initialize_population(_make_settings(), random.Random(1))

    for grass in population.of_kind(GRASS):
        assert grass.energy == 1 and grass.age == 0
        assert grass.nutrition in (1, 2, 3)
    for prey in population.of_kind(PREY):
        assert (prey.energy, prey.age, prey.hunger, prey.food_eaten, prey.last_reproduced) == (20.0, 0, 0, 0, 0)
        assert prey.nutrition == 5
    for predator in population.of_kind(PREDATOR):
        assert (predator.energy, predator.age, predator.hunger, predator.food_eaten) == (30.0, 0, 0, 0)


def test_initialization_is_pure_and_seeded():
    settings = _make_settings()
    first = initialize_population(settings, random.Random(5)).to_records()
    second = initialize_population(settings, random.Random(5)).to_records()
    assert first == second
    assert settings == _make_settings()


def test_grid_can_be_filled_exactly():
    settings = _make_settings(grid_size=4, initial_grass=10, initial_prey=4, initial_predators=2)
    population = initialize_population(settings, random.Random(3))
    assert len({(e.x, e.y) for e in population}) == 16


def test_free_cell_search_fails_fast_when_grid_is_full():
    occupied = {(x, y) for x in range(3) for y in range(3)}
    with pytest.raises(PlacementError):
        random_free_cell(occupied, 3, random.Random(0))
