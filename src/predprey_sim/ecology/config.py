"""
Simulation settings for the predator/prey/grass tick engine.

Settings are validated once at construction and are never mutated afterwards;
derived variants are produced with `dataclasses.replace`.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Dict, Optional
import json
import logging
import math


logger = logging.getLogger(__name__)


class SettingsError(ValueError):
    """Raised for settings the engine must not be asked to run with."""


class PlacementError(SettingsError):
    """Raised when the initial population cannot fit on the grid."""


@dataclass(frozen=True)
class SimulationSettings:
    grid_size: int = 50
    cell_size: float = 6.0  # consumed by renderers only
    initial_prey: int = 50
    initial_predators: int = 10
    initial_grass: int = 1000
    grass_regrowth_rate: float = 0.02
    prey_reproduction_rate: float = 0.05
    predator_reproduction_rate: float = 0.03
    prey_energy_gain: float = 4.0
    predator_energy_gain: float = 10.0
    prey_energy_loss: float = 0.2
    predator_energy_loss: float = 0.5
    prey_max_age: int = 100
    predator_max_age: int = 150
    prey_maturity_age: int = 15
    predator_maturity_age: int = 25
    carrying_capacity_factor: float = 0.2
    grass_regeneration_time: int = 20
    prey_sight_range: int = 2
    predator_sight_range: int = 4
    # When False the behaviour uses the fixed sight windows of KindRules.
    use_sight_range_settings: bool = False

    def __post_init__(self) -> None:
        validate_settings(self)

    @property
    def cell_count(self) -> int:
        return self.grid_size * self.grid_size

    @property
    def initial_population(self) -> int:
        return self.initial_grass + self.initial_prey + self.initial_predators


_INT_FIELDS = (
    "grid_size",
    "initial_prey",
    "initial_predators",
    "initial_grass",
    "prey_max_age",
    "predator_max_age",
    "prey_maturity_age",
    "predator_maturity_age",
    "grass_regeneration_time",
    "prey_sight_range",
    "predator_sight_range",
)

_PROBABILITY_FIELDS = ("grass_regrowth_rate",)

_NON_NEGATIVE_FIELDS = (
    "cell_size",
    "prey_reproduction_rate",
    "predator_reproduction_rate",
    "prey_energy_gain",
    "predator_energy_gain",
    "prey_energy_loss",
    "predator_energy_loss",
    "carrying_capacity_factor",
)


def validate_settings(settings: SimulationSettings) -> None:
    for name in _INT_FIELDS:
        value = getattr(settings, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise SettingsError(f"{name} must be an integer, got {value!r}")
        if value < 0:
            raise SettingsError(f"{name} must be >= 0, got {value}")
    if settings.grid_size <= 0:
        raise SettingsError(f"grid_size must be > 0, got {settings.grid_size}")
    for name in _PROBABILITY_FIELDS + _NON_NEGATIVE_FIELDS:
        value = getattr(settings, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SettingsError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value) or value < 0:
            raise SettingsError(f"{name} must be finite and >= 0, got {value}")
    for name in _PROBABILITY_FIELDS:
        if getattr(settings, name) > 1:
            raise SettingsError(f"{name} is a per-tick probability and must be <= 1")
    if not isinstance(settings.use_sight_range_settings, bool):
        raise SettingsError("use_sight_range_settings must be a boolean")
    if settings.initial_population > settings.cell_count:
        raise PlacementError(
            f"Cannot place {settings.initial_population} entities on a "
            f"{settings.grid_size}x{settings.grid_size} grid"
        )


# Values the original web front-end forced onto every run at start-up.
REALISTIC_OVERRIDES: Dict[str, object] = {
    "initial_grass": 1200,
    "grass_regrowth_rate": 0.03,
    "grass_regeneration_time": 15,
    "prey_energy_gain": 6.0,
    "predator_energy_gain": 20.0,
    "prey_energy_loss": 0.15,
    "predator_energy_loss": 0.3,
    "prey_reproduction_rate": 0.1,
    "predator_reproduction_rate": 0.06,
    "carrying_capacity_factor": 0.25,
}


def derive_realistic_settings(settings: SimulationSettings) -> SimulationSettings:
    """Return a copy of `settings` with the tuned "realistic" ecology constants."""
    derived = replace(settings, **REALISTIC_OVERRIDES)
    logger.debug("Derived realistic settings: %s", REALISTIC_OVERRIDES)
    return derived


def settings_to_dict(settings: SimulationSettings) -> Dict[str, object]:
    return asdict(settings)


def settings_from_dict(data: Dict[str, object]) -> SimulationSettings:
    known = {f.name for f in fields(SimulationSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise SettingsError(f"Unknown SimulationSettings field(s): {', '.join(unknown)}")
    cleaned = {}
    for name, value in data.items():
        if name in _INT_FIELDS and isinstance(value, float) and value.is_integer():
            value = int(value)
        cleaned[name] = value
    return SimulationSettings(**cleaned)


def load_settings(path: str | Path) -> SimulationSettings:
    with open(Path(path), "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must hold a JSON object")
    return settings_from_dict(data)


def build_settings(
    overrides: Optional[Dict[str, object]] = None,
    path: Optional[str | Path] = None,
) -> SimulationSettings:
    data: Dict[str, object] = {}
    if path is not None:
        data.update(settings_to_dict(load_settings(path)))
    if overrides:
        data.update(overrides)
    return settings_from_dict(data)
