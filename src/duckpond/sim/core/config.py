from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class PausePolicy(str, Enum):
    FREEZE = "freeze"
    RUN_DEFERRED = "run_deferred"


@dataclass
class WorldConfig:
    width: float = 1200.0
    height: float = 800.0
    # Fraction of the height where the water surface starts.
    water_line: float = 0.4


@dataclass
class PopulationCaps:
    ducks: int = 50
    fish: int = 40
    shrimp: int = 40
    eggs: int = 30
    octopi: int = 20
    sea_creatures: int = 30
    predators: int = 15
    islands: int = 8
    algae: int = 50
    kelp: int = 20
    seagrass: int = 30
    elixirs: int = 10
    coral_reefs: int = 10

    def limit(self, collection: str) -> int:
        return int(getattr(self, collection))


@dataclass
class SchedulerConfig:
    tick_rate: float = 60.0
    ducks_per_tick: int = 10
    fish_per_tick: int = 8
    sea_creatures_per_tick: int = 6
    think_cooldown: float = 3.0
    day_night_duration: float = 60.0


@dataclass
class MetricsConfig:
    hud_interval: float = 0.5
    biodiversity_interval: float = 1.0
    max_species: int = 20
    pollution_weight: float = 0.5
    predator_ratio_threshold: float = 0.2
    predator_penalty_weight: float = 100.0


@dataclass
class SpawnConfig:
    enabled: bool = True
    algae_interval: float = 8.0
    min_algae_interval: float = 5.0
    seagrass_interval: float = 20.0
    seagrass_near_island_chance: float = 0.7
    kelp_interval: float = 12.0


@dataclass
class InitialPopulationConfig:
    ducks: int = 2
    islands_min: int = 2
    islands_max: int = 4
    predators: int = 1
    fish: int = 1
    shrimp: int = 2
    sea_creatures_min: int = 3
    sea_creatures_max: int = 7
    kelp: int = 8
    algae: int = 3


@dataclass
class SimulationConfig:
    seed: Optional[int] = None
    cell_size: float = 150.0
    forage_radius: float = 600.0
    pause_policy: str = PausePolicy.FREEZE.value
    config_version: str = "v1"
    world: WorldConfig = field(default_factory=WorldConfig)
    caps: PopulationCaps = field(default_factory=PopulationCaps)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    spawning: SpawnConfig = field(default_factory=SpawnConfig)
    initial: InitialPopulationConfig = field(default_factory=InitialPopulationConfig)

    @property
    def time_step(self) -> float:
        return 1.0 / self.scheduler.tick_rate

    @property
    def pause(self) -> PausePolicy:
        return PausePolicy(self.pause_policy)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        try:
            data = yaml.safe_load(Path(path).read_text())
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"cannot read configuration file {path}: {exc}") from exc
        logger.info("Loaded configuration from %s", path)
        return load_config(data or {})

    def validate(self) -> "SimulationConfig":
        if self.cell_size <= 0:
            raise ConfigurationError("must be positive", key="cell_size")
        if self.scheduler.tick_rate <= 0:
            raise ConfigurationError("must be positive", key="scheduler.tick_rate")
        for name in ("ducks_per_tick", "fish_per_tick", "sea_creatures_per_tick"):
            if getattr(self.scheduler, name) < 1:
                raise ConfigurationError("must be at least 1", key=f"scheduler.{name}")
        if self.world.width <= 0 or self.world.height <= 0:
            raise ConfigurationError("world dimensions must be positive", key="world")
        if not 0.0 < self.world.water_line < 1.0:
            raise ConfigurationError("must lie strictly between 0 and 1", key="world.water_line")
        for item in fields(self.caps):
            if getattr(self.caps, item.name) < 0:
                raise ConfigurationError("cap cannot be negative", key=f"caps.{item.name}")
        try:
            PausePolicy(self.pause_policy)
        except ValueError as exc:
            choices = ", ".join(policy.value for policy in PausePolicy)
            raise ConfigurationError(f"expected one of {choices}", key="pause_policy") from exc
        return self


_SECTIONS = {
    "world": WorldConfig,
    "caps": PopulationCaps,
    "scheduler": SchedulerConfig,
    "metrics": MetricsConfig,
    "spawning": SpawnConfig,
    "initial": InitialPopulationConfig,
}


def _build_section(name: str, cls: type, values: Any) -> Any:
    if values is None:
        return cls()
    if not isinstance(values, dict):
        raise ConfigurationError("expected a mapping", key=name)
    known = {item.name for item in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"unknown option(s) {', '.join(unknown)}", key=name)
    return cls(**values)


def load_config(raw: Dict[str, Any]) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError("configuration root must be a mapping")
    sections = {name: _build_section(name, cls, raw.get(name)) for name, cls in _SECTIONS.items()}
    sim_values = {k: v for k, v in raw.items() if k not in _SECTIONS}
    known = {item.name for item in fields(SimulationConfig)}
    unknown = sorted(set(sim_values) - known)
    if unknown:
        raise ConfigurationError(f"unknown option(s) {', '.join(unknown)}")
    return SimulationConfig(**sections, **sim_values).validate()
