from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(slots=True)
class EcosystemState:
    pollution: float = 0.0
    biodiversity: float = 100.0
    is_night: bool = False
    elapsed: float = 0.0
    tick: int = 0
    paused: bool = False


@dataclass(slots=True)
class PopulationReadout:
    sim_time: float = 0.0
    counts: Dict[str, int] = field(default_factory=dict)
    pollution: float = 0.0
    biodiversity: float = 100.0


@dataclass(slots=True)
class TickMetrics:
    tick: int
    sim_time: float
    population: int
    births: int
    deaths: int
    ducks: int
    eggs: int
    predators: int
    fish: int
    shrimp: int
    sea_creatures: int
    octopi: int
    algae: int
    seagrass: int
    kelp: int
    islands: int
    pollution: float
    biodiversity: float
    is_night: bool
    updated_entities: int
    deferred_pending: int
    tick_duration_ms: float = 0.0
