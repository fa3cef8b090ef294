from __future__ import annotations

from typing import TYPE_CHECKING, Set

from ..core.config import MetricsConfig
from ..core.entities import Species
from ..core.scheduler import Throttle
from ..types.metrics import EcosystemState, PopulationReadout, TickMetrics
from ..utils.math2d import _clamp_meter

if TYPE_CHECKING:
    from ..core.world import World

ANIMAL_SPECIES = (
    Species.DUCK,
    Species.FISH,
    Species.SHRIMP,
    Species.OCTOPUS,
    Species.SEA_CREATURE,
    Species.PREDATOR,
)


def add_pollution(state: EcosystemState, delta: float) -> float:
    state.pollution = _clamp_meter(state.pollution + delta)
    return state.pollution


def animal_count(world: World) -> int:
    return sum(world.registry.count(species) for species in ANIMAL_SPECIES)


def distinct_species(world: World) -> Set[str]:
    registry = world.registry
    present: Set[str] = set()
    for species in (Species.DUCK, Species.FISH, Species.SHRIMP, Species.OCTOPUS):
        if registry.count(species):
            present.add(species.value)
    for creature in registry.all(Species.SEA_CREATURE):
        present.add(creature.kind.value)
    for predator in registry.all(Species.PREDATOR):
        present.add(predator.kind.value)
    for species in (Species.KELP, Species.SEAGRASS, Species.ALGAE):
        if registry.count(species):
            present.add(species.value)
    return present


def compute_biodiversity(world: World, config: MetricsConfig) -> float:
    animals = animal_count(world)
    if animals > 0:
        balance = min(100.0, len(distinct_species(world)) / config.max_species * 100.0)
    else:
        balance = 0.0
    pollution_penalty = world.ecosystem.pollution * config.pollution_weight
    predator_penalty = 0.0
    if animals > 0:
        ratio = world.registry.count(Species.PREDATOR) / animals
        if ratio > config.predator_ratio_threshold:
            predator_penalty = (ratio - config.predator_ratio_threshold) * config.predator_penalty_weight
    return _clamp_meter(balance - pollution_penalty - predator_penalty)


class EcosystemMetrics:
    """Recomputes the biodiversity index and the HUD readout on independent throttles."""

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._biodiversity_throttle = Throttle(config.biodiversity_interval)
        self._hud_throttle = Throttle(config.hud_interval)
        self.readout = PopulationReadout()
        self.biodiversity_updates = 0
        self.hud_updates = 0

    def reset(self) -> None:
        self._biodiversity_throttle.reset()
        self._hud_throttle.reset()
        self.readout = PopulationReadout()
        self.biodiversity_updates = 0
        self.hud_updates = 0

    def update(self, world: World) -> None:
        now = world.ecosystem.elapsed
        if self._biodiversity_throttle.ready(now):
            world.ecosystem.biodiversity = compute_biodiversity(world, self._config)
            self.biodiversity_updates += 1
        if self._hud_throttle.ready(now):
            self.readout = PopulationReadout(
                sim_time=now,
                counts=world.registry.counts(),
                pollution=world.ecosystem.pollution,
                biodiversity=world.ecosystem.biodiversity,
            )
            self.hud_updates += 1


def build_tick_metrics(world: World, updated: int, duration_ms: float) -> TickMetrics:
    registry = world.registry
    state = world.ecosystem
    return TickMetrics(
        tick=state.tick,
        sim_time=state.elapsed,
        population=animal_count(world),
        births=registry.births,
        deaths=registry.deaths,
        ducks=registry.count(Species.DUCK),
        eggs=registry.count(Species.EGG),
        predators=registry.count(Species.PREDATOR),
        fish=registry.count(Species.FISH),
        shrimp=registry.count(Species.SHRIMP),
        sea_creatures=registry.count(Species.SEA_CREATURE),
        octopi=registry.count(Species.OCTOPUS),
        algae=registry.count(Species.ALGAE),
        seagrass=registry.count(Species.SEAGRASS),
        kelp=registry.count(Species.KELP),
        islands=registry.count(Species.ISLAND),
        pollution=state.pollution,
        biodiversity=state.biodiversity,
        is_night=state.is_night,
        updated_entities=updated,
        deferred_pending=len(world.deferred),
        tick_duration_ms=duration_ms,
    )
