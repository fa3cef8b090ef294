from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, Dict, Optional, Tuple

from pygame.math import Vector2

from .config import PausePolicy, SimulationConfig
from .entities import (
    Algae,
    Duck,
    Egg,
    Elixir,
    Entity,
    Island,
    Predator,
    SeaCreature,
    Shrimp,
    Species,
)
from .errors import SpawnError
from .observers import EventLog, NullRenderSink, RenderSink
from .registry import EntityRegistry
from .rng import SimulationRng
from .scheduler import DayNightCycle, DeferredQueue, RoundRobinCursor, TickScheduler
from ..systems import (
    ducks,
    eggs,
    fish,
    metrics as metrics_system,
    octopus,
    plants,
    predators,
    sea_creatures,
    shrimp,
    spawning,
)
from ..types.metrics import EcosystemState, PopulationReadout, TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld

logger = logging.getLogger(__name__)

Behavior = Callable[["World", Any, float], None]

_BEHAVIORS: Dict[Species, Behavior] = {
    Species.DUCK: ducks.update_duck,
    Species.PREDATOR: predators.update_predator,
    Species.SEA_CREATURE: sea_creatures.update_sea_creature,
    Species.FISH: fish.update_fish,
    Species.SHRIMP: shrimp.update_shrimp,
    Species.EGG: eggs.update_egg,
    Species.ALGAE: plants.update_algae,
    Species.SEAGRASS: plants.update_seagrass,
    Species.OCTOPUS: octopus.update_octopus,
    Species.ELIXIR: octopus.update_elixir,
}

# Populous species update a rotating slice per tick; the quota names the scheduler option.
_ROTATED: Tuple[Tuple[Species, str], ...] = (
    (Species.DUCK, "ducks_per_tick"),
    (Species.FISH, "fish_per_tick"),
    (Species.SEA_CREATURE, "sea_creatures_per_tick"),
)

_FULL_UPDATE: Tuple[Species, ...] = (
    Species.SHRIMP,
    Species.EGG,
    Species.PREDATOR,
    Species.OCTOPUS,
    Species.ELIXIR,
    Species.ALGAE,
    Species.SEAGRASS,
)


@dataclass
class WorldBounds:
    width: float
    height: float
    water_line: float

    @property
    def water_top(self) -> float:
        return self.height * self.water_line

    @property
    def water_surface(self) -> float:
        return self.height * self.water_line


class World:
    """Simulation context: owns every collaborator and advances the pond one tick at a time."""

    def __init__(
        self,
        config: SimulationConfig,
        render: RenderSink | None = None,
        event_log: EventLog | None = None,
        populate: bool = True,
    ):
        self._config = config.validate()
        self._rng = SimulationRng(config.seed)
        self._render = render or NullRenderSink()
        self._event_log = event_log or EventLog()
        self._bounds = WorldBounds(config.world.width, config.world.height, config.world.water_line)
        self._ecosystem = EcosystemState()
        self._registry = EntityRegistry(
            config.caps,
            config.cell_size,
            render=self._render,
            event_log=self._event_log,
            clock=lambda: self._ecosystem.elapsed,
        )
        self._deferred = DeferredQueue()
        self._clock = TickScheduler(config.scheduler.tick_rate)
        self._day_night = DayNightCycle(config.scheduler.day_night_duration)
        self._cursors: Dict[Species, RoundRobinCursor] = {species: RoundRobinCursor() for species, _ in _ROTATED}
        self._metrics_system = metrics_system.EcosystemMetrics(config.metrics)
        self._spawner = spawning.AmbientSpawner(config.spawning)
        self._pause_policy = config.pause
        self._populate = populate
        self._metrics: TickMetrics | None = None
        self._bootstrap()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def rng(self) -> SimulationRng:
        return self._rng

    @property
    def render(self) -> RenderSink:
        return self._render

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def bounds(self) -> WorldBounds:
        return self._bounds

    @property
    def ecosystem(self) -> EcosystemState:
        return self._ecosystem

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    @property
    def deferred(self) -> DeferredQueue:
        return self._deferred

    @property
    def spawner(self) -> spawning.AmbientSpawner:
        return self._spawner

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def readout(self) -> PopulationReadout:
        return self._metrics_system.readout

    @property
    def tick(self) -> int:
        return self._ecosystem.tick

    @property
    def elapsed(self) -> float:
        return self._ecosystem.elapsed

    @property
    def paused(self) -> bool:
        return self._ecosystem.paused

    def log(self, message: str) -> None:
        self._event_log.record(message, self._ecosystem.elapsed)

    def effect(self, kind: str, position: Vector2) -> None:
        self._render.on_effect(kind, Vector2(position))

    def reset(self) -> None:
        self._registry.clear()
        self._deferred.clear()
        self._rng.reset()
        self._ecosystem = EcosystemState()
        self._clock.reset()
        self._day_night.reset()
        for cursor in self._cursors.values():
            cursor.reset()
        self._metrics_system.reset()
        self._spawner.reset()
        self._event_log.clear()
        self._metrics = None
        self._bootstrap()

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            logger.warning("Ignoring viewport resize to %sx%s", width, height)
            return
        self._bounds.width = float(width)
        self._bounds.height = float(height)

    def pause(self) -> None:
        if not self._ecosystem.paused:
            self._ecosystem.paused = True
            self.log("Game paused")

    def resume(self) -> None:
        if self._ecosystem.paused:
            self._ecosystem.paused = False
            self.log("Game resumed")

    def toggle_pause(self) -> bool:
        if self._ecosystem.paused:
            self.resume()
        else:
            self.pause()
        return self._ecosystem.paused

    def frame(self, now: float) -> TickMetrics | None:
        """Called once per display refresh; runs a logic step only when one is due."""
        delta = self._clock.poll(now)
        if delta is None:
            return None
        return self.step(delta)

    def step(self, dt: float | None = None) -> TickMetrics:
        start = perf_counter()
        if dt is None:
            dt = self._config.time_step
        state = self._ecosystem
        registry = self._registry
        registry.reset_counters()

        if state.paused:
            if self._pause_policy is PausePolicy.RUN_DEFERRED:
                self._deferred.advance(dt)
            self._metrics = metrics_system.build_tick_metrics(self, 0, (perf_counter() - start) * 1000.0)
            return self._metrics

        state.elapsed += dt
        state.tick += 1
        self._deferred.advance(dt)

        if self._day_night.advance(dt):
            state.is_night = self._day_night.is_night
            self.log("Night has fallen" if state.is_night else "Day has begun")

        updated = 0
        scheduler = self._config.scheduler
        for species, quota_name in _ROTATED:
            batch = self._cursors[species].select(registry.all(species), getattr(scheduler, quota_name))
            for entity in batch:
                updated += self._update_entity(entity)
        for species in _FULL_UPDATE:
            for entity in list(registry.all(species)):
                updated += self._update_entity(entity)

        self._spawner.update(self, dt)
        self._metrics_system.update(self)

        self._metrics = metrics_system.build_tick_metrics(self, updated, (perf_counter() - start) * 1000.0)
        return self._metrics

    def _update_entity(self, entity: Entity) -> int:
        if not entity.alive:
            return 0
        now = self._ecosystem.elapsed
        dt = now - entity.last_updated
        entity.last_updated = now
        _BEHAVIORS[entity.species](self, entity, dt)
        return 1

    def find(self, species: Species, entity_id: int) -> Entity:
        entity = self._registry.get(species, entity_id)
        if entity is None:
            raise SpawnError(species.value, entity_id)
        return entity

    def pet_duck(self, duck_id: int) -> Duck:
        duck = self.find(Species.DUCK, duck_id)
        ducks.pet(self, duck)
        return duck

    def hatch_egg(self, egg_id: int) -> Optional[Duck]:
        return eggs.hatch(self, self.find(Species.EGG, egg_id))

    def snapshot(self) -> Snapshot:
        metrics = self._metrics or metrics_system.build_tick_metrics(self, 0, 0.0)
        entities = [
            self._entity_snapshot(entity) for species in Species for entity in self._registry.all(species)
        ]
        state = self._ecosystem
        return Snapshot(
            tick=state.tick,
            metrics=metrics,
            entities=entities,
            world=SnapshotWorld(
                width=self._bounds.width,
                height=self._bounds.height,
                water_top=self._bounds.water_top,
                is_night=state.is_night,
                pollution=state.pollution,
                biodiversity=state.biodiversity,
            ),
            metadata=SnapshotMetadata(
                sim_time=state.elapsed,
                tick_rate=self._config.scheduler.tick_rate,
                seed=self._config.seed,
                config_version=self._config.config_version,
                paused=state.paused,
            ),
            events=self._event_log.messages(),
        )

    def _bootstrap(self) -> None:
        if self._populate:
            spawning.populate_initial(self)
        self.log("Welcome to Sea of Ducks!")

    def _entity_snapshot(self, entity: Entity) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": entity.id,
            "species": entity.species.value,
            "x": entity.position.x,
            "y": entity.position.y,
            "age": entity.age,
        }
        if isinstance(entity, Duck):
            payload.update(
                state=entity.state.value,
                hunger=entity.hunger,
                energy=entity.energy,
                social=entity.social,
                fertility=entity.fertility,
                personality=entity.personality.value,
                color=entity.color.hex,
                gender=entity.gender.value,
                mature=entity.mature,
                on_island=entity.on_island,
                thought=entity.thought,
            )
        elif isinstance(entity, Predator):
            payload.update(state=entity.state.value, kind=entity.kind.value, hunger=entity.hunger, ducks_eaten=entity.ducks_eaten)
        elif isinstance(entity, SeaCreature):
            template = entity.template
            payload.update(kind=entity.kind.value, emoji=template.emoji, size=template.size)
        elif isinstance(entity, Shrimp):
            payload.update(state=entity.phase.value, baby=entity.baby)
        elif isinstance(entity, Egg):
            payload.update(color=entity.color.hex, hatch_timer=entity.hatch_timer)
        elif isinstance(entity, Algae):
            payload.update(kind=entity.kind.value, lifetime=entity.lifetime)
        elif isinstance(entity, Island):
            payload.update(size=entity.size.value, radius=entity.radius)
        elif isinstance(entity, Elixir):
            payload.update(falling=entity.falling)
        return payload
