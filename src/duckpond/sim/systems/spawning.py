from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Callable, Dict, Optional

from pygame.math import Vector2

from ..core.config import SpawnConfig
from ..core.entities import (
    ISLAND_PROFILES,
    AlgaeKind,
    CoralReef,
    Duck,
    DuckColor,
    Egg,
    Elixir,
    Fish,
    Gender,
    Island,
    IslandSize,
    Kelp,
    Octopus,
    Personality,
    Predator,
    PredatorKind,
    Algae,
    SeaCreature,
    SeaCreatureKind,
    Seagrass,
    Shrimp,
    ShrimpPhase,
    Species,
)
from ..utils.math2d import _clamp_value, _distance

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)

_DUCK_PLACEMENT_ATTEMPTS = 30
_DUCK_MIN_SPACING = 80.0
_ISLAND_PLACEMENT_ATTEMPTS = 50
_WATER_PLACEMENT_ATTEMPTS = 30
_SEAGRASS_STAGGER = 0.3
_FOOD_DROP_HEIGHT = 50.0


def _random_gender(world: World) -> Gender:
    return Gender.MALE if world.rng.chance(0.5) else Gender.FEMALE


def _water_point(world: World, margin: float) -> Vector2:
    """Random point below the waterline, kept off islands when the pond leaves room."""
    bounds = world.bounds
    depth = max(0.0, bounds.height - bounds.water_top - margin)
    islands = world.registry.all(Species.ISLAND)
    candidate = Vector2()
    for _ in range(_WATER_PLACEMENT_ATTEMPTS):
        candidate = Vector2(
            world.rng.next_float() * max(0.0, bounds.width - margin),
            bounds.water_top + world.rng.next_float() * depth,
        )
        if not any(island.contains(candidate) for island in islands):
            return candidate
    return candidate


def _duck_spawn_point(world: World) -> Vector2:
    bounds = world.bounds
    grid = world.registry.grid(Species.DUCK)
    candidate = Vector2()
    for _ in range(_DUCK_PLACEMENT_ATTEMPTS):
        candidate = Vector2(
            world.rng.next_float() * max(0.0, bounds.width - 100.0),
            bounds.height * 0.35 + world.rng.next_float() * bounds.height * 0.10,
        )
        if not grid.within(candidate, _DUCK_MIN_SPACING):
            return candidate
    # Crowded pond: keep the last candidate rather than refusing the duck.
    return candidate


def add_duck(
    world: World,
    color: Optional[DuckColor] = None,
    position: Optional[Vector2] = None,
    announce: bool = True,
) -> Optional[Duck]:
    registry = world.registry
    if not registry.check_capacity(Species.DUCK):
        return None
    rng = world.rng
    spot = Vector2(position) if position is not None else _duck_spawn_point(world)

    def build(entity_id: int) -> Duck:
        return Duck(
            id=entity_id,
            position=spot,
            max_age=180.0 + rng.next_float() * 120.0,
            hunger=25.0 + rng.next_float() * 50.0,
            energy=50.0 + rng.next_float() * 50.0,
            social=rng.next_float() * 100.0,
            personality=rng.choice(list(Personality)),
            gender=_random_gender(world),
            color=color or rng.choice(list(DuckColor)),
            speed=1.0 + rng.next_float(),
        )

    duck = registry.spawn(Species.DUCK, build)
    if duck is not None and announce:
        world.log(f"New {duck.personality.value} duck #{duck.id} joined the pond!")
    return duck


def create_egg(world: World, position: Vector2, color: DuckColor) -> Optional[Egg]:
    return world.registry.spawn(
        Species.EGG,
        lambda entity_id: Egg(id=entity_id, position=Vector2(position), color=color),
    )


def add_predator(world: World, island: Optional[Island] = None) -> Optional[Predator]:
    islands = world.registry.all(Species.ISLAND)
    if island is None:
        if not islands:
            world.log("Need an island first to add predators!")
            return None
        island = world.rng.choice(islands)
    kind = PredatorKind.DOG if world.rng.chance(0.5) else PredatorKind.CAT
    predator = spawn_predator(world, kind, island, island.position)
    if predator is not None:
        world.log(f"{predator.label} appeared on Island #{island.id}!")
    return predator


def spawn_predator(world: World, kind: PredatorKind, home: Optional[Island], position: Vector2) -> Optional[Predator]:
    rng = world.rng

    def build(entity_id: int) -> Predator:
        return Predator(
            id=entity_id,
            position=Vector2(position.x + rng.jitter(30.0), position.y + rng.jitter(30.0)),
            kind=kind,
            home=home,
            max_age=120.0 + rng.next_float() * 60.0,
            hunger=50.0 + rng.next_float() * 30.0,
            energy=80.0 + rng.next_float() * 20.0,
            gender=_random_gender(world),
            speed=1.2 + rng.next_float() * 0.3,
        )

    return world.registry.spawn(Species.PREDATOR, build)


def _pick_island_size(world: World) -> IslandSize:
    roll = world.rng.next_float()
    if roll < 0.3:
        return IslandSize.SMALL
    if roll < 0.65:
        return IslandSize.MEDIUM
    return IslandSize.LARGE


def find_island_site(world: World, size: IslandSize) -> Optional[Vector2]:
    bounds = world.bounds
    profile = ISLAND_PROFILES[size]
    half = profile.width / 2.0
    existing = world.registry.all(Species.ISLAND)
    for _ in range(_ISLAND_PLACEMENT_ATTEMPTS):
        left = 10.0 + world.rng.next_float() * max(0.0, bounds.width - profile.width - 20.0)
        top = bounds.water_top + world.rng.next_float() * bounds.height * 0.25
        center = Vector2(left + half, top + half)
        if all(_distance(center, other.position) >= profile.min_separation for other in existing):
            return center
    return None


def add_island(world: World, size: Optional[IslandSize] = None) -> Optional[Island]:
    registry = world.registry
    if not registry.check_capacity(Species.ISLAND):
        return None
    size = size or _pick_island_size(world)
    site = find_island_site(world, size)
    if site is None:
        world.log("Not enough space to spawn a new island")
        return None
    island = registry.spawn(Species.ISLAND, lambda entity_id: Island(id=entity_id, position=site, size=size))
    if island is None:
        return None
    world.log(f"{size.value.capitalize()} Island #{island.id} appeared!")
    for index in range(island.profile.seagrass_patches):
        world.deferred.schedule(
            index * _SEAGRASS_STAGGER,
            lambda: add_seagrass(world, island=island),
            owner=island,
            label="island seagrass",
        )
    return island


def add_fish(world: World) -> Optional[Fish]:
    spot = _water_point(world, 50.0)
    return add_fish_at(world, spot.x, spot.y)


def add_fish_at(world: World, x: float, y: float) -> Optional[Fish]:
    rng = world.rng

    def build(entity_id: int) -> Fish:
        return Fish(
            id=entity_id,
            position=Vector2(x, max(y, world.bounds.water_top)),
            speed=0.5 + rng.next_float() * 0.5,
            heading=rng.next_angle(),
            hunger=50.0 + rng.next_float() * 50.0,
        )

    return world.registry.spawn(Species.FISH, build)


def add_food(world: World) -> Optional[Shrimp]:
    x = world.rng.next_float() * max(0.0, world.bounds.width - 30.0)
    return add_food_at(world, x, _FOOD_DROP_HEIGHT)


def add_food_at(world: World, x: float, y: float, falling: bool = True) -> Optional[Shrimp]:
    rng = world.rng
    in_water = not falling or y >= world.bounds.water_surface

    def build(entity_id: int) -> Shrimp:
        return Shrimp(
            id=entity_id,
            position=Vector2(x, y),
            phase=ShrimpPhase.SWIMMING if in_water else ShrimpPhase.FALLING,
            heading=rng.next_angle(),
            swim_speed=0.3 + rng.next_float() * 0.2,
        )

    # Falling shrimp stay out of the spatial index until they reach the water.
    return world.registry.spawn(Species.SHRIMP, build, indexed=in_water)


def add_baby_shrimp(world: World, x: float, y: float) -> Optional[Shrimp]:
    rng = world.rng
    y = max(y, world.bounds.water_top + 10.0)

    def build(entity_id: int) -> Shrimp:
        return Shrimp(
            id=entity_id,
            position=Vector2(x, y),
            phase=ShrimpPhase.SWIMMING,
            baby=True,
            heading=rng.next_angle(),
            swim_speed=0.3 + rng.next_float() * 0.2,
        )

    return world.registry.spawn(Species.SHRIMP, build)


def add_sea_creature(
    world: World,
    kind: Optional[SeaCreatureKind] = None,
    position: Optional[Vector2] = None,
    announce: bool = True,
) -> Optional[SeaCreature]:
    rng = world.rng
    kind = kind or rng.choice(list(SeaCreatureKind))
    spot = Vector2(position) if position is not None else _water_point(world, 50.0)
    template = kind.template

    def build(entity_id: int) -> SeaCreature:
        return SeaCreature(
            id=entity_id,
            position=spot,
            kind=kind,
            max_age=template.max_age,
            hunger=50.0 + rng.next_float() * 50.0,
            speed=template.speed + rng.next_float() * 0.2 if template.mobile else 0.0,
            heading=rng.next_angle(),
            reproduction_cooldown=30.0 + rng.next_float() * 20.0,
        )

    creature = world.registry.spawn(Species.SEA_CREATURE, build)
    if creature is not None and announce:
        world.log(f"{creature.label} appeared! {template.emoji}")
    return creature


def add_octopus(world: World) -> Optional[Octopus]:
    rng = world.rng
    spot = _water_point(world, 50.0)

    def build(entity_id: int) -> Octopus:
        return Octopus(id=entity_id, position=spot, speed=0.8 + rng.next_float() * 0.4, heading=rng.next_angle())

    octopus = world.registry.spawn(Species.OCTOPUS, build)
    if octopus is not None:
        world.log(f"Octopus #{octopus.id} entered the pond")
    return octopus


def add_elixir(world: World) -> Optional[Elixir]:
    bounds = world.bounds
    x = world.rng.next_float() * max(0.0, bounds.width - 40.0)

    def build(entity_id: int) -> Elixir:
        return Elixir(id=entity_id, position=Vector2(x, _FOOD_DROP_HEIGHT), landing_y=bounds.water_surface + 20.0)

    elixir = world.registry.spawn(Species.ELIXIR, build)
    if elixir is not None:
        world.log("Added water purification elixir")
    return elixir


def toxic_algae_chance(world: World) -> float:
    registry = world.registry
    return min(0.7, (registry.count(Species.DUCK) + registry.count(Species.FISH)) * 0.05)


def add_algae(world: World, kind: Optional[AlgaeKind] = None, position: Optional[Vector2] = None) -> Optional[Algae]:
    bounds = world.bounds
    rng = world.rng
    if kind is None:
        kind = AlgaeKind.TOXIC if rng.chance(toxic_algae_chance(world)) else AlgaeKind.HEALTHY
    if position is None:
        position = Vector2(
            rng.next_float() * max(0.0, bounds.width - 40.0),
            bounds.water_top + rng.next_float() * bounds.height * 0.5,
        )
    spot = Vector2(position)
    return world.registry.spawn(Species.ALGAE, lambda entity_id: Algae(id=entity_id, position=spot, kind=kind))


def _seafloor_y(world: World) -> float:
    return world.bounds.height - 30.0 + world.rng.jitter(30.0)


def add_seagrass(world: World, island: Optional[Island] = None) -> Optional[Seagrass]:
    bounds = world.bounds
    rng = world.rng
    if island is not None and island.alive:
        angle = rng.next_angle()
        reach = island.profile.seagrass_ring + 20.0 + rng.next_float() * 100.0
        x = _clamp_value(island.position.x + math.cos(angle) * reach, 10.0, max(10.0, bounds.width - 20.0))
    else:
        x = rng.next_float() * max(0.0, bounds.width - 20.0)
    spot = Vector2(x, _seafloor_y(world))
    return world.registry.spawn(Species.SEAGRASS, lambda entity_id: Seagrass(id=entity_id, position=spot))


def add_kelp(world: World) -> Optional[Kelp]:
    bounds = world.bounds
    spot = Vector2(
        world.rng.next_float() * max(0.0, bounds.width - 20.0),
        bounds.height - 60.0 - world.rng.next_float() * 60.0,
    )
    return world.registry.spawn(Species.KELP, lambda entity_id: Kelp(id=entity_id, position=spot))


def add_coral_reef(world: World) -> Optional[CoralReef]:
    bounds = world.bounds
    spot = Vector2(world.rng.next_float() * max(0.0, bounds.width - 60.0), bounds.height - 20.0)
    return world.registry.spawn(Species.CORAL_REEF, lambda entity_id: CoralReef(id=entity_id, position=spot))


def populate_initial(world: World) -> None:
    initial = world.config.initial
    rng = world.rng
    for _ in range(initial.ducks):
        add_duck(world)
    island_count = rng.next_between(initial.islands_min, max(initial.islands_min, initial.islands_max))
    for _ in range(island_count):
        add_island(world)
    for _ in range(initial.predators):
        add_predator(world)
    for _ in range(initial.fish):
        add_fish(world)
    for _ in range(initial.shrimp):
        add_food(world)
    creature_count = rng.next_between(
        initial.sea_creatures_min, max(initial.sea_creatures_min, initial.sea_creatures_max)
    )
    for _ in range(creature_count):
        add_sea_creature(world)
    for _ in range(initial.kelp):
        add_kelp(world)
    for _ in range(initial.algae):
        add_algae(world, kind=AlgaeKind.HEALTHY)
    logger.info("Initial population: %s", world.registry.counts())


class AmbientSpawner:
    """Timers that keep plants appearing while the simulation runs."""

    def __init__(self, config: SpawnConfig) -> None:
        self._config = config
        self.algae_timer = 0.0
        self.seagrass_timer = 0.0
        self.kelp_timer = 0.0

    def reset(self) -> None:
        self.algae_timer = 0.0
        self.seagrass_timer = 0.0
        self.kelp_timer = 0.0

    def update(self, world: World, dt: float) -> None:
        config = self._config
        if not config.enabled:
            return
        registry = world.registry
        self.algae_timer += dt
        if self.algae_timer >= max(config.min_algae_interval, config.algae_interval):
            self.algae_timer = 0.0
            if not registry.at_capacity(Species.ALGAE):
                add_algae(world)
        self.seagrass_timer += dt
        if self.seagrass_timer >= config.seagrass_interval:
            self.seagrass_timer = 0.0
            if not registry.at_capacity(Species.SEAGRASS):
                islands = registry.all(Species.ISLAND)
                near = bool(islands) and world.rng.chance(config.seagrass_near_island_chance)
                add_seagrass(world, island=world.rng.choice(islands) if near else None)
        self.kelp_timer += dt
        if self.kelp_timer >= config.kelp_interval:
            self.kelp_timer = 0.0
            if not registry.at_capacity(Species.KELP):
                add_kelp(world)


SPAWNERS: Dict[str, Callable[["World"], object]] = {
    "duck": add_duck,
    "predator": add_predator,
    "island": add_island,
    "fish": add_fish,
    "food": add_food,
    "sea_creature": add_sea_creature,
    "octopus": add_octopus,
    "elixir": add_elixir,
    "algae": add_algae,
    "seagrass": add_seagrass,
    "kelp": add_kelp,
    "coral_reef": add_coral_reef,
}
