from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from ..core.entities import Algae, Entity, Fish, Species
from ..utils.math2d import _clamp_meter, _distance, _midpoint
from . import reproduction, spawning
from .movement import drift_heading, steer_towards, swim

if TYPE_CHECKING:
    from ..core.world import World

HUNGER_DECAY = 1.0
FORAGE_CHANCE = 0.03
ALGAE_SIGHT = 60.0
ALGAE_REACH = 30.0
ALGAE_MEAL = 30.0
BREED_CHANCE = 0.01
BREED_HUNGER = 70.0
MATE_RADIUS = 80.0
BREEDING_COOLDOWN = 30.0
OFFSPRING_SPREAD = 50.0
DRIFT_CHANCE = 0.02
DRIFT_SPREAD = math.pi / 4
MOVE_SCALE = 30.0
EDGE_MARGIN = 50.0


def update_fish(world: World, fish: Fish, dt: float) -> None:
    fish.age += dt
    fish.hunger = _clamp_meter(fish.hunger - HUNGER_DECAY * dt)
    fish.reproduction_cooldown = max(0.0, fish.reproduction_cooldown - dt)

    drift_heading(world, fish, DRIFT_CHANCE, DRIFT_SPREAD)
    if world.rng.chance(FORAGE_CHANCE):
        forage_algae(world, fish)
    if fish.hunger > BREED_HUNGER and fish.reproduction_cooldown <= 0.0 and world.rng.chance(BREED_CHANCE):
        try_breed(world, fish)

    swim(world, fish, fish.speed * dt * MOVE_SCALE, EDGE_MARGIN)
    world.render.on_update(fish)


def nearest_algae(world: World, grazer: Entity, sight: float) -> Optional[Algae]:
    best = None
    best_distance = sight
    for algae in world.registry.all(Species.ALGAE):
        distance = _distance(grazer.position, algae.position)
        if distance < best_distance:
            best = algae
            best_distance = distance
    return best


def forage_algae(world: World, fish: Fish) -> None:
    algae = nearest_algae(world, fish, ALGAE_SIGHT)
    if algae is None:
        return
    steer_towards(fish, algae.position)
    if _distance(fish.position, algae.position) < ALGAE_REACH:
        fish.hunger = _clamp_meter(fish.hunger + ALGAE_MEAL)
        world.registry.destroy(algae, f"eaten by Fish #{fish.id}")


def try_breed(world: World, fish: Fish) -> Optional[Fish]:
    mate = world.registry.grid(Species.FISH).nearest(
        fish.position, MATE_RADIUS, lambda other: other is not fish and other.reproduction_cooldown <= 0.0
    )
    if mate is None:
        return None
    reproduction.reset_cooldowns("reproduction_cooldown", BREEDING_COOLDOWN, fish, mate)
    (spot,) = reproduction.offspring_positions(world.rng, _midpoint(fish.position, mate.position), 1, OFFSPRING_SPREAD)
    baby = spawning.add_fish_at(world, spot.x, spot.y)
    if baby is not None:
        world.log(f"Fish #{fish.id} and Fish #{mate.id} had a baby!")
    return baby
