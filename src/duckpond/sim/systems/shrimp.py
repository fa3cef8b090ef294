from __future__ import annotations

import math
from typing import TYPE_CHECKING

from ..core.entities import Shrimp, ShrimpPhase, Species
from ..utils.math2d import _clamp_meter, _midpoint
from . import reproduction, spawning
from .fish import nearest_algae
from .movement import drift_heading, swim

if TYPE_CHECKING:
    from ..core.world import World

GRAVITY = 300.0
SURFACE_OFFSET = 10.0
GROWN_UP_AGE = 10.0
HUNGER_DECAY = 0.5
DRIFT_CHANCE = 0.02
DRIFT_SPREAD = math.pi / 3
MOVE_SCALE = 25.0
EDGE_MARGIN = 30.0
GRAZE_CHANCE = 0.02
ALGAE_SIGHT = 50.0
ALGAE_MEAL = 25.0
ALGAE_LIFETIME_BONUS = 5.0
BREED_CHANCE = 0.01
BREED_HUNGER = 60.0
MATE_RADIUS = 60.0
BREEDING_COOLDOWN = 20.0
LITTER_SPREAD = 40.0


def update_shrimp(world: World, shrimp: Shrimp, dt: float) -> None:
    shrimp.age += dt
    shrimp.lifetime -= dt
    if shrimp.lifetime <= 0.0:
        world.registry.destroy(shrimp, "expired")
        return

    if shrimp.baby and shrimp.age >= GROWN_UP_AGE:
        shrimp.baby = False
        world.log(f"Baby shrimp #{shrimp.id} grew up!")

    if shrimp.phase is ShrimpPhase.FALLING:
        fall(world, shrimp, dt)
    else:
        shrimp.phase = ShrimpPhase.SWIMMING
        swim_and_feed(world, shrimp, dt)
    if shrimp.alive:
        world.render.on_update(shrimp)


def fall(world: World, shrimp: Shrimp, dt: float) -> None:
    surface = world.bounds.water_surface
    shrimp.fall_velocity += GRAVITY * dt
    y = shrimp.position.y + shrimp.fall_velocity * dt
    if y < surface:
        world.registry.move(shrimp, shrimp.position.x, y)
        return
    world.registry.move(shrimp, shrimp.position.x, surface + SURFACE_OFFSET)
    shrimp.fall_velocity = 0.0
    shrimp.phase = ShrimpPhase.ENTERING_WATER
    world.registry.admit(shrimp)
    world.effect("splash", shrimp.position)
    world.log(f"Shrimp #{shrimp.id} splashed into the water!")


def swim_and_feed(world: World, shrimp: Shrimp, dt: float) -> None:
    drift_heading(world, shrimp, DRIFT_CHANCE, DRIFT_SPREAD)
    swim(world, shrimp, shrimp.swim_speed * dt * MOVE_SCALE, EDGE_MARGIN)
    shrimp.hunger = _clamp_meter(shrimp.hunger - HUNGER_DECAY * dt)
    shrimp.reproduction_cooldown = max(0.0, shrimp.reproduction_cooldown - dt)

    if world.rng.chance(GRAZE_CHANCE):
        algae = nearest_algae(world, shrimp, ALGAE_SIGHT)
        if algae is not None:
            shrimp.hunger = _clamp_meter(shrimp.hunger + ALGAE_MEAL)
            shrimp.lifetime += ALGAE_LIFETIME_BONUS
            world.registry.destroy(algae, f"eaten by Shrimp #{shrimp.id}")

    if (
        not shrimp.baby
        and shrimp.hunger > BREED_HUNGER
        and shrimp.reproduction_cooldown <= 0.0
        and world.rng.chance(BREED_CHANCE)
    ):
        try_breed(world, shrimp)


def _is_partner(shrimp: Shrimp, other: Shrimp) -> bool:
    return other is not shrimp and not other.baby and other.reproduction_cooldown <= 0.0


def try_breed(world: World, shrimp: Shrimp) -> int:
    mate = world.registry.grid(Species.SHRIMP).nearest(
        shrimp.position, MATE_RADIUS, lambda other: _is_partner(shrimp, other)
    )
    if mate is None:
        return 0
    reproduction.reset_cooldowns("reproduction_cooldown", BREEDING_COOLDOWN, shrimp, mate)
    litter = world.rng.next_between(1, 3)
    center = _midpoint(shrimp.position, mate.position)
    for spot in reproduction.offspring_positions(world.rng, center, litter, LITTER_SPREAD):
        spawning.add_baby_shrimp(world, spot.x, spot.y)
    world.log(f"Shrimp #{shrimp.id} and #{mate.id} had {litter} baby shrimp!")
    return litter
