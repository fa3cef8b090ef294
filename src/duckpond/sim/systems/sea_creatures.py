from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from ..core.entities import Kelp, SeaCreature, Species
from ..utils.math2d import _angle_between, _clamp_meter, _distance, _midpoint, _step_along
from . import reproduction, spawning
from .movement import drift_heading, steer_towards, swim

if TYPE_CHECKING:
    from ..core.world import World

HUNGER_DECAY = 0.5
FORAGE_CHANCE = 0.03
KELP_SIGHT = 60.0
KELP_REACH = 30.0
KELP_MEAL = 40.0
BREED_CHANCE = 0.01
BREED_HUNGER = 70.0
MATE_RADIUS = 80.0
BREEDING_COOLDOWN = 40.0
OFFSPRING_SPREAD = 50.0
DRIFT_CHANCE = 0.02
DRIFT_SPREAD = math.pi / 4
MOVE_SCALE = 20.0
EDGE_MARGIN = 50.0


def update_sea_creature(world: World, creature: SeaCreature, dt: float) -> None:
    creature.age += dt
    if creature.is_expired():
        world.log(f"{creature.label} died of old age")
        world.registry.destroy(creature, "old age")
        return

    template = creature.template
    if not template.mobile:
        world.render.on_update(creature)
        return

    creature.hunger = _clamp_meter(creature.hunger - HUNGER_DECAY * dt)
    creature.reproduction_cooldown = max(0.0, creature.reproduction_cooldown - dt)

    if template.eats_kelp and world.rng.chance(FORAGE_CHANCE):
        forage_kelp(world, creature)

    if (
        template.breedable
        and creature.hunger > BREED_HUNGER
        and creature.reproduction_cooldown <= 0.0
        and world.rng.chance(BREED_CHANCE)
    ):
        try_breed(world, creature)

    drift_heading(world, creature, DRIFT_CHANCE, DRIFT_SPREAD)
    amount = creature.speed * dt * MOVE_SCALE
    if not avoid_islands(world, creature, amount):
        swim(world, creature, amount, EDGE_MARGIN)
    world.render.on_update(creature)


def forage_kelp(world: World, creature: SeaCreature) -> None:
    kelp: Optional[Kelp] = None
    best = KELP_SIGHT
    for candidate in world.registry.all(Species.KELP):
        distance = _distance(creature.position, candidate.position)
        if distance < best:
            kelp = candidate
            best = distance
    if kelp is None:
        return
    steer_towards(creature, kelp.position)
    if best < KELP_REACH:
        creature.hunger = _clamp_meter(creature.hunger + KELP_MEAL)
        world.registry.destroy(kelp, f"eaten by {creature.label}")


def _is_partner(creature: SeaCreature, other: SeaCreature) -> bool:
    return other is not creature and other.kind is creature.kind and other.reproduction_cooldown <= 0.0


def try_breed(world: World, creature: SeaCreature) -> Optional[SeaCreature]:
    mate = world.registry.grid(Species.SEA_CREATURE).nearest(
        creature.position, MATE_RADIUS, lambda other: _is_partner(creature, other)
    )
    if mate is None:
        return None
    reproduction.reset_cooldowns("reproduction_cooldown", BREEDING_COOLDOWN, creature, mate)
    (spot,) = reproduction.offspring_positions(
        world.rng, _midpoint(creature.position, mate.position), 1, OFFSPRING_SPREAD
    )
    baby = spawning.add_sea_creature(world, kind=creature.kind, position=spot, announce=False)
    if baby is not None:
        world.log(f"{creature.label} and #{mate.id} had offspring! {creature.template.emoji}")
    return baby


def avoid_islands(world: World, creature: SeaCreature, amount: float) -> bool:
    """Turn away from an island the next step would enter; True when the step was cancelled.

    A creature already inside an island is pointed straight out and keeps moving.
    """
    islands = world.registry.all(Species.ISLAND)
    for island in islands:
        if island.contains(creature.position):
            creature.heading = _angle_between(island.position, creature.position)
            return False
    ahead = _step_along(creature.position, creature.heading, amount)
    for island in islands:
        if island.contains(ahead):
            creature.heading = _angle_between(island.position, creature.position) + world.rng.jitter(math.pi / 4)
            return True
    return False
