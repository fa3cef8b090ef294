from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pygame.math import Vector2

from ..core.entities import Duck, Predator, PredatorState, Species
from ..utils.math2d import _clamp_meter, _distance, _midpoint
from . import reproduction, spawning
from .movement import distance_to, move_towards

if TYPE_CHECKING:
    from ..core.world import World

HUNGER_DECAY = 1.2
ENERGY_DECAY = 0.4
HUNT_THRESHOLD = 40.0
HUNT_RADIUS = 300.0
CATCH_REACH = 30.0
MOVE_SCALE = 50.0
STROLL_CHANCE = 0.02
STROLL_SPREAD = 60.0

BREEDING_COOLDOWN = 90.0
MATE_RADIUS = 100.0
OFFSPRING_SPREAD = 40.0
OFFSPRING_STAGGER = 0.3


def update_predator(world: World, predator: Predator, dt: float) -> None:
    predator.age += dt
    if predator.is_expired():
        world.log(f"{predator.label} died of old age")
        world.registry.destroy(predator, "old age")
        return

    predator.hunger = _clamp_meter(predator.hunger - HUNGER_DECAY * dt)
    predator.energy = _clamp_meter(predator.energy - ENERGY_DECAY * dt)
    predator.breeding_cooldown = max(0.0, predator.breeding_cooldown - dt)
    if predator.ducks_eaten > 0 and predator.breeding_cooldown <= 0.0:
        predator.can_breed = True

    predator.think_timer -= dt
    if predator.think_timer <= 0.0:
        predator.think_timer = world.config.scheduler.think_cooldown
        think(world, predator)

    if predator.alive:
        execute_behavior(world, predator, dt)
        world.render.on_update(predator)


def is_ready_to_breed(predator: Predator) -> bool:
    return predator.alive and predator.can_breed and predator.breeding_cooldown <= 0.0 and predator.hunger > 50


def think(world: World, predator: Predator) -> None:
    if predator.state is PredatorState.HUNTING and (predator.target is None or not predator.target.alive):
        predator.target = None
        predator.state = PredatorState.IDLE

    if predator.hunger < HUNT_THRESHOLD and predator.state is not PredatorState.HUNTING:
        prey = world.registry.grid(Species.DUCK).nearest(predator.position, HUNT_RADIUS)
        if prey is not None:
            predator.target = prey
            predator.target_point = None
            predator.state = PredatorState.HUNTING

    if is_ready_to_breed(predator):
        mate = find_mate(world, predator)
        if mate is not None:
            breed(world, predator, mate)


def find_mate(world: World, predator: Predator) -> Optional[Predator]:
    best = None
    best_distance = MATE_RADIUS
    for other in world.registry.all(Species.PREDATOR):
        if other is predator or other.kind is not predator.kind or other.gender == predator.gender:
            continue
        if not is_ready_to_breed(other):
            continue
        distance = _distance(predator.position, other.position)
        if distance < best_distance:
            best = other
            best_distance = distance
    return best


def breed(world: World, predator: Predator, mate: Predator) -> int:
    if not reproduction.genders_compatible(predator.gender, mate.gender):
        return 0
    reproduction.reset_cooldowns("breeding_cooldown", BREEDING_COOLDOWN, predator, mate)
    predator.can_breed = False
    mate.can_breed = False
    litter = world.rng.next_between(1, 2)
    positions = reproduction.offspring_positions(
        world.rng, _midpoint(predator.position, mate.position), litter, OFFSPRING_SPREAD
    )
    kind = predator.kind
    home = predator.home
    reproduction.schedule_offspring(
        world,
        positions,
        OFFSPRING_STAGGER,
        lambda spot: spawning.spawn_predator(world, kind, home, spot),
        label="predator offspring",
    )
    world.log(f"{predator.label} and #{mate.id} had {litter} offspring!")
    return litter


def execute_behavior(world: World, predator: Predator, dt: float) -> None:
    step = predator.speed * dt * MOVE_SCALE
    if predator.state is PredatorState.HUNTING:
        prey = predator.target
        distance = distance_to(predator, prey)
        if distance < CATCH_REACH:
            catch_duck(world, predator, prey)
        elif prey is not None and prey.alive:
            move_towards(world, predator, prey.position, step)
        return

    if predator.target_point is None and world.rng.chance(STROLL_CHANCE):
        anchor = predator.home.position if predator.home is not None else predator.position
        predator.target_point = Vector2(
            anchor.x + world.rng.jitter(STROLL_SPREAD), anchor.y + world.rng.jitter(STROLL_SPREAD)
        )
    if predator.target_point is not None:
        if move_towards(world, predator, predator.target_point, step) <= 5.0:
            predator.target_point = None


def catch_duck(world: World, predator: Predator, duck: Duck) -> None:
    predator.hunger = _clamp_meter(predator.hunger + 60.0)
    predator.energy = _clamp_meter(predator.energy + 20.0)
    predator.ducks_eaten += 1
    world.log(f"{predator.label} caught Duck #{duck.id}!")
    world.registry.destroy(duck, f"caught by {predator.label}")
    predator.target = None
    predator.state = PredatorState.IDLE
