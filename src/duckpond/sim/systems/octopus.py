from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from ..core.entities import AlgaeKind, Elixir, Octopus, Species
from ..utils.math2d import _clamp_meter, _distance
from . import metrics, spawning
from .ducks import show_thought
from .movement import drift_heading, steer_towards, swim

if TYPE_CHECKING:
    from ..core.world import World

ELIXIR_CHANCE = 0.03
ELIXIR_SIGHT = 50.0
ELIXIR_REACH = 30.0
TICKLE_CHANCE = 0.02
TICKLE_RADIUS = 60.0
TICKLE_COOLDOWN = 5.0
TICKLE_SOCIAL = 10.0
PURIFICATION = 40.0
PURIFICATION_SEAGRASS = 3
PURIFICATION_STAGGER = 0.2
DRIFT_CHANCE = 0.02
DRIFT_SPREAD = math.pi / 4
MOVE_SCALE = 25.0
EDGE_MARGIN = 50.0
ELIXIR_GRAVITY = 150.0


def update_octopus(world: World, octopus: Octopus, dt: float) -> None:
    octopus.age += dt
    octopus.tickle_cooldown = max(0.0, octopus.tickle_cooldown - dt)
    drift_heading(world, octopus, DRIFT_CHANCE, DRIFT_SPREAD)

    if world.rng.chance(ELIXIR_CHANCE):
        elixir = _nearest_elixir(world, octopus)
        if elixir is not None:
            steer_towards(octopus, elixir.position)
            if _distance(octopus.position, elixir.position) < ELIXIR_REACH:
                open_elixir(world, octopus, elixir)

    if octopus.tickle_cooldown <= 0.0 and world.rng.chance(TICKLE_CHANCE):
        tickle(world, octopus)

    swim(world, octopus, octopus.speed * dt * MOVE_SCALE, EDGE_MARGIN)
    world.render.on_update(octopus)


def _nearest_elixir(world: World, octopus: Octopus) -> Optional[Elixir]:
    best = None
    best_distance = ELIXIR_SIGHT
    for elixir in world.registry.all(Species.ELIXIR):
        distance = _distance(octopus.position, elixir.position)
        if distance < best_distance:
            best = elixir
            best_distance = distance
    return best


def tickle(world: World, octopus: Octopus) -> bool:
    duck = world.registry.grid(Species.DUCK).nearest(octopus.position, TICKLE_RADIUS)
    if duck is None:
        return False
    duck.social = _clamp_meter(duck.social + TICKLE_SOCIAL)
    octopus.tickle_cooldown = TICKLE_COOLDOWN
    show_thought(world, duck, "Hehe! That tickles!")
    world.log(f"Octopus #{octopus.id} tickled Duck #{duck.id}'s feet!")
    return True


def open_elixir(world: World, octopus: Octopus, elixir: Elixir) -> int:
    """Purify the water; returns how many toxic algae were cleared."""
    world.log(f"Octopus #{octopus.id} opened an elixir!")
    toxic = [algae for algae in world.registry.all(Species.ALGAE) if algae.kind is AlgaeKind.TOXIC]
    for algae in toxic:
        world.registry.destroy(algae, "purified")
    metrics.add_pollution(world.ecosystem, -PURIFICATION)
    for index in range(PURIFICATION_SEAGRASS):
        world.deferred.schedule(
            index * PURIFICATION_STAGGER, lambda: spawning.add_seagrass(world), label="purification seagrass"
        )
    world.effect("purification", elixir.position)
    world.registry.destroy(elixir, "opened")
    return len(toxic)


def update_elixir(world: World, elixir: Elixir, dt: float) -> None:
    elixir.age += dt
    if not elixir.falling:
        return
    elixir.fall_velocity += ELIXIR_GRAVITY * dt
    y = elixir.position.y + elixir.fall_velocity * dt
    if y >= elixir.landing_y:
        world.registry.move(elixir, elixir.position.x, elixir.landing_y)
        elixir.falling = False
        elixir.fall_velocity = 0.0
        world.effect("splash", elixir.position)
    else:
        world.registry.move(elixir, elixir.position.x, y)
    world.render.on_update(elixir)
