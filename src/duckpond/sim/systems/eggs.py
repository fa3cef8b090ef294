from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..core.entities import Duck, Egg, Gender
from . import spawning

if TYPE_CHECKING:
    from ..core.world import World


def update_egg(world: World, egg: Egg, dt: float) -> None:
    egg.age += dt
    egg.hatch_timer -= dt
    if egg.hatch_timer <= 0.0:
        hatch(world, egg)
    else:
        world.render.on_update(egg)


def hatch(world: World, egg: Egg) -> Optional[Duck]:
    """Turn the egg into a duckling of the parents' colour; the egg is consumed either way."""
    if not egg.alive:
        return None
    position = egg.position
    world.registry.destroy(egg, "hatched")
    world.effect("hatch", position)
    duckling = spawning.add_duck(world, color=egg.color, position=position, announce=False)
    if duckling is None:
        world.log(f"Egg #{egg.id} could not hatch: the pond is full")
        return None
    gender = "male" if duckling.gender is Gender.MALE else "female"
    world.log(f"An egg hatched! Welcome {duckling.color.value} {gender} Duck #{duckling.id}!")
    return duckling
