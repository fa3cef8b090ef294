from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.entities import Algae, Seagrass
from . import metrics

if TYPE_CHECKING:
    from ..core.world import World

SEAGRASS_CLEANING_RATE = 0.05


def update_algae(world: World, algae: Algae, dt: float) -> None:
    algae.age += dt
    algae.lifetime -= dt
    metrics.add_pollution(world.ecosystem, algae.pollution_rate * dt)
    if algae.lifetime <= 0.0:
        world.registry.destroy(algae, "withered")
        return
    world.render.on_update(algae)


def update_seagrass(world: World, seagrass: Seagrass, dt: float) -> None:
    seagrass.age += dt
    metrics.add_pollution(world.ecosystem, -SEAGRASS_CLEANING_RATE * dt)
