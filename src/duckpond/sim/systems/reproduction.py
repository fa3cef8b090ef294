from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Callable, List

from pygame.math import Vector2

from ..core.entities import Entity, Gender
from ..core.rng import SimulationRng

if TYPE_CHECKING:
    from ..core.world import World


def offspring_positions(rng: SimulationRng, origin: Vector2, count: int, spread: float) -> List[Vector2]:
    # Every jitter is drawn at breeding time so later ticks cannot change the litter.
    return [Vector2(origin.x + rng.jitter(spread), origin.y + rng.jitter(spread)) for _ in range(count)]


def reset_cooldowns(attribute: str, value: float, *parents: Entity) -> None:
    for parent in parents:
        setattr(parent, attribute, value)


def genders_compatible(first: Gender, second: Gender) -> bool:
    return first != second


def duck_clutch_size(average_fertility: float) -> int:
    if average_fertility > 75:
        return 3
    if average_fertility > 50:
        return 2
    return 1


def island_clutch_size(fertility: float) -> int:
    return int(fertility // 25) + 1


def schedule_offspring(
    world: World,
    positions: List[Vector2],
    stagger: float,
    spawn: Callable[[Vector2], object],
    label: str = "offspring",
) -> None:
    for index, position in enumerate(positions):
        world.deferred.schedule(index * stagger, partial(spawn, position), label=label)
