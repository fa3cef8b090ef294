from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from pygame.math import Vector2

from ..core.entities import Entity
from ..utils.math2d import _angle_between, _clamp_value, _distance, _step_along, _step_towards

if TYPE_CHECKING:
    from ..core.world import World


def distance_to(entity: Entity, target: Optional[Entity]) -> float:
    """Distance to another entity; infinite when the target is missing or destroyed."""
    if target is None or not target.alive:
        return math.inf
    return _distance(entity.position, target.position)


def move_towards(world: World, entity: Entity, target: Vector2, amount: float) -> float:
    """Step `entity` up to `amount` units towards `target`; returns the remaining distance."""
    moved = _step_towards(entity.position, target, amount)
    if moved is not None:
        world.registry.move(entity, moved.x, moved.y)
    return _distance(entity.position, target)


def steer_towards(entity: Entity, target: Vector2) -> None:
    entity.heading = _angle_between(entity.position, target)


def drift_heading(world: World, entity: Entity, probability: float, spread: float) -> None:
    if world.rng.chance(probability):
        entity.heading += world.rng.jitter(spread)


def swim(world: World, entity: Entity, amount: float, margin: float) -> None:
    """Advance along the heading inside the water column, bouncing off its edges."""
    bounds = world.bounds
    step = _step_along(entity.position, entity.heading, amount)
    max_x = max(0.0, bounds.width - margin)
    min_y = bounds.water_top
    max_y = max(min_y, bounds.height - margin)
    if step.x < 0 or step.x > max_x:
        entity.heading = math.pi - entity.heading
    if step.y < min_y or step.y > max_y:
        entity.heading = -entity.heading
    world.registry.move(entity, _clamp_value(step.x, 0.0, max_x), _clamp_value(step.y, min_y, max_y))
