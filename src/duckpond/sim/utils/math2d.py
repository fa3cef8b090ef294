from __future__ import annotations

import math

from pygame.math import Vector2


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _clamp_meter(value: float) -> float:
    return _clamp_value(value, 0.0, 100.0)


def _distance(a: Vector2, b: Vector2) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def _midpoint(a: Vector2, b: Vector2) -> Vector2:
    return Vector2((a.x + b.x) * 0.5, (a.y + b.y) * 0.5)


def _step_along(position: Vector2, heading: float, amount: float) -> Vector2:
    return Vector2(position.x + math.cos(heading) * amount, position.y + math.sin(heading) * amount)


def _step_towards(position: Vector2, target: Vector2, amount: float) -> Vector2 | None:
    """Return the position moved `amount` towards `target`, or None when already there."""
    dx = target.x - position.x
    dy = target.y - position.y
    dist = math.hypot(dx, dy)
    if dist <= 0.0:
        return None
    if amount >= dist:
        return Vector2(target)
    return Vector2(position.x + dx / dist * amount, position.y + dy / dist * amount)


def _angle_between(origin: Vector2, target: Vector2) -> float:
    return math.atan2(target.y - origin.y, target.x - origin.x)
