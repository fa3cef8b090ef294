from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from pygame.math import Vector2

if TYPE_CHECKING:
    from .entities import Entity


class SpatialGrid:
    """Uniform grid keyed by (floor(x / cell), floor(y / cell)).

    `query_radius` is over-inclusive: it returns everything stored in the square
    block of cells covering the radius and leaves the exact distance test to the
    caller. Each stored entity remembers the key it was filed under so removal
    and relocation never scan other cells.
    """

    def __init__(self, cell_size: float) -> None:
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List["Entity"]] = {}
        self._keys: Dict[int, Tuple[int, int]] = {}

    @property
    def cell_size(self) -> float:
        return self._cell_size

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, entity: "Entity") -> bool:
        return id(entity) in self._keys

    def clear(self) -> None:
        self._cells.clear()
        self._keys.clear()

    def insert(self, entity: "Entity") -> None:
        if id(entity) in self._keys:
            return
        key = self._cell_key(entity.position)
        self._cells.setdefault(key, []).append(entity)
        self._keys[id(entity)] = key

    def remove(self, entity: "Entity") -> bool:
        key = self._keys.pop(id(entity), None)
        if key is None:
            return False
        self._drop_from_bucket(key, entity)
        return True

    def relocate(self, entity: "Entity") -> None:
        """Refile `entity` after its position changed; a no-op while the cell key is unchanged."""
        old_key = self._keys.get(id(entity))
        if old_key is None:
            return
        new_key = self._cell_key(entity.position)
        if new_key == old_key:
            return
        self._drop_from_bucket(old_key, entity)
        self._cells.setdefault(new_key, []).append(entity)
        self._keys[id(entity)] = new_key

    def key_of(self, entity: "Entity") -> Optional[Tuple[int, int]]:
        return self._keys.get(id(entity))

    def query_radius(self, position: Vector2, radius: float) -> List["Entity"]:
        base_x, base_y = self._cell_key(position)
        cell_range = int(math.ceil(radius / self._cell_size))
        found: List["Entity"] = []
        cells = self._cells
        for dx in range(-cell_range, cell_range + 1):
            for dy in range(-cell_range, cell_range + 1):
                bucket = cells.get((base_x + dx, base_y + dy))
                if bucket:
                    found.extend(bucket)
        return found

    def nearest(
        self,
        position: Vector2,
        radius: float,
        predicate: Optional[Callable[["Entity"], bool]] = None,
    ) -> Optional["Entity"]:
        best = None
        best_dist_sq = radius * radius
        pos_x = position.x
        pos_y = position.y
        for entity in self.query_radius(position, radius):
            if not entity.alive:
                continue
            if predicate is not None and not predicate(entity):
                continue
            offset_x = entity.position.x - pos_x
            offset_y = entity.position.y - pos_y
            dist_sq = offset_x * offset_x + offset_y * offset_y
            if dist_sq <= best_dist_sq:
                best = entity
                best_dist_sq = dist_sq
        return best

    def within(self, position: Vector2, radius: float) -> List["Entity"]:
        radius_sq = radius * radius
        return [
            entity
            for entity in self.query_radius(position, radius)
            if entity.alive and (entity.position - position).length_squared() <= radius_sq
        ]

    def _drop_from_bucket(self, key: Tuple[int, int], entity: "Entity") -> None:
        bucket = self._cells.get(key)
        if not bucket:
            return
        for index, stored in enumerate(bucket):
            if stored is entity:
                bucket[index] = bucket[-1]
                bucket.pop()
                break
        if not bucket:
            del self._cells[key]

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(position.x // self._cell_size), int(position.y // self._cell_size))
