from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, TypeVar

from pygame.math import Vector2

from .config import PopulationCaps
from .entities import SPATIAL_SPECIES, Entity, Species
from .observers import EventLog, NullRenderSink, RenderSink
from .spatial_grid import SpatialGrid

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class EntityRegistry:
    """Owns every live entity, grouped by species.

    Ids come from one counter per species and are never handed out twice.
    Species in SPATIAL_SPECIES also get a SpatialGrid; an entity of such a
    species is indexed unless it was spawned with ``indexed=False`` (falling
    shrimp) and later admitted.
    """

    def __init__(
        self,
        caps: PopulationCaps,
        cell_size: float,
        render: RenderSink | None = None,
        event_log: EventLog | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._caps = caps
        self._render = render or NullRenderSink()
        self._event_log = event_log or EventLog()
        self._clock = clock or (lambda: 0.0)
        self._collections: Dict[Species, List[Entity]] = {species: [] for species in Species}
        self._by_id: Dict[Species, Dict[int, Entity]] = {species: {} for species in Species}
        self._next_ids: Dict[Species, int] = {species: 1 for species in Species}
        self._grids: Dict[Species, SpatialGrid] = {species: SpatialGrid(cell_size) for species in SPATIAL_SPECIES}
        self.births = 0
        self.deaths = 0
        self.rejections = 0

    def clear(self) -> None:
        for species in Species:
            self._collections[species].clear()
            self._by_id[species].clear()
        for grid in self._grids.values():
            grid.clear()
        self.births = 0
        self.deaths = 0
        self.rejections = 0

    def reset_counters(self) -> None:
        self.births = 0
        self.deaths = 0

    def all(self, species: Species) -> List[Entity]:
        return self._collections[species]

    def count(self, species: Species) -> int:
        return len(self._collections[species])

    def counts(self) -> Dict[str, int]:
        return {species.value: len(items) for species, items in self._collections.items()}

    def total(self) -> int:
        return sum(len(items) for items in self._collections.values())

    def get(self, species: Species, entity_id: int) -> Optional[Entity]:
        return self._by_id[species].get(entity_id)

    def contains(self, entity: Entity) -> bool:
        return self._by_id[entity.species].get(entity.id) is entity

    def grid(self, species: Species) -> SpatialGrid:
        return self._grids[species]

    def peek_next_id(self, species: Species) -> int:
        return self._next_ids[species]

    def at_capacity(self, species: Species) -> bool:
        return len(self._collections[species]) >= self._caps.limit(species.value)

    def check_capacity(self, species: Species) -> bool:
        """True when one more entity fits; otherwise logs the rejection."""
        if not self.at_capacity(species):
            return True
        self.rejections += 1
        self._event_log.record(
            f"Max {species.value.replace('_', ' ')} reached ({self._caps.limit(species.value)})!",
            self._clock(),
        )
        return False

    def spawn(self, species: Species, build: Callable[[int], E], indexed: bool = True) -> Optional[E]:
        """Create an entity through `build(id)` unless the species is at its cap."""
        if not self.check_capacity(species):
            return None
        entity_id = self._next_ids[species]
        self._next_ids[species] = entity_id + 1
        entity = build(entity_id)
        entity.last_updated = self._clock()
        self._collections[species].append(entity)
        self._by_id[species][entity_id] = entity
        if indexed and species in self._grids:
            self._grids[species].insert(entity)
        self.births += 1
        self._render.on_create(entity)
        return entity

    def admit(self, entity: Entity) -> None:
        """Index an entity that was stored without a grid entry."""
        grid = self._grids.get(entity.species)
        if grid is not None and entity.alive:
            grid.insert(entity)

    def is_indexed(self, entity: Entity) -> bool:
        grid = self._grids.get(entity.species)
        return grid is not None and entity in grid

    def move(self, entity: Entity, x: float, y: float) -> None:
        entity.position = Vector2(x, y)
        grid = self._grids.get(entity.species)
        if grid is not None:
            grid.relocate(entity)

    def destroy(self, entity: Entity, cause: str = "") -> bool:
        """Remove `entity` everywhere; a second call for the same entity is a no-op."""
        if not entity.alive:
            return False
        entity.alive = False
        species = entity.species
        self._by_id[species].pop(entity.id, None)
        collection = self._collections[species]
        try:
            collection.remove(entity)
        except ValueError:
            logger.warning("%s was alive but missing from its collection", entity.label)
        grid = self._grids.get(species)
        if grid is not None:
            grid.remove(entity)
        self.deaths += 1
        if cause:
            logger.debug("%s destroyed (%s)", entity.label, cause)
        self._render.on_destroy(entity)
        return True
