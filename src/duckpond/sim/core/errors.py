from __future__ import annotations


class DuckPondError(Exception):
    """Base class for every error raised by the simulation package."""


class ConfigurationError(DuckPondError):
    """Configuration could not be loaded or holds invalid values."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        if key:
            message = f"{key}: {message}"
        super().__init__(message)


class SpawnError(DuckPondError):
    """Raised by explicit entity lookups (hatching, petting) that name a missing entity."""

    def __init__(self, species: str, entity_id: int) -> None:
        self.species = species
        self.entity_id = entity_id
        super().__init__(f"No live {species} with id {entity_id}")
