from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Set

from pygame.math import Vector2


class Species(str, Enum):
    """Entity collections; the value doubles as the population cap key."""

    DUCK = "ducks"
    PREDATOR = "predators"
    SEA_CREATURE = "sea_creatures"
    FISH = "fish"
    SHRIMP = "shrimp"
    EGG = "eggs"
    ALGAE = "algae"
    OCTOPUS = "octopi"
    ELIXIR = "elixirs"
    ISLAND = "islands"
    KELP = "kelp"
    SEAGRASS = "seagrass"
    CORAL_REEF = "coral_reefs"


class DuckState(str, Enum):
    IDLE = "idle"
    SEEKING_FOOD = "seeking_food"
    SEEKING_FISH = "seeking_fish"
    SOCIALIZING = "socializing"
    BREEDING = "breeding"
    SEEKING_ISLAND = "seeking_island"
    RESTING = "resting"
    EXPLORING = "exploring"


class PredatorState(str, Enum):
    IDLE = "idle"
    HUNTING = "hunting"


class ShrimpPhase(str, Enum):
    FALLING = "falling"
    ENTERING_WATER = "entering_water"
    SWIMMING = "swimming"


class Personality(str, Enum):
    CURIOUS = "Curious"
    LAZY = "Lazy"
    SOCIAL = "Social"
    SHY = "Shy"
    BRAVE = "Brave"
    CAUTIOUS = "Cautious"
    ENERGETIC = "Energetic"
    CALM = "Calm"


class DuckColor(str, Enum):
    YELLOW = "Yellow"
    WHITE = "White"
    BROWN = "Brown"
    ORANGE = "Orange"
    GREEN = "Green"
    BLUE = "Blue"
    PINK = "Pink"
    PURPLE = "Purple"

    @property
    def hex(self) -> str:
        return _DUCK_COLOR_HEX[self]


_DUCK_COLOR_HEX: Dict[DuckColor, str] = {
    DuckColor.YELLOW: "#ffd700",
    DuckColor.WHITE: "#ffffff",
    DuckColor.BROWN: "#8b6f47",
    DuckColor.ORANGE: "#ff8c42",
    DuckColor.GREEN: "#4a7c59",
    DuckColor.BLUE: "#5b9bd5",
    DuckColor.PINK: "#ff69b4",
    DuckColor.PURPLE: "#9370db",
}


class Gender(str, Enum):
    MALE = "M"
    FEMALE = "F"


class PredatorKind(str, Enum):
    DOG = "dog"
    CAT = "cat"


class AlgaeKind(str, Enum):
    HEALTHY = "healthy"
    TOXIC = "toxic"


class IslandSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


@dataclass(frozen=True)
class IslandProfile:
    radius: float
    width: float
    min_separation: float
    seagrass_ring: float
    seagrass_patches: int


ISLAND_PROFILES: Dict[IslandSize, IslandProfile] = {
    IslandSize.SMALL: IslandProfile(radius=40.0, width=90.0, min_separation=150.0, seagrass_ring=50.0, seagrass_patches=2),
    IslandSize.MEDIUM: IslandProfile(radius=65.0, width=140.0, min_separation=200.0, seagrass_ring=80.0, seagrass_patches=3),
    IslandSize.LARGE: IslandProfile(radius=85.0, width=180.0, min_separation=250.0, seagrass_ring=110.0, seagrass_patches=4),
}


class SeaCreatureKind(str, Enum):
    SQUID = "Squid"
    SHARK = "Shark"
    SEAL = "Seal"
    OTTER = "Otter"
    PUFFERFISH = "Pufferfish"
    SHELL = "Shell"
    LOBSTER = "Lobster"
    TROPICAL_FISH = "Tropical Fish"
    CRAB = "Crab"
    DOLPHIN = "Dolphin"
    WHALE = "Whale"

    @property
    def template(self) -> "CreatureTemplate":
        return CREATURE_TEMPLATES[self]


@dataclass(frozen=True)
class CreatureTemplate:
    emoji: str
    speed: float
    size: float
    max_age: float
    eats_kelp: bool = False
    mobile: bool = True
    breedable: bool = True


CREATURE_TEMPLATES: Dict[SeaCreatureKind, CreatureTemplate] = {
    SeaCreatureKind.SQUID: CreatureTemplate("\U0001f991", speed=0.6, size=18, max_age=180),
    SeaCreatureKind.SHARK: CreatureTemplate("\U0001f988", speed=0.8, size=38, max_age=300),
    SeaCreatureKind.SEAL: CreatureTemplate("\U0001f9ad", speed=0.5, size=32, max_age=200),
    SeaCreatureKind.OTTER: CreatureTemplate("\U0001f9a6", speed=0.4, size=28, max_age=150),
    SeaCreatureKind.PUFFERFISH: CreatureTemplate("\U0001f421", speed=0.2, size=26, max_age=120),
    SeaCreatureKind.SHELL: CreatureTemplate(
        "\U0001f41a", speed=0.0, size=14, max_age=600, mobile=False, breedable=False
    ),
    SeaCreatureKind.LOBSTER: CreatureTemplate("\U0001f99e", speed=0.3, size=8, max_age=240, eats_kelp=True),
    SeaCreatureKind.TROPICAL_FISH: CreatureTemplate("\U0001f420", speed=0.7, size=16, max_age=100),
    SeaCreatureKind.CRAB: CreatureTemplate("\U0001f980", speed=0.25, size=6, max_age=180, eats_kelp=True),
    SeaCreatureKind.DOLPHIN: CreatureTemplate("\U0001f42c", speed=0.9, size=38, max_age=250),
    SeaCreatureKind.WHALE: CreatureTemplate("\U0001f433", speed=0.3, size=48, max_age=400),
}


@dataclass(slots=True, eq=False)
class Entity:
    SPECIES: ClassVar[Species]

    id: int
    position: Vector2
    age: float = 0.0
    max_age: float = math.inf
    alive: bool = True
    last_updated: float = 0.0

    @property
    def species(self) -> Species:
        return self.SPECIES

    @property
    def label(self) -> str:
        return f"{type(self).__name__} #{self.id}"

    def is_expired(self) -> bool:
        return self.age >= self.max_age


@dataclass(slots=True, eq=False)
class Duck(Entity):
    SPECIES: ClassVar[Species] = Species.DUCK

    state: DuckState = DuckState.IDLE
    hunger: float = 50.0
    energy: float = 75.0
    social: float = 50.0
    fertility: float = 0.0
    personality: Personality = Personality.CURIOUS
    gender: Gender = Gender.FEMALE
    color: DuckColor = DuckColor.YELLOW
    speed: float = 1.0
    mature: bool = False
    breeding_cooldown: float = 0.0
    on_island: bool = False
    meals_eaten: int = 0
    friends: Set[int] = field(default_factory=set)
    target: Optional[Entity] = None
    target_point: Optional[Vector2] = None
    think_timer: float = 0.0
    thought: Optional[str] = None
    thought_timer: float = 0.0

    def emotional_state(self) -> str:
        if self.hunger > 70 and self.energy > 70:
            return "happy"
        if self.hunger < 30:
            return "hungry"
        if self.energy < 30:
            return "tired"
        if self.social < 30:
            return "lonely"
        return "content"


@dataclass(slots=True, eq=False)
class Predator(Entity):
    SPECIES: ClassVar[Species] = Species.PREDATOR

    state: PredatorState = PredatorState.IDLE
    kind: PredatorKind = PredatorKind.DOG
    home: Optional["Island"] = None
    hunger: float = 65.0
    energy: float = 90.0
    gender: Gender = Gender.FEMALE
    speed: float = 1.2
    breeding_cooldown: float = 90.0
    can_breed: bool = False
    ducks_eaten: int = 0
    target: Optional[Entity] = None
    target_point: Optional[Vector2] = None
    think_timer: float = 0.0

    @property
    def label(self) -> str:
        return f"{self.kind.value.capitalize()} #{self.id}"


@dataclass(slots=True, eq=False)
class SeaCreature(Entity):
    SPECIES: ClassVar[Species] = Species.SEA_CREATURE

    kind: SeaCreatureKind = SeaCreatureKind.SQUID
    hunger: float = 75.0
    speed: float = 0.6
    heading: float = 0.0
    reproduction_cooldown: float = 40.0

    @property
    def template(self) -> CreatureTemplate:
        return CREATURE_TEMPLATES[self.kind]

    @property
    def label(self) -> str:
        return f"{self.kind.value} #{self.id}"


@dataclass(slots=True, eq=False)
class Fish(Entity):
    SPECIES: ClassVar[Species] = Species.FISH

    hunger: float = 75.0
    speed: float = 0.75
    heading: float = 0.0
    reproduction_cooldown: float = 20.0


@dataclass(slots=True, eq=False)
class Shrimp(Entity):
    SPECIES: ClassVar[Species] = Species.SHRIMP

    phase: ShrimpPhase = ShrimpPhase.FALLING
    baby: bool = False
    hunger: float = 50.0
    lifetime: float = 30.0
    reproduction_cooldown: float = 15.0
    fall_velocity: float = 0.0
    heading: float = 0.0
    swim_speed: float = 0.4


@dataclass(slots=True, eq=False)
class Egg(Entity):
    SPECIES: ClassVar[Species] = Species.EGG

    color: DuckColor = DuckColor.YELLOW
    hatch_timer: float = 15.0


@dataclass(slots=True, eq=False)
class Algae(Entity):
    SPECIES: ClassVar[Species] = Species.ALGAE

    kind: AlgaeKind = AlgaeKind.HEALTHY
    lifetime: float = 60.0

    @property
    def pollution_rate(self) -> float:
        return 0.5 if self.kind is AlgaeKind.TOXIC else -0.1


@dataclass(slots=True, eq=False)
class Octopus(Entity):
    SPECIES: ClassVar[Species] = Species.OCTOPUS

    speed: float = 1.0
    heading: float = 0.0
    tickle_cooldown: float = 0.0


@dataclass(slots=True, eq=False)
class Elixir(Entity):
    SPECIES: ClassVar[Species] = Species.ELIXIR

    falling: bool = True
    fall_velocity: float = 0.0
    landing_y: float = 0.0


@dataclass(slots=True, eq=False)
class Island(Entity):
    SPECIES: ClassVar[Species] = Species.ISLAND

    size: IslandSize = IslandSize.MEDIUM

    @property
    def profile(self) -> IslandProfile:
        return ISLAND_PROFILES[self.size]

    @property
    def radius(self) -> float:
        return ISLAND_PROFILES[self.size].radius

    def contains(self, point: Vector2) -> bool:
        return (point - self.position).length() < self.radius


@dataclass(slots=True, eq=False)
class Kelp(Entity):
    SPECIES: ClassVar[Species] = Species.KELP


@dataclass(slots=True, eq=False)
class Seagrass(Entity):
    SPECIES: ClassVar[Species] = Species.SEAGRASS


@dataclass(slots=True, eq=False)
class CoralReef(Entity):
    SPECIES: ClassVar[Species] = Species.CORAL_REEF


ENTITY_TYPES: Dict[Species, type] = {
    Species.DUCK: Duck,
    Species.PREDATOR: Predator,
    Species.SEA_CREATURE: SeaCreature,
    Species.FISH: Fish,
    Species.SHRIMP: Shrimp,
    Species.EGG: Egg,
    Species.ALGAE: Algae,
    Species.OCTOPUS: Octopus,
    Species.ELIXIR: Elixir,
    Species.ISLAND: Island,
    Species.KELP: Kelp,
    Species.SEAGRASS: Seagrass,
    Species.CORAL_REEF: CoralReef,
}

SPATIAL_SPECIES: List[Species] = [Species.DUCK, Species.FISH, Species.SHRIMP, Species.SEA_CREATURE]
