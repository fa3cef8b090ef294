"""Duck behaviour: needs, a throttled decision step and per-state actions.

Decision order on each think:

1. fertile, well-fed ducks head for the nearest island to lay eggs;
2. otherwise a fed, rested duck looks for an eligible mate nearby;
3. otherwise the most urgent need wins (ties resolve hunger, energy, social);
4. with nothing pressing a duck sometimes wanders off to explore.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from pygame.math import Vector2

from ..core.entities import Duck, DuckState, Entity, Fish, Island, Personality, Shrimp, Species
from ..utils.math2d import _clamp_meter, _distance, _midpoint
from . import reproduction, spawning
from .movement import distance_to, move_towards

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)

MATURITY_AGE = 10.0
HUNGER_DECAY = 0.8
ENERGY_DECAY = 0.5
SOCIAL_DECAY = 0.3
REST_RECOVERY = 3.0
REST_UNTIL = 80.0

MATE_RADIUS = 200.0
EXPLORE_CHANCE = 0.3
URGENT_NEED = 40.0

FOOD_REACH = 30.0
FISH_REACH = 40.0
SOCIAL_REACH = 50.0
BREED_REACH = 50.0
ISLAND_REACH = 60.0
EXPLORE_ARRIVAL = 10.0
FISH_CHASE_BOOST = 1.3
MOVE_SCALE = 60.0

BREEDING_COOLDOWN = 30.0
BREEDING_FERTILITY_COST = 30.0
EGG_SPREAD = 40.0
EGG_STAGGER = 0.3
ISLAND_COOLDOWN = 40.0
ISLAND_FERTILITY_COST = 50.0
ISLAND_EGG_SPREAD = (60.0, 40.0)
ISLAND_EGG_STAGGER = 0.4
ISLAND_STAY = 3.0

# Fixed tie-break order for equally urgent needs.
NEED_PRIORITY: Tuple[str, ...] = ("hunger", "energy", "social")


def update_duck(world: World, duck: Duck, dt: float) -> None:
    duck.age += dt
    if duck.is_expired():
        world.log(f"Duck #{duck.id} died of old age")
        world.registry.destroy(duck, "old age")
        return

    if not duck.mature and duck.age >= MATURITY_AGE:
        duck.mature = True
        show_thought(world, duck, "I'm mature now!")

    duck.breeding_cooldown = max(0.0, duck.breeding_cooldown - dt)
    duck.hunger = _clamp_meter(duck.hunger - HUNGER_DECAY * dt)
    duck.energy = _clamp_meter(duck.energy - ENERGY_DECAY * dt)
    duck.social = _clamp_meter(duck.social - SOCIAL_DECAY * dt)

    duck.think_timer -= dt
    if duck.think_timer <= 0.0:
        duck.think_timer = world.config.scheduler.think_cooldown
        think(world, duck)

    execute_behavior(world, duck, dt)

    if duck.thought is not None:
        duck.thought_timer -= dt
        if duck.thought_timer <= 0.0:
            duck.thought = None

    if duck.alive:
        world.render.on_update(duck)


def can_breed(duck: Duck) -> bool:
    return duck.alive and duck.mature and duck.breeding_cooldown <= 0.0


def is_eligible_mate(duck: Duck, other: Duck) -> bool:
    return (
        other is not duck
        and can_breed(other)
        and other.gender != duck.gender
        and other.hunger > 50
        and other.energy > 50
        and not other.on_island
    )


def urgent_needs(duck: Duck) -> List[Tuple[str, float]]:
    needs = {
        "hunger": 100.0 - duck.hunger,
        "energy": 100.0 - duck.energy,
        "social": 100.0 - duck.social,
    }
    if duck.personality is Personality.LAZY:
        needs["energy"] *= 1.5
    if duck.personality is Personality.SOCIAL:
        needs["social"] *= 2.0
    return [(name, needs[name]) for name in NEED_PRIORITY]


def most_urgent_need(duck: Duck) -> Optional[str]:
    best_name = None
    best_value = URGENT_NEED
    for name, value in urgent_needs(duck):
        # Strict comparison keeps the earlier need on ties.
        if value >= URGENT_NEED and (best_name is None or value > best_value):
            best_name = name
            best_value = value
    return best_name


def think(world: World, duck: Duck) -> None:
    if duck.target is not None and not duck.target.alive:
        duck.target = None
        if duck.state is not DuckState.SEEKING_ISLAND:
            duck.state = DuckState.IDLE
    if duck.on_island:
        return

    registry = world.registry
    if can_breed(duck) and duck.hunger > 60 and duck.energy > 60 and duck.fertility > 70:
        island = _nearest_island(world, duck.position)
        if island is not None:
            if duck.state is not DuckState.SEEKING_ISLAND:
                show_thought(world, duck, "Going to lay eggs!")
            duck.target = island
            duck.target_point = None
            duck.state = DuckState.SEEKING_ISLAND
            return

    if can_breed(duck) and duck.hunger > 50 and duck.energy > 50:
        mate = registry.grid(Species.DUCK).nearest(
            duck.position, MATE_RADIUS, lambda other: is_eligible_mate(duck, other)
        )
        if mate is not None:
            duck.target = mate
            duck.target_point = None
            duck.state = DuckState.BREEDING
            show_thought(world, duck, "Time to breed!")
            return

    need = most_urgent_need(duck)
    if need == "hunger":
        _seek_meal(world, duck)
    elif need == "energy":
        duck.target = None
        duck.target_point = None
        duck.state = DuckState.RESTING
        show_thought(world, duck, "Taking a nap...")
    elif need == "social":
        _seek_company(world, duck)
    elif duck.state is DuckState.IDLE and world.rng.chance(EXPLORE_CHANCE):
        _start_exploring(world, duck)


def _nearest_island(world: World, position: Vector2) -> Optional[Island]:
    islands = world.registry.all(Species.ISLAND)
    if not islands:
        return None
    return min(islands, key=lambda island: _distance(position, island.position))


def _seek_meal(world: World, duck: Duck) -> None:
    if duck.state in (DuckState.SEEKING_FOOD, DuckState.SEEKING_FISH) and duck.target is not None:
        return
    radius = world.config.forage_radius
    registry = world.registry
    food: Optional[Shrimp] = registry.grid(Species.SHRIMP).nearest(duck.position, radius)
    fish: Optional[Fish] = None
    if duck.personality is not Personality.LAZY:
        fish = registry.grid(Species.FISH).nearest(duck.position, radius)
    if fish is not None and distance_to(duck, fish) < distance_to(duck, food):
        duck.target = fish
        duck.state = DuckState.SEEKING_FISH
        show_thought(world, duck, "Hunting fish!")
    elif food is not None:
        duck.target = food
        duck.state = DuckState.SEEKING_FOOD
        show_thought(world, duck, "Looking for shrimp...")
    duck.target_point = None


def _seek_company(world: World, duck: Duck) -> None:
    if duck.state is DuckState.SOCIALIZING and duck.target is not None:
        return
    friend = world.registry.grid(Species.DUCK).nearest(
        duck.position, world.config.forage_radius, lambda other: other is not duck
    )
    if friend is not None:
        duck.target = friend
        duck.target_point = None
        duck.state = DuckState.SOCIALIZING
        show_thought(world, duck, "Let's hang out!")


def _start_exploring(world: World, duck: Duck) -> None:
    bounds = world.bounds
    rng = world.rng
    if duck.mature:
        low, high = bounds.height * 0.10, bounds.height * 0.50
    else:
        low, high = bounds.height * 0.35, bounds.height * 0.50
    duck.target = None
    duck.target_point = Vector2(rng.next_float() * max(0.0, bounds.width - 100.0), rng.next_range(low, high))
    duck.state = DuckState.EXPLORING
    show_thought(world, duck, rng.choice(["What's over there?", "Time to explore!", "I wonder..."]))


def execute_behavior(world: World, duck: Duck, dt: float) -> None:
    state = duck.state
    step = duck.speed * dt * MOVE_SCALE
    if state is DuckState.RESTING:
        duck.energy = _clamp_meter(duck.energy + REST_RECOVERY * dt)
        if duck.energy > REST_UNTIL:
            duck.state = DuckState.IDLE
            show_thought(world, duck, "Feeling refreshed!")
        return
    if state is DuckState.EXPLORING:
        point = duck.target_point
        if point is None:
            duck.state = DuckState.IDLE
            return
        move_towards(world, duck, point, step)
        if abs(duck.position.x - point.x) < EXPLORE_ARRIVAL and abs(duck.position.y - point.y) < EXPLORE_ARRIVAL:
            duck.target_point = None
            duck.state = DuckState.IDLE
        return
    if state is DuckState.IDLE or duck.on_island:
        return

    target = duck.target
    if target is None or not target.alive:
        # Destroyed targets are cleared on the next think.
        return
    if state is DuckState.SEEKING_FISH:
        step *= FISH_CHASE_BOOST
    move_towards(world, duck, target.position, step)
    distance = distance_to(duck, target)

    if state is DuckState.SEEKING_FOOD and distance < FOOD_REACH:
        eat_shrimp(world, duck, target)
    elif state is DuckState.SEEKING_FISH and distance < FISH_REACH:
        catch_fish(world, duck, target)
    elif state is DuckState.SOCIALIZING and distance < SOCIAL_REACH:
        socialize(world, duck, target)
    elif state is DuckState.BREEDING and distance < BREED_REACH:
        breed(world, duck, target)
    elif state is DuckState.SEEKING_ISLAND and distance < ISLAND_REACH:
        lay_eggs_on_island(world, duck, target)


def _finish(duck: Duck) -> None:
    duck.target = None
    duck.target_point = None
    duck.state = DuckState.IDLE


def eat_shrimp(world: World, duck: Duck, shrimp: Entity) -> None:
    duck.hunger = _clamp_meter(duck.hunger + 35.0)
    duck.energy = _clamp_meter(duck.energy + 10.0)
    duck.fertility = _clamp_meter(duck.fertility + 15.0)
    duck.meals_eaten += 1
    world.registry.destroy(shrimp, "eaten")
    show_thought(world, duck, "Yummy shrimp!")
    _finish(duck)


def catch_fish(world: World, duck: Duck, fish: Entity) -> None:
    duck.hunger = _clamp_meter(duck.hunger + 50.0)
    duck.energy = _clamp_meter(duck.energy + 15.0)
    duck.fertility = _clamp_meter(duck.fertility + 25.0)
    duck.meals_eaten += 1
    world.registry.destroy(fish, "caught")
    show_thought(world, duck, "Caught a fish!")
    _finish(duck)


def socialize(world: World, duck: Duck, other: Duck) -> None:
    duck.social = _clamp_meter(duck.social + 15.0)
    other.social = _clamp_meter(other.social + 15.0)
    duck.friends.add(other.id)
    other.friends.add(duck.id)
    show_thought(world, duck, world.rng.choice(["Nice to meet you!", "Quack quack!", "Let's be friends!"]))
    _finish(duck)


def breed(world: World, duck: Duck, mate: Duck) -> bool:
    """Pair two ducks; returns True when eggs were scheduled."""
    if not can_breed(duck) or not can_breed(mate) or mate.on_island:
        _finish(duck)
        return False
    if not reproduction.genders_compatible(duck.gender, mate.gender):
        _finish(duck)
        return False

    reproduction.reset_cooldowns("breeding_cooldown", BREEDING_COOLDOWN, duck, mate)
    color = duck.color if world.rng.chance(0.5) else mate.color
    clutch = reproduction.duck_clutch_size((duck.fertility + mate.fertility) / 2.0)
    center = _midpoint(duck.position, mate.position)
    positions = reproduction.offspring_positions(world.rng, center, clutch, EGG_SPREAD)
    reproduction.schedule_offspring(
        world,
        positions,
        EGG_STAGGER,
        lambda spot: spawning.create_egg(world, spot, color),
        label="duck egg",
    )
    duck.fertility = _clamp_meter(duck.fertility - BREEDING_FERTILITY_COST)
    mate.fertility = _clamp_meter(mate.fertility - BREEDING_FERTILITY_COST)

    world.effect("hearts", duck.position)
    world.effect("hearts", mate.position)
    show_thought(world, duck, "Love is in the air!")
    show_thought(world, mate, "Love is in the air!")
    world.log(f"{duck.color.value} Duck #{duck.id} and {mate.color.value} Duck #{mate.id} laid {clutch} egg(s)!")
    _finish(duck)
    _finish(mate)
    return True


def lay_eggs_on_island(world: World, duck: Duck, island: Island) -> int:
    duck.on_island = True
    clutch = reproduction.island_clutch_size(duck.fertility)
    rng = world.rng
    spread_x, spread_y = ISLAND_EGG_SPREAD
    positions = [
        Vector2(island.position.x + rng.jitter(spread_x), island.position.y + rng.jitter(spread_y))
        for _ in range(clutch)
    ]
    color = duck.color
    reproduction.schedule_offspring(
        world,
        positions,
        ISLAND_EGG_STAGGER,
        lambda spot: spawning.create_egg(world, spot, color),
        label="island egg",
    )
    duck.breeding_cooldown = ISLAND_COOLDOWN
    duck.fertility = _clamp_meter(duck.fertility - ISLAND_FERTILITY_COST)
    show_thought(world, duck, f"Laid {clutch} eggs on the island!")
    world.log(f"Duck #{duck.id} laid {clutch} egg(s) on Island #{island.id}!")
    world.deferred.schedule(ISLAND_STAY, lambda: _leave_island(duck), owner=duck, label="leave island")
    duck.target = None
    return clutch


def _leave_island(duck: Duck) -> None:
    duck.on_island = False
    _finish(duck)


def pet(world: World, duck: Duck) -> None:
    duck.social = _clamp_meter(duck.social + 15.0)
    show_thought(world, duck, f"Hello! I'm feeling {duck.emotional_state()}!")
    world.log(f"Duck #{duck.id} ({duck.personality.value}) was petted!")


def show_thought(world: World, duck: Duck, text: str) -> None:
    duck.thought = text
    duck.thought_timer = world.rng.next_range(0.6, 1.2)
