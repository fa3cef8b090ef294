from __future__ import annotations

import math

import pytest
from pygame.math import Vector2
from pytest import approx

from duckpond.sim.core.entities import (
    CREATURE_TEMPLATES,
    AlgaeKind,
    IslandSize,
    SeaCreatureKind,
    ShrimpPhase,
    Species,
)
from duckpond.sim.systems import fish, movement, octopus, sea_creatures, shrimp, spawning
from duckpond.sim.systems.metrics import add_pollution

from conftest import make_empty_world


def test_every_creature_kind_has_a_template():
    assert set(CREATURE_TEMPLATES) == set(SeaCreatureKind)
    for kind in SeaCreatureKind:
        template = kind.template
        assert template.max_age > 0
        assert template.size > 0
    assert {kind for kind in SeaCreatureKind if kind.template.eats_kelp} == {
        SeaCreatureKind.LOBSTER,
        SeaCreatureKind.CRAB,
    }


def test_shell_never_moves_but_still_ages(world):
    shell = spawning.add_sea_creature(world, kind=SeaCreatureKind.SHELL, position=Vector2(500, 600))
    assert shell.speed == 0.0
    for _ in range(120):
        world.step()
    assert shell.position == Vector2(500, 600)
    assert shell.age == approx(2.0)


def test_sea_creature_dies_of_old_age(world, sink):
    creature = spawning.add_sea_creature(world, kind=SeaCreatureKind.WHALE, position=Vector2(500, 600))
    creature.max_age = 0.1
    for _ in range(12):
        world.step()
    assert not creature.alive
    assert sink.destroyed.count(creature) == 1


def test_sea_creature_turns_away_instead_of_entering_an_island(world):
    island = spawning.add_island(world, IslandSize.LARGE)
    creature = spawning.add_sea_creature(
        world,
        kind=SeaCreatureKind.DOLPHIN,
        position=Vector2(island.position.x - island.radius - 5.0, island.position.y),
    )
    creature.heading = 0.0
    before = Vector2(creature.position)

    assert sea_creatures.avoid_islands(world, creature, 20.0)
    assert creature.position == before
    # New heading points away from the island centre, within the turn spread.
    assert math.cos(creature.heading) < 0


def test_swimmers_never_spawn_inside_an_island(world):
    islands = [spawning.add_island(world, IslandSize.LARGE) for _ in range(3)]
    assert all(island is not None for island in islands)
    spawned = [spawning.add_sea_creature(world) for _ in range(30)]
    spawned += [spawning.add_fish(world) for _ in range(40)]
    spawned += [spawning.add_octopus(world) for _ in range(20)]
    for entity in spawned:
        assert not any(island.contains(entity.position) for island in islands)


def test_sea_creature_inside_an_island_swims_back_out(world):
    island = spawning.add_island(world, IslandSize.LARGE)
    world.registry.move(island, 500.0, 500.0)
    creature = spawning.add_sea_creature(world, kind=SeaCreatureKind.DOLPHIN, position=Vector2(510, 500))
    creature.heading = math.pi

    for _ in range(40):
        if not sea_creatures.avoid_islands(world, creature, 5.0):
            movement.swim(world, creature, 5.0, sea_creatures.EDGE_MARGIN)
    assert not island.contains(creature.position)


def test_kelp_eater_forages_nearby_kelp(world):
    crab = spawning.add_sea_creature(world, kind=SeaCreatureKind.CRAB, position=Vector2(400, 700))
    crab.hunger = 20.0
    kelp = spawning.add_kelp(world)
    world.registry.move(kelp, 410, 700)

    sea_creatures.forage_kelp(world, crab)

    assert not kelp.alive
    assert crab.hunger == approx(60.0)


def test_sea_creatures_breed_only_with_their_own_kind(world):
    whale = spawning.add_sea_creature(world, kind=SeaCreatureKind.WHALE, position=Vector2(400, 600))
    seal = spawning.add_sea_creature(world, kind=SeaCreatureKind.SEAL, position=Vector2(420, 600))
    for creature in (whale, seal):
        creature.reproduction_cooldown = 0.0
    assert sea_creatures.try_breed(world, whale) is None

    partner = spawning.add_sea_creature(world, kind=SeaCreatureKind.WHALE, position=Vector2(440, 600))
    partner.reproduction_cooldown = 0.0
    baby = sea_creatures.try_breed(world, whale)
    assert baby is not None
    assert baby.kind is SeaCreatureKind.WHALE
    assert whale.reproduction_cooldown == 40.0
    assert partner.reproduction_cooldown == 40.0


def test_fish_graze_algae_and_breed(world):
    first = spawning.add_fish_at(world, 400, 500)
    second = spawning.add_fish_at(world, 430, 500)
    first.hunger = 20.0
    algae = spawning.add_algae(world, kind=AlgaeKind.HEALTHY, position=Vector2(410, 500))

    fish.forage_algae(world, first)
    assert not algae.alive
    assert first.hunger == approx(50.0)

    first.reproduction_cooldown = second.reproduction_cooldown = 0.0
    baby = fish.try_breed(world, first)
    assert baby is not None
    assert world.registry.count(Species.FISH) == 3
    assert first.reproduction_cooldown == 30.0
    assert baby.position.y >= world.bounds.water_top


def test_fish_never_die_of_old_age(world):
    swimmer = spawning.add_fish_at(world, 400, 500)
    fish.update_fish(world, swimmer, 10_000.0)
    assert swimmer.alive
    assert 0.0 <= swimmer.hunger <= 100.0


def test_falling_shrimp_splashes_into_the_water(world, sink):
    food = spawning.add_food(world)
    grid = world.registry.grid(Species.SHRIMP)
    assert food.phase is ShrimpPhase.FALLING
    assert food not in grid
    assert world.registry.grid(Species.SHRIMP).nearest(food.position, 1000.0) is None

    surface = world.bounds.water_surface
    for _ in range(240):
        world.step()
        if food.phase is not ShrimpPhase.FALLING:
            break

    assert food.phase is ShrimpPhase.ENTERING_WATER
    assert food.position.y == approx(surface + 10.0)
    assert food in grid
    assert ("splash", food.position) in sink.effects

    world.step()
    assert food.phase is ShrimpPhase.SWIMMING


def test_shrimp_expires_even_while_falling(world, sink):
    food = spawning.add_food(world)
    food.lifetime = 0.05
    for _ in range(5):
        world.step()
    assert not food.alive
    assert sink.destroyed == [food]
    assert world.registry.count(Species.SHRIMP) == 0


def test_adult_shrimp_breed_and_babies_grow_up(world):
    first = spawning.add_food_at(world, 400, 500, falling=False)
    second = spawning.add_food_at(world, 420, 500, falling=False)
    first.reproduction_cooldown = second.reproduction_cooldown = 0.0

    litter = shrimp.try_breed(world, first)

    assert 1 <= litter <= 3
    babies = [s for s in world.registry.all(Species.SHRIMP) if s.baby]
    assert len(babies) == litter
    for baby in babies:
        assert baby.position.y >= world.bounds.water_top + 10.0
        assert abs(baby.position.x - 410.0) <= shrimp.LITTER_SPREAD / 2
        assert abs(baby.position.y - 500.0) <= shrimp.LITTER_SPREAD / 2
    # Babies are never chosen as partners and both adults are on cooldown.
    assert shrimp.try_breed(world, first) == 0

    baby = babies[0]
    baby.age = 9.99
    shrimp.update_shrimp(world, baby, 0.02)
    assert not baby.baby


def test_octopus_opens_elixir_and_purifies_the_water(world, sink):
    add_pollution(world.ecosystem, 50.0)
    toxic = [spawning.add_algae(world, kind=AlgaeKind.TOXIC) for _ in range(3)]
    healthy = spawning.add_algae(world, kind=AlgaeKind.HEALTHY)
    swimmer = spawning.add_octopus(world)
    elixir = spawning.add_elixir(world)

    cleared = octopus.open_elixir(world, swimmer, elixir)

    assert cleared == 3
    assert all(not algae.alive for algae in toxic)
    assert healthy.alive
    assert world.ecosystem.pollution == approx(10.0)
    assert not elixir.alive
    assert any(kind == "purification" for kind, _ in sink.effects)

    world.deferred.advance(1.0)
    assert world.registry.count(Species.SEAGRASS) == 3


def test_purification_never_drives_pollution_negative(world):
    swimmer = spawning.add_octopus(world)
    add_pollution(world.ecosystem, 10.0)
    octopus.open_elixir(world, swimmer, spawning.add_elixir(world))
    assert world.ecosystem.pollution == 0.0


def test_elixir_lands_below_the_surface(world, sink):
    elixir = spawning.add_elixir(world)
    for _ in range(600):
        world.step()
        if not elixir.falling:
            break
    assert not elixir.falling
    assert elixir.position.y == approx(world.bounds.water_surface + 20.0)
    assert ("splash", elixir.position) in sink.effects


@pytest.mark.parametrize("distance,expected", [(40.0, True), (100.0, False)])
def test_octopus_tickles_nearby_duck(world, distance, expected):
    swimmer = spawning.add_octopus(world)
    world.registry.move(swimmer, 400, 400)
    duck = spawning.add_duck(world, position=Vector2(400 + distance, 400))
    duck.social = 50.0

    assert octopus.tickle(world, swimmer) is expected
    if expected:
        assert duck.social == approx(60.0)
        assert swimmer.tickle_cooldown == 5.0
        assert duck.thought == "Hehe! That tickles!"
    else:
        assert duck.social == approx(50.0)


def test_algae_and_fish_respect_caps():
    from duckpond.sim.core.config import PopulationCaps

    world = make_empty_world(caps=PopulationCaps(fish=2, algae=1))
    assert spawning.add_fish(world) is not None
    assert spawning.add_fish(world) is not None
    assert spawning.add_fish(world) is None
    assert spawning.add_algae(world) is not None
    assert spawning.add_algae(world) is None
    assert world.event_log.messages()[0] == "Max algae reached (1)!"
