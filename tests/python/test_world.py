from __future__ import annotations

import pytest
from pygame.math import Vector2
from pytest import approx

from duckpond.sim.core.config import PausePolicy, PopulationCaps, SchedulerConfig, SimulationConfig
from duckpond.sim.core.entities import SPATIAL_SPECIES, ShrimpPhase, Species
from duckpond.sim.core.errors import SpawnError
from duckpond.sim.core.world import World
from duckpond.sim.systems import spawning

from conftest import make_empty_world


def run_steps(config: SimulationConfig, steps: int):
    world = World(config)
    rows = []
    for _ in range(steps):
        metrics = world.step()
        rows.append((metrics.population, metrics.births, metrics.deaths, round(metrics.pollution, 6)))
    return rows, world.registry.counts()


def test_deterministic_steps():
    result_a = run_steps(SimulationConfig(seed=1234), 300)
    # A fresh config proves the RNG is reseeded per world.
    result_b = run_steps(SimulationConfig(seed=1234), 300)
    assert result_a == result_b


def test_initial_population_and_welcome():
    world = World(SimulationConfig(seed=3))
    counts = world.registry.counts()
    assert counts["ducks"] == 2
    assert 1 <= counts["islands"] <= 4
    assert counts["predators"] == 1
    assert counts["fish"] == 1
    assert counts["shrimp"] == 2
    assert 3 <= counts["sea_creatures"] <= 7
    assert counts["kelp"] == 8
    assert counts["algae"] == 3
    (predator,) = world.registry.all(Species.PREDATOR)
    assert predator.home in world.registry.all(Species.ISLAND)
    assert world.event_log.messages()[0] == "Welcome to Sea of Ducks!"


def test_frame_steps_only_when_a_tick_is_due():
    world = make_empty_world()
    assert world.frame(0.0) is None
    assert world.frame(0.010) is None
    metrics = world.frame(0.020)
    assert metrics is not None
    assert metrics.tick == 1
    assert metrics.sim_time == approx(world.config.time_step)
    assert world.frame(0.025) is None


def test_rotating_quota_updates_every_fish_within_a_full_pass():
    world = make_empty_world(scheduler=SchedulerConfig(fish_per_tick=10))
    school = [spawning.add_fish_at(world, 100 + index * 30, 500) for index in range(25)]

    for _ in range(3):
        metrics = world.step()
        assert metrics.updated_entities == 10

    assert all(fish.last_updated > 0.0 for fish in school)
    # Per-entity time steps keep every fish's clock in line with the world.
    for _ in range(3):
        world.step()
    for fish in school:
        assert fish.age == approx(fish.last_updated)
        assert world.elapsed - fish.age <= 3 * world.config.time_step + 1e-9


def test_pause_freezes_the_pond(world):
    fired = []
    world.deferred.schedule(0.1, lambda: fired.append(True))
    duck = spawning.add_duck(world, position=Vector2(300, 300))

    world.pause()
    for _ in range(30):
        metrics = world.step()
    assert metrics.tick == 0
    assert world.elapsed == 0.0
    assert duck.age == 0.0
    assert not fired
    assert world.event_log.messages()[0] == "Game paused"

    assert world.toggle_pause() is False
    assert world.event_log.messages()[0] == "Game resumed"
    for _ in range(10):
        world.step()
    assert fired == [True]


def test_run_deferred_pause_policy_keeps_continuations_moving():
    world = make_empty_world(pause_policy=PausePolicy.RUN_DEFERRED.value)
    fired = []
    world.deferred.schedule(0.1, lambda: fired.append(True))
    world.pause()
    for _ in range(10):
        world.step()
    assert fired == [True]
    assert world.tick == 0


def test_day_night_cycle_flips_and_logs():
    world = make_empty_world(scheduler=SchedulerConfig(day_night_duration=1.0))
    for _ in range(61):
        world.step()
    assert world.ecosystem.is_night
    assert "Night has fallen" in world.event_log.messages()

    for _ in range(61):
        world.step()
    assert not world.ecosystem.is_night
    assert world.event_log.messages()[0] == "Day has begun"


def test_duck_cap_rejects_extra_spawns_and_logs_each_rejection():
    world = make_empty_world(caps=PopulationCaps(ducks=3))
    added = [spawning.add_duck(world) for _ in range(5)]

    assert sum(duck is not None for duck in added) == 3
    assert world.registry.count(Species.DUCK) == 3
    assert world.event_log.messages().count("Max ducks reached (3)!") == 2
    assert world.registry.rejections == 2


def test_spatial_index_stays_consistent_through_a_busy_run():
    world = World(SimulationConfig(seed=11))
    for _ in range(10):
        spawning.add_food(world)
        spawning.add_fish(world)
        spawning.add_duck(world)

    for _ in range(600):
        world.step()

    registry = world.registry
    for species in SPATIAL_SPECIES:
        grid = registry.grid(species)
        indexed = [entity for entity in registry.all(species) if entity in grid]
        assert len(grid) == len(indexed)
        for entity in indexed:
            assert entity.alive
            assert entity in grid.query_radius(entity.position, 1.0)
    for shrimp in registry.all(Species.SHRIMP):
        assert (shrimp in registry.grid(Species.SHRIMP)) == (shrimp.phase is not ShrimpPhase.FALLING)


def test_reset_restores_the_seeded_starting_pond():
    world = World(SimulationConfig(seed=5))
    initial = world.registry.counts()
    last_duck_id = max(duck.id for duck in world.registry.all(Species.DUCK))
    for _ in range(200):
        world.step()
    world.reset()

    assert world.tick == 0
    assert world.elapsed == 0.0
    assert world.registry.counts() == initial
    assert len(world.deferred) == len(World(SimulationConfig(seed=5)).deferred)
    # Ids are never reused across a reset.
    assert world.registry.get(Species.DUCK, 1) is None
    assert min(duck.id for duck in world.registry.all(Species.DUCK)) > last_duck_id


def test_snapshot_describes_world_and_entities():
    world = World(SimulationConfig(seed=7))
    world.step()
    snapshot = world.snapshot()

    assert snapshot.tick == 1
    assert snapshot.metadata.seed == 7
    assert snapshot.metadata.tick_rate == approx(60.0)
    assert snapshot.world.water_top == approx(320.0)
    assert snapshot.metrics.tick == 1
    assert len(snapshot.entities) == world.registry.total()
    ducks = [payload for payload in snapshot.entities if payload["species"] == "ducks"]
    assert ducks
    for key in ("id", "x", "y", "state", "hunger", "personality", "color", "gender"):
        assert key in ducks[0]
    assert ducks[0]["color"].startswith("#")
    assert "Welcome to Sea of Ducks!" in snapshot.events


def test_resize_moves_the_waterline_and_ignores_bad_sizes(world):
    world.resize(1000, 600)
    assert world.bounds.width == 1000
    assert world.bounds.water_top == approx(240.0)
    world.resize(0, 600)
    assert world.bounds.width == 1000


def test_lookup_of_missing_entities_raises(world):
    with pytest.raises(SpawnError):
        world.find(Species.DUCK, 42)
    with pytest.raises(SpawnError):
        world.hatch_egg(1)
