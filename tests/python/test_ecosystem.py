from __future__ import annotations

import pytest
from pygame.math import Vector2
from pytest import approx

from duckpond.sim.core.config import MetricsConfig
from duckpond.sim.core.entities import AlgaeKind, PredatorKind, SeaCreatureKind, Species
from duckpond.sim.systems import metrics, plants, spawning
from duckpond.sim.types.metrics import EcosystemState


def test_healthy_algae_withers_once_after_its_lifetime(world, sink):
    algae = spawning.add_algae(world, kind=AlgaeKind.HEALTHY, position=Vector2(300, 500))
    metrics.add_pollution(world.ecosystem, 20.0)

    for _ in range(3599):
        world.step()
    assert algae.alive

    world.step()
    world.step()
    assert not algae.alive
    assert sink.destroyed.count(algae) == 1
    assert world.registry.count(Species.ALGAE) == 0
    # Healthy algae cleans 0.1 per second over its minute of life.
    assert world.ecosystem.pollution == approx(14.0, abs=0.05)


def test_toxic_algae_pollutes_until_it_withers(world):
    spawning.add_algae(world, kind=AlgaeKind.TOXIC, position=Vector2(300, 500))
    for _ in range(3700):
        world.step()
    assert world.ecosystem.pollution == approx(30.0, abs=0.05)
    assert world.registry.count(Species.ALGAE) == 0


def test_pollution_is_clamped_to_meter_range():
    state = EcosystemState()
    assert metrics.add_pollution(state, -5.0) == 0.0
    assert metrics.add_pollution(state, 250.0) == 100.0
    assert metrics.add_pollution(state, -30.0) == 70.0


def test_seagrass_cleans_the_water(world):
    metrics.add_pollution(world.ecosystem, 1.0)
    seagrass = spawning.add_seagrass(world)
    plants.update_seagrass(world, seagrass, 10.0)
    assert world.ecosystem.pollution == approx(0.5)
    plants.update_seagrass(world, seagrass, 100.0)
    assert world.ecosystem.pollution == 0.0


def test_biodiversity_counts_distinct_kinds_and_penalises_pollution(world):
    spawning.add_duck(world)
    spawning.add_duck(world)
    spawning.add_fish(world)
    spawning.add_sea_creature(world, kind=SeaCreatureKind.WHALE)
    spawning.spawn_predator(world, PredatorKind.DOG, None, Vector2(200, 300))
    spawning.add_kelp(world)
    metrics.add_pollution(world.ecosystem, 10.0)

    assert metrics.distinct_species(world) == {"ducks", "fish", "Whale", "dog", "kelp"}
    # 5 of 20 kinds, minus half the pollution; one predator in five animals is not penalised.
    assert metrics.compute_biodiversity(world, MetricsConfig()) == approx(20.0)


def test_predator_heavy_pond_bottoms_out(world):
    spawning.add_duck(world)
    for _ in range(3):
        spawning.spawn_predator(world, PredatorKind.DOG, None, Vector2(200, 300))
    assert metrics.compute_biodiversity(world, MetricsConfig()) == 0.0


def test_pond_without_animals_has_no_biodiversity(world):
    spawning.add_kelp(world)
    spawning.add_seagrass(world)
    assert metrics.animal_count(world) == 0
    assert metrics.compute_biodiversity(world, MetricsConfig()) == 0.0


@pytest.mark.parametrize("max_species,expected", [(20, 25.0), (4, 100.0)])
def test_species_balance_saturates_at_one_hundred(world, max_species, expected):
    kinds = (
        SeaCreatureKind.WHALE,
        SeaCreatureKind.SHARK,
        SeaCreatureKind.CRAB,
        SeaCreatureKind.SQUID,
        SeaCreatureKind.SEAL,
    )
    for kind in kinds:
        spawning.add_sea_creature(world, kind=kind)
    assert metrics.compute_biodiversity(world, MetricsConfig(max_species=max_species)) == approx(expected)


def test_metrics_refresh_on_simulated_time_throttles(world):
    system = world._metrics_system
    spawning.add_duck(world)
    for _ in range(120):
        world.step()

    assert system.biodiversity_updates == 2
    assert system.hud_updates == 4
    assert world.readout.counts["ducks"] == 1
    assert world.readout.sim_time <= world.elapsed


def test_biodiversity_is_only_recomputed_when_throttle_allows(world):
    spawning.add_duck(world)
    world.step()
    first = world.ecosystem.biodiversity

    spawning.add_fish(world)
    world.step()
    assert world.ecosystem.biodiversity == first

    for _ in range(60):
        world.step()
    assert world.ecosystem.biodiversity > first


def test_tick_metrics_report_population_and_lifecycle_counts(world):
    spawning.add_duck(world)
    spawning.add_kelp(world)
    metrics_row = world.step()
    assert metrics_row.tick == 1
    assert metrics_row.ducks == 1
    assert metrics_row.kelp == 1
    assert metrics_row.population == 1
    assert metrics_row.births == 0
    assert metrics_row.updated_entities == 1
