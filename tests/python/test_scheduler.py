from __future__ import annotations

import pytest
from pygame.math import Vector2
from pytest import approx

from duckpond.sim.core.entities import Kelp
from duckpond.sim.core.scheduler import DayNightCycle, DeferredQueue, RoundRobinCursor, Throttle, TickScheduler


@pytest.mark.parametrize("population,quota", [(25, 10), (7, 3), (10, 10), (3, 10), (41, 8), (1, 6)])
def test_round_robin_visits_everyone_within_ceil_p_over_k_ticks(population, quota):
    members = list(range(population))
    cursor = RoundRobinCursor()
    # Start from an arbitrary offset: coverage must not depend on where the cursor sits.
    cursor.offset = 5
    seen: set[int] = set()
    for _ in range(RoundRobinCursor.ticks_for_full_pass(population, quota)):
        batch = cursor.select(members, quota)
        assert len(batch) == min(quota, population)
        assert len(set(batch)) == len(batch)
        seen.update(batch)
    assert seen == set(members)


def test_round_robin_offset_wraps_modulo_population():
    cursor = RoundRobinCursor()
    members = list(range(25))
    assert cursor.select(members, 10) == list(range(10))
    assert cursor.select(members, 10) == list(range(10, 20))
    assert cursor.select(members, 10) == [20, 21, 22, 23, 24, 0, 1, 2, 3, 4]
    assert cursor.offset == 5


def test_round_robin_survives_shrinking_population():
    cursor = RoundRobinCursor()
    cursor.select(list(range(20)), 10)
    assert cursor.select([1, 2, 3], 10) == [2, 3, 1]
    assert cursor.select([], 10) == []
    assert cursor.offset == 0


def test_tick_scheduler_only_steps_after_interval_and_carries_remainder():
    scheduler = TickScheduler(tick_rate=60.0)
    interval = 1.0 / 60.0

    assert scheduler.poll(0.0) is None
    assert scheduler.poll(0.010) is None
    assert scheduler.poll(0.020) == approx(interval)
    # The 0.0033s remainder was carried, so the next step is due at 2 * interval.
    assert scheduler.poll(2 * interval - 0.001) is None
    assert scheduler.poll(2 * interval + 0.0005) == approx(interval)
    assert scheduler.poll(5 * interval + 0.0005) == approx(3 * interval)


def test_tick_scheduler_simulated_time_never_outruns_wall_time():
    scheduler = TickScheduler(tick_rate=60.0)
    frame = 1.0 / 60.0 + 0.001
    simulated = 0.0
    now = 0.0
    for _ in range(6000):
        simulated += scheduler.poll(now) or 0.0
        now += frame

    wall = now - frame
    assert simulated <= wall + 1e-9
    assert wall - simulated < scheduler.interval


def test_deferred_queue_fires_in_due_then_insertion_order():
    queue = DeferredQueue()
    fired: list[str] = []
    queue.schedule(0.3, lambda: fired.append("late"))
    queue.schedule(0.1, lambda: fired.append("first"))
    queue.schedule(0.1, lambda: fired.append("second"))

    assert queue.advance(0.05) == 0
    assert queue.advance(0.05) == 2
    assert fired == ["first", "second"]
    assert queue.advance(0.2) == 1
    assert fired == ["first", "second", "late"]
    assert len(queue) == 0


def test_deferred_queue_drops_actions_whose_owner_was_destroyed():
    queue = DeferredQueue()
    owner = Kelp(id=1, position=Vector2())
    survivor = Kelp(id=2, position=Vector2())
    fired: list[int] = []
    queue.schedule(0.5, lambda: fired.append(owner.id), owner=owner)
    queue.schedule(0.5, lambda: fired.append(survivor.id), owner=survivor)

    owner.alive = False
    queue.advance(1.0)

    assert fired == [2]
    assert queue.dropped == 1


def test_actions_scheduled_while_firing_wait_until_due():
    queue = DeferredQueue()
    fired: list[str] = []

    def chain() -> None:
        fired.append("outer")
        queue.schedule(0.5, lambda: fired.append("inner"))

    queue.schedule(0.0, chain)
    queue.advance(0.1)
    assert fired == ["outer"]
    queue.advance(0.5)
    assert fired == ["outer", "inner"]


def test_day_night_cycle_flips_after_duration():
    cycle = DayNightCycle(duration=60.0)
    assert not cycle.advance(59.9)
    assert not cycle.is_night
    assert cycle.advance(0.2)
    assert cycle.is_night
    assert cycle.timer == 0.0
    assert not cycle.advance(30.0)
    assert cycle.advance(30.0)
    assert not cycle.is_night


def test_throttle_fires_at_most_once_per_interval():
    throttle = Throttle(0.5)
    assert throttle.ready(0.0)
    assert not throttle.ready(0.2)
    assert not throttle.ready(0.49)
    assert throttle.ready(0.5)
    assert not throttle.ready(0.9)
    assert throttle.ready(1.2)
