from __future__ import annotations

import heapq
import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, TypeVar

if TYPE_CHECKING:
    from .entities import Entity

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TickScheduler:
    """Gates logic steps to a fixed cadence independent of how often it is polled."""

    def __init__(self, tick_rate: float) -> None:
        self._interval = 1.0 / tick_rate
        self._last_step: Optional[float] = None

    @property
    def interval(self) -> float:
        return self._interval

    def reset(self) -> None:
        self._last_step = None

    def poll(self, now: float) -> Optional[float]:
        """Return the whole intervals elapsed since the previous step when one is due, else None."""
        if self._last_step is None:
            self._last_step = now
            return None
        delta = now - self._last_step
        if delta < self._interval:
            return None
        # Only whole intervals are consumed; the remainder counts towards the next step.
        remainder = delta % self._interval
        self._last_step = now - remainder
        return delta - remainder


class RoundRobinCursor:
    def __init__(self) -> None:
        self.offset = 0

    def reset(self) -> None:
        self.offset = 0

    def select(self, population: Sequence[T], quota: int) -> List[T]:
        size = len(population)
        if size == 0:
            self.offset = 0
            return []
        count = min(quota, size)
        start = self.offset % size
        chosen = [population[(start + i) % size] for i in range(count)]
        self.offset = (start + count) % size
        return chosen

    @staticmethod
    def ticks_for_full_pass(size: int, quota: int) -> int:
        if size == 0:
            return 0
        return int(math.ceil(size / quota))


class DayNightCycle:
    def __init__(self, duration: float) -> None:
        self.duration = duration
        self.timer = 0.0
        self.is_night = False

    def reset(self) -> None:
        self.timer = 0.0
        self.is_night = False

    def advance(self, dt: float) -> bool:
        """Advance the cycle; True when day and night flipped during this call."""
        self.timer += dt
        if self.timer < self.duration:
            return False
        self.timer = 0.0
        self.is_night = not self.is_night
        return True


class Throttle:
    def __init__(self, interval: float) -> None:
        self.interval = interval
        self._last: Optional[float] = None

    def reset(self) -> None:
        self._last = None

    def ready(self, now: float) -> bool:
        if self._last is not None and now - self._last < self.interval:
            return False
        self._last = now
        return True


@dataclass(order=True)
class DeferredAction:
    due: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    owner: Optional["Entity"] = field(default=None, compare=False)
    label: str = field(default="", compare=False)


class DeferredQueue:
    """Virtual-time queue of continuations such as staggered births.

    Actions run on the simulation thread when `advance` reaches their due
    time. An action tied to an owner entity is dropped if that entity was
    destroyed before the action came due.
    """

    def __init__(self) -> None:
        self._heap: List[DeferredAction] = []
        self._counter = itertools.count()
        self.now = 0.0
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._heap)

    def clear(self) -> None:
        self._heap.clear()
        self.now = 0.0
        self.dropped = 0

    def schedule(
        self,
        delay: float,
        callback: Callable[[], None],
        owner: Optional["Entity"] = None,
        label: str = "",
    ) -> DeferredAction:
        action = DeferredAction(
            due=self.now + max(0.0, delay),
            sequence=next(self._counter),
            callback=callback,
            owner=owner,
            label=label,
        )
        heapq.heappush(self._heap, action)
        return action

    def advance(self, dt: float) -> int:
        """Move virtual time forward and run every action now due; returns how many ran."""
        self.now += dt
        fired = 0
        heap = self._heap
        while heap and heap[0].due <= self.now:
            action = heapq.heappop(heap)
            if action.owner is not None and not action.owner.alive:
                self.dropped += 1
                logger.debug("Dropped deferred %s: owner %s is gone", action.label or "action", action.owner.label)
                continue
            action.callback()
            fired += 1
        return fired
