from __future__ import annotations

import math
import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SimulationRng:
    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_between(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends included."""
        return self._random.randint(low, high)

    def chance(self, probability: float) -> bool:
        return self._random.random() < probability

    def jitter(self, spread: float) -> float:
        """Symmetric noise in [-spread/2, spread/2)."""
        return (self._random.random() - 0.5) * spread

    def next_angle(self) -> float:
        return self._random.uniform(0.0, 2.0 * math.pi)

    def choice(self, items: Sequence[T]) -> Optional[T]:
        if not items:
            return None
        return self._random.choice(items)
