from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Deque, List, Protocol, Tuple

from pygame.math import Vector2

if TYPE_CHECKING:
    from .entities import Entity

events_logger = logging.getLogger("duckpond.events")


class RenderSink(Protocol):
    """Presentation collaborator notified of every entity lifecycle change."""

    def on_create(self, entity: "Entity") -> None: ...

    def on_update(self, entity: "Entity") -> None: ...

    def on_destroy(self, entity: "Entity") -> None: ...

    def on_effect(self, kind: str, position: Vector2) -> None: ...


class NullRenderSink:
    def on_create(self, entity: "Entity") -> None:
        pass

    def on_update(self, entity: "Entity") -> None:
        pass

    def on_destroy(self, entity: "Entity") -> None:
        pass

    def on_effect(self, kind: str, position: Vector2) -> None:
        pass


class EventLog:
    """Narrative log of notable happenings, newest entry first."""

    def __init__(self, capacity: int = 20) -> None:
        self._entries: Deque[Tuple[float, str]] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, message: str, sim_time: float = 0.0) -> None:
        self._entries.appendleft((sim_time, message))
        events_logger.info("[%7.2fs] %s", sim_time, message)

    def messages(self) -> List[str]:
        return [message for _, message in self._entries]

    def clear(self) -> None:
        self._entries.clear()
