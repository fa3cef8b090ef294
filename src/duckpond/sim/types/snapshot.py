from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    entities: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"
    events: List[str]


@dataclass(slots=True)
class SnapshotWorld:
    width: float
    height: float
    water_top: float
    is_night: bool
    pollution: float
    biodiversity: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_time: float
    tick_rate: float
    seed: Optional[int]
    config_version: str
    paused: bool
