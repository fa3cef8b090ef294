import sys
from pathlib import Path
from typing import List, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from duckpond.sim.core.config import SimulationConfig, SpawnConfig  # noqa: E402
from duckpond.sim.core.world import World  # noqa: E402


class RecordingRenderSink:
    def __init__(self) -> None:
        self.created: List[object] = []
        self.updated: List[object] = []
        self.destroyed: List[object] = []
        self.effects: List[Tuple[str, object]] = []

    def on_create(self, entity) -> None:
        self.created.append(entity)

    def on_update(self, entity) -> None:
        self.updated.append(entity)

    def on_destroy(self, entity) -> None:
        self.destroyed.append(entity)

    def on_effect(self, kind, position) -> None:
        self.effects.append((kind, position))


def make_empty_world(render=None, **overrides) -> World:
    """A world with no initial population and no ambient plant spawning."""
    overrides.setdefault("seed", 1)
    overrides.setdefault("spawning", SpawnConfig(enabled=False))
    return World(SimulationConfig(**overrides), render=render, populate=False)


@pytest.fixture
def sink() -> RecordingRenderSink:
    return RecordingRenderSink()


@pytest.fixture
def world(sink) -> World:
    return make_empty_world(render=sink)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-long",
        action="store_true",
        default=False,
        help="run long simulated-time soak tests",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "long_run: marks soak tests that simulate many minutes of pond time",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-long"):
        return

    skip_marker = pytest.mark.skip(
        reason="Long soak test (use --run-long)",
    )

    for item in items:
        if "long_run" in item.keywords:
            item.add_marker(skip_marker)
