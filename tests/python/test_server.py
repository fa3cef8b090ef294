import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from duckpond.app import server
from duckpond.app.server import SimulationController
from duckpond.sim.core.config import SimulationConfig


@pytest.fixture
def controller(monkeypatch) -> SimulationController:
    fresh = SimulationController(SimulationConfig(seed=2))
    monkeypatch.setattr(server, "controller", fresh)
    return fresh


@pytest.fixture
def client(controller) -> TestClient:
    # No context manager: the startup hook would launch the background loop.
    return TestClient(server.app)


def test_snapshot_queue_ack_cleanup(controller) -> None:
    async def exercise() -> None:
        controller.world.step()
        await controller._broadcast_snapshot()
        controller.world.step()
        await controller._broadcast_snapshot()
        # A second broadcast for the same tick replaces the queued entry.
        await controller._broadcast_snapshot()
        async with controller._queue_lock:
            queued_ticks = [item.tick for item in controller._snapshot_queue]
        assert queued_ticks == [1, 2]
        await controller.acknowledge(1)
        async with controller._queue_lock:
            remaining_ticks = [item.tick for item in controller._snapshot_queue]
        assert remaining_ticks == [2]

    asyncio.run(exercise())


def test_reset_clears_queue_and_restarts_world(controller) -> None:
    async def exercise() -> None:
        for _ in range(5):
            controller.world.step()
        await controller._broadcast_snapshot()
        await controller.reset()
        async with controller._queue_lock:
            queued_ticks = [item.tick for item in controller._snapshot_queue]
        assert queued_ticks == [0]

    asyncio.run(exercise())
    assert controller.tick == 0


def test_status_reports_populations(client, controller) -> None:
    response = client.get("/api/status")
    assert response.status_code == 200
    body = response.json()
    assert body["tick"] == 0
    assert body["paused"] is False
    assert body["populations"]["ducks"] == 2
    assert "Welcome to Sea of Ducks!" in body["events"]


def test_spawn_endpoint(client, controller) -> None:
    response = client.post("/api/spawn/duck")
    assert response.status_code == 200
    body = response.json()
    assert body["spawned"] is True
    assert controller.world.registry.counts()["ducks"] == 3

    assert client.post("/api/spawn/dragon").status_code == 404


def test_pet_and_hatch_endpoints(client, controller) -> None:
    response = client.post("/api/ducks/1/pet")
    assert response.status_code == 200
    assert response.json()["id"] == 1
    assert controller.world.event_log.messages()[0].endswith("was petted!")

    assert client.post("/api/ducks/999/pet").status_code == 404
    assert client.post("/api/eggs/999/hatch").status_code == 404


def test_control_endpoints(client, controller) -> None:
    assert client.post("/api/control/pause").json() == {"paused": True}
    assert controller.world.paused
    assert client.post("/api/control/pause").json() == {"paused": False}

    assert client.post("/api/control/speed", json={"multiplier": 10}).json() == {"multiplier": 5.0}
    assert client.post("/api/control/speed", json={"multiplier": 0.01}).json() == {"multiplier": 0.1}

    assert client.post("/api/control/stop").json() == {"running": False}
    assert client.post("/api/control/reset").json() == {"running": False, "tick": 0}

    body = client.post("/api/viewport", json={"width": 1000, "height": 700}).json()
    assert body == {"width": 1000.0, "height": 700.0}
    assert controller.world.bounds.water_top == pytest.approx(280.0)


def test_websocket_receives_queued_snapshot(client, controller) -> None:
    controller.world.step()
    asyncio.run(controller._broadcast_snapshot())

    with client.websocket_connect("/ws") as websocket:
        message = json.loads(websocket.receive_text())
        assert message["type"] == "snapshot"
        assert message["tick"] == 1
        payload = message["payload"]
        assert payload["world"]["width"] == 1200.0
        assert payload["metadata"]["seed"] == 2
        assert any(entity["species"] == "ducks" for entity in payload["entities"])
        websocket.send_text(json.dumps({"type": "ack", "tick": 1}))


def test_stopped_span_does_not_advance_virtual_time(controller) -> None:
    steps = []
    world_step = controller.world.step

    def recording_step(dt=None):
        steps.append(dt)
        return world_step(dt)

    controller.world.step = recording_step
    frame = 1.0 / 60.0 + 0.001

    async def exercise() -> None:
        await controller.advance(0.0)
        controller.running = True
        now = 0.0
        for _ in range(5):
            now += frame
            await controller.advance(now)
        ticks_before_stop = controller.tick
        await controller.stop()
        await controller.advance(30.0)
        assert controller.tick == ticks_before_stop
        controller.running = True
        await controller.advance(30.0 + frame)

    asyncio.run(exercise())
    assert steps
    assert max(steps) <= controller.world.config.time_step + 1e-9
