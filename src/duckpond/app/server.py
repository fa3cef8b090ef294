from __future__ import annotations

import argparse
import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from time import perf_counter
from typing import Dict, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import SimulationConfig
from ..sim.core.errors import ConfigurationError, SpawnError
from ..sim.core.world import World
from ..sim.systems.spawning import SPAWNERS
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_REFRESH_INTERVAL = 1.0 / 60.0


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self._virtual_time = 0.0
        self._last_wall = perf_counter()

    @property
    def tick(self) -> int:
        return self.world.tick

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def toggle_pause(self) -> bool:
        async with self._lock:
            return self.world.toggle_pause()

    async def spawn(self, kind: str) -> dict:
        spawner = SPAWNERS.get(kind)
        if spawner is None:
            raise KeyError(kind)
        async with self._lock:
            entity = spawner(self.world)
        if entity is None:
            return {"spawned": False, "kind": kind}
        return {"spawned": True, "kind": kind, "id": entity.id}

    async def _loop(self) -> None:
        self._last_wall = perf_counter()
        while True:
            await asyncio.sleep(_REFRESH_INTERVAL)
            await self.advance(perf_counter())

    async def advance(self, now: float) -> TickMetrics | None:
        """Move virtual time forward by the wall time since the last call; stopped spans are skipped."""
        elapsed = now - self._last_wall
        self._last_wall = now
        if not self.running:
            return None
        self._virtual_time += elapsed * self.speed_multiplier
        async with self._lock:
            metrics = self.world.frame(self._virtual_time)
        if metrics is not None and metrics.tick % self.broadcast_interval == 0:
            await self._broadcast_snapshot()
        return metrics

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "entities": snapshot.entities,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
                "events": snapshot.events,
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            if self._snapshot_queue and self._snapshot_queue[-1].tick == queued.tick:
                self._snapshot_queue[-1] = queued
            else:
                self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            logger.info("Dropping disconnected client")
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Duck Pond Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    world = controller.world
    return JSONResponse(
        {
            "running": controller.running,
            "paused": world.paused,
            "tick": world.tick,
            "sim_time": world.elapsed,
            "populations": world.registry.counts(),
            "readout": asdict(world.readout),
            "events": world.event_log.messages(),
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/pause")
async def pause_simulation() -> JSONResponse:
    paused = await controller.toggle_pause()
    return JSONResponse({"paused": paused})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/spawn/{kind}")
async def spawn_entity(kind: str) -> JSONResponse:
    try:
        result = await controller.spawn(kind)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown entity kind: {kind}")
    return JSONResponse(result)


@app.post("/api/ducks/{duck_id}/pet")
async def pet_duck(duck_id: int) -> JSONResponse:
    try:
        async with controller._lock:
            duck = controller.world.pet_duck(duck_id)
    except SpawnError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return JSONResponse({"id": duck.id, "social": duck.social, "mood": duck.emotional_state()})


@app.post("/api/eggs/{egg_id}/hatch")
async def hatch_egg(egg_id: int) -> JSONResponse:
    try:
        async with controller._lock:
            duckling = controller.world.hatch_egg(egg_id)
    except SpawnError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return JSONResponse({"hatched": duckling is not None, "duck_id": duckling.id if duckling else None})


@app.post("/api/viewport")
async def resize_viewport(payload: dict) -> JSONResponse:
    width = float(payload.get("width", controller.world.bounds.width))
    height = float(payload.get("height", controller.world.bounds.height))
    async with controller._lock:
        controller.world.resize(width, height)
    bounds = controller.world.bounds
    return JSONResponse({"width": bounds.width, "height": bounds.height})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if payload.get("type") == "ack":
                tick = payload.get("tick")
                if isinstance(tick, int):
                    await controller.acknowledge(tick)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


def main(argv: Optional[list[str]] = None) -> None:
    global controller
    parser = argparse.ArgumentParser(description="Serve the duck pond over HTTP and websockets")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation options")
    parser.add_argument("--log-level", default="INFO", help="Logging level for the server")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if args.config:
        try:
            controller = SimulationController(SimulationConfig.from_yaml(args.config))
        except ConfigurationError as exc:
            parser.error(str(exc))

    import uvicorn

    logger.info("Starting duck pond server on http://%s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
