from __future__ import annotations

import argparse
import csv
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.errors import ConfigurationError
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "sim_time",
    "population",
    "births",
    "deaths",
    "ducks",
    "eggs",
    "predators",
    "fish",
    "shrimp",
    "sea_creatures",
    "octopi",
    "algae",
    "seagrass",
    "kelp",
    "islands",
    "pollution",
    "biodiversity",
    "is_night",
    "updated_entities",
    "tick_ms",
]


def _format_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        f"{metrics.sim_time:.4f}",
        metrics.population,
        metrics.births,
        metrics.deaths,
        metrics.ducks,
        metrics.eggs,
        metrics.predators,
        metrics.fish,
        metrics.shrimp,
        metrics.sea_creatures,
        metrics.octopi,
        metrics.algae,
        metrics.seagrass,
        metrics.kelp,
        metrics.islands,
        f"{metrics.pollution:.4f}",
        f"{metrics.biodiversity:.4f}",
        int(metrics.is_night),
        metrics.updated_entities,
        f"{tick_ms:.3f}",
    ]


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    config: Optional[SimulationConfig] = None,
    summary_path: Optional[Path] = None,
) -> World:
    config = config or SimulationConfig()
    if seed is not None:
        config.seed = seed
    world = World(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    peak_population = (0, 0)
    try:
        for _ in range(steps):
            metrics = world.step()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            if metrics.population > peak_population[0]:
                peak_population = (metrics.population, metrics.tick)
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    logger.info("Ran %d steps (%.1fs simulated): %s", steps, world.elapsed, world.registry.counts())

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "sim_time": world.elapsed,
            "populations": world.registry.counts(),
            "peak_population": {"value": peak_population[0], "tick": peak_population[1]},
            "readout": asdict(world.readout),
            "pollution": world.ecosystem.pollution,
            "biodiversity": world.ecosystem.biodiversity,
            "events": world.event_log.messages(),
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Headless duck pond simulation")
    parser.add_argument("--steps", type=int, default=3600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation options")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file with end-of-run stats")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level for the run")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    except ConfigurationError as exc:
        parser.error(str(exc))
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        config=config,
        summary_path=args.summary,
    )


if __name__ == "__main__":
    main()
