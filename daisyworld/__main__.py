"""Entry point for ``python -m daisyworld``.

Loads the default YAML config, builds and seeds the simulation engine,
optionally records every step to CSV, and either opens a Pygame window or
runs a fixed number of ticks headless.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from daisyworld.recording.csv_recorder import CsvRecorder
from daisyworld.simulation.config import Luminosity, SimulationConfig
from daisyworld.simulation.engine import SimulationEngine

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

logger = logging.getLogger("daisyworld")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daisyworld",
        description="Daisyworld - albedo feedback on a grid of black and white daisies",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--luminosity",
        choices=[p.name.lower() for p in Luminosity],
        help="Override the solar luminosity preset",
    )
    parser.add_argument(
        "--csv",
        type=pathlib.Path,
        default=None,
        help="Write one CSV row per step to this file",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a window (requires --steps)",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Number of ticks to run in headless mode",
    )
    parser.add_argument(
        "--cell-size",
        type=int,
        default=20,
        help="Pixel size per grid cell (default: 20)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=10.0,
        help="Simulation ticks per second (default: 10)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, create engine, run headless or launch renderer."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.headless and args.steps is None:
        parser.error("--headless requires --steps")

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    if args.luminosity is not None:
        config.luminosity = args.luminosity

    with SimulationEngine(config=config) as engine:
        if args.csv is not None:
            engine.subscribe(CsvRecorder(args.csv))
        engine.setup()

        if args.headless:
            engine.run(args.steps)
            report = engine.report()
            logger.info(
                "Finished %d steps: T=%.2f black=%d white=%d",
                report.step,
                report.global_temperature,
                report.black,
                report.white,
            )
            return

        from daisyworld.ui.pygame_client import PygameRenderer

        renderer = PygameRenderer(
            engine=engine,
            cell_size=args.cell_size,
            ticks_per_second=args.speed,
        )
        renderer.run(fps=args.fps)


if __name__ == "__main__":
    main()
