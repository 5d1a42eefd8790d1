"""Smoke tests for the UI module and CLI (no display required)."""

from __future__ import annotations

import csv
from pathlib import Path

import pytest

from daisyworld.daisies.daisy import Color
from daisyworld.simulation.engine import SimulationEngine
from daisyworld.ui.pygame_client import (
    MAX_SPEED,
    MIN_SPEED,
    PygameRenderer,
    patch_colour,
    scale_speed,
    soil_colour,
)
from daisyworld.world.grid import PatchView


def test_pygame_renderer_importable() -> None:
    """PygameRenderer class is importable without initialising pygame."""
    assert PygameRenderer is not None


def test_main_module_importable() -> None:
    """The __main__ module is importable and exposes main()."""
    from daisyworld.__main__ import main

    assert callable(main)


def test_patch_colours() -> None:
    assert patch_colour(PatchView(color=Color.BLACK, soil_pollution=0.9)) == (0, 0, 0)
    assert patch_colour(PatchView(color=Color.WHITE, soil_pollution=0.0)) == (255, 255, 255)
    assert soil_colour(0.0) == (200, 200, 200)
    assert soil_colour(1.0) == (50, 50, 50)


def test_headless_run_writes_csv(tmp_path: Path) -> None:
    from daisyworld.__main__ import main

    config = tmp_path / "tiny.yaml"
    config.write_text("rows: 5\ncols: 5\nworkers: 2\n")
    out = tmp_path / "steps.csv"

    main(
        [
            "-c", str(config),
            "--headless",
            "--steps", "4",
            "--csv", str(out),
            "--luminosity", "high",
        ]
    )

    with out.open(newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 5
    assert float(rows[-1]["Luminosity"]) == 1.4


def test_headless_requires_steps() -> None:
    from daisyworld.__main__ import main

    with pytest.raises(SystemExit):
        main(["--headless"])


def test_scale_speed_clamps() -> None:
    assert scale_speed(10.0, 2.0) == 20.0
    assert scale_speed(10.0, 0.5) == 5.0
    assert scale_speed(MAX_SPEED, 2.0) == MAX_SPEED
    assert scale_speed(MIN_SPEED, 0.5) == MIN_SPEED


def test_due_ticks_follow_schedule(engine: SimulationEngine) -> None:
    """Ticks run on a fixed schedule, without a window being opened."""
    renderer = PygameRenderer.__new__(PygameRenderer)
    renderer.engine = engine
    renderer.ticks_per_second = 10.0
    renderer._next_tick_ms = None

    engine.start()
    try:
        assert renderer._run_due_ticks(1000.0) == 1
        assert renderer._run_due_ticks(1050.0) == 0
        assert renderer._run_due_ticks(1100.0) == 1
        assert renderer._run_due_ticks(1350.0) == 2
        # a long stall catches up by a bounded number of ticks, then resyncs
        assert renderer._run_due_ticks(5000.0) == 8
        assert renderer._run_due_ticks(5050.0) == 0
        assert engine.tick == 12
    finally:
        engine.stop()
    assert renderer._run_due_ticks(6000.0) == 0
    assert engine.tick == 12
