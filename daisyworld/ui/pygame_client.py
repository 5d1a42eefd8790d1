"""Pygame 2D visualization for the Daisyworld simulation.

Renders daisies and soil pollution in a window with a stats panel.  The
simulation ticks at a configurable rate while the display refreshes at
the Pygame frame rate; the engine only advances while it is RUNNING.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pygame

from daisyworld.daisies.daisy import Color
from daisyworld.simulation.config import Luminosity
from daisyworld.simulation.engine import SchedulerState

if TYPE_CHECKING:
    from daisyworld.simulation.engine import SimulationEngine
    from daisyworld.world.grid import PatchView

# Colour palette
_BG = (30, 30, 30)
_TEXT = (200, 200, 200)
_DAISY_COLOURS: dict[Color, tuple[int, int, int]] = {
    Color.BLACK: (0, 0, 0),
    Color.WHITE: (255, 255, 255),
}


MIN_SPEED = 0.25
MAX_SPEED = 120.0
# Catch-up limit so a slow frame does not trigger a burst of ticks
_MAX_TICKS_PER_FRAME = 8


def scale_speed(ticks_per_second: float, factor: float) -> float:
    """Multiply the tick rate by ``factor``, kept within the supported range."""
    return min(MAX_SPEED, max(MIN_SPEED, ticks_per_second * factor))


def soil_colour(pollution: float) -> tuple[int, int, int]:
    """Grey level for bare soil; more pollution is darker."""
    grey = int(200 - pollution * 150)
    return (grey, grey, grey)


def patch_colour(view: PatchView) -> tuple[int, int, int]:
    if view.color is not None:
        return _DAISY_COLOURS[view.color]
    return soil_colour(view.soil_pollution)


class PygameRenderer:
    """Renders a SimulationEngine state into a Pygame window.

    Attributes:
        engine: The simulation engine to visualise.
        cell_size: Pixel size of each grid cell.
        screen: The Pygame display surface.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        cell_size: int = 20,
        ticks_per_second: float = 10.0,
    ) -> None:
        """Initialise the renderer.

        Args:
            engine: The simulation engine to render (already set up).
            cell_size: Pixel width/height per grid cell.
            ticks_per_second: Simulation ticks per real-time second.
        """
        self.engine = engine
        self.cell_size = cell_size
        self.ticks_per_second = scale_speed(ticks_per_second, 1.0)
        self._next_tick_ms: float | None = None

        w = engine.grid.cols * cell_size
        h = engine.grid.rows * cell_size
        self._panel_width = 240
        self._win_w = w + self._panel_width
        self._win_h = max(h, 320)

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("Daisyworld")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step sim, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            self.clock.tick(fps)
            self._handle_events()
            if self.engine.state is SchedulerState.RUNNING:
                self._run_due_ticks(pygame.time.get_ticks())
            self._draw()

        if self.engine.state is SchedulerState.RUNNING:
            self.engine.stop()
        pygame.quit()

    def _run_due_ticks(self, now_ms: float) -> int:
        """Advance the engine for every tick scheduled at or before ``now_ms``."""
        period = 1000.0 / self.ticks_per_second
        if self._next_tick_ms is None:
            self._next_tick_ms = now_ms
        done = 0
        while self._next_tick_ms <= now_ms and done < _MAX_TICKS_PER_FRAME:
            if self.engine.advance() is None:
                break
            self._next_tick_ms += period
            done += 1
        if self._next_tick_ms <= now_ms:
            self._next_tick_ms = now_ms + period
        return done

    def _toggle_running(self) -> None:
        if self.engine.state is SchedulerState.RUNNING:
            self.engine.stop()
        elif self.engine.state is not SchedulerState.FAILED:
            self._next_tick_ms = None
            self.engine.start()

    def _cycle_luminosity(self) -> None:
        presets = list(Luminosity)
        current = presets.index(self.engine.conditions.luminosity_preset)
        self.engine.adjust(luminosity=presets[(current + 1) % len(presets)])

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    self._toggle_running()
                elif event.key == pygame.K_l:
                    self._cycle_luminosity()
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self.ticks_per_second = scale_speed(self.ticks_per_second, 2.0)
                elif event.key == pygame.K_MINUS:
                    self.ticks_per_second = scale_speed(self.ticks_per_second, 0.5)

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_patches()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_patches(self) -> None:
        """Draw daisies in their colour and bare soil shaded by pollution."""
        cs = self.cell_size
        for row, views in enumerate(self.engine.grid.views()):
            for col, view in enumerate(views):
                pygame.draw.rect(
                    self.screen,
                    patch_colour(view),
                    (col * cs, row * cs, cs - 1, cs - 1),
                )

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self.engine.grid.cols * self.cell_size + 10
        y = 10
        report = self.engine.report()

        lines = [
            f"Step: {report.step}",
            f"Speed: {self.ticks_per_second:.1f} t/s",
            self.engine.state.name,
            "",
            f"Temperature: {report.global_temperature:.2f}",
            f"Black daisies: {report.black}",
            f"White daisies: {report.white}",
            "",
            f"Luminosity: {self.engine.conditions.luminosity_preset.name}"
            f" ({report.luminosity})",
            f"Albedo B/W/S: {report.albedo_black:.2f}"
            f"/{report.albedo_white:.2f}/{report.albedo_surface:.2f}",
            "",
            "--- Controls ---",
            "SPACE: start/stop",
            "L: cycle luminosity",
            "+/-: speed",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, _TEXT)
            self.screen.blit(surf, (panel_x, y))
            y += 18
