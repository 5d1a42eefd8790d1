"""SimulationEngine — the step scheduler.

Owns all simulation state and advances it in the canonical tick order:

1. Heating (every patch, in parallel bands)
2. Diffusion (read-only snapshot -> fresh buffer, gathered per band)
3. Life cycle (pollution drift, aging, death, seed proposals), then
   planting of the winning seed proposals
4. Global temperature recompute
5. Tick increment
6. Step report pushed to observers

Each phase finishes on every band before the next one starts.  A tick
runs under ``_tick_lock`` so ``stop()`` and ``adjust()`` only ever take
effect between ticks.

Lifecycle of the engine itself::

    UNINITIALIZED --setup()--> READY --start()--> RUNNING --stop()--> STOPPED
                                                     ^                   |
                                                     +------start()------+

A tick that raises leaves the grid part-way through a phase, so the engine
moves to FAILED, from which it can no longer be stepped or started.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from functools import partial

import numpy as np
from numpy.random import Generator

from daisyworld.daisies.daisy import Color, Daisy
from daisyworld.daisies.ledger import PopulationLedger
from daisyworld.daisies.lifecycle import (
    LifeCycleDraws,
    SeedClaims,
    life_cycle_band,
    plant_band,
)
from daisyworld.simulation.config import (
    ConfigError,
    Conditions,
    Luminosity,
    SimulationConfig,
)
from daisyworld.simulation.workers import PhasePool
from daisyworld.thermal.diffusion import diffuse_rows
from daisyworld.thermal.heating import heat_band
from daisyworld.world.grid import Grid

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Where the engine is in its lifecycle."""

    UNINITIALIZED = auto()
    READY = auto()
    RUNNING = auto()
    STOPPED = auto()
    FAILED = auto()


class SchedulerStateError(RuntimeError):
    """Raised on an operation the current scheduler state does not allow."""


@dataclass(frozen=True)
class StepReport:
    """What observers receive after setup and after every tick."""

    step: int
    global_temperature: float
    black: int
    white: int
    luminosity: float
    albedo_black: float
    albedo_white: float
    albedo_surface: float


StepObserver = Callable[[StepReport], None]


@dataclass
class SimulationEngine:
    """Drives the simulation forward tick by tick.

    Attributes:
        config: Validated simulation configuration.
        grid: The patch grid.
        ledger: Live daisy counts per colour.
        conditions: Luminosity and albedo parameters for the next tick.
        rng: Master seeded random generator.
        tick: Number of ticks completed.
        global_temperature: Mean patch temperature after the last tick.
        state: Current scheduler state.
        observers: Callables receiving a StepReport after each tick.
    """

    config: SimulationConfig
    grid: Grid = field(init=False)
    ledger: PopulationLedger = field(init=False)
    conditions: Conditions = field(init=False)
    rng: Generator = field(init=False)
    tick: int = 0
    global_temperature: float = 0.0
    state: SchedulerState = field(init=False, default=SchedulerState.UNINITIALIZED)
    observers: list[StepObserver] = field(init=False, default_factory=list)
    _pool: PhasePool = field(init=False, repr=False)
    _tick_lock: threading.Lock = field(init=False, repr=False)
    _wake: threading.Event = field(init=False, repr=False)
    _generation: int = field(init=False, default=0, repr=False)
    _runner: threading.Thread | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate config, build and contaminate the grid, start the pool."""
        self.config.validate()
        self.rng = np.random.default_rng(self.config.seed)
        self.conditions = self.config.initial_conditions()
        self.grid = Grid(rows=self.config.rows, cols=self.config.cols)
        self.grid.contaminate(
            self.rng,
            probability=self.config.initial_pollution_probability,
            low=self.config.pollution_event_low,
            high=self.config.pollution_event_high,
        )
        self.ledger = PopulationLedger()
        self._pool = PhasePool(self.config.rows, self.config.workers)
        self._tick_lock = threading.Lock()
        self._wake = threading.Event()

    # -- Setup -------------------------------------------------------------

    def subscribe(self, observer: StepObserver) -> None:
        """Register ``observer`` to receive every subsequent StepReport."""
        self.observers.append(observer)

    def setup(self) -> StepReport:
        """Seed the initial population and run one heating pass.

        Publishes the step-0 report.

        Raises:
            SchedulerStateError: If the engine was already set up.
        """
        with self._tick_lock:
            if self.state is not SchedulerState.UNINITIALIZED:
                msg = f"setup() called in state {self.state.name}"
                raise SchedulerStateError(msg)

            for color, count in (
                (Color.BLACK, self.config.initial_black),
                (Color.WHITE, self.config.initial_white),
            ):
                self.grid.seed_population(
                    self.rng,
                    color,
                    count,
                    max_age=self.config.max_age,
                    conditions=self.conditions,
                )
            census = self.grid.census()
            self.ledger.reset(black=census[Color.BLACK], white=census[Color.WHITE])

            self._pool.run_phase(
                partial(
                    heat_band,
                    self.grid,
                    self.conditions,
                    live_albedo=self.config.live_albedo,
                ),
            )
            self.global_temperature = self.grid.mean_temperature()
            self.state = SchedulerState.READY
            report = self.report()

        logger.info(
            "Setup %dx%d grid: %d black, %d white, luminosity %s, T=%.2f",
            self.grid.rows,
            self.grid.cols,
            report.black,
            report.white,
            self.conditions.luminosity_preset.name,
            report.global_temperature,
        )
        self._publish(report)
        return report

    def plant(self, row: int, col: int, color: Color, age: int = 0) -> Daisy:
        """Place a daisy by hand on an empty patch and count it.

        Raises:
            SchedulerStateError: While the engine is running.
            ValueError: If the patch is already occupied.
        """
        with self._tick_lock:
            if self.state is SchedulerState.RUNNING:
                msg = "cannot plant while the simulation is running"
                raise SchedulerStateError(msg)
            patch = self.grid.patch_at(row, col)
            if patch.has_daisy:
                msg = f"patch ({row}, {col}) is already occupied"
                raise ValueError(msg)
            daisy = Daisy.sprout(color, row, col, self.conditions, age=age)
            patch.occupant = daisy
            self.ledger.increment(color)
            return daisy

    def adjust(
        self,
        *,
        luminosity: str | Luminosity | None = None,
        albedo_black: float | None = None,
        albedo_white: float | None = None,
    ) -> Conditions:
        """Change conditions for subsequent ticks.

        Existing daisies keep the albedo they were created with; only
        daisies planted from now on pick up new albedo values.

        Raises:
            ConfigError: If a value is out of range.
        """
        changes: dict[str, object] = {}
        if luminosity is not None:
            changes["luminosity_preset"] = Luminosity.parse(luminosity)
        albedos = (("albedo_black", albedo_black), ("albedo_white", albedo_white))
        for name, value in albedos:
            if value is None:
                continue
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must be within [0, 1], got {value}"
                raise ConfigError(msg)
            changes[name] = value

        with self._tick_lock:
            self.conditions = replace(self.conditions, **changes)
            conditions = self.conditions
        logger.info("Conditions adjusted: %s", conditions)
        return conditions

    # -- Stepping ----------------------------------------------------------

    def step(self) -> StepReport:
        """Advance the simulation by one tick regardless of run state.

        Raises:
            SchedulerStateError: If ``setup()`` has not been called.
        """
        with self._tick_lock:
            if self.state is SchedulerState.UNINITIALIZED:
                msg = "call setup() before stepping"
                raise SchedulerStateError(msg)
            if self.state is SchedulerState.FAILED:
                msg = "engine failed on an earlier tick"
                raise SchedulerStateError(msg)
            report = self._checked_tick()
        self._publish(report)
        return report

    def run(self, ticks: int) -> None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.
        """
        for _ in range(ticks):
            self.step()

    def advance(self) -> StepReport | None:
        """Run one tick if the engine is RUNNING, else return None.

        The state check and the tick happen under the same lock, so a
        ``stop()`` can never land in the middle of a tick.
        """
        return self._advance(generation=None)

    def _advance(self, generation: int | None) -> StepReport | None:
        with self._tick_lock:
            if self.state is not SchedulerState.RUNNING:
                return None
            if generation is not None and generation != self._generation:
                return None
            report = self._checked_tick()
        self._publish(report)
        return report

    def _checked_tick(self) -> StepReport:
        """Run ``_tick`` and move to FAILED if any phase raises."""
        try:
            return self._tick()
        except Exception:
            self.state = SchedulerState.FAILED
            self._wake.set()
            logger.error("Tick %d failed; engine is now FAILED", self.tick + 1)
            raise

    def _tick(self) -> StepReport:
        cfg = self.config
        conditions = self.conditions
        grid = self.grid

        draws = LifeCycleDraws.sample(
            self.rng,
            grid.shape,
            event_tick=self.tick % cfg.pollution_event_period == 0,
            low=cfg.pollution_event_low,
            high=cfg.pollution_event_high,
        )

        # 1. Heating
        self._pool.run_phase(
            partial(heat_band, grid, conditions, live_albedo=cfg.live_albedo),
        )

        # 2. Diffusion from a snapshot into a fresh buffer
        snapshot = grid.temperatures()
        bands = self._pool.run_phase(
            partial(diffuse_rows, snapshot, factor=cfg.diffuse_factor),
        )
        grid.load_temperatures(np.concatenate(bands, axis=0))

        # 3. Life cycle, then planting of winning seeds
        occupied = grid.occupancy()
        claims = SeedClaims(grid.rows, grid.cols)
        deaths = sum(
            self._pool.run_phase(
                partial(
                    life_cycle_band,
                    grid,
                    occupied=occupied,
                    draws=draws,
                    claims=claims,
                    ledger=self.ledger,
                    config=cfg,
                ),
            ),
        )
        births = sum(
            self._pool.run_phase(
                partial(
                    plant_band,
                    grid,
                    claims=claims,
                    ledger=self.ledger,
                    conditions=conditions,
                ),
            ),
        )

        # 4-5. Global temperature, tick counter
        self.global_temperature = grid.mean_temperature()
        self.tick += 1

        report = self.report()
        logger.debug(
            "Tick %d: T=%.3f black=%d white=%d births=%d deaths=%d",
            report.step,
            report.global_temperature,
            report.black,
            report.white,
            births,
            deaths,
        )
        return report

    def report(self) -> StepReport:
        """Build a StepReport from the current state."""
        counts = self.ledger.counts()
        return StepReport(
            step=self.tick,
            global_temperature=self.global_temperature,
            black=counts[Color.BLACK],
            white=counts[Color.WHITE],
            luminosity=self.conditions.luminosity,
            albedo_black=self.conditions.albedo_black,
            albedo_white=self.conditions.albedo_white,
            albedo_surface=self.conditions.albedo_surface,
        )

    def _publish(self, report: StepReport) -> None:
        """Deliver ``report`` to every observer once; failures are logged."""
        for observer in list(self.observers):
            try:
                observer(report)
            except Exception:
                logger.exception(
                    "Step observer %r failed on step %d; continuing",
                    observer,
                    report.step,
                )

    # -- Run control -------------------------------------------------------

    def start(self) -> None:
        """Enter RUNNING from READY or STOPPED.

        Raises:
            SchedulerStateError: From any other state.
        """
        with self._tick_lock:
            if self.state not in (SchedulerState.READY, SchedulerState.STOPPED):
                msg = f"cannot start from state {self.state.name}"
                raise SchedulerStateError(msg)
            self.state = SchedulerState.RUNNING
            self._generation += 1
            self._wake.clear()
        logger.info("Simulation started at tick %d", self.tick)

    def stop(self) -> None:
        """Leave RUNNING; waits for an in-flight tick to finish first.

        Raises:
            SchedulerStateError: If the engine is not running.
        """
        with self._tick_lock:
            if self.state is not SchedulerState.RUNNING:
                msg = f"cannot stop from state {self.state.name}"
                raise SchedulerStateError(msg)
            self.state = SchedulerState.STOPPED
            self._wake.set()
        logger.info("Simulation stopped at tick %d", self.tick)

    def run_until_stopped(
        self, interval: float = 0.0, *, generation: int | None = None
    ) -> int:
        """Tick repeatedly while RUNNING, pausing ``interval`` seconds between ticks.

        Call ``start()`` first; returns as soon as the engine is no longer
        RUNNING, or once a later ``start()`` has begun a new run.

        Args:
            interval: Seconds to wait between ticks.
            generation: Run this loop belongs to; defaults to the current one.

        Returns:
            Number of ticks executed.
        """
        if generation is None:
            generation = self._generation
        ticks = 0
        while self._advance(generation) is not None:
            ticks += 1
            if interval > 0:
                self._wake.wait(interval)
        return ticks

    def start_background(self, interval: float = 0.0) -> threading.Thread:
        """Start the engine and tick on a daemon thread until ``stop()``.

        A runner left over from an earlier run is joined first, so at most
        one scheduler thread drives the engine.
        """
        previous = self._runner
        if (
            previous is not None
            and previous is not threading.current_thread()
            and self.state is not SchedulerState.RUNNING
        ):
            previous.join()
        self.start()
        thread = threading.Thread(
            target=self.run_until_stopped,
            kwargs={"interval": interval, "generation": self._generation},
            name="daisyworld-scheduler",
            daemon=True,
        )
        thread.start()
        self._runner = thread
        return thread

    def close(self) -> None:
        """Shut down the worker pool."""
        self._pool.close()

    def __enter__(self) -> SimulationEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
