"""Life-cycle phase — pollution drift, aging, seeding, and death.

The phase runs in two barrier-separated passes over bands of rows:

1. ``life_cycle_band`` drifts each patch's pollution, ages its daisy,
   removes daisies that reached ``max_age``, and lets survivors *propose*
   a seed into the first neighbour that was empty when the phase began.
2. ``plant_band`` plants the winning proposal on each target patch.

Proposals go through ``SeedClaims``: each target patch has its own lock,
and the claim from the lowest row-major source index wins regardless of
which worker gets there first.  Losers simply do not seed this tick.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from daisyworld.daisies.daisy import Color, Daisy

if TYPE_CHECKING:
    from numpy.random import Generator

    from daisyworld.daisies.ledger import PopulationLedger
    from daisyworld.simulation.config import Conditions, SimulationConfig
    from daisyworld.world.grid import Grid


@dataclass(frozen=True)
class LifeCycleDraws:
    """Every random number the life-cycle phase consumes in one tick.

    Sampling these up front on the engine thread keeps results independent
    of how patches are spread over workers.

    Attributes:
        seed_rolls: Uniform draw per patch compared with the seed threshold.
        event_rolls: Uniform draw per patch gating a pollution event, or
            None on ticks without pollution events.
        event_values: Candidate pollution per patch for an event, or None.
    """

    seed_rolls: NDArray[np.float64]
    event_rolls: NDArray[np.float64] | None = None
    event_values: NDArray[np.float64] | None = None

    @classmethod
    def sample(
        cls,
        rng: Generator,
        shape: tuple[int, int],
        *,
        event_tick: bool,
        low: float = 0.4,
        high: float = 1.0,
    ) -> LifeCycleDraws:
        """Draw one tick's worth of random numbers.

        Args:
            rng: Seeded random generator.
            shape: Grid shape ``(rows, cols)``.
            event_tick: Whether pollution events may fire this tick.
            low: Lower bound of event pollution values.
            high: Upper bound of event pollution values.
        """
        event_rolls = event_values = None
        if event_tick:
            event_rolls = rng.random(shape)
            event_values = rng.uniform(low, high, shape)
        return cls(
            seed_rolls=rng.random(shape),
            event_rolls=event_rolls,
            event_values=event_values,
        )


@dataclass(frozen=True)
class SeedClaim:
    """A pending seed: who proposed it and what colour it carries."""

    source: int
    color: Color


class SeedClaims:
    """Per-target seed proposals for one tick, one lock per patch."""

    def __init__(self, rows: int, cols: int) -> None:
        self.rows = rows
        self.cols = cols
        self._locks = [threading.Lock() for _ in range(rows * cols)]
        self._claims: list[SeedClaim | None] = [None] * (rows * cols)

    def _index(self, row: int, col: int) -> int:
        return row * self.cols + col

    def offer(
        self,
        target: tuple[int, int],
        source: tuple[int, int],
        color: Color,
    ) -> bool:
        """Propose a seed from ``source`` into ``target``.

        Returns:
            True if this proposal currently holds the target.  A later
            proposal from a lower source index can still displace it.
        """
        idx = self._index(*target)
        src = self._index(*source)
        with self._locks[idx]:
            current = self._claims[idx]
            if current is None or src < current.source:
                self._claims[idx] = SeedClaim(source=src, color=color)
                return True
            return False

    def winner(self, row: int, col: int) -> SeedClaim | None:
        idx = self._index(row, col)
        with self._locks[idx]:
            return self._claims[idx]

    def __len__(self) -> int:
        return sum(claim is not None for claim in self._claims)


def first_free_neighbour(
    grid: Grid,
    occupied: NDArray[np.bool_],
    row: int,
    col: int,
) -> tuple[int, int] | None:
    """Return the first neighbour (up, down, left, right) empty in ``occupied``."""
    for patch in grid.neighbours(row, col):
        if not occupied[patch.row, patch.col]:
            return (patch.row, patch.col)
    return None


def life_cycle_band(
    grid: Grid,
    start: int,
    stop: int,
    *,
    occupied: NDArray[np.bool_],
    draws: LifeCycleDraws,
    claims: SeedClaims,
    ledger: PopulationLedger,
    config: SimulationConfig,
) -> int:
    """Run the first life-cycle pass over rows ``[start, stop)``.

    Only patches inside the band are written.  Neighbour occupancy is read
    from ``occupied``, the snapshot taken before the phase started.

    Returns:
        Number of daisies that died in this band.
    """
    deaths = 0
    for patch in grid.iter_band(start, stop):
        row, col = patch.row, patch.col

        if (
            draws.event_rolls is not None
            and draws.event_values is not None
            and draws.event_rolls[row, col] < config.pollution_event_probability
        ):
            value = float(draws.event_values[row, col])
            if value > patch.soil_pollution:
                patch.set_pollution(value)

        daisy = patch.occupant
        if daisy is None:
            patch.adjust_pollution(-config.bare_cleaning_rate)
            continue

        patch.adjust_pollution(-config.occupied_cleaning_rate)

        if not daisy.grow_older(config.max_age):
            ledger.decrement(daisy.color)
            patch.adjust_pollution(config.death_pollution)
            patch.occupant = None
            deaths += 1
            continue

        if daisy.wants_to_seed(
            patch.temperature,
            patch.soil_pollution,
            float(draws.seed_rolls[row, col]),
            pollution_suppresses=config.pollution_suppresses_seeding,
        ):
            target = first_free_neighbour(grid, occupied, row, col)
            if target is not None:
                claims.offer(target, (row, col), daisy.color)
    return deaths


def plant_band(
    grid: Grid,
    start: int,
    stop: int,
    *,
    claims: SeedClaims,
    ledger: PopulationLedger,
    conditions: Conditions,
) -> int:
    """Plant the winning seed claims that target rows ``[start, stop)``.

    Returns:
        Number of daisies planted in this band.
    """
    births = 0
    for patch in grid.iter_band(start, stop):
        claim = claims.winner(patch.row, patch.col)
        if claim is None:
            continue
        patch.occupant = Daisy.sprout(claim.color, patch.row, patch.col, conditions)
        ledger.increment(claim.color)
        births += 1
    return births
