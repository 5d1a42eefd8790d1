"""Grid — the fixed rectangular container for all patch state.

The Grid owns every Patch (and, through them, every Daisy) and provides
the spatial queries used by the thermal and life-cycle phases: bounded
4-neighbour lookup, row-band iteration, and array snapshots of temperature
and occupancy.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
from numpy.typing import NDArray

from daisyworld.daisies.daisy import Color, Daisy
from daisyworld.world.patch import Patch

if TYPE_CHECKING:
    from numpy.random import Generator

    from daisyworld.simulation.config import Conditions

# Seeding scan order: up, down, left, right
NEIGHBOUR_OFFSETS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


class PatchView(NamedTuple):
    """Read-only snapshot of one patch for display."""

    color: Color | None
    soil_pollution: float


@dataclass
class Grid:
    """A 2D grid of patches with 4-neighbour adjacency and no wraparound.

    Attributes:
        rows: Number of rows.
        cols: Number of columns.
        patches: 2D list of Patch objects indexed as ``patches[row][col]``.
    """

    rows: int
    cols: int
    patches: list[list[Patch]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Create every patch at temperature 0 with clean soil."""
        if self.rows < 1 or self.cols < 1:
            msg = f"grid must be at least 1x1, got {self.rows}x{self.cols}"
            raise ValueError(msg)
        self.patches = [
            [Patch(row=row, col=col) for col in range(self.cols)]
            for row in range(self.rows)
        ]

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def patch_at(self, row: int, col: int) -> Patch:
        """Return the patch at ``(row, col)``.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            msg = f"({row}, {col}) out of bounds for {self.rows}x{self.cols}"
            raise IndexError(msg)
        return self.patches[row][col]

    def neighbours(self, row: int, col: int) -> list[Patch]:
        """Return in-bounds orthogonal neighbours in up/down/left/right order."""
        result: list[Patch] = []
        for dr, dc in NEIGHBOUR_OFFSETS:
            nr, nc = row + dr, col + dc
            if 0 <= nr < self.rows and 0 <= nc < self.cols:
                result.append(self.patches[nr][nc])
        return result

    def iter_patches(self) -> Iterator[Patch]:
        for row in self.patches:
            yield from row

    def iter_band(self, start: int, stop: int) -> Iterator[Patch]:
        """Yield patches of rows ``start`` (inclusive) to ``stop`` (exclusive)."""
        for row in self.patches[start:stop]:
            yield from row

    def contaminate(
        self,
        rng: Generator,
        *,
        probability: float = 0.3,
        low: float = 0.4,
        high: float = 1.0,
    ) -> int:
        """Give a random subset of patches an initial pollution level.

        Args:
            rng: Seeded random generator.
            probability: Chance that any given patch starts polluted.
            low: Lower bound of the pollution drawn for a polluted patch.
            high: Upper bound (exclusive) of that pollution.

        Returns:
            Number of patches that were polluted.
        """
        rolls = rng.random(self.shape)
        values = rng.uniform(low, high, self.shape)
        polluted = 0
        for patch in self.iter_patches():
            if rolls[patch.row, patch.col] < probability:
                patch.set_pollution(float(values[patch.row, patch.col]))
                polluted += 1
        return polluted

    def seed_population(
        self,
        rng: Generator,
        color: Color,
        count: int,
        *,
        max_age: int,
        conditions: Conditions,
    ) -> int:
        """Scatter ``count`` daisies of ``color`` on random empty patches.

        Each daisy gets a random starting age in ``[0, max_age)`` so the
        initial population does not die off in lockstep.

        Args:
            rng: Seeded random generator.
            color: Colour to plant.
            count: How many daisies to plant.
            max_age: Lifespan in ticks.
            conditions: Conditions supplying the albedo snapshot.

        Returns:
            Number of daisies planted.

        Raises:
            ValueError: If there are fewer empty patches than ``count``.
        """
        free = self.size - int(self.occupancy().sum())
        if count > free:
            msg = f"cannot plant {count} {color.value} daisies on {free} empty patches"
            raise ValueError(msg)

        planted = 0
        while planted < count:
            row = int(rng.integers(0, self.rows))
            col = int(rng.integers(0, self.cols))
            patch = self.patches[row][col]
            if patch.has_daisy:
                continue
            patch.occupant = Daisy.sprout(
                color,
                row,
                col,
                conditions,
                age=int(rng.integers(0, max_age)),
            )
            planted += 1
        return planted

    def temperatures(self) -> NDArray[np.float64]:
        """Return a fresh array copy of all patch temperatures."""
        return np.array(
            [[patch.temperature for patch in row] for row in self.patches],
            dtype=np.float64,
        )

    def load_temperatures(self, values: NDArray[np.float64]) -> None:
        """Overwrite all patch temperatures from ``values``.

        Raises:
            ValueError: If ``values`` does not match the grid shape.
        """
        if values.shape != self.shape:
            msg = f"temperature buffer {values.shape} does not match grid {self.shape}"
            raise ValueError(msg)
        for patch in self.iter_patches():
            patch.temperature = float(values[patch.row, patch.col])

    def mean_temperature(self) -> float:
        return float(self.temperatures().mean())

    def pollution(self) -> NDArray[np.float64]:
        return np.array(
            [[patch.soil_pollution for patch in row] for row in self.patches],
            dtype=np.float64,
        )

    def occupancy(self) -> NDArray[np.bool_]:
        """Return a boolean array, True where a daisy is present."""
        return np.array(
            [[patch.has_daisy for patch in row] for row in self.patches],
            dtype=np.bool_,
        )

    def census(self) -> dict[Color, int]:
        """Count occupied patches per colour by walking the grid."""
        counts = {color: 0 for color in Color}
        for patch in self.iter_patches():
            if patch.occupant is not None:
                counts[patch.occupant.color] += 1
        return counts

    def view(self, row: int, col: int) -> PatchView:
        """Return what a display needs to draw one patch."""
        patch = self.patch_at(row, col)
        occupant = patch.occupant
        return PatchView(
            color=None if occupant is None else occupant.color,
            soil_pollution=patch.soil_pollution,
        )

    def views(self) -> list[list[PatchView]]:
        """Per-patch display snapshots, row by row.

        Each view is read independently; there is no guarantee of
        consistency across the whole grid while a tick is running.
        """
        return [
            [self.view(row, col) for col in range(self.cols)]
            for row in range(self.rows)
        ]
