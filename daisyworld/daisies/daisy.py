"""Daisy — a single black or white organism rooted on one patch.

A daisy's albedo is copied from the per-colour albedo in effect when the
daisy is created and is never re-read afterwards, so changing the albedo
parameters mid-run only affects daisies planted from then on.

The daisy holds its ``(row, col)`` position but never a reference to its
patch; the grid is the sole owner of both.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from daisyworld.simulation.config import Conditions

# Quadratic fit of seeding probability against local temperature
_SEED_LINEAR = 0.1457
_SEED_QUADRATIC = 0.0032
_SEED_OFFSET = 0.6443


class Color(Enum):
    """Daisy colour."""

    BLACK = "black"
    WHITE = "white"


def seed_threshold(
    temperature: float,
    soil_pollution: float = 0.0,
    *,
    pollution_suppresses: bool = True,
) -> float:
    """Return the probability threshold for seeding at ``temperature``.

    The curve peaks around 22.5 degrees and goes negative (never seeds)
    far from it.  When ``pollution_suppresses`` is set the result is
    scaled by ``1 - soil_pollution``.

    Args:
        temperature: Temperature of the parent daisy's patch.
        soil_pollution: Pollution of the parent daisy's patch.
        pollution_suppresses: Whether pollution scales the threshold down.

    Returns:
        Threshold to compare a uniform draw against.
    """
    threshold = (
        _SEED_LINEAR * temperature
        - _SEED_QUADRATIC * temperature * temperature
        - _SEED_OFFSET
    )
    if pollution_suppresses:
        threshold *= 1.0 - soil_pollution
    return threshold


@dataclass
class Daisy:
    """A daisy occupying one patch.

    Attributes:
        color: Black or white.
        albedo: Reflectivity snapshotted at creation.
        row: Row of the patch this daisy grows on.
        col: Column of the patch this daisy grows on.
        age: Ticks lived so far.
    """

    color: Color
    albedo: float
    row: int
    col: int
    age: int = 0

    @classmethod
    def sprout(
        cls,
        color: Color,
        row: int,
        col: int,
        conditions: Conditions,
        age: int = 0,
    ) -> Daisy:
        """Create a daisy whose albedo is taken from current conditions.

        Args:
            color: Colour of the new daisy.
            row: Row of the patch it grows on.
            col: Column of the patch it grows on.
            conditions: Conditions in effect right now.
            age: Starting age.

        Returns:
            The new Daisy.
        """
        return cls(
            color=color,
            albedo=conditions.albedo_of(color),
            row=row,
            col=col,
            age=age,
        )

    def is_alive(self, max_age: int) -> bool:
        """Return True while ``age`` is below ``max_age``."""
        return self.age < max_age

    def grow_older(self, max_age: int) -> bool:
        """Age by one tick and report whether the daisy is still alive."""
        self.age += 1
        return self.is_alive(max_age)

    def wants_to_seed(
        self,
        temperature: float,
        soil_pollution: float,
        roll: float,
        *,
        pollution_suppresses: bool = True,
    ) -> bool:
        """Decide whether this daisy tries to seed a neighbour this tick.

        Args:
            temperature: Current temperature of the daisy's patch.
            soil_pollution: Current pollution of the daisy's patch.
            roll: Uniform draw in ``[0, 1)``.
            pollution_suppresses: Whether pollution scales the threshold.
        """
        threshold = seed_threshold(
            temperature,
            soil_pollution,
            pollution_suppresses=pollution_suppresses,
        )
        return roll < threshold
