"""Patch — a single cell in the Daisyworld grid.

Each patch holds its local temperature, a soil-pollution level, and at most
one daisy.  Pollution is kept inside ``[0, 1]`` by routing every write
through :meth:`Patch.set_pollution`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from daisyworld.daisies.daisy import Daisy


def clamp_unit(value: float) -> float:
    """Clamp ``value`` into the closed unit interval."""
    return max(0.0, min(1.0, value))


@dataclass
class Patch:
    """A single tile in the grid.

    Attributes:
        row: Row position.
        col: Column position.
        temperature: Local temperature in arbitrary sim-units.
        soil_pollution: Pollution level (0.0-1.0).  Use ``set_pollution``
            or ``adjust_pollution`` to change it.
        occupant: The daisy growing here, if any.
    """

    row: int
    col: int
    temperature: float = 0.0
    soil_pollution: float = 0.0
    occupant: Daisy | None = None

    def __post_init__(self) -> None:
        self.soil_pollution = clamp_unit(self.soil_pollution)

    @property
    def has_daisy(self) -> bool:
        """Return True if a daisy occupies this patch."""
        return self.occupant is not None

    def set_pollution(self, value: float) -> None:
        """Set soil pollution, clamped to ``[0, 1]``."""
        self.soil_pollution = clamp_unit(value)

    def adjust_pollution(self, delta: float) -> None:
        """Shift soil pollution by ``delta``, clamped to ``[0, 1]``."""
        self.soil_pollution = clamp_unit(self.soil_pollution + delta)
