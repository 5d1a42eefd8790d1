"""Radiative heating — per-patch absorption of solar luminosity.

Heating reads only the patch itself and the current conditions, so bands
of rows can be heated concurrently without coordination.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from daisyworld.simulation.config import Conditions
    from daisyworld.world.grid import Grid
    from daisyworld.world.patch import Patch

_HEATING_SCALE = 72.0
_HEATING_OFFSET = 80.0


def local_heating(absorbed: float) -> float:
    """Convert absorbed luminosity into an instantaneous temperature.

    ``72 * ln(absorbed) + 80``, or a flat 80 when nothing is absorbed.
    """
    if absorbed > 0:
        return _HEATING_SCALE * math.log(absorbed) + _HEATING_OFFSET
    return _HEATING_OFFSET


def patch_albedo(
    patch: Patch, conditions: Conditions, *, live_albedo: bool = False
) -> float:
    """Return the albedo governing absorption at ``patch``.

    Args:
        patch: The patch being heated.
        conditions: Current luminosity and albedo parameters.
        live_albedo: Read the current per-colour albedo instead of the
            value the daisy was created with.
    """
    daisy = patch.occupant
    if daisy is None:
        return conditions.albedo_surface
    if live_albedo:
        return conditions.albedo_of(daisy.color)
    return daisy.albedo


def heat_patch(
    patch: Patch, conditions: Conditions, *, live_albedo: bool = False
) -> None:
    """Move ``patch.temperature`` halfway toward its local heating value."""
    albedo = patch_albedo(patch, conditions, live_albedo=live_albedo)
    absorbed = (1.0 - albedo) * conditions.luminosity
    patch.temperature = (patch.temperature + local_heating(absorbed)) / 2.0


def heat_band(
    grid: Grid,
    conditions: Conditions,
    start: int,
    stop: int,
    *,
    live_albedo: bool = False,
) -> None:
    """Heat every patch in rows ``[start, stop)``."""
    for patch in grid.iter_band(start, stop):
        heat_patch(patch, conditions, live_albedo=live_albedo)
