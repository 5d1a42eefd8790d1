"""Tests for daisyworld.thermal — heating and diffusion."""

import math

import numpy as np
import pytest

from daisyworld.daisies.daisy import Color, Daisy
from daisyworld.simulation.config import Conditions, Luminosity
from daisyworld.simulation.workers import split_rows
from daisyworld.thermal.diffusion import diffuse, diffuse_rows
from daisyworld.thermal.heating import (
    heat_band,
    heat_patch,
    local_heating,
    patch_albedo,
)
from daisyworld.world.grid import Grid
from daisyworld.world.patch import Patch


class TestHeating:
    """Tests for per-patch radiative heating."""

    def test_local_heating_formula(self) -> None:
        assert local_heating(0.45) == pytest.approx(72 * math.log(0.45) + 80)

    def test_local_heating_floor(self) -> None:
        assert local_heating(0.0) == 80.0
        assert local_heating(-0.2) == 80.0

    def test_bare_patch_uses_surface_albedo(self, conditions: Conditions) -> None:
        patch = Patch(row=0, col=0, temperature=10.0)
        heat_patch(patch, conditions)
        expected = (10.0 + local_heating((1 - 0.4) * 0.6)) / 2
        assert patch.temperature == pytest.approx(expected)

    def test_occupied_patch_uses_daisy_albedo(self) -> None:
        conditions = Conditions(luminosity_preset=Luminosity.OUR)
        patch = Patch(row=0, col=0)
        patch.occupant = Daisy(color=Color.WHITE, albedo=0.6, row=0, col=0)
        heat_patch(patch, conditions)
        assert patch.temperature == pytest.approx(local_heating(0.4) / 2)

    def test_full_reflection_hits_floor(self) -> None:
        patch = Patch(row=0, col=0, temperature=20.0)
        patch.occupant = Daisy(color=Color.WHITE, albedo=1.0, row=0, col=0)
        heat_patch(patch, Conditions())
        assert patch.temperature == pytest.approx(50.0)

    def test_live_albedo_reads_conditions(self) -> None:
        patch = Patch(row=0, col=0)
        patch.occupant = Daisy(color=Color.BLACK, albedo=0.25, row=0, col=0)
        conditions = Conditions(albedo_black=0.1)
        assert patch_albedo(patch, conditions) == 0.25
        assert patch_albedo(patch, conditions, live_albedo=True) == 0.1

    def test_heat_band_only_touches_band(
        self, small_grid: Grid, conditions: Conditions
    ) -> None:
        heat_band(small_grid, conditions, 2, 4)
        temps = small_grid.temperatures()
        assert np.all(temps[2:4] != 0.0)
        assert np.all(temps[:2] == 0.0)
        assert np.all(temps[4:] == 0.0)


class TestDiffusion:
    """Tests for double-buffered heat diffusion."""

    def test_interior_heat_conserved(self) -> None:
        """With factor 0.5 an interior source keeps exactly what it gives away."""
        grid = np.zeros((8, 8), dtype=np.float64)
        grid[4, 4] = 10.0
        result = diffuse(grid, factor=0.5)
        assert np.isclose(result.sum(), grid.sum())
        assert result[4, 4] == pytest.approx(5.0)
        for r, c in ((3, 4), (5, 4), (4, 3), (4, 5)):
            assert result[r, c] == pytest.approx(1.25)

    def test_shares_match_neighbour_count(self) -> None:
        """Heat added to neighbours equals amount / 4 per in-bounds neighbour."""
        factor = 0.3
        grid = np.zeros((6, 6), dtype=np.float64)
        grid[0, 0] = 8.0  # corner: two neighbours
        grid[3, 3] = 4.0  # interior: four neighbours
        result = diffuse(grid, factor=factor)

        kept = 8.0 * factor + 4.0 * factor
        added = (8.0 * factor / 4) * 2 + (4.0 * factor / 4) * 4
        assert result.sum() == pytest.approx(kept + added)

    def test_corner_loses_heat_off_edge(self) -> None:
        grid = np.zeros((4, 4), dtype=np.float64)
        grid[0, 0] = 8.0
        result = diffuse(grid, factor=0.5)
        assert result.sum() == pytest.approx(4.0 + 2 * 1.0)
        assert result[1, 0] == pytest.approx(1.0)
        assert result[0, 1] == pytest.approx(1.0)

    def test_snapshot_untouched(self) -> None:
        grid = np.full((3, 3), 7.0)
        diffuse(grid, factor=0.5)
        assert np.all(grid == 7.0)

    def test_symmetry_on_uniform_2x2(self) -> None:
        grid = np.full((2, 2), 12.0)
        result = diffuse(grid, factor=0.5)
        assert np.allclose(result, result[0, 0])

    @pytest.mark.parametrize("bands", [1, 2, 3, 5, 7])
    def test_bands_match_whole_grid(self, bands: int) -> None:
        """Splitting into bands is bit-identical to one whole-grid pass."""
        rng = np.random.default_rng(3)
        grid = rng.uniform(0, 40, (7, 5))
        whole = diffuse(grid, factor=0.5)
        parts = [
            diffuse_rows(grid, start, stop, factor=0.5)
            for start, stop in split_rows(7, bands)
        ]
        assert np.array_equal(np.concatenate(parts, axis=0), whole)

    def test_band_shape(self) -> None:
        grid = np.ones((6, 4))
        assert diffuse_rows(grid, 2, 5, factor=0.5).shape == (3, 4)

    def test_single_row_grid(self) -> None:
        grid = np.array([[4.0, 8.0, 4.0]])
        result = diffuse(grid, factor=0.5)
        assert result[0, 0] == pytest.approx(2.0 + 1.0)
        assert result[0, 1] == pytest.approx(4.0 + 0.5 + 0.5)
        assert result[0, 2] == pytest.approx(3.0)

