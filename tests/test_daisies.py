"""Tests for daisyworld.daisies — the Daisy model and the population ledger."""

import threading

import pytest

from daisyworld.daisies.daisy import Color, Daisy, seed_threshold
from daisyworld.daisies.ledger import LedgerError, PopulationLedger
from daisyworld.simulation.config import Conditions


class TestSeedThreshold:
    """Tests for the temperature-driven seeding curve."""

    def test_quadratic_curve(self) -> None:
        t = 22.5
        expected = 0.1457 * t - 0.0032 * t * t - 0.6443
        assert seed_threshold(t) == pytest.approx(expected)

    def test_cold_patch_never_seeds(self) -> None:
        assert seed_threshold(0.0) < 0

    def test_pollution_suppresses(self) -> None:
        clean = seed_threshold(22.5, 0.0)
        dirty = seed_threshold(22.5, 0.5)
        assert dirty == pytest.approx(clean * 0.5)

    def test_pollution_ignored_when_disabled(self) -> None:
        assert seed_threshold(22.5, 0.9, pollution_suppresses=False) == pytest.approx(
            seed_threshold(22.5, 0.0),
        )


class TestDaisy:
    """Tests for the Daisy dataclass."""

    def test_sprout_snapshots_albedo(self) -> None:
        conditions = Conditions(albedo_black=0.1, albedo_white=0.9)
        black = Daisy.sprout(Color.BLACK, 2, 3, conditions)
        white = Daisy.sprout(Color.WHITE, 4, 5, conditions, age=7)
        assert black.albedo == 0.1
        assert (black.row, black.col, black.age) == (2, 3, 0)
        assert white.albedo == 0.9
        assert white.age == 7

    def test_is_alive(self) -> None:
        daisy = Daisy(color=Color.WHITE, albedo=0.75, row=0, col=0, age=24)
        assert daisy.is_alive(25)
        daisy.age = 25
        assert not daisy.is_alive(25)

    def test_grow_older(self) -> None:
        daisy = Daisy(color=Color.BLACK, albedo=0.25, row=0, col=0, age=23)
        assert daisy.grow_older(25) is True
        assert daisy.age == 24
        assert daisy.grow_older(25) is False
        assert daisy.age == 25

    def test_wants_to_seed(self) -> None:
        daisy = Daisy(color=Color.BLACK, albedo=0.25, row=0, col=0)
        threshold = seed_threshold(22.5, 0.0)
        assert daisy.wants_to_seed(22.5, 0.0, roll=threshold - 0.01)
        assert not daisy.wants_to_seed(22.5, 0.0, roll=threshold + 0.01)
        assert not daisy.wants_to_seed(22.5, 1.0, roll=0.0)


class TestPopulationLedger:
    """Tests for the per-colour counters."""

    def test_initial_counts(self) -> None:
        ledger = PopulationLedger(black=3, white=5)
        assert ledger.black == 3
        assert ledger.white == 5
        assert ledger.counts() == {Color.BLACK: 3, Color.WHITE: 5}

    def test_increment_decrement(self) -> None:
        ledger = PopulationLedger()
        assert ledger.increment(Color.BLACK) == 1
        assert ledger.increment(Color.BLACK) == 2
        assert ledger.decrement(Color.BLACK) == 1
        assert ledger.white == 0

    def test_decrement_below_zero(self) -> None:
        ledger = PopulationLedger()
        with pytest.raises(LedgerError):
            ledger.decrement(Color.WHITE)

    def test_reset_rejects_negative(self) -> None:
        with pytest.raises(LedgerError):
            PopulationLedger(black=-1)

    def test_concurrent_updates(self) -> None:
        """Counters stay exact under many threads."""
        ledger = PopulationLedger(white=8 * 500)

        def churn() -> None:
            for _ in range(500):
                ledger.increment(Color.BLACK)
                ledger.decrement(Color.WHITE)

        threads = [threading.Thread(target=churn) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert ledger.black == 8 * 500
        assert ledger.white == 0
