"""PopulationLedger — live daisy counts per colour.

Counters are shared by every life-cycle worker, so each update happens
under a single lock.
"""

from __future__ import annotations

import threading

from daisyworld.daisies.daisy import Color


class LedgerError(RuntimeError):
    """Raised when a counter would go negative."""


class PopulationLedger:
    """Thread-safe per-colour population counters."""

    def __init__(self, black: int = 0, white: int = 0) -> None:
        self._lock = threading.Lock()
        self._counts: dict[Color, int] = {Color.BLACK: 0, Color.WHITE: 0}
        self.reset(black=black, white=white)

    def reset(self, *, black: int = 0, white: int = 0) -> None:
        """Overwrite both counters."""
        if black < 0 or white < 0:
            msg = f"population counts must be non-negative, got {black}/{white}"
            raise LedgerError(msg)
        with self._lock:
            self._counts[Color.BLACK] = black
            self._counts[Color.WHITE] = white

    def increment(self, color: Color) -> int:
        """Record one birth and return the new count."""
        with self._lock:
            self._counts[color] += 1
            return self._counts[color]

    def decrement(self, color: Color) -> int:
        """Record one death and return the new count.

        Raises:
            LedgerError: If the counter is already zero.
        """
        with self._lock:
            if self._counts[color] == 0:
                msg = f"{color.value} population is already zero"
                raise LedgerError(msg)
            self._counts[color] -= 1
            return self._counts[color]

    def count(self, color: Color) -> int:
        with self._lock:
            return self._counts[color]

    @property
    def black(self) -> int:
        return self.count(Color.BLACK)

    @property
    def white(self) -> int:
        return self.count(Color.WHITE)

    def counts(self) -> dict[Color, int]:
        """Return a consistent copy of both counters."""
        with self._lock:
            return dict(self._counts)

    def __repr__(self) -> str:
        counts = self.counts()
        return (
            f"PopulationLedger(black={counts[Color.BLACK]}, "
            f"white={counts[Color.WHITE]})"
        )
