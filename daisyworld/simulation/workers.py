"""PhasePool — run one grid phase at a time across a fixed thread pool.

The grid is split into contiguous bands of rows, one task per band.
``run_phase`` returns only after every band has finished, which is the
barrier between phases: nothing from the next phase starts until all
writes of the current one are done.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TypeVar

T = TypeVar("T")


def split_rows(rows: int, bands: int) -> list[tuple[int, int]]:
    """Split ``rows`` into at most ``bands`` contiguous ``(start, stop)`` ranges.

    Earlier bands get the extra row when the split is uneven.  Empty
    bands are dropped, so asking for more bands than rows is fine.
    """
    if rows < 1 or bands < 1:
        msg = f"need at least one row and one band, got {rows} rows / {bands} bands"
        raise ValueError(msg)
    bands = min(bands, rows)
    base, extra = divmod(rows, bands)
    result: list[tuple[int, int]] = []
    start = 0
    for i in range(bands):
        stop = start + base + (1 if i < extra else 0)
        result.append((start, stop))
        start = stop
    return result


class PhasePool:
    """A fixed-size worker pool bound to one grid height.

    Attributes:
        bands: Row ranges, one per task, in top-to-bottom order.
        workers: Number of threads in the pool.
    """

    def __init__(self, rows: int, workers: int) -> None:
        self.workers = workers
        self.bands = split_rows(rows, workers)
        self._executor = ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="daisyworld-phase",
        )

    def run_phase(self, task: Callable[[int, int], T]) -> list[T]:
        """Run ``task(start, stop)`` for every band and wait for all of them.

        Returns:
            Task results in band order.

        Raises:
            Exception: The first band's exception, re-raised once every
                band has finished.
        """
        futures = [
            self._executor.submit(task, start, stop) for start, stop in self.bands
        ]
        wait(futures)
        return [future.result() for future in futures]

    def close(self) -> None:
        self._executor.shutdown(wait=True)
