"""Heat diffusion across the grid.

Every patch keeps ``temperature * factor`` and hands ``temperature *
factor / 4`` to each of its in-bounds orthogonal neighbours.  Boundary
patches lose the shares that would fall off the edge (no wrap).

Diffusion is a stencil: every output row is gathered from a read-only
snapshot into a separate buffer.  Each cell's sum is formed in the same
order whichever band computes it, so splitting the grid across any number
of workers gives bit-identical results.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def diffuse_rows(
    snapshot: NDArray[np.float64],
    start: int,
    stop: int,
    *,
    factor: float,
) -> NDArray[np.float64]:
    """Compute post-diffusion temperatures for rows ``[start, stop)``.

    Reads the band plus one row of halo above and below it.

    Args:
        snapshot: Pre-phase temperatures, never modified.
        start: First row of the band.
        stop: One past the last row of the band.
        factor: Diffusion factor.

    Returns:
        New temperatures for the band, shape ``(stop - start, cols)``.
    """
    rows = snapshot.shape[0]
    lo, hi = max(start - 1, 0), min(stop + 1, rows)
    slab = snapshot[lo:hi]

    amount = slab * factor
    share = amount / 4.0

    out = amount.copy()  # what each patch keeps
    out[1:] += share[:-1]  # from the patch above
    out[:-1] += share[1:]  # from the patch below
    out[:, 1:] += share[:, :-1]  # from the patch to the left
    out[:, :-1] += share[:, 1:]  # from the patch to the right
    return out[start - lo : stop - lo]


def diffuse(snapshot: NDArray[np.float64], *, factor: float) -> NDArray[np.float64]:
    """Diffuse a whole temperature grid in one pass.

    Returns a new array; ``snapshot`` is left untouched.
    """
    return diffuse_rows(snapshot, 0, snapshot.shape[0], factor=factor)
