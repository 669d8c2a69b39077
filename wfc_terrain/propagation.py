# wfc_terrain/propagation.py

"""
================================================================================
COLLAPSE & PROPAGATION
================================================================================
The two operators that turn priors into determined tiles.

collapse() picks one tile for a cell by weighted random choice and hands it
to propagate(), which re-weights the 8 neighbors of every newly determined
cell using the collapsed tile's affinity row:

    new[i] = affinity[i] - affinity[i] * ((1 - mod) * existing[i])

for every tile i where both affinity[i] and existing[i] are non-zero, and 0
otherwise. A neighbor that becomes determined is pushed onto the work stack
and propagates in turn.

Data Contract:
---------------
- Inputs: a ProbabilityGrid (mutated in place), the TileCatalog, and a
  numpy Generator for every random choice.
- Side Effects: Only the passed grid is written to.
- Invariants: A cell is pushed only when it becomes determined, and a cell
  can become determined at most once, so the stack never holds more than
  size * size entries.
================================================================================
"""

import numpy as np

from . import config as DEFAULTS
from .grid import ProbabilityGrid, determined_tile, is_determined, normalize, shuffled_offsets
from .tiles import TileCatalog


def reweight(existing: np.ndarray, row: np.ndarray, mod: float = DEFAULTS.PROPAGATION_MOD) -> np.ndarray:
    """Applies the affinity re-weighting formula to one neighbor vector."""
    active = (existing != 0) & (row != 0)
    return np.where(active, row - row * ((1 - mod) * existing), 0.0)


def select_weighted(weights: np.ndarray, rng: np.random.Generator) -> int | None:
    """
    Proportional selection without normalizing first.
    Returns None when every weight is zero.
    """
    total = np.sum(weights)
    if total == 0:
        return None

    remainder = rng.random() * total
    for i, weight in enumerate(weights):
        if weight == 0:
            continue
        remainder -= weight
        if remainder <= 0:
            return i

    # Rounding can leave a tiny positive remainder after the last entry.
    return int(np.flatnonzero(weights)[-1])


def collapse(grid: ProbabilityGrid, x: int, y: int, catalog: TileCatalog, rng: np.random.Generator) -> int | None:
    """
    Reduces the cell at (x, y) to a single tile and propagates from it.

    Returns:
        int | None: The selected tile index, or None if the cell was
        infeasible (all weights zero), in which case nothing changes.
    """
    selected = select_weighted(grid.get(x, y), rng)
    if selected is None:
        return None

    collapsed = np.zeros(grid.num_tiles, dtype=np.float64)
    collapsed[selected] = 1.0
    grid.set(x, y, collapsed)

    propagate(grid, x, y, selected, catalog, rng)
    return selected


def propagate(grid: ProbabilityGrid, x: int, y: int, tile_index: int, catalog: TileCatalog,
              rng: np.random.Generator, mod: float = DEFAULTS.PROPAGATION_MOD) -> int:
    """
    Pushes affinity constraints outward from a newly determined cell.

    tile_index is the tile just chosen at (x, y). Nothing happens unless the
    cell is currently determined to that tile.

    Returns:
        int: The largest number of entries the work stack held at once.
            0 if the start cell was not determined to tile_index.
    """
    if determined_tile(grid.get(x, y)) != tile_index:
        return 0

    stack = [(x, y)]
    peak = 1

    while stack:
        cx, cy = stack.pop()
        current = determined_tile(grid.get(cx, cy))
        if current is None:
            continue
        row = catalog.affinity_row(current)
        if row is None:
            continue

        for dx, dy in shuffled_offsets(rng):
            nx, ny = cx + dx, cy + dy
            if not grid.in_bounds(nx, ny):
                continue

            existing = grid.get(nx, ny)
            updated = normalize(reweight(existing, row, mod))
            if np.array_equal(updated, existing):
                continue

            grid.set(nx, ny, updated)
            # A determined neighbor can only change by dropping to all zeros.
            if is_determined(updated):
                stack.append((nx, ny))
                peak = max(peak, len(stack))

    return peak
