# wfc_terrain/grid.py

"""
================================================================================
PROBABILITY GRID
================================================================================
The mutable 2D array of per-cell weight vectors that is the entire state of a
generation run, together with the normalization helper and the 8-way
neighborhood shared by the propagator and the traversal driver.

Data Contract:
---------------
- Cells are addressed by (x, y) and stored at linear index x + y * size.
- Every weight vector has exactly one entry per tile kind.
- A cell is determined iff exactly one entry equals 1.0 and all others equal
  0.0. This is an exact comparison; normalize() divides a single non-zero
  entry by itself, which yields exactly 1.0.
================================================================================
"""

import numpy as np

# Tile map sentinels for cells that are not determined.
TILE_UNDETERMINED = -1
TILE_INFEASIBLE = -2

# The 8-way neighborhood as (dx, dy) offsets.
NEIGHBOR_OFFSETS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)


def normalize(weights: np.ndarray) -> np.ndarray:
    """
    Divides every entry by the vector's sum.
    An all-zero vector is returned unchanged.
    """
    total = np.sum(weights)
    if total == 0:
        return weights
    return weights / total


def is_determined(weights: np.ndarray) -> bool:
    """True iff exactly one entry is 1.0 and every other entry is 0.0."""
    return np.count_nonzero(weights == 1.0) == 1 and np.count_nonzero(weights) == 1


def determined_tile(weights: np.ndarray) -> int | None:
    """Index of the first entry equal to 1.0, or None if there is none."""
    hits = np.flatnonzero(weights == 1.0)
    if hits.size == 0:
        return None
    return int(hits[0])


def shuffled_offsets(rng: np.random.Generator) -> list:
    """
    Returns the 8 neighbor offsets in a fresh random order.
    Fisher-Yates, drawing each swap index from the injected generator.
    """
    offsets = list(NEIGHBOR_OFFSETS)
    for i in range(len(offsets) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        offsets[i], offsets[j] = offsets[j], offsets[i]
    return offsets


class ProbabilityGrid:
    """A square grid of weight vectors, one weight per tile kind per cell."""

    def __init__(self, size: int, num_tiles: int):
        self.size = size
        self.num_tiles = num_tiles
        # Every cell starts from the uniform vector.
        self.weights = np.full((size * size, num_tiles), 1.0 / num_tiles, dtype=np.float64)

    def index(self, x: int, y: int) -> int:
        return x + y * self.size

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> np.ndarray:
        """Returns a view of the cell's weight vector."""
        return self.weights[self.index(x, y)]

    def set(self, x: int, y: int, weights) -> None:
        self.weights[self.index(x, y)] = weights

    def neighbors(self, x: int, y: int):
        """Yields the in-bounds 8-neighbors of (x, y) in fixed order."""
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield nx, ny

    def is_determined(self, x: int, y: int) -> bool:
        return is_determined(self.get(x, y))

    def copy(self) -> "ProbabilityGrid":
        clone = ProbabilityGrid.__new__(ProbabilityGrid)
        clone.size = self.size
        clone.num_tiles = self.num_tiles
        clone.weights = self.weights.copy()
        return clone

    def tile_map(self) -> np.ndarray:
        """
        Converts the grid into an integer array indexed [x, y].
        Determined cells hold their tile index, all-zero cells hold
        TILE_INFEASIBLE, and every other cell holds TILE_UNDETERMINED.
        """
        ones = self.weights == 1.0
        determined = (np.count_nonzero(ones, axis=1) == 1) & (np.count_nonzero(self.weights, axis=1) == 1)
        infeasible = ~np.any(self.weights, axis=1)

        flat = np.full(self.size * self.size, TILE_UNDETERMINED, dtype=np.int64)
        flat[determined] = np.argmax(ones[determined], axis=1)
        flat[infeasible] = TILE_INFEASIBLE

        # Linear index is x + y * size, so rows of the reshape are y.
        return flat.reshape(self.size, self.size).T

    def summary(self) -> dict:
        """Counts of determined, infeasible and underdetermined cells."""
        tiles = self.tile_map()
        determined = int(np.count_nonzero(tiles >= 0))
        infeasible = int(np.count_nonzero(tiles == TILE_INFEASIBLE))
        return {
            "determined": determined,
            "infeasible": infeasible,
            "underdetermined": tiles.size - determined - infeasible,
        }
