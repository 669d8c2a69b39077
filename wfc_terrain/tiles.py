# wfc_terrain/tiles.py

"""
================================================================================
TILE CATALOG
================================================================================
Static domain data for the generator: the ordered set of tile kinds, the
height band in which each kind is valid, and the tile-to-tile affinity table
used during propagation.

The order of the catalog defines the index mapping of every weight vector.

Data Contract:
---------------
- TileCatalog is immutable once built.
- Affinity rows need not sum to 1. A missing row or a missing entry means an
  affinity of 0.
================================================================================
"""

from dataclasses import dataclass, field

import numpy as np

# --- Tile ID Constants ---
TILE_ID_OCEAN = 0
TILE_ID_BEACH = 1
TILE_ID_GRASS = 2
TILE_ID_FOREST = 3
TILE_ID_HILL = 4
TILE_ID_MOUNTAIN = 5
TILE_ID_GLACIER = 6
TILE_ID_FRESHWATER = 7

DEFAULT_TILE_NAMES = (
    "ocean",
    "beach",
    "grass",
    "forest",
    "hill",
    "mountain",
    "glacier",
    "freshwater",
)

# Closed [min, max] intervals in the offset noise co-domain (noise + 0.1).
DEFAULT_HEIGHT_BANDS = {
    "ocean": (-1.0, 0.0),
    "beach": (0.0, 0.08),
    "grass": (0.05, 0.3),
    "forest": (0.2, 0.45),
    "hill": (0.4, 0.6),
    "mountain": (0.55, 0.8),
    "glacier": (0.75, 1.1),
    "freshwater": (0.15, 0.35),
}

# current tile -> {candidate neighbor tile -> affinity}
DEFAULT_AFFINITIES = {
    "ocean": {"ocean": 0.9, "beach": 0.5},
    "beach": {"ocean": 0.5, "beach": 0.6, "grass": 0.5},
    "grass": {"beach": 0.3, "grass": 0.8, "forest": 0.5, "hill": 0.3, "freshwater": 0.2},
    "forest": {"grass": 0.5, "forest": 0.8, "hill": 0.4, "freshwater": 0.2},
    "hill": {"grass": 0.3, "forest": 0.4, "hill": 0.7, "mountain": 0.5},
    "mountain": {"hill": 0.5, "mountain": 0.8, "glacier": 0.4},
    "glacier": {"mountain": 0.5, "glacier": 0.9},
    "freshwater": {"grass": 0.4, "forest": 0.3, "freshwater": 0.7},
}


@dataclass(frozen=True)
class TileCatalog:
    """The ordered tile kinds with their height bands and affinity rows."""

    names: tuple
    height_bands: dict
    affinities: dict
    # Derived lookup tables, built in __post_init__.
    band_array: np.ndarray = field(init=False, repr=False, compare=False)
    affinity_matrix: np.ndarray = field(init=False, repr=False, compare=False)
    has_affinity_row: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        names = tuple(self.names)
        if not names:
            raise ValueError("A tile catalog needs at least one tile kind.")
        if len(set(names)) != len(names):
            raise ValueError(f"Tile names must be unique, got {names}.")
        missing = [name for name in names if name not in self.height_bands]
        if missing:
            raise ValueError(f"Missing height bands for tile kinds: {missing}")

        index = {name: i for i, name in enumerate(names)}
        bands = np.array([self.height_bands[name] for name in names], dtype=np.float64)

        # Dense rows; unknown candidates and absent entries stay 0.
        matrix = np.zeros((len(names), len(names)), dtype=np.float64)
        has_row = np.zeros(len(names), dtype=bool)
        for current, row in self.affinities.items():
            if current not in index:
                continue
            has_row[index[current]] = True
            for candidate, affinity in row.items():
                if candidate in index:
                    matrix[index[current], index[candidate]] = affinity

        # The dataclass is frozen, so derived fields go through object.__setattr__.
        object.__setattr__(self, "names", names)
        object.__setattr__(self, "band_array", bands)
        object.__setattr__(self, "affinity_matrix", matrix)
        object.__setattr__(self, "has_affinity_row", has_row)

    def __len__(self) -> int:
        return len(self.names)

    def index_of(self, name: str) -> int:
        return self.names.index(name)

    def affinity_row(self, tile_index: int) -> np.ndarray | None:
        """Returns the dense affinity row for a tile kind, or None if it has no row."""
        if not self.has_affinity_row[tile_index]:
            return None
        return self.affinity_matrix[tile_index]


DEFAULT_CATALOG = TileCatalog(
    names=DEFAULT_TILE_NAMES,
    height_bands=DEFAULT_HEIGHT_BANDS,
    affinities=DEFAULT_AFFINITIES,
)
