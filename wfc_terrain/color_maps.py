# wfc_terrain/color_maps.py

"""
================================================================================
SHARED COLOR MAPPING UTILITIES
================================================================================
This module contains the tile color constants and functions for converting a
finished tile map into RGB color arrays.

It is designed to be a pure, stateless utility with no dependencies on Pygame,
allowing it to be used by both the interactive viewer and the offline baker.
================================================================================
"""
import numpy as np

from .grid import TILE_INFEASIBLE, TILE_UNDETERMINED
from .tiles import TileCatalog

# --- Default Color Mappings ---
COLOR_MAP_TILES = {
    "ocean": (20, 40, 120),
    "beach": (240, 230, 140),
    "grass": (34, 139, 34),
    "forest": (0, 100, 0),
    "hill": (139, 119, 42),
    "mountain": (112, 128, 144),
    "glacier": (235, 245, 255),
    "freshwater": (26, 102, 255),
}

# Fallbacks for cells without a single determined tile.
COLOR_INFEASIBLE = (0, 0, 0)
COLOR_UNDETERMINED = (255, 0, 255)
# Any tile kind missing from COLOR_MAP_TILES.
COLOR_UNKNOWN_TILE = (128, 128, 128)


def create_tile_color_lut(catalog: TileCatalog) -> np.ndarray:
    """
    Creates a LUT where the index is the tile index and the value is the RGB
    color. The last two rows hold the undetermined and infeasible colors, so
    the negative sentinels index them directly.
    """
    colors = [COLOR_MAP_TILES.get(name, COLOR_UNKNOWN_TILE) for name in catalog.names]
    # TILE_INFEASIBLE (-2) -> second to last, TILE_UNDETERMINED (-1) -> last.
    colors.append(COLOR_INFEASIBLE)
    colors.append(COLOR_UNDETERMINED)
    return np.array(colors, dtype=np.uint8)


def get_tile_color_array(tile_map: np.ndarray, tile_lut: np.ndarray) -> np.ndarray:
    """
    Converts an integer tile map indexed [x, y] into a (W, H, 3) RGB array,
    the orientation pygame.surfarray expects.
    """
    return tile_lut[tile_map]


def upscale_color_array(color_array: np.ndarray, tile_resolution: int) -> np.ndarray:
    """Paints every tile as a tile_resolution x tile_resolution block."""
    factor = max(1, int(tile_resolution))
    if factor == 1:
        return color_array
    return np.repeat(np.repeat(color_array, factor, axis=0), factor, axis=1)


def tile_counts(tile_map: np.ndarray, catalog: TileCatalog) -> dict:
    """Number of cells per tile kind, plus the two fallback states."""
    counts = {name: int(np.count_nonzero(tile_map == i)) for i, name in enumerate(catalog.names)}
    counts["undetermined"] = int(np.count_nonzero(tile_map == TILE_UNDETERMINED))
    counts["infeasible"] = int(np.count_nonzero(tile_map == TILE_INFEASIBLE))
    return counts
