"""Tests for the tile catalog, tile coloring and upscaling."""

from __future__ import annotations

import numpy as np
import pytest

from wfc_terrain import color_maps, tiles
from wfc_terrain.grid import TILE_INFEASIBLE, TILE_UNDETERMINED, ProbabilityGrid
from wfc_terrain.tiles import DEFAULT_CATALOG, TileCatalog


def test_lut_has_a_row_per_tile_plus_fallbacks() -> None:
    lut = color_maps.create_tile_color_lut(DEFAULT_CATALOG)

    assert lut.shape == (len(DEFAULT_CATALOG) + 2, 3)
    assert lut.dtype == np.uint8
    assert tuple(lut[0]) == color_maps.COLOR_MAP_TILES["ocean"]
    assert tuple(lut[TILE_INFEASIBLE]) == color_maps.COLOR_INFEASIBLE
    assert tuple(lut[TILE_UNDETERMINED]) == color_maps.COLOR_UNDETERMINED


def test_unknown_tile_names_get_the_fallback_color(small_catalog: TileCatalog) -> None:
    lut = color_maps.create_tile_color_lut(small_catalog)
    assert tuple(lut[0]) == color_maps.COLOR_UNKNOWN_TILE


def test_color_array_keeps_x_y_orientation() -> None:
    grid = ProbabilityGrid(3, len(DEFAULT_CATALOG))
    grid.weights[:] = 0.0
    grid.set(2, 0, np.eye(len(DEFAULT_CATALOG))[5])
    grid.set(0, 1, np.eye(len(DEFAULT_CATALOG))[0])
    grid.set(1, 1, np.full(len(DEFAULT_CATALOG), 0.125))

    lut = color_maps.create_tile_color_lut(DEFAULT_CATALOG)
    colors = color_maps.get_tile_color_array(grid.tile_map(), lut)

    assert colors.shape == (3, 3, 3)
    assert tuple(colors[2, 0]) == color_maps.COLOR_MAP_TILES["mountain"]
    assert tuple(colors[0, 1]) == color_maps.COLOR_MAP_TILES["ocean"]
    assert tuple(colors[1, 1]) == color_maps.COLOR_UNDETERMINED
    assert tuple(colors[0, 0]) == color_maps.COLOR_INFEASIBLE


def test_upscale_paints_blocks() -> None:
    colors = np.arange(2 * 3 * 3, dtype=np.uint8).reshape(2, 3, 3)

    scaled = color_maps.upscale_color_array(colors, 4)

    assert scaled.shape == (8, 12, 3)
    assert np.array_equal(scaled[4:8, 8:12], np.broadcast_to(colors[1, 2], (4, 4, 3)))


def test_upscale_by_one_or_less_is_a_no_op() -> None:
    colors = np.zeros((2, 2, 3), dtype=np.uint8)
    assert color_maps.upscale_color_array(colors, 1) is colors
    assert color_maps.upscale_color_array(colors, 0) is colors


def test_tile_counts(small_catalog: TileCatalog) -> None:
    tile_map = np.array([[0, 1, 1], [TILE_UNDETERMINED, TILE_INFEASIBLE, 1]])

    counts = color_maps.tile_counts(tile_map, small_catalog)

    assert counts == {"water": 1, "sand": 3, "rock": 0, "undetermined": 1, "infeasible": 1}


def test_tile_ids_follow_catalog_order() -> None:
    assert DEFAULT_CATALOG.index_of("ocean") == tiles.TILE_ID_OCEAN
    assert DEFAULT_CATALOG.index_of("mountain") == tiles.TILE_ID_MOUNTAIN
    assert DEFAULT_CATALOG.index_of("freshwater") == tiles.TILE_ID_FRESHWATER
    assert DEFAULT_CATALOG.names == tiles.DEFAULT_TILE_NAMES


def test_catalog_rejects_missing_bands() -> None:
    with pytest.raises(ValueError):
        TileCatalog(names=("a", "b"), height_bands={"a": (0.0, 1.0)}, affinities={})
