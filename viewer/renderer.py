# viewer/renderer.py

import logging

import numpy as np
import pygame

from wfc_terrain import color_maps

# --- Rendering Constants ---
BACKGROUND_COLOR = (10, 10, 20)


class MapRenderer:
    """Turns finished tile maps into pygame surfaces and draws them."""

    def __init__(self, logger: logging.Logger, catalog):
        self.logger = logger
        self.tile_lut = color_maps.create_tile_color_lut(catalog)

    def create_surface_from_tile_map(self, tile_map: np.ndarray, tile_resolution: int) -> pygame.Surface:
        """Colors a tile map and upscales it to tile_resolution pixels per tile."""
        color_array = color_maps.get_tile_color_array(tile_map, self.tile_lut)
        color_array = color_maps.upscale_color_array(color_array, tile_resolution)
        return self.create_surface_from_color_array(color_array)

    def create_surface_from_color_array(self, color_array: np.ndarray) -> pygame.Surface:
        """Creates a surface from a (W, H, 3) uint8 array."""
        return pygame.surfarray.make_surface(color_array)

    def draw_map(self, screen: pygame.Surface, surface: pygame.Surface, area_width: int):
        """
        Draws the map centered in the area left of the UI panel, shrinking it
        to fit if it is larger than that area.
        """
        screen.fill(BACKGROUND_COLOR)
        if surface is None:
            return

        area_height = screen.get_height()
        width, height = surface.get_size()
        fit = min(area_width / width, area_height / height, 1.0)
        if fit < 1.0:
            surface = pygame.transform.scale(surface, (max(1, int(width * fit)), max(1, int(height * fit))))
            width, height = surface.get_size()

        screen.blit(surface, ((area_width - width) // 2, (area_height - height) // 2))
