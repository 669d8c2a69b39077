# wfc_terrain/__init__.py

# This file makes the 'wfc_terrain' directory a Python package.
# It also defines the public API of the generation core.

from .generator import GenerationConfig, TerrainGenerator, generate
from .grid import ProbabilityGrid, normalize, TILE_INFEASIBLE, TILE_UNDETERMINED
from .tiles import TileCatalog, DEFAULT_CATALOG

__all__ = [
    "GenerationConfig",
    "TerrainGenerator",
    "generate",
    "ProbabilityGrid",
    "normalize",
    "TILE_INFEASIBLE",
    "TILE_UNDETERMINED",
    "TileCatalog",
    "DEFAULT_CATALOG",
]
