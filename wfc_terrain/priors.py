# wfc_terrain/priors.py

"""
================================================================================
PRIOR INITIALIZATION
================================================================================
Seeds every cell's weight vector from the noise field before any collapse.

Each cell samples value = noise(x / scale, y / scale, 0) + 0.1 and scores
every tile kind by how far that value lies from the tile's height band:

    inside the band                         -> 1.0
    outside by less than 0.1 / 0.2 / 0.3    -> 0.75 / 0.5 / 0.25
    further away                            -> 0.0

Below the band the falloff only applies to positive values. The scored
vector is normalized and stored, so every cell sums to 1 or to 0.
================================================================================
"""

import numpy as np

from . import config as DEFAULTS
from . import noise
from .grid import ProbabilityGrid, normalize
from .tiles import TileCatalog


def banded_weights(values: np.ndarray, band_array: np.ndarray) -> np.ndarray:
    """
    Scores each noise value against every height band.

    Args:
        values (np.ndarray): 1D array of offset noise values.
        band_array (np.ndarray): (N, 2) array of [min, max] bands.

    Returns:
        np.ndarray: Weights of shape (len(values), N).
    """
    v = values[:, np.newaxis]
    band_min = band_array[np.newaxis, :, 0]
    band_max = band_array[np.newaxis, :, 1]

    inside = (band_min <= v) & (v <= band_max)
    # The falloff below a band only applies to positive values.
    below = (v < band_min) & (v > 0)
    above = v > band_max

    # np.select takes the first matching condition, so the steps keep their order.
    conditions = [inside]
    choices = [DEFAULTS.IN_BAND_WEIGHT]
    for distance, weight in DEFAULTS.BAND_FALLOFF_STEPS:
        conditions.append((below & (band_min - v < distance)) | (above & (v - band_max < distance)))
        choices.append(weight)

    return np.select(conditions, choices, default=0.0)


def sample_height_map(p: np.ndarray, size: int, scale: float) -> np.ndarray:
    """
    Samples the offset noise value for every cell.
    The result is indexed [x, y].
    """
    coords = np.arange(size, dtype=np.float64)
    x_grid, y_grid = np.meshgrid(coords, coords, indexing="ij")
    raw = noise.perlin_noise_grid(p, x_grid / scale, y_grid / scale, DEFAULTS.NOISE_Z_SLICE)
    return raw + DEFAULTS.PRIOR_NOISE_OFFSET


def initialize_priors(grid: ProbabilityGrid, p: np.ndarray, scale: float, catalog: TileCatalog) -> np.ndarray:
    """
    Overwrites every cell of the grid with its normalized banded prior.

    Returns:
        np.ndarray: The offset height map indexed [x, y], for diagnostics.
    """
    height_map = sample_height_map(p, grid.size, scale)

    # Transposing to [y, x] makes the flattened order match the grid's
    # linear index x + y * size.
    weights = banded_weights(height_map.T.ravel(), catalog.band_array)
    for i in range(weights.shape[0]):
        grid.weights[i] = normalize(weights[i])

    return height_map
