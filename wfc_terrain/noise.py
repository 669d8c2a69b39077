# wfc_terrain/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides 3D gradient (Perlin) noise and the permutation table
that parameterizes it. The noise functions are pure and stateless; all state
lives in the permutation table passed in by the caller.

Data Contract:
---------------
- Inputs:
    - p: A 512-entry NumPy lookup table (the 256-entry permutation, mirrored).
    - x, y, z: Scalar coordinates, or NumPy arrays of x/y coordinates.
- Outputs:
    - A float (or NumPy array of floats) in approximately [-1, 1].
- Side Effects: None.
- Invariants:
    - Identical table and coordinates always give bit-identical results.
    - The field is periodic with period 256 along every axis.
================================================================================
"""

import numpy as np
from numba import njit

from . import config as DEFAULTS

# The 12 edge-midpoint directions of a cube.
_GRADIENT_VECTORS = np.array([
    [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
    [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
    [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1],
], dtype=np.float64)


def create_permutation_table(rng: np.random.Generator, mode: str = DEFAULTS.DEFAULT_PERMUTATION_MODE) -> np.ndarray:
    """
    Builds the 512-entry lookup table used by the noise functions.

    Args:
        rng (np.random.Generator): The random source for the table.
        mode (str): 'independent' draws each of the 256 slots on its own, so
            values may repeat. 'shuffle' uses a uniform permutation of 0..255.

    Returns:
        np.ndarray: The 256 values mirrored into a 512-entry int64 array.
    """
    if mode == "independent":
        p = rng.integers(0, DEFAULTS.PERMUTATION_SIZE, size=DEFAULTS.PERMUTATION_SIZE, dtype=np.int64)
    elif mode == "shuffle":
        p = rng.permutation(DEFAULTS.PERMUTATION_SIZE).astype(np.int64)
    else:
        raise ValueError(f"Unknown permutation mode '{mode}'. Expected one of {DEFAULTS.PERMUTATION_MODES}.")
    return np.concatenate((p, p))


@njit
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


@njit
def _mix(a, b, t):
    "Linear interpolation."
    return (1.0 - t) * a + t * b


@njit
def _dot(gi, x, y, z):
    g = _GRADIENT_VECTORS[gi]
    return g[0] * x + g[1] * y + g[2] * z


@njit
def perlin_noise_3d(p, x, y, z):
    """
    Samples 3D Perlin noise at a single point.
    JIT-compiled with Numba; called per cell and from perlin_noise_grid.
    """
    xi = int(np.floor(x))
    yi = int(np.floor(y))
    zi = int(np.floor(z))

    # Relative position inside the unit cube.
    xf = x - xi
    yf = y - yi
    zf = z - zi

    # Wrap the lattice cell to the table's period.
    X = xi & 255
    Y = yi & 255
    Z = zi & 255

    gi000 = p[X + p[Y + p[Z]]] % 12
    gi001 = p[X + p[Y + p[Z + 1]]] % 12
    gi010 = p[X + p[Y + 1 + p[Z]]] % 12
    gi011 = p[X + p[Y + 1 + p[Z + 1]]] % 12
    gi100 = p[X + 1 + p[Y + p[Z]]] % 12
    gi101 = p[X + 1 + p[Y + p[Z + 1]]] % 12
    gi110 = p[X + 1 + p[Y + 1 + p[Z]]] % 12
    gi111 = p[X + 1 + p[Y + 1 + p[Z + 1]]] % 12

    n000 = _dot(gi000, xf, yf, zf)
    n100 = _dot(gi100, xf - 1.0, yf, zf)
    n010 = _dot(gi010, xf, yf - 1.0, zf)
    n110 = _dot(gi110, xf - 1.0, yf - 1.0, zf)
    n001 = _dot(gi001, xf, yf, zf - 1.0)
    n101 = _dot(gi101, xf - 1.0, yf, zf - 1.0)
    n011 = _dot(gi011, xf, yf - 1.0, zf - 1.0)
    n111 = _dot(gi111, xf - 1.0, yf - 1.0, zf - 1.0)

    u = _fade(xf)
    v = _fade(yf)
    w = _fade(zf)

    # Blend the eight corner contributions along x, then y, then z.
    nx00 = _mix(n000, n100, u)
    nx01 = _mix(n001, n101, u)
    nx10 = _mix(n010, n110, u)
    nx11 = _mix(n011, n111, u)

    nxy0 = _mix(nx00, nx10, v)
    nxy1 = _mix(nx01, nx11, v)

    return _mix(nxy0, nxy1, w)


@njit
def perlin_noise_grid(p, x, y, z):
    """
    Samples perlin_noise_3d over 2D coordinate arrays at a fixed z.
    The output has the same shape as x and y.
    """
    rows, cols = x.shape
    out = np.zeros((rows, cols))
    for i in range(rows):
        for j in range(cols):
            out[i, j] = perlin_noise_3d(p, x[i, j], y[i, j], z)
    return out
