# wfc_terrain/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the terrain
generator. These values are used if they are not explicitly provided by the
user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC MAP.
Instead, pass a configuration dictionary to GenerationConfig.from_dict().
================================================================================
"""

# --- Grid & Noise ---
DEFAULT_GRID_SIZE = 50
DEFAULT_NOISE_SCALE = 25.0
# Any configured scale at or below this threshold is replaced by the
# minimum effective scale. A scale of 1 would sample one lattice cell per tile.
NOISE_SCALE_THRESHOLD = 1.0
MIN_EFFECTIVE_NOISE_SCALE = 10.0
# The z-slice of the 3D noise field used for the 2D height map.
NOISE_Z_SLICE = 0.0

# --- Randomness ---
# None means "draw from system entropy". Any integer makes a run reproducible.
DEFAULT_SEED = None
# Offsets keep the noise permutation and the traversal stream independent
# while both being derived from the one master seed.
NOISE_SEED_OFFSET = 7919
TRAVERSAL_SEED_OFFSET = 104729
# 'independent': 256 independent draws in [0, 255] (values may repeat).
# 'shuffle': a uniform permutation of 0..255.
PERMUTATION_MODES = ("independent", "shuffle")
DEFAULT_PERMUTATION_MODE = "independent"
PERMUTATION_SIZE = 256

# --- Prior Initialization ---
# Added to every raw noise sample before it is compared to the height bands.
PRIOR_NOISE_OFFSET = 0.1
# (distance outside band, weight) pairs, checked in order. First match wins.
BAND_FALLOFF_STEPS = (
    (0.1, 0.75),
    (0.2, 0.5),
    (0.3, 0.25),
)
IN_BAND_WEIGHT = 1.0

# --- Propagation ---
# The fixed modifier in the neighbor re-weighting formula:
#   new = affinity - affinity * ((1 - PROPAGATION_MOD) * existing)
PROPAGATION_MOD = 6

# --- Traversal ---
NUM_TRAVERSAL_SEEDS = 5

# --- Rendering (never read by the generation core) ---
DEFAULT_TILE_RESOLUTION = 8
