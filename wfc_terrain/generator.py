# wfc_terrain/generator.py

"""
================================================================================
CORE TERRAIN GENERATOR
================================================================================
This module contains the TerrainGenerator class, which drives one complete
generation run: it seeds the priors from noise, walks the grid from several
random starting cells, collapses and propagates at every visited cell, and
smooths the cells that are still undetermined after their visit.

Data Contract:
---------------
- Inputs (on initialization):
    - config (GenerationConfig): Immutable run parameters.
    - logger: A configured Python logging object for runtime messages.
    - permutation_table / rng (optional): Injected randomness for tests.
- Outputs (from generate()):
    - A fresh ProbabilityGrid. Every call builds a new grid, so a grid that
      has been returned is never written to again.
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same seed and configuration, the output is
  deterministic. Without a seed, every run draws from system entropy.
================================================================================
"""

import logging
import math
import time
from dataclasses import asdict, dataclass

import numpy as np

from . import config as DEFAULTS
from . import noise
from .grid import ProbabilityGrid, normalize, shuffled_offsets
from .priors import initialize_priors
from .propagation import collapse
from .tiles import DEFAULT_CATALOG, TileCatalog


@dataclass(frozen=True)
class GenerationConfig:
    """The three collaborator-facing parameters plus the randomness settings."""

    grid_size: int = DEFAULTS.DEFAULT_GRID_SIZE
    noise_scale: float = DEFAULTS.DEFAULT_NOISE_SCALE
    # Pixels per tile for renderers. The generator never reads it.
    tile_resolution: int = DEFAULTS.DEFAULT_TILE_RESOLUTION
    seed: int | None = DEFAULTS.DEFAULT_SEED
    permutation_mode: str = DEFAULTS.DEFAULT_PERMUTATION_MODE

    def __post_init__(self):
        if isinstance(self.grid_size, bool) or not isinstance(self.grid_size, (int, np.integer)):
            raise ValueError(f"grid_size must be an integer, got {self.grid_size!r}.")
        if self.grid_size < 1:
            raise ValueError(f"grid_size must be at least 1, got {self.grid_size}.")
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, (int, np.integer)) or self.seed < 0
        ):
            raise ValueError(f"seed must be None or a non-negative integer, got {self.seed!r}.")
        if not math.isfinite(self.noise_scale):
            raise ValueError(f"noise_scale must be a finite number, got {self.noise_scale!r}.")
        if self.permutation_mode not in DEFAULTS.PERMUTATION_MODES:
            raise ValueError(
                f"permutation_mode must be one of {DEFAULTS.PERMUTATION_MODES}, got '{self.permutation_mode}'."
            )

    @classmethod
    def from_dict(cls, user_config: dict) -> "GenerationConfig":
        """Builds a config from a user dictionary, falling back to the defaults."""
        return cls(
            grid_size=int(user_config.get('grid_size', DEFAULTS.DEFAULT_GRID_SIZE)),
            noise_scale=float(user_config.get('noise_scale', DEFAULTS.DEFAULT_NOISE_SCALE)),
            tile_resolution=int(user_config.get('tile_resolution', DEFAULTS.DEFAULT_TILE_RESOLUTION)),
            seed=user_config.get('seed', DEFAULTS.DEFAULT_SEED),
            permutation_mode=user_config.get('permutation_mode', DEFAULTS.DEFAULT_PERMUTATION_MODE),
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def effective_noise_scale(self) -> float:
        """The scale actually used for sampling. Values at or below 1 become 10."""
        if self.noise_scale <= DEFAULTS.NOISE_SCALE_THRESHOLD:
            return DEFAULTS.MIN_EFFECTIVE_NOISE_SCALE
        return self.noise_scale


def smooth_cell(grid: ProbabilityGrid, x: int, y: int) -> bool:
    """
    Replaces a cell's vector with the normalized mean of its in-bounds
    neighbors. Never collapses the cell.

    Returns:
        bool: False if the cell has no neighbors (a 1x1 grid) and was left alone.
    """
    neighbor_sum = np.zeros(grid.num_tiles, dtype=np.float64)
    count = 0
    for nx, ny in grid.neighbors(x, y):
        neighbor_sum += grid.get(nx, ny)
        count += 1

    if count == 0:
        return False

    grid.set(x, y, normalize(neighbor_sum / count))
    return True


class TerrainGenerator:
    """
    Generates tile grids by noise-primed Wave Function Collapse.
    This class is backend-only and does not handle any visualization.
    """
    def __init__(self, config: GenerationConfig, logger: logging.Logger, catalog: TileCatalog = DEFAULT_CATALOG,
                 permutation_table: np.ndarray = None, rng: np.random.Generator = None):
        """
        Initializes the terrain generator.

        Args:
            config (GenerationConfig): The run parameters.
            logger (logging.Logger): The logger instance for all output.
            catalog (TileCatalog): Tile kinds, height bands and affinities.
            permutation_table (np.ndarray, optional): A pre-computed noise
                permutation table. If None, one is built per run.
            rng (np.random.Generator, optional): The source for every
                collapse, shuffle and seed choice. If None, one is derived
                from the configured seed (or system entropy).
        """
        self.config = config
        self.logger = logger
        self.catalog = catalog
        self.logger.info("TerrainGenerator initializing...")

        self._injected_p = permutation_table
        self._injected_rng = rng

        # The permutation table of the most recent run, exposed for baking.
        self.permutation_table = permutation_table
        self.last_height_map = None

        self.logger.info(
            f"TerrainGenerator initialized: {config.grid_size}x{config.grid_size} grid, "
            f"{len(catalog)} tile kinds, noise scale {config.noise_scale} "
            f"(effective {config.effective_noise_scale}), seed: {config.seed}"
        )

    def _create_random_sources(self) -> tuple[np.ndarray, np.random.Generator]:
        """Builds the noise table and traversal generator for one run."""
        seed = self.config.seed

        if self._injected_p is not None:
            p = self._injected_p
            self.logger.debug("Using injected permutation table.")
        else:
            noise_seed = None if seed is None else seed + DEFAULTS.NOISE_SEED_OFFSET
            p = noise.create_permutation_table(np.random.default_rng(noise_seed), self.config.permutation_mode)
            self.logger.debug(f"Generated new '{self.config.permutation_mode}' permutation table.")

        if self._injected_rng is not None:
            rng = self._injected_rng
        else:
            traversal_seed = None if seed is None else seed + DEFAULTS.TRAVERSAL_SEED_OFFSET
            rng = np.random.default_rng(traversal_seed)

        return p, rng

    def generate(self) -> ProbabilityGrid:
        """Runs one full generation and returns the finished grid."""
        start_time = time.time()
        size = self.config.grid_size

        p, rng = self._create_random_sources()
        self.permutation_table = p

        # 1. A brand-new grid every run. Nothing from a previous run survives.
        grid = ProbabilityGrid(size, len(self.catalog))

        # 2. Priors from noise.
        self.last_height_map = initialize_priors(grid, p, self.config.effective_noise_scale, self.catalog)
        self.logger.debug("Prior initialization complete.")

        # 3. Traverse, collapse and smooth.
        visited_count = self._traverse(grid, rng)

        summary = grid.summary()
        self.logger.info(
            f"Generation complete in {time.time() - start_time:.2f} seconds: "
            f"{visited_count} cells visited, {summary['determined']} determined, "
            f"{summary['infeasible']} infeasible, {summary['underdetermined']} underdetermined."
        )
        return grid

    def _traverse(self, grid: ProbabilityGrid, rng: np.random.Generator) -> int:
        """
        Walks the grid depth-first from NUM_TRAVERSAL_SEEDS random cells.
        Every reachable cell is popped exactly once, except seeds that
        landed on the same cell, which are popped once per seed.

        Returns:
            int: The number of cells popped from the exploration stack.
        """
        size = grid.size
        visited = np.zeros((size, size), dtype=bool)
        stack = []

        for _ in range(DEFAULTS.NUM_TRAVERSAL_SEEDS):
            x = int(rng.integers(0, size))
            y = int(rng.integers(0, size))
            visited[x, y] = True
            stack.append((x, y))
        self.logger.debug(f"Traversal seeded at {stack}.")

        popped = 0
        while stack:
            x, y = stack.pop()
            popped += 1

            collapse(grid, x, y, self.catalog, rng)

            if not grid.is_determined(x, y):
                smooth_cell(grid, x, y)

            for dx, dy in shuffled_offsets(rng):
                nx, ny = x + dx, y + dy
                if grid.in_bounds(nx, ny) and not visited[nx, ny]:
                    visited[nx, ny] = True
                    stack.append((nx, ny))

        return popped


def generate(config: GenerationConfig, logger: logging.Logger = None, catalog: TileCatalog = DEFAULT_CATALOG) -> ProbabilityGrid:
    """Convenience entry point: one run with a fresh generator."""
    if logger is None:
        logger = logging.getLogger(__name__)
    return TerrainGenerator(config, logger, catalog=catalog).generate()
