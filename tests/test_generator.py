"""Tests for the generation config, smoothing and the full traversal driver."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from wfc_terrain import generate
from wfc_terrain.generator import GenerationConfig, TerrainGenerator, smooth_cell
from wfc_terrain.grid import ProbabilityGrid, normalize
from wfc_terrain.noise import create_permutation_table
from wfc_terrain.priors import sample_height_map


class TestGenerationConfig:
    def test_defaults(self) -> None:
        config = GenerationConfig()
        assert config.grid_size == 50
        assert config.noise_scale == 25.0
        assert config.seed is None
        assert config.permutation_mode == "independent"

    def test_from_dict_falls_back_to_defaults(self) -> None:
        config = GenerationConfig.from_dict({"grid_size": "12", "seed": 9})
        assert config.grid_size == 12
        assert config.seed == 9
        assert config.noise_scale == 25.0

    def test_to_dict_round_trips(self) -> None:
        config = GenerationConfig(grid_size=7, noise_scale=3.5, seed=1)
        assert GenerationConfig.from_dict(config.to_dict()) == config

    def test_float_seed_from_json_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            GenerationConfig.from_dict({"grid_size": 4, "seed": 3.0})

    def test_zero_seed_is_accepted(self) -> None:
        assert GenerationConfig(seed=0).seed == 0

    @pytest.mark.parametrize(
        ("scale", "effective"),
        [(0.5, 10.0), (1.0, 10.0), (-4.0, 10.0), (1.5, 1.5), (25.0, 25.0)],
    )
    def test_small_noise_scales_are_replaced(self, scale: float, effective: float) -> None:
        assert GenerationConfig(noise_scale=scale).effective_noise_scale == effective

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"grid_size": 0},
            {"grid_size": -3},
            {"grid_size": True},
            {"grid_size": 2.5},
            {"noise_scale": float("nan")},
            {"noise_scale": float("inf")},
            {"permutation_mode": "sorted"},
            {"seed": -1},
            {"seed": -9000},
            {"seed": 2.5},
            {"seed": True},
        ],
    )
    def test_invalid_values_are_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            GenerationConfig(**kwargs)


class TestSmoothCell:
    def test_takes_the_normalized_neighbor_mean(self) -> None:
        grid = ProbabilityGrid(2, 3)
        grid.set(1, 0, [1.0, 0.0, 0.0])
        grid.set(0, 1, [0.0, 1.0, 0.0])
        grid.set(1, 1, [0.0, 0.0, 0.0])
        grid.set(0, 0, [0.0, 0.0, 1.0])

        assert smooth_cell(grid, 0, 0)

        expected = normalize(np.array([1.0, 1.0, 0.0]) / 3)
        assert grid.get(0, 0) == pytest.approx(expected)

    def test_all_zero_neighbors_leave_an_infeasible_cell(self) -> None:
        grid = ProbabilityGrid(2, 2)
        grid.weights[:] = 0.0
        grid.set(0, 0, [0.5, 0.5])

        smooth_cell(grid, 0, 0)

        assert not np.any(grid.get(0, 0))

    def test_single_cell_grid_is_left_alone(self) -> None:
        grid = ProbabilityGrid(1, 2)
        grid.set(0, 0, [0.3, 0.7])

        assert smooth_cell(grid, 0, 0) is False
        assert np.array_equal(grid.get(0, 0), [0.3, 0.7])


class TestTerrainGenerator:
    def test_single_cell_run_ends_determined(self, logger: logging.Logger) -> None:
        grid = TerrainGenerator(GenerationConfig(grid_size=1, noise_scale=10.0, seed=5), logger).generate()

        assert grid.size == 1
        assert grid.is_determined(0, 0)
        assert grid.summary() == {"determined": 1, "infeasible": 0, "underdetermined": 0}

    def test_every_cell_sums_to_one_or_zero(self, logger: logging.Logger) -> None:
        grid = TerrainGenerator(GenerationConfig(grid_size=50, noise_scale=25.0, seed=7), logger).generate()

        sums = grid.weights.sum(axis=1)
        assert np.all(np.isclose(sums, 1.0) | (sums == 0.0))
        assert np.all(grid.weights >= 0.0)
        summary = grid.summary()
        assert sum(summary.values()) == 50 * 50
        assert summary["determined"] > 0

    def test_same_seed_gives_identical_grids(self, logger: logging.Logger) -> None:
        config = GenerationConfig(grid_size=16, noise_scale=6.0, seed=21)
        first = TerrainGenerator(config, logger).generate()
        second = TerrainGenerator(config, logger).generate()

        assert np.array_equal(first.weights, second.weights)

    def test_different_seeds_give_different_maps(self, logger: logging.Logger) -> None:
        first = TerrainGenerator(GenerationConfig(grid_size=20, noise_scale=6.0, seed=1), logger).generate()
        second = TerrainGenerator(GenerationConfig(grid_size=20, noise_scale=6.0, seed=2), logger).generate()

        assert not np.array_equal(first.tile_map(), second.tile_map())

    def test_injected_permutation_table_drives_the_priors(self, logger: logging.Logger) -> None:
        table = create_permutation_table(np.random.default_rng(77))
        config = GenerationConfig(grid_size=8, noise_scale=0.5, seed=3)
        generator = TerrainGenerator(config, logger, permutation_table=table)

        generator.generate()

        assert generator.permutation_table is table
        # A scale of 0.5 samples at the replacement scale of 10.
        assert np.array_equal(generator.last_height_map, sample_height_map(table, 8, 10.0))

    def test_each_run_returns_a_new_grid(self, logger: logging.Logger) -> None:
        generator = TerrainGenerator(GenerationConfig(grid_size=10, noise_scale=5.0), logger)
        first = generator.generate()
        snapshot = first.weights.copy()

        second = generator.generate()

        assert second is not first
        assert np.array_equal(first.weights, snapshot)

    def test_traversal_visits_every_cell(self, logger: logging.Logger, rng: np.random.Generator) -> None:
        generator = TerrainGenerator(GenerationConfig(grid_size=4, noise_scale=5.0), logger)
        grid = ProbabilityGrid(4, len(generator.catalog))

        popped = generator._traverse(grid, rng)

        # Seeds that land on the same cell are popped once each.
        assert 16 <= popped <= 20

    def test_module_level_generate(self, small_catalog) -> None:
        grid = generate(GenerationConfig(grid_size=6, noise_scale=4.0, seed=11), catalog=small_catalog)
        assert grid.num_tiles == 3
        assert grid.tile_map().shape == (6, 6)
