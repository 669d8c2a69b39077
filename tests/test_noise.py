"""Tests for the 3D gradient noise field and its permutation table."""

from __future__ import annotations

import numpy as np
import pytest

from wfc_terrain.noise import create_permutation_table, perlin_noise_3d, perlin_noise_grid


@pytest.fixture
def table() -> np.ndarray:
    return create_permutation_table(np.random.default_rng(42))


def test_independent_table_is_mirrored_and_in_range(table: np.ndarray) -> None:
    assert table.shape == (512,)
    assert table.min() >= 0
    assert table.max() <= 255
    assert np.array_equal(table[:256], table[256:])


def test_shuffle_table_is_a_permutation() -> None:
    table = create_permutation_table(np.random.default_rng(7), mode="shuffle")
    assert np.array_equal(np.sort(table[:256]), np.arange(256))
    assert np.array_equal(table[:256], table[256:])


def test_unknown_permutation_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        create_permutation_table(np.random.default_rng(0), mode="sorted")


def test_same_table_and_coordinates_give_identical_values(table: np.ndarray) -> None:
    first = perlin_noise_3d(table, 12.375, 3.8, 0.0)
    second = perlin_noise_3d(table, 12.375, 3.8, 0.0)
    assert first == second


def test_noise_is_zero_on_lattice_points(table: np.ndarray) -> None:
    for x, y, z in [(0.0, 0.0, 0.0), (3.0, 7.0, 0.0), (-4.0, 11.0, 2.0)]:
        assert perlin_noise_3d(table, x, y, z) == 0.0


def test_noise_is_periodic_with_period_256(table: np.ndarray) -> None:
    for x, y, z in [(0.5, 1.25, 0.0), (17.75, 3.5, 0.25)]:
        base = perlin_noise_3d(table, x, y, z)
        assert perlin_noise_3d(table, x + 256.0, y, z) == base
        assert perlin_noise_3d(table, x, y + 256.0, z) == base
        assert perlin_noise_3d(table, x, y, z + 256.0) == base


def test_noise_stays_bounded_and_finite(table: np.ndarray) -> None:
    rng = np.random.default_rng(99)
    points = rng.uniform(-300.0, 300.0, size=(2000, 3))
    values = np.array([perlin_noise_3d(table, x, y, z) for x, y, z in points])

    assert np.all(np.isfinite(values))
    assert np.all(np.abs(values) <= 1.5)
    # Not a constant field.
    assert values.std() > 0.05


def test_different_tables_give_different_fields() -> None:
    a = create_permutation_table(np.random.default_rng(1))
    b = create_permutation_table(np.random.default_rng(2))
    samples = [(x + 0.3, y + 0.6, 0.0) for x in range(5) for y in range(5)]
    assert any(perlin_noise_3d(a, *s) != perlin_noise_3d(b, *s) for s in samples)


def test_grid_sampling_matches_point_sampling(table: np.ndarray) -> None:
    xs, ys = np.meshgrid(np.linspace(0.0, 4.0, 7), np.linspace(-2.0, 2.0, 5), indexing="ij")
    grid = perlin_noise_grid(table, xs, ys, 0.5)

    assert grid.shape == xs.shape
    for i in range(xs.shape[0]):
        for j in range(xs.shape[1]):
            assert grid[i, j] == perlin_noise_3d(table, xs[i, j], ys[i, j], 0.5)
