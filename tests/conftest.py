from __future__ import annotations

import logging

import numpy as np
import pytest

from wfc_terrain.tiles import TileCatalog


@pytest.fixture
def logger() -> logging.Logger:
    """A logger for generator instances under test."""
    return logging.getLogger("wfc_terrain.tests")


@pytest.fixture
def rng() -> np.random.Generator:
    """A seeded generator so every random choice is reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def small_catalog() -> TileCatalog:
    """Three tile kinds with hand-checkable affinities.

    "water" accepts only "sand" next to it, so a water cell forces any
    water/sand neighbor to sand. "rock" has no affinity row at all.
    """
    return TileCatalog(
        names=("water", "sand", "rock"),
        height_bands={
            "water": (-1.0, 0.0),
            "sand": (0.0, 0.3),
            "rock": (0.3, 1.0),
        },
        affinities={
            "water": {"sand": 0.5},
            "sand": {"water": 0.4, "sand": 0.5, "rock": 0.2},
        },
    )
