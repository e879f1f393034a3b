"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from visionpath.engine.pipeline import VisualPathway
from visionpath.utils import stimuli

FRAME = 64


@pytest.fixture
def pathway() -> VisualPathway:
    return VisualPathway(FRAME, FRAME)


@pytest.fixture
def dark_grid() -> np.ndarray:
    return stimuli.blank(FRAME, FRAME)


@pytest.fixture
def uniform_grid() -> np.ndarray:
    return stimuli.blank(FRAME, FRAME, 0.5)


@pytest.fixture
def vertical_bar_grid() -> np.ndarray:
    return stimuli.vertical_bar(FRAME, FRAME)


@pytest.fixture
def horizontal_bar_grid() -> np.ndarray:
    return stimuli.horizontal_bar(FRAME, FRAME)


@pytest.fixture
def checkerboard_grid() -> np.ndarray:
    return stimuli.checkerboard(FRAME, FRAME, 8)


@pytest.fixture
def random_edge_map() -> np.ndarray:
    rng = np.random.default_rng(7)
    return rng.random((FRAME, FRAME))
