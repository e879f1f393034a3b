"""Tests for Layer 0 — center-surround edge detection."""

import numpy as np
import pytest

from visionpath.engine.config import EdgeConfig
from visionpath.engine.layer0.s0_01_center_surround import EdgeLayer, GanglionCell, GanglionType


def test_positions_cover_grid_at_step():
    layer = EdgeLayer(10, 6)
    assert layer.positions == [(x, y) for y in (0, 4) for x in (0, 4, 8)]
    # ON then OFF at every position
    assert len(layer.cells) == 12
    assert layer.cells[0].cell_type is GanglionType.ON_CENTER
    assert layer.cells[1].cell_type is GanglionType.OFF_CENTER
    assert (layer.cells[0].x, layer.cells[0].y) == (layer.cells[1].x, layer.cells[1].y)


def test_uniform_grid_gives_zero_edges(uniform_grid):
    layer = EdgeLayer(64, 64)
    assert np.allclose(layer.process(uniform_grid), 0.0)


def test_edges_only_at_sample_points(vertical_bar_grid):
    edge_map = EdgeLayer(64, 64).process(vertical_bar_grid)
    mask = np.zeros_like(edge_map, dtype=bool)
    mask[::4, ::4] = True
    assert not edge_map[~mask].any()
    assert edge_map[mask].any()


def test_vertical_bar_edge_values(vertical_bar_grid):
    # Bar covers x = 24..39
    edge_map = EdgeLayer(64, 64).process(vertical_bar_grid)

    # Center 6/9 bright, surround 23/40 bright
    assert edge_map[32, 24] == pytest.approx(100 * abs(6 / 9 - 23 / 40))
    # Bar interior and far background are flat
    assert edge_map[32, 28] == 0.0
    assert edge_map[32, 8] == 0.0
    # Edge response is constant down the bar
    assert np.allclose(edge_map[8:57:4, 24], edge_map[32, 24])


def test_on_and_off_cells_are_complementary(vertical_bar_grid):
    layer = EdgeLayer(64, 64)
    on = GanglionCell(24, 32, GanglionType.ON_CENTER)
    off = GanglionCell(24, 32, GanglionType.OFF_CENTER)

    assert layer.response(vertical_bar_grid, on) == pytest.approx(
        -layer.response(vertical_bar_grid, off)
    )
    assert layer.firing_rate(vertical_bar_grid, on) > 0.0
    assert layer.firing_rate(vertical_bar_grid, off) == 0.0


def test_center_surround_clips_at_border():
    image = np.ones((8, 8))
    center, surround = EdgeLayer(8, 8).center_surround(image, 0, 0)
    assert center == pytest.approx(1.0)
    assert surround == pytest.approx(1.0)


def test_custom_step():
    layer = EdgeLayer(16, 16, EdgeConfig(step=8))
    assert layer.positions == [(0, 0), (8, 0), (0, 8), (8, 8)]


def test_wrong_shape_rejected():
    with pytest.raises(ValueError):
        EdgeLayer(16, 16).process(np.zeros((8, 16)))


def test_empty_grid():
    edge_map = EdgeLayer(0, 0).process(np.zeros((0, 0)))
    assert edge_map.shape == (0, 0)
