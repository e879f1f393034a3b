"""Tests for Layer 2 — corner junctions and contour tracing."""

import numpy as np
import pytest

from visionpath.engine.config import ContourConfig
from visionpath.engine.context import CornerType, OrientationMap
from visionpath.engine.layer2.s2_01_corner_junctions import AngleCounts, CornerLayer
from visionpath.engine.layer2.s2_02_contour_tracing import NEIGHBOR_OFFSETS, ContourTracer


# --- Corners ---


def test_corner_grid():
    layer = CornerLayer(64, 64)
    xs = sorted({x for x, _ in layer.positions})
    assert xs == list(range(4, 60, 4))
    assert layer.detector_count == 14 * 14 * 4


def test_angle_counts_buckets():
    window = np.array([[0.0, 10.0, 170.0, 45.0], [90.0, 67.5, 112.5, 135.0]])
    counts = AngleCounts.from_window(window)
    assert counts.horizontal_axis == 3
    assert counts.vertical_axis == 3
    assert counts.diagonal_45 == 2  # 45 and the 67.5 boundary
    assert counts.diagonal_135 == 2  # 135 and the 112.5 boundary


def test_angle_counts_ignore_empty_cells():
    assert AngleCounts.from_window(np.full((3, 3), np.nan)) == AngleCounts()


def test_right_angle_fires_l_junction():
    omap = OrientationMap.empty(64, 64)
    omap.set(21, 29, 0.0)  # horizontal arm
    omap.set(29, 29, 90.0)  # vertical arm

    corner_map, detections = CornerLayer(64, 64).process(omap)

    fired = {(d.x, d.y, d.corner_type) for d in detections}
    assert (24, 28, CornerType.L) in fired
    l_hit = next(d for d in detections if (d.x, d.y, d.corner_type) == (24, 28, CornerType.L))
    assert l_hit.activation == pytest.approx(2.0)
    # T = 0.8·L also passes and is written after L
    assert corner_map.get(24, 28) is CornerType.T


def test_diagonal_pair_fires_x_junction():
    omap = OrientationMap.empty(32, 32)
    omap.set(13, 13, 45.0)
    omap.set(14, 14, 135.0)

    corner_map, detections = CornerLayer(32, 32).process(omap)

    assert corner_map.get(12, 12) is CornerType.X
    # Y = 0.7·(0 + 2)/2 stays under threshold
    assert all(d.corner_type is CornerType.X for d in detections)


def test_scores_cap_and_last_write_wins():
    omap = OrientationMap.empty(32, 32)
    omap.degrees[10:23, 10:16] = 0.0
    omap.degrees[10:23, 16:23] = 90.0

    layer = CornerLayer(32, 32)
    scores = layer.scores(layer.window_counts(omap, 16, 16))
    assert scores[CornerType.L] == 100.0
    assert scores[CornerType.T] == pytest.approx(80.0)
    assert scores[CornerType.X] == 0.0
    assert scores[CornerType.Y] == pytest.approx(35.0)

    corner_map, _ = layer.process(omap)
    assert corner_map.get(16, 16) is CornerType.Y


def test_empty_orientation_map_has_no_corners():
    corner_map, detections = CornerLayer(32, 32).process(OrientationMap.empty(32, 32))
    assert detections == []
    assert corner_map.populated == 0


# --- Contours ---


def test_neighbor_scan_order():
    assert NEIGHBOR_OFFSETS[0] == (-1, -1)
    assert NEIGHBOR_OFFSETS[2] == (1, -1)
    assert NEIGHBOR_OFFSETS[-1] == (1, 1)
    assert len(NEIGHBOR_OFFSETS) == 8


def test_traces_straight_line_on_raw_map():
    edge_map = np.zeros((16, 16))
    edge_map[5, 2:13] = 1.0

    tracer = ContourTracer(16, 16, ContourConfig(trace_on_dilated=False))
    contours = tracer.trace(edge_map)

    # First seed is the dilated halo pixel above-left of the line
    assert contours == [[(1, 4)] + [(x, 5) for x in range(2, 13)]]


def test_walk_follows_strongest_neighbor():
    edge_map = np.zeros((8, 8))
    edge_map[4, 1] = 1.0
    edge_map[4, 2] = 0.3
    edge_map[3, 2] = 0.8
    visited = np.zeros((8, 8), dtype=bool)

    tracer = ContourTracer(8, 8)
    path = tracer.trace_from(edge_map, visited, 1, 4)
    assert path[:2] == [(1, 4), (2, 3)]
    assert visited[4, 1] and visited[3, 2]


def test_short_paths_dropped():
    edge_map = np.zeros((16, 16))
    edge_map[8, 8] = 1.0
    contours = ContourTracer(16, 16, ContourConfig(trace_on_dilated=False, min_length=3)).trace(
        edge_map
    )
    # Halo seeds reach the single pixel in one step, then stop
    assert contours == []


def test_paths_bounded_and_disjoint(random_edge_map):
    tracer = ContourTracer(64, 64)
    contours = tracer.trace(random_edge_map)

    assert contours
    assert all(3 <= len(c) <= 201 for c in contours)
    pixels = [p for c in contours for p in c]
    assert len(pixels) == len(set(pixels))


def test_step_cap_limits_length():
    edge_map = np.ones((20, 20))
    contours = ContourTracer(20, 20, ContourConfig(max_steps=10)).trace(edge_map)
    assert max(len(c) for c in contours) == 11


def test_paths_are_eight_connected(checkerboard_grid):
    contours = ContourTracer(64, 64).trace(checkerboard_grid)
    for contour in contours:
        for (x0, y0), (x1, y1) in zip(contour, contour[1:]):
            assert max(abs(x1 - x0), abs(y1 - y0)) == 1


def test_empty_edge_map():
    assert ContourTracer(0, 0).trace(np.zeros((0, 0))) == []
    assert ContourTracer(8, 8).trace(np.zeros((8, 8))) == []
