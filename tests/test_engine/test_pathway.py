"""End-to-end tests for VisualPathway."""

import numpy as np
import pytest

from visionpath.engine.context import CornerType, PipelineContext, ShapeType
from visionpath.engine.pipeline import VisualPathway
from visionpath.engine.registry import Stage, StageRegistry, StageSpec
from visionpath.models.summary import FeatureSummary
from visionpath.utils import stimuli


def test_dimensions_and_neuron_counts(pathway):
    assert pathway.dimensions == (64, 64)
    assert pathway.neuron_counts() == {
        "edge_cells": 16 * 16 * 2,
        "orientation_columns": 7 * 7 * 4,
        "orientation_neurons": 7 * 7 * 4 * 2,
        "corner_detectors": 14 * 14 * 4,
        "shape_detectors": 6 * 6 * 6,
    }


def test_empty_grid_yields_empty_maps():
    response = VisualPathway(0, 0).process([])

    assert response.edge_map.shape == (0, 0)
    assert response.orientation_map.populated == 0
    assert response.corner_map.populated == 0
    assert response.shape_map.populated == 0
    assert response.contours == []
    assert response.corner_count == 0
    assert response.contour_count == 0
    assert response.shape_instance_count == 0
    assert response.shape_type_counts == {}


def test_too_small_grid_has_no_columns():
    response = VisualPathway(8, 8).process(np.ones((8, 8)))
    assert response.orientation.positions == []
    assert response.orientation_map.populated == 0
    assert response.corner_count == 0


def test_dark_grid_is_silent(pathway, dark_grid):
    response = pathway.process(dark_grid)
    assert not response.edge_map.any()
    assert response.total_features == 0
    assert response.features.edge_strength == 0.0


def test_uniform_grid_has_no_edges(pathway, uniform_grid):
    response = pathway.process(uniform_grid)
    assert np.allclose(response.edge_map, 0.0)
    assert response.orientation_map.populated == 0
    assert response.contour_count == 0
    assert response.shape_instance_count == 0


def test_vertical_bar_reads_vertical(pathway, vertical_bar_grid):
    response = pathway.process(vertical_bar_grid)
    assert response.vertical_strength > response.horizontal_strength
    assert response.dominant_orientation == "Vertical"


def test_horizontal_bar_reads_horizontal(pathway, horizontal_bar_grid):
    response = pathway.process(horizontal_bar_grid)
    assert response.horizontal_strength > response.vertical_strength
    assert response.dominant_orientation == "Horizontal"


def test_bars_are_mirror_images(pathway, vertical_bar_grid, horizontal_bar_grid):
    vertical = pathway.process(vertical_bar_grid)
    horizontal = pathway.process(horizontal_bar_grid)
    assert np.allclose(vertical.edge_map, horizontal.edge_map.T)
    assert vertical.vertical_strength == pytest.approx(horizontal.horizontal_strength)
    assert vertical.diagonal_strength == pytest.approx(horizontal.diagonal_strength)


def test_cross_drives_both_axes(pathway):
    response = pathway.process(stimuli.cross(64, 64))
    assert response.horizontal_strength > 0.0
    assert response.vertical_strength > 0.0
    assert response.features.edge_strength > 0.0


def test_process_is_idempotent(pathway, checkerboard_grid):
    first = pathway.process(checkerboard_grid)
    second = pathway.process(checkerboard_grid)

    assert np.array_equal(first.edge_map, second.edge_map)
    assert np.array_equal(
        first.orientation_map.degrees, second.orientation_map.degrees, equal_nan=True
    )
    assert np.array_equal(first.corner_map.labels, second.corner_map.labels)
    assert np.array_equal(first.shape_map.labels, second.shape_map.labels)
    assert first.contours == second.contours
    assert first.junctions.corner_detections == second.junctions.corner_detections
    assert first.shape_type_counts == second.shape_type_counts


def test_state_does_not_leak_between_frames(pathway, checkerboard_grid, dark_grid):
    pathway.process(checkerboard_grid)
    response = pathway.process(dark_grid)
    assert response.total_features == 0
    assert response.shape_instance_count == 0


def test_process_accepts_list_of_rows(pathway, vertical_bar_grid):
    from_rows = pathway.process(vertical_bar_grid.tolist())
    from_array = pathway.process(vertical_bar_grid)
    assert np.array_equal(from_rows.edge_map, from_array.edge_map)


def test_jagged_grid_rejected():
    with pytest.raises(ValueError, match="Jagged"):
        VisualPathway(3, 2).process([[0.0, 0.0, 0.0], [0.0, 0.0]])


def test_wrong_size_rejected(pathway):
    with pytest.raises(ValueError, match="expects 64x64"):
        pathway.process(np.zeros((32, 64)))


def test_non_2d_rejected(pathway):
    with pytest.raises(ValueError, match="2-D"):
        pathway.process(np.zeros((64, 64, 3)))


def test_failed_stage_raises():
    reg = StageRegistry()

    def fail(layers, ctx: PipelineContext) -> None:
        raise ValueError("sensor fault")

    reg.register(StageSpec(id="S0.01", layer=Stage.EDGES, fn=fail))
    with pytest.raises(RuntimeError, match="S0.01"):
        VisualPathway(16, 16, registry=reg).process(np.zeros((16, 16)))


def test_process_streaming_ends_with_response(pathway, vertical_bar_grid):
    events = list(pathway.process_streaming(vertical_bar_grid))

    done = events[-1]
    assert done["status"] == "done"
    assert done["response"].dominant_orientation == "Vertical"

    progress = events[:-1]
    assert len(progress) == 2 * 7
    assert all(e["status"] in ("running", "ok") for e in progress)
    assert [e["stage_id"] for e in progress if e["status"] == "ok"] == [
        "S0.01", "S1.01", "S2.01", "S2.02", "S3.01", "S4.01", "S4.02",
    ]


def test_summary_is_serializable(pathway, checkerboard_grid):
    response = pathway.process(checkerboard_grid)
    summary = response.summary()

    assert isinstance(summary, FeatureSummary)
    assert summary.width == 64
    assert summary.corner_count == response.corner_count
    assert summary.contour_count == response.contour_count
    assert summary.total_features == response.corner_count + response.contour_count
    assert summary.contour_stats.count == response.contour_count
    assert summary.dominant_orientation == response.dominant_orientation

    restored = FeatureSummary.model_validate_json(summary.model_dump_json())
    assert restored == summary


def test_create_pathway_uses_given_size():
    from visionpath.main import configure_logging, create_pathway

    configure_logging()
    built = create_pathway(32, 16)
    assert built.dimensions == (32, 16)
    response = built.process(np.zeros((16, 32)))
    assert response.edge_strength == 0.0
    assert response.total_activation == 0.0
    assert response.dominant_corner_type is None
    assert response.dominant_shape_type is None


def test_right_angle_corner_yields_l_junction(pathway):
    response = pathway.process(stimuli.right_angle_corner(64, 64))
    # Every L that passes is followed by a T at 0.8x its activation in the
    # same cell, so the corner map keeps the T; the L survives in the detections.
    l_hits = [
        d for d in response.junctions.corner_detections if d.corner_type is CornerType.L
    ]
    assert l_hits
    assert all(response.corner_map.get(d.x, d.y) is not None for d in l_hits)


def test_circle_outline_yields_circle_cells(pathway):
    response = pathway.process(stimuli.circle_outline(64, 64, radius=8))
    assert response.shape_type_counts.get(ShapeType.CIRCLE, 0) >= 1
    assert response.shape_map.count(ShapeType.CIRCLE) >= 1


@pytest.mark.parametrize("name", ["rectangle", "triangle"])
def test_outline_patterns_run_through_pathway(pathway, name):
    response = pathway.process(stimuli.PATTERNS[name](64, 64))
    assert response.contour_count > 0
