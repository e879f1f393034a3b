"""S3.01 — Shape detectors (V4 heuristics). ★★★

Every grid position runs six detectors (Circle, Rectangle, Triangle, Line,
Cross, Complex) over a radius-10 window of the corner map and the traced
contours. A contour is a *segment* of the window when any of its pixels falls
inside; its *local length* is how many do.

Detectors above 5.0 count as shape instances. The shape map keeps the
strongest type per position; an equal score never displaces the earlier type.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

import numpy as np
from numpy.typing import NDArray

from visionpath.engine.config import ShapeConfig
from visionpath.engine.context import (
    Contour,
    CornerMap,
    CornerType,
    EMPTY_LABEL,
    ShapeDetection,
    ShapeMap,
    ShapeResponse,
    ShapeType,
)
from visionpath.engine.registry import Stage, stage
from visionpath.utils.grid import clamp_window, grid_positions

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext
    from visionpath.engine.pipeline import LayerStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowEvidence:
    """Corner and contour evidence inside one detector window."""

    receptive_field: int
    corners: int = 0
    l_junctions: int = 0
    t_junctions: int = 0
    x_junctions: int = 0
    y_junctions: int = 0
    segments: int = 0
    contour_pixels: int = 0
    longest_segment: int = 0


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


def circle_score(ev: WindowEvidence) -> float:
    pixels = ev.contour_pixels
    rf = float(ev.receptive_field)
    density = pixels / (rf * rf)
    corner_ratio = ev.corners / pixels if pixels > 0 else 1.0

    # Smooth closed curve: plenty of contour, almost no corners
    if pixels >= 20 and corner_ratio < 0.08 and density > 0.08:
        bonus = 5.0 if density > 0.15 else 0.0
        return _clamp((1.0 - corner_ratio * 10.0) * 25.0 + bonus, 10.0, 25.0)

    # Partial arc
    if ev.longest_segment >= 6 and ev.corners <= 3 and pixels < 35:
        continuity = ev.longest_segment / max(pixels, 1)
        if continuity > 0.3:
            return min(ev.longest_segment * 1.5, 18.0)
    return 0.0


def rectangle_score(ev: WindowEvidence) -> float:
    if ev.l_junctions >= 3 and ev.segments >= 3:
        return min((ev.l_junctions + ev.segments) * 1.5, 25.0)
    if ev.x_junctions >= 2 and ev.segments >= 2:
        return min(float(ev.x_junctions + ev.segments), 20.0)
    return 0.0


def triangle_score(ev: WindowEvidence) -> float:
    corners = ev.l_junctions + ev.y_junctions
    if corners == 3 and ev.segments >= 3:
        return min((corners + ev.segments) * 2.0, 20.0)
    if 2 <= corners <= 4 and ev.segments >= 2:
        return min(float(corners + ev.segments), 15.0)
    return 0.0


def line_score(ev: WindowEvidence) -> float:
    longest = ev.longest_segment
    if longest > 8 and ev.corners <= 4:
        return _clamp(longest * 0.9 - ev.corners * 0.5, 5.0, 20.0)
    if longest > 5 and ev.corners <= 2:
        return min(longest * 0.7, 15.0)
    return 0.0


def cross_score(ev: WindowEvidence) -> float:
    if ev.x_junctions >= 1 and ev.segments >= 3:
        return min(float(ev.x_junctions * 5 + ev.segments), 25.0)
    if ev.t_junctions >= 2 and ev.segments >= 3:
        return min(float(ev.t_junctions * 3 + ev.segments), 20.0)
    return 0.0


def complex_score(ev: WindowEvidence) -> float:
    if ev.corners > 6 and ev.segments > 5:
        return min((ev.corners + ev.segments) * 0.5, 20.0)
    return 0.0


SHAPE_SCORERS: dict[ShapeType, Callable[[WindowEvidence], float]] = {
    ShapeType.CIRCLE: circle_score,
    ShapeType.RECTANGLE: rectangle_score,
    ShapeType.TRIANGLE: triangle_score,
    ShapeType.LINE: line_score,
    ShapeType.CROSS: cross_score,
    ShapeType.COMPLEX: complex_score,
}


class ShapeLayer:
    """Grid of shape detectors over the junction output."""

    def __init__(self, width: int, height: int, config: ShapeConfig | None = None) -> None:
        self.width = width
        self.height = height
        self.config = config or ShapeConfig()
        spacing = self.config.spacing

        self.positions: list[tuple[int, int]] = [
            (x, y)
            for y in grid_positions(spacing, height - spacing, spacing)
            for x in grid_positions(spacing, width - spacing, spacing)
        ]

    @property
    def detector_count(self) -> int:
        return len(self.positions) * len(ShapeType)

    def evidence(
        self,
        corner_map: CornerMap,
        contour_points: list[NDArray[np.int64]],
        x: int,
        y: int,
    ) -> WindowEvidence:
        """Gather corner counts and local contour lengths around (x, y)."""
        r = self.config.receptive_field

        x0, x1 = clamp_window(x, r, self.width)
        y0, y1 = clamp_window(y, r, self.height)
        labels = corner_map.labels[y0 : y1 + 1, x0 : x1 + 1]

        # Contour pixels may lie past the grid edge only on the high side
        lo_x, hi_x = max(0, x - r), x + r
        lo_y, hi_y = max(0, y - r), y + r
        segments = 0
        pixels = 0
        longest = 0
        for points in contour_points:
            inside = (
                (points[:, 0] >= lo_x)
                & (points[:, 0] <= hi_x)
                & (points[:, 1] >= lo_y)
                & (points[:, 1] <= hi_y)
            )
            local = int(np.count_nonzero(inside))
            if local:
                segments += 1
                pixels += local
                longest = max(longest, local)

        return WindowEvidence(
            receptive_field=r,
            corners=int(np.count_nonzero(labels != EMPTY_LABEL)),
            l_junctions=int(np.count_nonzero(labels == CornerType.L)),
            t_junctions=int(np.count_nonzero(labels == CornerType.T)),
            x_junctions=int(np.count_nonzero(labels == CornerType.X)),
            y_junctions=int(np.count_nonzero(labels == CornerType.Y)),
            segments=segments,
            contour_pixels=pixels,
            longest_segment=longest,
        )

    def process(self, corner_map: CornerMap, contours: list[Contour]) -> ShapeResponse:
        shape_map = ShapeMap.empty(self.width, self.height)
        detections: list[ShapeDetection] = []
        counts: Counter[ShapeType] = Counter()
        threshold = self.config.activation_threshold

        contour_points = [np.asarray(c, dtype=np.int64).reshape(-1, 2) for c in contours]

        for x, y in self.positions:
            ev = self.evidence(corner_map, contour_points, x, y)
            for shape_type, scorer in SHAPE_SCORERS.items():
                activation = scorer(ev)
                if activation > threshold:
                    shape_map.offer(x, y, shape_type, activation)
                    detections.append(ShapeDetection(x, y, shape_type, activation))
                    counts[shape_type] += 1

        return ShapeResponse(
            shape_map=shape_map,
            detections=detections,
            shape_type_counts=dict(counts),
        )


@stage(
    id="S3.01",
    layer=Stage.SHAPES,
    dependencies=["S2.01", "S2.02"],
    description="Heuristic shape classification over corner/contour windows",
)
def shape_detectors(layers: LayerStack, ctx: PipelineContext) -> None:
    ctx.shapes = layers.shapes.process(ctx.corner_map, ctx.contours)
    logger.debug(
        "Shapes: %d instances, counts=%s",
        ctx.shapes.shape_instance_count,
        {t.label: n for t, n in ctx.shapes.shape_type_counts.items()},
    )
