"""S2.01 — Corner junctions (V2 L/T/X/Y detectors). ★★

Each detector counts orientation-map cells by angle bucket inside a square
window (radius 6, clamped to the grid):
  h    : angle < 22.5 or > 157.5
  v    : 67.5 ≤ angle ≤ 112.5
  c45  : 22.5 ≤ angle ≤ 67.5
  c135 : 112.5 ≤ angle ≤ 157.5

  L = min(h, v)·2       (both ≥ 1, capped at 100)
  X = min(c45, c135)·2  (both ≥ 1, capped at 100)
  T = 0.8·L
  Y = 0.7·(L + X)/2

Detectors above 1.0 write the corner map; positions go row-major and types
L, T, X, Y, with the last write winning a cell.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from visionpath.engine.config import CornerConfig
from visionpath.engine.context import CornerDetection, CornerMap, CornerType, OrientationMap
from visionpath.engine.registry import Stage, stage
from visionpath.utils.grid import clamp_window, grid_positions

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext
    from visionpath.engine.pipeline import LayerStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AngleCounts:
    """Orientation-map cells per angle bucket within one window."""

    horizontal_axis: int = 0  # near 0°
    vertical_axis: int = 0  # near 90°
    diagonal_45: int = 0
    diagonal_135: int = 0

    @classmethod
    def from_window(cls, degrees: NDArray[np.float64]) -> AngleCounts:
        # NaN (empty) cells fail every comparison
        with np.errstate(invalid="ignore"):
            return cls(
                horizontal_axis=int(np.count_nonzero((degrees < 22.5) | (degrees > 157.5))),
                vertical_axis=int(np.count_nonzero((degrees >= 67.5) & (degrees <= 112.5))),
                diagonal_45=int(np.count_nonzero((degrees >= 22.5) & (degrees <= 67.5))),
                diagonal_135=int(np.count_nonzero((degrees >= 112.5) & (degrees <= 157.5))),
            )


def _pair_score(a: int, b: int, cap: float) -> float:
    if a >= 1 and b >= 1:
        return min(float(min(a, b)) * 2.0, cap)
    return 0.0


class CornerLayer:
    """Grid of L/T/X/Y junction detectors over the orientation map."""

    def __init__(self, width: int, height: int, config: CornerConfig | None = None) -> None:
        self.width = width
        self.height = height
        self.config = config or CornerConfig()
        spacing = self.config.spacing

        self.positions: list[tuple[int, int]] = [
            (x, y)
            for y in grid_positions(spacing, height - spacing, spacing)
            for x in grid_positions(spacing, width - spacing, spacing)
        ]

    @property
    def detector_count(self) -> int:
        return len(self.positions) * len(CornerType)

    def window_counts(self, orientation_map: OrientationMap, x: int, y: int) -> AngleCounts:
        r = self.config.receptive_field
        x0, x1 = clamp_window(x, r, self.width)
        y0, y1 = clamp_window(y, r, self.height)
        return AngleCounts.from_window(orientation_map.degrees[y0 : y1 + 1, x0 : x1 + 1])

    def scores(self, counts: AngleCounts) -> dict[CornerType, float]:
        cfg = self.config
        l_score = _pair_score(counts.horizontal_axis, counts.vertical_axis, cfg.score_cap)
        x_score = _pair_score(counts.diagonal_45, counts.diagonal_135, cfg.score_cap)
        return {
            CornerType.L: l_score,
            CornerType.T: l_score * cfg.t_junction_factor,
            CornerType.X: x_score,
            CornerType.Y: cfg.y_junction_factor * (l_score + x_score) / 2.0,
        }

    def process(self, orientation_map: OrientationMap) -> tuple[CornerMap, list[CornerDetection]]:
        corner_map = CornerMap.empty(self.width, self.height)
        detections: list[CornerDetection] = []
        if orientation_map.populated == 0:
            return corner_map, detections

        threshold = self.config.activation_threshold
        for x, y in self.positions:
            scores = self.scores(self.window_counts(orientation_map, x, y))
            for corner_type in CornerType:
                activation = scores[corner_type]
                if activation > threshold:
                    corner_map.write(x, y, corner_type)
                    detections.append(CornerDetection(x, y, corner_type, activation))

        return corner_map, detections


@stage(
    id="S2.01",
    layer=Stage.JUNCTIONS,
    dependencies=["S1.01"],
    description="L/T/X/Y corner junctions from the orientation map",
)
def corner_junctions(layers: LayerStack, ctx: PipelineContext) -> None:
    ctx.corner_map, ctx.corner_detections = layers.corners.process(
        ctx.orientation.orientation_map
    )
    logger.debug(
        "Corners: %d detections, %d cells",
        len(ctx.corner_detections),
        ctx.corner_map.populated,
    )
