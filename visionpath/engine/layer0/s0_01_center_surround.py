"""S0.01 — Center-surround edge detection (retinal ganglion cells). ★★

Each sample position holds an ON-center and an OFF-center cell:
  ON  = mean(center) - mean(surround)
  OFF = mean(surround) - mean(center)
Firing rate = max(0, response × 100). The edge map adds the two rates at the
cell's own pixel, so a sample point holds 100·|center - surround| and every
unsampled pixel stays 0 (no interpolation).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from visionpath.engine.config import EdgeConfig
from visionpath.engine.registry import Stage, stage
from visionpath.utils.grid import disk_offsets, grid_positions, window_slices

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext
    from visionpath.engine.pipeline import LayerStack

logger = logging.getLogger(__name__)


class GanglionType(enum.Enum):
    ON_CENTER = "on"
    OFF_CENTER = "off"


@dataclass(frozen=True)
class GanglionCell:
    """Placement of one center-surround detector."""

    x: int
    y: int
    cell_type: GanglionType


class EdgeLayer:
    """Grid of ON/OFF ganglion cells covering a width×height field."""

    def __init__(self, width: int, height: int, config: EdgeConfig | None = None) -> None:
        self.width = width
        self.height = height
        self.config = config or EdgeConfig()

        self.positions: list[tuple[int, int]] = [
            (x, y)
            for y in grid_positions(0, height, self.config.step)
            for x in grid_positions(0, width, self.config.step)
        ]
        self.cells: list[GanglionCell] = [
            GanglionCell(x, y, cell_type)
            for x, y in self.positions
            for cell_type in (GanglionType.ON_CENTER, GanglionType.OFF_CENTER)
        ]

        # Offsets are sampled over the square bounding the surround, then
        # bucketed by distance
        self._radius = int(self.config.surround_radius)
        _, _, dist = disk_offsets(self._radius)
        self._center_mask = dist <= self.config.center_radius
        self._surround_mask = (dist > self.config.center_radius) & (
            dist <= self.config.surround_radius
        )

    def center_surround(self, image: NDArray[np.float64], x: int, y: int) -> tuple[float, float]:
        """Mean intensity of the center and surround regions around (x, y).

        Out-of-bounds offsets are skipped; an empty region averages to 0.
        """
        img_sl, k_sl = window_slices(x, y, self._radius, self.width, self.height)
        patch = image[img_sl]
        center = patch[self._center_mask[k_sl]]
        surround = patch[self._surround_mask[k_sl]]
        center_avg = float(center.mean()) if center.size else 0.0
        surround_avg = float(surround.mean()) if surround.size else 0.0
        return center_avg, surround_avg

    def response(self, image: NDArray[np.float64], cell: GanglionCell) -> float:
        """Signed center-surround difference for one cell."""
        center, surround = self.center_surround(image, cell.x, cell.y)
        if cell.cell_type is GanglionType.ON_CENTER:
            return center - surround
        return surround - center

    def firing_rate(self, image: NDArray[np.float64], cell: GanglionCell) -> float:
        return max(0.0, self.response(image, cell) * self.config.rate_scale)

    def process(self, activation: NDArray[np.float64]) -> NDArray[np.float64]:
        """Run every cell over the activation grid and build the sparse edge map."""
        if activation.shape != (self.height, self.width):
            raise ValueError(
                f"Activation grid is {activation.shape[1]}x{activation.shape[0]}, "
                f"layer expects {self.width}x{self.height}"
            )
        edge_map = np.zeros((self.height, self.width), dtype=np.float64)
        scale = self.config.rate_scale

        for x, y in self.positions:
            center, surround = self.center_surround(activation, x, y)
            on_rate = max(0.0, (center - surround) * scale)
            off_rate = max(0.0, (surround - center) * scale)
            edge_map[y, x] += abs(on_rate) + abs(off_rate)

        return edge_map


@stage(
    id="S0.01",
    layer=Stage.EDGES,
    description="Center-surround edge map from ON/OFF ganglion cells",
)
def center_surround_edges(layers: LayerStack, ctx: PipelineContext) -> None:
    ctx.edge_map = layers.edges.process(ctx.activation)
    logger.debug(
        "Edge map: %d/%d sample points active",
        int(np.count_nonzero(ctx.edge_map)),
        len(layers.edges.positions),
    )
