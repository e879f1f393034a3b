"""S2.02 — Contour tracing (greedy 8-neighbor walk). ★★

The edge map is dilated with a 3×3 max filter so the 4-pixel-spaced edge
samples join up. Pixels are scanned row-major; an unvisited pixel above the
seed threshold starts a path that repeatedly steps to the strongest unvisited
neighbor above the walk threshold (first found wins a tie), for at most
max_steps steps. Paths shorter than min_length are dropped, but their pixels
stay visited.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from visionpath.engine.config import ContourConfig
from visionpath.engine.context import Contour
from visionpath.engine.registry import Stage, stage
from visionpath.utils.morphology import dilate_max

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext
    from visionpath.engine.pipeline import LayerStack

logger = logging.getLogger(__name__)

# Neighbor scan order: dy outer, dx inner
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)


class ContourTracer:
    def __init__(self, width: int, height: int, config: ContourConfig | None = None) -> None:
        self.width = width
        self.height = height
        self.config = config or ContourConfig()

    def _next_step(
        self, walk_map: NDArray[np.float64], visited: NDArray[np.bool_], x: int, y: int
    ) -> tuple[int, int] | None:
        best: tuple[int, int] | None = None
        best_value = self.config.walk_threshold
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if not (0 <= nx < self.width and 0 <= ny < self.height):
                continue
            if visited[ny, nx]:
                continue
            value = walk_map[ny, nx]
            if value > best_value:
                best_value = value
                best = (nx, ny)
        return best

    def trace_from(
        self,
        walk_map: NDArray[np.float64],
        visited: NDArray[np.bool_],
        x: int,
        y: int,
    ) -> Contour:
        """Walk from a seed, marking every pixel taken in ``visited``."""
        path: Contour = [(x, y)]
        visited[y, x] = True
        for _ in range(self.config.max_steps):
            step = self._next_step(walk_map, visited, x, y)
            if step is None:
                break
            x, y = step
            visited[y, x] = True
            path.append(step)
        return path

    def trace(self, edge_map: NDArray[np.float64]) -> list[Contour]:
        cfg = self.config
        if edge_map.size == 0:
            return []

        dilated = dilate_max(edge_map)
        walk_map = dilated if cfg.trace_on_dilated else edge_map
        visited = np.zeros(edge_map.shape, dtype=bool)
        contours: list[Contour] = []

        # argwhere yields (y, x) in row-major order
        for y, x in np.argwhere(dilated > cfg.seed_threshold):
            if visited[y, x]:
                continue
            path = self.trace_from(walk_map, visited, int(x), int(y))
            if len(path) >= cfg.min_length:
                contours.append(path)

        return contours


@stage(
    id="S2.02",
    layer=Stage.JUNCTIONS,
    dependencies=["S0.01"],
    description="Greedy contour tracing over the dilated edge map",
)
def contour_tracing(layers: LayerStack, ctx: PipelineContext) -> None:
    ctx.contours = layers.contours.trace(ctx.edge_map)
    logger.debug(
        "Contours: %d traced, %d pixels",
        len(ctx.contours),
        sum(len(c) for c in ctx.contours),
    )
