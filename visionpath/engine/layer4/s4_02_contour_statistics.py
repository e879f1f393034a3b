"""S4.02 — Contour length statistics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from visionpath.engine.context import Contour, ContourStats
from visionpath.engine.registry import Stage, stage

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext
    from visionpath.engine.pipeline import LayerStack

logger = logging.getLogger(__name__)


def contour_statistics(contours: list[Contour]) -> ContourStats:
    if not contours:
        return ContourStats()

    lengths = np.array(sorted(len(c) for c in contours), dtype=np.int64)
    return ContourStats(
        count=len(lengths),
        total_pixels=int(lengths.sum()),
        min_length=int(lengths[0]),
        max_length=int(lengths[-1]),
        # Upper median on even counts
        median_length=int(lengths[len(lengths) // 2]),
        mean_length=float(lengths.mean()),
        short=int(np.count_nonzero(lengths <= 5)),
        medium=int(np.count_nonzero((lengths >= 6) & (lengths <= 15))),
        long=int(np.count_nonzero((lengths >= 16) & (lengths <= 30))),
        very_long=int(np.count_nonzero(lengths > 30)),
    )


@stage(
    id="S4.02",
    layer=Stage.SUMMARY,
    dependencies=["S2.02"],
    description="Contour count and length distribution",
)
def contour_summary(layers: LayerStack, ctx: PipelineContext) -> None:
    ctx.contour_stats = contour_statistics(ctx.contours)
    logger.debug(
        "Contour stats: %d contours, lengths %d..%d",
        ctx.contour_stats.count,
        ctx.contour_stats.min_length,
        ctx.contour_stats.max_length,
    )
