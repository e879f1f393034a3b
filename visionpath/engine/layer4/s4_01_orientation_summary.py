"""S4.01 — Orientation summary (scalar H/V/D strengths).

Each column's max activation goes to one bucket by its preferred angle:
  < 22.5 or > 157.5 → vertical (0° columns respond to vertical edges)
  67.5 … 112.5      → horizontal
  otherwise         → diagonal
Diagonal is divided by 2.25: two diagonal bands feed it, and diagonal columns
also pick up the staircase of sampled H/V edges.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from visionpath.engine.context import OrientationFeatures, OrientationResponse
from visionpath.engine.registry import Stage, stage

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext
    from visionpath.engine.pipeline import LayerStack

logger = logging.getLogger(__name__)


def orientation_bucket(degrees: float) -> str:
    if degrees < 22.5 or degrees > 157.5:
        return "vertical"
    if 67.5 <= degrees <= 112.5:
        return "horizontal"
    return "diagonal"


def summarize_orientation(
    response: OrientationResponse,
    diagonal_normalizer: float = 2.25,
    dominance_bias: float = 1.06,
) -> OrientationFeatures:
    totals = {"horizontal": 0.0, "vertical": 0.0, "diagonal": 0.0}
    total_activation = 0.0
    for _, degrees, activation in response.columns():
        totals[orientation_bucket(degrees)] += activation
        total_activation += activation

    return OrientationFeatures(
        horizontal_strength=totals["horizontal"],
        vertical_strength=totals["vertical"],
        diagonal_strength=totals["diagonal"] / diagonal_normalizer,
        total_activation=total_activation,
        dominance_bias=dominance_bias,
    )


@stage(
    id="S4.01",
    layer=Stage.SUMMARY,
    dependencies=["S1.01"],
    description="Horizontal/vertical/diagonal strengths and dominant orientation",
)
def orientation_summary(layers: LayerStack, ctx: PipelineContext) -> None:
    ctx.features = summarize_orientation(
        ctx.orientation,
        diagonal_normalizer=layers.config.diagonal_normalizer,
        dominance_bias=layers.config.dominance_bias,
    )
    logger.debug(
        "Orientation summary: H=%.2f V=%.2f D=%.2f → %s",
        ctx.features.horizontal_strength,
        ctx.features.vertical_strength,
        ctx.features.diagonal_strength,
        ctx.features.dominant_orientation,
    )
