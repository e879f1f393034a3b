"""Serializable scalar view of a FeatureResponse."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from visionpath.engine.context import FeatureResponse


class ContourStatsSummary(BaseModel):
    count: int = 0
    total_pixels: int = 0
    min_length: int = 0
    max_length: int = 0
    median_length: int = 0
    mean_length: float = 0.0
    short: int = 0
    medium: int = 0
    long: int = 0
    very_long: int = 0


class FeatureSummary(BaseModel):
    width: int
    height: int
    corner_count: int = 0
    contour_count: int = 0
    shape_instance_count: int = 0
    total_features: int = 0
    shape_type_counts: dict[str, int] = Field(default_factory=dict)
    dominant_corner_type: str | None = None
    dominant_shape_type: str | None = None
    horizontal_strength: float = 0.0
    vertical_strength: float = 0.0
    diagonal_strength: float = 0.0
    edge_strength: float = 0.0
    total_activation: float = 0.0
    dominant_orientation: str = "Diagonal"
    contour_stats: ContourStatsSummary = Field(default_factory=ContourStatsSummary)

    @classmethod
    def from_response(cls, response: FeatureResponse) -> FeatureSummary:
        corner_type = response.junctions.dominant_corner_type
        shape_type = response.shapes.dominant_shape_type
        stats = response.contour_stats
        return cls(
            width=response.width,
            height=response.height,
            corner_count=response.corner_count,
            contour_count=response.contour_count,
            shape_instance_count=response.shape_instance_count,
            total_features=response.total_features,
            shape_type_counts={t.label: n for t, n in response.shape_type_counts.items()},
            dominant_corner_type=corner_type.label if corner_type is not None else None,
            dominant_shape_type=shape_type.label if shape_type is not None else None,
            horizontal_strength=response.horizontal_strength,
            vertical_strength=response.vertical_strength,
            diagonal_strength=response.diagonal_strength,
            edge_strength=response.features.edge_strength,
            total_activation=response.features.total_activation,
            dominant_orientation=response.dominant_orientation,
            contour_stats=ContourStatsSummary(
                count=stats.count,
                total_pixels=stats.total_pixels,
                min_length=stats.min_length,
                max_length=stats.max_length,
                median_length=stats.median_length,
                mean_length=stats.mean_length,
                short=stats.short,
                medium=stats.medium,
                long=stats.long,
                very_long=stats.very_long,
            ),
        )
