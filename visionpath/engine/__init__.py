"""Visual pathway feature engine."""

from visionpath.engine.config import PathwayConfig
from visionpath.engine.context import (
    CornerType,
    FeatureResponse,
    PipelineContext,
    ShapeType,
)
from visionpath.engine.pipeline import Pipeline, VisualPathway
from visionpath.engine.registry import Stage, get_registry, stage

__all__ = [
    "stage",
    "Stage",
    "get_registry",
    "PathwayConfig",
    "PipelineContext",
    "FeatureResponse",
    "CornerType",
    "ShapeType",
    "Pipeline",
    "VisualPathway",
]
