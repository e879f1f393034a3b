"""Pipeline orchestrator — runs pathway stages in dependency order."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time
from collections.abc import Generator, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from visionpath.engine.config import PathwayConfig
from visionpath.engine.context import ContourStats, FeatureResponse, PipelineContext
from visionpath.engine.layer0.s0_01_center_surround import EdgeLayer
from visionpath.engine.layer1.s1_01_orientation_columns import OrientationLayer
from visionpath.engine.layer2.s2_01_corner_junctions import CornerLayer
from visionpath.engine.layer2.s2_02_contour_tracing import ContourTracer
from visionpath.engine.layer3.s3_01_shape_detectors import ShapeLayer
from visionpath.engine.registry import Stage, StageRegistry, StageSpec, get_registry
from visionpath.utils.grid import as_activation_grid

logger = logging.getLogger(__name__)

STAGE_PACKAGES = ("layer0", "layer1", "layer2", "layer3", "layer4")


def register_stages() -> None:
    """Import every stage module so the @stage decorators fire."""
    for layer_name in STAGE_PACKAGES:
        package = importlib.import_module(f"visionpath.engine.{layer_name}")
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package.__name__}.{module_name}")


@dataclass
class LayerStack:
    """All layer instances of one pathway, sized for a single frame geometry."""

    edges: EdgeLayer
    orientation: OrientationLayer
    corners: CornerLayer
    contours: ContourTracer
    shapes: ShapeLayer
    config: PathwayConfig

    @classmethod
    def build(cls, width: int, height: int, config: PathwayConfig | None = None) -> LayerStack:
        config = config or PathwayConfig()
        return cls(
            edges=EdgeLayer(width, height, config.edges),
            orientation=OrientationLayer(width, height, config.orientation),
            corners=CornerLayer(width, height, config.corners),
            contours=ContourTracer(width, height, config.contours),
            shapes=ShapeLayer(width, height, config.shapes),
            config=config,
        )


class Pipeline:
    """Runs registered stages over a PipelineContext."""

    def __init__(self, registry: StageRegistry | None = None) -> None:
        self.registry = registry or get_registry()

    def _ready(self, spec: StageSpec, ctx: PipelineContext) -> bool:
        missing = [d for d in spec.dependencies if d not in ctx.completed_stages]
        if missing:
            ctx.errors[spec.id] = f"Skipped: dependencies {missing} did not complete"
            logger.warning("  %s SKIPPED: waiting on %s", spec.id, missing)
            return False
        return True

    def _execute(self, spec: StageSpec, layers: Any, ctx: PipelineContext) -> str:
        """Run one stage; returns the error text, empty on success."""
        t0 = time.perf_counter()
        try:
            spec.fn(layers, ctx)
        except Exception as e:
            error = str(e) or type(e).__name__
            ctx.errors[spec.id] = error
            logger.warning("  %s FAILED: %s", spec.id, error)
            return error
        elapsed = (time.perf_counter() - t0) * 1000
        ctx.completed_stages.add(spec.id)
        ctx.timings_ms[spec.id] = elapsed
        logger.debug("  %s completed in %.1fms", spec.id, elapsed)
        return ""

    def run(self, layers: Any, ctx: PipelineContext) -> PipelineContext:
        """Run every registered stage on the given context."""
        start = time.perf_counter()
        ordered = self.registry.resolve_order()

        logger.info("Pipeline: %d stages queued", len(ordered))

        for spec in ordered:
            if self._ready(spec, ctx):
                self._execute(spec, layers, ctx)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Pipeline complete: %d/%d stages in %.0fms",
            len(ctx.completed_stages),
            len(ordered),
            total,
        )
        return ctx

    def run_streaming(
        self, layers: Any, ctx: PipelineContext
    ) -> Generator[dict[str, Any], None, None]:
        """Run the pipeline, yielding a progress dict before and after each stage.

        The caller's ``ctx`` is mutated in-place, so after the generator is
        exhausted the context contains all results (same as ``run()``).
        """
        ordered = self.registry.resolve_order()
        total = len(ordered)

        for i, spec in enumerate(ordered):
            event = {
                "stage_id": spec.id,
                "description": spec.description,
                "layer": spec.layer.name,
                "index": i,
                "total": total,
                "elapsed_ms": 0.0,
                "status": "running",
                "error": "",
            }
            yield dict(event)

            t0 = time.perf_counter()
            if self._ready(spec, ctx):
                error = self._execute(spec, layers, ctx)
            else:
                error = ctx.errors[spec.id]

            event["elapsed_ms"] = round((time.perf_counter() - t0) * 1000, 1)
            event["status"] = "error" if error else "ok"
            event["error"] = error
            yield event

    def run_stage(self, layers: Any, ctx: PipelineContext, layer: Stage) -> PipelineContext:
        """Run only the stages of one layer; their inputs must already be in ``ctx``."""
        for spec in self.registry.get_layer(layer):
            self._execute(spec, layers, ctx)
        return ctx


def create_pipeline(registry: StageRegistry | None = None) -> Pipeline:
    """Factory function for creating a pipeline instance."""
    return Pipeline(registry=registry)


class VisualPathway:
    """Edge → orientation → corner/contour → shape hierarchy for one frame size.

    Placement grids are built once here; every ``process`` call gets a fresh
    context, so the pathway can be reused across frames.
    """

    def __init__(
        self,
        width: int,
        height: int,
        config: PathwayConfig | None = None,
        registry: StageRegistry | None = None,
    ) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Negative pathway size {width}x{height}")
        register_stages()
        self.width = width
        self.height = height
        self.config = config or PathwayConfig()
        self.layers = LayerStack.build(width, height, self.config)
        self.pipeline = create_pipeline(registry)

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    def neuron_counts(self) -> dict[str, int]:
        """Detector inventory per layer."""
        return {
            "edge_cells": len(self.layers.edges.cells),
            "orientation_columns": self.layers.orientation.column_count,
            "orientation_neurons": self.layers.orientation.neuron_count,
            "corner_detectors": self.layers.corners.detector_count,
            "shape_detectors": self.layers.shapes.detector_count,
        }

    def _context(self, grid: ArrayLike | Sequence[Sequence[float]]) -> PipelineContext:
        activation = as_activation_grid(grid)
        if activation.size == 0 and self.width * self.height == 0:
            activation = np.zeros((self.height, self.width), dtype=np.float64)
        if activation.shape != (self.height, self.width):
            raise ValueError(
                f"Activation grid is {activation.shape[1]}x{activation.shape[0]}, "
                f"pathway expects {self.width}x{self.height}"
            )
        return PipelineContext(activation=activation)

    def _response(self, ctx: PipelineContext) -> FeatureResponse:
        if ctx.errors:
            failed = ", ".join(f"{sid} ({msg})" for sid, msg in sorted(ctx.errors.items()))
            raise RuntimeError(f"Pathway stages failed: {failed}")
        return FeatureResponse(
            width=self.width,
            height=self.height,
            edge_map=ctx.edge_map,
            orientation=ctx.orientation,
            junctions=ctx.junctions(),
            shapes=ctx.shapes,
            features=ctx.features,
            contour_stats=ctx.contour_stats or ContourStats(),
        )

    def process(self, grid: ArrayLike | Sequence[Sequence[float]]) -> FeatureResponse:
        """Run the full hierarchy on one width×height activation grid.

        Raises ValueError for jagged, non-2-D or wrongly sized input, and
        RuntimeError if any stage fails.
        """
        ctx = self._context(grid)
        self.pipeline.run(self.layers, ctx)
        return self._response(ctx)

    def process_streaming(
        self, grid: ArrayLike | Sequence[Sequence[float]]
    ) -> Generator[dict[str, Any], None, None]:
        """Like ``process`` but yields stage progress, then a final ``done`` event."""
        ctx = self._context(grid)
        yield from self.pipeline.run_streaming(self.layers, ctx)
        yield {"status": "done", "response": self._response(ctx)}
