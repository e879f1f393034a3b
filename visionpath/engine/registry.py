"""Stage registry for the pathway layers.

Each layer module registers its stage function with ``@stage``::

    @stage(id="S2.01", layer=Stage.JUNCTIONS, dependencies=["S1.01"])
    def corner_junctions(layers: LayerStack, ctx: PipelineContext) -> None:
        ...

A stage reads only what its dependencies left in the context.
"""

from __future__ import annotations

import enum
import heapq
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext

logger = logging.getLogger(__name__)

StageFn = Callable[[Any, "PipelineContext"], None]


class Stage(enum.IntEnum):
    EDGES = 0
    ORIENTATION = 1
    JUNCTIONS = 2
    SHAPES = 3
    SUMMARY = 4


@dataclass
class StageSpec:
    id: str
    layer: Stage
    fn: StageFn
    dependencies: list[str] = field(default_factory=list)
    description: str = ""

    @property
    def sort_key(self) -> tuple[int, str]:
        return int(self.layer), self.id


class StageRegistry:
    """Stage specs keyed by ID."""

    def __init__(self) -> None:
        self._stages: dict[str, StageSpec] = {}

    def register(self, spec: StageSpec) -> None:
        if spec.id in self._stages:
            raise ValueError(f"Duplicate stage ID: {spec.id}")
        self._stages[spec.id] = spec
        logger.debug("Registered stage %s (%s)", spec.id, spec.layer.name)

    def get_layer(self, layer: Stage) -> list[StageSpec]:
        return sorted((s for s in self._stages.values() if s.layer == layer), key=lambda s: s.id)

    def resolve_order(self) -> list[StageSpec]:
        """Dependency order; among ready stages the lower (layer, id) runs first.

        Dependencies on unregistered IDs do not block ordering; the pipeline
        skips such stages at run time.
        """
        waiting: dict[str, int] = {}
        dependents: dict[str, list[str]] = {sid: [] for sid in self._stages}
        for sid, spec in self._stages.items():
            known = [d for d in spec.dependencies if d in self._stages]
            waiting[sid] = len(known)
            for dep in known:
                dependents[dep].append(sid)

        ready = [self._stages[sid].sort_key for sid, n in waiting.items() if n == 0]
        heapq.heapify(ready)
        ordered: list[StageSpec] = []
        while ready:
            _, sid = heapq.heappop(ready)
            ordered.append(self._stages[sid])
            for other in dependents[sid]:
                waiting[other] -= 1
                if waiting[other] == 0:
                    heapq.heappush(ready, self._stages[other].sort_key)

        if len(ordered) != len(self._stages):
            stuck = sorted(sid for sid, n in waiting.items() if n > 0)
            raise ValueError(f"Circular dependency detected among: {stuck}")
        return ordered


_registry = StageRegistry()


def get_registry() -> StageRegistry:
    return _registry


def stage(
    *,
    id: str,
    layer: Stage,
    dependencies: list[str] | None = None,
    description: str = "",
):
    """Register the decorated function as a pathway stage."""

    def decorator(fn: StageFn):
        _registry.register(
            StageSpec(
                id=id,
                layer=layer,
                fn=fn,
                dependencies=list(dependencies or []),
                description=description,
            )
        )
        return fn

    return decorator
