"""S1.01 — Orientation columns (V1 simple and complex cells). ★★★

Every column position holds four columns (0°, 45°, 90°, 135°). A column pairs
a Simple cell (radius rf) with a Complex cell (radius rf + 2, gain 1.2).

Neuron response over the edge map, for each in-bounds offset within radius r:
  parallel = |dx·cosθ + dy·sinθ|,  perp = |-dx·sinθ + dy·cosθ|
  weight   = exp(-perp²/2) if perp < 2 and parallel ≤ r, else 0
  activation = max(0, Σ edge·weight / #sampled offsets)
The orientation map takes the strongest column at each position (later column
wins a tie) and records it only above 0.1.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from visionpath.engine.config import OrientationConfig
from visionpath.engine.context import OrientationMap, OrientationResponse
from visionpath.engine.registry import Stage, stage
from visionpath.utils.grid import disk_offsets, grid_positions, window_slices

if TYPE_CHECKING:
    from visionpath.engine.context import PipelineContext
    from visionpath.engine.pipeline import LayerStack

logger = logging.getLogger(__name__)

# Axis trig is rounded so 0° and 90° decompose exactly (cos 90° = 0, not 6e-17)
_TRIG_DECIMALS = 12


class NeuronType(enum.Enum):
    SIMPLE = "simple"
    COMPLEX = "complex"


@dataclass(frozen=True)
class OrientedKernel:
    """Precomputed receptive field of one neuron type at one orientation."""

    radius: int
    orientation: float
    weights: NDArray[np.float64]
    # Offsets inside the Euclidean radius; every one counts as sampled
    support: NDArray[np.bool_]

    @classmethod
    def build(cls, radius: int, orientation: float, perpendicular_cutoff: float) -> OrientedKernel:
        theta = math.radians(orientation % 180.0)
        cos_t = round(math.cos(theta), _TRIG_DECIMALS)
        sin_t = round(math.sin(theta), _TRIG_DECIMALS)

        dy, dx, dist = disk_offsets(radius)
        support = dist <= radius
        parallel = np.abs(dx * cos_t + dy * sin_t)
        perp = np.abs(-dx * sin_t + dy * cos_t)

        on_axis = support & (perp < perpendicular_cutoff) & (parallel <= radius)
        weights = np.where(on_axis, np.exp(-(perp**2) / 2.0), 0.0)
        return cls(radius=radius, orientation=orientation, weights=weights, support=support)

    def respond(self, edge_map: NDArray[np.float64], x: int, y: int) -> float:
        """Rectified mean weighted edge strength around (x, y)."""
        height, width = edge_map.shape
        img_sl, k_sl = window_slices(x, y, self.radius, width, height)
        support = self.support[k_sl]
        count = int(np.count_nonzero(support))
        if count == 0:
            return 0.0
        response = float(np.sum(edge_map[img_sl] * self.weights[k_sl]))
        return max(0.0, response / count)


@dataclass(frozen=True)
class V1Neuron:
    x: int
    y: int
    neuron_type: NeuronType
    kernel: OrientedKernel
    gain: float = 1.0

    @property
    def preferred_orientation(self) -> float:
        return self.kernel.orientation

    @property
    def receptive_field(self) -> int:
        return self.kernel.radius

    def activation(self, edge_map: NDArray[np.float64]) -> float:
        return self.kernel.respond(edge_map, self.x, self.y) * self.gain


@dataclass(frozen=True)
class V1Column:
    """Simple + complex neuron sharing one position and orientation."""

    x: int
    y: int
    orientation: float
    neurons: tuple[V1Neuron, V1Neuron]

    def max_activation(self, edge_map: NDArray[np.float64]) -> float:
        best = 0.0
        for neuron in self.neurons:
            best = max(best, neuron.activation(edge_map))
        return best


class OrientationLayer:
    """Column grid inset by the receptive field from every border."""

    def __init__(
        self, width: int, height: int, config: OrientationConfig | None = None
    ) -> None:
        self.width = width
        self.height = height
        self.config = config or OrientationConfig()
        cfg = self.config

        rf = cfg.receptive_field
        complex_rf = rf + cfg.complex_extra_radius
        simple_kernels = {
            deg: OrientedKernel.build(rf, deg, cfg.perpendicular_cutoff) for deg in cfg.orientations
        }
        complex_kernels = {
            deg: OrientedKernel.build(complex_rf, deg, cfg.perpendicular_cutoff)
            for deg in cfg.orientations
        }

        self.positions: list[tuple[int, int]] = [
            (x, y)
            for y in grid_positions(rf, height - rf, cfg.spacing)
            for x in grid_positions(rf, width - rf, cfg.spacing)
        ]
        # columns[i] holds the columns at positions[i], in orientation order
        self.columns: list[tuple[V1Column, ...]] = [
            tuple(
                V1Column(
                    x=x,
                    y=y,
                    orientation=deg,
                    neurons=(
                        V1Neuron(x, y, NeuronType.SIMPLE, simple_kernels[deg]),
                        V1Neuron(x, y, NeuronType.COMPLEX, complex_kernels[deg], cfg.complex_gain),
                    ),
                )
                for deg in cfg.orientations
            )
            for x, y in self.positions
        ]

    @property
    def column_count(self) -> int:
        return len(self.positions) * len(self.config.orientations)

    @property
    def neuron_count(self) -> int:
        return self.column_count * 2

    def process(self, edge_map: NDArray[np.float64]) -> OrientationResponse:
        """Compute every column's activation and the dominant-orientation map."""
        cfg = self.config
        orientation_map = OrientationMap.empty(self.width, self.height)
        activations = np.zeros((len(self.positions), len(cfg.orientations)), dtype=np.float64)

        for i, columns in enumerate(self.columns):
            for j, column in enumerate(columns):
                activations[i, j] = column.max_activation(edge_map)

            # >= keeps the later column on ties
            best_j = -1
            best = -math.inf
            for j in range(len(columns)):
                if activations[i, j] >= best:
                    best = activations[i, j]
                    best_j = j

            if best_j >= 0 and best > cfg.activation_threshold:
                x, y = self.positions[i]
                orientation_map.set(x, y, columns[best_j].orientation)

        return OrientationResponse(
            orientation_map=orientation_map,
            positions=list(self.positions),
            orientations=tuple(cfg.orientations),
            column_activations=activations,
        )


@stage(
    id="S1.01",
    layer=Stage.ORIENTATION,
    dependencies=["S0.01"],
    description="Oriented filter columns and dominant-orientation map",
)
def orientation_columns(layers: LayerStack, ctx: PipelineContext) -> None:
    ctx.orientation = layers.orientation.process(ctx.edge_map)
    logger.debug(
        "Orientation map: %d/%d positions tuned",
        ctx.orientation.orientation_map.populated,
        len(layers.orientation.positions),
    )
