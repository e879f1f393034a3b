"""PipelineContext — the per-call state object flowing through all stages.

Stage outputs (maps, contours, detections) are plain dataclasses over numpy
arrays indexed ``[y, x]``. A fresh context is allocated for every frame, so no
activation or visited state survives between ``process`` calls.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Iterator

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from visionpath.models.summary import FeatureSummary

# Label maps store enum values; -1 marks an empty cell
EMPTY_LABEL = -1

Contour = list[tuple[int, int]]


class CornerType(enum.IntEnum):
    L = 0  # two perpendicular edges meeting
    T = 1  # one edge ending on another (occlusion)
    X = 2  # two edges crossing
    Y = 3  # three-way meeting

    @property
    def label(self) -> str:
        return f"{self.name}-junction"


class ShapeType(enum.IntEnum):
    CIRCLE = 0
    RECTANGLE = 1
    TRIANGLE = 2
    LINE = 3
    CROSS = 4
    COMPLEX = 5

    @property
    def label(self) -> str:
        return self.name.title()


@dataclass
class OrientationMap:
    """Dominant orientation (degrees in [0, 180)) per cell, NaN where empty."""

    degrees: NDArray[np.float64]

    @classmethod
    def empty(cls, width: int, height: int) -> OrientationMap:
        return cls(degrees=np.full((height, width), np.nan, dtype=np.float64))

    @property
    def width(self) -> int:
        return int(self.degrees.shape[1])

    @property
    def height(self) -> int:
        return int(self.degrees.shape[0])

    def get(self, x: int, y: int) -> float | None:
        value = self.degrees[y, x]
        return None if np.isnan(value) else float(value)

    def set(self, x: int, y: int, degrees: float) -> None:
        self.degrees[y, x] = degrees % 180.0

    @property
    def populated(self) -> int:
        return int(np.count_nonzero(~np.isnan(self.degrees)))

    def cells(self) -> Iterator[tuple[int, int, float]]:
        ys, xs = np.nonzero(~np.isnan(self.degrees))
        for y, x in zip(ys, xs):
            yield int(x), int(y), float(self.degrees[y, x])

    def to_rows(self) -> list[list[float | None]]:
        return [[self.get(x, y) for x in range(self.width)] for y in range(self.height)]


@dataclass
class _LabelMap:
    """Tagged-variant grid: each cell holds one enum member or nothing."""

    labels: NDArray[np.int8]

    kind: ClassVar[type[enum.IntEnum]]

    @classmethod
    def empty(cls, width: int, height: int) -> Any:
        return cls(labels=np.full((height, width), EMPTY_LABEL, dtype=np.int8))

    @property
    def width(self) -> int:
        return int(self.labels.shape[1])

    @property
    def height(self) -> int:
        return int(self.labels.shape[0])

    def get(self, x: int, y: int) -> Any:
        value = int(self.labels[y, x])
        return None if value == EMPTY_LABEL else self.kind(value)

    @property
    def populated(self) -> int:
        return int(np.count_nonzero(self.labels != EMPTY_LABEL))

    def count(self, member: enum.IntEnum) -> int:
        return int(np.count_nonzero(self.labels == int(member)))

    def cells(self) -> Iterator[tuple[int, int, Any]]:
        ys, xs = np.nonzero(self.labels != EMPTY_LABEL)
        for y, x in zip(ys, xs):
            yield int(x), int(y), self.kind(int(self.labels[y, x]))

    def to_rows(self) -> list[list[Any]]:
        return [[self.get(x, y) for x in range(self.width)] for y in range(self.height)]


@dataclass
class CornerMap(_LabelMap):
    """Corner junctions per cell. Merge rule: last write wins."""

    kind: ClassVar[type[enum.IntEnum]] = CornerType

    def write(self, x: int, y: int, corner_type: CornerType) -> None:
        self.labels[y, x] = int(corner_type)


@dataclass
class ShapeMap(_LabelMap):
    """Shape type per cell. Merge rule: strictly highest activation wins."""

    activation: NDArray[np.float64]

    kind: ClassVar[type[enum.IntEnum]] = ShapeType

    @classmethod
    def empty(cls, width: int, height: int) -> ShapeMap:
        return cls(
            labels=np.full((height, width), EMPTY_LABEL, dtype=np.int8),
            activation=np.zeros((height, width), dtype=np.float64),
        )

    def offer(self, x: int, y: int, shape_type: ShapeType, activation: float) -> bool:
        """Keep ``shape_type`` at (x, y) if it beats the current activation there."""
        if activation > self.activation[y, x]:
            self.activation[y, x] = activation
            self.labels[y, x] = int(shape_type)
            return True
        return False


@dataclass(frozen=True)
class CornerDetection:
    x: int
    y: int
    corner_type: CornerType
    activation: float


@dataclass(frozen=True)
class ShapeDetection:
    x: int
    y: int
    shape_type: ShapeType
    activation: float


@dataclass
class OrientationResponse:
    """Output of the orientation layer."""

    orientation_map: OrientationMap
    # Column grid positions, one (x, y) per row of column_activations
    positions: list[tuple[int, int]] = field(default_factory=list)
    orientations: tuple[float, ...] = ()
    # Max activation of each column: shape (len(positions), len(orientations))
    column_activations: NDArray[np.float64] = field(default_factory=lambda: np.zeros((0, 0)))

    def columns(self) -> Iterator[tuple[tuple[int, int], float, float]]:
        """Yield ((x, y), orientation, max activation) for every column."""
        for i, pos in enumerate(self.positions):
            for j, deg in enumerate(self.orientations):
                yield pos, deg, float(self.column_activations[i, j])


@dataclass
class JunctionResponse:
    """Output of the corner/contour layer."""

    corner_map: CornerMap
    contours: list[Contour] = field(default_factory=list)
    corner_detections: list[CornerDetection] = field(default_factory=list)

    @property
    def corner_count(self) -> int:
        return len(self.corner_detections)

    @property
    def contour_count(self) -> int:
        return len(self.contours)

    @property
    def total_features(self) -> int:
        return self.corner_count + self.contour_count

    @property
    def dominant_corner_type(self) -> CornerType | None:
        """Most frequent type in the corner map; ties go L > T > X > Y."""
        best: CornerType | None = None
        best_count = 0
        for corner_type in CornerType:
            n = self.corner_map.count(corner_type)
            if n > best_count:
                best, best_count = corner_type, n
        return best


@dataclass
class ShapeResponse:
    """Output of the shape layer."""

    shape_map: ShapeMap
    detections: list[ShapeDetection] = field(default_factory=list)
    shape_type_counts: dict[ShapeType, int] = field(default_factory=dict)

    @property
    def shape_instance_count(self) -> int:
        return len(self.detections)

    @property
    def dominant_shape_type(self) -> ShapeType | None:
        if not self.shape_type_counts:
            return None
        # max() keeps the first of equal counts, in ShapeType order
        ordered = sorted(self.shape_type_counts.items(), key=lambda kv: int(kv[0]))
        return max(ordered, key=lambda kv: kv[1])[0]


@dataclass
class OrientationFeatures:
    """Scalar orientation-structure features pooled over all columns."""

    horizontal_strength: float = 0.0
    vertical_strength: float = 0.0
    diagonal_strength: float = 0.0
    total_activation: float = 0.0
    dominance_bias: float = 1.06

    @property
    def dominant_orientation(self) -> str:
        bias = self.dominance_bias
        h = self.horizontal_strength
        v = self.vertical_strength
        d = self.diagonal_strength
        if h > v and h * bias > d:
            return "Horizontal"
        if v * bias > h and v * bias > d:
            return "Vertical"
        return "Diagonal"

    @property
    def edge_strength(self) -> float:
        return self.horizontal_strength + self.vertical_strength + self.diagonal_strength


@dataclass
class ContourStats:
    """Length distribution of the traced contours."""

    count: int = 0
    total_pixels: int = 0
    min_length: int = 0
    max_length: int = 0
    median_length: int = 0
    mean_length: float = 0.0
    # 1-5, 6-15, 16-30, 31+ pixels
    short: int = 0
    medium: int = 0
    long: int = 0
    very_long: int = 0


@dataclass
class FeatureResponse:
    """Everything one ``process`` call produces."""

    width: int
    height: int
    edge_map: NDArray[np.float64]
    orientation: OrientationResponse
    junctions: JunctionResponse
    shapes: ShapeResponse
    features: OrientationFeatures
    contour_stats: ContourStats = field(default_factory=ContourStats)

    # --- Flattened views ---

    @property
    def orientation_map(self) -> OrientationMap:
        return self.orientation.orientation_map

    @property
    def corner_map(self) -> CornerMap:
        return self.junctions.corner_map

    @property
    def contours(self) -> list[Contour]:
        return self.junctions.contours

    @property
    def shape_map(self) -> ShapeMap:
        return self.shapes.shape_map

    @property
    def corner_count(self) -> int:
        return self.junctions.corner_count

    @property
    def contour_count(self) -> int:
        return self.junctions.contour_count

    @property
    def shape_instance_count(self) -> int:
        return self.shapes.shape_instance_count

    @property
    def shape_type_counts(self) -> dict[ShapeType, int]:
        return self.shapes.shape_type_counts

    @property
    def horizontal_strength(self) -> float:
        return self.features.horizontal_strength

    @property
    def vertical_strength(self) -> float:
        return self.features.vertical_strength

    @property
    def diagonal_strength(self) -> float:
        return self.features.diagonal_strength

    @property
    def dominant_orientation(self) -> str:
        return self.features.dominant_orientation

    @property
    def total_features(self) -> int:
        return self.junctions.total_features

    @property
    def dominant_corner_type(self) -> CornerType | None:
        return self.junctions.dominant_corner_type

    @property
    def dominant_shape_type(self) -> ShapeType | None:
        return self.shapes.dominant_shape_type

    @property
    def edge_strength(self) -> float:
        return self.features.edge_strength

    @property
    def total_activation(self) -> float:
        return self.features.total_activation

    def summary(self) -> FeatureSummary:
        from visionpath.models.summary import FeatureSummary

        return FeatureSummary.from_response(self)


@dataclass
class PipelineContext:
    """Shared per-frame state flowing through the stages."""

    activation: NDArray[np.float64]

    # --- Stage outputs, filled in order ---
    edge_map: NDArray[np.float64] | None = None
    orientation: OrientationResponse | None = None
    corner_map: CornerMap | None = None
    corner_detections: list[CornerDetection] = field(default_factory=list)
    contours: list[Contour] | None = None
    shapes: ShapeResponse | None = None
    features: OrientationFeatures | None = None
    contour_stats: ContourStats | None = None

    # --- Pipeline metadata ---
    completed_stages: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)
    timings_ms: dict[str, float] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return int(self.activation.shape[1])

    @property
    def height(self) -> int:
        return int(self.activation.shape[0])

    def junctions(self) -> JunctionResponse:
        """Bundle the corner and contour stage outputs."""
        corner_map = self.corner_map
        if corner_map is None:
            corner_map = CornerMap.empty(self.width, self.height)
        return JunctionResponse(
            corner_map=corner_map,
            contours=list(self.contours or []),
            corner_detections=list(self.corner_detections),
        )
