"""Pathway configuration — detector placement grids and response thresholds.

Every literal here is a fixed constant of the model; nothing is learned.
Each layer receives its own section at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class EdgeConfig:
    """Center-surround (retinal ganglion) edge layer."""

    # Distance between detector centers, in pixels
    step: int = 4
    center_radius: float = 1.5
    surround_radius: float = 4.0
    # response (intensity difference) → firing rate
    rate_scale: float = 100.0


@dataclass(frozen=True)
class OrientationConfig:
    """Oriented filter columns (V1 simple + complex cells)."""

    spacing: int = 8
    # Simple-cell radius; also the inset of the column grid from every border
    receptive_field: int = 5
    # Complex cells see rf + 2
    complex_extra_radius: int = 2
    complex_gain: float = 1.2
    # Offsets further than this from the preferred axis get zero weight
    perpendicular_cutoff: float = 2.0
    # Best column must exceed this to write the orientation map
    activation_threshold: float = 0.1
    orientations: tuple[float, ...] = (0.0, 45.0, 90.0, 135.0)


@dataclass(frozen=True)
class CornerConfig:
    """Corner-junction detectors reading the orientation map."""

    spacing: int = 4
    receptive_field: int = 6
    activation_threshold: float = 1.0
    score_cap: float = 100.0
    t_junction_factor: float = 0.8
    y_junction_factor: float = 0.7


@dataclass(frozen=True)
class ContourConfig:
    """Greedy contour tracer over the edge map."""

    min_length: int = 3
    max_steps: int = 200
    # Dilated edge value needed to seed a trace
    seed_threshold: float = 0.5
    # Neighbor value needed to extend a trace
    walk_threshold: float = 0.01
    # Walk the 3x3-dilated map (bridges gaps between sparse edge samples)
    # instead of the raw edge map
    trace_on_dilated: bool = True


@dataclass(frozen=True)
class ShapeConfig:
    """Shape detectors scoring windows of the corner/contour output."""

    spacing: int = 8
    receptive_field: int = 10
    activation_threshold: float = 5.0


@dataclass(frozen=True)
class PathwayConfig:
    """Complete configuration for one VisualPathway."""

    edges: EdgeConfig = field(default_factory=EdgeConfig)
    orientation: OrientationConfig = field(default_factory=OrientationConfig)
    corners: CornerConfig = field(default_factory=CornerConfig)
    contours: ContourConfig = field(default_factory=ContourConfig)
    shapes: ShapeConfig = field(default_factory=ShapeConfig)

    # Scalar features: 6% advantage for H/V over diagonal on near-ties
    dominance_bias: float = 1.06
    # Two diagonal bands vs one each for H and V, plus diagonal cells
    # picking up staircase edges
    diagonal_normalizer: float = 2.25
