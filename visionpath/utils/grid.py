"""Leaf-node grid helpers — input coercion, placement ranges, clamped windows. No engine imports."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray


def as_activation_grid(grid: ArrayLike | Sequence[Sequence[float]]) -> NDArray[np.float64]:
    """Coerce a row-major grid to a height×width float64 array.

    Rows of unequal length are rejected with ValueError rather than guessed at.
    An empty sequence becomes a 0×0 grid.
    """
    if isinstance(grid, np.ndarray):
        arr = grid
    else:
        rows = list(grid)  # type: ignore[arg-type]
        if not rows:
            return np.zeros((0, 0), dtype=np.float64)
        lengths = {len(row) for row in rows}
        if len(lengths) > 1:
            raise ValueError(f"Jagged activation grid: row lengths {sorted(lengths)}")
        arr = np.asarray(rows)

    if arr.ndim != 2:
        raise ValueError(f"Activation grid must be 2-D, got shape {arr.shape}")
    return np.array(arr, dtype=np.float64, copy=True)


def grid_positions(start: int, stop: int, step: int) -> range:
    """``range(start, stop, step)`` that stays empty when ``stop`` falls below ``start``."""
    if step < 1:
        raise ValueError(f"Grid step must be >= 1, got {step}")
    return range(start, max(start, stop), step)


def clamp_window(center: int, radius: int, size: int) -> tuple[int, int]:
    """Inclusive [lo, hi] of a radius window around ``center``, clamped to [0, size - 1]."""
    return max(0, center - radius), min(center + radius, size - 1)


def disk_offsets(radius: int) -> tuple[NDArray[np.int64], NDArray[np.int64], NDArray[np.float64]]:
    """Square offset grids dy, dx over [-radius, radius] and their Euclidean distances."""
    span = np.arange(-radius, radius + 1)
    dy, dx = np.meshgrid(span, span, indexing="ij")
    return dy, dx, np.sqrt(dx * dx + dy * dy)


def window_slices(
    x: int, y: int, radius: int, width: int, height: int
) -> tuple[tuple[slice, slice], tuple[slice, slice]]:
    """Slices cutting the in-bounds part of a (2r+1)² kernel centered at (x, y).

    Returns (image_slices, kernel_slices) so that ``image[image_slices]`` and
    ``kernel[kernel_slices]`` line up cell for cell.
    """
    x0, x1 = max(0, x - radius), min(width, x + radius + 1)
    y0, y1 = max(0, y - radius), min(height, y + radius + 1)
    image = (slice(y0, y1), slice(x0, x1))
    kernel = (
        slice(y0 - (y - radius), y1 - (y - radius)),
        slice(x0 - (x - radius), x1 - (x - radius)),
    )
    return image, kernel
