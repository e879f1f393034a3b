"""Grey-level morphology for the contour tracer."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import maximum_filter


def dilate_max(edge_map: NDArray[np.float64], size: int = 3) -> NDArray[np.float64]:
    """Grey dilation with a size×size square: each cell takes its neighborhood max.

    Only in-bounds neighbors take part. ``mode="nearest"`` replicates border
    cells, which never introduces a value larger than an in-bounds one.
    """
    if edge_map.size == 0:
        return edge_map.astype(np.float64, copy=True)
    return maximum_filter(edge_map.astype(np.float64), size=size, mode="nearest")
