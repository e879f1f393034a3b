"""Synthetic activation grids for exercising the pathway.

All patterns are height×width float64 arrays: 1.0 is a bright pixel, 0.0 dark.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from skimage.draw import circle_perimeter, line


def _draw_closed_polyline(image: NDArray[np.float64], vertices: list[tuple[int, int]]) -> None:
    """Light the one-pixel edges joining (x, y) vertices, last back to first."""
    height, width = image.shape
    for (xa, ya), (xb, yb) in zip(vertices, vertices[1:] + vertices[:1]):
        rr, cc = line(ya, xa, yb, xb)
        keep = (rr >= 0) & (rr < height) & (cc >= 0) & (cc < width)
        image[rr[keep], cc[keep]] = 1.0


def blank(width: int, height: int, value: float = 0.0) -> NDArray[np.float64]:
    return np.full((height, width), value, dtype=np.float64)


def vertical_bar(width: int, height: int) -> NDArray[np.float64]:
    """Bright column a quarter of the width wide, centered."""
    image = blank(width, height)
    bar_width = width // 4
    start = width // 2 - bar_width // 2
    image[:, start : start + bar_width] = 1.0
    return image


def horizontal_bar(width: int, height: int) -> NDArray[np.float64]:
    image = blank(width, height)
    bar_height = height // 4
    start = height // 2 - bar_height // 2
    image[start : start + bar_height, :] = 1.0
    return image


def diagonal_line(width: int, height: int) -> NDArray[np.float64]:
    """Main diagonal at 1.0 with 0.7 shoulders on either side."""
    image = blank(width, height)
    n = min(width, height)
    if n == 0:
        return image
    idx = np.arange(1, n)
    image[idx - 1, idx] = 0.7
    image[idx, idx - 1] = 0.7
    diag = np.arange(n)
    image[diag, diag] = 1.0
    return image


def checkerboard(width: int, height: int, square_size: int = 8) -> NDArray[np.float64]:
    if square_size < 1:
        raise ValueError(f"square_size must be >= 1, got {square_size}")
    ys, xs = np.indices((height, width))
    return (((xs // square_size) + (ys // square_size)) % 2 == 0).astype(np.float64)


def cross(width: int, height: int, thickness: int = 3) -> NDArray[np.float64]:
    """Full-width horizontal and full-height vertical bar through the center."""
    image = blank(width, height)
    if width == 0 or height == 0:
        return image
    cx, cy = width // 2, height // 2
    image[max(0, cy - thickness) : min(cy + thickness, height - 1) + 1, :] = 1.0
    image[:, max(0, cx - thickness) : min(cx + thickness, width - 1) + 1] = 1.0
    return image


def vertical_stripes(width: int, height: int, stripe_width: int | None = None) -> NDArray[np.float64]:
    stripe_width = stripe_width or max(1, width // 8)
    xs = np.arange(width)
    row = ((xs // stripe_width) % 2 == 0).astype(np.float64)
    return np.tile(row, (height, 1))


def horizontal_stripes(width: int, height: int, stripe_width: int | None = None) -> NDArray[np.float64]:
    stripe_width = stripe_width or max(1, height // 8)
    ys = np.arange(height)
    col = ((ys // stripe_width) % 2 == 0).astype(np.float64)
    return np.tile(col[:, None], (1, width))


def diagonal_stripes(width: int, height: int, stripe_width: int | None = None) -> NDArray[np.float64]:
    stripe_width = stripe_width or max(1, min(width, height) // 8)
    ys, xs = np.indices((height, width))
    return (((xs + ys) // stripe_width) % 2 == 0).astype(np.float64)


def right_angle_corner(
    width: int, height: int, thickness: int = 4, margin: int | None = None
) -> NDArray[np.float64]:
    """An "L": a vertical and a horizontal bar meeting at the lower left."""
    image = blank(width, height)
    margin = width // 4 if margin is None else margin
    x0, y1 = margin, height - margin
    x1, y0 = width - margin, margin
    image[y0:y1, x0 : x0 + thickness] = 1.0
    image[y1 - thickness : y1, x0:x1] = 1.0
    return image


def circle_outline(
    width: int, height: int, radius: int | None = None, center: tuple[int, int] | None = None
) -> NDArray[np.float64]:
    """One-pixel ring; ``center`` is (x, y)."""
    image = blank(width, height)
    cx, cy = center if center is not None else (width // 2, height // 2)
    radius = radius if radius is not None else min(width, height) // 4
    rr, cc = circle_perimeter(cy, cx, radius, shape=image.shape)
    image[rr, cc] = 1.0
    return image


def rectangle_outline(
    width: int, height: int, corners: tuple[int, int, int, int] | None = None
) -> NDArray[np.float64]:
    """Axis-aligned box; ``corners`` is (x0, y0, x1, y1)."""
    image = blank(width, height)
    x0, y0, x1, y1 = corners or (width // 4, height // 4, 3 * width // 4, 3 * height // 4)
    _draw_closed_polyline(image, [(x0, y0), (x1, y0), (x1, y1), (x0, y1)])
    return image


def triangle_outline(width: int, height: int) -> NDArray[np.float64]:
    image = blank(width, height)
    apex = (width // 2, height // 4)
    left = (width // 4, 3 * height // 4)
    right = (3 * width // 4, 3 * height // 4)
    _draw_closed_polyline(image, [apex, left, right])
    return image


PATTERNS = {
    "vertical_bar": vertical_bar,
    "horizontal_bar": horizontal_bar,
    "diagonal_line": diagonal_line,
    "checkerboard": checkerboard,
    "cross": cross,
    "vertical_stripes": vertical_stripes,
    "horizontal_stripes": horizontal_stripes,
    "diagonal_stripes": diagonal_stripes,
    "right_angle_corner": right_angle_corner,
    "circle": circle_outline,
    "rectangle": rectangle_outline,
    "triangle": triangle_outline,
}
