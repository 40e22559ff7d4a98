"""
Whole-terrain height operations.

Box smoothing shared with the smooth stroke command, plus the one-shot
generators (flatten, linear ramp, circular ramp) that rewrite the whole
grid at once. All functions return new ``[row=y, col=x]`` arrays and
leave their inputs untouched.
"""

import numpy as np
import structlog

from .falloff_curve import FalloffCurve

logger = structlog.get_logger()


def box_average(heights: np.ndarray, radius: int) -> np.ndarray:
    """
    Mean of every cell's (2 * radius + 1)^2 neighbourhood.

    Neighbours outside the grid are skipped and the mean divides by the
    number of neighbours actually inside, so edge cells average fewer
    values than interior cells.

    Args:
        heights: Height grid
        radius: Neighbourhood radius in cells

    Returns:
        Array of averages with the shape of ``heights``
    """
    heights = np.asarray(heights, dtype=np.float64)
    if radius <= 0 or heights.size == 0:
        return heights.copy()

    rows, cols = heights.shape
    integral = np.zeros((rows + 1, cols + 1), dtype=np.float64)
    integral[1:, 1:] = heights.cumsum(axis=0).cumsum(axis=1)

    row_idx = np.arange(rows)
    col_idx = np.arange(cols)
    r0 = np.clip(row_idx - radius, 0, rows)
    r1 = np.clip(row_idx + radius + 1, 0, rows)
    c0 = np.clip(col_idx - radius, 0, cols)
    c1 = np.clip(col_idx + radius + 1, 0, cols)

    sums = (
        integral[np.ix_(r1, c1)]
        - integral[np.ix_(r0, c1)]
        - integral[np.ix_(r1, c0)]
        + integral[np.ix_(r0, c0)]
    )
    counts = np.outer(r1 - r0, c1 - c0)
    return sums / np.maximum(counts, 1)


def smooth_all(heights: np.ndarray, box_filter_size: int = 3, iterations: int = 1) -> np.ndarray:
    """
    Replace every cell by its box average, repeatedly.

    Args:
        heights: Height grid
        box_filter_size: Neighbourhood radius in cells
        iterations: Number of passes

    Returns:
        Smoothed grid
    """
    result = np.asarray(heights, dtype=np.float64).copy()
    for _ in range(max(iterations, 0)):
        result = box_average(result, box_filter_size)

    logger.debug("Smoothed terrain", radius=box_filter_size, iterations=iterations)
    return np.clip(result, 0.0, 1.0)


def flatten_all(width: int, height: int, normalized_height: float) -> np.ndarray:
    """Grid with every cell at one height."""
    return np.full((height, width), np.clip(normalized_height, 0.0, 1.0), dtype=np.float64)


def linear_ramp(width: int, height: int, curve: FalloffCurve, height_scale: float) -> np.ndarray:
    """
    Ramp that rises along the grid's rows.

    Row ``r`` gets ``curve(r / height) * height_scale``.

    Args:
        width: Grid width
        height: Grid height
        curve: Ramp profile
        height_scale: Maximum height as a fraction of the terrain's height
    """
    t = np.arange(height, dtype=np.float64) / height
    profile = np.asarray(curve.evaluate(t), dtype=np.float64) * height_scale
    ramp = np.repeat(profile[:, np.newaxis], width, axis=1)
    return np.clip(ramp, 0.0, 1.0)


def circular_ramp(width: int, height: int, curve: FalloffCurve, height_scale: float) -> np.ndarray:
    """
    Cone-like ramp peaking at the grid centre.

    Each cell gets ``curve(1 - d / (height / 2)) * height_scale`` where
    ``d`` is its distance from the centre.
    """
    half_width = width * 0.5
    half_height = height * 0.5
    y, x = np.mgrid[0:height, 0:width].astype(np.float64)
    distance = np.sqrt((x - half_width) ** 2 + (y - half_height) ** 2)
    ramp = np.asarray(curve.evaluate(1.0 - distance / half_height), dtype=np.float64) * height_scale
    return np.clip(ramp, 0.0, 1.0)
