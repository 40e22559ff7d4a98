"""
Procedural falloff masks.

Masks are square float arrays indexed ``mask[x, y]`` (brush space, x
first), with values in [0, 1]. A roundness of 1 gives a circular brush;
lower values give a square whose corners are rounded by a circle of
radius ``roundness * half_size``.
"""

import math
from typing import Tuple

import numpy as np

from .falloff_curve import FalloffCurve

PI_25_PERCENT = math.pi * 0.25
PI_75_PERCENT = math.pi * 0.75
PI_125_PERCENT = math.pi * 1.25
PI_175_PERCENT = math.pi * 1.75
TWO_PI = math.pi * 2


def brush_distance(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Euclidean distance of offsets from the brush centre."""
    return np.sqrt(x ** 2 + y ** 2)


def rotate_points(
    x: np.ndarray, y: np.ndarray, pivot: float, angle: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rotate points around ``(pivot, pivot)`` by ``angle`` degrees.

    Counterclockwise in a y-up frame:
    ``x' = x cos - y sin``, ``y' = x sin + y cos`` about the pivot.
    """
    radians = math.radians(angle)
    sine = math.sin(radians)
    cosine = math.cos(radians)

    dx = x - pivot
    dy = y - pivot
    return dx * cosine - dy * sine + pivot, dx * sine + dy * cosine + pivot


def normalize_radians(radians: np.ndarray) -> np.ndarray:
    """Map angles into [0, 2π) via the IEEE floating remainder."""
    radians = radians - TWO_PI * np.round(radians / TWO_PI)
    return np.where(radians < 0, radians + TWO_PI, radians)


def radial_intersection(radians: np.ndarray, half_size: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Intersect rays from the centre with the square of half-size ``half_size``.

    Angles are measured from the +y axis towards +x, so 0 points at the
    edge ``y = half_size`` and π/2 at ``x = half_size``.

    Args:
        radians: Ray angles, any range
        half_size: Half the side length of the square

    Returns:
        Tuple of (edge_x, edge_y) arrays
    """
    radians = normalize_radians(np.asarray(radians, dtype=np.float64))

    tangent = np.tan(radians)
    y = half_size * tangent
    # tan is 0 on the vertical axis; x is only read by the left/right bands
    x = np.divide(half_size, tangent, out=np.zeros_like(tangent), where=tangent != 0)

    left = (radians > PI_125_PERCENT) & (radians < PI_175_PERCENT)
    bottom = (radians >= PI_175_PERCENT) | (radians < PI_25_PERCENT)
    right = (radians >= PI_25_PERCENT) & (radians <= PI_75_PERCENT)

    edge_x = np.select([left, bottom, right], [-half_size, y, half_size], default=-y)
    edge_y = np.select([left, bottom, right], [-x, half_size, x], default=-half_size)

    # Exact multiples of π/2 snap to the axis instead of relying on tan()
    quarter_turns = radians / (math.pi * 0.5)
    on_axis = np.abs(quarter_turns - np.round(quarter_turns)) < 1e-12
    if np.any(on_axis):
        edge_x = np.where(on_axis, half_size * np.round(np.sin(radians)), edge_x)
        edge_y = np.where(on_axis, half_size * np.round(np.cos(radians)), edge_y)

    return edge_x, edge_y


def generate_falloff(
    size: int,
    roundness: float = 1.0,
    angle: float = 0.0,
    curve: FalloffCurve = None,
) -> np.ndarray:
    """
    Generate a procedural falloff mask.

    Args:
        size: Side length of the mask in samples
        roundness: Shape roundness in (0, 1]; 1 is a circle
        angle: Brush rotation in degrees
        curve: Falloff curve, evaluated at 1 - distance / radius

    Returns:
        ``size`` x ``size`` array indexed ``[x, y]``
    """
    if curve is None:
        curve = FalloffCurve()
    if size <= 0:
        return np.zeros((0, 0), dtype=np.float64)

    half_size = math.floor(size * 0.5)
    if half_size == 0:
        return np.clip(np.full((size, size), curve.evaluate(1.0)), 0.0, 1.0)

    xs, ys = np.meshgrid(
        np.arange(size, dtype=np.float64), np.arange(size, dtype=np.float64), indexing="ij"
    )
    distance = brush_distance(xs - half_size, ys - half_size)

    if roundness == 1.0:
        samples = curve.evaluate(1.0 - distance / half_size)
        return np.clip(samples, 0.0, 1.0)

    # Centre of the corner-rounding circle, in the positive quadrant
    roundness_offset = half_size - roundness * half_size
    roundness_radius = roundness * half_size

    if angle != 0.0:
        px, py = rotate_points(xs, ys, size * 0.5, angle)
    else:
        px, py = xs, ys

    edge_x, edge_y = radial_intersection(np.arctan2(px - half_size, py - half_size), half_size)
    abs_edge_x = np.abs(edge_x)
    abs_edge_y = np.abs(edge_y)

    corner_distance = (
        np.sqrt((roundness_offset - abs_edge_x) ** 2 + (roundness_offset - abs_edge_y) ** 2)
        - roundness_radius
    )
    edge_length = np.sqrt(edge_x ** 2 + edge_y ** 2)

    in_corner = (abs_edge_x >= roundness_offset) & (abs_edge_y >= roundness_offset)
    radius = np.where(in_corner, edge_length - corner_distance, edge_length)

    samples = curve.evaluate(1.0 - distance / radius)
    return np.clip(samples, 0.0, 1.0)
