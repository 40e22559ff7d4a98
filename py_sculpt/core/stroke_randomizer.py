"""
Per-dab stroke randomization: spacing, rotation and position offset.

Every random draw is consumed by exactly one applied dab and re-rolled
straight afterwards, so the value in effect is always the one rolled
for the next dab.
"""

import math
from typing import Tuple

import numpy as np

from .alea_prng import AleaPRNG
from .falloff import rotate_points


def rotate_mask(samples: np.ndarray, angle: float) -> np.ndarray:
    """
    Resample an existing brush mask at rotated coordinates.

    Cheaper than regenerating the mask. Samples are read bilinearly
    between integer mask positions; positions whose base sample lies
    outside the mask read 0, as do the missing neighbours along the far
    edges.

    Args:
        samples: Square mask indexed ``[x, y]``
        angle: Rotation in degrees

    Returns:
        Rotated mask of the same shape
    """
    size = samples.shape[0]
    if size == 0:
        return samples.copy()

    xs, ys = np.meshgrid(
        np.arange(size, dtype=np.float64), np.arange(size, dtype=np.float64), indexing="ij"
    )
    rx, ry = rotate_points(xs, ys, size * 0.5, angle)

    x0 = np.floor(rx)
    y0 = np.floor(ry)
    fx = rx - x0
    fy = ry - y0
    x0 = x0.astype(np.intp)
    y0 = y0.astype(np.intp)
    inside = (x0 >= 0) & (x0 < size) & (y0 >= 0) & (y0 < size)

    padded = np.zeros((size + 1, size + 1), dtype=np.float64)
    padded[:size, :size] = samples
    x0 = np.clip(x0, 0, size - 1)
    y0 = np.clip(y0, 0, size - 1)

    low = padded[x0, y0] + (padded[x0 + 1, y0] - padded[x0, y0]) * fx
    high = padded[x0, y0 + 1] + (padded[x0 + 1, y0 + 1] - padded[x0, y0 + 1]) * fx
    return np.where(inside, low + (high - low) * fy, 0.0)


class StrokeRandomizer:
    """
    Randomized spacing gate, rotation and position jitter for a stroke.

    Args:
        prng: Random source owned by the session
    """

    def __init__(self, prng: AleaPRNG):
        self.prng = prng
        self.spacing_factor = 1.0
        self.distance_since_dab = 0.0

    def roll_spacing(self, min_spacing: float, max_spacing: float) -> float:
        """Draw the spacing factor for the next dab."""
        self.spacing_factor = self.prng.uniform(min_spacing, max_spacing)
        return self.spacing_factor

    def begin_gesture(self, min_spacing: float, max_spacing: float) -> None:
        """Reset for a new gesture so that its first dab always applies."""
        self.distance_since_dab = math.inf
        self.roll_spacing(min_spacing, max_spacing)

    def accumulate_distance(
        self,
        previous: Tuple[float, float, float],
        current: Tuple[float, float, float],
    ) -> float:
        """Add the ground-plane distance travelled between two world positions."""
        self.distance_since_dab += math.hypot(current[0] - previous[0], current[2] - previous[2])
        return self.distance_since_dab

    def should_apply(
        self,
        brush_size: float,
        min_spacing: float,
        max_spacing: float,
        enabled: bool = True,
    ) -> bool:
        """
        Gate a dab on the distance travelled since the last applied dab.

        When the dab applies, the accumulator is reset and a new spacing
        factor is rolled.

        Args:
            brush_size: Brush size in world units
            min_spacing: Lower spacing factor bound
            max_spacing: Upper spacing factor bound
            enabled: Whether spacing is active; when it is not, every
                dab applies
        """
        if enabled and self.distance_since_dab < brush_size * self.spacing_factor:
            return False

        self.roll_spacing(min_spacing, max_spacing)
        self.distance_since_dab = 0.0
        return True

    def rotated_samples(
        self,
        samples: np.ndarray,
        base_angle: float,
        min_rotation: float,
        max_rotation: float,
        speed: float = 1.0,
    ) -> np.ndarray:
        """Rotate a mask by the base angle plus a freshly drawn random angle, then apply speed."""
        angle = base_angle + self.prng.uniform(min_rotation, max_rotation)
        return rotate_mask(samples, angle) * speed

    def offset(self, radius: float) -> Tuple[float, float]:
        """Random ground-plane displacement inside a disk of the given radius."""
        dx, dz = self.prng.inside_unit_circle()
        return dx * radius, dz * radius
