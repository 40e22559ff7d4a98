"""
Paint area clipping.

Maps a cursor position in normalized grid space and a brush size in
grid segments onto the rectangle of height cells a dab touches, plus
the offsets needed to index into the brush mask when the brush hangs
over an edge of the grid.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PaintArea:
    """
    Clipped rectangle of grid cells affected by one dab.

    ``left``/``bottom`` are the grid write offsets. ``clipped_left`` and
    ``clipped_bottom`` are how many mask samples hang off the low edges;
    mask sample ``(clipped_left, clipped_bottom)`` lands on grid cell
    ``(left, bottom)``.
    """

    left: int
    bottom: int
    clipped_width: int
    clipped_height: int
    clipped_left: int = 0
    clipped_bottom: int = 0

    @property
    def is_empty(self) -> bool:
        return self.clipped_width <= 0 or self.clipped_height <= 0

    @property
    def rows(self) -> slice:
        """Row slice of the height grid (grid is indexed ``[y, x]``)."""
        return slice(self.bottom, self.bottom + self.clipped_height)

    @property
    def cols(self) -> slice:
        """Column slice of the height grid."""
        return slice(self.left, self.left + self.clipped_width)

    def mask_region(self, mask: np.ndarray) -> np.ndarray:
        """
        The part of a brush mask that lands on the grid, transposed to
        grid orientation ``[y, x]``.
        """
        region = mask[
            self.clipped_left:self.clipped_left + self.clipped_width,
            self.clipped_bottom:self.clipped_bottom + self.clipped_height,
        ]
        return region.T


class StrokeAreaClipper:
    """Computes paint areas for a fixed grid size."""

    def __init__(self, grid_width: int, grid_height: int):
        self.grid_width = grid_width
        self.grid_height = grid_height

    def clip(self, u: float, v: float, brush_size_segments: int) -> PaintArea:
        """
        Compute the paint area for a dab.

        Args:
            u: Cursor x in normalized grid space, [0, 1] on the grid
            v: Cursor y in normalized grid space
            brush_size_segments: Brush side length in grid cells

        Returns:
            PaintArea; zero width or height means the dab misses the grid
        """
        left, clipped_left, clipped_width = self._clip_axis(u, brush_size_segments, self.grid_width)
        bottom, clipped_bottom, clipped_height = self._clip_axis(v, brush_size_segments, self.grid_height)

        return PaintArea(
            left=left,
            bottom=bottom,
            clipped_width=clipped_width,
            clipped_height=clipped_height,
            clipped_left=clipped_left,
            clipped_bottom=clipped_bottom,
        )

    @staticmethod
    def _clip_axis(position: float, size: int, extent: int):
        """Clip one axis. Returns (write offset, low-edge clip, clipped length)."""
        half_size = size * 0.5
        segment = round(position * extent)
        anchor = segment - half_size

        write_offset = max(round(anchor), 0)

        low_clip = 0
        if anchor < 0:
            low_clip = round(abs(anchor))

        overflow = 0
        if segment + half_size > extent:
            overflow = round(segment + half_size - extent)

        length = max(size - overflow - low_clip, 0)
        # Rounding the two edges separately can leave the far edge one cell past the grid
        length = max(min(length, extent - write_offset), 0)
        return write_offset, low_clip, length
