"""
Height grid buffers and storage.

Heights are normalized floats in [0, 1], stored ``[row=y, col=x]``. The
authoritative copy lives in a HeightGridStore owned by the host; the
sculpting core keeps its own HeightGrid working copy and hands out
bounded sub-views of it for each dab.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import numpy as np

from .errors import GridBoundsError
from .paint_area import PaintArea


class HeightGridStore(Protocol):
    """Authoritative height storage."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def read(self, x: int, y: int, width: int, height: int) -> np.ndarray: ...

    def write(self, x: int, y: int, grid: np.ndarray) -> None: ...


def _check_bounds(x: int, y: int, width: int, height: int, grid_width: int, grid_height: int) -> None:
    if x < 0 or y < 0 or width < 0 or height < 0 or x + width > grid_width or y + height > grid_height:
        raise GridBoundsError(x, y, width, height, grid_width, grid_height)


class InMemoryHeightStore:
    """Height store backed by a numpy array."""

    def __init__(self, width: int, height: int, heights: Optional[np.ndarray] = None):
        if heights is None:
            heights = np.zeros((height, width), dtype=np.float64)
        heights = np.asarray(heights, dtype=np.float64)
        if heights.shape != (height, width):
            raise ValueError(f"Heights shape {heights.shape} does not match {height}x{width}")

        self._heights = np.clip(heights, 0.0, 1.0)
        self.write_count = 0

    @property
    def width(self) -> int:
        return self._heights.shape[1]

    @property
    def height(self) -> int:
        return self._heights.shape[0]

    def read(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        _check_bounds(x, y, width, height, self.width, self.height)
        return self._heights[y:y + height, x:x + width].copy()

    def write(self, x: int, y: int, grid: np.ndarray) -> None:
        grid = np.asarray(grid, dtype=np.float64)
        _check_bounds(x, y, grid.shape[1], grid.shape[0], self.width, self.height)
        self._heights[y:y + grid.shape[0], x:x + grid.shape[1]] = np.clip(grid, 0.0, 1.0)
        self.write_count += 1

    def read_all(self) -> np.ndarray:
        return self.read(0, 0, self.width, self.height)


class HeightGrid:
    """Owned working copy of the height grid."""

    def __init__(self, heights: np.ndarray):
        self.heights = np.array(heights, dtype=np.float64)

    @classmethod
    def from_store(cls, store: HeightGridStore) -> "HeightGrid":
        return cls(store.read(0, 0, store.width, store.height))

    @property
    def width(self) -> int:
        return self.heights.shape[1]

    @property
    def height(self) -> int:
        return self.heights.shape[0]

    def view(self, area: PaintArea) -> np.ndarray:
        """Writable view of the cells inside a paint area."""
        return self.heights[area.rows, area.cols]

    def region(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        """Copy of a rectangular region."""
        _check_bounds(x, y, width, height, self.width, self.height)
        return self.heights[y:y + height, x:x + width].copy()

    def snapshot(self) -> np.ndarray:
        """Copy of the whole grid."""
        return self.heights.copy()

    def replace(self, heights: np.ndarray) -> None:
        """Overwrite the whole grid in place."""
        self.heights[...] = heights

    def sample(self, x: int, y: int) -> float:
        """Height at a cell, with coordinates clamped onto the grid."""
        x = min(max(x, 0), self.width - 1)
        y = min(max(y, 0), self.height - 1)
        return float(self.heights[y, x])

    def clamp(self) -> None:
        np.clip(self.heights, 0.0, 1.0, out=self.heights)


@dataclass(frozen=True)
class TerrainDimensions:
    """
    Heightmap resolution and world-space extent of a terrain.

    World positions are ``(x, y, z)`` with y up; the grid's x axis runs
    along world x and its y axis along world z.
    """

    heightmap_width: int
    heightmap_height: int
    size_x: float
    size_y: float
    size_z: float
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @classmethod
    def unit_cells(cls, width: int, height: int, size_y: float = 1.0) -> "TerrainDimensions":
        """Terrain where one world unit equals one grid cell."""
        return cls(width, height, float(width), size_y, float(height))

    def normalized_position(self, position: Tuple[float, float, float]) -> Tuple[float, float]:
        """World position to normalized grid coordinates ``(u, v)``."""
        return (
            (position[0] - self.origin[0]) / self.size_x,
            (position[2] - self.origin[2]) / self.size_z,
        )

    def normalized_height(self, world_y: float) -> float:
        """World height to normalized grid height."""
        return (world_y - self.origin[1]) / self.size_y

    def segments_from_units(self, units: float) -> int:
        """Convert a world-space length to a number of grid cells."""
        density = min(self.heightmap_width, self.heightmap_height) / min(self.size_x, self.size_z)
        return round(units * density)

    def grid_cell(self, u: float, v: float) -> Tuple[int, int]:
        """Grid cell nearest to normalized coordinates, clamped onto the grid."""
        x = min(max(round(u * self.heightmap_width), 0), self.heightmap_width - 1)
        y = min(max(round(v * self.heightmap_height), 0), self.heightmap_height - 1)
        return x, y
