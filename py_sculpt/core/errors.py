"""Exceptions raised by the sculpting core."""


class SculptError(Exception):
    """Base class for sculpting errors."""


class GridBoundsError(SculptError):
    """A read or write reached outside the height grid."""

    def __init__(self, x: int, y: int, width: int, height: int, grid_width: int, grid_height: int):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        super().__init__(
            f"Region ({x}, {y}, {width}x{height}) is outside the "
            f"{grid_width}x{grid_height} height grid"
        )


class UnknownBrushError(SculptError):
    """The brush catalog has no entry with the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown brush: {name}")
