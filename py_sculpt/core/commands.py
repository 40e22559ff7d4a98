"""
Stroke commands.

A command is created on the first dab of a gesture and applies the
brush to the height grid on every dab until the pointer is released.
There are exactly four kinds; each reacts to a plain drag, a
shift-drag and a control-drag.

Commands work on whole paint areas at once. Cells whose brush sample is
exactly 0 are never written.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Type

import numpy as np
import structlog

from .height_grid import HeightGrid
from .paint_area import PaintArea
from .terrain_ops import box_average

logger = structlog.get_logger()

RAISE_LOWER_RATE = 0.01
RAISE_LOWER_INTERACTIVE_RATE = 0.005
SMOOTH_RATE = 0.5
SMOOTH_INTERACTIVE_RATE = 0.015
SET_HEIGHT_RATE = 0.5
SET_HEIGHT_INTERACTIVE_RATE = 0.02


class CommandKind(str, Enum):
    """Height-editing modes."""

    RAISE_OR_LOWER = "raise_or_lower"
    SMOOTH = "smooth"
    SET_HEIGHT = "set_height"
    FLATTEN = "flatten"


class FlattenMode(str, Enum):
    """Which side of the target height the flatten command moves."""

    FLATTEN = "flatten"  # raise cells below the target up to it
    EXTEND = "extend"  # lower cells above the target down to it


@dataclass(frozen=True)
class ModifierState:
    """Keyboard modifiers held during a dab."""

    shift: bool = False
    control: bool = False


def lerp(a, b, t):
    """Linear interpolation with ``t`` clamped to [0, 1]."""
    t = np.clip(t, 0.0, 1.0)
    return a + (b - a) * t


@dataclass
class DabRegion:
    """The cells of one dab, as views into the command's buffers."""

    area: PaintArea
    heights: np.ndarray
    unmodified: np.ndarray
    samples: np.ndarray
    active: np.ndarray
    total_mouse_delta: float

    def write(self, values: np.ndarray) -> None:
        """Write values to the live heights of active cells only."""
        self.heights[self.active] = values[self.active]


class StrokeCommand(ABC):
    """
    Base class for the four stroke commands.

    Args:
        heights: Live working grid, mutated in place
        unmodified: Copy of the grid taken when the gesture started
    """

    name: str = ""
    kind: CommandKind

    def __init__(self, heights: HeightGrid, unmodified: np.ndarray):
        self.heights = heights
        self.unmodified = unmodified
        self.shift_down_fired = False

    def execute(
        self,
        area: PaintArea,
        brush_samples: np.ndarray,
        modifiers: ModifierState,
        total_mouse_delta: float = 0.0,
    ) -> None:
        """
        Apply one dab.

        Args:
            area: Clipped paint area
            brush_samples: Brush mask with speed applied, indexed ``[x, y]``
            modifiers: Held modifiers; control takes precedence over shift
            total_mouse_delta: Vertical pointer travel since pointer down
        """
        if area.is_empty:
            return

        samples = area.mask_region(brush_samples)
        region = DabRegion(
            area=area,
            heights=self.heights.view(area),
            unmodified=self.unmodified[area.rows, area.cols],
            samples=samples,
            active=samples != 0,
            total_mouse_delta=total_mouse_delta,
        )

        if modifiers.control:
            self.on_control_click(region)
        elif modifiers.shift:
            if not self.shift_down_fired:
                self.shift_down_fired = True
                self.on_shift_click_down()
            self.on_shift_click(region)
        else:
            region.write(np.clip(self.on_click(region), 0.0, 1.0))

    @abstractmethod
    def on_click(self, region: DabRegion) -> np.ndarray:
        """Plain drag. Returns new heights for the region; the caller clamps them."""

    def on_shift_click(self, region: DabRegion) -> None:
        """Shift drag. Writes the grid directly."""

    def on_shift_click_down(self) -> None:
        """Fired once, on the first shift dab of the gesture."""

    @abstractmethod
    def on_control_click(self, region: DabRegion) -> None:
        """Control drag, driven by vertical pointer travel from the gesture-start heights."""


class RaiseOrLowerCommand(StrokeCommand):
    """Raise on drag, lower on shift-drag."""

    name = "Raise/Lower"
    kind = CommandKind.RAISE_OR_LOWER

    def on_click(self, region: DabRegion) -> np.ndarray:
        return region.heights + region.samples * RAISE_LOWER_RATE

    def on_shift_click(self, region: DabRegion) -> None:
        region.write(np.clip(region.heights - region.samples * RAISE_LOWER_RATE, 0.0, 1.0))

    def on_control_click(self, region: DabRegion) -> None:
        offset = region.samples * -region.total_mouse_delta * RAISE_LOWER_INTERACTIVE_RATE
        region.write(np.clip(region.unmodified + offset, 0.0, 1.0))


class SmoothCommand(StrokeCommand):
    """
    Pull heights towards the box average of their neighbourhood.

    Averages are computed once, from the grid as it was when the command
    was created, so cells written earlier in the gesture do not feed
    back into their neighbours' averages.
    """

    name = "Smooth"
    kind = CommandKind.SMOOTH

    def __init__(self, heights: HeightGrid, unmodified: np.ndarray, box_filter_size: int = 3):
        super().__init__(heights, unmodified)
        self.box_filter_size = box_filter_size
        self.averages = box_average(heights.snapshot(), box_filter_size)

    def on_click(self, region: DabRegion) -> np.ndarray:
        average = self.averages[region.area.rows, region.area.cols]
        current = region.heights
        return current - (current - average) * region.samples * SMOOTH_RATE

    def on_control_click(self, region: DabRegion) -> None:
        average = self.averages[region.area.rows, region.area.cols]
        smoothed = region.unmodified - (region.unmodified - average) * region.samples * SMOOTH_RATE
        factor = -region.total_mouse_delta * region.samples * SMOOTH_INTERACTIVE_RATE
        region.write(lerp(region.unmodified, smoothed, factor))


class SetHeightCommand(StrokeCommand):
    """
    Move heights towards a target height.

    Shift-drag samples a new target under the cursor through
    ``on_sample_height``; the running gesture keeps its target.
    """

    name = "Set Height"
    kind = CommandKind.SET_HEIGHT

    def __init__(
        self,
        heights: HeightGrid,
        unmodified: np.ndarray,
        target_height: float,
        on_sample_height: Optional[Callable[[], None]] = None,
    ):
        super().__init__(heights, unmodified)
        self.target_height = target_height
        self.on_sample_height = on_sample_height

    def on_click(self, region: DabRegion) -> np.ndarray:
        current = region.heights
        return np.clip(current + (self.target_height - current) * region.samples * SET_HEIGHT_RATE, 0.0, 1.0)

    def on_control_click(self, region: DabRegion) -> None:
        factor = -region.total_mouse_delta * region.samples * SET_HEIGHT_INTERACTIVE_RATE
        region.write(lerp(region.unmodified, self.target_height, factor))

    def on_shift_click_down(self) -> None:
        if self.on_sample_height is not None:
            self.on_sample_height()


class FlattenCommand(StrokeCommand):
    """
    Set Height restricted to one side of the target.

    In FLATTEN mode only cells below the target move (up to it); in
    EXTEND mode only cells above it move (down to it).
    """

    name = "Flatten"
    kind = CommandKind.FLATTEN

    def __init__(
        self,
        heights: HeightGrid,
        unmodified: np.ndarray,
        target_height: float,
        mode: FlattenMode = FlattenMode.FLATTEN,
    ):
        super().__init__(heights, unmodified)
        self.target_height = target_height
        self.mode = mode

    def _movable(self, current: np.ndarray) -> np.ndarray:
        if self.mode == FlattenMode.FLATTEN:
            return current < self.target_height
        return current > self.target_height

    def _limit(self, values: np.ndarray) -> np.ndarray:
        if self.mode == FlattenMode.FLATTEN:
            return np.minimum(values, self.target_height)
        return np.maximum(values, self.target_height)

    def on_click(self, region: DabRegion) -> np.ndarray:
        current = region.heights
        moved = current + (self.target_height - current) * region.samples * SET_HEIGHT_RATE
        moved = self._limit(np.clip(moved, 0.0, 1.0))
        return np.where(self._movable(current), moved, current)

    def on_control_click(self, region: DabRegion) -> None:
        factor = -region.total_mouse_delta * region.samples * SET_HEIGHT_INTERACTIVE_RATE
        moved = self._limit(lerp(region.unmodified, self.target_height, factor))
        region.write(np.where(self._movable(region.heights), moved, region.heights))


COMMAND_TYPES: Dict[CommandKind, Type[StrokeCommand]] = {
    CommandKind.RAISE_OR_LOWER: RaiseOrLowerCommand,
    CommandKind.SMOOTH: SmoothCommand,
    CommandKind.SET_HEIGHT: SetHeightCommand,
    CommandKind.FLATTEN: FlattenCommand,
}


def create_command(
    kind: CommandKind,
    heights: HeightGrid,
    unmodified: np.ndarray,
    box_filter_size: int = 3,
    target_height: float = 0.0,
    flatten_mode: FlattenMode = FlattenMode.FLATTEN,
    on_sample_height: Optional[Callable[[], None]] = None,
) -> StrokeCommand:
    """
    Create the command for a sculpt mode.

    Args:
        kind: Sculpt mode
        heights: Live working grid
        unmodified: Gesture-start copy of the grid
        box_filter_size: Smooth radius, in cells
        target_height: Normalized target for set-height and flatten
        flatten_mode: Flatten sub-mode
        on_sample_height: Set-height shift-click-down side effect
    """
    kind = CommandKind(kind)
    if kind == CommandKind.SMOOTH:
        command = SmoothCommand(heights, unmodified, box_filter_size)
    elif kind == CommandKind.SET_HEIGHT:
        command = SetHeightCommand(heights, unmodified, target_height, on_sample_height)
    elif kind == CommandKind.FLATTEN:
        command = FlattenCommand(heights, unmodified, target_height, FlattenMode(flatten_mode))
    else:
        command = COMMAND_TYPES[kind](heights, unmodified)

    logger.debug("Stroke command created", command=command.name)
    return command
