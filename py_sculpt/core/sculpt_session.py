"""
Sculpt session.

A session ties together everything one sculpting host needs: the height
store, a working copy of its heights, sculpt settings, the brush
catalog, cached brush masks and the stroke randomizer. The host feeds it
pointer events once per tick and drains its event queue to find out
when previews, brush shape or heights changed.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
import structlog

from ..config.brush_settings import BrushSettings, SculptSettings
from .alea_prng import AleaPRNG
from .brush_catalog import BrushCatalog
from .brush_samples import BrushSampleCache, SamplesDirty
from .commands import CommandKind, ModifierState, StrokeCommand, create_command
from .height_grid import HeightGrid, HeightGridStore, TerrainDimensions
from .paint_area import PaintArea, StrokeAreaClipper
from .stroke_randomizer import StrokeRandomizer
from . import terrain_ops

logger = structlog.get_logger()

Position = Tuple[float, float, float]


class SculptEventKind(str, Enum):
    """Notifications queued for the host."""

    BRUSH_SHAPE_CHANGED = "brush_shape_changed"
    PREVIEWS_CHANGED = "previews_changed"
    HEIGHTS_RELOADED = "heights_reloaded"
    SET_HEIGHT_SAMPLED = "set_height_sampled"
    CATALOG_CHANGED = "catalog_changed"


@dataclass(frozen=True)
class SculptEvent:
    kind: SculptEventKind
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PointerEvent:
    """
    Pointer state for one tick.

    ``position`` is the world-space point under the cursor, already
    resolved by the host; ``screen_y`` drives the interactive
    control-drag tools.
    """

    position: Position
    screen_y: float = 0.0
    shift: bool = False
    control: bool = False
    primary: bool = True

    @property
    def modifiers(self) -> ModifierState:
        return ModifierState(shift=self.shift, control=self.control)


@dataclass
class DabResult:
    """Outcome of an applied dab."""

    kind: CommandKind
    area: PaintArea
    heights: np.ndarray


@dataclass
class StrokeState:
    """State that lives from pointer down to pointer up."""

    anchor: Position
    last_position: Position
    last_screen_y: float
    total_mouse_delta: float = 0.0
    command: Optional[StrokeCommand] = None
    dab_count: int = 0


class SculptSession:
    """
    Sculpting context for one terrain.

    Args:
        store: Authoritative height storage
        dimensions: World extent of the terrain; one world unit per cell
            when omitted
        settings: Sculpt settings
        catalog: Brush catalog
        seed: Seed for stroke randomization
        brush_directory: Directory of custom brush images
    """

    def __init__(
        self,
        store: HeightGridStore,
        dimensions: Optional[TerrainDimensions] = None,
        settings: Optional[SculptSettings] = None,
        catalog: Optional[BrushCatalog] = None,
        seed: Any = "default",
        brush_directory: Optional[Union[str, Path]] = None,
    ):
        self.store = store
        self.dimensions = dimensions or TerrainDimensions.unit_cells(store.width, store.height)
        self.settings = settings or SculptSettings()
        self.catalog = catalog or BrushCatalog()
        self.randomizer = StrokeRandomizer(AleaPRNG(seed))
        self.samples = BrushSampleCache()
        self.heights = HeightGrid.from_store(store)
        self.clipper = StrokeAreaClipper(store.width, store.height)
        self.brush_directory = Path(brush_directory).resolve() if brush_directory else None

        self.stroke: Optional[StrokeState] = None
        self.flatten_height: Optional[float] = None
        self._cursor: Optional[Position] = None
        self._events: Deque[SculptEvent] = deque()

        if self.brush_directory is not None:
            self.catalog.refresh(self.brush_directory)

    # ------------------------------------------------------------------
    # Settings and masks

    @property
    def mode(self) -> CommandKind:
        return self.settings.mode

    @property
    def brush_settings(self) -> BrushSettings:
        return self.settings.current_brush

    def brush_size_segments(self) -> int:
        """Brush size of the active mode in grid cells."""
        return self.dimensions.segments_from_units(self.brush_settings.brush_size)

    def tick(self) -> SamplesDirty:
        """
        Pick up settings and catalog changes and regenerate stale masks.

        Returns:
            Flags of the masks that were regenerated
        """
        self.samples.sync(
            self.brush_settings,
            self.catalog,
            self.brush_size_segments(),
            self.settings.brush_preview_size,
        )
        regenerated = self.samples.refresh(self.catalog)

        if SamplesDirty.SHAPE in regenerated:
            self._emit(SculptEventKind.BRUSH_SHAPE_CHANGED, brush=self.samples.brush.name, size=self.samples.size)
        if SamplesDirty.PREVIEW in regenerated:
            self._emit(SculptEventKind.PREVIEWS_CHANGED, brushes=list(self.samples.previews))
        return regenerated

    # ------------------------------------------------------------------
    # Gestures

    def pointer_down(self, event: PointerEvent) -> None:
        """Start a gesture."""
        if not event.primary:
            return

        self.stroke = StrokeState(
            anchor=event.position,
            last_position=event.position,
            last_screen_y=event.screen_y,
        )
        brush = self.brush_settings
        self.randomizer.begin_gesture(brush.min_brush_spacing, brush.max_brush_spacing)
        logger.info("Gesture started", mode=self.mode.value, position=event.position)

    def update(self, event: PointerEvent) -> Optional[DabResult]:
        """
        Advance the active gesture by one tick.

        Returns:
            The applied dab, or None when no dab was applied this tick
        """
        stroke = self.stroke
        if stroke is None:
            return None

        stroke.total_mouse_delta += event.screen_y - stroke.last_screen_y
        stroke.last_screen_y = event.screen_y
        self.randomizer.accumulate_distance(stroke.last_position, event.position)
        stroke.last_position = event.position

        self.tick()
        samples = self.samples.samples_with_speed
        if samples is None:
            return None

        brush = self.brush_settings
        position = event.position
        if event.control:
            # Interactive tools stay on the initial click and skip all randomization
            position = stroke.anchor
        else:
            if not self.randomizer.should_apply(
                brush.brush_size, brush.min_brush_spacing, brush.max_brush_spacing, brush.use_brush_spacing
            ):
                return None

            if brush.use_random_rotation and not self.samples.rotation_invariant():
                samples = self.randomizer.rotated_samples(
                    self.samples.samples,
                    brush.brush_angle,
                    brush.min_random_rotation,
                    brush.max_random_rotation,
                    brush.brush_speed,
                )

            if brush.use_random_offset:
                dx, dz = self.randomizer.offset(brush.random_offset)
                position = (position[0] + dx, position[1], position[2] + dz)

        self._cursor = event.position
        u, v = self.dimensions.normalized_position(position)
        area = self.clipper.clip(u, v, samples.shape[0])

        kind = self.mode
        heights = self.apply_dab(area, kind, event.modifiers, samples=samples, position=position)
        stroke.dab_count += 1
        return DabResult(kind=kind, area=area, heights=heights)

    def pointer_up(self) -> None:
        """End the gesture. Nothing is rolled back."""
        if self.stroke is not None:
            logger.info("Gesture ended", mode=self.mode.value, dabs=self.stroke.dab_count)
        self.stroke = None
        self.flatten_height = None

    def apply_dab(
        self,
        area: PaintArea,
        kind: Optional[CommandKind] = None,
        modifiers: Optional[ModifierState] = None,
        samples: Optional[np.ndarray] = None,
        position: Optional[Position] = None,
    ) -> np.ndarray:
        """
        Apply one dab and write the touched cells to the store.

        Inside a gesture the gesture's command is reused; outside one a
        throwaway command is created for the single dab.

        Args:
            area: Paint area, sized for ``samples``
            kind: Sculpt mode, the active one by default
            modifiers: Held modifiers
            samples: Speed-scaled mask; the cached one by default
            position: World position of the dab, used for the flatten target

        Returns:
            Copy of the updated sub-grid, shape ``(clipped_height, clipped_width)``
        """
        kind = CommandKind(kind) if kind is not None else self.mode
        modifiers = modifiers or ModifierState()

        if samples is None:
            self.tick()
            samples = self.samples.samples_with_speed
            if samples is None:
                return np.empty((0, 0), dtype=np.float64)

        stroke = self.stroke
        command = stroke.command if stroke is not None else None
        if command is None or command.kind != kind:
            command = self._create_command(kind, area, position)
            if stroke is not None:
                stroke.command = command

        total_mouse_delta = stroke.total_mouse_delta if stroke is not None else 0.0
        command.execute(area, samples, modifiers, total_mouse_delta)

        if area.is_empty:
            return np.empty((0, 0), dtype=np.float64)

        updated = self.heights.region(area.left, area.bottom, area.clipped_width, area.clipped_height)
        self.store.write(area.left, area.bottom, updated)
        return updated

    def _create_command(
        self, kind: CommandKind, area: PaintArea, position: Optional[Position]
    ) -> StrokeCommand:
        target_height = 0.0
        if kind == CommandKind.SET_HEIGHT:
            target_height = self.settings.set_height / self.dimensions.size_y
        elif kind == CommandKind.FLATTEN:
            target_height = self.flatten_height
            if target_height is None:
                if position is not None:
                    target_height = self.dimensions.normalized_height(position[1])
                else:
                    target_height = self.heights.sample(
                        area.left + area.clipped_width // 2, area.bottom + area.clipped_height // 2
                    )
                # Only a gesture keeps its target until pointer up
                if self.stroke is not None:
                    self.flatten_height = target_height

        return create_command(
            kind,
            self.heights,
            self.heights.snapshot(),
            box_filter_size=self.settings.box_filter_size,
            target_height=target_height,
            flatten_mode=self.settings.flatten_mode,
            on_sample_height=self.sample_set_height,
        )

    def sample_set_height(self, position: Optional[Position] = None) -> Optional[float]:
        """
        Store the terrain height under the cursor as the Set Height target.

        Returns:
            The sampled height in world units, or None without a cursor
        """
        position = position or self._cursor
        if position is None:
            return None

        u, v = self.dimensions.normalized_position(position)
        x, y = self.dimensions.grid_cell(u, v)
        height = self.heights.sample(x, y) * self.dimensions.size_y
        self.settings.set_height = height
        self._emit(SculptEventKind.SET_HEIGHT_SAMPLED, height=height)
        return height

    # ------------------------------------------------------------------
    # Host notifications

    def on_undo_redo(self) -> None:
        """Reload the working heights from the store."""
        self.heights.replace(self.store.read(0, 0, self.store.width, self.store.height))
        logger.debug("Heights reloaded from store")
        self._emit(SculptEventKind.HEIGHTS_RELOADED)

    def _in_brush_directory(self, path: Union[str, Path]) -> bool:
        if self.brush_directory is None:
            return False
        return self.brush_directory in Path(path).resolve().parents

    def on_assets_imported(self, paths: Iterable[Union[str, Path]]) -> List[str]:
        """Add or update custom brushes for imported images."""
        paths = [p for p in paths if self._in_brush_directory(p)]
        if not paths:
            return []

        updated = self.catalog.refresh(self.brush_directory, paths=paths)
        if updated:
            self._emit(SculptEventKind.CATALOG_CHANGED, updated=updated)
        return updated

    def on_assets_deleted(self, paths: Iterable[Union[str, Path]]) -> List[str]:
        """Remove custom brushes whose images were deleted."""
        removed = self.catalog.remove_paths(p for p in paths if self._in_brush_directory(p))
        if removed:
            self._emit(SculptEventKind.CATALOG_CHANGED, removed=removed)
        return removed

    def on_assets_moved(
        self,
        sources: Iterable[Union[str, Path]],
        destinations: Iterable[Union[str, Path]],
    ) -> None:
        """Treat a move as a delete of the sources and an import of the destinations."""
        self.on_assets_deleted(sources)
        self.on_assets_imported(destinations)

    def drain_events(self) -> List[SculptEvent]:
        """Return and clear the queued notifications."""
        events = list(self._events)
        self._events.clear()
        return events

    def _emit(self, kind: SculptEventKind, **data) -> None:
        self._events.append(SculptEvent(kind, data))

    # ------------------------------------------------------------------
    # Whole-terrain operations

    def _replace_heights(self, heights: np.ndarray, operation: str) -> np.ndarray:
        self.heights.replace(heights)
        self.store.write(0, 0, self.heights.heights)
        logger.info("Terrain replaced", operation=operation)
        self._emit(SculptEventKind.HEIGHTS_RELOADED, operation=operation)
        return self.heights.snapshot()

    def smooth_all(self) -> np.ndarray:
        return self._replace_heights(
            terrain_ops.smooth_all(
                self.heights.heights, self.settings.box_filter_size, self.settings.smoothing_iterations
            ),
            "smooth_all",
        )

    def flatten_all(self, height: Optional[float] = None) -> np.ndarray:
        """Set the whole terrain to a height in world units, the Set Height target by default."""
        height = self.settings.set_height if height is None else height
        return self._replace_heights(
            terrain_ops.flatten_all(
                self.heights.width, self.heights.height, height / self.dimensions.size_y
            ),
            "flatten_all",
        )

    def linear_ramp(self, max_height: Optional[float] = None) -> np.ndarray:
        max_height = self.settings.generate_height if max_height is None else max_height
        return self._replace_heights(
            terrain_ops.linear_ramp(
                self.heights.width,
                self.heights.height,
                self.settings.generate_ramp_curve,
                max_height / self.dimensions.size_y,
            ),
            "linear_ramp",
        )

    def circular_ramp(self, max_height: Optional[float] = None) -> np.ndarray:
        max_height = self.settings.generate_height if max_height is None else max_height
        return self._replace_heights(
            terrain_ops.circular_ramp(
                self.heights.width,
                self.heights.height,
                self.settings.generate_ramp_curve,
                max_height / self.dimensions.size_y,
            ),
            "circular_ramp",
        )
