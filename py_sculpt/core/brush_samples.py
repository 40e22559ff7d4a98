"""
Cached brush masks with dirty tracking.

Generating a mask is expensive, rescaling it by speed is not. The cache
keeps the selected brush's mask, the speed-scaled copy that commands
read and a preview mask per catalog entry, and regenerates each only
when something it depends on has changed since the last tick.
"""

from enum import Flag, auto
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np
import structlog

from .brush_catalog import BrushCatalog
from .brushes import MaskParameters, TerrainBrush

if TYPE_CHECKING:
    from ..config.brush_settings import BrushSettings

logger = structlog.get_logger()


class SamplesDirty(Flag):
    """Which cached masks are out of date."""

    NONE = 0
    SHAPE = auto()
    SPEED = auto()
    PREVIEW = auto()


class BrushSampleCache:
    """Masks for the selected brush and previews for every brush."""

    def __init__(self):
        self.brush: Optional[TerrainBrush] = None
        self.params = MaskParameters()
        self.size = 0
        self.speed = 1.0
        self.preview_size = 48

        self.samples: Optional[np.ndarray] = None
        self.samples_with_speed: Optional[np.ndarray] = None
        self.previews: Dict[str, Optional[np.ndarray]] = {}
        self.dirty = SamplesDirty.SHAPE | SamplesDirty.SPEED | SamplesDirty.PREVIEW

        self._shape_key = None
        self._speed_key = None
        self._preview_key = None

    def sync(
        self,
        brush_settings: "BrushSettings",
        catalog: BrushCatalog,
        size: int,
        preview_size: int = 48,
    ) -> SamplesDirty:
        """
        Compare the current inputs with the last seen ones and mark what changed.

        Args:
            brush_settings: Settings of the active sculpt mode
            catalog: Brush catalog; the selection falls back to its first entry
            size: Brush size in grid cells
            preview_size: Side length of preview masks

        Returns:
            Flags that became dirty during this call
        """
        brush = catalog.resolve(brush_settings.selected_brush)
        params = brush_settings.mask_parameters()

        shape_key = (size, params, brush.name, brush.version)
        speed_key = brush_settings.brush_speed
        preview_key = (preview_size, params, tuple((b.name, b.version) for b in catalog))

        changed = SamplesDirty.NONE
        if shape_key != self._shape_key:
            changed |= SamplesDirty.SHAPE | SamplesDirty.SPEED
        if speed_key != self._speed_key:
            changed |= SamplesDirty.SPEED
        if preview_key != self._preview_key:
            changed |= SamplesDirty.PREVIEW

        self._shape_key = shape_key
        self._speed_key = speed_key
        self._preview_key = preview_key

        self.brush = brush
        self.params = params
        self.size = size
        self.speed = speed_key
        self.preview_size = preview_size
        self.dirty |= changed
        return changed

    def refresh(self, catalog: Optional[BrushCatalog] = None) -> SamplesDirty:
        """
        Regenerate whatever is dirty.

        A shape regeneration that yields nothing (the brush image went
        away) keeps the previous masks and leaves the shape dirty.

        Returns:
            Flags that were regenerated
        """
        regenerated = SamplesDirty.NONE
        if self.dirty == SamplesDirty.NONE:
            return regenerated

        if SamplesDirty.SHAPE in self.dirty and self.brush is not None:
            samples = self.brush.generate_samples(self.size, self.params)
            if samples is None:
                logger.debug("Brush samples unavailable, keeping previous", brush=self.brush.name)
            else:
                self.samples = samples
                self.dirty &= ~SamplesDirty.SHAPE
                self.dirty |= SamplesDirty.SPEED
                regenerated |= SamplesDirty.SHAPE
                logger.debug("Brush samples regenerated", brush=self.brush.name, size=self.size)

        if SamplesDirty.SPEED in self.dirty and self.samples is not None:
            self.samples_with_speed = self.samples * self.speed
            self.dirty &= ~SamplesDirty.SPEED
            regenerated |= SamplesDirty.SPEED

        if SamplesDirty.PREVIEW in self.dirty and catalog is not None:
            self.previews = catalog.preview_samples(self.preview_size, self.params)
            self.dirty &= ~SamplesDirty.PREVIEW
            regenerated |= SamplesDirty.PREVIEW
            logger.debug("Brush previews regenerated", count=len(self.previews))

        return regenerated

    def rotation_invariant(self) -> bool:
        return self.brush is not None and self.brush.rotation_invariant(self.params)
