"""
Sculpt and brush settings.

Each sculpt mode keeps its own brush settings. Ranges mirror the limits
of the brush controls: speed 0.02 to 2, spacing factors 0.1 to 30 and
random rotation -180 to 180 degrees.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..core.brush_catalog import DEFAULT_PROCEDURAL_BRUSH_NAME
from ..core.brushes import MaskParameters
from ..core.commands import CommandKind, FlattenMode
from ..core.falloff_curve import FalloffCurve

SculptMode = CommandKind

MIN_BRUSH_SPEED = 0.02
MAX_BRUSH_SPEED = 2.0
MIN_SPACING_BOUNDS = 0.1
MAX_SPACING_BOUNDS = 30.0
MIN_RANDOM_ROTATION_BOUNDS = -180.0
MAX_RANDOM_ROTATION_BOUNDS = 180.0


class BrushSettings(BaseModel):
    """Brush shape and stroke behaviour for one sculpt mode."""

    # Shape
    brush_size: float = Field(default=35.0, gt=0, description="Brush size in world units")
    brush_speed: float = Field(
        default=1.0, ge=MIN_BRUSH_SPEED, le=MAX_BRUSH_SPEED, description="Strength multiplier"
    )
    brush_roundness: float = Field(default=1.0, gt=0, le=1, description="1 is circular, lower is squarer")
    brush_angle: float = Field(default=0.0, ge=-180, le=180, description="Brush rotation in degrees")
    falloff_curve: FalloffCurve = Field(default_factory=FalloffCurve)
    use_falloff_for_custom_brushes: bool = Field(default=False, description="Combine custom brushes with falloff")
    use_alpha_falloff: bool = Field(default=False, description="Multiply custom brushes by falloff")
    selected_brush: str = Field(default=DEFAULT_PROCEDURAL_BRUSH_NAME, description="Selected brush name")

    # Spacing
    use_brush_spacing: bool = Field(default=False, description="Gate dabs on distance travelled")
    min_brush_spacing: float = Field(default=1.0, ge=MIN_SPACING_BOUNDS, le=MAX_SPACING_BOUNDS)
    max_brush_spacing: float = Field(default=MAX_SPACING_BOUNDS, ge=MIN_SPACING_BOUNDS, le=MAX_SPACING_BOUNDS)

    # Random rotation
    use_random_rotation: bool = Field(default=False, description="Rotate each dab by a random angle")
    min_random_rotation: float = Field(
        default=MIN_RANDOM_ROTATION_BOUNDS, ge=MIN_RANDOM_ROTATION_BOUNDS, le=MAX_RANDOM_ROTATION_BOUNDS
    )
    max_random_rotation: float = Field(
        default=MAX_RANDOM_ROTATION_BOUNDS, ge=MIN_RANDOM_ROTATION_BOUNDS, le=MAX_RANDOM_ROTATION_BOUNDS
    )

    # Random offset
    use_random_offset: bool = Field(default=False, description="Jitter each dab's position")
    random_offset: float = Field(default=5.0, ge=0, description="Jitter radius in world units")

    @model_validator(mode="after")
    def check_ranges(self) -> "BrushSettings":
        if self.min_brush_spacing > self.max_brush_spacing:
            raise ValueError("min_brush_spacing must not exceed max_brush_spacing")
        if self.min_random_rotation > self.max_random_rotation:
            raise ValueError("min_random_rotation must not exceed max_random_rotation")
        return self

    def mask_parameters(self) -> MaskParameters:
        """Shape parameters for mask generation."""
        return MaskParameters(
            roundness=self.brush_roundness,
            angle=self.brush_angle,
            falloff_curve=self.falloff_curve,
            use_falloff_for_custom_brushes=self.use_falloff_for_custom_brushes,
            use_alpha_falloff=self.use_alpha_falloff,
        )


def _default_mode_settings() -> Dict[SculptMode, BrushSettings]:
    return {
        SculptMode.RAISE_OR_LOWER: BrushSettings(),
        SculptMode.SMOOTH: BrushSettings(brush_speed=2.0),
        SculptMode.SET_HEIGHT: BrushSettings(brush_speed=2.0),
        SculptMode.FLATTEN: BrushSettings(brush_speed=2.0),
    }


class SculptSettings(BaseModel):
    """All sculpting settings of a session."""

    mode: SculptMode = Field(default=SculptMode.RAISE_OR_LOWER, description="Active sculpt mode")
    brushes: Dict[SculptMode, BrushSettings] = Field(default_factory=_default_mode_settings)

    # Mode specific
    set_height: float = Field(default=10.0, ge=0, description="Set Height target in world units")
    box_filter_size: int = Field(default=3, ge=1, description="Smoothing radius in cells")
    smoothing_iterations: int = Field(default=1, ge=1, description="Passes of whole-terrain smoothing")
    flatten_mode: FlattenMode = Field(default=FlattenMode.FLATTEN, description="Flatten sub-mode")

    # Previews and generators
    brush_preview_size: Literal[32, 48, 64] = Field(default=48, description="Preview mask size")
    generate_ramp_curve: FalloffCurve = Field(default_factory=FalloffCurve.linear)
    generate_height: float = Field(default=5.0, ge=0, description="Ramp and flatten height in world units")

    @model_validator(mode="after")
    def fill_missing_modes(self) -> "SculptSettings":
        defaults = _default_mode_settings()
        for mode in SculptMode:
            self.brushes.setdefault(mode, defaults[mode])
        return self

    def brush(self, mode: Optional[SculptMode] = None) -> BrushSettings:
        """Brush settings for a mode, the active mode by default."""
        return self.brushes[SculptMode(mode) if mode is not None else self.mode]

    @property
    def current_brush(self) -> BrushSettings:
        return self.brush(self.mode)
