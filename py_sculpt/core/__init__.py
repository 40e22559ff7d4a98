"""
Core terrain sculpting functionality.
"""

from .brush_catalog import BrushCatalog, DEFAULT_PROCEDURAL_BRUSH_NAME
from .brush_samples import BrushSampleCache, SamplesDirty
from .brushes import CustomBrush, MaskParameters, ProceduralBrush, TerrainBrush
from .commands import CommandKind, FlattenMode, ModifierState, StrokeCommand, create_command
from .custom_brush import GrayscaleImage, generate_custom_mask, load_grayscale_image
from .errors import GridBoundsError, SculptError, UnknownBrushError
from .falloff import generate_falloff
from .falloff_curve import FalloffCurve, Keyframe
from .height_grid import HeightGrid, InMemoryHeightStore, TerrainDimensions
from .paint_area import PaintArea, StrokeAreaClipper
from .stroke_randomizer import StrokeRandomizer

__all__ = ['BrushCatalog', 'DEFAULT_PROCEDURAL_BRUSH_NAME', 'BrushSampleCache', 'SamplesDirty',
           'CustomBrush', 'MaskParameters', 'ProceduralBrush', 'TerrainBrush',
           'CommandKind', 'FlattenMode', 'ModifierState', 'StrokeCommand', 'create_command',
           'GrayscaleImage', 'generate_custom_mask', 'load_grayscale_image',
           'GridBoundsError', 'SculptError', 'UnknownBrushError',
           'generate_falloff', 'FalloffCurve', 'Keyframe',
           'HeightGrid', 'InMemoryHeightStore', 'TerrainDimensions',
           'PaintArea', 'StrokeAreaClipper', 'StrokeRandomizer']
