"""
Configuration modules for terrain sculpting.
"""

from .brush_settings import BrushSettings, FlattenMode, SculptMode, SculptSettings
from .config import Settings, settings

__all__ = ["BrushSettings", "FlattenMode", "SculptMode", "SculptSettings", "Settings", "settings"]
