"""
py_sculpt - brush-driven terrain sculpting engine.

Generates procedural and image-derived brush masks and applies them to
a height grid, one dab per host update tick, while a drag gesture is
active.
"""

__version__ = "0.1.0"
