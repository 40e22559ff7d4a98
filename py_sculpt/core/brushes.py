"""
Brush mask sources.

A brush turns a set of shape parameters into a mask. The procedural
brush is pure falloff; custom brushes derive their mask from an image.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .custom_brush import GrayscaleImage, generate_custom_mask
from .falloff import generate_falloff
from .falloff_curve import FalloffCurve


@dataclass(frozen=True)
class MaskParameters:
    """Shape parameters that every brush mask depends on."""

    roundness: float = 1.0
    angle: float = 0.0
    falloff_curve: FalloffCurve = field(default_factory=FalloffCurve)
    use_falloff_for_custom_brushes: bool = False
    use_alpha_falloff: bool = False

    def falloff(self, size: int) -> np.ndarray:
        return generate_falloff(size, self.roundness, self.angle, self.falloff_curve)


class TerrainBrush(ABC):
    """Base class for brush mask sources."""

    def __init__(self, name: str):
        self.name = name

    @property
    def version(self) -> int:
        """Changes whenever the brush's source data changes."""
        return 0

    def rotation_invariant(self, params: MaskParameters) -> bool:
        """Whether the mask is identical at every rotation."""
        return False

    @abstractmethod
    def generate_samples(self, size: int, params: MaskParameters) -> Optional[np.ndarray]:
        """
        Generate the brush mask.

        Returns:
            ``size`` x ``size`` mask indexed ``[x, y]``, or None if the
            brush cannot produce one right now
        """


class ProceduralBrush(TerrainBrush):
    """Brush whose mask is the falloff shape alone."""

    def rotation_invariant(self, params: MaskParameters) -> bool:
        return params.roundness == 1.0

    def generate_samples(self, size: int, params: MaskParameters) -> Optional[np.ndarray]:
        return params.falloff(size)


class CustomBrush(TerrainBrush):
    """Brush whose mask comes from a square grayscale image."""

    def __init__(self, name: str, image: GrayscaleImage):
        super().__init__(name)
        self._image: Optional[GrayscaleImage] = image
        self._version = 0

    @property
    def image(self) -> Optional[GrayscaleImage]:
        return self._image

    @image.setter
    def image(self, image: Optional[GrayscaleImage]) -> None:
        self._image = image
        self._version += 1

    @property
    def version(self) -> int:
        return self._version

    def detach(self) -> None:
        """Drop the source image; later mask requests return None."""
        self.image = None

    def generate_samples(self, size: int, params: MaskParameters) -> Optional[np.ndarray]:
        image = self._image
        if image is None:
            return None

        falloff = params.falloff(size) if params.use_falloff_for_custom_brushes else None
        return generate_custom_mask(
            image,
            size,
            angle=params.angle,
            use_falloff=params.use_falloff_for_custom_brushes,
            use_alpha_falloff=params.use_alpha_falloff,
            falloff=falloff,
        )
