"""
Brush catalog.

Named registry of brush mask sources, enumerated in name order. The
catalog always holds the default procedural brush, which cannot be
removed; custom brushes are keyed by the file name of their image
without its extension.
"""

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

import numpy as np
import structlog

from .brushes import CustomBrush, MaskParameters, ProceduralBrush, TerrainBrush
from .custom_brush import GrayscaleImage, load_grayscale_image
from .errors import UnknownBrushError

logger = structlog.get_logger()

DEFAULT_PROCEDURAL_BRUSH_NAME = "_DefaultProceduralBrush"


def brush_name_from_path(path: Union[str, Path]) -> str:
    """Derive a brush name from an image path."""
    return Path(path).stem


class BrushCatalog:
    """Ordered registry of brushes."""

    def __init__(self):
        self._brushes: Dict[str, TerrainBrush] = {
            DEFAULT_PROCEDURAL_BRUSH_NAME: ProceduralBrush(DEFAULT_PROCEDURAL_BRUSH_NAME)
        }

    def __len__(self) -> int:
        return len(self._brushes)

    def __contains__(self, name: str) -> bool:
        return name in self._brushes

    def __iter__(self) -> Iterator[TerrainBrush]:
        for name in self.names:
            yield self._brushes[name]

    @property
    def names(self) -> List[str]:
        """Brush names in catalog order."""
        return sorted(self._brushes)

    def get(self, name: str) -> TerrainBrush:
        """Get a brush by name."""
        try:
            return self._brushes[name]
        except KeyError:
            raise UnknownBrushError(name) from None

    def resolve(self, name: Optional[str]) -> TerrainBrush:
        """
        Get the selected brush, falling back to the first brush in
        catalog order when the selection no longer exists.
        """
        if name is not None and name in self._brushes:
            return self._brushes[name]
        fallback = self.names[0]
        logger.info("Selected brush not in catalog, using fallback", selected=name, fallback=fallback)
        return self._brushes[fallback]

    def upsert(
        self, path: Union[str, Path], image: Union[GrayscaleImage, np.ndarray]
    ) -> Optional[TerrainBrush]:
        """
        Add a custom brush, or replace the image of an existing one.

        Images that are not two-dimensional or not square are ignored.

        Returns:
            The added or updated brush, or None if nothing changed
        """
        if not isinstance(image, GrayscaleImage):
            image = GrayscaleImage(image)

        if not image.is_square:
            logger.warning("Ignoring brush image that is not square", path=str(path), shape=image.pixels.shape)
            return None

        name = brush_name_from_path(path)
        existing = self._brushes.get(name)
        if existing is not None:
            if not isinstance(existing, CustomBrush):
                logger.warning("Brush image name collides with a procedural brush", name=name)
                return None
            existing.image = image
            logger.info("Custom brush updated", name=name)
            return existing

        brush = CustomBrush(name, image)
        self._brushes[name] = brush
        logger.info("Custom brush added", name=name, size=image.width)
        return brush

    def remove(self, name: str) -> bool:
        """
        Remove a brush by name. The default procedural brush is never removed.

        Returns:
            True if a brush was removed
        """
        if name == DEFAULT_PROCEDURAL_BRUSH_NAME:
            return False

        brush = self._brushes.pop(name, None)
        if brush is None:
            return False

        if isinstance(brush, CustomBrush):
            brush.detach()
        logger.info("Custom brush removed", name=name)
        return True

    def remove_paths(self, paths: Iterable[Union[str, Path]]) -> List[str]:
        """Remove the brushes derived from the given image paths."""
        return [name for name in map(brush_name_from_path, paths) if self.remove(name)]

    def refresh(
        self,
        directory: Union[str, Path],
        paths: Optional[Iterable[Union[str, Path]]] = None,
    ) -> List[str]:
        """
        Load custom brushes from image files.

        Args:
            directory: Custom brush directory, scanned recursively when
                ``paths`` is not given
            paths: Specific files that changed

        Returns:
            Names of brushes that were added or updated
        """
        if paths is None:
            directory = Path(directory)
            if not directory.is_dir():
                logger.warning("Custom brush directory not found", directory=str(directory))
                return []
            paths = sorted(p for p in directory.rglob("*") if p.is_file())

        updated = []
        for path in paths:
            path = Path(path)
            if path.suffix == ".meta":
                continue

            try:
                image = load_grayscale_image(path)
            except OSError as e:
                logger.warning("Could not load brush image", path=str(path), error=str(e))
                continue

            brush = self.upsert(path, image)
            if brush is not None:
                updated.append(brush.name)

        return updated

    def preview_samples(self, size: int, params: MaskParameters) -> Dict[str, Optional[np.ndarray]]:
        """Generate a preview mask for every brush, in catalog order."""
        return {brush.name: brush.generate_samples(size, params) for brush in self}
