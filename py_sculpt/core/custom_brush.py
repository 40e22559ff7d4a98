"""
Image-derived brush masks.

Custom brushes take their shape from a grayscale image. Dark pixels
sculpt, white pixels do not: the mask value is ``1 - grayscale``,
optionally combined with a procedural falloff mask.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import structlog
from PIL import Image

from .falloff import rotate_points

logger = structlog.get_logger()


class GrayscaleImage:
    """
    A grayscale image with a bilinear sampler.

    Pixels are stored ``[row, column]`` with row 0 at the bottom, and
    sampled with normalized ``(u, v)`` coordinates where texel centres
    sit at ``(i + 0.5) / size``. Coordinates outside the image clamp to
    the border.
    """

    def __init__(self, pixels: np.ndarray):
        self.pixels = np.asarray(pixels, dtype=np.float64)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def is_square(self) -> bool:
        return self.pixels.ndim == 2 and self.width == self.height

    def sample_bilinear(
        self, u: Union[float, np.ndarray], v: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        """Bilinearly sample the image at normalized coordinates."""
        scalar = np.ndim(u) == 0 and np.ndim(v) == 0
        px = np.asarray(u, dtype=np.float64) * self.width - 0.5
        py = np.asarray(v, dtype=np.float64) * self.height - 0.5

        x0 = np.floor(px)
        y0 = np.floor(py)
        fx = px - x0
        fy = py - y0

        x0 = x0.astype(np.intp)
        y0 = y0.astype(np.intp)
        x0c = np.clip(x0, 0, self.width - 1)
        x1c = np.clip(x0 + 1, 0, self.width - 1)
        y0c = np.clip(y0, 0, self.height - 1)
        y1c = np.clip(y0 + 1, 0, self.height - 1)

        bottom = self.pixels[y0c, x0c] * (1 - fx) + self.pixels[y0c, x1c] * fx
        top = self.pixels[y1c, x0c] * (1 - fx) + self.pixels[y1c, x1c] * fx
        result = bottom * (1 - fy) + top * fy
        return float(result) if scalar else result


def load_grayscale_image(path: Union[str, Path]) -> GrayscaleImage:
    """
    Load an image file as a grayscale brush source.

    The image is converted to 8-bit luminance and flipped so that row 0
    is the bottom row.
    """
    with Image.open(path) as image:
        pixels = np.asarray(image.convert("L"), dtype=np.float64) / 255.0
    return GrayscaleImage(np.flipud(pixels))


def generate_custom_mask(
    image: Optional[GrayscaleImage],
    size: int,
    angle: float = 0.0,
    use_falloff: bool = False,
    use_alpha_falloff: bool = False,
    falloff: Optional[np.ndarray] = None,
) -> Optional[np.ndarray]:
    """
    Generate a mask from a grayscale image.

    The sample point of every cell is rotated around the mask centre
    before sampling, which turns the painted content rather than the
    outline of the mask.

    Args:
        image: Source image, or None when it has been removed
        size: Side length of the mask
        angle: Rotation in degrees
        use_falloff: Combine the image with ``falloff``
        use_alpha_falloff: Multiply the inverted image by ``falloff``
            instead of blending the image towards 1 with it
        falloff: Procedural mask of shape ``(size, size)``, required
            when ``use_falloff`` is set

    Returns:
        ``size`` x ``size`` array indexed ``[x, y]``, or None if the
        image is unavailable
    """
    if image is None:
        logger.debug("Custom brush image unavailable, skipping mask generation")
        return None

    if use_falloff:
        if falloff is None or falloff.shape != (size, size):
            raise ValueError(f"Falloff mask of shape ({size}, {size}) required")
    else:
        falloff = np.zeros((size, size), dtype=np.float64)

    xs, ys = np.meshgrid(
        np.arange(size, dtype=np.float64), np.arange(size, dtype=np.float64), indexing="ij"
    )
    if angle != 0.0:
        xs, ys = rotate_points(xs, ys, size * 0.5, angle)

    grayscale = image.sample_bilinear(xs / size, ys / size)

    if use_falloff and use_alpha_falloff:
        samples = (1.0 - grayscale) * falloff
    else:
        samples = 1.0 - grayscale * (1.0 - falloff)

    return np.clip(samples, 0.0, 1.0)
