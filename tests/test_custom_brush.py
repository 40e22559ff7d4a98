"""Tests for image-derived brush masks."""

import numpy as np
import pytest
from PIL import Image

from py_sculpt.core.custom_brush import GrayscaleImage, generate_custom_mask, load_grayscale_image
from py_sculpt.core.falloff import generate_falloff
from py_sculpt.core.falloff_curve import FalloffCurve


@pytest.fixture
def mid_gray():
    return GrayscaleImage(np.full((8, 8), 0.5))


class TestGrayscaleImage:
    """Test the bilinear sampler."""

    @pytest.fixture
    def gradient(self):
        # Column 0 black, column 1 white
        return GrayscaleImage(np.array([[0.0, 1.0], [0.0, 1.0]]))

    def test_texel_centres(self, gradient):
        """Test texel centres."""
        assert gradient.sample_bilinear(0.25, 0.5) == pytest.approx(0.0)
        assert gradient.sample_bilinear(0.75, 0.5) == pytest.approx(1.0)

    def test_interpolates_between_texels(self, gradient):
        """Test interpolates between texels."""
        assert gradient.sample_bilinear(0.5, 0.5) == pytest.approx(0.5)

    def test_clamps_outside(self, gradient):
        """Test clamps outside."""
        assert gradient.sample_bilinear(-1.0, 0.5) == pytest.approx(0.0)
        assert gradient.sample_bilinear(2.0, 0.5) == pytest.approx(1.0)

    def test_vectorized(self, gradient):
        """Test vectorized."""
        values = gradient.sample_bilinear(np.array([0.25, 0.5, 0.75]), np.full(3, 0.5))
        np.testing.assert_allclose(values, [0.0, 0.5, 1.0])

    def test_is_square(self):
        """Test is square."""
        assert GrayscaleImage(np.zeros((4, 4))).is_square
        assert not GrayscaleImage(np.zeros((4, 5))).is_square
        assert not GrayscaleImage(np.zeros((4, 4, 3))).is_square


class TestCustomMask:
    """Test mask generation from images."""

    def test_mid_gray_without_falloff_is_uniform(self, mid_gray):
        """Test mid gray without falloff is uniform."""
        for angle in (0.0, 30.0, 90.0, -135.0):
            mask = generate_custom_mask(mid_gray, 16, angle=angle)
            assert mask.shape == (16, 16)
            np.testing.assert_allclose(mask, 0.5)

    def test_black_sculpts_fully_and_white_not_at_all(self):
        """Test black sculpts fully and white not at all."""
        black = generate_custom_mask(GrayscaleImage(np.zeros((4, 4))), 8)
        white = generate_custom_mask(GrayscaleImage(np.ones((4, 4))), 8)
        np.testing.assert_allclose(black, 1.0)
        np.testing.assert_allclose(white, 0.0)

    def test_missing_image_gives_no_result(self):
        """Test missing image gives no result."""
        assert generate_custom_mask(None, 8) is None

    def test_falloff_required_when_enabled(self, mid_gray):
        """Test falloff required when enabled."""
        with pytest.raises(ValueError):
            generate_custom_mask(mid_gray, 8, use_falloff=True)
        with pytest.raises(ValueError):
            generate_custom_mask(mid_gray, 8, use_falloff=True, falloff=np.ones((4, 4)))

    def test_falloff_blend(self, mid_gray):
        """Test falloff blend."""
        falloff = generate_falloff(9, curve=FalloffCurve.linear())
        mask = generate_custom_mask(mid_gray, 9, use_falloff=True, falloff=falloff)
        np.testing.assert_allclose(mask, 1.0 - 0.5 * (1.0 - falloff))

    def test_alpha_falloff(self, mid_gray):
        """Test alpha falloff."""
        falloff = generate_falloff(9, curve=FalloffCurve.linear())
        mask = generate_custom_mask(mid_gray, 9, use_falloff=True, use_alpha_falloff=True, falloff=falloff)
        np.testing.assert_allclose(mask, 0.5 * falloff)

    def test_alpha_flag_ignored_without_falloff(self, mid_gray):
        """Test alpha flag ignored without falloff."""
        mask = generate_custom_mask(mid_gray, 9, use_alpha_falloff=True)
        np.testing.assert_allclose(mask, 0.5)


class TestLoadGrayscaleImage:
    """Test loading brush images with Pillow."""

    def test_load_flips_rows(self, tmp_path):
        """Test load flips rows."""
        pixels = np.zeros((4, 4), dtype=np.uint8)
        pixels[0, :] = 255  # top row in image space
        path = tmp_path / "stripe.png"
        Image.fromarray(pixels).save(path)

        image = load_grayscale_image(path)

        assert image.is_square
        np.testing.assert_allclose(image.pixels[-1], 1.0)
        np.testing.assert_allclose(image.pixels[0], 0.0)

    def test_load_converts_color(self, tmp_path):
        """Test load converts color."""
        path = tmp_path / "red.png"
        Image.new("RGB", (6, 6), (255, 255, 255)).save(path)

        image = load_grayscale_image(path)

        assert image.pixels.shape == (6, 6)
        np.testing.assert_allclose(image.pixels, 1.0)
