import unittest

import numpy as np

from src.core.blending import BlendMode, blend_colors, blend_images, blend_weighted
from src.core.texture_image import TextureImage

A = np.array([0.2, 0.6, 0.4, 1.0])
B = np.array([0.5, 0.5, 1.0, 0.5])
RED = (1.0, 0.0, 0.0, 1.0)
BLUE = (0.0, 0.0, 1.0, 1.0)


class TestBlendColors(unittest.TestCase):
    def test_blend_mode_accepts_names(self):
        self.assertIs(BlendMode("Multiply"), BlendMode.MULTIPLY)
        self.assertIs(BlendMode("overlay"), BlendMode.OVERLAY)

    def test_normal_multiply_screen(self):
        np.testing.assert_allclose(blend_colors(A, B, BlendMode.NORMAL, 1.0), B)
        np.testing.assert_allclose(blend_colors(A, B, BlendMode.MULTIPLY, 1.0), A * B)
        np.testing.assert_allclose(blend_colors(A, B, BlendMode.SCREEN, 1.0), 1 - (1 - A) * (1 - B))
        np.testing.assert_allclose(blend_colors(A, B, BlendMode.NORMAL, 0.0), A)
        np.testing.assert_allclose(blend_colors(A, B, BlendMode.NORMAL, 0.5), (A + B) / 2.0)

    def test_overlay_is_per_channel_and_keeps_base_alpha(self):
        out = blend_colors(A, B, BlendMode.OVERLAY, 1.0)
        np.testing.assert_allclose(out[0], 2 * 0.2 * 0.5)
        np.testing.assert_allclose(out[1], 1 - 2 * (1 - 0.6) * (1 - 0.5))
        np.testing.assert_allclose(out[2], 2 * 0.4 * 1.0)
        np.testing.assert_allclose(out[3], 1.0)


class TestBlendImages(unittest.TestCase):
    def test_blend_images_takes_the_larger_size(self):
        a = TextureImage.solid(2, 2, RED)
        b = TextureImage.solid(4, 3, BLUE)
        out = blend_images(a, b, "normal", 0.5)
        self.assertEqual(out.width, 4)
        self.assertEqual(out.height, 3)
        np.testing.assert_allclose(out.pixel(3, 2), [0.5, 0.0, 0.5, 1.0])

    def test_blend_images_missing_input(self):
        a = TextureImage.solid(2, 2, RED)
        self.assertIsNone(blend_images(a, None))
        self.assertIsNone(blend_images(None, a))

    def test_blend_weighted_skips_non_positive_weights(self):
        red = TextureImage.solid(2, 2, RED)
        blue = TextureImage.solid(2, 2, BLUE)
        self.assertEqual(blend_weighted([red, blue], [0.0, 1.0]), blue)

        empty = blend_weighted([red, blue], [0.0, -1.0])
        np.testing.assert_allclose(empty.pixels, 0.0)

    def test_blend_weighted_length_mismatch_returns_first(self):
        red = TextureImage.solid(2, 2, RED)
        blue = TextureImage.solid(2, 2, BLUE)
        self.assertIs(blend_weighted([red, blue], [1.0]), red)
        self.assertIsNone(blend_weighted([], []))
