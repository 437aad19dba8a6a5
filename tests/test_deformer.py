import unittest

import numpy as np

from src.core.deformer import (
    WARP_HANDLERS,
    DeformationKind,
    DeformationParameters,
    TextureDeformer,
    compute_falloff,
    deform_image,
    warp_coordinates,
)
from src.core.texture_image import TextureImage, pixel_grid_uv


def _noise_image(width: int, height: int, seed: int = 0) -> TextureImage:
    rng = np.random.default_rng(seed)
    return TextureImage(rng.random((height, width, 4)))


class TestDeformationParameters(unittest.TestCase):
    def test_every_kind_has_a_handler(self):
        self.assertEqual(set(WARP_HANDLERS), set(DeformationKind))

    def test_parameters_are_coerced_and_clamped(self):
        p = DeformationParameters(kind="Twist", intensity=5.0, center=(0.2, 0.7), radius=0.0)
        self.assertIs(p.kind, DeformationKind.TWIST)
        self.assertEqual(p.intensity, 2.0)
        self.assertEqual(p.radius, 0.01)
        self.assertEqual(p.center, (0.2, 0.7))

        q = DeformationParameters(intensity=float("nan"), center="bad", radius=9.0)
        self.assertEqual(q.intensity, 0.5)
        self.assertEqual(q.center, (0.5, 0.5))
        self.assertEqual(q.radius, 1.0)

    def test_falloff_is_one_at_center_and_zero_at_radius(self):
        r = 0.3
        np.testing.assert_allclose(compute_falloff(0.0, r), 1.0)
        np.testing.assert_allclose(compute_falloff(r, r), 0.0)
        np.testing.assert_allclose(compute_falloff(2.0 * r, r), 0.0)
        np.testing.assert_allclose(compute_falloff(r / 2.0, r), 0.25)


class TestWarps(unittest.TestCase):
    def test_warp_is_continuous_at_the_radius(self):
        radius = 0.25
        center = np.array([0.5, 0.5])
        angles = np.linspace(0.0, 2.0 * np.pi, num=16, endpoint=False)
        edge = center + (radius - 1e-9) * np.stack([np.cos(angles), np.sin(angles)], axis=1)

        for kind in DeformationKind:
            params = DeformationParameters(kind=kind, intensity=2.0, center=(0.5, 0.5), radius=radius)
            np.testing.assert_allclose(warp_coordinates(edge, params), edge, atol=1e-6, err_msg=kind.value)

    def test_twist_handler_is_reversible(self):
        rng = np.random.default_rng(3)
        center = np.array([0.5, 0.5])
        uv = rng.random((20, 2))
        strength = rng.random(20) * 2.0

        twist = WARP_HANDLERS[DeformationKind.TWIST]
        forward = twist(uv, uv - center, strength, center)
        back = twist(forward, forward - center, -strength, center)
        np.testing.assert_allclose(back, uv, atol=1e-12)


class TestTextureDeformer(unittest.TestCase):
    def test_pixels_outside_radius_are_bit_identical(self):
        rng = np.random.default_rng(11)
        deformer = TextureDeformer()
        kinds = list(DeformationKind)

        for trial in range(64):
            width, height = (int(n) for n in rng.integers(2, 24, size=2))
            source = TextureImage(rng.random((height, width, 4)))
            params = DeformationParameters(
                kind=kinds[trial % len(kinds)],
                intensity=float(rng.uniform(0.0, 2.0)),
                center=tuple(float(c) for c in rng.uniform(0.0, 1.0, size=2)),
                radius=float(rng.uniform(0.01, 1.0)),
            )
            out = deformer.deform(source, params)
            self.assertEqual(out.shape, source.shape)

            uv = pixel_grid_uv(width, height)
            outside = np.linalg.norm(uv - np.asarray(params.center), axis=2) > params.radius
            self.assertTrue(
                np.array_equal(out.pixels[outside], source.pixels[outside]),
                msg=f"trial {trial}: {params}",
            )

    def test_uniform_red_bulge_stays_red(self):
        red = TextureImage.solid(4, 4, (1.0, 0.0, 0.0, 1.0))
        params = DeformationParameters(kind=DeformationKind.BULGE, intensity=1.0, center=(0.5, 0.5), radius=1.0)
        out = TextureDeformer().deform(red, params)
        np.testing.assert_allclose(out.pixels, red.pixels, atol=1e-12)

    def test_output_is_clamped_to_unit_range(self):
        source = TextureImage(np.full((8, 8, 4), 0.5))
        for kind in DeformationKind:
            out = deform_image(source, DeformationParameters(kind=kind, intensity=2.0, radius=1.0))
            self.assertGreaterEqual(out.pixels.min(), 0.0)
            self.assertLessEqual(out.pixels.max(), 1.0)

    def test_missing_source_is_a_no_op(self):
        self.assertIsNone(TextureDeformer().deform(None, DeformationParameters()))
        self.assertIsNone(TextureDeformer().deform_sequence(None, [DeformationParameters()]))

    def test_custom_kind_is_identity_without_handler(self):
        source = _noise_image(9, 9, seed=1)
        params = DeformationParameters(kind=DeformationKind.CUSTOM, intensity=1.0, radius=1.0)
        out = TextureDeformer().deform(source, params)
        np.testing.assert_allclose(out.pixels, source.pixels, atol=1e-12)

    def test_custom_handler_is_used_for_custom_kind(self):
        source = _noise_image(9, 9, seed=2)

        def to_center(uv, offset, strength, center):
            return np.broadcast_to(center, uv.shape)

        params = DeformationParameters(kind=DeformationKind.CUSTOM, intensity=1.0, center=(0.5, 0.5), radius=1.0)
        out = TextureDeformer(custom_warp=to_center).deform(source, params)

        # Every pixel within the radius samples the center texel.
        np.testing.assert_allclose(out.pixels[4, 4], source.pixels[4, 4], atol=1e-12)
        np.testing.assert_allclose(out.pixels[0, 4], source.pixels[4, 4], atol=1e-12)

    def test_sequence_applies_steps_in_order(self):
        source = _noise_image(12, 12, seed=4)
        steps = [
            DeformationParameters(kind=DeformationKind.TWIST, intensity=0.7),
            DeformationParameters(kind=DeformationKind.PINCH, intensity=0.4, center=(0.3, 0.6)),
        ]
        deformer = TextureDeformer()
        expected = deformer.deform(deformer.deform(source, steps[0]), steps[1])
        self.assertEqual(deformer.deform_sequence(source, steps), expected)
        self.assertEqual(deformer.deform_sequence(source, []), source)


if __name__ == "__main__":
    unittest.main()
