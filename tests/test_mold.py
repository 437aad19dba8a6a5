import unittest

import numpy as np

from src.core.mold import (
    CORNER_CONTROL_POINTS,
    MOLD_MAPPERS,
    Mold,
    MoldKind,
    default_control_points,
)
from src.core.texture_image import TextureImage, pixel_grid_uv

BLUE = (0.0, 0.0, 1.0, 1.0)
RED = (1.0, 0.0, 0.0, 1.0)


class TestMoldSetup(unittest.TestCase):
    def test_every_kind_has_a_mapper(self):
        self.assertEqual(set(MOLD_MAPPERS), set(MoldKind))

    def test_new_mold_has_corner_points_and_unit_weights(self):
        mold = Mold(TextureImage.solid(2, 2, RED))
        np.testing.assert_allclose(mold.control_points, np.asarray(CORNER_CONTROL_POINTS))
        np.testing.assert_allclose(mold.control_weights, np.ones(4))
        self.assertEqual(len(mold), 4)
        self.assertEqual(mold.name, "New Mold")
        self.assertIs(mold.kind, MoldKind.PLANAR)

    def test_create_uses_kind_presets(self):
        src = TextureImage.solid(2, 2, RED)
        cyl = Mold.create(src, "cylindrical", use_kind_defaults=True)
        np.testing.assert_allclose(cyl.control_points, [[0.0, 0.0], [1.0, 0.1], [1.0, 0.9], [0.0, 1.0]])

        sph = Mold.create(src, MoldKind.SPHERICAL, use_kind_defaults=True)
        np.testing.assert_allclose(sph.control_points, [[0.1, 0.1], [0.9, 0.1], [0.9, 0.9], [0.1, 0.9]])

        cubic = Mold.create(src, MoldKind.CUBIC, use_kind_defaults=True)
        np.testing.assert_allclose(cubic.control_points, np.asarray(CORNER_CONTROL_POINTS))
        self.assertEqual(default_control_points("PLANAR"), list(CORNER_CONTROL_POINTS))

    def test_create_without_source_returns_none(self):
        self.assertIsNone(Mold.create(None, MoldKind.PLANAR))

    def test_update_out_of_range_is_ignored(self):
        mold = Mold(TextureImage.solid(2, 2, RED))
        before = mold.control_points
        self.assertFalse(mold.update_control_point(7, (0.3, 0.3)))
        self.assertFalse(mold.update_control_point(-1, (0.3, 0.3)))
        np.testing.assert_allclose(mold.control_points, before)

    def test_add_control_point_keeps_weights_in_step(self):
        mold = Mold(TextureImage.solid(2, 2, RED), kind=MoldKind.CUSTOM)
        index = mold.add_control_point((0.5, 0.5), weight=3.0)
        self.assertEqual(index, 4)
        self.assertEqual(len(mold), 5)
        self.assertEqual(mold.control_points.shape, (5, 2))
        np.testing.assert_allclose(mold.control_weights, [1.0, 1.0, 1.0, 1.0, 3.0])

    def test_dict_form_keeps_points_and_weights(self):
        src = TextureImage.solid(2, 2, RED)
        mold = Mold(src, name="Bark", kind=MoldKind.CUSTOM)
        mold.add_control_point((0.25, 0.75), weight=2.0)

        data = mold.to_dict()
        self.assertEqual(data["source_size"], [2, 2])
        restored = Mold.from_dict(data, src)
        self.assertEqual(restored.name, "Bark")
        self.assertIs(restored.kind, MoldKind.CUSTOM)
        np.testing.assert_allclose(restored.control_points, mold.control_points)
        np.testing.assert_allclose(restored.control_weights, mold.control_weights)


class TestMoldMapping(unittest.TestCase):
    def test_planar_corners_map_is_identity(self):
        mold = Mold(TextureImage.solid(2, 2, RED))
        uv = pixel_grid_uv(5, 4)
        np.testing.assert_allclose(mold.map_to_mold(uv, 1.0), uv, atol=1e-12)

    def test_planar_mapping_follows_moved_corner(self):
        mold = Mold(TextureImage.solid(2, 2, RED))
        self.assertTrue(mold.update_control_point(2, (0.5, 0.5)))
        np.testing.assert_allclose(mold.map_to_mold((1.0, 1.0), 1.0), [0.5, 0.5])
        np.testing.assert_allclose(mold.map_to_mold((1.0, 1.0), 0.5), [0.75, 0.75])

    def test_zero_intensity_is_identity_for_every_kind(self):
        uv = np.random.default_rng(0).random((10, 2))
        for kind in MoldKind:
            mold = Mold(TextureImage.solid(2, 2, RED), kind=kind)
            np.testing.assert_allclose(mold.map_to_mold(uv, 0.0), uv, atol=1e-12, err_msg=kind.value)

    def test_custom_zero_weights_do_not_produce_nan(self):
        mold = Mold(
            TextureImage.solid(2, 2, RED),
            kind=MoldKind.CUSTOM,
            control_weights=[0.0, 0.0, 0.0, 0.0],
        )
        uv = np.random.default_rng(1).random((6, 2))
        mapped = mold.map_to_mold(uv, 1.0)
        self.assertTrue(np.isfinite(mapped).all())
        np.testing.assert_allclose(mapped, uv)

    def test_custom_pulls_toward_heavy_point(self):
        mold = Mold(TextureImage.solid(2, 2, RED), kind=MoldKind.CUSTOM)
        mold.add_control_point((0.5, 0.5), weight=1000.0)
        mapped = mold.map_to_mold((0.4, 0.4), 1.0)
        self.assertLess(np.linalg.norm(mapped - 0.5), 0.05)


class TestMoldApply(unittest.TestCase):
    def test_apply_full_intensity_replaces_target(self):
        mold = Mold(TextureImage.solid(3, 3, RED))
        out = mold.apply_to_image(TextureImage.solid(4, 5, BLUE), 1.0)
        self.assertEqual(out.shape, (5, 4))
        np.testing.assert_allclose(out.pixels, TextureImage.solid(4, 5, RED).pixels)

    def test_apply_blend_is_scaled_by_intensity_and_alpha(self):
        target = TextureImage.solid(3, 3, BLUE)

        half = Mold(TextureImage.solid(2, 2, RED)).apply_to_image(target, 0.5)
        np.testing.assert_allclose(half.pixel(1, 1), [0.5, 0.0, 0.5, 1.0])

        translucent = Mold(TextureImage.solid(2, 2, (1.0, 0.0, 0.0, 0.5)))
        out = translucent.apply_to_image(target, 1.0)
        np.testing.assert_allclose(out.pixel(1, 1), [0.5, 0.0, 0.5, 0.75])

    def test_apply_intensity_is_clamped_and_missing_target_is_no_op(self):
        mold = Mold(TextureImage.solid(2, 2, RED))
        target = TextureImage.solid(2, 2, BLUE)
        self.assertEqual(mold.apply_to_image(target, 0.0), target)
        self.assertEqual(mold.apply_to_image(target, 3.0), mold.apply_to_image(target, 1.0))
        self.assertIsNone(mold.apply_to_image(None, 1.0))
