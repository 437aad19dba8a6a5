import tempfile
import unittest
from pathlib import Path

import numpy as np
import trimesh

from src.core.mesh_loader import MeshData, MeshLoader


class TestMeshData(unittest.TestCase):
    def test_normals_for_single_triangle(self):
        mesh = MeshData(
            vertices=[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            faces=[[0, 1, 2]],
        )
        self.assertEqual(mesh.n_vertices, 3)
        self.assertEqual(mesh.n_faces, 1)
        self.assertFalse(mesh.has_uv)
        np.testing.assert_allclose(mesh.extents, [1.0, 1.0, 0.0])

        mesh.compute_normals()
        np.testing.assert_allclose(mesh.normals, np.tile([0.0, 0.0, 1.0], (3, 1)))


class TestMeshLoader(unittest.TestCase):
    def test_from_trimesh_box(self):
        box = trimesh.creation.box(extents=(2.0, 4.0, 6.0))
        mesh = MeshLoader().from_trimesh(box)
        self.assertEqual(mesh.n_vertices, 8)
        self.assertEqual(mesh.n_faces, 12)
        self.assertEqual(mesh.normals.shape, (8, 3))
        self.assertFalse(mesh.has_uv)
        np.testing.assert_allclose(mesh.extents, [2.0, 4.0, 6.0])

    def test_from_trimesh_keeps_matching_uvs(self):
        box = trimesh.creation.box()
        uv = np.random.default_rng(0).random((len(box.vertices), 2))
        textured = trimesh.Trimesh(
            vertices=box.vertices,
            faces=box.faces,
            visual=trimesh.visual.TextureVisuals(uv=uv),
            process=False,
        )
        mesh = MeshLoader().from_trimesh(textured)
        self.assertTrue(mesh.has_uv)
        np.testing.assert_allclose(mesh.uv_coords, uv)

    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "box.ply"
            trimesh.creation.box().export(str(path))

            loader = MeshLoader(default_unit="cm")
            mesh = loader.load(path)
            info = loader.get_file_info(path)

        self.assertEqual(mesh.n_faces, 12)
        self.assertEqual(mesh.unit, "cm")
        self.assertEqual(info["faces"], 12)
        self.assertEqual(info["format"], "Stanford PLY")

    def test_load_rejects_missing_and_unsupported(self):
        loader = MeshLoader()
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FileNotFoundError):
                loader.load(Path(td) / "nope.obj")

            other = Path(td) / "mesh.xyz"
            other.write_text("0 0 0\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                loader.load(other)
