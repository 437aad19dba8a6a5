"""
Mesh Loader Module
Mesh data source for the object wrapper.

Supplies vertex positions (object-local), faces, vertex normals and the
mesh's existing UV coordinates. Supports: OBJ, PLY, STL, OFF, GLB/GLTF formats
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import numpy as np

try:
    import trimesh
except ImportError:
    raise ImportError("trimesh is required. Install with: pip install trimesh")


@dataclass
class MeshData:
    """
    Mesh data container

    Attributes:
        vertices: (N, 3) vertex positions in object-local space
        faces: (M, 3) triangle indices
        uv_coords: (N, 2) existing UV coordinates (optional)
        normals: (N, 3) vertex normals (optional)
        unit: coordinate unit ('mm', 'cm', 'm')
        filepath: source file path
    """
    vertices: np.ndarray
    faces: np.ndarray
    uv_coords: Optional[np.ndarray] = None
    normals: Optional[np.ndarray] = None
    unit: str = 'mm'
    filepath: Optional[Path] = None

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int32).reshape(-1, 3)
        if self.uv_coords is not None:
            self.uv_coords = np.asarray(self.uv_coords, dtype=np.float64).reshape(-1, 2)
        if self.normals is not None:
            self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    @property
    def has_uv(self) -> bool:
        return self.uv_coords is not None and len(self.uv_coords) > 0

    @property
    def extents(self) -> np.ndarray:
        """Bounding box size [x, y, z]"""
        if self.n_vertices == 0:
            return np.zeros(3, dtype=np.float64)
        return self.vertices.max(axis=0) - self.vertices.min(axis=0)

    def compute_normals(self, *, force: bool = False) -> None:
        """Area-weighted vertex normals (when missing)."""
        if self.normals is not None and not force:
            return
        normals = np.zeros_like(self.vertices, dtype=np.float64)
        if self.n_faces > 0:
            v0 = self.vertices[self.faces[:, 0]]
            v1 = self.vertices[self.faces[:, 1]]
            v2 = self.vertices[self.faces[:, 2]]
            cross = np.cross(v1 - v0, v2 - v0)
            for k in range(3):
                np.add.at(normals, self.faces[:, k], cross)
        norms = np.linalg.norm(normals, axis=1, keepdims=True)
        norms[norms == 0] = 1  # avoid division by zero
        self.normals = normals / norms


class MeshLoader:
    """Loads meshes through trimesh."""

    SUPPORTED_FORMATS = {
        '.obj': 'Wavefront OBJ',
        '.ply': 'Stanford PLY',
        '.stl': 'STL',
        '.off': 'Object File Format',
        '.glb': 'glTF Binary',
        '.gltf': 'glTF',
    }

    def __init__(self, default_unit: str = 'mm'):
        self.default_unit = default_unit

    def load(self, filepath: Union[str, Path], unit: Optional[str] = None) -> MeshData:
        """
        Load a mesh file.

        Args:
            filepath: mesh path
            unit: coordinate unit (default_unit when None)

        Returns:
            MeshData
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. Supported: {list(self.SUPPORTED_FORMATS.keys())}"
            )

        mesh = trimesh.load(str(path), force='mesh', process=False)
        return self.from_trimesh(mesh, unit=unit or self.default_unit, filepath=path)

    def from_trimesh(self, mesh: "trimesh.Trimesh", *, unit: str = 'mm',
                     filepath: Optional[Path] = None) -> MeshData:
        uv = None
        visual = getattr(mesh, 'visual', None)
        raw_uv = getattr(visual, 'uv', None) if visual is not None else None
        if raw_uv is not None and len(raw_uv) == len(mesh.vertices):
            uv = np.asarray(raw_uv, dtype=np.float64)

        normals = None
        if len(mesh.faces) > 0:
            normals = np.asarray(mesh.vertex_normals, dtype=np.float64)

        return MeshData(
            vertices=np.asarray(mesh.vertices, dtype=np.float64),
            faces=np.asarray(mesh.faces, dtype=np.int32),
            uv_coords=uv,
            normals=normals,
            unit=unit,
            filepath=filepath,
        )

    def get_file_info(self, filepath: Union[str, Path]) -> dict:
        mesh = self.load(filepath)
        ext = mesh.extents
        return {
            'format': self.SUPPORTED_FORMATS.get(Path(filepath).suffix.lower(), 'unknown'),
            'vertices': mesh.n_vertices,
            'faces': mesh.n_faces,
            'has_uv': mesh.has_uv,
            'size': f"{ext[0]:.3f} x {ext[1]:.3f} x {ext[2]:.3f} {mesh.unit}",
        }
