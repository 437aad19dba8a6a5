"""
Object Wrapper Module
Projects 3D vertices into texture space so a 2D image can be wrapped onto a
mesh.

Pipeline:
1) compute bounds of the vertex set,
2) project every vertex to a UV under the selected wrap kind,
3) sample the source at that UV and scatter the color into the output at the
   mesh's *existing* UV,
4) one gap-fill pass averages the set neighbours of every unset texel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np
from scipy import ndimage

from .logging_utils import log_once
from .mesh_loader import MeshData
from .mold import Mold
from .runtime_defaults import DEFAULTS, GAP_FILL_KERNEL_SIZE, WRAP_INTENSITY_RANGE
from .sampler import AddressMode, sample_pixels
from .texture_image import TextureImage
from .value_utils import clamp_float, normalize_vector

_LOGGER = logging.getLogger(__name__)

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)


class WrapKind(str, Enum):
    UV = "uv"
    PLANAR = "planar"
    CYLINDRICAL = "cylindrical"
    SPHERICAL = "spherical"
    BOX = "box"
    TRIPLANAR = "triplanar"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


@dataclass(frozen=True, eq=False)
class ProjectionBounds:
    """
    Axis-aligned bounds of a vertex set

    Attributes:
        minimum: (3,) min corner
        maximum: (3,) max corner
    """
    minimum: np.ndarray
    maximum: np.ndarray

    @classmethod
    def from_vertices(cls, vertices) -> "ProjectionBounds":
        v = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        if v.shape[0] == 0:
            zero = np.zeros(3, dtype=np.float64)
            return cls(minimum=zero, maximum=zero.copy())
        return cls(minimum=v.min(axis=0), maximum=v.max(axis=0))

    @property
    def center(self) -> np.ndarray:
        return (self.minimum + self.maximum) * 0.5

    @property
    def size(self) -> np.ndarray:
        return self.maximum - self.minimum

    @property
    def safe_size(self) -> np.ndarray:
        """Size with degenerate (flat) axes replaced by 1 for use as a divisor."""
        s = self.size
        return np.where(s > 1e-12, s, 1.0)

    def corners(self) -> np.ndarray:
        """(8, 3) box corners"""
        lo, hi = self.minimum, self.maximum
        return np.array(
            [[x, y, z] for x in (lo[0], hi[0]) for y in (lo[1], hi[1]) for z in (lo[2], hi[2])],
            dtype=np.float64,
        )


# (vertices, bounds, wrap_direction, normals) -> (N, 2) uv
ProjectorFn = Callable[[np.ndarray, ProjectionBounds, np.ndarray, Optional[np.ndarray]], np.ndarray]


def planar_basis(direction) -> tuple[np.ndarray, np.ndarray]:
    """(right, up) spanning the plane orthogonal to `direction`."""
    d = normalize_vector(direction)
    if d is None:
        d = WORLD_UP.copy()
    right = np.cross(d, WORLD_UP)
    norm = float(np.linalg.norm(right))
    if norm <= 1e-9:
        # Looking straight along the up axis.
        right = np.array([1.0, 0.0, 0.0], dtype=np.float64)
    else:
        right = right / norm
    up = np.cross(right, d)
    up = up / max(float(np.linalg.norm(up)), 1e-12)
    return right, up


def _project_planar(vertices, bounds, wrap_direction, normals):
    right, up = planar_basis(wrap_direction)
    corners = bounds.corners()
    cu = corners @ right
    cv = corners @ up
    span_u = float(cu.max() - cu.min())
    span_v = float(cv.max() - cv.min())
    u = (vertices @ right - float(cu.min())) / (span_u if span_u > 1e-12 else 1.0)
    v = (vertices @ up - float(cv.min())) / (span_v if span_v > 1e-12 else 1.0)
    return np.stack([u, v], axis=1)


def _project_cylindrical(vertices, bounds, wrap_direction, normals):
    offset = vertices - bounds.center
    angle = np.arctan2(offset[:, 2], offset[:, 0])
    height = (vertices[:, 1] - bounds.minimum[1]) / bounds.safe_size[1]
    return np.stack([(angle + np.pi) / (2.0 * np.pi), height], axis=1)


def _project_spherical(vertices, bounds, wrap_direction, normals):
    offset = vertices - bounds.center
    norm = np.linalg.norm(offset, axis=1, keepdims=True)
    unit = np.divide(offset, norm, out=np.zeros_like(offset), where=norm > 1e-12)
    phi = np.arctan2(unit[:, 2], unit[:, 0])
    theta = np.arccos(np.clip(unit[:, 1], -1.0, 1.0))
    return np.stack([(phi + np.pi) / (2.0 * np.pi), theta / np.pi], axis=1)


# dominant axis -> (u axis, v axis)
_PLANE_AXES = {0: (2, 1), 1: (0, 2), 2: (0, 1)}


def _dominant_axis(values: np.ndarray, *, strict: bool) -> np.ndarray:
    a = np.abs(values)
    if strict:
        x_wins = (a[:, 0] > a[:, 1]) & (a[:, 0] > a[:, 2])
        y_wins = ~x_wins & (a[:, 1] > a[:, 2])
    else:
        x_wins = (a[:, 0] >= a[:, 1]) & (a[:, 0] >= a[:, 2])
        y_wins = ~x_wins & (a[:, 1] >= a[:, 2])
    return np.where(x_wins, 0, np.where(y_wins, 1, 2))


def _project_box(vertices, bounds, wrap_direction, normals):
    offset = vertices - bounds.center
    size = bounds.safe_size
    axis = _dominant_axis(offset, strict=False)
    uv = np.empty((vertices.shape[0], 2), dtype=np.float64)
    for dom, (ua, va) in _PLANE_AXES.items():
        m = axis == dom
        uv[m, 0] = offset[m, ua] / size[ua] + 0.5
        uv[m, 1] = offset[m, va] / size[va] + 0.5
    return uv


def _project_triplanar(vertices, bounds, wrap_direction, normals):
    if normals is None or len(normals) != len(vertices):
        # No mesh normals: the offset direction stands in for the normal.
        normals = vertices - bounds.center
    axis = _dominant_axis(np.asarray(normals, dtype=np.float64), strict=True)
    rel = (vertices - bounds.minimum) / bounds.safe_size
    uv = np.empty((vertices.shape[0], 2), dtype=np.float64)
    for dom, (ua, va) in _PLANE_AXES.items():
        m = axis == dom
        uv[m, 0] = rel[m, ua]
        uv[m, 1] = rel[m, va]
    return uv


def _project_uv(vertices, bounds, wrap_direction, normals):
    size = bounds.safe_size
    u = (vertices[:, 0] - bounds.minimum[0]) / size[0]
    v = (vertices[:, 2] - bounds.minimum[2]) / size[2]
    return np.stack([u, v], axis=1)


PROJECTORS: dict[WrapKind, ProjectorFn] = {
    WrapKind.UV: _project_uv,
    WrapKind.PLANAR: _project_planar,
    WrapKind.CYLINDRICAL: _project_cylindrical,
    WrapKind.SPHERICAL: _project_spherical,
    WrapKind.BOX: _project_box,
    WrapKind.TRIPLANAR: _project_triplanar,
}

_missing = set(WrapKind) - set(PROJECTORS)
if _missing:
    raise RuntimeError(f"No projector for: {sorted(k.value for k in _missing)}")


def project_vertices(
    vertices,
    kind: WrapKind | str = WrapKind.UV,
    *,
    wrap_direction: Sequence[float] = (0.0, 1.0, 0.0),
    normals=None,
) -> np.ndarray:
    """
    Project object-local vertices to UV coordinates.

    Bounds are recomputed on every call.

    Returns:
        (N, 2) UV array (not clamped)
    """
    v = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if v.shape[0] == 0:
        return np.zeros((0, 2), dtype=np.float64)
    bounds = ProjectionBounds.from_vertices(v)
    direction = np.asarray(wrap_direction, dtype=np.float64).reshape(-1)
    n = None if normals is None else np.asarray(normals, dtype=np.float64).reshape(-1, 3)
    return PROJECTORS[WrapKind(kind)](v, bounds, direction, n)


def scatter_colors(colors: np.ndarray, mesh_uvs: np.ndarray, size: int) -> np.ndarray:
    """
    Write per-vertex colors into a size x size RGBA buffer at the mesh UVs.

    Texels hit by several vertices keep the color of the last one.
    """
    out = np.zeros((size, size, 4), dtype=np.float64)
    uvs = np.asarray(mesh_uvs, dtype=np.float64).reshape(-1, 2)
    cols = np.asarray(colors, dtype=np.float64).reshape(-1, 4)
    if uvs.shape[0] == 0:
        return out

    finite = np.isfinite(uvs).all(axis=1)
    px = np.zeros(uvs.shape[0], dtype=np.int64)
    py = np.zeros(uvs.shape[0], dtype=np.int64)
    px[finite] = np.floor(uvs[finite, 0] * (size - 1)).astype(np.int64)
    py[finite] = np.floor(uvs[finite, 1] * (size - 1)).astype(np.int64)
    ok = finite & (px >= 0) & (px < size) & (py >= 0) & (py < size)
    if not bool(np.any(ok)):
        return out

    idx = np.flatnonzero(ok)
    linear = py[idx] * size + px[idx]
    # np.unique keeps the first occurrence, so search the reversed order.
    _, first_rev = np.unique(linear[::-1], return_index=True)
    keep = idx[len(idx) - 1 - first_rev]
    out[py[keep], px[keep]] = cols[keep]
    return out


def fill_gaps(pixels: np.ndarray) -> np.ndarray:
    """
    Single gap-fill pass.

    Every texel with alpha exactly 0 takes the mean of its (up to 8)
    neighbours with alpha > 0, read from the buffer before the pass. Texels
    with no such neighbour stay unset.
    """
    src = np.asarray(pixels, dtype=np.float64)
    out = src.copy()
    empty = src[..., 3] == 0.0
    if not bool(np.any(empty)):
        return out

    valid = (src[..., 3] > 0.0).astype(np.float64)
    kernel = np.ones((GAP_FILL_KERNEL_SIZE, GAP_FILL_KERNEL_SIZE), dtype=np.float64)
    kernel[GAP_FILL_KERNEL_SIZE // 2, GAP_FILL_KERNEL_SIZE // 2] = 0.0
    count = ndimage.convolve(valid, kernel, mode="constant", cval=0.0)

    fill = empty & (count > 0.5)
    if not bool(np.any(fill)):
        return out
    for c in range(src.shape[2]):
        total = ndimage.convolve(src[..., c] * valid, kernel, mode="constant", cval=0.0)
        out[..., c][fill] = total[fill] / count[fill]
    return out


class ObjectWrapper:
    """
    Wraps textures and molds onto mesh geometry.

    Holds the wrap kind, the mold intensity used by `apply_mold`, the wrap
    direction (planar only) and the output texture size.
    """

    def __init__(
        self,
        wrap_kind: WrapKind | str = WrapKind.UV,
        intensity: float = 1.0,
        wrap_direction: Sequence[float] = (0.0, 1.0, 0.0),
        texture_size: Optional[int] = None,
    ):
        self.wrap_kind = WrapKind(wrap_kind)
        self.intensity = 1.0
        self.wrap_direction = WORLD_UP.copy()
        self.texture_size = DEFAULTS.texture_size
        self._molds: list[Mold] = []

        self.set_wrap_intensity(intensity)
        self.set_wrap_direction(wrap_direction)
        if texture_size is not None:
            self.set_texture_size(texture_size)

    def set_wrap_kind(self, kind: WrapKind | str) -> None:
        self.wrap_kind = WrapKind(kind)

    def set_wrap_intensity(self, intensity: float) -> None:
        lo, hi = WRAP_INTENSITY_RANGE
        self.intensity = clamp_float(intensity, self.intensity, lo, hi)

    def set_wrap_direction(self, direction: Sequence[float]) -> None:
        d = normalize_vector(direction)
        if d is None:
            _LOGGER.debug("set_wrap_direction ignored: %r", direction)
            return
        self.wrap_direction = d

    def set_texture_size(self, size: int) -> None:
        try:
            value = int(size)
        except (TypeError, ValueError):
            return
        if value >= 1:
            self.texture_size = value

    @property
    def available_molds(self) -> list[Mold]:
        return list(self._molds)

    def add_mold(self, mold: Optional[Mold]) -> None:
        if mold is not None and all(m is not mold for m in self._molds):
            self._molds.append(mold)

    def remove_mold(self, mold: Mold) -> None:
        self._molds = [m for m in self._molds if m is not mold]

    def project_and_wrap(
        self,
        source: Optional[TextureImage],
        vertices,
        mesh_uvs,
        kind: WrapKind | str | None = None,
        output_size: Optional[int] = None,
        normals=None,
    ) -> Optional[TextureImage]:
        """
        Wrap `source` onto a mesh.

        Args:
            source: image to wrap (None -> no-op)
            vertices: (N, 3) object-local positions
            mesh_uvs: (N, 2) existing mesh UVs (index i matches vertex i)
            kind: wrap kind (current wrap kind when None; stored as current)
            output_size: output edge length (texture_size when None)
            normals: optional (N, 3) vertex normals for triplanar

        Returns:
            output_size x output_size image, or None when inputs are missing.
        """
        if source is None or vertices is None or mesh_uvs is None:
            _LOGGER.debug("project_and_wrap skipped: missing source, vertices or mesh UVs")
            return None

        verts = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        uvs = np.asarray(mesh_uvs, dtype=np.float64).reshape(-1, 2)
        if verts.shape[0] == 0 or uvs.shape[0] == 0:
            _LOGGER.debug("project_and_wrap skipped: empty mesh data")
            return None

        if kind is not None:
            self.wrap_kind = WrapKind(kind)
        size = self.texture_size
        if output_size is not None:
            try:
                size = max(1, int(output_size))
            except (TypeError, ValueError):
                size = self.texture_size

        if uvs.shape[0] != verts.shape[0]:
            log_once(
                _LOGGER,
                f"object_wrapper.uv_count:{uvs.shape[0]}:{verts.shape[0]}",
                logging.WARNING,
                "Mesh UV count (%d) differs from vertex count (%d); cycling UVs",
                uvs.shape[0],
                verts.shape[0],
            )
            uvs = uvs[np.arange(verts.shape[0]) % uvs.shape[0]]

        projected = project_vertices(
            verts,
            self.wrap_kind,
            wrap_direction=self.wrap_direction,
            normals=normals,
        )
        colors = sample_pixels(source.pixels, projected, AddressMode.CLAMP)
        scattered = scatter_colors(colors, uvs, size)
        filled = fill_gaps(scattered)

        _LOGGER.debug(
            "project_and_wrap %s: %d vertices -> %dx%d, unset after fill=%d",
            self.wrap_kind.value,
            verts.shape[0],
            size,
            size,
            int(np.count_nonzero(filled[..., 3] == 0.0)),
        )
        return TextureImage(np.clip(filled, 0.0, 1.0))

    def wrap_mesh(
        self,
        source: Optional[TextureImage],
        mesh: Optional[MeshData],
        kind: WrapKind | str | None = None,
        output_size: Optional[int] = None,
    ) -> Optional[TextureImage]:
        if mesh is None or not mesh.has_uv:
            _LOGGER.debug("wrap_mesh skipped: mesh missing or has no UVs")
            return None
        return self.project_and_wrap(
            source,
            mesh.vertices,
            mesh.uv_coords,
            kind=kind,
            output_size=output_size,
            normals=mesh.normals,
        )

    def apply_mold(
        self,
        mold: Optional[Mold],
        vertices,
        mesh_uvs,
        kind: WrapKind | str | None = None,
        output_size: Optional[int] = None,
        normals=None,
    ) -> Optional[TextureImage]:
        """Render the mold onto its own source at the wrap intensity, then wrap it."""
        if mold is None:
            _LOGGER.debug("apply_mold skipped: no mold")
            return None
        molded = mold.apply_to_image(mold.source, self.intensity)
        return self.project_and_wrap(
            molded,
            vertices,
            mesh_uvs,
            kind=kind,
            output_size=output_size,
            normals=normals,
        )
