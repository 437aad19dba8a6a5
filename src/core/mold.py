"""
Mold Module
Reusable UV-space transform plus reference image that can be stamped onto
other textures.

A mold maps each target coordinate into "mold space" (which routinely leaves
[0, 1]), samples its own source image there with wrap addressing and blends
the result over the target using the mold's alpha.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import numpy as np

from .runtime_defaults import DEFAULTS, MOLD_INTENSITY_RANGE
from .sampler import AddressMode, sample_pixels
from .texture_image import TextureImage, pixel_grid_uv
from .value_utils import clamp_float, coerce_float, coerce_vector

_LOGGER = logging.getLogger(__name__)


class MoldKind(str, Enum):
    PLANAR = "planar"
    CYLINDRICAL = "cylindrical"
    SPHERICAL = "spherical"
    CUBIC = "cubic"
    CUSTOM = "custom"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


# bottom-left, bottom-right, top-right, top-left
CORNER_CONTROL_POINTS: tuple[tuple[float, float], ...] = (
    (0.0, 0.0),
    (1.0, 0.0),
    (1.0, 1.0),
    (0.0, 1.0),
)

_KIND_CONTROL_POINTS: dict[MoldKind, tuple[tuple[float, float], ...]] = {
    MoldKind.CYLINDRICAL: ((0.0, 0.0), (1.0, 0.1), (1.0, 0.9), (0.0, 1.0)),
    MoldKind.SPHERICAL: ((0.1, 0.1), (0.9, 0.1), (0.9, 0.9), (0.1, 0.9)),
}


def default_control_points(kind: MoldKind | str) -> list[tuple[float, float]]:
    """Preset control points for a mold kind (unit-square corners by default)."""
    return list(_KIND_CONTROL_POINTS.get(MoldKind(kind), CORNER_CONTROL_POINTS))


def _lerp(a: np.ndarray, b: np.ndarray, t) -> np.ndarray:
    return a + (b - a) * t


# (uv, intensity, points, weights, epsilon) -> mold uv; uv is (N, 2)
MoldMapper = Callable[[np.ndarray, float, np.ndarray, np.ndarray, float], np.ndarray]


def _map_planar(uv, intensity, points, weights, epsilon):
    if len(points) < 4:
        return uv.copy()
    u = uv[:, 0:1]
    v = uv[:, 1:2]
    bottom = _lerp(points[0], points[1], u)
    top = _lerp(points[3], points[2], u)
    result = _lerp(bottom, top, v)
    return _lerp(uv, result, intensity)


def _map_cylindrical(uv, intensity, points, weights, epsilon):
    angle = uv[:, 0] * 2.0 * np.pi
    cylindrical = np.stack([0.5 + np.cos(angle) * 0.3, uv[:, 1]], axis=1)
    return _lerp(uv, cylindrical, intensity)


def _map_spherical(uv, intensity, points, weights, epsilon):
    phi = uv[:, 0] * 2.0 * np.pi
    theta = uv[:, 1] * np.pi
    spherical = np.stack(
        [
            0.5 + np.sin(theta) * np.cos(phi) * 0.3,
            0.5 + np.cos(theta) * 0.3,
        ],
        axis=1,
    )
    return _lerp(uv, spherical, intensity)


def _map_cubic(uv, intensity, points, weights, epsilon):
    cubic = np.stack(
        [
            uv[:, 0] + (uv[:, 1] - 0.5) ** 3 * 0.2,
            uv[:, 1] + (uv[:, 0] - 0.5) ** 3 * 0.2,
        ],
        axis=1,
    )
    return _lerp(uv, cubic, intensity)


def _map_custom(uv, intensity, points, weights, epsilon):
    if len(points) < 4:
        return uv.copy()
    # Inverse-distance weighting over every control point.
    dist = np.linalg.norm(uv[:, None, :] - points[None, :, :], axis=2)
    w = weights[None, :] / (dist + epsilon)
    total = w.sum(axis=1)
    blended = uv.copy()
    ok = total > 0.0
    if bool(np.any(ok)):
        blended[ok] = (w[ok] @ points) / total[ok, None]
    return _lerp(uv, blended, intensity)


MOLD_MAPPERS: dict[MoldKind, MoldMapper] = {
    MoldKind.PLANAR: _map_planar,
    MoldKind.CYLINDRICAL: _map_cylindrical,
    MoldKind.SPHERICAL: _map_spherical,
    MoldKind.CUBIC: _map_cubic,
    MoldKind.CUSTOM: _map_custom,
}

_missing = set(MoldKind) - set(MOLD_MAPPERS)
if _missing:
    raise RuntimeError(f"No mold mapper for: {sorted(k.value for k in _missing)}")


class Mold:
    """
    Named mold: source image, mold kind and weighted control points.

    Control points and weights always have the same length.
    """

    def __init__(
        self,
        source: TextureImage,
        name: str = "New Mold",
        kind: MoldKind | str = MoldKind.PLANAR,
        control_points: Optional[Sequence[Sequence[float]]] = None,
        control_weights: Optional[Sequence[float]] = None,
        *,
        idw_epsilon: Optional[float] = None,
    ):
        if not isinstance(source, TextureImage):
            raise TypeError("source must be a TextureImage")
        self._source = source
        self.name = str(name)
        self.kind = MoldKind(kind)
        self.idw_epsilon = clamp_float(
            idw_epsilon if idw_epsilon is not None else DEFAULTS.idw_epsilon,
            DEFAULTS.idw_epsilon,
            1e-9,
            1.0,
        )

        points = CORNER_CONTROL_POINTS if control_points is None else control_points
        self._points: list[tuple[float, float]] = [coerce_vector(p, (0.0, 0.0), 2) for p in points]  # type: ignore[misc]

        weights = [] if control_weights is None else [coerce_float(w, 1.0) for w in control_weights]
        if len(weights) < len(self._points):
            weights += [1.0] * (len(self._points) - len(weights))
        self._weights: list[float] = weights[: len(self._points)]

    @classmethod
    def create(
        cls,
        source: Optional[TextureImage],
        kind: MoldKind | str = MoldKind.PLANAR,
        name: str = "Custom Mold",
        points: Optional[Sequence[Sequence[float]]] = None,
        *,
        use_kind_defaults: bool = False,
    ) -> Optional["Mold"]:
        """
        Build a mold, or return None when there is no source image.

        Explicit `points` win; otherwise `use_kind_defaults` selects the preset
        points for `kind` and the unit-square corners are used as a fallback.
        """
        if source is None:
            _LOGGER.debug("Mold.create skipped: no source image")
            return None
        if points is None and use_kind_defaults:
            points = default_control_points(kind)
        return cls(source, name=name, kind=kind, control_points=points)

    @property
    def source(self) -> TextureImage:
        return self._source

    @property
    def control_points(self) -> np.ndarray:
        """(N, 2) copy of the control points"""
        return np.asarray(self._points, dtype=np.float64).reshape(-1, 2)

    @property
    def control_weights(self) -> np.ndarray:
        return np.asarray(self._weights, dtype=np.float64)

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return (
            f"Mold(name={self.name!r}, kind={self.kind.value!r}, "
            f"points={len(self._points)}, source={self._source.width}x{self._source.height})"
        )

    def map_to_mold(self, uv, intensity: float = 1.0) -> np.ndarray:
        """
        Map (..., 2) coordinates into mold space.

        The result is not bounded to [0, 1].
        """
        uv_arr = np.asarray(uv, dtype=np.float64)
        lead_shape = uv_arr.shape[:-1]
        flat = uv_arr.reshape(-1, 2)
        t = coerce_float(intensity, 1.0)
        mapper = MOLD_MAPPERS[self.kind]
        out = mapper(flat, t, self.control_points, self.control_weights, self.idw_epsilon)
        return np.asarray(out, dtype=np.float64).reshape(lead_shape + (2,))

    def apply_to_image(self, target: Optional[TextureImage], intensity: float = 1.0) -> Optional[TextureImage]:
        """
        Stamp the mold onto `target`.

        result = lerp(target, mold_color, intensity * mold_color.alpha)

        Args:
            target: image to stamp (None -> no-op)
            intensity: clamped to [0, 1]

        Returns:
            New image with the target's dimensions, or None.
        """
        if target is None:
            _LOGGER.debug("apply_to_image skipped for mold %r: no target image", self.name)
            return None

        lo, hi = MOLD_INTENSITY_RANGE
        t = clamp_float(intensity, 1.0, lo, hi)

        uv = pixel_grid_uv(target.width, target.height)
        mold_uv = self.map_to_mold(uv, t)
        mold_color = sample_pixels(self._source.pixels, mold_uv, AddressMode.WRAP)

        amount = t * mold_color[..., 3:4]
        base = target.pixels
        result = base + (mold_color - base) * amount
        return TextureImage(np.clip(result, 0.0, 1.0))

    def update_control_point(self, index: int, position: Sequence[float], weight: float = 1.0) -> bool:
        """Move/reweight an existing control point; out-of-range index is ignored."""
        try:
            i = int(index)
        except Exception:
            return False
        if i < 0 or i >= len(self._points):
            _LOGGER.debug("update_control_point ignored: index %s out of range (%d)", index, len(self._points))
            return False
        self._points[i] = coerce_vector(position, self._points[i], 2)  # type: ignore[assignment]
        self._weights[i] = coerce_float(weight, 1.0)
        return True

    def add_control_point(self, position: Sequence[float], weight: float = 1.0) -> int:
        """Append a control point; returns its index."""
        self._points.append(coerce_vector(position, (0.0, 0.0), 2))  # type: ignore[arg-type]
        self._weights.append(coerce_float(weight, 1.0))
        return len(self._points) - 1

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready description (the source pixels are stored separately)."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "control_points": [list(p) for p in self._points],
            "control_weights": list(self._weights),
            "source_size": [self._source.width, self._source.height],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: TextureImage) -> "Mold":
        return cls(
            source,
            name=str(data.get("name", "New Mold")),
            kind=data.get("kind", MoldKind.PLANAR.value),
            control_points=data.get("control_points"),
            control_weights=data.get("control_weights"),
        )
