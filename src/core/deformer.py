"""
Texture Deformer Module
Localized geometric warps (bend, twist, spherize, ...) with radial falloff.

Each output pixel looks up its source coordinate through one of the warp
handlers below and is resampled with clamp addressing. Pixels outside the
radius disk keep their source value untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

import numpy as np

from .runtime_defaults import (
    DEFAULT_DEFORMATION_CENTER,
    DEFAULT_DEFORMATION_INTENSITY,
    DEFAULT_DEFORMATION_RADIUS,
    DEFORMATION_INTENSITY_RANGE,
    DEFORMATION_RADIUS_RANGE,
)
from .sampler import AddressMode, sample_pixels
from .texture_image import TextureImage, pixel_grid_uv
from .value_utils import clamp_float, coerce_vector

_LOGGER = logging.getLogger(__name__)


class DeformationKind(str, Enum):
    BEND = "bend"
    TWIST = "twist"
    SPHERIZE = "spherize"
    CYLINDRICAL = "cylindrical"
    WAVE = "wave"
    PINCH = "pinch"
    BULGE = "bulge"
    CUSTOM = "custom"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


@dataclass(frozen=True)
class DeformationParameters:
    """
    One warp application

    Attributes:
        kind: warp function
        intensity: strength, clamped to [0, 2]
        center: (u, v) center of the effect
        radius: effect radius in UV units, clamped to [0.01, 1]
    """
    kind: DeformationKind = DeformationKind.BEND
    intensity: float = DEFAULT_DEFORMATION_INTENSITY
    center: tuple[float, float] = field(default=DEFAULT_DEFORMATION_CENTER)
    radius: float = DEFAULT_DEFORMATION_RADIUS

    def __post_init__(self):
        object.__setattr__(self, "kind", DeformationKind(self.kind))
        lo, hi = DEFORMATION_INTENSITY_RANGE
        object.__setattr__(
            self, "intensity", clamp_float(self.intensity, DEFAULT_DEFORMATION_INTENSITY, lo, hi)
        )
        lo, hi = DEFORMATION_RADIUS_RANGE
        object.__setattr__(self, "radius", clamp_float(self.radius, DEFAULT_DEFORMATION_RADIUS, lo, hi))
        object.__setattr__(self, "center", coerce_vector(self.center, DEFAULT_DEFORMATION_CENTER, 2))


# (uv, offset, strength, center) -> warped uv; arrays are (N, 2) / (N,) / (2,)
WarpFn = Callable[[np.ndarray, np.ndarray, np.ndarray, np.ndarray], np.ndarray]


def _warp_bend(uv, offset, strength, center):
    s = (strength * 0.5)[:, None]
    return uv + offset[:, ::-1] * s


def _warp_twist(uv, offset, strength, center):
    angle = strength * np.pi
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)
    x = offset[:, 0] * cos_a - offset[:, 1] * sin_a
    y = offset[:, 0] * sin_a + offset[:, 1] * cos_a
    return center + np.stack([x, y], axis=1)


def _warp_spherize(uv, offset, strength, center):
    dist = np.linalg.norm(offset, axis=1)
    direction = np.zeros_like(offset)
    nz = dist > 1e-12
    direction[nz] = offset[nz] / dist[nz, None]
    new_dist = dist + (strength * 0.5 - dist) * strength
    return center + direction * new_dist[:, None]


def _warp_cylindrical(uv, offset, strength, center):
    out = uv.copy()
    out[:, 1] += np.sin(offset[:, 0] * 2.0 * np.pi) * strength * 0.1
    return out


def _warp_wave(uv, offset, strength, center):
    s = strength * 0.1
    wave_x = np.sin(uv[:, 1] * 4.0 * np.pi) * s
    wave_y = np.sin(uv[:, 0] * 4.0 * np.pi) * s
    return uv + np.stack([wave_x, wave_y], axis=1)


def _warp_pinch(uv, offset, strength, center):
    return center + offset * (1.0 - strength * 0.8)[:, None]


def _warp_bulge(uv, offset, strength, center):
    return center + offset * (1.0 + strength * 0.8)[:, None]


def _warp_identity(uv, offset, strength, center):
    return uv.copy()


WARP_HANDLERS: dict[DeformationKind, WarpFn] = {
    DeformationKind.BEND: _warp_bend,
    DeformationKind.TWIST: _warp_twist,
    DeformationKind.SPHERIZE: _warp_spherize,
    DeformationKind.CYLINDRICAL: _warp_cylindrical,
    DeformationKind.WAVE: _warp_wave,
    DeformationKind.PINCH: _warp_pinch,
    DeformationKind.BULGE: _warp_bulge,
    DeformationKind.CUSTOM: _warp_identity,
}

_missing = set(DeformationKind) - set(WARP_HANDLERS)
if _missing:
    raise RuntimeError(f"No warp handler for: {sorted(k.value for k in _missing)}")


def compute_falloff(distance, radius: float) -> np.ndarray:
    """(1 - d/r)^2 inside the radius, 0 at and beyond it."""
    d = np.asarray(distance, dtype=np.float64)
    r = max(float(radius), 1e-12)
    t = np.clip(1.0 - d / r, 0.0, 1.0)
    return t * t


def warp_coordinates(
    uv,
    params: DeformationParameters,
    custom_warp: Optional[WarpFn] = None,
) -> np.ndarray:
    """
    Source-space coordinate for each uv (identity outside the radius).

    Args:
        uv: (..., 2) normalized coordinates
        params: deformation parameters
        custom_warp: handler used for DeformationKind.CUSTOM

    Returns:
        (..., 2) warped coordinates
    """
    uv_arr = np.asarray(uv, dtype=np.float64)
    lead_shape = uv_arr.shape[:-1]
    flat = uv_arr.reshape(-1, 2)
    out = flat.copy()

    center = np.asarray(params.center, dtype=np.float64)
    offset = flat - center
    distance = np.linalg.norm(offset, axis=1)
    inside = distance <= params.radius
    if not bool(np.any(inside)):
        return out.reshape(lead_shape + (2,))

    strength = params.intensity * compute_falloff(distance[inside], params.radius)
    handler = WARP_HANDLERS[params.kind]
    if params.kind is DeformationKind.CUSTOM and custom_warp is not None:
        handler = custom_warp

    warped = np.asarray(handler(flat[inside], offset[inside], strength, center), dtype=np.float64)
    out[inside] = warped.reshape(-1, 2)
    return out.reshape(lead_shape + (2,))


class TextureDeformer:
    """
    Applies DeformationParameters to whole images.

    The deformer is stateless apart from the optional custom warp handler, so
    one instance can be shared across images.
    """

    def __init__(self, custom_warp: Optional[WarpFn] = None):
        self.custom_warp = custom_warp

    def deform(self, source: Optional[TextureImage], params: DeformationParameters) -> Optional[TextureImage]:
        """
        Deform an image.

        Args:
            source: input image (None -> no-op)
            params: deformation parameters

        Returns:
            New image with identical dimensions, or None when source is missing.
        """
        if source is None:
            _LOGGER.debug("deform skipped: no source image")
            return None

        uv = pixel_grid_uv(source.width, source.height)
        center = np.asarray(params.center, dtype=np.float64)
        distance = np.linalg.norm(uv - center, axis=2)
        inside = distance <= params.radius

        out = np.array(source.pixels, dtype=np.float64, copy=True)
        n_inside = int(inside.sum())
        if n_inside > 0:
            src_uv = warp_coordinates(uv[inside], params, custom_warp=self.custom_warp)
            sampled = sample_pixels(source.pixels, src_uv, AddressMode.CLAMP)
            out[inside] = np.clip(sampled, 0.0, 1.0)

        _LOGGER.debug(
            "deform %s: intensity=%.3f radius=%.3f touched=%d/%d",
            params.kind.value,
            params.intensity,
            params.radius,
            n_inside,
            source.width * source.height,
        )
        return TextureImage(out)

    def deform_sequence(
        self,
        source: Optional[TextureImage],
        steps: Iterable[DeformationParameters],
    ) -> Optional[TextureImage]:
        """Apply several deformations in order; each step reads the previous result."""
        if source is None or steps is None:
            return None
        result: Optional[TextureImage] = source
        for step in steps:
            result = self.deform(result, step)
        return result


def deform_image(source: Optional[TextureImage], params: DeformationParameters) -> Optional[TextureImage]:
    return TextureDeformer().deform(source, params)
