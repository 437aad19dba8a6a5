"""
Blending Module
Color blend modes and image compositing.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

import numpy as np

from .sampler import AddressMode, sample_pixels
from .texture_image import TextureImage, pixel_grid_uv
from .value_utils import coerce_float


class BlendMode(str, Enum):
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


def blend_colors(a, b, mode: BlendMode | str = BlendMode.NORMAL, amount: float = 1.0) -> np.ndarray:
    """
    Blend (..., 4) colors `b` over `a`.

    Overlay works per channel and keeps the alpha of `a`.
    """
    base = np.asarray(a, dtype=np.float64)
    top = np.asarray(b, dtype=np.float64)
    t = coerce_float(amount, 1.0)
    m = BlendMode(mode)

    if m is BlendMode.MULTIPLY:
        blended = base * top
    elif m is BlendMode.SCREEN:
        blended = 1.0 - (1.0 - base) * (1.0 - top)
    elif m is BlendMode.OVERLAY:
        blended = np.where(base < 0.5, 2.0 * base * top, 1.0 - 2.0 * (1.0 - base) * (1.0 - top))
        blended = blended.copy()
        blended[..., 3] = base[..., 3]
    else:
        blended = top
    return base + (blended - base) * t


def _resampled(image: TextureImage, width: int, height: int) -> np.ndarray:
    if image.width == width and image.height == height:
        return np.asarray(image.pixels, dtype=np.float64)
    return sample_pixels(image.pixels, pixel_grid_uv(width, height), AddressMode.CLAMP)


def blend_images(
    a: Optional[TextureImage],
    b: Optional[TextureImage],
    mode: BlendMode | str = BlendMode.NORMAL,
    amount: float = 1.0,
) -> Optional[TextureImage]:
    """Blend two images; the output takes the larger width and height."""
    if a is None or b is None:
        return None
    width = max(a.width, b.width)
    height = max(a.height, b.height)
    out = blend_colors(_resampled(a, width, height), _resampled(b, width, height), mode, amount)
    return TextureImage(np.clip(out, 0.0, 1.0))


def blend_weighted(
    images: Sequence[Optional[TextureImage]],
    weights: Sequence[float],
    mode: BlendMode | str = BlendMode.NORMAL,
) -> Optional[TextureImage]:
    """
    Accumulate several images with per-image weights.

    Images with a missing entry or non-positive weight are skipped. When no
    weight contributes, the accumulator (transparent black) is returned as is.
    """
    if not images:
        return None
    if weights is None or len(weights) != len(images):
        return images[0]

    present = [img for img in images if img is not None]
    if not present:
        return None
    width = max(img.width for img in present)
    height = max(img.height for img in present)

    acc = np.zeros((height, width, 4), dtype=np.float64)
    total = 0.0
    for img, w in zip(images, weights):
        wv = coerce_float(w, 0.0)
        if img is None or wv <= 0.0:
            continue
        acc = blend_colors(acc, _resampled(img, width, height), mode, wv)
        total += wv

    if total > 0.0:
        acc = acc / total
    return TextureImage(np.clip(acc, 0.0, 1.0))
