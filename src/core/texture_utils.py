"""
Texture Utilities
Small whole-image helpers (resize, crop, color adjustments, normal maps).

Every helper returns a new TextureImage; a missing input returns None.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .sampler import AddressMode, sample_pixels
from .texture_image import TextureImage, pixel_grid_uv
from .value_utils import coerce_float


def resize_image(source: Optional[TextureImage], width: int, height: int) -> Optional[TextureImage]:
    if source is None:
        return None
    w = max(1, int(width))
    h = max(1, int(height))
    out = sample_pixels(source.pixels, pixel_grid_uv(w, h), AddressMode.CLAMP)
    return TextureImage(out)


def crop_image(
    source: Optional[TextureImage],
    start_x: int,
    start_y: int,
    width: int,
    height: int,
) -> Optional[TextureImage]:
    """Crop with the rectangle clamped to the source bounds (at least 1x1)."""
    if source is None:
        return None
    x0 = int(np.clip(int(start_x), 0, source.width - 1))
    y0 = int(np.clip(int(start_y), 0, source.height - 1))
    w = int(np.clip(int(width), 1, source.width - x0))
    h = int(np.clip(int(height), 1, source.height - y0))
    return TextureImage(source.pixels[y0:y0 + h, x0:x0 + w])


def apply_color_filter(
    source: Optional[TextureImage],
    color: Sequence[float],
    intensity: float = 1.0,
) -> Optional[TextureImage]:
    if source is None:
        return None
    rgba = np.asarray(list(color) + [1.0] * (4 - len(color)), dtype=np.float64)[:4]
    t = coerce_float(intensity, 1.0)
    base = source.pixels
    filtered = base * rgba
    return TextureImage(np.clip(base + (filtered - base) * t, 0.0, 1.0))


def adjust_brightness_contrast(
    source: Optional[TextureImage],
    brightness: float,
    contrast: float,
) -> Optional[TextureImage]:
    """Contrast around 0.5, then brightness offset; alpha is left alone."""
    if source is None:
        return None
    b = coerce_float(brightness, 0.0)
    c = coerce_float(contrast, 1.0)
    out = np.array(source.pixels, dtype=np.float64, copy=True)
    rgb = (out[..., :3] - 0.5) * c + 0.5 + b
    out[..., :3] = np.clip(rgb, 0.0, 1.0)
    return TextureImage(out)


def create_normal_map(height_map: Optional[TextureImage], strength: float = 1.0) -> Optional[TextureImage]:
    """
    Tangent-space normal map from the grey level of `height_map`.

    Gradients use central differences with edge clamping; dy follows
    increasing v (row index).
    """
    if height_map is None:
        return None
    s = coerce_float(strength, 1.0)
    gray = np.mean(height_map.pixels[..., :3], axis=2)
    padded = np.pad(gray, 1, mode="edge")
    dx = (padded[1:-1, 2:] - padded[1:-1, :-2]) * s
    dy = (padded[2:, 1:-1] - padded[:-2, 1:-1]) * s

    normal = np.stack([-dx, -dy, np.ones_like(gray)], axis=2)
    normal /= np.linalg.norm(normal, axis=2, keepdims=True)
    rgb = normal * 0.5 + 0.5
    alpha = np.ones(gray.shape + (1,), dtype=np.float64)
    return TextureImage(np.concatenate([rgb, alpha], axis=2))


def average_color(image: Optional[TextureImage]) -> np.ndarray:
    if image is None:
        return np.zeros(4, dtype=np.float64)
    return image.pixels.reshape(-1, 4).mean(axis=0)


def is_grayscale(image: Optional[TextureImage], tolerance: float = 0.01) -> bool:
    if image is None:
        return False
    rgb = image.pixels[..., :3]
    spread = rgb.max(axis=2) - rgb.min(axis=2)
    return bool(np.all(spread <= coerce_float(tolerance, 0.01)))
