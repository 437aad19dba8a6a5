"""
Texture Image Module
Immutable RGBA float image shared by every transform.

Pixels are stored as an (H, W, 4) float64 array. Row 0 is v = 0 and column 0
is u = 0. Channel values are nominally in [0, 1]; transforms clamp on
write-back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from PIL import Image


@dataclass(frozen=True, eq=False)
class TextureImage:
    """
    RGBA texture value

    Attributes:
        pixels: (H, W, 4) float64 array, read-only
    """
    pixels: np.ndarray

    def __post_init__(self):
        arr = np.array(self.pixels, dtype=np.float64, copy=True)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr, np.ones_like(arr)], axis=2)
        elif arr.ndim == 3 and arr.shape[2] == 3:
            arr = np.concatenate([arr, np.ones(arr.shape[:2] + (1,), dtype=np.float64)], axis=2)
        elif arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"pixels must be HxW, HxWx3 or HxWx4 (got shape {arr.shape})")

        if arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise ValueError("empty image")

        arr.setflags(write=False)
        object.__setattr__(self, "pixels", arr)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        """(height, width)"""
        return self.height, self.width

    def pixel(self, x: int, y: int) -> np.ndarray:
        return np.array(self.pixels[int(y), int(x)], dtype=np.float64)

    def copy(self) -> "TextureImage":
        return TextureImage(self.pixels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextureImage):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def solid(cls, width: int, height: int, color: Sequence[float]) -> "TextureImage":
        rgba = np.asarray(list(color) + [1.0] * (4 - len(color)), dtype=np.float64)[:4]
        arr = np.broadcast_to(rgba, (max(1, int(height)), max(1, int(width)), 4))
        return cls(arr)

    @classmethod
    def from_pil_image(cls, image: Image.Image) -> "TextureImage":
        """PIL Image (any mode) → RGBA floats in [0, 1]"""
        rgba = np.asarray(image.convert("RGBA"), dtype=np.float64) / 255.0
        return cls(rgba)

    def to_pil_image(self) -> Image.Image:
        """RGBA PIL Image (8-bit, clamped)"""
        img = np.clip(self.pixels, 0.0, 1.0) * 255.0
        img = np.round(img).astype(np.uint8)
        return Image.fromarray(img, mode="RGBA")


def pixel_grid_uv(width: int, height: int) -> np.ndarray:
    """
    Normalized coordinate of every pixel as an (H, W, 2) array.

    u = x / (W - 1) and v = y / (H - 1), so the first and last pixel of each
    axis map to 0 and 1 exactly. A single-pixel axis maps to 0.
    """
    w = max(1, int(width))
    h = max(1, int(height))
    if w == 1:
        u = np.zeros((1,), dtype=np.float64)
    else:
        u = np.arange(w, dtype=np.float64) / float(w - 1)
    if h == 1:
        v = np.zeros((1,), dtype=np.float64)
    else:
        v = np.arange(h, dtype=np.float64) / float(h - 1)

    uu, vv = np.meshgrid(u, v)
    return np.stack([uu, vv], axis=2)
