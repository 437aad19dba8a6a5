"""
Sampler Module
Bilinear texture lookup with clamp or wrap addressing.

All other components read pixels through `sample`. Coordinates are normalized
(u, v) pairs; addressing decides what happens outside [0, 1].
"""

from __future__ import annotations

from enum import Enum

import numpy as np
from scipy import ndimage

from .texture_image import TextureImage


class AddressMode(str, Enum):
    CLAMP = "clamp"
    WRAP = "wrap"


def _sanitize_uv(uv: np.ndarray, mode: AddressMode) -> np.ndarray:
    if mode is AddressMode.WRAP:
        uv = np.nan_to_num(uv, nan=0.0, posinf=0.0, neginf=0.0)
        # [0, 1) so -0.01 and 0.99 land on the same texel.
        uv = np.mod(uv, 1.0)
        return np.where(uv >= 1.0, 0.0, uv)
    uv = np.nan_to_num(uv, nan=0.0, posinf=1.0, neginf=0.0)
    return np.clip(uv, 0.0, 1.0)


def sample_pixels(pixels: np.ndarray, uv: np.ndarray, addressing: AddressMode | str = AddressMode.CLAMP) -> np.ndarray:
    """
    Bilinear lookup on a raw (H, W, C) array.

    Args:
        pixels: (H, W, C) source buffer
        uv: (..., 2) normalized coordinates
        addressing: clamp or wrap

    Returns:
        (..., C) sampled colors
    """
    mode = AddressMode(addressing)
    src = np.asarray(pixels, dtype=np.float64)
    h, w, channels = int(src.shape[0]), int(src.shape[1]), int(src.shape[2])

    uv_arr = np.asarray(uv, dtype=np.float64)
    lead_shape = uv_arr.shape[:-1]
    flat = _sanitize_uv(uv_arr.reshape(-1, 2), mode)

    xx = flat[:, 0] * float(max(0, w - 1))
    yy = flat[:, 1] * float(max(0, h - 1))
    coords = np.vstack([yy, xx])

    # order=1 is plain bilinear: floor, four taps, lerp along x then y.
    nd_mode = "grid-wrap" if mode is AddressMode.WRAP else "nearest"
    out = np.empty((flat.shape[0], channels), dtype=np.float64)
    for c in range(channels):
        out[:, c] = ndimage.map_coordinates(
            src[..., c],
            coords,
            order=1,
            mode=nd_mode,
        )
    return out.reshape(lead_shape + (channels,))


def sample(image: TextureImage, uv, addressing: AddressMode | str = AddressMode.CLAMP) -> np.ndarray:
    """
    Sample an image at one (u, v) pair or at an array of them.

    Returns a (4,) color for a single coordinate, (..., 4) otherwise.
    """
    uv_arr = np.asarray(uv, dtype=np.float64)
    if uv_arr.shape[-1:] != (2,):
        raise ValueError(f"uv must have a trailing axis of 2 (got shape {uv_arr.shape})")
    return sample_pixels(image.pixels, uv_arr, addressing)
