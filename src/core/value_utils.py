"""
Scalar/vector coercion helpers.

Public entry points accept loosely typed values from UIs and config files.
Unreadable or non-finite numbers fall back to a default instead of raising.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


def coerce_float(value: object, default: float) -> float:
    try:
        v = float(value)  # type: ignore[arg-type]
    except Exception:
        return float(default)
    if not np.isfinite(v):
        return float(default)
    return v


def clamp_float(value: object, default: float, lo: float, hi: float) -> float:
    return float(np.clip(coerce_float(value, default), lo, hi))


def coerce_vector(value: object, default: Sequence[float], size: int) -> tuple[float, ...]:
    """
    Returns a tuple of `size` finite floats, or `default` when `value` can't be
    read as such.
    """
    try:
        arr = np.asarray(value, dtype=np.float64).reshape(-1)
    except Exception:
        return tuple(float(v) for v in default)
    if arr.size != size or not np.isfinite(arr).all():
        return tuple(float(v) for v in default)
    return tuple(float(v) for v in arr)


def normalize_vector(value: object) -> Optional[np.ndarray]:
    """Unit-length copy of a 3-vector, or None for zero/invalid input."""
    try:
        arr = np.asarray(value, dtype=np.float64).reshape(-1)
    except Exception:
        return None
    if arr.size != 3 or not np.isfinite(arr).all():
        return None
    norm = float(np.linalg.norm(arr))
    if norm <= 1e-12:
        return None
    return arr / norm
