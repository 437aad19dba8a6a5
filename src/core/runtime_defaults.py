"""
Runtime defaults for texture processing.

Values can be overridden via environment variables to avoid hardcoded tuning
in multiple entrypoints.
"""

from __future__ import annotations

from dataclasses import dataclass
import os


ENV_TEXTURE_SIZE = "MOLDWRAP_TEXTURE_SIZE"
ENV_MAX_HISTORY = "MOLDWRAP_MAX_HISTORY"
ENV_IDW_EPSILON = "MOLDWRAP_IDW_EPSILON"

# Deformation settings used when the caller does not supply any.
DEFAULT_DEFORMATION_INTENSITY = 0.5
DEFAULT_DEFORMATION_CENTER = (0.5, 0.5)
DEFAULT_DEFORMATION_RADIUS = 0.3

DEFORMATION_INTENSITY_RANGE = (0.0, 2.0)
DEFORMATION_RADIUS_RANGE = (0.01, 1.0)
MOLD_INTENSITY_RANGE = (0.0, 1.0)
WRAP_INTENSITY_RANGE = (0.0, 1.0)

# Gap-fill looks at the 8 neighbours around an unset texel.
GAP_FILL_KERNEL_SIZE = 3


@dataclass(frozen=True)
class RuntimeDefaults:
    texture_size: int
    max_history: int
    idw_epsilon: float


def _read_int_env(
    env_name: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def _read_float_env(
    env_name: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if value != value or value in (float("inf"), float("-inf")):
        return default

    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def load_runtime_defaults() -> RuntimeDefaults:
    return RuntimeDefaults(
        texture_size=_read_int_env(ENV_TEXTURE_SIZE, 512, min_value=16, max_value=8192),
        max_history=_read_int_env(ENV_MAX_HISTORY, 20, min_value=1, max_value=500),
        idw_epsilon=_read_float_env(ENV_IDW_EPSILON, 0.001, min_value=1e-9, max_value=1.0),
    )


DEFAULTS = load_runtime_defaults()
