"""
Output naming for CLI exports.

Each operation writes next to its input, tagging the stem with the operation
name (``bark.png`` -> ``bark.deformed.png``). Mold files drop the image
extension entirely (``bark.png`` -> ``bark.mold``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]

OUTPUT_SUFFIXES = {
    "deform": ".deformed.png",
    "mold": ".molded.png",
    "wrap": ".wrapped.png",
    "save-mold": ".mold",
}


def output_path_for(operation: str, input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    """An explicit (non-empty) output path wins; otherwise derive one from the input."""
    if output_path:
        return Path(output_path)
    try:
        suffix = OUTPUT_SUFFIXES[operation]
    except KeyError:
        raise ValueError(f"Unknown output operation: {operation!r}") from None
    return Path(input_path).with_suffix(suffix)


def deformed_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return output_path_for("deform", input_path, output_path)


def molded_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return output_path_for("mold", input_path, output_path)


def wrapped_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return output_path_for("wrap", input_path, output_path)


def mold_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return output_path_for("save-mold", input_path, output_path)
