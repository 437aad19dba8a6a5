"""
MoldWrap mold file I/O (.mold)

The mold format is a zip container with a JSON manifest and the source pixels
stored losslessly as a numpy array. This keeps float precision intact (PNG
would quantize to 8 bits) and allows future extension without breaking
compatibility.
"""

from __future__ import annotations

from datetime import datetime, timezone
import io
import json
from pathlib import Path
from typing import Any
import zipfile

import numpy as np

from .mold import Mold
from .texture_image import TextureImage


MOLD_FORMAT = "moldwrap_mold"
MOLD_VERSION = 1
MANIFEST_NAME = "mold.json"
PIXELS_NAME = "source.npy"


class MoldFormatError(RuntimeError):
    pass


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def save_mold(path: str | Path, mold: Mold, *, meta: dict[str, Any] | None = None) -> str:
    """
    Save a mold file.

    Args:
        path: destination path (usually ends with .mold)
        mold: mold to store
        meta: optional metadata (e.g., app version)
    """
    out_path = Path(path)
    doc: dict[str, Any] = {
        "format": MOLD_FORMAT,
        "version": MOLD_VERSION,
        "saved_at": _utc_now_iso(),
        "meta": dict(meta or {}),
        "mold": mold.to_dict(),
        "pixels": PIXELS_NAME,
    }

    buf = io.BytesIO()
    np.save(buf, np.asarray(mold.source.pixels, dtype=np.float64), allow_pickle=False)

    data = json.dumps(doc, ensure_ascii=False, indent=2)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(out_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(MANIFEST_NAME, data.encode("utf-8"))
        zf.writestr(PIXELS_NAME, buf.getvalue())
    return str(out_path)


def read_mold_document(path: str | Path) -> tuple[dict[str, Any], np.ndarray]:
    """
    Read and validate a mold file.

    Returns:
        (manifest document, source pixels)
    """
    in_path = Path(path)
    if not in_path.exists():
        raise FileNotFoundError(str(in_path))
    if not zipfile.is_zipfile(in_path):
        raise MoldFormatError("Not a mold file (expected a zip container)")

    with zipfile.ZipFile(in_path, "r") as zf:
        try:
            raw_bytes = zf.read(MANIFEST_NAME)
        except KeyError as e:
            raise MoldFormatError(f"Missing {MANIFEST_NAME} in mold file") from e

        try:
            doc = json.loads(raw_bytes.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise MoldFormatError(f"Invalid JSON: {e}") from e

        if not isinstance(doc, dict):
            raise MoldFormatError("Invalid mold document (expected JSON object)")

        fmt = str(doc.get("format", "")).strip()
        ver = doc.get("version", None)
        if fmt != MOLD_FORMAT:
            raise MoldFormatError(f"Unsupported mold format: {fmt!r}")
        if ver != MOLD_VERSION:
            raise MoldFormatError(f"Unsupported mold version: {ver!r}")

        pixels_name = str(doc.get("pixels") or PIXELS_NAME)
        try:
            pixel_bytes = zf.read(pixels_name)
        except KeyError as e:
            raise MoldFormatError(f"Missing {pixels_name} in mold file") from e

    try:
        pixels = np.load(io.BytesIO(pixel_bytes), allow_pickle=False)
    except Exception as e:
        raise MoldFormatError(f"Invalid pixel data: {e}") from e

    meta = doc.get("meta", {})
    if meta is None:
        doc["meta"] = {}
    elif not isinstance(meta, dict):
        doc["meta"] = {"_raw": meta}

    if not isinstance(doc.get("mold"), dict):
        raise MoldFormatError("Invalid mold document: missing 'mold' object")

    return doc, pixels


def load_mold(path: str | Path) -> Mold:
    doc, pixels = read_mold_document(path)
    try:
        source = TextureImage(pixels)
    except ValueError as e:
        raise MoldFormatError(f"Invalid source image: {e}") from e
    try:
        return Mold.from_dict(doc["mold"], source)
    except (TypeError, ValueError) as e:
        raise MoldFormatError(f"Invalid mold description: {e}") from e
