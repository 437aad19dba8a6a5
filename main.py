"""
MoldWrap - Texture Deformation, Molding and Mesh Wrapping Tool

Main entry point
"""

import sys
import logging
from pathlib import Path
from typing import Optional

# Ensure repository root is on sys.path so "src" is importable.
ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.core.runtime_defaults import DEFAULTS
from src.core.output_paths import (
    deformed_output_path,
    molded_output_path,
    wrapped_output_path,
    mold_output_path,
)

_LOGGER = logging.getLogger(__name__)
DEFAULT_TEXTURE_SIZE = DEFAULTS.texture_size
DEFAULT_MESH_UNIT = "mm"

_LOG_PATH: Optional[Path] = None


def run_cli():
    """Run the command-line interface."""
    global _LOG_PATH
    try:
        from src.core.logging_utils import setup_logging

        _LOG_PATH = setup_logging()
    except Exception as e:
        _LOGGER.debug("Failed to initialize logging: %s", e, exc_info=True)

    if len(sys.argv) < 2:
        print_help()
        return

    cmd = sys.argv[1]
    args = sys.argv[2:]

    if cmd == '--help' or cmd == '-h':
        print_help()
        return

    if cmd == '--info' and len(args) >= 1:
        show_image_info(args[0])
        return

    if cmd == '--deform' and len(args) >= 2:
        deform_texture(args[0], args[1], _float_arg(args, 2), _opt_arg(args, 3))
        return

    if cmd == '--mold' and len(args) >= 2:
        mold_texture(args[0], args[1], _opt_arg(args, 2) or "planar", _opt_arg(args, 3))
        return

    if cmd == '--save-mold' and len(args) >= 2:
        save_texture_mold(args[0], args[1], _opt_arg(args, 2))
        return

    if cmd == '--wrap' and len(args) >= 2:
        wrap_texture(args[0], args[1], _opt_arg(args, 2), _opt_arg(args, 3))
        return

    print(f"Error: Unknown command or missing arguments: {cmd}")
    print("Use --help for usage information")


def _opt_arg(args: list, index: int) -> Optional[str]:
    return args[index] if len(args) > index else None


def _float_arg(args: list, index: int) -> Optional[float]:
    raw = _opt_arg(args, index)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _report_error(e: Exception) -> None:
    from src.core.logging_utils import describe_error

    _LOGGER.error("Command failed", exc_info=True)
    print(describe_error(e, log_path=_LOG_PATH))


def print_help():
    """Print usage."""
    from src.core.deformer import DeformationKind
    from src.core.mold import MoldKind
    from src.core.object_wrapper import WrapKind
    from src.core.mesh_loader import MeshLoader

    print("=" * 60)
    print("MoldWrap - Texture Deformation, Molding and Mesh Wrapping")
    print("=" * 60)
    print()
    print("Usage:")
    print("  python main.py --info <image>                                # Show image info")
    print("  python main.py --deform <image> <kind> [intensity] [output]  # Deform texture")
    print("  python main.py --mold <mold_source> <target> [kind] [output] # Stamp a mold")
    print("  python main.py --save-mold <image> <kind> [output]           # Save a .mold file")
    print("  python main.py --wrap <image> <mesh> [kind] [output]         # Wrap onto mesh UVs")
    print()
    print(f"Deformation kinds: {[k.value for k in DeformationKind]}")
    print(f"Mold kinds:        {[k.value for k in MoldKind]}")
    print(f"Wrap kinds:        {[k.value for k in WrapKind]}")
    print(f"Mesh formats:      {list(MeshLoader.SUPPORTED_FORMATS.keys())}")
    print()
    print("Examples:")
    print("  python main.py --deform bark.png twist 1.2")
    print("  python main.py --mold stone.mold wall.png")
    print("  python main.py --wrap bark.png vase.obj cylindrical vase_bark.png")


def _load_texture(filepath: str):
    from PIL import Image
    from src.core.texture_image import TextureImage

    with Image.open(filepath) as img:
        return TextureImage.from_pil_image(img)


def _save_texture(image, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    image.to_pil_image().save(str(path))


def _load_mold_source(filepath: str, kind: str):
    """A .mold file loads as is; any other image becomes a mold of `kind`."""
    from src.core.mold import Mold
    from src.core.mold_file import load_mold

    if Path(filepath).suffix.lower() == ".mold":
        return load_mold(filepath)
    return Mold.create(_load_texture(filepath), kind, Path(filepath).stem, use_kind_defaults=True)


def show_image_info(filepath: str):
    """Show image info."""
    from src.core.texture_utils import average_color, is_grayscale

    print(f"\nImage Info: {filepath}")
    print("-" * 40)

    try:
        image = _load_texture(filepath)
        avg = average_color(image)
        print(f"  size: {image.width} x {image.height}")
        print(f"  grayscale: {is_grayscale(image)}")
        print(f"  average RGBA: ({avg[0]:.3f}, {avg[1]:.3f}, {avg[2]:.3f}, {avg[3]:.3f})")
    except Exception as e:
        print(f"  Error: {e}")


def deform_texture(filepath: str, kind: str, intensity: Optional[float] = None,
                   output_path: Optional[str] = None):
    """Apply one deformation around the image center."""
    from src.core.deformer import DeformationParameters, TextureDeformer
    from src.core.runtime_defaults import DEFAULT_DEFORMATION_INTENSITY

    print(f"\nDeforming: {filepath}")
    print("-" * 40)

    try:
        image = _load_texture(filepath)
        params = DeformationParameters(
            kind=kind,
            intensity=DEFAULT_DEFORMATION_INTENSITY if intensity is None else intensity,
        )
        print(f"  Loaded: {image.width} x {image.height}")
        print(f"  Deformation: {params.kind.value} (intensity={params.intensity:.2f}, radius={params.radius:.2f})")

        result = TextureDeformer().deform(image, params)

        save_path = deformed_output_path(filepath, output_path)
        _save_texture(result, save_path)
        print(f"  Saved: {save_path}")

    except Exception as e:
        _report_error(e)


def mold_texture(mold_source: str, target: str, kind: str = "planar",
                 output_path: Optional[str] = None):
    """Stamp a mold onto a target image."""
    print(f"\nMolding: {target}")
    print("-" * 40)

    try:
        mold = _load_mold_source(mold_source, kind)
        image = _load_texture(target)
        print(f"  Mold: {mold.name} ({mold.kind.value}, {len(mold)} control points)")

        result = mold.apply_to_image(image)

        save_path = molded_output_path(target, output_path)
        _save_texture(result, save_path)
        print(f"  Saved: {save_path}")

    except Exception as e:
        _report_error(e)


def save_texture_mold(filepath: str, kind: str, output_path: Optional[str] = None):
    """Capture an image as a .mold file."""
    from src.core.mold_file import save_mold

    print(f"\nSaving mold: {filepath}")
    print("-" * 40)

    try:
        mold = _load_mold_source(filepath, kind)
        save_path = mold_output_path(filepath, output_path)
        save_mold(save_path, mold, meta={"source": Path(filepath).name})
        print(f"  Mold: {mold.name} ({mold.kind.value})")
        print(f"  Saved: {save_path}")

    except Exception as e:
        _report_error(e)


def wrap_texture(filepath: str, mesh_path: str, kind: Optional[str] = None,
                 output_path: Optional[str] = None):
    """Wrap an image (or a .mold file) onto a mesh's UV layout."""
    from src.core.mesh_loader import MeshLoader
    from src.core.object_wrapper import ObjectWrapper

    print(f"\nWrapping: {filepath} -> {mesh_path}")
    print("-" * 40)

    try:
        loader = MeshLoader(default_unit=DEFAULT_MESH_UNIT)
        mesh = loader.load(mesh_path)
        print(f"  Loaded: {mesh.n_vertices:,} vertices, {mesh.n_faces:,} faces")
        if not mesh.has_uv:
            print("  Error: mesh has no UV coordinates")
            return

        wrapper = ObjectWrapper(texture_size=DEFAULT_TEXTURE_SIZE)
        if kind:
            wrapper.set_wrap_kind(kind)

        if Path(filepath).suffix.lower() == ".mold":
            mold = _load_mold_source(filepath, "planar")
            result = wrapper.apply_mold(mold, mesh.vertices, mesh.uv_coords, normals=mesh.normals)
        else:
            result = wrapper.wrap_mesh(_load_texture(filepath), mesh)

        if result is None:
            print("  Error: nothing to wrap")
            return
        print(f"  Wrapped: {wrapper.wrap_kind.value}, {result.width} x {result.height} pixels")

        save_path = wrapped_output_path(filepath, output_path)
        _save_texture(result, save_path)
        print(f"  Saved: {save_path}")

    except Exception as e:
        _report_error(e)


if __name__ == '__main__':
    run_cli()
