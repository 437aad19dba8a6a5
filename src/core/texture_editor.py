"""
Texture Editor Module
Coordinates deformation, molds, blending and wrapping around one working
image.

The edit history owns the working image. Every successful operation pushes
the result, then reports it through the optional sinks passed in by the
caller (UI refresh, status line). Missing inputs are silent no-ops.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence

from .blending import BlendMode, blend_images
from .deformer import DeformationKind, DeformationParameters, TextureDeformer
from .edit_history import EditHistory
from .mold import Mold, MoldKind
from .object_wrapper import ObjectWrapper, WrapKind
from .runtime_defaults import (
    DEFAULT_DEFORMATION_CENTER,
    DEFAULT_DEFORMATION_INTENSITY,
    DEFAULT_DEFORMATION_RADIUS,
    DEFORMATION_INTENSITY_RANGE,
    DEFORMATION_RADIUS_RANGE,
    MOLD_INTENSITY_RANGE,
)
from .texture_image import TextureImage
from .value_utils import clamp_float, coerce_float, coerce_vector

_LOGGER = logging.getLogger(__name__)

ImageSink = Callable[[TextureImage], None]
LabelSink = Callable[[str], None]
MoldSink = Callable[[Mold], None]


class TextureEditor:
    """
    Working-image coordinator.

    Args:
        max_history: history depth (DEFAULTS.max_history when None)
        on_image_changed: called with the new working image
        on_operation: called with a human-readable label
        on_mold_created: called with each mold made by `create_mold`
    """

    def __init__(
        self,
        max_history: Optional[int] = None,
        *,
        on_image_changed: Optional[ImageSink] = None,
        on_operation: Optional[LabelSink] = None,
        on_mold_created: Optional[MoldSink] = None,
        deformer: Optional[TextureDeformer] = None,
    ):
        self.history = EditHistory(max_history)
        self.on_image_changed = on_image_changed
        self.on_operation = on_operation
        self.on_mold_created = on_mold_created
        self.deformer = deformer or TextureDeformer()

        self.deformation_kind = DeformationKind.BEND
        self.deformation_intensity = DEFAULT_DEFORMATION_INTENSITY
        self.deformation_center = DEFAULT_DEFORMATION_CENTER
        self.deformation_radius = DEFAULT_DEFORMATION_RADIUS

        self.saved_molds: list[Mold] = []
        self.current_mold: Optional[Mold] = None
        self.mold_intensity = 1.0

        self.source_image: Optional[TextureImage] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def working_image(self) -> Optional[TextureImage]:
        return self.history.current()

    def _commit(self, image: Optional[TextureImage], label: str) -> bool:
        if image is None:
            return False
        self.history.push(image)
        _LOGGER.info("%s", label)
        if self.on_image_changed is not None:
            self.on_image_changed(image)
        if self.on_operation is not None:
            self.on_operation(label)
        return True

    def _notify_restored(self, image: Optional[TextureImage], label: str) -> Optional[TextureImage]:
        if image is None:
            return None
        _LOGGER.info("%s", label)
        if self.on_image_changed is not None:
            self.on_image_changed(image)
        if self.on_operation is not None:
            self.on_operation(label)
        return image

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_deformation_kind(self, kind: DeformationKind | str) -> None:
        self.deformation_kind = DeformationKind(kind)

    def set_deformation_intensity(self, intensity: float) -> None:
        lo, hi = DEFORMATION_INTENSITY_RANGE
        self.deformation_intensity = clamp_float(intensity, self.deformation_intensity, lo, hi)

    def set_deformation_center(self, center: Sequence[float]) -> None:
        self.deformation_center = coerce_vector(center, self.deformation_center, 2)  # type: ignore[assignment]

    def set_deformation_radius(self, radius: float) -> None:
        lo, hi = DEFORMATION_RADIUS_RANGE
        self.deformation_radius = clamp_float(radius, self.deformation_radius, lo, hi)

    def set_mold_intensity(self, intensity: float) -> None:
        lo, hi = MOLD_INTENSITY_RANGE
        self.mold_intensity = clamp_float(intensity, self.mold_intensity, lo, hi)

    def deformation_parameters(self) -> DeformationParameters:
        return DeformationParameters(
            kind=self.deformation_kind,
            intensity=self.deformation_intensity,
            center=self.deformation_center,
            radius=self.deformation_radius,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def load_image(self, image: Optional[TextureImage]) -> bool:
        """Start a new editing session: history is reset to this image."""
        if image is None:
            return False
        self.source_image = image
        self.history.clear()
        return self._commit(image, "Texture loaded")

    def apply_deformation(self, params: Optional[DeformationParameters] = None) -> Optional[TextureImage]:
        working = self.working_image
        if working is None:
            return None
        p = params or self.deformation_parameters()
        deformed = self.deformer.deform(working, p)
        if not self._commit(deformed, f"Applied {p.kind.value} deformation"):
            return None
        return deformed

    def apply_deformation_sequence(
        self,
        steps: Optional[Iterable[DeformationParameters]],
    ) -> Optional[TextureImage]:
        working = self.working_image
        if steps is None or working is None:
            return None
        step_list = list(steps)
        result = self.deformer.deform_sequence(working, step_list)
        if not self._commit(result, f"Applied {len(step_list)} deformation steps"):
            return None
        return result

    def create_mold(self, name: str = "New Mold", kind: MoldKind | str = MoldKind.PLANAR) -> Optional[Mold]:
        """Capture the working image as a new mold (kind-specific control points)."""
        working = self.working_image
        if working is None:
            return None
        mold = Mold.create(working, kind, name, use_kind_defaults=True)
        if mold is None:
            return None

        self.saved_molds.append(mold)
        self.current_mold = mold
        _LOGGER.info("Created mold: %s (%s)", mold.name, mold.kind.value)
        if self.on_mold_created is not None:
            self.on_mold_created(mold)
        if self.on_operation is not None:
            self.on_operation(f"Created mold: {mold.name}")
        return mold

    def apply_mold(self, mold: Optional[Mold], intensity: Optional[float] = None) -> Optional[TextureImage]:
        """Stamp `mold` onto the working image (mold_intensity when intensity is None or negative)."""
        working = self.working_image
        if mold is None or working is None:
            return None
        t = self.mold_intensity
        if intensity is not None:
            requested = coerce_float(intensity, -1.0)
            if requested >= 0.0:
                t = requested
        molded = mold.apply_to_image(working, t)
        if not self._commit(molded, f"Applied mold: {mold.name}"):
            return None
        return molded

    def blend_images(
        self,
        a: Optional[TextureImage],
        b: Optional[TextureImage],
        mode: BlendMode | str = BlendMode.NORMAL,
        amount: float = 1.0,
    ) -> Optional[TextureImage]:
        blended = blend_images(a, b, mode, amount)
        if not self._commit(blended, f"Blended textures using {BlendMode(mode).value}"):
            return None
        return blended

    def wrap_onto_mesh(
        self,
        wrapper: Optional[ObjectWrapper],
        vertices,
        mesh_uvs,
        kind: WrapKind | str | None = None,
        normals=None,
    ) -> Optional[TextureImage]:
        """Wrap the working image onto a mesh and make the result the working image."""
        working = self.working_image
        if wrapper is None or working is None:
            return None
        wrapped = wrapper.project_and_wrap(working, vertices, mesh_uvs, kind=kind, normals=normals)
        if not self._commit(wrapped, f"Wrapped texture ({wrapper.wrap_kind.value})"):
            return None
        return wrapped

    def wrap_mold_onto_mesh(
        self,
        wrapper: Optional[ObjectWrapper],
        mold: Optional[Mold],
        vertices,
        mesh_uvs,
        kind: WrapKind | str | None = None,
        normals=None,
    ) -> Optional[TextureImage]:
        if wrapper is None or mold is None:
            return None
        wrapped = wrapper.apply_mold(mold, vertices, mesh_uvs, kind=kind, normals=normals)
        if not self._commit(wrapped, f"Wrapped mold: {mold.name} ({wrapper.wrap_kind.value})"):
            return None
        return wrapped

    def undo(self) -> Optional[TextureImage]:
        return self._notify_restored(self.history.undo(), "Undo")

    def redo(self) -> Optional[TextureImage]:
        return self._notify_restored(self.history.redo(), "Redo")

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()
