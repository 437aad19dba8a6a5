"""
Core processing modules for MoldWrap
"""

from .texture_image import TextureImage
from .sampler import AddressMode, sample
from .deformer import DeformationKind, DeformationParameters, TextureDeformer
from .mold import Mold, MoldKind
from .mold_file import MoldFormatError, load_mold, save_mold
from .mesh_loader import MeshLoader, MeshData
from .object_wrapper import ObjectWrapper, WrapKind
from .edit_history import EditHistory
from .blending import BlendMode, blend_images
from .texture_editor import TextureEditor

__all__ = [
    # Images and sampling
    'TextureImage',
    'AddressMode',
    'sample',
    # Deformation
    'DeformationKind',
    'DeformationParameters',
    'TextureDeformer',
    # Molds
    'Mold',
    'MoldKind',
    'MoldFormatError',
    'load_mold',
    'save_mold',
    # Mesh loading
    'MeshLoader',
    'MeshData',
    # Wrapping
    'ObjectWrapper',
    'WrapKind',
    # Editing
    'EditHistory',
    'BlendMode',
    'blend_images',
    'TextureEditor',
]
