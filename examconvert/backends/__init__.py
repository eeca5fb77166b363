"""Backend abstractions for examconvert."""

from .base import Codec, DocumentBuilder, Rasterizer
from .pillow_backend import PillowCodec, PlaceholderRasterizer
from .pypdf_backend import PypdfDocumentBuilder

__all__ = [
    "Codec",
    "DocumentBuilder",
    "Rasterizer",
    "PillowCodec",
    "PlaceholderRasterizer",
    "PypdfDocumentBuilder",
]
