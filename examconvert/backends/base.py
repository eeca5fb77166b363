"""Capability protocols for image codecs and PDF document builders."""

from __future__ import annotations

from typing import Protocol, Sequence, Tuple

from ..types import ImageCodec


class Codec(Protocol):
    """Protocol defining raster operations used by the transcoder and assembler."""

    def decode(self, data: bytes) -> object:
        """Decode image bytes of any supported format into a raster."""

    def encode(self, raster: object, codec: ImageCodec, quality: int | None = None) -> bytes:
        """Encode ``raster`` as JPEG (at ``quality``) or PNG."""

    def resize(self, raster: object, width: int, height: int) -> object:
        """Return ``raster`` resampled to exactly ``width`` x ``height``."""

    def dimensions(self, raster: object) -> Tuple[int, int]:
        """Return ``(width, height)`` of ``raster``."""

    def rgb_pixels(self, raster: object) -> bytes:
        """Return interleaved 8-bit RGB samples of ``raster``."""


class Rasterizer(Protocol):
    """Produces a raster standing in for the first page of a PDF."""

    def rasterize(self, pdf_bytes: bytes) -> object:
        """Return a raster for ``pdf_bytes``."""


class DocumentBuilder(Protocol):
    """Protocol for assembling single-purpose PDF documents."""

    def new_document(self) -> None:
        """Start a fresh, empty document."""

    def add_page(self, width: float, height: float) -> object:
        """Append a page with the given media box and return it."""

    def embed_image(
        self,
        page: object,
        pixels: bytes,
        width: int,
        height: int,
        *,
        jpeg: bool = False,
    ) -> None:
        """Draw an image covering ``page``.

        ``pixels`` are interleaved RGB samples, or JPEG bytes when ``jpeg`` is set.
        """

    def add_text_block(
        self,
        page: object,
        lines: Sequence[str],
        *,
        x: float,
        y: float,
        font_size: float,
        leading: float,
    ) -> None:
        """Write ``lines`` top-down starting at baseline ``(x, y)``."""

    def serialize(self) -> bytes:
        """Return the finished document as PDF bytes."""
