"""Single-page PDF, DOCX and placeholder raster assembly."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from .backends.base import Codec, DocumentBuilder, Rasterizer
from .backends.pillow_backend import PillowCodec, PlaceholderRasterizer
from .backends.pypdf_backend import (
    PypdfDocumentBuilder,
    clone_document,
    compress_unfiltered_streams,
    load_pdf,
    write_document,
)
from .docx_writer import write_text_docx
from .exceptions import CompressionExhaustedError, PdfAssemblyError
from .transcoder import ImageTranscoder, fits
from .types import ImageCodec
from .utils import get_logger

LOGGER = get_logger("examconvert.assembler")

# Page geometry in PDF points (72 per inch)
A4_WIDTH = 595.0
A4_HEIGHT = 842.0
LETTER_WIDTH = 612.0
LETTER_HEIGHT = 792.0

TEXT_FONT_SIZE = 12.0
TEXT_LEADING = 15.0
TEXT_ORIGIN = (50.0, 750.0)
MAX_TEXT_LINES = 50
MAX_LINE_CHARACTERS = 80

PDF_JPEG_START_QUALITY = 85
PDF_JPEG_QUALITY_STEP = 15
PDF_JPEG_QUALITY_FLOOR = 20
PDF_JPEG_ATTEMPTS = 5


def calculate_page_size(width: int, height: int) -> Tuple[float, float]:
    """Return a page box with the image's aspect ratio bounded by A4."""

    image_ratio = width / height
    a4_ratio = A4_WIDTH / A4_HEIGHT
    if image_ratio > a4_ratio:
        return A4_WIDTH, A4_WIDTH / image_ratio
    return A4_HEIGHT * image_ratio, A4_HEIGHT


def layout_text_lines(text: str) -> List[str]:
    return [line[:MAX_LINE_CHARACTERS] for line in text.splitlines()[:MAX_TEXT_LINES]]


def decode_text(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


class DocumentAssembler:
    """Builds the PDF and DOCX artifacts produced by the engine."""

    def __init__(
        self,
        *,
        codec: Optional[Codec] = None,
        transcoder: Optional[ImageTranscoder] = None,
        builder_factory: Optional[Callable[[], DocumentBuilder]] = None,
        rasterizer: Optional[Rasterizer] = None,
    ) -> None:
        self.codec: Codec = codec or PillowCodec()
        self.transcoder = transcoder or ImageTranscoder(codec=self.codec)
        self.builder_factory = builder_factory or PypdfDocumentBuilder
        self.rasterizer: Rasterizer = rasterizer or PlaceholderRasterizer()

    # ------------------------------------------------------------------
    # Image -> PDF
    # ------------------------------------------------------------------
    def image_to_pdf(self, image_bytes: bytes, ceiling: Optional[int] = None) -> bytes:
        raster = self.codec.decode(image_bytes)
        pdf_bytes = self._raster_pdf(raster)
        if fits(len(pdf_bytes), ceiling):
            LOGGER.info("Created PDF from image: %s bytes", len(pdf_bytes))
            return pdf_bytes

        LOGGER.debug("Image PDF is %s bytes, above %s; recompressing", len(pdf_bytes), ceiling)
        return self._compressed_image_pdf(raster, ceiling)

    def _raster_pdf(self, raster: object) -> bytes:
        width, height = self.codec.dimensions(raster)
        builder = self.builder_factory()
        builder.new_document()
        page = builder.add_page(*calculate_page_size(width, height))
        builder.embed_image(page, self.codec.rgb_pixels(raster), width, height)
        return builder.serialize()

    def _jpeg_pdf(self, jpeg_bytes: bytes, width: int, height: int) -> bytes:
        builder = self.builder_factory()
        builder.new_document()
        page = builder.add_page(*calculate_page_size(width, height))
        builder.embed_image(page, jpeg_bytes, width, height, jpeg=True)
        return builder.serialize()

    def _compressed_image_pdf(self, raster: object, ceiling: Optional[int]) -> bytes:
        width, height = self.codec.dimensions(raster)
        quality = PDF_JPEG_START_QUALITY
        for _ in range(PDF_JPEG_ATTEMPTS):
            jpeg_bytes = self.codec.encode(raster, ImageCodec.JPEG, quality)
            pdf_bytes = self._jpeg_pdf(jpeg_bytes, width, height)
            if fits(len(pdf_bytes), ceiling):
                LOGGER.info("Created compressed PDF: %s bytes with %s%% JPEG quality", len(pdf_bytes), quality)
                return pdf_bytes
            quality = max(PDF_JPEG_QUALITY_FLOOR, quality - PDF_JPEG_QUALITY_STEP)

        raise CompressionExhaustedError(f"Could not create PDF under {ceiling} bytes")

    # ------------------------------------------------------------------
    # Text -> PDF / DOCX
    # ------------------------------------------------------------------
    def text_to_pdf(self, text: str) -> bytes:
        builder = self.builder_factory()
        builder.new_document()
        page = builder.add_page(LETTER_WIDTH, LETTER_HEIGHT)
        x, y = TEXT_ORIGIN
        builder.add_text_block(
            page,
            layout_text_lines(text),
            x=x,
            y=y,
            font_size=TEXT_FONT_SIZE,
            leading=TEXT_LEADING,
        )
        return builder.serialize()

    def text_to_docx(self, text: str) -> bytes:
        return write_text_docx(text)

    # ------------------------------------------------------------------
    # Existing PDFs
    # ------------------------------------------------------------------
    def optimize_pdf(self, content: bytes) -> bytes:
        """Drop unreferenced objects and compress raw streams.

        Unparseable input is returned unchanged.
        """

        try:
            writer = clone_document(load_pdf(content))
            compressed = compress_unfiltered_streams(writer)
        except PdfAssemblyError as exc:
            LOGGER.warning("PDF optimization failed, returning original: %s", exc)
            return content

        output = write_document(writer)
        LOGGER.info(
            "PDF optimized: %s -> %s bytes (%s streams compressed)", len(content), len(output), compressed
        )
        return output

    def pdf_to_raster(self, content: bytes, target: ImageCodec, ceiling: Optional[int]) -> bytes:
        load_pdf(content)
        raster = self.rasterizer.rasterize(content)
        return self.transcoder.fit_encoded(raster, target, ceiling)


__all__ = [
    "DocumentAssembler",
    "calculate_page_size",
    "layout_text_lines",
    "decode_text",
    "A4_WIDTH",
    "A4_HEIGHT",
    "MAX_TEXT_LINES",
    "MAX_LINE_CHARACTERS",
]
