"""pypdf backend implementation for building and rewriting PDFs."""

from __future__ import annotations

import io
import zlib
from typing import Sequence

from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import (
    DecodedStreamObject,
    DictionaryObject,
    NameObject,
    NumberObject,
    StreamObject,
)

from ..exceptions import PdfAssemblyError
from .base import DocumentBuilder

PRODUCER = "examconvert"
IMAGE_NAME = "/Im0"
FONT_NAME = "/F1"
DEFAULT_FONT = "/Helvetica"


def escape_pdf_text(text: str) -> bytes:
    """Return ``text`` as a PDF literal string body in WinAnsi-compatible bytes."""

    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    escaped = escaped.replace("\r", "").replace("\t", "    ")
    return escaped.encode("cp1252", errors="replace")


class PypdfDocumentBuilder(DocumentBuilder):
    """Builds documents with :class:`pypdf.PdfWriter` and raw content streams."""

    def __init__(self) -> None:
        self._writer: PdfWriter | None = None

    @property
    def writer(self) -> PdfWriter:
        if self._writer is None:
            raise PdfAssemblyError("No document started; call new_document() first.")
        return self._writer

    def new_document(self) -> None:
        self._writer = PdfWriter()
        self._writer.add_metadata({"/Producer": PRODUCER})

    def add_page(self, width: float, height: float) -> PageObject:
        return self.writer.add_blank_page(width=width, height=height)

    def _set_contents(self, page: PageObject, content: bytes) -> None:
        stream = DecodedStreamObject()
        stream.set_data(content)
        page[NameObject("/Contents")] = self.writer._add_object(stream)

    def embed_image(
        self,
        page: PageObject,
        pixels: bytes,
        width: int,
        height: int,
        *,
        jpeg: bool = False,
    ) -> None:
        image = DecodedStreamObject()
        image.update(
            {
                NameObject("/Type"): NameObject("/XObject"),
                NameObject("/Subtype"): NameObject("/Image"),
                NameObject("/Width"): NumberObject(width),
                NameObject("/Height"): NumberObject(height),
                NameObject("/ColorSpace"): NameObject("/DeviceRGB"),
                NameObject("/BitsPerComponent"): NumberObject(8),
            }
        )
        if jpeg:
            image[NameObject("/Filter")] = NameObject("/DCTDecode")
            image.set_data(pixels)
        else:
            image[NameObject("/Filter")] = NameObject("/FlateDecode")
            image.set_data(zlib.compress(pixels))
        image_ref = self.writer._add_object(image)

        page[NameObject("/Resources")] = DictionaryObject(
            {NameObject("/XObject"): DictionaryObject({NameObject(IMAGE_NAME): image_ref})}
        )
        page_width = float(page.mediabox.width)
        page_height = float(page.mediabox.height)
        content = f"q {page_width:.4f} 0 0 {page_height:.4f} 0 0 cm {IMAGE_NAME} Do Q"
        self._set_contents(page, content.encode("ascii"))

    def add_text_block(
        self,
        page: PageObject,
        lines: Sequence[str],
        *,
        x: float,
        y: float,
        font_size: float,
        leading: float,
    ) -> None:
        font = DictionaryObject(
            {
                NameObject("/Type"): NameObject("/Font"),
                NameObject("/Subtype"): NameObject("/Type1"),
                NameObject("/BaseFont"): NameObject(DEFAULT_FONT),
                NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
            }
        )
        font_ref = self.writer._add_object(font)
        page[NameObject("/Resources")] = DictionaryObject(
            {NameObject("/Font"): DictionaryObject({NameObject(FONT_NAME): font_ref})}
        )

        parts = [f"BT {FONT_NAME} {font_size:g} Tf".encode("ascii")]
        for index, line in enumerate(lines):
            baseline = y - index * leading
            parts.append(f"1 0 0 1 {x:g} {baseline:g} Tm".encode("ascii"))
            parts.append(b"(" + escape_pdf_text(line) + b") Tj")
        parts.append(b"ET")
        self._set_contents(page, b"\n".join(parts))

    def serialize(self) -> bytes:
        buffer = io.BytesIO()
        try:
            self.writer.write(buffer)
        except Exception as exc:
            raise PdfAssemblyError(f"Failed to write PDF: {exc}") from exc
        return buffer.getvalue()


def load_pdf(content: bytes) -> PdfReader:
    """Parse ``content`` and force page tree resolution."""

    try:
        reader = PdfReader(io.BytesIO(content))
        if len(reader.pages) == 0:
            raise PdfAssemblyError("PDF has no pages")
    except PdfAssemblyError:
        raise
    except PdfReadError as exc:
        raise PdfAssemblyError(f"Corrupted or invalid PDF: {exc}") from exc
    except Exception as exc:
        raise PdfAssemblyError(f"Unexpected error reading PDF: {exc}") from exc
    return reader


def clone_document(reader: PdfReader) -> PdfWriter:
    """Copy everything reachable from the document root of ``reader``."""

    try:
        return PdfWriter(clone_from=reader)
    except Exception as exc:
        raise PdfAssemblyError(f"Failed to copy PDF objects: {exc}") from exc


def compress_unfiltered_streams(writer: PdfWriter) -> int:
    """Flate-compress every stream object that has no ``/Filter``; return the count."""

    compressed = 0
    for obj in writer._objects:
        if not isinstance(obj, StreamObject) or "/Filter" in obj:
            continue
        try:
            data = obj.get_data()
        except Exception as exc:
            raise PdfAssemblyError(f"Failed to read PDF stream: {exc}") from exc
        obj[NameObject("/Filter")] = NameObject("/FlateDecode")
        obj._data = zlib.compress(data)
        compressed += 1
    return compressed


def write_document(writer: PdfWriter) -> bytes:
    buffer = io.BytesIO()
    try:
        writer.write(buffer)
    except Exception as exc:
        raise PdfAssemblyError(f"Failed to save optimized PDF: {exc}") from exc
    return buffer.getvalue()


__all__ = [
    "PypdfDocumentBuilder",
    "load_pdf",
    "clone_document",
    "compress_unfiltered_streams",
    "write_document",
    "escape_pdf_text",
]
