"""Batch conversion engine: dispatch, size enforcement and artifact storage."""

from __future__ import annotations

import base64
import binascii
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .assembler import DocumentAssembler, decode_text
from .backends.base import Codec
from .backends.pillow_backend import PillowCodec
from .exceptions import (
    ConversionError,
    DocumentDecodeError,
    SizeLimitExceededError,
    UnsupportedConversionError,
)
from .store import EphemeralStore
from .transcoder import ImageTranscoder, fits
from .types import (
    DOC_MIME,
    DOCX_MIME,
    JPEG_MIME,
    JPG_MIME,
    PDF_MIME,
    PNG_MIME,
    TEXT_MIME,
    WEBP_MIME,
    Artifact,
    CompressionPolicy,
    ConversionOutcome,
    ConversionRequest,
    ConversionResponse,
    Document,
    DocumentPayload,
    ErrorEntry,
    ImageCodec,
    StorageStats,
    TargetFormat,
)
from .utils import base_name, get_logger, normalize_mime_type

LOGGER = get_logger("examconvert.engine")

Handler = Callable[[Document, Optional[int]], bytes]

IMAGE_MIMES = (JPEG_MIME, JPG_MIME, PNG_MIME, WEBP_MIME)


def decode_payload(payload: DocumentPayload) -> Document:
    """Decode the base64 transport content of ``payload``."""

    try:
        content = base64.b64decode(payload.content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DocumentDecodeError(
            f"Base64 decode error for '{payload.name}': {exc}", document_name=payload.name
        ) from exc
    return Document(name=payload.name, content=content, mime_type=payload.mime_type)


def compression_ratio(converted_size: int, original_size: int) -> Optional[float]:
    if original_size <= 0:
        return None
    return converted_size / original_size


def error_entry(document: Document, target_format: str, error: str) -> ErrorEntry:
    return ErrorEntry(
        original_name=document.name,
        generated_name=f"ERROR_{base_name(document.name, 'file')}.{target_format.lower()}",
        format=target_format,
        error=error,
    )


class ConversionEngine:
    """Converts batches of documents into size-limited target formats."""

    def __init__(
        self,
        *,
        codec: Optional[Codec] = None,
        policy: Optional[CompressionPolicy] = None,
        transcoder: Optional[ImageTranscoder] = None,
        assembler: Optional[DocumentAssembler] = None,
        store: Optional[EphemeralStore] = None,
    ) -> None:
        codec = codec or PillowCodec()
        self.transcoder = transcoder or ImageTranscoder(codec=codec, policy=policy)
        self.assembler = assembler or DocumentAssembler(codec=codec, transcoder=self.transcoder)
        self.store = store or EphemeralStore()
        self._dispatch: Dict[Tuple[str, TargetFormat], Handler] = self._build_dispatch()

    # ------------------------------------------------------------------
    # Dispatch table
    # ------------------------------------------------------------------
    def _build_dispatch(self) -> Dict[Tuple[str, TargetFormat], Handler]:
        transcoder = self.transcoder
        assembler = self.assembler

        table: Dict[Tuple[str, TargetFormat], Handler] = {
            (PDF_MIME, TargetFormat.PDF): lambda doc, ceiling: assembler.optimize_pdf(doc.content),
            (PDF_MIME, TargetFormat.JPEG): lambda doc, ceiling: assembler.pdf_to_raster(
                doc.content, ImageCodec.JPEG, ceiling
            ),
            (PDF_MIME, TargetFormat.PNG): lambda doc, ceiling: assembler.pdf_to_raster(
                doc.content, ImageCodec.PNG, ceiling
            ),
            (TEXT_MIME, TargetFormat.PDF): lambda doc, ceiling: assembler.text_to_pdf(decode_text(doc.content)),
            (TEXT_MIME, TargetFormat.DOCX): lambda doc, ceiling: assembler.text_to_docx(decode_text(doc.content)),
            (DOCX_MIME, TargetFormat.DOCX): lambda doc, ceiling: doc.content,
            # No real DOC parsing; legacy documents are handed back unchanged.
            (DOC_MIME, TargetFormat.DOCX): lambda doc, ceiling: doc.content,
        }

        for mime in IMAGE_MIMES:
            table[(mime, TargetFormat.PDF)] = lambda doc, ceiling: assembler.image_to_pdf(doc.content, ceiling)

        for mime in (JPEG_MIME, JPG_MIME):
            table[(mime, TargetFormat.JPEG)] = lambda doc, ceiling: transcoder.fit_jpeg(doc.content, ceiling)
            table[(mime, TargetFormat.PNG)] = partial(self._convert_image, ImageCodec.PNG)

        table[(PNG_MIME, TargetFormat.JPEG)] = partial(self._convert_image, ImageCodec.JPEG)
        table[(PNG_MIME, TargetFormat.PNG)] = lambda doc, ceiling: transcoder.fit_png(doc.content, ceiling)
        table[(WEBP_MIME, TargetFormat.JPEG)] = partial(self._convert_image, ImageCodec.JPEG)
        table[(WEBP_MIME, TargetFormat.PNG)] = partial(self._convert_image, ImageCodec.PNG)
        return table

    def _convert_image(self, target: ImageCodec, document: Document, ceiling: Optional[int]) -> bytes:
        return self.transcoder.convert_format(document.content, target, ceiling)

    def supported_conversions(self) -> List[Tuple[str, str]]:
        """Return ``(source MIME, target format)`` pairs the engine can handle."""

        return sorted((mime, target.value) for mime, target in self._dispatch)

    def _resolve(self, document: Document, target_format: str) -> Handler:
        target = TargetFormat.parse(target_format)
        if target is None:
            raise UnsupportedConversionError(f"Unsupported format: {target_format}")
        handler = self._dispatch.get((normalize_mime_type(document.mime_type), target))
        if handler is None:
            raise UnsupportedConversionError(
                f"Unsupported format: {document.mime_type} to {target.value}"
            )
        return handler

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------
    def convert_pair(self, document: Document, target_format: str, ceiling: Optional[int]) -> bytes:
        """Convert ``document`` to ``target_format`` within ``ceiling`` bytes."""

        handler = self._resolve(document, target_format)
        LOGGER.info("Converting %s to %s (max size: %s bytes)", document.name, target_format, ceiling)
        converted = handler(document, ceiling)
        if not fits(len(converted), ceiling):
            raise SizeLimitExceededError(len(converted), ceiling)
        return converted

    def _store_artifact(self, document: Document, target_format: str, converted: bytes) -> Artifact:
        artifact_id = self.store.put(converted)
        ratio = compression_ratio(len(converted), document.size)
        generated_name = f"{base_name(document.name)}.{target_format.lower()}"
        LOGGER.info(
            "Stored converted file: %s (%s bytes, ratio: %s)", generated_name, len(converted), ratio
        )
        return Artifact(
            original_name=document.name,
            generated_name=generated_name,
            storage_handle=artifact_id,
            format=target_format,
            byte_size=len(converted),
            compression_ratio=ratio,
        )

    def convert_batch(self, request: ConversionRequest) -> List[ConversionOutcome]:
        """Convert every non-empty document of ``request`` to every target format.

        Raises:
            DocumentDecodeError: if any document is not valid base64. Nothing is
                converted or stored in that case.
        """

        LOGGER.info(
            "Starting conversion for %s files to formats: %s (exam: %s)",
            len(request.documents),
            request.target_formats,
            request.exam_type or "-",
        )
        documents = [decode_payload(payload) for payload in request.documents]

        outcomes: List[ConversionOutcome] = []
        for index, document in enumerate(documents, start=1):
            if not document.content:
                LOGGER.warning("Empty file content for: %s", document.name)
                continue
            LOGGER.info(
                "Processing file %s/%s: %s (%s bytes, %s)",
                index,
                len(documents),
                document.name,
                document.size,
                document.mime_type,
            )
            for target_format in request.target_formats:
                outcomes.append(self._convert_outcome(document, target_format, request.ceiling_for(target_format)))

        LOGGER.info("Conversion completed. %s outcomes produced", len(outcomes))
        return outcomes

    def _convert_outcome(
        self, document: Document, target_format: str, ceiling: Optional[int]
    ) -> ConversionOutcome:
        try:
            converted = self.convert_pair(document, target_format, ceiling)
        except ConversionError as exc:
            LOGGER.error("Failed to convert %s to %s: %s", document.name, target_format, exc)
            return error_entry(document, target_format, str(exc))
        return self._store_artifact(document, target_format, converted)

    def run(self, request: ConversionRequest) -> ConversionResponse:
        """Convert ``request`` and report batch-fatal failures as a response."""

        try:
            outcomes = self.convert_batch(request)
        except DocumentDecodeError as exc:
            LOGGER.error("Conversion failed: %s", exc)
            return ConversionResponse(success=False, files=[], error=str(exc))
        response = ConversionResponse(success=True, files=outcomes)
        LOGGER.info("Conversion completed: %s/%s files successful", response.successful, len(outcomes))
        return response

    # ------------------------------------------------------------------
    # Storage access
    # ------------------------------------------------------------------
    def fetch_stored(self, artifact_id: str) -> Optional[bytes]:
        return self.store.get(artifact_id)

    def clear_all(self) -> StorageStats:
        removed = self.store.clear()
        LOGGER.info("Cleaned up %s temporary files (%s bytes)", removed.count, removed.total_bytes)
        return removed

    def storage_stats(self) -> StorageStats:
        return self.store.stats()


def convert_documents(
    documents: Sequence[DocumentPayload],
    target_formats: Sequence[str],
    max_sizes: Optional[Dict[str, int]] = None,
    *,
    engine: Optional[ConversionEngine] = None,
) -> ConversionResponse:
    """Convenience wrapper building a request and running it on ``engine``."""

    request = ConversionRequest(
        documents=list(documents),
        target_formats=list(target_formats),
        max_sizes=dict(max_sizes or {}),
    )
    return (engine or ConversionEngine()).run(request)


__all__ = [
    "ConversionEngine",
    "convert_documents",
    "decode_payload",
    "compression_ratio",
    "error_entry",
]
