"""
Custom exceptions for examconvert.

This module defines all custom exceptions used throughout the library.
``DocumentDecodeError`` aborts a whole batch; every :class:`ConversionError`
is recovered per (document, format) pair by the engine.
"""

from typing import Optional


class ExamConvertError(Exception):
    """Base exception for all examconvert errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown conversion error occurred."


class DocumentDecodeError(ExamConvertError):
    """Raised when a document's transport encoding cannot be decoded."""

    def __init__(self, message: str = "", *, document_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.document_name = document_name

    @property
    def default_message(self) -> str:
        return "Document content is not valid base64."


class ConversionError(ExamConvertError):
    """Base class for failures scoped to a single (document, format) pair."""

    @property
    def default_message(self) -> str:
        return "Conversion failed."


class UnsupportedConversionError(ConversionError):
    """Raised when no handler exists for a source type and target format."""

    @property
    def default_message(self) -> str:
        return "Unsupported conversion."


class SizeLimitExceededError(ConversionError):
    """Raised when a converted payload is still larger than its ceiling."""

    def __init__(self, actual: int, limit: int) -> None:
        super().__init__(f"File size {actual} exceeds limit {limit}")
        self.actual = actual
        self.limit = limit


class CompressionExhaustedError(ConversionError):
    """Raised when every step of a compression ladder missed the ceiling."""

    @property
    def default_message(self) -> str:
        return "Compression failed to reach the requested size."


class CodecError(ConversionError):
    """Raised when image bytes cannot be decoded or encoded."""

    @property
    def default_message(self) -> str:
        return "Image processing error."


class PdfAssemblyError(ConversionError):
    """Raised when a PDF cannot be loaded or written."""

    @property
    def default_message(self) -> str:
        return "PDF processing error."


class UnknownProfileError(ExamConvertError):
    """Raised when an exam profile key is not known."""

    @property
    def default_message(self) -> str:
        return "Exam configuration not found."
