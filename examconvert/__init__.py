"""
examconvert - Convert documents to the formats and size limits of exam portals.

This library converts batches of uploaded documents (images, PDFs, plain text
and Word files) into PDF, JPEG, PNG or DOCX, shrinking each result until it fits
a per-format byte ceiling. Converted files are kept in an in-memory store and
referenced by opaque ids.

Quick Start:
    >>> from examconvert import ConversionEngine, ConversionRequest
    >>> engine = ConversionEngine()
    >>> response = engine.run(ConversionRequest.from_dict(payload))
    >>> data = engine.fetch_stored(response.files[0].storage_handle)

Main Classes:
    - ConversionEngine: Batch conversion, dispatch and storage
    - ConversionWorkerPool: Run several requests concurrently
    - ImageTranscoder: Quality and resize ladders for images
    - DocumentAssembler: PDF and DOCX assembly
    - EphemeralStore: Sharded in-memory artifact store

Data Classes:
    - ConversionRequest / ConversionResponse: Batch input and output
    - Artifact / ErrorEntry: Per (document, format) outcomes
    - CompressionPolicy: Ladder parameters
    - ExamProfile: Built-in exam upload requirements

Exceptions:
    - ExamConvertError: Base exception
    - DocumentDecodeError: Batch-fatal transport decode failure
    - ConversionError: Per-pair failure (and its subclasses)
    - UnknownProfileError: Unknown exam profile key

For CLI usage, use the 'examconvert' command after installation.
"""

__version__ = "1.0.0"

# Core classes
from examconvert.engine import ConversionEngine, convert_documents
from examconvert.pool import ConversionWorkerPool
from examconvert.transcoder import ImageTranscoder
from examconvert.assembler import DocumentAssembler
from examconvert.store import EphemeralStore

# Data types
from examconvert.types import (
    Artifact,
    CompressionPolicy,
    ConversionRequest,
    ConversionResponse,
    Document,
    DocumentPayload,
    ErrorEntry,
    StorageStats,
    TargetFormat,
)
from examconvert.profiles import ExamProfile, get_profile, list_profiles

# Exceptions
from examconvert.exceptions import (
    ExamConvertError,
    DocumentDecodeError,
    ConversionError,
    UnsupportedConversionError,
    SizeLimitExceededError,
    CompressionExhaustedError,
    CodecError,
    PdfAssemblyError,
    UnknownProfileError,
)

__author__ = "examconvert Contributors"
__license__ = "MIT"

__all__ = [
    "ConversionEngine",
    "convert_documents",
    "ConversionWorkerPool",
    "ImageTranscoder",
    "DocumentAssembler",
    "EphemeralStore",
    "Artifact",
    "CompressionPolicy",
    "ConversionRequest",
    "ConversionResponse",
    "Document",
    "DocumentPayload",
    "ErrorEntry",
    "StorageStats",
    "TargetFormat",
    "ExamProfile",
    "get_profile",
    "list_profiles",
    "ExamConvertError",
    "DocumentDecodeError",
    "ConversionError",
    "UnsupportedConversionError",
    "SizeLimitExceededError",
    "CompressionExhaustedError",
    "CodecError",
    "PdfAssemblyError",
    "UnknownProfileError",
]
