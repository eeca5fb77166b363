"""
Type definitions and dataclasses for examconvert.

This module defines the data structures passed between the transport layer,
the conversion engine and its collaborators.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import INITIAL_QUALITY_ENV, MAX_ITERATIONS_ENV, QUALITY_FLOOR_ENV, env_int

PDF_MIME = "application/pdf"
JPEG_MIME = "image/jpeg"
JPG_MIME = "image/jpg"
PNG_MIME = "image/png"
WEBP_MIME = "image/webp"
TEXT_MIME = "text/plain"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"


class TargetFormat(str, Enum):
    """Output formats the engine can produce."""

    PDF = "PDF"
    JPEG = "JPEG"
    PNG = "PNG"
    DOCX = "DOCX"

    @classmethod
    def parse(cls, value: str) -> Optional["TargetFormat"]:
        """Resolve ``value`` case-insensitively, accepting ``JPG`` for JPEG."""

        key = value.strip().upper()
        if key == "JPG":
            key = "JPEG"
        try:
            return cls(key)
        except ValueError:
            return None


class ImageCodec(str, Enum):
    """Raster encodings understood by the codec capability."""

    JPEG = "JPEG"
    PNG = "PNG"


@dataclass(frozen=True)
class CompressionPolicy:
    """
    Parameters of the quality and resize ladders.

    Attributes:
        initial_quality: JPEG quality of the first attempt (1-100)
        quality_floor: Lowest JPEG quality the quality ladder will try
        quality_decay: Factor applied to the quality after each miss
        scale_start: First scale factor of the resize ladder
        scale_decay: Factor applied to the scale after each miss
        max_iterations: Attempts per ladder
    """
    initial_quality: int = 85
    quality_floor: int = 10
    quality_decay: float = 0.85
    scale_start: float = 0.9
    scale_decay: float = 0.8
    max_iterations: int = 5

    def __post_init__(self) -> None:
        if not 1 <= self.initial_quality <= 100:
            raise ValueError(f"initial_quality must be within 1..100, got {self.initial_quality}")
        if not 1 <= self.quality_floor <= self.initial_quality:
            raise ValueError(
                f"quality_floor must be within 1..{self.initial_quality}, got {self.quality_floor}"
            )
        if not 0.0 < self.quality_decay < 1.0:
            raise ValueError(f"quality_decay must be within (0, 1), got {self.quality_decay}")
        if not 0.0 < self.scale_start <= 1.0:
            raise ValueError(f"scale_start must be within (0, 1], got {self.scale_start}")
        if not 0.0 < self.scale_decay < 1.0:
            raise ValueError(f"scale_decay must be within (0, 1), got {self.scale_decay}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")

    @classmethod
    def from_env(cls) -> "CompressionPolicy":
        """Return the default policy overlaid with ``EXAMCONVERT_*`` variables."""

        overrides: Dict[str, int] = {}
        for attribute, env_name in (
            ("initial_quality", INITIAL_QUALITY_ENV),
            ("quality_floor", QUALITY_FLOOR_ENV),
            ("max_iterations", MAX_ITERATIONS_ENV),
        ):
            value = env_int(env_name)
            if value is not None:
                overrides[attribute] = value
        return cls(**overrides)

    def replace(self, **changes: Any) -> "CompressionPolicy":
        return dataclasses.replace(self, **changes)


DEFAULT_POLICY = CompressionPolicy()


@dataclass(frozen=True)
class Document:
    """A decoded upload. ``size`` always equals ``len(content)``."""

    name: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class DocumentPayload:
    """A document as delivered by the transport layer (base64 content)."""

    name: str
    content: str
    mime_type: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DocumentPayload":
        mime_type = data.get("mime_type", data.get("mimeType", ""))
        return cls(name=str(data["name"]), content=str(data["content"]), mime_type=str(mime_type))


@dataclass
class ConversionRequest:
    """
    A batch of documents and the formats they should be converted to.

    Attributes:
        documents: Uploads in request order
        target_formats: Requested output formats, in order
        max_sizes: Ceiling in bytes per target format; absent means unbounded
        exam_type: Optional profile key, informational only
    """
    documents: List[DocumentPayload]
    target_formats: List[str]
    max_sizes: Dict[str, int] = field(default_factory=dict)
    exam_type: Optional[str] = None

    def __post_init__(self) -> None:
        unique: List[str] = []
        for target in self.target_formats:
            if target not in unique:
                unique.append(target)
        self.target_formats = unique

    def ceiling_for(self, target_format: str) -> Optional[int]:
        """Return the ceiling for ``target_format`` (``JPG`` and ``JPEG`` match) or ``None``."""

        if target_format in self.max_sizes:
            return self.max_sizes[target_format]
        wanted = TargetFormat.parse(target_format)
        for key, value in self.max_sizes.items():
            if key.upper() == target_format.upper():
                return value
            if wanted is not None and TargetFormat.parse(key) is wanted:
                return value
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversionRequest":
        raw_documents = data.get("files", data.get("documents", []))
        max_sizes = data.get("max_sizes", data.get("maxSizes")) or {}
        return cls(
            documents=[DocumentPayload.from_dict(item) for item in raw_documents],
            target_formats=list(data.get("target_formats", data.get("targetFormats", []))),
            max_sizes={str(key): int(value) for key, value in max_sizes.items()},
            exam_type=data.get("exam_type", data.get("examType")),
        )


@dataclass
class Artifact:
    """A successfully converted file whose bytes live in the ephemeral store."""

    original_name: str
    generated_name: str
    storage_handle: str
    format: str
    byte_size: int
    compression_ratio: Optional[float] = None

    @property
    def is_error(self) -> bool:
        return not self.storage_handle

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class ErrorEntry:
    """A (document, format) pair that could not be converted."""

    original_name: str
    generated_name: str
    format: str
    error: str
    storage_handle: str = ""
    byte_size: int = 0
    compression_ratio: Optional[float] = None

    @property
    def is_error(self) -> bool:
        return not self.storage_handle

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


ConversionOutcome = Union[Artifact, ErrorEntry]


@dataclass
class ConversionResponse:
    """Batch result handed back to the transport layer."""

    success: bool
    files: List[ConversionOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def successful(self) -> int:
        return sum(1 for outcome in self.files if not outcome.is_error)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.files if outcome.is_error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "files": [outcome.to_dict() for outcome in self.files],
            "error": self.error,
        }

    def __str__(self) -> str:
        if self.success:
            return f"ConversionResponse(success=True, converted={self.successful}, failed={self.failed})"
        return f"ConversionResponse(success=False, error='{self.error}')"


@dataclass(frozen=True)
class StorageStats:
    """Number of stored artifacts and their combined size in bytes."""

    count: int
    total_bytes: int


__all__ = [
    "PDF_MIME",
    "JPEG_MIME",
    "JPG_MIME",
    "PNG_MIME",
    "WEBP_MIME",
    "TEXT_MIME",
    "DOCX_MIME",
    "DOC_MIME",
    "TargetFormat",
    "ImageCodec",
    "CompressionPolicy",
    "DEFAULT_POLICY",
    "Document",
    "DocumentPayload",
    "ConversionRequest",
    "Artifact",
    "ErrorEntry",
    "ConversionOutcome",
    "ConversionResponse",
    "StorageStats",
]
