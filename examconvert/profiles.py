"""
Built-in exam upload profiles.

Each profile names the formats an exam portal accepts and the largest file
it allows per format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .exceptions import UnknownProfileError
from .types import ConversionRequest, DocumentPayload

KB = 1024
MB = 1024 * KB


@dataclass(frozen=True)
class ExamProfile:
    """
    Upload requirements of one exam.

    Attributes:
        key: Lookup key (e.g. ``"neet"``)
        name: Display name
        formats: Accepted target formats
        max_sizes: Ceiling in bytes per format
    """
    key: str
    name: str
    formats: List[str]
    max_sizes: Dict[str, int] = field(default_factory=dict)

    def apply(self, documents: Sequence[DocumentPayload]) -> ConversionRequest:
        """Build a request converting ``documents`` to this profile's formats."""

        return ConversionRequest(
            documents=list(documents),
            target_formats=list(self.formats),
            max_sizes=dict(self.max_sizes),
            exam_type=self.key,
        )


PROFILES: Dict[str, ExamProfile] = {
    profile.key: profile
    for profile in (
        ExamProfile("neet", "NEET", ["PDF", "JPEG"], {"PDF": 2 * MB, "JPEG": 500 * KB}),
        ExamProfile(
            "jee", "JEE", ["PDF", "JPEG", "PNG"], {"PDF": 1 * MB, "JPEG": 300 * KB, "PNG": 300 * KB}
        ),
        ExamProfile(
            "upsc", "UPSC", ["PDF", "JPEG", "PNG"], {"PDF": 3 * MB, "JPEG": 1 * MB, "PNG": 1 * MB}
        ),
        ExamProfile("cat", "CAT", ["PDF", "JPEG"], {"PDF": 1536 * KB, "JPEG": 400 * KB}),
        ExamProfile(
            "gate", "GATE", ["PDF", "JPEG", "PNG"], {"PDF": 2 * MB, "JPEG": 500 * KB, "PNG": 500 * KB}
        ),
    )
}


def get_profile(key: str) -> ExamProfile:
    try:
        return PROFILES[key.strip().lower()]
    except KeyError:
        available = ", ".join(PROFILES)
        raise UnknownProfileError(
            f"Exam configuration not found: '{key}'. Available: {available}"
        ) from None


def list_profiles() -> List[ExamProfile]:
    return list(PROFILES.values())


__all__ = ["ExamProfile", "PROFILES", "get_profile", "list_profiles"]
