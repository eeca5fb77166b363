"""Utilities shared by examconvert modules."""

from __future__ import annotations

import logging
import os
import re

from .config import LOG_LEVEL_ENV

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?I?B?)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {
    "": 1,
    "B": 1,
    "K": 1024,
    "KB": 1024,
    "KIB": 1024,
    "M": 1024 ** 2,
    "MB": 1024 ** 2,
    "MIB": 1024 ** 2,
    "G": 1024 ** 3,
    "GB": 1024 ** 3,
    "GIB": 1024 ** 3,
}


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
        logger.setLevel(os.getenv(LOG_LEVEL_ENV, "WARNING").strip().upper() or "WARNING")
    return logger


def base_name(filename: str, default: str = "document") -> str:
    """Return ``filename`` up to its first ``.``, or ``default`` when empty."""

    return filename.split(".", 1)[0] or default


def normalize_mime_type(mime_type: str) -> str:
    """Lower-case ``mime_type`` and drop any ``; param=value`` suffix."""

    return mime_type.split(";", 1)[0].strip().lower()


def parse_size(value: str | int) -> int:
    """Parse a human size such as ``"500KB"`` or ``"1.5MB"`` into bytes."""

    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Size must be >= 0, got {value}")
        return value

    match = _SIZE_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid size: '{value}'. Expected e.g. '500KB', '2MB' or a byte count.")
    number, unit = match.groups()
    multiplier = _SIZE_UNITS.get((unit or "").upper())
    if multiplier is None:
        raise ValueError(f"Invalid size unit in '{value}'.")
    return int(float(number) * multiplier)


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500.0 KB")
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


__all__ = ["get_logger", "base_name", "normalize_mime_type", "parse_size", "format_file_size"]
