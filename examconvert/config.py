"""Environment driven configuration for examconvert."""

from __future__ import annotations

import os
from typing import Optional

ENV_PREFIX = "EXAMCONVERT_"

INITIAL_QUALITY_ENV = f"{ENV_PREFIX}INITIAL_QUALITY"
QUALITY_FLOOR_ENV = f"{ENV_PREFIX}QUALITY_FLOOR"
MAX_ITERATIONS_ENV = f"{ENV_PREFIX}MAX_ITERATIONS"
STORE_SHARDS_ENV = f"{ENV_PREFIX}STORE_SHARDS"
LOG_LEVEL_ENV = f"{ENV_PREFIX}LOG_LEVEL"

DEFAULT_STORE_SHARDS = 16


def env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """Read an integer from the environment variable ``name``."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{value}'") from exc


def store_shards() -> int:
    shards = env_int(STORE_SHARDS_ENV, DEFAULT_STORE_SHARDS)
    if shards < 1:
        raise ValueError(f"{STORE_SHARDS_ENV} must be >= 1, got {shards}")
    return shards


__all__ = [
    "INITIAL_QUALITY_ENV",
    "QUALITY_FLOOR_ENV",
    "MAX_ITERATIONS_ENV",
    "STORE_SHARDS_ENV",
    "LOG_LEVEL_ENV",
    "DEFAULT_STORE_SHARDS",
    "env_int",
    "store_shards",
]
