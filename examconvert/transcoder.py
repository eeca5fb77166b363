"""Size-fitting image transcoding built on the :class:`Codec` capability.

Two ladders are used to bring an encoded image under a byte ceiling:

* the *quality ladder* re-encodes a JPEG at decreasing quality levels, and
* the *resize ladder* shrinks both dimensions by a decaying scale factor and
  re-encodes at the initial quality (JPEG) or losslessly (PNG).

Every ladder is bounded by ``CompressionPolicy.max_iterations``.
"""

from __future__ import annotations

import math
from typing import Optional

from .backends.base import Codec
from .backends.pillow_backend import PillowCodec
from .exceptions import CompressionExhaustedError
from .types import DEFAULT_POLICY, CompressionPolicy, ImageCodec
from .utils import get_logger

LOGGER = get_logger("examconvert.transcoder")


def fits(size: int, ceiling: Optional[int]) -> bool:
    """Return ``True`` when ``size`` is within ``ceiling`` (``None`` is unbounded)."""

    return ceiling is None or size <= ceiling


def next_quality(quality: int, policy: CompressionPolicy) -> int:
    return max(policy.quality_floor, int(math.floor(quality * policy.quality_decay)))


def scaled_dimensions(width: int, height: int, scale: float) -> tuple[int, int]:
    return max(1, int(width * scale)), max(1, int(height * scale))


class ImageTranscoder:
    """Re-encode images until they fit a byte ceiling."""

    def __init__(
        self,
        *,
        codec: Optional[Codec] = None,
        policy: Optional[CompressionPolicy] = None,
    ) -> None:
        self.codec: Codec = codec or PillowCodec()
        self.policy = policy or DEFAULT_POLICY

    # ------------------------------------------------------------------
    # Public ladders
    # ------------------------------------------------------------------
    def fit_jpeg(self, content: bytes, ceiling: Optional[int]) -> bytes:
        """Walk the quality ladder, then fall back to the resize ladder."""

        raster = self.codec.decode(content)
        quality = self.policy.initial_quality

        for _ in range(self.policy.max_iterations):
            encoded = self.codec.encode(raster, ImageCodec.JPEG, quality)
            LOGGER.debug("JPEG quality %s -> %s bytes", quality, len(encoded))
            if fits(len(encoded), ceiling) or quality <= self.policy.quality_floor:
                LOGGER.info("JPEG compressed to %s bytes with %s%% quality", len(encoded), quality)
                return encoded
            quality = next_quality(quality, self.policy)

        return self.resize_then_fit_jpeg(raster, ceiling)

    def resize_then_fit_jpeg(self, raster: object, ceiling: Optional[int]) -> bytes:
        return self._resize_ladder(raster, ceiling, ImageCodec.JPEG)

    def fit_png(self, content: bytes, ceiling: Optional[int]) -> bytes:
        """Encode losslessly; shrink the image only when that is too large."""

        raster = self.codec.decode(content)
        encoded = self.codec.encode(raster, ImageCodec.PNG)
        if fits(len(encoded), ceiling):
            LOGGER.info("PNG size: %s bytes (within limit)", len(encoded))
            return encoded
        return self._resize_ladder(raster, ceiling, ImageCodec.PNG)

    def convert_format(self, content: bytes, target: ImageCodec, ceiling: Optional[int]) -> bytes:
        """Re-encode ``content`` once in ``target`` then fit it to ``ceiling``."""

        raster = self.codec.decode(content)
        return self.fit_encoded(raster, target, ceiling)

    def fit_encoded(self, raster: object, target: ImageCodec, ceiling: Optional[int]) -> bytes:
        """Encode ``raster`` at default settings and run the matching fit routine."""

        if target is ImageCodec.JPEG:
            encoded = self.codec.encode(raster, ImageCodec.JPEG, self.policy.initial_quality)
            return self.fit_jpeg(encoded, ceiling)
        encoded = self.codec.encode(raster, ImageCodec.PNG)
        return self.fit_png(encoded, ceiling)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _resize_ladder(self, raster: object, ceiling: Optional[int], target: ImageCodec) -> bytes:
        width, height = self.codec.dimensions(raster)
        scale = self.policy.scale_start
        quality = self.policy.initial_quality if target is ImageCodec.JPEG else None

        for _ in range(self.policy.max_iterations):
            new_width, new_height = scaled_dimensions(width, height, scale)
            resized = self.codec.resize(raster, new_width, new_height)
            encoded = self.codec.encode(resized, target, quality)
            LOGGER.debug(
                "%s scale %.4f (%sx%s) -> %s bytes", target.value, scale, new_width, new_height, len(encoded)
            )
            if fits(len(encoded), ceiling):
                LOGGER.info(
                    "%s resized and compressed: %sx%s, %s bytes", target.value, new_width, new_height, len(encoded)
                )
                return encoded
            scale *= self.policy.scale_decay

        raise CompressionExhaustedError(
            f"Could not compress {target.value} to {ceiling} bytes after "
            f"{self.policy.max_iterations} iterations"
        )


__all__ = ["ImageTranscoder", "fits", "next_quality", "scaled_dimensions"]
