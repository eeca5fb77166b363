"""Pillow implementation of the :class:`~examconvert.backends.base.Codec` protocol."""

from __future__ import annotations

import io
from typing import Tuple

from PIL import Image, ImageDraw, UnidentifiedImageError

from ..exceptions import CodecError
from ..types import ImageCodec
from .base import Codec, Rasterizer

PLACEHOLDER_SIZE = (800, 600)
PLACEHOLDER_BACKGROUND = (240, 240, 240)
PLACEHOLDER_BORDER = (100, 100, 100)
PLACEHOLDER_BLOCK = (200, 200, 200)
PLACEHOLDER_BLOCK_HALF_SIZE = (50, 20)


class PillowCodec(Codec):
    """Codec backed by :mod:`PIL`."""

    def decode(self, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                return img.copy()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise CodecError(f"Unable to decode image: {exc}") from exc

    def encode(self, raster: Image.Image, codec: ImageCodec, quality: int | None = None) -> bytes:
        output = io.BytesIO()
        try:
            if codec is ImageCodec.JPEG:
                # PDF embedding declares JPEG streams as /DeviceRGB
                if raster.mode != "RGB":
                    raster = raster.convert("RGB")
                raster.save(output, format="JPEG", quality=quality if quality is not None else 85)
            elif codec is ImageCodec.PNG:
                raster.save(output, format="PNG", optimize=True)
            else:
                raise CodecError(f"Unsupported codec: {codec}")
        except (OSError, ValueError) as exc:
            raise CodecError(f"Unable to encode image as {codec.value}: {exc}") from exc
        return output.getvalue()

    def resize(self, raster: Image.Image, width: int, height: int) -> Image.Image:
        try:
            return raster.resize((max(1, width), max(1, height)), Image.LANCZOS)
        except (Image.DecompressionBombError, OSError, ValueError) as exc:
            raise CodecError(f"Unable to resize image to {width}x{height}: {exc}") from exc

    def dimensions(self, raster: Image.Image) -> Tuple[int, int]:
        return raster.size

    def rgb_pixels(self, raster: Image.Image) -> bytes:
        if raster.mode != "RGB":
            raster = raster.convert("RGB")
        return raster.tobytes()


class PlaceholderRasterizer(Rasterizer):
    """Draws the fixed stand-in image used when a PDF page is requested as an image.

    The output does not depend on the PDF content.
    """

    def rasterize(self, pdf_bytes: bytes) -> Image.Image:
        width, height = PLACEHOLDER_SIZE
        img = Image.new("RGB", PLACEHOLDER_SIZE, PLACEHOLDER_BACKGROUND)
        draw = ImageDraw.Draw(img)
        draw.rectangle((0, 0, width - 1, height - 1), outline=PLACEHOLDER_BORDER, width=1)

        center_x, center_y = width // 2, height // 2
        half_w, half_h = PLACEHOLDER_BLOCK_HALF_SIZE
        # PIL rectangles are inclusive of both corners
        draw.rectangle(
            (center_x - half_w, center_y - half_h, center_x + half_w - 1, center_y + half_h - 1),
            fill=PLACEHOLDER_BLOCK,
        )
        return img


__all__ = ["PillowCodec", "PlaceholderRasterizer", "PLACEHOLDER_SIZE"]
