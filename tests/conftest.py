from __future__ import annotations

import base64
import io
import random
from pathlib import Path
from typing import Callable, Optional
import sys

import pytest
from PIL import Image
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from examconvert.engine import ConversionEngine  # noqa: E402
from examconvert.store import EphemeralStore  # noqa: E402
from examconvert.types import ConversionRequest, DocumentPayload  # noqa: E402


def encode_image(image: Image.Image, fmt: str, **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def noisy_image(width: int, height: int, seed: int = 7) -> Image.Image:
    """Random RGB noise; compresses badly, which forces the ladders to run."""
    rng = random.Random(seed)
    return Image.frombytes("RGB", (width, height), rng.randbytes(width * height * 3))


@pytest.fixture()
def png_bytes() -> bytes:
    image = Image.new("RGB", (120, 80), (30, 120, 200))
    return encode_image(image, "PNG")


@pytest.fixture()
def jpeg_bytes() -> bytes:
    image = Image.new("RGB", (160, 120), (200, 50, 50))
    return encode_image(image, "JPEG", quality=95)


@pytest.fixture()
def noisy_png_bytes() -> bytes:
    return encode_image(noisy_image(400, 300), "PNG")


@pytest.fixture()
def pdf_bytes() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    writer.add_metadata({"/Title": "Admit Card"})
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture()
def engine() -> ConversionEngine:
    return ConversionEngine(store=EphemeralStore(shards=4))


@pytest.fixture()
def payload_factory() -> Callable[..., DocumentPayload]:
    def _create(name: str, content: bytes, mime_type: str) -> DocumentPayload:
        return DocumentPayload(
            name=name,
            content=base64.b64encode(content).decode("ascii"),
            mime_type=mime_type,
        )

    return _create


@pytest.fixture()
def request_factory(payload_factory) -> Callable[..., ConversionRequest]:
    def _create(
        documents: list[tuple[str, bytes, str]],
        target_formats: list[str],
        max_sizes: Optional[dict[str, int]] = None,
    ) -> ConversionRequest:
        return ConversionRequest(
            documents=[payload_factory(*document) for document in documents],
            target_formats=target_formats,
            max_sizes=max_sizes or {},
        )

    return _create
