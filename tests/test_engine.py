from __future__ import annotations

import base64
import io
import zipfile

import pytest
from PIL import Image
from pypdf import PdfReader

from examconvert.engine import ConversionEngine, compression_ratio, convert_documents, decode_payload
from examconvert.exceptions import DocumentDecodeError, SizeLimitExceededError, UnsupportedConversionError
from examconvert.store import EphemeralStore
from examconvert.types import (
    DOC_MIME,
    DOCX_MIME,
    Artifact,
    ConversionRequest,
    Document,
    DocumentPayload,
    ErrorEntry,
)

from conftest import encode_image


def test_outcome_count_is_documents_times_formats(engine, request_factory, png_bytes, jpeg_bytes) -> None:
    request = request_factory(
        [("a.png", png_bytes, "image/png"), ("b.jpg", jpeg_bytes, "image/jpeg")],
        ["PDF", "JPEG", "PNG"],
    )

    response = engine.run(request)

    assert response.success
    assert len(response.files) == 6
    assert response.successful == 6
    assert [outcome.generated_name for outcome in response.files[:3]] == ["a.pdf", "a.jpeg", "a.png"]
    assert engine.storage_stats().count == 6


def test_outcomes_follow_document_then_format_order(engine, request_factory, png_bytes) -> None:
    request = request_factory(
        [("one.png", png_bytes, "image/png"), ("two.png", png_bytes, "image/png")],
        ["PNG", "PDF"],
    )

    outcomes = engine.convert_batch(request)

    assert [(o.original_name, o.format) for o in outcomes] == [
        ("one.png", "PNG"),
        ("one.png", "PDF"),
        ("two.png", "PNG"),
        ("two.png", "PDF"),
    ]


def test_png_to_jpeg_respects_ceiling(engine, request_factory) -> None:
    gradient = Image.linear_gradient("L").resize((2000, 1000)).convert("RGB")
    content = encode_image(gradient, "PNG")
    request = request_factory([("scan.png", content, "image/png")], ["JPEG"], {"JPEG": 50000})

    response = engine.run(request)

    [artifact] = response.files
    assert isinstance(artifact, Artifact)
    assert artifact.byte_size <= 50000
    stored = engine.fetch_stored(artifact.storage_handle)
    assert len(stored) == artifact.byte_size
    with Image.open(io.BytesIO(stored)) as img:
        assert img.format == "JPEG"


def test_artifact_metadata(engine, request_factory, png_bytes) -> None:
    request = request_factory([("photo.final.png", png_bytes, "image/png")], ["pdf"])

    [artifact] = engine.run(request).files

    assert artifact.generated_name == "photo.pdf"
    assert artifact.format == "pdf"
    assert artifact.compression_ratio == pytest.approx(artifact.byte_size / len(png_bytes))
    PdfReader(io.BytesIO(engine.fetch_stored(artifact.storage_handle)))


def test_invalid_base64_is_batch_fatal(engine, payload_factory, png_bytes) -> None:
    request = ConversionRequest(
        documents=[
            payload_factory("good.png", png_bytes, "image/png"),
            DocumentPayload(name="bad.png", content="!!!not base64!!!", mime_type="image/png"),
        ],
        target_formats=["PDF"],
    )

    response = engine.run(request)

    assert not response.success
    assert response.files == []
    assert "bad.png" in response.error
    assert engine.storage_stats().count == 0


def test_convert_batch_raises_decode_error(engine) -> None:
    request = ConversionRequest(
        documents=[DocumentPayload(name="x.txt", content="abc", mime_type="text/plain")],
        target_formats=["PDF"],
    )
    with pytest.raises(DocumentDecodeError) as excinfo:
        engine.convert_batch(request)
    assert excinfo.value.document_name == "x.txt"


def test_pdf_to_docx_is_error_entry(engine, request_factory, pdf_bytes) -> None:
    request = request_factory([("admit.pdf", pdf_bytes, "application/pdf")], ["DOCX"])

    response = engine.run(request)

    assert response.success
    [entry] = response.files
    assert isinstance(entry, ErrorEntry)
    assert entry.format == "DOCX"
    assert entry.byte_size == 0
    assert entry.storage_handle == ""
    assert entry.generated_name == "ERROR_admit.docx"
    assert "application/pdf" in entry.error
    assert response.failed == 1


def test_failed_pair_does_not_stop_other_pairs(engine, request_factory, png_bytes) -> None:
    request = request_factory([("a.png", png_bytes, "image/png")], ["DOCX", "PNG"])

    outcomes = engine.run(request).files

    assert isinstance(outcomes[0], ErrorEntry)
    assert isinstance(outcomes[1], Artifact)


def test_unknown_target_format(engine, request_factory, png_bytes) -> None:
    [entry] = engine.run(request_factory([("a.png", png_bytes, "image/png")], ["TIFF"])).files
    assert entry.is_error
    assert entry.error == "Unsupported format: TIFF"
    assert entry.generated_name == "ERROR_a.tiff"


def test_docx_and_doc_pass_through(engine, request_factory) -> None:
    body = b"PK\x03\x04 pretend docx"
    request = request_factory(
        [("cv.docx", body, DOCX_MIME), ("old.doc", b"legacy", DOC_MIME)],
        ["DOCX"],
    )

    first, second = engine.run(request).files

    assert engine.fetch_stored(first.storage_handle) == body
    assert engine.fetch_stored(second.storage_handle) == b"legacy"
    assert second.generated_name == "old.docx"


def test_empty_documents_are_skipped(engine, request_factory, png_bytes) -> None:
    request = request_factory(
        [("empty.png", b"", "image/png"), ("a.png", png_bytes, "image/png")],
        ["PDF", "PNG"],
    )

    outcomes = engine.run(request).files

    assert len(outcomes) == 2
    assert {o.original_name for o in outcomes} == {"a.png"}


def test_text_conversions(engine, request_factory) -> None:
    text = "Name: A & B <test>\nRoll: 42".encode("utf-8")
    request = request_factory([("notes.txt", text, "text/plain; charset=utf-8")], ["PDF", "DOCX"])

    pdf_artifact, docx_artifact = engine.run(request).files

    assert len(PdfReader(io.BytesIO(engine.fetch_stored(pdf_artifact.storage_handle))).pages) == 1
    with zipfile.ZipFile(io.BytesIO(engine.fetch_stored(docx_artifact.storage_handle))) as archive:
        assert "A &amp; B &lt;test&gt;" in archive.read("word/document.xml").decode("utf-8")


def test_mime_matching_is_case_insensitive(engine, request_factory, png_bytes) -> None:
    [artifact] = engine.run(request_factory([("a.png", png_bytes, "IMAGE/PNG")], ["jpg"])).files
    assert not artifact.is_error
    assert artifact.generated_name == "a.jpg"


def test_malformed_pdf_to_pdf_is_returned_unchanged(engine, request_factory) -> None:
    garbage = b"%PDF-1.7 garbage"
    [artifact] = engine.run(request_factory([("broken.pdf", garbage, "application/pdf")], ["PDF"])).files
    assert engine.fetch_stored(artifact.storage_handle) == garbage
    assert artifact.compression_ratio == pytest.approx(1.0)


def test_pdf_to_image_uses_placeholder(engine, request_factory, pdf_bytes) -> None:
    request = request_factory([("admit.pdf", pdf_bytes, "application/pdf")], ["PNG", "JPEG"])

    png_artifact, jpeg_artifact = engine.run(request).files

    with Image.open(io.BytesIO(engine.fetch_stored(png_artifact.storage_handle))) as img:
        assert img.size == (800, 600)
    assert not jpeg_artifact.is_error


def test_size_backstop_rejects_oversized_output(engine) -> None:
    document = Document(name="cv.docx", content=b"x" * 500, mime_type=DOCX_MIME)
    with pytest.raises(SizeLimitExceededError, match="File size 500 exceeds limit 100"):
        engine.convert_pair(document, "DOCX", 100)


def test_size_backstop_becomes_error_entry(engine, request_factory) -> None:
    request = request_factory([("cv.docx", b"x" * 500, DOCX_MIME)], ["DOCX"], {"docx": 100})
    [entry] = engine.run(request).files
    assert entry.error == "File size 500 exceeds limit 100"


def test_convert_pair_unsupported() -> None:
    document = Document(name="a.txt", content=b"hi", mime_type="text/plain")
    with pytest.raises(UnsupportedConversionError):
        ConversionEngine().convert_pair(document, "JPEG", None)


def test_clear_all_reports_removed(engine, request_factory, png_bytes) -> None:
    response = engine.run(request_factory([("a.png", png_bytes, "image/png")], ["PNG", "PDF"]))
    expected_bytes = sum(outcome.byte_size for outcome in response.files)

    removed = engine.clear_all()

    assert removed.count == 2
    assert removed.total_bytes == expected_bytes
    assert engine.fetch_stored(response.files[0].storage_handle) is None
    assert engine.storage_stats().count == 0


def test_supported_conversions_lists_matrix() -> None:
    pairs = ConversionEngine().supported_conversions()
    assert ("image/png", "JPEG") in pairs
    assert ("text/plain", "DOCX") in pairs
    assert ("application/pdf", "DOCX") not in pairs


def test_decode_payload_and_ratio_helpers() -> None:
    payload = DocumentPayload(name="a", content=base64.b64encode(b"abc").decode(), mime_type="text/plain")
    assert decode_payload(payload).content == b"abc"
    assert compression_ratio(5, 10) == 0.5
    assert compression_ratio(5, 0) is None


def test_convert_documents_helper(payload_factory, png_bytes) -> None:
    engine = ConversionEngine(store=EphemeralStore(shards=1))
    response = convert_documents([payload_factory("a.png", png_bytes, "image/png")], ["PNG"], engine=engine)
    assert response.successful == 1


def test_decompression_bomb_is_per_pair_error(engine, request_factory, monkeypatch) -> None:
    oversized = encode_image(Image.new("1", (100, 100)), "PNG")
    small = encode_image(Image.new("RGB", (20, 20), (0, 90, 0)), "PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    request = request_factory(
        [("ok.png", small, "image/png"), ("huge.png", oversized, "image/png")],
        ["PDF"],
    )

    response = engine.run(request)

    assert response.success
    artifact, entry = response.files
    assert isinstance(artifact, Artifact)
    assert isinstance(entry, ErrorEntry)
    assert entry.generated_name == "ERROR_huge.pdf"
    assert "Unable to decode image" in entry.error
    assert engine.storage_stats().count == 1


def test_jpg_target_uses_jpeg_ceiling(engine, request_factory, noisy_png_bytes) -> None:
    request = request_factory([("scan.png", noisy_png_bytes, "image/png")], ["JPG"], {"JPEG": 40000})

    [artifact] = engine.run(request).files

    assert not artifact.is_error
    assert artifact.generated_name == "scan.jpg"
    assert artifact.byte_size <= 40000
