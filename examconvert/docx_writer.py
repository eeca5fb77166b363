"""Minimal DOCX package writer for plain text."""

from __future__ import annotations

import io
import re
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

__all__ = ["MAX_DOCX_CHARACTERS", "escape_xml_text", "build_document_xml", "write_text_docx"]

MAX_DOCX_CHARACTERS = 5000
DOCX_ZIP_TIMESTAMP = (2023, 1, 1, 0, 0, 0)

_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

CONTENT_TYPES_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    "</Types>"
)

ROOT_RELATIONSHIPS_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" '
    'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="word/document.xml"/>'
    "</Relationships>"
)

# Ampersand goes first so the entities added afterwards are not escaped twice.
_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
)


def escape_xml_text(text: str) -> str:
    for raw, entity in _XML_ESCAPES:
        text = text.replace(raw, entity)
    return text


def build_document_xml(text: str) -> str:
    """Return ``word/document.xml`` holding one paragraph with one run of ``text``."""

    body = escape_xml_text(_INVALID_XML_CHARS.sub("", text[:MAX_DOCX_CHARACTERS]))
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        f'<w:document xmlns:w="{W_NS}">'
        "<w:body>"
        "<w:p>"
        "<w:r>"
        f'<w:t xml:space="preserve">{body}</w:t>'
        "</w:r>"
        "</w:p>"
        "</w:body>"
        "</w:document>"
    )


def _zipinfo(name: str) -> ZipInfo:
    info = ZipInfo(name)
    info.date_time = DOCX_ZIP_TIMESTAMP
    info.compress_type = ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def write_text_docx(text: str) -> bytes:
    """Package ``text`` as a DOCX file and return its bytes."""

    parts = [
        ("[Content_Types].xml", CONTENT_TYPES_XML),
        ("_rels/.rels", ROOT_RELATIONSHIPS_XML),
        ("word/document.xml", build_document_xml(text)),
    ]
    buffer = io.BytesIO()
    with ZipFile(buffer, "w", compression=ZIP_DEFLATED) as archive:
        for name, data in parts:
            archive.writestr(_zipinfo(name), data.encode("utf-8"))
    return buffer.getvalue()
