"""Plain-text extraction from uploaded résumé files (TXT, MD, DOCX)."""

from __future__ import annotations

import logging
import zipfile
import zlib
from io import BytesIO
from pathlib import Path, PurePath

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from lxml import etree

from cv2site.models.document import ExtractedText, RawDocument

logger = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIMES = frozenset({"text/plain", "text/markdown", "text/x-markdown"})

# Declared types that say nothing about the format; fall back to the filename
_GENERIC_MIMES = frozenset({"", "application/octet-stream", "binary/octet-stream"})

_MIME_BY_SUFFIX = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".docx": DOCX_MIME,
    ".doc": "application/msword",
    ".pdf": "application/pdf",
}

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


def extract(document: RawDocument, *, max_bytes: int = DEFAULT_MAX_BYTES) -> ExtractedText:
    """Convert an uploaded document to plain text.

    Never raises for bad input: unsupported or unreadable files come back as a
    degraded ``ExtractedText`` that the structuring stage will refuse.
    """
    if len(document.content) > max_bytes:
        logger.warning(
            "Document %r is %d bytes (limit %d)", document.filename, len(document.content), max_bytes
        )
        return ExtractedText.degraded_with("document exceeds size limit")

    mime = _effective_mime(document)
    if mime in TEXT_MIMES:
        return ExtractedText.ok(_decode_text(document.content))
    if mime == DOCX_MIME:
        return _extract_docx(document)

    logger.warning("Unsupported document type %r for %r", mime, document.filename)
    return ExtractedText.degraded_with(
        f"unsupported file format: {mime or 'unknown'}. Please upload a DOCX or TXT file instead."
    )


def extract_file(path: str | Path, *, max_bytes: int = DEFAULT_MAX_BYTES) -> ExtractedText:
    """Read a file from disk and extract it, guessing the type from its suffix."""
    return extract(read_document(path), max_bytes=max_bytes)


def read_document(path: str | Path) -> RawDocument:
    p = Path(path)
    return RawDocument(content=p.read_bytes(), mime_type=mime_for_path(p), filename=p.name)


def mime_for_path(path: str | PurePath) -> str:
    return _MIME_BY_SUFFIX.get(PurePath(path).suffix.lower(), "application/octet-stream")


def _effective_mime(document: RawDocument) -> str:
    mime = document.mime_type.split(";", 1)[0].strip().lower()
    if mime in _GENERIC_MIMES:
        suffix = PurePath(document.filename).suffix.lower()
        return _MIME_BY_SUFFIX.get(suffix, mime)
    return mime


def _decode_text(content: bytes) -> str:
    return content.decode("utf-8", errors="replace").lstrip("\ufeff")


def _extract_docx(document: RawDocument) -> ExtractedText:
    try:
        doc = Document(BytesIO(document.content))
        lines = [p.text for p in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                for cell in row.cells:
                    lines.extend(p.text for p in cell.paragraphs)
    except (
        PackageNotFoundError,
        zipfile.BadZipFile,
        zlib.error,
        etree.XMLSyntaxError,
        EOFError,
        KeyError,
        ValueError,
        OSError,
    ) as exc:
        logger.warning("DOCX parsing error for %r: %s", document.filename, exc)
        return ExtractedText.degraded_with("content could not be extracted")

    text = "\n".join(line for line in lines if line.strip()).strip()
    if not text:
        return ExtractedText.degraded_with("no text content found")
    return ExtractedText.ok(text)
