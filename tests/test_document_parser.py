"""Tests for document text extraction."""

from io import BytesIO

import pytest
from docx import Document

from cv2site.models.document import ExtractionOutcome, RawDocument
from cv2site.parsers.document_parser import (
    DOCX_MIME,
    extract,
    extract_file,
    mime_for_path,
    read_document,
)


def _docx_bytes(*paragraphs: str, table: list[list[str]] | None = None) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        t = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                t.cell(r, c).text = value
    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


class TestTextExtraction:
    def test_plain_text(self):
        result = extract(RawDocument(content=b"Jane Doe\nEngineer", mime_type="text/plain"))
        assert result.outcome is ExtractionOutcome.OK
        assert result.content == "Jane Doe\nEngineer"
        assert result.reason is None

    def test_markdown(self):
        result = extract(RawDocument(content="# Jane Doe\n## Experience".encode(), mime_type="text/markdown"))
        assert not result.degraded
        assert "# Jane Doe" in result.content

    def test_mime_parameters_ignored(self):
        result = extract(RawDocument(content=b"hello", mime_type="text/plain; charset=utf-8"))
        assert result.content == "hello"

    def test_bom_stripped(self):
        result = extract(RawDocument(content="\ufeffJane".encode("utf-8"), mime_type="text/plain"))
        assert result.content == "Jane"

    def test_invalid_utf8_is_replaced_not_degraded(self):
        result = extract(RawDocument(content=b"Jos\xe9 Garc\xeda", mime_type="text/plain"))
        assert not result.degraded
        assert result.content.startswith("Jos")

    def test_short_text_is_not_degraded(self):
        result = extract(RawDocument(content=b"0123456789", mime_type="text/plain"))
        assert not result.degraded
        assert result.content == "0123456789"


class TestDocxExtraction:
    def test_paragraphs_and_tables(self):
        content = _docx_bytes("Jane Doe", "", "Senior Engineer at Acme", table=[["Python", "Go"]])
        result = extract(RawDocument(content=content, mime_type=DOCX_MIME, filename="cv.docx"))
        assert not result.degraded
        assert result.content.splitlines()[:2] == ["Jane Doe", "Senior Engineer at Acme"]
        assert "Python" in result.content
        assert "Go" in result.content

    def test_generic_mime_uses_filename(self):
        content = _docx_bytes("Jane Doe")
        result = extract(RawDocument(content=content, mime_type="application/octet-stream", filename="CV.DOCX"))
        assert result.content == "Jane Doe"

    def test_corrupt_docx_is_degraded(self):
        result = extract(RawDocument(content=b"definitely not a zip", mime_type=DOCX_MIME))
        assert result.degraded
        assert result.reason == "content could not be extracted"
        assert result.content == ""

    def test_empty_docx_is_degraded(self):
        result = extract(RawDocument(content=_docx_bytes(), mime_type=DOCX_MIME))
        assert result.degraded
        assert result.reason == "no text content found"


class TestUnsupportedAndLimits:
    @pytest.mark.parametrize(
        "mime_type",
        ["application/pdf", "application/msword", "image/png"],
    )
    def test_unsupported_formats_degrade(self, mime_type):
        result = extract(RawDocument(content=b"%PDF-1.7 ...", mime_type=mime_type))
        assert result.degraded
        assert result.reason.startswith(f"unsupported file format: {mime_type}")

    def test_unknown_without_filename(self):
        result = extract(RawDocument(content=b"data"))
        assert result.degraded
        assert "unsupported file format" in result.reason

    def test_size_limit(self):
        result = extract(RawDocument(content=b"x" * 11, mime_type="text/plain"), max_bytes=10)
        assert result.degraded
        assert result.reason == "document exceeds size limit"

    def test_at_size_limit_is_accepted(self):
        result = extract(RawDocument(content=b"x" * 10, mime_type="text/plain"), max_bytes=10)
        assert not result.degraded


class TestExtractFile:
    def test_txt_file(self, tmp_path):
        path = tmp_path / "resume.txt"
        path.write_text("Jane Doe\nEngineer", encoding="utf-8")
        assert extract_file(path).content == "Jane Doe\nEngineer"

    def test_docx_file(self, tmp_path):
        path = tmp_path / "resume.docx"
        path.write_bytes(_docx_bytes("Jane Doe"))
        assert extract_file(path).content == "Jane Doe"

    def test_pdf_file_degrades(self, tmp_path):
        path = tmp_path / "resume.pdf"
        path.write_bytes(b"%PDF-1.7")
        assert extract_file(path).degraded

    def test_read_document(self, tmp_path):
        path = tmp_path / "Resume.MD"
        path.write_bytes(b"# Jane")

        document = read_document(path)

        assert document == RawDocument(content=b"# Jane", mime_type="text/markdown", filename="Resume.MD")

    def test_mime_for_path(self):
        assert mime_for_path("a/b/cv.md") == "text/markdown"
        assert mime_for_path("cv.xyz") == "application/octet-stream"
