"""Тесты растеризатора PDF (pdf2image замокан)."""

import logging
from unittest.mock import patch

import pytest
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFSyntaxError,
)
from PIL import Image

from mcp_ocr.errors import (
    CorruptDocumentError,
    FailureKind,
    InputNotFoundError,
    OCRServiceError,
    UnreadableInputError,
    UnsupportedDocumentError,
)
from mcp_ocr.services.pdf_processor import PdfRasterizer

PDFINFO = "mcp_ocr.services.pdf_processor.pdfinfo_from_path"
CONVERT = "mcp_ocr.services.pdf_processor.convert_from_path"


@pytest.fixture
def rasterizer():
    return PdfRasterizer(dpi=150, fmt="png", poppler_path="/opt/poppler")


class TestRasterize:
    def test_page_count_without_rendering(self, rasterizer, sample_pdf):
        with patch(PDFINFO, return_value={"Pages": 3, "Encrypted": "no"}) as info, \
                patch(CONVERT) as convert:
            pages = rasterizer.rasterize(sample_pdf)

        assert len(pages) == 3
        convert.assert_not_called()
        assert info.call_args.kwargs["poppler_path"] == "/opt/poppler"

    def test_zero_pages(self, rasterizer, sample_pdf):
        with patch(PDFINFO, return_value={"Pages": 0}):
            pages = rasterizer.rasterize(sample_pdf)

        assert len(pages) == 0
        assert list(pages) == []

    def test_missing_file(self, rasterizer, tmp_path):
        with pytest.raises(InputNotFoundError):
            rasterizer.rasterize(str(tmp_path / "vanished.pdf"))

    def test_not_a_pdf(self, rasterizer, tmp_path):
        path = tmp_path / "image.pdf"
        path.write_bytes(b"\x89PNG\r\n\x1a\n")

        with pytest.raises(UnsupportedDocumentError):
            rasterizer.rasterize(str(path))

    def test_corrupt_pdf(self, rasterizer, sample_pdf):
        error = PDFPageCountError(
            "Unable to get page count.\nSyntax Error: Couldn't read xref table"
        )
        with patch(PDFINFO, side_effect=error):
            with pytest.raises(CorruptDocumentError) as exc_info:
                rasterizer.rasterize(sample_pdf)

        assert "Couldn't read xref table" in exc_info.value.message

    def test_password_required(self, rasterizer, sample_pdf):
        error = PDFPageCountError("Unable to get page count.\nCommand Line Error: Incorrect password")
        with patch(PDFINFO, side_effect=error):
            with pytest.raises(UnreadableInputError):
                rasterizer.rasterize(sample_pdf)

    def test_poppler_not_installed(self, rasterizer, sample_pdf):
        with patch(PDFINFO, side_effect=PDFInfoNotInstalledError("pdfinfo not found")):
            with pytest.raises(OCRServiceError) as exc_info:
                rasterizer.rasterize(sample_pdf)

        assert exc_info.value.kind == FailureKind.INTERNAL_ERROR

    def test_encrypted_document_is_not_rejected(self, rasterizer, sample_pdf, caplog):
        info = {"Pages": 2, "Encrypted": "yes (print:yes copy:no change:no addNotes:no)"}
        with caplog.at_level(logging.WARNING), patch(PDFINFO, return_value=info):
            pages = rasterizer.rasterize(sample_pdf)

        assert len(pages) == 2
        assert any("зашифрован" in record.message for record in caplog.records)


class TestRenderPage:
    def test_renders_single_page_on_access(self, rasterizer, sample_pdf):
        rendered = Image.new("RGB", (10, 10))
        with patch(PDFINFO, return_value={"Pages": 3}), \
                patch(CONVERT, return_value=[rendered]) as convert:
            pages = rasterizer.rasterize(sample_pdf)
            image = pages[1]

        assert image is rendered
        convert.assert_called_once()
        kwargs = convert.call_args.kwargs
        assert kwargs["first_page"] == 2
        assert kwargs["last_page"] == 2
        assert kwargs["dpi"] == 150
        assert kwargs["fmt"] == "png"

    def test_pages_in_document_order(self, rasterizer, sample_pdf):
        def fake_convert(path, first_page, last_page, **kwargs):
            return [Image.new("L", (first_page, 1))]

        with patch(PDFINFO, return_value={"Pages": 3}), patch(CONVERT, side_effect=fake_convert):
            widths = [page.width for page in rasterizer.rasterize(sample_pdf)]

        assert widths == [1, 2, 3]

    def test_render_error_is_page_failure(self, rasterizer, sample_pdf):
        with patch(PDFINFO, return_value={"Pages": 2}), \
                patch(CONVERT, side_effect=PDFSyntaxError("Syntax Error: bad stream")):
            pages = rasterizer.rasterize(sample_pdf)
            with pytest.raises(UnreadableInputError) as exc_info:
                pages[1]

        assert exc_info.value.page_index == 1
        assert "page 2" in exc_info.value.message

    def test_renderer_warnings_do_not_fail_page(self, rasterizer, sample_pdf):
        """Страница, которую poppler отрендерил с предупреждениями, успешна."""
        rendered = Image.new("RGB", (2, 2))
        with patch(PDFINFO, return_value={"Pages": 1}), \
                patch(CONVERT, return_value=[rendered]) as convert:
            image = rasterizer.rasterize(sample_pdf)[0]

        assert image is rendered
        assert convert.call_args.kwargs.get("strict", False) is False

    def test_empty_render_is_page_failure(self, rasterizer, sample_pdf):
        with patch(PDFINFO, return_value={"Pages": 1}), patch(CONVERT, return_value=[]):
            pages = rasterizer.rasterize(sample_pdf)
            with pytest.raises(UnreadableInputError):
                pages[0]

    def test_index_out_of_range(self, rasterizer, sample_pdf):
        with patch(PDFINFO, return_value={"Pages": 1}):
            pages = rasterizer.rasterize(sample_pdf)

        with pytest.raises(IndexError):
            pages[1]

    def test_default_dpi_is_300(self):
        assert PdfRasterizer().dpi == 300
