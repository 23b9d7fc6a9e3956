"""Tests for PDF page rasterization."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError
from PIL import Image

from scanrecon.errors import DecodeError, RenderingUnavailable
from scanrecon.ocr.document_processor import DocumentProcessor
from scanrecon.ocr.pdf_handler import PDFHandler
from scanrecon.ocr.recognition import RecognitionDriver, RecognitionResult
from scanrecon.utils.config import AppConfig


def _pil_page(width: int = 30, height: int = 20) -> Image.Image:
    return Image.fromarray(np.full((height, width, 3), 200, dtype=np.uint8))


class TestPDFHandler:
    """Tests for the PDFHandler class (pdf2image mocked)."""

    def test_scale_to_dpi(self) -> None:
        assert PDFHandler().dpi == 216
        assert PDFHandler(scale=2.0).dpi == 144

    @patch("scanrecon.ocr.pdf_handler.pdfinfo_from_bytes")
    def test_page_count(self, mock_info: MagicMock) -> None:
        mock_info.return_value = {"Pages": 4}
        assert PDFHandler().page_count(b"%PDF") == 4

    @patch("scanrecon.ocr.pdf_handler.pdfinfo_from_bytes")
    def test_page_count_invalid_pdf(self, mock_info: MagicMock) -> None:
        mock_info.side_effect = PDFPageCountError("Unable to get page count")
        with pytest.raises(DecodeError, match="Invalid PDF"):
            PDFHandler().page_count(b"garbage")

    @patch("scanrecon.ocr.pdf_handler.pdfinfo_from_bytes")
    def test_page_count_zero(self, mock_info: MagicMock) -> None:
        mock_info.return_value = {"Pages": 0}
        with pytest.raises(DecodeError, match="no pages"):
            PDFHandler().page_count(b"%PDF")

    @patch("scanrecon.ocr.pdf_handler.pdfinfo_from_bytes")
    def test_missing_poppler(self, mock_info: MagicMock) -> None:
        mock_info.side_effect = PDFInfoNotInstalledError("poppler missing")
        with pytest.raises(RenderingUnavailable):
            PDFHandler().page_count(b"%PDF")

    @patch("scanrecon.ocr.pdf_handler.convert_from_bytes")
    def test_render_page(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_pil_page()]
        bitmap = PDFHandler(scale=3.0).render_page(b"%PDF", 2)

        assert bitmap.shape == (20, 30, 4)
        assert (bitmap[..., 3] == 255).all()
        mock_convert.assert_called_once_with(b"%PDF", dpi=216, first_page=2, last_page=2)

    @patch("scanrecon.ocr.pdf_handler.convert_from_bytes")
    def test_render_page_no_image(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = []
        with pytest.raises(DecodeError, match="Page 3") as exc:
            PDFHandler().render_page(b"%PDF", 3)
        assert exc.value.page_index == 3

    @patch("scanrecon.ocr.pdf_handler.convert_from_bytes")
    def test_render_page_invalid_pdf(self, mock_convert: MagicMock) -> None:
        mock_convert.side_effect = PDFPageCountError("broken")
        with pytest.raises(DecodeError, match="Page 1: Invalid PDF"):
            PDFHandler().render_page(b"%PDF", 1)

    @patch("scanrecon.ocr.pdf_handler.convert_from_bytes")
    @patch("scanrecon.ocr.pdf_handler.pdfinfo_from_bytes")
    def test_pages_rendered_in_order(
        self, mock_info: MagicMock, mock_convert: MagicMock
    ) -> None:
        mock_info.return_value = {"Pages": 2}
        mock_convert.side_effect = [[_pil_page(10, 10)], [_pil_page(12, 8)]]
        driver = MagicMock(spec=RecognitionDriver)
        driver.recognize_best.side_effect = [
            RecognitionResult("one", 1, "6", 3.0),
            RecognitionResult("two", 1, "6", 3.0),
        ]

        result = DocumentProcessor(AppConfig(), driver=driver).process(b"%PDF-1.4", "a.pdf")

        assert result.page_count == 2
        shapes = [c.args[0].shape for c in driver.recognize_best.call_args_list]
        assert shapes == [(10, 10, 4), (8, 12, 4)]
        first_pages = [c.kwargs["first_page"] for c in mock_convert.call_args_list]
        assert first_pages == [1, 2]
