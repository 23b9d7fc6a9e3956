"""Tests for document kind detection and page assembly."""

import io
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest
from PIL import Image

from scanrecon.errors import DecodeError, RenderingUnavailable
from scanrecon.ocr.document_processor import (
    PAGE_BREAK,
    DocumentKind,
    DocumentProcessor,
    detect_kind,
    join_pages,
)
from scanrecon.ocr.progress import ProgressChannel
from scanrecon.ocr.tesseract_engine import TesseractEngine
from scanrecon.ocr.recognition import RecognitionDriver, RecognitionResult
from scanrecon.preprocessing.resample import target_size
from scanrecon.utils.config import AppConfig


class FakeRasterizer:
    """Rasterizer serving blank pages, optionally failing on one page."""

    def __init__(self, pages: int, fail_on: int | None = None) -> None:
        self.pages = pages
        self.fail_on = fail_on
        self.rendered: list[int] = []

    def page_count(self, data: bytes) -> int:
        return self.pages

    def render_page(self, data: bytes, page_index: int) -> np.ndarray:
        if page_index == self.fail_on:
            raise DecodeError("Invalid dimensions (0x10)", page_index)
        self.rendered.append(page_index)
        return np.zeros((4, 4, 4), dtype=np.uint8)


def _driver_returning(texts: list[str]) -> MagicMock:
    driver = MagicMock(spec=RecognitionDriver)
    driver.recognize_best.side_effect = [
        RecognitionResult(text=t, pass_number=1, segmentation_mode="6", score=1.0)
        for t in texts
    ]
    return driver


def _processor(
    driver: MagicMock, rasterizer: FakeRasterizer, kind: DocumentKind
) -> DocumentProcessor:
    processor = DocumentProcessor(AppConfig(), driver=driver)
    processor._rasterizers[kind] = rasterizer
    return processor


def _png_bytes(width: int = 30, height: int = 20) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buf, format="PNG")
    return buf.getvalue()


def _tiff_bytes(frames: int) -> bytes:
    images = [Image.new("RGB", (20, 10), "white") for _ in range(frames)]
    buf = io.BytesIO()
    images[0].save(buf, format="TIFF", save_all=True, append_images=images[1:])
    return buf.getvalue()


class TestDetectKind:
    """Tests for document kind detection."""

    def test_pdf_magic(self) -> None:
        assert detect_kind(b"%PDF-1.7\n...") == DocumentKind.PDF

    def test_tiff_magic_little_and_big_endian(self) -> None:
        assert detect_kind(b"II*\x00rest") == DocumentKind.TIFF
        assert detect_kind(b"MM\x00*rest") == DocumentKind.TIFF

    def test_content_type(self) -> None:
        assert detect_kind(b"xxxx", content_type="application/pdf") == DocumentKind.PDF
        assert detect_kind(b"xxxx", content_type="image/tif") == DocumentKind.TIFF

    def test_extension(self) -> None:
        assert detect_kind(b"xxxx", "scan.PDF") == DocumentKind.PDF
        assert detect_kind(b"xxxx", "scan.tiff") == DocumentKind.TIFF

    def test_defaults_to_image(self) -> None:
        assert detect_kind(_png_bytes(), "receipt.png", "image/png") == DocumentKind.IMAGE


class TestJoinPages:
    """Tests for page-break joining."""

    def test_empty_page_dropped(self) -> None:
        assert join_pages(["A", "", "B"]) == "A\n\n--- PAGE BREAK ---\n\nB"

    def test_whitespace_pages_dropped_and_trimmed(self) -> None:
        assert join_pages(["  \n", " A \n", "\t"]) == "A"

    def test_no_pages(self) -> None:
        assert join_pages([]) == ""


class TestDocumentProcessor:
    """Tests for page iteration and assembly."""

    def test_pages_joined_in_order(self) -> None:
        driver = _driver_returning(["A", "", "B"])
        rasterizer = FakeRasterizer(pages=3)
        processor = _processor(driver, rasterizer, DocumentKind.PDF)

        result = processor.process(b"%PDF-fake", "doc.pdf")

        assert result.combined_text == f"A{PAGE_BREAK}B"
        assert result.page_count == 3
        assert [p.page_number for p in result.pages] == [1, 2, 3]
        assert rasterizer.rendered == [1, 2, 3]

    def test_page_text_trimmed(self) -> None:
        driver = _driver_returning(["  Invoice 7 \n\n"])
        processor = _processor(driver, FakeRasterizer(pages=1), DocumentKind.IMAGE)
        assert processor.extract_text(b"img", "a.png") == "Invoice 7"

    def test_raster_progress_events(self) -> None:
        channel = ProgressChannel()
        events = []
        channel.subscribe(events.append)
        driver = _driver_returning(["A", "B"])
        processor = DocumentProcessor(AppConfig(), driver=driver, progress=channel)
        processor._rasterizers[DocumentKind.TIFF] = FakeRasterizer(pages=2)

        processor.process(b"II*\x00", "scan.tif")

        raster = [(e.page_index, e.total_pages) for e in events if e.stage == "raster"]
        assert raster == [(1, 2), (2, 2)]
        for call, page in zip(driver.recognize_best.call_args_list, (1, 2)):
            assert call.kwargs["page_index"] == page
            assert call.kwargs["total_pages"] == 2
            assert call.kwargs["channel"] is channel

    def test_kind_specific_preprocessing(self) -> None:
        config = AppConfig()
        driver = _driver_returning(["A"])
        processor = DocumentProcessor(config, driver=driver)
        processor._rasterizers[DocumentKind.TIFF] = FakeRasterizer(pages=1)

        processor.process(b"II*\x00", "scan.tif")

        assert driver.recognize_best.call_args.kwargs["preprocessing"] == config.ocr.tiff

    def test_malformed_frame_aborts_document(self) -> None:
        driver = _driver_returning(["A", "B", "C"])
        rasterizer = FakeRasterizer(pages=3, fail_on=2)
        processor = _processor(driver, rasterizer, DocumentKind.TIFF)

        with pytest.raises(DecodeError, match="Page 2") as excinfo:
            processor.process(b"II*\x00", "scan.tif")

        assert excinfo.value.page_index == 2
        assert driver.recognize_best.call_count == 1
        assert rasterizer.rendered == [1]

    def test_rendering_failure_gets_page_index(self) -> None:
        driver = MagicMock(spec=RecognitionDriver)
        driver.recognize_best.side_effect = RenderingUnavailable("no surface")
        processor = _processor(driver, FakeRasterizer(pages=2), DocumentKind.PDF)

        with pytest.raises(RenderingUnavailable) as excinfo:
            processor.process(b"%PDF", "doc.pdf")

        assert excinfo.value.page_index == 1
        assert "Page 1" in str(excinfo.value)

    def test_reads_path(self, tmp_path: Path) -> None:
        path = tmp_path / "receipt.png"
        path.write_bytes(b"not really a png")
        driver = _driver_returning(["Total 5.00"])
        processor = _processor(driver, FakeRasterizer(pages=1), DocumentKind.IMAGE)

        result = processor.process(path)

        assert result.source_file == "receipt.png"
        assert result.combined_text == "Total 5.00"

    def test_close_releases_driver(self) -> None:
        driver = MagicMock(spec=RecognitionDriver)
        DocumentProcessor(AppConfig(), driver=driver).close()
        driver.close.assert_called_once()


class TestDocumentProcessorEndToEnd:
    """Real decoding and preprocessing with a canned recognition engine."""

    def _processor(self, engine: TesseractEngine) -> DocumentProcessor:
        driver = RecognitionDriver(engine_factory=lambda: engine)
        return DocumentProcessor(AppConfig(), driver=driver)

    def test_png(self, make_engine: Callable[..., TesseractEngine]) -> None:
        engine = make_engine({"6": "Receipt #12", "11": ""})
        result = self._processor(engine).process(_png_bytes(), "r.png", "image/png")

        assert result.kind == DocumentKind.IMAGE
        assert result.combined_text == "Receipt #12"
        factor = AppConfig().ocr.image.upscale_factor
        width, height = target_size(30, 20, factor)
        assert engine.images[0].shape == (height, width, 4)

    def test_multi_frame_tiff(self, make_engine: Callable[..., TesseractEngine]) -> None:
        engine = make_engine({"6": "page", "11": ""})
        result = self._processor(engine).process(_tiff_bytes(3), "scan.tiff")

        assert result.kind == DocumentKind.TIFF
        assert result.page_count == 3
        assert result.combined_text == PAGE_BREAK.join(["page"] * 3)
        assert len(engine.calls) == 6
