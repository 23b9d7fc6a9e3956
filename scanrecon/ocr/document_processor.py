"""Unified document text extraction.

Dispatches PDF, TIFF, and single-image inputs to the matching
rasterizer, recognizes every page in order, and joins the page texts
with explicit page-break markers.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Protocol

import numpy as np

from scanrecon.errors import RenderingUnavailable
from scanrecon.utils.config import AppConfig, PreprocessingConfig
from scanrecon.utils.logger import get_logger

from .image_handler import ImageHandler, TIFFHandler
from .pdf_handler import PDFHandler
from .progress import STAGE_RASTER, PageProgressEvent, ProgressChannel
from .recognition import RecognitionDriver

logger = get_logger(__name__)

PAGE_BREAK = "\n\n--- PAGE BREAK ---\n\n"

_TIFF_MAGIC = (b"II*\x00", b"MM\x00*")
_TIFF_CONTENT_TYPES = {"image/tiff", "image/tif"}


class DocumentKind(StrEnum):
    """Input container kinds with distinct page handling."""

    PDF = "pdf"
    TIFF = "tiff"
    IMAGE = "image"


class PageRasterizer(Protocol):
    """Turns page ``n`` of a document into an RGBA bitmap."""

    def page_count(self, data: bytes) -> int: ...

    def render_page(self, data: bytes, page_index: int) -> np.ndarray: ...


def detect_kind(
    data: bytes,
    filename: str = "",
    content_type: str | None = None,
) -> DocumentKind:
    """Classify a document by magic bytes, content type, then extension.

    Args:
        data: Raw document bytes.
        filename: Original file name, if any.
        content_type: Declared MIME type, if any.

    Returns:
        The detected document kind; unknown inputs are single images.
    """
    if data[:4] == b"%PDF":
        return DocumentKind.PDF
    if data[:4] in _TIFF_MAGIC:
        return DocumentKind.TIFF

    if content_type == "application/pdf":
        return DocumentKind.PDF
    if content_type in _TIFF_CONTENT_TYPES:
        return DocumentKind.TIFF

    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf":
        return DocumentKind.PDF
    if suffix in (".tif", ".tiff"):
        return DocumentKind.TIFF
    return DocumentKind.IMAGE


def join_pages(texts: list[str]) -> str:
    """Join trimmed page texts with page breaks, dropping empty pages."""
    return PAGE_BREAK.join(t for t in (text.strip() for text in texts) if t)


@dataclass
class PageResult:
    """Recognition outcome for a single document page."""

    page_number: int
    text: str
    pass_number: int
    segmentation_mode: str
    score: float


@dataclass
class DocumentResult:
    """Complete text extraction results for a document."""

    source_file: str
    kind: DocumentKind
    page_count: int
    pages: list[PageResult] = field(default_factory=list)
    combined_text: str = ""


class DocumentProcessor:
    """End-to-end page rasterization and recognition for one document.

    Pages are processed strictly in order; a failure on any page aborts
    the whole document.

    Args:
        config: Application configuration object.
        driver: Recognition driver; built from ``config`` when omitted.
        progress: Channel receiving raster and recognition events.
    """

    def __init__(
        self,
        config: AppConfig,
        driver: RecognitionDriver | None = None,
        progress: ProgressChannel | None = None,
    ) -> None:
        self.config = config
        self.driver = driver or RecognitionDriver.from_config(config.ocr)
        self.progress = progress or ProgressChannel()
        self._rasterizers: dict[DocumentKind, PageRasterizer] = {
            DocumentKind.PDF: PDFHandler(scale=config.ocr.pdf_scale),
            DocumentKind.TIFF: TIFFHandler(),
            DocumentKind.IMAGE: ImageHandler(),
        }
        self._presets: dict[DocumentKind, PreprocessingConfig] = {
            DocumentKind.PDF: config.ocr.pdf,
            DocumentKind.TIFF: config.ocr.tiff,
            DocumentKind.IMAGE: config.ocr.image,
        }

    def process(
        self,
        source: Path | bytes,
        filename: str = "document",
        content_type: str | None = None,
    ) -> DocumentResult:
        """Extract the text of a document from a file path or bytes.

        Args:
            source: Path to a document file, or raw file bytes.
            filename: Display name, also used for kind detection.
            content_type: Declared MIME type, if known.

        Returns:
            Per-page results and the combined text.

        Raises:
            DecodeError: If the document or one of its pages is malformed.
            RenderingUnavailable: If a page surface cannot be acquired.
            RecognitionError: If the recognition engine fails.
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            data = path.read_bytes()
            if filename == "document":
                filename = path.name
        else:
            data = source

        kind = detect_kind(data, filename, content_type)
        rasterizer = self._rasterizers[kind]
        preset = self._presets[kind]
        total = rasterizer.page_count(data)
        logger.info("Processing %s (%s, %d pages)", filename, kind, total)

        pages: list[PageResult] = []
        for page_index in range(1, total + 1):
            self.progress.publish(
                PageProgressEvent(
                    stage=STAGE_RASTER, page_index=page_index, total_pages=total
                )
            )
            bitmap = rasterizer.render_page(data, page_index)
            try:
                best = self.driver.recognize_best(
                    bitmap,
                    preprocessing=preset,
                    channel=self.progress,
                    page_index=page_index,
                    total_pages=total,
                )
            except RenderingUnavailable as exc:
                if exc.page_index is not None:
                    raise
                raise RenderingUnavailable(str(exc), page_index) from exc

            pages.append(
                PageResult(
                    page_number=page_index,
                    text=best.text.strip(),
                    pass_number=best.pass_number,
                    segmentation_mode=best.segmentation_mode,
                    score=best.score,
                )
            )

        combined_text = join_pages([p.text for p in pages])
        logger.info(
            "Extracted %d characters from %d pages of %s",
            len(combined_text),
            total,
            filename,
        )
        return DocumentResult(
            source_file=filename,
            kind=kind,
            page_count=total,
            pages=pages,
            combined_text=combined_text,
        )

    def extract_text(
        self,
        source: Path | bytes,
        filename: str = "document",
        content_type: str | None = None,
    ) -> str:
        """Extract the combined text of a document."""
        return self.process(source, filename, content_type).combined_text

    def close(self) -> None:
        """Release the recognition engine."""
        self.driver.close()
