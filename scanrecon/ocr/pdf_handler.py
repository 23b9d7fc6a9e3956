"""PDF page rasterization for multi-page document processing.

Renders PDF pages one at a time to RGBA bitmaps so that only the page
being recognized is held in memory.
"""

import numpy as np
from pdf2image import convert_from_bytes
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFSyntaxError,
)
from pdf2image.pdf2image import pdfinfo_from_bytes

from scanrecon.errors import DecodeError, RenderingUnavailable
from scanrecon.utils.logger import get_logger

logger = get_logger(__name__)

POINTS_PER_INCH = 72


class PDFHandler:
    """Renders PDF pages to bitmaps at a fixed scale.

    Args:
        scale: Rendering scale relative to the PDF's 72 points per inch.
            Higher values favor legibility over speed and memory.
    """

    def __init__(self, scale: float = 3.0) -> None:
        self.scale = scale
        self.dpi = round(POINTS_PER_INCH * scale)

    def page_count(self, data: bytes) -> int:
        """Get the number of pages in a PDF without rendering it.

        Args:
            data: Raw PDF bytes.

        Returns:
            Number of pages.

        Raises:
            DecodeError: If the bytes are not a readable PDF.
            RenderingUnavailable: If the poppler utilities are missing.
        """
        try:
            info = pdfinfo_from_bytes(data)
        except PDFInfoNotInstalledError as exc:
            raise RenderingUnavailable(f"PDF renderer not installed: {exc}") from exc
        except (PDFPageCountError, PDFSyntaxError) as exc:
            raise DecodeError(f"Invalid PDF: {exc}") from exc

        count = int(info.get("Pages", 0))
        if count < 1:
            raise DecodeError("PDF contains no pages")
        logger.debug("PDF has %d pages", count)
        return count

    def render_page(self, data: bytes, page_index: int) -> np.ndarray:
        """Render one page to an RGBA bitmap.

        Args:
            data: Raw PDF bytes.
            page_index: 1-based page number.

        Returns:
            ``(h, w, 4)`` ``uint8`` bitmap.

        Raises:
            DecodeError: If the page cannot be rendered.
            RenderingUnavailable: If the poppler utilities are missing.
        """
        try:
            images = convert_from_bytes(
                data,
                dpi=self.dpi,
                first_page=page_index,
                last_page=page_index,
            )
        except PDFInfoNotInstalledError as exc:
            raise RenderingUnavailable(
                f"PDF renderer not installed: {exc}", page_index
            ) from exc
        except (PDFPageCountError, PDFSyntaxError) as exc:
            raise DecodeError(f"Invalid PDF: {exc}", page_index) from exc

        if not images:
            raise DecodeError("PDF page produced no image", page_index)

        bitmap = np.array(images[0].convert("RGBA"))
        logger.debug(
            "Rendered PDF page %d at %d DPI (%dx%d)",
            page_index,
            self.dpi,
            bitmap.shape[1],
            bitmap.shape[0],
        )
        return bitmap
