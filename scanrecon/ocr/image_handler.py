"""Decoding of TIFF frames and standalone raster images.

Uses Pillow for every raster format; a multi-frame TIFF yields one page
per frame.
"""

import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from scanrecon.errors import DecodeError
from scanrecon.preprocessing.bitmap import from_rgba_buffer
from scanrecon.utils.logger import get_logger

logger = get_logger(__name__)


def _open(data: bytes) -> Image.Image:
    try:
        return Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, OSError) as exc:
        raise DecodeError(f"Unreadable image: {exc}") from exc


def frame_to_rgba(frame: Image.Image, page_index: int) -> np.ndarray:
    """Decode one frame to an RGBA bitmap.

    Args:
        frame: Pillow image positioned on the frame to decode.
        page_index: 1-based frame number, used in error messages.

    Returns:
        ``(h, w, 4)`` ``uint8`` bitmap.

    Raises:
        DecodeError: If the frame has invalid dimensions or no pixel data.
    """
    width, height = frame.size
    if width <= 0 or height <= 0:
        raise DecodeError(f"Invalid dimensions ({width}x{height})", page_index)

    try:
        rgba = frame.convert("RGBA").tobytes()
    except (OSError, ValueError) as exc:
        raise DecodeError(f"RGBA conversion failed: {exc}", page_index) from exc

    if not rgba:
        raise DecodeError("Frame produced empty pixel data", page_index)

    try:
        return from_rgba_buffer(rgba, width, height)
    except ValueError as exc:
        raise DecodeError(str(exc), page_index) from exc


class TIFFHandler:
    """Decodes multi-frame TIFF files, one frame per page."""

    def page_count(self, data: bytes) -> int:
        """Count the frames in a TIFF.

        Raises:
            DecodeError: If the file cannot be read or has no frames.
        """
        with _open(data) as image:
            count = getattr(image, "n_frames", 1)
        if count < 1:
            raise DecodeError("TIFF contains no frames")
        logger.debug("TIFF has %d frames", count)
        return count

    def render_page(self, data: bytes, page_index: int) -> np.ndarray:
        """Decode one frame to an RGBA bitmap.

        Args:
            data: Raw TIFF bytes.
            page_index: 1-based frame number.

        Raises:
            DecodeError: If the frame is missing or malformed.
        """
        with _open(data) as image:
            try:
                image.seek(page_index - 1)
            except EOFError as exc:
                raise DecodeError("Frame not found", page_index) from exc
            return frame_to_rgba(image, page_index)


class ImageHandler:
    """Decodes a standalone raster image (PNG, JPEG, BMP, ...) as one page."""

    def page_count(self, data: bytes) -> int:
        return 1

    def render_page(self, data: bytes, page_index: int = 1) -> np.ndarray:
        """Decode the image to an RGBA bitmap.

        Raises:
            DecodeError: If the bytes are not a readable image.
        """
        with _open(data) as image:
            return frame_to_rgba(image, page_index)
