"""Tests for TIFF frame and standalone image decoding."""

import io
from unittest.mock import MagicMock

import numpy as np
import pytest
from PIL import Image

from scanrecon.errors import DecodeError
from scanrecon.ocr.image_handler import ImageHandler, TIFFHandler, frame_to_rgba


def _tiff_bytes(colors: list[str]) -> bytes:
    images = [Image.new("RGB", (8, 6), color) for color in colors]
    buf = io.BytesIO()
    images[0].save(buf, format="TIFF", save_all=True, append_images=images[1:])
    return buf.getvalue()


class TestFrameToRGBA:
    """Tests for single-frame decoding."""

    def test_rgb_frame(self) -> None:
        bitmap = frame_to_rgba(Image.new("RGB", (4, 3), (10, 20, 30)), 1)
        assert bitmap.shape == (3, 4, 4)
        np.testing.assert_array_equal(bitmap[0, 0], [10, 20, 30, 255])

    def test_grayscale_frame(self) -> None:
        bitmap = frame_to_rgba(Image.new("L", (2, 2), 128), 1)
        np.testing.assert_array_equal(bitmap[1, 1], [128, 128, 128, 255])

    def test_zero_width_rejected(self) -> None:
        with pytest.raises(DecodeError, match=r"Page 3: Invalid dimensions \(0x5\)") as exc:
            frame_to_rgba(Image.new("RGB", (0, 5)), 3)
        assert exc.value.page_index == 3

    def test_empty_pixel_data_rejected(self) -> None:
        frame = MagicMock()
        frame.size = (4, 4)
        frame.convert.return_value.tobytes.return_value = b""
        with pytest.raises(DecodeError, match="empty pixel data"):
            frame_to_rgba(frame, 2)

    def test_conversion_failure_rejected(self) -> None:
        frame = MagicMock()
        frame.size = (4, 4)
        frame.convert.side_effect = OSError("truncated")
        with pytest.raises(DecodeError, match="RGBA conversion failed"):
            frame_to_rgba(frame, 1)

    def test_short_pixel_buffer_rejected(self) -> None:
        frame = MagicMock()
        frame.size = (4, 4)
        frame.convert.return_value.tobytes.return_value = b"\x00" * 10
        with pytest.raises(DecodeError, match="expected 64"):
            frame_to_rgba(frame, 1)


class TestTIFFHandler:
    """Tests for multi-frame TIFF decoding."""

    def test_page_count(self) -> None:
        assert TIFFHandler().page_count(_tiff_bytes(["white", "black", "red"])) == 3

    def test_render_each_frame(self) -> None:
        data = _tiff_bytes(["white", "black"])
        handler = TIFFHandler()
        assert (handler.render_page(data, 1)[..., :3] == 255).all()
        assert (handler.render_page(data, 2)[..., :3] == 0).all()

    def test_missing_frame(self) -> None:
        with pytest.raises(DecodeError, match="Page 4: Frame not found"):
            TIFFHandler().render_page(_tiff_bytes(["white"]), 4)

    def test_invalid_bytes(self) -> None:
        with pytest.raises(DecodeError, match="Unreadable image"):
            TIFFHandler().page_count(b"II*\x00garbage")


class TestImageHandler:
    """Tests for standalone image decoding."""

    def test_single_page(self) -> None:
        buf = io.BytesIO()
        Image.new("RGBA", (5, 7), (1, 2, 3, 4)).save(buf, format="PNG")
        handler = ImageHandler()
        assert handler.page_count(buf.getvalue()) == 1
        bitmap = handler.render_page(buf.getvalue())
        assert bitmap.shape == (7, 5, 4)
        np.testing.assert_array_equal(bitmap[0, 0], [1, 2, 3, 4])

    def test_invalid_bytes(self) -> None:
        with pytest.raises(DecodeError):
            ImageHandler().render_page(b"definitely not an image")
