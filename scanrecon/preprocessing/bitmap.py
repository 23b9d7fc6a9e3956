"""RGBA page bitmaps shared by the rasterizers and the preprocessor.

A page bitmap is a ``(height, width, 4)`` ``uint8`` numpy array in RGBA
channel order.
"""

import numpy as np

RGBA_CHANNELS = 4


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Coerce a grayscale, RGB, or RGBA array into an RGBA bitmap.

    Args:
        image: Array of shape ``(h, w)``, ``(h, w, 3)`` or ``(h, w, 4)``.

    Returns:
        A new ``(h, w, 4)`` ``uint8`` array; alpha is opaque when the
        input carries none.

    Raises:
        ValueError: If the array has an unsupported shape.
    """
    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        alpha = np.full(image.shape, 255, dtype=np.uint8)
        return np.dstack([image, image, image, alpha])

    if image.ndim == 3 and image.shape[2] == 3:
        alpha = np.full(image.shape[:2], 255, dtype=np.uint8)
        return np.dstack([image, alpha])

    if image.ndim == 3 and image.shape[2] == RGBA_CHANNELS:
        return image.copy()

    raise ValueError(f"Unsupported bitmap shape: {image.shape}")


def from_rgba_buffer(data: bytes, width: int, height: int) -> np.ndarray:
    """Build an RGBA bitmap from a flat pixel buffer.

    Args:
        data: Raw RGBA bytes, four per pixel, row-major.
        width: Bitmap width in pixels.
        height: Bitmap height in pixels.

    Returns:
        ``(height, width, 4)`` ``uint8`` array.

    Raises:
        ValueError: If the buffer length does not match the dimensions.
    """
    expected = width * height * RGBA_CHANNELS
    if len(data) != expected:
        raise ValueError(
            f"Pixel buffer has {len(data)} bytes, expected {expected} "
            f"for {width}x{height}"
        )
    return np.frombuffer(data, dtype=np.uint8).reshape(height, width, RGBA_CHANNELS)
