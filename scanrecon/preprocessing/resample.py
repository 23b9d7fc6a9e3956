"""Upscaling of page bitmaps before recognition.

Small glyphs recognize poorly; resampling to a larger surface with a
smooth interpolation filter gives the engine more pixels per stroke.
"""

import math

import cv2
import numpy as np

from scanrecon.errors import RenderingUnavailable
from scanrecon.utils.logger import get_logger

logger = get_logger(__name__)


def target_size(width: int, height: int, factor: float) -> tuple[int, int]:
    """Compute the scaled surface size, never smaller than 1x1.

    Args:
        width: Source width in pixels.
        height: Source height in pixels.
        factor: Positive scale factor.

    Returns:
        ``(width, height)`` of the scaled surface.
    """
    return (
        max(1, math.floor(width * factor)),
        max(1, math.floor(height * factor)),
    )


def upscale(image: np.ndarray, factor: float) -> np.ndarray:
    """Resample an image by ``factor`` using bicubic (or area) interpolation.

    Args:
        image: Input bitmap of shape ``(h, w)`` or ``(h, w, c)``.
        factor: Positive scale factor.

    Returns:
        Resampled bitmap with the same channel count and dtype.

    Raises:
        RenderingUnavailable: If the target surface cannot be allocated
            or the resampler rejects the input.
    """
    if factor <= 0:
        raise ValueError(f"Upscale factor must be positive, got {factor}")

    h, w = image.shape[:2]
    new_w, new_h = target_size(w, h, factor)

    if (new_w, new_h) == (w, h):
        return image.copy()

    interpolation = cv2.INTER_CUBIC if factor >= 1 else cv2.INTER_AREA
    try:
        result = cv2.resize(image, (new_w, new_h), interpolation=interpolation)
    except (cv2.error, MemoryError) as exc:
        raise RenderingUnavailable(
            f"Could not allocate {new_w}x{new_h} surface: {exc}"
        ) from exc

    logger.debug("Resampled %dx%d -> %dx%d", w, h, new_w, new_h)
    return result
