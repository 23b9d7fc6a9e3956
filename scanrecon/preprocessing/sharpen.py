"""Edge sharpening with a 3x3 Laplacian-style kernel."""

import cv2
import numpy as np

from scanrecon.utils.logger import get_logger

logger = get_logger(__name__)

SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.float32,
)


def sharpen(image: np.ndarray) -> np.ndarray:
    """Sharpen the RGB channels of an RGBA bitmap.

    Interior pixels are convolved with :data:`SHARPEN_KERNEL` and clamped
    to ``[0, 255]``. The outermost rows and columns keep their input values
    and alpha is copied through unchanged.

    Args:
        image: ``(h, w, 4)`` ``uint8`` bitmap.

    Returns:
        New sharpened ``(h, w, 4)`` ``uint8`` bitmap.
    """
    result = image.copy()
    h, w = image.shape[:2]
    if h < 3 or w < 3:
        return result

    rgb = image[..., :3].astype(np.float32)
    filtered = cv2.filter2D(rgb, -1, SHARPEN_KERNEL)
    clamped = np.clip(filtered, 0, 255).astype(np.uint8)
    result[1:-1, 1:-1, :3] = clamped[1:-1, 1:-1]

    logger.debug("Sharpened %dx%d bitmap", w, h)
    return result
