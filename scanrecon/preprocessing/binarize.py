"""Grayscale conversion, contrast stretch, and fixed-threshold binarization.

All functions operate on the RGB channels of a page bitmap as floating
point values so that intermediate results are not clipped before the
threshold is applied.
"""

import numpy as np

from scanrecon.utils.logger import get_logger

logger = get_logger(__name__)

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def grayscale_luma(rgb: np.ndarray) -> np.ndarray:
    """Replace each pixel's RGB with its luma, replicated across channels.

    Args:
        rgb: ``(h, w, 3)`` array of channel values.

    Returns:
        ``(h, w, 3)`` float array with identical channels.
    """
    luma = rgb.astype(np.float64) @ LUMA_WEIGHTS
    return np.repeat(luma[..., np.newaxis], 3, axis=2)


def adjust_contrast(rgb: np.ndarray, contrast_percent: float) -> np.ndarray:
    """Stretch contrast around mid-gray.

    Each channel becomes ``v * c + 128 * (1 - c)`` with
    ``c = contrast_percent / 100 + 1``. Values are not clamped.

    Args:
        rgb: ``(h, w, 3)`` array of channel values.
        contrast_percent: Contrast boost in percent; 0 leaves values as is.

    Returns:
        Float array of adjusted channel values.
    """
    factor = contrast_percent / 100 + 1
    intercept = 128 * (1 - factor)
    return rgb.astype(np.float64) * factor + intercept


def binarize(rgb: np.ndarray, threshold: int, invert: bool = False) -> np.ndarray:
    """Threshold the channel average into pure black and white.

    Args:
        rgb: ``(h, w, 3)`` array of channel values.
        threshold: Averages at or above this value become white (255).
        invert: Swap black and white after thresholding.

    Returns:
        ``(h, w)`` ``uint8`` array containing only 0 and 255.
    """
    mean = rgb.astype(np.float64).sum(axis=2) / 3
    white = mean >= threshold
    if invert:
        white = ~white
    result = np.where(white, 255, 0).astype(np.uint8)
    logger.debug(
        "Binarized at threshold %d (invert=%s), %.1f%% white",
        threshold,
        invert,
        100.0 * float(white.mean()) if white.size else 0.0,
    )
    return result
