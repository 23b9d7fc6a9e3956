"""Configurable page preprocessing pipeline for recognition.

Orchestrates upscaling, grayscale conversion, contrast stretch,
binarization, and sharpening with quality metrics tracking.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from scanrecon.utils.config import PreprocessingConfig
from scanrecon.utils.logger import get_logger

from .binarize import adjust_contrast, binarize, grayscale_luma
from .bitmap import to_rgba
from .resample import upscale
from .sharpen import sharpen

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def _to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input bitmap (grayscale, RGB, or RGBA).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(_to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input bitmap (grayscale, RGB, or RGBA).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(_to_gray(image).std())


def preprocess(image: np.ndarray, config: PreprocessingConfig) -> np.ndarray:
    """Turn a raw page bitmap into a recognition-friendly one.

    Steps, in order: upscale, optional grayscale, contrast stretch,
    binarization (optionally inverted), optional sharpening. The input
    is never modified.

    Args:
        image: Raw page bitmap (grayscale, RGB, or RGBA).
        config: Preprocessing settings.

    Returns:
        ``(h', w', 4)`` ``uint8`` bitmap whose RGB channels are 0 or 255
        (before sharpening) and whose alpha is carried over.

    Raises:
        RenderingUnavailable: If the scaled surface cannot be acquired.
    """
    scaled = upscale(to_rgba(image), config.upscale_factor)

    rgb = scaled[..., :3].astype(np.float64)
    if config.grayscale:
        rgb = grayscale_luma(rgb)
    rgb = adjust_contrast(rgb, config.contrast_percent)
    level = binarize(rgb, config.binarize_threshold, invert=config.invert)

    result = np.empty_like(scaled)
    result[..., :3] = level[..., np.newaxis]
    result[..., 3] = scaled[..., 3]

    if config.sharpen:
        result = sharpen(result)
    return result


class PreprocessingPipeline:
    """Page preprocessing with before/after quality measurement.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(
        self,
        image: np.ndarray,
        config: PreprocessingConfig | None = None,
    ) -> tuple[np.ndarray, QualityMetrics]:
        """Run the preprocessing pipeline on a page bitmap.

        Args:
            image: Raw page bitmap.
            config: Per-call override of the pipeline configuration.

        Returns:
            Tuple of (processed_image, quality_metrics).
        """
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            contrast_before=calculate_contrast(image),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        result = preprocess(image, config or self.config)

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)

        logger.info(
            "Preprocessing complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics
