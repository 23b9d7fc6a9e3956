"""Tesseract engine handle with serialized access.

The handle is acquired once, used for many recognition calls, and
released explicitly. A lock guarantees at most one call in flight.
"""

import shlex
import threading

import numpy as np
import pytesseract
from PIL import Image

from scanrecon.errors import RecognitionError
from scanrecon.utils.logger import get_logger

logger = get_logger(__name__)


class TesseractEngine:
    """Owned, reusable handle around the Tesseract executable.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
        dpi: Resolution hint passed to the engine.
        preserve_interword_spaces: Keep runs of spaces between words,
            which helps column alignment in tables.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        dpi: int = 300,
        preserve_interword_spaces: bool = True,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.dpi = dpi
        self.preserve_interword_spaces = preserve_interword_spaces
        self._lock = threading.Lock()
        self._version: str | None = None
        self._closed = False

    def __enter__(self) -> "TesseractEngine":
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_ready(self) -> bool:
        """Whether the engine has been acquired and not yet released."""
        return self._version is not None and not self._closed

    @property
    def closed(self) -> bool:
        """Whether the handle has been released."""
        return self._closed

    def acquire(self) -> None:
        """Start the engine if needed.

        Raises:
            RecognitionError: If the handle was released or Tesseract
                cannot be found.
        """
        with self._lock:
            self._ensure_started()

    def _ensure_started(self) -> None:
        if self._closed:
            raise RecognitionError("Recognition engine has been released")
        if self._version is not None:
            return
        try:
            self._version = str(pytesseract.get_tesseract_version())
        except pytesseract.TesseractNotFoundError as exc:
            raise RecognitionError(f"Tesseract is not available: {exc}") from exc
        logger.info("Tesseract %s ready (lang=%s)", self._version, self.default_lang)

    def build_config(self, psm: str, whitelist: str | None = None) -> str:
        """Build the Tesseract command-line configuration for one call.

        Args:
            psm: Page segmentation mode.
            whitelist: Characters the engine may emit, or ``None``.

        Returns:
            Configuration string for pytesseract.
        """
        parts = [f"--psm {psm}", f"--dpi {self.dpi}"]
        if self.preserve_interword_spaces:
            parts.append("-c preserve_interword_spaces=1")
        if whitelist:
            parts.append("-c " + shlex.quote(f"tessedit_char_whitelist={whitelist}"))
        return " ".join(parts)

    def recognize(
        self,
        image: np.ndarray,
        psm: str,
        whitelist: str | None = None,
    ) -> str:
        """Recognize the text in a bitmap.

        Blocks until any in-flight call on this handle has finished.

        Args:
            image: Page bitmap (grayscale, RGB, or RGBA).
            psm: Page segmentation mode for this call.
            whitelist: Optional character whitelist.

        Returns:
            Recognized text, possibly empty.

        Raises:
            RecognitionError: If the engine fails or has been released.
        """
        if image.ndim == 3 and image.shape[2] == 4:
            image = image[..., :3]
        pil_image = Image.fromarray(image)
        config = self.build_config(psm, whitelist)

        with self._lock:
            self._ensure_started()
            try:
                text = pytesseract.image_to_string(
                    pil_image, lang=self.default_lang, config=config
                )
            except pytesseract.TesseractError as exc:
                raise RecognitionError(f"Tesseract failed: {exc}") from exc

        text = text or ""
        logger.debug("Recognized %d characters with psm %s", len(text), psm)
        return text

    def close(self) -> None:
        """Release the handle. Waits for an in-flight call to finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._version = None
        logger.info("Tesseract engine released")
