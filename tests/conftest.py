"""Shared test fixtures for the scanrecon test suite."""

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from scanrecon.ocr.tesseract_engine import TesseractEngine


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_rgba_image() -> np.ndarray:
    """Create a simple synthetic RGBA test image."""
    image = np.zeros((200, 300, 4), dtype=np.uint8)
    image[..., 3] = 255
    image[50:150, 50:250, :3] = 255
    return image


class FakeEngine(TesseractEngine):
    """Engine that returns canned text per segmentation mode."""

    def __init__(self, texts: dict[str, str] | None = None) -> None:
        super().__init__()
        self.texts = texts or {}
        self.calls: list[tuple[str, str | None]] = []
        self.images: list[np.ndarray] = []
        self.acquired = 0

    def acquire(self) -> None:
        self.acquired += 1

    def recognize(
        self, image: np.ndarray, psm: str, whitelist: str | None = None
    ) -> str:
        self.calls.append((psm, whitelist))
        self.images.append(image)
        return self.texts.get(psm, "")


@pytest.fixture
def make_engine() -> Callable[..., TesseractEngine]:
    """Build engines that return canned text per segmentation mode."""
    return FakeEngine


@pytest.fixture
def fake_engine() -> FakeEngine:
    """An engine whose psm 6 and psm 11 passes return fixed text."""
    return FakeEngine({"6": "Invoice 001 Total 10.00", "11": "Inv 1"})


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
