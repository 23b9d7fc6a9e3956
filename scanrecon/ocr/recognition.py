"""Multi-pass text recognition with automatic result selection.

Each page is preprocessed once and recognized under several page
segmentation strategies. Uniform-block segmentation (psm 6) suits prose
while sparse-text segmentation (psm 11) suits tables; neither wins
reliably, so every strategy runs and the highest-scoring text is kept.
"""

import re
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

from scanrecon.preprocessing.pipeline import PreprocessingPipeline
from scanrecon.utils.config import OCRConfig, PreprocessingConfig
from scanrecon.utils.logger import get_logger

from .progress import STAGE_OCR, PageProgressEvent, ProgressChannel
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)

REPLACEMENT_GLYPH = "\ufffd"
REPLACEMENT_PENALTY = 5
LENGTH_BONUS_CAP = 200

_LETTERS = re.compile(r"[A-Za-z]")
_DIGITS = re.compile(r"[0-9]")


def score_text(text: str) -> float:
    """Score recognized text by how much usable signal it carries.

    Letters and digits count one point each, every replacement glyph
    costs five, and the trimmed length adds up to 200 points (one per
    five characters). Blank text scores zero.

    Args:
        text: Recognized text.

    Returns:
        Heuristic quality score.
    """
    stripped = (text or "").strip()
    if not stripped:
        return 0
    letters = len(_LETTERS.findall(stripped))
    digits = len(_DIGITS.findall(stripped))
    bad = stripped.count(REPLACEMENT_GLYPH)
    return (
        letters
        + digits
        - bad * REPLACEMENT_PENALTY
        + min(LENGTH_BONUS_CAP, len(stripped) / 5)
    )


@dataclass(frozen=True)
class SegmentationStrategy:
    """One recognition pass configuration."""

    mode: str
    description: str = ""


DEFAULT_STRATEGIES: tuple[SegmentationStrategy, ...] = (
    SegmentationStrategy("6", "uniform block of text"),
    SegmentationStrategy("11", "sparse text"),
)


def strategies_for(psm_primary: str, psm_fallback: str) -> tuple[SegmentationStrategy, ...]:
    """Build the primary/fallback strategy pair."""
    return (
        SegmentationStrategy(str(psm_primary), "primary"),
        SegmentationStrategy(str(psm_fallback), "fallback"),
    )


@dataclass
class RecognitionResult:
    """Text produced by one recognition pass."""

    text: str
    pass_number: int
    segmentation_mode: str
    score: float = 0.0


Scorer = Callable[[str], float]
EngineFactory = Callable[[], TesseractEngine]


class RecognitionDriver:
    """Runs every segmentation strategy on a page and keeps the best text.

    The engine is created lazily on first use and reused across pages and
    documents until :meth:`close` is called.

    Args:
        engine_factory: Creates the engine handle on first use.
        strategies: Ordered passes to attempt; earlier passes win ties.
        scorer: Quality function used to pick the winning pass.
        preprocessing: Default preprocessing applied before recognition.
        whitelist: Optional character whitelist for every pass.
    """

    def __init__(
        self,
        engine_factory: EngineFactory = TesseractEngine,
        strategies: Sequence[SegmentationStrategy] = DEFAULT_STRATEGIES,
        scorer: Scorer = score_text,
        preprocessing: PreprocessingConfig | None = None,
        whitelist: str | None = None,
    ) -> None:
        if not strategies:
            raise ValueError("At least one segmentation strategy is required")
        self._engine_factory = engine_factory
        self._engine: TesseractEngine | None = None
        self._engine_lock = threading.Lock()
        self.strategies = tuple(strategies)
        self.scorer = scorer
        self.pipeline = PreprocessingPipeline(preprocessing or PreprocessingConfig())
        self.whitelist = whitelist

    @classmethod
    def from_config(cls, config: OCRConfig) -> "RecognitionDriver":
        """Build a driver wired to a Tesseract engine from configuration."""

        def factory() -> TesseractEngine:
            return TesseractEngine(
                tesseract_cmd=config.tesseract_cmd,
                default_lang=config.default_lang,
                dpi=config.dpi,
                preserve_interword_spaces=config.preserve_interword_spaces,
            )

        return cls(
            engine_factory=factory,
            strategies=strategies_for(config.psm_primary, config.psm_fallback),
            preprocessing=config.image,
            whitelist=config.whitelist,
        )

    @property
    def engine(self) -> TesseractEngine:
        """The shared engine handle, created and acquired on first access."""
        with self._engine_lock:
            if self._engine is None:
                engine = self._engine_factory()
                engine.acquire()
                self._engine = engine
            return self._engine

    def recognize_all(
        self,
        image: np.ndarray,
        preprocessing: PreprocessingConfig | None = None,
        channel: ProgressChannel | None = None,
        page_index: int = 1,
        total_pages: int = 1,
    ) -> list[RecognitionResult]:
        """Preprocess once and run every strategy on the same bitmap.

        Args:
            image: Raw page bitmap.
            preprocessing: Per-call preprocessing override.
            channel: Receives an ``"ocr"`` event before each pass.
            page_index: 1-based page number for progress events.
            total_pages: Page count for progress events.

        Returns:
            One result per strategy, in strategy order.
        """
        cleaned, _ = self.pipeline.process(image, preprocessing)
        engine = self.engine

        results: list[RecognitionResult] = []
        for pass_number, strategy in enumerate(self.strategies, 1):
            if channel is not None:
                channel.publish(
                    PageProgressEvent(
                        stage=STAGE_OCR,
                        page_index=page_index,
                        total_pages=total_pages,
                        pass_number=pass_number,
                        segmentation_mode=strategy.mode,
                    )
                )
            text = engine.recognize(cleaned, psm=strategy.mode, whitelist=self.whitelist)
            results.append(
                RecognitionResult(
                    text=text,
                    pass_number=pass_number,
                    segmentation_mode=strategy.mode,
                    score=self.scorer(text),
                )
            )
        return results

    def recognize_best(
        self,
        image: np.ndarray,
        preprocessing: PreprocessingConfig | None = None,
        channel: ProgressChannel | None = None,
        page_index: int = 1,
        total_pages: int = 1,
    ) -> RecognitionResult:
        """Recognize a page and return the highest-scoring pass.

        A later pass replaces the current best only with a strictly
        higher score.

        Args:
            image: Raw page bitmap.
            preprocessing: Per-call preprocessing override.
            channel: Receives an ``"ocr"`` event before each pass.
            page_index: 1-based page number for progress events.
            total_pages: Page count for progress events.

        Returns:
            The winning recognition result.
        """
        results = self.recognize_all(
            image,
            preprocessing=preprocessing,
            channel=channel,
            page_index=page_index,
            total_pages=total_pages,
        )
        best = select_best(results)
        logger.info(
            "Page %d/%d: pass %d (psm %s) selected, score %.1f",
            page_index,
            total_pages,
            best.pass_number,
            best.segmentation_mode,
            best.score,
        )
        return best

    def close(self) -> None:
        """Release the engine. Must not be called while a page is in flight."""
        with self._engine_lock:
            if self._engine is not None:
                self._engine.close()
                self._engine = None


def select_best(results: Sequence[RecognitionResult]) -> RecognitionResult:
    """Pick the first result with the strictly highest score."""
    best = results[0]
    for result in results[1:]:
        if result.score > best.score:
            best = result
    return best
