"""Configuration management for the scan reconciliation system.

Loads and validates YAML configuration with sensible defaults
for preprocessing, recognition, field extraction, and reconciliation.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class PreprocessingConfig(BaseModel):
    """Configuration for page bitmap preprocessing.

    Immutable so a single instance can be shared by both recognition passes.
    """

    model_config = ConfigDict(frozen=True)

    upscale_factor: float = Field(default=1.7, gt=0)
    contrast_percent: float = 35.0
    binarize_threshold: int = Field(default=165, ge=0, le=255)
    grayscale: bool = True
    sharpen: bool = True
    invert: bool = False


class OCRConfig(BaseModel):
    """Configuration for the Tesseract engine and page rasterization."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm_primary: str = "6"
    psm_fallback: str = "11"
    whitelist: str | None = None
    dpi: int = 300
    preserve_interword_spaces: bool = True
    pdf_scale: float = Field(default=3.0, gt=0)
    pdf: PreprocessingConfig = Field(
        default_factory=lambda: PreprocessingConfig(upscale_factor=1.6)
    )
    tiff: PreprocessingConfig = Field(
        default_factory=lambda: PreprocessingConfig(
            upscale_factor=1.8, contrast_percent=40.0
        )
    )
    image: PreprocessingConfig = Field(default_factory=PreprocessingConfig)


class ExtractionConfig(BaseModel):
    """Configuration for the LLM field-extraction service."""

    base_url: str = "https://api.groq.com/openai"
    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.1
    api_key_env: str = "GROQ_API_KEY"
    timeout_s: float = 60.0


class ReconciliationConfig(BaseModel):
    """Tolerances used when repairing extracted amounts."""

    tolerance: float = 0.05
    integer_snap: float = 0.02
    integer_retry: float = 0.05
    integer_retry_tolerance: float = 0.1


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    reconciliation: ReconciliationConfig = Field(default_factory=ReconciliationConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
